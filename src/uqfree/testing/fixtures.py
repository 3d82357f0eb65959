"""Pytest fixtures for uqfree tests.

Fixtures (use with pytest):
    rsa_private_key: Session-wide 2048-bit device key (generated once).
    custodian: Fresh MockCustodian holding rsa_private_key.
    asset: Asset bound to the custodian, public key already fetched.

Context managers:
    mock_custodian(): Sync context manager yielding a MockCustodian.
"""

from contextlib import contextmanager
from typing import Iterator, Optional

import pytest
from cryptography.hazmat.primitives.asymmetric import rsa

from uqfree.asset import Asset
from uqfree.testing.mocks import MockCustodian


@pytest.fixture(scope="session")
def rsa_private_key() -> rsa.RSAPrivateKey:
    """Generate the device key once; RSA key generation is slow."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def custodian(rsa_private_key: rsa.RSAPrivateKey) -> MockCustodian:
    """Create a fresh MockCustodian (no recorded calls, no requests)."""
    return MockCustodian(rsa_private_key)


@pytest.fixture
def asset(custodian: MockCustodian) -> Asset:
    """Asset bound to ``custodian`` with its record already applied."""
    return custodian.asset().refresh()


@contextmanager
def mock_custodian(
    private_key: Optional[rsa.RSAPrivateKey] = None, mgf_hash: str = "sha1"
) -> Iterator[MockCustodian]:
    """Context manager that provides a MockCustodian for the scope.

    Example:
        >>> with mock_custodian() as custodian:
        ...     request = custodian.asset().authenticate()
        ...     custodian.accept(request.uuid)
    """
    yield MockCustodian(private_key, mgf_hash=mgf_hash)
