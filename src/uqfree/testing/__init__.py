"""uqfree testing utilities.

Modules:
    mocks: MockCustodian, an in-memory transport that also plays the
           custodian device (accept, reject, expire, fail).
    fixtures: Pytest fixtures (rsa_private_key, custodian, asset) and the
              custodian() context manager.

Example:
    >>> from uqfree.testing import MockCustodian
    >>> custodian = MockCustodian()
    >>> request = custodian.asset().sign(b"payload")
    >>> custodian.accept(request.uuid)
"""

from uqfree.testing.mocks import MockCustodian

__all__ = ["MockCustodian"]
