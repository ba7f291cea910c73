"""
Credential variants produced by the credential resolver.
"""
from dataclasses import dataclass, field
from typing import Optional, Union

from eth_account import Account


@dataclass(frozen=True)
class KeyCredential:
    """
    A private key with the address derived from it.

    Attributes:
        key: 0x-prefixed 64 character hex private key
        address: Checksummed address derived from ``key``
        source: Name of the credential source that produced this credential
    """
    key: str = field(repr=False)
    address: str
    source: str = "key"

    @classmethod
    def from_key(cls, key: str, source: str = "key") -> "KeyCredential":
        # Account.address is already checksum-encoded
        return cls(key=key, address=Account.from_key(key).address, source=source)

    @property
    def signs_locally(self) -> bool:
        return True


@dataclass(frozen=True)
class AddressCredential:
    """An address whose signing is delegated to the provider."""
    address: str
    source: str = "account"
    key: Optional[str] = None

    @property
    def signs_locally(self) -> bool:
        return False


@dataclass(frozen=True)
class EmptyCredential:
    """No credential configured; the provider's default account applies."""
    source: str = "none"
    address: Optional[str] = None
    key: Optional[str] = None

    @property
    def signs_locally(self) -> bool:
        return False


Credential = Union[KeyCredential, AddressCredential, EmptyCredential]
