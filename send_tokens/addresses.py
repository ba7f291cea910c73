"""
Address validation and normalization helpers.
"""
import re

from web3 import Web3

from .exceptions import InvalidAddress

ENS_NAME_PATTERN = re.compile(r"^(\w+\.)*\w+\.(test|eth)$", re.ASCII)
HEX_ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")


def is_ens_name(value: str) -> bool:
    return bool(ENS_NAME_PATTERN.match(value))


def is_literal_address(value: str) -> bool:
    """
    True for a 0x-prefixed 20-byte hex address.

    Mixed-case input must carry a valid checksum.
    """
    return bool(HEX_ADDRESS_PATTERN.match(value)) and Web3.is_address(value)


def validate_address(value) -> str:
    """
    Validate an address or ENS name.

    Returns:
        The checksummed address, or the ENS name unchanged

    Raises:
        InvalidAddress: If ``value`` is neither
    """
    if not isinstance(value, str):
        raise InvalidAddress(str(value))
    if is_literal_address(value):
        return Web3.to_checksum_address(value)
    if is_ens_name(value):
        return value
    raise InvalidAddress(value)


def checksum_or_name(value: str) -> str:
    """Checksum ``value`` when it is a literal address, else pass it through."""
    if is_literal_address(value):
        return Web3.to_checksum_address(value)
    return value


def short_address(address: str) -> str:
    """Truncated address for log lines."""
    if is_literal_address(address):
        return f"{address[:6]}…{address[-4:]}"
    return address
