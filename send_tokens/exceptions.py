"""
Exceptions raised by send-tokens.

Every error carries a ``kind`` so library callers can branch on the failure
without importing each class.
"""
from typing import Optional


class SendTokensError(Exception):
    """Base exception for all send-tokens errors."""

    @property
    def kind(self) -> str:
        return type(self).__name__


class ValidationError(SendTokensError, ValueError):
    """Raised when user input is rejected before any network call."""
    pass


class InvalidAddress(ValidationError):
    """Raised when an address is neither a valid address nor an ENS name."""

    def __init__(self, address: str):
        self.address = address
        super().__init__(f"Invalid address: {address}")


class InvalidAmount(ValidationError):
    """Raised when an amount is not a non-negative decimal number."""

    def __init__(self, amount):
        self.amount = amount
        super().__init__(f"Invalid amount: {amount}")


class InvalidDecimals(ValidationError):
    """Raised when a decimals override is not an integer in [0, 256)."""

    def __init__(self, decimals):
        self.decimals = decimals
        super().__init__(f"Invalid decimals: {decimals}")


class InvalidOptions(ValidationError):
    """Raised for unknown or conflicting transfer options."""
    pass


class CredentialError(SendTokensError):
    """Base exception for failures resolving the sending account."""
    pass


class InvalidKey(CredentialError):
    """Raised when a private key is not 32 hex-encoded bytes."""

    def __init__(self, message: str = "Invalid private key."):
        super().__init__(message)


class MissingPassword(CredentialError):
    """Raised when a keystore is supplied without a password."""

    def __init__(self, message: str = "Keystore requires password."):
        super().__init__(message)


class DecryptionFailed(CredentialError):
    """Raised when a keystore cannot be decrypted."""
    pass


class InvalidMnemonic(CredentialError):
    """Raised when a mnemonic phrase fails BIP-39 validation."""
    pass


class NoSender(SendTokensError):
    """Raised when no account to send from could be determined."""

    def __init__(self, message: str = "No account to send from."):
        super().__init__(message)


class InsufficientBalance(SendTokensError):
    """Raised when the sender's token balance is below the transfer amount."""

    def __init__(self, balance: int, required: int):
        self.balance = balance
        self.required = required
        super().__init__(
            f"Insufficient balance: have {balance}, need {required} (base units)."
        )


class LedgerClientError(SendTokensError):
    """Raised when the underlying blockchain client fails."""

    def __init__(self, message: str, tx_id: Optional[str] = None):
        self.tx_id = tx_id
        super().__init__(message)
