"""
send-tokens: send ERC20 tokens from the command line or from Python.
"""
from .version import __version__
from .client import TokenSender, send_tokens
from .models import TransferOptions, TxReceipt, LogRecord, ResolvedTransfer
from .credentials import (
    Credential, KeyCredential, AddressCredential, EmptyCredential, resolve_credential
)
from .interaction import Interaction, NonInteractive, PromptConfig, TransferSummary
from .ledger import LedgerClient, TransactionHandle, Web3LedgerClient
from .transfer_log import make_log_id, JsonLineLogger
from .units import to_base_units, to_decimal, gwei_to_wei
from .exceptions import (
    SendTokensError,
    ValidationError,
    InvalidAddress,
    InvalidAmount,
    InvalidDecimals,
    InvalidOptions,
    CredentialError,
    InvalidKey,
    MissingPassword,
    DecryptionFailed,
    InvalidMnemonic,
    NoSender,
    InsufficientBalance,
    LedgerClientError,
)

__all__ = [
    "__version__",
    "TokenSender",
    "send_tokens",
    "TransferOptions",
    "TxReceipt",
    "LogRecord",
    "ResolvedTransfer",
    "Credential",
    "KeyCredential",
    "AddressCredential",
    "EmptyCredential",
    "resolve_credential",
    "Interaction",
    "NonInteractive",
    "PromptConfig",
    "TransferSummary",
    "LedgerClient",
    "TransactionHandle",
    "Web3LedgerClient",
    "make_log_id",
    "JsonLineLogger",
    "to_base_units",
    "to_decimal",
    "gwei_to_wei",
    "SendTokensError",
    "ValidationError",
    "InvalidAddress",
    "InvalidAmount",
    "InvalidDecimals",
    "InvalidOptions",
    "CredentialError",
    "InvalidKey",
    "MissingPassword",
    "DecryptionFailed",
    "InvalidMnemonic",
    "NoSender",
    "InsufficientBalance",
    "LedgerClientError",
]
