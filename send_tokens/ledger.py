"""
Ledger client: the blockchain side of a token transfer.

``LedgerClient`` is what the orchestrator needs from a chain. ``Web3LedgerClient``
implements it on top of web3.py.
"""
import logging
import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional, Protocol
from urllib.parse import urlparse

import requests
from eth_account import Account
from web3 import LegacyWebSocketProvider, Web3
from web3.exceptions import TransactionNotFound, Web3Exception

from .addresses import short_address
from .config import resolve_provider_uri
from .exceptions import LedgerClientError
from .models import TxReceipt

logger = logging.getLogger(__name__)

ERC20_ABI = [
    {
        "constant": True,
        "inputs": [{"name": "owner", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "constant": True,
        "inputs": [],
        "name": "decimals",
        "outputs": [{"name": "", "type": "uint8"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "constant": False,
        "inputs": [
            {"name": "to", "type": "address"},
            {"name": "value", "type": "uint256"},
        ],
        "name": "transfer",
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]

# Errors raised by web3 and its transports that mean "the ledger failed"
LEDGER_ERRORS = (Web3Exception, requests.RequestException, ConnectionError, ValueError)


@contextmanager
def ledger_errors(action: str, tx_id: Optional[str] = None) -> Iterator[None]:
    """Wrap web3/transport failures in LedgerClientError."""
    try:
        yield
    except LedgerClientError:
        raise
    except LEDGER_ERRORS as e:
        logger.error("Ledger call failed while trying to %s: %s", action, e)
        raise LedgerClientError(f"Failed to {action}: {e}", tx_id=tx_id) from e


class TransactionHandle(Protocol):
    """An in-flight transaction"""
    tx_id: str

    def confirmed(self, confirmations: int = 0) -> TxReceipt:
        """Receipt once ``confirmations`` blocks were mined on top of inclusion"""
        ...


class LedgerClient(Protocol):
    """What the transfer orchestrator needs from a blockchain client"""

    def get_default_account(self) -> Optional[str]:
        ...

    def get_decimals(self, token: str) -> int:
        ...

    def get_balance(self, token: str, owner: str) -> int:
        ...

    def transfer(
        self,
        token: str,
        to: str,
        amount: int,
        sender: Optional[str] = None,
        key: Optional[str] = None,
        gas_price: Optional[int] = None,
    ) -> TransactionHandle:
        ...


def convert_receipt(web3_receipt: Any) -> TxReceipt:
    """
    Convert a web3 receipt to our TxReceipt model

    Args:
        web3_receipt: The web3 transaction receipt

    Returns:
        Our TxReceipt model
    """
    receipt_dict = dict(web3_receipt)

    # Convert bytes to hex strings
    for key, value in list(receipt_dict.items()):
        if isinstance(value, bytes):
            receipt_dict[key] = Web3.to_hex(value)
    receipt_dict["logs"] = [dict(log) for log in receipt_dict.get("logs") or []]

    return TxReceipt.model_validate(receipt_dict)


class Web3TransactionHandle:
    """Transaction handle backed by a web3 connection."""

    def __init__(self, w3: Web3, tx_hash: Any, poll_interval: float = 1.0,
                 receipt_timeout: float = 600):
        self.w3 = w3
        self.tx_hash = tx_hash
        self.tx_id = Web3.to_hex(tx_hash)
        self.poll_interval = poll_interval
        self.receipt_timeout = receipt_timeout

    def confirmed(self, confirmations: int = 0) -> TxReceipt:
        """
        Get the transaction receipt.

        With ``confirmations`` of 0 this returns immediately: the mined receipt
        if one already exists, otherwise a pending receipt carrying only the
        transaction id.

        Raises:
            LedgerClientError: If the transaction reverted or waiting failed
        """
        if confirmations == 0:
            with ledger_errors("fetch transaction receipt", self.tx_id):
                try:
                    raw = self.w3.eth.get_transaction_receipt(self.tx_hash)
                except TransactionNotFound:
                    return TxReceipt.pending(self.tx_id)
            return self._checked(raw)

        # TimeExhausted is a Web3Exception and surfaces as LedgerClientError
        with ledger_errors("wait for transaction receipt", self.tx_id):
            raw = self.w3.eth.wait_for_transaction_receipt(
                self.tx_hash,
                timeout=self.receipt_timeout,
                poll_latency=self.poll_interval,
            )
            receipt = self._checked(raw)
            target = receipt.block_number + confirmations
            while self.w3.eth.block_number < target:
                time.sleep(self.poll_interval)
        logger.info("Transaction %s confirmed in block %s (+%d)",
                    self.tx_id, receipt.block_number, confirmations)
        return receipt

    def _checked(self, raw: Any) -> TxReceipt:
        receipt = convert_receipt(raw)
        if receipt.status == 0:
            raise LedgerClientError(f"Transaction {self.tx_id} reverted", tx_id=self.tx_id)
        return receipt


class Web3LedgerClient:
    """
    Ledger client talking to an Ethereum node through web3.py.

    To use this client, you'll need one of:
    - A web3 instance
    - A provider URI (http(s)://, ws(s)://, or an IPC socket path)
    - A named network (see ``networks.json``), optionally with an Infura key
    Otherwise ``SEND_TOKENS_PROVIDER_URI`` or http://localhost:8545 is used.
    """

    def __init__(
        self,
        provider_uri: Optional[str] = None,
        network: Optional[str] = None,
        infura_key: Optional[str] = None,
        web3: Optional[Web3] = None,
        poll_interval: float = 1.0,
        receipt_timeout: float = 600,
        logger: Optional[logging.Logger] = None,
    ):
        self.logger = logger or logging.getLogger(__name__)
        if web3 is not None:
            self.w3 = web3
        else:
            uri = resolve_provider_uri(provider_uri, network, infura_key)
            self.w3 = Web3(self._make_provider(uri))
            self.logger.debug("Connecting to %s", urlparse(uri).netloc or uri)
        self.poll_interval = poll_interval
        self.receipt_timeout = receipt_timeout
        self._contracts: Dict[str, Any] = {}

    @classmethod
    def from_options(cls, options) -> "Web3LedgerClient":
        return cls(
            provider_uri=options.provider_uri,
            network=options.network,
            infura_key=options.infura_key,
        )

    @staticmethod
    def _make_provider(uri: str):
        scheme = urlparse(uri).scheme
        if scheme in ("http", "https"):
            return Web3.HTTPProvider(uri)
        if scheme in ("ws", "wss"):
            return LegacyWebSocketProvider(uri)
        if scheme in ("", "file") or uri.endswith(".ipc"):
            return Web3.IPCProvider(urlparse(uri).path or uri)
        raise LedgerClientError(f"Unsupported provider URI: {uri}")

    def _contract(self, token: str):
        if token not in self._contracts:
            self._contracts[token] = self.w3.eth.contract(address=token, abi=ERC20_ABI)
        return self._contracts[token]

    def get_default_account(self) -> Optional[str]:
        with ledger_errors("list provider accounts"):
            accounts = self.w3.eth.accounts
        return accounts[0] if accounts else None

    def get_decimals(self, token: str) -> int:
        with ledger_errors(f"read decimals of {token}"):
            return int(self._contract(token).functions.decimals().call())

    def get_balance(self, token: str, owner: str) -> int:
        with ledger_errors(f"read balance of {short_address(owner)}"):
            return int(self._contract(token).functions.balanceOf(owner).call())

    def transfer(
        self,
        token: str,
        to: str,
        amount: int,
        sender: Optional[str] = None,
        key: Optional[str] = None,
        gas_price: Optional[int] = None,
    ) -> Web3TransactionHandle:
        """
        Submit ``transfer(to, amount)`` on the token contract.

        Exactly one of ``sender`` (signed by the provider) or ``key`` (signed
        locally) must be given.
        """
        if (sender is None) == (key is None):
            raise ValueError("Exactly one of sender or key must be provided")

        call = self._contract(token).functions.transfer(to, amount)
        with ledger_errors("submit transfer"):
            if key is not None:
                account = Account.from_key(key)
                tx_params: Dict[str, Any] = {
                    "from": account.address,
                    "nonce": self.w3.eth.get_transaction_count(account.address, "pending"),
                }
                if gas_price is not None:
                    tx_params["gasPrice"] = gas_price
                tx = call.build_transaction(tx_params)
                signed_tx = account.sign_transaction(tx)
                tx_hash = self.w3.eth.send_raw_transaction(signed_tx.raw_transaction)
            else:
                tx_params = {"from": sender}
                if gas_price is not None:
                    tx_params["gasPrice"] = gas_price
                tx_hash = call.transact(tx_params)

        handle = Web3TransactionHandle(
            self.w3, tx_hash,
            poll_interval=self.poll_interval,
            receipt_timeout=self.receipt_timeout,
        )
        self.logger.info("Transaction sent: %s", handle.tx_id)
        return handle
