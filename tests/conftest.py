"""
Pytest fixtures for the send-tokens tests.
"""
import itertools
from typing import Dict, List, Optional
from unittest.mock import MagicMock

import pytest
from eth_account import Account
from eth_utils import keccak

from send_tokens.exceptions import LedgerClientError
from send_tokens.models import TxReceipt

# Well-known development accounts derived from TEST_MNEMONIC
TEST_MNEMONIC = "test test test test test test test test test test test junk"
TEST_PRIV_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
TEST_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
TEST_PRIV_KEY_1 = "0x59c6995e998f97a5a0044966f0945389dc9e86dae88c7a8412f4603b6b78690d"
TEST_ADDRESS_1 = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"
TEST_ADDRESS_2 = "0x3C44CdDdB6a900fa2b585dd299e03d12FA4293BC"

TEST_TOKEN = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
TEST_RECIPIENT = "0x90F79bf6EB2c4f870365E785982E1f101E93b906"

ONE_TOKEN = 10 ** 18
STARTING_TOKENS = ONE_TOKEN * 10 ** 6


class FakeTransaction:
    """Transaction handle for FakeLedger."""

    def __init__(self, ledger: "FakeLedger", tx_id: str, sender: str, block_number: int):
        self.ledger = ledger
        self.tx_id = tx_id
        self.sender = sender
        self.block_number = block_number
        self.confirmations_requested: Optional[int] = None

    def confirmed(self, confirmations: int = 0) -> TxReceipt:
        self.confirmations_requested = confirmations
        return TxReceipt(
            transactionHash=self.tx_id,
            blockNumber=self.block_number,
            blockHash="0x" + "ab" * 32,
            status=1,
            gasUsed=51234,
            **{"from": self.sender},
            to=None,
            logs=[],
        )


class FakeLedger:
    """
    In-memory ERC20 ledger implementing the LedgerClient protocol.

    Every call is recorded in ``calls`` so tests can assert what reached the
    chain.
    """

    def __init__(self, decimals: Optional[int] = 18, default_account: Optional[str] = TEST_ADDRESS):
        self.decimals = decimals
        self.default_account = default_account
        self.balances: Dict[str, Dict[str, int]] = {}
        self.calls: List[tuple] = []
        self.transactions: List[FakeTransaction] = []
        self._nonce = itertools.count()
        self._block = itertools.count(100)

    def mint(self, token: str, owner: str, amount: int) -> None:
        holders = self.balances.setdefault(token, {})
        holders[owner] = holders.get(owner, 0) + amount

    def balance_of(self, token: str, owner: str) -> int:
        return self.balances.get(token, {}).get(owner, 0)

    def get_default_account(self) -> Optional[str]:
        self.calls.append(("get_default_account",))
        return self.default_account

    def get_decimals(self, token: str) -> int:
        self.calls.append(("get_decimals", token))
        if self.decimals is None:
            raise LedgerClientError(f"Failed to read decimals of {token}: execution reverted")
        return self.decimals

    def get_balance(self, token: str, owner: str) -> int:
        self.calls.append(("get_balance", token, owner))
        return self.balance_of(token, owner)

    def transfer(self, token, to, amount, sender=None, key=None, gas_price=None):
        self.calls.append(("transfer", token, to, amount, sender, key, gas_price))
        if (sender is None) == (key is None):
            raise ValueError("Exactly one of sender or key must be provided")
        from_address = Account.from_key(key).address if key else sender
        if self.balance_of(token, from_address) < amount:
            raise LedgerClientError("Failed to submit transfer: execution reverted")
        self.balances[token][from_address] -= amount
        self.mint(token, to, amount)
        tx_id = "0x" + keccak(text=f"{from_address}:{next(self._nonce)}").hex()
        tx = FakeTransaction(self, tx_id, from_address, next(self._block))
        self.transactions.append(tx)
        return tx

    @property
    def submitted(self) -> bool:
        return any(call[0] == "transfer" for call in self.calls)


@pytest.fixture
def ledger():
    """A fake ledger where TEST_ADDRESS holds a million 18-decimal tokens."""
    fake = FakeLedger()
    fake.mint(TEST_TOKEN, TEST_ADDRESS, STARTING_TOKENS)
    return fake


@pytest.fixture
def interaction():
    """An interaction double that confirms and supplies no password."""
    mock = MagicMock()
    mock.is_interactive = True
    mock.confirm.return_value = True
    mock.config.confirm_message = "Proceed with transfer?"
    mock.config.password_message = "Keystore password"
    return mock


@pytest.fixture
def keystore_factory():
    """Build V3 keystores quickly using a cheap pbkdf2 work factor."""
    def _make(key: str = TEST_PRIV_KEY, password: str = "correct horse"):
        return Account.encrypt(key, password, kdf="pbkdf2", iterations=2)
    return _make
