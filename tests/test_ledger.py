"""
Tests for the web3-backed ledger client.
"""
from unittest.mock import MagicMock, patch

import pytest
import requests
from web3 import Web3
from web3.exceptions import ContractLogicError, TimeExhausted, TransactionNotFound

from send_tokens.exceptions import LedgerClientError
from send_tokens.ledger import Web3LedgerClient, Web3TransactionHandle, convert_receipt
from conftest import TEST_ADDRESS, TEST_PRIV_KEY, TEST_RECIPIENT, TEST_TOKEN

TX_HASH = bytes.fromhex("ab" * 32)


def raw_receipt(block_number=12345, status=1):
    return {
        "transactionHash": TX_HASH,
        "blockNumber": block_number,
        "blockHash": bytes.fromhex("cd" * 32),
        "status": status,
        "gasUsed": 51234,
        "from": TEST_ADDRESS,
        "to": TEST_TOKEN,
        "logs": [],
    }


@pytest.fixture
def mock_w3():
    """A mock Web3 instance with a mock ERC20 contract"""
    w3 = MagicMock()
    w3.eth.accounts = [TEST_ADDRESS]
    w3.eth.get_transaction_count.return_value = 7
    w3.eth.send_raw_transaction.return_value = TX_HASH
    w3.eth.get_transaction_receipt.return_value = raw_receipt()
    w3.eth.wait_for_transaction_receipt.return_value = raw_receipt()
    w3.eth.block_number = 12345

    contract = MagicMock()
    contract.functions.decimals.return_value.call.return_value = 18
    contract.functions.balanceOf.return_value.call.return_value = 10 ** 20
    transfer_fn = contract.functions.transfer.return_value
    transfer_fn.build_transaction.side_effect = lambda params: dict(
        params, to=TEST_TOKEN, data="0xa9059cbb", gas=60000, chainId=1337
    )
    transfer_fn.transact.return_value = TX_HASH
    w3.eth.contract.return_value = contract
    return w3


@pytest.fixture
def client(mock_w3):
    return Web3LedgerClient(web3=mock_w3, poll_interval=0)


class TestProviders:
    def test_http_provider(self):
        client = Web3LedgerClient(provider_uri="http://localhost:8545")
        assert isinstance(client.w3.provider, Web3.HTTPProvider)
        assert client.w3.provider.endpoint_uri == "http://localhost:8545"

    def test_ipc_provider(self, tmp_path):
        client = Web3LedgerClient(provider_uri=str(tmp_path / "geth.ipc"))
        assert isinstance(client.w3.provider, Web3.IPCProvider)

    def test_network_provider(self):
        client = Web3LedgerClient(network="sepolia", infura_key="abc123")
        assert client.w3.provider.endpoint_uri == "https://sepolia.infura.io/v3/abc123"

    def test_default_provider(self, monkeypatch):
        monkeypatch.delenv("SEND_TOKENS_PROVIDER_URI", raising=False)
        client = Web3LedgerClient()
        assert client.w3.provider.endpoint_uri == "http://localhost:8545"

    def test_env_provider(self, monkeypatch):
        monkeypatch.setenv("SEND_TOKENS_PROVIDER_URI", "https://rpc.example.com")
        assert Web3LedgerClient().w3.provider.endpoint_uri == "https://rpc.example.com"

    def test_unsupported_scheme(self):
        with pytest.raises(LedgerClientError, match="Unsupported provider URI"):
            Web3LedgerClient(provider_uri="ftp://example.com")


class TestReads:
    def test_default_account(self, client):
        assert client.get_default_account() == TEST_ADDRESS

    def test_no_default_account(self, client, mock_w3):
        mock_w3.eth.accounts = []
        assert client.get_default_account() is None

    def test_decimals(self, client, mock_w3):
        assert client.get_decimals(TEST_TOKEN) == 18
        mock_w3.eth.contract.assert_called_once()
        assert mock_w3.eth.contract.call_args.kwargs["address"] == TEST_TOKEN

    def test_contract_is_cached(self, client, mock_w3):
        client.get_decimals(TEST_TOKEN)
        client.get_balance(TEST_TOKEN, TEST_ADDRESS)
        assert mock_w3.eth.contract.call_count == 1

    def test_balance(self, client, mock_w3):
        assert client.get_balance(TEST_TOKEN, TEST_ADDRESS) == 10 ** 20
        mock_w3.eth.contract.return_value.functions.balanceOf.assert_called_once_with(TEST_ADDRESS)

    def test_decimals_error_is_wrapped(self, client, mock_w3):
        contract = mock_w3.eth.contract.return_value
        contract.functions.decimals.return_value.call.side_effect = ContractLogicError("revert")
        with pytest.raises(LedgerClientError, match="read decimals") as exc_info:
            client.get_decimals(TEST_TOKEN)
        assert isinstance(exc_info.value.__cause__, ContractLogicError)

    def test_connection_error_is_wrapped(self, client, mock_w3):
        contract = mock_w3.eth.contract.return_value
        contract.functions.balanceOf.return_value.call.side_effect = requests.ConnectionError("down")
        with pytest.raises(LedgerClientError):
            client.get_balance(TEST_TOKEN, TEST_ADDRESS)


class TestTransfer:
    def test_local_signing(self, client, mock_w3):
        handle = client.transfer(TEST_TOKEN, TEST_RECIPIENT, 5, key=TEST_PRIV_KEY, gas_price=10 ** 9)
        assert handle.tx_id == "0x" + "ab" * 32

        transfer_fn = mock_w3.eth.contract.return_value.functions.transfer
        transfer_fn.assert_called_once_with(TEST_RECIPIENT, 5)
        params = transfer_fn.return_value.build_transaction.call_args[0][0]
        assert params["from"] == TEST_ADDRESS
        assert params["nonce"] == 7
        assert params["gasPrice"] == 10 ** 9
        mock_w3.eth.get_transaction_count.assert_called_once_with(TEST_ADDRESS, "pending")
        mock_w3.eth.send_raw_transaction.assert_called_once()
        transfer_fn.return_value.transact.assert_not_called()

    def test_delegated_signing(self, client, mock_w3):
        handle = client.transfer(TEST_TOKEN, TEST_RECIPIENT, 5, sender=TEST_ADDRESS)
        assert handle.tx_id == "0x" + "ab" * 32
        transfer_fn = mock_w3.eth.contract.return_value.functions.transfer
        transfer_fn.return_value.transact.assert_called_once_with({"from": TEST_ADDRESS})
        mock_w3.eth.send_raw_transaction.assert_not_called()

    @pytest.mark.parametrize("sender,key", [(None, None), (TEST_ADDRESS, TEST_PRIV_KEY)])
    def test_requires_exactly_one_signer(self, client, sender, key):
        with pytest.raises(ValueError, match="Exactly one"):
            client.transfer(TEST_TOKEN, TEST_RECIPIENT, 5, sender=sender, key=key)

    def test_submit_error_is_wrapped(self, client, mock_w3):
        transfer_fn = mock_w3.eth.contract.return_value.functions.transfer
        transfer_fn.return_value.transact.side_effect = ContractLogicError("insufficient funds")
        with pytest.raises(LedgerClientError, match="submit transfer"):
            client.transfer(TEST_TOKEN, TEST_RECIPIENT, 5, sender=TEST_ADDRESS)


class TestTransactionHandle:
    def test_zero_confirmations_mined(self, mock_w3):
        handle = Web3TransactionHandle(mock_w3, TX_HASH, poll_interval=0)
        receipt = handle.confirmed(0)
        assert receipt.tx_hash == "0x" + "ab" * 32
        assert receipt.block_number == 12345
        assert receipt.gas_used == 51234
        mock_w3.eth.wait_for_transaction_receipt.assert_not_called()

    def test_zero_confirmations_pending(self, mock_w3):
        mock_w3.eth.get_transaction_receipt.side_effect = TransactionNotFound("not yet")
        receipt = Web3TransactionHandle(mock_w3, TX_HASH).confirmed(0)
        assert receipt.tx_hash == "0x" + "ab" * 32
        assert not receipt.mined
        assert receipt.gas_used is None

    @patch("send_tokens.ledger.time.sleep")
    def test_waits_for_confirmations(self, mock_sleep, mock_w3):
        heights = iter([12345, 12346, 12347, 12348])
        type(mock_w3.eth).block_number = property(lambda self: next(heights))
        receipt = Web3TransactionHandle(mock_w3, TX_HASH, poll_interval=0.5).confirmed(3)
        assert receipt.block_number == 12345
        assert mock_sleep.call_count == 3
        kwargs = mock_w3.eth.wait_for_transaction_receipt.call_args.kwargs
        assert kwargs["poll_latency"] == 0.5

    def test_reverted_transaction(self, mock_w3):
        mock_w3.eth.wait_for_transaction_receipt.return_value = raw_receipt(status=0)
        with pytest.raises(LedgerClientError, match="reverted") as exc_info:
            Web3TransactionHandle(mock_w3, TX_HASH).confirmed(1)
        assert exc_info.value.tx_id == "0x" + "ab" * 32

    def test_timeout(self, mock_w3):
        mock_w3.eth.wait_for_transaction_receipt.side_effect = TimeExhausted("too slow")
        with pytest.raises(LedgerClientError) as exc_info:
            Web3TransactionHandle(mock_w3, TX_HASH).confirmed(2)
        assert exc_info.value.tx_id == "0x" + "ab" * 32


def test_convert_receipt_hexlifies_bytes():
    receipt = convert_receipt(raw_receipt())
    assert receipt.block_hash == "0x" + "cd" * 32
    assert receipt.from_address == TEST_ADDRESS
    assert receipt.to_address == TEST_TOKEN
    assert receipt.status == 1
