"""
Tests for the RPC layer: retry logic, error mapping and screen fetches.

The Web3 instance is a MagicMock; eth_call is answered by a small dispatcher
keyed on the 4-byte selector so contract reads behave like a node would.
"""

from unittest.mock import MagicMock, Mock, PropertyMock, patch

import pytest
import requests
from eth_abi import encode as abi_encode
from hexbytes import HexBytes
from web3 import Web3
from web3.exceptions import (
    BlockNotFound,
    ContractLogicError,
    TransactionNotFound,
    Web3Exception,
    Web3RPCError,
)

from eth_explorer.errors import FetchError
from eth_explorer.extraction.core import fetcher
from eth_explorer.extraction.core.fetcher import (
    ENS_REGISTRY,
    ENS_REVERSE_RECORDS,
    fetch_address,
    fetch_block,
    fetch_network_info,
    fetch_transaction,
    resolve_ens_name,
    reverse_resolve,
)
from eth_explorer.extraction.core.utils import Web3ConnectionManager
from eth_explorer.extraction.signatures import POPULAR_TOKENS

from conftest import IMPLEMENTATION, MINER, OWNER, RECIPIENT, SENDER, TOKEN, TX_HASH

RESOLVER = "0x" + "ab" * 20
RESOLVER_CHECKSUM = Web3.to_checksum_address(RESOLVER)


@pytest.fixture(autouse=True)
def no_sleep():
    """Skip backoff delays."""
    with patch("eth_explorer.extraction.core.utils.time.sleep") as mock_sleep:
        yield mock_sleep


@pytest.fixture
def mock_web3():
    """Create a mock Web3 instance for testing."""
    mock = MagicMock()
    mock.is_connected.return_value = True
    return mock


@pytest.fixture
def manager(mock_web3) -> Web3ConnectionManager:
    return Web3ConnectionManager("http://localhost:8545", max_retries=3, w3=mock_web3)


def dispatch_calls(mock_web3, answers: dict) -> None:
    """
    Answer eth_call by selector.

    `answers` maps a selector to bytes, to an exception to raise, or to a
    callable taking the call's target address.
    """

    def call(tx):
        data = bytes.fromhex(tx["data"][2:])
        answer = answers.get(data[:4])
        if answer is None:
            raise ContractLogicError("execution reverted")
        if isinstance(answer, Exception):
            raise answer
        if callable(answer):
            answer = answer(tx["to"])
        return HexBytes(answer)

    mock_web3.eth.call.side_effect = call


class TestWeb3ConnectionManager:
    """Test connection setup and retry logic."""

    def test_empty_url_rejected(self):
        with pytest.raises(ValueError, match="Invalid RPC URL"):
            Web3ConnectionManager(rpc_url="")

    def test_invalid_retries_rejected(self, mock_web3):
        with pytest.raises(ValueError, match="max_retries"):
            Web3ConnectionManager("http://localhost:8545", max_retries=0, w3=mock_web3)

    def test_check_connection(self, manager, mock_web3):
        manager.check_connection()

        mock_web3.is_connected.return_value = False
        with pytest.raises(FetchError, match="Failed to connect"):
            manager.check_connection()

    def test_retry_logic_succeeds_after_failures(self, manager, no_sleep):
        mock_func = Mock(
            side_effect=[
                Web3Exception("Error 1"),
                requests.exceptions.ConnectionError("Error 2"),
                "success",
            ]
        )

        assert manager.retry_with_backoff(mock_func) == "success"
        assert mock_func.call_count == 3
        assert [c.args[0] for c in no_sleep.call_args_list] == [1.0, 2.0]

    def test_retry_logic_fails_after_max_retries(self, manager):
        mock_func = Mock(side_effect=Web3Exception("Persistent error"))

        with pytest.raises(Web3Exception, match="Persistent error"):
            manager.retry_with_backoff(mock_func)

        assert mock_func.call_count == 3

    @pytest.mark.parametrize(
        "error",
        [
            BlockNotFound("missing"),
            TransactionNotFound("missing"),
            ContractLogicError("execution reverted"),
            Web3RPCError("the method eth_feeHistory does not exist"),
        ],
    )
    def test_definitive_errors_are_not_retried(self, manager, error):
        mock_func = Mock(side_effect=error)

        with pytest.raises(type(error)):
            manager.retry_with_backoff(mock_func)

        assert mock_func.call_count == 1

    def test_make_request_returns_result(self, manager, mock_web3):
        mock_web3.provider.make_request.return_value = {"jsonrpc": "2.0", "result": [1]}

        assert manager.make_request("eth_getBlockReceipts", ["0x1"]) == [1]
        mock_web3.provider.make_request.assert_called_once_with(
            "eth_getBlockReceipts", ["0x1"]
        )

    def test_make_request_error(self, manager, mock_web3):
        mock_web3.provider.make_request.return_value = {
            "error": {"code": -32601, "message": "method not found"}
        }

        with pytest.raises(FetchError, match="method not found"):
            manager.make_request("eth_getBlockReceipts", ["0x1"])


class TestEns:
    """Test forward and reverse ENS resolution."""

    def test_resolve_name(self, manager, mock_web3):
        def address_answer(to):
            if to == ENS_REGISTRY:
                return abi_encode(["address"], [RESOLVER])
            return abi_encode(["address"], [SENDER])

        dispatch_calls(
            mock_web3,
            {
                fetcher.SELECTOR_RESOLVER: address_answer,
                fetcher.SELECTOR_ADDR: address_answer,
            },
        )

        assert resolve_ens_name(manager, "vitalik.eth") == SENDER

        resolver_call, addr_call = mock_web3.eth.call.call_args_list
        assert addr_call.args[0]["to"] == RESOLVER_CHECKSUM
        # namehash("vitalik.eth") follows the selector
        assert resolver_call.args[0]["data"].endswith(
            "ee6c4522aab0003e8d14cd40a6af439055fd2577951148c14b6cea9a53475835"
        )

    def test_name_without_resolver(self, manager, mock_web3):
        dispatch_calls(
            mock_web3, {fetcher.SELECTOR_RESOLVER: abi_encode(["address"], ["0x" + "00" * 20])}
        )

        with pytest.raises(FetchError, match="has no resolver"):
            resolve_ens_name(manager, "nobody.eth")

    def test_name_without_address(self, manager, mock_web3):
        dispatch_calls(
            mock_web3, {fetcher.SELECTOR_RESOLVER: abi_encode(["address"], [RESOLVER])}
        )

        with pytest.raises(FetchError, match="does not resolve"):
            resolve_ens_name(manager, "empty.eth")

    def test_reverse_resolve(self, manager, mock_web3):
        dispatch_calls(
            mock_web3,
            {fetcher.SELECTOR_GET_NAMES: abi_encode(["string[]"], [["alice.eth", ""]])},
        )

        names = reverse_resolve(manager, [SENDER, None, RECIPIENT, SENDER])

        assert names == {SENDER: "alice.eth"}
        (call,) = mock_web3.eth.call.call_args_list
        assert call.args[0]["to"] == ENS_REVERSE_RECORDS

    def test_reverse_resolve_nothing_to_do(self, manager, mock_web3):
        assert reverse_resolve(manager, [None]) == {}
        mock_web3.eth.call.assert_not_called()

    def test_reverse_resolve_failure_is_empty(self, manager, mock_web3):
        dispatch_calls(mock_web3, {})

        assert reverse_resolve(manager, [SENDER]) == {}


class TestFetchNetworkInfo:
    def test_network_info(self, manager, mock_web3):
        mock_web3.eth.block_number = 17_000_000
        mock_web3.eth.gas_price = 25 * 10**9
        mock_web3.client_version = "Geth/v1.13.0"
        mock_web3.eth.fee_history.return_value = {
            "baseFeePerGas": [20 * 10**9, 21 * 10**9],
            "reward": [[1, 2, 3]],
        }

        info = fetch_network_info(manager)

        assert info.latest_block == 17_000_000
        assert info.client_version == "Geth/v1.13.0"
        assert info.base_fee_trend == (20 * 10**9, 21 * 10**9)
        assert info.priority_fee_percentiles == (1, 2, 3)
        mock_web3.eth.fee_history.assert_called_once_with(20, "latest", [25, 50, 75])

    def test_fee_history_failure_is_tolerated(self, manager, mock_web3):
        mock_web3.eth.block_number = 1
        mock_web3.eth.gas_price = 2
        mock_web3.eth.fee_history.side_effect = Web3Exception("not supported")

        info = fetch_network_info(manager)

        assert info.base_fee_trend == ()

    def test_node_error_on_fee_history_is_tolerated(self, manager, mock_web3, no_sleep):
        mock_web3.eth.block_number = 1
        mock_web3.eth.gas_price = 2
        mock_web3.eth.fee_history.side_effect = Web3RPCError(
            "the method eth_feeHistory does not exist/is not available"
        )

        info = fetch_network_info(manager)

        assert info.latest_block == 1
        assert info.base_fee_trend == ()
        assert mock_web3.eth.fee_history.call_count == 1
        no_sleep.assert_not_called()

    def test_node_error_on_required_field_is_fetch_error(self, manager, mock_web3):
        type(mock_web3.eth).gas_price = PropertyMock(
            side_effect=Web3RPCError("method not found")
        )
        mock_web3.eth.block_number = 1

        with pytest.raises(FetchError, match="Failed to fetch gas price"):
            fetch_network_info(manager)


@pytest.fixture
def raw_block() -> dict:
    return {
        "number": 17_000_000,
        "hash": HexBytes("0x" + "cd" * 32),
        "parentHash": HexBytes("0x" + "ef" * 32),
        "timestamp": 1_681_000_000,
        "gasUsed": 21_000,
        "gasLimit": 30_000_000,
        "miner": MINER,
        "baseFeePerGas": 10,
        "extraData": HexBytes(b""),
        "transactions": [
            {
                "hash": HexBytes(TX_HASH),
                "from": SENDER,
                "to": RECIPIENT,
                "value": 10**18,
                "gas": 21_000,
                "input": HexBytes(b""),
                "type": 2,
            }
        ],
    }


class TestFetchBlock:
    """Test block fetches."""

    def test_block_with_receipts(self, manager, mock_web3, raw_block):
        mock_web3.eth.get_block.return_value = raw_block
        mock_web3.provider.make_request.return_value = {
            "result": [
                {"transactionHash": TX_HASH, "gasUsed": "0x5208", "effectiveGasPrice": "0x14"}
            ]
        }

        view, transactions, stats = fetch_block(manager, 17_000_000, resolve_names=False)

        assert view.number == 17_000_000
        assert transactions[0].fee_paid == 21_000 * 20
        assert stats.total_fees == 21_000 * 20
        assert stats.burnt_fees == 21_000 * 10
        mock_web3.eth.get_block.assert_called_once_with(17_000_000, True)
        mock_web3.provider.make_request.assert_called_once_with(
            "eth_getBlockReceipts", ["0x1036640"]
        )

    def test_receipts_unavailable(self, manager, mock_web3, raw_block):
        mock_web3.eth.get_block.return_value = raw_block
        mock_web3.provider.make_request.return_value = {"error": "method not found"}

        _, transactions, stats = fetch_block(manager, 17_000_000, resolve_names=False)

        assert transactions[0].fee_paid is None
        assert stats.total_fees == 0

    def test_names_resolved(self, manager, mock_web3, raw_block):
        mock_web3.eth.get_block.return_value = raw_block
        mock_web3.provider.make_request.return_value = {"result": []}
        dispatch_calls(
            mock_web3,
            {
                fetcher.SELECTOR_GET_NAMES: abi_encode(
                    ["string[]"], [["builder.eth", "", "bob.eth"]]
                )
            },
        )

        view, transactions, _ = fetch_block(manager, 17_000_000)

        assert view.miner_ens == "builder.eth"
        assert transactions[0].sender_ens is None
        assert transactions[0].to_ens == "bob.eth"

    def test_missing_block(self, manager, mock_web3):
        mock_web3.eth.get_block.side_effect = BlockNotFound("no block")

        with pytest.raises(FetchError, match="block 99999999 not found"):
            fetch_block(manager, 99_999_999)

        assert mock_web3.eth.get_block.call_count == 1

    def test_node_unreachable(self, manager, mock_web3):
        mock_web3.eth.get_block.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(FetchError, match="Failed to fetch block 5"):
            fetch_block(manager, 5)

        assert mock_web3.eth.get_block.call_count == 3


@pytest.fixture
def raw_tx() -> dict:
    return {
        "hash": HexBytes(TX_HASH),
        "from": SENDER,
        "to": RECIPIENT,
        "value": 10**18,
        "nonce": 1,
        "gas": 21_000,
        "input": HexBytes(b""),
        "type": 2,
        "blockNumber": 17_000_000,
    }


class TestFetchTransaction:
    """Test transaction fetches."""

    def test_mined_transaction(self, manager, mock_web3, raw_tx):
        mock_web3.eth.get_transaction.return_value = raw_tx
        mock_web3.eth.get_transaction_receipt.return_value = {
            "status": 1,
            "gasUsed": 21_000,
            "effectiveGasPrice": 10,
            "logs": [],
        }

        view = fetch_transaction(manager, TX_HASH[2:], resolve_names=False)

        assert view.hash == TX_HASH
        assert view.status is True
        assert view.actual_fee == 210_000
        mock_web3.eth.get_transaction.assert_called_once_with(TX_HASH)

    def test_pending_transaction(self, manager, mock_web3, raw_tx):
        raw_tx["blockNumber"] = None
        mock_web3.eth.get_transaction.return_value = raw_tx
        mock_web3.eth.get_transaction_receipt.side_effect = TransactionNotFound("pending")

        view = fetch_transaction(manager, TX_HASH, resolve_names=False)

        assert view.status is None
        assert view.block_number is None

    def test_missing_transaction(self, manager, mock_web3):
        mock_web3.eth.get_transaction.side_effect = TransactionNotFound("unknown")

        with pytest.raises(FetchError, match="not found"):
            fetch_transaction(manager, TX_HASH)

    def test_names_resolved(self, manager, mock_web3, raw_tx):
        mock_web3.eth.get_transaction.return_value = raw_tx
        mock_web3.eth.get_transaction_receipt.return_value = {"status": 1, "logs": []}
        dispatch_calls(
            mock_web3,
            {fetcher.SELECTOR_GET_NAMES: abi_encode(["string[]"], [["alice.eth", ""]])},
        )

        view = fetch_transaction(manager, TX_HASH)

        assert view.sender_ens == "alice.eth"
        assert view.to_ens is None


class TestFetchAddress:
    """Test account snapshots."""

    def test_externally_owned_account(self, manager, mock_web3):
        mock_web3.eth.get_balance.return_value = 10**18
        mock_web3.eth.get_transaction_count.return_value = 4
        mock_web3.eth.get_code.return_value = HexBytes(b"")
        dispatch_calls(mock_web3, {})

        view = fetch_address(manager, SENDER, resolve_names=False)

        assert view.kind_label == "EOA"
        assert view.balance == 10**18
        assert view.nonce == 4
        assert view.code_size is None
        assert view.token_balances == ()
        mock_web3.eth.get_storage_at.assert_not_called()

    def test_token_proxy_contract(self, manager, mock_web3):
        usdc = POPULAR_TOKENS[0]
        mock_web3.eth.get_balance.return_value = 0
        mock_web3.eth.get_transaction_count.return_value = 1
        mock_web3.eth.get_code.return_value = HexBytes(b"\x60\x80\x60\x40")
        mock_web3.eth.get_storage_at.return_value = HexBytes(
            b"\x00" * 12 + bytes.fromhex(IMPLEMENTATION[2:])
        )
        dispatch_calls(
            mock_web3,
            {
                fetcher.SELECTOR_DECIMALS: abi_encode(["uint8"], [18]),
                fetcher.SELECTOR_SYMBOL: abi_encode(["string"], ["TKN"]),
                fetcher.SELECTOR_NAME: abi_encode(["bytes32"], [b"Token".ljust(32, b"\x00")]),
                fetcher.SELECTOR_TOTAL_SUPPLY: abi_encode(["uint256"], [10**24]),
                fetcher.SELECTOR_OWNER: abi_encode(["address"], [OWNER]),
                fetcher.SELECTOR_BALANCE_OF: lambda to: abi_encode(
                    ["uint256"], [5 if to == usdc.address else 0]
                ),
                fetcher.SELECTOR_GET_NAMES: abi_encode(["string[]"], [["token.eth"]]),
            },
        )

        view = fetch_address(manager, TOKEN.lower())

        assert view.address == TOKEN
        assert view.kind_label == "Proxy Contract"
        assert view.code_size == 4
        assert view.proxy_implementation == IMPLEMENTATION
        assert view.owner == OWNER
        assert view.ens_name == "token.eth"
        assert view.token_info.symbol == "TKN"
        assert view.token_info.name == "Token"
        assert view.token_info.decimals == 18
        assert view.token_info.total_supply == 10**24
        assert [(b.symbol, b.balance) for b in view.token_balances] == [(usdc.symbol, 5)]

    def test_plain_contract(self, manager, mock_web3):
        mock_web3.eth.get_balance.return_value = 0
        mock_web3.eth.get_transaction_count.return_value = 1
        mock_web3.eth.get_code.return_value = HexBytes(b"\x60\x80")
        mock_web3.eth.get_storage_at.return_value = HexBytes(b"\x00" * 32)
        dispatch_calls(mock_web3, {})

        view = fetch_address(manager, TOKEN, resolve_names=False)

        assert view.kind_label == "Contract"
        assert view.proxy_implementation is None
        assert view.token_info is None
        assert view.owner is None

    def test_balance_failure(self, manager, mock_web3):
        mock_web3.eth.get_balance.side_effect = Web3Exception("rate limited")

        with pytest.raises(FetchError, match="balance of"):
            fetch_address(manager, SENDER)
