"""
Fetch chain data for the explorer screens.

Each fetch function takes a Web3ConnectionManager, performs the RPC calls
for one screen (with the manager's retry logic) and hands the raw results to
the pure builders in `extraction.views`. Failures of the primary object
raise FetchError; failures of optional enrichments (receipts, ENS names,
token metadata) are logged and leave the corresponding fields empty.

Usage:
    from eth_explorer.extraction.core.fetcher import fetch_transaction
    from eth_explorer.extraction.core.utils import Web3ConnectionManager

    manager = Web3ConnectionManager("https://eth.llamarpc.com")
    view = fetch_transaction(manager, "0x5c504ed...")
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Iterable, TypeVar

from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from eth_abi.exceptions import DecodingError
from web3 import Web3
from web3.exceptions import BlockNotFound, ContractLogicError, TransactionNotFound

from ...errors import FetchError
from ...models import (
    AddressView,
    BlockStats,
    BlockView,
    NetworkInfo,
    TokenBalance,
    TokenInfo,
    TransactionView,
    TxSummary,
)
from ..ens import namehash
from ..signatures import POPULAR_TOKENS
from ..views import (
    build_block_transactions,
    build_block_view,
    build_network_info,
    build_transaction_view,
    compute_block_stats,
)
from .normalization import normalize_hex_field, to_checksum
from .utils import TRANSIENT_ERRORS, Web3ConnectionManager

logger = logging.getLogger(__name__)

T = TypeVar("T")

ENS_REGISTRY = "0x00000000000C2E074eC69A0dFb2997BA6C7d2e1e"
ENS_REVERSE_RECORDS = "0x3671aE578E63FdF66ad4F3E12CC0c0d71Ac7510C"

# keccak256("eip1967.proxy.implementation") - 1
EIP1967_IMPLEMENTATION_SLOT = int(
    "0x360894a13ba1a3210667c828492db98dca3e2076cc3735a920a3ca505d382bbc", 16
)

FEE_HISTORY_BLOCKS = 20
FEE_HISTORY_PERCENTILES = [25, 50, 75]

# Parallel eth_call fan-out for token balance lookups
MAX_WORKERS = 5


def _selector(signature: str) -> bytes:
    return bytes(Web3.keccak(text=signature)[:4])


SELECTOR_RESOLVER = _selector("resolver(bytes32)")
SELECTOR_ADDR = _selector("addr(bytes32)")
SELECTOR_GET_NAMES = _selector("getNames(address[])")
SELECTOR_NAME = _selector("name()")
SELECTOR_SYMBOL = _selector("symbol()")
SELECTOR_DECIMALS = _selector("decimals()")
SELECTOR_TOTAL_SUPPLY = _selector("totalSupply()")
SELECTOR_OWNER = _selector("owner()")
SELECTOR_BALANCE_OF = _selector("balanceOf(address)")


def _rpc(
    manager: Web3ConnectionManager, what: str, func: Callable[..., T], *args: Any
) -> T:
    """Run an RPC call with retry, translating failures into FetchError."""
    try:
        return manager.retry_with_backoff(func, *args)
    except (BlockNotFound, TransactionNotFound) as e:
        raise FetchError(f"{what} not found") from e
    except TRANSIENT_ERRORS as e:
        logger.error(f"Failed to fetch {what}: {e}")
        raise FetchError(f"Failed to fetch {what}: {e}") from e


def _eth_call(manager: Web3ConnectionManager, to: str, data: bytes) -> bytes | None:
    """
    eth_call that treats reverts and RPC failures as "no answer".

    Returns:
        Return data, or None when the call reverted, failed or returned nothing
    """
    try:
        result = manager.retry_with_backoff(
            manager.w3.eth.call, {"to": to, "data": "0x" + data.hex()}
        )
    except ContractLogicError as e:
        logger.debug(f"eth_call to {to} reverted: {e}")
        return None
    except TRANSIENT_ERRORS as e:
        logger.debug(f"eth_call to {to} failed: {e}")
        return None

    result = normalize_hex_field(result)
    return result or None


def _decode_single(type_str: str, data: bytes | None) -> Any:
    if data is None:
        return None
    try:
        (value,) = abi_decode([type_str], data)
    except (DecodingError, ValueError, OverflowError) as e:
        logger.debug(f"Could not decode {type_str} return value: {e}")
        return None
    return value


def _call_string(manager: Web3ConnectionManager, to: str, selector: bytes) -> str | None:
    data = _eth_call(manager, to, selector)
    value = _decode_single("string", data)
    if value is not None:
        return value
    # Some early tokens (MKR, SAI) return bytes32 for name and symbol
    raw = _decode_single("bytes32", data)
    if raw is None:
        return None
    text = raw.rstrip(b"\x00").decode("utf-8", errors="replace")
    return text or None


def _call_address(manager: Web3ConnectionManager, to: str, data: bytes) -> str | None:
    value = _decode_single("address", _eth_call(manager, to, data))
    if value is None or int(value, 16) == 0:
        return None
    return Web3.to_checksum_address(value)


# --- ENS ---------------------------------------------------------------------


def resolve_ens_name(manager: Web3ConnectionManager, name: str) -> str:
    """
    Resolve an ENS name to an address (registry -> resolver -> addr).

    Args:
        manager: Connection manager
        name: ENS name as typed; hashing lower-cases it

    Returns:
        Checksummed address

    Raises:
        FetchError: If the name has no resolver or no address record
    """
    node = namehash(name)
    resolver = _call_address(manager, ENS_REGISTRY, SELECTOR_RESOLVER + node)
    if resolver is None:
        raise FetchError(f"ENS name {name} has no resolver")

    address = _call_address(manager, resolver, SELECTOR_ADDR + node)
    if address is None:
        raise FetchError(f"ENS name {name} does not resolve to an address")

    logger.info(f"Resolved {name} to {address}")
    return address


def reverse_resolve(
    manager: Web3ConnectionManager, addresses: Iterable[str | None]
) -> dict[str, str]:
    """
    Look up primary ENS names for addresses in one ReverseRecords call.

    The ReverseRecords contract only returns names whose forward record
    points back at the address.

    Args:
        manager: Connection manager
        addresses: Addresses to look up; None entries and duplicates are ignored

    Returns:
        Mapping of lower-cased address to name, only for addresses that have one
    """
    unique = list(dict.fromkeys(a.lower() for a in addresses if a))
    if not unique:
        return {}

    checksummed = [Web3.to_checksum_address(a) for a in unique]
    call_data = SELECTOR_GET_NAMES + abi_encode(["address[]"], [checksummed])
    names = _decode_single(
        "string[]", _eth_call(manager, ENS_REVERSE_RECORDS, call_data)
    )
    if names is None:
        logger.warning(f"Reverse ENS lookup failed for {len(unique)} addresses")
        return {}

    return {address: name for address, name in zip(unique, names) if name}


# --- Screens -----------------------------------------------------------------


def fetch_network_info(manager: Web3ConnectionManager) -> NetworkInfo:
    """
    Fetch the home screen summary.

    Raises:
        FetchError: If the head block number or gas price cannot be fetched
    """
    eth = manager.w3.eth
    latest = _rpc(manager, "latest block number", lambda: eth.block_number)
    gas_price = _rpc(manager, "gas price", lambda: eth.gas_price)

    try:
        client_version = manager.retry_with_backoff(
            lambda: manager.w3.client_version
        )
    except TRANSIENT_ERRORS as e:
        logger.warning(f"Could not fetch client version: {e}")
        client_version = None

    try:
        fee_history = manager.retry_with_backoff(
            eth.fee_history, FEE_HISTORY_BLOCKS, "latest", FEE_HISTORY_PERCENTILES
        )
    except TRANSIENT_ERRORS as e:
        logger.warning(f"Could not fetch fee history: {e}")
        fee_history = None

    return build_network_info(latest, gas_price, client_version, fee_history)


def fetch_block(
    manager: Web3ConnectionManager, number: int, resolve_names: bool = True
) -> tuple[BlockView, tuple[TxSummary, ...], BlockStats]:
    """
    Fetch a block with full transactions and its receipts.

    Args:
        manager: Connection manager
        number: Block number
        resolve_names: Reverse-resolve the miner and transaction parties

    Returns:
        Tuple of (block header view, transaction summaries, block stats)

    Raises:
        FetchError: If the block does not exist or cannot be fetched
    """
    logger.debug(f"Fetching block {number}")
    block = _rpc(
        manager,
        f"block {number}",
        manager.w3.eth.get_block,
        number,
        True,
    )
    if block is None:
        raise FetchError(f"block {number} not found")

    try:
        receipts = manager.make_request("eth_getBlockReceipts", [hex(number)]) or []
    except (FetchError, *TRANSIENT_ERRORS) as e:
        logger.warning(f"Block receipts unavailable for {number}: {e}")
        receipts = []

    ens_names: dict[str, str] = {}
    if resolve_names:
        parties = [block.get("miner")]
        for tx in block.get("transactions", []):
            if isinstance(tx, (bytes, str)):
                continue
            parties.extend([tx.get("from"), tx.get("to")])
        ens_names = reverse_resolve(manager, parties)

    view = build_block_view(block, ens_names)
    transactions = build_block_transactions(block, receipts, ens_names)
    stats = compute_block_stats(block, receipts)

    logger.info(f"Fetched block {number} with {view.tx_count} transactions")
    return view, transactions, stats


def _transaction_parties(view: TransactionView) -> list[str | None]:
    parties = [view.sender, view.to, view.contract_created]
    parties.extend(p.value for p in view.decoded_input if p.is_address)
    for log in view.logs:
        parties.extend(p.value for p in log.address_params)
    return parties


def fetch_transaction(
    manager: Web3ConnectionManager, tx_hash: str, resolve_names: bool = True
) -> TransactionView:
    """
    Fetch a transaction with its receipt and decode it.

    Args:
        manager: Connection manager
        tx_hash: Transaction hash (with or without 0x prefix)
        resolve_names: Reverse-resolve every address shown on the screen

    Returns:
        TransactionView; receipt fields are empty while the transaction is pending

    Raises:
        FetchError: If the transaction does not exist or cannot be fetched
    """
    if not tx_hash.startswith("0x"):
        tx_hash = "0x" + tx_hash

    logger.debug(f"Fetching transaction: {tx_hash}")
    tx = _rpc(
        manager, f"transaction {tx_hash}", manager.w3.eth.get_transaction, tx_hash
    )

    try:
        receipt = manager.retry_with_backoff(
            manager.w3.eth.get_transaction_receipt, tx_hash
        )
    except TransactionNotFound:
        logger.info(f"Transaction {tx_hash} is pending, no receipt yet")
        receipt = None
    except TRANSIENT_ERRORS as e:
        logger.error(f"Failed to fetch receipt for {tx_hash}: {e}")
        raise FetchError(f"Failed to fetch receipt for {tx_hash}: {e}") from e

    view = build_transaction_view(tx, receipt)
    if resolve_names:
        ens_names = reverse_resolve(manager, _transaction_parties(view))
        if ens_names:
            view = build_transaction_view(tx, receipt, ens_names)

    return view


def _fetch_token_info(manager: Web3ConnectionManager, address: str) -> TokenInfo | None:
    decimals = _decode_single(
        "uint8", _eth_call(manager, address, SELECTOR_DECIMALS)
    )
    symbol = _call_string(manager, address, SELECTOR_SYMBOL)
    if decimals is None and symbol is None:
        return None

    return TokenInfo(
        name=_call_string(manager, address, SELECTOR_NAME),
        symbol=symbol,
        decimals=decimals,
        total_supply=_decode_single(
            "uint256", _eth_call(manager, address, SELECTOR_TOTAL_SUPPLY)
        ),
    )


def _fetch_token_balances(
    manager: Web3ConnectionManager, address: str
) -> tuple[TokenBalance, ...]:
    call_data = SELECTOR_BALANCE_OF + abi_encode(["address"], [address])

    def balance_of(token_address: str) -> int | None:
        return _decode_single("uint256", _eth_call(manager, token_address, call_data))

    with ThreadPoolExecutor(max_workers=MAX_WORKERS) as executor:
        balances = list(
            executor.map(balance_of, [token.address for token in POPULAR_TOKENS])
        )

    return tuple(
        TokenBalance(
            symbol=token.symbol,
            name=token.name,
            address=token.address,
            balance=balance,
            decimals=token.decimals,
        )
        for token, balance in zip(POPULAR_TOKENS, balances)
        if balance
    )


def fetch_address(
    manager: Web3ConnectionManager, address: str, resolve_names: bool = True
) -> AddressView:
    """
    Fetch an account snapshot.

    Args:
        manager: Connection manager
        address: Account address in any case
        resolve_names: Reverse-resolve the account's primary ENS name

    Returns:
        AddressView with balance, nonce and, for contracts, proxy
        implementation, ERC-20 metadata and owner

    Raises:
        FetchError: If balance, nonce or code cannot be fetched
    """
    address = to_checksum(address)
    eth = manager.w3.eth
    logger.debug(f"Fetching address {address}")

    balance = _rpc(manager, f"balance of {address}", eth.get_balance, address)
    nonce = _rpc(manager, f"nonce of {address}", eth.get_transaction_count, address)
    code = normalize_hex_field(
        _rpc(manager, f"code of {address}", eth.get_code, address)
    )

    is_contract = len(code) > 0
    implementation = None
    token_info = None
    owner = None
    if is_contract:
        slot = normalize_hex_field(
            _rpc(
                manager,
                f"implementation slot of {address}",
                eth.get_storage_at,
                address,
                EIP1967_IMPLEMENTATION_SLOT,
            )
        ).rjust(32, b"\x00")
        if any(slot[12:]):
            implementation = Web3.to_checksum_address(slot[12:])
        token_info = _fetch_token_info(manager, address)
        owner = _call_address(manager, address, SELECTOR_OWNER)

    token_balances = _fetch_token_balances(manager, address)

    ens_name = None
    if resolve_names:
        ens_name = reverse_resolve(manager, [address]).get(address.lower())

    return AddressView(
        address=address,
        balance=balance,
        nonce=nonce,
        is_contract=is_contract,
        code_size=len(code) if is_contract else None,
        proxy_implementation=implementation,
        token_info=token_info,
        ens_name=ens_name,
        owner=owner,
        token_balances=token_balances,
    )
