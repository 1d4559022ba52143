"""
Assemble view models from raw JSON-RPC objects.

Everything here is pure: it takes the dictionaries returned by web3.py
(AttributeDict or plain dict, HexBytes or hex strings) and builds the frozen
view models. No network access happens in this module, which keeps the
decode pipeline testable without a node.

Usage:
    from eth_explorer.extraction.views import build_transaction_view

    view = build_transaction_view(tx, receipt, ens_names={"0xd8da...": "vitalik.eth"})
"""

import logging
from typing import Any, Iterable, Mapping

from ..models import (
    BlockStats,
    BlockView,
    DecodedLog,
    NetworkInfo,
    TransactionView,
    TxSummary,
    TxType,
)
from .core.normalization import (
    normalize_hex_field,
    normalize_hex_string,
    parse_log_data,
    parse_log_topics,
    to_checksum,
    to_int,
)
from .decoders import (
    decode_calldata,
    decode_log,
    decode_unknown_log,
    extract_token_transfers,
)
from .formatting import decode_extra_data, detect_builder_tag
from .signatures import decode_event_signature, decode_function_selector

logger = logging.getLogger(__name__)


def _ens_for(address: str | None, ens_names: Mapping[str, str] | None) -> str | None:
    if not address or not ens_names:
        return None
    return ens_names.get(address.lower())


def build_decoded_log(
    log: Mapping[str, Any], ens_names: Mapping[str, str] | None = None
) -> DecodedLog:
    """
    Decode one receipt log.

    Args:
        log: Receipt log with address, topics, data and logIndex
        ens_names: Optional lower-cased address -> ENS name mapping

    Returns:
        DecodedLog with the matched event (if any) and its parameters
    """
    topics = tuple(parse_log_topics(log))
    data = parse_log_data(log)
    event = decode_event_signature(topics[0]) if topics else None

    if event is not None:
        params = decode_log(topics, data, event, ens_names)
    else:
        params = decode_unknown_log(topics, data)

    return DecodedLog(
        address=to_checksum(log["address"]),
        topics=topics,
        data=data,
        event=event,
        params=tuple(params),
        log_index=to_int(log.get("logIndex")),
    )


def build_transaction_view(
    tx: Mapping[str, Any],
    receipt: Mapping[str, Any] | None = None,
    ens_names: Mapping[str, str] | None = None,
) -> TransactionView:
    """
    Build the full transaction view from a transaction and its receipt.

    Args:
        tx: Transaction object from eth_getTransactionByHash
        receipt: Receipt from eth_getTransactionReceipt; None while pending
        ens_names: Optional lower-cased address -> ENS name mapping

    Returns:
        TransactionView with decoded call data, logs and token transfers

    Notes:
        - Call data is decoded only when the selector is in the signature table
        - Receipt-only fields stay None for pending transactions
    """
    receipt = receipt or {}
    sender = to_checksum(tx["from"])
    to = to_checksum(tx.get("to"))
    input_data = normalize_hex_field(tx.get("input") or tx.get("data"))

    method = decode_function_selector(input_data)
    decoded_input = (
        tuple(decode_calldata(input_data, method, ens_names)) if method else ()
    )

    logs = tuple(build_decoded_log(log, ens_names) for log in receipt.get("logs", []))
    transfers = tuple(extract_token_transfers(logs))

    status = receipt.get("status")
    access_list = tx.get("accessList")
    blob_hashes = tuple(
        normalize_hex_string(h) for h in tx.get("blobVersionedHashes") or ()
    )

    return TransactionView(
        hash=normalize_hex_string(tx["hash"]),
        sender=sender,
        to=to,
        value=to_int(tx.get("value"), 0),
        nonce=to_int(tx.get("nonce"), 0),
        gas_limit=to_int(tx.get("gas"), 0),
        tx_type=TxType.from_type_byte(to_int(tx.get("type"))),
        block_number=to_int(tx.get("blockNumber")),
        tx_index=to_int(tx.get("transactionIndex")),
        gas_price=to_int(tx.get("gasPrice")),
        max_fee_per_gas=to_int(tx.get("maxFeePerGas")),
        max_priority_fee_per_gas=to_int(tx.get("maxPriorityFeePerGas")),
        gas_used=to_int(receipt.get("gasUsed")),
        effective_gas_price=to_int(receipt.get("effectiveGasPrice")),
        status=None if status is None else bool(to_int(status)),
        input_data=input_data,
        contract_created=to_checksum(receipt.get("contractAddress")),
        access_list_size=None if access_list is None else len(access_list),
        blob_hashes=blob_hashes,
        blob_gas_used=to_int(receipt.get("blobGasUsed")),
        blob_gas_price=to_int(receipt.get("blobGasPrice")),
        sender_ens=_ens_for(sender, ens_names),
        to_ens=_ens_for(to, ens_names),
        method=method,
        decoded_input=decoded_input,
        logs=logs,
        token_transfers=transfers,
    )


def build_tx_summary(
    tx: Mapping[str, Any],
    receipt: Mapping[str, Any] | None = None,
    ens_names: Mapping[str, str] | None = None,
) -> TxSummary:
    """Build the list row for one transaction of a block."""
    sender = to_checksum(tx["from"])
    to = to_checksum(tx.get("to"))
    input_data = normalize_hex_field(tx.get("input") or tx.get("data"))

    method_selector = "0x" + input_data[:4].hex() if len(input_data) >= 4 else None
    method = decode_function_selector(input_data)

    fee_paid = None
    if receipt:
        gas_used = to_int(receipt.get("gasUsed"))
        price = to_int(receipt.get("effectiveGasPrice"))
        if gas_used is not None and price is not None:
            fee_paid = gas_used * price

    return TxSummary(
        hash=normalize_hex_string(tx["hash"]),
        sender=sender,
        to=to,
        value=to_int(tx.get("value"), 0),
        gas_limit=to_int(tx.get("gas"), 0),
        tx_type=TxType.from_type_byte(to_int(tx.get("type"))),
        input_size=len(input_data),
        method_selector=method_selector,
        method_name=method.name if method else None,
        blob_count=len(tx.get("blobVersionedHashes") or ()),
        fee_paid=fee_paid,
        sender_ens=_ens_for(sender, ens_names),
        to_ens=_ens_for(to, ens_names),
    )


def compute_block_stats(
    block: Mapping[str, Any], receipts: Iterable[Mapping[str, Any]] = ()
) -> BlockStats:
    """
    Sum value, fees and blobs over a block.

    Args:
        block: Block fetched with full transaction objects
        receipts: Receipts of the block's transactions (eth_getBlockReceipts)

    Returns:
        BlockStats; fee totals are 0 when no receipts are available
    """
    transactions = [tx for tx in block.get("transactions", []) if not _is_hash(tx)]

    total_value = sum(to_int(tx.get("value"), 0) for tx in transactions)
    blob_count = sum(len(tx.get("blobVersionedHashes") or ()) for tx in transactions)
    total_fees = sum(
        to_int(r.get("gasUsed"), 0) * to_int(r.get("effectiveGasPrice"), 0)
        for r in receipts
    )

    base_fee = to_int(block.get("baseFeePerGas"))
    burnt_fees = base_fee * to_int(block.get("gasUsed"), 0) if base_fee else 0

    return BlockStats(
        total_value_transferred=total_value,
        total_fees=total_fees,
        burnt_fees=burnt_fees,
        blob_count=blob_count,
    )


def _is_hash(tx: Any) -> bool:
    # Blocks fetched without full transactions list bare hashes
    return isinstance(tx, (bytes, str))


def _optional_hex(value: Any) -> str | None:
    return None if value is None else normalize_hex_string(value)


def build_block_view(
    block: Mapping[str, Any], ens_names: Mapping[str, str] | None = None
) -> BlockView:
    """Build the header view of a block."""
    miner = to_checksum(block["miner"])
    extra_data = normalize_hex_field(block.get("extraData"))
    withdrawals = block.get("withdrawals")

    return BlockView(
        number=to_int(block["number"]),
        hash=normalize_hex_string(block["hash"]),
        parent_hash=normalize_hex_string(block["parentHash"]),
        timestamp=to_int(block["timestamp"]),
        gas_used=to_int(block.get("gasUsed"), 0),
        gas_limit=to_int(block.get("gasLimit"), 0),
        miner=miner,
        tx_count=len(block.get("transactions", [])),
        base_fee=to_int(block.get("baseFeePerGas")),
        miner_ens=_ens_for(miner, ens_names),
        extra_data=extra_data,
        extra_data_text=decode_extra_data(extra_data),
        builder_tag=detect_builder_tag(extra_data, miner),
        size=to_int(block.get("size")),
        uncles_count=len(block.get("uncles", [])),
        withdrawals_count=None if withdrawals is None else len(withdrawals),
        blob_gas_used=to_int(block.get("blobGasUsed")),
        excess_blob_gas=to_int(block.get("excessBlobGas")),
        state_root=_optional_hex(block.get("stateRoot")),
        receipts_root=_optional_hex(block.get("receiptsRoot")),
        transactions_root=_optional_hex(block.get("transactionsRoot")),
    )


def build_block_transactions(
    block: Mapping[str, Any],
    receipts: Iterable[Mapping[str, Any]] = (),
    ens_names: Mapping[str, str] | None = None,
) -> tuple[TxSummary, ...]:
    """Summaries of a block's transactions, in block order, with fees from receipts."""
    receipts_by_hash = {
        normalize_hex_string(r["transactionHash"]): r for r in receipts
    }
    summaries = []
    for tx in block.get("transactions", []):
        if _is_hash(tx):
            logger.debug("Block fetched without full transactions, skipping summary")
            continue
        tx_hash = normalize_hex_string(tx["hash"])
        summaries.append(build_tx_summary(tx, receipts_by_hash.get(tx_hash), ens_names))
    return tuple(summaries)


def build_network_info(
    latest_block: int,
    gas_price: int,
    client_version: str | None = None,
    fee_history: Mapping[str, Any] | None = None,
) -> NetworkInfo:
    """
    Build the home screen summary.

    Args:
        latest_block: Head block number
        gas_price: eth_gasPrice in wei
        client_version: web3_clientVersion, "Unknown" when unavailable
        fee_history: eth_feeHistory result with baseFeePerGas and reward

    Returns:
        NetworkInfo with the base fee trend and the latest block's priority
        fee percentiles
    """
    base_fees: tuple[int, ...] = ()
    percentiles: tuple[int, ...] = ()
    if fee_history:
        base_fees = tuple(to_int(v, 0) for v in fee_history.get("baseFeePerGas") or ())
        rewards = fee_history.get("reward") or ()
        if rewards:
            percentiles = tuple(to_int(v, 0) for v in rewards[-1])

    return NetworkInfo(
        latest_block=latest_block,
        gas_price=gas_price,
        client_version=client_version or "Unknown",
        base_fee_trend=base_fees,
        priority_fee_percentiles=percentiles,
    )
