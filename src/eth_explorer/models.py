"""
View models for decoded chain data.

These are the already-parsed, display-ready shapes that the RPC layer hands
to the navigation state machine. All models are frozen; a refreshed view is a
new object.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .extraction.signatures import EventSignature, FunctionSignature


class TxType(Enum):
    """Transaction envelope type (EIP-2718 discriminant)."""

    LEGACY = 0
    ACCESS_LIST = 1
    DYNAMIC_FEE = 2
    BLOB = 3
    UNKNOWN = -1

    @classmethod
    def from_type_byte(cls, value: int | None) -> "TxType":
        if value is None:
            return cls.LEGACY
        for member in cls:
            if member.value == value:
                return member
        return cls.UNKNOWN

    @property
    def label(self) -> str:
        return _TX_TYPE_LABELS[self]

    @property
    def short(self) -> str:
        return _TX_TYPE_SHORT[self]

    @property
    def has_priority_fee(self) -> bool:
        return self in (TxType.DYNAMIC_FEE, TxType.BLOB)


_TX_TYPE_LABELS = {
    TxType.LEGACY: "Legacy (Type 0)",
    TxType.ACCESS_LIST: "Access List (Type 1)",
    TxType.DYNAMIC_FEE: "EIP-1559 (Type 2)",
    TxType.BLOB: "Blob (Type 3)",
    TxType.UNKNOWN: "Unknown",
}

_TX_TYPE_SHORT = {
    TxType.LEGACY: "L",
    TxType.ACCESS_LIST: "A",
    TxType.DYNAMIC_FEE: "2",
    TxType.BLOB: "B",
    TxType.UNKNOWN: "?",
}


@dataclass(frozen=True)
class DecodedParam:
    """A single decoded function or event parameter."""

    name: str
    type: str
    raw: bytes
    display: str
    is_address: bool = False
    value: Any = None


@dataclass(frozen=True)
class DecodedLog:
    """Event log with its best-effort decoded parameters."""

    address: str
    topics: tuple[bytes, ...]
    data: bytes
    event: EventSignature | None = None
    params: tuple[DecodedParam, ...] = ()
    log_index: int | None = None

    @property
    def event_label(self) -> str:
        return self.event.text if self.event else "Unknown Event"

    @property
    def address_params(self) -> tuple[DecodedParam, ...]:
        return tuple(p for p in self.params if p.is_address)


@dataclass(frozen=True)
class TokenTransfer:
    """ERC-20 transfer extracted from a Transfer log."""

    token_address: str
    sender: str
    recipient: str
    amount: int
    token_symbol: str | None = None
    decimals: int | None = None


@dataclass(frozen=True)
class TransactionView:
    """Transaction plus receipt, decoded for display."""

    hash: str
    sender: str
    to: str | None
    value: int
    nonce: int
    gas_limit: int
    tx_type: TxType = TxType.LEGACY
    block_number: int | None = None
    tx_index: int | None = None
    gas_price: int | None = None
    max_fee_per_gas: int | None = None
    max_priority_fee_per_gas: int | None = None
    gas_used: int | None = None
    effective_gas_price: int | None = None
    status: bool | None = None
    input_data: bytes = b""
    contract_created: str | None = None
    access_list_size: int | None = None
    blob_hashes: tuple[str, ...] = ()
    blob_gas_used: int | None = None
    blob_gas_price: int | None = None
    sender_ens: str | None = None
    to_ens: str | None = None
    method: FunctionSignature | None = None
    decoded_input: tuple[DecodedParam, ...] = ()
    logs: tuple[DecodedLog, ...] = ()
    token_transfers: tuple[TokenTransfer, ...] = ()

    @property
    def actual_fee(self) -> int | None:
        if self.gas_used is None or self.effective_gas_price is None:
            return None
        return self.gas_used * self.effective_gas_price

    @property
    def method_label(self) -> str:
        if self.method is not None:
            return self.method.text
        if len(self.input_data) >= 4:
            return "Unknown"
        return "Transfer"


@dataclass(frozen=True)
class TxSummary:
    """Lightweight transaction row for the block transaction list."""

    hash: str
    sender: str
    to: str | None
    value: int
    gas_limit: int
    tx_type: TxType = TxType.LEGACY
    input_size: int = 0
    method_selector: str | None = None
    method_name: str | None = None
    blob_count: int = 0
    fee_paid: int | None = None
    sender_ens: str | None = None
    to_ens: str | None = None

    @property
    def is_contract_creation(self) -> bool:
        return self.to is None


@dataclass(frozen=True)
class BlockStats:
    """Totals computed over a block's transactions and receipts."""

    total_value_transferred: int = 0
    total_fees: int = 0
    burnt_fees: int = 0
    blob_count: int = 0


@dataclass(frozen=True)
class BlockView:
    """Block header fields decoded for display."""

    number: int
    hash: str
    parent_hash: str
    timestamp: int
    gas_used: int
    gas_limit: int
    miner: str
    tx_count: int = 0
    base_fee: int | None = None
    miner_ens: str | None = None
    extra_data: bytes = b""
    extra_data_text: str | None = None
    builder_tag: str | None = None
    size: int | None = None
    uncles_count: int = 0
    withdrawals_count: int | None = None
    blob_gas_used: int | None = None
    excess_blob_gas: int | None = None
    state_root: str | None = None
    receipts_root: str | None = None
    transactions_root: str | None = None

    @property
    def gas_used_ratio(self) -> float:
        if not self.gas_limit:
            return 0.0
        return self.gas_used / self.gas_limit


@dataclass(frozen=True)
class TokenBalance:
    """Holding of a well-known token."""

    symbol: str
    name: str
    address: str
    balance: int
    decimals: int


@dataclass(frozen=True)
class TokenInfo:
    """ERC-20 metadata of the contract being viewed."""

    name: str | None = None
    symbol: str | None = None
    decimals: int | None = None
    total_supply: int | None = None


@dataclass(frozen=True)
class AddressView:
    """Account snapshot."""

    address: str
    balance: int
    nonce: int
    is_contract: bool = False
    code_size: int | None = None
    proxy_implementation: str | None = None
    token_info: TokenInfo | None = None
    ens_name: str | None = None
    owner: str | None = None
    token_balances: tuple[TokenBalance, ...] = ()

    @property
    def kind_label(self) -> str:
        if not self.is_contract:
            return "EOA"
        if self.proxy_implementation:
            return "Proxy Contract"
        if self.token_info:
            return "ERC-20 Token"
        return "Contract"


@dataclass(frozen=True)
class NetworkInfo:
    """Chain head summary shown on the home screen."""

    latest_block: int
    gas_price: int
    client_version: str = "Unknown"
    base_fee_trend: tuple[int, ...] = field(default_factory=tuple)
    priority_fee_percentiles: tuple[int, ...] = field(default_factory=tuple)

    @property
    def base_fee_direction(self) -> str:
        if len(self.base_fee_trend) < 2:
            return ""
        first, last = self.base_fee_trend[0], self.base_fee_trend[-1]
        if last > first * 1.1:
            return "↑"
        if last < first * 0.9:
            return "↓"
        return "→"
