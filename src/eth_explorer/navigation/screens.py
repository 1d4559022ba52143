"""
Screen variants.

A screen is one of a closed set of frozen dataclasses; consumers dispatch on
the concrete type. Screens are replaced, never mutated: the block display
mode toggle builds a new BlockScreen with `dataclasses.replace`.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Union

from ..extraction.formatting import truncate_hash
from ..models import (
    AddressView,
    BlockStats,
    BlockView,
    NetworkInfo,
    TransactionView,
    TxSummary,
)


class BlockDisplayMode(Enum):
    """Which half of a block screen is shown: header fields or transaction list."""

    INFO = "info"
    LIST = "list"

    def toggled(self) -> "BlockDisplayMode":
        return BlockDisplayMode.LIST if self is BlockDisplayMode.INFO else BlockDisplayMode.INFO


@dataclass(frozen=True)
class HomeScreen:
    network: NetworkInfo | None = None
    recent_searches: tuple[str, ...] = ()

    @property
    def title(self) -> str:
        return "Home"


@dataclass(frozen=True)
class BlockScreen:
    block: BlockView
    transactions: tuple[TxSummary, ...] = ()
    stats: BlockStats | None = None
    mode: BlockDisplayMode = BlockDisplayMode.INFO

    @property
    def title(self) -> str:
        return f"Block #{self.block.number}"


@dataclass(frozen=True)
class TransactionScreen:
    transaction: TransactionView

    @property
    def title(self) -> str:
        return f"Tx {truncate_hash(self.transaction.hash)}"


@dataclass(frozen=True)
class AddressScreen:
    account: AddressView

    @property
    def title(self) -> str:
        return f"Address {truncate_hash(self.account.address)}"


@dataclass(frozen=True)
class ErrorScreen:
    message: str

    @property
    def title(self) -> str:
        return "Error"


@dataclass(frozen=True)
class LoadingScreen:
    message: str = "Loading..."

    @property
    def title(self) -> str:
        return "Loading"


Screen = Union[
    HomeScreen, BlockScreen, TransactionScreen, AddressScreen, ErrorScreen, LoadingScreen
]

# Not recorded in history when navigated away from
TRANSIENT_SCREENS = (LoadingScreen, ErrorScreen)
