"""
Classify operator search input.

`classify` turns a free-form string into exactly one intent. The checks run
in a fixed order so that hex-looking input is never ambiguous: the fixed
widths of addresses (40 hex chars) and transaction hashes (64) come first,
plain decimal strings before the generic hex rule, and ENS names last.

Usage:
    from eth_explorer.query import classify

    intent = classify("vitalik.eth")
    print(intent.description())  # ENS name vitalik.eth
"""

import string
from dataclasses import dataclass
from typing import Union

from web3 import Web3

HEX_DIGITS = frozenset(string.hexdigits)
ENS_CHARS = frozenset(string.ascii_letters + string.digits + "-_.")
MAX_BLOCK_NUMBER = 2**64 - 1


@dataclass(frozen=True)
class AddressQuery:
    address: bytes

    @property
    def query(self) -> str:
        return Web3.to_checksum_address(self.address)

    def description(self) -> str:
        return f"Address {self.query}"


@dataclass(frozen=True)
class TxHashQuery:
    tx_hash: bytes

    @property
    def query(self) -> str:
        return "0x" + self.tx_hash.hex()

    def description(self) -> str:
        return f"Transaction {self.query}"


@dataclass(frozen=True)
class BlockNumberQuery:
    number: int
    base: int = 10

    @property
    def query(self) -> str:
        return str(self.number)

    def description(self) -> str:
        return f"Block #{self.number}"


@dataclass(frozen=True)
class EnsNameQuery:
    name: str

    @property
    def query(self) -> str:
        return self.name

    def description(self) -> str:
        return f"ENS name {self.name}"


@dataclass(frozen=True)
class InvalidQuery:
    reason: str

    def description(self) -> str:
        return f"Invalid query: {self.reason}"


Intent = Union[AddressQuery, TxHashQuery, BlockNumberQuery, EnsNameQuery, InvalidQuery]


def _is_hex(text: str) -> bool:
    return bool(text) and all(ch in HEX_DIGITS for ch in text)


def _block_number(text: str, base: int) -> Intent:
    number = int(text, base)
    if number > MAX_BLOCK_NUMBER:
        return InvalidQuery(f"block number {text} is too large")
    return BlockNumberQuery(number, base)


def _is_ens_name(text: str) -> bool:
    if "." not in text or not all(ch in ENS_CHARS for ch in text):
        return False
    return all(text.split("."))


def classify(raw: str) -> Intent:
    """
    Classify a search string.

    Precedence, first match wins:
        1. 40 hex chars (optional 0x) -> AddressQuery
        2. 64 hex chars (optional 0x) -> TxHashQuery
        3. decimal digits without prefix -> BlockNumberQuery, base 10
        4. 0x followed by other non-empty hex -> BlockNumberQuery, base 16
        5. domain-name characters with at least one dot -> EnsNameQuery
        6. anything else -> InvalidQuery

    Args:
        raw: Operator input; surrounding whitespace is ignored

    Returns:
        The matching intent; ENS names are kept as typed

    Examples:
        >>> classify("12345")
        BlockNumberQuery(number=12345, base=10)
        >>> classify("not a valid query!!").description()
        'Invalid query: not a recognised address, hash, block number or ENS name'
    """
    text = raw.strip()
    if not text:
        return InvalidQuery("empty query")

    has_prefix = text[:2] in ("0x", "0X")
    body = text[2:] if has_prefix else text

    if _is_hex(body):
        if len(body) == 40:
            return AddressQuery(bytes.fromhex(body))
        if len(body) == 64:
            return TxHashQuery(bytes.fromhex(body))

    if not has_prefix and body.isascii() and body.isdigit():
        return _block_number(body, 10)

    if has_prefix and _is_hex(body):
        return _block_number(body, 16)

    if _is_ens_name(text):
        return EnsNameQuery(text)

    return InvalidQuery(
        "not a recognised address, hash, block number or ENS name"
    )
