"""
Normalization of raw JSON-RPC values.

web3.py returns a mix of HexBytes, hex strings and ints depending on the
provider, middleware and field. These helpers turn any of them into the
plain Python types that the view assembly and decoders work with.

Usage:
    from eth_explorer.extraction.core.normalization import (
        normalize_hex_field,
        parse_log_topics,
        to_int,
    )

    data_bytes = normalize_hex_field(log["data"])
    topics = parse_log_topics(log)
    gas_used = to_int(receipt["gasUsed"])
"""

import logging
from typing import Any, Mapping

from hexbytes import HexBytes
from web3 import Web3

logger = logging.getLogger(__name__)


def _strip_prefix(text: str) -> str:
    return text[2:] if text[:2] in ("0x", "0X") else text


def normalize_hex_field(value: str | HexBytes | bytes | None) -> bytes:
    """
    Decode a DATA field (hash, address, call data, topic) to bytes.

    Accepts HexBytes or bytes as-is, and hex strings with or without a
    `0x`/`0X` prefix. None, "" and "0x" all mean no data. Odd-length
    strings such as the quantity "0x1" get a leading zero nibble.

    Raises:
        ValueError: For non-hex text ("Invalid hex string") or any other
            type ("Unsupported hex field type")

    Examples:
        >>> normalize_hex_field("0x1")
        b'\\x01'
    """
    if value is None:
        return b""
    if isinstance(value, bytes):
        return bytes(value)
    if not isinstance(value, str):
        raise ValueError(f"Unsupported hex field type: {type(value)}")

    digits = _strip_prefix(value)
    if len(digits) % 2:
        digits = "0" + digits
    try:
        return bytes.fromhex(digits)
    except ValueError as e:
        raise ValueError(f"Invalid hex string: {value}") from e


def normalize_hex_string(
    hex_data: str | HexBytes | bytes | None, with_prefix: bool = True
) -> str:
    """
    Normalize hex data to a lowercase hex string.

    Examples:
        >>> normalize_hex_string(HexBytes("0xABCD"))
        '0xabcd'
        >>> normalize_hex_string("0x1234", with_prefix=False)
        '1234'
    """
    digits = normalize_hex_field(hex_data).hex()
    return "0x" + digits if with_prefix else digits


def to_int(value: Any, default: int | None = None) -> int | None:
    """
    Convert an RPC quantity to int.

    Args:
        value: int, hex quantity string ("0x1a"), decimal string or None
        default: Returned for None

    Returns:
        Integer value, or `default` when value is None

    Raises:
        ValueError: If a string value is neither hex nor decimal
    """
    if value is None:
        return default
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, bytes):
        return int.from_bytes(value, "big")
    if isinstance(value, str):
        if value[:2] in ("0x", "0X"):
            return int(_strip_prefix(value) or "0", 16)
        return int(value)
    raise ValueError(f"Unsupported quantity type: {type(value)}")


def to_checksum(address: Any) -> str | None:
    """Checksum an address in any web3.py form; None and empty stay None."""
    if not address:
        return None
    if isinstance(address, bytes):
        return Web3.to_checksum_address(bytes(address))
    return Web3.to_checksum_address(address)


def _log_field(log: Mapping[str, Any], field: str) -> Any:
    value = log.get(field)
    if value is None:
        raise ValueError(f"Log has no '{field}' field")
    return value


def parse_log_data(log: Mapping[str, Any]) -> bytes:
    """Data section of a receipt log as bytes; ValueError when missing."""
    return normalize_hex_field(_log_field(log, "data"))


def parse_log_topics(log: Mapping[str, Any]) -> list[bytes]:
    """Topics of a receipt log, topic0 first, as bytes; ValueError when missing."""
    return [normalize_hex_field(topic) for topic in _log_field(log, "topics")]
