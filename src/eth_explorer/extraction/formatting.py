"""
Display formatting for raw chain values.

Every function here is pure and total: wide integers are handled with exact
integer arithmetic (or Decimal where rounding is intended), and nothing
raises for odd-looking input.

Usage:
    from eth_explorer.extraction.formatting import format_eth, format_u256_decimals

    format_u256_decimals(1_500_000_000_000_000_000, 18)  # "1.5"
    format_eth(10**18)  # "1.000000 ETH"
"""

import time
from decimal import Decimal

from .signatures import BUILDER_ADDRESSES, BUILDER_PATTERNS

HASH_DISPLAY_THRESHOLD = 20
HASH_PREFIX_LEN = 10
HASH_SUFFIX_LEN = 6
FIXED_ADDRESS_WIDTH = 19
SIX_PLACES = Decimal("0.000001")


def hex_encode(data: bytes) -> str:
    """Lowercase hex without a 0x prefix."""
    return bytes(data).hex()


def format_u256_decimals(value: int, decimals: int) -> str:
    """
    Render value / 10**decimals without losing precision.

    Trailing zero fraction digits are trimmed; a whole result carries no
    decimal point.

    Args:
        value: Wide integer amount in the smallest unit
        decimals: Number of fractional decimal places of the unit

    Returns:
        Decimal string, e.g. "1.5" for (1500000000000000000, 18)
    """
    if value == 0:
        return "0"

    sign = "-" if value < 0 else ""
    whole, remainder = divmod(abs(value), 10**decimals)

    if remainder == 0:
        return f"{sign}{whole}"

    fraction = str(remainder).rjust(decimals, "0").rstrip("0")
    return f"{sign}{whole}.{fraction}"


def format_gas(gas: int) -> str:
    """Abbreviate gas amounts with K / M suffixes, two fraction digits."""
    if gas >= 1_000_000:
        return f"{Decimal(gas) / Decimal(1_000_000):.2f}M"
    if gas >= 1_000:
        return f"{Decimal(gas) / Decimal(1_000):.2f}K"
    return str(gas)


def format_gwei(wei: int) -> str:
    """Render a wei amount as gwei: two digits at or above 1 gwei, four below."""
    gwei = Decimal(wei) / Decimal(10**9)
    if gwei >= 1:
        return f"{gwei:.2f} gwei"
    return f"{gwei:.4f} gwei"


def format_eth(wei: int) -> str:
    """
    Render a wei amount as ETH with six fraction digits.

    Amounts below 1 ETH are rounded to six places, so dust stays visible as
    0.000001 ETH; larger amounts are truncated.

    Examples:
        >>> format_eth(999_999_999_999)
        '0.000001 ETH'
        >>> format_eth(1_234_567_891_234_567_891)
        '1.234567 ETH'
    """
    if wei < 10**18:
        eth = (Decimal(wei) / Decimal(10**18)).quantize(SIX_PLACES)
        return f"{eth:.6f} ETH"
    whole, remainder = divmod(wei, 10**18)
    fraction = str(remainder).rjust(18, "0")[:6]
    return f"{whole}.{fraction} ETH"


def format_token_amount(amount: int, decimals: int) -> str:
    """
    Render a token balance with at most four truncated fraction digits.

    Whole amounts are shown without a decimal point.
    """
    if decimals == 0:
        return str(amount)

    whole, remainder = divmod(amount, 10**decimals)
    if remainder == 0:
        return str(whole)

    fraction = str(remainder).rjust(decimals, "0")
    return f"{whole}.{fraction[:4]}"


def format_address_with_ens(address: str, ens_name: str | None) -> str:
    """Return "name (address)" when an ENS name is known, else the address."""
    if ens_name:
        return f"{ens_name} ({address})"
    return address


def truncate_hash(value: str) -> str:
    """Shorten long hashes to prefix...suffix; short input is returned unchanged."""
    if len(value) > HASH_DISPLAY_THRESHOLD:
        return f"{value[:HASH_PREFIX_LEN]}...{value[-HASH_SUFFIX_LEN:]}"
    return value


def format_addr_fixed_width(address: str, ens_name: str | None) -> str:
    """Fit an address or its ENS name into the same width as a truncated hash."""
    if ens_name is None:
        return truncate_hash(address)
    if len(ens_name) > FIXED_ADDRESS_WIDTH:
        return f"{ens_name[:FIXED_ADDRESS_WIDTH - 3]}..."
    return ens_name.ljust(FIXED_ADDRESS_WIDTH)


def format_timestamp(timestamp: int, now: float | None = None) -> str:
    """
    Describe a unix timestamp as a relative age.

    Args:
        timestamp: Block timestamp in seconds
        now: Reference time, defaults to the current time

    Returns:
        String like "42 secs ago" or "3 days ago"
    """
    if now is None:
        now = time.time()
    secs_ago = max(0, int(now) - timestamp)

    if secs_ago < 60:
        return f"{secs_ago} secs ago"
    if secs_ago < 3600:
        return f"{secs_ago // 60} mins ago"
    if secs_ago < 86400:
        return f"{secs_ago // 3600} hours ago"
    return f"{secs_ago // 86400} days ago"


def decode_extra_data(extra_data: bytes) -> str | None:
    """Return extra data as text when it is printable ASCII, else None."""
    if not extra_data:
        return None
    try:
        text = bytes(extra_data).decode("ascii")
    except UnicodeDecodeError:
        return None
    if all(ch.isprintable() for ch in text):
        return text
    return None


def detect_builder_tag(extra_data: bytes, miner: str | None = None) -> str | None:
    """
    Identify the block builder from a block's extra data.

    Matches lower-cased extra data text against known builder patterns,
    then accepts short plain-text extra data as a builder name, then falls
    back to known builder fee-recipient addresses.

    Args:
        extra_data: Raw extra data bytes from the block header
        miner: Optional fee recipient address

    Returns:
        Builder label, or None when nothing matches
    """
    try:
        text = bytes(extra_data).decode("utf-8")
    except UnicodeDecodeError:
        text = None

    if text:
        lowered = text.lower()
        for pattern, label in BUILDER_PATTERNS:
            if pattern in lowered:
                return label
        if len(text) < 32 and all(ch.isalnum() or ch in " -_" for ch in text):
            return text

    if miner:
        return BUILDER_ADDRESSES.get(miner.lower())
    return None
