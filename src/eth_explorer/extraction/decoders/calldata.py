"""
Decode transaction call data against a known function signature.

This module walks a signature's declared parameters and slices the ABI
encoded arguments accordingly. Each parameter is decoded on its own, so a
short or malformed slot only degrades that parameter to raw hex.

Usage:
    from eth_explorer.extraction.decoders.calldata import decode_calldata
    from eth_explorer.extraction.signatures import decode_function_selector

    signature = decode_function_selector(input_data)
    if signature is not None:
        params = decode_calldata(input_data, signature, ens_names)
"""

import logging
from typing import Any, Mapping

from eth_abi import decode as abi_decode
from eth_abi.exceptions import DecodingError
from web3 import Web3

from ...models import DecodedParam
from ..signatures import FunctionSignature, ParamSpec, is_tuple_type, tuple_components

logger = logging.getLogger(__name__)

WORD_SIZE = 32
MAX_UINT256 = 2**256 - 1

__all__ = [
    "DecodedParam",
    "decode_address_word",
    "decode_calldata",
    "decode_slot",
    "decode_word",
    "raw_param",
]


def decode_address_word(word: bytes) -> str | None:
    """
    Read a checksummed address from a 32-byte right-aligned slot.

    Returns:
        Checksummed address, or None when the slot is not exactly 32 bytes
        or its 12 padding bytes are not zero
    """
    if len(word) != WORD_SIZE or any(word[:12]):
        return None
    return Web3.to_checksum_address(bytes(word[12:]))


def raw_param(spec: ParamSpec, raw: bytes) -> DecodedParam:
    """Fallback representation for a parameter that could not be decoded."""
    return DecodedParam(
        name=spec.name,
        type=spec.type,
        raw=bytes(raw),
        display="0x" + bytes(raw).hex(),
        is_address=False,
        value=None,
    )


def _render(type_str: str, value: Any, ens_names: Mapping[str, str] | None) -> str:
    if type_str == "address":
        address = Web3.to_checksum_address(value)
        ens_name = ens_names.get(address.lower()) if ens_names else None
        return f"{ens_name} ({address})" if ens_name else address
    if type_str.endswith("[]"):
        element_type = type_str[:-2]
        return "[" + ", ".join(_render(element_type, v, ens_names) for v in value) + "]"
    if is_tuple_type(type_str):
        members = zip(tuple_components(type_str), value)
        return "(" + ", ".join(_render(t, v, ens_names) for t, v in members) + ")"
    if type_str == "bool":
        return "true" if value else "false"
    if type_str == "string":
        return value
    if type_str.startswith("bytes"):
        return "0x" + bytes(value).hex()
    if type_str == "uint256" and value == MAX_UINT256:
        return "unlimited"
    return str(value)


def decode_word(
    spec: ParamSpec, word: bytes, ens_names: Mapping[str, str] | None = None
) -> DecodedParam:
    """
    Decode a statically-sized parameter from its head slots.

    Args:
        spec: Declared parameter
        word: Slot bytes; one 32-byte word, or one word per member of a
            static tuple. Any other length falls back to raw hex
        ens_names: Optional lower-cased address -> ENS name mapping

    Returns:
        DecodedParam, raw hex when the slot is malformed for the type
    """
    if len(word) != WORD_SIZE * spec.head_words:
        logger.debug(f"Slot for {spec.name} has {len(word)} bytes, showing raw")
        return raw_param(spec, word)

    if spec.type == "address":
        address = decode_address_word(word)
        if address is None:
            logger.debug(f"Slot for {spec.name} is not a right-aligned address")
            return raw_param(spec, word)
        return DecodedParam(
            name=spec.name,
            type=spec.type,
            raw=bytes(word),
            display=_render("address", address, ens_names),
            is_address=True,
            value=address,
        )

    try:
        (value,) = abi_decode([spec.type], bytes(word))
    except (DecodingError, ValueError, OverflowError) as e:
        logger.debug(f"Failed to decode {spec.type} {spec.name}: {e}")
        return raw_param(spec, word)

    return DecodedParam(
        name=spec.name,
        type=spec.type,
        raw=bytes(word),
        display=_render(spec.type, value, ens_names),
        is_address=False,
        value=value,
    )


def _decode_dynamic(
    spec: ParamSpec,
    args: bytes,
    head_word: bytes,
    ens_names: Mapping[str, str] | None,
) -> DecodedParam:
    offset = int.from_bytes(head_word, "big")
    if offset > len(args):
        logger.debug(f"Offset {offset} for {spec.name} points past the data")
        return raw_param(spec, head_word)

    tail = bytes(args[offset:])
    # Re-anchor the tail so the decoder sees a single-parameter encoding
    payload = WORD_SIZE.to_bytes(WORD_SIZE, "big") + tail
    try:
        (value,) = abi_decode([spec.type], payload)
    except (DecodingError, ValueError, OverflowError) as e:
        logger.debug(f"Failed to decode dynamic {spec.type} {spec.name}: {e}")
        return raw_param(spec, head_word)

    return DecodedParam(
        name=spec.name,
        type=spec.type,
        raw=tail,
        display=_render(spec.type, value, ens_names),
        is_address=False,
        value=value,
    )


def decode_slot(
    spec: ParamSpec,
    args: bytes,
    index: int,
    ens_names: Mapping[str, str] | None = None,
) -> DecodedParam:
    """
    Decode the parameter whose head occupies slot `index` of an encoding.

    Static types are read from the head itself (a static tuple spans one
    slot per member); dynamic types follow the head's offset into the tail
    of `args`.
    """
    start = index * WORD_SIZE
    head = args[start : start + spec.head_words * WORD_SIZE]
    if len(head) < spec.head_words * WORD_SIZE:
        return raw_param(spec, head)
    if spec.is_dynamic:
        return _decode_dynamic(spec, args, head, ens_names)
    return decode_word(spec, head, ens_names)


def decode_calldata(
    data: bytes,
    signature: FunctionSignature,
    ens_names: Mapping[str, str] | None = None,
    *,
    has_selector: bool = True,
) -> list[DecodedParam]:
    """
    Decode call data arguments in the signature's declared order.

    Args:
        data: Call data
        signature: Function signature matched from the selector table
        ens_names: Optional lower-cased address -> ENS name mapping used when
            rendering address parameters
        has_selector: Whether `data` starts with the 4-byte selector. Pass
            False for bare ABI-encoded arguments

    Returns:
        One DecodedParam per declared parameter. Parameters whose slot cannot
        be fully read are rendered as raw hex; the decode never raises.

    Notes:
        - Static types read one 32-byte head slot, static tuples one per member
        - Dynamic types (bytes, string, T[], tuples with a dynamic member)
          read an offset from the head and decode from the tail
    """
    data = bytes(data)
    args = data[4:] if has_selector else data

    decoded = []
    slot = 0
    for spec in signature.params:
        decoded.append(decode_slot(spec, args, slot, ens_names))
        slot += spec.head_words
    return decoded
