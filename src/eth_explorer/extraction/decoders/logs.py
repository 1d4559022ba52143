"""
Decode event logs.

Known events are decoded against their signature: indexed parameters come
from topics, the rest from the data section. Logs whose topic0 is not in the
event table get a generic best-effort rendering instead.

Usage:
    from eth_explorer.extraction.decoders.logs import decode_log
    from eth_explorer.extraction.signatures import decode_event_signature

    event = decode_event_signature(topics[0])
    params = decode_log(topics, data, event) if event else decode_unknown_log(topics, data)
"""

import logging
from typing import Mapping, Sequence

from ...models import DecodedParam
from ..signatures import EventSignature, ParamSpec
from .calldata import WORD_SIZE, decode_address_word, decode_slot, decode_word, raw_param

logger = logging.getLogger(__name__)

# Generic rendering shows at most this many data words
MAX_UNKNOWN_DATA_WORDS = 4


def _decode_topic(
    spec: ParamSpec, topic: bytes, ens_names: Mapping[str, str] | None
) -> DecodedParam:
    if spec.is_dynamic:
        # Indexed dynamic values are stored as their keccak hash
        return DecodedParam(
            name=spec.name,
            type=spec.type,
            raw=bytes(topic),
            display="0x" + bytes(topic).hex(),
            value=bytes(topic),
        )
    return decode_word(spec, topic, ens_names)


def decode_log(
    topics: Sequence[bytes],
    data: bytes,
    signature: EventSignature,
    ens_names: Mapping[str, str] | None = None,
) -> list[DecodedParam]:
    """
    Decode a log's parameters in the event's declared order.

    Args:
        topics: Log topics, topic0 included
        data: Log data section
        signature: Event matched from topic0
        ens_names: Optional lower-cased address -> ENS name mapping

    Returns:
        One DecodedParam per declared parameter

    Notes:
        - When a log carries more topics than the event declares indexed
          parameters (ERC-721 Transfer shares its topic0 with ERC-20
          Transfer but indexes the token id), the surplus topics are
          assigned to the next declared parameters in order
        - Missing topics or data slots degrade to raw hex
    """
    data = bytes(data)
    remaining_topics = list(topics[1:])
    surplus = max(0, len(remaining_topics) - signature.indexed_count)

    decoded = []
    data_index = 0
    for spec in signature.params:
        from_topic = spec.indexed or surplus > 0
        if not from_topic:
            decoded.append(decode_slot(spec, data, data_index, ens_names))
            data_index += spec.head_words
            continue

        if not spec.indexed:
            surplus -= 1
        if not remaining_topics:
            logger.debug(f"Log for {signature.name} is missing topic for {spec.name}")
            decoded.append(raw_param(spec, b""))
            continue
        decoded.append(_decode_topic(spec, remaining_topics.pop(0), ens_names))

    return decoded


def decode_unknown_log(
    topics: Sequence[bytes], data: bytes
) -> list[DecodedParam]:
    """
    Best-effort rendering of a log from an unknown event.

    Each topic after topic0 is shown as an address when its top 12 bytes are
    zero (and it is not zero itself), otherwise as an unsigned integer. Up to
    four data words follow as unsigned integers.

    Args:
        topics: Log topics, topic0 included
        data: Log data section

    Returns:
        Generic parameters named topic1.., data0..
    """
    decoded = []

    for position, topic in enumerate(topics[1:], start=1):
        topic = bytes(topic)
        name = f"topic{position}"
        address = decode_address_word(topic) if any(topic) else None
        if address is not None:
            decoded.append(
                DecodedParam(
                    name=name,
                    type="address",
                    raw=topic,
                    display=address,
                    is_address=True,
                    value=address,
                )
            )
        else:
            decoded.append(decode_word(ParamSpec(name, "uint256"), topic))

    data = bytes(data)
    word_count = min(len(data) // WORD_SIZE, MAX_UNKNOWN_DATA_WORDS)
    for index in range(word_count):
        word = data[index * WORD_SIZE : (index + 1) * WORD_SIZE]
        decoded.append(decode_word(ParamSpec(f"data{index}", "uint256"), word))

    return decoded
