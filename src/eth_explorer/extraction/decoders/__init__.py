"""
Best-effort decoders for call data and event logs.

Decoders never raise on malformed chain data; unreadable parameters fall back
to raw hex so the rest of a transaction can still be displayed.
"""

from .calldata import DecodedParam, decode_calldata
from .erc20 import extract_token_transfers
from .logs import decode_log, decode_unknown_log

__all__ = [
    "DecodedParam",
    "decode_calldata",
    "decode_log",
    "decode_unknown_log",
    "extract_token_transfers",
]
