"""
Extract ERC-20 token transfers from transaction logs.

Only logs that match the ERC-20 Transfer layout (topic0 plus two indexed
addresses, amount in data) are taken. ERC-721 Transfer logs share the same
topic0 but index the token id as a fourth topic, so they are skipped here.

Usage:
    from eth_explorer.extraction.decoders.erc20 import extract_token_transfers

    transfers = extract_token_transfers(transaction_view_logs)
"""

import logging
from typing import Iterable

from ...models import DecodedLog, TokenTransfer
from ..signatures import TRANSFER_TOPIC, lookup_token
from .calldata import WORD_SIZE, decode_address_word

logger = logging.getLogger(__name__)


def extract_token_transfers(logs: Iterable[DecodedLog]) -> list[TokenTransfer]:
    """
    Build TokenTransfer entries for all ERC-20 Transfer logs.

    Multiple transfers can occur in a single transaction (multi-send, DEX
    swaps), and they are returned in log order.

    Args:
        logs: Logs of one transaction

    Returns:
        List of transfers; empty when the transaction moved no ERC-20 tokens

    Notes:
        - Symbol and decimals come from the known-token table, None otherwise
        - Logs with malformed address topics or a short data section are
          skipped
    """
    transfers = []

    for log in logs:
        topics = log.topics
        if len(topics) != 3 or bytes(topics[0]) != TRANSFER_TOPIC:
            continue

        sender = decode_address_word(bytes(topics[1]))
        recipient = decode_address_word(bytes(topics[2]))
        if sender is None or recipient is None:
            logger.warning(
                f"Transfer log from {log.address} has malformed address topics"
            )
            continue

        if len(log.data) < WORD_SIZE:
            logger.warning(
                f"Transfer log from {log.address} has invalid data field: "
                f"0x{bytes(log.data).hex()}"
            )
            continue

        amount = int.from_bytes(bytes(log.data[:WORD_SIZE]), "big")
        token = lookup_token(log.address)

        transfers.append(
            TokenTransfer(
                token_address=log.address,
                sender=sender,
                recipient=recipient,
                amount=amount,
                token_symbol=token.symbol if token else None,
                decimals=token.decimals if token else None,
            )
        )

    if transfers:
        logger.debug(f"Extracted {len(transfers)} ERC-20 transfers")

    return transfers
