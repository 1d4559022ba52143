"""
ENS name hashing.

Implements the recursive namehash algorithm used to address names in the ENS
registry: https://docs.ens.domains/contract-api-reference/name-processing
"""

from web3 import Web3

ZERO_NODE = b"\x00" * 32


def namehash(name: str) -> bytes:
    """
    Compute the ENS namehash of a name.

    The name is lower-cased first, so hashing is case-insensitive.

    Args:
        name: Dotted name such as "vitalik.eth"

    Returns:
        32-byte node hash; 32 zero bytes for the empty name

    Examples:
        >>> namehash("eth").hex()
        '93cdeb708b7545dc668eb9280176169d1c33cfd8ed6f04690a0bcc88a93fc4ae'
    """
    node = ZERO_NODE
    if not name:
        return node

    for label in reversed(name.lower().split(".")):
        label_hash = Web3.keccak(text=label)
        node = bytes(Web3.keccak(node + label_hash))

    return node
