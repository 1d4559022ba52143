"""
Navigable links of a screen.

`enumerate_links` is the single definition of which links a screen exposes
and in which order. Both the link count and cursor resolution go through it,
so the two can never disagree.
"""

from dataclasses import dataclass
from enum import Enum

from .screens import (
    AddressScreen,
    BlockDisplayMode,
    BlockScreen,
    Screen,
    TransactionScreen,
)


class LinkKind(Enum):
    ADDRESS = "address"
    TRANSACTION = "transaction"
    BLOCK = "block"


@dataclass(frozen=True)
class NavLink:
    """A navigable reference shown on screen.

    The identifier is a checksummed address, a 0x-prefixed transaction hash
    or a decimal block number.
    """

    kind: LinkKind
    identifier: str

    @property
    def query(self) -> str:
        """Search string that classifies back to the same target."""
        return self.identifier


def _transaction_links(screen: TransactionScreen) -> list[NavLink]:
    tx = screen.transaction
    links = [NavLink(LinkKind.ADDRESS, tx.sender)]

    to = tx.to or tx.contract_created
    if to:
        links.append(NavLink(LinkKind.ADDRESS, to))
    if tx.block_number is not None:
        links.append(NavLink(LinkKind.BLOCK, str(tx.block_number)))

    sender = tx.sender.lower()
    for transfer in tx.token_transfers:
        counterpart = (
            transfer.recipient if transfer.sender.lower() == sender else transfer.sender
        )
        links.append(NavLink(LinkKind.ADDRESS, counterpart))

    for log in tx.logs:
        for param in log.address_params:
            links.append(NavLink(LinkKind.ADDRESS, param.value))

    return links


def _block_links(screen: BlockScreen) -> list[NavLink]:
    if screen.mode is BlockDisplayMode.LIST:
        return [NavLink(LinkKind.TRANSACTION, tx.hash) for tx in screen.transactions]

    block = screen.block
    links = []
    if block.number > 0:
        links.append(NavLink(LinkKind.BLOCK, str(block.number - 1)))
    links.append(NavLink(LinkKind.ADDRESS, block.miner))
    return links


def _address_links(screen: AddressScreen) -> list[NavLink]:
    account = screen.account
    links = []
    if account.proxy_implementation:
        links.append(NavLink(LinkKind.ADDRESS, account.proxy_implementation))
    if account.owner:
        links.append(NavLink(LinkKind.ADDRESS, account.owner))
    for token in account.token_balances:
        links.append(NavLink(LinkKind.ADDRESS, token.address))
    return links


def enumerate_links(screen: Screen) -> list[NavLink]:
    """
    List the screen's links in cursor order.

    Order:
        - Transaction: from, to (or created contract), block, each token
          transfer's counterpart, each log's address parameters
        - Block: parent and miner in INFO mode, transaction hashes in LIST mode
        - Address: proxy implementation, owner, each held token contract
        - Home, Error, Loading: none
    """
    if isinstance(screen, TransactionScreen):
        return _transaction_links(screen)
    if isinstance(screen, BlockScreen):
        return _block_links(screen)
    if isinstance(screen, AddressScreen):
        return _address_links(screen)
    return []
