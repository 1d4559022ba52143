"""
Rich renderables for explorer screens.

`render_screen` reads one atomic snapshot of the navigator and builds a
renderable for it: a detail panel for the current screen, a scrolling link
list with the cursor highlighted, and a key help footer. Nothing here
mutates navigator state.

Usage:
    from rich.console import Console
    from eth_explorer.ui.render import render_screen

    Console().print(render_screen(navigator))
"""

from rich.console import Group, RenderableType
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..extraction.formatting import (
    format_addr_fixed_width,
    format_address_with_ens,
    format_eth,
    format_gas,
    format_gwei,
    format_timestamp,
    format_token_amount,
    format_u256_decimals,
    truncate_hash,
)
from ..models import AddressView, TransactionView, TxType
from ..navigation import (
    AddressScreen,
    BlockDisplayMode,
    BlockScreen,
    ErrorScreen,
    HomeScreen,
    LoadingScreen,
    NavLink,
    Navigator,
    Screen,
    TransactionScreen,
)

KEY_HELP = (
    "n/p: next/prev link  enter: open  b: back  h: home  t: toggle block view  "
    "s N / d N: rerun / delete recent search  q: quit  or type a query"
)


def _add_row(table: Table, *cells: RenderableType) -> None:
    # Chain data may hold "[...]" sequences; plain strings never go through markup
    table.add_row(*(Text(cell) if isinstance(cell, str) else cell for cell in cells))


def _fields_table() -> Table:
    table = Table.grid(padding=(0, 2))
    table.add_column(style="bold cyan", no_wrap=True)
    table.add_column()
    return table


def _render_home(screen: HomeScreen) -> RenderableType:
    table = _fields_table()
    network = screen.network
    if network is None:
        _add_row(table, "Network", "not loaded")
    else:
        _add_row(table, "Latest Block", f"#{network.latest_block}")
        _add_row(table, "Gas Price", format_gwei(network.gas_price))
        if network.base_fee_trend:
            _add_row(
                table,
                "Base Fee",
                f"{format_gwei(network.base_fee_trend[-1])} {network.base_fee_direction}",
            )
        if network.priority_fee_percentiles:
            _add_row(
                table,
                "Priority Fee",
                " / ".join(format_gwei(p) for p in network.priority_fee_percentiles),
            )
        _add_row(table, "Client", network.client_version)

    parts: list[RenderableType] = [table]
    if screen.recent_searches:
        recent = Table(title="Recent Searches", show_header=False, box=None)
        recent.add_column(justify="right", style="dim")
        recent.add_column()
        for number, query in enumerate(screen.recent_searches, 1):
            _add_row(recent, f"{number}.", query)
        parts.append(recent)
    return Panel(Group(*parts), title="eth-explorer")


def _status_text(tx: TransactionView) -> Text:
    if tx.status is None:
        return Text("Pending", style="yellow")
    if tx.status:
        return Text("Success", style="green")
    return Text("Failed", style="red")


def _render_transaction(screen: TransactionScreen) -> RenderableType:
    tx = screen.transaction
    table = _fields_table()
    _add_row(table, "Hash", tx.hash)
    _add_row(table, "Status", _status_text(tx))
    _add_row(
        table,
        "Block", "pending" if tx.block_number is None else f"#{tx.block_number}"
    )
    _add_row(table, "From", format_address_with_ens(tx.sender, tx.sender_ens))
    if tx.to:
        _add_row(table, "To", format_address_with_ens(tx.to, tx.to_ens))
    elif tx.contract_created:
        _add_row(table, "Contract Created", tx.contract_created)
    _add_row(table, "Value", format_eth(tx.value))
    _add_row(table, "Type", tx.tx_type.label)
    _add_row(table, "Nonce", str(tx.nonce))
    _add_row(table, "Method", tx.method_label)

    gas_used = "?" if tx.gas_used is None else format_gas(tx.gas_used)
    _add_row(table, "Gas", f"{gas_used} / {format_gas(tx.gas_limit)}")
    if tx.effective_gas_price is not None:
        _add_row(table, "Gas Price", format_gwei(tx.effective_gas_price))
    elif tx.gas_price is not None:
        _add_row(table, "Gas Price", format_gwei(tx.gas_price))
    if tx.tx_type.has_priority_fee:
        if tx.max_fee_per_gas is not None:
            _add_row(table, "Max Fee", format_gwei(tx.max_fee_per_gas))
        if tx.max_priority_fee_per_gas is not None:
            _add_row(table, "Priority Fee", format_gwei(tx.max_priority_fee_per_gas))
    if tx.actual_fee is not None:
        _add_row(table, "Fee", format_eth(tx.actual_fee))
    if tx.access_list_size is not None and tx.tx_type is not TxType.LEGACY:
        _add_row(table, "Access List", f"{tx.access_list_size} entries")
    if tx.tx_type is TxType.BLOB:
        _add_row(table, "Blobs", str(len(tx.blob_hashes)))
        if tx.blob_gas_used is not None:
            _add_row(table, "Blob Gas", format_gas(tx.blob_gas_used))

    parts: list[RenderableType] = [table]

    if tx.decoded_input:
        params = Table(title="Input", box=None)
        params.add_column("Name", style="cyan")
        params.add_column("Type", style="dim")
        params.add_column("Value", overflow="fold")
        for param in tx.decoded_input:
            _add_row(params, param.name, param.type, param.display)
        parts.append(params)

    if tx.token_transfers:
        transfers = Table(title="Token Transfers", box=None)
        transfers.add_column("From")
        transfers.add_column("To")
        transfers.add_column("Amount", justify="right")
        transfers.add_column("Token")
        for transfer in tx.token_transfers:
            if transfer.decimals is not None:
                amount = format_u256_decimals(transfer.amount, transfer.decimals)
            else:
                amount = str(transfer.amount)
            _add_row(
                transfers,
                truncate_hash(transfer.sender),
                truncate_hash(transfer.recipient),
                amount,
                transfer.token_symbol or truncate_hash(transfer.token_address),
            )
        parts.append(transfers)

    if tx.logs:
        logs = Table(title=f"Logs ({len(tx.logs)})", box=None, show_header=False)
        logs.add_column()
        for log in tx.logs:
            _add_row(
                logs,
                Text.assemble(
                    (f"{log.event_label}", "bold"), "  ", truncate_hash(log.address)
                )
            )
            for param in log.params:
                _add_row(logs, f"    {param.name}: {param.display}")
        parts.append(logs)

    return Panel(Group(*parts), title=escape(screen.title))


def _render_block_info(screen: BlockScreen) -> RenderableType:
    block = screen.block
    table = _fields_table()
    _add_row(table, "Number", f"#{block.number}")
    _add_row(table, "Hash", block.hash)
    _add_row(table, "Parent", block.parent_hash)
    for label, root in (
        ("State Root", block.state_root),
        ("Receipts Root", block.receipts_root),
        ("Tx Root", block.transactions_root),
    ):
        if root:
            _add_row(table, label, root)
    _add_row(table, "Time", f"{format_timestamp(block.timestamp)} ({block.timestamp})")
    _add_row(table, "Miner", format_address_with_ens(block.miner, block.miner_ens))
    if block.builder_tag:
        _add_row(table, "Builder", block.builder_tag)
    _add_row(table, "Transactions", str(block.tx_count))
    _add_row(
        table,
        "Gas Used",
        f"{format_gas(block.gas_used)} / {format_gas(block.gas_limit)} "
        f"({block.gas_used_ratio:.1%})",
    )
    if block.base_fee is not None:
        _add_row(table, "Base Fee", format_gwei(block.base_fee))
    if screen.stats is not None:
        _add_row(table, "Value Transferred", format_eth(screen.stats.total_value_transferred))
        _add_row(table, "Fees", format_eth(screen.stats.total_fees))
        _add_row(table, "Burnt Fees", format_eth(screen.stats.burnt_fees))
        if screen.stats.blob_count:
            _add_row(table, "Blobs", str(screen.stats.blob_count))
    if block.blob_gas_used is not None:
        _add_row(table, "Blob Gas Used", format_gas(block.blob_gas_used))
    if block.withdrawals_count is not None:
        _add_row(table, "Withdrawals", str(block.withdrawals_count))
    if block.size is not None:
        _add_row(table, "Size", f"{block.size} bytes")
    if block.extra_data_text:
        _add_row(table, "Extra Data", block.extra_data_text)
    elif block.extra_data:
        _add_row(table, "Extra Data", "0x" + block.extra_data.hex())
    return Panel(table, title=escape(f"{screen.title} [info]"))


def _render_block_list(screen: BlockScreen) -> RenderableType:
    table = Table(box=None)
    table.add_column("T", style="dim")
    table.add_column("Hash")
    table.add_column("From")
    table.add_column("To")
    table.add_column("Value", justify="right")
    table.add_column("Method")
    for tx in screen.transactions:
        to = "create" if tx.is_contract_creation else format_addr_fixed_width(tx.to, tx.to_ens)
        method = tx.method_name or tx.method_selector or "transfer"
        _add_row(
            table,
            tx.tx_type.short,
            truncate_hash(tx.hash),
            format_addr_fixed_width(tx.sender, tx.sender_ens),
            to,
            format_eth(tx.value),
            method,
        )
    return Panel(table, title=escape(f"{screen.title} [{len(screen.transactions)} txs]"))


def _render_address(screen: AddressScreen) -> RenderableType:
    account: AddressView = screen.account
    table = _fields_table()
    _add_row(table, "Address", account.address)
    if account.ens_name:
        _add_row(table, "ENS", account.ens_name)
    _add_row(table, "Type", account.kind_label)
    _add_row(table, "Balance", format_eth(account.balance))
    _add_row(table, "Nonce", str(account.nonce))
    if account.code_size is not None:
        _add_row(table, "Code Size", f"{account.code_size} bytes")
    if account.proxy_implementation:
        _add_row(table, "Implementation", account.proxy_implementation)
    if account.owner:
        _add_row(table, "Owner", account.owner)

    info = account.token_info
    if info is not None:
        if info.name:
            _add_row(table, "Token", f"{info.name} ({info.symbol or '?'})")
        if info.decimals is not None:
            _add_row(table, "Decimals", str(info.decimals))
        if info.total_supply is not None:
            supply = (
                format_token_amount(info.total_supply, info.decimals)
                if info.decimals is not None
                else str(info.total_supply)
            )
            _add_row(table, "Total Supply", supply)

    parts: list[RenderableType] = [table]
    if account.token_balances:
        balances = Table(title="Token Balances", box=None)
        balances.add_column("Token")
        balances.add_column("Balance", justify="right")
        for token in account.token_balances:
            _add_row(
                balances,
                token.symbol, format_token_amount(token.balance, token.decimals)
            )
        parts.append(balances)
    return Panel(Group(*parts), title=escape(screen.title))


def render_detail(screen: Screen) -> RenderableType:
    """Detail panel for a screen, dispatched on its variant."""
    if isinstance(screen, HomeScreen):
        return _render_home(screen)
    if isinstance(screen, TransactionScreen):
        return _render_transaction(screen)
    if isinstance(screen, BlockScreen):
        if screen.mode is BlockDisplayMode.LIST:
            return _render_block_list(screen)
        return _render_block_info(screen)
    if isinstance(screen, AddressScreen):
        return _render_address(screen)
    if isinstance(screen, ErrorScreen):
        return Panel(Text(screen.message, style="red"), title="Error", border_style="red")
    if isinstance(screen, LoadingScreen):
        return Panel(Text(screen.message, style="yellow"), title="Loading")
    raise TypeError(f"Unknown screen type: {type(screen).__name__}")


def render_links(
    links: tuple[NavLink, ...], cursor: int, scroll: int, viewport_height: int
) -> RenderableType | None:
    """The visible window of links with the cursor row highlighted."""
    if not links:
        return None

    table = Table.grid(padding=(0, 1))
    table.add_column(justify="right", style="dim")
    table.add_column(style="dim")
    table.add_column()
    window = links[scroll : scroll + viewport_height]
    for offset, link in enumerate(window):
        index = scroll + offset
        style = "reverse" if index == cursor else ""
        _add_row(table, str(index + 1), link.kind.value, Text(link.identifier, style=style))

    title = f"Links {cursor + 1}/{len(links)}"
    return Panel(table, title=title, border_style="blue")


def render_screen(navigator: Navigator) -> RenderableType:
    """
    Render the navigator's current state.

    Args:
        navigator: Navigator to read; only its snapshot is used

    Returns:
        Renderable with breadcrumbs, detail panel, link list and key help
    """
    screen, cursor, scroll, links = navigator.snapshot()

    parts: list[RenderableType] = [
        Text(navigator.breadcrumbs(), style="dim"),
        render_detail(screen),
    ]
    link_panel = render_links(links, cursor, scroll, navigator.viewport_height)
    if link_panel is not None:
        parts.append(link_panel)
    parts.append(Text(KEY_HELP, style="dim"))
    return Group(*parts)
