"""
Command-line entry point.

Usage:
    eth-explorer set-rpc https://eth.llamarpc.com
    eth-explorer browse
    eth-explorer show vitalik.eth
    eth-explorer classify 0x5c504ed432cb51138bcf09aa5e8a410dd4a1e204ef84bfed1be16dfba1b22060
    eth-explorer selector a9059cbb

The RPC URL and search history are read from ~/.config/eth-explorer/config.yaml
by default (see --config and the ETH_EXPLORER_CONFIG environment variable).
"""

import logging
import sys
from pathlib import Path

import click
from rich.console import Console

from .config import ExplorerConfig
from .errors import ConfigError, ExplorerError
from .extraction.core.normalization import normalize_hex_field
from .extraction.core.utils import Web3ConnectionManager, setup_logging
from .extraction.ens import namehash as ens_namehash
from .extraction.signatures import decode_event_signature, decode_function_selector
from .navigation import Navigator
from .query import InvalidQuery, classify
from .ui.app import ExplorerApp, screen_for_intent
from .ui.render import render_screen

logger = logging.getLogger(__name__)


def _manager(ctx: click.Context) -> Web3ConnectionManager:
    config: ExplorerConfig = ctx.obj["config"]
    rpc_url = ctx.obj["rpc_url"] or config.rpc_url
    if not rpc_url:
        logger.error(
            "No RPC URL provided. Either:\n"
            "  1. Pass --rpc-url on command line, or\n"
            "  2. Run `eth-explorer set-rpc URL`"
        )
        sys.exit(1)
    return Web3ConnectionManager(
        rpc_url=rpc_url,
        timeout=config.rpc.timeout,
        max_retries=config.rpc.max_retries,
    )


@click.group()
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to config YAML file (default: ~/.config/eth-explorer/config.yaml)",
)
@click.option(
    "--rpc-url",
    default=None,
    help="Ethereum RPC endpoint URL (overrides config file if provided)",
)
@click.option(
    "--log-level",
    type=click.Choice(
        ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False
    ),
    default=None,
    help="Logging level (default: from config, WARNING)",
)
@click.option(
    "--no-ens",
    is_flag=True,
    default=False,
    help="Skip reverse ENS lookups",
)
@click.pass_context
def main(
    ctx: click.Context,
    config_path: Path | None,
    rpc_url: str | None,
    log_level: str | None,
    no_ens: bool,
) -> None:
    """Read-only terminal explorer for Ethereum blocks, transactions and addresses."""
    try:
        config = ExplorerConfig.load(config_path)
    except ConfigError as e:
        setup_logging(level=log_level or "WARNING")
        logger.error(str(e))
        sys.exit(1)

    setup_logging(
        level=log_level or config.logging.level, log_format=config.logging.format
    )

    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["rpc_url"] = rpc_url
    ctx.obj["resolve_names"] = not no_ens


@main.command()
@click.pass_context
def browse(ctx: click.Context) -> None:
    """Browse interactively."""
    app = ExplorerApp(
        _manager(ctx), ctx.obj["config"], resolve_names=ctx.obj["resolve_names"]
    )
    app.run()


@main.command()
@click.argument("query")
@click.pass_context
def show(ctx: click.Context, query: str) -> None:
    """Fetch and print one address, transaction, block or ENS name."""
    intent = classify(query)
    if isinstance(intent, InvalidQuery):
        logger.error(intent.description())
        sys.exit(1)

    config: ExplorerConfig = ctx.obj["config"]
    manager = _manager(ctx)
    try:
        screen = screen_for_intent(manager, intent, ctx.obj["resolve_names"])
    except ExplorerError as e:
        logger.error(f"Fatal error: {e}")
        sys.exit(1)

    config.add_recent_search(query)
    try:
        config.save()
    except ConfigError as e:
        logger.warning(f"Could not save search history: {e}")

    navigator = Navigator(viewport_height=config.ui.viewport_height)
    navigator.push(screen)
    Console().print(render_screen(navigator))


@main.command("set-rpc")
@click.argument("url")
@click.pass_context
def set_rpc(ctx: click.Context, url: str) -> None:
    """Store the JSON-RPC endpoint URL in the config file."""
    config: ExplorerConfig = ctx.obj["config"]
    config.rpc_url = url
    try:
        path = config.save()
    except ConfigError as e:
        logger.error(str(e))
        sys.exit(1)
    click.echo(f"RPC URL saved to {path}")


@main.command()
@click.option("--clear", is_flag=True, default=False, help="Forget all recent searches")
@click.pass_context
def history(ctx: click.Context, clear: bool) -> None:
    """List recent searches, most recent first."""
    config: ExplorerConfig = ctx.obj["config"]
    if clear:
        config.clear_recent_searches()
        try:
            config.save()
        except ConfigError as e:
            logger.error(str(e))
            sys.exit(1)
        click.echo("Search history cleared")
        return

    if not config.recent_searches:
        click.echo("No recent searches")
        return
    for index, query in enumerate(config.recent_searches, 1):
        click.echo(f"{index:2d}. {query}")


@main.command()
@click.argument("name")
def namehash(name: str) -> None:
    """Print the ENS namehash of NAME."""
    click.echo("0x" + ens_namehash(name).hex())


@main.command()
@click.argument("hex_value", metavar="HEX")
def selector(hex_value: str) -> None:
    """Look up a 4-byte function selector or a 32-byte event topic."""
    try:
        data = normalize_hex_field(hex_value)
    except ValueError as e:
        logger.error(str(e))
        sys.exit(1)

    if len(data) == 32:
        event = decode_event_signature(data)
        click.echo(event.text if event else "Unknown event")
        return

    function = decode_function_selector(data)
    click.echo(function.text if function else "Unknown function")


@main.command("classify")
@click.argument("query")
def classify_command(query: str) -> None:
    """Show how QUERY would be interpreted."""
    intent = classify(query)
    click.echo(intent.description())
    if isinstance(intent, InvalidQuery):
        sys.exit(1)


if __name__ == "__main__":
    main()
