"""
Interactive explorer loop.

Queries and link targets are fetched on a worker thread while the navigator
shows a loading screen. Each fetch carries the navigator's ticket, so a
result that arrives after the operator has moved on is dropped.

Usage:
    from eth_explorer.ui.app import ExplorerApp

    app = ExplorerApp(manager, config)
    app.run()
"""

import logging
import re
from concurrent.futures import Future, ThreadPoolExecutor

from rich.console import Console
from rich.text import Text

from ..config import ExplorerConfig
from ..errors import ExplorerError
from ..extraction.core.fetcher import (
    fetch_address,
    fetch_block,
    fetch_network_info,
    fetch_transaction,
    resolve_ens_name,
)
from ..extraction.core.utils import Web3ConnectionManager
from ..navigation import (
    AddressScreen,
    BlockScreen,
    Navigator,
    Screen,
    TransactionScreen,
)
from ..query import (
    AddressQuery,
    BlockNumberQuery,
    EnsNameQuery,
    Intent,
    InvalidQuery,
    TxHashQuery,
    classify,
)
from .render import render_screen

logger = logging.getLogger(__name__)

MAX_WORKERS = 2

# "s 3" re-runs recent search 3, "d 3" deletes it
RECENT_COMMAND = re.compile(r"^([sd])\s*(\d+)$")


def screen_for_intent(
    manager: Web3ConnectionManager, intent: Intent, resolve_names: bool = True
) -> Screen:
    """
    Fetch and build the screen an intent navigates to.

    Raises:
        FetchError: If the target cannot be fetched
        ValueError: For an InvalidQuery
    """
    if isinstance(intent, AddressQuery):
        return AddressScreen(fetch_address(manager, intent.query, resolve_names))
    if isinstance(intent, TxHashQuery):
        return TransactionScreen(fetch_transaction(manager, intent.query, resolve_names))
    if isinstance(intent, BlockNumberQuery):
        block, transactions, stats = fetch_block(manager, intent.number, resolve_names)
        return BlockScreen(block=block, transactions=transactions, stats=stats)
    if isinstance(intent, EnsNameQuery):
        address = resolve_ens_name(manager, intent.name)
        return AddressScreen(fetch_address(manager, address, resolve_names))
    raise ValueError(intent.description())


class ExplorerApp:
    """Line-oriented terminal front end around a Navigator."""

    def __init__(
        self,
        manager: Web3ConnectionManager,
        config: ExplorerConfig,
        console: Console | None = None,
        resolve_names: bool = True,
    ):
        self.manager = manager
        self.config = config
        self.console = console or Console()
        self.resolve_names = resolve_names
        self.navigator = Navigator(viewport_height=config.ui.viewport_height)
        self.navigator.set_recent_searches(config.recent_searches)
        self._executor = ThreadPoolExecutor(max_workers=MAX_WORKERS)

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)

    # --- fetches -------------------------------------------------------------

    def _fetch_and_apply(self, ticket: int, intent: Intent) -> None:
        try:
            screen = screen_for_intent(self.manager, intent, self.resolve_names)
        except ExplorerError as e:
            self.navigator.fail_fetch(ticket, str(e))
        except Exception as e:
            logger.exception(f"Unexpected error while fetching: {e}")
            self.navigator.fail_fetch(ticket, f"Unexpected error: {e}")
        else:
            self.navigator.complete_fetch(ticket, screen)

    def navigate(self, intent: Intent) -> Future:
        """Start fetching the intent's screen; the result applies only if still wanted."""
        ticket = self.navigator.begin_fetch(f"Loading {intent.description()}...")
        return self._executor.submit(self._fetch_and_apply, ticket, intent)

    def submit_query(self, raw: str) -> Future | None:
        """
        Classify operator input and navigate to it.

        Invalid input is reported without changing the screen.

        Returns:
            The fetch future, or None when the query was invalid
        """
        intent = classify(raw)
        if isinstance(intent, InvalidQuery):
            self.console.print(Text(intent.description(), style="red"))
            return None

        self.config.add_recent_search(raw)
        self._save_recent_searches()
        return self.navigate(intent)

    def _save_recent_searches(self) -> None:
        self.navigator.set_recent_searches(self.config.recent_searches)
        try:
            self.config.save()
        except ExplorerError as e:
            logger.warning(f"Could not save search history: {e}")

    def rerun_recent_search(self, number: int) -> Future | None:
        """Search again for recent search `number` (1-based), moving it to the top."""
        try:
            query = self.config.recent_search(number)
        except IndexError as e:
            self.console.print(Text(str(e), style="red"))
            return None
        return self.submit_query(query)

    def delete_recent_search(self, number: int) -> None:
        try:
            query = self.config.remove_recent_search(number)
        except IndexError as e:
            self.console.print(Text(str(e), style="red"))
            return
        logger.info(f"Removed recent search {query}")
        self._save_recent_searches()

    def open_selected_link(self) -> Future | None:
        link = self.navigator.resolve_selected_link()
        if link is None:
            return None
        return self.navigate(classify(link.query))

    def refresh_network_info(self) -> None:
        try:
            network = fetch_network_info(self.manager)
        except ExplorerError as e:
            logger.warning(f"Could not refresh network info: {e}")
            return
        self.navigator.set_network_info(network)

    # --- loop ----------------------------------------------------------------

    def _wait(self, future: Future | None) -> None:
        if future is None:
            return
        with self.console.status("Fetching..."):
            future.exception()

    def handle_command(self, command: str) -> bool:
        """
        Apply one line of operator input.

        Returns:
            False when the operator asked to quit
        """
        command = command.strip()
        nav = self.navigator
        recent = RECENT_COMMAND.match(command)

        if command in ("q", "quit", "exit"):
            return False
        if command == "":
            self._wait(self.open_selected_link())
        elif command in ("n", "j"):
            nav.next_link()
        elif command in ("p", "k"):
            nav.prev_link()
        elif command == "b":
            nav.go_back()
        elif command == "h":
            nav.go_home()
        elif command == "t":
            nav.toggle_display_mode()
        elif command == "r":
            self.refresh_network_info()
        elif recent:
            action, number = recent.group(1), int(recent.group(2))
            if action == "s":
                self._wait(self.rerun_recent_search(number))
            else:
                self.delete_recent_search(number)
        else:
            self._wait(self.submit_query(command))
        return True

    def run(self) -> None:
        """Run until the operator quits or closes input."""
        self.refresh_network_info()
        try:
            while True:
                self.console.clear()
                self.console.print(render_screen(self.navigator))
                try:
                    command = self.console.input("[bold]> [/bold]")
                except (EOFError, KeyboardInterrupt):
                    break
                if not self.handle_command(command):
                    break
        finally:
            self.close()
