"""
Navigation state machine.

The Navigator owns the current screen, the back-stack of previous screens,
the link cursor and the scroll offset. The link count is recomputed whenever
the screen changes, so the cursor always indexes a link of the screen being
shown.

Background fetches are tracked with tickets: `begin_fetch` shows a loading
screen and hands out a ticket, and only the most recent ticket may complete.
Navigating back or home, or starting another fetch, invalidates outstanding
tickets so a slow response can never overwrite a newer screen.

Usage:
    from eth_explorer.navigation import Navigator

    nav = Navigator(viewport_height=10)
    ticket = nav.begin_fetch("Loading block 17000000...")
    nav.complete_fetch(ticket, BlockScreen(block=view))
    nav.next_link()
    link = nav.resolve_selected_link()
"""

import logging
import threading
from collections import deque
from dataclasses import replace

from ..models import NetworkInfo
from .links import NavLink, enumerate_links
from .screens import (
    TRANSIENT_SCREENS,
    BlockDisplayMode,
    BlockScreen,
    ErrorScreen,
    HomeScreen,
    LoadingScreen,
    Screen,
)

logger = logging.getLogger(__name__)

DEFAULT_VIEWPORT_HEIGHT = 10
DEFAULT_MAX_HISTORY = 50


class Navigator:
    """Current screen, bounded history, link cursor and scroll window.

    All transitions happen under one lock, so a reader that takes a
    `snapshot()` never sees a screen together with a cursor or link count
    belonging to another screen.
    """

    def __init__(
        self,
        viewport_height: int = DEFAULT_VIEWPORT_HEIGHT,
        max_history: int = DEFAULT_MAX_HISTORY,
    ):
        """
        Args:
            viewport_height: Number of link rows visible at once
            max_history: Back-stack capacity; the oldest screens are dropped

        Raises:
            ValueError: If either size is not positive
        """
        if viewport_height < 1:
            raise ValueError(f"viewport_height must be positive, got {viewport_height}")
        if max_history < 1:
            raise ValueError(f"max_history must be positive, got {max_history}")

        self._lock = threading.RLock()
        self._viewport_height = viewport_height
        self._history: deque[Screen] = deque(maxlen=max_history)
        self._current: Screen = HomeScreen()
        self._links: list[NavLink] = []
        self._cursor = 0
        self._scroll = 0
        self._ticket = 0
        self._network: NetworkInfo | None = None
        self._recent_searches: tuple[str, ...] = ()

    # --- accessors -----------------------------------------------------------

    @property
    def current(self) -> Screen:
        return self._current

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def scroll(self) -> int:
        return self._scroll

    @property
    def link_count(self) -> int:
        return len(self._links)

    @property
    def history_depth(self) -> int:
        return len(self._history)

    @property
    def viewport_height(self) -> int:
        return self._viewport_height

    @property
    def display_mode(self) -> BlockDisplayMode | None:
        """Block display mode, or None when the current screen is not a block."""
        if isinstance(self._current, BlockScreen):
            return self._current.mode
        return None

    def links(self) -> list[NavLink]:
        with self._lock:
            return list(self._links)

    def snapshot(self) -> tuple[Screen, int, int, tuple[NavLink, ...]]:
        """Return (screen, cursor, scroll, links) captured atomically."""
        with self._lock:
            return self._current, self._cursor, self._scroll, tuple(self._links)

    def breadcrumbs(self) -> str:
        """Titles from the oldest history entry to the current screen."""
        with self._lock:
            titles = [screen.title for screen in self._history]
            titles.append(self._current.title)
            return " > ".join(titles)

    # --- transitions ---------------------------------------------------------

    def _set_screen(self, screen: Screen) -> None:
        self._current = screen
        self._links = enumerate_links(screen)
        self._cursor = 0
        self._scroll = 0

    def push(self, screen: Screen) -> None:
        """
        Show a new screen, recording the current one in history.

        Loading and error screens are transient and are not recorded.
        """
        with self._lock:
            if not isinstance(self._current, TRANSIENT_SCREENS):
                self._history.append(self._current)
            self._set_screen(screen)
            logger.debug(
                f"Pushed {screen.title}, {self.link_count} links, "
                f"history depth {self.history_depth}"
            )

    def go_back(self) -> bool:
        """
        Return to the previous screen.

        The cursor and scroll reset to the top; any outstanding fetch is
        abandoned.

        Returns:
            False when history was empty and nothing changed
        """
        with self._lock:
            if not self._history:
                return False
            self._ticket += 1
            self._set_screen(self._history.pop())
            return True

    def _home_screen(self) -> HomeScreen:
        return HomeScreen(network=self._network, recent_searches=self._recent_searches)

    def go_home(self) -> None:
        """Show the home screen and clear history; outstanding fetches are abandoned."""
        with self._lock:
            self._ticket += 1
            self._history.clear()
            self._set_screen(self._home_screen())

    def _scroll_to_cursor(self) -> None:
        if self._cursor < self._scroll:
            self._scroll = self._cursor
        elif self._cursor >= self._scroll + self._viewport_height:
            self._scroll = self._cursor - self._viewport_height + 1
        max_scroll = max(0, len(self._links) - self._viewport_height)
        self._scroll = min(max(self._scroll, 0), max_scroll)

    def next_link(self) -> None:
        """Move the cursor to the next link, wrapping at the end."""
        with self._lock:
            if not self._links:
                return
            self._cursor = (self._cursor + 1) % len(self._links)
            self._scroll_to_cursor()

    def prev_link(self) -> None:
        """Move the cursor to the previous link, wrapping at the start."""
        with self._lock:
            if not self._links:
                return
            self._cursor = (self._cursor - 1) % len(self._links)
            self._scroll_to_cursor()

    def resolve_selected_link(self) -> NavLink | None:
        """The link under the cursor; None iff the screen has no links."""
        with self._lock:
            if not self._links:
                return None
            return self._links[self._cursor]

    def toggle_display_mode(self) -> bool:
        """
        Switch a block screen between header info and transaction list.

        Returns:
            False when the current screen is not a block screen
        """
        with self._lock:
            if not isinstance(self._current, BlockScreen):
                return False
            screen = replace(self._current, mode=self._current.mode.toggled())
            self._set_screen(screen)
            return True

    # --- fetch bookkeeping ---------------------------------------------------

    def begin_fetch(self, message: str = "Loading...") -> int:
        """
        Show a loading screen for a new fetch.

        Returns:
            Ticket to pass to complete_fetch / fail_fetch
        """
        with self._lock:
            self._ticket += 1
            self.push(LoadingScreen(message))
            return self._ticket

    def is_current_fetch(self, ticket: int) -> bool:
        with self._lock:
            return ticket == self._ticket

    def complete_fetch(self, ticket: int, screen: Screen) -> bool:
        """
        Apply a fetch result if it belongs to the latest fetch.

        Returns:
            False when the result was stale and has been dropped
        """
        with self._lock:
            if ticket != self._ticket:
                logger.debug(f"Dropping stale result for ticket {ticket}")
                return False
            self.push(screen)
            return True

    def fail_fetch(self, ticket: int, message: str) -> bool:
        """Show an error screen if the failed fetch is the latest one."""
        return self.complete_fetch(ticket, ErrorScreen(message))

    # --- home data -----------------------------------------------------------

    def set_network_info(self, network: NetworkInfo) -> None:
        """Update the home screen's network summary without touching history."""
        with self._lock:
            self._network = network
            if isinstance(self._current, HomeScreen):
                self._current = replace(self._current, network=network)

    def set_recent_searches(self, searches: list[str] | tuple[str, ...]) -> None:
        """Update the home screen's recent searches without touching history."""
        with self._lock:
            self._recent_searches = tuple(searches)
            if isinstance(self._current, HomeScreen):
                self._current = replace(
                    self._current, recent_searches=self._recent_searches
                )
