"""Screens, links and the navigation state machine."""

from .links import LinkKind, NavLink, enumerate_links
from .screens import (
    AddressScreen,
    BlockDisplayMode,
    BlockScreen,
    ErrorScreen,
    HomeScreen,
    LoadingScreen,
    Screen,
    TransactionScreen,
)
from .state import Navigator

__all__ = [
    "AddressScreen",
    "BlockDisplayMode",
    "BlockScreen",
    "ErrorScreen",
    "HomeScreen",
    "LinkKind",
    "LoadingScreen",
    "NavLink",
    "Navigator",
    "Screen",
    "TransactionScreen",
    "enumerate_links",
]
