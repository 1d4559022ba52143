"""
JSON-RPC connection handling for the explorer.

`Web3ConnectionManager` wraps one HTTP endpoint. Every call the fetcher makes
goes through `retry_with_backoff`, which retries network hiccups and rate
limits but gives up at once on answers that will not change (unknown block
or transaction, reverted call). `setup_logging` configures the root logger
for the CLI.
"""

import logging
import sys
import time
from dataclasses import dataclass
from typing import Any, Callable, TypeVar

import requests.exceptions
from web3 import Web3
from web3.exceptions import (
    BlockNotFound,
    ContractLogicError,
    TransactionNotFound,
    Web3Exception,
    Web3RPCError,
)

from ...errors import FetchError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Retried: connection resets, timeouts, HTTP 429/5xx
TRANSIENT_ERRORS = (
    requests.exceptions.RequestException,
    Web3Exception,
)

# Definitive answers from the node, re-raised without retrying. Web3RPCError
# (JSON-RPC error object) subclasses Web3Exception, so TRANSIENT_ERRORS
# handlers still catch it
NON_RETRYABLE_ERRORS = (
    BlockNotFound,
    TransactionNotFound,
    ContractLogicError,
    Web3RPCError,
)

DEFAULT_LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

# Chatty third-party loggers, capped at WARNING
NOISY_LOGGERS = ("web3", "urllib3", "asyncio")


@dataclass(frozen=True)
class RetryPolicy:
    """How often and how patiently a failed RPC call is repeated."""

    max_retries: int = 3
    backoff_factor: float = 2.0

    def __post_init__(self):
        if self.max_retries < 1:
            raise ValueError(f"max_retries must be at least 1, got {self.max_retries}")

    def delay(self, attempt: int) -> float:
        """Seconds to wait after failed attempt number `attempt` (1-based)."""
        return float(self.backoff_factor ** (attempt - 1))


class Web3ConnectionManager:
    """
    One JSON-RPC endpoint with retrying calls.

    The endpoint is not contacted on construction; the first fetch (or
    `check_connection`) does that.
    """

    def __init__(
        self,
        rpc_url: str,
        timeout: int = 30,
        max_retries: int = 3,
        backoff_factor: float = 2.0,
        w3: Web3 | None = None,
    ):
        """
        Args:
            rpc_url: HTTP(S) JSON-RPC endpoint
            timeout: Per-request timeout in seconds
            max_retries: Attempts per call, first try included
            backoff_factor: Wait after attempt n is backoff_factor ** (n - 1) seconds
            w3: Ready-made Web3 instance, used by tests

        Raises:
            ValueError: If the RPC URL is empty or max_retries is below 1
        """
        if not rpc_url:
            raise ValueError(
                "Invalid RPC URL. Configure one with `eth-explorer set-rpc URL` "
                "or pass --rpc-url"
            )

        self.rpc_url = rpc_url
        self.timeout = timeout
        self.retry = RetryPolicy(max_retries=max_retries, backoff_factor=backoff_factor)
        self.w3 = w3 or Web3(
            Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout})
        )

    @property
    def max_retries(self) -> int:
        return self.retry.max_retries

    def check_connection(self) -> None:
        """
        Raises:
            FetchError: If the endpoint does not answer
        """
        if not self.w3.is_connected():
            raise FetchError(f"Failed to connect to Ethereum node at {self.rpc_url}")
        logger.info(f"Connected to {self.rpc_url}")

    def retry_with_backoff(
        self, func: Callable[..., T], *args: Any, **kwargs: Any
    ) -> T:
        """
        Call `func`, retrying transient RPC errors with exponential backoff.

        Args:
            func: RPC call, e.g. `w3.eth.get_block`
            *args: Positional arguments for `func`
            **kwargs: Keyword arguments for `func`

        Returns:
            Whatever `func` returns on its first successful attempt

        Raises:
            BlockNotFound, TransactionNotFound, ContractLogicError,
                Web3RPCError: Immediately
            requests.RequestException, Web3Exception: The final attempt's error
                once all attempts are used up
        """
        name = getattr(func, "__name__", "call")
        attempt = 1
        while True:
            try:
                return func(*args, **kwargs)
            except NON_RETRYABLE_ERRORS:
                raise
            except TRANSIENT_ERRORS as e:
                if attempt >= self.retry.max_retries:
                    logger.error(f"RPC {name} gave up after {attempt} attempts: {e}")
                    raise
                delay = self.retry.delay(attempt)
                logger.warning(
                    f"RPC {name} failed ({attempt}/{self.retry.max_retries}): {e}; "
                    f"retrying in {delay:.1f}s"
                )
                time.sleep(delay)
                attempt += 1

    def make_request(self, method: str, params: list[Any]) -> Any:
        """
        Send a raw JSON-RPC request for methods web3.py does not wrap.

        Args:
            method: JSON-RPC method name, e.g. "eth_getBlockReceipts"
            params: Positional parameters

        Returns:
            The "result" member of the response

        Raises:
            FetchError: If the node answers with a JSON-RPC error
        """
        logger.debug(f"RPC {method} {params}")
        response = self.retry_with_backoff(
            self.w3.provider.make_request, method, params
        )
        error = response.get("error")
        if error:
            message = error.get("message", error) if isinstance(error, dict) else error
            raise FetchError(f"{method} failed: {message}")
        return response.get("result")


def setup_logging(level: str = "WARNING", log_format: str | None = None) -> None:
    """
    Send log records to stderr so they never mix with rendered screens.

    Args:
        level: Root level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: logging format string; DEFAULT_LOG_FORMAT when None
    """
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format=log_format or DEFAULT_LOG_FORMAT,
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
