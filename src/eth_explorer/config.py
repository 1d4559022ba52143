"""
Explorer configuration and search history persistence.

Settings and the recent-search ring buffer live in one YAML file, by default
~/.config/eth-explorer/config.yaml. The ETH_EXPLORER_CONFIG environment
variable (or the CLI's --config option) points elsewhere.

Usage:
    from eth_explorer.config import ExplorerConfig

    config = ExplorerConfig.load()
    config.add_recent_search("vitalik.eth")
    config.save()
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "ETH_EXPLORER_CONFIG"
MAX_RECENT_SEARCHES = 10


def default_config_path() -> Path:
    """Config file location, honouring ETH_EXPLORER_CONFIG."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".config" / "eth-explorer" / "config.yaml"


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "WARNING"
    format: str | None = None

    def __post_init__(self):
        """Validate configuration values."""
        if self.level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown logging level: {self.level}")


@dataclass
class RpcConfig:
    """RPC client configuration."""

    timeout: int = 30
    max_retries: int = 3

    def __post_init__(self):
        """Validate configuration values."""
        if self.timeout <= 0:
            raise ValueError(f"rpc.timeout must be positive, got {self.timeout}")
        if self.max_retries < 1:
            raise ValueError(f"rpc.max_retries must be at least 1, got {self.max_retries}")


@dataclass
class UiConfig:
    """Terminal UI configuration."""

    viewport_height: int = 10

    def __post_init__(self):
        """Validate configuration values."""
        if self.viewport_height < 1:
            raise ValueError(
                f"ui.viewport_height must be positive, got {self.viewport_height}"
            )


@dataclass
class ExplorerConfig:
    """Complete explorer configuration."""

    rpc_url: str | None = None
    recent_searches: list[str] = field(default_factory=list)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    rpc: RpcConfig = field(default_factory=RpcConfig)
    ui: UiConfig = field(default_factory=UiConfig)
    path: Path | None = field(default=None, compare=False)

    @classmethod
    def from_dict(
        cls, config_dict: dict[str, Any], path: Path | None = None
    ) -> "ExplorerConfig":
        """
        Create configuration from a dictionary.

        Raises:
            ConfigError: If a section has unknown keys or invalid values
        """
        try:
            searches = [str(s) for s in config_dict.get("recent_searches") or []]
            return cls(
                rpc_url=config_dict.get("rpc_url"),
                recent_searches=searches[:MAX_RECENT_SEARCHES],
                logging=LoggingConfig(**(config_dict.get("logging") or {})),
                rpc=RpcConfig(**(config_dict.get("rpc") or {})),
                ui=UiConfig(**(config_dict.get("ui") or {})),
                path=path,
            )
        except (TypeError, ValueError, AttributeError) as e:
            raise ConfigError(f"Invalid configuration structure in {path}: {e}") from e

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> "ExplorerConfig":
        """
        Load configuration from a YAML file.

        Args:
            yaml_path: Path to the YAML configuration file

        Returns:
            ExplorerConfig bound to that path

        Raises:
            ConfigError: If the file is unreadable, not valid YAML or has an
                invalid structure
        """
        yaml_path = Path(yaml_path)
        logger.info(f"Loading configuration from {yaml_path}")

        try:
            with open(yaml_path, "r") as f:
                config_dict = yaml.safe_load(f)
        except OSError as e:
            raise ConfigError(f"Cannot read configuration file {yaml_path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in configuration file {yaml_path}: {e}") from e

        if config_dict is None:
            config_dict = {}
        if not isinstance(config_dict, dict):
            raise ConfigError(f"Configuration file {yaml_path} must contain a mapping")

        return cls.from_dict(config_dict, path=yaml_path)

    @classmethod
    def load(cls, path: str | Path | None = None) -> "ExplorerConfig":
        """
        Load the configuration, falling back to defaults when the file is missing.

        Args:
            path: Explicit file; defaults to `default_config_path()`
        """
        config_path = Path(path).expanduser() if path else default_config_path()
        if not config_path.exists():
            logger.info(f"Config file not found at {config_path}, using defaults")
            return cls(path=config_path)
        return cls.from_yaml(config_path)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert configuration to a dictionary.

        Returns:
            Dictionary representation of configuration
        """
        return {
            "rpc_url": self.rpc_url,
            "recent_searches": list(self.recent_searches),
            "logging": {
                "level": self.logging.level,
                "format": self.logging.format,
            },
            "rpc": {
                "timeout": self.rpc.timeout,
                "max_retries": self.rpc.max_retries,
            },
            "ui": {
                "viewport_height": self.ui.viewport_height,
            },
        }

    def save(self, path: str | Path | None = None) -> Path:
        """
        Write the configuration as YAML, creating parent directories.

        Returns:
            Path written to

        Raises:
            ConfigError: If the file cannot be written
        """
        target = Path(path) if path else (self.path or default_config_path())
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(target, "w") as f:
                yaml.safe_dump(self.to_dict(), f, sort_keys=False)
        except OSError as e:
            raise ConfigError(f"Cannot write configuration file {target}: {e}") from e

        self.path = target
        logger.debug(f"Saved configuration to {target}")
        return target

    def add_recent_search(self, query: str) -> None:
        """Record a search: most recent first, no duplicates, bounded length."""
        query = query.strip()
        if not query:
            return
        searches = [s for s in self.recent_searches if s != query]
        searches.insert(0, query)
        self.recent_searches = searches[:MAX_RECENT_SEARCHES]

    def clear_recent_searches(self) -> None:
        self.recent_searches = []

    def recent_search(self, number: int) -> str:
        """
        Look up a search by its 1-based position, most recent first.

        Raises:
            IndexError: If there is no search at that position
        """
        if not 1 <= number <= len(self.recent_searches):
            raise IndexError(f"No recent search #{number}")
        return self.recent_searches[number - 1]

    def remove_recent_search(self, number: int) -> str:
        """
        Forget one search by its 1-based position.

        Returns:
            The removed query

        Raises:
            IndexError: If there is no search at that position
        """
        query = self.recent_search(number)
        del self.recent_searches[number - 1]
        return query
