"""Exception hierarchy for the explorer's collaborators."""


class ExplorerError(Exception):
    """Base class for errors reported to the operator."""


class FetchError(ExplorerError):
    """An RPC request failed or returned nothing for the requested object."""


class ConfigError(ExplorerError):
    """The configuration file could not be read, parsed or written."""
