"""Base fetcher interface for cluster reads.

This module defines the base class and exception hierarchy shared by
the fetchers (Kubernetes objects and events, k8sgpt results). All fetchers are
read-only.
"""

from typing import Any, Dict


class FetchError(Exception):
    """Base exception for fetch operations."""

    pass


class ConnectionError(FetchError):
    """Raised when connection to data source fails."""

    pass


class QueryError(FetchError):
    """Raised when query construction or execution fails."""

    pass


class DataSourceNotFoundError(FetchError):
    """Raised when the requested object or data source is not found."""

    pass


class BaseFetcher:
    """Base class for the read-only fetchers.

    Holds the fetcher's configuration dictionary; subclasses read their own
    keys from it.
    """

    def __init__(self, config: Dict[str, Any]):
        """Initialize the fetcher with configuration.

        Args:
            config: Configuration dictionary for the fetcher
        """
        self.config = config

    def __repr__(self) -> str:
        """Return string representation of the fetcher."""
        return f"{self.__class__.__name__}(config={self.config})"
