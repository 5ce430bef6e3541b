# SPDX-License-Identifier: MIT
# Copyright (c) 2025 docstore-fixtures contributors

"""Abstract interface to the document store a fixture runs against."""

from abc import ABC, abstractmethod
from typing import Any


class StoreError(Exception):
    """Base exception for store driver errors."""
    pass


class StoreConnectionError(StoreError):
    """Exception raised when the store cannot be reached or started."""
    pass


class IndexNotFoundError(StoreError):
    """Exception raised when an operation targets an index that does not exist."""
    pass


class StoreDriver(ABC):
    """Abstract base class for store drivers.

    A driver offers two groups of operations. Instance control (``start``,
    ``stop``, ``is_ready``) manages a running store instance, identified by an
    opaque handle returned from ``start``. Index administration operates on the
    indices of the instance a handle refers to.
    """

    @abstractmethod
    def start(self, config: Any) -> Any:
        """Start (or attach to) a store instance.

        Args:
            config: FixtureConfig describing the instance

        Returns:
            Opaque handle identifying the instance

        Raises:
            StoreConnectionError: If the instance cannot be started
        """
        pass

    @abstractmethod
    def stop(self, handle: Any) -> None:
        """Stop the instance. Stopping an already stopped instance is a no-op."""
        pass

    @abstractmethod
    def is_ready(self, handle: Any) -> bool:
        """Return True once the instance accepts index administration calls."""
        pass

    @abstractmethod
    def index_exists(self, handle: Any, index_name: str) -> bool:
        """Return True if the index exists."""
        pass

    @abstractmethod
    def create_index(self, handle: Any, index_name: str, settings: dict[str, Any] | None = None) -> None:
        """Create an empty index.

        Args:
            handle: Instance handle
            index_name: Name of the index
            settings: Optional index settings document

        Raises:
            StoreError: If the index exists already or creation fails
        """
        pass

    @abstractmethod
    def put_mapping(self, handle: Any, index_name: str, type_name: str, mapping: dict[str, Any]) -> None:
        """Install the mapping of one type.

        Raises:
            IndexNotFoundError: If the index does not exist
            StoreError: If the store rejects the mapping
        """
        pass

    @abstractmethod
    def delete_index(self, handle: Any, index_name: str) -> None:
        """Delete an index.

        Raises:
            IndexNotFoundError: If the index does not exist
        """
        pass

    @abstractmethod
    def get_mapping(self, handle: Any, index_name: str, type_name: str) -> dict[str, Any] | None:
        """Read back the mapping of one type.

        Returns:
            Mapping document, or None if the type has no mapping

        Raises:
            IndexNotFoundError: If the index does not exist
        """
        pass
