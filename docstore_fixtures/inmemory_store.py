# SPDX-License-Identifier: MIT
# Copyright (c) 2025 docstore-fixtures contributors

"""In-memory store driver for testing and local development."""

import copy
import itertools
import logging
import threading
from dataclasses import dataclass, field
from typing import Any

from .store import IndexNotFoundError, StoreConnectionError, StoreDriver, StoreError

logger = logging.getLogger(__name__)


@dataclass
class InMemoryHandle:
    """Handle of an in-memory store instance."""

    instance_id: int
    name: str


@dataclass
class _Index:
    settings: dict[str, Any] = field(default_factory=dict)
    mappings: dict[str, dict[str, Any]] = field(default_factory=dict)


@dataclass
class _Instance:
    name: str
    polls_until_ready: int = 0
    indices: dict[str, _Index] = field(default_factory=dict)


class InMemoryStoreDriver(StoreDriver):
    """In-memory store driver implementation.

    Every ``start`` creates an independent instance. Documents handed in and
    out are deep-copied so callers can never mutate stored state.

    Args:
        startup_polls: Number of ``is_ready`` calls answered with False after
            ``start``, to simulate a node that takes a while to come up
    """

    def __init__(self, startup_polls: int = 0):
        if startup_polls < 0:
            raise ValueError("startup_polls must not be negative")
        self.startup_polls = startup_polls
        self._instances: dict[int, _Instance] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: Any) -> "InMemoryStoreDriver":
        """Create an InMemoryStoreDriver from a FixtureConfig.

        Recognized driver options: ``startup_polls``.
        """
        options = getattr(config, "driver_options", None) or {}
        return cls(startup_polls=int(options.get("startup_polls", 0)))

    def _instance(self, handle: InMemoryHandle) -> _Instance:
        instance = self._instances.get(handle.instance_id)
        if instance is None:
            raise StoreConnectionError(f"InMemoryStoreDriver: instance '{handle.name}' is not running")
        return instance

    def _index(self, handle: InMemoryHandle, index_name: str) -> _Index:
        index = self._instance(handle).indices.get(index_name)
        if index is None:
            raise IndexNotFoundError(f"Index '{index_name}' not found")
        return index

    def start(self, config: Any) -> InMemoryHandle:
        name = getattr(config, "instance_name", None) or "inmemory"
        with self._lock:
            instance_id = next(self._ids)
            self._instances[instance_id] = _Instance(name=name, polls_until_ready=self.startup_polls)
        logger.debug("InMemoryStoreDriver: started instance %s (%s)", instance_id, name)
        return InMemoryHandle(instance_id=instance_id, name=name)

    def stop(self, handle: InMemoryHandle) -> None:
        with self._lock:
            instance = self._instances.pop(handle.instance_id, None)
            if instance is None:
                return
            instance.indices.clear()
        logger.debug("InMemoryStoreDriver: stopped instance %s", handle.instance_id)

    def is_ready(self, handle: InMemoryHandle) -> bool:
        with self._lock:
            instance = self._instances.get(handle.instance_id)
            if instance is None:
                return False
            if instance.polls_until_ready > 0:
                instance.polls_until_ready -= 1
                return False
            return True

    def index_exists(self, handle: InMemoryHandle, index_name: str) -> bool:
        with self._lock:
            return index_name in self._instance(handle).indices

    def create_index(
        self, handle: InMemoryHandle, index_name: str, settings: dict[str, Any] | None = None
    ) -> None:
        with self._lock:
            instance = self._instance(handle)
            if index_name in instance.indices:
                raise StoreError(f"Index '{index_name}' already exists")
            instance.indices[index_name] = _Index(settings=copy.deepcopy(settings or {}))
        logger.debug("InMemoryStoreDriver: created index %s", index_name)

    def put_mapping(
        self, handle: InMemoryHandle, index_name: str, type_name: str, mapping: dict[str, Any]
    ) -> None:
        with self._lock:
            index = self._index(handle, index_name)
            index.mappings[type_name] = copy.deepcopy(mapping)
        logger.debug("InMemoryStoreDriver: put mapping %s/%s", index_name, type_name)

    def delete_index(self, handle: InMemoryHandle, index_name: str) -> None:
        with self._lock:
            instance = self._instance(handle)
            if index_name not in instance.indices:
                raise IndexNotFoundError(f"Index '{index_name}' not found")
            del instance.indices[index_name]
        logger.debug("InMemoryStoreDriver: deleted index %s", index_name)

    def get_mapping(
        self, handle: InMemoryHandle, index_name: str, type_name: str
    ) -> dict[str, Any] | None:
        with self._lock:
            mapping = self._index(handle, index_name).mappings.get(type_name)
            return copy.deepcopy(mapping) if mapping is not None else None

    def get_settings(self, handle: InMemoryHandle, index_name: str) -> dict[str, Any]:
        """Return the settings an index was created with (useful for testing)."""
        with self._lock:
            return copy.deepcopy(self._index(handle, index_name).settings)

    def list_indices(self, handle: InMemoryHandle) -> list[str]:
        """Return the names of the indices of a running instance (useful for testing)."""
        with self._lock:
            return list(self._instance(handle).indices)
