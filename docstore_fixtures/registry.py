# SPDX-License-Identifier: MIT
# Copyright (c) 2025 docstore-fixtures contributors

"""Process-wide bookkeeping of active fixtures and shared store instances.

Fixtures get an exclusive store instance by default. Sharing one instance
across fixtures is an explicit opt-in (``FixtureConfig.shared``); shared
instances are started once, reference counted, and stopped by ``shutdown()``.
While fixtures run concurrently on a shared instance, each index name can be
claimed by only one of them.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Hashable

from .exceptions import IndexAlreadyExistsError, TeardownError
from .store import StoreDriver

logger = logging.getLogger(__name__)


@dataclass
class SharedInstance:
    """A store instance shared between fixtures.

    Attributes:
        key: Registry key of the instance
        driver: Driver that started the instance
        handle: Instance handle
        ref_count: Number of fixtures currently using the instance
    """

    key: Hashable
    driver: StoreDriver
    handle: Any
    ref_count: int = 0


class FixtureRegistry:
    """Thread-safe registry of fixtures, shared instances and index claims."""

    def __init__(self):
        self._lock = threading.Lock()
        self._fixtures: dict[str, Any] = {}
        self._shared: dict[Hashable, SharedInstance] = {}
        self._start_locks: dict[Hashable, threading.Lock] = {}
        self._claims: dict[tuple[Hashable, str], str] = {}

    # Fixtures

    def register(self, fixture: Any) -> None:
        """Start tracking a fixture."""
        with self._lock:
            self._fixtures[fixture.fixture_id] = fixture
        logger.debug("FixtureRegistry: registered fixture %s", fixture.fixture_id)

    def unregister(self, fixture_id: str) -> None:
        """Stop tracking a fixture and release its index claims."""
        with self._lock:
            self._fixtures.pop(fixture_id, None)
            for claim, owner in list(self._claims.items()):
                if owner == fixture_id:
                    del self._claims[claim]
        logger.debug("FixtureRegistry: unregistered fixture %s", fixture_id)

    def active_fixtures(self) -> list[Any]:
        """Return the fixtures currently tracked."""
        with self._lock:
            return list(self._fixtures.values())

    # Shared instances

    def acquire_shared(
        self,
        key: Hashable,
        starter: Callable[[], tuple[StoreDriver, Any]],
    ) -> SharedInstance:
        """Return the shared instance for a key, starting it on first use.

        Args:
            key: Registry key (see FixtureConfig.shared_key)
            starter: Called once to start the instance; returns (driver, handle)

        Returns:
            The shared instance, with its reference count incremented

        Raises:
            Exception: Whatever ``starter`` raises; nothing is registered then
        """
        with self._lock:
            start_lock = self._start_locks.setdefault(key, threading.Lock())

        # Only callers of the same key wait for a slow start
        with start_lock:
            with self._lock:
                shared = self._shared.get(key)
                if shared is not None:
                    shared.ref_count += 1
                    return shared

            driver, handle = starter()

            with self._lock:
                shared = SharedInstance(key=key, driver=driver, handle=handle, ref_count=1)
                self._shared[key] = shared
            logger.info("FixtureRegistry: started shared instance %s", key)
            return shared

    def release_shared(self, key: Hashable) -> None:
        """Drop one reference to a shared instance. The instance keeps running."""
        with self._lock:
            shared = self._shared.get(key)
            if shared is not None and shared.ref_count > 0:
                shared.ref_count -= 1

    def shared_instances(self) -> list[SharedInstance]:
        """Return the shared instances currently running."""
        with self._lock:
            return list(self._shared.values())

    # Index claims

    def claim_index(self, instance_key: Hashable, index_name: str, fixture_id: str) -> None:
        """Reserve an index name on a shared instance for one fixture.

        Raises:
            IndexAlreadyExistsError: If another active fixture holds the name
        """
        with self._lock:
            owner = self._claims.get((instance_key, index_name))
            if owner is not None and owner != fixture_id:
                raise IndexAlreadyExistsError(
                    index_name,
                    f"Index '{index_name}' is in use by active fixture {owner}",
                )
            self._claims[(instance_key, index_name)] = fixture_id

    def release_index(self, instance_key: Hashable, index_name: str, fixture_id: str) -> None:
        """Release an index claim held by a fixture."""
        with self._lock:
            if self._claims.get((instance_key, index_name)) == fixture_id:
                del self._claims[(instance_key, index_name)]

    # Shutdown

    def shutdown(self) -> list[TeardownError]:
        """Stop every shared instance.

        Returns:
            Failures encountered while stopping instances (also logged)
        """
        with self._lock:
            shared = list(self._shared.values())
            self._shared.clear()
            self._start_locks.clear()

        errors: list[TeardownError] = []
        for instance in shared:
            if instance.ref_count:
                logger.warning(
                    "FixtureRegistry: stopping shared instance %s still used by %d fixture(s)",
                    instance.key,
                    instance.ref_count,
                )
            try:
                instance.driver.stop(instance.handle)
                logger.info("FixtureRegistry: stopped shared instance %s", instance.key)
            except Exception as e:
                logger.warning("FixtureRegistry: failed to stop shared instance %s - %s", instance.key, e)
                errors.append(
                    TeardownError(
                        f"Failed to stop shared instance {instance.key}: {e}",
                        operation="stop",
                        target=instance.key,
                    )
                )
        return errors


_DEFAULT_REGISTRY = FixtureRegistry()
_DEFAULT_REGISTRY_LOCK = threading.Lock()


def get_registry() -> FixtureRegistry:
    """Return the process-wide default registry."""
    return _DEFAULT_REGISTRY


def reset_registry() -> list[TeardownError]:
    """Shut the default registry down and replace it with an empty one.

    This function is primarily intended for testing purposes.

    Returns:
        Failures encountered while stopping shared instances
    """
    global _DEFAULT_REGISTRY
    with _DEFAULT_REGISTRY_LOCK:
        previous = _DEFAULT_REGISTRY
        _DEFAULT_REGISTRY = FixtureRegistry()
    return previous.shutdown()
