# SPDX-License-Identifier: MIT
# Copyright (c) 2025 docstore-fixtures contributors

"""Lifecycle of a store fixture around a single test execution.

A fixture moves through ``CREATED -> INSTANCE_READY -> SCHEMA_INSTALLED ->
VERIFIED -> TORN_DOWN``; any non-terminal state can fall into ``ERROR``.
Phases of one fixture are serialized by a per-fixture lock. Teardown runs on
every exit path, never raises, and is a no-op once the fixture is torn down.
"""

import logging
import math
import threading
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterable, Iterator, TypeVar

from .config import FixtureConfig
from .declarative import coerce_index_specs
from .exceptions import (
    FixtureStateError,
    IndexAlreadyExistsError,
    InstanceUnavailableError,
    MappingMismatchError,
    TeardownError,
)
from .factory import create_store_driver
from .models import IndexSpec
from .registry import FixtureRegistry, get_registry
from .schema_compiler import CompiledSchema, compile_schema, compile_schemas
from .store import IndexNotFoundError, StoreConnectionError, StoreDriver, StoreError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Field options the store applies when the compiled field omits them
_IMPLICIT_FIELD_DEFAULTS = {
    "store": (False, "no"),
    "index": ("analyzed",),
    "term_vector": ("no",),
}


class FixtureState(str, Enum):
    """Lifecycle states of a fixture."""

    CREATED = "created"
    INSTANCE_READY = "instance_ready"
    SCHEMA_INSTALLED = "schema_installed"
    VERIFIED = "verified"
    TORN_DOWN = "torn_down"
    ERROR = "error"


@dataclass(eq=False)
class Fixture:
    """Runtime binding between a test execution and a store instance.

    Attributes:
        fixture_id: Unique identifier
        config: Configuration the fixture was acquired with
        driver: Driver used to talk to the instance
        test_id: Identifier of the owning test, if known
        handle: Instance handle (None until an instance is acquired)
        owned_exclusively: True when the instance was started for this fixture
        state: Current lifecycle state
        installed: Installed index name -> compiled schema, in install order
        teardown_errors: Failures collected by teardown
    """

    fixture_id: str
    config: FixtureConfig
    driver: StoreDriver
    test_id: str | None = None
    handle: Any = None
    owned_exclusively: bool = True
    state: FixtureState = FixtureState.CREATED
    installed: dict[str, CompiledSchema] = field(default_factory=dict)
    teardown_errors: list[TeardownError] = field(default_factory=list)
    index_specs: dict[str, IndexSpec] = field(default_factory=dict, repr=False)
    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    @property
    def installed_indices(self) -> set[str]:
        """Names of the indices installed by this fixture."""
        return set(self.installed)

    @property
    def instance_key(self) -> Any:
        """Registry key of the instance the fixture runs against."""
        return self.config.shared_key()


def diff_mappings(expected: dict[str, Any], actual: dict[str, Any], path: str = "") -> list[str]:
    """List the differences between a compiled mapping and the installed one.

    Every key of ``expected`` must be present in ``actual`` with an equal value;
    the store may add keys of its own. Field options omitted from the compiled
    field because they are store defaults must not be set to anything else.

    Returns:
        One human-readable entry per differing path (empty when they match)
    """
    differences: list[str] = []

    for key, value in expected.items():
        where = f"{path}.{key}" if path else key
        if key not in actual:
            differences.append(f"{where}: missing (expected {value!r})")
        elif isinstance(value, dict) and isinstance(actual[key], dict):
            differences.extend(diff_mappings(value, actual[key], where))
        elif actual[key] != value:
            differences.append(f"{where}: expected {value!r}, got {actual[key]!r}")

    if "type" in expected:
        for key, defaults in _IMPLICIT_FIELD_DEFAULTS.items():
            if key not in expected and key in actual and actual[key] not in defaults:
                where = f"{path}.{key}" if path else key
                differences.append(f"{where}: expected store default, got {actual[key]!r}")

    return differences


class FixtureOrchestrator:
    """Acquires store instances, installs compiled schemas and tears them down.

    Args:
        config: Fixture configuration (defaults to ``FixtureConfig.from_env()``)
        driver: Store driver (defaults to one built from the configuration)
        registry: Fixture registry (defaults to the process-wide registry)
    """

    def __init__(
        self,
        config: FixtureConfig | None = None,
        driver: StoreDriver | None = None,
        registry: FixtureRegistry | None = None,
    ):
        self.config = config or FixtureConfig.from_env()
        self.driver = driver or create_store_driver(self.config)
        self.registry = registry or get_registry()

    # Polling

    def _wait_until(self, predicate: Callable[[], bool], description: str) -> bool:
        """Poll a predicate at a fixed interval until it holds or the budget runs out."""
        interval = self.config.poll_interval_seconds
        timeout = self.config.ready_timeout_seconds
        attempts = max(1, math.ceil(timeout / interval))
        deadline = time.monotonic() + timeout

        for attempt in range(1, attempts + 1):
            try:
                if predicate():
                    return True
            except StoreConnectionError as e:
                logger.debug("FixtureOrchestrator: %s - store not reachable (%s)", description, e)
            if attempt == attempts or time.monotonic() >= deadline:
                break
            time.sleep(interval)

        logger.warning(
            "FixtureOrchestrator: gave up waiting for %s after %d attempt(s) (%.2fs)",
            description,
            attempt,
            timeout,
        )
        return False

    # State handling

    @staticmethod
    def _require_state(fixture: Fixture, allowed: Iterable[FixtureState], action: str) -> None:
        allowed = tuple(allowed)
        if fixture.state not in allowed:
            raise FixtureStateError(
                f"Cannot {action} for fixture {fixture.fixture_id} in state '{fixture.state.value}' "
                f"(expected one of: {', '.join(state.value for state in allowed)})"
            )

    @staticmethod
    def _set_state(fixture: Fixture, state: FixtureState) -> None:
        logger.debug(
            "FixtureOrchestrator: fixture %s %s -> %s", fixture.fixture_id, fixture.state.value, state.value
        )
        fixture.state = state

    # Instances

    @staticmethod
    def _stop_quietly(driver: StoreDriver, handle: Any) -> None:
        try:
            driver.stop(handle)
        except Exception as e:
            logger.warning("FixtureOrchestrator: failed to stop unready instance - %s", e)

    def _start_ready_instance(self, driver: StoreDriver) -> Any:
        """Start an instance and wait until it is ready; stop it again on timeout."""
        try:
            handle = driver.start(self.config)
        except StoreError as e:
            raise InstanceUnavailableError(f"Failed to start store instance: {e}") from e

        try:
            ready = self._wait_until(lambda: driver.is_ready(handle), f"instance '{self.config.instance_name}'")
        except BaseException:
            self._stop_quietly(driver, handle)
            raise
        if ready:
            return handle

        self._stop_quietly(driver, handle)
        raise InstanceUnavailableError(
            f"Store instance '{self.config.instance_name}' not ready within "
            f"{self.config.ready_timeout_seconds}s"
        )

    def acquire_instance(self, test_id: str | None = None) -> Fixture:
        """Create a fixture bound to a ready store instance.

        The instance is started exclusively for the fixture unless the
        configuration asks for a shared one, which is then taken from the
        registry.

        Args:
            test_id: Identifier of the owning test

        Returns:
            Fixture in state INSTANCE_READY

        Raises:
            InstanceUnavailableError: If no ready instance could be obtained
                within the retry budget
        """
        fixture = Fixture(
            fixture_id=uuid.uuid4().hex,
            config=self.config,
            driver=self.driver,
            test_id=test_id,
            owned_exclusively=not self.config.shared,
        )
        self.registry.register(fixture)

        with fixture._lock:
            try:
                if self.config.shared:
                    shared = self.registry.acquire_shared(
                        fixture.instance_key,
                        lambda: (self.driver, self._start_ready_instance(self.driver)),
                    )
                    fixture.driver = shared.driver
                    fixture.handle = shared.handle
                    if not self._wait_until(
                        lambda: shared.driver.is_ready(shared.handle), f"shared instance {shared.key}"
                    ):
                        raise InstanceUnavailableError(f"Shared store instance {shared.key} is not ready")
                else:
                    fixture.handle = self._start_ready_instance(self.driver)
            except BaseException:
                self._set_state(fixture, FixtureState.ERROR)
                self.teardown(fixture)
                raise

            self._set_state(fixture, FixtureState.INSTANCE_READY)

        logger.info(
            "FixtureOrchestrator: fixture %s acquired %s instance '%s'",
            fixture.fixture_id,
            "exclusive" if fixture.owned_exclusively else "shared",
            self.config.instance_name,
        )
        return fixture

    # Schemas

    def install_schema(self, fixture: Fixture, spec: IndexSpec) -> CompiledSchema:
        """Compile an index specification and install it on the fixture's instance.

        Args:
            fixture: Fixture with a ready instance
            spec: Index to install

        Returns:
            The compiled schema that was installed

        Raises:
            CompilationError: If the specification does not compile (nothing
                is sent to the store)
            IndexAlreadyExistsError: If the index exists and recreation was
                not requested; the existing index is left untouched
            InstanceUnavailableError: If the index does not become visible in time
            StoreError: If the store rejects an operation
        """
        with fixture._lock:
            self._require_state(
                fixture,
                (FixtureState.INSTANCE_READY, FixtureState.SCHEMA_INSTALLED, FixtureState.VERIFIED),
                "install a schema",
            )
            try:
                compiled = self._install(fixture, spec)
            except BaseException:
                self._set_state(fixture, FixtureState.ERROR)
                raise
            self._set_state(fixture, FixtureState.SCHEMA_INSTALLED)

        if self.config.verify_mappings:
            self.verify(fixture, [spec.name])
        return compiled

    def _install(self, fixture: Fixture, spec: IndexSpec) -> CompiledSchema:
        compiled = compile_schema(spec)
        name = compiled.index_name
        driver, handle = fixture.driver, fixture.handle

        if name in fixture.installed:
            raise IndexAlreadyExistsError(name, f"Index '{name}' is already installed by this fixture")

        if not fixture.owned_exclusively:
            self.registry.claim_index(fixture.instance_key, name, fixture.fixture_id)

        if driver.index_exists(handle, name):
            if not (spec.force_recreate or self.config.force_recreate):
                raise IndexAlreadyExistsError(name)
            logger.info("FixtureOrchestrator: index %s exists, recreating it", name)
            driver.delete_index(handle, name)
            if not self._wait_until(lambda: not driver.index_exists(handle, name), f"removal of index '{name}'"):
                raise InstanceUnavailableError(f"Index '{name}' was not removed in time")

        driver.create_index(handle, name, compiled.settings or None)
        # Recorded before the mappings go in so a partial install is still cleaned up
        fixture.installed[name] = compiled
        fixture.index_specs[name] = spec

        if not self._wait_until(lambda: driver.index_exists(handle, name), f"index '{name}'"):
            raise InstanceUnavailableError(f"Index '{name}' did not become available in time")

        for type_name, mapping in compiled.mappings.items():
            driver.put_mapping(handle, name, type_name, mapping)
            logger.debug("FixtureOrchestrator: installed mapping %s/%s", name, type_name)

        logger.info(
            "FixtureOrchestrator: installed index %s with types %s", name, list(compiled.mappings)
        )
        return compiled

    def verify(self, fixture: Fixture, index_names: Iterable[str] | None = None) -> None:
        """Check that installed indices exist with the mappings that were compiled.

        Args:
            fixture: Fixture with installed schemas
            index_names: Indices to check (defaults to every installed index)

        Raises:
            MappingMismatchError: Listing every difference found
        """
        with fixture._lock:
            self._require_state(
                fixture, (FixtureState.SCHEMA_INSTALLED, FixtureState.VERIFIED), "verify mappings"
            )
            names = list(index_names) if index_names is not None else list(fixture.installed)

            differences: list[str] = []
            for name in names:
                compiled = fixture.installed.get(name)
                if compiled is None:
                    differences.append(f"{name}: not installed by this fixture")
                    continue
                if not fixture.driver.index_exists(fixture.handle, name):
                    differences.append(f"{name}: index does not exist")
                    continue
                for type_name, expected in compiled.mappings.items():
                    actual = fixture.driver.get_mapping(fixture.handle, name, type_name)
                    if actual is None:
                        differences.append(f"{name}/{type_name}: mapping not found")
                        continue
                    differences.extend(diff_mappings(expected, actual, f"{name}/{type_name}"))

            if differences:
                self._set_state(fixture, FixtureState.ERROR)
                raise MappingMismatchError(differences)

            self._set_state(fixture, FixtureState.VERIFIED)
        logger.debug("FixtureOrchestrator: verified indices %s", names)

    # Teardown

    def teardown(self, fixture: Fixture) -> list[TeardownError]:
        """Release everything the fixture holds.

        Drops the installed indices (unless declared with ``clean_after`` off),
        stops an exclusively owned instance or releases a shared one, and
        unregisters the fixture. Failures are logged and collected, never
        raised. Calling it again on a torn-down fixture does nothing.

        Returns:
            Failures encountered (also stored on ``fixture.teardown_errors``)
        """
        with fixture._lock:
            if fixture.state is FixtureState.TORN_DOWN:
                return []

            errors: list[TeardownError] = []
            driver, handle = fixture.driver, fixture.handle

            if handle is not None:
                for name in reversed(list(fixture.installed)):
                    errors.extend(self._drop_index(fixture, name))

                if fixture.owned_exclusively:
                    try:
                        driver.stop(handle)
                        logger.debug("FixtureOrchestrator: stopped instance of fixture %s", fixture.fixture_id)
                    except Exception as e:
                        logger.warning("FixtureOrchestrator: failed to stop instance - %s", e)
                        errors.append(
                            TeardownError(f"Failed to stop instance: {e}", operation="stop", target=handle)
                        )
                else:
                    self.registry.release_shared(fixture.instance_key)

            self.registry.unregister(fixture.fixture_id)
            fixture.teardown_errors = errors
            self._set_state(fixture, FixtureState.TORN_DOWN)

        if errors:
            logger.warning(
                "FixtureOrchestrator: fixture %s torn down with %d failure(s): %s",
                fixture.fixture_id,
                len(errors),
                "; ".join(str(e) for e in errors),
            )
        else:
            logger.info("FixtureOrchestrator: fixture %s torn down", fixture.fixture_id)
        return errors

    def _drop_index(self, fixture: Fixture, name: str) -> list[TeardownError]:
        spec = fixture.index_specs.get(name)
        if spec is not None and not spec.clean_after:
            logger.debug("FixtureOrchestrator: keeping index %s (clean_after disabled)", name)
            return []

        try:
            fixture.driver.delete_index(fixture.handle, name)
            logger.debug("FixtureOrchestrator: dropped index %s", name)
        except IndexNotFoundError:
            logger.debug("FixtureOrchestrator: index %s already gone", name)
        except Exception as e:
            logger.warning("FixtureOrchestrator: failed to drop index %s - %s", name, e)
            return [TeardownError(f"Failed to drop index '{name}': {e}", operation="delete_index", target=name)]

        if not fixture.owned_exclusively:
            self.registry.release_index(fixture.instance_key, name, fixture.fixture_id)
        return []

    # Scoped acquisition

    @contextmanager
    def fixture_scope(self, index_specs: Any = (), test_id: str | None = None) -> Iterator[Fixture]:
        """Provide a fixture with the given indices installed for the duration of a block.

        All specifications are compiled before the store is contacted. The
        fixture is torn down however the block exits. Teardown failures never
        replace an exception raised by the block; when the block succeeded they
        are raised as ``TeardownError`` only if ``strict_teardown`` is set.

        Args:
            index_specs: IndexSpec, declaration, file path, or a sequence of those
            test_id: Identifier of the owning test

        Yields:
            Fixture with every index installed
        """
        specs = coerce_index_specs(index_specs)
        compile_schemas(specs)

        fixture = self.acquire_instance(test_id)
        failed = False
        try:
            for spec in specs:
                self.install_schema(fixture, spec)
            yield fixture
        except BaseException:
            failed = True
            raise
        finally:
            errors = self.teardown(fixture)
            if errors and failed:
                logger.error(
                    "FixtureOrchestrator: teardown of fixture %s also failed: %s",
                    fixture.fixture_id,
                    "; ".join(str(e) for e in errors),
                )
            elif errors and self.config.strict_teardown:
                raise TeardownError(
                    f"Teardown of fixture {fixture.fixture_id} failed with {len(errors)} error(s)",
                    operation="teardown",
                    target=fixture.fixture_id,
                    errors=errors,
                )

    def run_with_fixture(
        self, body: Callable[[Fixture], T], index_specs: Any = (), test_id: str | None = None
    ) -> T:
        """Run ``body`` with a fixture inside ``fixture_scope`` and return its result."""
        with self.fixture_scope(index_specs, test_id=test_id) as fixture:
            return body(fixture)


@contextmanager
def fixture_scope(
    index_specs: Any = (),
    config: FixtureConfig | None = None,
    driver: StoreDriver | None = None,
    test_id: str | None = None,
) -> Iterator[Fixture]:
    """Shortcut for ``FixtureOrchestrator(config, driver).fixture_scope(...)``."""
    orchestrator = FixtureOrchestrator(config=config, driver=driver)
    with orchestrator.fixture_scope(index_specs, test_id=test_id) as fixture:
        yield fixture
