# SPDX-License-Identifier: MIT
# Copyright (c) 2025 docstore-fixtures contributors

"""Fixture configuration.

Values are resolved with the usual precedence: explicit argument, then
environment variable, then default.
"""

import dataclasses
import os
import shlex
from dataclasses import dataclass, field
from typing import Any, Mapping

SUPPORTED_DRIVERS = ("inmemory", "http")

_TRUE_VALUES = ("true", "1", "yes", "on")
_FALSE_VALUES = ("false", "0", "no", "off")


def _env_bool(environ: Mapping[str, str], key: str, default: bool) -> bool:
    value = environ.get(key)
    if value is None:
        return default
    value_lower = value.strip().lower()
    if value_lower in _TRUE_VALUES:
        return True
    if value_lower in _FALSE_VALUES:
        return False
    raise ValueError(f"Invalid boolean for {key}: {value!r}")


def _env_float(environ: Mapping[str, str], key: str, default: float) -> float:
    value = environ.get(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError as e:
        raise ValueError(f"Invalid number for {key}: {value!r}") from e


@dataclass
class FixtureConfig:
    """Configuration of a fixture and the store instance it runs against.

    Attributes:
        driver: Store driver ("inmemory" or "http")
        shared: Reuse one instance across fixtures instead of starting an
            exclusive one per fixture
        instance_name: Name of the store instance (node name)
        url: Base URL of the store (http driver)
        command: Command line launching the store process (http driver);
            when None the driver attaches to an already running store
        ready_timeout_seconds: How long to wait for readiness and index propagation
        poll_interval_seconds: Delay between readiness polls
        request_timeout_seconds: Timeout of individual store requests
        force_recreate: Drop and recreate indices that already exist
        verify_mappings: Verify installed mappings right after installation
        strict_teardown: Raise teardown failures when the test itself passed
        driver_options: Driver-specific options
    """

    driver: str = "inmemory"
    shared: bool = False
    instance_name: str = "docstore-fixture"
    url: str = "http://localhost:9200"
    command: list[str] | None = None
    ready_timeout_seconds: float = 30.0
    poll_interval_seconds: float = 0.25
    request_timeout_seconds: float = 10.0
    force_recreate: bool = False
    verify_mappings: bool = False
    strict_teardown: bool = False
    driver_options: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.driver = str(self.driver).lower()
        if self.driver not in SUPPORTED_DRIVERS:
            raise ValueError(
                f"Unknown driver: {self.driver}. Supported drivers: {', '.join(SUPPORTED_DRIVERS)}"
            )
        if isinstance(self.command, str):
            self.command = shlex.split(self.command)
        if self.ready_timeout_seconds <= 0:
            raise ValueError("ready_timeout_seconds must be positive")
        if self.poll_interval_seconds <= 0:
            raise ValueError("poll_interval_seconds must be positive")
        if self.request_timeout_seconds <= 0:
            raise ValueError("request_timeout_seconds must be positive")
        self.url = self.url.rstrip("/")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides: Any) -> "FixtureConfig":
        """Build a configuration from DOCSTORE_* environment variables.

        Args:
            environ: Environment mapping (defaults to os.environ)
            **overrides: Explicit values, taking precedence over the environment

        Returns:
            FixtureConfig instance

        Raises:
            ValueError: If a variable holds an invalid value
        """
        environ = os.environ if environ is None else environ
        defaults = cls()

        values: dict[str, Any] = {
            "driver": environ.get("DOCSTORE_DRIVER", defaults.driver),
            "shared": _env_bool(environ, "DOCSTORE_SHARED", defaults.shared),
            "instance_name": environ.get("DOCSTORE_INSTANCE_NAME", defaults.instance_name),
            "url": environ.get("DOCSTORE_URL", defaults.url),
            "command": environ.get("DOCSTORE_COMMAND") or None,
            "ready_timeout_seconds": _env_float(
                environ, "DOCSTORE_READY_TIMEOUT", defaults.ready_timeout_seconds
            ),
            "poll_interval_seconds": _env_float(
                environ, "DOCSTORE_POLL_INTERVAL", defaults.poll_interval_seconds
            ),
            "request_timeout_seconds": _env_float(
                environ, "DOCSTORE_REQUEST_TIMEOUT", defaults.request_timeout_seconds
            ),
            "force_recreate": _env_bool(environ, "DOCSTORE_FORCE_RECREATE", defaults.force_recreate),
            "verify_mappings": _env_bool(environ, "DOCSTORE_VERIFY_MAPPINGS", defaults.verify_mappings),
            "strict_teardown": _env_bool(environ, "DOCSTORE_STRICT_TEARDOWN", defaults.strict_teardown),
        }
        values.update(overrides)
        return cls(**values)

    def with_overrides(self, **overrides: Any) -> "FixtureConfig":
        """Return a copy with the given fields replaced.

        Raises:
            TypeError: If an override names an unknown field
        """
        known = {f.name for f in dataclasses.fields(self)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise TypeError(f"Unknown FixtureConfig option(s): {', '.join(unknown)}")
        return dataclasses.replace(self, **overrides)

    def shared_key(self) -> tuple[str, str, str]:
        """Key identifying the shared instance this configuration resolves to."""
        return (self.driver, self.url, self.instance_name)
