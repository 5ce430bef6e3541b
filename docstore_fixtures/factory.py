# SPDX-License-Identifier: MIT
# Copyright (c) 2025 docstore-fixtures contributors

"""Factory for creating store drivers based on configuration."""

import logging
from typing import Callable, Mapping

from .config import FixtureConfig
from .http_store import HttpStoreDriver
from .inmemory_store import InMemoryStoreDriver
from .store import StoreDriver

logger = logging.getLogger(__name__)


def _build_inmemory(config: FixtureConfig) -> StoreDriver:
    return InMemoryStoreDriver.from_config(config)


def _build_http(config: FixtureConfig) -> StoreDriver:
    return HttpStoreDriver.from_config(config)


DRIVERS: Mapping[str, Callable[[FixtureConfig], StoreDriver]] = {
    "inmemory": _build_inmemory,
    "http": _build_http,
}


def create_store_driver(config: FixtureConfig) -> StoreDriver:
    """Create the store driver selected by ``config.driver``.

    Args:
        config: Fixture configuration

    Returns:
        StoreDriver instance

    Raises:
        ValueError: If config is missing or the driver is unknown
    """
    if config is None:
        raise ValueError("store driver config is required")

    driver_type = str(config.driver).lower()
    try:
        factory = DRIVERS[driver_type]
    except KeyError as exc:
        supported = ", ".join(sorted(DRIVERS))
        raise ValueError(f"Unknown store driver: {driver_type}. Supported drivers: {supported}") from exc

    logger.debug("create_store_driver: building %s driver", driver_type)
    return factory(config)
