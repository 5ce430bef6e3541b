# SPDX-License-Identifier: MIT
# Copyright (c) 2025 docstore-fixtures contributors

"""Tests for the in-memory store driver."""

import pytest

from docstore_fixtures import (
    FixtureConfig,
    IndexNotFoundError,
    InMemoryStoreDriver,
    StoreConnectionError,
    StoreDriver,
    StoreError,
)


@pytest.fixture
def handle(driver, fast_config):
    """A running in-memory instance."""
    handle = driver.start(fast_config)
    yield handle
    driver.stop(handle)


class TestInMemoryStoreDriver:
    """Tests for InMemoryStoreDriver."""

    def test_is_store_driver(self, driver):
        """Test that the driver implements the StoreDriver interface."""
        assert isinstance(driver, StoreDriver)

    def test_start_uses_instance_name(self, handle):
        """Test that the handle carries the configured instance name."""
        assert handle.name == "test-node"

    def test_instances_are_independent(self, driver, fast_config):
        """Test that two started instances do not share indices."""
        first = driver.start(fast_config)
        second = driver.start(fast_config)
        driver.create_index(first, "library")

        assert driver.index_exists(first, "library")
        assert not driver.index_exists(second, "library")

    def test_ready_immediately_by_default(self, driver, handle):
        """Test that a fresh instance is ready without startup polls."""
        assert driver.is_ready(handle) is True

    def test_startup_polls(self, fast_config):
        """Test that readiness is delayed by the configured number of polls."""
        driver = InMemoryStoreDriver(startup_polls=2)
        handle = driver.start(fast_config)

        assert [driver.is_ready(handle) for _ in range(3)] == [False, False, True]

    def test_negative_startup_polls(self):
        """Test that negative startup polls are rejected."""
        with pytest.raises(ValueError):
            InMemoryStoreDriver(startup_polls=-1)

    def test_from_config(self):
        """Test that driver options are read from the config."""
        config = FixtureConfig(driver_options={"startup_polls": 3})

        assert InMemoryStoreDriver.from_config(config).startup_polls == 3

    def test_create_and_delete_index(self, driver, handle):
        """Test the index lifecycle."""
        driver.create_index(handle, "library", {"number_of_shards": 1})

        assert driver.index_exists(handle, "library")
        assert driver.get_settings(handle, "library") == {"number_of_shards": 1}
        assert driver.list_indices(handle) == ["library"]

        driver.delete_index(handle, "library")

        assert not driver.index_exists(handle, "library")

    def test_create_existing_index(self, driver, handle):
        """Test that creating an existing index fails."""
        driver.create_index(handle, "library")

        with pytest.raises(StoreError, match="already exists"):
            driver.create_index(handle, "library")

    def test_delete_missing_index(self, driver, handle):
        """Test that deleting a missing index raises IndexNotFoundError."""
        with pytest.raises(IndexNotFoundError):
            driver.delete_index(handle, "library")

    def test_put_and_get_mapping(self, driver, handle):
        """Test that a mapping reads back as installed."""
        driver.create_index(handle, "library")
        driver.put_mapping(handle, "library", "book", {"properties": {"title": {"type": "string"}}})

        assert driver.get_mapping(handle, "library", "book") == {"properties": {"title": {"type": "string"}}}

    def test_get_mapping_of_unknown_type(self, driver, handle):
        """Test that an unmapped type reads back as None."""
        driver.create_index(handle, "library")

        assert driver.get_mapping(handle, "library", "book") is None

    def test_put_mapping_missing_index(self, driver, handle):
        """Test that a mapping cannot be put on a missing index."""
        with pytest.raises(IndexNotFoundError):
            driver.put_mapping(handle, "library", "book", {})

    def test_mappings_are_copied(self, driver, handle):
        """Test that callers cannot mutate stored mappings."""
        mapping = {"properties": {"title": {"type": "string"}}}
        driver.create_index(handle, "library")
        driver.put_mapping(handle, "library", "book", mapping)
        mapping["properties"]["title"]["type"] = "long"
        driver.get_mapping(handle, "library", "book")["properties"].clear()

        assert driver.get_mapping(handle, "library", "book") == {"properties": {"title": {"type": "string"}}}

    def test_stop_is_idempotent(self, driver, handle):
        """Test that stopping twice is a no-op."""
        driver.stop(handle)
        driver.stop(handle)

        assert driver.is_ready(handle) is False

    def test_stop_forgets_instance(self, driver, fast_config):
        """Test that a stopped instance and its indices are released by the driver."""
        handle = driver.start(fast_config)
        driver.create_index(handle, "library")

        driver.stop(handle)

        assert handle.instance_id not in driver._instances
        assert driver._instances == {}

    def test_operations_after_stop(self, driver, handle):
        """Test that a stopped instance refuses index administration."""
        driver.create_index(handle, "library")
        driver.stop(handle)

        with pytest.raises(StoreConnectionError):
            driver.index_exists(handle, "library")
