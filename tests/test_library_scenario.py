# SPDX-License-Identifier: MIT
# Copyright (c) 2025 docstore-fixtures contributors

"""End-to-end tests of the library index: a book type and its rating children."""

from pathlib import Path

import pytest

from docstore_fixtures import (
    FixtureOrchestrator,
    FixtureState,
    IndexAlreadyExistsError,
    compile_schema,
)

DATA_DIR = Path(__file__).parent / "data"


@pytest.fixture
def shared_orchestrator(fast_config, driver, registry):
    """Orchestrator on a shared instance so indices can be inspected after teardown."""
    return FixtureOrchestrator(config=fast_config.with_overrides(shared=True), driver=driver, registry=registry)


class TestLibraryScenario:
    """The library index installed, verified, used and removed."""

    def test_installed_mappings_read_back(self, fast_config, driver, registry, library_spec):
        """Test that the installed book and rating mappings match the compiled schema."""
        orchestrator = FixtureOrchestrator(
            config=fast_config.with_overrides(verify_mappings=True), driver=driver, registry=registry
        )
        expected = compile_schema(library_spec)

        with orchestrator.fixture_scope(library_spec) as fixture:
            assert fixture.state is FixtureState.VERIFIED
            book = driver.get_mapping(fixture.handle, "library", "book")
            rating = driver.get_mapping(fixture.handle, "library", "rating")

        assert book == expected.mappings["book"]
        assert rating == expected.mappings["rating"]
        assert book["_ttl"] == {"enabled": True, "default": 172800000}
        assert book["_source"]["enabled"] is False
        assert rating["_parent"] == {"type": "book"}
        assert rating["_source"]["compress_threshold"] == "10kb"
        assert book["properties"]["name"]["fields"]["untouched"]["index"] == "not_analyzed"

    def test_index_removed_after_scope(self, shared_orchestrator, driver, library_spec):
        """Test that the library index is gone once the fixture is released."""
        with shared_orchestrator.fixture_scope(library_spec) as fixture:
            assert driver.index_exists(fixture.handle, "library")

        assert fixture.state is FixtureState.TORN_DOWN
        assert not driver.index_exists(fixture.handle, "library")

    def test_index_removed_after_failing_test(self, shared_orchestrator, driver, library_spec):
        """Test that a failing test body still leaves no index behind."""
        with pytest.raises(AssertionError):
            with shared_orchestrator.fixture_scope(library_spec) as fixture:
                assert False, "test body failed"

        assert not driver.index_exists(fixture.handle, "library")

    def test_existing_library_is_preserved(self, shared_orchestrator, driver, library_spec):
        """Test that a pre-existing library index is neither changed nor dropped."""
        owner = shared_orchestrator.acquire_instance()
        legacy = {"properties": {"isbn": {"type": "string"}}}
        driver.create_index(owner.handle, "library")
        driver.put_mapping(owner.handle, "library", "book", legacy)

        with pytest.raises(IndexAlreadyExistsError):
            with shared_orchestrator.fixture_scope(library_spec):
                pytest.fail("block must not run")

        assert driver.index_exists(owner.handle, "library")
        assert driver.get_mapping(owner.handle, "library", "book") == legacy
        assert driver.get_mapping(owner.handle, "library", "rating") is None
        shared_orchestrator.teardown(owner)

    def test_declared_in_yaml(self, fast_config, driver, registry, library_spec):
        """Test that the YAML declaration installs the same mappings as the object tree."""
        orchestrator = FixtureOrchestrator(
            config=fast_config.with_overrides(verify_mappings=True), driver=driver, registry=registry
        )

        with orchestrator.fixture_scope(DATA_DIR / "library.yaml") as fixture:
            installed = fixture.installed["library"]

        assert installed == compile_schema(library_spec)
