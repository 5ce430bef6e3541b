# SPDX-License-Identifier: MIT
# Copyright (c) 2025 docstore-fixtures contributors

"""Shared fixtures for docstore_fixtures tests."""

import pytest

from docstore_fixtures import (
    FieldSpec,
    FieldType,
    FixtureConfig,
    FixtureOrchestrator,
    FixtureRegistry,
    Index,
    IndexSpec,
    InMemoryStoreDriver,
    MultiFieldGroup,
    Store,
    TermVector,
    TypeMapping,
)


def build_library_spec() -> IndexSpec:
    """The "library" index with a "book" type and a "rating" child type."""
    book = TypeMapping(
        type_name="book",
        source_enabled=False,
        compress=False,
        ttl_enabled=True,
        ttl_value="2d",
        timestamp_enabled=True,
        timestamp_format="YYYY-MM-dd",
        timestamp_path="publication_date",
        fields=[
            FieldSpec(name="title", store=Store.YES, value_type=FieldType.STRING),
            FieldSpec(name="author", store=Store.NO, value_type=FieldType.STRING, index=Index.NOT_ANALYZED),
            FieldSpec(
                name="description",
                store=Store.YES,
                value_type=FieldType.STRING,
                index=Index.ANALYZED,
                analyzer_name="standard",
            ),
            FieldSpec(
                name="role",
                store=Store.NO,
                value_type=FieldType.STRING,
                index=Index.ANALYZED,
                index_analyzer_name="keyword",
                search_analyzer_name="standard",
            ),
            FieldSpec(
                name="publication_date", store=Store.NO, value_type=FieldType.DATE, index=Index.NOT_ANALYZED
            ),
        ],
        multi_field_groups=[
            MultiFieldGroup(
                group_name="name",
                fields=[
                    FieldSpec(
                        name="name",
                        value_type=FieldType.STRING,
                        index=Index.ANALYZED,
                        term_vector=TermVector.WITH_OFFSETS,
                    ),
                    FieldSpec(
                        name="untouched",
                        value_type=FieldType.STRING,
                        index=Index.NOT_ANALYZED,
                        term_vector=TermVector.WITH_POSITIONS_OFFSETS,
                    ),
                ],
            )
        ],
    )
    rating = TypeMapping(
        type_name="rating",
        source_enabled=True,
        compress=True,
        compress_threshold="10kb",
        parent_type="book",
        fields=[FieldSpec(name="stars", index=Index.NOT_ANALYZED, value_type=FieldType.INTEGER)],
    )
    return IndexSpec(name="library", type_mappings=[book, rating])


@pytest.fixture
def library_spec():
    """IndexSpec of the library scenario."""
    return build_library_spec()


@pytest.fixture
def fast_config():
    """Configuration with short timeouts so failure paths finish quickly."""
    return FixtureConfig(
        driver="inmemory",
        instance_name="test-node",
        ready_timeout_seconds=0.2,
        poll_interval_seconds=0.01,
    )


@pytest.fixture
def driver():
    """Fresh in-memory store driver."""
    return InMemoryStoreDriver()


@pytest.fixture
def registry():
    """Isolated fixture registry, shut down after the test."""
    registry = FixtureRegistry()
    yield registry
    registry.shutdown()


@pytest.fixture
def orchestrator(fast_config, driver, registry):
    """Orchestrator wired to the in-memory driver and an isolated registry."""
    return FixtureOrchestrator(config=fast_config, driver=driver, registry=registry)
