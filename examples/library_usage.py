#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
# Copyright (c) 2025 docstore-fixtures contributors

"""Example demonstrating docstore fixtures.

This example shows how to:
- Compile an index specification into its wire-format mappings
- Declare the same index as plain data
- Run code against a store with the index installed
- Handle an index that already exists
"""

import json
import logging
import sys
from pathlib import Path

# Add repo root to path for standalone execution
sys.path.insert(0, str(Path(__file__).parent.parent))

from docstore_fixtures import (
    FieldSpec,
    FieldType,
    FixtureConfig,
    FixtureOrchestrator,
    Index,
    IndexAlreadyExistsError,
    IndexSpec,
    InMemoryStoreDriver,
    MultiFieldGroup,
    Store,
    TermVector,
    TypeMapping,
    compile_schema,
    index_spec_from_dict,
)

LIBRARY = IndexSpec(
    name="library",
    type_mappings=[
        TypeMapping(
            type_name="book",
            source_enabled=False,
            ttl_enabled=True,
            ttl_value="2d",
            timestamp_enabled=True,
            timestamp_format="YYYY-MM-dd",
            timestamp_path="publication_date",
            fields=[
                FieldSpec(name="title", store=Store.YES),
                FieldSpec(name="author", index=Index.NOT_ANALYZED),
                FieldSpec(name="publication_date", value_type=FieldType.DATE, index=Index.NOT_ANALYZED),
            ],
            multi_field_groups=[
                MultiFieldGroup(
                    group_name="name",
                    fields=[
                        FieldSpec(name="name", term_vector=TermVector.WITH_OFFSETS),
                        FieldSpec(name="untouched", index=Index.NOT_ANALYZED),
                    ],
                )
            ],
        ),
        TypeMapping(
            type_name="rating",
            compress=True,
            compress_threshold="10kb",
            parent_type="book",
            fields=[FieldSpec(name="stars", value_type=FieldType.INTEGER, index=Index.NOT_ANALYZED)],
        ),
    ],
)


def example_compile():
    """Example 1: Compile the library index."""
    print("=" * 70)
    print("Example 1: Compiling an Index Specification")
    print("=" * 70)

    schema = compile_schema(LIBRARY)
    print(json.dumps(schema.to_dict(), indent=2))
    print()


def example_declarative():
    """Example 2: Declare an index as plain data."""
    print("=" * 70)
    print("Example 2: Declarative Index")
    print("=" * 70)

    spec = index_spec_from_dict(
        {
            "name": "catalog",
            "mappings": [
                {
                    "type": "item",
                    "ttl": True,
                    "ttl_value": "1h",
                    "properties": [{"name": "sku", "index": "not_analyzed"}],
                }
            ],
        }
    )
    print(f"\nTypes: {spec.type_names}")
    print(f"item: {compile_schema(spec).mappings['item']}")
    print()


def example_fixture_scope(orchestrator):
    """Example 3: Run code with the library index installed."""
    print("=" * 70)
    print("Example 3: Fixture Scope")
    print("=" * 70)

    with orchestrator.fixture_scope(LIBRARY, test_id="example") as fixture:
        print(f"\nFixture {fixture.fixture_id} in state {fixture.state.value}")
        print(f"Installed indices: {sorted(fixture.installed_indices)}")
        ttl = fixture.driver.get_mapping(fixture.handle, "library", "book")["_ttl"]
        print(f"book _ttl: {ttl}")

    print(f"After the scope: {fixture.state.value}")
    print()


def example_existing_index(orchestrator, driver):
    """Example 4: An index that already exists is left alone."""
    print("=" * 70)
    print("Example 4: Existing Index")
    print("=" * 70)

    owner = orchestrator.acquire_instance()
    driver.create_index(owner.handle, "library")

    try:
        with orchestrator.fixture_scope(LIBRARY):
            pass
    except IndexAlreadyExistsError as e:
        print(f"\n✗ {e} (expected)")
    finally:
        orchestrator.teardown(owner)
    print()


def main():
    """Run all examples."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    driver = InMemoryStoreDriver()
    orchestrator = FixtureOrchestrator(
        config=FixtureConfig(shared=True, instance_name="example-node"),
        driver=driver,
    )

    example_compile()
    example_declarative()
    example_fixture_scope(orchestrator)
    example_existing_index(orchestrator, driver)

    orchestrator.registry.shutdown()
    print("All examples completed.")


if __name__ == "__main__":
    main()
