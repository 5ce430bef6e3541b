# SPDX-License-Identifier: MIT
# Copyright (c) 2025 docstore-fixtures contributors

"""Declarative document-store fixtures for tests.

Tests declare the indices they need (types, fields, multi-fields, ``_ttl``,
``_timestamp``, ``_parent`` and ``_source`` options). The schema compiler turns
the declaration into the wire-format mapping documents the store consumes, and
the orchestrator makes sure a running store instance has them installed before
the test body runs and removes them afterwards, whatever the outcome.

Example:
    >>> from docstore_fixtures import FieldSpec, IndexSpec, TypeMapping, fixture_scope
    >>> spec = IndexSpec(
    ...     name="library",
    ...     type_mappings=[TypeMapping(type_name="book", fields=[FieldSpec(name="title")])],
    ... )
    >>> with fixture_scope(spec) as fixture:
    ...     fixture.driver.index_exists(fixture.handle, "library")
    True
"""

__version__ = "0.1.0"

from .config import FixtureConfig
from .declarative import (
    coerce_index_specs,
    index_spec_from_dict,
    index_specs_from_dict,
    load_index_specs,
)
from .exceptions import (
    CompilationError,
    DuplicateFieldNameError,
    FixtureError,
    FixtureStateError,
    IndexAlreadyExistsError,
    InstanceUnavailableError,
    InvalidDeclarationError,
    InvalidLiteralError,
    InvalidNameError,
    InvalidOptionError,
    MappingMismatchError,
    TeardownError,
)
from .factory import create_store_driver
from .field_compiler import compile_field, compile_multi_field, compile_properties
from .http_store import HttpStoreDriver
from .inmemory_store import InMemoryStoreDriver
from .mapping_compiler import compile_type_mapping
from .models import (
    AnalysisSpec,
    AnalyzerSpec,
    FieldSpec,
    FieldType,
    FilterSpec,
    Index,
    IndexSpec,
    MultiFieldGroup,
    Store,
    TermVector,
    TypeMapping,
)
from .orchestrator import Fixture, FixtureOrchestrator, FixtureState, diff_mappings, fixture_scope
from .registry import FixtureRegistry, get_registry, reset_registry
from .schema_compiler import CompiledSchema, compile_schema, compile_schemas
from .store import IndexNotFoundError, StoreConnectionError, StoreDriver, StoreError
from .units import parse_duration, parse_size

__all__ = [
    # Version
    "__version__",
    # Model
    "IndexSpec",
    "TypeMapping",
    "FieldSpec",
    "MultiFieldGroup",
    "AnalysisSpec",
    "AnalyzerSpec",
    "FilterSpec",
    "FieldType",
    "Store",
    "Index",
    "TermVector",
    # Declarative configuration
    "index_spec_from_dict",
    "index_specs_from_dict",
    "load_index_specs",
    "coerce_index_specs",
    # Compilation
    "parse_duration",
    "parse_size",
    "compile_field",
    "compile_multi_field",
    "compile_properties",
    "compile_type_mapping",
    "compile_schema",
    "compile_schemas",
    "CompiledSchema",
    # Stores
    "StoreDriver",
    "InMemoryStoreDriver",
    "HttpStoreDriver",
    "create_store_driver",
    # Lifecycle
    "FixtureConfig",
    "Fixture",
    "FixtureState",
    "FixtureOrchestrator",
    "FixtureRegistry",
    "fixture_scope",
    "diff_mappings",
    "get_registry",
    "reset_registry",
    # Exceptions
    "FixtureError",
    "InvalidLiteralError",
    "InvalidNameError",
    "InvalidOptionError",
    "DuplicateFieldNameError",
    "CompilationError",
    "InvalidDeclarationError",
    "InstanceUnavailableError",
    "IndexAlreadyExistsError",
    "MappingMismatchError",
    "TeardownError",
    "FixtureStateError",
    "StoreError",
    "StoreConnectionError",
    "IndexNotFoundError",
]
