# SPDX-License-Identifier: MIT
# Copyright (c) 2025 docstore-fixtures contributors

"""Configuration object tree describing the indices a test needs.

Instances are immutable: sequences passed to the constructors are frozen into
tuples, and mapping-valued settings are copied.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .exceptions import InvalidOptionError


class FieldType(str, Enum):
    """Value types a field can be mapped to, with their wire names."""

    STRING = "string"
    INTEGER = "integer"
    LONG = "long"
    SHORT = "short"
    BYTE = "byte"
    FLOAT = "float"
    DOUBLE = "double"
    BOOLEAN = "boolean"
    DATE = "date"
    BINARY = "binary"
    IP = "ip"
    GEO_POINT = "geo_point"
    OBJECT = "object"
    NESTED = "nested"

    @property
    def is_container(self) -> bool:
        """True for types whose values hold their own field map."""
        return self in (FieldType.OBJECT, FieldType.NESTED)


class Store(str, Enum):
    """Whether the field value is stored separately from ``_source``."""

    YES = "yes"
    NO = "no"


class Index(str, Enum):
    """How the field value is indexed."""

    ANALYZED = "analyzed"
    NOT_ANALYZED = "not_analyzed"
    NO = "no"


class TermVector(str, Enum):
    """Which term vector information is kept for the field."""

    NO = "no"
    YES = "yes"
    WITH_OFFSETS = "with_offsets"
    WITH_POSITIONS = "with_positions"
    WITH_POSITIONS_OFFSETS = "with_positions_offsets"


def _freeze(instance: Any, **sequences: Any) -> None:
    """Convert sequence attributes of a frozen dataclass into tuples."""
    for name, value in sequences.items():
        object.__setattr__(instance, name, tuple(value or ()))


def _coerce(instance: Any, **options: type[Enum]) -> None:
    """Convert option attributes of a frozen dataclass into their enum members.

    Raises:
        InvalidOptionError: If a value is not one of the enum's values
    """
    for name, enum_cls in options.items():
        value = getattr(instance, name)
        if isinstance(value, enum_cls):
            continue
        try:
            member = enum_cls(value.strip().lower() if isinstance(value, str) else value)
        except ValueError:
            allowed = ", ".join(m.value for m in enum_cls)
            raise InvalidOptionError(
                f"Invalid {name} {value!r} for '{instance.name}' (expected one of: {allowed})"
            ) from None
        object.__setattr__(instance, name, member)


@dataclass(frozen=True)
class FieldSpec:
    """A single field of a type mapping.

    Attributes:
        name: Field name, unique within its field map
        value_type: Value type of the field
        store: Store option; ``Store.NO`` is the store default
        index: Index option; ``Index.ANALYZED`` is the store default
        analyzer_name: Analyzer used for both indexing and searching
        index_analyzer_name: Analyzer used at index time only
        search_analyzer_name: Analyzer used at search time only
        term_vector: Term vector option
        properties: Sub-fields of an object or nested field
    """

    name: str
    value_type: FieldType = FieldType.STRING
    store: Store = Store.NO
    index: Index = Index.ANALYZED
    analyzer_name: str | None = None
    index_analyzer_name: str | None = None
    search_analyzer_name: str | None = None
    term_vector: TermVector = TermVector.NO
    properties: tuple["FieldSpec", ...] = ()

    def __post_init__(self):
        _coerce(self, value_type=FieldType, store=Store, index=Index, term_vector=TermVector)
        _freeze(self, properties=self.properties)


@dataclass(frozen=True)
class MultiFieldGroup:
    """One logical property exposed as several differently indexed sub-fields.

    By convention one member shares the group name and holds the primary
    representation (e.g. ``name`` analyzed plus ``untouched`` not analyzed).
    """

    group_name: str
    fields: tuple[FieldSpec, ...] = ()

    def __post_init__(self):
        _freeze(self, fields=self.fields)


@dataclass(frozen=True)
class TypeMapping:
    """Mapping of one document type: metadata blocks plus its field map."""

    type_name: str
    source_enabled: bool = True
    compress: bool = False
    compress_threshold: str | None = None
    ttl_enabled: bool = False
    ttl_value: str | None = None
    timestamp_enabled: bool = False
    timestamp_format: str | None = None
    timestamp_path: str | None = None
    parent_type: str | None = None
    fields: tuple[FieldSpec, ...] = ()
    multi_field_groups: tuple[MultiFieldGroup, ...] = ()

    def __post_init__(self):
        _freeze(self, fields=self.fields, multi_field_groups=self.multi_field_groups)


@dataclass(frozen=True)
class AnalyzerSpec:
    """A custom analyzer declared in the index analysis settings."""

    name: str
    tokenizer: str = "standard"
    filters: tuple[str, ...] = ()
    char_filters: tuple[str, ...] = ()

    def __post_init__(self):
        _freeze(self, filters=self.filters, char_filters=self.char_filters)


@dataclass(frozen=True)
class FilterSpec:
    """A token filter declared in the index analysis settings."""

    name: str
    filter_type: str
    options: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "options", dict(self.options or {}))

    def __hash__(self) -> int:
        return hash((self.name, self.filter_type))


@dataclass(frozen=True)
class AnalysisSpec:
    """Custom analyzers and token filters installed with an index."""

    analyzers: tuple[AnalyzerSpec, ...] = ()
    filters: tuple[FilterSpec, ...] = ()

    def __post_init__(self):
        _freeze(self, analyzers=self.analyzers, filters=self.filters)


@dataclass(frozen=True)
class IndexSpec:
    """An index a test needs, with the ordered type mappings to install in it.

    Attributes:
        name: Index name
        type_mappings: Type mappings, installed in declaration order
        settings: Index settings (e.g. ``number_of_shards``)
        analysis: Custom analysis components
        force_recreate: Drop and recreate the index if it already exists
        clean_after: Drop the index when the fixture is torn down
    """

    name: str
    type_mappings: tuple[TypeMapping, ...] = ()
    settings: dict[str, Any] = field(default_factory=dict)
    analysis: AnalysisSpec | None = None
    force_recreate: bool = False
    clean_after: bool = True

    def __post_init__(self):
        _freeze(self, type_mappings=self.type_mappings)
        object.__setattr__(self, "settings", dict(self.settings or {}))

    def __hash__(self) -> int:
        return hash((self.name, self.type_mappings))

    @property
    def type_names(self) -> list[str]:
        """Type names in declaration order."""
        return [mapping.type_name for mapping in self.type_mappings]
