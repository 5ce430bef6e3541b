# SPDX-License-Identifier: MIT
# Copyright (c) 2025 docstore-fixtures contributors

"""Build index specifications from declarative configuration.

Tests describe the indices they need as plain data (a dict, or a JSON/YAML
file) of the shape::

    indices:
      - name: library
        settings: {number_of_shards: 1}
        mappings:
          - type: book
            ttl: true
            ttl_value: 2d
            properties:
              - {name: title, type: string, store: yes}
            multi_fields:
              - name: name
                fields: [{name: name}, {name: untouched, index: not_analyzed}]

The data is validated against a JSON Schema before it is converted, so every
structural problem is reported at once.
"""

import json
import logging
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Mapping, TypeVar

import yaml
from jsonschema import Draft202012Validator

from .exceptions import InvalidDeclarationError
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

logger = logging.getLogger(__name__)

# Alternative option names -> canonical names
_FIELD_ALIASES = {
    "analyzer": "analyzer_name",
    "analyzerName": "analyzer_name",
    "indexAnalyzerName": "index_analyzer_name",
    "index_analyzer": "index_analyzer_name",
    "searchAnalyzerName": "search_analyzer_name",
    "search_analyzer": "search_analyzer_name",
    "termVector": "term_vector",
}

_MAPPING_ALIASES = {
    "typeName": "type",
    "type_name": "type",
    "compressThreshold": "compress_threshold",
    "ttlValue": "ttl_value",
    "timestampFormat": "timestamp_format",
    "timestampPath": "timestamp_path",
    "parent_type": "parent",
    "propertiesMulti": "multi_fields",
    "multiFields": "multi_fields",
    "multi_field_groups": "multi_fields",
}

_GROUP_ALIASES = {
    "group_name": "name",
    "groupName": "name",
}

_INDEX_ALIASES = {
    "indexName": "name",
    "index_name": "name",
    "forceCreate": "force_recreate",
    "force_create": "force_recreate",
    "forceRecreate": "force_recreate",
    "cleanAfter": "clean_after",
    "typeMappings": "mappings",
    "type_mappings": "mappings",
}

_ENUM_VALUE = {"type": ["string", "boolean"]}
_OPTIONAL_STRING = {"type": ["string", "null"]}

_FIELD_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["name"],
    "additionalProperties": False,
    "properties": {
        "name": {"type": "string", "minLength": 1},
        "type": {"type": "string"},
        "store": _ENUM_VALUE,
        "index": _ENUM_VALUE,
        "analyzer_name": _OPTIONAL_STRING,
        "index_analyzer_name": _OPTIONAL_STRING,
        "search_analyzer_name": _OPTIONAL_STRING,
        "term_vector": _ENUM_VALUE,
        "properties": {"type": "array", "items": {"$ref": "#/$defs/field"}},
    },
}

_GROUP_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["name", "fields"],
    "additionalProperties": False,
    "properties": {
        "name": {"type": "string", "minLength": 1},
        "fields": {"type": "array", "minItems": 1, "items": {"$ref": "#/$defs/field"}},
    },
}

_MAPPING_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["type"],
    "additionalProperties": False,
    "properties": {
        "type": {"type": "string", "minLength": 1},
        "source": {"type": "boolean"},
        "compress": {"type": "boolean"},
        "compress_threshold": _OPTIONAL_STRING,
        "ttl": {"type": "boolean"},
        "ttl_value": _OPTIONAL_STRING,
        "timestamp": {"type": "boolean"},
        "timestamp_format": _OPTIONAL_STRING,
        "timestamp_path": _OPTIONAL_STRING,
        "parent": _OPTIONAL_STRING,
        "properties": {"type": "array", "items": {"$ref": "#/$defs/field"}},
        "multi_fields": {"type": "array", "items": {"$ref": "#/$defs/group"}},
    },
}

_ANALYSIS_SCHEMA: dict[str, Any] = {
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "analyzers": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["name"],
                "additionalProperties": False,
                "properties": {
                    "name": {"type": "string", "minLength": 1},
                    "tokenizer": {"type": "string"},
                    "filters": {"type": "array", "items": {"type": "string"}},
                    "char_filters": {"type": "array", "items": {"type": "string"}},
                },
            },
        },
        "filters": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["name", "type"],
                "additionalProperties": False,
                "properties": {
                    "name": {"type": "string", "minLength": 1},
                    "type": {"type": "string", "minLength": 1},
                    "options": {"type": "object"},
                },
            },
        },
    },
}

INDEX_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["name"],
    "additionalProperties": False,
    "properties": {
        "name": {"type": "string", "minLength": 1},
        "settings": {"type": "object"},
        "analysis": {"$ref": "#/$defs/analysis"},
        "force_recreate": {"type": "boolean"},
        "clean_after": {"type": "boolean"},
        "mappings": {"type": "array", "items": {"$ref": "#/$defs/mapping"}},
    },
    "$defs": {
        "field": _FIELD_SCHEMA,
        "group": _GROUP_SCHEMA,
        "mapping": _MAPPING_SCHEMA,
        "analysis": _ANALYSIS_SCHEMA,
    },
}

_VALIDATOR = Draft202012Validator(INDEX_SCHEMA)

E = TypeVar("E", bound=Enum)


def _rename(data: Mapping[str, Any], aliases: Mapping[str, str]) -> dict[str, Any]:
    return {aliases.get(key, key): value for key, value in data.items()}


def _normalize_field(data: Any) -> Any:
    if not isinstance(data, Mapping):
        return data
    field = _rename(data, _FIELD_ALIASES)
    if isinstance(field.get("properties"), list):
        field["properties"] = [_normalize_field(sub) for sub in field["properties"]]
    return field


def _normalize_group(data: Any) -> Any:
    if not isinstance(data, Mapping):
        return data
    group = _rename(data, _GROUP_ALIASES)
    if isinstance(group.get("fields"), list):
        group["fields"] = [_normalize_field(member) for member in group["fields"]]
    return group


def _normalize_mapping(data: Any) -> Any:
    if not isinstance(data, Mapping):
        return data
    mapping = _rename(data, _MAPPING_ALIASES)
    if isinstance(mapping.get("properties"), list):
        mapping["properties"] = [_normalize_field(field) for field in mapping["properties"]]
    if isinstance(mapping.get("multi_fields"), list):
        mapping["multi_fields"] = [_normalize_group(group) for group in mapping["multi_fields"]]
    return mapping


def _normalize_index(data: Mapping[str, Any]) -> dict[str, Any]:
    index = _rename(data, _INDEX_ALIASES)
    if isinstance(index.get("mappings"), list):
        index["mappings"] = [_normalize_mapping(mapping) for mapping in index["mappings"]]
    return index


def _validate(index: dict[str, Any]) -> None:
    errors = sorted(_VALIDATOR.iter_errors(index), key=lambda e: list(e.absolute_path))
    if not errors:
        return
    messages: list[str] = []
    for err in errors:
        path = ".".join(str(p) for p in err.absolute_path)
        location = f" at '{path}'" if path else ""
        messages.append(f"{err.message}{location}")
    name = index.get("name", "<unnamed>")
    raise InvalidDeclarationError(f"Invalid declaration for index '{name}'", messages)


def _enum(enum_cls: type[E], value: Any, where: str, errors: list[str], on_true: E, on_false: E) -> E:
    # YAML reads bare yes/no as booleans
    if isinstance(value, bool):
        return on_true if value else on_false
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        errors.append(f"{where}: invalid value {value!r} (expected one of: {allowed})")
        return on_false


def _build_field(data: Mapping[str, Any], where: str, errors: list[str]) -> FieldSpec:
    where = f"{where}.{data['name']}"

    value_type = FieldType.STRING
    if "type" in data:
        try:
            value_type = FieldType(str(data["type"]).strip().lower())
        except ValueError:
            allowed = ", ".join(member.value for member in FieldType)
            errors.append(f"{where}.type: unknown value type {data['type']!r} (expected one of: {allowed})")

    return FieldSpec(
        name=data["name"],
        value_type=value_type,
        store=_enum(Store, data.get("store", Store.NO.value), f"{where}.store", errors, Store.YES, Store.NO),
        index=_enum(
            Index, data.get("index", Index.ANALYZED.value), f"{where}.index", errors, Index.ANALYZED, Index.NO
        ),
        analyzer_name=data.get("analyzer_name") or None,
        index_analyzer_name=data.get("index_analyzer_name") or None,
        search_analyzer_name=data.get("search_analyzer_name") or None,
        term_vector=_enum(
            TermVector,
            data.get("term_vector", TermVector.NO.value),
            f"{where}.term_vector",
            errors,
            TermVector.YES,
            TermVector.NO,
        ),
        properties=[_build_field(sub, where, errors) for sub in data.get("properties", [])],
    )


def _build_mapping(data: Mapping[str, Any], where: str, errors: list[str]) -> TypeMapping:
    where = f"{where}.{data['type']}"
    return TypeMapping(
        type_name=data["type"],
        source_enabled=data.get("source", True),
        compress=data.get("compress", False),
        compress_threshold=data.get("compress_threshold") or None,
        ttl_enabled=data.get("ttl", False),
        ttl_value=data.get("ttl_value") or None,
        timestamp_enabled=data.get("timestamp", False),
        timestamp_format=data.get("timestamp_format") or None,
        timestamp_path=data.get("timestamp_path") or None,
        parent_type=data.get("parent") or None,
        fields=[_build_field(field, where, errors) for field in data.get("properties", [])],
        multi_field_groups=[
            MultiFieldGroup(
                group_name=group["name"],
                fields=[_build_field(member, f"{where}.{group['name']}", errors) for member in group["fields"]],
            )
            for group in data.get("multi_fields", [])
        ],
    )


def _build_analysis(data: Mapping[str, Any]) -> AnalysisSpec:
    return AnalysisSpec(
        analyzers=[
            AnalyzerSpec(
                name=analyzer["name"],
                tokenizer=analyzer.get("tokenizer", "standard"),
                filters=analyzer.get("filters", []),
                char_filters=analyzer.get("char_filters", []),
            )
            for analyzer in data.get("analyzers", [])
        ],
        filters=[
            FilterSpec(name=token_filter["name"], filter_type=token_filter["type"], options=token_filter.get("options", {}))
            for token_filter in data.get("filters", [])
        ],
    )


def index_spec_from_dict(data: Mapping[str, Any]) -> IndexSpec:
    """Build one IndexSpec from its declarative form.

    Args:
        data: Declarative index configuration

    Returns:
        IndexSpec instance

    Raises:
        InvalidDeclarationError: If the declaration is malformed; the error
            lists every problem found
    """
    if not isinstance(data, Mapping):
        raise InvalidDeclarationError(f"Index declaration must be a mapping, got {type(data).__name__}")

    index = _normalize_index(data)
    _validate(index)

    errors: list[str] = []
    mappings = [_build_mapping(mapping, index["name"], errors) for mapping in index.get("mappings", [])]
    if errors:
        raise InvalidDeclarationError(f"Invalid declaration for index '{index['name']}'", errors)

    analysis = _build_analysis(index["analysis"]) if "analysis" in index else None
    return IndexSpec(
        name=index["name"],
        type_mappings=mappings,
        settings=index.get("settings", {}),
        analysis=analysis,
        force_recreate=index.get("force_recreate", False),
        clean_after=index.get("clean_after", True),
    )


def index_specs_from_dict(data: Any) -> list[IndexSpec]:
    """Build IndexSpecs from ``{"indices": [...]}``, a list, or a single index mapping."""
    if isinstance(data, Mapping) and "indices" in data:
        data = data["indices"]
    if isinstance(data, Mapping):
        return [index_spec_from_dict(data)]
    if isinstance(data, list):
        return [index_spec_from_dict(item) for item in data]
    raise InvalidDeclarationError(f"Unsupported declaration type: {type(data).__name__}")


def load_index_specs(path: str | Path) -> list[IndexSpec]:
    """Load IndexSpecs from a JSON or YAML file.

    Args:
        path: File path; ``.json`` is read as JSON, anything else as YAML

    Returns:
        IndexSpecs in file order

    Raises:
        FileNotFoundError: If the file does not exist
        InvalidDeclarationError: If the file cannot be parsed or is malformed
    """
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        try:
            if path.suffix.lower() == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise InvalidDeclarationError(f"Cannot parse index declarations in {path}: {e}") from e

    if data is None:
        raise InvalidDeclarationError(f"No index declarations in {path}")

    specs = index_specs_from_dict(data)
    logger.debug("Loaded %d index declaration(s) from %s", len(specs), path)
    return specs


def coerce_index_specs(value: Any) -> list[IndexSpec]:
    """Turn an IndexSpec, a declaration, a file path, or a sequence of those into IndexSpecs."""
    if isinstance(value, IndexSpec):
        return [value]
    if isinstance(value, (str, Path)):
        return load_index_specs(value)
    if isinstance(value, Mapping):
        return index_specs_from_dict(value)
    if isinstance(value, Iterable):
        specs: list[IndexSpec] = []
        for item in value:
            specs.extend(coerce_index_specs(item))
        return specs
    raise InvalidDeclarationError(f"Cannot build index specifications from {type(value).__name__}")
