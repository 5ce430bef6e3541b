# SPDX-License-Identifier: MIT
# Copyright (c) 2025 docstore-fixtures contributors

"""Compile a type mapping (metadata blocks plus field map) into its wire document."""

import logging
from typing import Any

from .exceptions import CompilationError, InvalidNameError
from .field_compiler import compile_properties
from .models import TypeMapping
from .units import parse_duration, parse_size

logger = logging.getLogger(__name__)


def validate_type_name(name: str) -> None:
    """Check that a type name is usable.

    Raises:
        InvalidNameError: If the name is empty, starts with '_' or contains
            whitespace, '.' or ','
    """
    if not isinstance(name, str) or not name:
        raise InvalidNameError("Type name must be a non-empty string")
    if name.startswith("_"):
        raise InvalidNameError(f"Type name must not start with '_': {name!r}")
    if any(ch.isspace() or ch in ".," for ch in name):
        raise InvalidNameError(f"Type name contains illegal characters: {name!r}")


def _compile_source(mapping: TypeMapping) -> dict[str, Any]:
    source: dict[str, Any] = {
        "enabled": mapping.source_enabled,
        "compress": mapping.compress,
    }
    if mapping.compress_threshold:
        threshold = parse_size(mapping.compress_threshold)
        if mapping.compress:
            source["compress_threshold"] = threshold
        else:
            logger.warning(
                "MappingCompiler: type '%s' sets compress_threshold=%s without compress; ignoring it",
                mapping.type_name,
                mapping.compress_threshold,
            )
    return source


def _compile_ttl(mapping: TypeMapping) -> dict[str, Any]:
    ttl: dict[str, Any] = {"enabled": True}
    if mapping.ttl_value:
        ttl["default"] = parse_duration(mapping.ttl_value)
    return ttl


def _compile_timestamp(mapping: TypeMapping) -> dict[str, Any]:
    # Empty format/path fall back to the store defaults
    timestamp: dict[str, Any] = {"enabled": True}
    if mapping.timestamp_format:
        timestamp["format"] = mapping.timestamp_format
    if mapping.timestamp_path:
        timestamp["path"] = mapping.timestamp_path
    return timestamp


def compile_type_mapping(mapping: TypeMapping) -> dict[str, Any]:
    """Compile one type mapping into the document submitted for that type.

    ``_source`` is always present. ``_ttl``, ``_timestamp`` and ``_parent`` are
    only emitted when requested; they are never written as disabled blocks.

    Args:
        mapping: Type mapping to compile

    Returns:
        Wire-format mapping document for the type

    Raises:
        InvalidNameError: If the type or a field name is illegal
        InvalidLiteralError: If the ttl value or compress threshold is malformed
        DuplicateFieldNameError: If a property name is used twice
        CompilationError: On contradictory options
    """
    validate_type_name(mapping.type_name)

    wire: dict[str, Any] = {"_source": _compile_source(mapping)}

    if mapping.ttl_enabled:
        wire["_ttl"] = _compile_ttl(mapping)
    elif mapping.ttl_value:
        # Validated even when ttl is disabled
        parse_duration(mapping.ttl_value)

    if mapping.timestamp_enabled:
        wire["_timestamp"] = _compile_timestamp(mapping)

    if mapping.parent_type:
        if mapping.parent_type == mapping.type_name:
            raise CompilationError(f"Type '{mapping.type_name}' cannot be its own parent")
        wire["_parent"] = {"type": mapping.parent_type}

    wire["properties"] = compile_properties(mapping.fields, mapping.multi_field_groups)

    logger.debug(
        "MappingCompiler: compiled type '%s' with %d properties",
        mapping.type_name,
        len(wire["properties"]),
    )
    return wire
