# SPDX-License-Identifier: MIT
# Copyright (c) 2025 docstore-fixtures contributors

"""Compile field specifications into wire-format field objects.

Options equal to the store defaults are omitted rather than written out:
``store`` appears only when true, ``index`` only when the field is not
analyzed, ``term_vector`` only when term vectors are requested.
"""

import logging
from typing import Any, Iterable

from .exceptions import CompilationError, DuplicateFieldNameError, InvalidNameError
from .models import FieldSpec, Index, MultiFieldGroup, Store, TermVector

logger = logging.getLogger(__name__)

MULTI_FIELD_TYPE = "multi_field"


def validate_field_name(name: str) -> None:
    """Check that a field name can be used as a property key.

    Raises:
        InvalidNameError: If the name is empty, contains a dot or whitespace
    """
    if not isinstance(name, str) or not name:
        raise InvalidNameError("Field name must be a non-empty string")
    if "." in name:
        raise InvalidNameError(f"Field name must not contain '.': {name!r}")
    if any(ch.isspace() for ch in name):
        raise InvalidNameError(f"Field name must not contain whitespace: {name!r}")


def compile_field(spec: FieldSpec) -> dict[str, Any]:
    """Compile one field into its wire-format object.

    Args:
        spec: Field specification

    Returns:
        Wire-format field object

    Raises:
        InvalidNameError: If the field (or a sub-field) name is illegal
        CompilationError: If a single analyzer is combined with an
            index/search analyzer pair
        DuplicateFieldNameError: If an object field declares a sub-field twice
    """
    validate_field_name(spec.name)

    if spec.analyzer_name and (spec.index_analyzer_name or spec.search_analyzer_name):
        raise CompilationError(
            f"Field '{spec.name}' sets analyzer_name together with "
            "index_analyzer_name/search_analyzer_name; use one or the other"
        )

    wire: dict[str, Any] = {"type": spec.value_type.value}

    if spec.store is Store.YES:
        wire["store"] = True

    if spec.index is not Index.ANALYZED:
        wire["index"] = spec.index.value

    if spec.analyzer_name:
        wire["analyzer"] = spec.analyzer_name
    if spec.index_analyzer_name:
        wire["index_analyzer"] = spec.index_analyzer_name
    if spec.search_analyzer_name:
        wire["search_analyzer"] = spec.search_analyzer_name

    if spec.term_vector is not TermVector.NO:
        wire["term_vector"] = spec.term_vector.value

    if spec.properties:
        if not spec.value_type.is_container:
            raise CompilationError(
                f"Field '{spec.name}' of type '{spec.value_type.value}' cannot declare sub-fields"
            )
        wire["properties"] = compile_properties(spec.properties)

    return wire


def compile_multi_field(group: MultiFieldGroup) -> dict[str, Any]:
    """Compile a multi-field group.

    Each member is compiled on its own, so options of one member never leak
    into another.

    Raises:
        CompilationError: If the group has no members
        DuplicateFieldNameError: If two members share a name
    """
    validate_field_name(group.group_name)

    if not group.fields:
        raise CompilationError(f"Multi-field group '{group.group_name}' has no fields")

    members: dict[str, Any] = {}
    for member in group.fields:
        if member.name in members:
            raise DuplicateFieldNameError(
                f"Duplicate field '{member.name}' in multi-field group '{group.group_name}'"
            )
        members[member.name] = compile_field(member)

    if group.group_name not in members:
        logger.warning(
            "FieldCompiler: multi-field group '%s' has no member named like the group; "
            "the store will use its default for the primary field",
            group.group_name,
        )

    return {"type": MULTI_FIELD_TYPE, "fields": members}


def compile_properties(
    fields: Iterable[FieldSpec],
    groups: Iterable[MultiFieldGroup] = (),
) -> dict[str, Any]:
    """Compile fields and multi-field groups into one ``properties`` map.

    Keys keep declaration order: plain fields first, then groups.

    Raises:
        DuplicateFieldNameError: If a name is used more than once across
            both collections
    """
    properties: dict[str, Any] = {}

    for spec in fields:
        if spec.name in properties:
            raise DuplicateFieldNameError(f"Duplicate field name '{spec.name}'")
        properties[spec.name] = compile_field(spec)

    for group in groups:
        if group.group_name in properties:
            raise DuplicateFieldNameError(f"Duplicate field name '{group.group_name}'")
        properties[group.group_name] = compile_multi_field(group)

    return properties
