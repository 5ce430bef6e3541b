# SPDX-License-Identifier: MIT
# Copyright (c) 2025 docstore-fixtures contributors

"""Compile index specifications into complete schema documents.

Compilation is all-or-nothing: either every type of the index compiles, or a
``CompilationError`` wrapping the first failure is raised and nothing is
returned. No store is contacted here.
"""

import copy
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Iterable

from .exceptions import CompilationError, FixtureError, InvalidNameError
from .mapping_compiler import compile_type_mapping
from .models import AnalysisSpec, IndexSpec

logger = logging.getLogger(__name__)

_ILLEGAL_INDEX_CHARS = re.compile(r'[\\/*?"<>|,#\s]')


@dataclass
class CompiledSchema:
    """Wire documents for one index.

    Attributes:
        index_name: Name of the index
        settings: Index settings document (may be empty)
        mappings: Type name -> wire mapping document, in declaration order
    """

    index_name: str
    settings: dict[str, Any] = field(default_factory=dict)
    mappings: dict[str, dict[str, Any]] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Return the create-index body (settings and mappings)."""
        body: dict[str, Any] = {}
        if self.settings:
            body["settings"] = copy.deepcopy(self.settings)
        body["mappings"] = copy.deepcopy(self.mappings)
        return body


def validate_index_name(name: str) -> None:
    """Check that an index name is accepted by the store.

    Raises:
        InvalidNameError: If the name is empty, not lower case, starts with
            '_', '-' or '+', or contains an illegal character
    """
    if not isinstance(name, str) or not name:
        raise InvalidNameError("Index name must be a non-empty string")
    if name != name.lower():
        raise InvalidNameError(f"Index name must be lower case: {name!r}")
    if name[0] in "_-+":
        raise InvalidNameError(f"Index name must not start with '{name[0]}': {name!r}")
    if _ILLEGAL_INDEX_CHARS.search(name):
        raise InvalidNameError(f"Index name contains illegal characters: {name!r}")


def compile_analysis(analysis: AnalysisSpec) -> dict[str, Any]:
    """Compile custom analyzers and token filters into the ``analysis`` settings block."""
    block: dict[str, Any] = {}

    if analysis.filters:
        filters: dict[str, Any] = {}
        for token_filter in analysis.filters:
            if token_filter.name in filters:
                raise CompilationError(f"Duplicate token filter '{token_filter.name}'")
            filters[token_filter.name] = {"type": token_filter.filter_type, **token_filter.options}
        block["filter"] = filters

    if analysis.analyzers:
        analyzers: dict[str, Any] = {}
        for analyzer in analysis.analyzers:
            if analyzer.name in analyzers:
                raise CompilationError(f"Duplicate analyzer '{analyzer.name}'")
            definition: dict[str, Any] = {"type": "custom", "tokenizer": analyzer.tokenizer}
            if analyzer.filters:
                definition["filter"] = list(analyzer.filters)
            if analyzer.char_filters:
                definition["char_filter"] = list(analyzer.char_filters)
            analyzers[analyzer.name] = definition
        block["analyzer"] = analyzers

    return block


def compile_settings(spec: IndexSpec) -> dict[str, Any]:
    """Compile index settings, merging the analysis block when one is declared."""
    settings = copy.deepcopy(spec.settings)
    if spec.analysis is not None:
        analysis = compile_analysis(spec.analysis)
        if analysis:
            settings["analysis"] = analysis
    return settings


def _check_parents(spec: IndexSpec) -> None:
    type_names = set(spec.type_names)
    for mapping in spec.type_mappings:
        if mapping.parent_type and mapping.parent_type not in type_names:
            raise CompilationError(
                f"Type '{mapping.type_name}' references unknown parent type '{mapping.parent_type}'"
            )


def compile_schema(spec: IndexSpec) -> CompiledSchema:
    """Compile an index specification into its schema documents.

    Args:
        spec: Index specification

    Returns:
        CompiledSchema holding settings and one mapping per type, in
        declaration order

    Raises:
        CompilationError: Wrapping the first failure (illegal or duplicate
            names, malformed literals, contradictory options)
    """
    try:
        validate_index_name(spec.name)

        mappings: dict[str, dict[str, Any]] = {}
        for mapping in spec.type_mappings:
            if mapping.type_name in mappings:
                raise CompilationError(f"Duplicate type name '{mapping.type_name}'")
            try:
                mappings[mapping.type_name] = compile_type_mapping(mapping)
            except FixtureError as e:
                raise CompilationError(f"type '{mapping.type_name}': {e}", cause=e) from e

        _check_parents(spec)
        settings = compile_settings(spec)
    except FixtureError as e:
        cause = e.cause if isinstance(e, CompilationError) and e.cause is not None else e
        logger.debug("SchemaCompiler: compilation of index %r failed - %s", spec.name, e)
        raise CompilationError(f"Cannot compile index '{spec.name}': {e}", cause=cause) from e

    logger.debug("SchemaCompiler: compiled index '%s' with types %s", spec.name, list(mappings))
    return CompiledSchema(index_name=spec.name, settings=settings, mappings=mappings)


def compile_schemas(specs: Iterable[IndexSpec]) -> list[CompiledSchema]:
    """Compile several index specifications, rejecting duplicate index names.

    Raises:
        CompilationError: On the first failing index or a duplicate name
    """
    compiled: list[CompiledSchema] = []
    seen: set[str] = set()
    for spec in specs:
        if spec.name in seen:
            raise CompilationError(f"Index '{spec.name}' is declared more than once")
        seen.add(spec.name)
        compiled.append(compile_schema(spec))
    return compiled
