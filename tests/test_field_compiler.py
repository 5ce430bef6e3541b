# SPDX-License-Identifier: MIT
# Copyright (c) 2025 docstore-fixtures contributors

"""Tests for the field compiler."""

import logging

import pytest

from docstore_fixtures import (
    CompilationError,
    DuplicateFieldNameError,
    FieldSpec,
    FieldType,
    Index,
    InvalidNameError,
    InvalidOptionError,
    MultiFieldGroup,
    Store,
    TermVector,
    compile_field,
    compile_multi_field,
    compile_properties,
)


class TestCompileField:
    """Tests for compile_field."""

    def test_defaults_compile_to_type_only(self):
        """Test that a field with default options only carries its type."""
        assert compile_field(FieldSpec(name="title")) == {"type": "string"}

    @pytest.mark.parametrize(
        "value_type,wire",
        [
            (FieldType.INTEGER, "integer"),
            (FieldType.LONG, "long"),
            (FieldType.FLOAT, "float"),
            (FieldType.DOUBLE, "double"),
            (FieldType.BOOLEAN, "boolean"),
            (FieldType.DATE, "date"),
            (FieldType.BINARY, "binary"),
            (FieldType.GEO_POINT, "geo_point"),
        ],
    )
    def test_value_type_wire_names(self, value_type, wire):
        """Test that value types map to their lower-case wire names."""
        assert compile_field(FieldSpec(name="f", value_type=value_type))["type"] == wire

    def test_store_yes_emits_true(self):
        """Test that Store.YES emits store: true."""
        assert compile_field(FieldSpec(name="f", store=Store.YES))["store"] is True

    def test_store_no_emits_no_key(self):
        """Test that Store.NO omits the store key instead of writing false."""
        assert "store" not in compile_field(FieldSpec(name="f", store=Store.NO))

    def test_analyzed_emits_no_index_key(self):
        """Test that the analyzed default omits the index key."""
        assert "index" not in compile_field(FieldSpec(name="f", index=Index.ANALYZED))

    def test_not_analyzed(self):
        """Test that Index.NOT_ANALYZED is written out."""
        assert compile_field(FieldSpec(name="f", index=Index.NOT_ANALYZED))["index"] == "not_analyzed"

    def test_index_no(self):
        """Test that Index.NO is written out."""
        assert compile_field(FieldSpec(name="f", index=Index.NO))["index"] == "no"

    def test_single_analyzer(self):
        """Test that a single analyzer is emitted as analyzer."""
        wire = compile_field(FieldSpec(name="f", analyzer_name="standard"))

        assert wire["analyzer"] == "standard"
        assert "index_analyzer" not in wire
        assert "search_analyzer" not in wire

    def test_split_analyzers(self):
        """Test that index/search analyzers are emitted separately."""
        wire = compile_field(
            FieldSpec(name="f", index_analyzer_name="keyword", search_analyzer_name="standard")
        )

        assert wire["index_analyzer"] == "keyword"
        assert wire["search_analyzer"] == "standard"
        assert "analyzer" not in wire

    def test_only_search_analyzer(self):
        """Test that one side of the split pair can be set alone."""
        wire = compile_field(FieldSpec(name="f", search_analyzer_name="standard"))

        assert wire == {"type": "string", "search_analyzer": "standard"}

    def test_analyzer_with_split_pair_is_rejected(self):
        """Test that combining both analyzer styles is a compilation error."""
        with pytest.raises(CompilationError, match="analyzer_name"):
            compile_field(FieldSpec(name="f", analyzer_name="standard", index_analyzer_name="keyword"))

    @pytest.mark.parametrize(
        "term_vector,wire",
        [
            (TermVector.YES, "yes"),
            (TermVector.WITH_OFFSETS, "with_offsets"),
            (TermVector.WITH_POSITIONS, "with_positions"),
            (TermVector.WITH_POSITIONS_OFFSETS, "with_positions_offsets"),
        ],
    )
    def test_term_vector(self, term_vector, wire):
        """Test that requested term vectors are written out."""
        assert compile_field(FieldSpec(name="f", term_vector=term_vector))["term_vector"] == wire

    def test_term_vector_no_emits_nothing(self):
        """Test that TermVector.NO omits the term_vector key."""
        assert "term_vector" not in compile_field(FieldSpec(name="f", term_vector=TermVector.NO))

    def test_object_field_recurses(self):
        """Test that object fields compile their sub-fields."""
        wire = compile_field(
            FieldSpec(
                name="address",
                value_type=FieldType.OBJECT,
                properties=[
                    FieldSpec(name="city", index=Index.NOT_ANALYZED),
                    FieldSpec(name="zip", value_type=FieldType.INTEGER, store=Store.YES),
                ],
            )
        )

        assert wire == {
            "type": "object",
            "properties": {
                "city": {"type": "string", "index": "not_analyzed"},
                "zip": {"type": "integer", "store": True},
            },
        }

    def test_sub_fields_on_scalar_rejected(self):
        """Test that only object and nested fields may declare sub-fields."""
        with pytest.raises(CompilationError, match="cannot declare sub-fields"):
            compile_field(FieldSpec(name="title", properties=[FieldSpec(name="x")]))

    @pytest.mark.parametrize("name", ["", "a.b", "with space"])
    def test_invalid_names(self, name):
        """Test that illegal field names are rejected."""
        with pytest.raises(InvalidNameError):
            compile_field(FieldSpec(name=name))


class TestFieldOptionCoercion:
    """Tests for string options given to FieldSpec."""

    def test_store_string_is_coerced(self):
        """Test that store given as a string is emitted like Store.YES."""
        spec = FieldSpec(name="title", store="yes")

        assert spec.store is Store.YES
        assert compile_field(spec)["store"] is True

    def test_index_string_is_case_insensitive(self):
        """Test that index given as an upper-case string is normalized."""
        assert compile_field(FieldSpec(name="author", index="NOT_ANALYZED"))["index"] == "not_analyzed"

    def test_value_type_and_term_vector_strings(self):
        """Test that value type and term vector strings become enum members."""
        spec = FieldSpec(name="stars", value_type="integer", term_vector="with_offsets")

        assert spec.value_type is FieldType.INTEGER
        assert spec.term_vector is TermVector.WITH_OFFSETS
        assert compile_field(spec) == {"type": "integer", "term_vector": "with_offsets"}

    @pytest.mark.parametrize(
        "options",
        [{"store": "maybe"}, {"index": "sometimes"}, {"term_vector": "all"}, {"value_type": "text"}, {"store": 1}],
    )
    def test_unknown_option_rejected(self, options):
        """Test that a value outside an option's allowed set raises InvalidOptionError."""
        with pytest.raises(InvalidOptionError, match="expected one of"):
            FieldSpec(name="f", **options)


class TestCompileMultiField:
    """Tests for compile_multi_field."""

    def test_multi_field_structure(self):
        """Test the multi_field wrapper and per-member compilation."""
        group = MultiFieldGroup(
            group_name="name",
            fields=[
                FieldSpec(name="name", term_vector=TermVector.WITH_OFFSETS),
                FieldSpec(name="untouched", index=Index.NOT_ANALYZED, term_vector=TermVector.WITH_POSITIONS_OFFSETS),
            ],
        )

        assert compile_multi_field(group) == {
            "type": "multi_field",
            "fields": {
                "name": {"type": "string", "term_vector": "with_offsets"},
                "untouched": {
                    "type": "string",
                    "index": "not_analyzed",
                    "term_vector": "with_positions_offsets",
                },
            },
        }

    def test_members_are_isolated(self):
        """Test that changing one member never changes another member's output."""
        primary = FieldSpec(name="name")
        before = compile_multi_field(MultiFieldGroup("name", [primary, FieldSpec(name="raw")]))
        after = compile_multi_field(MultiFieldGroup("name", [primary, FieldSpec(name="raw", index=Index.NO)]))

        assert before["fields"]["name"] == after["fields"]["name"]
        assert after["fields"]["raw"]["index"] == "no"

    def test_duplicate_member(self):
        """Test that duplicate member names are rejected."""
        group = MultiFieldGroup("name", [FieldSpec(name="name"), FieldSpec(name="name")])

        with pytest.raises(DuplicateFieldNameError):
            compile_multi_field(group)

    def test_empty_group(self):
        """Test that a group without members is rejected."""
        with pytest.raises(CompilationError, match="no fields"):
            compile_multi_field(MultiFieldGroup("name", []))

    def test_missing_primary_member_warns(self, caplog):
        """Test that a group without a member named like the group logs a warning."""
        with caplog.at_level(logging.WARNING):
            wire = compile_multi_field(MultiFieldGroup("name", [FieldSpec(name="raw")]))

        assert "raw" in wire["fields"]
        assert "no member named like the group" in caplog.text


class TestCompileProperties:
    """Tests for compile_properties."""

    def test_preserves_declaration_order(self):
        """Test that fields come first in declaration order, then groups."""
        properties = compile_properties(
            [FieldSpec(name="b"), FieldSpec(name="a")],
            [MultiFieldGroup("c", [FieldSpec(name="c")])],
        )

        assert list(properties) == ["b", "a", "c"]

    def test_duplicate_across_fields_and_groups(self):
        """Test that a group may not reuse a plain field's name."""
        with pytest.raises(DuplicateFieldNameError):
            compile_properties(
                [FieldSpec(name="name")],
                [MultiFieldGroup("name", [FieldSpec(name="name")])],
            )

    def test_duplicate_fields(self):
        """Test that two plain fields may not share a name."""
        with pytest.raises(DuplicateFieldNameError):
            compile_properties([FieldSpec(name="a"), FieldSpec(name="a", store=Store.YES)])
