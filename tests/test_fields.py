"""Tests for declarative field extraction."""

import re

import pytest
from chatwatch.errors import ExtractionError
from chatwatch.fields import (
    FIELD_SPECS, FieldSpec, extract_fields, to_action, to_int, to_ymd,
)


class TestConverters:
    @pytest.mark.parametrize("action,expected", [
        ("created", True),
        ("placed", True),
        ("place", True),
        ("bucket", True),
        ("destroyed", False),
        ("broke", False),
        ("removed", False),
        ("break", False),
        ("Created", True),
    ])
    def test_to_action(self, action, expected):
        assert to_action(action) is expected

    def test_to_action_unknown(self):
        with pytest.raises(ValueError):
            to_action("killed")

    def test_to_ymd(self):
        assert to_ymd("03-25") == (0, 3, 25)
        assert to_ymd("13-03-25") == (2013, 3, 25)
        assert to_ymd("2013-03-25") == (2013, 3, 25)

    def test_to_int(self):
        assert to_int("-200") == -200


class TestExtractFields:
    PATTERN = re.compile(r"(?P<actor>\w+) at (?P<x>\S+)(?: (?P<note>\w+))?")

    def test_named_groups_converted(self):
        m = self.PATTERN.fullmatch("Steve at -5")
        fields = extract_fields(m, (FieldSpec("actor", "actor"), FieldSpec("x", "x", to_int)))
        assert fields == {"actor": "Steve", "x": -5}

    def test_constant_field(self):
        m = self.PATTERN.fullmatch("Steve at 1")
        fields = extract_fields(m, (FieldSpec("creation", default=True),))
        assert fields == {"creation": True}

    def test_optional_group_defaults(self):
        m = self.PATTERN.fullmatch("Steve at 1")
        fields = extract_fields(m, (FieldSpec("note", "note", required=False, default="none"),))
        assert fields == {"note": "none"}

    def test_missing_required_group(self):
        m = self.PATTERN.fullmatch("Steve at 1")
        with pytest.raises(ExtractionError) as exc:
            extract_fields(m, (FieldSpec("note", "note"),))
        assert exc.value.field == "note"

    def test_unknown_group(self):
        m = self.PATTERN.fullmatch("Steve at 1")
        with pytest.raises(ExtractionError):
            extract_fields(m, (FieldSpec("y", "y", to_int),))

    def test_conversion_failure(self):
        m = self.PATTERN.fullmatch("Steve at abc")
        with pytest.raises(ExtractionError) as exc:
            extract_fields(m, (FieldSpec("x", "x", to_int),))
        assert exc.value.field == "x"
        assert exc.value.value == "abc"


class TestShippedSpecs:
    def test_every_spec_group_exists_in_shipped_pattern(self, full_table):
        for category_id, specs in FIELD_SPECS.items():
            category = full_table.by_id(category_id)
            assert category is not None, category_id
            groups = category.full_pattern.groupindex
            for spec in specs:
                if spec.group is not None:
                    assert spec.group in groups, (category_id, spec.group)
