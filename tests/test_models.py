"""Tests for column and filter descriptor models."""

import pytest
from pydantic import ValidationError

from reflex_filter_grid.columns import EMPLOYEE_COLUMNS
from reflex_filter_grid.exceptions import ColumnConfigError
from reflex_filter_grid.models import (
    ColumnDescriptor,
    FilterDescriptor,
    filter_types,
    parse_columns,
    validate_columns,
)


class TestColumnDescriptor:
    """Tests for :class:`ColumnDescriptor`."""

    def test_camel_case_json(self):
        """Descriptors serialise with camelCase keys and without unset fields."""
        data = EMPLOYEE_COLUMNS[4].to_json_dict()
        assert data["key"] == "age"
        assert data["valueType"] == "number"
        assert data["headerOptions"]["tooltip"] == "입력한 나이 이상"
        assert data["bodyOptions"]["renderer"] == "age"
        assert "label" not in data["filters"][0]

    def test_parse_round_trip(self):
        """camelCase JSON parses back into equal descriptors."""
        parsed = parse_columns([c.to_json_dict() for c in EMPLOYEE_COLUMNS])
        assert parsed == EMPLOYEE_COLUMNS

    def test_duplicate_filter_key_in_column_rejected(self):
        """Filter keys are unique within one column."""
        with pytest.raises(ValidationError):
            ColumnDescriptor(
                key="salary",
                label="Salary",
                filters=[FilterDescriptor(key="salary"), FilterDescriptor(key="salary")],
            )

    def test_unknown_filter_type_rejected(self):
        """Only the known filter types are accepted."""
        with pytest.raises(ValidationError):
            FilterDescriptor(key="x", type="fuzzy")

    def test_duplicate_column_key_rejected(self):
        """Column keys are unique within a grid."""
        column = ColumnDescriptor(key="name", label="Name")
        with pytest.raises(ColumnConfigError):
            validate_columns([column, column])


class TestFilterTypes:
    """Tests for :func:`filter_types`."""

    def test_employee_types(self):
        """Every employee filter key maps to its declared type."""
        types = filter_types(EMPLOYEE_COLUMNS)
        assert types["name"] == "text"
        assert types["age"] == "number"
        assert types["department"] == "select"
        assert types["hireDate"] == "date"

    def test_first_declaration_wins_and_cross_field_filters(self):
        """A column may filter another field; duplicates keep the first type."""
        columns = [
            ColumnDescriptor(
                key="salary",
                label="Salary",
                filters=[
                    FilterDescriptor(key="minSalary", type="number"),
                    FilterDescriptor(key="grade", type="select"),
                ],
            ),
            ColumnDescriptor(key="grade", label="Grade", filters=[FilterDescriptor(key="grade")]),
        ]
        assert filter_types(columns) == {"minSalary": "number", "grade": "select"}
