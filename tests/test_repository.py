"""Tests for the polars-backed listing repositories."""

import polars as pl
import pytest

from reflex_filter_grid.polars_utils import (
    apply_filters,
    build_filter_expr,
    columns_from_frame,
    dataframe_to_dicts,
)
from reflex_filter_grid.predicates import filter_rows
from reflex_filter_grid.repository import (
    SAMPLE_EMPLOYEES,
    DataFrameRepository,
    EmployeeRepository,
)


def _ids(rows):
    return [row["id"] for row in rows]


class TestEmployeeRepository:
    """Tests for the sample employee directory."""

    def test_no_filters_returns_everything(self, repository: EmployeeRepository):
        """An empty filter state lists all eight employees."""
        rows, total = repository.list({})
        assert total == 8
        assert _ids(rows) == list(range(1, 9))

    def test_department_filter(self, repository: EmployeeRepository):
        """A select filter keeps exact matches only."""
        rows, total = repository.list({"department": "개발팀"})
        assert _ids(rows) == [1, 4, 7]
        assert total == 3

    def test_age_is_at_least(self, repository: EmployeeRepository):
        """Number filters keep ages greater than or equal to the input."""
        rows, _ = repository.list({"age": "30"})
        assert _ids(rows) == [1, 3, 5, 7, 8]

    def test_filters_are_anded(self, repository: EmployeeRepository):
        """Several filters must all hold."""
        rows, total = repository.list({"department": "개발팀", "age": "30"})
        assert _ids(rows) == [1, 7]
        assert total == 2

    def test_inactive_filters_are_ignored(self, repository: EmployeeRepository):
        """Select "all" and malformed numbers do not constrain."""
        rows, _ = repository.list({"department": "all", "age": "abc", "name": None})
        assert len(rows) == 8

    @pytest.mark.parametrize("value", [["30", "40"], {"min": 20}, True])
    def test_malformed_number_filter_is_ignored(self, repository: EmployeeRepository, value):
        """Non-scalar number input lists every row, as client-side filtering does."""
        rows, total = repository.list({"age": value})
        assert total == 8
        assert _ids(rows) == _ids(filter_rows(SAMPLE_EMPLOYEES, {"age": value}, repository.filter_types()))

    def test_text_filter_is_case_insensitive(self, repository: EmployeeRepository):
        """Text filters match substrings case-insensitively."""
        rows, _ = repository.list({"email": "KIM@"})
        assert _ids(rows) == [1]

    def test_unknown_field_excludes_everything(self, repository: EmployeeRepository):
        """A filter on a field the rows do not have matches nothing."""
        rows, total = repository.list({"nickname": "x"})
        assert rows == []
        assert total == 0

    @pytest.mark.parametrize(
        "filters",
        [
            {"name": "김"},
            {"location": "서울"},
            {"salary": "4000000"},
            {"hireDate": "2020-01-15"},
            {"status": "퇴사"},
            {"position": "개발자", "age": 30},
        ],
    )
    def test_server_and_client_filtering_agree(self, repository: EmployeeRepository, filters):
        """polars filtering and in-memory predicates select the same rows."""
        types = repository.filter_types()
        rows, _ = repository.list(filters)
        assert _ids(rows) == _ids(filter_rows(SAMPLE_EMPLOYEES, filters, types))


class TestDataFrameRepository:
    """Tests for :class:`DataFrameRepository` with inferred columns."""

    def test_infers_columns(self):
        """Columns are inferred from the frame, skipping the id column."""
        df = pl.DataFrame({"id": [1, 2], "hire_date": ["2020-01-01", "2021-01-01"], "score": [1.5, 3.0]})
        repo = DataFrameRepository(df)
        assert [c.key for c in repo.columns()] == ["hire_date", "score"]
        assert repo.columns()[0].label == "Hire Date"
        assert repo.filter_types() == {"hire_date": "text", "score": "number"}

    @pytest.mark.parametrize(
        ("filters", "types"),
        [
            ({"score": "30"}, {"score": "select"}),
            ({"score": "30"}, {"score": "text"}),
            ({"score": "2.5"}, {"score": "text"}),
            ({"score": "30"}, {"score": "number"}),
        ],
    )
    def test_float_columns_filter_alike_on_both_sides(self, filters, types):
        """Integral floats compare as ``"30"`` in polars and in the predicates."""
        df = pl.DataFrame({"id": [1, 2, 3], "score": [30.0, 2.5, 130.0]})
        rows = dataframe_to_dicts(df)
        server = apply_filters(df.lazy(), filters, types).collect()["id"].to_list()
        assert server == _ids(filter_rows(rows, filters, types))

    def test_duplicate_ids_rejected(self):
        """The id column must be unique."""
        with pytest.raises(ValueError):
            DataFrameRepository(pl.DataFrame({"id": [1, 1]}))

    def test_missing_id_rejected(self):
        """The id column must exist."""
        with pytest.raises(ValueError):
            DataFrameRepository(pl.DataFrame({"key": [1]}))


class TestPolarsUtils:
    """Tests for the polars helpers."""

    def test_select_detection(self):
        """Low-cardinality string columns get a select filter."""
        df = pl.DataFrame({"id": [1, 2, 3], "team": ["a", "b", "a"]})
        (column,) = columns_from_frame(df, select_threshold=5)
        assert column.value_type == "select"
        assert [o.value for o in column.filters[0].options] == ["a", "b"]

    def test_range_expression(self):
        """Range filters are inclusive and skip nulls."""
        df = pl.DataFrame({"id": [1, 2, 3, 4], "age": [10, 20, None, 30]})
        expr = build_filter_expr("age", {"min": 10, "max": 20}, "range", df.schema)
        assert df.filter(expr)["id"].to_list() == [1, 2]

    def test_multi_select_expression(self):
        """Multi-select keeps rows whose value is among the choices."""
        df = pl.DataFrame({"id": [1, 2, 3], "city": ["서울", "부산", "대구"]})
        lf = apply_filters(df.lazy(), {"city": ["서울", "대구"]}, {"city": "multi-select"})
        assert lf.collect()["id"].to_list() == [1, 3]

    def test_inactive_entry_has_no_expression(self):
        """Inactive entries produce no expression at all."""
        df = pl.DataFrame({"id": [1]})
        assert build_filter_expr("id", "", "text", df.schema) is None

    def test_dataframe_to_dicts_temporal(self):
        """Dates serialise as ISO strings."""
        df = pl.DataFrame({"id": [1], "day": ["2020-01-15"]}).with_columns(pl.col("day").str.to_date())
        assert dataframe_to_dicts(df) == [{"id": 1, "day": "2020-01-15"}]
