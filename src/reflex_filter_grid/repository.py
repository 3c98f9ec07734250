"""Listing repositories: filter criteria in, ``(rows, total)`` out.

The listing API and the CLI only depend on the :class:`ListingRepository`
protocol.  :class:`DataFrameRepository` serves any polars DataFrame;
:class:`EmployeeRepository` is the in-memory employee directory the demo
runs on.
"""

import logging
import time
from collections.abc import Mapping
from typing import Any, Protocol

import polars as pl

from reflex_filter_grid.columns import EMPLOYEE_COLUMNS
from reflex_filter_grid.models import (
    ColumnDescriptor,
    FilterValue,
    filter_types,
    validate_columns,
)
from reflex_filter_grid.polars_utils import (
    apply_filters,
    columns_from_frame,
    dataframe_to_dicts,
)
from reflex_filter_grid.predicates import is_active

logger = logging.getLogger(__name__)


class ListingRepository(Protocol):
    def columns(self) -> list[ColumnDescriptor]: ...

    def list(self, filters: Mapping[str, FilterValue]) -> tuple[list[dict[str, Any]], int]: ...


class DataFrameRepository:
    """Listing repository over an in-memory polars DataFrame.

    Args:
        df: Source frame; must have a unique ``id_field`` column.
        columns: Column descriptors.  Inferred from *df* when omitted.
        id_field: Identity column name.
    """

    def __init__(
        self,
        df: pl.DataFrame,
        columns: list[ColumnDescriptor] | None = None,
        id_field: str = "id",
    ) -> None:
        if id_field not in df.columns:
            raise ValueError(f"DataFrame has no {id_field!r} column")
        if df[id_field].n_unique() != df.height:
            raise ValueError(f"Column {id_field!r} is not unique")
        self._df = df
        self._id_field = id_field
        self._columns = validate_columns(
            columns if columns is not None else columns_from_frame(df, id_field=id_field)
        )
        self._types = filter_types(self._columns)

    @property
    def frame(self) -> pl.DataFrame:
        return self._df

    def columns(self) -> list[ColumnDescriptor]:
        return list(self._columns)

    def filter_types(self) -> dict[str, str]:
        return dict(self._types)

    def all_rows(self) -> list[dict[str, Any]]:
        return dataframe_to_dicts(self._df)

    def list(self, filters: Mapping[str, FilterValue]) -> tuple[list[dict[str, Any]], int]:
        """Return the rows matching every active filter, and their count.

        Filter keys without a declared filter type fall back to string
        equality, same as the client-side predicates.
        """
        t0 = time.perf_counter()
        active = {k: v for k, v in filters.items() if is_active(v, self._types.get(k))}
        lf = apply_filters(self._df.lazy(), active, self._types, self._df.schema)
        df = lf.collect()
        rows = dataframe_to_dicts(df)
        elapsed_ms = (time.perf_counter() - t0) * 1000
        logger.info(
            "listing query filters=%s rows=%d elapsed=%.1fms",
            sorted(active),
            len(rows),
            elapsed_ms,
        )
        return rows, len(rows)


# ---------------------------------------------------------------------------
# Sample employee directory
# ---------------------------------------------------------------------------

SAMPLE_EMPLOYEES: list[dict[str, Any]] = [
    {
        "id": 1, "name": "김철수", "email": "kim@example.com", "department": "개발팀",
        "position": "시니어 개발자", "age": 32, "location": "서울", "salary": 5000000,
        "hireDate": "2020-01-15", "status": "재직중",
    },
    {
        "id": 2, "name": "이영희", "email": "lee@example.com", "department": "디자인팀",
        "position": "UI/UX 디자이너", "age": 28, "location": "경기", "salary": 4000000,
        "hireDate": "2021-03-20", "status": "재직중",
    },
    {
        "id": 3, "name": "박민수", "email": "park@example.com", "department": "마케팅팀",
        "position": "마케팅 매니저", "age": 35, "location": "부산", "salary": 4500000,
        "hireDate": "2019-07-10", "status": "재직중",
    },
    {
        "id": 4, "name": "정수진", "email": "jung@example.com", "department": "개발팀",
        "position": "주니어 개발자", "age": 25, "location": "인천", "salary": 3500000,
        "hireDate": "2022-02-28", "status": "재직중",
    },
    {
        "id": 5, "name": "최동욱", "email": "choi@example.com", "department": "인사팀",
        "position": "인사 담당자", "age": 42, "location": "대구", "salary": 3800000,
        "hireDate": "2020-11-05", "status": "퇴사",
    },
    {
        "id": 6, "name": "한미영", "email": "han@example.com", "department": "디자인팀",
        "position": "그래픽 디자이너", "age": 29, "location": "광주", "salary": 3200000,
        "hireDate": "2021-09-12", "status": "재직중",
    },
    {
        "id": 7, "name": "송태호", "email": "song@example.com", "department": "개발팀",
        "position": "백엔드 개발자", "age": 38, "location": "대전", "salary": 4800000,
        "hireDate": "2018-12-03", "status": "재직중",
    },
    {
        "id": 8, "name": "윤지은", "email": "yoon@example.com", "department": "마케팅팀",
        "position": "콘텐츠 매니저", "age": 31, "location": "울산", "salary": 4200000,
        "hireDate": "2020-06-18", "status": "재직중",
    },
]


def build_employee_frame() -> pl.DataFrame:
    """Sample employee rows as a DataFrame (``hireDate`` kept as ISO strings)."""
    return pl.DataFrame(SAMPLE_EMPLOYEES)


class EmployeeRepository(DataFrameRepository):
    """The eight-row employee directory with :data:`EMPLOYEE_COLUMNS`."""

    def __init__(self, df: pl.DataFrame | None = None) -> None:
        super().__init__(
            df if df is not None else build_employee_frame(),
            columns=list(EMPLOYEE_COLUMNS),
        )
