"""Polars helpers: filter-state expressions, column inference, JSON-safe rows.

The filter expressions follow the same rules as
:func:`reflex_filter_grid.predicates.matches`, so server-side filtering
of a polars frame agrees with client-side filtering of the loaded rows.
"""

from collections.abc import Mapping
from typing import Any

import polars as pl

from reflex_filter_grid.models import (
    ALL_OPTION_VALUES,
    ColumnDescriptor,
    FilterDescriptor,
    FilterValue,
    SelectOption,
)
from reflex_filter_grid.predicates import (
    as_text,
    coerce_number,
    is_active,
    range_bounds,
)


def polars_dtype_to_value_type(dtype: pl.DataType) -> str:
    """Map a polars DataType to the closest column value type.

    Returns:
        One of ``"text"``, ``"number"``, ``"date"``.
    """
    if isinstance(dtype, pl.Boolean):
        return "text"
    if dtype.is_numeric():
        return "number"
    if isinstance(dtype, (pl.Date, pl.Datetime)):
        return "date"
    return "text"


def _humanize_field_name(field: str) -> str:
    """``"hire_date"`` -> ``"Hire Date"``."""
    return field.strip("_").replace("_", " ").title()


def _col_to_str_expr(col: pl.Expr, dtype: pl.DataType) -> pl.Expr:
    """Convert a column expression to String, joining List/Array values with commas.

    Integral floats lose their ``.0`` (``30.0`` -> ``"30"``), matching
    :func:`reflex_filter_grid.predicates.as_text`.
    """
    if isinstance(dtype, (pl.List, pl.Array)):
        return col.cast(pl.List(pl.String)).list.join(",")
    if dtype.is_float():
        integral = col.is_finite() & (col == col.round(0))
        return (
            pl.when(integral)
            .then(col.cast(pl.Int64, strict=False).cast(pl.String))
            .otherwise(col.cast(pl.String))
        )
    return col.cast(pl.String)


def _detect_select_options(
    df: pl.DataFrame,
    col_name: str,
    dtype: pl.DataType,
    max_unique: int,
) -> list[str] | None:
    """Sorted distinct values when *col_name* should get a select filter.

    Categorical / Enum columns always qualify; string columns qualify when
    they have at most *max_unique* distinct values.
    """
    if isinstance(dtype, (pl.Categorical, pl.Enum)):
        return df[col_name].cast(pl.String).unique().drop_nulls().sort().to_list()
    if not isinstance(dtype, pl.String) or df.height == 0:
        return None
    values: list[str] = df[col_name].unique().drop_nulls().sort().to_list()
    if len(values) <= max_unique:
        return values
    return None


def columns_from_frame(
    df: pl.DataFrame,
    *,
    id_field: str = "id",
    select_threshold: int = 0,
    labels: Mapping[str, str] | None = None,
) -> list[ColumnDescriptor]:
    """Infer filterable column descriptors from a DataFrame.

    Args:
        df: The frame to inspect.
        id_field: Identity column, left out of the descriptors.
        select_threshold: String columns with at most this many distinct
            values get a ``select`` filter.  ``0`` disables detection.
        labels: Optional ``{column: label}`` overrides.

    Returns:
        One descriptor per column, each filtering its own field.
    """
    labels = labels or {}
    columns: list[ColumnDescriptor] = []
    for col_name, dtype in df.schema.items():
        if col_name == id_field:
            continue
        value_type = polars_dtype_to_value_type(dtype)
        options: list[str] | None = None
        if select_threshold > 0:
            options = _detect_select_options(df, col_name, dtype, select_threshold)

        if options is not None:
            value_type = "select"
            descriptor = FilterDescriptor(
                key=col_name,
                type="select",
                options=[SelectOption(value=o, label=o) for o in options],
            )
        else:
            descriptor = FilterDescriptor(key=col_name, type=value_type)  # type: ignore[arg-type]

        columns.append(
            ColumnDescriptor(
                key=col_name,
                label=labels.get(col_name, _humanize_field_name(col_name)),
                value_type=value_type,  # type: ignore[arg-type]
                filters=[descriptor],
            )
        )
    return columns


# ---------------------------------------------------------------------------
# Server-side filtering
# ---------------------------------------------------------------------------

def build_filter_expr(
    key: str,
    value: FilterValue,
    filter_type: str | None,
    schema: pl.Schema,
) -> pl.Expr | None:
    """Translate one filter-state entry into a boolean polars expression.

    Args:
        key: Filtered field name.
        value: Filter value.
        filter_type: Filter type of *key* (``None`` for unknown).
        schema: Frame schema, used for column dtypes.

    Returns:
        A polars expression, or ``None`` when the entry does not
        constrain rows.  A filter on a field missing from *schema*
        excludes every row.
    """
    if not is_active(value, filter_type):
        return None
    if key not in schema:
        return pl.lit(False)

    col = pl.col(key)
    dtype = schema[key]
    str_col = _col_to_str_expr(col, dtype)

    if filter_type == "text":
        needle = as_text(value).lower()
        expr = str_col.str.to_lowercase().str.contains(needle, literal=True)
    elif filter_type == "number":
        threshold = coerce_number(value)
        num_col = col if dtype.is_numeric() else str_col.str.strip_chars().cast(pl.Float64, strict=False)
        expr = num_col >= threshold
    elif filter_type in ("date", "select"):
        expr = str_col == as_text(value)
    elif filter_type == "multi-select":
        choices = [as_text(v) for v in value] if isinstance(value, list) else [as_text(value)]
        if set(choices) & ALL_OPTION_VALUES:
            return None
        expr = str_col.is_in(choices)
    elif filter_type == "range":
        low, high = range_bounds(value)
        num_col = col if dtype.is_numeric() else str_col.str.strip_chars().cast(pl.Float64, strict=False)
        expr = pl.lit(True)
        if low is not None:
            expr = expr & (num_col >= low)
        if high is not None:
            expr = expr & (num_col <= high)
        expr = expr & num_col.is_not_null()
    else:
        expr = str_col == as_text(value)

    return expr.fill_null(False)


def apply_filters(
    lf: pl.LazyFrame,
    filters: Mapping[str, FilterValue],
    types: Mapping[str, str],
    schema: pl.Schema | None = None,
) -> pl.LazyFrame:
    """Apply a filter state to a LazyFrame (AND across keys) -- **no collect**.

    Args:
        lf: The frame to filter.
        filters: ``{filter_key: value}``; inactive entries are ignored.
        types: ``{filter_key: filter_type}``.
        schema: Optional schema override; defaults to ``lf.collect_schema()``.

    Returns:
        The filtered ``pl.LazyFrame``.
    """
    if not filters:
        return lf
    if schema is None:
        schema = lf.collect_schema()

    exprs: list[pl.Expr] = []
    for key, value in filters.items():
        expr = build_filter_expr(key, value, types.get(key), schema)
        if expr is not None:
            exprs.append(expr)

    if not exprs:
        return lf

    combined = exprs[0]
    for e in exprs[1:]:
        combined = combined & e
    return lf.filter(combined)


def dataframe_to_dicts(df: pl.DataFrame) -> list[dict[str, Any]]:
    """Convert a DataFrame to a list of JSON-safe dicts.

    Temporal columns become ISO-8601 strings, List columns comma-joined
    strings, Struct columns strings.  Everything else is left to
    ``to_dicts()``.
    """
    exprs: list[pl.Expr] = []
    needs_cast = False
    for name, dtype in df.schema.items():
        if isinstance(dtype, (pl.Date, pl.Datetime, pl.Time, pl.Duration, pl.Struct)):
            exprs.append(pl.col(name).cast(pl.String))
            needs_cast = True
        elif isinstance(dtype, pl.List):
            exprs.append(pl.col(name).cast(pl.List(pl.String)).list.join(","))
            needs_cast = True
        else:
            exprs.append(pl.col(name))

    if not needs_cast:
        return df.to_dicts()
    return df.select(exprs).to_dicts()
