"""Row-inclusion predicates shared by local filtering and the listing service.

:func:`matches` decides whether one field value satisfies one filter
value.  A row passes a filter state when it matches every active entry
(AND across keys).  The rules per filter type:

* ``text`` -- case-insensitive substring.
* ``number`` -- "at least": ``field >= filter``.
* ``date`` -- exact string equality.
* ``select`` -- string equality; ``""`` / ``"all"`` / ``"전체"`` match everything.
* ``multi-select`` -- membership of the field's string form.
* ``range`` -- inclusive ``{"min", "max"}`` bounds, either side optional.
* anything else -- best-effort string equality.

Malformed filter input (``"abc"`` for a number filter, a range with no
usable bound) means "no constraint" rather than an error.
:func:`reflex_filter_grid.polars_utils.build_filter_expr` compiles the
same rules to polars expressions.
"""

from collections.abc import Iterable, Mapping
from typing import Any

from reflex_filter_grid.models import ALL_OPTION_VALUES, FilterValue


def coerce_number(value: Any) -> int | float | None:
    """Try to coerce *value* to a number; ``None`` when it is not numeric.

    Booleans are not numbers here.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
        for conv in (int, float):
            try:  # noqa: SIM105
                return conv(value)
            except ValueError:
                continue
    return None


def as_text(value: Any) -> str:
    """String form used for text/select/date comparison."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def range_bounds(value: Any) -> tuple[int | float | None, int | float | None]:
    """Return the numeric ``(min, max)`` of a range filter value.

    Accepts a ``{"min": .., "max": ..}`` mapping or a ``"min..max"``
    string (the query-string encoding).  Unusable bounds become ``None``.
    """
    if isinstance(value, str):
        low, sep, high = value.partition("..")
        if not sep:
            return None, None
        return coerce_number(low), coerce_number(high)
    if isinstance(value, Mapping):
        return coerce_number(value.get("min")), coerce_number(value.get("max"))
    return None, None


def is_active(value: FilterValue, filter_type: str | None = None) -> bool:
    """Return True when *value* constrains rows at all.

    ``None``, ``""``, empty collections and ranges without a usable bound
    are inactive.  For ``number`` filters any value that does not coerce
    to a number (lists, mappings and booleans included) is inactive, and
    the select "all" sentinels are inactive for ``select``.
    """
    if value is None:
        return False
    if filter_type == "number":
        return coerce_number(value) is not None
    if filter_type == "range":
        return range_bounds(value) != (None, None)
    if isinstance(value, str):
        if value.strip() == "":
            return False
        if filter_type in ("select", "multi-select"):
            return value not in ALL_OPTION_VALUES
        return True
    if isinstance(value, Mapping):
        return range_bounds(value) != (None, None)
    if isinstance(value, (list, tuple, set, frozenset)):
        return any(as_text(v) not in ALL_OPTION_VALUES for v in value)
    return True


def matches(field_value: Any, filter_value: FilterValue, filter_type: str | None) -> bool:
    """Decide whether *field_value* satisfies *filter_value*.

    Args:
        field_value: The row's value for the filtered field (may be None).
        filter_value: The current filter value.
        filter_type: One of the filter types, or ``None`` / unknown for
            best-effort string equality.

    Returns:
        True when the row should be kept for this filter.
    """
    if not is_active(filter_value, filter_type):
        return True

    if filter_type == "text":
        return as_text(filter_value).lower() in as_text(field_value).lower()

    if filter_type == "number":
        threshold = coerce_number(filter_value)
        number = coerce_number(field_value)
        if number is None:
            return False
        return number >= threshold  # type: ignore[operator]

    if filter_type == "date":
        return as_text(field_value) == as_text(filter_value)

    if filter_type == "select":
        return as_text(field_value) == as_text(filter_value)

    if filter_type == "multi-select":
        if isinstance(filter_value, str):
            choices = {filter_value}
        elif isinstance(filter_value, (list, tuple, set, frozenset)):
            choices = {as_text(v) for v in filter_value}
        else:
            choices = {as_text(filter_value)}
        if choices & ALL_OPTION_VALUES:
            return True
        return as_text(field_value) in choices

    if filter_type == "range":
        low, high = range_bounds(filter_value)
        number = coerce_number(field_value)
        if number is None:
            return False
        if low is not None and number < low:
            return False
        if high is not None and number > high:
            return False
        return True

    # Unknown type or missing field value: string equality.
    return as_text(field_value) == as_text(filter_value)


def row_matches(
    row: Mapping[str, Any],
    filters: Mapping[str, FilterValue],
    types: Mapping[str, str],
) -> bool:
    """True iff *row* matches every active entry of *filters*."""
    for key, value in filters.items():
        if not matches(row.get(key), value, types.get(key)):
            return False
    return True


def filter_rows(
    rows: Iterable[Mapping[str, Any]],
    filters: Mapping[str, FilterValue],
    types: Mapping[str, str],
) -> list[dict[str, Any]]:
    """Return the rows of *rows* that match *filters*, in their original order."""
    active = {k: v for k, v in filters.items() if is_active(v, types.get(k))}
    if not active:
        return [dict(row) for row in rows]
    return [dict(row) for row in rows if row_matches(row, active, types)]
