"""Render model of the filterable grid.

:func:`render_grid` projects ``columns x rows x filter state x selection``
into a :class:`GridView`: header cells with their filter controls, body
rows with display-ready cells, the header-checkbox state, the loading
mode, and the empty-state text.  It is a pure function, so everything the
UI shows can be tested without a browser.
:mod:`reflex_filter_grid.state` keeps ``GridView.headers`` and
``GridView.rows`` in dataclass-typed state vars and
:mod:`reflex_filter_grid.components` renders them.

Selection helpers (:func:`select_all`, :func:`select_row`,
:func:`clear_selection`) return a new selection list.  The caller owns
the selection set; the grid only forwards intents.
"""

import enum
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from reflex_filter_grid.config import GridSettings
from reflex_filter_grid.focus import filter_element_id
from reflex_filter_grid.models import (
    ALL_OPTION,
    ColumnDescriptor,
    FilterDescriptor,
    FilterValue,
    filter_types,
)
from reflex_filter_grid.predicates import as_text, is_active
from reflex_filter_grid.renderers import RendererRegistry

RowId = str | int


class SelectionState(str, enum.Enum):
    NONE = "none"
    SOME = "some"
    ALL = "all"


class LoadingMode(str, enum.Enum):
    NONE = "none"
    FULL = "full"      # no rows yet: the whole table area shows the loading text
    BANNER = "banner"  # rows stay visible under an inline banner


@dataclass(frozen=True)
class GridTexts:
    """User-facing texts of the grid."""

    empty: str = "No data."
    filtered_empty: str = "No rows match the current filters."
    loading: str = "Loading data..."
    updating: str = "Updating data from the server..."
    all_label: str = "All"

    @classmethod
    def from_settings(cls, settings: GridSettings) -> "GridTexts":
        return cls(
            empty=settings.empty_text,
            filtered_empty=settings.filtered_empty_text,
            loading=settings.loading_text,
            updating=settings.updating_text,
            all_label=settings.all_label,
        )


# ---------------------------------------------------------------------------
# View dataclasses
# ---------------------------------------------------------------------------

_INPUT_TYPES: dict[str, str] = {
    "text": "text",
    "number": "number",
    "date": "date",
    "range": "text",
    "select": "select",
    "multi-select": "select",
}


@dataclass(frozen=True)
class FilterControl:
    """One filter input under a header cell."""

    column_key: str
    filter_key: str
    type: str
    input_type: str
    element_id: str
    value: str
    placeholder: str = ""
    label: str = ""
    options: list[dict[str, str]] = field(default_factory=list)
    min: float | None = None
    max: float | None = None
    step: float | None = None


@dataclass(frozen=True)
class HeaderCell:
    key: str
    label: str
    align: str = "left"
    tooltip: str = ""
    icon: str = ""
    clickable: bool = False
    width: str = ""
    filters: list[FilterControl] = field(default_factory=list)


@dataclass(frozen=True)
class BodyCell:
    column_key: str
    display: str
    href: str = ""
    style: dict[str, str] = field(default_factory=dict)
    tooltip: str = ""
    align: str = "left"
    clickable: bool = False


@dataclass(frozen=True)
class BodyRow:
    id: RowId
    selected: bool
    cells: list[BodyCell]


@dataclass(frozen=True)
class GridView:
    headers: list[HeaderCell]
    rows: list[BodyRow]
    selection: SelectionState
    loading_mode: LoadingMode
    empty_text: str
    filters_active: bool


# ---------------------------------------------------------------------------
# Building blocks
# ---------------------------------------------------------------------------

def filter_input_value(value: FilterValue) -> str:
    """Text shown inside a filter input for the stored *value*."""
    if value is None:
        return ""
    if isinstance(value, Mapping):
        low, high = value.get("min"), value.get("max")
        return f"{'' if low is None else as_text(low)}..{'' if high is None else as_text(high)}"
    if isinstance(value, (list, tuple)):
        return ",".join(as_text(v) for v in value)
    return as_text(value)


def _filter_control(
    column: ColumnDescriptor,
    descriptor: FilterDescriptor,
    value: FilterValue,
    texts: GridTexts,
) -> FilterControl:
    options: list[dict[str, str]] = []
    shown = filter_input_value(value)
    if descriptor.type in ("select", "multi-select"):
        options = [{"value": ALL_OPTION, "label": texts.all_label}]
        options += [{"value": o.value, "label": o.label} for o in descriptor.options or []]
        if shown == "":
            shown = ALL_OPTION
    placeholder = descriptor.placeholder or ""
    if not placeholder and descriptor.type == "range":
        placeholder = "min..max"
    return FilterControl(
        column_key=column.key,
        filter_key=descriptor.key,
        type=descriptor.type,
        input_type=_INPUT_TYPES.get(descriptor.type, "text"),
        element_id=filter_element_id(column.key, descriptor.key),
        value=shown,
        placeholder=placeholder,
        label=descriptor.label or "",
        options=options,
        min=descriptor.min,
        max=descriptor.max,
        step=descriptor.step,
    )


def header_cells(
    columns: Sequence[ColumnDescriptor],
    filters: Mapping[str, FilterValue],
    texts: GridTexts | None = None,
) -> list[HeaderCell]:
    """One header cell per column, each with its filter controls."""
    texts = texts or GridTexts()
    cells: list[HeaderCell] = []
    for column in columns:
        opts = column.header_options
        cells.append(
            HeaderCell(
                key=column.key,
                label=column.label,
                align=(opts.align if opts and opts.align else "left"),
                tooltip=(opts.tooltip or "") if opts else "",
                icon=(opts.icon or "") if opts else "",
                clickable=opts.clickable if opts else False,
                width=column.width or "",
                filters=[
                    _filter_control(column, d, filters.get(d.key), texts)
                    for d in column.active_filters
                ],
            )
        )
    return cells


def body_rows(
    columns: Sequence[ColumnDescriptor],
    rows: Iterable[Mapping[str, Any]],
    selected_ids: Iterable[RowId],
    renderers: RendererRegistry | None = None,
) -> list[BodyRow]:
    """One body row per data row, cells rendered by each column's renderer."""
    renderers = renderers or RendererRegistry()
    selected = set(selected_ids)
    body: list[BodyRow] = []
    for row in rows:
        cells: list[BodyCell] = []
        for column in columns:
            opts = column.body_options
            renderer = renderers.get(opts.renderer if opts else None)
            view = renderer.render(row.get(column.key), row)
            cells.append(
                BodyCell(
                    column_key=column.key,
                    display=view.display,
                    href=view.href or "",
                    style=view.style,
                    tooltip=view.tooltip or "",
                    align=(opts.align if opts and opts.align else "left"),
                    clickable=opts.clickable if opts else False,
                )
            )
        row_id = row.get("id")
        body.append(BodyRow(id=row_id, selected=row_id in selected, cells=cells))
    return body


def selection_state(rendered_ids: Sequence[RowId], selected_ids: Iterable[RowId]) -> SelectionState:
    """Header checkbox state for the currently rendered rows."""
    if not rendered_ids:
        return SelectionState.NONE
    selected = set(selected_ids)
    hits = sum(1 for row_id in rendered_ids if row_id in selected)
    if hits == 0:
        return SelectionState.NONE
    if hits == len(rendered_ids):
        return SelectionState.ALL
    return SelectionState.SOME


def loading_mode(loading: bool, row_count: int) -> LoadingMode:
    if not loading:
        return LoadingMode.NONE
    return LoadingMode.BANNER if row_count > 0 else LoadingMode.FULL


def empty_text(filters_active: bool, texts: GridTexts | None = None) -> str:
    texts = texts or GridTexts()
    return texts.filtered_empty if filters_active else texts.empty


def render_grid(
    columns: Sequence[ColumnDescriptor],
    rows: Sequence[Mapping[str, Any]],
    filters: Mapping[str, FilterValue],
    selected_ids: Iterable[RowId] = (),
    *,
    loading: bool = False,
    texts: GridTexts | None = None,
    renderers: RendererRegistry | None = None,
) -> GridView:
    """Project the grid inputs into a :class:`GridView`.

    Args:
        columns: Column descriptors, in display order.
        rows: The current row set (already filtered).
        filters: Current filter state (inactive entries allowed).
        selected_ids: Selection set owned by the page.
        loading: Whether a fetch is in flight.
        texts: Display texts; English defaults when omitted.
        renderers: Renderer registry for body cells.

    Returns:
        The complete render model.
    """
    texts = texts or GridTexts()
    selected = list(selected_ids)
    types = filter_types(list(columns))
    filters_active = any(is_active(v, types.get(k)) for k, v in filters.items())
    body = body_rows(columns, rows, selected, renderers)
    return GridView(
        headers=header_cells(columns, filters, texts),
        rows=body,
        selection=selection_state([r.id for r in body], selected),
        loading_mode=loading_mode(loading, len(body)),
        empty_text=empty_text(filters_active, texts),
        filters_active=filters_active,
    )


# ---------------------------------------------------------------------------
# Selection intents
# ---------------------------------------------------------------------------

def select_all(rendered_ids: Sequence[RowId], checked: bool) -> list[RowId]:
    """Header checkbox toggled: exactly the rendered ids, or nothing."""
    return list(dict.fromkeys(rendered_ids)) if checked else []


def select_row(selected_ids: Sequence[RowId], row_id: RowId, checked: bool) -> list[RowId]:
    """Row checkbox toggled: add or remove *row_id*, keeping order."""
    current = [i for i in selected_ids if i != row_id]
    if checked:
        current.append(row_id)
    return current


def clear_selection() -> list[RowId]:
    return []
