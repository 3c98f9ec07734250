"""Cell renderers: how a column turns ``(value, row)`` into what a cell shows.

Column descriptors only carry a renderer *name*
(``body_options.renderer``).  Executable formatting lives here, in a
:class:`RendererRegistry`, so descriptors stay plain JSON and nothing
callable crosses the API boundary.

Two variants cover everything the grid needs:

* :class:`PlainTextRenderer` -- stringified value, ``"-"`` for null.
* :class:`RichRenderer` -- optional ``format`` / ``style`` / ``tooltip``
  / ``href`` functions, each a pure function of ``(value, row)``.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

from reflex_filter_grid.predicates import as_text

NULL_DISPLAY: str = "-"

Row = Mapping[str, Any]
CellFn = Callable[[Any, Row], Any]


@dataclass(frozen=True)
class CellView:
    """Display-ready content of one body cell."""

    display: str
    href: str | None = None
    style: dict[str, str] = field(default_factory=dict)
    tooltip: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "display": self.display,
            "href": self.href or "",
            "style": dict(self.style),
            "tooltip": self.tooltip or "",
        }


class CellRenderer(Protocol):
    def render(self, value: Any, row: Row) -> CellView: ...


class PlainTextRenderer:
    """Stringified value; ``"-"`` for null."""

    def render(self, value: Any, row: Row) -> CellView:
        if value is None:
            return CellView(NULL_DISPLAY)
        return CellView(as_text(value))


class RichRenderer:
    """Renderer assembled from optional per-aspect functions.

    Args:
        format: ``(value, row) -> str`` display text.  Defaults to the
            plain-text form.
        style: ``(value, row) -> dict`` of CSS properties (camelCase
            keys, they are handed to React as-is).
        tooltip: ``(value, row) -> str`` hover text.
        href: ``(value, row) -> str`` link target; the cell becomes a link.
        null_display: Text shown for null values; the other functions are
            not called for null.
    """

    def __init__(
        self,
        format: CellFn | None = None,
        style: CellFn | None = None,
        tooltip: CellFn | None = None,
        href: CellFn | None = None,
        null_display: str = NULL_DISPLAY,
    ) -> None:
        self._format = format
        self._style = style
        self._tooltip = tooltip
        self._href = href
        self._null_display = null_display

    def render(self, value: Any, row: Row) -> CellView:
        if value is None:
            return CellView(self._null_display)
        display = self._format(value, row) if self._format else as_text(value)
        style = self._style(value, row) if self._style else None
        tooltip = self._tooltip(value, row) if self._tooltip else None
        href = self._href(value, row) if self._href else None
        return CellView(
            display=as_text(display),
            href=href or None,
            style=dict(style or {}),
            tooltip=tooltip or None,
        )


class RendererRegistry:
    """Name -> :class:`CellRenderer` lookup with a plain-text fallback."""

    def __init__(self, renderers: Mapping[str, CellRenderer] | None = None) -> None:
        self._fallback: CellRenderer = PlainTextRenderer()
        self._renderers: dict[str, CellRenderer] = dict(renderers or {})

    def register(self, name: str, renderer: CellRenderer) -> None:
        self._renderers[name] = renderer

    def get(self, name: str | None) -> CellRenderer:
        if name is None:
            return self._fallback
        return self._renderers.get(name, self._fallback)

    def __contains__(self, name: object) -> bool:
        return name in self._renderers

    def names(self) -> list[str]:
        return sorted(self._renderers)


# ---------------------------------------------------------------------------
# Generic renderers
# ---------------------------------------------------------------------------

def mailto_renderer(color: str = "#007bff") -> RichRenderer:
    """E-mail address rendered as a ``mailto:`` link."""
    return RichRenderer(
        href=lambda value, row: f"mailto:{value}",
        style=lambda value, row: {"color": color, "textDecoration": "none"},
    )


def badge_renderer(colors: Mapping[str, str], default: str = "#6c757d") -> RichRenderer:
    """Pill badge whose background depends on the value."""

    def _style(value: Any, row: Row) -> dict[str, str]:
        return {
            "padding": "4px 8px",
            "borderRadius": "12px",
            "fontSize": "12px",
            "fontWeight": "bold",
            "color": "white",
            "backgroundColor": colors.get(as_text(value), default),
        }

    return RichRenderer(style=_style)


def number_renderer(suffix: str = "", thousands: bool = True) -> RichRenderer:
    """Number with thousands separators and an optional unit suffix."""

    def _format(value: Any, row: Row) -> str:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return as_text(value)
        text = f"{value:,}" if thousands else as_text(value)
        return f"{text}{suffix}"

    return RichRenderer(format=_format, style=lambda value, row: {"textAlign": "right"})
