"""Reflex components for the filterable grid.

The table itself is built from Radix table primitives over the render
model kept in :class:`~reflex_filter_grid.state.FilterableGridMixin`
(``grid_headers``, ``grid_body``, ...).  Two small React helpers are
injected into the compiled page via ``add_custom_code()``:

* ``FilterFocusKeeper`` -- after a re-render, puts focus and caret back
  into the filter input named by ``grid_focus_target``.
* ``SelectAllCheckbox`` -- native header checkbox whose
  ``indeterminate`` flag follows the ``"some"`` selection state (a DOM
  property that cannot be set from JSX).

The header row (and with it every filter input) is always mounted; only
the body switches between the loading text, the empty text and the
rows.  This keeps focus in a filter input while rows change.
"""

from typing import Any

import reflex as rx


# ---------------------------------------------------------------------------
# Event-handler argument helpers
# ---------------------------------------------------------------------------

# -- Header checkbox: only the new checked flag goes to the backend
def _on_toggle_spec(event: rx.Var) -> list[rx.Var]:
    return [rx.Var(f"{event}.target.checked")]


# ---------------------------------------------------------------------------
# Inline JS -- injected into compiled pages via add_custom_code().
# ---------------------------------------------------------------------------
_FOCUS_KEEPER_JS = """
// Caret of each filter input as last seen in the browser, keyed by element id.
const filterCarets = {};

function rememberFilterCaret(e) {
  const el = e.target;
  if (!el || !el.id || !el.id.startsWith("filter-")) return;
  try {
    if (typeof el.selectionStart === "number") filterCarets[el.id] = el.selectionStart;
  } catch (_e) { /* number/date inputs have no selection API */ }
}

// Restore focus/caret into a filter input after the table re-rendered.
// The input is looked up by id because React may have replaced the node.
// If the input still has focus the browser kept the caret; leave it alone.
// The caret seen in the browser wins over the offset inferred server-side.
function FilterFocusKeeper({ targetId, offset, version }) {
  React.useEffect(() => {
    const events = ["keyup", "mouseup", "input", "select"];
    events.forEach((name) => document.addEventListener(name, rememberFilterCaret, true));
    return () => events.forEach((name) => document.removeEventListener(name, rememberFilterCaret, true));
  }, []);
  React.useEffect(() => {
    if (!targetId) return undefined;
    const frame = requestAnimationFrame(() => {
      const el = document.getElementById(targetId);
      if (!el || document.activeElement === el) return;
      el.focus();
      try {
        const length = (el.value || "").length;
        const caret = targetId in filterCarets ? filterCarets[targetId] : offset;
        const pos = Math.max(0, Math.min(caret || 0, length));
        el.setSelectionRange(pos, pos);
      } catch (_e) { /* number/date inputs have no selection API */ }
    });
    return () => cancelAnimationFrame(frame);
  }, [targetId, offset, version]);
  return null;
}
"""

_SELECT_ALL_JS = """
// Header checkbox with a real indeterminate state.
function SelectAllCheckbox({ selection, onToggle, ariaLabel }) {
  const ref = React.useRef(null);
  React.useEffect(() => {
    if (ref.current) ref.current.indeterminate = selection === "some";
  }, [selection]);
  return React.createElement("input", {
    type: "checkbox",
    ref: ref,
    checked: selection === "all",
    "aria-label": ariaLabel,
    onChange: (e) => { if (onToggle) onToggle(e); },
  });
}
"""


class _InlineComponent(rx.Component):
    """Base for components defined by ``add_custom_code()``."""

    library: str = "react"
    is_default: bool = False

    @property
    def import_var(self) -> rx.ImportVar:
        """Override: the tag is defined inline, so no import is emitted for it."""
        return rx.ImportVar(tag=None, render=False)

    def add_imports(self) -> dict:
        return {"react": [rx.ImportVar(tag="React", is_default=True)]}


class FocusKeeper(_InlineComponent):
    """Invisible component that re-applies focus to ``target_id``.

    ``version`` must change for every restore request so the effect
    re-runs even when target and offset stay the same.
    """

    tag: str = "FilterFocusKeeper"

    target_id: rx.Var[str]
    offset: rx.Var[int]
    version: rx.Var[int]

    def add_custom_code(self) -> list[str]:
        return [_FOCUS_KEEPER_JS]


class SelectAllCheckbox(_InlineComponent):
    """Header checkbox: checked on ``"all"``, indeterminate on ``"some"``."""

    tag: str = "SelectAllCheckbox"

    selection: rx.Var[str]
    aria_label: rx.Var[str]

    on_toggle: rx.EventHandler[_on_toggle_spec]

    def add_custom_code(self) -> list[str]:
        return [_SELECT_ALL_JS]


focus_keeper = FocusKeeper.create
select_all_checkbox = SelectAllCheckbox.create


# ---------------------------------------------------------------------------
# Grid pieces
# ---------------------------------------------------------------------------

# CSS properties a cell renderer may set (see ``renderers.CellView.style``).
_CELL_STYLE_KEYS: dict[str, str] = {
    "color": "color",
    "backgroundColor": "background_color",
    "fontWeight": "font_weight",
    "fontSize": "font_size",
    "padding": "padding",
    "borderRadius": "border_radius",
    "textDecoration": "text_decoration",
}


def _cell_style(style: rx.Var) -> dict[str, Any]:
    return {prop: style[key] for key, prop in _CELL_STYLE_KEYS.items()}


def _filter_control(state_cls: type, control: Any) -> rx.Component:
    """A single filter input (native select, or a text/number/date input)."""
    def on_change(value: rx.Var) -> Any:
        return state_cls.handle_grid_filter_change(control.column_key, control.filter_key, value)

    on_focus = state_cls.handle_grid_filter_focus(control.column_key, control.filter_key)
    on_blur = state_cls.handle_grid_filter_blur(control.column_key, control.filter_key)

    select = rx.el.select(
        rx.foreach(
            control.options,
            lambda option: rx.el.option(option["label"], value=option["value"]),
        ),
        id=control.element_id,
        value=control.value,
        on_change=on_change,
        on_focus=on_focus,
        on_blur=on_blur,
        font_size="12px",
        padding="2px 4px",
        width="100%",
    )
    text_input = rx.input(
        id=control.element_id,
        type=control.input_type,
        value=control.value,
        placeholder=control.placeholder,
        on_change=on_change,
        on_focus=on_focus,
        on_blur=on_blur,
        size="1",
        width="100%",
    )
    return rx.vstack(
        rx.cond(control.label != "", rx.text(control.label, size="1", color_scheme="gray")),
        rx.cond(control.input_type == "select", select, text_input),
        spacing="0",
        width="100%",
    )


def _header_cell(state_cls: type, header: Any) -> rx.Component:
    title = rx.hstack(
        rx.cond(header.icon != "", rx.text(header.icon)),
        rx.text(header.label, weight="bold", size="2"),
        rx.cond(
            header.tooltip != "",
            rx.tooltip(rx.icon("info", size=14), content=header.tooltip),
        ),
        spacing="1",
        align="center",
        on_click=state_cls.handle_grid_header_click(header.key),
        cursor=rx.cond(header.clickable, "pointer", "default"),
    )
    return rx.table.column_header_cell(
        rx.vstack(
            title,
            rx.foreach(header.filters, lambda control: _filter_control(state_cls, control)),
            spacing="1",
            align="stretch",
        ),
        text_align=header.align,
        width=header.width,
        vertical_align="top",
    )


def _body_cell(state_cls: type, row: Any, cell: Any) -> rx.Component:
    content = rx.cond(
        cell.href != "",
        rx.link(cell.display, href=cell.href, **_cell_style(cell.style)),
        rx.el.span(cell.display, **_cell_style(cell.style)),
    )
    return rx.table.cell(
        content,
        title=cell.tooltip,
        text_align=cell.align,
        cursor=rx.cond(cell.clickable, "pointer", "auto"),
        on_click=state_cls.handle_grid_cell_click(cell.column_key, row.id),
    )


def _body_row(state_cls: type, row: Any, on_row_click: Any = None) -> rx.Component:
    props: dict[str, Any] = {}
    if on_row_click is not None:
        props["on_click"] = on_row_click(row.id)
    return rx.table.row(
        rx.table.cell(
            rx.checkbox(
                checked=row.selected,
                on_change=lambda checked: state_cls.handle_grid_select_row(row.id, checked),
            ),
        ),
        rx.foreach(row.cells, lambda cell: _body_cell(state_cls, row, cell)),
        background_color=rx.cond(row.selected, rx.color("accent", 3), "transparent"),
        **props,
    )


def _message_row(state_cls: type, text: Any) -> rx.Component:
    return rx.table.row(
        rx.table.cell(
            rx.text(text, color_scheme="gray"),
            col_span=state_cls.grid_headers.length() + 1,
            text_align="center",
            padding="24px",
        ),
    )


def filterable_grid(
    state_cls: type,
    on_row_click: Any = None,
    select_all_label: str = "Select all rows",
    **props: Any,
) -> rx.Component:
    """Render the grid of a state class that mixes in ``FilterableGridMixin``.

    Unmounting the grid calls ``unload_grid``, which cancels a pending
    debounced dispatch.

    Args:
        state_cls: The concrete state class.
        on_row_click: Optional event handler called with the row id
            (e.g. ``state_cls.handle_grid_row_click``).
        select_all_label: Accessible label of the header checkbox.
        **props: Extra props for the outer box.

    Returns:
        The grid component, including the update banner and focus keeper.
    """
    header = rx.table.header(
        rx.table.row(
            rx.table.column_header_cell(
                select_all_checkbox(
                    selection=state_cls.grid_selection,
                    aria_label=select_all_label,
                    on_toggle=state_cls.handle_grid_select_all,
                ),
                width="36px",
                vertical_align="top",
            ),
            rx.foreach(state_cls.grid_headers, lambda h: _header_cell(state_cls, h)),
        ),
    )
    body = rx.table.body(
        rx.cond(
            state_cls.grid_loading_mode == "full",
            _message_row(state_cls, state_cls.grid_loading_text),
            rx.cond(
                state_cls.grid_body.length() == 0,
                _message_row(state_cls, state_cls.grid_empty_text),
                rx.foreach(
                    state_cls.grid_body,
                    lambda row: _body_row(state_cls, row, on_row_click),
                ),
            ),
        ),
    )
    box_props = {"width": "100%", "overflow_x": "auto", "on_unmount": state_cls.unload_grid}
    box_props.update(props)
    return rx.box(
        rx.cond(
            state_cls.grid_loading_mode == "banner",
            rx.callout(state_cls.grid_updating_text, icon="info", size="1", margin_bottom="8px"),
        ),
        rx.table.root(header, body, variant="surface", size="1", width="100%"),
        focus_keeper(
            target_id=state_cls.grid_focus_target,
            offset=state_cls.grid_focus_offset,
            version=state_cls.grid_render_version,
        ),
        **box_props,
    )


# ---------------------------------------------------------------------------
# Page helpers
# ---------------------------------------------------------------------------

def grid_selection_bar(
    state_cls: type,
    selected_label: str = "selected",
    process_label: str = "Process selected",
    clear_label: str = "Clear selection",
    local_label: str = "Local filtering",
) -> rx.Component:
    """Selection counter with process/clear buttons and the filtering-mode switch."""
    return rx.hstack(
        rx.badge(state_cls.grid_selected_ids.length(), " ", selected_label, size="2"),
        rx.button(
            process_label,
            on_click=state_cls.process_grid_selection,
            disabled=state_cls.grid_selected_ids.length() == 0,
            size="1",
        ),
        rx.button(
            clear_label,
            on_click=state_cls.clear_grid_selection,
            disabled=state_cls.grid_selected_ids.length() == 0,
            variant="soft",
            color_scheme="gray",
            size="1",
        ),
        rx.spacer(),
        rx.text(state_cls.grid_total, " rows", size="2", color_scheme="gray"),
        rx.hstack(
            rx.switch(
                checked=state_cls.grid_local_filtering,
                on_change=state_cls.set_grid_local_filtering,
            ),
            rx.text(local_label, size="2"),
            spacing="2",
            align="center",
        ),
        width="100%",
        align="center",
        spacing="3",
    )


def grid_filter_debug(state_cls: type, title: str = "Filter state") -> rx.Component:
    """Collapsible JSON view of the active filters and the selection."""
    return rx.box(
        rx.button(
            rx.cond(state_cls.grid_debug_expanded, rx.icon("chevron_down"), rx.icon("chevron_right")),
            title,
            on_click=state_cls.toggle_grid_debug,
            variant="ghost",
            size="1",
        ),
        rx.cond(
            state_cls.grid_debug_expanded,
            rx.code_block(state_cls.grid_debug_json, language="json", font_size="12px"),
        ),
        width="100%",
    )


def grid_detail_box(state_cls: type) -> rx.Component:
    return rx.box(
        rx.text(state_cls.grid_selected_info, size="2", white_space="pre-wrap"),
        padding="12px",
        border="1px solid var(--gray-5)",
        border_radius="8px",
        width="100%",
    )


def grid_error_box(state_cls: type, back_label: str = "Back to login") -> rx.Component:
    """Error callout; after a 401 it offers a way back to the login form."""
    return rx.cond(
        state_cls.grid_error != "",
        rx.callout(
            rx.hstack(
                rx.text(state_cls.grid_error),
                rx.cond(
                    state_cls.grid_session_expired,
                    rx.button(back_label, on_click=state_cls.handle_logout, size="1"),
                ),
                align="center",
                spacing="3",
            ),
            icon="triangle_alert",
            color_scheme="red",
            width="100%",
        ),
    )


def login_form(
    state_cls: type,
    title: str = "Login",
    username_label: str = "Username",
    password_label: str = "Password",
    submit_label: str = "Log in",
) -> rx.Component:
    """Login form for a state class that mixes in ``SessionStateMixin``."""
    return rx.card(
        rx.form(
            rx.vstack(
                rx.heading(title, size="5"),
                rx.input(name="username", placeholder=username_label, required=True, width="100%"),
                rx.input(
                    name="password",
                    type="password",
                    placeholder=password_label,
                    required=True,
                    width="100%",
                ),
                rx.cond(
                    state_cls.login_error != "",
                    rx.callout(
                        state_cls.login_error,
                        icon="triangle_alert",
                        color_scheme="red",
                        size="1",
                        width="100%",
                    ),
                ),
                rx.button(
                    submit_label,
                    type="submit",
                    loading=state_cls.login_pending,
                    width="100%",
                ),
                spacing="3",
                width="100%",
            ),
            on_submit=state_cls.handle_login,
        ),
        max_width="360px",
        width="100%",
    )
