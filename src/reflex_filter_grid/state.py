"""Reflex state mixins: a filterable grid and a cookie-backed login session.

:class:`FilterableGridMixin` wires the filter state store, the dispatch
scheduler, the focus tracker and the render model into reactive
``grid_*`` variables.  :class:`SessionStateMixin` keeps the session token
in a browser cookie and provides login/logout handlers.  Compose both
into one concrete state::

    class DirectoryState(SessionStateMixin, FilterableGridMixin, rx.State):
        def _grid_renderers(self):
            return employee_renderers()

    def index():
        return rx.cond(
            DirectoryState.is_authenticated,
            filterable_grid(DirectoryState),
            login_form(DirectoryState),
        )

Filter edits are applied to the loaded rows at once in local mode.  In
remote mode they are debounced and sent to the listing API from a
background task; a response whose dispatch generation was superseded
meanwhile is discarded.
"""

import asyncio
import json
import logging
from collections import OrderedDict
from typing import Any

import reflex as rx

from reflex_filter_grid.client import ApiClient, ListingResult
from reflex_filter_grid.config import get_settings
from reflex_filter_grid.dispatch import Dispatch, DispatchScheduler
from reflex_filter_grid.exceptions import (
    AuthenticationError,
    FilterGridError,
    SessionExpiredError,
)
from reflex_filter_grid.filter_state import FilterStateStore
from reflex_filter_grid.focus import FocusTracker
from reflex_filter_grid.grid import (
    BodyRow,
    GridTexts,
    HeaderCell,
    clear_selection,
    filter_input_value,
    render_grid,
    select_all,
    select_row,
)
from reflex_filter_grid.models import (
    ALL_OPTION_VALUES,
    ColumnDescriptor,
    filter_types,
    parse_columns,
)
from reflex_filter_grid.predicates import filter_rows
from reflex_filter_grid.renderers import RendererRegistry
from reflex_filter_grid.session import SessionContext

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Per-client runtime registry
# ---------------------------------------------------------------------------

class _GridRuntime:
    """Scheduler, focus tracker and filter store of one grid of one client.

    These hold timers and listeners, so they cannot live inside
    ``rx.State``.  They are kept in a module-level registry keyed by the
    client token and the state class name.
    """

    def __init__(self) -> None:
        grid_settings = get_settings().grid
        self.store = FilterStateStore()
        self.scheduler = DispatchScheduler(
            quiet_period=grid_settings.filter_debounce_ms / 1000,
            local=grid_settings.local_filtering,
        )
        self.focus = FocusTracker(blur_grace=grid_settings.blur_grace_ms / 1000)
        self.columns: list[ColumnDescriptor] = []
        self.pending: Dispatch | None = None

    @property
    def types(self) -> dict[str, str]:
        return filter_types(self.columns)


_runtime_registry: OrderedDict[str, _GridRuntime] = OrderedDict()


def _close_runtime(runtime: _GridRuntime) -> None:
    runtime.scheduler.close()
    runtime.store.reset()
    runtime.focus.reset()


def _get_runtime(runtime_id: str) -> tuple[_GridRuntime, bool]:
    """Return ``(runtime, created)`` for *runtime_id*.

    The registry keeps at most ``GridSettings.max_runtimes`` entries; the
    least recently used runtime is closed to make room.  A client whose
    runtime was evicted gets a new one rebuilt from its state vars.
    """
    runtime = _runtime_registry.get(runtime_id)
    if runtime is not None:
        _runtime_registry.move_to_end(runtime_id)
        return runtime, False
    runtime = _GridRuntime()
    _runtime_registry[runtime_id] = runtime
    limit = get_settings().grid.max_runtimes
    while len(_runtime_registry) > limit:
        evicted_id, evicted = _runtime_registry.popitem(last=False)
        logger.debug("evicting grid runtime %s", evicted_id)
        _close_runtime(evicted)
    return runtime, True


def _drop_runtime(runtime_id: str) -> None:
    runtime = _runtime_registry.pop(runtime_id, None)
    if runtime is not None:
        _close_runtime(runtime)


# ---------------------------------------------------------------------------
# FilterableGridMixin
# ---------------------------------------------------------------------------

class FilterableGridMixin(rx.State, mixin=True):
    """Reflex State mixin for a grid with per-column filter inputs.

    Inherit from this class **and** ``rx.State``.  All variables are
    prefixed with ``grid_`` so they do not collide with other state.

    Data comes from the listing API through :meth:`_fetch_grid_columns`
    and :meth:`_fetch_grid_rows`; override them to read from somewhere
    else.  Other hooks:

    * :meth:`_api_session` -- session used for API calls (no token by
      default; :class:`SessionStateMixin` supplies the cookie token).
    * :meth:`_grid_texts` / :meth:`_grid_renderers` -- display texts and
      cell renderers.
    * :meth:`_grid_cell_detail` -- detail text for a clickable cell.
    * :meth:`_on_session_expired` -- called after an HTTP 401.
    """

    # -- Frontend state vars --
    grid_columns: list[dict[str, Any]] = []
    grid_rows: list[dict[str, Any]] = []
    grid_headers: list[HeaderCell] = []
    grid_body: list[BodyRow] = []
    grid_selection: str = "none"
    grid_selected_ids: list[int | str] = []
    grid_filters: dict[str, Any] = {}
    grid_total: int = 0
    grid_loading: bool = False
    grid_loaded: bool = False
    grid_loading_mode: str = "none"
    grid_empty_text: str = ""
    grid_loading_text: str = ""
    grid_updating_text: str = ""
    grid_local_filtering: bool = False
    grid_error: str = ""
    grid_session_expired: bool = False
    grid_selected_info: str = "Click a highlighted cell to see details."
    grid_debug_json: str = "{}"
    grid_debug_expanded: bool = False
    grid_focus_target: str = ""
    grid_focus_offset: int = 0
    grid_render_version: int = 0

    # -- Backend-only vars (not sent to frontend) --
    _grid_source_rows: list[dict[str, Any]] = []
    _grid_fetched: bool = False

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def _api_session(self) -> SessionContext:
        return SessionContext()

    def _grid_texts(self) -> GridTexts:
        return GridTexts.from_settings(get_settings().grid)

    def _grid_renderers(self) -> RendererRegistry:
        return RendererRegistry()

    def _grid_cell_detail(self, column_key: str, row: dict[str, Any]) -> str:
        return _format_row(row)

    def _on_session_expired(self) -> None:
        pass

    async def _fetch_grid_columns(self, session: SessionContext) -> list[ColumnDescriptor]:
        async with ApiClient(get_settings().api, session) as client:
            return await client.column_info()

    async def _fetch_grid_rows(
        self,
        session: SessionContext,
        filters: dict[str, Any],
    ) -> ListingResult:
        async with ApiClient(get_settings().api, session) as client:
            return await client.list_rows(filters)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def load_grid(self):
        """Fetch column metadata and the unfiltered rows.

        Async generator: the loading state reaches the frontend before
        the requests go out.
        """
        runtime = self._grid_runtime()
        self.grid_loading = True  # type: ignore[assignment]
        self.grid_error = ""  # type: ignore[assignment]
        self.grid_session_expired = False  # type: ignore[assignment]
        self._refresh_grid_view(rerender=True)
        yield

        session = self._api_session()
        try:
            columns = await self._fetch_grid_columns(session)
            result = await self._fetch_grid_rows(session, {})
        except SessionExpiredError as exc:
            self._expire_grid_session(exc)
            return
        except FilterGridError as exc:
            self._fail_grid_listing(exc)
            return

        runtime.columns = columns
        self.grid_columns = [c.to_json_dict() for c in columns]  # type: ignore[assignment]
        self._grid_source_rows = result.rows  # type: ignore[assignment]
        self.grid_rows = list(result.rows)  # type: ignore[assignment]
        self.grid_total = result.total  # type: ignore[assignment]
        self._grid_fetched = True  # type: ignore[assignment]
        self.grid_local_filtering = runtime.scheduler.local  # type: ignore[assignment]
        self.grid_loaded = True  # type: ignore[assignment]
        self.grid_loading = False  # type: ignore[assignment]
        logger.info("grid loaded: %d columns, %d rows", len(columns), result.total)

        follow_up = self._dispatch_grid_filters(runtime)
        if follow_up is not None:
            yield follow_up

    def unload_grid(self) -> None:
        """The grid unmounted: cancel pending dispatches, release the runtime.

        ``grid_filters`` is kept; a later event rebuilds the runtime from it.
        """
        _drop_runtime(self._grid_runtime_id())
        self.grid_focus_target = ""  # type: ignore[assignment]
        self.grid_loading = False  # type: ignore[assignment]

    def reset_grid(self) -> None:
        """Forget filters, rows and selection (logout)."""
        _drop_runtime(self._grid_runtime_id())
        self.grid_filters = {}  # type: ignore[assignment]
        self.grid_rows = []  # type: ignore[assignment]
        self.grid_total = 0  # type: ignore[assignment]
        self.grid_selected_ids = []  # type: ignore[assignment]
        self.grid_headers = []  # type: ignore[assignment]
        self.grid_body = []  # type: ignore[assignment]
        self.grid_loaded = False  # type: ignore[assignment]
        self.grid_loading = False  # type: ignore[assignment]
        self.grid_error = ""  # type: ignore[assignment]
        self.grid_session_expired = False  # type: ignore[assignment]
        self.grid_focus_target = ""  # type: ignore[assignment]
        self._grid_source_rows = []  # type: ignore[assignment]
        self._grid_fetched = False  # type: ignore[assignment]

    # ------------------------------------------------------------------
    # Filter events
    # ------------------------------------------------------------------

    def handle_grid_filter_change(self, column_key: str, filter_key: str, value: Any):
        """A filter input changed.

        Select sentinels (``"all"``, ``""``) clear the filter; text-like
        edits also record the caret position for focus restoration.
        """
        runtime = self._grid_runtime()
        filter_type = runtime.types.get(filter_key)
        if filter_type in ("select", "multi-select"):
            if isinstance(value, str) and value in ALL_OPTION_VALUES:
                value = None
        elif isinstance(value, str):
            previous = filter_input_value(runtime.store.get(filter_key))
            runtime.focus.record_keystroke(column_key, filter_key, previous, value)

        runtime.store.set_filter(filter_key, value)
        return self._dispatch_grid_filters(runtime)

    def clear_grid_filter(self, filter_key: str):
        runtime = self._grid_runtime()
        runtime.store.clear_filter(filter_key)
        return self._dispatch_grid_filters(runtime)

    def handle_grid_filter_focus(self, column_key: str, filter_key: str) -> None:
        runtime = self._grid_runtime()
        current = filter_input_value(runtime.store.get(filter_key))
        runtime.focus.focus(column_key, filter_key, value_length=len(current))

    def handle_grid_filter_blur(self, column_key: str, filter_key: str):
        runtime = self._grid_runtime()
        seq = runtime.focus.begin_blur()
        return type(self).finish_grid_filter_blur(seq)

    @rx.event(background=True)
    async def finish_grid_filter_blur(self, seq: int):
        """Commit a blur once the grace period passed without a new focus."""
        async with self:
            runtime = self._grid_runtime()
        await asyncio.sleep(runtime.focus.blur_grace)
        async with self:
            if runtime.focus.complete_blur(seq):
                self.grid_focus_target = ""  # type: ignore[assignment]

    def set_grid_local_filtering(self, local: bool):
        """Switch between local and remote filtering.

        A pending remote dispatch is cancelled, and the current filter
        state is re-evaluated under the new mode.
        """
        runtime = self._grid_runtime()
        runtime.scheduler.set_local(local)
        runtime.pending = None
        self.grid_local_filtering = local  # type: ignore[assignment]
        self.grid_loading = False  # type: ignore[assignment]
        return self._dispatch_grid_filters(runtime)

    @rx.event(background=True)
    async def run_grid_dispatch(self, generation: int):
        """Deliver a debounced remote dispatch and apply its response.

        Nothing is applied if a newer dispatch was scheduled, the mode
        switched to local, or the grid unmounted while waiting.
        """
        async with self:
            runtime = self._grid_runtime()
            dispatch = runtime.pending
            session = self._api_session()
        if dispatch is None or dispatch.generation != generation:
            return

        scheduler = runtime.scheduler
        outcome: dict[str, Any] = {}

        async def _emit(filters: dict[str, Any]) -> None:
            if not filters:
                return
            async with self:
                if not scheduler.is_current(generation):
                    return
                self.grid_loading = True  # type: ignore[assignment]
                self._refresh_grid_view(rerender=True)
            try:
                outcome["result"] = await self._fetch_grid_rows(session, filters)
            except FilterGridError as exc:
                outcome["error"] = exc

        if not await scheduler.deliver(dispatch, _emit):
            return

        async with self:
            if not scheduler.is_current(generation):
                logger.debug("discarding stale listing response gen=%d", generation)
                return
            runtime.pending = None
            self.grid_loading = False  # type: ignore[assignment]
            error = outcome.get("error")
            if isinstance(error, SessionExpiredError):
                self._expire_grid_session(error)
                return
            if error is not None:
                self._fail_grid_listing(error)
                return
            if "result" in outcome:
                result: ListingResult = outcome["result"]
                self.grid_rows = result.rows  # type: ignore[assignment]
                self.grid_total = result.total  # type: ignore[assignment]
                self._grid_fetched = True  # type: ignore[assignment]
            else:
                # No active filters: the unfiltered rows, no round-trip.
                self.grid_rows = list(self._grid_source_rows)  # type: ignore[assignment]
                self.grid_total = len(self._grid_source_rows)  # type: ignore[assignment]
            self.grid_error = ""  # type: ignore[assignment]
            self._refresh_grid_view(rerender=True)

    # ------------------------------------------------------------------
    # Selection and click events
    # ------------------------------------------------------------------

    def handle_grid_select_all(self, checked: bool) -> None:
        self.grid_selected_ids = select_all([row.id for row in self.grid_body], checked)  # type: ignore[assignment]
        self._refresh_grid_view()

    def handle_grid_select_row(self, row_id: Any, checked: bool) -> None:
        self.grid_selected_ids = select_row(list(self.grid_selected_ids), row_id, checked)  # type: ignore[assignment]
        self._refresh_grid_view()

    def clear_grid_selection(self) -> None:
        self.grid_selected_ids = clear_selection()  # type: ignore[assignment]
        self._refresh_grid_view()

    def process_grid_selection(self) -> None:
        """Report the selected row ids in the detail box."""
        if not self.grid_selected_ids:
            self.grid_selected_info = "No rows selected."  # type: ignore[assignment]
            return
        ids = ", ".join(str(i) for i in self.grid_selected_ids)
        self.grid_selected_info = f"Selected ids: {ids}"  # type: ignore[assignment]

    def handle_grid_cell_click(self, column_key: str, row_id: Any) -> None:
        runtime = self._grid_runtime()
        column = next((c for c in runtime.columns if c.key == column_key), None)
        if column is None or column.body_options is None or not column.body_options.clickable:
            return
        row = self._grid_row(row_id)
        if row is not None:
            self.grid_selected_info = self._grid_cell_detail(column_key, row)  # type: ignore[assignment]

    def handle_grid_row_click(self, row_id: Any) -> None:
        row = self._grid_row(row_id)
        if row is not None:
            self.grid_selected_info = _format_row(row)  # type: ignore[assignment]

    def handle_grid_header_click(self, column_key: str) -> None:
        runtime = self._grid_runtime()
        column = next((c for c in runtime.columns if c.key == column_key), None)
        if column is None or column.header_options is None or not column.header_options.clickable:
            return
        tooltip = column.header_options.tooltip or ""
        self.grid_selected_info = f"{column.label}: {tooltip}".rstrip(": ")  # type: ignore[assignment]

    def toggle_grid_debug(self) -> None:
        self.grid_debug_expanded = not self.grid_debug_expanded  # type: ignore[assignment]

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _grid_runtime_id(self) -> str:
        return f"{self.router.session.client_token}:{type(self).__name__}"

    def _grid_runtime(self) -> _GridRuntime:
        """Return this client's runtime, rebuilding it from state if it was lost."""
        runtime, created = _get_runtime(self._grid_runtime_id())
        if created and self.grid_loaded:
            runtime.columns = parse_columns(list(self.grid_columns))
            runtime.scheduler.set_local(self.grid_local_filtering)
            for key, value in self.grid_filters.items():
                runtime.store.set_filter(key, value)
        return runtime

    def _grid_row(self, row_id: Any) -> dict[str, Any] | None:
        for row in self.grid_rows:
            if row.get("id") == row_id:
                return dict(row)
        return None

    def _dispatch_grid_filters(self, runtime: _GridRuntime):
        """Schedule the current filter state; returns a follow-up event or None."""
        active = runtime.store.get_active_filters(runtime.types)
        dispatch = runtime.scheduler.schedule(active)
        if dispatch.local:
            rows = filter_rows(self._grid_source_rows, active, runtime.types)
            self.grid_rows = rows  # type: ignore[assignment]
            self.grid_total = len(rows)  # type: ignore[assignment]
            self._refresh_grid_view(rerender=True)
            return None
        runtime.pending = dispatch
        self._refresh_grid_view()
        return type(self).run_grid_dispatch(dispatch.generation)

    def _refresh_grid_view(self, rerender: bool = False) -> None:
        """Recompute the render model; with *rerender*, also restore focus."""
        runtime = self._grid_runtime()
        texts = self._grid_texts()
        view = render_grid(
            runtime.columns,
            list(self.grid_rows),
            runtime.store.snapshot(),
            list(self.grid_selected_ids),
            loading=self.grid_loading,
            texts=texts,
            renderers=self._grid_renderers(),
        )
        self.grid_headers = view.headers  # type: ignore[assignment]
        self.grid_body = view.rows  # type: ignore[assignment]
        self.grid_selection = view.selection.value  # type: ignore[assignment]
        self.grid_loading_mode = view.loading_mode.value  # type: ignore[assignment]
        self.grid_empty_text = view.empty_text  # type: ignore[assignment]
        self.grid_loading_text = texts.loading  # type: ignore[assignment]
        self.grid_updating_text = texts.updating  # type: ignore[assignment]
        self.grid_filters = runtime.store.snapshot()  # type: ignore[assignment]
        self.grid_debug_json = json.dumps(  # type: ignore[assignment]
            {
                "filters": runtime.store.get_active_filters(runtime.types),
                "selected": list(self.grid_selected_ids),
            },
            ensure_ascii=False,
            indent=2,
            default=str,
        )
        if rerender:
            self._restore_grid_focus(runtime)

    def _restore_grid_focus(self, runtime: _GridRuntime) -> None:
        token = runtime.focus.token
        current = filter_input_value(runtime.store.get(token.filter_key)) if token else ""
        target = runtime.focus.on_rerender(current)
        if target is None:
            self.grid_focus_target = ""  # type: ignore[assignment]
            return
        self.grid_focus_target = target.element_id  # type: ignore[assignment]
        self.grid_focus_offset = target.offset  # type: ignore[assignment]
        self.grid_render_version += 1  # type: ignore[operator]

    def _fail_grid_listing(self, exc: FilterGridError) -> None:
        """Show a listing failure; filter state and selection stay as they are."""
        logger.warning("listing failed: %s", exc)
        self.grid_error = exc.message  # type: ignore[assignment]
        self.grid_loading = False  # type: ignore[assignment]
        if not self.grid_local_filtering and not self._grid_fetched:
            self.grid_rows = []  # type: ignore[assignment]
            self.grid_total = 0  # type: ignore[assignment]
        self._refresh_grid_view(rerender=True)

    def _expire_grid_session(self, exc: SessionExpiredError) -> None:
        """HTTP 401: stop pending work, drop the token, return to login."""
        logger.info("session expired during listing: %s", exc)
        self.grid_session_expired = True  # type: ignore[assignment]
        self.grid_error = exc.message  # type: ignore[assignment]
        self.grid_loading = False  # type: ignore[assignment]
        self._on_session_expired()
        self._refresh_grid_view()
        _drop_runtime(self._grid_runtime_id())


def _format_row(row: dict[str, Any]) -> str:
    return "\n".join(f"{field}: {value}" for field, value in row.items())


# ---------------------------------------------------------------------------
# SessionStateMixin
# ---------------------------------------------------------------------------

_settings = get_settings()
_token_settings = _settings.token
_cookie_settings = _settings.cookie


class SessionStateMixin(rx.State, mixin=True):
    """Reflex State mixin holding the session token in a browser cookie.

    List it *before* :class:`FilterableGridMixin` so its
    :meth:`_api_session` and :meth:`_on_session_expired` take precedence.
    Override :meth:`_after_login` / :meth:`_after_logout` to chain page
    events (e.g. ``load_grid`` / ``reset_grid``).
    """

    auth_token: str = rx.Cookie(
        "",
        name=_token_settings.cookie_name,
        path=_cookie_settings.path,
        max_age=_settings.session_cookie_max_age,
        same_site=_cookie_settings.same_site,
        secure=_cookie_settings.secure,
    )
    login_error: str = ""
    login_pending: bool = False

    @rx.var
    def is_authenticated(self) -> bool:
        return self.auth_token != ""

    def _api_session(self) -> SessionContext:
        return SessionContext(self.auth_token or None)

    def _on_session_expired(self) -> None:
        self.auth_token = ""  # type: ignore[assignment]

    def _after_login(self) -> Any:
        return None

    def _after_logout(self) -> Any:
        return None

    async def handle_login(self, form_data: dict[str, Any]):
        """Submit the login form; stores the token cookie on success."""
        self.login_pending = True  # type: ignore[assignment]
        self.login_error = ""  # type: ignore[assignment]
        yield

        username = str(form_data.get("username", "")).strip()
        password = str(form_data.get("password", ""))
        session = SessionContext()
        try:
            async with ApiClient(get_settings().api, session) as client:
                token = await client.login(username, password)
        except AuthenticationError as exc:
            self.login_error = exc.message  # type: ignore[assignment]
            self.login_pending = False  # type: ignore[assignment]
            return
        except FilterGridError as exc:
            logger.warning("login request failed: %s", exc)
            self.login_error = exc.message or "Login failed"  # type: ignore[assignment]
            self.login_pending = False  # type: ignore[assignment]
            return

        self.auth_token = token  # type: ignore[assignment]
        self.login_pending = False  # type: ignore[assignment]
        follow_up = self._after_login()
        if follow_up is not None:
            yield follow_up

    def handle_logout(self):
        self.auth_token = ""  # type: ignore[assignment]
        self.login_error = ""  # type: ignore[assignment]
        return self._after_logout()
