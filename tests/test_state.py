"""Tests for the grid and session state mixins.

The listing API is replaced by :class:`FakeListing`, an in-memory service
whose calls can be held back to reorder responses.  Background handlers
are driven through their underlying function with ``asyncio.run``.
"""

import asyncio
from typing import Any

import pytest
import reflex as rx

from reflex_filter_grid import state as grid_state
from reflex_filter_grid.client import ListingResult
from reflex_filter_grid.columns import EMPLOYEE_COLUMNS
from reflex_filter_grid.exceptions import ListingError, SessionExpiredError
from reflex_filter_grid.models import filter_types
from reflex_filter_grid.predicates import filter_rows
from reflex_filter_grid.repository import SAMPLE_EMPLOYEES
from reflex_filter_grid.session import SessionContext
from reflex_filter_grid.state import FilterableGridMixin, SessionStateMixin

TYPES = filter_types(EMPLOYEE_COLUMNS)


class FakeListing:
    """In-memory listing service recording every call."""

    def __init__(self) -> None:
        self.reset()

    def reset(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self.tokens: list[str | None] = []
        self.held: dict[int, asyncio.Event] = {}
        self.error: Exception | None = None

    def hold(self, call_number: int) -> asyncio.Event:
        """Block the *call_number*-th call until the returned event is set."""
        gate = asyncio.Event()
        self.held[call_number] = gate
        return gate

    async def list_rows(self, session: SessionContext, filters: dict[str, Any]) -> ListingResult:
        self.calls.append(dict(filters))
        self.tokens.append(session.token)
        gate = self.held.get(len(self.calls))
        if gate is not None:
            await gate.wait()
        if self.error is not None:
            raise self.error
        rows = filter_rows(SAMPLE_EMPLOYEES, filters, TYPES)
        return ListingResult(rows=rows, total=len(rows))


_LISTING = FakeListing()


class GridStubState(FilterableGridMixin, rx.State):
    """Grid state reading from the in-memory listing."""

    def _grid_runtime_id(self) -> str:
        return "grid-stub"

    async def _fetch_grid_columns(self, session):
        return list(EMPLOYEE_COLUMNS)

    async def _fetch_grid_rows(self, session, filters):
        return await _LISTING.list_rows(session, filters)


class SessionGridStubState(SessionStateMixin, FilterableGridMixin, rx.State):
    """Cookie session plus grid, reading from the in-memory listing."""

    def _grid_runtime_id(self) -> str:
        return "session-grid-stub"

    async def _fetch_grid_columns(self, session):
        return list(EMPLOYEE_COLUMNS)

    async def _fetch_grid_rows(self, session, filters):
        return await _LISTING.list_rows(session, filters)


def _run(coro):
    """Run an async coroutine synchronously."""
    return asyncio.run(coro)


async def _drain(events) -> list[Any]:
    """Exhaust an async-generator event handler, collecting what it yields."""
    return [event async for event in events]


async def _until(condition, attempts: int = 100) -> None:
    for _ in range(attempts):
        if condition():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition never became true")


def _dispatch(state, generation: int):
    """Coroutine of the background dispatch handler for *generation*."""
    return type(state).run_grid_dispatch.fn(state, generation)


def _pending_generation(state) -> int:
    pending = grid_state._runtime_registry[state._grid_runtime_id()].pending
    assert pending is not None
    return pending.generation


def _ids(rows) -> list[Any]:
    return [row["id"] for row in rows]


@pytest.fixture(autouse=True)
def _quiet_dispatch(monkeypatch):
    """No debounce wait, a clean runtime registry and a fresh listing."""
    monkeypatch.setenv("FILTER_GRID_GRID__FILTER_DEBOUNCE_MS", "0")
    grid_state._runtime_registry.clear()
    _LISTING.reset()
    yield
    grid_state._runtime_registry.clear()


@pytest.fixture()
def listing() -> FakeListing:
    return _LISTING


@pytest.fixture()
def grid() -> GridStubState:
    state = GridStubState(_reflex_internal_init=True)
    _run(_drain(state.load_grid()))
    return state


class TestLoadGrid:
    """Tests for the initial load."""

    def test_load_fills_rows_and_headers(self, grid: GridStubState, listing: FakeListing):
        """Columns and the unfiltered rows arrive in one load."""
        assert listing.calls == [{}]
        assert grid.grid_loaded
        assert not grid.grid_loading
        assert grid.grid_total == 8
        assert _ids(grid.grid_rows) == list(range(1, 9))
        assert [h.key for h in grid.grid_headers][:2] == ["name", "email"]

    def test_failed_first_load_clears_rows(self, listing: FakeListing):
        """Remote mode with nothing fetched yet shows no rows and the error."""
        listing.error = ListingError("listing down", status_code=503)
        state = GridStubState(_reflex_internal_init=True)
        _run(_drain(state.load_grid()))
        assert state.grid_error == "listing down"
        assert list(state.grid_rows) == []
        assert not state.grid_loaded
        assert not state.grid_loading

    def test_failed_reload_in_local_mode_keeps_rows(self, grid: GridStubState, listing: FakeListing):
        """Local mode keeps the rows it already has."""
        grid.set_grid_local_filtering(True)
        listing.error = ListingError("listing down", status_code=503)
        _run(_drain(grid.load_grid()))
        assert grid.grid_error == "listing down"
        assert len(grid.grid_rows) == 8


class TestRemoteDispatch:
    """Tests for debounced remote filtering."""

    def test_filter_change_is_fetched(self, grid: GridStubState, listing: FakeListing):
        """A remote filter change is sent to the listing service."""
        grid.handle_grid_filter_change("name", "name", "김")
        _run(_dispatch(grid, _pending_generation(grid)))
        assert listing.calls[-1] == {"name": "김"}
        assert _ids(grid.grid_rows) == [1]
        assert grid.grid_total == 1

    def test_superseded_response_is_dropped(self, grid: GridStubState, listing: FakeListing):
        """A response for an older generation never overwrites newer rows."""

        async def scenario():
            gate = listing.hold(2)
            grid.handle_grid_filter_change("name", "name", "김")
            slow = asyncio.create_task(_dispatch(grid, _pending_generation(grid)))
            await _until(lambda: len(listing.calls) == 2)

            grid.handle_grid_filter_change("name", "name", "이")
            await _dispatch(grid, _pending_generation(grid))

            gate.set()
            await slow

        _run(scenario())
        assert listing.calls[1:] == [{"name": "김"}, {"name": "이"}]
        assert _ids(grid.grid_rows) == [2]
        assert grid.grid_total == 1
        assert not grid.grid_loading

    def test_failure_keeps_rows_and_filters(self, grid: GridStubState, listing: FakeListing):
        """A failed listing call after a successful load keeps rows and filter state."""
        listing.error = ListingError("boom", status_code=500)
        grid.handle_grid_filter_change("name", "name", "김")
        _run(_dispatch(grid, _pending_generation(grid)))
        assert grid.grid_error == "boom"
        assert len(grid.grid_rows) == 8
        assert grid.grid_filters == {"name": "김"}
        assert not grid.grid_loading

    def test_mode_switch_discards_pending_dispatch(self, grid: GridStubState, listing: FakeListing):
        """Switching to local mode filters at once and never sends the pending query."""
        grid.handle_grid_filter_change("name", "name", "김")
        generation = _pending_generation(grid)
        grid.set_grid_local_filtering(True)
        assert _ids(grid.grid_rows) == [1]

        _run(_dispatch(grid, generation))
        assert listing.calls == [{}]
        assert _ids(grid.grid_rows) == [1]
        assert grid.grid_local_filtering


class TestLocalFiltering:
    """Tests for local filtering and selection."""

    def test_local_change_filters_immediately(self, grid: GridStubState, listing: FakeListing):
        """Local mode filters the loaded rows without a request."""
        grid.set_grid_local_filtering(True)
        grid.handle_grid_filter_change("age", "age", "35")
        assert _ids(grid.grid_rows) == [3, 5, 7]
        assert listing.calls == [{}]

    def test_malformed_number_does_not_filter(self, grid: GridStubState):
        """Non-numeric input in a number filter keeps every row."""
        grid.set_grid_local_filtering(True)
        grid.handle_grid_filter_change("age", "age", "abc")
        assert len(grid.grid_rows) == 8

    def test_select_all_uses_rendered_rows(self, grid: GridStubState):
        """The header checkbox selects exactly the rows on screen."""
        grid.set_grid_local_filtering(True)
        grid.handle_grid_filter_change("department", "department", "개발팀")
        grid.handle_grid_select_all(True)
        assert list(grid.grid_selected_ids) == [1, 4, 7]
        assert grid.grid_selection == "all"

        grid.handle_grid_select_all(False)
        assert list(grid.grid_selected_ids) == []
        assert grid.grid_selection == "none"

    def test_selection_survives_filtering(self, grid: GridStubState):
        """Rows filtered out stay selected; the header shows a partial state."""
        grid.set_grid_local_filtering(True)
        grid.handle_grid_select_row(2, True)
        grid.handle_grid_filter_change("department", "department", "개발팀")
        assert list(grid.grid_selected_ids) == [2]
        assert grid.grid_selection == "none"

    def test_cell_click_shows_detail_for_clickable_column(self, grid: GridStubState):
        """Only clickable columns report a detail text."""
        before = grid.grid_selected_info
        grid.handle_grid_cell_click("email", 1)
        assert grid.grid_selected_info == before
        grid.handle_grid_cell_click("name", 1)
        assert "김철수" in grid.grid_selected_info


class TestRuntimeLifecycle:
    """Tests for releasing per-client runtimes."""

    def test_unload_cancels_pending_dispatch(self, grid: GridStubState, listing: FakeListing):
        """Unmounting drops the runtime; the pending query is never sent."""
        grid.handle_grid_filter_change("name", "name", "김")
        generation = _pending_generation(grid)
        grid.unload_grid()
        assert "grid-stub" not in grid_state._runtime_registry

        _run(_dispatch(grid, generation))
        assert listing.calls == [{}]
        assert grid.grid_filters == {"name": "김"}

    def test_reset_forgets_everything(self, grid: GridStubState):
        """Reset clears filters, rows and selection."""
        grid.handle_grid_select_row(1, True)
        grid.handle_grid_filter_change("name", "name", "김")
        grid.reset_grid()
        assert grid.grid_filters == {}
        assert list(grid.grid_rows) == []
        assert list(grid.grid_selected_ids) == []
        assert not grid.grid_loaded
        assert "grid-stub" not in grid_state._runtime_registry

    def test_registry_is_bounded(self, monkeypatch):
        """The least recently used runtime is closed once the limit is reached."""
        monkeypatch.setenv("FILTER_GRID_GRID__MAX_RUNTIMES", "2")
        first, _ = grid_state._get_runtime("a")
        grid_state._get_runtime("b")
        grid_state._get_runtime("a")
        grid_state._get_runtime("c")
        assert list(grid_state._runtime_registry) == ["a", "c"]
        assert not first.scheduler.closed


class TestSessionState:
    """Tests for the cookie-backed session mixin."""

    def test_token_is_sent_with_listing_calls(self, listing: FakeListing):
        """The cookie token is attached to every listing call."""
        state = SessionGridStubState(_reflex_internal_init=True)
        state.auth_token = "tok"
        _run(_drain(state.load_grid()))
        assert listing.tokens == ["tok"]

    def test_401_expires_session(self, listing: FakeListing):
        """A 401 clears the cookie token and releases the runtime."""
        listing.error = SessionExpiredError("Session expired")
        state = SessionGridStubState(_reflex_internal_init=True)
        state.auth_token = "tok"
        _run(_drain(state.load_grid()))
        assert state.auth_token == ""
        assert state.grid_session_expired
        assert state.grid_error == "Session expired"
        assert "session-grid-stub" not in grid_state._runtime_registry

    def test_401_during_remote_dispatch(self, listing: FakeListing):
        """A 401 on a filtered query also logs out."""
        state = SessionGridStubState(_reflex_internal_init=True)
        state.auth_token = "tok"
        _run(_drain(state.load_grid()))
        listing.error = SessionExpiredError("Session expired")
        state.handle_grid_filter_change("name", "name", "김")
        _run(_dispatch(state, _pending_generation(state)))
        assert state.auth_token == ""
        assert state.grid_session_expired
        assert "session-grid-stub" not in grid_state._runtime_registry

    def test_logout_clears_token(self):
        """Logging out empties the cookie."""
        state = SessionGridStubState(_reflex_internal_init=True)
        state.auth_token = "tok"
        state.login_error = "old"
        state.handle_logout()
        assert state.auth_token == ""
        assert state.login_error == ""
