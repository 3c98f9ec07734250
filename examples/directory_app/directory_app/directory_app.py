"""Employee directory demo: login, then a filterable employee grid.

The listing API (``/auth/login``, ``/tasks/*``) is mounted into the
Reflex backend through ``api_transformer``, so one ``reflex run`` serves
both the page and the API the page talks to.

  * Log in as ``test`` / ``test123``.
  * Type into the name/email/position filters: in server mode the query
    is sent after a short pause, in client mode rows filter immediately.
  * Click a name to see the employee summary below the grid.
"""

from typing import Any

import reflex as rx

from reflex_filter_grid import (
    FilterableGridMixin,
    GridTexts,
    RendererRegistry,
    SessionStateMixin,
    create_api,
    employee_renderers,
    employee_summary,
    filterable_grid,
    grid_detail_box,
    grid_error_box,
    grid_filter_debug,
    grid_selection_bar,
    login_form,
)

KOREAN_TEXTS = GridTexts(
    empty="직원 데이터가 없습니다.",
    filtered_empty="필터 조건에 맞는 데이터가 없습니다.",
    loading="직원 데이터를 불러오는 중...",
    updating="서버에서 데이터를 업데이트하는 중...",
    all_label="전체",
)


class DirectoryState(SessionStateMixin, FilterableGridMixin, rx.State):
    """Page state: cookie session plus the employee grid."""

    grid_selected_info: str = "이름을 클릭하면 직원 정보가 표시됩니다."

    def _grid_texts(self) -> GridTexts:
        return KOREAN_TEXTS

    def _grid_renderers(self) -> RendererRegistry:
        return employee_renderers()

    def _grid_cell_detail(self, column_key: str, row: dict[str, Any]) -> str:
        return employee_summary(row)

    def _after_login(self) -> Any:
        return type(self).load_grid

    def _after_logout(self) -> Any:
        return type(self).reset_grid

    def on_page_load(self):
        """Load the grid when a session cookie is already present."""
        if self.auth_token:
            return type(self).load_grid


def _toolbar() -> rx.Component:
    return rx.hstack(
        rx.heading("직원 관리 시스템", size="6"),
        rx.spacer(),
        rx.cond(
            DirectoryState.is_authenticated,
            rx.button(
                "로그아웃",
                on_click=DirectoryState.handle_logout,
                variant="soft",
                color_scheme="gray",
            ),
        ),
        width="100%",
        align="center",
        margin_bottom="1em",
    )


def _grid_page() -> rx.Component:
    return rx.vstack(
        grid_error_box(DirectoryState, back_label="로그인으로 돌아가기"),
        grid_selection_bar(
            DirectoryState,
            selected_label="명 선택됨",
            process_label="선택 항목 처리",
            clear_label="선택 해제",
            local_label="클라이언트에서 필터링",
        ),
        filterable_grid(DirectoryState, select_all_label="전체 선택"),
        grid_detail_box(DirectoryState),
        grid_filter_debug(DirectoryState, title="필터 상태"),
        spacing="3",
        width="100%",
    )


def _login_page() -> rx.Component:
    return rx.center(
        login_form(
            DirectoryState,
            title="로그인",
            username_label="아이디",
            password_label="비밀번호",
            submit_label="로그인",
        ),
        width="100%",
        padding_top="4em",
    )


def index() -> rx.Component:
    return rx.box(
        _toolbar(),
        rx.cond(DirectoryState.is_authenticated, _grid_page(), _login_page()),
        padding="2em",
        max_width="1400px",
        margin="0 auto",
    )


app = rx.App(api_transformer=create_api())
app.add_page(index, title="직원 관리 시스템", on_load=DirectoryState.on_page_load)
