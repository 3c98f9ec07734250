"""Employee-directory columns and the renderers they reference.

:data:`EMPLOYEE_COLUMNS` is what ``GET /tasks/column-info`` serves and
what the demo page renders; :func:`employee_renderers` builds the
matching :class:`~reflex_filter_grid.renderers.RendererRegistry`.
"""

from datetime import date
from typing import Any

from reflex_filter_grid.models import (
    BodyOptions,
    ColumnDescriptor,
    FilterDescriptor,
    HeaderOptions,
    SelectOption,
)
from reflex_filter_grid.renderers import (
    RendererRegistry,
    RichRenderer,
    badge_renderer,
    mailto_renderer,
    number_renderer,
)

DEPARTMENTS: list[str] = ["개발팀", "디자인팀", "마케팅팀", "인사팀"]

REGIONS: list[str] = [
    "서울", "경기", "인천", "부산", "대구", "광주", "대전", "울산", "세종",
    "강원", "충북", "충남", "전북", "전남", "경북", "경남", "제주",
]

STATUSES: list[str] = ["재직중", "퇴사"]

DEPARTMENT_COLORS: dict[str, str] = {
    "개발팀": "#e3f2fd",
    "디자인팀": "#f3e5f5",
    "마케팅팀": "#e8f5e8",
    "인사팀": "#fff3e0",
}

STATUS_COLORS: dict[str, str] = {
    "재직중": "#28a745",
    "퇴사": "#dc3545",
}


def _options(values: list[str]) -> list[SelectOption]:
    return [SelectOption(value=v, label=v) for v in values]


EMPLOYEE_COLUMNS: list[ColumnDescriptor] = [
    ColumnDescriptor(
        key="name",
        label="이름",
        width="120px",
        filters=[FilterDescriptor(key="name", type="text", placeholder="이름 검색")],
        header_options=HeaderOptions(align="center", tooltip="직원 이름", icon="👤"),
        body_options=BodyOptions(renderer="employee_name", clickable=True),
    ),
    ColumnDescriptor(
        key="email",
        label="이메일",
        width="200px",
        filters=[FilterDescriptor(key="email", type="text", placeholder="이메일 검색")],
        header_options=HeaderOptions(icon="📧"),
        body_options=BodyOptions(renderer="mailto"),
    ),
    ColumnDescriptor(
        key="department",
        label="부서",
        value_type="select",
        width="120px",
        filters=[FilterDescriptor(key="department", type="select", options=_options(DEPARTMENTS))],
        header_options=HeaderOptions(align="center", icon="🏢"),
        body_options=BodyOptions(align="center", renderer="department"),
    ),
    ColumnDescriptor(
        key="position",
        label="직급",
        width="150px",
        filters=[FilterDescriptor(key="position", type="text", placeholder="직급 검색")],
        header_options=HeaderOptions(icon="💼"),
        body_options=BodyOptions(renderer="position"),
    ),
    ColumnDescriptor(
        key="age",
        label="나이",
        value_type="number",
        width="80px",
        filters=[FilterDescriptor(key="age", type="number", placeholder="나이 이상", min=0, max=100)],
        header_options=HeaderOptions(align="center", tooltip="입력한 나이 이상", icon="🎂"),
        body_options=BodyOptions(align="center", renderer="age"),
    ),
    ColumnDescriptor(
        key="location",
        label="지역",
        value_type="select",
        width="100px",
        filters=[FilterDescriptor(key="location", type="select", options=_options(REGIONS))],
        header_options=HeaderOptions(align="center", icon="📍"),
        body_options=BodyOptions(align="center", renderer="muted"),
    ),
    ColumnDescriptor(
        key="salary",
        label="급여",
        value_type="number",
        width="130px",
        filters=[FilterDescriptor(key="salary", type="number", placeholder="최소 급여", step=100000)],
        header_options=HeaderOptions(align="right", tooltip="입력한 금액 이상", icon="💰"),
        body_options=BodyOptions(align="right", renderer="salary"),
    ),
    ColumnDescriptor(
        key="hireDate",
        label="입사일",
        value_type="date",
        width="130px",
        filters=[FilterDescriptor(key="hireDate", type="date")],
        header_options=HeaderOptions(align="center", icon="📅"),
        body_options=BodyOptions(align="center", renderer="korean_date"),
    ),
    ColumnDescriptor(
        key="status",
        label="상태",
        value_type="select",
        width="100px",
        filters=[FilterDescriptor(key="status", type="select", options=_options(STATUSES))],
        header_options=HeaderOptions(align="center", icon="📊"),
        body_options=BodyOptions(align="center", renderer="status"),
    ),
]


# ---------------------------------------------------------------------------
# Cell formatting
# ---------------------------------------------------------------------------

def format_korean_date(value: Any, row: Any = None) -> str:
    """``"2020-01-15"`` -> ``"2020. 1. 15."``; unparsable input is returned unchanged."""
    try:
        parsed = date.fromisoformat(str(value)[:10])
    except ValueError:
        return str(value)
    return f"{parsed.year}. {parsed.month}. {parsed.day}."


def age_style(value: Any, row: Any = None) -> dict[str, str]:
    """Background by age band: 50+, 40+, 30+."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return {}
    if value >= 50:
        return {"backgroundColor": "#fff3cd", "fontWeight": "bold"}
    if value >= 40:
        return {"backgroundColor": "#d1ecf1"}
    if value >= 30:
        return {"backgroundColor": "#e8f5e8"}
    return {}


def employee_summary(row: Any) -> str:
    """Multi-line detail text shown when a name cell is clicked."""
    return "\n".join(
        [
            f"이름: {row.get('name', '-')}",
            f"이메일: {row.get('email', '-')}",
            f"부서: {row.get('department', '-')}",
            f"직급: {row.get('position', '-')}",
        ]
    )


def employee_renderers() -> RendererRegistry:
    """Renderer registry for :data:`EMPLOYEE_COLUMNS`."""
    registry = RendererRegistry()
    registry.register(
        "employee_name",
        RichRenderer(
            style=lambda value, row: {"fontWeight": "bold", "color": "#007bff"},
            tooltip=lambda value, row: f"{value} ({row.get('position', '')})",
        ),
    )
    registry.register("mailto", mailto_renderer())
    registry.register(
        "department",
        RichRenderer(
            style=lambda value, row: {
                "backgroundColor": DEPARTMENT_COLORS.get(str(value), "#f5f5f5"),
                "padding": "4px 8px",
                "borderRadius": "4px",
            },
        ),
    )
    registry.register(
        "position",
        RichRenderer(
            style=lambda value, row: {
                "padding": "2px 8px",
                "borderRadius": "12px",
                "backgroundColor": "#f1f3f5",
                "fontSize": "12px",
            },
        ),
    )
    registry.register("age", RichRenderer(format=lambda value, row: f"{value}세", style=age_style))
    registry.register("muted", RichRenderer(style=lambda value, row: {"color": "#666"}))
    registry.register("salary", number_renderer(suffix="원"))
    registry.register("korean_date", RichRenderer(format=format_korean_date))
    registry.register("status", badge_renderer(STATUS_COLORS))
    return registry
