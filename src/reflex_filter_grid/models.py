"""Pydantic models for grid column and filter descriptors.

Descriptors cross the HTTP boundary as camelCase JSON (``valueType``,
``placeholder``, ``headerOptions`` ...) and are built in Python with
snake_case names.  They carry only data: cell formatting is referenced
by renderer *name* and resolved through
:mod:`reflex_filter_grid.renderers`.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from reflex_filter_grid.exceptions import ColumnConfigError

FilterType = Literal["text", "number", "date", "select", "range", "multi-select"]
ValueType = Literal["text", "number", "date", "select"]
Align = Literal["left", "center", "right"]

# A single filter value: scalar, multi-select set, ``{"min", "max"}`` range, or None.
FilterValue = str | int | float | list[str] | dict[str, Any] | None

# Select value meaning "no constraint".  ``"전체"`` is the Korean UI label.
ALL_OPTION_VALUES: frozenset[str] = frozenset({"", "all", "전체"})
ALL_OPTION: str = "all"


class _DescriptorModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_json_dict(self) -> dict[str, Any]:
        """Serialise with camelCase keys, dropping unset optional fields."""
        return self.model_dump(by_alias=True, exclude_none=True)


class SelectOption(_DescriptorModel):
    """One choice of a ``select`` / ``multi-select`` filter."""

    value: str
    label: str


class FilterDescriptor(_DescriptorModel):
    """One filter control under a column header.

    ``key`` names the row field being filtered.  It may differ from the
    owning column's key, so a column can drive a filter on another field.
    """

    key: str
    type: FilterType = "text"
    label: str | None = None
    placeholder: str | None = None
    options: list[SelectOption] | None = None
    min: float | None = None
    max: float | None = None
    step: float | None = None


class HeaderOptions(_DescriptorModel):
    align: Align | None = None
    tooltip: str | None = None
    icon: str | None = None
    clickable: bool = False


class BodyOptions(_DescriptorModel):
    align: Align | None = None
    renderer: str | None = None
    clickable: bool = False


class ColumnDescriptor(_DescriptorModel):
    """Column of the filterable grid, maps to one header cell plus its filters.

    Example::

        ColumnDescriptor(
            key="age",
            label="Age",
            value_type="number",
            filters=[FilterDescriptor(key="age", type="number", placeholder="at least")],
        )
    """

    key: str
    label: str
    value_type: ValueType = "text"
    filterable: bool = True
    filters: list[FilterDescriptor] = Field(default_factory=list)
    width: str | None = None
    header_options: HeaderOptions | None = None
    body_options: BodyOptions | None = None

    @field_validator("filters")
    @classmethod
    def _unique_filter_keys(cls, filters: list[FilterDescriptor]) -> list[FilterDescriptor]:
        seen: set[str] = set()
        for descriptor in filters:
            if descriptor.key in seen:
                raise ValueError(f"duplicate filter key {descriptor.key!r} within one column")
            seen.add(descriptor.key)
        return filters

    @property
    def active_filters(self) -> list[FilterDescriptor]:
        """Filters actually rendered: none when the column is not filterable."""
        return self.filters if self.filterable else []


def validate_columns(columns: list[ColumnDescriptor]) -> list[ColumnDescriptor]:
    """Check that column keys are unique within a grid.

    Raises:
        ColumnConfigError: If two columns share a key.
    """
    seen: set[str] = set()
    for column in columns:
        if column.key in seen:
            raise ColumnConfigError("Duplicate column key", key=column.key)
        seen.add(column.key)
    return columns


def parse_columns(data: list[dict[str, Any]]) -> list[ColumnDescriptor]:
    """Build validated descriptors from camelCase (or snake_case) dicts."""
    return validate_columns([ColumnDescriptor.model_validate(item) for item in data])


def filter_types(columns: list[ColumnDescriptor]) -> dict[str, str]:
    """Map every filter key declared by *columns* to its filter type.

    When two columns declare the same filter key the first one wins.
    """
    types: dict[str, str] = {}
    for column in columns:
        for descriptor in column.active_filters:
            types.setdefault(descriptor.key, descriptor.type)
    return types
