"""Current per-filter values of one grid, with synchronous change notification.

The store holds exactly one value per filter key (last write wins).  An
empty string is stored as ``None``, and ``None`` means "no constraint".
Subscribers are called synchronously, in subscription order, after every
change.
"""

import logging
from collections.abc import Callable, Mapping
from typing import Any

from reflex_filter_grid.models import FilterValue
from reflex_filter_grid.predicates import as_text, is_active

logger = logging.getLogger(__name__)

FilterListener = Callable[[str, FilterValue, dict[str, FilterValue]], None]


def to_query_params(filters: Mapping[str, FilterValue]) -> list[tuple[str, str]]:
    """Encode active filters as query-string pairs.

    Lists become repeated keys, ``{"min", "max"}`` ranges become
    ``"min..max"`` (either side may be empty), scalars their text form.
    """
    params: list[tuple[str, str]] = []
    for key, value in filters.items():
        if not is_active(value):
            continue
        if isinstance(value, (list, tuple)):
            params.extend((key, as_text(v)) for v in value)
        elif isinstance(value, Mapping):
            low, high = value.get("min"), value.get("max")
            params.append((key, f"{'' if low is None else as_text(low)}..{'' if high is None else as_text(high)}"))
        else:
            params.append((key, as_text(value)))
    return params


def from_query_params(
    items: list[tuple[str, str]],
    types: Mapping[str, str] | None = None,
) -> dict[str, FilterValue]:
    """Decode query-string pairs back into a filter state.

    Repeated keys and ``multi-select`` keys become lists; everything else
    stays a string (predicates coerce numbers and parse ``"min..max"``).
    """
    types = types or {}
    grouped: dict[str, list[str]] = {}
    for key, value in items:
        grouped.setdefault(key, []).append(value)

    filters: dict[str, FilterValue] = {}
    for key, values in grouped.items():
        if len(values) > 1 or types.get(key) == "multi-select":
            filters[key] = [v for v in values if v != ""]
        else:
            filters[key] = normalize_filter_value(values[0])
    return filters


def normalize_filter_value(value: Any) -> FilterValue:
    """Normalise raw input: ``""`` -> ``None``, tuples/sets -> lists."""
    if isinstance(value, str) and value == "":
        return None
    if isinstance(value, (tuple, set, frozenset)):
        return list(value)
    return value


class FilterStateStore:
    """Mapping of filter key to current value for a single grid.

    Example::

        store = FilterStateStore()
        store.subscribe(lambda key, value, snapshot: print(key, value))
        store.set_filter("department", "Engineering")
        store.get_active_filters()   # {"department": "Engineering"}
    """

    def __init__(self, initial: Mapping[str, FilterValue] | None = None) -> None:
        self._values: dict[str, FilterValue] = {}
        self._listeners: list[FilterListener] = []
        if initial:
            for key, value in initial.items():
                self._values[key] = normalize_filter_value(value)

    def set_filter(self, key: str, value: Any) -> FilterValue:
        """Replace the value for *key* and notify subscribers.

        Returns:
            The stored (normalised) value.
        """
        stored = normalize_filter_value(value)
        self._values[key] = stored
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(key, stored, snapshot)
        return stored

    def clear_filter(self, key: str) -> None:
        """Same as ``set_filter(key, None)``."""
        self.set_filter(key, None)

    def get(self, key: str) -> FilterValue:
        return self._values.get(key)

    def get_active_filters(self, types: Mapping[str, str] | None = None) -> dict[str, FilterValue]:
        """Return only the entries that constrain rows.

        Args:
            types: Optional ``{filter_key: filter_type}`` mapping; lets
                type-specific rules (non-numeric number input, select
                "all") count as inactive.
        """
        types = types or {}
        return {
            key: value
            for key, value in self._values.items()
            if is_active(value, types.get(key))
        }

    def has_active_filters(self, types: Mapping[str, str] | None = None) -> bool:
        return bool(self.get_active_filters(types))

    def snapshot(self) -> dict[str, FilterValue]:
        """Copy of every stored entry, including ``None`` values."""
        return {
            key: list(value) if isinstance(value, list) else value
            for key, value in self._values.items()
        }

    def subscribe(self, listener: FilterListener) -> Callable[[], None]:
        """Register *listener*; returns a function that unregisters it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def reset(self) -> None:
        """Drop every entry.  Only used when the grid unmounts."""
        logger.debug("filter state reset (%d entries)", len(self._values))
        self._values.clear()

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, key: object) -> bool:
        return key in self._values
