"""Tests for the filter state store and query-string encoding."""

from reflex_filter_grid.filter_state import (
    FilterStateStore,
    from_query_params,
    normalize_filter_value,
    to_query_params,
)


class TestFilterStateStore:
    """Tests for :class:`FilterStateStore`."""

    def test_last_write_wins(self):
        """Setting a key twice keeps only the second value."""
        store = FilterStateStore()
        store.set_filter("name", "kim")
        store.set_filter("name", "lee")
        assert store.get("name") == "lee"
        assert len(store) == 1

    def test_empty_string_is_stored_as_none(self):
        """Clearing an input stores None, not an empty string."""
        store = FilterStateStore()
        assert store.set_filter("name", "") is None
        assert "name" in store
        assert store.get("name") is None

    def test_active_filters_skip_inactive_entries(self):
        """Only constraining entries are reported as active."""
        store = FilterStateStore({"name": "kim", "email": "", "department": "all", "age": "abc"})
        types = {"name": "text", "email": "text", "department": "select", "age": "number"}
        assert store.get_active_filters(types) == {"name": "kim"}
        assert store.has_active_filters(types)

    def test_snapshot_keeps_inactive_entries(self):
        """The snapshot is the full store, including None values."""
        store = FilterStateStore()
        store.set_filter("name", "kim")
        store.clear_filter("name")
        assert store.snapshot() == {"name": None}
        assert not store.has_active_filters()

    def test_snapshot_is_a_copy(self):
        """Mutating a snapshot does not touch the store."""
        store = FilterStateStore()
        store.set_filter("location", ["서울"])
        snapshot = store.snapshot()
        snapshot["location"].append("부산")
        assert store.get("location") == ["서울"]

    def test_listeners_are_notified_synchronously_in_order(self):
        """Subscribers see (key, stored value, snapshot) in subscription order."""
        store = FilterStateStore()
        calls: list[tuple[str, object, dict]] = []
        store.subscribe(lambda key, value, snap: calls.append(("first", value, snap)))
        store.subscribe(lambda key, value, snap: calls.append(("second", value, snap)))
        store.set_filter("name", "kim")
        assert [c[0] for c in calls] == ["first", "second"]
        assert calls[0][1] == "kim"
        assert calls[0][2] == {"name": "kim"}

    def test_unsubscribe(self):
        """An unsubscribed listener is not called again."""
        store = FilterStateStore()
        calls: list[str] = []
        unsubscribe = store.subscribe(lambda key, value, snap: calls.append(key))
        store.set_filter("a", "1")
        unsubscribe()
        unsubscribe()
        store.set_filter("b", "2")
        assert calls == ["a"]

    def test_reset(self):
        """Reset drops every entry."""
        store = FilterStateStore({"name": "kim"})
        store.reset()
        assert len(store) == 0
        assert store.snapshot() == {}


class TestNormalize:
    """Tests for :func:`normalize_filter_value`."""

    def test_normalize(self):
        """Empty strings become None and tuples become lists."""
        assert normalize_filter_value("") is None
        assert normalize_filter_value(("a", "b")) == ["a", "b"]
        assert normalize_filter_value(30) == 30
        assert normalize_filter_value({"min": 1}) == {"min": 1}


class TestQueryParams:
    """Tests for query-string encoding of filter states."""

    def test_scalars_lists_and_ranges(self):
        """Lists repeat the key, ranges use ``min..max``, inactive entries vanish."""
        params = to_query_params(
            {
                "name": "kim",
                "age": 30,
                "location": ["서울", "부산"],
                "salary": {"min": 100, "max": None},
                "email": None,
            }
        )
        assert params == [
            ("name", "kim"),
            ("age", "30"),
            ("location", "서울"),
            ("location", "부산"),
            ("salary", "100.."),
        ]

    def test_decoding_groups_repeated_keys(self):
        """Repeated keys and multi-select keys decode to lists."""
        filters = from_query_params(
            [("location", "서울"), ("location", "부산"), ("status", "재직중"), ("name", "")],
            {"status": "multi-select"},
        )
        assert filters == {"location": ["서울", "부산"], "status": ["재직중"], "name": None}
