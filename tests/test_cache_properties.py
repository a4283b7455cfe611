"""Property-based tests for LRUCache using Hypothesis.

Validates capacity and recency properties against an OrderedDict model
under generated operation sequences.
"""

from collections import OrderedDict

import pytest
from hypothesis import event, given, settings
from hypothesis import strategies as st

from i18ncore.runtime.cache import LRUCache, freeze_params

_keys = st.sampled_from("abcdefgh")

_operations = st.lists(
    st.one_of(
        st.tuples(st.just("set"), _keys, st.integers()),
        st.tuples(st.just("get"), _keys, st.none()),
        st.tuples(st.just("delete"), _keys, st.none()),
    ),
    max_size=60,
)


class TestCacheProperties:
    """Property-based tests for cache behavior."""

    @given(max_size=st.integers(min_value=1, max_value=6), operations=_operations)
    def test_matches_lru_model(
        self, max_size: int, operations: list[tuple[str, str, int | None]]
    ) -> None:
        """Cache contents and recency order match a reference LRU model.

        Property: after any sequence of set/get/delete, keys() equals the
        model's keys from most- to least-recently-used.
        """
        cache: LRUCache[str, int] = LRUCache(max_size=max_size)
        model: OrderedDict[str, int] = OrderedDict()

        for op, key, value in operations:
            match op:
                case "set":
                    assert value is not None
                    cache.set(key, value)
                    model[key] = value
                    model.move_to_end(key)
                    if len(model) > max_size:
                        model.popitem(last=False)
                case "get":
                    expected = model.get(key)
                    if key in model:
                        model.move_to_end(key)
                    assert cache.get(key) == expected
                case _:
                    assert cache.delete(key) == (model.pop(key, None) is not None)

        event(f"final_size={len(model)}")
        assert cache.keys() == list(reversed(model))
        cache.destroy()

    @given(max_size=st.integers(min_value=1, max_value=10), keys=st.lists(st.integers()))
    def test_size_bounded(self, max_size: int, keys: list[int]) -> None:
        """Property: size never exceeds max_size."""
        cache: LRUCache[int, int] = LRUCache(max_size=max_size)
        for key in keys:
            cache.set(key, key)
            assert cache.size <= max_size
        event(f"saturated={len(set(keys)) > max_size}")
        cache.destroy()

    @given(keys=st.lists(_keys, min_size=1))
    def test_most_recent_set_always_present(self, keys: list[str]) -> None:
        """Property: the key just written is always retrievable."""
        cache: LRUCache[str, int] = LRUCache(max_size=2)
        for i, key in enumerate(keys):
            cache.set(key, i)
            assert cache.get(key) == i
        cache.destroy()

    @given(
        params=st.dictionaries(
            st.text(min_size=1, max_size=5),
            st.one_of(st.integers(), st.text(max_size=5), st.booleans(), st.lists(st.integers())),
            max_size=5,
        )
    )
    def test_freeze_params_order_independent(self, params: dict[str, object]) -> None:
        """Property: insertion order never changes the frozen form."""
        reordered = dict(reversed(list(params.items())))
        frozen = freeze_params(params)
        event(f"param_count={len(params)}")
        assert frozen is not None
        assert frozen == freeze_params(reordered)
        assert hash(frozen) == hash(freeze_params(reordered))

    @pytest.mark.fuzz
    @settings(max_examples=2000, deadline=None)
    @given(
        max_size=st.integers(min_value=1, max_value=32),
        operations=st.lists(
            st.tuples(st.sampled_from(["set", "get"]), st.integers(0, 64), st.integers()),
            max_size=500,
        ),
    )
    def test_long_sequences_match_lru_model(
        self, max_size: int, operations: list[tuple[str, int, int]]
    ) -> None:
        """Slot reuse stays consistent across long set/get sequences."""
        cache: LRUCache[int, int] = LRUCache(max_size=max_size)
        model: OrderedDict[int, int] = OrderedDict()

        for op, key, value in operations:
            if op == "set":
                cache.set(key, value)
                model[key] = value
                model.move_to_end(key)
                if len(model) > max_size:
                    model.popitem(last=False)
            else:
                if key in model:
                    model.move_to_end(key)
                assert cache.get(key) == model.get(key)

        event(f"evictions={cache.get_stats()['evictions'] > 0}")
        assert cache.keys() == list(reversed(model))
        cache.destroy()
