"""
Tests for the two-tier cache.
"""

import threading

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from npmtraffic.cache import TwoTierCache
from npmtraffic.testing import FakeClock


@given(
    fresh=st.integers(min_value=1, max_value=1000),
    extra=st.integers(min_value=1, max_value=1000),
    elapsed=st.integers(min_value=0, max_value=3000),
)
@settings(max_examples=200)
def test_lookup_state_follows_elapsed_time(fresh: int, extra: int, elapsed: int) -> None:
    """
    A value read `elapsed` seconds after being stored is fresh up to the
    fresh horizon, stale up to the stale horizon, and gone afterwards.
    """
    clock = FakeClock()
    cache = TwoTierCache(clock=clock.time)
    stale = fresh + extra
    cache.set_with_stale("k", "v", fresh, stale)

    clock.advance(elapsed)
    lookup = cache.get_with_stale("k")

    if elapsed <= fresh:
        assert lookup.hit and not lookup.stale
    elif elapsed <= stale:
        assert lookup.hit and lookup.stale
        assert lookup.value == "v"
    else:
        assert not lookup.hit
        assert "k" not in cache


def test_fresh_stale_miss_transitions(fake_clock: FakeClock, cache: TwoTierCache) -> None:
    cache.set_with_stale("k", "v", 10, 100)

    fake_clock.advance(5)
    lookup = cache.get_with_stale("k")
    assert lookup.hit and not lookup.stale and lookup.value == "v"

    fake_clock.advance(45)
    lookup = cache.get_with_stale("k")
    assert lookup.hit and lookup.stale and lookup.value == "v"

    fake_clock.advance(60)
    lookup = cache.get_with_stale("k")
    assert not lookup.hit
    assert lookup.value is None
    assert len(cache) == 0


def test_get_is_fresh_only(fake_clock: FakeClock, cache: TwoTierCache) -> None:
    cache.set_with_stale("k", "v", 10, 100)

    fake_clock.advance(11)

    assert not cache.get("k").hit
    assert "k" not in cache


def test_set_uses_single_horizon(fake_clock: FakeClock, cache: TwoTierCache) -> None:
    cache.set("k", True, 60)

    fake_clock.advance(60)
    assert cache.get("k").value is True

    fake_clock.advance(1)
    assert not cache.get_with_stale("k").hit


def test_falsy_values_are_hits(cache: TwoTierCache) -> None:
    cache.set("k", False, 60)

    lookup = cache.get("k")

    assert lookup.hit
    assert lookup.value is False


def test_fresh_longer_than_stale_rejected(cache: TwoTierCache) -> None:
    with pytest.raises(ValueError):
        cache.set_with_stale("k", "v", 100, 10)


def test_overwrite_resets_horizons(fake_clock: FakeClock, cache: TwoTierCache) -> None:
    cache.set_with_stale("k", "old", 10, 20)
    fake_clock.advance(15)
    cache.set_with_stale("k", "new", 10, 20)

    lookup = cache.get_with_stale("k")

    assert lookup.hit and not lookup.stale
    assert lookup.value == "new"


def test_delete_and_clear(cache: TwoTierCache) -> None:
    cache.set("a", 1, 60)
    cache.set("b", 2, 60)

    cache.delete("a")
    cache.delete("missing")
    assert "a" not in cache
    assert len(cache) == 1

    cache.clear()
    assert len(cache) == 0


def test_concurrent_writers_leave_one_value() -> None:
    cache = TwoTierCache()

    def writer(i: int) -> None:
        for _ in range(200):
            cache.set_with_stale("shared", i, 60, 120)
            cache.get_with_stale("shared")

    threads = [threading.Thread(target=writer, args=(i,)) for i in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    lookup = cache.get_with_stale("shared")
    assert lookup.hit
    assert lookup.value in range(8)
    assert len(cache) == 1
