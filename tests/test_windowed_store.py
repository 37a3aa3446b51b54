"""Unit tests for the two-generation WindowedStore."""

from unittest.mock import Mock

import pytest

from throttle.adapters.rate_limit.base import CounterRecord
from throttle.adapters.rate_limit.windowed_store import WindowedStore

LIFESPAN = 1_000


def _store(start: float = 0.0) -> WindowedStore[CounterRecord]:
    return WindowedStore(LIFESPAN, clock=Mock(return_value=start))


def test_initial_generations_are_one_lifespan_apart() -> None:
    stats = _store(start=5_000).stats()

    assert stats["current_expiry_ms"] == 6_000
    assert stats["next_expiry_ms"] == 7_000
    assert stats["entries"] == 0


def test_missing_key() -> None:
    store = _store()

    assert store.has("a", 0) is False
    assert store.get("a", 0) is None


def test_record_expiring_before_current_goes_to_current() -> None:
    store = _store()
    store.set("a", CounterRecord(count=1, expiry_ms=500), 0)

    # Rolling over drops the old current generation with the record in it.
    assert store.has("a", 999) is True
    assert store.has("a", 1_000) is False


def test_record_expiring_with_or_after_current_goes_to_next() -> None:
    store = _store()
    record = CounterRecord(count=1, expiry_ms=1_000)
    store.set("a", record, 0)

    assert store.get("a", 1_500) is record
    assert store.has("a", 2_000) is False


def test_next_takes_precedence_over_current() -> None:
    store = _store()
    stale = CounterRecord(count=5, expiry_ms=500)
    fresh = CounterRecord(count=1, expiry_ms=1_500)

    store.set("a", stale, 0)
    store.set("a", fresh, 0)

    assert store.get("a", 0) is fresh


def test_downgraded_expiry_removes_copy_from_next() -> None:
    store = _store()
    later = CounterRecord(count=1, expiry_ms=1_500)
    earlier = CounterRecord(count=2, expiry_ms=500)

    store.set("a", later, 0)
    store.set("a", earlier, 0)

    assert store.get("a", 0) is earlier
    assert store.stats()["entries"] == 1


def test_delete_removes_key_from_both_generations() -> None:
    store = _store()
    store.set("a", CounterRecord(count=1, expiry_ms=500), 0)
    store.set("b", CounterRecord(count=1, expiry_ms=1_500), 0)
    # Leave a shadowed copy in current as well
    store.set("b-stale", CounterRecord(count=1, expiry_ms=500), 0)
    store.set("b-stale", CounterRecord(count=1, expiry_ms=1_500), 0)

    store.delete("a", 0)
    store.delete("b", 0)
    store.delete("b-stale", 0)

    assert store.has("a", 0) is False
    assert store.has("b", 0) is False
    assert store.has("b-stale", 0) is False
    assert store.stats()["entries"] == 0


def test_single_expiry_rolls_over_once_and_keeps_next_records() -> None:
    store = _store()
    kept = CounterRecord(count=3, expiry_ms=1_800)
    store.set("kept", kept, 0)
    store.set("dropped", CounterRecord(count=1, expiry_ms=200), 0)

    assert store.get("kept", 1_500) is kept
    assert store.has("dropped", 1_500) is False

    stats = store.stats()
    assert stats["rollovers"] == 1
    assert stats["resets"] == 0
    assert stats["current_expiry_ms"] == 2_000
    assert stats["next_expiry_ms"] == 3_000


def test_late_rollover_keeps_fixed_stride() -> None:
    store = _store()

    store.has("a", 1_999)

    stats = store.stats()
    assert stats["current_expiry_ms"] == 2_000
    assert stats["next_expiry_ms"] == 3_000


def test_double_expiry_resets_and_forgets_everything() -> None:
    store = _store()
    store.set("a", CounterRecord(count=1, expiry_ms=500), 0)
    store.set("b", CounterRecord(count=1, expiry_ms=1_500), 0)

    assert store.has("a", 2_500) is False
    assert store.has("b", 2_500) is False

    stats = store.stats()
    assert stats["resets"] == 1
    assert stats["rollovers"] == 0
    assert stats["current_expiry_ms"] == 3_500
    assert stats["next_expiry_ms"] == 4_500


def test_at_most_one_rotation_per_access() -> None:
    store = _store()

    store.has("a", 1_000)
    store.has("a", 1_000)

    assert store.stats()["rollovers"] == 1


def test_set_reconciles_before_choosing_generation() -> None:
    store = _store()
    record = CounterRecord(count=1, expiry_ms=2_500)

    store.set("a", record, 1_200)

    stats = store.stats()
    assert stats["rollovers"] == 1
    # expiry 2500 >= current expiry 2000, so it lands in the new next
    assert store.get("a", 2_100) is record


def test_operations_default_to_injected_clock() -> None:
    clock = Mock(return_value=0.0)
    store: WindowedStore[CounterRecord] = WindowedStore(LIFESPAN, clock=clock)
    store.set("a", CounterRecord(count=1, expiry_ms=1_500))

    clock.return_value = 1_200.0
    assert store.has("a") is True

    clock.return_value = 3_000.0
    assert store.has("a") is False


def test_clear_drops_all_entries() -> None:
    store = _store()
    store.set("a", CounterRecord(count=1, expiry_ms=1_500), 0)

    store.clear(100)

    assert store.has("a", 100) is False
    assert store.stats()["current_expiry_ms"] == 1_100


def test_invalid_lifespan() -> None:
    with pytest.raises(ValueError):
        WindowedStore(0)
