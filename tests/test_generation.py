"""Unit tests for the fixed-expiry Generation bucket."""

import pytest

from throttle.adapters.rate_limit.base import CounterRecord
from throttle.adapters.rate_limit.generation import Generation


def test_set_get_has_and_delete() -> None:
    generation: Generation[CounterRecord] = Generation(1_000)
    record = CounterRecord(count=1, expiry_ms=500)

    assert generation.has("a") is False
    assert generation.get("a") is None

    generation.set("a", record)
    assert generation.has("a") is True
    assert generation.get("a") is record
    assert len(generation) == 1

    generation.delete("a")
    assert generation.has("a") is False
    assert len(generation) == 0


def test_delete_missing_key_is_noop() -> None:
    generation: Generation[CounterRecord] = Generation(1_000)

    generation.delete("missing")

    assert len(generation) == 0


def test_is_expired_at_and_after_expiry() -> None:
    generation: Generation[CounterRecord] = Generation(1_000)

    assert generation.is_expired(999) is False
    assert generation.is_expired(1_000) is True
    assert generation.is_expired(1_001) is True


def test_expiry_is_read_only() -> None:
    generation: Generation[CounterRecord] = Generation(1_000)

    with pytest.raises(AttributeError):
        generation.expiry_ms = 2_000  # type: ignore[misc]

    assert generation.expiry_ms == 1_000
