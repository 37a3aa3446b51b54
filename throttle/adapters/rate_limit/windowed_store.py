"""Self-cleaning key/value store built from two overlapping generations.

Instead of scheduling a job every ``lifespan_ms`` to drop stale entries,
cleanup happens as a side effect of access: every operation first checks
whether the ``current`` generation has expired and, if so, rolls the store
over (``next`` becomes ``current``) or resets it when both are stale.

Each value carries its own ``expiry_ms`` and is written into the earliest
generation that still covers that expiry, so a client's window is anchored
to the client's first request rather than to a global clock tick.

Notes:
- Not thread-safe on its own; callers doing read-modify-write sequences
  must hold a lock around the whole sequence.
- Timestamps are epoch milliseconds and are assumed non-decreasing.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Generic, TypeVar

from throttle.adapters.rate_limit.base import Expiring
from throttle.adapters.rate_limit.generation import Generation

logger = logging.getLogger(__name__)

V = TypeVar("V", bound=Expiring)


def wall_clock_ms() -> float:
    """Return the current UNIX time in milliseconds."""
    return time.time() * 1000


class WindowedStore(Generic[V]):
    """Key/value map whose entries expire lazily, one lifespan at a time.

    Attributes:
        lifespan_ms: Time span covered by each generation.
    """

    def __init__(
        self,
        lifespan_ms: float,
        *,
        clock: Callable[[], float] = wall_clock_ms,
    ) -> None:
        """Initialize the store with two fresh generations.

        Args:
            lifespan_ms: Time span of each generation in milliseconds.
            clock: Time source returning UNIX time in milliseconds, used when
                an operation is not given an explicit ``now_ms``.

        Raises:
            ValueError: If lifespan_ms is not positive.
        """
        if lifespan_ms < 1:
            raise ValueError("lifespan_ms must be >= 1")

        self._lifespan_ms = lifespan_ms
        self._clock = clock
        self._rollovers = 0
        self._resets = 0
        self._current: Generation[V]
        self._next: Generation[V]
        self._reset(clock())

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"WindowedStore(lifespan_ms={self._lifespan_ms}, "
            f"current={self._current!r}, next={self._next!r})"
        )

    @property
    def lifespan_ms(self) -> float:
        return self._lifespan_ms

    def has(self, key: str, now_ms: float | None = None) -> bool:
        self._check_expiry(now_ms)
        return self._next.has(key) or self._current.has(key)

    def get(self, key: str, now_ms: float | None = None) -> V | None:
        """Return the value for key, or None if neither generation holds it.

        ``next`` wins over ``current``: a value re-written with a later expiry
        shadows the stale copy that stays behind in ``current``.
        """
        self._check_expiry(now_ms)
        if self._next.has(key):
            return self._next.get(key)
        return self._current.get(key)

    def set(self, key: str, value: V, now_ms: float | None = None) -> None:
        """Store value in the generation matching its own expiry.

        Args:
            key: Lookup key.
            value: Object exposing ``expiry_ms``.
            now_ms: Optional explicit time in epoch milliseconds.
        """
        self._check_expiry(now_ms)
        target = self._generation_for(value)
        # get() prefers next, so a shrunken expiry must not leave a copy there.
        if target is self._current and self._next.has(key):
            self._next.delete(key)
        target.set(key, value)

    def delete(self, key: str, now_ms: float | None = None) -> None:
        self._check_expiry(now_ms)
        self._current.delete(key)
        self._next.delete(key)

    def clear(self, now_ms: float | None = None) -> None:
        """Drop every entry by resetting both generations."""
        self._reset(self._resolve_now(now_ms))

    def stats(self) -> dict[str, float | int]:
        """Return lightweight store metrics without exposing values."""
        return {
            "lifespan_ms": self._lifespan_ms,
            "current_expiry_ms": self._current.expiry_ms,
            "next_expiry_ms": self._next.expiry_ms,
            "entries": len(self._current) + len(self._next),
            "rollovers": self._rollovers,
            "resets": self._resets,
        }

    def _resolve_now(self, now_ms: float | None) -> float:
        return self._clock() if now_ms is None else now_ms

    def _generation_for(self, value: V) -> Generation[V]:
        if value.expiry_ms < self._current.expiry_ms:
            return self._current
        return self._next

    def _check_expiry(self, now_ms: float | None) -> None:
        now = self._resolve_now(now_ms)
        if not self._current.is_expired(now):
            return

        if self._next.is_expired(now):
            self._reset(now)
            self._resets += 1
            logger.debug("store.reset", extra={"lifespan_ms": self._lifespan_ms})
        else:
            self._roll_over()

    def _roll_over(self) -> None:
        # Stride stays fixed even when reconciliation runs late.
        promoted = self._next
        self._current = promoted
        self._next = Generation(promoted.expiry_ms + self._lifespan_ms)
        self._rollovers += 1
        logger.debug(
            "store.rollover",
            extra={
                "current_expiry_ms": self._current.expiry_ms,
                "entries": len(self._current),
            },
        )

    def _reset(self, now: float) -> None:
        current_expiry = now + self._lifespan_ms
        self._current = Generation(current_expiry)
        self._next = Generation(current_expiry + self._lifespan_ms)
