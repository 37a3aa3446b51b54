"""In-memory rate limiter backed by a two-generation windowed store.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: uses a lock around the whole read-modify-write sequence.
- Counting near window boundaries is approximate by design; stale counters
  are dropped lazily by the store, with no background timer.
"""

from __future__ import annotations

import math
import threading
from typing import Callable

from throttle.adapters.rate_limit.base import (
    DEFAULT_LIMIT,
    DEFAULT_MESSAGE,
    DEFAULT_PERIOD_MS,
    AbstractRateLimiter,
    CounterRecord,
    RateLimitDecision,
)
from throttle.adapters.rate_limit.windowed_store import WindowedStore, wall_clock_ms


class GenerationalRateLimiter(AbstractRateLimiter):
    """Rate limiter counting requests per client within a rolling period.

    Each client's window starts with its first request and lasts
    ``period_ms``. Requests are counted even past the limit so that quota
    headers stay accurate for throttled clients; only ``allowed`` gates the
    response.

    Important:
        This limiter is per-process only. If the API runs with multiple workers
        (e.g., multiple Uvicorn/Gunicorn workers), each worker will enforce its
        own independent limits.
    """

    def __init__(
        self,
        *,
        limit: int = DEFAULT_LIMIT,
        period_ms: int = DEFAULT_PERIOD_MS,
        message: str = DEFAULT_MESSAGE,
        clock: Callable[[], float] = wall_clock_ms,
    ) -> None:
        """Initialize the limiter.

        Args:
            limit: Maximum number of allowed requests per period. ``0`` rejects
                every request.
            period_ms: Length of each client's window in milliseconds.
            message: Text returned to rejected clients.
            clock: Time source function returning UNIX time in milliseconds.

        Raises:
            ValueError: If limit or period_ms are invalid.
        """
        if limit < 0:
            raise ValueError("limit must be >= 0")
        if period_ms < 1:
            raise ValueError("period_ms must be >= 1")

        self._limit = limit
        self._period_ms = period_ms
        self._message = message
        self._clock = clock
        self._lock = threading.RLock()
        self._store: WindowedStore[CounterRecord] = WindowedStore(period_ms, clock=clock)

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def period_ms(self) -> int:
        return self._period_ms

    @property
    def message(self) -> str:
        return self._message

    def stats(self) -> dict[str, float | int]:
        """Return store metrics for the limiter's counters."""
        with self._lock:
            return self._store.stats()

    def _get_or_reset_record(self, client_id: str, now: float) -> CounterRecord:
        """Get the client's live record or start a fresh window.

        Args:
            client_id: Rate limit key.
            now: Current epoch milliseconds.

        Returns:
            A record whose expiry lies in the future.
        """
        record = self._store.get(client_id, now)
        if record is None or record.expiry_ms <= now:
            record = CounterRecord(count=0, expiry_ms=now + self._period_ms)
        return record

    def _build_decision(self, record: CounterRecord, now: float) -> RateLimitDecision:
        return RateLimitDecision(
            allowed=record.count <= self._limit,
            limit=self._limit,
            remaining=max(self._limit - record.count, 0),
            reset_seconds=max(0, math.ceil((record.expiry_ms - now) / 1000)),
            message=self._message,
        )

    def evaluate(self, client_id: str, now_ms: float | None = None) -> RateLimitDecision:
        """Count one request for the client and decide whether it may proceed.

        Args:
            client_id: Unique identifier for rate limiting (e.g., IP address).
                Unknown identifiers start a fresh window.
            now_ms: Evaluation time in epoch milliseconds; defaults to the
                limiter's clock.

        Returns:
            RateLimitDecision with allowance decision and quota metadata.
        """
        with self._lock:
            now = self._clock() if now_ms is None else now_ms
            record = self._get_or_reset_record(client_id, now)
            record.count += 1
            self._store.set(client_id, record, now)
            return self._build_decision(record, now)
