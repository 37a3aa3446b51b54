"""Rate limiting adapters.

This package provides a small abstraction layer so the HTTP layer depends on
an interface while the counters live in a self-cleaning in-memory store.
"""

from throttle.adapters.rate_limit.base import (
    AbstractRateLimiter,
    CounterRecord,
    RateLimitDecision,
)
from throttle.adapters.rate_limit.generation import Generation
from throttle.adapters.rate_limit.in_memory import GenerationalRateLimiter
from throttle.adapters.rate_limit.windowed_store import WindowedStore

__all__ = [
    "AbstractRateLimiter",
    "CounterRecord",
    "Generation",
    "GenerationalRateLimiter",
    "RateLimitDecision",
    "WindowedStore",
]
