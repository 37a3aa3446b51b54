"""Rate limiter interfaces.

The HTTP layer should depend on this abstraction (not the concrete
implementation) so the counter storage can be swapped later with minimal
changes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Protocol

DEFAULT_LIMIT = 60
DEFAULT_PERIOD_MS = 60_000
DEFAULT_MESSAGE = "Connection limit exceeded. Please try again later."


class Expiring(Protocol):
    """Anything carrying its own expiry timestamp (epoch milliseconds)."""

    expiry_ms: float


@dataclass
class CounterRecord:
    """Per-client request counter.

    Attributes:
        count: Requests attributed to the client in the current window.
        expiry_ms: Epoch milliseconds after which the record is stale.
    """

    count: int
    expiry_ms: float


@dataclass(frozen=True)
class RateLimitDecision:
    """Result of a single rate limit evaluation.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        limit: Max requests per period.
        remaining: Requests left in the client's window (never negative).
        reset_seconds: Seconds until the client's window resets.
        message: Text shown to the client when the request is rejected.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_seconds: int
    message: str


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    def evaluate(self, client_id: str, now_ms: float | None = None) -> RateLimitDecision:
        """Count one request for a client and decide whether it may proceed.

        Args:
            client_id: Unique identifier (e.g., API key, IP address).
            now_ms: Evaluation time in epoch milliseconds; defaults to the
                limiter's clock.

        Returns:
            RateLimitDecision describing whether it was allowed.
        """
        raise NotImplementedError
