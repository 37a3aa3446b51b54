"""Rate limiting dependencies for FastAPI routes.

This module wires the rate limiting adapter into the HTTP layer.

Design goals:
- Minimal coupling: routes depend on a dependency callable only.
- One limiter (and one counter store) per policy: the global policy from
  settings, plus any number of per-route policies built with ``rate_limit()``.
- Quota headers on every response, allowed or throttled.

Client keying:
- ``api_key:<X-API-Key>`` when the header is present and trusted.
- Otherwise ``ip:<client host>``, or ``ip:unknown`` when the transport
  exposes no peer address.
"""

import hashlib
import logging
from collections.abc import MutableMapping
from typing import Annotated

from fastapi import Header, Request, Response

from throttle.adapters.rate_limit.base import AbstractRateLimiter, RateLimitDecision
from throttle.adapters.rate_limit.in_memory import GenerationalRateLimiter
from throttle.core.config import settings
from throttle.core.errors import RateLimitAppError, ValidationAppError

logger = logging.getLogger(__name__)

HEADER_LIMIT = "RateLimit-Limit"
HEADER_REMAINING = "RateLimit-Remaining"
HEADER_RESET = "RateLimit-Reset"


_limiter: GenerationalRateLimiter | None = None
_limiter_config: tuple[int, int, str] | None = None


def build_limiter(*, limit: int, period_ms: int, message: str) -> GenerationalRateLimiter:
    """Create a limiter, reporting an invalid policy as a validation error.

    Raises:
        ValidationAppError: If limit or period_ms are out of range.
    """

    try:
        return GenerationalRateLimiter(limit=limit, period_ms=period_ms, message=message)
    except ValueError as exc:
        raise ValidationAppError(
            code="invalid_rate_limit_policy",
            message=str(exc),
            details={"limit": limit},
        ) from exc


def get_rate_limiter() -> GenerationalRateLimiter:
    """Return the process-wide limiter for the global policy.

    The instance is cached in-module to preserve counters across requests.
    If the configured policy changes (primarily in tests), the limiter is
    rebuilt with empty counters.

    Returns:
        GenerationalRateLimiter: Configured limiter instance.
    """

    global _limiter, _limiter_config

    config = (
        settings.app.rate_limit_requests,
        settings.app.rate_limit_period_ms,
        settings.app.rate_limit_message,
    )

    if _limiter is None or _limiter_config != config:
        _limiter = build_limiter(
            limit=settings.app.rate_limit_requests,
            period_ms=settings.app.rate_limit_period_ms,
            message=settings.app.rate_limit_message,
        )
        _limiter_config = config

    return _limiter


def build_rate_limit_key(request: Request, x_api_key: str | None) -> str:
    """Build the limiter key for the current request.

    Args:
        request: FastAPI request.
        x_api_key: API key value from the X-API-Key header.

    Returns:
        str: Namespaced limiter key.
    """

    if x_api_key and settings.app.rate_limit_trust_api_key:
        return f"api_key:{x_api_key}"

    client_host = request.client.host if request.client else "unknown"
    return f"ip:{client_host}"


def hash_limiter_key(key: str) -> str:
    """Hash the rate limit key for logging without exposing client identity."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


def rate_limit_headers(decision: RateLimitDecision) -> dict[str, str]:
    return {
        HEADER_LIMIT: str(decision.limit),
        HEADER_REMAINING: str(decision.remaining),
        HEADER_RESET: str(decision.reset_seconds),
    }


def _apply_headers(target: MutableMapping[str, str], decision: RateLimitDecision) -> None:
    if settings.app.rate_limit_include_headers:
        target.update(rate_limit_headers(decision))


def check_rate_limit(
    limiter: AbstractRateLimiter,
    request: Request,
    response: Response,
    x_api_key: str | None,
) -> RateLimitDecision:
    """Count the request against ``limiter`` and act on the decision.

    Quota headers are written to ``response`` for allowed requests; rejected
    requests carry them on the raised error instead, because the injected
    response is discarded when a dependency raises.

    Raises:
        RateLimitAppError: When the client is over its limit.
    """

    key = build_rate_limit_key(request, x_api_key)
    key_type = key.split(":", 1)[0]
    decision = limiter.evaluate(key)

    log_extra = {
        "key_type": key_type,
        "key_hash": hash_limiter_key(key),
        "limit": decision.limit,
        "remaining": decision.remaining,
        "reset_s": decision.reset_seconds,
        "route": request.url.path,
    }

    if decision.allowed:
        _apply_headers(response.headers, decision)
        logger.info("rate_limit.allowed", extra=log_extra)
        return decision

    logger.warning("rate_limit.exceeded", extra=log_extra)
    raise RateLimitAppError(
        code="rate_limit_exceeded",
        message=decision.message,
        details={
            "limit": decision.limit,
            "remaining": decision.remaining,
            "reset_seconds": decision.reset_seconds,
        },
    )


class RateLimitDependency:
    """FastAPI dependency enforcing a dedicated per-route policy.

    Each instance owns its own limiter, so routes sharing an instance share
    counters while routes with separate instances are counted independently.
    """

    def __init__(self, limiter: AbstractRateLimiter) -> None:
        self.limiter = limiter

    async def __call__(
        self,
        request: Request,
        response: Response,
        x_api_key: Annotated[str | None, Header(alias="X-API-Key")] = None,
    ) -> RateLimitDecision | None:
        if not settings.app.rate_limit_enabled:
            return None
        return check_rate_limit(self.limiter, request, response, x_api_key)


def rate_limit(
    *,
    limit: int | None = None,
    period_ms: int | None = None,
    message: str | None = None,
) -> RateLimitDependency:
    """Build a dependency with its own limiter.

    Unset arguments fall back to the global settings. ``limit`` is
    presence-checked, so ``limit=0`` blocks the route entirely.

    Example:
        >>> strict = rate_limit(limit=5, period_ms=1_000)
        >>> @router.get("/search", dependencies=[Depends(strict)])
        ... async def search(): ...
    """

    limiter = build_limiter(
        limit=settings.app.rate_limit_requests if limit is None else limit,
        period_ms=period_ms or settings.app.rate_limit_period_ms,
        message=message or settings.app.rate_limit_message,
    )
    return RateLimitDependency(limiter)


async def enforce_rate_limit(
    request: Request,
    response: Response,
    x_api_key: Annotated[str | None, Header(alias="X-API-Key")] = None,
) -> None:
    """FastAPI dependency enforcing the global rate limit.

    When enabled, counts the request against the requester's quota and adds
    ``RateLimit-*`` headers. If the requester exceeds the configured limit,
    raises an error rendered as HTTP 429.

    Args:
        request: FastAPI request.
        response: Response whose headers receive the quota status.
        x_api_key: API key from X-API-Key header.

    Raises:
        RateLimitAppError: When the rate limit is exceeded.
    """

    if not settings.app.rate_limit_enabled:
        return

    check_rate_limit(get_rate_limiter(), request, response, x_api_key)
