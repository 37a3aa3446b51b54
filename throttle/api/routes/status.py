from __future__ import annotations

from fastapi import APIRouter, Depends

from throttle.core.rate_limit import enforce_rate_limit, get_rate_limiter
from throttle.schemas.status import StatusResponse, StoreStats

router = APIRouter(tags=["Status"])


@router.get(
    "/status",
    response_model=StatusResponse,
    dependencies=[Depends(enforce_rate_limit)],
)
def status() -> StatusResponse:
    """Report the global rate limit policy and its store counters.

    Counts against the caller's quota like any other limited endpoint, so the
    response carries the ``RateLimit-*`` headers.
    """

    limiter = get_rate_limiter()
    return StatusResponse(
        limit=limiter.limit,
        period_ms=limiter.period_ms,
        store=StoreStats(**limiter.stats()),
    )
