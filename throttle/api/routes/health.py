from __future__ import annotations

from fastapi import APIRouter

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness probe for load balancers and monitoring.

    Deliberately outside every rate limit policy so probes are never throttled.
    """

    return {"status": "ok"}
