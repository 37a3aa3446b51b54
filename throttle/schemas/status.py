"""Pydantic schemas for the status endpoint."""

from __future__ import annotations

from pydantic import BaseModel, Field


class StoreStats(BaseModel):
    """Counters describing the global limiter's windowed store."""

    lifespan_ms: float = Field(..., description="Span covered by each generation.")
    current_expiry_ms: float = Field(
        ..., description="Epoch ms at which the current generation expires."
    )
    next_expiry_ms: float = Field(
        ..., description="Epoch ms at which the next generation expires."
    )
    entries: int = Field(..., description="Counter records held by both generations.")
    rollovers: int = Field(..., description="Generation roll-overs since start.")
    resets: int = Field(..., description="Full resets after both generations went stale.")


class StatusResponse(BaseModel):
    """Service status along with the active global policy."""

    status: str = Field("ok", description="Always 'ok' when the request is allowed.")
    limit: int = Field(..., description="Requests allowed per period.")
    period_ms: int = Field(..., description="Rate limit period in milliseconds.")
    store: StoreStats
