from typing import Any

from pydantic import BaseModel, Field


class ConnectionSyncResult(BaseModel):
    connection_id: str
    ok: bool
    dry_run: bool | None = None
    fetched_raw: int | None = None
    normalized: int | None = None
    upserted: int | None = None
    photos_written: int | None = None
    error: str | None = None


class SyncResponse(BaseModel):
    ok: bool
    dry_run: bool | None = None
    count: int | None = None
    results: list[ConnectionSyncResult] | None = None
    message: str | None = None
    connection_id: str | None = None


class RecommendRequest(BaseModel):
    # loosely typed; the route coerces and clamps
    client_id: Any = None
    limit: Any = None
    target_new: Any = None


class RecommendationPick(BaseModel):
    mls_listing_id: str
    mls_number: str
    city: str | None = None
    postal_code: str | None = None
    state: str | None = None
    list_price: float | None = None
    property_type: str | None = None
    beds: float | None = None
    baths: float | None = None
    sqft: float | None = None
    score: float
    reasons: list[str]


class RecommendResponse(BaseModel):
    ok: bool = True
    client_id: str
    brokerage_id: str
    mode_used: str
    widen_used: float
    preferred_tokens: list[str]
    candidates_scored: int = Field(..., ge=0)
    recommendations_written: int = Field(..., ge=0)
    recommendations_deleted: int = 0
    existing_new_count: int = Field(..., ge=0)
    target_new: int
    needed_new: int = Field(..., ge=0)
    new_count_after: int = Field(..., ge=0)
    top: list[RecommendationPick]
