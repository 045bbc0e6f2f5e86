# hayvn/service_layer/retrieval.py
from __future__ import annotations

import enum
import logging
import math
from dataclasses import dataclass

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.locations import split_tokens
from ..domain.types import Candidate, ClientProfile
from ..models import MlsListing

log = logging.getLogger(__name__)


class QueryMode(str, enum.Enum):
    price_location = "price+location"
    price_only = "priceOnly"
    open = "open"


@dataclass(frozen=True)
class RetrievalResult:
    rows: list[Candidate]
    mode: QueryMode
    widen: float


def budget_window(
    budget_min: float | None, budget_max: float | None, widen_pct: float
) -> tuple[float | None, float | None]:
    """widen_pct=0.10 means +/-10%; an absent bound stays unbounded."""
    min_allowed = math.floor(budget_min * (1 - widen_pct)) if budget_min is not None else None
    max_allowed = math.ceil(budget_max * (1 + widen_pct)) if budget_max is not None else None
    return min_allowed, max_allowed


def _to_candidate(row: MlsListing) -> Candidate:
    return Candidate(
        id=row.id,
        mls_number=row.mls_number,
        city=row.city,
        postal_code=row.postal_code,
        state=row.state,
        status=row.status.value if row.status is not None else "",
        list_price=row.list_price,
        last_seen_at=row.last_seen_at,
        status_last_changed_at=row.status_last_changed_at,
        property_type=row.property_type,
        beds=row.beds,
        baths=row.baths,
        sqft=row.sqft,
    )


async def fetch_candidates(
    session: AsyncSession,
    *,
    brokerage_id: str,
    profile: ClientProfile,
    mode: QueryMode,
    widen: float,
    cap: int = 2000,
) -> list[Candidate]:
    q = (
        select(MlsListing)
        .where(MlsListing.brokerage_id == brokerage_id)
        .where(MlsListing.is_active.is_(True))
        .where(MlsListing.list_price.is_not(None))
    )

    if mode in (QueryMode.price_location, QueryMode.price_only):
        min_allowed, max_allowed = budget_window(profile.budget_min, profile.budget_max, widen)
        if min_allowed is not None:
            q = q.where(MlsListing.list_price >= min_allowed)
        if max_allowed is not None:
            q = q.where(MlsListing.list_price <= max_allowed)

    if mode == QueryMode.price_location:
        zips, places = split_tokens(profile.tokens)
        clauses = [MlsListing.postal_code == z for z in zips]
        # partial place match: "newport" -> "Newport Beach"
        clauses += [MlsListing.city.ilike(f"%{p}%") for p in places]
        if clauses:
            q = q.where(or_(*clauses))

    q = q.order_by(MlsListing.last_seen_at.desc(), MlsListing.id.asc()).limit(cap)
    rows = (await session.execute(q)).scalars().all()
    return [_to_candidate(r) for r in rows]


async def retrieve_candidates(
    session: AsyncSession,
    *,
    brokerage_id: str,
    profile: ClientProfile,
    limit: int,
    cap: int = 2000,
) -> RetrievalResult:
    """
    Progressive relaxation, narrow -> broad:
      A) price (+/-10%) + location   (only with location tokens)
      B) price (+/-10%)
      C) price (+/-20%)
      D) open: active + priced, no price/location filter
    A stage that returns at least `limit` rows ends the ladder; D only runs
    when C leaves fewer than max(10, limit // 2).
    """

    async def _stage(mode: QueryMode, widen: float) -> list[Candidate]:
        return await fetch_candidates(
            session, brokerage_id=brokerage_id, profile=profile, mode=mode, widen=widen, cap=cap
        )

    mode, widen = QueryMode.price_only, 0.10
    if profile.has_prefs:
        mode = QueryMode.price_location
        rows = await _stage(mode, widen)
        if len(rows) < limit:
            mode = QueryMode.price_only
            rows = await _stage(mode, widen)
    else:
        rows = await _stage(mode, widen)

    if len(rows) < limit:
        mode, widen = QueryMode.price_only, 0.20
        rows = await _stage(mode, widen)

    if len(rows) < max(10, limit // 2):
        mode, widen = QueryMode.open, 0.0
        rows = await _stage(mode, widen)

    log.debug("candidates mode=%s widen=%.2f rows=%d", mode.value, widen, len(rows))
    return RetrievalResult(rows=rows, mode=mode, widen=widen)
