# hayvn/service_layer/recommend.py
from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from ..adapters.repos.people import PeopleRepository
from ..adapters.repos.recommendations import RecommendationRepository
from ..domain.errors import AuthError, NotFoundError
from ..domain.locations import parse_preferred_locations
from ..domain.scoring import DEFAULT_WEIGHTS, ScoringWeights, rank_candidates, score_candidate
from ..domain.types import ClientProfile, ScoredCandidate
from ..models import RecommendationStatus, utcnow
from .retrieval import retrieve_candidates

log = logging.getLogger(__name__)

DEFAULT_LIMIT = 50
DEFAULT_TARGET_NEW = 5


def clamp_limit(n: Any) -> int:
    """Overall candidate-fetch limit, 5..200."""
    try:
        v = float(n)
    except (TypeError, ValueError):
        return DEFAULT_LIMIT
    if not math.isfinite(v):
        return DEFAULT_LIMIT
    return int(max(5, min(200, v)))


def clamp_target_new(n: Any) -> int:
    """How many unreviewed ("new") recommendations to keep queued, 1..25."""
    try:
        v = float(n)
    except (TypeError, ValueError):
        return DEFAULT_TARGET_NEW
    if not math.isfinite(v):
        return DEFAULT_TARGET_NEW
    return max(1, min(25, math.floor(v)))


def _pick_out(p: ScoredCandidate) -> dict[str, Any]:
    c = p.listing
    return {
        "mls_listing_id": c.id,
        "mls_number": c.mls_number,
        "city": c.city,
        "postal_code": c.postal_code,
        "state": c.state,
        "list_price": c.list_price,
        "property_type": c.property_type,
        "beds": c.beds,
        "baths": c.baths,
        "sqft": c.sqft,
        "score": p.score,
        "reasons": p.reasons,
    }


async def recommend_for_client(
    session: AsyncSession,
    *,
    agent_id: str,
    client_id: str,
    limit: int = DEFAULT_LIMIT,
    target_new: int = DEFAULT_TARGET_NEW,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
    fetch_cap: int = 2000,
    now: datetime | None = None,
) -> dict[str, Any]:
    """
    Top up the client's "new" recommendation queue to `target_new`.

    Listings ever recommended to this client (any status) are never picked
    again. Existing rows are never modified or pruned. Does not commit.
    """
    people = PeopleRepository(session)

    agent = await people.get_agent(agent_id)
    agent_brokerage_id = agent.brokerage_id if agent is not None else None

    client = await people.get_client(client_id)
    if client is None:
        raise NotFoundError("Client not found")

    allowed = (client.agent_id and client.agent_id == agent_id) or (
        client.brokerage_id and agent_brokerage_id and client.brokerage_id == agent_brokerage_id
    )
    if not allowed:
        raise AuthError("Not authorized for this client", status_code=403)

    brokerage_id = client.brokerage_id or agent_brokerage_id
    if not brokerage_id:
        raise AuthError("Client/agent is not linked to a brokerage_id yet", status_code=400)

    recs = RecommendationRepository(session)
    status_by_listing = await recs.status_by_listing(client_id)
    existing_new = sum(1 for st in status_by_listing.values() if st == RecommendationStatus.new.value)

    tokens = parse_preferred_locations(client.preferred_locations)
    base = {
        "ok": True,
        "client_id": client_id,
        "brokerage_id": brokerage_id,
        "preferred_tokens": tokens,
        "recommendations_deleted": 0,
        "existing_new_count": existing_new,
        "target_new": target_new,
    }

    # queue already full: no query, no scoring, no writes
    if existing_new >= target_new:
        return {
            **base,
            "mode_used": "noop",
            "widen_used": 0,
            "candidates_scored": 0,
            "recommendations_written": 0,
            "needed_new": 0,
            "new_count_after": existing_new,
            "top": [],
        }

    needed = target_new - existing_new
    profile = ClientProfile(budget_min=client.budget_min, budget_max=client.budget_max, tokens=tokens)

    found = await retrieve_candidates(
        session, brokerage_id=brokerage_id, profile=profile, limit=limit, cap=fetch_cap
    )

    now = now or utcnow()
    scored = [score_candidate(c, profile, now=now, weights=weights) for c in found.rows]
    ranked = rank_candidates(scored, profile, limit=limit, weights=weights)

    picked = [p for p in ranked if p.listing.id not in status_by_listing][:needed]
    written = await recs.insert_new(client_id, picked, created_at=now)

    log.info(
        "recommend client=%s mode=%s widen=%.2f scored=%d written=%d new_before=%d target=%d",
        client_id,
        found.mode.value,
        found.widen,
        len(scored),
        written,
        existing_new,
        target_new,
    )

    return {
        **base,
        "mode_used": found.mode.value,
        "widen_used": found.widen,
        "candidates_scored": len(found.rows),
        "recommendations_written": written,
        "needed_new": needed,
        "new_count_after": existing_new + written,
        "top": [_pick_out(p) for p in picked],
    }
