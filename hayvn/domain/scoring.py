# hayvn/domain/scoring.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from .locations import is_zip_token, normalize_key
from .parsing import days_since
from .types import Candidate, ClientProfile, ScoredCandidate


@dataclass(frozen=True)
class ScoringWeights:
    """
    Point weights and minimum-score thresholds for client/listing matching.
    Empirical defaults; more client constraints => higher bar.
    """

    # price fit
    in_budget: float = 40
    near_budget: float = 22
    price_present: float = 10

    # location fit
    location_exact: float = 45
    location_partial: float = 32
    location_outside: float = 5

    # status & freshness
    active: float = 5
    fresh: float = 10
    fresh_days: float = 2
    recent: float = 5
    recent_days: float = 7

    # tie-breakers
    attribute_present: float = 1

    # thresholds: (has budget range, has location prefs)
    min_score_open: float = 12
    min_score_budget_only: float = 18
    min_score_prefs_only: float = 20
    min_score_both: float = 35

    # when nothing clears the bar, keep this many anyway
    fallback_top_n: int = 25


DEFAULT_WEIGHTS = ScoringWeights()


def min_score_for(profile: ClientProfile, weights: ScoringWeights = DEFAULT_WEIGHTS) -> float:
    if profile.has_budget_range and profile.has_prefs:
        return weights.min_score_both
    if profile.has_budget_range:
        return weights.min_score_budget_only
    if profile.has_prefs:
        return weights.min_score_prefs_only
    return weights.min_score_open


def score_candidate(
    listing: Candidate,
    profile: ClientProfile,
    *,
    now: datetime,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> ScoredCandidate:
    reasons: list[str] = []
    score = 0.0

    # Price fit
    price = listing.list_price
    if price is not None and profile.has_budget_range:
        if profile.budget_min <= price <= profile.budget_max:
            score += weights.in_budget
            reasons.append("In budget")
        else:
            score += weights.near_budget
            reasons.append("Near budget")
    elif price is not None:
        score += weights.price_present
        reasons.append("Price present")

    # Location fit
    if profile.has_prefs:
        city_raw = listing.city or ""
        city_key = normalize_key(city_raw)
        listing_zip = (listing.postal_code or "").strip()
        token_keys = [normalize_key(t) for t in profile.tokens]
        zip_tokens = [t for t in profile.tokens if is_zip_token(t)]

        zip_hit = bool(listing_zip) and listing_zip in zip_tokens
        exactish = any(tk and tk == city_key for tk in token_keys)
        partial = any(tk and (tk in city_key or city_key in tk) for tk in token_keys)

        if zip_hit:
            score += weights.location_exact
            reasons.append(f"Zip match: {listing_zip}")
        elif exactish and city_raw:
            score += weights.location_exact
            reasons.append(f"City match: {city_raw}")
        elif partial and city_raw:
            score += weights.location_partial
            reasons.append(f"City match (partial): {city_raw}")
        elif city_raw:
            score += weights.location_outside
            reasons.append(f"Outside preferred area: {city_raw}")

    # Status & freshness
    if (listing.status or "").lower() == "active":
        score += weights.active
        reasons.append("Active")

    seen = days_since(listing.last_seen_at, now=now)
    if seen is not None:
        if seen <= weights.fresh_days:
            score += weights.fresh
            reasons.append(f"Fresh (seen ≤ {weights.fresh_days:g} days)")
        elif seen <= weights.recent_days:
            score += weights.recent
            reasons.append(f"Recent (seen ≤ {weights.recent_days:g} days)")

    # richer records rank above sparse ones at equal score
    for attr in (listing.beds, listing.baths, listing.sqft):
        if attr is not None:
            score += weights.attribute_present

    return ScoredCandidate(listing=listing, score=score, reasons=reasons)


def rank_candidates(
    scored: list[ScoredCandidate],
    profile: ClientProfile,
    *,
    limit: int,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> list[ScoredCandidate]:
    """
    Drop everything under the dynamic threshold and sort best-first.
    If that leaves nothing, degrade to the top-N regardless of threshold.
    """
    floor = min_score_for(profile, weights)
    ranked = sorted((s for s in scored if s.score >= floor), key=lambda s: s.score, reverse=True)
    if ranked:
        return ranked
    everything = sorted(scored, key=lambda s: s.score, reverse=True)
    return everything[: min(limit, weights.fallback_top_n)]
