# hayvn/domain/types.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from ..models import ListingStatus


@dataclass(frozen=True)
class NormalizedListing:
    """Vendor-agnostic listing, ready to upsert under a connection."""

    mls_number: str
    mls_source: str | None
    status: ListingStatus
    list_date: date | None = None
    close_date: date | None = None
    status_last_changed_at: datetime | None = None
    property_type: str | None = None
    listing_title: str | None = None
    description: str | None = None
    list_price: float | None = None
    original_list_price: float | None = None
    close_price: float | None = None
    beds: float | None = None
    baths: float | None = None
    sqft: float | None = None
    lot_sqft: float | None = None
    year_built: int | None = None
    street_number: str | None = None
    street_dir_prefix: str | None = None
    street_name: str | None = None
    street_suffix: str | None = None
    unit: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    county: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    raw_payload: dict[str, Any] | None = None

    @property
    def is_active(self) -> bool:
        return self.status == ListingStatus.active


@dataclass(frozen=True)
class Candidate:
    id: str
    mls_number: str
    city: str | None
    postal_code: str | None
    state: str | None
    status: str
    list_price: float | None
    last_seen_at: datetime | None
    status_last_changed_at: datetime | None
    property_type: str | None
    beds: float | None
    baths: float | None
    sqft: float | None


@dataclass(frozen=True)
class ClientProfile:
    budget_min: float | None
    budget_max: float | None
    tokens: list[str] = field(default_factory=list)

    @property
    def has_budget_range(self) -> bool:
        return self.budget_min is not None and self.budget_max is not None

    @property
    def has_prefs(self) -> bool:
        return len(self.tokens) > 0


@dataclass
class ScoredCandidate:
    listing: Candidate
    score: float
    reasons: list[str]


@dataclass(frozen=True)
class ConnectionTarget:
    """Plain snapshot of an idx_connections row, safe to use across rollbacks."""

    id: str
    brokerage_id: str
    endpoint_url: str | None
    api_key: str | None
    mls_name: str | None = None
    vendor_name: str | None = None
    query_filter: str | None = None

    @classmethod
    def from_row(cls, row: Any) -> "ConnectionTarget":
        return cls(
            id=row.id,
            brokerage_id=row.brokerage_id,
            endpoint_url=row.endpoint_url,
            api_key=row.api_key,
            mls_name=row.mls_name,
            vendor_name=row.vendor_name,
            query_filter=row.query_filter,
        )

    @property
    def mls_source(self) -> str | None:
        return self.mls_name or self.vendor_name or self.endpoint_url
