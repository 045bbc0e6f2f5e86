# hayvn/models.py
from __future__ import annotations

import enum
import uuid
from datetime import date, datetime, timezone
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


def utcnow() -> datetime:
    """Naive UTC timestamp; every DateTime column in this schema stores naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _uuid() -> str:
    return str(uuid.uuid4())


# -----------------------------
# Core enums
# -----------------------------
class IdxStatus(str, enum.Enum):
    pending = "pending"
    live = "live"
    disabled = "disabled"


class ListingStatus(str, enum.Enum):
    active = "active"
    pending = "pending"
    sold = "sold"
    other = "other"


class RecommendationStatus(str, enum.Enum):
    # Only `new` is written by the matcher; the rest are set by agents/clients.
    new = "new"
    reviewed = "reviewed"
    dismissed = "dismissed"
    saved = "saved"


# -----------------------------
# Brokerage / people (owned by the CRUD side; read-only here)
# -----------------------------
class Brokerage(Base):
    __tablename__ = "brokerages"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(255))

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class Agent(Base):
    """The bearer token subject is the agent id."""

    __tablename__ = "agents"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    brokerage_id: Mapped[str | None] = mapped_column(ForeignKey("brokerages.id"), nullable=True, index=True)
    full_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class Client(Base):
    __tablename__ = "clients"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    brokerage_id: Mapped[str | None] = mapped_column(ForeignKey("brokerages.id"), nullable=True, index=True)
    agent_id: Mapped[str | None] = mapped_column(ForeignKey("agents.id"), nullable=True, index=True)
    full_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    budget_min: Mapped[float | None] = mapped_column(Float, nullable=True)
    budget_max: Mapped[float | None] = mapped_column(Float, nullable=True)

    # free text: "Irvine, 92618; Newport Beach"
    preferred_locations: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


# -----------------------------
# IDX feeds
# -----------------------------
class IdxConnection(Base):
    __tablename__ = "idx_connections"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    brokerage_id: Mapped[str] = mapped_column(ForeignKey("brokerages.id"), index=True)

    mls_name: Mapped[str | None] = mapped_column(String(120), nullable=True)
    connection_label: Mapped[str | None] = mapped_column(String(120), nullable=True)
    vendor_name: Mapped[str | None] = mapped_column(String(120), nullable=True)

    # base VOW url OR the Property endpoint itself
    endpoint_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    api_key: Mapped[str | None] = mapped_column(Text, nullable=True)

    # optional OData $filter; only sent when the vendor is known to honor it
    query_filter: Mapped[str | None] = mapped_column(Text, nullable=True)

    status: Mapped[IdxStatus] = mapped_column(Enum(IdxStatus), default=IdxStatus.pending, index=True)
    last_status_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class MlsListing(Base):
    __tablename__ = "mls_listings"
    __table_args__ = (
        UniqueConstraint("idx_connection_id", "mls_number", name="uq_mls_listing_conn_number"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    brokerage_id: Mapped[str] = mapped_column(String(36), index=True)
    idx_connection_id: Mapped[str] = mapped_column(ForeignKey("idx_connections.id"), index=True)

    mls_number: Mapped[str] = mapped_column(String(80))
    mls_source: Mapped[str | None] = mapped_column(String(500), nullable=True)

    status: Mapped[ListingStatus] = mapped_column(Enum(ListingStatus), default=ListingStatus.other, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=False, index=True)

    list_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    close_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status_last_changed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    last_seen_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True, index=True)

    property_type: Mapped[str | None] = mapped_column(String(80), nullable=True)
    listing_title: Mapped[str | None] = mapped_column(String(500), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    list_price: Mapped[float | None] = mapped_column(Float, nullable=True, index=True)
    original_list_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    close_price: Mapped[float | None] = mapped_column(Float, nullable=True)

    beds: Mapped[float | None] = mapped_column(Float, nullable=True)
    baths: Mapped[float | None] = mapped_column(Float, nullable=True)
    sqft: Mapped[float | None] = mapped_column(Float, nullable=True)
    lot_sqft: Mapped[float | None] = mapped_column(Float, nullable=True)
    year_built: Mapped[int | None] = mapped_column(Integer, nullable=True)

    street_number: Mapped[str | None] = mapped_column(String(40), nullable=True)
    street_dir_prefix: Mapped[str | None] = mapped_column(String(10), nullable=True)
    street_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    street_suffix: Mapped[str | None] = mapped_column(String(40), nullable=True)
    unit: Mapped[str | None] = mapped_column(String(40), nullable=True)
    city: Mapped[str | None] = mapped_column(String(120), nullable=True, index=True)
    state: Mapped[str | None] = mapped_column(String(40), nullable=True)
    postal_code: Mapped[str | None] = mapped_column(String(20), nullable=True, index=True)
    county: Mapped[str | None] = mapped_column(String(120), nullable=True)

    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)

    # untouched vendor record, so normalization can be re-run without re-fetching
    raw_payload: Mapped[Any | None] = mapped_column(JSON, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class MlsListingPhoto(Base):
    __tablename__ = "mls_listing_photos"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    listing_id: Mapped[str] = mapped_column(ForeignKey("mls_listings.id"), index=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0)
    url: Mapped[str] = mapped_column(Text)
    caption: Mapped[str | None] = mapped_column(Text, nullable=True)


class PropertyRecommendation(Base):
    __tablename__ = "property_recommendations"
    __table_args__ = (
        UniqueConstraint("client_id", "mls_listing_id", name="uq_recommendation_client_listing"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    client_id: Mapped[str] = mapped_column(ForeignKey("clients.id"), index=True)
    mls_listing_id: Mapped[str] = mapped_column(ForeignKey("mls_listings.id"), index=True)

    score: Mapped[float] = mapped_column(Float, default=0.0)
    reasons: Mapped[list[str]] = mapped_column(JSON, default=list)

    # open-ended: agents may introduce statuses beyond RecommendationStatus
    status: Mapped[str] = mapped_column(String(40), default=RecommendationStatus.new.value, index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
