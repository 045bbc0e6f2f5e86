# hayvn/adapters/repos/listings.py
from __future__ import annotations

import uuid
from dataclasses import asdict
from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from ...domain.types import ConnectionTarget, NormalizedListing
from ...models import MlsListing
from .upsert import dialect_insert

# 200 rows x ~35 columns stays under SQLite's bound-parameter ceiling
_UPSERT_CHUNK = 200

# identity columns never rewritten on conflict
_KEEP_ON_CONFLICT = {"id", "idx_connection_id", "mls_number", "created_at"}


def listing_row(conn: ConnectionTarget, listing: NormalizedListing, *, seen_at: datetime) -> dict[str, Any]:
    row = asdict(listing)
    row.update(
        id=str(uuid.uuid4()),
        brokerage_id=conn.brokerage_id,
        idx_connection_id=conn.id,
        is_active=listing.is_active,
        last_seen_at=seen_at,
        created_at=seen_at,
    )
    return row


class ListingRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def upsert_many(
        self,
        conn: ConnectionTarget,
        listings: list[NormalizedListing],
        *,
        seen_at: datetime,
    ) -> dict[str, str]:
        """
        Insert-or-overwrite keyed on (idx_connection_id, mls_number).
        last_seen_at always advances. Returns {mls_number: listing id}.
        """
        # last occurrence wins if a feed repeats a key within one pass
        by_key: dict[str, dict[str, Any]] = {}
        for listing in listings:
            by_key[listing.mls_number] = listing_row(conn, listing, seen_at=seen_at)
        rows = list(by_key.values())

        ids: dict[str, str] = {}
        for start in range(0, len(rows), _UPSERT_CHUNK):
            chunk = rows[start : start + _UPSERT_CHUNK]
            stmt = dialect_insert(self.session, MlsListing).values(chunk)
            stmt = stmt.on_conflict_do_update(
                index_elements=[MlsListing.idx_connection_id, MlsListing.mls_number],
                set_={
                    c.name: stmt.excluded[c.name]
                    for c in MlsListing.__table__.columns
                    if c.name not in _KEEP_ON_CONFLICT
                },
            ).returning(MlsListing.id, MlsListing.mls_number)
            result = await self.session.execute(stmt)
            for listing_id, mls_number in result.all():
                ids[mls_number] = listing_id
        return ids
