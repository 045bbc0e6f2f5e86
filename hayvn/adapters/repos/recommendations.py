# hayvn/adapters/repos/recommendations.py
from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ...domain.types import ScoredCandidate
from ...models import PropertyRecommendation, RecommendationStatus
from .upsert import dialect_insert


class RecommendationRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def status_by_listing(self, client_id: str) -> dict[str, str]:
        """Every listing ever recommended to this client -> current status."""
        q = select(PropertyRecommendation.mls_listing_id, PropertyRecommendation.status).where(
            PropertyRecommendation.client_id == client_id
        )
        return {lid: st for lid, st in (await self.session.execute(q)).all()}

    async def insert_new(
        self,
        client_id: str,
        picks: list[ScoredCandidate],
        *,
        created_at: datetime,
    ) -> int:
        """
        Write picks as status=new. The (client_id, mls_listing_id) unique key
        is the backstop when two calls race: a pair that already exists is
        left untouched and not counted.
        """
        if not picks:
            return 0

        rows = [
            {
                "id": str(uuid.uuid4()),
                "client_id": client_id,
                "mls_listing_id": p.listing.id,
                "score": p.score,
                "reasons": list(p.reasons),
                "status": RecommendationStatus.new.value,
                "created_at": created_at,
            }
            for p in picks
        ]
        stmt = dialect_insert(self.session, PropertyRecommendation).values(rows)
        stmt = stmt.on_conflict_do_nothing(
            index_elements=[PropertyRecommendation.client_id, PropertyRecommendation.mls_listing_id],
        ).returning(PropertyRecommendation.id)
        result = await self.session.execute(stmt)
        return len(result.all())
