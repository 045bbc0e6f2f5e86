# hayvn/adapters/repos/photos.py
from __future__ import annotations

from sqlalchemy import delete, insert
from sqlalchemy.ext.asyncio import AsyncSession

from ...models import MlsListingPhoto


class PhotoRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def replace_for_listing(self, listing_id: str, rows: list[dict]) -> int:
        """Delete-then-insert the photo set of one listing."""
        await self.session.execute(delete(MlsListingPhoto).where(MlsListingPhoto.listing_id == listing_id))
        if not rows:
            return 0
        await self.session.execute(insert(MlsListingPhoto), [{"listing_id": listing_id, **r} for r in rows])
        return len(rows)
