# hayvn/service_layer/photos.py
from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from ..adapters.clients.reso_web_api import ResoWebApiClient
from ..adapters.repos.photos import PhotoRepository
from ..domain.media import group_media, photo_rows

log = logging.getLogger(__name__)


async def sync_photos(
    session: AsyncSession,
    client: ResoWebApiClient,
    listing_ids: dict[str, str],
    *,
    max_pages: int,
    top: int,
) -> int:
    """
    Page the Media resource and replace the photo set of every listing that
    has media in this pass. Listings without media keep their old photos.
    """
    media = await client.fetch_all("Media", top=top, max_pages=max_pages)
    by_key = group_media(media)
    repo = PhotoRepository(session)

    written = 0
    for mls_number, listing_id in listing_ids.items():
        items = by_key.get(mls_number)
        if not items:
            continue
        rows = photo_rows(items)
        if not rows:
            continue
        written += await repo.replace_for_listing(listing_id, rows)

    log.info("photos written=%d for %d listings", written, len(listing_ids))
    return written
