# hayvn/service_layer/sync.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from ..adapters.clients.http_resilience import HttpPolicy
from ..adapters.clients.reso_web_api import ResoWebApiClient
from ..adapters.repos.connections import ConnectionRepository
from ..adapters.repos.listings import ListingRepository
from ..config import settings
from ..domain.normalize import normalize_listing
from ..domain.types import ConnectionTarget, NormalizedListing
from ..models import IdxStatus, utcnow
from .photos import sync_photos

log = logging.getLogger(__name__)

MISSING_CREDENTIALS = "Missing endpoint_url or api_key"


@dataclass(frozen=True)
class SyncOptions:
    page_size: int = 300
    page_size_max: int = 300
    max_pages: int = 20
    media_max_pages: int = 40
    order_by: str | None = "ModificationTimestamp desc"
    dry_run: bool = False
    include_photos: bool = False
    http: HttpPolicy = field(default_factory=HttpPolicy)

    @classmethod
    def from_settings(cls, *, dry_run: bool = False, include_photos: bool = False) -> "SyncOptions":
        return cls(
            page_size=int(settings.IDX_PAGE_SIZE),
            page_size_max=int(settings.IDX_PAGE_SIZE_MAX),
            max_pages=int(settings.IDX_MAX_PAGES),
            media_max_pages=int(settings.IDX_MEDIA_MAX_PAGES),
            order_by=settings.IDX_ORDER_BY or None,
            dry_run=dry_run,
            include_photos=include_photos,
            http=HttpPolicy.from_settings(),
        )


def normalize_records(records: list[dict[str, Any]], mls_source: str | None) -> list[NormalizedListing]:
    """Records without a natural id are dropped; that is a data-quality filter, not an error."""
    out: list[NormalizedListing] = []
    for r in records:
        n = normalize_listing(r, mls_source)
        if n is not None:
            out.append(n)
    return out


async def _sync_one(
    session: AsyncSession,
    http: httpx.AsyncClient,
    target: ConnectionTarget,
    options: SyncOptions,
) -> dict[str, Any]:
    client = ResoWebApiClient(
        endpoint_url=target.endpoint_url,
        access_token=target.api_key,
        http=http,
        policy=options.http,
        page_size_max=options.page_size_max,
    )

    raw = await client.fetch_all(
        "Property",
        top=options.page_size,
        max_pages=options.max_pages,
        order_by=options.order_by,
        query_filter=target.query_filter,
    )
    normalized = normalize_records(raw, target.mls_source)

    if options.dry_run:
        return {
            "connection_id": target.id,
            "ok": True,
            "dry_run": True,
            "fetched_raw": len(raw),
            "normalized": len(normalized),
        }

    ids = await ListingRepository(session).upsert_many(target, normalized, seen_at=utcnow())

    photos_written = 0
    if options.include_photos and ids:
        photos_written = await sync_photos(session, client, ids, max_pages=options.media_max_pages, top=options.page_size)

    return {
        "connection_id": target.id,
        "ok": True,
        "fetched_raw": len(raw),
        "normalized": len(normalized),
        "upserted": len(ids),
        "photos_written": photos_written,
    }


async def sync_connections(
    session: AsyncSession,
    http: httpx.AsyncClient,
    *,
    brokerage_id: str | None,
    connection_id: str | None = None,
    options: SyncOptions | None = None,
) -> dict[str, Any]:
    """
    Pull the latest listing snapshot for every live connection in scope.

    Each connection is its own unit of work: its listings and its status row
    are committed (or rolled back) before the next connection starts, and a
    failure is recorded on that connection only.
    """
    options = options or SyncOptions()
    repo = ConnectionRepository(session)

    rows = await repo.list_live(brokerage_id=brokerage_id, connection_id=connection_id)
    if not rows:
        return {"ok": True, "message": "No live IDX connections to sync", "connection_id": connection_id}

    targets = [ConnectionTarget.from_row(r) for r in rows]
    results: list[dict[str, Any]] = []

    for target in targets:
        started_at = utcnow()

        if not target.endpoint_url or not target.api_key:
            await repo.mark_attempt(
                target.id, at=started_at, error=f"{MISSING_CREDENTIALS} on idx_connections row"
            )
            await session.commit()
            log.warning("idx sync skipped connection=%s: %s", target.id, MISSING_CREDENTIALS)
            results.append({"connection_id": target.id, "ok": False, "error": MISSING_CREDENTIALS})
            continue

        try:
            res = await _sync_one(session, http, target, options)
            await repo.mark_attempt(
                target.id,
                at=started_at,
                error=None,
                status=None if options.dry_run else IdxStatus.live,
            )
            await session.commit()
        except Exception as e:  # isolate: one feed must not abort the batch
            await session.rollback()
            msg = str(e) or "IDX sync error"
            log.warning("idx sync failed connection=%s: %s", target.id, msg[:500])
            await repo.mark_attempt(target.id, at=started_at, error=msg)
            await session.commit()
            results.append({"connection_id": target.id, "ok": False, "error": msg})
            continue

        log.info(
            "idx sync ok connection=%s fetched=%s normalized=%s upserted=%s",
            target.id,
            res.get("fetched_raw"),
            res.get("normalized"),
            res.get("upserted", 0),
        )
        results.append(res)

    return {"ok": True, "dry_run": options.dry_run, "count": len(results), "results": results}
