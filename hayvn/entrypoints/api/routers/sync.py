# hayvn/entrypoints/api/routers/sync.py
from __future__ import annotations

from typing import Any

import httpx
from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from ....adapters.identity import Principal
from ....db import get_session
from ....domain.errors import AuthError
from ....schemas import SyncResponse
from ....service_layer.sync import SyncOptions, sync_connections
from ..deps import get_http_client, require_principal

router = APIRouter(tags=["idx-sync"])

PATH = "/functions/idx-sync"


@router.options(PATH, include_in_schema=False)
async def idx_sync_preflight() -> Response:
    return Response(status_code=204)


@router.post(PATH, response_model=SyncResponse, response_model_exclude_none=True)
async def idx_sync(
    connection_id: str | None = Query(None),
    dry_run: str | None = Query(None),
    include_photos: str | None = Query(None),
    principal: Principal = Depends(require_principal),
    session: AsyncSession = Depends(get_session),
    http: httpx.AsyncClient = Depends(get_http_client),
) -> dict[str, Any]:
    if not principal.brokerage_id:
        raise AuthError("Agent is not linked to a brokerage_id yet", status_code=403)

    options = SyncOptions.from_settings(dry_run=dry_run == "1", include_photos=include_photos == "1")
    # commits per connection
    return await sync_connections(
        session,
        http,
        brokerage_id=principal.brokerage_id,
        connection_id=connection_id,
        options=options,
    )
