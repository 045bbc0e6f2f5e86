# hayvn/entrypoints/api/routers/recommend.py
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.ext.asyncio import AsyncSession

from ....adapters.identity import Principal
from ....config import settings
from ....db import get_session
from ....schemas import RecommendRequest, RecommendResponse
from ....service_layer.recommend import clamp_limit, clamp_target_new, recommend_for_client
from ..deps import require_principal

router = APIRouter(tags=["recommend"])

PATH = "/functions/recommend-matches"


@router.options(PATH, include_in_schema=False)
async def recommend_preflight() -> Response:
    return Response(status_code=204)


@router.post(PATH, response_model=RecommendResponse)
async def recommend_matches(
    body: RecommendRequest | None = None,
    principal: Principal = Depends(require_principal),
    session: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    body = body or RecommendRequest()
    client_id = str(body.client_id if body.client_id is not None else "").strip()
    if not client_id:
        raise HTTPException(status_code=400, detail="client_id is required")

    result = await recommend_for_client(
        session,
        agent_id=principal.agent_id,
        client_id=client_id,
        limit=clamp_limit(body.limit if body.limit is not None else settings.MATCH_DEFAULT_LIMIT),
        target_new=clamp_target_new(
            body.target_new if body.target_new is not None else settings.MATCH_DEFAULT_TARGET_NEW
        ),
        fetch_cap=int(settings.MATCH_CANDIDATE_FETCH_CAP),
    )
    await session.commit()
    return result
