# hayvn/entrypoints/api/deps.py
from __future__ import annotations

from typing import AsyncIterator

import httpx
from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from ...adapters.identity import JwtIdentityVerifier, Principal, bearer_token
from ...adapters.repos.people import PeopleRepository
from ...config import settings
from ...db import get_session


def get_identity_verifier() -> JwtIdentityVerifier:
    return JwtIdentityVerifier.from_settings()


async def get_http_client() -> AsyncIterator[httpx.AsyncClient]:
    """One outbound client per invocation; closed when the request ends."""
    async with httpx.AsyncClient(timeout=float(settings.HTTP_TIMEOUT_S)) as client:
        yield client


async def require_principal(
    authorization: str | None = Header(default=None),
    verifier: JwtIdentityVerifier = Depends(get_identity_verifier),
    session: AsyncSession = Depends(get_session),
) -> Principal:
    agent_id = verifier.subject(bearer_token(authorization))
    agent = await PeopleRepository(session).get_agent(agent_id)
    return Principal(agent_id=agent_id, brokerage_id=agent.brokerage_id if agent is not None else None)
