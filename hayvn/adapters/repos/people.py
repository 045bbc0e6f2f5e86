# hayvn/adapters/repos/people.py
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ...models import Agent, Client


class PeopleRepository:
    """Read-only access to agents and clients (owned by the CRUD side)."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_agent(self, agent_id: str) -> Agent | None:
        return (await self.session.execute(select(Agent).where(Agent.id == agent_id))).scalars().first()

    async def get_client(self, client_id: str) -> Client | None:
        return (await self.session.execute(select(Client).where(Client.id == client_id))).scalars().first()
