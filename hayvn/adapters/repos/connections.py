# hayvn/adapters/repos/connections.py
from __future__ import annotations

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ...models import IdxConnection, IdxStatus


class ConnectionRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_live(
        self,
        *,
        brokerage_id: str | None = None,
        connection_id: str | None = None,
    ) -> list[IdxConnection]:
        q = select(IdxConnection).where(IdxConnection.status == IdxStatus.live)
        if brokerage_id is not None:
            q = q.where(IdxConnection.brokerage_id == brokerage_id)
        if connection_id:
            q = q.where(IdxConnection.id == connection_id)
        q = q.order_by(IdxConnection.created_at.asc(), IdxConnection.id.asc())
        return list((await self.session.execute(q)).scalars().all())

    async def mark_attempt(
        self,
        connection_id: str,
        *,
        at: datetime,
        error: str | None,
        status: IdxStatus | None = None,
    ) -> None:
        """
        Record one sync attempt. Never flips status on failure; a failed sync
        only sets last_error.
        """
        values: dict[str, object] = {"last_status_at": at, "last_error": error}
        if status is not None:
            values["status"] = status
        await self.session.execute(
            update(IdxConnection).where(IdxConnection.id == connection_id).values(**values)
        )
