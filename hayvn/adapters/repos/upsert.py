# hayvn/adapters/repos/upsert.py
from __future__ import annotations

from typing import Any

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession


def dialect_insert(session: AsyncSession, table: Any):
    """
    INSERT construct with native ON CONFLICT support for the session's backend.
    Concurrent writers converge on the unique key without app-level locks.
    """
    name = session.get_bind().dialect.name
    if name == "postgresql":
        return postgresql.insert(table)
    if name == "sqlite":
        return sqlite.insert(table)
    raise ValueError(f"upsert not supported on dialect {name!r}")
