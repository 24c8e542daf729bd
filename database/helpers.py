"""
Stores for the per-user query and last-run records, plus the email-keyed
upsert they share with the token store.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from database.models import LastRunTime, StoredQueryRecord

logger = logging.getLogger(__name__)

_DIALECT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


def _aware(value: datetime) -> datetime:
    # SQLite drops tzinfo on the way back out.
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


async def upsert_by_email(
    session: AsyncSession,
    model: Any,
    email: str,
    values: Dict[str, Any],
) -> None:
    """
    Insert or overwrite the row keyed by ``email`` in one statement.

    Concurrent writers never collide on the primary key; the last one to
    commit wins.
    """
    dialect = session.bind.dialect.name
    insert = _DIALECT_INSERTS.get(dialect)
    if insert is None:
        raise RuntimeError(f"No upsert support for database dialect '{dialect}'")

    stmt = (
        insert(model)
        .values(email=email, **values)
        .on_conflict_do_update(index_elements=["email"], set_=values)
    )
    await session.execute(stmt)


class StoredQuery(BaseModel):
    query: str
    last_updated: datetime


class QueryStore:
    """One search query per email; writes overwrite, no history is kept."""

    def __init__(self, session_factory: async_sessionmaker) -> None:
        self._session_factory = session_factory

    async def get_query(self, email: str) -> Optional[StoredQuery]:
        async with self._session_factory() as session:
            row = await session.get(StoredQueryRecord, email)
            if row is None:
                return None
            return StoredQuery(query=row.query, last_updated=_aware(row.query_last_updated))

    async def set_query(self, email: str, query: str) -> StoredQuery:
        now = datetime.now(timezone.utc)
        async with self._session_factory() as session:
            await upsert_by_email(
                session,
                StoredQueryRecord,
                email,
                {"query": query, "query_last_updated": now},
            )
            await session.commit()

        logger.info("Saved query for %s", email)
        return StoredQuery(query=query, last_updated=now)


class RunTimeStore:
    def __init__(self, session_factory: async_sessionmaker) -> None:
        self._session_factory = session_factory

    async def set_last_run_time(self, email: str, when: Optional[datetime] = None) -> datetime:
        when = when or datetime.now(timezone.utc)
        async with self._session_factory() as session:
            await upsert_by_email(session, LastRunTime, email, {"last_run_time": when})
            await session.commit()
        return when

    async def get_last_run_time(self, email: str) -> Optional[datetime]:
        async with self._session_factory() as session:
            row = await session.get(LastRunTime, email)
            return _aware(row.last_run_time) if row else None
