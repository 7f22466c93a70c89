"""SQLAlchemy-backed AbuseEventLog."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, func, select

from db.database import session_scope
from models.abuse_event import AbuseActionKind, AbuseEvent

from .base import AbuseEventLog, translate_store_errors


class SqlAbuseEventLog(AbuseEventLog):
    def __init__(self, session_factory):
        self._session_factory = session_factory

    @translate_store_errors
    async def append(self, ip_address: str, kind: AbuseActionKind, details: str | None, created_at: datetime) -> None:
        async with session_scope(self._session_factory) as s:
            s.add(AbuseEvent(ip_address=ip_address, action=kind.value, details=details, created_at=created_at))

    @translate_store_errors
    async def count_by_ip_since(self, ip_address: str, since: datetime) -> int:
        stmt = (
            select(func.count())
            .select_from(AbuseEvent)
            .where(AbuseEvent.ip_address == ip_address, AbuseEvent.created_at >= since)
        )
        async with session_scope(self._session_factory) as s:
            return (await s.execute(stmt)).scalar_one()

    @translate_store_errors
    async def purge_older_than(self, cutoff: datetime) -> int:
        async with session_scope(self._session_factory) as s:
            result = await s.execute(delete(AbuseEvent).where(AbuseEvent.created_at < cutoff))
            return result.rowcount
