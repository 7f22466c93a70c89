"""SQLAlchemy-backed BlockList."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import and_, delete, func, or_, select

from db.database import session_scope
from models.blocked_ip import BlockedIP

from .base import BlockList, translate_store_errors
from .records import BlockEntryRecord


def _to_record(obj: BlockedIP) -> BlockEntryRecord:
    return BlockEntryRecord(
        ip_address=obj.ip_address,
        reason=obj.reason,
        blocked_at=obj.blocked_at,
        expires_at=obj.expires_at,
        is_permanent=bool(obj.is_permanent),
    )


class SqlBlockList(BlockList):
    def __init__(self, session_factory):
        self._session_factory = session_factory

    @translate_store_errors
    async def get(self, ip_address: str) -> BlockEntryRecord | None:
        async with session_scope(self._session_factory) as s:
            obj = await s.get(BlockedIP, ip_address)
            return _to_record(obj) if obj else None

    @translate_store_errors
    async def upsert(self, entry: BlockEntryRecord) -> BlockEntryRecord:
        async with session_scope(self._session_factory) as s:
            obj = await s.merge(
                BlockedIP(
                    ip_address=entry.ip_address,
                    reason=entry.reason,
                    blocked_at=entry.blocked_at,
                    expires_at=None if entry.is_permanent else entry.expires_at,
                    is_permanent=entry.is_permanent,
                )
            )
            await s.flush()
            return _to_record(obj)

    @translate_store_errors
    async def count_active(self, now: datetime) -> int:
        stmt = (
            select(func.count())
            .select_from(BlockedIP)
            .where(or_(BlockedIP.is_permanent.is_(True), BlockedIP.expires_at > now))
        )
        async with session_scope(self._session_factory) as s:
            return (await s.execute(stmt)).scalar_one()

    @translate_store_errors
    async def purge_expired(self, now: datetime) -> int:
        stmt = delete(BlockedIP).where(
            and_(
                BlockedIP.is_permanent.is_(False),
                or_(BlockedIP.expires_at.is_(None), BlockedIP.expires_at <= now),
            )
        )
        async with session_scope(self._session_factory) as s:
            result = await s.execute(stmt)
            return result.rowcount
