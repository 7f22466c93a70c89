"""SQLAlchemy-backed LinkStore."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import case, func, select, update
from sqlalchemy.exc import IntegrityError

from db.database import session_scope
from models.short_link import ShortLink
from services.exceptions import ShortCodeConflictError

from .base import LinkStore, translate_store_errors
from .records import ClickSummary, LinkSummary, ShortLinkRecord


def _to_record(obj: ShortLink) -> ShortLinkRecord:
    return ShortLinkRecord(
        id=obj.id,
        short_code=obj.short_code,
        original_url=obj.original_url,
        ip_address=obj.ip_address,
        user_agent=obj.user_agent,
        clicks=obj.clicks or 0,
        last_clicked_at=obj.last_clicked_at,
        is_active=bool(obj.is_active),
        created_at=obj.created_at,
    )


class SqlLinkStore(LinkStore):
    def __init__(self, session_factory):
        self._session_factory = session_factory

    @translate_store_errors
    async def get_by_code(self, short_code: str) -> ShortLinkRecord | None:
        async with session_scope(self._session_factory) as s:
            row = (await s.execute(select(ShortLink).where(ShortLink.short_code == short_code))).scalar_one_or_none()
            return _to_record(row) if row else None

    @translate_store_errors
    async def find_by_original_url(self, original_url: str, ip_address: str | None = None) -> ShortLinkRecord | None:
        stmt = select(ShortLink).where(ShortLink.original_url == original_url, ShortLink.is_active.is_(True))
        if ip_address is not None:
            stmt = stmt.where(ShortLink.ip_address == ip_address)
        stmt = stmt.order_by(ShortLink.created_at.desc(), ShortLink.id.desc()).limit(1)
        async with session_scope(self._session_factory) as s:
            row = (await s.execute(stmt)).scalar_one_or_none()
            return _to_record(row) if row else None

    @translate_store_errors
    async def create(
        self,
        *,
        short_code: str,
        original_url: str,
        ip_address: str,
        user_agent: str | None,
        created_at: datetime,
    ) -> ShortLinkRecord:
        try:
            async with session_scope(self._session_factory) as s:
                obj = ShortLink(
                    short_code=short_code,
                    original_url=original_url,
                    ip_address=ip_address,
                    user_agent=user_agent,
                    clicks=0,
                    is_active=True,
                    created_at=created_at,
                )
                s.add(obj)
                await s.flush()
                return _to_record(obj)
        except IntegrityError as e:
            # the unique index is the authority; the caller's preflight check is advisory
            raise ShortCodeConflictError(short_code) from e

    @translate_store_errors
    async def increment_clicks(self, short_code: str, clicked_at: datetime) -> bool:
        stmt = (
            update(ShortLink)
            .where(ShortLink.short_code == short_code, ShortLink.is_active.is_(True))
            .values(clicks=ShortLink.clicks + 1, last_clicked_at=clicked_at)
        )
        async with session_scope(self._session_factory) as s:
            result = await s.execute(stmt)
            return result.rowcount > 0

    @translate_store_errors
    async def deactivate(self, short_code: str) -> bool:
        stmt = update(ShortLink).where(ShortLink.short_code == short_code).values(is_active=False)
        async with session_scope(self._session_factory) as s:
            result = await s.execute(stmt)
            return result.rowcount > 0

    @translate_store_errors
    async def count_by_ip_since(self, ip_address: str, since: datetime) -> int:
        stmt = (
            select(func.count())
            .select_from(ShortLink)
            .where(ShortLink.ip_address == ip_address, ShortLink.created_at >= since)
        )
        async with session_scope(self._session_factory) as s:
            return (await s.execute(stmt)).scalar_one()

    @translate_store_errors
    async def list_by_ip(self, ip_address: str, limit: int, offset: int) -> list[ShortLinkRecord]:
        stmt = (
            select(ShortLink)
            .where(ShortLink.ip_address == ip_address)
            .order_by(ShortLink.created_at.desc(), ShortLink.id.desc())
            .offset(offset)
            .limit(limit)
        )
        async with session_scope(self._session_factory) as s:
            return [_to_record(r) for r in (await s.execute(stmt)).scalars().all()]

    @translate_store_errors
    async def summary(self, day_start: datetime) -> LinkSummary:
        stmt = select(
            func.count(ShortLink.id),
            func.coalesce(func.sum(case((ShortLink.is_active.is_(True), 1), else_=0)), 0),
            func.coalesce(func.sum(case((ShortLink.created_at >= day_start, 1), else_=0)), 0),
            func.coalesce(func.sum(ShortLink.clicks), 0),
        )
        async with session_scope(self._session_factory) as s:
            total, active, today, clicks = (await s.execute(stmt)).one()
        return LinkSummary(
            total_links=int(total), active_links=int(active), links_today=int(today), total_clicks=int(clicks)
        )

    @translate_store_errors
    async def list_all(self, limit: int, offset: int) -> list[ShortLinkRecord]:
        stmt = select(ShortLink).order_by(ShortLink.created_at.desc(), ShortLink.id.desc()).offset(offset).limit(limit)
        async with session_scope(self._session_factory) as s:
            return [_to_record(r) for r in (await s.execute(stmt)).scalars().all()]

    @translate_store_errors
    async def click_summary(self) -> ClickSummary:
        stmt = select(
            func.count(ShortLink.id),
            func.coalesce(func.sum(ShortLink.clicks), 0),
            func.coalesce(func.sum(case((ShortLink.clicks > 0, 1), else_=0)), 0),
        )
        async with session_scope(self._session_factory) as s:
            total, clicks, clicked = (await s.execute(stmt)).one()
        return ClickSummary(
            total_links=int(total),
            total_clicks=int(clicks),
            links_with_clicks=int(clicked),
            links_without_clicks=int(total) - int(clicked),
        )

    @translate_store_errors
    async def top_by_clicks(self, limit: int) -> list[ShortLinkRecord]:
        stmt = (
            select(ShortLink)
            .where(ShortLink.clicks > 0)
            .order_by(ShortLink.clicks.desc(), ShortLink.created_at.desc(), ShortLink.id.desc())
            .limit(limit)
        )
        async with session_scope(self._session_factory) as s:
            return [_to_record(r) for r in (await s.execute(stmt)).scalars().all()]

    @translate_store_errors
    async def recently_clicked(self, limit: int) -> list[ShortLinkRecord]:
        stmt = (
            select(ShortLink)
            .where(ShortLink.last_clicked_at.is_not(None))
            .order_by(ShortLink.last_clicked_at.desc(), ShortLink.id.desc())
            .limit(limit)
        )
        async with session_scope(self._session_factory) as s:
            return [_to_record(r) for r in (await s.execute(stmt)).scalars().all()]
