"""SQLAlchemy-backed ClickHistory (one row per redirect)."""

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime

from sqlalchemy import func, select

from db.database import session_scope
from models.click_record import ClickRecord

from .base import ClickHistory, translate_store_errors
from .records import ClickSample, DayBucket


class SqlClickHistory(ClickHistory):
    def __init__(self, session_factory):
        self._session_factory = session_factory

    @translate_store_errors
    async def append(
        self,
        *,
        short_code: str,
        day: date,
        clicked_at: datetime,
        ip_address: str | None,
        user_agent: str | None,
    ) -> None:
        async with session_scope(self._session_factory) as s:
            s.add(
                ClickRecord(
                    short_code=short_code,
                    day=day,
                    clicked_at=clicked_at,
                    ip_address=ip_address,
                    user_agent=user_agent,
                )
            )

    @translate_store_errors
    async def daily_buckets(self, short_code: str, limit: int, offset: int, samples_per_day: int) -> list[DayBucket]:
        counts_stmt = (
            select(ClickRecord.day, func.count(ClickRecord.id))
            .where(ClickRecord.short_code == short_code)
            .group_by(ClickRecord.day)
            .order_by(ClickRecord.day.desc())
            .offset(offset)
            .limit(limit)
        )
        async with session_scope(self._session_factory) as s:
            day_counts = [(day, count) for day, count in (await s.execute(counts_stmt)).all()]
            if not day_counts:
                return []

            rows_stmt = (
                select(ClickRecord)
                .where(ClickRecord.short_code == short_code, ClickRecord.day.in_([d for d, _ in day_counts]))
                .order_by(ClickRecord.clicked_at.desc(), ClickRecord.id.desc())
            )
            samples: dict[date, list[ClickSample]] = defaultdict(list)
            for r in (await s.execute(rows_stmt)).scalars():
                if len(samples[r.day]) < samples_per_day:
                    samples[r.day].append(
                        ClickSample(clicked_at=r.clicked_at, ip_address=r.ip_address, user_agent=r.user_agent)
                    )

        return [DayBucket(day=day, count=count, samples=samples[day]) for day, count in day_counts]

    @translate_store_errors
    async def count_between(self, short_code: str, first_day: date, last_day: date) -> int:
        stmt = (
            select(func.count())
            .select_from(ClickRecord)
            .where(ClickRecord.short_code == short_code, ClickRecord.day >= first_day, ClickRecord.day <= last_day)
        )
        async with session_scope(self._session_factory) as s:
            return (await s.execute(stmt)).scalar_one()
