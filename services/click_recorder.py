import logging
from dataclasses import dataclass
from datetime import date

from db.repo.base import ClickHistory, LinkStore
from db.repo.records import DayBucket, ShortLinkRecord
from services.exceptions import ShortCodeNotFoundError, StoreUnavailableError, ValidationError
from utils.timewindow import Clock, day_bucket, utcnow

logger = logging.getLogger("shortlink.clicks")


@dataclass(frozen=True)
class RedirectTarget:
    short_code: str
    original_url: str


@dataclass(frozen=True)
class ClickStats:
    short_code: str
    clicks: int  # raw click records in the requested day(s)
    total_clicks: int  # authoritative counter on the link


class ClickRecorder:
    """
    Record redirects and serve click statistics.

    The link counter is the authoritative click count. The per-click history
    rows are diagnostic: a failed history write is logged and dropped, so
    history totals may trail the counter.
    """

    def __init__(
        self,
        link_store: LinkStore,
        click_history: ClickHistory,
        clock: Clock = utcnow,
        *,
        history_days: int = 30,
        samples_per_day: int = 50,
    ):
        self._links = link_store
        self._history = click_history
        self._clock = clock
        self._history_days = history_days
        self._samples_per_day = samples_per_day

    async def record_click(self, short_code: str, ip: str | None, user_agent: str | None) -> RedirectTarget:
        link = await self._links.get_by_code(short_code)
        if link is None or not link.is_active:
            raise ShortCodeNotFoundError(short_code)

        now = self._clock()
        try:
            if not await self._links.increment_clicks(short_code, now):
                logger.warning("click counter not updated, code=%s gone or deactivated after lookup", short_code)
        except StoreUnavailableError:
            logger.exception("click counter update failed code=%s", short_code)

        try:
            await self._history.append(
                short_code=short_code,
                day=day_bucket(now),
                clicked_at=now,
                ip_address=ip,
                user_agent=user_agent,
            )
        except StoreUnavailableError:
            logger.exception("click history write failed code=%s, redirect continues", short_code)

        return RedirectTarget(short_code=short_code, original_url=link.original_url)

    async def _require_link(self, short_code: str) -> ShortLinkRecord:
        link = await self._links.get_by_code(short_code)
        if link is None:
            raise ShortCodeNotFoundError(short_code)
        return link

    async def get_click_history(
        self, short_code: str, day_window: int | None = None, offset: int = 0
    ) -> list[DayBucket]:
        await self._require_link(short_code)
        limit = day_window if day_window is not None else self._history_days
        return await self._history.daily_buckets(short_code, limit, offset, self._samples_per_day)

    async def get_daily_stats(
        self,
        short_code: str,
        day: date | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> ClickStats:
        if (start is None) != (end is None):
            field = "end_date" if end is None else "start_date"
            raise ValidationError([{"field": field, "message": "start_date and end_date must be given together"}])
        if start is not None and start > end:
            raise ValidationError([{"field": "start_date", "message": "start_date must not be after end_date"}])

        link = await self._require_link(short_code)
        if start is not None:
            first, last = start, end
        else:
            first = last = day or day_bucket(self._clock())
        clicks = await self._history.count_between(short_code, first, last)
        return ClickStats(short_code=short_code, clicks=clicks, total_clicks=link.clicks)
