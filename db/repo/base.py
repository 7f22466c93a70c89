"""Abstract store contracts consumed by the core services."""

from __future__ import annotations

import functools
from abc import ABC, abstractmethod
from datetime import date, datetime

from sqlalchemy.exc import SQLAlchemyError

from models.abuse_event import AbuseActionKind
from services.exceptions import StoreUnavailableError

from .records import BlockEntryRecord, ClickSummary, DayBucket, LinkSummary, ShortLinkRecord


def translate_store_errors(fn):
    """Re-raise any SQLAlchemy failure as StoreUnavailableError."""

    @functools.wraps(fn)
    async def wrapper(*args, **kwargs):
        try:
            return await fn(*args, **kwargs)
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"{fn.__qualname__}: {e}") from e

    return wrapper


class LinkStore(ABC):
    """
    Durable short-code -> original URL records.

    Implementations must enforce short code uniqueness themselves and raise
    ShortCodeConflictError on violation; click increments must be atomic.
    """

    @abstractmethod
    async def get_by_code(self, short_code: str) -> ShortLinkRecord | None:
        raise NotImplementedError

    @abstractmethod
    async def find_by_original_url(self, original_url: str, ip_address: str | None = None) -> ShortLinkRecord | None:
        """Most recent active link for the URL, optionally restricted to one creator IP."""
        raise NotImplementedError

    @abstractmethod
    async def create(
        self,
        *,
        short_code: str,
        original_url: str,
        ip_address: str,
        user_agent: str | None,
        created_at: datetime,
    ) -> ShortLinkRecord:
        raise NotImplementedError

    @abstractmethod
    async def increment_clicks(self, short_code: str, clicked_at: datetime) -> bool:
        """Add one click to an active link and stamp last_clicked_at. False when the code is gone or inactive."""
        raise NotImplementedError

    @abstractmethod
    async def deactivate(self, short_code: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def count_by_ip_since(self, ip_address: str, since: datetime) -> int:
        raise NotImplementedError

    @abstractmethod
    async def list_by_ip(self, ip_address: str, limit: int, offset: int) -> list[ShortLinkRecord]:
        raise NotImplementedError

    @abstractmethod
    async def summary(self, day_start: datetime) -> LinkSummary:
        raise NotImplementedError

    @abstractmethod
    async def list_all(self, limit: int, offset: int) -> list[ShortLinkRecord]:
        """Every link, newest first."""
        raise NotImplementedError

    @abstractmethod
    async def click_summary(self) -> ClickSummary:
        raise NotImplementedError

    @abstractmethod
    async def top_by_clicks(self, limit: int) -> list[ShortLinkRecord]:
        """Links with at least one click, most clicked first."""
        raise NotImplementedError

    @abstractmethod
    async def recently_clicked(self, limit: int) -> list[ShortLinkRecord]:
        raise NotImplementedError


class AbuseEventLog(ABC):
    @abstractmethod
    async def append(self, ip_address: str, kind: AbuseActionKind, details: str | None, created_at: datetime) -> None:
        raise NotImplementedError

    @abstractmethod
    async def count_by_ip_since(self, ip_address: str, since: datetime) -> int:
        raise NotImplementedError

    @abstractmethod
    async def purge_older_than(self, cutoff: datetime) -> int:
        raise NotImplementedError


class BlockList(ABC):
    @abstractmethod
    async def get(self, ip_address: str) -> BlockEntryRecord | None:
        raise NotImplementedError

    @abstractmethod
    async def upsert(self, entry: BlockEntryRecord) -> BlockEntryRecord:
        """Insert or overwrite the entry for entry.ip_address."""
        raise NotImplementedError

    @abstractmethod
    async def count_active(self, now: datetime) -> int:
        raise NotImplementedError

    @abstractmethod
    async def purge_expired(self, now: datetime) -> int:
        raise NotImplementedError


class ClickHistory(ABC):
    @abstractmethod
    async def append(
        self,
        *,
        short_code: str,
        day: date,
        clicked_at: datetime,
        ip_address: str | None,
        user_agent: str | None,
    ) -> None:
        raise NotImplementedError

    @abstractmethod
    async def daily_buckets(self, short_code: str, limit: int, offset: int, samples_per_day: int) -> list[DayBucket]:
        """Clicks grouped by day, newest day first."""
        raise NotImplementedError

    @abstractmethod
    async def count_between(self, short_code: str, first_day: date, last_day: date) -> int:
        """Raw click records with first_day <= day <= last_day."""
        raise NotImplementedError
