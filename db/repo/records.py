"""Plain records returned by the stores. No business logic beyond trivial predicates."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime


@dataclass(slots=True)
class ShortLinkRecord:
    id: int | None
    short_code: str
    original_url: str
    ip_address: str
    user_agent: str | None
    clicks: int
    last_clicked_at: datetime | None
    is_active: bool
    created_at: datetime


@dataclass(slots=True)
class BlockEntryRecord:
    ip_address: str
    reason: str | None
    blocked_at: datetime
    expires_at: datetime | None
    is_permanent: bool

    def is_active_at(self, now: datetime) -> bool:
        if self.is_permanent:
            return True
        if self.expires_at is None:
            return False
        return now < self.expires_at


@dataclass(slots=True)
class ClickSample:
    clicked_at: datetime
    ip_address: str | None
    user_agent: str | None


@dataclass(slots=True)
class DayBucket:
    day: date
    count: int
    samples: list[ClickSample] = field(default_factory=list)


@dataclass(slots=True)
class LinkSummary:
    total_links: int
    active_links: int
    links_today: int
    total_clicks: int


@dataclass(slots=True)
class ClickSummary:
    total_links: int
    total_clicks: int
    links_with_clicks: int
    links_without_clicks: int
