from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ShortLinkCreateRequest(BaseModel):
    original_url: str = Field(..., description="The original URL to be shortened (http/https, max 2048 chars)")
    custom_code: Optional[str] = Field(None, description="Optional custom short code, 3-20 of [A-Za-z0-9_-]")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "original_url": "https://www.example.com/some/long/path",
                "custom_code": "my-link",
            }
        }
    )


class ShortLinkCreateResponse(BaseModel):
    short_code: str = Field(..., description="The short code assigned to the URL")
    short_url: str = Field(..., description="Full short URL to share")
    original_url: str = Field(..., description="The original long URL")
    accepted: bool = Field(True, description="Whether the request passed the spam checks")
    existing: bool = Field(False, description="True when an already shortened link was returned")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "short_code": "aZ3kP9qL",
                "short_url": "http://localhost:8000/aZ3kP9qL",
                "original_url": "https://www.example.com/some/long/path",
                "accepted": True,
                "existing": False,
            }
        }
    )


class ShortLinkOut(BaseModel):
    short_code: str
    original_url: str
    clicks: int = Field(0, description="Authoritative click counter")
    last_clicked_at: Optional[datetime] = None
    is_active: bool = True
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ClickSampleOut(BaseModel):
    clicked_at: datetime
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class DailyClicksOut(BaseModel):
    day: date = Field(..., description="UTC day bucket")
    count: int = Field(..., description="Click records stored for the day")
    samples: list[ClickSampleOut] = Field(default_factory=list, description="Most recent clicks of the day")

    model_config = ConfigDict(from_attributes=True)


class ShortLinkInfoResponse(ShortLinkOut):
    click_history: list[DailyClicksOut] = Field(default_factory=list)
    days: int = Field(..., description="Maximum number of day buckets returned")
    offset: int = Field(0, description="Number of newest day buckets skipped")


class ClickStatsResponse(BaseModel):
    short_code: str
    clicks: int = Field(..., description="Click records in the requested day or range")
    total_clicks: int = Field(..., description="Authoritative counter; may exceed the history total")

    model_config = ConfigDict(from_attributes=True)


class OverviewResponse(BaseModel):
    total_links: int
    active_links: int
    links_today: int
    total_clicks: int
    blocked_ips: int

    model_config = ConfigDict(from_attributes=True)


class ClickLeaderboardResponse(BaseModel):
    total_links: int
    total_clicks: int
    links_with_clicks: int = Field(..., description="Links clicked at least once")
    links_without_clicks: int
    avg_clicks: float = Field(..., description="Mean clicks per link, two decimals")
    top_performers: list[ShortLinkOut] = Field(default_factory=list, description="Most clicked links")
    recent_activity: list[ShortLinkOut] = Field(default_factory=list, description="Most recently clicked links")

    model_config = ConfigDict(from_attributes=True)


class AllLinksResponse(BaseModel):
    links: list[ShortLinkOut]
    total: int = Field(..., description="Links on this page")
    limit: int
    offset: int


class LinksByIpResponse(BaseModel):
    ip_address: str
    blocked: bool
    links: list[ShortLinkOut]
    total: int
    limit: int
    offset: int


class MessageResponse(BaseModel):
    success: bool
    detail: str


class ErrorResponse(BaseModel):
    detail: str = Field(..., description="Error message")

    model_config = ConfigDict(json_schema_extra={"example": {"detail": "Short code not found"}})
