import logging
from dataclasses import dataclass

from db.repo.base import BlockList, LinkStore
from db.repo.records import ShortLinkRecord
from services.escalation import EscalationEngine
from services.exceptions import (
    IpBlockedError,
    NotLinkOwnerError,
    ShortCodeConflictError,
    ShortCodeNotFoundError,
    SpamRejectedError,
)
from services.spam_classifier import CreateRequest, SpamClassifier
from services.validation import validate_create_request
from settings import Settings
from utils.encoder import generate_short_code
from utils.timewindow import Clock, day_start, utcnow

logger = logging.getLogger("shortlink.links")

MAX_CODE_ATTEMPTS = 5
LEADERBOARD_SIZE = 5


@dataclass(frozen=True)
class CreatedLink:
    link: ShortLinkRecord
    existing: bool = False


@dataclass(frozen=True)
class Overview:
    total_links: int
    active_links: int
    links_today: int
    total_clicks: int
    blocked_ips: int


@dataclass(frozen=True)
class ClickLeaderboard:
    total_links: int
    total_clicks: int
    links_with_clicks: int
    links_without_clicks: int
    avg_clicks: float
    top_performers: list[ShortLinkRecord]
    recent_activity: list[ShortLinkRecord]


class LinkService:
    """Create path and link management on top of the classifier and stores."""

    def __init__(
        self,
        settings: Settings,
        link_store: LinkStore,
        block_list: BlockList,
        classifier: SpamClassifier,
        escalation: EscalationEngine,
        clock: Clock = utcnow,
    ):
        self._settings = settings
        self._links = link_store
        self._block_list = block_list
        self._classifier = classifier
        self._escalation = escalation
        self._clock = clock

    async def create_link(
        self,
        original_url: str,
        custom_code: str | None,
        ip: str,
        user_agent: str | None = None,
    ) -> CreatedLink:
        original_url, custom_code = validate_create_request(original_url, custom_code)

        if await self._escalation.is_blocked(ip):
            logger.warning("create refused for blocked ip=%s", ip)
            raise IpBlockedError(ip)

        if custom_code is None:
            existing = await self._find_duplicate(original_url, ip)
            if existing is not None:
                logger.info("duplicate url returned existing code=%s policy=%s", existing.short_code,
                            self._settings.duplicate_url_policy)
                return CreatedLink(link=existing, existing=True)

        decision = await self._classifier.classify(
            CreateRequest(original_url=original_url, client_ip=ip, custom_code=custom_code)
        )
        if not decision.accept:
            raise SpamRejectedError(decision.reason)

        if custom_code is not None:
            if await self._links.get_by_code(custom_code) is not None:
                raise ShortCodeConflictError(custom_code)
            link = await self._insert(custom_code, original_url, ip, user_agent)
        else:
            link = await self._insert_generated(original_url, ip, user_agent)
        logger.info("created code=%s ip=%s", link.short_code, ip)
        return CreatedLink(link=link)

    async def _find_duplicate(self, original_url: str, ip: str) -> ShortLinkRecord | None:
        policy = self._settings.duplicate_url_policy
        if policy == "global":
            return await self._links.find_by_original_url(original_url)
        if policy == "per_ip":
            return await self._links.find_by_original_url(original_url, ip_address=ip)
        return None

    async def _insert(self, short_code: str, original_url: str, ip: str, user_agent: str | None) -> ShortLinkRecord:
        return await self._links.create(
            short_code=short_code,
            original_url=original_url,
            ip_address=ip,
            user_agent=user_agent,
            created_at=self._clock(),
        )

    async def _insert_generated(self, original_url: str, ip: str, user_agent: str | None) -> ShortLinkRecord:
        code = ""
        for _ in range(MAX_CODE_ATTEMPTS):
            code = generate_short_code(self._settings.short_code_length)
            try:
                return await self._insert(code, original_url, ip, user_agent)
            except ShortCodeConflictError:
                logger.info("generated code collided code=%s, retrying", code)
        raise ShortCodeConflictError(code)

    async def get_link(self, short_code: str) -> ShortLinkRecord:
        link = await self._links.get_by_code(short_code)
        if link is None:
            raise ShortCodeNotFoundError(short_code)
        return link

    async def deactivate_link(self, short_code: str, ip: str) -> None:
        link = await self.get_link(short_code)
        if link.ip_address != ip:
            raise NotLinkOwnerError(short_code)
        if not await self._links.deactivate(short_code):
            raise ShortCodeNotFoundError(short_code)
        logger.info("deactivated code=%s by ip=%s", short_code, ip)

    async def list_links_by_ip(self, ip: str, limit: int = 10, offset: int = 0) -> list[ShortLinkRecord]:
        return await self._links.list_by_ip(ip, limit, offset)

    async def overview(self) -> Overview:
        now = self._clock()
        summary = await self._links.summary(day_start(now))
        blocked = await self._block_list.count_active(now)
        return Overview(
            total_links=summary.total_links,
            active_links=summary.active_links,
            links_today=summary.links_today,
            total_clicks=summary.total_clicks,
            blocked_ips=blocked,
        )

    async def list_all_links(self, limit: int = 50, offset: int = 0) -> list[ShortLinkRecord]:
        return await self._links.list_all(limit, offset)

    async def click_leaderboard(self, size: int = LEADERBOARD_SIZE) -> ClickLeaderboard:
        """Click totals plus the most clicked and most recently clicked links."""
        summary = await self._links.click_summary()
        avg = round(summary.total_clicks / summary.total_links, 2) if summary.total_links else 0.0
        return ClickLeaderboard(
            total_links=summary.total_links,
            total_clicks=summary.total_clicks,
            links_with_clicks=summary.links_with_clicks,
            links_without_clicks=summary.links_without_clicks,
            avg_clicks=avg,
            top_performers=await self._links.top_by_clicks(size),
            recent_activity=await self._links.recently_clicked(size),
        )
