import logging
from dataclasses import dataclass
from datetime import timedelta
from urllib.parse import urlsplit

from db.repo.base import LinkStore
from models.abuse_event import AbuseActionKind
from services.escalation import EscalationEngine
from settings import Settings
from utils.timewindow import Clock, utcnow, window_start

logger = logging.getLogger("shortlink.spam")

DAILY_WINDOW = timedelta(hours=24)


@dataclass(frozen=True)
class CreateRequest:
    original_url: str
    client_ip: str
    custom_code: str | None = None


@dataclass(frozen=True)
class Decision:
    accept: bool
    reason: AbuseActionKind | None = None
    detail: str | None = None


ACCEPT = Decision(accept=True)


class SpamClassifier:
    """
    Decide whether a validated create request looks like spam.

    Checks run in a fixed order and the first match wins: blocked domain,
    suspicious keyword, daily per-IP limit, rapid creation. Each rejection
    is handed to the escalation engine before the decision is returned.
    """

    def __init__(
        self,
        settings: Settings,
        link_store: LinkStore,
        escalation: EscalationEngine,
        clock: Clock = utcnow,
    ):
        self._links = link_store
        self._escalation = escalation
        self._clock = clock
        self._blocked_domains = tuple(d.strip().lower() for d in settings.blocked_domains if d.strip())
        self._keywords = tuple(k.strip().lower() for k in settings.suspicious_keywords if k.strip())
        self._max_per_day = settings.max_links_per_ip_per_day
        self._rapid_threshold = settings.rapid_creation_threshold
        self._rapid_window = timedelta(minutes=settings.rapid_creation_window_minutes)

    async def classify(self, request: CreateRequest) -> Decision:
        decision = await self._evaluate(request)
        if not decision.accept:
            logger.warning("spam rejected ip=%s reason=%s", request.client_ip, decision.reason.value)
            await self._escalation.record_spam_event(request.client_ip, decision.reason, decision.detail)
        return decision

    async def _evaluate(self, request: CreateRequest) -> Decision:
        hostname = (urlsplit(request.original_url).hostname or "").lower()
        if any(domain in hostname for domain in self._blocked_domains):
            return Decision(False, AbuseActionKind.BLOCKED_DOMAIN, f"Domain: {hostname}")

        url_lower = request.original_url.lower()
        if any(keyword in url_lower for keyword in self._keywords):
            return Decision(False, AbuseActionKind.SUSPICIOUS_KEYWORD, f"URL: {request.original_url}")

        now = self._clock()
        created_today = await self._links.count_by_ip_since(request.client_ip, window_start(now, DAILY_WINDOW))
        if created_today >= self._max_per_day:
            return Decision(False, AbuseActionKind.DAILY_LIMIT_EXCEEDED, "Daily link limit exceeded")

        created_recently = await self._links.count_by_ip_since(
            request.client_ip, window_start(now, self._rapid_window)
        )
        if created_recently >= self._rapid_threshold:
            return Decision(False, AbuseActionKind.RAPID_CREATION, "Too many links created in short time")

        return ACCEPT
