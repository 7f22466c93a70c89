import logging
from datetime import timedelta

from db.repo.base import AbuseEventLog, BlockList
from db.repo.records import BlockEntryRecord
from models.abuse_event import AbuseActionKind
from services.exceptions import StoreUnavailableError
from settings import Settings
from utils.timewindow import Clock, utcnow, window_start

logger = logging.getLogger("shortlink.escalation")

BLOCK_REASON = "Multiple spam activities detected"


class EscalationEngine:
    """
    Turns accumulated abuse events into temporary IP blocks.

    Per IP: Clean -> Flagged (1..threshold-1 events in the window) -> Blocked
    (block_duration from the threshold-crossing event) -> Clean once expired.
    Expiry is never swept; it is evaluated on every is_blocked() call.
    """

    def __init__(self, settings: Settings, abuse_log: AbuseEventLog, block_list: BlockList, clock: Clock = utcnow):
        self._abuse_log = abuse_log
        self._block_list = block_list
        self._clock = clock
        self._threshold = settings.spam_event_threshold
        self._window = timedelta(hours=settings.spam_event_window_hours)
        self._block_duration = timedelta(days=settings.block_duration_days)

    async def record_spam_event(self, ip: str, reason: AbuseActionKind, detail: str | None = None) -> None:
        now = self._clock()
        try:
            # append first: the count below must include this event
            await self._abuse_log.append(ip, reason, detail, now)
            count = await self._abuse_log.count_by_ip_since(ip, window_start(now, self._window))
            if count >= self._threshold:
                await self._block_list.upsert(
                    BlockEntryRecord(
                        ip_address=ip,
                        reason=BLOCK_REASON,
                        blocked_at=now,
                        expires_at=now + self._block_duration,
                        is_permanent=False,
                    )
                )
                logger.warning(
                    "ip=%s blocked until %s after %d spam events: %s",
                    ip,
                    (now + self._block_duration).isoformat(),
                    count,
                    BLOCK_REASON,
                )
        except StoreUnavailableError:
            logger.exception("failed to record spam event ip=%s reason=%s", ip, reason.value)

    async def block_ip(
        self, ip: str, reason: str, *, days: int | None = None, permanent: bool = False
    ) -> BlockEntryRecord:
        """Administrative block; overwrites any existing entry for the IP."""
        now = self._clock()
        duration = timedelta(days=days) if days is not None else self._block_duration
        entry = await self._block_list.upsert(
            BlockEntryRecord(
                ip_address=ip,
                reason=reason,
                blocked_at=now,
                expires_at=None if permanent else now + duration,
                is_permanent=permanent,
            )
        )
        logger.warning("ip=%s blocked manually permanent=%s reason=%s", ip, permanent, reason)
        return entry

    async def is_blocked(self, ip: str) -> bool:
        try:
            entry = await self._block_list.get(ip)
        except StoreUnavailableError:
            logger.error("FAIL-OPEN: block list lookup failed for ip=%s, request allowed", ip, exc_info=True)
            return False
        if entry is None:
            return False
        return entry.is_active_at(self._clock())
