import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from db.repo.base import AbuseEventLog, BlockList
from settings import Settings

logger = logging.getLogger("shortlink.maintenance")


@dataclass(frozen=True)
class PurgeResult:
    expired_blocks: int
    abuse_events: int


async def purge_stale_records(
    settings: Settings, block_list: BlockList, abuse_log: AbuseEventLog, now: datetime
) -> PurgeResult:
    """
    Delete rows that no longer affect any decision.

    Cosmetic only: is_blocked() and the escalation count already ignore these
    rows. Abuse events are kept for at least the escalation window.
    """
    retention = max(
        timedelta(days=settings.abuse_event_retention_days),
        timedelta(hours=settings.spam_event_window_hours),
    )
    expired_blocks = await block_list.purge_expired(now)
    abuse_events = await abuse_log.purge_older_than(now - retention)
    logger.info("purged expired_blocks=%d abuse_events=%d", expired_blocks, abuse_events)
    return PurgeResult(expired_blocks=expired_blocks, abuse_events=abuse_events)
