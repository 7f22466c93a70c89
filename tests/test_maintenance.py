import asyncio
from dataclasses import replace
from datetime import timedelta

from db.database import build_engine, build_session_factory, init_db
from db.repo import SqlAbuseEventLog, SqlBlockList
from db.repo.records import BlockEntryRecord
from models.abuse_event import AbuseActionKind
from services.maintenance import purge_stale_records
from services.tasks import purge_stale_records_task
from utils.timewindow import utcnow

EPOCH_DAYS = 365 * 30


def _block(ip, now, *, expires_in=None, permanent=False):
    return BlockEntryRecord(
        ip_address=ip,
        reason="test",
        blocked_at=now - timedelta(days=1),
        expires_at=None if expires_in is None else now + expires_in,
        is_permanent=permanent,
    )


async def test_purge_drops_only_dead_rows(services, settings, clock):
    now = clock.now
    await services.block_list.upsert(_block("10.0.0.1", now, expires_in=timedelta(seconds=-1)))
    await services.block_list.upsert(_block("10.0.0.2", now, expires_in=timedelta(days=1)))
    await services.block_list.upsert(_block("10.0.0.3", now, permanent=True))
    await services.block_list.upsert(_block("10.0.0.4", now))

    await services.abuse_log.append("10.0.0.9", AbuseActionKind.RAPID_CREATION, None, now - timedelta(days=31))
    await services.abuse_log.append("10.0.0.9", AbuseActionKind.RAPID_CREATION, None, now - timedelta(days=1))

    result = await purge_stale_records(settings, services.block_list, services.abuse_log, now)

    assert result.expired_blocks == 2
    assert result.abuse_events == 1
    assert await services.block_list.get("10.0.0.1") is None
    assert await services.block_list.get("10.0.0.4") is None
    assert await services.block_list.get("10.0.0.2") is not None
    assert await services.block_list.get("10.0.0.3") is not None
    assert await services.abuse_log.count_by_ip_since("10.0.0.9", now - timedelta(days=EPOCH_DAYS)) == 1


async def test_purge_never_cuts_into_the_escalation_window(services, settings, clock):
    now = clock.now
    # Retention of one day but a three day escalation window
    settings = replace(settings, abuse_event_retention_days=1, spam_event_window_hours=72)
    await services.abuse_log.append("10.0.0.9", AbuseActionKind.BLOCKED_DOMAIN, None, now - timedelta(hours=60))
    await services.abuse_log.append("10.0.0.9", AbuseActionKind.BLOCKED_DOMAIN, None, now - timedelta(hours=80))

    result = await purge_stale_records(settings, services.block_list, services.abuse_log, now)

    assert result.abuse_events == 1
    assert await services.abuse_log.count_by_ip_since("10.0.0.9", now - timedelta(hours=72)) == 1


def test_celery_task_purges_configured_database(tmp_path, monkeypatch):
    database_url = f"sqlite+aiosqlite:///{(tmp_path / 'tasks.db').as_posix()}"
    monkeypatch.setenv("DATABASE_URL", database_url)

    async def _seed():
        engine = build_engine(database_url)
        await init_db(engine)
        factory = build_session_factory(engine)
        now = utcnow()
        await SqlBlockList(factory).upsert(_block("10.0.0.1", now, expires_in=timedelta(hours=-1)))
        await SqlAbuseEventLog(factory).append(
            "10.0.0.1", AbuseActionKind.DAILY_LIMIT_EXCEEDED, None, now - timedelta(days=90)
        )
        await engine.dispose()

    asyncio.run(_seed())

    assert purge_stale_records_task.run() == {"expired_blocks": 1, "abuse_events": 1}
