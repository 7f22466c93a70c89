import asyncio
import os

from celery import Celery
from dotenv import load_dotenv

from db.database import build_engine, build_session_factory
from db.repo import SqlAbuseEventLog, SqlBlockList
from services.maintenance import purge_stale_records
from settings import Settings
from utils.timewindow import utcnow

load_dotenv()

celery_app = Celery(
    "shortlink_service",
    broker=os.getenv("CELERY_BROKER_URL") or os.getenv("REDIS_URL"),
    backend=os.getenv("CELERY_RESULT_BACKEND"),
)

# Housekeeping only; block expiry is always evaluated at read time
PURGE_INTERVAL = int(os.getenv("PURGE_INTERVAL_SECONDS", "3600"))
celery_app.conf.beat_schedule = {
    "purge_stale_records": {
        "task": "purge_stale_records",
        "schedule": PURGE_INTERVAL,
    }
}
celery_app.conf.timezone = os.getenv("CELERY_TIMEZONE", "UTC")


@celery_app.task(name="purge_stale_records")
def purge_stale_records_task() -> dict:
    async def _purge():
        settings = Settings.from_env()
        engine = build_engine(settings.database_url)
        session_factory = build_session_factory(engine)
        try:
            return await purge_stale_records(
                settings, SqlBlockList(session_factory), SqlAbuseEventLog(session_factory), utcnow()
            )
        finally:
            await engine.dispose()

    result = asyncio.run(_purge())
    return {"expired_blocks": result.expired_blocks, "abuse_events": result.abuse_events}
