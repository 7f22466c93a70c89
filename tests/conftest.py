from datetime import datetime, timedelta

import pytest
import pytest_asyncio

from db.database import build_engine, build_session_factory, init_db
from services.container import build_services
from services.exceptions import StoreUnavailableError
from settings import Settings

BLOCKED_DOMAIN = "spam-domain-configured.example"


class FakeClock:
    """Controllable replacement for utils.timewindow.utcnow."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 3, 10, 12, 0, 0))


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite+aiosqlite:///{(tmp_path / 'shortlinks.db').as_posix()}",
        rate_limit_enabled=False,
        blocked_domains=(BLOCKED_DOMAIN,),
        suspicious_keywords=("casino", "free-money"),
    )


@pytest_asyncio.fixture
async def session_factory(settings):
    engine = build_engine(settings.database_url)
    await init_db(engine)
    yield build_session_factory(engine)
    await engine.dispose()


@pytest.fixture
def services(settings, session_factory, clock):
    return build_services(settings, session_factory, clock)


@pytest.fixture
def seed_links(services):
    # Insert links straight into the store, bypassing the classifier
    async def _seed(ip: str, count: int, created_at: datetime, prefix: str = "seed"):
        for i in range(count):
            await services.link_store.create(
                short_code=f"{prefix}{i}",
                original_url=f"https://example.com/{prefix}/{i}",
                ip_address=ip,
                user_agent="pytest",
                created_at=created_at,
            )

    return _seed


class FailingClickHistory:
    """Click history whose every call fails like an unreachable store."""

    def __init__(self):
        self.calls = 0

    async def append(self, **kwargs):
        self.calls += 1
        raise StoreUnavailableError("click history down")

    async def daily_buckets(self, *a, **k):
        return []

    async def count_between(self, *a, **k):
        return 0


@pytest.fixture
def failing_click_history():
    return FailingClickHistory()
