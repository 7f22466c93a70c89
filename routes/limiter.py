import os

from dotenv import load_dotenv
from slowapi import Limiter
from slowapi.util import get_remote_address

load_dotenv()

RATE_LIMIT = os.getenv("RATE_LIMIT", "60/minute")
REDIRECT_RATE_LIMIT = os.getenv("REDIRECT_RATE_LIMIT", "600/minute")

# Per-IP request windows; shared across workers when backed by Redis
limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=os.getenv("RATE_LIMIT_STORAGE_URI") or os.getenv("REDIS_URL") or "memory://",
)


# Limits are looked up per request so they can be changed without re-importing the routes
def create_rate_limit() -> str:
    return RATE_LIMIT


def redirect_rate_limit() -> str:
    return REDIRECT_RATE_LIMIT
