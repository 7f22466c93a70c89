import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

DUPLICATE_URL_POLICIES = ("always_create", "per_ip", "global")
MIN_CODE_LENGTH = 3
MAX_CODE_LENGTH = 20


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}") from exc


def _bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _list_env(name: str) -> tuple[str, ...]:
    # Comma-separated substrings; blanks are dropped so "a,,b" never matches everything
    raw = os.getenv(name, "")
    return tuple(item.strip().lower() for item in raw.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    """Runtime configuration consumed by the app factory and the core services."""

    database_url: str = "sqlite+aiosqlite:///./shortlinks.db"
    public_base_url: str | None = None
    rate_limit_enabled: bool = True
    blocked_domains: tuple[str, ...] = ()
    suspicious_keywords: tuple[str, ...] = ()
    max_links_per_ip_per_day: int = 50
    rapid_creation_threshold: int = 10
    rapid_creation_window_minutes: int = 60
    spam_event_threshold: int = 5
    spam_event_window_hours: int = 24
    block_duration_days: int = 7
    duplicate_url_policy: str = "always_create"
    short_code_length: int = 8
    click_history_days: int = 30
    click_samples_per_day: int = 50
    abuse_event_retention_days: int = 30
    log_level: str = "INFO"
    log_file: str | None = None

    def __post_init__(self) -> None:
        if self.duplicate_url_policy not in DUPLICATE_URL_POLICIES:
            raise RuntimeError(
                f"DUPLICATE_URL_POLICY must be one of {', '.join(DUPLICATE_URL_POLICIES)}, "
                f"got {self.duplicate_url_policy!r}"
            )
        if not MIN_CODE_LENGTH <= self.short_code_length <= MAX_CODE_LENGTH:
            raise RuntimeError(f"SHORT_CODE_LENGTH must be between {MIN_CODE_LENGTH} and {MAX_CODE_LENGTH}")
        for name in (
            "max_links_per_ip_per_day",
            "rapid_creation_threshold",
            "rapid_creation_window_minutes",
            "spam_event_threshold",
            "spam_event_window_hours",
            "block_duration_days",
            "click_history_days",
            "click_samples_per_day",
            "abuse_event_retention_days",
        ):
            if getattr(self, name) < 1:
                raise RuntimeError(f"{name.upper()} must be a positive integer")

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            database_url=os.getenv("DATABASE_URL") or cls.database_url,
            public_base_url=os.getenv("PUBLIC_BASE_URL") or None,
            rate_limit_enabled=_bool_env("RATE_LIMIT_ENABLED", True),
            blocked_domains=_list_env("BLOCKED_DOMAINS"),
            suspicious_keywords=_list_env("SUSPICIOUS_KEYWORDS"),
            max_links_per_ip_per_day=_int_env("MAX_LINKS_PER_IP_PER_DAY", 50),
            rapid_creation_threshold=_int_env("RAPID_CREATION_THRESHOLD", 10),
            rapid_creation_window_minutes=_int_env("RAPID_CREATION_WINDOW_MINUTES", 60),
            spam_event_threshold=_int_env("SPAM_EVENT_THRESHOLD", 5),
            spam_event_window_hours=_int_env("SPAM_EVENT_WINDOW_HOURS", 24),
            block_duration_days=_int_env("BLOCK_DURATION_DAYS", 7),
            duplicate_url_policy=os.getenv("DUPLICATE_URL_POLICY", "always_create").strip().lower(),
            short_code_length=_int_env("SHORT_CODE_LENGTH", 8),
            click_history_days=_int_env("CLICK_HISTORY_DAYS", 30),
            click_samples_per_day=_int_env("CLICK_SAMPLES_PER_DAY", 50),
            abuse_event_retention_days=_int_env("ABUSE_EVENT_RETENTION_DAYS", 30),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            log_file=os.getenv("LOG_FILE") or None,
        )
