import enum

from sqlalchemy import Column, DateTime, Index, Integer, String, Text

from db.database import Base


class AbuseActionKind(str, enum.Enum):
    BLOCKED_DOMAIN = "BLOCKED_DOMAIN"
    SUSPICIOUS_KEYWORD = "SUSPICIOUS_KEYWORD"
    DAILY_LIMIT_EXCEEDED = "DAILY_LIMIT_EXCEEDED"
    RAPID_CREATION = "RAPID_CREATION"


class AbuseEvent(Base):
    """Append-only spam/rate event attributed to a client IP."""

    __tablename__ = "spam_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    ip_address = Column(String(45), nullable=False)
    action = Column(String(32), nullable=False)
    details = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, index=True)

    __table_args__ = (Index("ix_spam_logs_ip_created", "ip_address", "created_at"),)
