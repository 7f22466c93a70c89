from sqlalchemy import Boolean, Column, DateTime, String

from db.database import Base


class BlockedIP(Base):
    __tablename__ = "blocked_ips"

    ip_address = Column(String(45), primary_key=True)
    reason = Column(String(255), nullable=True)
    blocked_at = Column(DateTime, nullable=False)
    expires_at = Column(DateTime, nullable=True, index=True)
    is_permanent = Column(Boolean, nullable=False, default=False)
