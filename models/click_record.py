from sqlalchemy import Column, Date, DateTime, Index, Integer, String

from db.database import Base


class ClickRecord(Base):
    """Per-redirect diagnostic row; the authoritative count lives on ShortLink.clicks."""

    __tablename__ = "click_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    short_code = Column(String(20), nullable=False)
    day = Column(Date, nullable=False)
    clicked_at = Column(DateTime, nullable=False)
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(String(512), nullable=True)

    __table_args__ = (Index("ix_click_history_code_day", "short_code", "day"),)
