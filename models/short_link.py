from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String, Text

from db.database import Base


class ShortLink(Base):
    __tablename__ = "short_links"

    id = Column(Integer, primary_key=True, autoincrement=True)
    short_code = Column(String(20), nullable=False, unique=True)
    original_url = Column(Text, nullable=False)
    ip_address = Column(String(45), nullable=False)
    user_agent = Column(String(512), nullable=True)
    clicks = Column(Integer, nullable=False, default=0)
    last_clicked_at = Column(DateTime, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, index=True)

    __table_args__ = (
        Index("ix_short_links_ip_created", "ip_address", "created_at"),
        Index("ix_short_links_original_url", "original_url"),
    )
