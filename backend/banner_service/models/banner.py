from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, func, Text
from banner_service.models.base import Base

BANNER_STATUSES = ("active", "paused", "scheduled")

class Banner(Base):
    __tablename__ = "banners"
    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    desktop_image_id = Column(Integer, ForeignKey("media_assets.id", ondelete="SET NULL"), nullable=True)
    mobile_image_id = Column(Integer, ForeignKey("media_assets.id", ondelete="SET NULL"), nullable=True)
    # Use Text to allow long CDN or tracking URLs
    desktop_url = Column(Text, nullable=False)
    mobile_url = Column(Text, nullable=True)
    # Schedule bounds are naive UTC, both inclusive
    start_date = Column(DateTime, nullable=True, index=True)
    end_date = Column(DateTime, nullable=True, index=True)
    status = Column(String(20), nullable=False, default="active", server_default="active", index=True)  # active | paused | scheduled
    weight = Column(Integer, nullable=False, default=1, server_default="1")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
