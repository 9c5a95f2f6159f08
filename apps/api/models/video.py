"""Video model for catalog entries."""

from sqlalchemy import Column, Integer, String, DateTime, Text
from sqlalchemy.sql import func

from database import Base


VIDEO_TYPES = ("long", "short")


class Video(Base):
    """Catalog entry ingested from an external URL."""
    
    __tablename__ = "videos"
    
    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String, nullable=False, default="Untitled Video")
    description = Column(Text, nullable=True)
    video_url = Column(String, nullable=False)
    youtube_url = Column(String, nullable=True)  # original external URL, kept for attribution
    thumbnail_url = Column(String, nullable=True)
    duration = Column(Integer, nullable=True)  # seconds
    video_type = Column(String, nullable=False, default="long", index=True)
    category = Column(String, nullable=True, index=True)
    channel_name = Column(String, nullable=False, default="Unknown")
    view_count = Column(Integer, nullable=False, default=0)
    likes_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
