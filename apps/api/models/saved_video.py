"""Saved video model."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.sql import func

from database import Base


class SavedVideo(Base):
    """Video bookmarked by a user."""

    __tablename__ = "saved_videos"
    __table_args__ = (UniqueConstraint("user_id", "video_id", name="uq_saved_videos_user_video"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    video_id = Column(Integer, ForeignKey("videos.id"), nullable=False, index=True)
    saved_at = Column(DateTime(timezone=True), server_default=func.now())
