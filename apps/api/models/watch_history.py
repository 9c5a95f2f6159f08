"""Watch history model."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.sql import func

from database import Base


class WatchHistory(Base):
    """Last watch position of a video for a user."""

    __tablename__ = "watch_history"
    __table_args__ = (UniqueConstraint("user_id", "video_id", name="uq_watch_history_user_video"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    video_id = Column(Integer, ForeignKey("videos.id"), nullable=False, index=True)
    progress = Column(Integer, nullable=False, default=0)
    watched_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
