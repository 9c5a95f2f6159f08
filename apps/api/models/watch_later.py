"""Watch later queue model."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.sql import func

from database import Base


class WatchLater(Base):
    __tablename__ = "watch_later"
    __table_args__ = (UniqueConstraint("user_id", "video_id", name="uq_watch_later_user_video"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    video_id = Column(Integer, ForeignKey("videos.id"), nullable=False, index=True)
    added_at = Column(DateTime(timezone=True), server_default=func.now())
