"""Per-user video visibility assignments."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.sql import func

from database import Base


class VideoAssignment(Base):
    """Restricts a video to a user. Videos without any rows are public."""

    __tablename__ = "video_assignments"
    __table_args__ = (UniqueConstraint("video_id", "user_id", name="uq_video_assignments_video_user"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    video_id = Column(Integer, ForeignKey("videos.id"), nullable=False, index=True)
    # NULL once the only assigned user is deleted; the video stays restricted
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
