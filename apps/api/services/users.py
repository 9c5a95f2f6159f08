"""User directory services."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import HTTPException
from sqlalchemy import delete, exists, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import aliased

from models.saved_video import SavedVideo
from models.search_history import SearchHistory
from models.user import User
from models.video_assignment import VideoAssignment
from models.watch_history import WatchHistory
from models.watch_later import WatchLater

logger = logging.getLogger(__name__)

USER_DEPENDENT_MODELS = (WatchHistory, WatchLater, SavedVideo, SearchHistory, VideoAssignment)


def serialize_user(user: User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "name": user.name,
        "avatar_url": user.avatar_url,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }


def _require_name(name: Optional[str]) -> str:
    cleaned = str(name or "").strip()
    if not cleaned:
        raise HTTPException(status_code=400, detail="Name is required")
    return cleaned


async def _get_user_or_404(user_id: int, db: AsyncSession) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


async def list_users_service(*, db: AsyncSession) -> Dict[str, Any]:
    result = await db.execute(select(User).order_by(User.created_at.asc(), User.id.asc()))
    return {"users": [serialize_user(user) for user in result.scalars().all()]}


async def create_user_service(*, name: Optional[str], avatar_url: Optional[str], db: AsyncSession) -> Dict[str, Any]:
    user = User(name=_require_name(name), avatar_url=avatar_url or None)
    db.add(user)
    await db.commit()
    await db.refresh(user)
    logger.info("user_created id=%s", user.id)
    return {"user": serialize_user(user)}


async def get_user_service(*, user_id: int, db: AsyncSession) -> Dict[str, Any]:
    return {"user": serialize_user(await _get_user_or_404(user_id, db))}


async def update_user_service(
    *,
    user_id: int,
    name: Optional[str],
    avatar_url: Optional[str],
    db: AsyncSession,
) -> Dict[str, Any]:
    cleaned_name = _require_name(name)
    user = await _get_user_or_404(user_id, db)
    user.name = cleaned_name
    user.avatar_url = avatar_url or None
    await db.commit()
    await db.refresh(user)
    return {"user": serialize_user(user)}


def _detach_sole_assignments(user_id: int):
    """
    Keep videos restricted to this user alone restricted once the user is gone.

    Their assignment rows lose the user instead of being deleted, so the video
    still has an assignment and stays out of every public listing.
    """
    other = aliased(VideoAssignment)
    shared = (
        exists()
        .where(other.video_id == VideoAssignment.video_id, other.user_id != user_id)
        .correlate(VideoAssignment)
    )
    return (
        update(VideoAssignment)
        .where(VideoAssignment.user_id == user_id, ~shared)
        .values(user_id=None)
        .execution_options(synchronize_session=False)
    )


async def delete_user_service(*, user_id: int, db: AsyncSession) -> Dict[str, Any]:
    """Remove a user with their library, search history and shared assignments."""
    user = await _get_user_or_404(user_id, db)
    deleted = serialize_user(user)
    try:
        detached = await db.execute(_detach_sole_assignments(user_id))
        for model in USER_DEPENDENT_MODELS:
            await db.execute(delete(model).where(model.user_id == user_id))
        await db.execute(delete(User).where(User.id == user_id).execution_options(synchronize_session=False))
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Failed to delete user %s: %s", user_id, exc)
        raise HTTPException(status_code=500, detail="Failed to delete user") from exc
    if detached.rowcount:
        logger.info("user_deleted id=%s restricted_videos_orphaned=%s", user_id, detached.rowcount)
    return {"message": "User deleted successfully", "user": deleted}
