"""Per-user library services: watch history, watch later, saved videos, search history."""

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import HTTPException
from sqlalchemy import delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from models.saved_video import SavedVideo
from models.search_history import SearchHistory
from models.video import Video
from models.watch_history import WatchHistory
from models.watch_later import WatchLater
from services.persistence import insert_ignoring_conflicts, upsert
from services.videos import serialize_video, visible_to

logger = logging.getLogger(__name__)


async def _ensure_video_visible(video_id: int, user_id: int, db: AsyncSession) -> None:
    """404 unless the video exists and is public or assigned to user_id."""
    result = await db.execute(select(Video.id).where(Video.id == video_id, visible_to(user_id)))
    if result.scalar_one_or_none() is None:
        raise HTTPException(status_code=404, detail="Video not found")


def _entry_payload(entry_id: int, video: Video, **extra: Any) -> Dict[str, Any]:
    payload = {"id": entry_id, "video_id": video.id, "video": serialize_video(video)}
    payload.update({key: value.isoformat() if hasattr(value, "isoformat") else value for key, value in extra.items()})
    return payload


# ---------------------------------------------------------------------------
# Watch history
# ---------------------------------------------------------------------------

async def list_watch_history_service(*, user_id: int, limit: int, offset: int, db: AsyncSession) -> Dict[str, Any]:
    result = await db.execute(
        select(WatchHistory, Video)
        .join(Video, WatchHistory.video_id == Video.id)
        .where(WatchHistory.user_id == user_id)
        .order_by(WatchHistory.watched_at.desc(), WatchHistory.id.desc())
        .limit(limit)
        .offset(offset)
    )
    return {
        "watchHistory": [
            _entry_payload(entry.id, video, progress=entry.progress, watched_at=entry.watched_at)
            for entry, video in result.all()
        ]
    }


async def record_watch_service(*, user_id: int, video_id: int, progress: int, db: AsyncSession) -> Dict[str, Any]:
    """Insert or refresh the user's watch position for a video."""
    await _ensure_video_visible(video_id, user_id, db)
    await db.execute(
        upsert(
            db,
            WatchHistory,
            {"user_id": user_id, "video_id": video_id, "progress": progress, "watched_at": func.now()},
            ("user_id", "video_id"),
            {"progress": progress, "watched_at": func.now()},
        )
    )
    await db.commit()

    result = await db.execute(
        select(WatchHistory).where(WatchHistory.user_id == user_id, WatchHistory.video_id == video_id)
    )
    entry = result.scalar_one()
    return {
        "watchEntry": {
            "id": entry.id,
            "user_id": entry.user_id,
            "video_id": entry.video_id,
            "progress": entry.progress,
            "watched_at": entry.watched_at.isoformat() if entry.watched_at else None,
        }
    }


# ---------------------------------------------------------------------------
# Watch later
# ---------------------------------------------------------------------------

async def list_watch_later_service(*, user_id: int, db: AsyncSession) -> Dict[str, Any]:
    result = await db.execute(
        select(WatchLater, Video)
        .join(Video, WatchLater.video_id == Video.id)
        .where(WatchLater.user_id == user_id)
        .order_by(WatchLater.added_at.desc(), WatchLater.id.desc())
    )
    return {
        "watchLaterVideos": [
            _entry_payload(entry.id, video, added_at=entry.added_at) for entry, video in result.all()
        ]
    }


async def add_watch_later_service(*, user_id: int, video_id: int, db: AsyncSession) -> Dict[str, Any]:
    await _ensure_video_visible(video_id, user_id, db)
    result = await db.execute(
        insert_ignoring_conflicts(db, WatchLater, [{"user_id": user_id, "video_id": video_id}], ("user_id", "video_id"))
    )
    await db.commit()
    if result.rowcount == 0:
        return {"message": "Video already in watch later"}
    return {"message": "Video added to watch later"}


async def remove_watch_later_service(*, user_id: int, video_id: int, db: AsyncSession) -> Dict[str, Any]:
    await db.execute(delete(WatchLater).where(WatchLater.user_id == user_id, WatchLater.video_id == video_id))
    await db.commit()
    return {"message": "Video removed from watch later"}


# ---------------------------------------------------------------------------
# Saved videos
# ---------------------------------------------------------------------------

async def list_saved_videos_service(*, user_id: int, limit: int, offset: int, db: AsyncSession) -> Dict[str, Any]:
    result = await db.execute(
        select(SavedVideo, Video)
        .join(Video, SavedVideo.video_id == Video.id)
        .where(SavedVideo.user_id == user_id)
        .order_by(SavedVideo.saved_at.desc(), SavedVideo.id.desc())
        .limit(limit)
        .offset(offset)
    )
    return {
        "savedVideos": [
            _entry_payload(entry.id, video, saved_at=entry.saved_at) for entry, video in result.all()
        ]
    }


async def save_video_service(*, user_id: int, video_id: int, db: AsyncSession) -> Dict[str, Any]:
    await _ensure_video_visible(video_id, user_id, db)
    result = await db.execute(
        insert_ignoring_conflicts(db, SavedVideo, [{"user_id": user_id, "video_id": video_id}], ("user_id", "video_id"))
    )
    await db.commit()
    return {"success": True, "created": result.rowcount > 0}


async def unsave_video_service(*, user_id: int, video_id: int, db: AsyncSession) -> Dict[str, Any]:
    await db.execute(delete(SavedVideo).where(SavedVideo.user_id == user_id, SavedVideo.video_id == video_id))
    await db.commit()
    return {"success": True}


# ---------------------------------------------------------------------------
# Search history
# ---------------------------------------------------------------------------

async def list_search_history_service(*, user_id: int, limit: int, db: AsyncSession) -> Dict[str, Any]:
    last_searched = func.max(SearchHistory.searched_at).label("last_searched")
    result = await db.execute(
        select(SearchHistory.query, last_searched)
        .where(SearchHistory.user_id == user_id)
        .group_by(SearchHistory.query)
        .order_by(last_searched.desc(), func.max(SearchHistory.id).desc())
        .limit(limit)
    )
    return {
        "searchHistory": [
            {
                "query": query,
                "last_searched": searched.isoformat() if hasattr(searched, "isoformat") else searched,
            }
            for query, searched in result.all()
        ]
    }


async def record_search_service(*, user_id: int, query: str, db: AsyncSession) -> None:
    db.add(SearchHistory(user_id=user_id, query=query))
    await db.commit()
