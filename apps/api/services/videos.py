"""Video ingestion, catalog listing, patching and cascade deletion services."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from fastapi import HTTPException
from sqlalchemy import delete, exists, func, or_, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from config import settings
from ingestion.youtube import (
    build_embed_url,
    extract_video_id,
    is_shorts_url,
    negotiate_thumbnail,
    scrape_video_metadata,
)
from models.saved_video import SavedVideo
from models.video import Video
from models.video_assignment import VideoAssignment
from models.watch_history import WatchHistory
from models.watch_later import WatchLater
from services.persistence import insert_ignoring_conflicts

logger = logging.getLogger(__name__)

# Rows that reference a video; all go before the video itself.
VIDEO_DEPENDENT_MODELS = (WatchHistory, WatchLater, SavedVideo, VideoAssignment)


def _normalize_text(value: Any) -> str:
    return str(value or "").strip()


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def serialize_video(video: Video, is_saved: Optional[bool] = None) -> Dict[str, Any]:
    external_id = extract_video_id(video.youtube_url or video.video_url or "")
    payload: Dict[str, Any] = {
        "id": video.id,
        "title": video.title,
        "description": video.description,
        "video_url": video.video_url,
        "youtube_url": video.youtube_url,
        "embed_url": build_embed_url(external_id, video.video_type) if external_id else None,
        "thumbnail_url": video.thumbnail_url,
        "duration": video.duration,
        "video_type": video.video_type,
        "category": video.category,
        "channel_name": video.channel_name,
        "view_count": int(video.view_count or 0),
        "likes_count": int(video.likes_count or 0),
        "created_at": _isoformat(video.created_at),
        "updated_at": _isoformat(video.updated_at),
    }
    if is_saved is not None:
        payload["isSaved"] = is_saved
    return payload


def visible_to(user_id: Optional[int]):
    """Public videos (no assignment rows) plus, for a known user, videos assigned to them."""
    public = ~exists().where(VideoAssignment.video_id == Video.id)
    if user_id is None:
        return public
    assigned = exists().where(VideoAssignment.video_id == Video.id, VideoAssignment.user_id == user_id)
    return or_(public, assigned)


def _default_duration(video_type: str) -> int:
    if video_type == "short":
        return settings.SHORT_VIDEO_DEFAULT_DURATION
    return settings.LONG_VIDEO_DEFAULT_DURATION


async def _get_video_or_404(video_id: int, db: AsyncSession) -> Video:
    result = await db.execute(select(Video).where(Video.id == video_id))
    video = result.scalar_one_or_none()
    if not video:
        raise HTTPException(status_code=404, detail="Video not found")
    return video


async def create_video_service(
    *,
    video_url: Optional[str],
    youtube_url: Optional[str],
    video_type: Optional[str],
    category: Optional[str],
    duration: Optional[int],
    assigned_user_ids: Sequence[int],
    db: AsyncSession,
) -> Dict[str, Any]:
    """
    Ingest a video from an external URL.

    Validation and URL resolution are hard failures (400). Thumbnail
    negotiation and scraping degrade to defaults. The video row and its
    assignment rows are committed together or not at all.
    """
    final_url = _normalize_text(video_url) or _normalize_text(youtube_url)
    if not final_url:
        raise HTTPException(status_code=400, detail="Video URL is required")

    external_id = extract_video_id(final_url)
    if not external_id:
        raise HTTPException(status_code=400, detail="Invalid YouTube URL")

    resolved_type = video_type or ("short" if is_shorts_url(final_url) else "long")
    thumbnail_url = await negotiate_thumbnail(external_id)
    scraped = await scrape_video_metadata(final_url, external_id, thumbnail_url)

    video = Video(
        title=scraped.title,
        description=scraped.description,
        video_url=final_url,
        youtube_url=_normalize_text(youtube_url) or final_url,
        thumbnail_url=scraped.thumbnail_url,
        duration=duration if duration is not None else _default_duration(resolved_type),
        video_type=resolved_type,
        category=_normalize_text(category) or None,
        channel_name=scraped.channel_name,
        view_count=0,
        likes_count=0,
    )
    target_user_ids = list(dict.fromkeys(assigned_user_ids or []))
    try:
        db.add(video)
        await db.flush()
        if target_user_ids:
            rows = [{"video_id": video.id, "user_id": user_id} for user_id in target_user_ids]
            await db.execute(insert_ignoring_conflicts(db, VideoAssignment, rows, ("video_id", "user_id")))
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Failed to persist video url=%s: %s", final_url, exc)
        raise HTTPException(status_code=500, detail="Failed to create video") from exc

    await db.refresh(video)
    logger.info(
        "video_created id=%s external_id=%s type=%s assigned=%s",
        video.id,
        external_id,
        resolved_type,
        len(target_user_ids),
    )
    return {
        "success": True,
        "video": serialize_video(video),
        "scrapedData": scraped.to_dict(),
    }


async def list_videos_service(
    *,
    user_id: Optional[int],
    video_type: Optional[str],
    category: Optional[str],
    limit: int,
    offset: int,
    db: AsyncSession,
) -> Dict[str, Any]:
    query = select(Video).where(visible_to(user_id))
    if video_type:
        query = query.where(Video.video_type == video_type)
    if category:
        query = query.where(func.lower(Video.category) == category.lower())
    query = query.order_by(Video.created_at.desc(), Video.id.desc()).limit(limit).offset(offset)

    try:
        videos: List[Video] = list((await db.execute(query)).scalars().all())
    except SQLAlchemyError as exc:
        logger.exception("Failed to list videos: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to fetch videos") from exc

    saved_ids: set = set()
    if user_id is not None and videos:
        try:
            saved = await db.execute(
                select(SavedVideo.video_id).where(
                    SavedVideo.user_id == user_id,
                    SavedVideo.video_id.in_([video.id for video in videos]),
                )
            )
            saved_ids = set(saved.scalars().all())
        except SQLAlchemyError as exc:
            logger.warning("Saved flags unavailable for user=%s: %s", user_id, exc)

    return {
        "success": True,
        "videos": [serialize_video(video, is_saved=video.id in saved_ids) for video in videos],
        "pagination": {
            "limit": limit,
            "offset": offset,
            "hasMore": len(videos) == limit,
        },
    }


async def get_video_service(*, video_id: int, db: AsyncSession) -> Dict[str, Any]:
    video = await _get_video_or_404(video_id, db)
    return {"success": True, "video": serialize_video(video)}


async def update_video_service(*, video_id: int, changes: Dict[str, Any], db: AsyncSession) -> Dict[str, Any]:
    """Apply a partial update; `changes` only carries fields the caller set."""
    if not changes:
        raise HTTPException(status_code=400, detail="No valid fields to update")

    video = await _get_video_or_404(video_id, db)
    for field, value in changes.items():
        setattr(video, field, value)
    video.updated_at = func.now()
    try:
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Failed to update video %s: %s", video_id, exc)
        raise HTTPException(status_code=500, detail="Failed to update video") from exc
    await db.refresh(video)
    return {"success": True, "video": serialize_video(video)}


async def like_video_service(*, video_id: int, db: AsyncSession) -> Dict[str, Any]:
    result = await db.execute(
        update(Video)
        .where(Video.id == video_id)
        .values(likes_count=Video.likes_count + 1, updated_at=func.now())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        await db.rollback()
        raise HTTPException(status_code=404, detail="Video not found")
    await db.commit()

    likes = await db.execute(select(Video.likes_count).where(Video.id == video_id))
    return {"success": True, "likes_count": int(likes.scalar_one() or 0)}


async def delete_video_service(*, video_id: int, db: AsyncSession) -> Dict[str, Any]:
    """
    Delete a video and every row referencing it in one transaction.

    Either history, watch-later, saved and assignment rows and the video are
    all gone afterwards, or nothing changed.
    """
    video = await _get_video_or_404(video_id, db)
    deleted = serialize_video(video)

    try:
        for model in VIDEO_DEPENDENT_MODELS:
            await db.execute(delete(model).where(model.video_id == video_id))
        result = await db.execute(
            delete(Video).where(Video.id == video_id).execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await db.rollback()
            raise HTTPException(status_code=404, detail="Video not found")
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Failed to delete video %s: %s", video_id, exc)
        raise HTTPException(status_code=500, detail="Failed to delete video") from exc

    logger.info("video_deleted id=%s", video_id)
    return {
        "success": True,
        "message": "Video deleted successfully from all locations",
        "video": deleted,
    }


async def extract_thumbnail_service(*, url: Optional[str]) -> Dict[str, Any]:
    """Resolve a URL and negotiate its thumbnail without persisting anything."""
    source_url = _normalize_text(url)
    if not source_url:
        raise HTTPException(status_code=400, detail="URL is required")

    external_id = extract_video_id(source_url)
    thumbnail_url = await negotiate_thumbnail(external_id) if external_id else None
    return {
        "success": bool(external_id),
        "videoId": external_id,
        "thumbnailUrl": thumbnail_url,
    }
