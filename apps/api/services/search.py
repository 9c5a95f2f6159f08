"""Catalog search service."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import HTTPException
from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from models.video import Video
from services.library import record_search_service
from services.videos import serialize_video, visible_to

logger = logging.getLogger(__name__)


async def search_videos_service(
    *,
    query: str,
    user_id: Optional[int],
    limit: int,
    offset: int,
    db: AsyncSession,
) -> Dict[str, Any]:
    """Case-insensitive substring search over title, description and category, most viewed first."""
    text = (query or "").strip()
    if not text:
        return {"videos": [], "query": ""}

    needle = text.lower()
    try:
        result = await db.execute(
            select(Video)
            .where(
                visible_to(user_id),
                or_(
                    func.lower(Video.title).contains(needle, autoescape=True),
                    func.lower(Video.description).contains(needle, autoescape=True),
                    func.lower(Video.category).contains(needle, autoescape=True),
                ),
            )
            .order_by(Video.view_count.desc(), Video.id.desc())
            .limit(limit)
            .offset(offset)
        )
        videos = [serialize_video(video) for video in result.scalars().all()]
    except SQLAlchemyError as exc:
        logger.exception("Search failed for query=%r: %s", text, exc)
        raise HTTPException(status_code=500, detail="Failed to search videos") from exc

    if user_id is not None:
        try:
            await record_search_service(user_id=user_id, query=text, db=db)
        except SQLAlchemyError as exc:
            await db.rollback()
            logger.warning("Search history write skipped for user=%s: %s", user_id, exc)

    return {"videos": videos, "query": text}


async def save_search_service(*, user_id: int, query: Optional[str], db: AsyncSession) -> Dict[str, Any]:
    text = (query or "").strip()
    if not text:
        raise HTTPException(status_code=400, detail="Query is required")
    await record_search_service(user_id=user_id, query=text, db=db)
    return {"success": True}
