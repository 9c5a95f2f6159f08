"""
Per-user library router mounted under /users/{user_id}.

Every route is scoped to the authenticated caller.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from routers.auth_scope import AuthContext, ensure_user_scope, get_auth_context
from services.library import (
    add_watch_later_service,
    list_saved_videos_service,
    list_search_history_service,
    list_watch_history_service,
    list_watch_later_service,
    record_watch_service,
    remove_watch_later_service,
    save_video_service,
    unsave_video_service,
)

router = APIRouter()


# ==================== Pydantic Models ====================

class WatchHistoryRequest(BaseModel):
    video_id: Optional[int] = None
    progress: int = Field(default=0, ge=0)


class WatchLaterRequest(BaseModel):
    videoId: Optional[int] = None


class SaveVideoRequest(BaseModel):
    video_id: Optional[int] = None


def _require_video_id(video_id: Optional[int]) -> int:
    if video_id is None:
        raise HTTPException(status_code=400, detail="Video ID is required")
    return video_id


# ==================== Watch history ====================

@router.get("/{user_id}/watch-history")
async def get_watch_history(
    user_id: int,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    scoped_user_id = ensure_user_scope(auth.user_id, user_id)
    return await list_watch_history_service(user_id=scoped_user_id, limit=limit, offset=offset, db=db)


@router.post("/{user_id}/watch-history")
async def add_watch_history(
    user_id: int,
    request: WatchHistoryRequest,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    scoped_user_id = ensure_user_scope(auth.user_id, user_id)
    return await record_watch_service(
        user_id=scoped_user_id,
        video_id=_require_video_id(request.video_id),
        progress=request.progress,
        db=db,
    )


# ==================== Watch later ====================

@router.get("/{user_id}/watch-later")
async def get_watch_later(
    user_id: int,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    scoped_user_id = ensure_user_scope(auth.user_id, user_id)
    return await list_watch_later_service(user_id=scoped_user_id, db=db)


@router.post("/{user_id}/watch-later")
async def add_watch_later(
    user_id: int,
    request: WatchLaterRequest,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    scoped_user_id = ensure_user_scope(auth.user_id, user_id)
    return await add_watch_later_service(
        user_id=scoped_user_id,
        video_id=_require_video_id(request.videoId),
        db=db,
    )


@router.delete("/{user_id}/watch-later")
async def remove_watch_later(
    user_id: int,
    request: WatchLaterRequest,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    scoped_user_id = ensure_user_scope(auth.user_id, user_id)
    return await remove_watch_later_service(
        user_id=scoped_user_id,
        video_id=_require_video_id(request.videoId),
        db=db,
    )


# ==================== Saved videos ====================

@router.get("/{user_id}/saved-videos")
async def get_saved_videos(
    user_id: int,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    scoped_user_id = ensure_user_scope(auth.user_id, user_id)
    return await list_saved_videos_service(user_id=scoped_user_id, limit=limit, offset=offset, db=db)


@router.post("/{user_id}/saved-videos")
async def save_video(
    user_id: int,
    request: SaveVideoRequest,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    scoped_user_id = ensure_user_scope(auth.user_id, user_id)
    return await save_video_service(
        user_id=scoped_user_id,
        video_id=_require_video_id(request.video_id),
        db=db,
    )


@router.delete("/{user_id}/saved-videos")
async def unsave_video(
    user_id: int,
    video_id: Optional[int] = None,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    scoped_user_id = ensure_user_scope(auth.user_id, user_id)
    return await unsave_video_service(user_id=scoped_user_id, video_id=_require_video_id(video_id), db=db)


# ==================== Search history ====================

@router.get("/{user_id}/search-history")
async def get_search_history(
    user_id: int,
    limit: int = Query(default=20, ge=1, le=100),
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    scoped_user_id = ensure_user_scope(auth.user_id, user_id)
    return await list_search_history_service(user_id=scoped_user_id, limit=limit, db=db)
