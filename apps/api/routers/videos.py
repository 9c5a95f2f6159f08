"""
Video catalog router: ingestion, listing, patching, likes and deletion.
"""

from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from database import get_db
from routers.auth_scope import AuthContext, ensure_user_scope, get_auth_context, get_optional_auth_context
from routers.rate_limit import rate_limit
from services.videos import (
    create_video_service,
    delete_video_service,
    extract_thumbnail_service,
    get_video_service,
    like_video_service,
    list_videos_service,
    update_video_service,
)

router = APIRouter()


# ==================== Pydantic Models ====================

class CreateVideoRequest(BaseModel):
    """Ingest a video from an external URL. `youtube_url` is accepted as an alias of `video_url`."""
    video_url: Optional[str] = None
    youtube_url: Optional[str] = None
    video_type: Optional[Literal["long", "short"]] = None
    category: Optional[str] = Field(default=None, max_length=100)
    duration: Optional[int] = Field(default=None, ge=0)
    assigned_user_ids: List[int] = Field(default_factory=list)


class UpdateVideoRequest(BaseModel):
    """Partial update; only these fields are mutable and anything else is rejected."""
    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = Field(default=None, min_length=1, max_length=500)
    description: Optional[str] = None
    video_url: Optional[str] = Field(default=None, min_length=1)
    thumbnail_url: Optional[str] = None
    youtube_url: Optional[str] = None
    duration: Optional[int] = Field(default=None, ge=0)
    likes_count: Optional[int] = Field(default=None, ge=0)

    @field_validator("title", "video_url")
    @classmethod
    def _not_null(cls, value: Optional[str]) -> str:
        if value is None:
            raise ValueError("field cannot be null")
        return value


class ExtractThumbnailRequest(BaseModel):
    url: Optional[str] = None


# ==================== Endpoints ====================

@router.get("")
async def list_videos(
    video_type: Optional[Literal["long", "short"]] = Query(default=None, alias="type"),
    category: Optional[str] = None,
    userId: Optional[int] = None,
    user_id: Optional[int] = None,
    limit: int = Query(default=10, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    auth: Optional[AuthContext] = Depends(get_optional_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """
    List videos visible to the caller, newest first.

    Authenticated callers see public videos plus those assigned to them;
    anonymous callers see public videos only.
    """
    requested_user_id = userId if userId is not None else user_id
    if auth is None and requested_user_id is not None:
        raise HTTPException(status_code=401, detail="Missing Bearer session token.")
    scoped_user_id = ensure_user_scope(auth.user_id, requested_user_id) if auth else None
    return await list_videos_service(
        user_id=scoped_user_id,
        video_type=video_type,
        category=category,
        limit=limit,
        offset=offset,
        db=db,
    )


@router.post("")
async def create_video(
    request: CreateVideoRequest,
    _rate_limit: None = Depends(
        rate_limit("video_create", limit=settings.VIDEO_CREATE_RATE_LIMIT_PER_HOUR, window_seconds=3600)
    ),
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """Resolve, enrich and persist a video, optionally restricting it to users."""
    return await create_video_service(
        video_url=request.video_url,
        youtube_url=request.youtube_url,
        video_type=request.video_type,
        category=request.category,
        duration=request.duration,
        assigned_user_ids=request.assigned_user_ids,
        db=db,
    )


@router.post("/extract-thumbnail")
async def extract_thumbnail(
    request: ExtractThumbnailRequest,
    _rate_limit: None = Depends(rate_limit("thumbnail_extract", limit=300, window_seconds=3600)),
    auth: AuthContext = Depends(get_auth_context),
):
    """Preview the identifier and best thumbnail for a URL without saving anything."""
    return await extract_thumbnail_service(url=request.url)


@router.get("/{video_id}")
async def get_video(video_id: int, db: AsyncSession = Depends(get_db)):
    return await get_video_service(video_id=video_id, db=db)


@router.api_route("/{video_id}", methods=["PATCH", "PUT"])
async def update_video(
    video_id: int,
    request: UpdateVideoRequest,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    return await update_video_service(
        video_id=video_id,
        changes=request.model_dump(exclude_unset=True),
        db=db,
    )


@router.delete("/{video_id}")
async def delete_video(
    video_id: int,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """Delete a video and everything that references it."""
    return await delete_video_service(video_id=video_id, db=db)


@router.post("/{video_id}/like")
async def like_video(
    video_id: int,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    return await like_video_service(video_id=video_id, db=db)
