"""Catalog search router."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from routers.auth_scope import AuthContext, get_auth_context, get_optional_auth_context
from services.search import save_search_service, search_videos_service

router = APIRouter()


class SaveSearchRequest(BaseModel):
    query: Optional[str] = None


@router.get("")
async def search_videos(
    q: str = "",
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    auth: Optional[AuthContext] = Depends(get_optional_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """Search visible videos; authenticated searches are added to the caller's history."""
    return await search_videos_service(
        query=q,
        user_id=auth.user_id if auth else None,
        limit=limit,
        offset=offset,
        db=db,
    )


@router.post("/history")
async def save_search(
    request: SaveSearchRequest,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    return await save_search_service(user_id=auth.user_id, query=request.query, db=db)
