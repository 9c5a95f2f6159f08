"""User directory router."""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from routers.auth_scope import AuthContext, ensure_user_scope, get_auth_context
from services.users import (
    create_user_service,
    delete_user_service,
    get_user_service,
    list_users_service,
    update_user_service,
)

router = APIRouter()


class UserRequest(BaseModel):
    name: Optional[str] = None
    avatar_url: Optional[str] = None


@router.get("")
async def list_users(
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    return await list_users_service(db=db)


@router.post("")
async def create_user(
    request: UserRequest,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    return await create_user_service(name=request.name, avatar_url=request.avatar_url, db=db)


@router.get("/{user_id}")
async def get_user(
    user_id: int,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    return await get_user_service(user_id=user_id, db=db)


@router.put("/{user_id}")
async def update_user(
    user_id: int,
    request: UserRequest,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """Update the caller's own profile."""
    scoped_user_id = ensure_user_scope(auth.user_id, user_id)
    return await update_user_service(
        user_id=scoped_user_id,
        name=request.name,
        avatar_url=request.avatar_url,
        db=db,
    )


@router.delete("/{user_id}")
async def delete_user(
    user_id: int,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """Delete the caller's own account along with their library."""
    scoped_user_id = ensure_user_scope(auth.user_id, user_id)
    return await delete_user_service(user_id=scoped_user_id, db=db)
