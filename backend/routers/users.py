# routers/users.py — User directory and profile updates
from typing import Optional, List

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import EmailStr, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from auth import get_current_user, make_initials, CurrentUser
from database import get_db_session
from models import User
from schemas import ApiModel, UserOut, user_to_out

router = APIRouter(prefix="/api/v1/users", tags=["Users"])

# Avatars arrive as data: URLs from the profile dialog
MAX_AVATAR_URL_LENGTH = 2 * 1024 * 1024


class UserUpdate(ApiModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    avatar_url: Optional[str] = Field(None, max_length=MAX_AVATAR_URL_LENGTH)


@router.get("", response_model=List[UserOut])
async def list_users(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    limit: int = Query(default=200, le=1000),
    offset: int = Query(default=0, ge=0),
):
    """All users, for assignee pickers"""
    stmt = select(User).order_by(User.name, User.email).offset(offset).limit(limit)
    result = await db.execute(stmt)
    return [user_to_out(u) for u in result.scalars().all()]


@router.get("/lookup", response_model=UserOut)
async def lookup_user(
    email: EmailStr,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    result = await db.execute(select(User).where(User.email == email.lower()))
    found = result.scalar_one_or_none()
    if not found:
        raise HTTPException(status_code=404, detail="User not found")
    return user_to_out(found)


@router.put("/{user_id}", response_model=UserOut)
async def update_user(
    user_id: str,
    data: UserUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Update your own name or avatar. Passwords change through /auth/change-password."""
    if user_id != user.id:
        raise HTTPException(status_code=403, detail="Cannot update another user's profile")

    target = await db.get(User, user_id)
    if not target:
        raise HTTPException(status_code=404, detail="User not found")

    if data.name is not None:
        target.name = data.name.strip()
        target.initials = make_initials(target.name)
    if "avatar_url" in data.model_fields_set:
        target.avatar_url = data.avatar_url or None

    await db.commit()
    await db.refresh(target)
    return user_to_out(target)
