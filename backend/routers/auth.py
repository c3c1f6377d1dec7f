# routers/auth.py — Authentication endpoints with token revocation
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from auth import (
    AuthService, UserRegister, UserLogin, PasswordChange, TokenResponse, RefreshRequest,
    ACCESS_TOKEN_EXPIRE_MINUTES, get_current_user, CurrentUser,
)
from database import get_db_session
from models import User
from schemas import UserOut, user_to_out

logger = logging.getLogger("taskboard.auth")

router = APIRouter(prefix="/api/v1/auth", tags=["Authentication"])


def _build_token_response(user_obj: User) -> TokenResponse:
    """Build token response from a user ORM instance"""
    token_data = {"sub": user_obj.id, "email": user_obj.email}
    return TokenResponse(
        access_token=AuthService.create_access_token(token_data),
        refresh_token=AuthService.create_refresh_token(token_data),
        expires_in=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        user=user_to_out(user_obj).model_dump(by_alias=True),
    )


@router.post("/register", response_model=TokenResponse)
async def register(
    user_data: UserRegister,
    db: AsyncSession = Depends(get_db_session),
):
    """Register a new user account"""
    user = await AuthService.register_user(user_data, db)
    return _build_token_response(user)


@router.post("/login", response_model=TokenResponse)
async def login(
    credentials: UserLogin,
    db: AsyncSession = Depends(get_db_session),
):
    """Authenticate and receive tokens"""
    user = await AuthService.authenticate_user(credentials.email, credentials.password, db)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    logger.info(f"User {user.id} logged in")
    return _build_token_response(user)


@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(
    refresh_req: RefreshRequest,
    db: AsyncSession = Depends(get_db_session),
):
    """Refresh access token using a refresh token"""
    payload = AuthService.verify_token(refresh_req.refresh_token)

    if payload.get("type") != "refresh":
        raise HTTPException(status_code=401, detail="Invalid token type. Expected refresh token.")

    jti = payload.get("jti")
    if jti and await AuthService.is_token_revoked(jti, db):
        raise HTTPException(status_code=401, detail="Refresh token has been revoked")

    result = await db.execute(select(User).where(User.id == payload.get("sub")))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=401, detail="User not found")

    return _build_token_response(user)


@router.post("/logout")
async def logout(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Logout and revoke the current access token"""
    if user.token_jti:
        expires_at = (
            datetime.fromtimestamp(user.token_exp, tz=timezone.utc)
            if user.token_exp else datetime.now(timezone.utc)
        )
        await AuthService.revoke_token(user.token_jti, user.id, expires_at, db)
    return {"status": "logged_out", "message": "Session terminated"}


@router.get("/me", response_model=UserOut)
async def get_current_user_info(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Get current authenticated user information"""
    user_obj = await db.get(User, user.id)
    return user_to_out(user_obj)


@router.post("/change-password")
async def change_password(
    password_data: PasswordChange,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Change current user's password"""
    user_obj = await db.get(User, user.id)
    if not user_obj:
        raise HTTPException(status_code=404, detail="User not found")

    if not AuthService.verify_password(password_data.current_password, user_obj.password_hash):
        raise HTTPException(status_code=401, detail="Current password is incorrect")

    user_obj.password_hash = AuthService.hash_password(password_data.new_password)
    await db.commit()
    return {"status": "password_changed", "message": "Password updated successfully"}
