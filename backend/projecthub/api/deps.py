"""FastAPI dependencies: current user from the session cookie, admin check, cookie helpers."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, Response
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from projecthub.config import settings
from projecthub.core.auth import decode_token
from projecthub.db.session import get_db
from projecthub.models.enums import UserRole
from projecthub.models.user import User


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        settings.session_cookie_name,
        token,
        max_age=settings.access_token_expire_minutes * 60,
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        settings.session_cookie_name,
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
    )


def read_session_user_id(request: Request) -> int | None:
    """User id from the session cookie, or None when the cookie is absent or invalid."""
    token = request.cookies.get(settings.session_cookie_name)
    if not token:
        return None
    try:
        payload = decode_token(token)
    except JWTError:
        return None
    try:
        return int(payload.get("sub") or "")
    except ValueError:
        return None


async def get_current_user(
    request: Request,
    session: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    if not request.cookies.get(settings.session_cookie_name):
        raise HTTPException(status_code=401, detail="Not authenticated")
    user_id = read_session_user_id(request)
    if user_id is None:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    r = await session.execute(select(User).where(User.id == user_id))
    user = r.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    return user


async def get_company_user(
    user: Annotated[User, Depends(get_current_user)],
) -> User:
    """Session user that belongs to a company. Raises 404 otherwise."""
    if not user.company_id:
        raise HTTPException(status_code=404, detail="User does not belong to a company")
    return user


async def require_admin(
    user: Annotated[User, Depends(get_company_user)],
) -> User:
    if user.role != UserRole.ADMIN:
        raise HTTPException(status_code=403, detail="Admin role required")
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]
CompanyUser = Annotated[User, Depends(get_company_user)]
AdminUser = Annotated[User, Depends(require_admin)]
DbSession = Annotated[AsyncSession, Depends(get_db)]
