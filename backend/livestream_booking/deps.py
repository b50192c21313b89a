from typing import AsyncIterator

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .config import Settings
from .domain.identity import Identity
from .models import User
from .utils.auth import InvalidSessionError, verify_session_token

_UNAUTHENTICATED_HEADERS = {"WWW-Authenticate": "Bearer"}


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    # Closing the session rolls back anything left open, e.g. on client disconnect.
    async with request.app.state.sessionmaker() as session:
        yield session


def _unauthenticated(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers=_UNAUTHENTICATED_HEADERS,
    )


async def get_current_identity(
    authorization: str | None = Header(default=None),
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_app_settings),
) -> Identity:
    if authorization is None:
        raise _unauthenticated("not logged in")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise _unauthenticated("bearer token required")
    try:
        claims = verify_session_token(token, secret=settings.auth_secret, algorithms=[settings.auth_algorithm])
    except InvalidSessionError as exc:
        raise _unauthenticated("invalid session") from exc

    try:
        name = await session.scalar(select(User.name).where(User.id == claims.user_id))
    except SQLAlchemyError as exc:
        await session.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="failed to verify session") from exc
    # End the implicit transaction so handlers can open their own.
    await session.rollback()
    if name is None:
        raise _unauthenticated("session user not found")
    if name != claims.name:
        raise _unauthenticated("session does not match user")
    return claims.identity()
