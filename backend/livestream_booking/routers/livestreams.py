from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import Settings
from ..deps import get_app_settings, get_current_identity, get_session
from ..domain.errors import DomainError
from ..domain.identity import Identity
from ..infrastructure.repositories import (
    SqlAlchemyIdentityRepository,
    SqlAlchemyLivestreamRepository,
    SqlAlchemySlotRepository,
    SqlAlchemyTagRepository,
)
from ..infrastructure.transaction import transaction
from ..schemas import LivestreamRead, ReserveLivestreamRequest
from ..usecases import livestreams as livestream_usecase
from ..usecases.compose import LivestreamComposer
from ..utils.audit_log import emit_audit_log
from .errors import http_error

router = APIRouter(prefix="/api", tags=["livestreams"])


def _composer(session: AsyncSession, settings: Settings) -> LivestreamComposer:
    identity_repo = SqlAlchemyIdentityRepository(session, fallback_icon_path=settings.fallback_icon_path)
    return LivestreamComposer(identity_repo, SqlAlchemyTagRepository(session))


@router.post("/livestream/reservation", response_model=LivestreamRead, status_code=status.HTTP_201_CREATED)
async def reserve_livestream(
    payload: ReserveLivestreamRequest,
    session: AsyncSession = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
    settings: Settings = Depends(get_app_settings),
) -> LivestreamRead:
    slot_repo = SqlAlchemySlotRepository(session)
    livestream_repo = SqlAlchemyLivestreamRepository(session)
    tag_repo = SqlAlchemyTagRepository(session)
    composer = _composer(session, settings)
    try:
        async with transaction(session):
            livestream = await livestream_usecase.reserve_livestream(
                slot_repo,
                livestream_repo,
                tag_repo,
                composer,
                term=settings.reservation_term(),
                identity=identity,
                request=payload,
                allow_uncovered=settings.allow_uncovered_ranges,
            )
    except DomainError as exc:
        raise http_error(exc) from exc

    try:
        emit_audit_log(
            action="livestream.reserved",
            livestream_id=livestream.id,
            user_id=identity.user_id,
            start_at=livestream.start_at,
            end_at=livestream.end_at,
            tag_ids=[tag.id for tag in livestream.tags],
        )
    except RuntimeError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="failed to record audit log") from exc
    return livestream


@router.get("/livestream/search", response_model=List[LivestreamRead])
async def search_livestreams(
    tag: Optional[str] = Query(default=None),
    limit: Optional[int] = Query(default=None, ge=1),
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_app_settings),
) -> list[LivestreamRead]:
    livestream_repo = SqlAlchemyLivestreamRepository(session)
    try:
        async with transaction(session):
            return await livestream_usecase.search_livestreams(
                livestream_repo,
                _composer(session, settings),
                tag=tag,
                limit=limit,
            )
    except DomainError as exc:
        raise http_error(exc) from exc


@router.get("/livestream", response_model=List[LivestreamRead])
async def list_my_livestreams(
    session: AsyncSession = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
    settings: Settings = Depends(get_app_settings),
) -> list[LivestreamRead]:
    livestream_repo = SqlAlchemyLivestreamRepository(session)
    try:
        async with transaction(session):
            return await livestream_usecase.list_owner_livestreams(
                livestream_repo,
                _composer(session, settings),
                identity=identity,
            )
    except DomainError as exc:
        raise http_error(exc) from exc


@router.get("/user/{username}/livestream", response_model=List[LivestreamRead])
async def list_user_livestreams(
    username: str,
    session: AsyncSession = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
    settings: Settings = Depends(get_app_settings),
) -> list[LivestreamRead]:
    livestream_repo = SqlAlchemyLivestreamRepository(session)
    identity_repo = SqlAlchemyIdentityRepository(session, fallback_icon_path=settings.fallback_icon_path)
    try:
        async with transaction(session):
            return await livestream_usecase.list_user_livestreams(
                livestream_repo,
                identity_repo,
                LivestreamComposer(identity_repo, SqlAlchemyTagRepository(session)),
                username=username,
            )
    except DomainError as exc:
        raise http_error(exc) from exc


@router.get("/livestream/{livestream_id}", response_model=LivestreamRead)
async def get_livestream(
    livestream_id: int = Path(..., ge=1),
    session: AsyncSession = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
    settings: Settings = Depends(get_app_settings),
) -> LivestreamRead:
    livestream_repo = SqlAlchemyLivestreamRepository(session)
    try:
        async with transaction(session):
            return await livestream_usecase.get_livestream(
                livestream_repo,
                _composer(session, settings),
                livestream_id=livestream_id,
            )
    except DomainError as exc:
        raise http_error(exc) from exc
