import logging
from typing import List

from ..domain.errors import NotFoundError, ValidationError
from ..domain.identity import Identity
from ..domain.repositories import IdentityRepository, LivestreamRepository, SlotRepository, TagRepository
from ..domain.services import ReservationTerm, validate_time_window
from ..schemas import LivestreamRead, ReserveLivestreamRequest
from . import slots as slot_usecase
from .compose import LivestreamComposer

logger = logging.getLogger(__name__)


async def reserve_livestream(
    slot_repo: SlotRepository,
    livestream_repo: LivestreamRepository,
    tag_repo: TagRepository,
    composer: LivestreamComposer,
    *,
    term: ReservationTerm,
    identity: Identity,
    request: ReserveLivestreamRequest,
    allow_uncovered: bool = False,
) -> LivestreamRead:
    """
    Book slot capacity and create the livestream with its tags.

    The caller owns the transaction: any exception raised here must roll back
    the slot decrements and inserts together.
    """
    validate_time_window(term, start_at=request.start_at, end_at=request.end_at)

    if request.tags:
        known = await tag_repo.resolve_tag_names(request.tags)
        unknown = [tag_id for tag_id in dict.fromkeys(request.tags) if tag_id not in known]
        if unknown:
            raise ValidationError(f"unknown tag ids: {unknown}", detail={"tag_ids": unknown})

    consumed = await slot_usecase.check_and_consume(
        slot_repo,
        term=term,
        start_at=request.start_at,
        end_at=request.end_at,
        allow_uncovered=allow_uncovered,
    )

    livestream = await livestream_repo.create(
        user_id=identity.user_id,
        title=request.title,
        description=request.description,
        playlist_url=request.playlist_url,
        thumbnail_url=request.thumbnail_url,
        start_at=request.start_at,
        end_at=request.end_at,
    )
    await livestream_repo.add_tags(livestream.id, request.tags)
    logger.info(
        "reserved livestream %d for user %d over %d slots",
        livestream.id,
        identity.user_id,
        len(consumed),
    )
    return await composer.compose(livestream)


async def search_livestreams(
    livestream_repo: LivestreamRepository,
    composer: LivestreamComposer,
    *,
    tag: str | None = None,
    limit: int | None = None,
) -> List[LivestreamRead]:
    if limit is not None and limit < 1:
        raise ValidationError("limit must be a positive integer")
    if tag:
        rows = await livestream_repo.list_by_tag_name(tag, limit=limit)
    else:
        rows = await livestream_repo.list_all(limit=limit)
    return await composer.compose_many(rows)


async def list_owner_livestreams(
    livestream_repo: LivestreamRepository,
    composer: LivestreamComposer,
    *,
    identity: Identity,
) -> List[LivestreamRead]:
    rows = await livestream_repo.list_by_owner(identity.user_id)
    return await composer.compose_many(rows)


async def list_user_livestreams(
    livestream_repo: LivestreamRepository,
    identity_repo: IdentityRepository,
    composer: LivestreamComposer,
    *,
    username: str,
) -> List[LivestreamRead]:
    user = await identity_repo.get_user_by_name(username)
    if user is None:
        raise NotFoundError("user not found", detail={"username": username})
    rows = await livestream_repo.list_by_owner(user.id)
    return await composer.compose_many(rows)


async def get_livestream(
    livestream_repo: LivestreamRepository,
    composer: LivestreamComposer,
    *,
    livestream_id: int,
) -> LivestreamRead:
    livestream = await livestream_repo.get(livestream_id)
    if livestream is None:
        raise NotFoundError(
            "not found livestream that has the given id",
            detail={"livestream_id": livestream_id},
        )
    return await composer.compose(livestream)
