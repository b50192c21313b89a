from __future__ import annotations

from typing import List, Sequence

from ..domain.errors import NotFoundError
from ..domain.repositories import IdentityRepository, TagRepository
from ..models import Livestream
from ..schemas import LivestreamRead, TagRead, UserRead


class LivestreamComposer:
    """
    Builds the livestream read model (owner identity + ordered tags).

    compose_many() issues one identity lookup and one tag lookup for the whole batch
    and must produce exactly what compose() produces for each record on its own,
    including raising NotFoundError when an owner is missing.
    """

    def __init__(self, identity_repo: IdentityRepository, tag_repo: TagRepository) -> None:
        self.identity_repo = identity_repo
        self.tag_repo = tag_repo

    async def compose(self, livestream: Livestream) -> LivestreamRead:
        owner = await self.identity_repo.get_user(livestream.user_id)
        if owner is None:
            raise _owner_not_found(livestream)
        tags = await self.tag_repo.list_for_livestream(livestream.id)
        return LivestreamRead.from_db(livestream=livestream, owner=owner, tags=tags)

    async def compose_many(self, livestreams: Sequence[Livestream]) -> List[LivestreamRead]:
        if not livestreams:
            return []

        owner_ids = list(dict.fromkeys(ls.user_id for ls in livestreams))
        livestream_ids = list(dict.fromkeys(ls.id for ls in livestreams))
        owners: dict[int, UserRead] = await self.identity_repo.get_users(owner_ids)
        tags_by_livestream: dict[int, list[TagRead]] = await self.tag_repo.list_for_livestreams(livestream_ids)

        items: List[LivestreamRead] = []
        for livestream in livestreams:
            owner = owners.get(livestream.user_id)
            if owner is None:
                raise _owner_not_found(livestream)
            items.append(
                LivestreamRead.from_db(
                    livestream=livestream,
                    owner=owner,
                    tags=tags_by_livestream.get(livestream.id, []),
                )
            )
        return items


def _owner_not_found(livestream: Livestream) -> NotFoundError:
    return NotFoundError(
        "owner not found",
        detail={"livestream_id": livestream.id, "user_id": livestream.user_id},
    )
