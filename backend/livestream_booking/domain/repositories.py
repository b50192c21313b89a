from __future__ import annotations

from typing import Iterable, Protocol, Sequence

from ..models import Livestream, ReservationSlot
from ..schemas import TagRead, UserRead


class SlotRepository(Protocol):
    async def list_for_update(self, start_at: int, end_at: int) -> list[ReservationSlot]: ...

    async def decrement(self, slot_ids: Sequence[int]) -> None: ...

    async def list_in_range(self, start_at: int, end_at: int) -> list[ReservationSlot]: ...

    async def create_many(self, buckets: Iterable[tuple[int, int]], *, capacity: int) -> int: ...


class LivestreamRepository(Protocol):
    async def create(
        self,
        *,
        user_id: int,
        title: str,
        description: str,
        playlist_url: str,
        thumbnail_url: str,
        start_at: int,
        end_at: int,
    ) -> Livestream: ...

    async def add_tags(self, livestream_id: int, tag_ids: Sequence[int]) -> None: ...

    async def get(self, livestream_id: int) -> Livestream | None: ...

    async def list_all(self, limit: int | None = None) -> list[Livestream]: ...

    async def list_by_tag_name(self, tag_name: str, limit: int | None = None) -> list[Livestream]: ...

    async def list_by_owner(self, user_id: int) -> list[Livestream]: ...


class IdentityRepository(Protocol):
    async def get_user(self, user_id: int) -> UserRead | None: ...

    async def get_users(self, user_ids: Sequence[int]) -> dict[int, UserRead]: ...

    async def get_user_by_name(self, name: str) -> UserRead | None: ...


class TagRepository(Protocol):
    async def resolve_tag_names(self, tag_ids: Sequence[int]) -> dict[int, str]: ...

    async def list_for_livestream(self, livestream_id: int) -> list[TagRead]: ...

    async def list_for_livestreams(self, livestream_ids: Sequence[int]) -> dict[int, list[TagRead]]: ...
