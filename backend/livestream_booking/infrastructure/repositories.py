from __future__ import annotations

import hashlib
from functools import lru_cache
from pathlib import Path
from typing import Any, Iterable, List, Optional, Sequence

from sqlalchemy import Select, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.repositories import IdentityRepository, LivestreamRepository, SlotRepository, TagRepository
from ..models import Icon, Livestream, LivestreamTag, ReservationSlot, Tag, Theme, User
from ..schemas import TagRead, ThemeRead, UserRead


class SqlAlchemySlotRepository(SlotRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    def _covered(self, start_at: int, end_at: int) -> Select[Any]:
        return (
            select(ReservationSlot)
            .where(ReservationSlot.start_at >= start_at, ReservationSlot.end_at <= end_at)
            .order_by(ReservationSlot.start_at, ReservationSlot.id)
        )

    async def list_for_update(self, start_at: int, end_at: int) -> List[ReservationSlot]:
        # Ordered locking keeps overlapping bookings from deadlocking each other.
        result = await self.session.scalars(self._covered(start_at, end_at).with_for_update())
        return list(result.all())

    async def decrement(self, slot_ids: Sequence[int]) -> None:
        stmt = (
            update(ReservationSlot)
            .where(ReservationSlot.id.in_(list(slot_ids)))
            .values({ReservationSlot.capacity: ReservationSlot.capacity - 1})
            .execution_options(synchronize_session="fetch")
        )
        await self.session.execute(stmt)

    async def list_in_range(self, start_at: int, end_at: int) -> List[ReservationSlot]:
        result = await self.session.scalars(self._covered(start_at, end_at))
        return list(result.all())

    async def create_many(self, buckets: Iterable[tuple[int, int]], *, capacity: int) -> int:
        slots = [ReservationSlot(capacity=capacity, start_at=start, end_at=end) for start, end in buckets]
        self.session.add_all(slots)
        await self.session.flush()
        return len(slots)


class SqlAlchemyLivestreamRepository(LivestreamRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

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
    ) -> Livestream:
        livestream = Livestream(
            user_id=user_id,
            title=title,
            description=description,
            playlist_url=playlist_url,
            thumbnail_url=thumbnail_url,
            start_at=start_at,
            end_at=end_at,
        )
        self.session.add(livestream)
        await self.session.flush()
        return livestream

    async def add_tags(self, livestream_id: int, tag_ids: Sequence[int]) -> None:
        # Flushed one by one so association ids follow request order.
        for tag_id in tag_ids:
            self.session.add(LivestreamTag(livestream_id=livestream_id, tag_id=tag_id))
            await self.session.flush()

    async def get(self, livestream_id: int) -> Optional[Livestream]:
        return await self.session.get(Livestream, livestream_id)

    async def list_all(self, limit: int | None = None) -> List[Livestream]:
        stmt = select(Livestream).order_by(Livestream.id.desc())
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.scalars(stmt)
        return list(result.all())

    async def list_by_tag_name(self, tag_name: str, limit: int | None = None) -> List[Livestream]:
        tagged = (
            select(LivestreamTag.livestream_id)
            .join(Tag, Tag.id == LivestreamTag.tag_id)
            .where(Tag.name == tag_name)
        )
        stmt = select(Livestream).where(Livestream.id.in_(tagged)).order_by(Livestream.id.desc())
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.scalars(stmt)
        return list(result.all())

    async def list_by_owner(self, user_id: int) -> List[Livestream]:
        stmt = select(Livestream).where(Livestream.user_id == user_id).order_by(Livestream.id.desc())
        result = await self.session.scalars(stmt)
        return list(result.all())


@lru_cache
def _fallback_icon_hash(path: str) -> str:
    return hashlib.sha256(Path(path).read_bytes()).hexdigest()


class SqlAlchemyIdentityRepository(IdentityRepository):
    """Owner identity with theme and icon hash, composed in one query per lookup."""

    def __init__(self, session: AsyncSession, *, fallback_icon_path: str) -> None:
        self.session = session
        self.fallback_icon_path = fallback_icon_path

    def _identity_query(self) -> Select[Any]:
        return (
            select(User, Theme, Icon.hash, Icon.image)
            .join(Theme, Theme.user_id == User.id)
            .outerjoin(Icon, Icon.user_id == User.id)
            .order_by(User.id, Icon.id)
        )

    async def _load(self, stmt: Select[Any]) -> dict[int, UserRead]:
        rows = await self.session.execute(stmt)
        users: dict[int, UserRead] = {}
        # Rows are ordered by icon id, so the newest icon wins.
        for user, theme, icon_hash, image in rows.all():
            users[user.id] = UserRead(
                id=user.id,
                name=user.name,
                display_name=user.display_name,
                description=user.description,
                theme=ThemeRead(id=theme.id, dark_mode=theme.dark_mode),
                icon_hash=self._icon_hash(icon_hash, image),
            )
        return users

    def _icon_hash(self, stored: Optional[str], image: Optional[bytes]) -> str:
        if stored:
            return stored
        if image is not None:
            return hashlib.sha256(image).hexdigest()
        return _fallback_icon_hash(self.fallback_icon_path)

    async def get_user(self, user_id: int) -> Optional[UserRead]:
        users = await self._load(self._identity_query().where(User.id == user_id))
        return users.get(user_id)

    async def get_users(self, user_ids: Sequence[int]) -> dict[int, UserRead]:
        if not user_ids:
            return {}
        return await self._load(self._identity_query().where(User.id.in_(list(user_ids))))

    async def get_user_by_name(self, name: str) -> Optional[UserRead]:
        users = await self._load(self._identity_query().where(User.name == name))
        return next(iter(users.values()), None)


class SqlAlchemyTagRepository(TagRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    def _tags_query(self) -> Select[Any]:
        return (
            select(LivestreamTag.livestream_id, Tag.id, Tag.name)
            .join(Tag, Tag.id == LivestreamTag.tag_id)
            .order_by(LivestreamTag.id)
        )

    async def resolve_tag_names(self, tag_ids: Sequence[int]) -> dict[int, str]:
        if not tag_ids:
            return {}
        rows = await self.session.execute(select(Tag.id, Tag.name).where(Tag.id.in_(list(tag_ids))))
        return {tag_id: name for tag_id, name in rows.all()}

    async def list_for_livestream(self, livestream_id: int) -> List[TagRead]:
        rows = await self.session.execute(self._tags_query().where(LivestreamTag.livestream_id == livestream_id))
        return [TagRead(id=tag_id, name=name) for _, tag_id, name in rows.all()]

    async def list_for_livestreams(self, livestream_ids: Sequence[int]) -> dict[int, List[TagRead]]:
        if not livestream_ids:
            return {}
        rows = await self.session.execute(
            self._tags_query().where(LivestreamTag.livestream_id.in_(list(livestream_ids)))
        )
        tags: dict[int, List[TagRead]] = {}
        for livestream_id, tag_id, name in rows.all():
            tags.setdefault(livestream_id, []).append(TagRead(id=tag_id, name=name))
        return tags
