from typing import List

from pydantic import BaseModel, Field

from .models import Livestream, ReservationSlot
from .utils.time import MAX_UNIX_SECONDS


class ThemeRead(BaseModel):
    id: int
    dark_mode: bool


class UserRead(BaseModel):
    id: int
    name: str
    display_name: str
    description: str
    theme: ThemeRead
    icon_hash: str


class TagRead(BaseModel):
    id: int
    name: str


class LivestreamRead(BaseModel):
    id: int
    owner: UserRead
    title: str
    description: str
    playlist_url: str
    thumbnail_url: str
    tags: List[TagRead]
    start_at: int
    end_at: int

    @classmethod
    def from_db(cls, *, livestream: Livestream, owner: UserRead, tags: List[TagRead]) -> "LivestreamRead":
        return cls(
            id=livestream.id,
            owner=owner,
            title=livestream.title,
            description=livestream.description,
            playlist_url=livestream.playlist_url,
            thumbnail_url=livestream.thumbnail_url,
            tags=list(tags),
            start_at=livestream.start_at,
            end_at=livestream.end_at,
        )


class ReserveLivestreamRequest(BaseModel):
    tags: List[int] = Field(default_factory=list)
    title: str = Field(max_length=255)
    description: str
    playlist_url: str = Field(max_length=255)
    thumbnail_url: str = Field(max_length=255)
    start_at: int = Field(ge=0, le=MAX_UNIX_SECONDS, description="unix seconds")
    end_at: int = Field(ge=0, le=MAX_UNIX_SECONDS, description="unix seconds")


class SlotAvailability(BaseModel):
    slot_id: int
    start_at: int
    end_at: int
    remaining: int

    @classmethod
    def from_db(cls, *, slot: ReservationSlot) -> "SlotAvailability":
        return cls(slot_id=slot.id, start_at=slot.start_at, end_at=slot.end_at, remaining=slot.capacity)
