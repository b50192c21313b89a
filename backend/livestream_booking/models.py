from __future__ import annotations

from typing import Optional

from sqlalchemy import CheckConstraint, Index, LargeBinary, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql.sqltypes import BigInteger, Boolean, String, Text


class Base(DeclarativeBase):
    pass


class User(Base):
    __tablename__ = "users"
    __table_args__ = (UniqueConstraint("name", name="uniq_user_name"),)

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    password: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)


class Theme(Base):
    __tablename__ = "themes"
    __table_args__ = (Index("idx_themes_userid", "user_id"),)

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    dark_mode: Mapped[bool] = mapped_column(Boolean, nullable=False)


class Icon(Base):
    __tablename__ = "icons"
    __table_args__ = (Index("idx_icons_userid", "user_id"),)

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    image: Mapped[bytes] = mapped_column(LargeBinary(length=2**32 - 1), nullable=False)
    hash: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)


class Tag(Base):
    __tablename__ = "tags"
    __table_args__ = (UniqueConstraint("name", name="uniq_tag_name"),)

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)


class ReservationSlot(Base):
    __tablename__ = "reservation_slots"
    __table_args__ = (
        CheckConstraint("start_at < end_at", name="chk_slots_time"),
        CheckConstraint("slot >= 0", name="chk_slots_capacity"),
        Index("idx_slots_startend", "start_at", "end_at"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    # Column keeps its historical name; it holds the remaining capacity.
    capacity: Mapped[int] = mapped_column("slot", BigInteger, nullable=False)
    start_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    end_at: Mapped[int] = mapped_column(BigInteger, nullable=False)


class Livestream(Base):
    __tablename__ = "livestreams"
    __table_args__ = (Index("idx_livestreams_user_id", "user_id"),)

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    playlist_url: Mapped[str] = mapped_column(String(255), nullable=False)
    thumbnail_url: Mapped[str] = mapped_column(String(255), nullable=False)
    start_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    end_at: Mapped[int] = mapped_column(BigInteger, nullable=False)


class LivestreamTag(Base):
    __tablename__ = "livestream_tags"
    __table_args__ = (Index("idx_livestream_tags_livestream_id", "livestream_id"),)

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    livestream_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    tag_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
