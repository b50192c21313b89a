from dataclasses import dataclass
from typing import Sequence

from ..utils.time import MAX_UNIX_SECONDS
from .errors import CapacityExceededError, ValidationError


@dataclass(frozen=True)
class ReservationTerm:
    """Half-open window [start_at, end_at) in unix seconds."""

    start_at: int
    end_at: int


@dataclass(frozen=True)
class SlotSnapshot:
    slot_id: int
    start_at: int
    end_at: int
    capacity: int


def validate_time_window(term: ReservationTerm, *, start_at: int, end_at: int) -> None:
    """
    Pure validation of a requested broadcast window.
    The window must lie within representable unix seconds, be non-empty and
    intersect the term. Raises ValidationError otherwise.
    """
    detail = {
        "start_at": start_at,
        "end_at": end_at,
        "term_start_at": term.start_at,
        "term_end_at": term.end_at,
    }
    if not (0 <= start_at <= MAX_UNIX_SECONDS and 0 <= end_at <= MAX_UNIX_SECONDS):
        raise ValidationError(
            f"reservation time range {start_at} ~ {end_at} is outside 0 ~ {MAX_UNIX_SECONDS}",
            detail=detail,
        )
    if start_at >= end_at:
        raise ValidationError(
            f"start_at ({start_at}) must be earlier than end_at ({end_at})",
            detail=detail,
        )
    if start_at >= term.end_at or end_at <= term.start_at:
        raise ValidationError(
            f"bad reservation time range {start_at} ~ {end_at}: "
            f"term is {term.start_at} ~ {term.end_at}",
            detail=detail,
        )


def validate_capacity(
    snapshots: Sequence[SlotSnapshot],
    term: ReservationTerm,
    *,
    start_at: int,
    end_at: int,
    allow_uncovered: bool,
) -> None:
    """
    Pure validation over locked slot rows: every covered bucket needs capacity >= 1.
    An empty cover is rejected unless allow_uncovered is set.
    """
    if not snapshots and not allow_uncovered:
        raise ValidationError(
            f"no reservation slots cover {start_at} ~ {end_at}",
            detail={"start_at": start_at, "end_at": end_at},
        )
    exhausted = [s for s in snapshots if s.capacity < 1]
    if exhausted:
        raise CapacityExceededError(
            f"reservation range {start_at} ~ {end_at} cannot be booked "
            f"within term {term.start_at} ~ {term.end_at}",
            detail={
                "start_at": start_at,
                "end_at": end_at,
                "term_start_at": term.start_at,
                "term_end_at": term.end_at,
                "exhausted_slots": [[s.start_at, s.end_at] for s in exhausted],
            },
        )
