import logging
from typing import List

from ..domain.errors import ValidationError
from ..domain.repositories import SlotRepository
from ..domain.services import ReservationTerm, SlotSnapshot, validate_capacity, validate_time_window
from ..models import ReservationSlot

logger = logging.getLogger(__name__)

HOUR = 60 * 60


async def check_and_consume(
    slot_repo: SlotRepository,
    *,
    term: ReservationTerm,
    start_at: int,
    end_at: int,
    allow_uncovered: bool = False,
) -> List[ReservationSlot]:
    """
    Lock every slot covered by [start_at, end_at] and take one unit of capacity from each.

    Must run inside the caller's transaction; the locks are held until it ends.
    Nothing is decremented unless every covered slot has capacity left.
    """
    validate_time_window(term, start_at=start_at, end_at=end_at)

    slots = await slot_repo.list_for_update(start_at, end_at)
    snapshots = [
        SlotSnapshot(slot_id=s.id, start_at=s.start_at, end_at=s.end_at, capacity=s.capacity) for s in slots
    ]
    for snap in snapshots:
        logger.debug("slot %d ~ %d remaining = %d", snap.start_at, snap.end_at, snap.capacity)
    validate_capacity(
        snapshots,
        term,
        start_at=start_at,
        end_at=end_at,
        allow_uncovered=allow_uncovered,
    )

    if slots:
        await slot_repo.decrement([s.id for s in slots])
    return slots


async def list_availability(
    slot_repo: SlotRepository,
    *,
    start_at: int,
    end_at: int,
) -> List[ReservationSlot]:
    if start_at >= end_at:
        raise ValidationError("start_at must be earlier than end_at")
    return await slot_repo.list_in_range(start_at, end_at)


async def seed_slots(
    slot_repo: SlotRepository,
    *,
    term: ReservationTerm,
    capacity: int,
    width: int = HOUR,
) -> int:
    """Create fixed-width buckets covering the term. Returns the number of rows created."""
    if capacity < 0:
        raise ValueError("capacity must be >= 0")
    if width < 1:
        raise ValueError("width must be >= 1")
    buckets = [(start, min(start + width, term.end_at)) for start in range(term.start_at, term.end_at, width)]
    created = await slot_repo.create_many(buckets, capacity=capacity)
    logger.info("seeded %d reservation slots of %ds with capacity %d", created, width, capacity)
    return created
