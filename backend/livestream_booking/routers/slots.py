from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import get_current_identity, get_session
from ..domain.errors import DomainError
from ..infrastructure.repositories import SqlAlchemySlotRepository
from ..infrastructure.transaction import transaction
from ..schemas import SlotAvailability
from ..usecases import slots as slot_usecase
from ..utils.time import MAX_UNIX_SECONDS
from .errors import http_error

router = APIRouter(prefix="/api", tags=["slots"], dependencies=[Depends(get_current_identity)])


@router.get("/reservation_slots", response_model=List[SlotAvailability])
async def list_availability(
    start_at: int = Query(..., ge=0, le=MAX_UNIX_SECONDS, description="unix seconds"),
    end_at: int = Query(..., ge=0, le=MAX_UNIX_SECONDS, description="unix seconds"),
    session: AsyncSession = Depends(get_session),
) -> list[SlotAvailability]:
    slot_repo = SqlAlchemySlotRepository(session)
    try:
        async with transaction(session):
            slots = await slot_usecase.list_availability(slot_repo, start_at=start_at, end_at=end_at)
    except DomainError as exc:
        raise http_error(exc) from exc
    return [SlotAvailability.from_db(slot=slot) for slot in slots]
