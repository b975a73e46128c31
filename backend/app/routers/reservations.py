from functools import lru_cache

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.config import settings
from backend.app.core.errors import ValidationError
from backend.app.db.session import get_session
from backend.app.routers.schemas import DataIn, ReservationEnvelope, ReservationListEnvelope, ReservationOut
from backend.app.services import lifecycle
from backend.app.services.validation import BookingPolicy


router = APIRouter()


@lru_cache
def get_booking_policy() -> BookingPolicy:
    return BookingPolicy.from_settings(settings)


@router.get("/reservations", response_model=ReservationListEnvelope)
async def list_reservations_endpoint(
    date: str | None = None,
    mobile_number: str | None = None,
    session: AsyncSession = Depends(get_session),
) -> ReservationListEnvelope:
    """Pending reservations for ``date``, or every reservation matching ``mobile_number``."""
    if date:
        reservations = await lifecycle.list_reservations_by_date(session, date)
    elif mobile_number:
        reservations = await lifecycle.find_reservations_by_phone(session, mobile_number)
    else:
        raise ValidationError("MissingField", "A 'date' or 'mobile_number' query parameter is required.")
    return ReservationListEnvelope(data=[ReservationOut.model_validate(r) for r in reservations])


@router.post("/reservations", response_model=ReservationEnvelope, status_code=status.HTTP_201_CREATED)
async def create_reservation_endpoint(
    body: DataIn,
    session: AsyncSession = Depends(get_session),
    policy: BookingPolicy = Depends(get_booking_policy),
) -> ReservationEnvelope:
    reservation = await lifecycle.admit_reservation(session, body.payload(), policy)
    return ReservationEnvelope(data=ReservationOut.model_validate(reservation))


@router.get("/reservations/{reservation_id}", response_model=ReservationEnvelope)
async def read_reservation_endpoint(
    reservation_id: str,
    session: AsyncSession = Depends(get_session),
) -> ReservationEnvelope:
    reservation = await lifecycle.get_reservation(session, reservation_id)
    return ReservationEnvelope(data=ReservationOut.model_validate(reservation))


@router.put("/reservations/{reservation_id}", response_model=ReservationEnvelope)
async def update_reservation_endpoint(
    reservation_id: str,
    body: DataIn,
    session: AsyncSession = Depends(get_session),
    policy: BookingPolicy = Depends(get_booking_policy),
) -> ReservationEnvelope:
    reservation = await lifecycle.update_reservation_fields(session, reservation_id, body.payload(), policy)
    return ReservationEnvelope(data=ReservationOut.model_validate(reservation))


@router.put("/reservations/{reservation_id}/status", response_model=ReservationEnvelope)
async def update_reservation_status_endpoint(
    reservation_id: str,
    body: DataIn,
    session: AsyncSession = Depends(get_session),
) -> ReservationEnvelope:
    reservation = await lifecycle.update_reservation_status(session, reservation_id, body.payload())
    return ReservationEnvelope(data=ReservationOut.model_validate(reservation))
