"""Reservation persistence. Functions run inside the caller's transaction and never commit."""

import re
from collections.abc import Sequence
from datetime import date

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db.models import Reservation, ReservationStatus, TERMINAL_STATUSES
from backend.app.services.validation import ReservationDraft


PHONE_PUNCTUATION = ("(", ")", " ", "-")


async def create_reservation(session: AsyncSession, draft: ReservationDraft) -> Reservation:
    """Insert a new booked reservation and return it with its id and timestamps."""
    reservation = Reservation(
        first_name=draft.first_name,
        last_name=draft.last_name,
        mobile_number=draft.mobile_number,
        reservation_date=draft.reservation_date,
        reservation_time=draft.reservation_time,
        people=draft.people,
        status=ReservationStatus.BOOKED.value,
    )
    session.add(reservation)
    await session.flush()
    await session.refresh(reservation)
    return reservation


async def read_reservation(
    session: AsyncSession,
    reservation_id: int,
    *,
    lock: bool = False,
) -> Reservation | None:
    query = (
        select(Reservation)
        .where(Reservation.reservation_id == reservation_id)
        .execution_options(populate_existing=True)
    )
    if lock:
        query = query.with_for_update()
    result = await session.execute(query)
    return result.scalar_one_or_none()


async def update_reservation(session: AsyncSession, reservation: Reservation, **changes) -> Reservation:
    for name, value in changes.items():
        setattr(reservation, name, value)
    await session.flush()
    await session.refresh(reservation)
    return reservation


async def list_reservations(session: AsyncSession, reservation_date: date) -> Sequence[Reservation]:
    """Pending (not finished or cancelled) reservations for one day, earliest first."""
    result = await session.execute(
        select(Reservation)
        .where(
            Reservation.reservation_date == reservation_date,
            Reservation.status.not_in(TERMINAL_STATUSES),
        )
        .order_by(Reservation.reservation_time, Reservation.reservation_id)
    )
    return result.scalars().all()


async def find_reservations(session: AsyncSession, mobile_number: str) -> Sequence[Reservation]:
    """Reservations whose number contains the digits of ``mobile_number``, ignoring punctuation."""
    digits = re.sub(r"\D", "", mobile_number)
    stored = Reservation.mobile_number
    for char in PHONE_PUNCTUATION:
        stored = func.replace(stored, char, "")

    result = await session.execute(
        select(Reservation)
        .where(stored.like(f"%{digits}%"))
        .order_by(Reservation.reservation_date, Reservation.reservation_time)
    )
    return result.scalars().all()
