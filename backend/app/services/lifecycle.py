"""Reservation admission, lookups, edits and status changes."""

from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.errors import ConflictError, NotFoundError, ValidationError
from backend.app.db.models import Reservation, ReservationStatus, TERMINAL_STATUSES, TableStatus
from backend.app.db.session import transaction
from backend.app.services.reservations import (
    create_reservation,
    find_reservations,
    list_reservations,
    read_reservation,
    update_reservation,
)
from backend.app.services.tables import read_table_for_reservation, update_table
from backend.app.services.validation import (
    RESERVATION_REQUIRED_FIELDS,
    RESERVATION_VALID_FIELDS,
    STATUS_CHECKS,
    BookingPolicy,
    format_time,
    has_only_fields,
    parse_date,
    parse_identifier,
    run_checks,
    valid_date,
    validate_new_reservation,
    validate_reservation_edit,
)


VALID_STATUSES = tuple(status.value for status in ReservationStatus)

# Moves allowed through a direct status update. Seating goes through the
# seating coordinator so a seated reservation always has a table.
DIRECT_TRANSITIONS = {
    ReservationStatus.BOOKED.value: {ReservationStatus.BOOKED.value, ReservationStatus.CANCELLED.value},
    ReservationStatus.SEATED.value: {
        ReservationStatus.SEATED.value,
        ReservationStatus.FINISHED.value,
        ReservationStatus.CANCELLED.value,
    },
    ReservationStatus.FINISHED.value: set(),
    ReservationStatus.CANCELLED.value: set(),
}


def _missing(reservation_id: Any) -> NotFoundError:
    return NotFoundError(f"reservation id: {reservation_id} does not exist.")


def assert_mutable(reservation: Reservation) -> None:
    if reservation.status in TERMINAL_STATUSES:
        raise ConflictError("Immutable", f"A {reservation.status} reservation cannot be updated.")


def editable_fields(reservation: Reservation) -> dict[str, Any]:
    """The record as a validation payload, in the same shape clients send."""
    return {
        "first_name": reservation.first_name,
        "last_name": reservation.last_name,
        "mobile_number": reservation.mobile_number,
        "reservation_date": reservation.reservation_date.isoformat(),
        "reservation_time": format_time(reservation.reservation_time),
        "people": reservation.people,
    }


async def admit_reservation(
    session: AsyncSession,
    payload: Mapping[str, Any],
    policy: BookingPolicy,
    now: datetime | None = None,
) -> Reservation:
    """Validate ``payload`` and store it as a new booked reservation."""
    draft = validate_new_reservation(payload, policy, now)
    async with transaction(session):
        reservation = await create_reservation(session, draft)
    logger.info(
        f"Admitted reservation {reservation.reservation_id} for {draft.people}"
        f" on {draft.reservation_date} at {format_time(draft.reservation_time)}"
    )
    return reservation


async def get_reservation(session: AsyncSession, reservation_id: int | str) -> Reservation:
    identifier = parse_identifier(reservation_id)
    if identifier is None:
        raise _missing(reservation_id)
    async with transaction(session):
        reservation = await read_reservation(session, identifier)
    if reservation is None:
        raise _missing(reservation_id)
    return reservation


async def list_reservations_by_date(session: AsyncSession, reservation_date: str) -> Sequence[Reservation]:
    run_checks({"reservation_date": reservation_date}, (valid_date,))
    async with transaction(session):
        return await list_reservations(session, parse_date(reservation_date))


async def find_reservations_by_phone(session: AsyncSession, mobile_number: str) -> Sequence[Reservation]:
    async with transaction(session):
        return await find_reservations(session, mobile_number)


async def update_reservation_status(
    session: AsyncSession,
    reservation_id: int | str,
    payload: Mapping[str, Any],
) -> Reservation:
    """Apply a direct status change.

    A booked reservation may only be cancelled here. A seated one may be
    cancelled or finished, and either frees its table in the same transaction.
    """
    run_checks(payload, STATUS_CHECKS)
    target = payload["status"]

    async with transaction(session):
        identifier = parse_identifier(reservation_id)
        if identifier is None:
            raise _missing(reservation_id)
        # Table before reservation, the same lock order the seating coordinator uses.
        table = await read_table_for_reservation(session, identifier, lock=True)
        reservation = await read_reservation(session, identifier, lock=True)
        if reservation is None:
            raise _missing(reservation_id)
        assert_mutable(reservation)

        if target not in VALID_STATUSES:
            raise ValidationError(
                "InvalidStatus",
                f"invalid status: {target}. Status must be: {', '.join(VALID_STATUSES)}",
            )
        current = reservation.status
        if target not in DIRECT_TRANSITIONS[current]:
            raise ConflictError(
                "IllegalTransition",
                f"A reservation cannot move from {current} to {target} by a status update.",
            )
        if target == current:
            return reservation

        if table is None and current == ReservationStatus.SEATED.value:
            # The first read can miss a binding committed while we waited on the reservation lock.
            table = await read_table_for_reservation(session, identifier, lock=True)
        if table is not None:
            await update_table(session, table, status=TableStatus.FREE.value, reservation_id=None)
            logger.info(f"Freed table {table.table_id} after reservation {reservation_id} became {target}")
        reservation = await update_reservation(session, reservation, status=target)

    logger.info(f"Reservation {reservation_id} moved from {current} to {target}")
    return reservation


async def update_reservation_fields(
    session: AsyncSession,
    reservation_id: int | str,
    payload: Mapping[str, Any],
    policy: BookingPolicy,
    now: datetime | None = None,
) -> Reservation:
    """Edit guest, contact or schedule details of a reservation that is not finished or cancelled."""
    run_checks(payload, (has_only_fields(*RESERVATION_VALID_FIELDS),))
    identifier = parse_identifier(reservation_id)
    if identifier is None:
        raise _missing(reservation_id)

    async with transaction(session):
        reservation = await read_reservation(session, identifier, lock=True)
        if reservation is None:
            raise _missing(reservation_id)
        assert_mutable(reservation)

        merged = editable_fields(reservation)
        merged.update((name, payload[name]) for name in RESERVATION_REQUIRED_FIELDS if name in payload)
        draft = validate_reservation_edit(merged, policy, now)

        reservation = await update_reservation(
            session,
            reservation,
            first_name=draft.first_name,
            last_name=draft.last_name,
            mobile_number=draft.mobile_number,
            reservation_date=draft.reservation_date,
            reservation_time=draft.reservation_time,
            people=draft.people,
        )

    logger.info(f"Updated details of reservation {reservation_id}")
    return reservation
