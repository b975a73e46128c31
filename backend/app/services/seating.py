"""Table setup and the seat/finish transitions.

Seating and finishing each change a table row and a reservation row. Both
rows are locked (table first) and written inside a single transaction, so a
competing request either waits and sees the committed result or the whole
unit rolls back.
"""

from collections.abc import Mapping, Sequence
from typing import Any

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.errors import ConflictError, NotFoundError
from backend.app.db.models import ReservationStatus, TERMINAL_STATUSES, Table, TableStatus
from backend.app.db.session import transaction
from backend.app.services.reservations import read_reservation, update_reservation
from backend.app.services.tables import create_table, list_tables, read_table, update_table
from backend.app.services.validation import SEAT_CHECKS, parse_identifier, run_checks, validate_new_table


def _is_identifier(value: Any) -> bool:
    # Body ids are JSON numbers; "1" names nothing.
    return not isinstance(value, str) and parse_identifier(value) is not None


async def add_table(session: AsyncSession, payload: Mapping[str, Any]) -> Table:
    draft = validate_new_table(payload)
    async with transaction(session):
        table = await create_table(session, draft)
    logger.info(f"Created table {table.table_id} ({table.table_name}, seats {table.capacity})")
    return table


async def get_tables(session: AsyncSession) -> Sequence[Table]:
    async with transaction(session):
        return await list_tables(session)


async def _lock_table(session: AsyncSession, table_id: int | str) -> Table:
    identifier = parse_identifier(table_id)
    table = None if identifier is None else await read_table(session, identifier, lock=True)
    if table is None:
        raise NotFoundError(f"table_id: {table_id} does not exist.")
    return table


async def seat_reservation(session: AsyncSession, table_id: int | str, payload: Mapping[str, Any]) -> Table:
    """Bind a booked reservation to a free table that can hold the party."""
    run_checks(payload, SEAT_CHECKS)
    reservation_id = payload["reservation_id"]

    async with transaction(session):
        table = await _lock_table(session, table_id)

        reservation = None
        if _is_identifier(reservation_id):
            reservation = await read_reservation(session, reservation_id, lock=True)
        if reservation is None:
            raise NotFoundError(f"Reservation {reservation_id} not found.")

        if reservation.status == ReservationStatus.SEATED.value:
            raise ConflictError("AlreadySeated", f"Reservation {reservation_id} already seated.")
        if reservation.status in TERMINAL_STATUSES:
            raise ConflictError("Immutable", f"Reservation {reservation_id} is {reservation.status}.")
        if table.capacity < reservation.people:
            raise ConflictError(
                "InsufficientCapacity",
                f"Table does not have sufficient capacity for {reservation.people}.",
            )
        if table.status != TableStatus.FREE.value:
            logger.warning(f"Table {table_id} is occupied, cannot seat reservation {reservation_id}")
            raise ConflictError("TableOccupied", "Table is currently occupied.")

        table = await update_table(
            session,
            table,
            status=TableStatus.OCCUPIED.value,
            reservation_id=reservation_id,
        )
        await update_reservation(session, reservation, status=ReservationStatus.SEATED.value)

    logger.info(f"Seated reservation {reservation_id} at table {table_id}")
    return table


async def finish_table(session: AsyncSession, table_id: int | str) -> Table:
    """Free an occupied table and finish the reservation bound to it."""
    async with transaction(session):
        table = await _lock_table(session, table_id)
        if table.status != TableStatus.OCCUPIED.value:
            raise ConflictError("NotOccupied", "Table is not occupied.")

        reservation_id = table.reservation_id
        reservation = await read_reservation(session, reservation_id, lock=True)

        table = await update_table(session, table, status=TableStatus.FREE.value, reservation_id=None)
        # Only a seated reservation finishes; a cancelled or finished one stays as it is.
        if reservation is None or reservation.status != ReservationStatus.SEATED.value:
            logger.warning(f"Freed table {table_id} bound to reservation {reservation_id} that was not seated")
            return table
        await update_reservation(session, reservation, status=ReservationStatus.FINISHED.value)

    logger.info(f"Finished reservation {reservation_id} at table {table_id}")
    return table
