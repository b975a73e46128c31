"""Table persistence. Functions run inside the caller's transaction and never commit."""

from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db.models import Table, TableStatus
from backend.app.services.validation import TableDraft


async def create_table(session: AsyncSession, draft: TableDraft) -> Table:
    table = Table(
        table_name=draft.table_name,
        capacity=draft.capacity,
        status=TableStatus.FREE.value,
    )
    session.add(table)
    await session.flush()
    await session.refresh(table)
    return table


async def read_table(session: AsyncSession, table_id: int, *, lock: bool = False) -> Table | None:
    query = (
        select(Table)
        .where(Table.table_id == table_id)
        .execution_options(populate_existing=True)
    )
    if lock:
        query = query.with_for_update()
    result = await session.execute(query)
    return result.scalar_one_or_none()


async def read_table_for_reservation(
    session: AsyncSession,
    reservation_id: int,
    *,
    lock: bool = False,
) -> Table | None:
    query = (
        select(Table)
        .where(Table.reservation_id == reservation_id)
        .execution_options(populate_existing=True)
    )
    if lock:
        query = query.with_for_update()
    result = await session.execute(query)
    return result.scalar_one_or_none()


async def list_tables(session: AsyncSession) -> Sequence[Table]:
    result = await session.execute(select(Table).order_by(Table.table_name, Table.table_id))
    return result.scalars().all()


async def update_table(session: AsyncSession, table: Table, **changes) -> Table:
    for name, value in changes.items():
        setattr(table, name, value)
    await session.flush()
    await session.refresh(table)
    return table
