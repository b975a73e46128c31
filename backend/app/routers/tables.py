from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db.session import get_session
from backend.app.routers.schemas import DataIn, TableEnvelope, TableListEnvelope, TableOut
from backend.app.services import seating


router = APIRouter()


@router.get("/tables", response_model=TableListEnvelope)
async def list_tables_endpoint(session: AsyncSession = Depends(get_session)) -> TableListEnvelope:
    tables = await seating.get_tables(session)
    return TableListEnvelope(data=[TableOut.model_validate(t) for t in tables])


@router.post("/tables", response_model=TableEnvelope, status_code=status.HTTP_201_CREATED)
async def create_table_endpoint(
    body: DataIn,
    session: AsyncSession = Depends(get_session),
) -> TableEnvelope:
    table = await seating.add_table(session, body.payload())
    return TableEnvelope(data=TableOut.model_validate(table))


@router.put("/tables/{table_id}/seat", response_model=TableEnvelope)
async def seat_endpoint(
    table_id: str,
    body: DataIn,
    session: AsyncSession = Depends(get_session),
) -> TableEnvelope:
    table = await seating.seat_reservation(session, table_id, body.payload())
    return TableEnvelope(data=TableOut.model_validate(table))


@router.delete("/tables/{table_id}/seat", response_model=TableEnvelope)
async def finish_endpoint(
    table_id: str,
    session: AsyncSession = Depends(get_session),
) -> TableEnvelope:
    table = await seating.finish_table(session, table_id)
    return TableEnvelope(data=TableOut.model_validate(table))
