from datetime import date, datetime, time
from typing import Any

from pydantic import BaseModel, ConfigDict, field_serializer


class DataIn(BaseModel):
    # Field checks happen in the validation pipeline so that every rejection
    # carries its own kind; the envelope only guarantees a JSON object.
    data: dict[str, Any] | None = None

    def payload(self) -> dict[str, Any]:
        return self.data or {}


class ReservationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    reservation_id: int
    first_name: str
    last_name: str
    mobile_number: str
    reservation_date: date
    reservation_time: time
    people: int
    status: str
    created_at: datetime
    updated_at: datetime

    @field_serializer("reservation_time")
    def serialize_time(self, value: time) -> str:
        return value.strftime("%H:%M")


class TableOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    table_id: int
    table_name: str
    capacity: int
    status: str
    reservation_id: int | None = None


class ReservationEnvelope(BaseModel):
    data: ReservationOut


class ReservationListEnvelope(BaseModel):
    data: list[ReservationOut]


class TableEnvelope(BaseModel):
    data: TableOut


class TableListEnvelope(BaseModel):
    data: list[TableOut]
