from datetime import date, datetime, time
from enum import Enum

from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, Integer, String, Time, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class ReservationStatus(str, Enum):
    BOOKED = "booked"
    SEATED = "seated"
    FINISHED = "finished"
    CANCELLED = "cancelled"


TERMINAL_STATUSES = (ReservationStatus.FINISHED.value, ReservationStatus.CANCELLED.value)


class TableStatus(str, Enum):
    FREE = "Free"
    OCCUPIED = "Occupied"


class Base(DeclarativeBase):
    pass


class Reservation(Base):
    __tablename__ = "reservations"

    reservation_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    first_name: Mapped[str] = mapped_column(String(120), nullable=False)
    last_name: Mapped[str] = mapped_column(String(120), nullable=False)
    mobile_number: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    reservation_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    reservation_time: Mapped[time] = mapped_column(Time, nullable=False)
    people: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=ReservationStatus.BOOKED.value)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        CheckConstraint("people > 0", name="ck_reservations_people_positive"),
        CheckConstraint(
            "status IN ('booked', 'seated', 'finished', 'cancelled')",
            name="ck_reservations_status",
        ),
    )
    __mapper_args__ = {"eager_defaults": True}


class Table(Base):
    __tablename__ = "tables"

    table_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    table_name: Mapped[str] = mapped_column(String(120), nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=TableStatus.FREE.value)
    reservation_id: Mapped[int | None] = mapped_column(
        ForeignKey("reservations.reservation_id"), nullable=True, unique=True
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        CheckConstraint("capacity > 0", name="ck_tables_capacity_positive"),
        CheckConstraint("status IN ('Free', 'Occupied')", name="ck_tables_status"),
        CheckConstraint(
            "(status = 'Occupied' AND reservation_id IS NOT NULL)"
            " OR (status = 'Free' AND reservation_id IS NULL)",
            name="ck_tables_binding",
        ),
    )
    __mapper_args__ = {"eager_defaults": True}
