"""reservations and tables

Revision ID: 3c9d0f4b7a21
Revises:
Create Date: 2026-10-18 09:12:44.501237

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = '3c9d0f4b7a21'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "reservations",
        sa.Column("reservation_id", sa.Integer(), primary_key=True),
        sa.Column("first_name", sa.String(length=120), nullable=False),
        sa.Column("last_name", sa.String(length=120), nullable=False),
        sa.Column("mobile_number", sa.String(length=32), nullable=False),
        sa.Column("reservation_date", sa.Date(), nullable=False),
        sa.Column("reservation_time", sa.Time(), nullable=False),
        sa.Column("people", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="booked"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("people > 0", name="ck_reservations_people_positive"),
        sa.CheckConstraint(
            "status IN ('booked', 'seated', 'finished', 'cancelled')",
            name="ck_reservations_status",
        ),
    )
    op.create_index("ix_reservations_reservation_date", "reservations", ["reservation_date"])
    op.create_index("ix_reservations_mobile_number", "reservations", ["mobile_number"])

    op.create_table(
        "tables",
        sa.Column("table_id", sa.Integer(), primary_key=True),
        sa.Column("table_name", sa.String(length=120), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="Free"),
        sa.Column(
            "reservation_id",
            sa.Integer(),
            sa.ForeignKey("reservations.reservation_id"),
            nullable=True,
            unique=True,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("capacity > 0", name="ck_tables_capacity_positive"),
        sa.CheckConstraint("status IN ('Free', 'Occupied')", name="ck_tables_status"),
        sa.CheckConstraint(
            "(status = 'Occupied' AND reservation_id IS NOT NULL)"
            " OR (status = 'Free' AND reservation_id IS NULL)",
            name="ck_tables_binding",
        ),
    )


def downgrade() -> None:
    op.drop_table("tables")
    op.drop_index("ix_reservations_mobile_number", table_name="reservations")
    op.drop_index("ix_reservations_reservation_date", table_name="reservations")
    op.drop_table("reservations")
