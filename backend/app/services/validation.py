"""Pure payload checks for reservations, tables and seating requests.

Every check takes the candidate payload and returns ``None`` when it accepts
it or a :class:`Rejection` naming what is wrong. Checks are composed into
ordered pipelines and run by :func:`run_checks`, which stops at the first
rejection. Nothing in this module touches the store.
"""

import re
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from typing import Any
from zoneinfo import ZoneInfo

from backend.app.core.config import Settings
from backend.app.core.errors import ValidationError
from backend.app.db.models import ReservationStatus


RESERVATION_REQUIRED_FIELDS = (
    "first_name",
    "last_name",
    "mobile_number",
    "reservation_date",
    "reservation_time",
    "people",
)
RESERVATION_VALID_FIELDS = (
    *RESERVATION_REQUIRED_FIELDS,
    "status",
    "reservation_id",
    "created_at",
    "updated_at",
)
TABLE_FIELDS = ("table_name", "capacity")
SEAT_FIELDS = ("reservation_id",)
STATUS_FIELDS = ("status",)
TEXT_FIELDS = ("first_name", "last_name", "mobile_number")

DATE_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")
TIME_PATTERN = re.compile(r"([01][0-9]|2[0-3]):[0-5][0-9]")
IDENTIFIER_PATTERN = re.compile(r"[0-9]+")

# Largest id a 32-bit INTEGER primary key can hold.
MAX_IDENTIFIER = 2**31 - 1

WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


@dataclass(frozen=True)
class Rejection:
    kind: str
    message: str


Check = Callable[[Mapping[str, Any]], Rejection | None]


@dataclass(frozen=True)
class BookingPolicy:
    """When the restaurant accepts bookings."""

    timezone: ZoneInfo
    closed_weekday: int | None
    opening_time: time
    last_seating_time: time

    @classmethod
    def from_settings(cls, settings: Settings) -> "BookingPolicy":
        return cls(
            timezone=ZoneInfo(settings.RESTAURANT_TIMEZONE),
            closed_weekday=settings.CLOSED_WEEKDAY,
            opening_time=settings.OPENING_TIME,
            last_seating_time=settings.LAST_SEATING_TIME,
        )


@dataclass(frozen=True)
class ReservationDraft:
    first_name: str
    last_name: str
    mobile_number: str
    reservation_date: date
    reservation_time: time
    people: int

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ReservationDraft":
        return cls(
            first_name=payload["first_name"],
            last_name=payload["last_name"],
            mobile_number=payload["mobile_number"],
            reservation_date=parse_date(payload["reservation_date"]),
            reservation_time=parse_time(payload["reservation_time"]),
            people=payload["people"],
        )


@dataclass(frozen=True)
class TableDraft:
    table_name: str
    capacity: int

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "TableDraft":
        return cls(table_name=payload["table_name"], capacity=payload["capacity"])


def parse_date(value: str) -> date:
    return date.fromisoformat(value)


def parse_time(value: str) -> time:
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


def format_time(value: time) -> str:
    return value.strftime("%H:%M")


def parse_identifier(value: Any) -> int | None:
    """An id as sent in a URL path; None when it cannot name a record."""
    if isinstance(value, str) and IDENTIFIER_PATTERN.fullmatch(value):
        value = int(value)
    if not isinstance(value, int) or isinstance(value, bool):
        return None
    if not 0 < value <= MAX_IDENTIFIER:
        return None
    return value


def _is_positive_int(value: Any) -> bool:
    # bool is an int subclass, but true/false is not a count.
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _is_missing(value: Any) -> bool:
    return value is None or value == ""


# Field presence


def has_fields(*names: str) -> Check:
    def check(payload: Mapping[str, Any]) -> Rejection | None:
        for name in names:
            if _is_missing(payload.get(name)):
                return Rejection("MissingField", f"A '{name}' property is required.")
        return None

    return check


def has_only_fields(*names: str) -> Check:
    allowed = frozenset(names)

    def check(payload: Mapping[str, Any]) -> Rejection | None:
        invalid = sorted(field for field in payload if field not in allowed)
        if invalid:
            return Rejection("UnknownField", f"Invalid field(s): {', '.join(invalid)}")
        return None

    return check


# Reservation fields


def valid_date(payload: Mapping[str, Any]) -> Rejection | None:
    value = payload.get("reservation_date")
    if isinstance(value, str) and DATE_PATTERN.fullmatch(value):
        try:
            parse_date(value)
        except ValueError:
            pass
        else:
            return None
    return Rejection(
        "InvalidDate",
        f"reservation_date field formatted incorrectly: {value}. Valid format is YYYY-MM-DD.",
    )


def valid_time(payload: Mapping[str, Any]) -> Rejection | None:
    value = payload.get("reservation_time")
    if isinstance(value, str) and TIME_PATTERN.fullmatch(value):
        return None
    return Rejection("InvalidTime", f"Invalid reservation_time: {value} (HH:MM expected).")


def valid_party_size(payload: Mapping[str, Any]) -> Rejection | None:
    value = payload.get("people")
    if _is_positive_int(value):
        return None
    return Rejection(
        "InvalidPartySize",
        f"Invalid value entered: {value}. Quantity of people must be a positive integer.",
    )


def not_closed_day(policy: BookingPolicy) -> Check:
    def check(payload: Mapping[str, Any]) -> Rejection | None:
        if policy.closed_weekday is None:
            return None
        if parse_date(payload["reservation_date"]).weekday() == policy.closed_weekday:
            day = WEEKDAY_NAMES[policy.closed_weekday]
            return Rejection("ClosedDay", f"The restaurant is closed on {day}.")
        return None

    return check


def in_future(policy: BookingPolicy, now: datetime | None = None) -> Check:
    def check(payload: Mapping[str, Any]) -> Rejection | None:
        starts_at = datetime.combine(
            parse_date(payload["reservation_date"]),
            parse_time(payload["reservation_time"]),
            tzinfo=policy.timezone,
        )
        current = now or datetime.now(timezone.utc)
        if starts_at > current:
            return None
        return Rejection("NotInFuture", "Reservation must be in the future.")

    return check


def within_operating_hours(policy: BookingPolicy) -> Check:
    def check(payload: Mapping[str, Any]) -> Rejection | None:
        requested = parse_time(payload["reservation_time"])
        if policy.opening_time <= requested <= policy.last_seating_time:
            return None
        return Rejection(
            "OutsideHours",
            f"Reservations are only allowed between {format_time(policy.opening_time)}"
            f" and {format_time(policy.last_seating_time)}.",
        )

    return check


def booked_status(payload: Mapping[str, Any]) -> Rejection | None:
    value = payload.get("status")
    if value is None or value == ReservationStatus.BOOKED.value:
        return None
    return Rejection(
        "InvalidInitialStatus",
        f"Invalid status: {value} for new reservation. Only 'booked' allowed.",
    )


def text_fields(payload: Mapping[str, Any]) -> Rejection | None:
    for name in TEXT_FIELDS:
        if not isinstance(payload.get(name), str):
            return Rejection("InvalidField", f"{name} must be a string.")
    return None


# Tables


def table_name_length(payload: Mapping[str, Any]) -> Rejection | None:
    value = payload.get("table_name")
    if isinstance(value, str) and len(value) >= 2:
        return None
    return Rejection("InvalidTableName", "table_name must be at least 2 characters in length.")


def capacity_is_integer(payload: Mapping[str, Any]) -> Rejection | None:
    value = payload.get("capacity")
    if _is_positive_int(value):
        return None
    return Rejection(
        "InvalidCapacity",
        f"capacity field formatted incorrectly: {value}. Needs to be a positive integer.",
    )


# Pipelines


def run_checks(payload: Mapping[str, Any], checks: Iterable[Check]) -> None:
    """Run ``checks`` in order and raise ValidationError for the first rejection."""
    for check in checks:
        rejection = check(payload)
        if rejection is not None:
            raise ValidationError(rejection.kind, rejection.message)


def _schedule_checks(policy: BookingPolicy, now: datetime | None) -> list[Check]:
    return [
        valid_date,
        valid_time,
        valid_party_size,
        not_closed_day(policy),
        in_future(policy, now),
        within_operating_hours(policy),
    ]


def reservation_create_checks(policy: BookingPolicy, now: datetime | None = None) -> Sequence[Check]:
    return (
        has_fields(*RESERVATION_REQUIRED_FIELDS),
        has_only_fields(*RESERVATION_VALID_FIELDS),
        *_schedule_checks(policy, now),
        booked_status,
        text_fields,
    )


def reservation_edit_checks(policy: BookingPolicy, now: datetime | None = None) -> Sequence[Check]:
    return (
        has_fields(*RESERVATION_REQUIRED_FIELDS),
        has_only_fields(*RESERVATION_VALID_FIELDS),
        *_schedule_checks(policy, now),
        text_fields,
    )


TABLE_CREATE_CHECKS: Sequence[Check] = (
    has_fields(*TABLE_FIELDS),
    has_only_fields(*TABLE_FIELDS),
    table_name_length,
    capacity_is_integer,
)

SEAT_CHECKS: Sequence[Check] = (
    has_fields(*SEAT_FIELDS),
    has_only_fields(*SEAT_FIELDS),
)

STATUS_CHECKS: Sequence[Check] = (
    has_fields(*STATUS_FIELDS),
    has_only_fields(*STATUS_FIELDS),
)


def validate_new_reservation(
    payload: Mapping[str, Any],
    policy: BookingPolicy,
    now: datetime | None = None,
) -> ReservationDraft:
    run_checks(payload, reservation_create_checks(policy, now))
    return ReservationDraft.from_payload(payload)


def validate_reservation_edit(
    merged: Mapping[str, Any],
    policy: BookingPolicy,
    now: datetime | None = None,
) -> ReservationDraft:
    run_checks(merged, reservation_edit_checks(policy, now))
    return ReservationDraft.from_payload(merged)


def validate_new_table(payload: Mapping[str, Any]) -> TableDraft:
    run_checks(payload, TABLE_CREATE_CHECKS)
    return TableDraft.from_payload(payload)
