from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo

import pytest

from backend.app.core.errors import ValidationError
from backend.app.services.validation import (
    BookingPolicy,
    Rejection,
    TABLE_CREATE_CHECKS,
    has_fields,
    has_only_fields,
    in_future,
    not_closed_day,
    parse_identifier,
    reservation_create_checks,
    run_checks,
    valid_date,
    valid_party_size,
    valid_time,
    validate_new_reservation,
    validate_new_table,
    within_operating_hours,
)

from conftest import CLOSED_DAY, NOW, OPEN_DAY, reservation_payload


def _kind(payload, policy, now=NOW):
    with pytest.raises(ValidationError) as excinfo:
        validate_new_reservation(payload, policy, now)
    return excinfo.value.kind


def test_valid_payload_becomes_typed_draft(policy):
    draft = validate_new_reservation(reservation_payload(), policy, NOW)

    assert draft.first_name == "Ann"
    assert draft.reservation_date == date(2026, 10, 21)
    assert draft.reservation_time == time(18, 0)
    assert draft.people == 4


def test_explicit_booked_status_is_accepted(policy):
    validate_new_reservation(reservation_payload(status="booked"), policy, NOW)


@pytest.mark.parametrize(
    "field", ["first_name", "last_name", "mobile_number", "reservation_date", "reservation_time", "people"]
)
def test_missing_required_field(policy, field):
    payload = reservation_payload()
    del payload[field]
    assert _kind(payload, policy) == "MissingField"


def test_empty_string_counts_as_missing(policy):
    assert _kind(reservation_payload(first_name=""), policy) == "MissingField"


def test_unknown_field(policy):
    assert _kind(reservation_payload(table_id=3), policy) == "UnknownField"


@pytest.mark.parametrize(
    "value",
    ["2026/10/21", "21-10-2026", "2026-02-30", "tomorrow", 20261021, "2026-10-21\n", "\u0662\u0660\u0662\u0666-10-21"],
)
def test_invalid_date(policy, value):
    assert _kind(reservation_payload(reservation_date=value), policy) == "InvalidDate"


@pytest.mark.parametrize("value", ["24:00", "18:60", "6pm", "1800", "8:00", 1800, "18:00\n", "\u0661\u0668:00"])
def test_invalid_time(policy, value):
    assert _kind(reservation_payload(reservation_time=value), policy) == "InvalidTime"


@pytest.mark.parametrize("value", [0, -2, "4", 2.5, True])
def test_invalid_party_size(policy, value):
    assert _kind(reservation_payload(people=value), policy) == "InvalidPartySize"


def test_closed_day(policy):
    assert _kind(reservation_payload(reservation_date=CLOSED_DAY), policy) == "ClosedDay"


def test_closed_day_follows_configuration(policy):
    wednesday_closed = BookingPolicy(
        timezone=policy.timezone,
        closed_weekday=2,
        opening_time=policy.opening_time,
        last_seating_time=policy.last_seating_time,
    )
    always_open = BookingPolicy(
        timezone=policy.timezone,
        closed_weekday=None,
        opening_time=policy.opening_time,
        last_seating_time=policy.last_seating_time,
    )

    assert _kind(reservation_payload(), wednesday_closed) == "ClosedDay"
    validate_new_reservation(reservation_payload(reservation_date=CLOSED_DAY), wednesday_closed, NOW)
    validate_new_reservation(reservation_payload(reservation_date=CLOSED_DAY), always_open, NOW)


def test_past_date_is_not_in_future(policy):
    assert _kind(reservation_payload(reservation_date="2026-10-14"), policy) == "NotInFuture"


def test_future_check_uses_restaurant_time_zone(policy):
    # 12:00 in New York on 2026-10-18 is 16:00 UTC, exactly NOW.
    payload = reservation_payload(reservation_date="2026-10-18", reservation_time="12:00")
    assert _kind(payload, policy) == "NotInFuture"

    later = reservation_payload(reservation_date="2026-10-18", reservation_time="12:01")
    validate_new_reservation(later, policy, NOW)

    utc_policy = BookingPolicy(
        timezone=ZoneInfo("UTC"),
        closed_weekday=policy.closed_weekday,
        opening_time=policy.opening_time,
        last_seating_time=policy.last_seating_time,
    )
    assert _kind(later, utc_policy) == "NotInFuture"


@pytest.mark.parametrize("value", ["10:30", "21:30"])
def test_operating_hours_boundaries_accepted(policy, value):
    validate_new_reservation(reservation_payload(reservation_time=value), policy, NOW)


@pytest.mark.parametrize("value", ["10:29", "21:31", "00:00", "23:59"])
def test_outside_operating_hours(policy, value):
    assert _kind(reservation_payload(reservation_time=value), policy) == "OutsideHours"


@pytest.mark.parametrize("value", ["seated", "finished", "cancelled", "unknown"])
def test_initial_status_must_be_booked(policy, value):
    assert _kind(reservation_payload(status=value), policy) == "InvalidInitialStatus"


def test_non_string_name_rejected_after_policy_checks(policy):
    assert _kind(reservation_payload(first_name=42), policy) == "InvalidField"


@pytest.mark.parametrize(
    ("overrides", "expected"),
    [
        ({"people": None, "extra": 1}, "MissingField"),
        ({"extra": 1, "reservation_date": "bad"}, "UnknownField"),
        ({"reservation_date": "bad", "reservation_time": "bad"}, "InvalidDate"),
        ({"reservation_time": "bad", "people": 0}, "InvalidTime"),
        ({"people": 0, "reservation_date": CLOSED_DAY}, "InvalidPartySize"),
        ({"reservation_date": "2026-10-13", "reservation_time": "09:00"}, "ClosedDay"),
        ({"reservation_date": "2026-10-14", "reservation_time": "09:00"}, "NotInFuture"),
        ({"reservation_time": "22:00", "status": "seated"}, "OutsideHours"),
        ({"status": "seated", "last_name": 7}, "InvalidInitialStatus"),
    ],
)
def test_first_failing_check_decides_the_kind(policy, overrides, expected):
    assert _kind(reservation_payload(**overrides), policy) == expected


def test_empty_payload_stops_at_required_fields(policy):
    checks = reservation_create_checks(policy, NOW)
    assert checks[0]({}) == Rejection("MissingField", "A 'first_name' property is required.")
    assert _kind({}, policy) == "MissingField"


def test_individual_checks_are_pure_predicates(policy):
    payload = reservation_payload()

    assert has_fields("first_name")(payload) is None
    assert has_only_fields("first_name")(payload).kind == "UnknownField"
    assert valid_date(payload) is None
    assert valid_time(payload) is None
    assert valid_party_size(payload) is None
    assert not_closed_day(policy)(payload) is None
    assert in_future(policy, NOW)(payload) is None
    assert within_operating_hours(policy)(payload) is None
    assert payload == reservation_payload()


def test_in_future_defaults_to_current_clock(policy):
    assert in_future(policy)(reservation_payload(reservation_date="2020-01-01")).kind == "NotInFuture"
    assert in_future(policy)(reservation_payload(reservation_date="2999-01-01")) is None


def test_run_checks_stops_at_first_rejection():
    calls = []

    def first(payload):
        calls.append("first")
        return Rejection("First", "first failed")

    def second(payload):
        calls.append("second")
        return None

    with pytest.raises(ValidationError) as excinfo:
        run_checks({}, [first, second])

    assert excinfo.value.kind == "First"
    assert excinfo.value.message == "first failed"
    assert calls == ["first"]


def test_valid_table():
    draft = validate_new_table({"table_name": "A1", "capacity": 2})
    assert draft.table_name == "A1"
    assert draft.capacity == 2


@pytest.mark.parametrize(
    ("payload", "expected"),
    [
        ({"capacity": 2}, "MissingField"),
        ({"table_name": "A1"}, "MissingField"),
        ({"table_name": "A1", "capacity": 2, "status": "Free"}, "UnknownField"),
        ({"table_name": "A", "capacity": 2}, "InvalidTableName"),
        ({"table_name": "A", "capacity": "two"}, "InvalidTableName"),
        ({"table_name": "A1", "capacity": "2"}, "InvalidCapacity"),
        ({"table_name": "A1", "capacity": 0}, "InvalidCapacity"),
        ({"table_name": "A1", "capacity": False}, "InvalidCapacity"),
    ],
)
def test_invalid_table(payload, expected):
    with pytest.raises(ValidationError) as excinfo:
        run_checks(payload, TABLE_CREATE_CHECKS)
    assert excinfo.value.kind == expected


def test_open_day_fixture_is_open(policy):
    assert date.fromisoformat(OPEN_DAY).weekday() != policy.closed_weekday
    assert date.fromisoformat(CLOSED_DAY).weekday() == policy.closed_weekday
    assert NOW < datetime(2026, 10, 21, tzinfo=timezone.utc)


@pytest.mark.parametrize(("value", "expected"), [(7, 7), ("42", 42), ("007", 7), (2**31 - 1, 2**31 - 1)])
def test_parse_identifier(value, expected):
    assert parse_identifier(value) == expected


@pytest.mark.parametrize("value", ["abc", "4.2", "-1", "0", "12\n", "", "\u0661", 0, True, 1.0, None, str(2**31)])
def test_parse_identifier_rejects_non_ids(value):
    assert parse_identifier(value) is None
