# tests/test_models.py

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from kiosk_scheduler.core.errors import ParseFailure
from kiosk_scheduler.schedules.models import (
    Recurrence,
    ScheduleRecord,
    Weekday,
    parse_days_of_week,
    parse_timestamp,
    parse_weekday,
)

from .fakes import at


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, ()),
        ("", ()),
        ("null", ()),
        ("[]", ()),
        ([], ()),
        ("[5, 1, 3]", (Weekday.MONDAY, Weekday.WEDNESDAY, Weekday.FRIDAY)),
        ('["fri", "Mon", "mon"]', (Weekday.MONDAY, Weekday.FRIDAY)),
        (["0", 6], (Weekday.SUNDAY, Weekday.SATURDAY)),
    ],
)
def test_parse_days_of_week(raw, expected) -> None:
    assert parse_days_of_week(raw) == expected


@pytest.mark.parametrize("raw", ["[7]", "[-1]", '["someday"]', "{}", "5", "mon,wed", "[true]"])
def test_parse_days_of_week_rejects(raw) -> None:
    with pytest.raises(ParseFailure) as exc:
        parse_days_of_week(raw)
    assert exc.value.field == "days_of_week"


def test_parse_weekday_rejects_booleans() -> None:
    with pytest.raises(ParseFailure):
        parse_weekday(True)


def test_recurrence_from_db() -> None:
    assert Recurrence.from_db("daily") is Recurrence.DAILY
    assert Recurrence.from_db(" WEEKLY ") is Recurrence.WEEKLY
    assert Recurrence.from_db("monthly") is None
    assert Recurrence.from_db("") is None
    assert Recurrence.from_db(None) is None


def test_parse_timestamp() -> None:
    assert parse_timestamp(None) is None
    assert parse_timestamp("  ") is None
    assert parse_timestamp("2026-01-23T08:00:00+01:00") == at(2026, 1, 23)
    assert parse_timestamp("2026-01-23T07:00:00") == datetime(2026, 1, 23, 7, tzinfo=timezone.utc)

    with pytest.raises(ParseFailure) as exc:
        parse_timestamp("yesterday", field_name="last_generated")
    assert exc.value.field == "last_generated"


def test_record_parse_keeps_unknown_recurrence_as_none() -> None:
    record = ScheduleRecord(
        id="s1",
        title="Walk the dog",
        child="c1",
        priority=0,
        recurrence="fortnightly",
        days_of_week=None,
        time_period=None,
        active=True,
        last_generated="",
    )
    schedule = record.parse()
    assert schedule.recurrence is None
    assert schedule.days_of_week == ()
    assert schedule.time_period == ""
    assert schedule.last_generated is None
    assert schedule.priority == 0


def test_record_from_schedule_roundtrip(make_schedule) -> None:
    schedule = make_schedule(
        recurrence=Recurrence.WEEKLY,
        days_of_week=(Weekday.TUESDAY,),
        last_generated=at(2026, 1, 20),
    )
    assert ScheduleRecord.from_schedule(schedule).parse() == schedule
