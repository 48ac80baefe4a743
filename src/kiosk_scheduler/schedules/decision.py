# src/kiosk_scheduler/schedules/decision.py

"""
Due check.

A schedule gets one generation opportunity per calendar day: it is due when
today is strictly after the date it was last generated on. Comparing dates
(not elapsed time) keeps the answer stable however often the sweep runs and
however much the timer jitters.
"""

from __future__ import annotations

from datetime import date, datetime

from .models import Recurrence, Schedule, Weekday


def weekday_of(now: datetime) -> Weekday:
    # isoweekday: Mon=1..Sun=7 -> Sun=0..Sat=6
    return Weekday(now.isoweekday() % 7)


def _date_in_zone_of(ts: datetime, now: datetime) -> date:
    """
    Calendar date of ts, read in the same zone as now.

    now should carry real zone rules (a ZoneInfo). A fixed-offset now applies
    today's offset to ts, which puts stamps near midnight on the wrong date
    when ts was written before a DST change.
    """
    if ts.tzinfo is None or now.tzinfo is None:
        if ts.tzinfo is not None:
            # now is naive (local wall time): read ts in the local zone too.
            return ts.astimezone().date()
        return ts.date()
    return ts.astimezone(now.tzinfo).date()


def generated_today(schedule: Schedule, now: datetime) -> bool:
    """True if the last generation falls on now's date (or later, on clock skew)."""
    if schedule.last_generated is None:
        return False
    return _date_in_zone_of(schedule.last_generated, now) >= now.date()


def is_scheduled_day(schedule: Schedule, now: datetime) -> bool:
    # Empty days_of_week means every day.
    if not schedule.days_of_week:
        return True
    return weekday_of(now) in schedule.days_of_week


def is_due(schedule: Schedule, now: datetime) -> bool:
    if schedule.recurrence is Recurrence.DAILY:
        return not generated_today(schedule, now)

    if schedule.recurrence is Recurrence.WEEKLY:
        if not is_scheduled_day(schedule, now):
            return False
        return not generated_today(schedule, now)

    return False
