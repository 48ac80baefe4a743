# src/kiosk_scheduler/schedules/labels.py

from __future__ import annotations

from typing import Literal

from .models import Recurrence, Schedule

Locale = Literal["en", "de"]

_DAY_NAMES: dict[str, list[str]] = {
    "en": ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"],
    "de": ["Sonntag", "Montag", "Dienstag", "Mittwoch", "Donnerstag", "Freitag", "Samstag"],
}

_DAY_SHORT: dict[str, list[str]] = {
    "en": ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"],
    "de": ["So", "Mo", "Di", "Mi", "Do", "Fr", "Sa"],
}

_RECURRENCE: dict[str, dict[str, str]] = {
    "en": {"daily": "Daily", "weekly": "Weekly"},
    "de": {"daily": "Täglich", "weekly": "Wöchentlich"},
}


def weekday_name(day: int, locale: Locale = "en") -> str:
    names = _DAY_NAMES.get(locale, _DAY_NAMES["en"])
    return names[day] if 0 <= day < len(names) else ""


def weekday_short(day: int, locale: Locale = "en") -> str:
    names = _DAY_SHORT.get(locale, _DAY_SHORT["en"])
    return names[day] if 0 <= day < len(names) else ""


def describe_recurrence(schedule: Schedule, locale: Locale = "en") -> str:
    """Short human label, e.g. "Daily" or "Weekly: Mon, Wed, Fri"."""
    words = _RECURRENCE.get(locale, _RECURRENCE["en"])

    if schedule.recurrence is Recurrence.DAILY:
        return words["daily"]

    if schedule.recurrence is Recurrence.WEEKLY:
        days = schedule.days_of_week
        if not days:
            return words["weekly"]
        if len(days) == 7:
            return words["daily"]
        names = ", ".join(weekday_short(d, locale) for d in days)
        return f"{words['weekly']}: {names}"

    return ""
