# src/kiosk_scheduler/core/errors.py

"""
Scheduler error hierarchy.

Stores translate their backend errors into these types so the core never
depends on sqlite3 (or any other driver) directly.

Hierarchy:
    SchedulerError
    ├── StoreError
    │   ├── StoreUnavailable   (abort the sweep)
    │   ├── QueryFailure       (skip one schedule, or abort if listing failed)
    │   └── WriteFailure       (skip one schedule, retried next sweep)
    └── ParseFailure           (malformed stored data; schedule is never due)
"""

from __future__ import annotations


class SchedulerError(Exception):
    """Base class for all kiosk scheduler exceptions."""


class StoreError(SchedulerError):
    """Base for repository errors."""


class StoreUnavailable(StoreError):
    """The store cannot be reached or a required table is missing."""


class QueryFailure(StoreError):
    """A read (active schedules, duplicate-task lookup) failed."""


class WriteFailure(StoreError):
    """Task creation or last-generated update failed."""


class ParseFailure(SchedulerError):
    """A stored field (days of week, timestamp) could not be parsed."""

    def __init__(self, field: str, raw: object, detail: str = "") -> None:
        self.field = field
        self.raw = raw
        msg = f"cannot parse {field}={raw!r}"
        if detail:
            msg = f"{msg}: {detail}"
        super().__init__(msg)
