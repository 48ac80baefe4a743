# src/kiosk_scheduler/core/clock.py

from __future__ import annotations

import contextlib
import logging
import os
from datetime import datetime, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

_LOCALTIME = "/etc/localtime"


def resolve_timezone(name: str | None) -> tzinfo | None:
    """
    Map a configured IANA zone name to a tzinfo.

    Empty / unknown names return None, meaning "the evaluator's local zone".
    """
    name = (name or "").strip()
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown time zone %r; using the local zone.", name)
        return None


def local_timezone() -> tzinfo:
    """
    The host's zone with its full rules (DST transitions included).

    Lookup order: $TZ (IANA name), then /etc/localtime. As a last resort the
    current fixed UTC offset is used, which is wrong across a DST change.
    """
    name = os.environ.get("TZ", "").strip().lstrip(":")
    if name:
        with contextlib.suppress(ZoneInfoNotFoundError, ValueError):
            return ZoneInfo(name)

    with contextlib.suppress(OSError, ValueError):
        with open(_LOCALTIME, "rb") as fh:
            return ZoneInfo.from_file(fh, key="localtime")

    fallback = datetime.now().astimezone().tzinfo
    logger.warning("Local time zone rules not found; using fixed offset %s.", fallback)
    return fallback


class SystemClock:
    """
    Wall clock returning aware datetimes.

    The zone of the returned value is the zone used for "today" boundaries, so
    all sweeps driven by one clock agree on where a calendar day starts.
    """

    def __init__(self, tz: tzinfo | None = None) -> None:
        self._tz = tz if tz is not None else local_timezone()

    @property
    def tz(self) -> tzinfo:
        return self._tz

    def now(self) -> datetime:
        return datetime.now(self._tz)
