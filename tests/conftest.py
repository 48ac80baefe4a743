# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from kiosk_scheduler.cli.bootstrap import create_initial_state
from kiosk_scheduler.core.state import AppState
from kiosk_scheduler.schedules.store import ScheduleStore, TaskStore
from kiosk_scheduler.schedules.time_periods import TimePeriodSettings

from .fakes import FakeScheduleRepo, FakeTaskRepo, FixedClock, ScheduleFactory, at


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and bootstrap.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="kiosk-test",
        log_level="DEBUG",
        data_dir=tmp_path,
        db_path=tmp_path / "kiosk.sqlite3",
        sweep_interval_seconds=0.01,
        run_on_start=True,
        timezone="",
        time_periods=TimePeriodSettings(),
    )


@pytest.fixture()
def state(settings: SimpleNamespace) -> AppState:
    """
    AppState wired by the real composition root.

    NOTE: We keep real SQLite stores here because their correctness is part of
    what we want to test.
    """
    return create_initial_state(settings=settings)


@pytest.fixture()
def schedule_store(tmp_path: Path) -> ScheduleStore:
    return ScheduleStore(tmp_path / "kiosk.sqlite3")


@pytest.fixture()
def task_store(tmp_path: Path) -> TaskStore:
    return TaskStore(tmp_path / "kiosk.sqlite3")


@pytest.fixture()
def make_schedule() -> ScheduleFactory:
    return ScheduleFactory()


@pytest.fixture()
def schedule_repo() -> FakeScheduleRepo:
    return FakeScheduleRepo()


@pytest.fixture()
def task_repo() -> FakeTaskRepo:
    return FakeTaskRepo()


@pytest.fixture()
def clock() -> FixedClock:
    # Friday 2026-01-23 08:00 +01:00
    return FixedClock(at(2026, 1, 23))
