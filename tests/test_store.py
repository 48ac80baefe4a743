# tests/test_store.py

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from pathlib import Path

import pytest

from kiosk_scheduler.core.errors import ParseFailure, StoreUnavailable, WriteFailure
from kiosk_scheduler.schedules.models import NewTask, Recurrence, Weekday
from kiosk_scheduler.schedules.store import ScheduleStore, TaskStore

from .fakes import CET, at


def _new_task(schedule: str = "s1", child: str = "c1", **kw) -> NewTask:
    values = dict(title="Feed the cat", child=child, priority=None, schedule=schedule, generated_at=at(2026, 1, 23))
    values.update(kw)
    return NewTask(**values)


def test_schedule_roundtrip_keeps_field_encoding(schedule_store: ScheduleStore) -> None:
    sid = schedule_store.add_schedule(
        title="Piano",
        child="c1",
        recurrence="weekly",
        days_of_week=[5, 1, "wed", 1],
        priority=0,
        time_period="afternoon",
        last_generated=at(2026, 1, 21, 7, 30),
    )

    record = schedule_store.get_schedule(sid)
    assert record is not None
    assert record.days_of_week == "[1, 3, 5]"
    assert record.last_generated == "2026-01-21T07:30:00+01:00"

    schedule = record.parse()
    assert schedule.recurrence is Recurrence.WEEKLY
    assert schedule.days_of_week == (Weekday.MONDAY, Weekday.WEDNESDAY, Weekday.FRIDAY)
    assert schedule.priority == 0
    assert schedule.time_period == "afternoon"
    assert schedule.last_generated == at(2026, 1, 21, 7, 30)


def test_priority_unset_stays_none(schedule_store: ScheduleStore) -> None:
    sid = schedule_store.add_schedule(title="Read", child="c1", recurrence=Recurrence.DAILY)
    assert schedule_store.get_schedule(sid).parse().priority is None


@pytest.mark.parametrize(
    "kwargs",
    [
        dict(title="", child="c1", recurrence="daily"),
        dict(title="x", child=" ", recurrence="daily"),
        dict(title="x", child="c1", recurrence="hourly"),
    ],
)
def test_add_schedule_validates_input(schedule_store: ScheduleStore, kwargs) -> None:
    with pytest.raises(ValueError):
        schedule_store.add_schedule(**kwargs)


def test_add_schedule_rejects_bad_weekday(schedule_store: ScheduleStore) -> None:
    with pytest.raises(ParseFailure):
        schedule_store.add_schedule(title="x", child="c1", recurrence="weekly", days_of_week=[7])


def test_list_active_skips_inactive(schedule_store: ScheduleStore) -> None:
    a = schedule_store.add_schedule(title="a", child="c1", recurrence="daily")
    b = schedule_store.add_schedule(title="b", child="c1", recurrence="daily")
    schedule_store.set_active(b, False)

    assert [r.id for r in schedule_store.list_active()] == [a]
    assert schedule_store.count_schedules() == 2


def test_update_last_generated(schedule_store: ScheduleStore) -> None:
    sid = schedule_store.add_schedule(title="a", child="c1", recurrence="daily")
    schedule_store.update_last_generated(sid, at(2026, 1, 23, 8, 10))
    assert schedule_store.get_schedule(sid).parse().last_generated == at(2026, 1, 23, 8, 10)


def test_update_last_generated_unknown_schedule(schedule_store: ScheduleStore) -> None:
    with pytest.raises(WriteFailure):
        schedule_store.update_last_generated("missing", at(2026, 1, 23))


def test_malformed_stored_days_surface_on_parse(schedule_store: ScheduleStore) -> None:
    sid = schedule_store.add_schedule(title="a", child="c1", recurrence="weekly")
    with sqlite3.connect(schedule_store.db_path) as conn:
        conn.execute("UPDATE schedules SET days_of_week = 'mon,wed' WHERE id = ?", (sid,))

    (record,) = schedule_store.list_active()
    with pytest.raises(ParseFailure):
        record.parse()


def test_space_separated_zulu_timestamps_are_read_as_utc(schedule_store: ScheduleStore) -> None:
    sid = schedule_store.add_schedule(title="a", child="c1", recurrence="daily")
    with sqlite3.connect(schedule_store.db_path) as conn:
        conn.execute("UPDATE schedules SET last_generated = '2026-01-22 23:30:00.000Z' WHERE id = ?", (sid,))

    last = schedule_store.get_schedule(sid).parse().last_generated
    assert last == datetime(2026, 1, 22, 23, 30, tzinfo=timezone.utc)


def test_task_create_and_find_incomplete(task_store: TaskStore) -> None:
    task_id = task_store.create(_new_task(priority=2, visible_from=at(2026, 1, 23, 12)))

    found = task_store.find_incomplete("s1", "c1")
    assert found is not None
    assert found.id == task_id
    assert found.priority == 2
    assert found.completed is False
    assert found.generated_at == at(2026, 1, 23)
    assert found.visible_from == at(2026, 1, 23, 12)

    assert task_store.find_incomplete("s1", "other-child") is None
    assert task_store.find_incomplete("s2", "c1") is None


def test_completed_task_is_not_incomplete(task_store: TaskStore) -> None:
    task_id = task_store.create(_new_task())
    assert task_store.complete_task(task_id, at(2026, 1, 23, 18))
    assert not task_store.complete_task(task_id)

    assert task_store.find_incomplete("s1", "c1") is None
    done = task_store.get_task(task_id)
    assert done.completed is True
    assert done.completed_at == at(2026, 1, 23, 18)


def test_second_incomplete_task_for_pair_is_rejected(task_store: TaskStore) -> None:
    task_store.create(_new_task())
    with pytest.raises(WriteFailure):
        task_store.create(_new_task())

    # Once completed, a new one may be created.
    (open_task,) = task_store.list_tasks_for_schedule("s1")
    task_store.complete_task(open_task.id)
    task_store.create(_new_task(generated_at=at(2026, 1, 24)))
    assert task_store.count_tasks() == 2


def test_list_visible_tasks_honours_visible_from(task_store: TaskStore) -> None:
    task_store.create(_new_task(schedule="morning", title="Morning", visible_from=at(2026, 1, 23, 6)))
    task_store.create(_new_task(schedule="evening", title="Evening", visible_from=at(2026, 1, 23, 18)))
    task_store.create(_new_task(schedule="legacy", title="Legacy", visible_from=None))
    task_store.create(_new_task(schedule="exact", title="Exact", visible_from=at(2026, 1, 23, 12)))

    now = at(2026, 1, 23, 12)
    titles = {t.title for t in task_store.list_visible_tasks("c1", now)}
    assert titles == {"Morning", "Legacy", "Exact"}

    # Same instant expressed in UTC.
    now_utc = now.astimezone(timezone.utc)
    assert {t.title for t in task_store.list_visible_tasks("c1", now_utc)} == titles


def test_missing_table_is_store_unavailable(tmp_path: Path) -> None:
    db = tmp_path / "kiosk.sqlite3"
    schedules = ScheduleStore(db)
    tasks = TaskStore(db)
    with sqlite3.connect(db) as conn:
        conn.execute("DROP TABLE tasks")
        conn.execute("DROP TABLE schedules")

    with pytest.raises(StoreUnavailable):
        tasks.find_incomplete("s1", "c1")
    with pytest.raises(StoreUnavailable):
        schedules.list_active()


def test_unopenable_database_is_store_unavailable(tmp_path: Path) -> None:
    blocker = tmp_path / "kiosk.sqlite3"
    blocker.mkdir()
    with pytest.raises(StoreUnavailable):
        ScheduleStore(blocker)


def test_schema_migration_adds_missing_columns(tmp_path: Path) -> None:
    db = tmp_path / "old.sqlite3"
    with sqlite3.connect(db) as conn:
        conn.execute(
            "CREATE TABLE tasks (id TEXT PRIMARY KEY, title TEXT NOT NULL, child TEXT NOT NULL, "
            "priority INTEGER, completed INTEGER NOT NULL DEFAULT 0, schedule TEXT, generated_at TEXT)"
        )
        conn.execute("INSERT INTO tasks(id, title, child) VALUES ('t0', 'Old', 'c1')")

    store = TaskStore(db)

    old = store.get_task("t0")
    assert old.visible_from is None
    assert old.completed_at is None
    assert old.generated_at is None
    assert store.list_visible_tasks("c1", datetime(2026, 1, 23, tzinfo=CET))[0].id == "t0"
