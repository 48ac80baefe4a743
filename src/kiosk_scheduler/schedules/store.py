# src/kiosk_scheduler/schedules/store.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
import uuid
from collections.abc import Iterable, Iterator
from datetime import datetime
from pathlib import Path

from ..core.errors import QueryFailure, StoreError, StoreUnavailable, WriteFailure
from .models import (
    NewTask,
    Recurrence,
    ScheduleRecord,
    Task,
    encode_days_of_week,
    format_timestamp,
    parse_days_of_week,
    parse_timestamp,
)

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return uuid.uuid4().hex[:15]


def _is_unavailable(e: sqlite3.Error) -> bool:
    if not isinstance(e, sqlite3.OperationalError):
        return False
    msg = str(e).lower()
    return "no such table" in msg or "unable to open" in msg or "disk i/o" in msg


@contextlib.contextmanager
def _translate_errors(op: str, failure: type[StoreError]) -> Iterator[None]:
    """Re-raise sqlite3 errors as StoreUnavailable or the given failure type."""
    try:
        yield
    except sqlite3.Error as e:
        if _is_unavailable(e):
            raise StoreUnavailable(f"{op}: {e}") from e
        raise failure(f"{op}: {e}") from e


class _SQLiteStore:
    """
    Shared SQLite plumbing for the schedule and task stores.

    Both live in one database file. The schema is intentionally simple and
    migration-safe:
    - create tables if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        with _translate_errors("ensure schema", StoreUnavailable):
            self._ensure_schema()

    @property
    def db_path(self) -> Path:
        return self._db_path

    def close(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        return

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()

            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS schedules (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    child TEXT NOT NULL,
                    priority INTEGER,
                    recurrence TEXT NOT NULL DEFAULT 'daily',
                    days_of_week TEXT NOT NULL DEFAULT '[]',
                    time_period TEXT NOT NULL DEFAULT '',
                    active INTEGER NOT NULL DEFAULT 1,
                    last_generated TEXT,
                    created_at TEXT,
                    updated_at TEXT
                )
                """
            )
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    child TEXT NOT NULL,
                    priority INTEGER,
                    completed INTEGER NOT NULL DEFAULT 0,
                    schedule TEXT,
                    generated_at TEXT,
                    visible_from TEXT,
                    completed_at TEXT
                )
                """
            )

            def add_col(table: str, name: str, decl: str) -> None:
                cur.execute(f"PRAGMA table_info({table})")
                cols = {row["name"] for row in cur.fetchall()}
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE {table} ADD COLUMN {name} {decl}")
                logger.info("Store migration: added column %s.%s", table, name)

            add_col("schedules", "time_period", "TEXT NOT NULL DEFAULT ''")
            add_col("schedules", "last_generated", "TEXT")
            add_col("schedules", "created_at", "TEXT")
            add_col("schedules", "updated_at", "TEXT")
            add_col("tasks", "visible_from", "TEXT")
            add_col("tasks", "completed_at", "TEXT")

            cur.execute("CREATE INDEX IF NOT EXISTS idx_schedules_active ON schedules(active)")
            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_child_open ON tasks(child, completed)")
            try:
                # At most one incomplete task per (schedule, child).
                cur.execute(
                    "CREATE UNIQUE INDEX IF NOT EXISTS uq_tasks_open_schedule_child "
                    "ON tasks(schedule, child) WHERE completed = 0 AND schedule IS NOT NULL"
                )
            except sqlite3.IntegrityError:
                logger.warning(
                    "Store has duplicate incomplete tasks; uniqueness index not created db=%s",
                    self._db_path,
                )

            conn.commit()
        finally:
            conn.close()


class ScheduleStore(_SQLiteStore):
    """SQLite schedule repository."""

    def __init__(self, db_path: str | Path = "kiosk.sqlite3") -> None:
        super().__init__(db_path)
        logger.info("ScheduleStore ready db=%s total=%s", self._db_path, self.count_schedules())

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> ScheduleRecord:
        return ScheduleRecord(
            id=str(row["id"]),
            title=str(row["title"] or ""),
            child=str(row["child"] or ""),
            priority=int(row["priority"]) if row["priority"] is not None else None,
            recurrence=row["recurrence"],
            days_of_week=row["days_of_week"],
            time_period=row["time_period"],
            active=bool(row["active"]),
            last_generated=row["last_generated"],
        )

    # ---- ScheduleRepo ----

    def list_active(self) -> list[ScheduleRecord]:
        with _translate_errors("list active schedules", QueryFailure):
            conn = self._get_conn()
            try:
                cur = conn.cursor()
                cur.execute("SELECT * FROM schedules WHERE active = 1 ORDER BY created_at ASC, id ASC")
                return [self._row_to_record(r) for r in cur.fetchall()]
            finally:
                conn.close()

    def update_last_generated(self, schedule_id: str, timestamp: datetime) -> None:
        stamp = format_timestamp(timestamp)
        with _translate_errors("update last_generated", WriteFailure):
            conn = self._get_conn()
            try:
                cur = conn.cursor()
                cur.execute(
                    "UPDATE schedules SET last_generated = ?, updated_at = ? WHERE id = ?",
                    (stamp, stamp, schedule_id),
                )
                conn.commit()
                updated = cur.rowcount
            finally:
                conn.close()
        if updated != 1:
            raise WriteFailure(f"update last_generated: schedule {schedule_id!r} not found")

    # ---- management (external actor / CLI / tests) ----

    def add_schedule(
        self,
        *,
        title: str,
        child: str,
        recurrence: Recurrence | str,
        days_of_week: Iterable[int | str] = (),
        priority: int | None = None,
        time_period: str = "",
        active: bool = True,
        last_generated: datetime | None = None,
        schedule_id: str | None = None,
        now: datetime | None = None,
    ) -> str:
        if not title or not title.strip():
            raise ValueError("title is required")
        if not child or not child.strip():
            raise ValueError("child is required")
        rec = Recurrence.from_db(str(recurrence))
        if rec is None:
            raise ValueError(f"unknown recurrence: {recurrence!r}")
        days = parse_days_of_week(list(days_of_week))

        sid = schedule_id or _new_id()
        created = format_timestamp(now or datetime.now().astimezone())

        with _translate_errors("add schedule", WriteFailure):
            conn = self._get_conn()
            try:
                conn.execute(
                    """
                    INSERT INTO schedules(
                        id, title, child, priority, recurrence, days_of_week,
                        time_period, active, last_generated, created_at, updated_at
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        sid,
                        title.strip(),
                        child.strip(),
                        priority,
                        rec.value,
                        encode_days_of_week(days),
                        (time_period or "").strip(),
                        1 if active else 0,
                        format_timestamp(last_generated),
                        created,
                        created,
                    ),
                )
                conn.commit()
            finally:
                conn.close()

        logger.debug("Schedule added id=%s title=%s recurrence=%s", sid, title, rec.value)
        return sid

    def set_active(self, schedule_id: str, active: bool) -> None:
        with _translate_errors("set active", WriteFailure):
            conn = self._get_conn()
            try:
                conn.execute(
                    "UPDATE schedules SET active = ? WHERE id = ?",
                    (1 if active else 0, schedule_id),
                )
                conn.commit()
            finally:
                conn.close()

    def get_schedule(self, schedule_id: str) -> ScheduleRecord | None:
        with _translate_errors("get schedule", QueryFailure):
            conn = self._get_conn()
            try:
                cur = conn.cursor()
                cur.execute("SELECT * FROM schedules WHERE id = ?", (schedule_id,))
                row = cur.fetchone()
                return self._row_to_record(row) if row else None
            finally:
                conn.close()

    def list_schedules(self) -> list[ScheduleRecord]:
        with _translate_errors("list schedules", QueryFailure):
            conn = self._get_conn()
            try:
                cur = conn.cursor()
                cur.execute("SELECT * FROM schedules ORDER BY created_at ASC, id ASC")
                return [self._row_to_record(r) for r in cur.fetchall()]
            finally:
                conn.close()

    def count_schedules(self) -> int:
        with _translate_errors("count schedules", QueryFailure):
            conn = self._get_conn()
            try:
                (n,) = conn.execute("SELECT COUNT(*) FROM schedules").fetchone()
                return int(n)
            finally:
                conn.close()


class TaskStore(_SQLiteStore):
    """SQLite task repository."""

    def __init__(self, db_path: str | Path = "kiosk.sqlite3") -> None:
        super().__init__(db_path)
        logger.info("TaskStore ready db=%s total=%s", self._db_path, self.count_tasks())

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        return Task(
            id=str(row["id"]),
            title=str(row["title"] or ""),
            child=str(row["child"] or ""),
            priority=int(row["priority"]) if row["priority"] is not None else None,
            completed=bool(row["completed"]),
            schedule=row["schedule"],
            generated_at=parse_timestamp(row["generated_at"], field_name="generated_at"),
            visible_from=parse_timestamp(row["visible_from"], field_name="visible_from"),
            completed_at=parse_timestamp(row["completed_at"], field_name="completed_at"),
        )

    # ---- TaskRepo ----

    def find_incomplete(self, schedule_id: str, child_id: str) -> Task | None:
        with _translate_errors("find incomplete task", QueryFailure):
            conn = self._get_conn()
            try:
                cur = conn.cursor()
                cur.execute(
                    """
                    SELECT *
                    FROM tasks
                    WHERE schedule = ?
                      AND child = ?
                      AND completed = 0
                    ORDER BY generated_at ASC
                        LIMIT 1
                    """,
                    (schedule_id, child_id),
                )
                row = cur.fetchone()
            finally:
                conn.close()
        return self._row_to_task(row) if row else None

    def create(self, task: NewTask) -> str:
        task_id = _new_id()
        with _translate_errors("create task", WriteFailure):
            conn = self._get_conn()
            try:
                conn.execute(
                    """
                    INSERT INTO tasks(
                        id, title, child, priority, completed,
                        schedule, generated_at, visible_from
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        task_id,
                        task.title,
                        task.child,
                        task.priority,
                        1 if task.completed else 0,
                        task.schedule,
                        format_timestamp(task.generated_at),
                        format_timestamp(task.visible_from),
                    ),
                )
                conn.commit()
            finally:
                conn.close()

        logger.debug("Task added id=%s schedule=%s child=%s", task_id, task.schedule, task.child)
        return task_id

    # ---- kiosk side ----

    def complete_task(self, task_id: str, now: datetime | None = None) -> bool:
        """Mark a task done. Returns False if it was unknown or already completed."""
        stamp = format_timestamp(now or datetime.now().astimezone())
        with _translate_errors("complete task", WriteFailure):
            conn = self._get_conn()
            try:
                cur = conn.cursor()
                cur.execute(
                    "UPDATE tasks SET completed = 1, completed_at = ? WHERE id = ? AND completed = 0",
                    (stamp, task_id),
                )
                conn.commit()
                return cur.rowcount == 1
            finally:
                conn.close()

    def get_task(self, task_id: str) -> Task | None:
        with _translate_errors("get task", QueryFailure):
            conn = self._get_conn()
            try:
                row = conn.execute("SELECT * FROM tasks WHERE id = ?", (task_id,)).fetchone()
            finally:
                conn.close()
        return self._row_to_task(row) if row else None

    def list_tasks_for_schedule(self, schedule_id: str) -> list[Task]:
        with _translate_errors("list tasks for schedule", QueryFailure):
            conn = self._get_conn()
            try:
                rows = conn.execute(
                    "SELECT * FROM tasks WHERE schedule = ? ORDER BY generated_at ASC",
                    (schedule_id,),
                ).fetchall()
            finally:
                conn.close()
        return [self._row_to_task(r) for r in rows]

    def list_visible_tasks(self, child_id: str, now: datetime) -> list[Task]:
        """
        Incomplete tasks the kiosk should show for a child at now.

        A task without visible_from is always visible.
        """
        with _translate_errors("list visible tasks", QueryFailure):
            conn = self._get_conn()
            try:
                rows = conn.execute(
                    "SELECT * FROM tasks WHERE child = ? AND completed = 0 ORDER BY generated_at ASC",
                    (child_id,),
                ).fetchall()
            finally:
                conn.close()

        tasks = [self._row_to_task(r) for r in rows]
        # Offsets may differ between rows, so compare as datetimes, not text.
        return [t for t in tasks if t.visible_from is None or t.visible_from <= now]

    def count_tasks(self) -> int:
        with _translate_errors("count tasks", QueryFailure):
            conn = self._get_conn()
            try:
                (n,) = conn.execute("SELECT COUNT(*) FROM tasks").fetchone()
                return int(n)
            finally:
                conn.close()
