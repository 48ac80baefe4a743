# src/kiosk_scheduler/cli/main.py

"""
CLI entrypoint.

Subcommands:
- run (default): sweep at start, then every KIOSK_SWEEP_INTERVAL_SECONDS until SIGINT/SIGTERM
- sweep: one sweep now, print the report
- schedules: list stored schedules
- tasks CHILD: list a child's currently visible incomplete tasks
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import signal
import sys

from ..config import get_settings
from ..core.errors import ParseFailure, SchedulerError
from ..core.state import AppState
from ..logging_setup import setup_logging
from ..schedules.labels import describe_recurrence
from .bootstrap import create_initial_state

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="kiosk-scheduler",
        description="Generate kiosk tasks from recurring schedules.",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Override KIOSK_LOG_LEVEL for the console",
    )
    sub = parser.add_subparsers(dest="command")
    sub.add_parser("run", help="Run the periodic sweep loop (default)")
    sub.add_parser("sweep", help="Run one sweep now and print the report")
    schedules = sub.add_parser("schedules", help="List stored schedules")
    schedules.add_argument("--locale", choices=["en", "de"], default="en")
    tasks = sub.add_parser("tasks", help="List a child's visible incomplete tasks")
    tasks.add_argument("child", help="Child id")
    return parser.parse_args(argv)


async def _open_state(settings, stop: asyncio.Event) -> AppState | None:
    """Build AppState, retrying every sweep interval while the store is unavailable."""
    retry_s = max(0.01, float(settings.sweep_interval_seconds))
    while not stop.is_set():
        try:
            return create_initial_state(settings=settings)
        except (SchedulerError, OSError) as e:
            logger.error("Store unavailable, retrying in %.0f seconds: %s", retry_s, e)
        with contextlib.suppress(asyncio.TimeoutError):
            await asyncio.wait_for(stop.wait(), timeout=retry_s)
    return None


async def _run_loop(settings, stop: asyncio.Event | None = None) -> None:
    if stop is None:
        stop = asyncio.Event()
        loop = asyncio.get_running_loop()

        def _handle_signal(signum: int) -> None:
            logger.info("Signal %s received, shutting down...", signum)
            stop.set()

        for sig in (signal.SIGINT, signal.SIGTERM):
            # Some platforms (Windows) do not support add_signal_handler.
            with contextlib.suppress(NotImplementedError, RuntimeError):
                loop.add_signal_handler(sig, _handle_signal, sig)

    state = await _open_state(settings, stop)
    if state is None:
        return

    await state.orchestrator.run_forever(
        stop,
        interval_seconds=state.settings.sweep_interval_seconds,
        run_immediately=state.settings.run_on_start,
    )


def _report_store_error(action: str, e: Exception) -> int:
    logger.error("%s failed: %s", action, e)
    print(f"{action.lower()} failed: {e}", file=sys.stderr)
    return 1


def cmd_sweep(state: AppState) -> int:
    try:
        report = state.orchestrator.run_sweep(state.clock.now())
    except SchedulerError as e:
        logger.error("Sweep aborted: %s", e)
        print(f"sweep aborted: {e}", file=sys.stderr)
        return 1

    print(report.summary())
    for o in report.outcomes:
        extra = f" task={o.task_id}" if o.task_id else ""
        if o.reason:
            extra += f" reason={o.reason}"
        print(f"  {o.schedule_id}: {o.status.value}{extra}")
    return 0


def cmd_schedules(state: AppState, locale: str = "en") -> int:
    try:
        records = state.schedule_store.list_schedules()
    except SchedulerError as e:
        return _report_store_error("Listing schedules", e)

    for record in records:
        try:
            schedule = record.parse()
        except ParseFailure as e:
            print(f"{record.id}  {record.title!r}  <malformed: {e}>")
            continue
        last = schedule.last_generated.isoformat() if schedule.last_generated else "never"
        flag = "active" if schedule.active else "inactive"
        print(
            f"{schedule.id}  {schedule.title!r}  child={schedule.child}  "
            f"{describe_recurrence(schedule, locale) or schedule.recurrence or '?'}  "
            f"{schedule.time_period or '-'}  {flag}  last={last}"
        )
    return 0


def cmd_tasks(state: AppState, child: str) -> int:
    try:
        tasks = state.task_store.list_visible_tasks(child, state.clock.now())
    except SchedulerError as e:
        return _report_store_error("Listing tasks", e)

    for task in tasks:
        prio = "-" if task.priority is None else str(task.priority)
        print(f"{task.id}  {task.title!r}  priority={prio}  schedule={task.schedule or '-'}")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    settings = get_settings()

    level_name = (args.log_level or str(getattr(settings, "log_level", "INFO"))).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    command = args.command or "run"

    if command == "run":
        logger.info("Starting %s...", settings.app_name)
        try:
            asyncio.run(_run_loop(settings))
        except KeyboardInterrupt:
            logger.info("Interrupted.")
        logger.info("Bye.")
        return 0

    try:
        state = create_initial_state(settings=settings)
    except (SchedulerError, OSError) as e:
        return _report_store_error("Opening the store", e)

    if command == "sweep":
        return cmd_sweep(state)
    if command == "schedules":
        return cmd_schedules(state, args.locale)
    return cmd_tasks(state, args.child)


if __name__ == "__main__":
    sys.exit(main())
