"""
Schedule subsystem.

Components:
- models.py: data structures (Schedule, ScheduleRecord, Task) and field codecs
- decision.py: is_due(), the per-day due check
- generator.py: turns one due schedule into at most one incomplete task
- sweep.py: one pass over all active schedules + the periodic run loop
- store.py: SQLite-backed schedule/task storage
- time_periods.py, labels.py: morning/afternoon/evening windows, display labels
"""
