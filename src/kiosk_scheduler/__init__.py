"""Kiosk scheduler: generates kiosk tasks from recurring daily/weekly schedules."""

__version__ = "0.1.0"
