"""Habit Tracker - local habit tracking with a durable JSON store."""

__version__ = "0.1.0"
