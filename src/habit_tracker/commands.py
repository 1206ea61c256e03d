"""Command layer for the habit tracker CLI.

Each command loads the store from the configured path, performs exactly one
operation, saves only when that operation mutated the collection, and renders
its result as plain text on stdout.
"""

from __future__ import annotations

import argparse
import logging
from datetime import date
from typing import TextIO

from habit_tracker.config import AppConfig
from habit_tracker.storage.exceptions import InvalidFrequencyError
from habit_tracker.storage.models import Habit, validate_frequency, validate_name
from habit_tracker.storage.store import HabitStore

logger = logging.getLogger(__name__)

# Sentinel accepted by `edit` to clear an optional field
CLEAR_VALUE = "null"


def format_habit(habit: Habit) -> str:
    """Render one habit as a multi-line text block."""

    lines = [f"ID: {habit.id} | {habit.name}"]
    if habit.description:
        lines.append(f"  Description: {habit.description}")
    lines.append(f"  Created: {habit.created_at.date().isoformat()}")
    recent = len(habit.recent_completions())
    if habit.target_frequency is not None:
        rate = habit.completion_rate()
        lines.append(f"  Target: {habit.target_frequency} per week")
        lines.append(f"  This week: {recent}/{habit.target_frequency} ({rate:.0%})")
    else:
        lines.append(f"  This week: {recent}")
    lines.append(f"  Total completions: {len(habit.completions)}")
    if habit.completions:
        lines.append(f"  Last completed: {habit.completions[-1].isoformat()}")
    lines.append(f"  Active: {'yes' if habit.is_active else 'no'}")
    return "\n".join(lines)


def parse_frequency(raw: str) -> int:
    """Parse a frequency flag value.

    Raises:
        InvalidFrequencyError: If the value is not a positive integer
    """
    try:
        value = int(raw)
    except ValueError as error:
        raise InvalidFrequencyError(raw) from error
    validate_frequency(value)
    return value


def cmd_add(args: argparse.Namespace, config: AppConfig, out: TextIO) -> None:
    """Create a habit and add it to the store."""

    frequency = parse_frequency(args.frequency) if args.frequency is not None else None
    habit = Habit.create(args.name, args.description, frequency)
    store = HabitStore.load(config.storage_path)
    store.add(habit)
    store.save()
    logger.info("Added habit %s", habit.id)
    out.write(f"Added habit: '{habit.name}' (ID: {habit.id})\n")


def cmd_list(args: argparse.Namespace, config: AppConfig, out: TextIO) -> None:
    """List active habits, or all habits with --all."""

    store = HabitStore.load(config.storage_path)
    active_only = not args.all
    habits = store.list(active_only=active_only)
    if not habits:
        scope = "active habits" if active_only else "habits"
        out.write(f"No {scope} to display\n")
        return
    out.write("\n".join(format_habit(habit) for habit in habits))
    out.write("\n")


def cmd_show(args: argparse.Namespace, config: AppConfig, out: TextIO) -> None:
    store = HabitStore.load(config.storage_path)
    habit = store.find(args.identifier)
    out.write(format_habit(habit) + "\n")
    if habit.completions:
        out.write("  History: " + ", ".join(day.isoformat() for day in habit.completions) + "\n")


def cmd_complete(args: argparse.Namespace, config: AppConfig, out: TextIO) -> None:
    """Mark a habit complete for today or for --date."""

    store = HabitStore.load(config.storage_path)
    habit = store.find(args.identifier)
    completed_on = habit.mark_complete(args.date)
    store.save()
    out.write(f"Marked complete: '{habit.name}' ({completed_on.isoformat()})\n")


def cmd_remove(args: argparse.Namespace, config: AppConfig, out: TextIO) -> None:
    store = HabitStore.load(config.storage_path)
    removed = store.remove(args.identifier)
    store.save()
    out.write(f"Removed habit: '{removed.name}' (ID: {removed.id})\n")


def cmd_edit(args: argparse.Namespace, config: AppConfig, out: TextIO) -> None:
    """Update name, description, frequency, or active flag of one habit.

    Every new value is validated before the habit is touched, so a rejected
    edit leaves the habit unchanged.
    """
    store = HabitStore.load(config.storage_path)
    habit = store.find(args.identifier)

    if args.name is not None:
        validate_name(args.name)
    frequency: int | None = None
    if args.frequency is not None and args.frequency.lower() != CLEAR_VALUE:
        frequency = parse_frequency(args.frequency)

    changed = False
    if args.name is not None:
        habit.rename(args.name)
        changed = True
    if args.description is not None:
        cleared = args.description.lower() == CLEAR_VALUE
        habit.set_description(None if cleared else args.description)
        changed = True
    if args.frequency is not None:
        habit.set_target_frequency(frequency)
        changed = True
    if args.active is not None:
        habit.set_active(args.active)
        changed = True

    if not changed:
        out.write(f"Nothing to update for '{habit.name}'\n")
        return
    store.save()
    out.write(f"Updated habit: '{habit.name}'\n")


def parse_date(raw: str) -> date:
    """argparse type for YYYY-MM-DD dates."""

    try:
        return date.fromisoformat(raw)
    except ValueError as error:
        msg = f"Invalid date format: {raw}. Expected YYYY-MM-DD format"
        raise argparse.ArgumentTypeError(msg) from error


def parse_bool(raw: str) -> bool:
    """argparse type for true/false flags."""

    lowered = raw.lower()
    if lowered in {"true", "yes", "1"}:
        return True
    if lowered in {"false", "no", "0"}:
        return False
    msg = f"Invalid boolean: {raw}. Expected true or false"
    raise argparse.ArgumentTypeError(msg)


def add_command_parsers(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    """Register the habit subcommands on an argparse subparser collection."""

    add = subparsers.add_parser("add", help="Add a new habit")
    add.add_argument("name", help="Habit name")
    add.add_argument("--description", help="Optional description")
    add.add_argument("--frequency", help="Target completions per week (>= 1)")
    add.set_defaults(handler=cmd_add)

    list_parser = subparsers.add_parser("list", help="List habits")
    list_parser.add_argument(
        "--all", action="store_true", help="Include inactive habits (default: active only)"
    )
    list_parser.set_defaults(handler=cmd_list)

    show = subparsers.add_parser("show", help="Show one habit with its completion history")
    show.add_argument("identifier", help="Habit id or name")
    show.set_defaults(handler=cmd_show)

    complete = subparsers.add_parser("complete", help="Mark a habit complete")
    complete.add_argument("identifier", help="Habit id or name")
    complete.add_argument(
        "--date", type=parse_date, default=None, help="Completion date YYYY-MM-DD (default: today)"
    )
    complete.set_defaults(handler=cmd_complete)

    remove = subparsers.add_parser("remove", help="Remove a habit")
    remove.add_argument("identifier", help="Habit id or name")
    remove.set_defaults(handler=cmd_remove)

    edit = subparsers.add_parser("edit", help="Edit habit details")
    edit.add_argument("identifier", help="Habit id or name")
    edit.add_argument("--name", help="New name")
    edit.add_argument("--description", help=f"New description ('{CLEAR_VALUE}' to clear)")
    edit.add_argument("--frequency", help=f"New weekly target ('{CLEAR_VALUE}' to clear)")
    edit.add_argument("--active", type=parse_bool, default=None, help="true or false")
    edit.set_defaults(handler=cmd_edit)
