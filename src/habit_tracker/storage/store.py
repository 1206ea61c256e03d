"""Persistent habit store.

This module provides the HabitStore class, the single in-memory owner of all
habits for a process run. A store is loaded wholesale from a JSON document,
mutated in place, and written back wholesale with an atomic replace so an
interrupted save never leaves a truncated file behind.
"""

from __future__ import annotations

import contextlib
import logging
import os
import stat
import tempfile
from collections.abc import Iterable
from pathlib import Path
from uuid import UUID

from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from habit_tracker.storage.exceptions import (
    DuplicateIdError,
    HabitNotFoundError,
    SerializationError,
    StorageError,
)
from habit_tracker.storage.models import Habit, HabitDocument

logger = logging.getLogger(__name__)

JSON_INDENT = 2
# Mode for a storage file created by the first save
NEW_FILE_MODE = 0o644


class HabitStore:
    """In-memory collection of habits backed by a single JSON file.

    Habits are kept in insertion order, which is creation order for habits
    added during a run and file order for habits read by :meth:`load`.
    """

    def __init__(self, habits: Iterable[Habit] | None = None, path: Path | None = None) -> None:
        """Initialize the store.

        Args:
            habits: Habits to take ownership of, in order
            path: Storage file used by :meth:`save` when no path is passed

        Raises:
            DuplicateIdError: If two of the given habits share an id
        """
        self.path = path
        self._habits: list[Habit] = []
        for habit in habits or ():
            self.add(habit)

    def __len__(self) -> int:
        return len(self._habits)

    @classmethod
    def load(cls, path: str | Path) -> HabitStore:
        """Load the whole collection from ``path``.

        A missing file yields an empty store. A file that exists but cannot be
        read, or whose content is not a valid habit document, is an error; the
        content is never partially recovered.

        Args:
            path: Storage file to read

        Returns:
            HabitStore: Store owning every habit found in the file

        Raises:
            StorageError: If the file exists but cannot be read
            SerializationError: If the content is empty, not JSON, or does not match the schema
        """
        storage_path = Path(path)
        try:
            if not storage_path.exists():
                logger.info("No habit storage at %s; starting with an empty store", storage_path)
                return cls(path=storage_path)
            raw = storage_path.read_bytes()
        except OSError as error:
            raise StorageError.create_read_error(storage_path, error) from error

        try:
            document = HabitDocument.model_validate_json(raw, strict=True)
        except ValidationError as error:
            first = error.errors()[0]
            location = ".".join(str(part) for part in first["loc"]) or "<root>"
            raise SerializationError.create_parse_error(
                storage_path,
                location=location,
                reason=first["msg"],
                error_count=error.error_count(),
            ) from error

        logger.info("Loaded %d habit(s) from %s", len(document.habits), storage_path)
        return cls(document.habits, path=storage_path)

    def save(self, path: str | Path | None = None) -> None:
        """Write the entire collection to ``path``, replacing prior content.

        The document is written to a temporary file next to the target and
        moved into place with :func:`os.replace`, so on failure the previous
        file is left intact.

        Args:
            path: Storage file to write; defaults to the path the store was loaded from

        Raises:
            ValueError: If no path is given and the store has none
            StorageError: If the file cannot be written or replaced
            SerializationError: If the collection cannot be encoded
        """
        target = Path(path) if path is not None else self.path
        if target is None:
            msg = "No storage path given and the store was not loaded from a file"
            raise ValueError(msg)

        try:
            document = HabitDocument(habits=list(self._habits))
            payload = document.model_dump_json(indent=JSON_INDENT, exclude_none=True)
        except (ValidationError, PydanticSerializationError) as error:
            raise SerializationError.create_encode_error(target, str(error)) from error

        tmp_path: Path | None = None
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=target.parent,
                prefix=f".{target.name}.",
                suffix=".tmp",
                delete=False,
            ) as handle:
                tmp_path = Path(handle.name)
                handle.write(payload)
                handle.write("\n")
                handle.flush()
                os.fsync(handle.fileno())
            os.chmod(tmp_path, _target_mode(target))
            os.replace(tmp_path, target)
        except OSError as error:
            raise StorageError.create_write_error(target, error) from error
        finally:
            if tmp_path is not None:
                with contextlib.suppress(OSError):
                    tmp_path.unlink(missing_ok=True)

        logger.info("Saved %d habit(s) to %s", len(self._habits), target)

    def add(self, habit: Habit) -> None:
        """Take ownership of a validated habit, appending it to the collection.

        Raises:
            DuplicateIdError: If a habit with the same id is already stored
        """
        if any(existing.id == habit.id for existing in self._habits):
            raise DuplicateIdError(habit.id)
        self._habits.append(habit)
        logger.debug("Added habit %s (%s)", habit.id, habit.name)

    def find(self, identifier: str | UUID) -> Habit:
        """Resolve an identifier to a stored habit.

        The identifier is first tried as an id, then as an exact name. When
        several habits share the name the earliest created one is returned.

        Raises:
            HabitNotFoundError: If neither an id nor a name matches
        """
        habit = self._find_by_id(identifier)
        if habit is None:
            habit = self._find_by_name(str(identifier))
        if habit is None:
            raise HabitNotFoundError(str(identifier))
        return habit

    def remove(self, identifier: str | UUID) -> Habit:
        """Delete the habit ``identifier`` resolves to and return it.

        Raises:
            HabitNotFoundError: If neither an id nor a name matches
        """
        habit = self.find(identifier)
        index = next(i for i, stored in enumerate(self._habits) if stored is habit)
        removed = self._habits.pop(index)
        logger.debug("Removed habit %s (%s)", removed.id, removed.name)
        return removed

    def list(self, active_only: bool = False) -> tuple[Habit, ...]:  # noqa: A003, FBT001, FBT002
        """Return habits in insertion order, optionally only the active ones."""

        if active_only:
            return tuple(habit for habit in self._habits if habit.is_active)
        return tuple(self._habits)

    def _find_by_id(self, identifier: str | UUID) -> Habit | None:
        if isinstance(identifier, UUID):
            habit_id = identifier
        else:
            try:
                habit_id = UUID(identifier)
            except ValueError:
                return None
        return next((habit for habit in self._habits if habit.id == habit_id), None)

    def _find_by_name(self, name: str) -> Habit | None:
        matches = [habit for habit in self._habits if habit.name == name]
        if not matches:
            return None
        # min() keeps the first of equal timestamps, so ties fall back to insertion order
        return min(matches, key=lambda habit: habit.created_at)


def _target_mode(target: Path) -> int:
    """Permission bits the replaced file should keep: the old file's, or 0644 for a new one."""

    try:
        return stat.S_IMODE(target.stat().st_mode)
    except FileNotFoundError:
        return NEW_FILE_MODE
