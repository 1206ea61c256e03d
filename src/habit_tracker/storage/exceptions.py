"""Custom exceptions for habit store operations.

This module defines the closed set of error kinds raised by the habit model and
the persistent store. Every error carries its kind and the contextual payload
that adapters need to render a user-facing message.
"""

from __future__ import annotations

from datetime import date
from enum import StrEnum
from pathlib import Path
from uuid import UUID


class ErrorKind(StrEnum):
    """Kinds of failure a habit store operation can report."""

    NOT_FOUND = "not_found"
    INVALID_NAME = "invalid_name"
    INVALID_FREQUENCY = "invalid_frequency"
    ALREADY_COMPLETED = "already_completed"
    DUPLICATE_ID = "duplicate_id"
    STORAGE = "storage"
    SERIALIZATION = "serialization"


class HabitError(Exception):
    """Base exception for all habit store errors."""

    kind: ErrorKind

    def __init__(self, message: str) -> None:
        """Initialize habit error.

        Args:
            message: Human readable description of the failure
        """
        super().__init__(message)


class HabitNotFoundError(HabitError):
    """Raised when an identifier matches neither a habit id nor a habit name."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, identifier: str) -> None:
        """Initialize not found error.

        Args:
            identifier: The id or name that matched nothing
        """
        self.identifier = identifier
        super().__init__(f"Habit not found: {identifier}")


class InvalidNameError(HabitError):
    """Raised when a habit name is empty or whitespace-only."""

    kind = ErrorKind.INVALID_NAME

    def __init__(self, name: str) -> None:
        """Initialize invalid name error.

        Args:
            name: The rejected name
        """
        self.name = name
        super().__init__(f"Invalid habit name: {name!r}")


class InvalidFrequencyError(HabitError):
    """Raised when a target frequency is not a positive integer."""

    kind = ErrorKind.INVALID_FREQUENCY

    def __init__(self, value: object) -> None:
        """Initialize invalid frequency error.

        Args:
            value: The rejected frequency
        """
        self.value = value
        super().__init__(f"Invalid target frequency: {value!r} (must be an integer >= 1)")


class AlreadyCompletedError(HabitError):
    """Raised when a habit is marked complete twice for the same day."""

    kind = ErrorKind.ALREADY_COMPLETED

    def __init__(self, day: date, habit_name: str | None = None) -> None:
        """Initialize already completed error.

        Args:
            day: The calendar day that is already recorded
            habit_name: Name of the habit, used for the message when known
        """
        self.day = day
        self.habit_name = habit_name
        subject = f"'{habit_name}'" if habit_name else "Habit"
        super().__init__(f"{subject} already completed for date: {day.isoformat()}")


class DuplicateIdError(HabitError):
    """Raised when a habit with an existing id is inserted into the store."""

    kind = ErrorKind.DUPLICATE_ID

    def __init__(self, habit_id: UUID) -> None:
        """Initialize duplicate id error.

        Args:
            habit_id: The id that already exists in the store
        """
        self.habit_id = habit_id
        super().__init__(f"Habit id already exists in store: {habit_id}")


class StorageError(HabitError):
    """Raised when the storage file cannot be read or written."""

    kind = ErrorKind.STORAGE

    def __init__(self, message: str, path: Path | None = None) -> None:
        """Initialize storage error.

        Args:
            message: Error message describing the I/O failure
            path: Storage file involved, if known
        """
        self.path = path
        super().__init__(message)

    @classmethod
    def create_read_error(cls, path: Path, error: OSError) -> StorageError:
        """Create an error for a storage file that exists but cannot be read.

        Args:
            path: Storage file path
            error: Underlying OS error

        Returns:
            StorageError with contextual message
        """
        reason = error.strerror or str(error)
        return cls(f"Failed to read habit storage (path={path}, reason={reason})", path)

    @classmethod
    def create_write_error(cls, path: Path, error: OSError) -> StorageError:
        """Create an error for a failed write or replace of the storage file.

        Args:
            path: Storage file path
            error: Underlying OS error

        Returns:
            StorageError with contextual message
        """
        reason = error.strerror or str(error)
        return cls(f"Failed to write habit storage (path={path}, reason={reason})", path)


class SerializationError(HabitError):
    """Raised when persisted data is malformed or a value cannot be encoded."""

    kind = ErrorKind.SERIALIZATION

    def __init__(self, message: str, path: Path | None = None) -> None:
        """Initialize serialization error.

        Args:
            message: Error message describing the malformed data
            path: Storage file involved, if known
        """
        self.path = path
        super().__init__(message)

    @classmethod
    def create_parse_error(cls, path: Path, **context: str | int) -> SerializationError:
        """Create an error for a storage file whose content does not match the schema.

        Args:
            path: Storage file path
            **context: Additional safe context information

        Returns:
            SerializationError with contextual message
        """
        context_parts = [f"path={path}"]
        context_parts.extend(f"{key}={value}" for key, value in context.items())
        return cls(f"Failed to parse habit storage ({', '.join(context_parts)})", path)

    @classmethod
    def create_encode_error(cls, path: Path, reason: str) -> SerializationError:
        """Create an error for a collection that could not be encoded.

        Args:
            path: Storage file path
            reason: Description of the encoding failure

        Returns:
            SerializationError with contextual message
        """
        return cls(f"Failed to encode habit storage (path={path}, reason={reason})", path)
