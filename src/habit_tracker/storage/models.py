"""Data models for tracked habits and their persisted document.

This module defines the Habit entity as a Pydantic model together with its
self-contained mutation and query operations, and the HabitDocument model that
describes the on-disk layout of a habit collection. The same field validators
guard both freshly created habits and habits read back from storage, so a
malformed file never produces a habit that breaks the entity invariants.
"""

from __future__ import annotations

import logging
from datetime import UTC, date, datetime, timedelta
from uuid import UUID, uuid4

from pydantic import AwareDatetime, BaseModel, Field, field_validator, model_validator
from pydantic.config import ConfigDict

from habit_tracker.storage.exceptions import (
    AlreadyCompletedError,
    InvalidFrequencyError,
    InvalidNameError,
)

logger = logging.getLogger(__name__)

# Length of the rolling week used for completion rates
COMPLETION_RATE_WINDOW_DAYS = 7
MIN_TARGET_FREQUENCY = 1


def utc_today() -> date:
    """Return the current calendar date in UTC."""

    return datetime.now(UTC).date()


def to_utc_date(value: date | datetime) -> date:
    """Reduce a date or datetime to a UTC calendar date.

    Naive datetimes are interpreted as UTC.

    Args:
        value: The date or datetime to normalize

    Returns:
        date: The UTC calendar date of ``value``
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC).date()
    return value


def validate_name(name: str) -> str:
    """Reject empty or whitespace-only habit names.

    Raises:
        InvalidNameError: If the name has no visible characters
    """
    if not isinstance(name, str) or not name.strip():
        raise InvalidNameError(name)
    return name


def validate_frequency(value: int | None) -> int | None:
    """Reject target frequencies that are not positive integers.

    Raises:
        InvalidFrequencyError: If the frequency is set and below 1
    """
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < MIN_TARGET_FREQUENCY:
        raise InvalidFrequencyError(value)
    return value


class Habit(BaseModel):
    """One tracked recurring behavior and its completion history.

    Instances are created through :meth:`Habit.create` and mutated only through
    the methods below, each of which validates its input before touching any
    field. ``completions`` is an immutable tuple kept sorted ascending without
    duplicate days; it only changes through :meth:`mark_complete`.
    """

    model_config = ConfigDict(
        extra="forbid", validate_assignment=True, revalidate_instances="always"
    )

    id: UUID = Field(description="Unique identifier assigned at creation")
    name: str = Field(description="Display name, also usable as a lookup key")
    description: str | None = Field(default=None, description="Optional free-text description")
    created_at: AwareDatetime = Field(description="Creation timestamp (UTC)")
    completions: tuple[date, ...] = Field(
        default=(),
        description="UTC calendar dates on which the habit was completed, ascending",
    )
    target_frequency: int | None = Field(
        default=None,
        ge=MIN_TARGET_FREQUENCY,
        description="Intended completions per 7-day week",
    )
    is_active: bool = Field(default=True, description="Inactive habits are hidden from listings")

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, v: str) -> str:
        if not v.strip():
            msg = "name must contain at least one non-whitespace character"
            raise ValueError(msg)
        return v

    @field_validator("created_at")
    @classmethod
    def _created_at_in_utc(cls, v: datetime) -> datetime:
        return v.astimezone(UTC)

    @field_validator("completions")
    @classmethod
    def _completions_strictly_ascending(cls, v: tuple[date, ...]) -> tuple[date, ...]:
        """Reject unsorted or repeated completion dates instead of repairing them."""

        for previous, current in zip(v, v[1:], strict=False):
            if current <= previous:
                msg = f"completions must be strictly ascending (found {current} after {previous})"
                raise ValueError(msg)
        return v

    @classmethod
    def create(
        cls,
        name: str,
        description: str | None = None,
        target_frequency: int | None = None,
    ) -> Habit:
        """Create a new active habit with a fresh id and no completions.

        Args:
            name: Display name, must contain a non-whitespace character
            description: Optional free-text description
            target_frequency: Optional completions per week, at least 1

        Returns:
            Habit: The newly created habit

        Raises:
            InvalidNameError: If the name is empty or whitespace-only
            InvalidFrequencyError: If the frequency is set and below 1
        """
        validate_name(name)
        validate_frequency(target_frequency)
        return cls(
            id=uuid4(),
            name=name,
            description=description,
            created_at=datetime.now(UTC),
            completions=(),
            target_frequency=target_frequency,
            is_active=True,
        )

    def is_completed_on(self, day: date | datetime) -> bool:
        """Return whether the habit already has a completion on the given UTC day."""

        return to_utc_date(day) in self.completions

    def mark_complete(self, day: date | datetime | None = None) -> date:
        """Record a completion for a calendar day.

        Args:
            day: Day of completion; datetimes are reduced to their UTC date.
                Defaults to today (UTC).

        Returns:
            date: The calendar day that was recorded

        Raises:
            AlreadyCompletedError: If the day is already recorded
        """
        completed_on = utc_today() if day is None else to_utc_date(day)
        if completed_on in self.completions:
            raise AlreadyCompletedError(completed_on, self.name)
        self.completions = tuple(sorted((*self.completions, completed_on)))
        logger.debug("Recorded completion for habit %s on %s", self.id, completed_on.isoformat())
        return completed_on

    def recent_completions(
        self, window: int = COMPLETION_RATE_WINDOW_DAYS, today: date | None = None
    ) -> tuple[date, ...]:
        """Return completions within the trailing ``window`` days, oldest first.

        The window ends at ``today`` inclusive and spans ``window`` calendar days.

        Raises:
            ValueError: If the window is shorter than one day
        """
        if window < 1:
            msg = f"window must be at least 1 day, got {window}"
            raise ValueError(msg)
        end = today or utc_today()
        start = end - timedelta(days=window)
        return tuple(day for day in self.completions if start < day <= end)

    def completion_rate(self, today: date | None = None) -> float | None:
        """Return completions in the last 7 days divided by the target frequency.

        The rate is capped at 1.0. Returns None when no target frequency is set.
        """
        if self.target_frequency is None:
            return None
        recent = len(self.recent_completions(COMPLETION_RATE_WINDOW_DAYS, today))
        return min(1.0, recent / self.target_frequency)

    def set_active(self, active: bool) -> None:  # noqa: FBT001
        self.is_active = active

    def rename(self, new_name: str) -> None:
        """Change the display name.

        Raises:
            InvalidNameError: If the new name is empty or whitespace-only
        """
        self.name = validate_name(new_name)

    def set_description(self, description: str | None) -> None:
        self.description = description

    def set_target_frequency(self, target_frequency: int | None) -> None:
        """Change or clear the weekly target.

        Raises:
            InvalidFrequencyError: If the frequency is set and below 1
        """
        self.target_frequency = validate_frequency(target_frequency)


class HabitDocument(BaseModel):
    """On-disk layout of a habit collection: ``{"habits": [...]}``."""

    model_config = ConfigDict(extra="forbid")

    habits: list[Habit] = Field(description="Habits in creation order")

    @model_validator(mode="after")
    def _ids_unique(self) -> HabitDocument:
        seen: set[UUID] = set()
        for habit in self.habits:
            if habit.id in seen:
                msg = f"duplicate habit id {habit.id}"
                raise ValueError(msg)
            seen.add(habit.id)
        return self
