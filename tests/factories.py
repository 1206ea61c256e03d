"""Factory functions for creating test data objects.

This module contains small builder functions for creating Habit objects with
explicit ids and timestamps, so tests can control ordering and dates without
depending on the wall clock.
"""

from collections.abc import Sequence
from datetime import UTC, date, datetime
from uuid import UUID, uuid4

from habit_tracker.storage.models import Habit

DEFAULT_CREATED_AT = datetime(2025, 9, 1, 8, 30, tzinfo=UTC)


def create_habit(  # noqa: PLR0913  # Factory functions need many parameters to reduce test duplication
    name: str = "Read 30 minutes",
    habit_id: UUID | None = None,
    description: str | None = None,
    created_at: datetime | None = None,
    completions: Sequence[date] | None = None,
    target_frequency: int | None = None,
    is_active: bool = True,  # noqa: FBT001, FBT002
) -> Habit:
    """Create a Habit object with default or provided values.

    Args:
        name: Habit name (default: "Read 30 minutes")
        habit_id: Habit id (default: random UUID)
        description: Optional description
        created_at: Creation timestamp (default: 2025-09-01 08:30 UTC)
        completions: Completion dates, must be strictly ascending
        target_frequency: Optional weekly target
        is_active: Active flag (default: True)

    Returns:
        Habit: Validated habit instance
    """
    return Habit(
        id=habit_id or uuid4(),
        name=name,
        description=description,
        created_at=created_at or DEFAULT_CREATED_AT,
        completions=tuple(completions or ()),
        target_frequency=target_frequency,
        is_active=is_active,
    )
