# ruff: noqa: PLR2004
"""Tests for HabitStore collection operations: add, find, remove, list."""

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from habit_tracker.storage.exceptions import DuplicateIdError, ErrorKind, HabitNotFoundError
from habit_tracker.storage.models import Habit
from habit_tracker.storage.store import HabitStore
from tests.factories import DEFAULT_CREATED_AT, create_habit


@pytest.fixture
def store() -> HabitStore:
    """Provide a store with three habits, the second inactive."""
    return HabitStore(
        [
            create_habit(name="Read", created_at=DEFAULT_CREATED_AT),
            create_habit(
                name="Gym", created_at=DEFAULT_CREATED_AT + timedelta(hours=1), is_active=False
            ),
            create_habit(name="Meditate", created_at=DEFAULT_CREATED_AT + timedelta(hours=2)),
        ]
    )


class TestHabitStoreAdd:
    """Test suite for HabitStore.add()."""

    def test_add_appends_in_order(self) -> None:
        """Added habits are listed in insertion order."""
        store = HabitStore()
        first = Habit.create("First")
        second = Habit.create("Second")

        store.add(first)
        store.add(second)

        assert store.list() == (first, second)
        assert len(store) == 2

    def test_add_duplicate_id_rejected(self) -> None:
        """Inserting a second habit with an existing id fails and leaves the store as it was."""
        habit_id = uuid4()
        store = HabitStore([create_habit(name="Original", habit_id=habit_id)])

        with pytest.raises(DuplicateIdError) as exc_info:
            store.add(create_habit(name="Copy", habit_id=habit_id))

        assert exc_info.value.kind == ErrorKind.DUPLICATE_ID
        assert exc_info.value.habit_id == habit_id
        assert [habit.name for habit in store.list()] == ["Original"]

    def test_constructor_rejects_duplicate_ids(self) -> None:
        """The constructor enforces id uniqueness too."""
        habit_id = uuid4()

        with pytest.raises(DuplicateIdError):
            HabitStore([create_habit(habit_id=habit_id), create_habit(habit_id=habit_id)])


class TestHabitStoreFind:
    """Test suite for HabitStore.find()."""

    def test_find_by_id_string(self, store: HabitStore) -> None:
        """The string form of an id resolves to that habit."""
        gym = store.list()[1]

        assert store.find(str(gym.id)) is gym

    def test_find_by_uuid(self, store: HabitStore) -> None:
        """A UUID instance resolves to that habit."""
        gym = store.list()[1]

        assert store.find(gym.id) is gym

    def test_find_by_name(self, store: HabitStore) -> None:
        """An exact name resolves to the habit."""
        assert store.find("Meditate").name == "Meditate"

    def test_find_name_is_exact(self, store: HabitStore) -> None:
        """Name lookup is case-sensitive and does not trim."""
        with pytest.raises(HabitNotFoundError):
            store.find("meditate")
        with pytest.raises(HabitNotFoundError):
            store.find(" Meditate")

    def test_find_prefers_id_over_name(self) -> None:
        """An identifier matching one habit's id and another's name resolves by id."""
        target = create_habit(name="Target")
        decoy = create_habit(name=str(target.id), created_at=DEFAULT_CREATED_AT - timedelta(days=1))
        store = HabitStore([decoy, target])

        assert store.find(str(target.id)) is target

    def test_find_uuid_shaped_name(self) -> None:
        """A UUID-shaped identifier that is no habit's id falls back to name lookup."""
        name = str(uuid4())
        habit = create_habit(name=name)
        store = HabitStore([habit])

        assert store.find(name) is habit

    def test_find_duplicate_names_returns_earliest_created(self) -> None:
        """With shared names the earliest creation timestamp wins, not insertion order."""
        later = create_habit(name="Gym", created_at=datetime(2025, 9, 5, tzinfo=UTC))
        earlier = create_habit(name="Gym", created_at=datetime(2025, 9, 1, tzinfo=UTC))
        store = HabitStore([later, earlier])

        assert store.find("Gym") is earlier

    def test_find_two_created_gym_habits_returns_first(self) -> None:
        """Two habits created in sequence with the same name resolve to the first."""
        store = HabitStore()
        first = Habit.create("Gym")
        second = Habit.create("Gym")
        store.add(first)
        store.add(second)

        assert store.find("Gym") is first

    @pytest.mark.parametrize("identifier", ["Swim", str(uuid4()), ""])
    def test_find_missing_raises_not_found(self, store: HabitStore, identifier: str) -> None:
        """Identifiers matching nothing raise HabitNotFoundError with the identifier."""
        with pytest.raises(HabitNotFoundError) as exc_info:
            store.find(identifier)

        assert exc_info.value.kind == ErrorKind.NOT_FOUND
        assert exc_info.value.identifier == identifier

    def test_found_habit_mutations_are_visible_in_store(self, store: HabitStore) -> None:
        """find returns the stored habit, so completing it changes the store."""
        store.find("Read").mark_complete(datetime(2025, 9, 10, tzinfo=UTC))

        assert len(store.find("Read").completions) == 1


class TestHabitStoreRemove:
    """Test suite for HabitStore.remove()."""

    def test_remove_by_name_returns_habit(self, store: HabitStore) -> None:
        """Remove returns the deleted habit and it is no longer findable."""
        removed = store.remove("Gym")

        assert removed.name == "Gym"
        assert [habit.name for habit in store.list()] == ["Read", "Meditate"]
        with pytest.raises(HabitNotFoundError):
            store.find(str(removed.id))

    def test_remove_by_id(self, store: HabitStore) -> None:
        """Remove resolves ids the same way as find."""
        meditate = store.find("Meditate")

        assert store.remove(str(meditate.id)) is meditate
        assert len(store) == 2

    def test_remove_duplicate_name_removes_earliest_only(self) -> None:
        """Only the habit find would return is removed."""
        first = create_habit(name="Gym", created_at=datetime(2025, 9, 1, tzinfo=UTC))
        second = create_habit(name="Gym", created_at=datetime(2025, 9, 2, tzinfo=UTC))
        store = HabitStore([first, second])

        store.remove("Gym")

        assert store.list() == (second,)

    def test_remove_missing_leaves_store_unchanged(self, store: HabitStore) -> None:
        """A failed remove raises HabitNotFoundError and changes nothing."""
        before = store.list()

        with pytest.raises(HabitNotFoundError):
            store.remove("Swim")

        assert store.list() == before


class TestHabitStoreList:
    """Test suite for HabitStore.list()."""

    def test_list_all_in_insertion_order(self, store: HabitStore) -> None:
        """All habits, active or not, in insertion order."""
        assert [habit.name for habit in store.list()] == ["Read", "Gym", "Meditate"]

    def test_list_active_only_is_ordered_subset(self, store: HabitStore) -> None:
        """Active-only listing keeps exactly the active habits in relative order."""
        everything = store.list(active_only=False)
        active = store.list(active_only=True)

        assert [habit.name for habit in active] == ["Read", "Meditate"]
        assert all(habit.is_active for habit in active)
        assert [habit for habit in everything if habit.is_active] == list(active)
        assert len(active) < len(everything)

    def test_list_reflects_set_active(self, store: HabitStore) -> None:
        """Deactivating a habit hides it from active listings but keeps it stored."""
        store.find("Read").set_active(False)

        assert [habit.name for habit in store.list(active_only=True)] == ["Meditate"]
        assert len(store.list()) == 3

    def test_list_returns_read_only_sequence(self, store: HabitStore) -> None:
        """The listing is a tuple, separate from the store's own collection."""
        listing = store.list()

        assert isinstance(listing, tuple)
        store.remove("Read")
        assert len(listing) == 3

    def test_list_empty_store(self) -> None:
        """An empty store lists nothing."""
        assert HabitStore().list() == ()
        assert HabitStore().list(active_only=True) == ()
