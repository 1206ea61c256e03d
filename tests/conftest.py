"""Pytest fixtures and configuration for the test suite."""

from pathlib import Path

import pytest
from pytest_mock import AsyncMockType, MockerFixture

from habit_tracker.config import STORAGE_ENV_VAR, AppConfig


@pytest.fixture
def storage_path(tmp_path: Path) -> Path:
    """Provide a storage file path inside a per-test temporary directory.

    Returns:
        Path: Location of a habits.json file that does not exist yet.
    """
    return tmp_path / "habits.json"


@pytest.fixture
def config(storage_path: Path) -> AppConfig:
    """Provide an AppConfig pointing at the temporary storage file.

    Returns:
        AppConfig: Configuration with test values.
    """
    return AppConfig(storage_path=storage_path, log_level="INFO")


@pytest.fixture
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run the test from an empty directory with no storage override in the environment.

    Returns:
        Path: The working directory used by the test.
    """
    monkeypatch.delenv(STORAGE_ENV_VAR, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def async_ctx(mocker: MockerFixture) -> AsyncMockType:
    """Provide an async context mock for testing.

    Args:
        mocker: Pytest mocker fixture.

    Returns:
        AsyncMock: An async context mock with a test session ID.
    """
    mock_ctx = mocker.AsyncMock()
    mock_ctx.session_id = "test-session-123"
    return mock_ctx
