"""Configuration module for the habit tracker.

This module provides the AppConfig Pydantic model for managing application
configuration from files, environment variables, command-line arguments,
and defaults.
"""

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

DEFAULT_STORAGE_FILE = "habits.json"
STORAGE_ENV_VAR = "HABIT_STORAGE"


class AppConfig(BaseModel):
    """Application configuration model with validation and default values."""

    storage_path: Path = Field(
        default=Path(DEFAULT_STORAGE_FILE),
        description=f"Path of the JSON habit storage file (env: {STORAGE_ENV_VAR})",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="WARNING",
        description="Logging level for the application",
    )

    config_file: str | None = Field(
        default=None,
        description="Path to configuration file",
    )

    @field_validator("storage_path")
    @classmethod
    def validate_storage_path(cls, v: Path) -> Path:
        """Validate that the storage path names a file.

        Args:
            v: The path value to validate.

        Returns:
            Path: The validated path with ``~`` expanded.

        Raises:
            ValueError: If the path is empty.
        """
        if not str(v).strip() or str(v) == ".":
            msg = "storage_path must name a file"
            raise ValueError(msg)
        return v.expanduser()

    def to_log_dict(self) -> dict[str, Any]:
        """Return a dictionary representation suitable for logging."""
        config_dict = self.model_dump()
        config_dict["storage_path"] = str(config_dict["storage_path"])
        return config_dict
