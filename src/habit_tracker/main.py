"""Main application entry point for the habit tracker.

This module parses command-line arguments, resolves configuration, configures
logging, and dispatches to either a single CLI command or the MCP stdio server.

Exit Codes:
    0: Normal successful termination
    1: The requested operation failed (habit not found, invalid input, duplicate
       completion, unreadable or malformed storage file) or configuration failed
       (TOML parse errors, validation failures, missing explicit config file,
       unknown configuration keys)
"""

import argparse
import logging
import os
import sys
import tomllib
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

from fastmcp import FastMCP

from habit_tracker import __version__
from habit_tracker.commands import add_command_parsers
from habit_tracker.config import STORAGE_ENV_VAR, AppConfig
from habit_tracker.storage.exceptions import HabitError
from habit_tracker.tools.habits import HabitTools

DEFAULT_CONFIG_FILE = "./habits.toml"
# Keys accepted in the TOML configuration file
CONFIG_FILE_KEYS = frozenset({"storage_path", "log_level"})

logger = logging.getLogger(__name__)


def configure_logging(config: AppConfig) -> None:
    """Configure logging to direct all output to stderr.

    stdout is reserved for command output and for MCP JSON-RPC traffic when
    running the stdio server.
    """
    log_level = getattr(logging, config.log_level)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        stream=sys.stderr,
    )


class HabitServer:
    """MCP server exposing the habit store over the stdio transport."""

    def __init__(self, config: AppConfig) -> None:
        """Initialize the server and register the habit tools.

        Args:
            config: Application configuration containing the storage path.
        """
        self.config = config
        self.app = FastMCP(name="habit-tracker", version=__version__)
        self.habit_tools = HabitTools(self.app, config)

    def run(self) -> None:
        """Run the MCP server with stdio transport until the client disconnects."""
        logger.info("Starting habit tracker MCP server (storage=%s)", self.config.storage_path)
        try:
            self.app.run(transport="stdio")
        except KeyboardInterrupt:
            logger.info("Habit tracker MCP server interrupted; shutting down")
            raise
        except Exception:
            logger.exception(
                "Habit tracker MCP server stopped on an unexpected error (storage=%s)",
                self.config.storage_path,
            )
            raise


def _load_config_from_file(config_file: str) -> dict[str, Any]:
    """Load configuration from TOML file with validation.

    Args:
        config_file: Path to the configuration file.

    Returns:
        dict[str, Any]: Configuration data loaded from file, empty if the file is absent.

    Raises:
        SystemExit: On file parsing errors or unknown configuration keys.
    """
    config_data: dict[str, Any] = {}
    config_path = Path(config_file)

    if config_path.exists():
        try:
            with config_path.open("rb") as f:
                file_config = tomllib.load(f)

            unknown_keys = set(file_config) - CONFIG_FILE_KEYS
            if unknown_keys:
                logger.error(
                    "Habit tracker config %s has unknown keys %s (expected only %s)",
                    config_path,
                    ", ".join(sorted(unknown_keys)),
                    ", ".join(sorted(CONFIG_FILE_KEYS)),
                )
                sys.exit(1)

            config_data.update(file_config)
            logger.info("Read habit tracker settings from %s", config_path)
        except tomllib.TOMLDecodeError:
            logger.exception("Habit tracker config %s is not valid TOML", config_path)
            sys.exit(1)
        except OSError:
            logger.exception("Could not read habit tracker config %s", config_path)
            sys.exit(1)

    return config_data


def _apply_env_overrides(config_data: dict[str, Any], environ: Mapping[str, str]) -> None:
    """Apply environment variable overrides to configuration data."""
    storage = environ.get(STORAGE_ENV_VAR)
    if storage:
        config_data["storage_path"] = storage


def _apply_cli_overrides(config_data: dict[str, Any], args: argparse.Namespace) -> None:
    """Apply CLI argument overrides to configuration data."""
    if getattr(args, "storage", None) is not None:
        config_data["storage_path"] = args.storage
    if getattr(args, "log_level", None) is not None:
        config_data["log_level"] = args.log_level


def _create_validated_config(config_data: dict[str, Any]) -> AppConfig:
    """Create and validate AppConfig from configuration data.

    Raises:
        SystemExit: On configuration validation errors.
    """
    try:
        config = AppConfig(**config_data)
    except Exception:
        logger.exception("Invalid habit tracker settings: %s", sorted(config_data))
        sys.exit(1)
    else:
        logger.debug("Effective configuration: %s", config.to_log_dict())
        return config


def load_configuration(
    args: argparse.Namespace, environ: Mapping[str, str] | None = None
) -> AppConfig:
    """Load configuration from defaults, file, environment, and CLI arguments.

    Precedence order (CLI > environment > file > defaults):
    1. Command-line arguments (highest priority)
    2. ``HABIT_STORAGE`` environment variable (storage path only)
    3. Configuration file values
    4. Default values (lowest priority)

    Args:
        args: Parsed command-line arguments.
        environ: Environment mapping, defaults to ``os.environ``.

    Returns:
        AppConfig: Loaded and validated configuration.

    Raises:
        SystemExit: On configuration validation errors or file parsing errors.
    """
    config_file = getattr(args, "config_file", None) or DEFAULT_CONFIG_FILE

    if getattr(args, "config_file", None) and not Path(config_file).exists():
        logger.error("Habit tracker config %s passed via --config-file does not exist", config_file)
        sys.exit(1)

    config_data = _load_config_from_file(config_file)
    _apply_env_overrides(config_data, os.environ if environ is None else environ)
    _apply_cli_overrides(config_data, args)
    config_data["config_file"] = config_file

    return _create_validated_config(config_data)


def parse_cli_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Argument list, defaults to ``sys.argv[1:]``.

    Returns:
        argparse.Namespace: Parsed command-line arguments.
    """
    parser = argparse.ArgumentParser(
        prog="habit",
        description="Habit Tracker",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--config-file",
        type=str,
        help=f"Path to configuration file (default: {DEFAULT_CONFIG_FILE})",
    )
    parser.add_argument(
        "--storage",
        type=str,
        help=f"Path to the habit storage file (overrides ${STORAGE_ENV_VAR})",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    add_command_parsers(subparsers)
    serve = subparsers.add_parser("serve", help="Run the MCP server over stdio")
    serve.set_defaults(handler=None)

    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> None:
    """Main entry point for the habit tracker.

    Runs one CLI command, or the MCP server for the ``serve`` command. Habit
    errors are reported on stderr and mapped to exit status 1.
    """
    args = parse_cli_args(argv)
    config = load_configuration(args)
    configure_logging(config)

    try:
        if args.command == "serve":
            HabitServer(config).run()
        else:
            args.handler(args, config, sys.stdout)
    except HabitError as error:
        logger.debug("habit %s failed: %s", args.command, error)
        sys.stderr.write(f"Error: {error}\n")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("habit %s interrupted", args.command)


if __name__ == "__main__":
    main()
