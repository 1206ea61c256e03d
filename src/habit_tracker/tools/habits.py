"""Habit management tools for MCP integration.

This module provides the HabitTools class which exposes the habit store
operations as MCP tools. Every tool call loads the store from the configured
storage file, performs one operation, and saves only when it mutated state.
Store I/O is blocking (it fsyncs on save), so it runs in a worker thread via
:func:`asyncio.to_thread` to keep the event loop responsive.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date as date_class
from typing import Any

from fastmcp import FastMCP
from fastmcp.server.context import Context as ServerContext

from habit_tracker.config import AppConfig
from habit_tracker.storage.exceptions import HabitError
from habit_tracker.storage.models import Habit
from habit_tracker.storage.store import HabitStore

logger = logging.getLogger(__name__)


def habit_to_dict(habit: Habit) -> dict[str, Any]:
    """Serialize a habit for a tool response, including its completion rate."""

    payload = habit.model_dump(mode="json", exclude_none=True)
    payload["completion_rate"] = habit.completion_rate()
    return payload


class HabitTools:
    """Habit management tools providing MCP access to the local habit store.

    This class encapsulates habit-related MCP tools, enabling AI models to
    create, query, complete, and remove habits through standardized tool calls.
    """

    def __init__(self, mcp_instance: FastMCP, config: AppConfig) -> None:
        """Initialize HabitTools with MCP instance and application configuration.

        Args:
            mcp_instance: FastMCP server instance for registering tools
            config: Application configuration holding the storage path
        """
        self.mcp = mcp_instance
        self.config = config
        self._register_tools()

    def _load_store(self) -> HabitStore:
        return HabitStore.load(self.config.storage_path)

    def _add(self, habit: Habit) -> None:
        store = self._load_store()
        store.add(habit)
        store.save()

    def _complete(self, identifier: str, day: date_class | None) -> tuple[Habit, date_class]:
        store = self._load_store()
        habit = store.find(identifier)
        completed_on = habit.mark_complete(day)
        store.save()
        return habit, completed_on

    def _remove(self, identifier: str) -> Habit:
        store = self._load_store()
        removed = store.remove(identifier)
        store.save()
        return removed

    async def _error_response(
        self, ctx: ServerContext, error: HabitError, action: str
    ) -> dict[str, Any]:
        message = f"Failed to {action}: {error}"
        await ctx.error(message)
        logger.warning("Habit tool failed to %s: %s", action, error)
        return {"success": False, "error": str(error.kind), "message": message}

    async def add_habit_tool(
        self,
        ctx: ServerContext,
        name: str,
        description: str | None = None,
        target_frequency: int | None = None,
    ) -> dict[str, Any]:
        """Create a habit and persist it.

        Args:
            ctx: Server context for logging
            name: Habit name, must not be blank
            description: Optional free-text description
            target_frequency: Optional completions per week (>= 1)

        Returns:
            dict[str, Any]: Success response with the new habit, or an error response
        """
        await ctx.info(f"Creating habit {name!r}")
        try:
            habit = Habit.create(name, description, target_frequency)
            await asyncio.to_thread(self._add, habit)
        except HabitError as error:
            return await self._error_response(ctx, error, "create habit")

        logger.info("Successfully created habit %s", habit.id)
        return {
            "success": True,
            "habit_id": str(habit.id),
            "habit": habit_to_dict(habit),
            "message": "Habit created successfully",
        }

    async def list_habits_tool(
        self,
        ctx: ServerContext,
        active_only: bool = True,  # noqa: FBT001, FBT002
    ) -> dict[str, Any]:
        """List habits in creation order.

        Args:
            ctx: Server context for logging
            active_only: Exclude inactive habits when true

        Returns:
            dict[str, Any]: Response with the habit list, or an error response
        """
        try:
            store = await asyncio.to_thread(self._load_store)
            habits = store.list(active_only=active_only)
        except HabitError as error:
            return await self._error_response(ctx, error, "list habits")

        await ctx.info(f"Listing {len(habits)} habit(s)")
        return {
            "success": True,
            "count": len(habits),
            "habits": [habit_to_dict(habit) for habit in habits],
        }

    async def get_habit_tool(self, ctx: ServerContext, identifier: str) -> dict[str, Any]:
        """Look up one habit by id or name."""

        try:
            store = await asyncio.to_thread(self._load_store)
            habit = store.find(identifier)
        except HabitError as error:
            return await self._error_response(ctx, error, "get habit")

        return {"success": True, "habit": habit_to_dict(habit)}

    async def complete_habit_tool(
        self,
        ctx: ServerContext,
        identifier: str,
        date: str | None = None,  # Required by MCP tool API - date parameter
    ) -> dict[str, Any]:
        """Mark a habit complete on a given date.

        Args:
            ctx: Server context for logging
            identifier: Habit id or name
            date: Completion date in ISO-8601 format (YYYY-MM-DD), defaults to today (UTC)

        Returns:
            dict[str, Any]: Success response with the recorded date, or an error response
        """
        parsed_date: date_class | None = None
        if date is not None:
            try:
                parsed_date = date_class.fromisoformat(date)
            except ValueError as error:
                message = f"Invalid date format. Expected YYYY-MM-DD format: {error!s}"
                await ctx.error(message)
                logger.warning("Invalid date provided for complete_habit: %s", date)
                return {"success": False, "error": "validation_error", "message": message}

        try:
            habit, completed_on = await asyncio.to_thread(
                self._complete, identifier, parsed_date
            )
        except HabitError as error:
            return await self._error_response(ctx, error, "complete habit")

        await ctx.info(f"Marked habit {habit.id} complete on {completed_on.isoformat()}")
        logger.info("Successfully completed habit %s on %s", habit.id, completed_on.isoformat())
        return {
            "success": True,
            "habit_id": str(habit.id),
            "date": completed_on.isoformat(),
            "completion_rate": habit.completion_rate(),
            "message": f"Marked '{habit.name}' complete on {completed_on.isoformat()}",
        }

    async def remove_habit_tool(self, ctx: ServerContext, identifier: str) -> dict[str, Any]:
        """Remove a habit by id or name and persist the change."""

        try:
            removed = await asyncio.to_thread(self._remove, identifier)
        except HabitError as error:
            return await self._error_response(ctx, error, "remove habit")

        await ctx.info(f"Removed habit {removed.id}")
        logger.info("Successfully removed habit %s", removed.id)
        return {
            "success": True,
            "habit_id": str(removed.id),
            "message": f"Removed habit '{removed.name}'",
        }

    def _register_tools(self) -> None:
        """Register all habit-related MCP tools with the FastMCP instance."""

        async def _add_habit(
            ctx: ServerContext,
            name: str,
            description: str | None = None,
            target_frequency: int | None = None,
        ) -> dict[str, Any]:
            return await self.add_habit_tool(ctx, name, description, target_frequency)

        async def _list_habits(ctx: ServerContext, active_only: bool = True) -> dict[str, Any]:  # noqa: FBT001, FBT002
            return await self.list_habits_tool(ctx, active_only)

        async def _get_habit(ctx: ServerContext, identifier: str) -> dict[str, Any]:
            return await self.get_habit_tool(ctx, identifier)

        async def _complete_habit(
            ctx: ServerContext, identifier: str, date: str | None = None
        ) -> dict[str, Any]:
            return await self.complete_habit_tool(ctx, identifier, date)

        async def _remove_habit(ctx: ServerContext, identifier: str) -> dict[str, Any]:
            return await self.remove_habit_tool(ctx, identifier)

        self.mcp.tool(name="add_habit", description="Create a new habit to track")(_add_habit)
        self.mcp.tool(
            name="list_habits", description="List habits, optionally including inactive ones"
        )(_list_habits)
        self.mcp.tool(name="get_habit", description="Get one habit by id or name")(_get_habit)
        self.mcp.tool(
            name="complete_habit",
            description="Mark a habit complete for a date (YYYY-MM-DD, default today)",
        )(_complete_habit)
        self.mcp.tool(name="remove_habit", description="Remove a habit by id or name")(
            _remove_habit
        )
