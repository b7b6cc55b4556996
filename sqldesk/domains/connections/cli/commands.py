"""CLI command handlers for target discovery."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

from sqldesk.domains.shell.app.workbench import WorkbenchSession


async def _list_targets(session: WorkbenchSession, resource_type: str) -> int:
    async with session:
        targets = await session.fetch_target_names(resource_type)
        if resource_type not in session.snapshot().target_names:
            print(f"Error: Could not list {resource_type}.")
            return 1
    if not targets:
        print(f"No {resource_type} found.")
        return 0
    for target in targets:
        print(target.id)
    return 0


def cmd_targets(args: Any, *, session_factory: Callable[[], WorkbenchSession]) -> int:
    """List the targets of one resource type."""
    return asyncio.run(_list_targets(session_factory(), args.resource_type))
