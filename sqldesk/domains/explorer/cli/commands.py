"""CLI command handlers for the schema explorer."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.tree import Tree

from sqldesk.domains.explorer.domain.tree_nodes import NodeKind, SchemaNode
from sqldesk.domains.shell.app.workbench import WorkbenchSession


def _label(node: SchemaNode) -> str:
    name = escape(node.name)
    if node.kind is NodeKind.SCHEMA:
        return f"[bold]{name}[/]"
    if node.kind is NodeKind.COLUMN and node.data_type:
        return f"{name} [dim]{escape(node.data_type)}[/]"
    return name


def _add_children(branch: Tree, node: SchemaNode) -> None:
    for child in node.children:
        _add_children(branch.add(_label(child)), child)


def build_tree(target: str, roots: list[SchemaNode]) -> Tree:
    """Render the loaded part of the schema forest."""
    tree = Tree(f"[bold]{escape(target)}[/]")
    for root in roots:
        _add_children(tree.add(_label(root)), root)
    return tree


async def _show_tree(session: WorkbenchSession, args: Any, console: Console) -> int:
    async with session:
        if await session.connect(args.target, args.credentials) is None:
            console.print(f"[red]Error:[/] Could not connect to '{escape(args.target)}'.")
            return 1
        # Expand in the given order, so "db" comes before "db.table"
        for node_id in args.expand or []:
            if not await session.expand(node_id):
                console.print(f"[yellow]Could not expand '{escape(node_id)}'[/]")
        snapshot = session.snapshot()
        console.print(build_tree(args.target, snapshot.roots))
        return 0


def cmd_tree(
    args: Any,
    *,
    session_factory: Callable[[], WorkbenchSession],
    console: Console | None = None,
) -> int:
    """Print the schema tree of a target."""
    return asyncio.run(_show_tree(session_factory(), args, console or Console()))
