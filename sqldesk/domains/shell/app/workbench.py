"""Workbench session: the one object a UI talks to.

A ``WorkbenchSession`` owns the connection manager, schema tree, completion
index and result slots of one workbench. It is built explicitly from
``AppServices`` and torn down with ``aclose()``; nothing about it is
process-global. Consumers read state through ``snapshot()`` and change it
only through the async actions below.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import TracebackType

from sqldesk.domains.connections.app.lifecycle import ConnectionManager
from sqldesk.domains.connections.domain.config import (
    Connection,
    ConnectionRequest,
    Credentials,
    TargetRef,
)
from sqldesk.domains.explorer.app.loader import LazyTreeLoader
from sqldesk.domains.explorer.domain.tree_nodes import SchemaNode, SchemaTree
from sqldesk.domains.query.app.slots import QueryMode, SlotKind, SlotState
from sqldesk.domains.query.app.tracker import QueryExecutionTracker
from sqldesk.domains.query.completion.index import CompletionEntry, CompletionIndex
from sqldesk.shared.app.services import AppServices, build_app_services

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkbenchSnapshot:
    """Read-only view of a workbench session at one point in time."""

    active_target: str | None
    connections: dict[str, str]
    roots: list[SchemaNode]
    completions: tuple[CompletionEntry, ...]
    preview: SlotState
    details: SlotState
    query: SlotState
    query_mode: QueryMode
    loading_root: bool
    target_names: dict[str, list[TargetRef]] = field(default_factory=dict)

    @property
    def is_connected(self) -> bool:
        return self.active_target is not None and self.active_target in self.connections


class WorkbenchSession:
    """Connection, schema tree and query state of one workbench."""

    def __init__(
        self,
        services: AppServices,
        connections: ConnectionManager,
        tree: SchemaTree,
        completions: CompletionIndex,
        loader: LazyTreeLoader,
        tracker: QueryExecutionTracker,
    ) -> None:
        self.services = services
        self.connections = connections
        self.tree = tree
        self.completions = completions
        self.loader = loader
        self.tracker = tracker
        self.query_mode = QueryMode.QUERY_VIEW
        self._closed = False
        connections.add_listener(self)

    @classmethod
    def create(cls, services: AppServices | None = None) -> WorkbenchSession:
        """Wire a session from the service container (defaults built if omitted)."""
        services = services or build_app_services()
        runtime = services.runtime
        connections = ConnectionManager(
            services.endpoint,
            services.state_store,
            services.notifier,
            session_ttl=runtime.session_ttl,
        )
        tree = SchemaTree()
        completions = CompletionIndex()
        loader = LazyTreeLoader(
            connections,
            services.endpoint,
            tree,
            completions,
            services.notifier,
            min_fetch_duration=runtime.min_fetch_duration,
            strict_ordering=runtime.strict_ordering,
        )
        tracker = QueryExecutionTracker(
            connections,
            services.endpoint,
            services.notifier,
            min_fetch_duration=runtime.min_fetch_duration,
            strict_ordering=runtime.strict_ordering,
            preview_row_limit=runtime.preview_row_limit,
        )
        return cls(services, connections, tree, completions, loader, tracker)

    # === Read ===

    def snapshot(self) -> WorkbenchSnapshot:
        return WorkbenchSnapshot(
            active_target=self.connections.active_target,
            connections=self.connections.connections,
            roots=self.tree.roots,
            completions=self.completions.entries,
            preview=self.tracker.slot(SlotKind.PREVIEW).state(),
            details=self.tracker.slot(SlotKind.DETAILS).state(),
            query=self.tracker.slot(SlotKind.QUERY).state(),
            query_mode=self.query_mode,
            loading_root=self.loader.loading_root,
            target_names={k: list(v) for k, v in self.connections.target_names.items()},
        )

    # === Connection actions ===

    async def connect(
        self,
        target: ConnectionRequest | str,
        credentials: Credentials | None = None,
        *,
        timeout: int | None = None,
    ) -> Connection | None:
        """Open a connection and load its schema tree.

        Any previously active target stays open in the mapping.
        """
        return await self.connections.open(_as_request(target, credentials, timeout))

    async def disconnect(self) -> bool:
        return await self.connections.close()

    async def switch_target(
        self,
        target: ConnectionRequest | str,
        credentials: Credentials | None = None,
        *,
        timeout: int | None = None,
    ) -> Connection | None:
        """Replace the active connection; the previous one survives a failure."""
        return await self.connections.switch(_as_request(target, credentials, timeout))

    async def activate(self, target: str) -> bool:
        return await self.connections.activate(target)

    async def restore(self) -> Connection | None:
        return await self.connections.restore()

    async def fetch_target_names(self, resource_type: str) -> list[TargetRef]:
        return await self.connections.fetch_target_names(resource_type)

    # === Tree actions ===

    async def reload_tree(self) -> bool:
        return await self.loader.load_root()

    async def expand(self, node: SchemaNode | str) -> bool:
        """Expand a node, given directly or by its dotted id.

        Unknown ids and columns are logged and reported as not expanded.
        """
        if isinstance(node, str):
            found = self.tree.find(node)
            if found is None:
                logger.warning("No tree node with id '%s'", node)
                return False
            node = found
        if not node.expandable:
            logger.warning("Column '%s' has no children to expand", node.id)
            return False
        return await self.loader.expand(node)

    # === Query actions ===

    async def preview(self, table_id: str) -> bool:
        return await self.tracker.preview(table_id)

    async def describe(self, table_id: str) -> bool:
        return await self.tracker.describe(table_id)

    async def run_query(self, sql: str) -> bool:
        return await self.tracker.run_query(sql)

    def clear_preview(self) -> None:
        self.tracker.clear_preview()

    def set_query_mode(self, mode: QueryMode | str) -> None:
        self.query_mode = QueryMode(mode)

    # === Connection listener ===

    async def on_connect(self, connection: Connection) -> None:
        logger.info("Loading schemas for %s", connection.target)
        self._invalidate()
        await self.loader.load_root()

    def on_disconnect(self, connection: Connection) -> None:
        self._invalidate()

    def _invalidate(self) -> None:
        self.tree.clear()
        self.completions.clear()
        self.tracker.reset()

    # === Teardown ===

    async def aclose(self) -> None:
        """Close every open connection; the session is unusable afterwards."""
        if self._closed:
            return
        self._closed = True
        await self.connections.close_all()
        self.connections.remove_listener(self)

    async def __aenter__(self) -> WorkbenchSession:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()


def _as_request(
    target: ConnectionRequest | str,
    credentials: Credentials | None,
    timeout: int | None,
) -> ConnectionRequest:
    if isinstance(target, ConnectionRequest):
        return target
    return ConnectionRequest(target=target, credentials=credentials or Credentials(), timeout=timeout)
