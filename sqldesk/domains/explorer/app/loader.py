"""Lazy loading of the schema tree.

One level is fetched at a time: ``SHOW DATABASES`` for the roots, ``SHOW
TABLES FROM <db>`` when a schema is expanded and an information_schema
column listing when a table is expanded. Roots are replaced wholesale and
rebuild the completion index; expansions merge into a single node (found
by key) and append to the index.
"""

from __future__ import annotations

import logging
import time

from sqldesk.domains.connections.app.lifecycle import ConnectionManager
from sqldesk.domains.connections.domain.errors import EndpointError, NotConnectedError
from sqldesk.domains.explorer.domain.tree_nodes import NodeKind, SchemaNode, SchemaTree
from sqldesk.domains.query.app import query_service
from sqldesk.domains.query.app.query_service import first_result
from sqldesk.domains.query.completion.index import CompletionIndex
from sqldesk.shared.core.notify import error_text
from sqldesk.shared.core.protocols import NotifierProtocol, SqlEndpointProtocol
from sqldesk.shared.core.sequence import RequestSequencer
from sqldesk.shared.core.utils import pad_to_min_duration

logger = logging.getLogger(__name__)

_ROOT = "root"


class LazyTreeLoader:
    """Fills a ``SchemaTree`` on demand from the active connection."""

    def __init__(
        self,
        connections: ConnectionManager,
        endpoint: SqlEndpointProtocol,
        tree: SchemaTree,
        completions: CompletionIndex,
        notifier: NotifierProtocol,
        *,
        min_fetch_duration: float = 0.0,
        strict_ordering: bool = False,
    ) -> None:
        self._connections = connections
        self._endpoint = endpoint
        self._tree = tree
        self._completions = completions
        self._notifier = notifier
        self._min_fetch_duration = min_fetch_duration
        self._sequencer = RequestSequencer(strict=strict_ordering)
        self._loading: set[object] = set()

    @property
    def loading_root(self) -> bool:
        return _ROOT in self._loading

    def is_loading(self, node: SchemaNode) -> bool:
        return node.key in self._loading

    async def load_root(self) -> bool:
        """Replace the schema forest and rebuild the completion index.

        A failure here means the connection cannot serve the tree at all, so
        the session is closed.

        Returns:
            True if the new roots were applied.
        """
        try:
            connection_id = self._connections.require_connection_id()
        except NotConnectedError as error:
            logger.warning("Cannot load schemas: %s", error)
            return False

        ticket = self._sequencer.issue(_ROOT)
        self._loading.add(_ROOT)
        started = time.monotonic()
        try:
            results = await self._endpoint.execute(connection_id, query_service.show_databases())
            names = first_result(results).first_column()
            await pad_to_min_duration(started, self._min_fetch_duration)
        except EndpointError as error:
            self._finish(_ROOT, ticket)
            logger.error("Failed to load schemas: %s", error)
            self._notifier.notify("Connection timed out", severity="error")
            if self._connections.active_connection_id == connection_id:
                await self._connections.close()
            return False

        self._finish(_ROOT, ticket)
        if self._connections.active_connection_id != connection_id:
            logger.debug("Dropping schema list for a connection that is no longer active")
            return False
        if not self._sequencer.accept(ticket, _ROOT):
            logger.debug("Dropping stale schema list (request %d)", ticket)
            return False

        roots = [SchemaNode.schema(str(name)) for name in names]
        self._tree.replace_roots(roots)
        self._completions.clear()
        self._completions.append_nodes(roots)
        logger.debug("Loaded %d schemas", len(roots))
        return True

    async def expand(self, node: SchemaNode) -> bool:
        """Fetch the children of a schema or table node and merge them in.

        Siblings and ancestors are left untouched. Failures are reported but
        leave the node unexpanded so it can be retried.

        Returns:
            True if the children were merged.

        Raises:
            ValueError: If ``node`` is a column.
        """
        if not node.expandable:
            raise ValueError(f"Column '{node.id}' cannot be expanded")
        try:
            connection_id = self._connections.require_connection_id()
        except NotConnectedError as error:
            logger.warning("Cannot expand %s: %s", node.id, error)
            return False
        if node not in self._tree:
            logger.debug("Ignoring expand of %s, node is no longer in the tree", node.id)
            return False

        key = node.key
        ticket = self._sequencer.issue(key)
        self._loading.add(key)
        started = time.monotonic()
        try:
            results = await self._endpoint.execute(connection_id, self._listing_sql(node))
            rows = first_result(results).rows
            await pad_to_min_duration(started, self._min_fetch_duration)
        except EndpointError as error:
            self._finish(key, ticket)
            logger.error("Failed to load children of %s: %s", node.id, error)
            self._notifier.notify(f"Error loading {node.id}: {error_text(error)}", severity="error")
            return False

        self._finish(key, ticket)
        if self._connections.active_connection_id != connection_id:
            return False
        if not self._sequencer.accept(ticket, key):
            logger.debug("Dropping stale children of %s (request %d)", node.id, ticket)
            return False

        children = [
            node.child(str(row[0]), str(row[1]) if len(row) > 1 and row[1] is not None else None)
            for row in rows
            if row
        ]
        if not self._tree.set_children(key, children):
            logger.debug("Dropping children of %s, node was replaced meanwhile", node.id)
            return False
        self._completions.append_nodes(children)
        return True

    def _listing_sql(self, node: SchemaNode) -> str:
        if node.kind is NodeKind.SCHEMA:
            return query_service.show_tables(node.name)
        return query_service.list_columns(node.schema_name, node.name)

    def _finish(self, key: object, ticket: int) -> None:
        if self._sequencer.is_latest(ticket, key):
            self._loading.discard(key)
