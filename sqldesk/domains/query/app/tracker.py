"""Query execution for the preview, details and ad-hoc query panes."""

from __future__ import annotations

import logging
import time

from sqldesk.domains.connections.app.lifecycle import ConnectionManager
from sqldesk.domains.connections.domain.errors import EndpointError, NotConnectedError
from sqldesk.domains.query.app import query_service
from sqldesk.domains.query.app.query_service import first_result
from sqldesk.domains.query.app.slots import QueryResultSlot, SlotKind
from sqldesk.shared.core.notify import error_text
from sqldesk.shared.core.protocols import NotifierProtocol, SqlEndpointProtocol
from sqldesk.shared.core.sequence import RequestSequencer
from sqldesk.shared.core.utils import format_duration_ms, pad_to_min_duration

logger = logging.getLogger(__name__)


class QueryExecutionTracker:
    """Runs queries against the active connection and fills the result slots.

    In-flight requests are never cancelled. Without ``strict_ordering`` the
    response that arrives last wins, even if it belongs to an older request.
    """

    def __init__(
        self,
        connections: ConnectionManager,
        endpoint: SqlEndpointProtocol,
        notifier: NotifierProtocol,
        *,
        min_fetch_duration: float = 0.0,
        strict_ordering: bool = False,
        preview_row_limit: int | None = None,
    ) -> None:
        self._connections = connections
        self._endpoint = endpoint
        self._notifier = notifier
        self._min_fetch_duration = min_fetch_duration
        self._preview_row_limit = preview_row_limit
        self._sequencer = RequestSequencer(strict=strict_ordering)
        self._slots = {kind: QueryResultSlot(kind, self._sequencer) for kind in SlotKind}

    def slot(self, kind: SlotKind) -> QueryResultSlot:
        return self._slots[kind]

    @property
    def preview_slot(self) -> QueryResultSlot:
        return self._slots[SlotKind.PREVIEW]

    @property
    def details_slot(self) -> QueryResultSlot:
        return self._slots[SlotKind.DETAILS]

    @property
    def query_slot(self) -> QueryResultSlot:
        return self._slots[SlotKind.QUERY]

    async def preview(self, table_id: str) -> bool:
        """Load the rows of ``table_id`` (``db.table``) into the preview slot.

        Raises:
            ValueError: If ``table_id`` is not a ``db.table`` id.
        """
        sql = query_service.select_preview(table_id, self._preview_row_limit)
        return await self._run(self.preview_slot, sql, f"preview of {table_id}")

    async def describe(self, table_id: str) -> bool:
        """Load the column definitions of ``table_id`` into the details slot.

        Raises:
            ValueError: If ``table_id`` is not a ``db.table`` id.
        """
        sql = query_service.describe_table(table_id)
        return await self._run(self.details_slot, sql, f"details of {table_id}")

    async def run_query(self, sql: str) -> bool:
        """Execute user SQL unchanged and keep its first result set."""
        return await self._run(self.query_slot, sql, "query")

    def clear_preview(self) -> None:
        """Empty the preview and details payloads, whatever is in flight."""
        self.preview_slot.clear()
        self.details_slot.clear()

    def reset(self) -> None:
        for slot in self._slots.values():
            slot.clear()

    async def _run(self, slot: QueryResultSlot, sql: str, label: str) -> bool:
        try:
            connection_id = self._connections.require_connection_id()
        except NotConnectedError as error:
            logger.warning("Cannot run %s: %s", label, error)
            slot.error = str(error)
            self._notifier.notify("Connect to a server to execute queries", severity="warning")
            return False

        ticket = slot.begin()
        logger.debug("Running %s (request %d): %s", label, ticket, sql)
        started = time.monotonic()
        try:
            results = await self._endpoint.execute(connection_id, sql)
            result = first_result(results)
            await pad_to_min_duration(started, self._min_fetch_duration)
        except EndpointError as error:
            slot.fail(ticket, str(error))
            logger.error("Failed to run %s: %s", label, error)
            self._notifier.notify(f"Error running {label}: {error_text(error)}", severity="error")
            return False

        if self._connections.active_connection_id != connection_id:
            slot.abandon(ticket)
            logger.debug("Dropping %s result for a connection that is no longer active", label)
            return False
        if not slot.complete(ticket, result):
            logger.debug("Dropping stale %s result (request %d)", label, ticket)
            return False
        elapsed_ms = (time.monotonic() - started) * 1000
        logger.debug("Finished %s in %s (%d rows)", label, format_duration_ms(elapsed_ms), result.row_count)
        return True
