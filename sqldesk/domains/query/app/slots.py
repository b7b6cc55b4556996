"""Result slots: one loading flag and payload per query kind."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from sqldesk.domains.query.app.query_service import QueryResult
from sqldesk.shared.core.sequence import RequestSequencer


class SlotKind(Enum):
    PREVIEW = "preview"
    DETAILS = "details"
    QUERY = "query"


class QueryMode(Enum):
    """Which result pane the editor currently shows."""

    QUERY_VIEW = "QUERY_VIEW"
    PREVIEW_DATA = "PREVIEW_DATA"
    DATA_DETAILS = "DATA_DETAILS"


@dataclass(frozen=True)
class SlotState:
    """Read-only view of a slot."""

    kind: SlotKind
    loading: bool
    payload: QueryResult | None
    error: str | None


class QueryResultSlot:
    """Holds the latest result for one query kind.

    Each dispatch takes a ticket. ``complete`` swaps the payload in a single
    assignment; ``fail`` keeps the previous payload. Whether a late response
    may overwrite a newer one is decided by the shared sequencer.
    """

    def __init__(self, kind: SlotKind, sequencer: RequestSequencer) -> None:
        self.kind = kind
        self._sequencer = sequencer
        self.loading = False
        self.payload: QueryResult | None = None
        self.error: str | None = None

    def begin(self) -> int:
        self.loading = True
        return self._sequencer.issue(self.kind)

    def complete(self, ticket: int, payload: QueryResult) -> bool:
        """Apply a response.

        Returns:
            False if the response was discarded as stale.
        """
        self._settle(ticket)
        if not self._sequencer.accept(ticket, self.kind):
            return False
        self.payload = payload
        self.error = None
        return True

    def fail(self, ticket: int, message: str) -> None:
        self._settle(ticket)
        self.error = message

    def abandon(self, ticket: int) -> None:
        """Settle a request whose response no longer matters."""
        self._settle(ticket)

    def clear(self) -> None:
        self.payload = None
        self.error = None

    def state(self) -> SlotState:
        return SlotState(kind=self.kind, loading=self.loading, payload=self.payload, error=self.error)

    def _settle(self, ticket: int) -> None:
        # strict: only the newest request clears the flag
        if not self._sequencer.strict or self._sequencer.is_latest(ticket, self.kind):
            self.loading = False
