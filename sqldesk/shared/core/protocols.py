"""Protocols for dependency injection in sqldesk services.

The workbench only talks to its collaborators (SQL endpoint, session
persistence, user notifications) through these interfaces, so tests and
embedding applications can swap them freely.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from sqldesk.domains.connections.domain.config import Connection, Credentials, TargetRef
    from sqldesk.domains.connections.store.session_state import SessionState
    from sqldesk.domains.query.app.query_service import QueryResult


@runtime_checkable
class SqlEndpointProtocol(Protocol):
    """Remote SQL execution endpoint.

    Every method raises ``EndpointError`` on failure; callers never need to
    know anything about the transport beyond success or failure.
    """

    async def open_connection(self, target: str, credentials: Credentials, timeout: int | None = None) -> str:
        """Open a connection to ``target`` and return its opaque id."""
        ...

    async def close_connection(self, connection_id: str) -> None:
        """Tear down a connection (best effort, never retried)."""
        ...

    async def execute(self, connection_id: str, sql: str) -> list[QueryResult]:
        """Run SQL on a connection and return every result set."""
        ...

    async def list_targets(self, resource_type: str) -> list[TargetRef]:
        """List targets of one resource type that accept connections."""
        ...


@runtime_checkable
class SessionStateStoreProtocol(Protocol):
    """Durable storage for the target -> connection id mapping."""

    def load(self) -> SessionState:
        ...

    def save(self, state: SessionState) -> None:
        ...

    def clear(self) -> None:
        ...


@runtime_checkable
class NotifierProtocol(Protocol):
    """Side channel for user-visible notifications."""

    def notify(
        self,
        message: str,
        *,
        title: str = "",
        severity: str = "information",
    ) -> None:
        ...


@runtime_checkable
class ConnectionListener(Protocol):
    """Reacts to connection lifecycle events.

    ``on_connect`` runs after a target became active; ``on_disconnect``
    runs after local state for a target was cleared.
    """

    async def on_connect(self, connection: Connection) -> None:
        ...

    def on_disconnect(self, connection: Connection) -> None:
        ...
