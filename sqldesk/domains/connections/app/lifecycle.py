"""Connection lifecycle for a workbench session.

``ConnectionManager`` owns the target -> connection id mapping and the
active target. It is the only writer of that state; everything else reads
the active connection id through it. Every change is written through to the
session state store right away so a reload can pick the session up again.
"""

from __future__ import annotations

import logging
import time

from sqldesk.domains.connections.domain.config import Connection, ConnectionRequest, TargetRef
from sqldesk.domains.connections.domain.errors import EndpointError, NotConnectedError
from sqldesk.domains.connections.store.session_state import SessionMarker, SessionState
from sqldesk.shared.core.notify import error_text
from sqldesk.shared.core.protocols import (
    ConnectionListener,
    NotifierProtocol,
    SessionStateStoreProtocol,
    SqlEndpointProtocol,
)

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Opens, activates and closes endpoint connections.

    Args:
        endpoint: Remote SQL endpoint.
        state_store: Durable storage for the mapping and active target.
        notifier: Side channel for connection-level notifications.
        session_ttl: Seconds a persisted session stays restorable; None
            keeps it until an explicit disconnect.
    """

    def __init__(
        self,
        endpoint: SqlEndpointProtocol,
        state_store: SessionStateStoreProtocol,
        notifier: NotifierProtocol,
        *,
        session_ttl: float | None = None,
    ) -> None:
        self._endpoint = endpoint
        self._store = state_store
        self._notifier = notifier
        self._session_ttl = session_ttl
        self._connections: dict[str, str] = {}
        self._active_target: str | None = None
        self._marker: SessionMarker | None = None
        self._listeners: list[ConnectionListener] = []
        self.target_names: dict[str, list[TargetRef]] = {}

    # === State access ===

    @property
    def active_target(self) -> str | None:
        return self._active_target

    @property
    def connections(self) -> dict[str, str]:
        """Copy of the target -> connection id mapping."""
        return dict(self._connections)

    @property
    def active_connection(self) -> Connection | None:
        target = self._active_target
        if target is None:
            return None
        connection_id = self._connections.get(target)
        if connection_id is None:
            return None
        return Connection(target=target, connection_id=connection_id)

    @property
    def active_connection_id(self) -> str | None:
        connection = self.active_connection
        return connection.connection_id if connection else None

    @property
    def is_connected(self) -> bool:
        return self.active_connection is not None

    def require_connection_id(self) -> str:
        """Return the active connection id.

        Raises:
            NotConnectedError: If no connection id is mapped for the active target.
        """
        connection_id = self.active_connection_id
        if connection_id is None:
            raise NotConnectedError(self._active_target)
        return connection_id

    def add_listener(self, listener: ConnectionListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: ConnectionListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # === Lifecycle ===

    async def open(self, request: ConnectionRequest) -> Connection | None:
        """Open a connection for ``request.target`` and make it active.

        The previous active target (if any) stays in the mapping; a
        connection already mapped for the same target is torn down. After the
        switch, connect listeners run (the workbench reloads the schema tree
        there); if that reload tears the session down, None is returned.

        Returns:
            The new active connection, or None if opening failed.
        """
        connection = await self._open_remote(request)
        if connection is None:
            return None
        await self._run_connect_listeners(connection)
        return connection if self.active_connection == connection else None

    async def close(self) -> bool:
        """Close the active connection and forget the session.

        The whole mapping and the persisted state are cleared before any
        remote teardown is attempted. The active connection is torn down
        first, then every other mapped one; a failing teardown is only
        logged.

        Returns:
            True if there was an active target to close.
        """
        target = self._active_target
        if target is None:
            return False
        connection = self.active_connection
        others = [
            Connection(target=other, connection_id=connection_id)
            for other, connection_id in self._connections.items()
            if other != target
        ]
        self._connections.clear()
        self._active_target = None
        self._marker = None
        self._store.clear()
        logger.info("Disconnected from %s", target)

        if connection is not None:
            self._run_disconnect_listeners(connection)
            await self._teardown(connection)
        for other in others:
            await self._teardown(other)
        return True

    async def close_all(self) -> None:
        """Close the session, including connections mapped without an active target."""
        await self.close()
        remaining = list(self._connections.items())
        self._connections.clear()
        self._persist()
        for target, connection_id in remaining:
            await self._teardown(Connection(target=target, connection_id=connection_id))

    async def switch(self, request: ConnectionRequest) -> Connection | None:
        """Replace the active connection with one for ``request.target``.

        The new connection is opened first. The previous one is held outside
        the mapping while the new one loads the schema tree, so a failing
        load closes only the new connection; the previous target is then
        active again. On success the previous connection is torn down.
        """
        previous = self.active_connection
        connection = await self._open_remote(request)
        if connection is None:
            return None

        parked = None
        if previous is not None and previous.target != connection.target:
            if self._connections.get(previous.target) == previous.connection_id:
                parked = previous
                del self._connections[previous.target]
                self._persist()

        await self._run_connect_listeners(connection)

        if self.active_connection != connection:
            if parked is not None:
                logger.info("Switch to %s failed, returning to %s", request.target, parked.target)
                self._connections[parked.target] = parked.connection_id
                await self.activate(parked.target)
            return None

        if parked is not None:
            await self._teardown(parked)
        return connection

    async def activate(self, target: str) -> bool:
        """Make an already open connection active again without a remote call.

        Returns:
            True if ``target`` is active afterwards.
        """
        connection_id = self._connections.get(target)
        if connection_id is None:
            return False
        connection = Connection(target=target, connection_id=connection_id)
        self._active_target = target
        self._marker = SessionMarker(target=target, created_at=time.time())
        self._persist()
        await self._run_connect_listeners(connection)
        return self.active_connection == connection

    async def restore(self) -> Connection | None:
        """Pick up the session persisted by a previous process.

        Expired sessions are discarded. The restored connection is not
        verified here; the connect listeners' tree reload does that and
        closes the session if the endpoint no longer knows the id.
        """
        state = self._store.load()
        if state.marker is not None and state.marker.is_expired(self._session_ttl):
            logger.info("Persisted session for %s expired", state.marker.target)
            self._store.clear()
            return None

        self._connections = dict(state.connections)
        target = state.active_target
        if target is None or target not in self._connections:
            self._active_target = None
            return None

        self._active_target = target
        self._marker = state.marker or SessionMarker(target=target, created_at=time.time())
        connection = Connection(target=target, connection_id=self._connections[target])
        logger.info("Restored session for %s", target)
        await self._run_connect_listeners(connection)
        return connection if self.active_connection == connection else None

    async def fetch_target_names(self, resource_type: str) -> list[TargetRef]:
        """List the targets of one resource type and cache them.

        Failures are logged and leave the cache unchanged.
        """
        try:
            names = await self._endpoint.list_targets(resource_type)
        except EndpointError as error:
            logger.error("Failed to list %s: %s", resource_type, error)
            return []
        self.target_names[resource_type] = names
        return names

    # === Internals ===

    async def _open_remote(self, request: ConnectionRequest) -> Connection | None:
        try:
            connection_id = await self._endpoint.open_connection(
                request.target,
                request.credentials,
                request.timeout,
            )
        except EndpointError as error:
            logger.error("Connection to %s failed: %s", request.target, error)
            self._notifier.notify(f"Connection failed: {error_text(error)}", severity="error")
            return None

        replaced = self._connections.get(request.target)
        self._connections[request.target] = connection_id
        self._active_target = request.target
        self._marker = SessionMarker(target=request.target, created_at=time.time())
        self._persist()
        logger.info("Connected to %s (%s)", request.target, connection_id)
        self._notifier.notify("Connection successful", severity="information")
        # A target maps to one connection id; the one it had is unreachable now
        if replaced is not None and replaced != connection_id:
            await self._teardown(Connection(target=request.target, connection_id=replaced))
        return Connection(target=request.target, connection_id=connection_id)

    async def _teardown(self, connection: Connection) -> None:
        try:
            await self._endpoint.close_connection(connection.connection_id)
        except EndpointError as error:
            logger.warning("Ignoring failed teardown of %s: %s", connection.target, error)

    async def _run_connect_listeners(self, connection: Connection) -> None:
        for listener in list(self._listeners):
            await listener.on_connect(connection)

    def _run_disconnect_listeners(self, connection: Connection) -> None:
        for listener in list(self._listeners):
            listener.on_disconnect(connection)

    def _persist(self) -> None:
        if not self._connections and self._active_target is None:
            self._store.clear()
            return
        self._store.save(
            SessionState(
                connections=dict(self._connections),
                active_target=self._active_target,
                marker=self._marker,
            )
        )
