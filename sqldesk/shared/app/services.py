"""Service container and builders for sqldesk."""

from __future__ import annotations

from dataclasses import dataclass

from sqldesk.shared.app.runtime import RuntimeConfig
from sqldesk.shared.core.protocols import NotifierProtocol, SessionStateStoreProtocol, SqlEndpointProtocol


@dataclass
class AppServices:
    """Container for runtime services shared by a workbench session."""

    runtime: RuntimeConfig
    endpoint: SqlEndpointProtocol
    state_store: SessionStateStoreProtocol
    notifier: NotifierProtocol


def build_endpoint(runtime: RuntimeConfig) -> SqlEndpointProtocol:
    """Create the SQL endpoint for the current runtime."""
    if runtime.mock:
        from sqldesk.domains.connections.app.mocks import get_demo_endpoint

        return get_demo_endpoint()

    from sqldesk.domains.connections.app.endpoint import HttpSqlEndpoint

    return HttpSqlEndpoint(runtime.endpoint_url, timeout=runtime.request_timeout)


def build_app_services(
    runtime: RuntimeConfig | None = None,
    *,
    endpoint: SqlEndpointProtocol | None = None,
    state_store: SessionStateStoreProtocol | None = None,
    notifier: NotifierProtocol | None = None,
) -> AppServices:
    """Build the default service container.

    Without an explicit ``runtime`` the config is read from settings.json
    and SQLDESK_* environment variables. Mock mode keeps the session in
    memory so demo runs never touch the persisted session file.
    """
    from sqldesk.domains.connections.store.session_state import (
        InMemorySessionStateStore,
        SessionStateStore,
    )
    from sqldesk.domains.shell.store.settings import SettingsStore
    from sqldesk.shared.core.notify import LoggingNotifier

    if runtime is None:
        runtime = RuntimeConfig.from_settings(SettingsStore().load_all())

    if state_store is None:
        state_store = InMemorySessionStateStore() if runtime.mock else SessionStateStore()

    return AppServices(
        runtime=runtime,
        endpoint=endpoint or build_endpoint(runtime),
        state_store=state_store,
        notifier=notifier or LoggingNotifier(),
    )
