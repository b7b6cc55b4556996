"""Pytest fixtures for sqldesk tests."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

import pytest

_TEST_CONFIG_DIR = Path(tempfile.mkdtemp(prefix="sqldesk-test-config-"))
os.environ.setdefault("SQLDESK_CONFIG_DIR", str(_TEST_CONFIG_DIR))

from sqldesk.domains.connections.app.lifecycle import ConnectionManager  # noqa: E402
from sqldesk.domains.connections.app.mocks import MockSqlEndpoint  # noqa: E402
from sqldesk.domains.connections.store.session_state import InMemorySessionStateStore  # noqa: E402
from sqldesk.domains.shell.app.workbench import WorkbenchSession  # noqa: E402
from sqldesk.shared.app.runtime import RuntimeConfig  # noqa: E402
from sqldesk.shared.app.services import AppServices  # noqa: E402
from sqldesk.shared.core.notify import RecordingNotifier  # noqa: E402

CATALOG = {
    "db1": {
        "t1": [("id", "int(11)"), ("name", "varchar(50)")],
        "t2": [("x", "int(11)")],
    },
    "db2": {
        "u1": [("a", "int(11)")],
        "u2": [("b", "text")],
        "u3": [("c", "date")],
    },
}

QUERY_RESULTS = {
    "from `db1`.`t1`": (["id", "name"], [[1, "one"], [2, "two"]]),
    "from `db1`.`t2`": (["x"], [[42]]),
}


@pytest.fixture
def endpoint() -> MockSqlEndpoint:
    return MockSqlEndpoint(
        catalog={db: {table: list(cols) for table, cols in tables.items()} for db, tables in CATALOG.items()},
        query_results=dict(QUERY_RESULTS),
        targets={"servers": ["server_0", "server_1"], "services": ["read-write"]},
    )


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def state_store() -> InMemorySessionStateStore:
    return InMemorySessionStateStore()


@pytest.fixture
def runtime() -> RuntimeConfig:
    return RuntimeConfig(min_fetch_duration=0.0)


@pytest.fixture
def services(runtime, endpoint, state_store, notifier) -> AppServices:
    return AppServices(runtime=runtime, endpoint=endpoint, state_store=state_store, notifier=notifier)


@pytest.fixture
def manager(endpoint, state_store, notifier) -> ConnectionManager:
    return ConnectionManager(endpoint, state_store, notifier)


@pytest.fixture
def workbench(services) -> WorkbenchSession:
    return WorkbenchSession.create(services)
