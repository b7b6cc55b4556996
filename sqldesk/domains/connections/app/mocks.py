"""In-memory SQL endpoint for demos and testing.

Serves a small catalog (databases -> tables -> columns) for the listing
statements the workbench issues, answers other SQL from configured
results, and can inject failures, delays, and held responses so request
races can be reproduced deterministically.
"""

from __future__ import annotations

import asyncio
import itertools
import re
from dataclasses import dataclass, field
from typing import Any

from sqldesk.domains.connections.domain.config import Credentials, TargetRef
from sqldesk.domains.connections.domain.errors import EndpointError
from sqldesk.domains.query.app.query_service import QueryResult

_IDENT = r"`((?:[^`]|``)+)`|(\w+)"
_SHOW_DATABASES = re.compile(r"^\s*SHOW\s+(?:DATABASES|SCHEMAS)\s*;?\s*$", re.IGNORECASE)
_SHOW_TABLES = re.compile(rf"^\s*SHOW\s+TABLES\s+FROM\s+(?:{_IDENT})\s*;?\s*$", re.IGNORECASE)
_LIST_COLUMNS = re.compile(
    r"information_schema\.COLUMNS\s+WHERE\s+TABLE_SCHEMA\s*=\s*'((?:[^']|'')*)'"
    r"\s+AND\s+TABLE_NAME\s*=\s*'((?:[^']|'')*)'",
    re.IGNORECASE,
)
_DESCRIBE = re.compile(rf"^\s*DESCRIBE\s+(?:{_IDENT})\.(?:{_IDENT})\s*;?\s*$", re.IGNORECASE)


def _ident(quoted: str | None, bare: str | None) -> str:
    if quoted is not None:
        return quoted.replace("``", "`")
    return bare or ""


@dataclass
class EndpointCall:
    """One recorded call against the mock endpoint."""

    method: str
    args: tuple[Any, ...] = ()


@dataclass
class MockSqlEndpoint:
    """Mock SQL endpoint backed by an in-memory catalog."""

    # database -> table -> [(column name, column type)]
    catalog: dict[str, dict[str, list[tuple[str, str]]]] = field(default_factory=dict)
    # lowercase substring -> (columns, rows) for arbitrary SQL
    query_results: dict[str, tuple[list[str], list[list[Any]]]] = field(default_factory=dict)
    default_query_result: tuple[list[str], list[list[Any]]] = (
        ["id", "name"],
        [[1, "Sample Row 1"], [2, "Sample Row 2"]],
    )
    targets: dict[str, list[str]] = field(default_factory=dict)
    connect_result: str = "success"
    connect_error: str = "Connection failed"
    close_error: str | None = None
    # lowercase substrings; any SQL containing one fails
    failing_queries: set[str] = field(default_factory=set)
    query_delay: float = 0.0
    calls: list[EndpointCall] = field(default_factory=list)
    open_connections: dict[str, str] = field(default_factory=dict)
    _ids: Any = field(default_factory=lambda: itertools.count(1), repr=False)
    _gates: dict[str, asyncio.Event] = field(default_factory=dict, repr=False)

    def hold(self, sql_fragment: str) -> asyncio.Event:
        """Hold responses for SQL containing ``sql_fragment`` until the event is set."""
        gate = asyncio.Event()
        self._gates[sql_fragment.lower()] = gate
        return gate

    def expire(self, connection_id: str) -> None:
        """Drop a connection server-side, as if it timed out."""
        self.open_connections.pop(connection_id, None)

    def fail_query(self, sql_fragment: str) -> None:
        self.failing_queries.add(sql_fragment.lower())

    def executed_sql(self) -> list[str]:
        return [call.args[1] for call in self.calls if call.method == "execute"]

    def calls_to(self, method: str) -> list[EndpointCall]:
        return [call for call in self.calls if call.method == method]

    async def _pause(self, sql: str = "") -> None:
        if self.query_delay > 0:
            await asyncio.sleep(self.query_delay)
        lowered = sql.lower()
        for fragment, gate in list(self._gates.items()):
            if fragment in lowered:
                await gate.wait()

    async def open_connection(self, target: str, credentials: Credentials, timeout: int | None = None) -> str:
        self.calls.append(EndpointCall("open_connection", (target, credentials, timeout)))
        await self._pause()
        if self.connect_result.strip().lower() not in {"success", "ok", "pass"}:
            raise EndpointError(self.connect_error, status_code=403)
        connection_id = f"conn-{next(self._ids)}"
        self.open_connections[connection_id] = target
        return connection_id

    async def close_connection(self, connection_id: str) -> None:
        self.calls.append(EndpointCall("close_connection", (connection_id,)))
        await self._pause()
        if self.close_error:
            raise EndpointError(self.close_error, status_code=500)
        if self.open_connections.pop(connection_id, None) is None:
            raise EndpointError(f"Connection '{connection_id}' not found", status_code=404)

    async def execute(self, connection_id: str, sql: str) -> list[QueryResult]:
        self.calls.append(EndpointCall("execute", (connection_id, sql)))
        await self._pause(sql)
        if connection_id not in self.open_connections:
            raise EndpointError(f"Connection '{connection_id}' not found", status_code=404)
        lowered = sql.lower()
        if any(fragment in lowered for fragment in self.failing_queries):
            raise EndpointError(f"Query failed: {sql}", status_code=400)
        columns, rows = self._answer(sql)
        return [QueryResult(columns=list(columns), rows=[list(row) for row in rows])]

    async def list_targets(self, resource_type: str) -> list[TargetRef]:
        self.calls.append(EndpointCall("list_targets", (resource_type,)))
        await self._pause()
        if resource_type not in self.targets:
            raise EndpointError(f"Unknown resource type '{resource_type}'", status_code=404)
        return [TargetRef(id=name, type=resource_type) for name in self.targets[resource_type]]

    def _answer(self, sql: str) -> tuple[list[str], list[list[Any]]]:
        if _SHOW_DATABASES.match(sql):
            return ["Database"], [[db] for db in self.catalog]

        match = _SHOW_TABLES.match(sql)
        if match:
            database = _ident(match.group(1), match.group(2))
            if database not in self.catalog:
                raise EndpointError(f"Unknown database '{database}'", status_code=400)
            return [f"Tables_in_{database}"], [[table] for table in self.catalog[database]]

        match = _LIST_COLUMNS.search(sql)
        if match:
            database = match.group(1).replace("''", "'")
            table = match.group(2).replace("''", "'")
            columns = self.catalog.get(database, {}).get(table, [])
            return ["COLUMN_NAME", "COLUMN_TYPE"], [[name, data_type] for name, data_type in columns]

        match = _DESCRIBE.match(sql)
        if match:
            database = _ident(match.group(1), match.group(2))
            table = _ident(match.group(3), match.group(4))
            if table not in self.catalog.get(database, {}):
                raise EndpointError(f"Table '{database}.{table}' doesn't exist", status_code=400)
            columns = self.catalog[database][table]
            return ["Field", "Type"], [[name, data_type] for name, data_type in columns]

        lowered = sql.lower()
        for pattern, result in self.query_results.items():
            if pattern in lowered:
                return result
        return self.default_query_result


def get_demo_endpoint() -> MockSqlEndpoint:
    """Endpoint with a small shop/hr catalog, handy for demos."""
    return MockSqlEndpoint(
        catalog={
            "shop": {
                "customers": [("id", "int(11)"), ("name", "varchar(100)"), ("email", "varchar(255)")],
                "orders": [("id", "int(11)"), ("customer_id", "int(11)"), ("total", "decimal(10,2)")],
            },
            "hr": {
                "employees": [("id", "int(11)"), ("full_name", "varchar(100)")],
            },
        },
        query_results={
            "`shop`.`customers`": (
                ["id", "name", "email"],
                [[1, "Alice", "alice@example.com"], [2, "Bob", "bob@example.com"]],
            ),
        },
        targets={"servers": ["server_0", "server_1"], "services": ["read-write"]},
    )
