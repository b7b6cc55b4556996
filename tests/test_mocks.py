"""Tests for the in-memory mock SQL endpoint."""

from __future__ import annotations

import asyncio

import pytest

from sqldesk.domains.connections.app.mocks import MockSqlEndpoint, get_demo_endpoint
from sqldesk.domains.connections.domain.config import Credentials
from sqldesk.domains.connections.domain.errors import EndpointError
from sqldesk.shared.core.protocols import SqlEndpointProtocol


class TestMockSqlEndpoint:
    """The mock answers the statements the workbench issues."""

    def test_satisfies_protocol(self, endpoint):
        assert isinstance(endpoint, SqlEndpointProtocol)

    @pytest.mark.asyncio
    async def test_connection_ids_are_sequential(self, endpoint):
        assert await endpoint.open_connection("server_0", Credentials()) == "conn-1"
        assert await endpoint.open_connection("server_1", Credentials()) == "conn-2"
        assert endpoint.open_connections == {"conn-1": "server_0", "conn-2": "server_1"}

    @pytest.mark.asyncio
    async def test_catalog_listings(self, endpoint):
        connection_id = await endpoint.open_connection("server_0", Credentials())

        databases = await endpoint.execute(connection_id, "SHOW DATABASES")
        tables = await endpoint.execute(connection_id, "SHOW TABLES FROM `db2`")
        columns = await endpoint.execute(
            connection_id,
            "SELECT COLUMN_NAME, COLUMN_TYPE FROM information_schema.COLUMNS "
            "WHERE TABLE_SCHEMA = 'db1' AND TABLE_NAME = 't1' ORDER BY ORDINAL_POSITION",
        )

        assert databases[0].first_column() == ["db1", "db2"]
        assert tables[0].first_column() == ["u1", "u2", "u3"]
        assert columns[0].rows == [["id", "int(11)"], ["name", "varchar(50)"]]

    @pytest.mark.asyncio
    async def test_unknown_database(self, endpoint):
        connection_id = await endpoint.open_connection("server_0", Credentials())
        with pytest.raises(EndpointError):
            await endpoint.execute(connection_id, "SHOW TABLES FROM `missing`")

    @pytest.mark.asyncio
    async def test_unknown_connection(self, endpoint):
        with pytest.raises(EndpointError) as excinfo:
            await endpoint.execute("conn-404", "SELECT 1")
        assert excinfo.value.status_code == 404

    @pytest.mark.asyncio
    async def test_expired_connection(self, endpoint):
        connection_id = await endpoint.open_connection("server_0", Credentials())
        endpoint.expire(connection_id)
        with pytest.raises(EndpointError):
            await endpoint.execute(connection_id, "SELECT 1")
        with pytest.raises(EndpointError):
            await endpoint.close_connection(connection_id)

    @pytest.mark.asyncio
    async def test_connect_failure(self, endpoint):
        endpoint.connect_result = "fail"
        endpoint.connect_error = "Access denied"
        with pytest.raises(EndpointError, match="Access denied"):
            await endpoint.open_connection("server_0", Credentials())

    @pytest.mark.asyncio
    async def test_hold_releases_on_set(self, endpoint):
        connection_id = await endpoint.open_connection("server_0", Credentials())
        gate = endpoint.hold("select 1")

        task = asyncio.create_task(endpoint.execute(connection_id, "SELECT 1"))
        await asyncio.sleep(0)
        assert not task.done()

        gate.set()
        results = await task
        assert results[0].columns == ["id", "name"]

    @pytest.mark.asyncio
    async def test_list_targets(self, endpoint):
        targets = await endpoint.list_targets("servers")
        assert [t.id for t in targets] == ["server_0", "server_1"]
        with pytest.raises(EndpointError):
            await endpoint.list_targets("filters")

    @pytest.mark.asyncio
    async def test_records_calls(self):
        endpoint = MockSqlEndpoint()
        connection_id = await endpoint.open_connection("server_0", Credentials())
        await endpoint.execute(connection_id, "SELECT 1")
        await endpoint.close_connection(connection_id)

        assert [call.method for call in endpoint.calls] == ["open_connection", "execute", "close_connection"]
        assert endpoint.executed_sql() == ["SELECT 1"]


class TestDemoEndpoint:
    @pytest.mark.asyncio
    async def test_demo_catalog(self):
        endpoint = get_demo_endpoint()
        connection_id = await endpoint.open_connection("server_0", Credentials())

        databases = await endpoint.execute(connection_id, "SHOW DATABASES")
        preview = await endpoint.execute(connection_id, "SELECT * FROM `shop`.`customers`")

        assert databases[0].first_column() == ["shop", "hr"]
        assert preview[0].columns == ["id", "name", "email"]
