"""HTTP client for the remote SQL endpoint.

The endpoint exposes connections as REST resources::

    POST   /sql?persist=yes       open a connection   -> 201, data.id
    DELETE /sql/{id}              close it
    POST   /sql/{id}/queries      run SQL             -> data.attributes.results
    GET    /{resource}?fields[{resource}]=id          list targets

Calls are made with a blocking ``requests.Session`` and moved off the event
loop with ``asyncio.to_thread`` so several requests can be outstanding at
once.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, cast

import requests

from sqldesk.domains.connections.domain.config import Credentials, TargetRef
from sqldesk.domains.connections.domain.errors import EndpointError, UnexpectedResponseError
from sqldesk.domains.query.app.query_service import QueryResult

logger = logging.getLogger(__name__)


class HttpSqlEndpoint:
    """SQL endpoint reached over HTTP."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30.0,
        session: requests.Session | None = None,
        auth: tuple[str, str] | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()
        if auth is not None:
            self._session.auth = auth

    @property
    def base_url(self) -> str:
        return self._base_url

    def close(self) -> None:
        """Release the underlying HTTP session."""
        self._session.close()

    def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
    ) -> requests.Response:
        url = f"{self._base_url}{path}"
        logger.debug("%s %s", method, url)
        try:
            response = self._session.request(method, url, json=json, params=params, timeout=self._timeout)
        except requests.RequestException as error:
            raise EndpointError(f"{method} {path} failed: {error}") from error
        if not response.ok:
            raise EndpointError(
                f"{method} {path} returned {response.status_code}: {_error_detail(response)}",
                status_code=response.status_code,
            )
        return response

    def _open_sync(self, target: str, credentials: Credentials, timeout: int | None) -> str:
        body = credentials.to_payload()
        body["target"] = target
        if timeout is not None:
            body["timeout"] = timeout
        response = self._request("POST", "/sql", json=body, params={"persist": "yes"})
        if response.status_code != 201:
            raise UnexpectedResponseError(
                f"Expected 201 Created when opening a connection, got {response.status_code}",
                status_code=response.status_code,
            )
        data = _json_body(response)
        connection_id = _unwrap(data).get("id")
        if not isinstance(connection_id, str) or not connection_id:
            raise UnexpectedResponseError("Connection response carries no id")
        return connection_id

    def _execute_sync(self, connection_id: str, sql: str) -> list[QueryResult]:
        response = self._request("POST", f"/sql/{connection_id}/queries", json={"sql": sql})
        payload = _unwrap(_json_body(response))
        attributes = payload.get("attributes")
        source = attributes if isinstance(attributes, dict) else payload
        raw_results = source.get("results")
        if not isinstance(raw_results, list):
            raise UnexpectedResponseError("Query response carries no results")
        results: list[QueryResult] = []
        for raw in raw_results:
            if not isinstance(raw, dict):
                raise UnexpectedResponseError("Malformed result set in query response")
            try:
                results.append(QueryResult.from_dict(raw))
            except ValueError as error:
                raise EndpointError(str(error)) from error
        return results

    def _list_targets_sync(self, resource_type: str) -> list[TargetRef]:
        response = self._request("GET", f"/{resource_type}", params={f"fields[{resource_type}]": "id"})
        data = _json_body(response).get("data")
        if not isinstance(data, list):
            return []
        return [
            TargetRef(id=str(item["id"]), type=str(item.get("type", resource_type)))
            for item in data
            if isinstance(item, dict) and "id" in item
        ]

    async def open_connection(self, target: str, credentials: Credentials, timeout: int | None = None) -> str:
        return await asyncio.to_thread(self._open_sync, target, credentials, timeout)

    async def close_connection(self, connection_id: str) -> None:
        await asyncio.to_thread(self._request, "DELETE", f"/sql/{connection_id}")

    async def execute(self, connection_id: str, sql: str) -> list[QueryResult]:
        return await asyncio.to_thread(self._execute_sync, connection_id, sql)

    async def list_targets(self, resource_type: str) -> list[TargetRef]:
        return await asyncio.to_thread(self._list_targets_sync, resource_type)


def _json_body(response: requests.Response) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError as error:
        raise UnexpectedResponseError("Response body is not JSON", status_code=response.status_code) from error
    if not isinstance(data, dict):
        raise UnexpectedResponseError("Response body is not a JSON object", status_code=response.status_code)
    return cast(dict[str, Any], data)


def _unwrap(data: dict[str, Any]) -> dict[str, Any]:
    """Return the JSON:API ``data`` member when present, else the body itself."""
    inner = data.get("data")
    if isinstance(inner, dict):
        return cast(dict[str, Any], inner)
    return data


def _error_detail(response: requests.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text[:200] or response.reason or "no detail"
    if isinstance(data, dict):
        errors = data.get("errors")
        if isinstance(errors, list) and errors and isinstance(errors[0], dict):
            detail = errors[0].get("detail")
            if detail:
                return str(detail)
    return str(data)[:200]
