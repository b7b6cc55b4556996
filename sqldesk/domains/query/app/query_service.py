"""Result model and SQL statement builders for sqldesk.

Every statement the workbench sends on its own behalf (tree listing,
preview, describe) is built here so quoting lives in one place.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from sqldesk.domains.connections.domain.errors import UnexpectedResponseError


@dataclass
class QueryResult:
    """One result set returned by the SQL endpoint."""

    columns: list[str] = field(default_factory=list)
    rows: list[list[Any]] = field(default_factory=list)
    # Set for statements that return no rows (INSERT, UPDATE, ...)
    rows_affected: int | None = None

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def first_column(self) -> list[Any]:
        """Values of the first column, in row order."""
        return [row[0] for row in self.rows if row]

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> QueryResult:
        """Parse a result set.

        Accepts the plain ``{"columns", "rows"}`` shape, the ``{"fields",
        "data"}`` shape of the REST API and ``{"affected_rows"}`` for
        statements without a result set.

        Raises:
            ValueError: If the mapping is an error report or carries no data.
        """
        if "rows" in data or "columns" in data:
            columns = data.get("columns") or []
            rows = data.get("rows") or []
        elif "data" in data or "fields" in data:
            columns = data.get("fields") or []
            rows = data.get("data") or []
        elif "affected_rows" in data:
            return cls(rows_affected=int(data.get("affected_rows") or 0))
        else:
            message = data.get("message")
            if message:
                raise ValueError(f"Query failed: {message}")
            raise ValueError("Result set has no rows")
        return cls(columns=[str(c) for c in columns], rows=[_as_row(r) for r in rows])


def first_result(results: list[QueryResult]) -> QueryResult:
    """Return the first result set; the rest are ignored."""
    if not results:
        raise UnexpectedResponseError("Endpoint returned no result set")
    return results[0]


def _as_row(raw: Any) -> list[Any]:
    if isinstance(raw, (list, tuple)):
        return list(raw)
    return [raw]


def quote_identifier(name: str) -> str:
    """Quote an identifier with backticks (MariaDB/MySQL style)."""
    return "`" + name.replace("`", "``") + "`"


def quote_literal(value: str) -> str:
    """Quote a string literal with single quotes."""
    return "'" + value.replace("\\", "\\\\").replace("'", "''") + "'"


def split_table_id(table_id: str) -> tuple[str, str]:
    """Split a ``db.table`` id into its parts.

    Only the first dot separates the database; anything after it belongs
    to the table name.

    Raises:
        ValueError: If the id has no database part.
    """
    database, sep, table = table_id.partition(".")
    if not sep or not database or not table:
        raise ValueError(f"Expected a 'database.table' id, got '{table_id}'")
    return database, table


def qualified_name(table_id: str) -> str:
    database, table = split_table_id(table_id)
    return f"{quote_identifier(database)}.{quote_identifier(table)}"


def show_databases() -> str:
    return "SHOW DATABASES"


def show_tables(database: str) -> str:
    return f"SHOW TABLES FROM {quote_identifier(database)}"


def list_columns(database: str, table: str) -> str:
    return (
        "SELECT COLUMN_NAME, COLUMN_TYPE FROM information_schema.COLUMNS "
        f"WHERE TABLE_SCHEMA = {quote_literal(database)} AND TABLE_NAME = {quote_literal(table)} "
        "ORDER BY ORDINAL_POSITION"
    )


def select_preview(table_id: str, limit: int | None = None) -> str:
    query = f"SELECT * FROM {qualified_name(table_id)}"
    if limit:
        query += f" LIMIT {int(limit)}"
    return query


def describe_table(table_id: str) -> str:
    return f"DESCRIBE {qualified_name(table_id)}"
