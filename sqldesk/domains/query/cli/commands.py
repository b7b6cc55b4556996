"""CLI query command handlers."""

from __future__ import annotations

import asyncio
import csv
import json
import sys
from collections.abc import Callable
from typing import Any

from sqldesk.domains.query.app.query_service import QueryResult
from sqldesk.domains.shell.app.workbench import WorkbenchSession


def _output_table(columns: list[str], rows: list[list[Any]]) -> None:
    """Output query results in table format."""
    max_col_width = 50

    # Only scan first 100 rows for performance
    col_widths = [min(len(col), max_col_width) for col in columns]
    for row in rows[:100]:
        for i, val in enumerate(row[: len(columns)]):
            val_str = str(val) if val is not None else "NULL"
            col_widths[i] = min(max_col_width, max(col_widths[i], len(val_str)))

    header = " | ".join(col[: col_widths[i]].ljust(col_widths[i]) for i, col in enumerate(columns))
    print(header)
    print("-" * len(header))

    for row in rows:
        row_parts = []
        for i, val in enumerate(row[: len(columns)]):
            val_str = str(val) if val is not None else "NULL"
            if len(val_str) > col_widths[i]:
                val_str = val_str[: col_widths[i] - 2] + ".."
            row_parts.append(val_str.ljust(col_widths[i]))
        print(" | ".join(row_parts))

    print(f"\n({len(rows)} row(s) returned)")


def print_result(result: QueryResult, output_format: str = "table") -> None:
    if result.rows_affected is not None:
        print(f"Query executed successfully. Rows affected: {result.rows_affected}")
        return

    columns = result.columns
    rows = result.rows
    if output_format == "csv":
        writer = csv.writer(sys.stdout)
        writer.writerow(columns)
        for row in rows:
            writer.writerow(str(val) if val is not None else "" for val in row)
        print(f"\n({len(rows)} row(s) returned)", file=sys.stderr)
    elif output_format == "json":
        json_result = [dict(zip(columns, row)) for row in rows]
        print(json.dumps(json_result, indent=2, default=str))
        print(f"\n({len(rows)} row(s) returned)", file=sys.stderr)
    else:
        _output_table(columns, rows)


def _read_query(args: Any) -> str | None:
    if args.query:
        return str(args.query)
    if args.file:
        try:
            with open(args.file, encoding="utf-8") as f:
                return f.read()
        except FileNotFoundError:
            print(f"Error: File '{args.file}' not found.")
        except OSError as e:
            print(f"Error reading file: {e}")
        return None
    print("Error: Either --query or --file must be provided.")
    return None


async def _run_query(session: WorkbenchSession, args: Any, query: str) -> int:
    async with session:
        if await session.connect(args.target, args.credentials) is None:
            print(f"Error: Could not connect to '{args.target}'.")
            return 1
        if not await session.run_query(query):
            error = session.snapshot().query.error or "query failed"
            print(f"Error: {error}")
            return 1
        payload = session.snapshot().query.payload
        if payload is not None:
            print_result(payload, args.format)
        return 0


def cmd_query(args: Any, *, session_factory: Callable[[], WorkbenchSession]) -> int:
    """Execute a SQL query against a target."""
    query = _read_query(args)
    if query is None:
        return 1
    return asyncio.run(_run_query(session_factory(), args, query))
