#!/usr/bin/env python3
"""sqldesk - a SQL workbench client for remote SQL endpoints."""

from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Callable

from sqldesk.domains.connections.domain.config import Credentials
from sqldesk.domains.shell.app.workbench import WorkbenchSession
from sqldesk.shared.app.runtime import RuntimeConfig


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sqldesk",
        description="Browse schemas and run SQL through a remote SQL endpoint",
    )
    parser.add_argument("--settings", metavar="PATH", help="Path to settings.json")
    parser.add_argument("--endpoint", metavar="URL", help="Base URL of the SQL endpoint")
    parser.add_argument("--mock", action="store_true", help="Use the built-in demo catalog")
    parser.add_argument("--debug", action="store_true", help="Log debug output")

    target_options = argparse.ArgumentParser(add_help=False)
    target_options.add_argument("--target", "-t", required=True, help="Target to connect to")
    target_options.add_argument("--username", "-u", default="", help="Username")
    target_options.add_argument("--password", "-p", help="Password (prompted if a user is given)")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    query_parser = subparsers.add_parser("query", parents=[target_options], help="Execute a SQL query")
    query_parser.add_argument("--query", "-q", help="SQL query to execute")
    query_parser.add_argument("--file", "-f", help="SQL file to execute")
    query_parser.add_argument(
        "--format",
        "-o",
        default="table",
        choices=["table", "csv", "json"],
        help="Output format (default: table)",
    )

    tree_parser = subparsers.add_parser("tree", parents=[target_options], help="Show the schema tree")
    tree_parser.add_argument(
        "--expand",
        "-e",
        action="append",
        metavar="NODE",
        help="Node id to expand (db or db.table); may be repeated",
    )

    targets_parser = subparsers.add_parser("targets", help="List targets of a resource type")
    targets_parser.add_argument("resource_type", nargs="?", default="servers", help="e.g. servers, services")
    return parser


def _load_runtime(args: argparse.Namespace) -> RuntimeConfig:
    from sqldesk.domains.shell.store.settings import SettingsStore

    runtime = RuntimeConfig.from_settings(SettingsStore().load_all())
    if args.endpoint:
        runtime.endpoint_url = args.endpoint
    if args.mock:
        runtime.mock = True
    if args.debug:
        runtime.log_level = "DEBUG"
    # One-shot commands: no loading indicator, no session to resume
    runtime.min_fetch_duration = 0.0
    return runtime


def _session_factory(runtime: RuntimeConfig) -> Callable[[], WorkbenchSession]:
    from sqldesk.domains.connections.store.session_state import InMemorySessionStateStore
    from sqldesk.shared.app.services import build_app_services

    def create() -> WorkbenchSession:
        services = build_app_services(runtime, state_store=InMemorySessionStateStore())
        return WorkbenchSession.create(services)

    return create


def main(argv: list[str] | None = None) -> int:
    """Entry point for the CLI."""
    parser = _build_parser()
    args = parser.parse_args(sys.argv[1:] if argv is None else argv)
    if args.settings:
        os.environ["SQLDESK_SETTINGS_PATH"] = str(args.settings)

    from sqldesk.shared.core.logging_setup import configure_logging

    runtime = _load_runtime(args)
    configure_logging(runtime.log_level)

    if args.command is None:
        parser.print_help()
        return 1

    session_factory = _session_factory(runtime)

    if args.command == "targets":
        from sqldesk.domains.connections.cli.commands import cmd_targets

        return cmd_targets(args, session_factory=session_factory)

    from sqldesk.domains.connections.cli.prompts import prompt_for_password

    credentials = Credentials(user=args.username, password=args.password)
    args.credentials = prompt_for_password(args.target, credentials)

    if args.command == "query":
        from sqldesk.domains.query.cli.commands import cmd_query

        return cmd_query(args, session_factory=session_factory)

    if args.command == "tree":
        from sqldesk.domains.explorer.cli.commands import cmd_tree

        return cmd_tree(args, session_factory=session_factory)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
