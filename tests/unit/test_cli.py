"""Tests for the sqldesk command line."""

from __future__ import annotations

import json
import logging

import pytest
from rich.logging import RichHandler

from sqldesk.cli import main
from sqldesk.shared.core.logging_setup import LOGGER_NAME, configure_logging


@pytest.fixture(autouse=True)
def _restore_package_logger():
    """configure_logging stops propagation; undo it so caplog keeps working."""
    logger = logging.getLogger(LOGGER_NAME)
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


@pytest.fixture(autouse=True)
def _isolated_settings(tmp_path, monkeypatch):
    monkeypatch.setenv("SQLDESK_SETTINGS_PATH", str(tmp_path / "settings.json"))


class TestQueryCommand:
    def test_json_output(self, capsys):
        code = main(["--mock", "query", "-t", "server_0", "-q", "SELECT * FROM `shop`.`customers`", "-o", "json"])

        assert code == 0
        rows = json.loads(capsys.readouterr().out)
        assert rows[0] == {"id": 1, "name": "Alice", "email": "alice@example.com"}

    def test_table_output(self, capsys):
        assert main(["--mock", "query", "-t", "server_0", "-q", "SELECT 1"]) == 0
        out = capsys.readouterr().out
        assert out.splitlines()[0].split(" | ")[0].strip() == "id"
        assert "(2 row(s) returned)" in out

    def test_csv_output(self, capsys):
        assert main(["--mock", "query", "-t", "server_0", "-q", "SELECT 1", "-o", "csv"]) == 0
        assert capsys.readouterr().out.splitlines()[0] == "id,name"

    def test_query_from_file(self, tmp_path, capsys):
        sql_file = tmp_path / "query.sql"
        sql_file.write_text("SELECT * FROM `shop`.`customers`")

        assert main(["--mock", "query", "-t", "server_0", "-f", str(sql_file), "-o", "json"]) == 0
        assert len(json.loads(capsys.readouterr().out)) == 2

    def test_missing_query(self, capsys):
        assert main(["--mock", "query", "-t", "server_0"]) == 1
        assert "--query or --file" in capsys.readouterr().out

    def test_failing_query(self, capsys):
        assert main(["--mock", "query", "-t", "server_0", "-q", "DESCRIBE `shop`.`missing`"]) == 1
        assert "doesn't exist" in capsys.readouterr().out


class TestTreeCommand:
    def test_expanded_tree(self, capsys):
        code = main(["--mock", "tree", "-t", "server_0", "-e", "shop", "-e", "shop.orders"])

        assert code == 0
        out = capsys.readouterr().out
        for name in ("server_0", "shop", "hr", "customers", "orders", "total", "decimal(10,2)"):
            assert name in out
        assert "employees" not in out

    def test_column_is_not_expanded(self, capsys):
        code = main(
            ["--mock", "tree", "-t", "server_0", "-e", "shop", "-e", "shop.customers", "-e", "shop.customers.id"]
        )

        assert code == 0
        out = capsys.readouterr().out
        assert "Could not expand 'shop.customers.id'" in out
        assert "email" in out

    def test_unknown_node(self, capsys):
        assert main(["--mock", "tree", "-t", "server_0", "-e", "nowhere"]) == 0
        assert "Could not expand" in capsys.readouterr().out


class TestTargetsCommand:
    def test_lists_targets(self, capsys):
        assert main(["--mock", "targets", "services"]) == 0
        assert capsys.readouterr().out.split() == ["read-write"]

    def test_unknown_resource_type(self, capsys):
        assert main(["--mock", "targets", "filters"]) == 1


class TestConfigureLogging:
    def test_replaces_handler(self):
        configure_logging("INFO")
        logger = configure_logging("debug")

        assert [type(h) for h in logger.handlers].count(RichHandler) == 1
        assert logger.level == logging.DEBUG
        assert logger.propagate is False

    def test_unknown_level_falls_back_to_warning(self):
        assert configure_logging("chatty").level == logging.WARNING


def test_no_command_prints_help(capsys):
    assert main([]) == 1
    assert "usage: sqldesk" in capsys.readouterr().out
