"""Tests for the completion index."""

from __future__ import annotations

from sqldesk.domains.explorer.domain.tree_nodes import NodeKind, SchemaNode
from sqldesk.domains.query.completion.index import CompletionEntry, CompletionIndex


def _entry(label: str, kind: str = "table") -> CompletionEntry:
    return CompletionEntry(label=label, insert_text=label, detail=kind.upper(), kind=kind)


class TestCompletionEntry:
    def test_from_schema_node(self):
        entry = CompletionEntry.from_node(SchemaNode.schema("shop"))
        assert entry == CompletionEntry(label="shop", insert_text="shop", detail="SCHEMA", kind="schema")

    def test_from_column_node_uses_the_bare_name(self):
        column = SchemaNode.schema("shop").child("orders").child("total", "decimal")
        entry = CompletionEntry.from_node(column)
        assert entry.label == "total"
        assert entry.detail == "COLUMN"
        assert entry.kind == "column"


class TestCompletionIndex:
    """Tests for append/clear semantics."""

    def test_append_keeps_order(self):
        index = CompletionIndex()
        index.append([_entry("b"), _entry("a")])
        index.append([_entry("c")])
        assert [entry.label for entry in index] == ["b", "a", "c"]

    def test_append_does_not_deduplicate(self):
        index = CompletionIndex()
        index.append([_entry("users")])
        index.append([_entry("users")])
        assert len(index) == 2

    def test_clear(self):
        index = CompletionIndex()
        index.append([_entry("users")])
        index.clear()
        assert index.entries == ()
        index.clear()
        assert len(index) == 0

    def test_entries_is_a_snapshot(self):
        index = CompletionIndex()
        index.append([_entry("users")])
        entries = index.entries
        index.append([_entry("orders")])
        assert len(entries) == 1

    def test_append_nodes_and_of_kind(self):
        index = CompletionIndex()
        schema = SchemaNode.schema("shop")
        index.append_nodes([schema])
        index.append_nodes([schema.child("orders"), schema.child("customers")])

        assert [entry.label for entry in index.of_kind(NodeKind.TABLE)] == ["orders", "customers"]
        assert [entry.label for entry in index.of_kind(NodeKind.SCHEMA)] == ["shop"]


class TestCompletionMatch:
    """Tests for fuzzy filtering."""

    def _index(self, *labels: str) -> CompletionIndex:
        index = CompletionIndex()
        index.append(_entry(label) for label in labels)
        return index

    def test_prefix_matches_come_first(self):
        index = self._index("customer_orders", "orders", "order_items")
        labels = [entry.label for entry in index.match("ord")]
        assert labels[:2] == ["orders", "order_items"]
        assert "customer_orders" in labels

    def test_subsequence_match(self):
        index = self._index("customers", "orders")
        assert [entry.label for entry in index.match("cst")] == ["customers"]

    def test_match_is_case_insensitive(self):
        index = self._index("Customers")
        assert [entry.label for entry in index.match("cus")] == ["Customers"]

    def test_no_match(self):
        assert self._index("customers").match("xyz") == []

    def test_empty_text_returns_entries_in_order(self):
        index = self._index("b", "a", "c")
        assert [entry.label for entry in index.match("", max_results=2)] == ["b", "a"]

    def test_match_does_not_modify_the_index(self):
        index = self._index("orders", "customers")
        index.match("ord")
        assert [entry.label for entry in index] == ["orders", "customers"]
