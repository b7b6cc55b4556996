"""Tests for the schema tree model."""

from __future__ import annotations

import pytest

from sqldesk.domains.explorer.domain.tree_nodes import NodeKind, SchemaNode, SchemaTree


def _tree(*names: str) -> SchemaTree:
    tree = SchemaTree()
    tree.replace_roots(SchemaNode.schema(name) for name in names)
    return tree


class TestSchemaNode:
    """Tests for node construction."""

    def test_schema_node(self):
        node = SchemaNode.schema("shop")
        assert node.id == "shop"
        assert node.kind is NodeKind.SCHEMA
        assert node.children == []
        assert node.loaded is False

    def test_child_ids_join_ancestor_names(self):
        schema = SchemaNode.schema("shop")
        table = schema.child("orders")
        column = table.child("total", "decimal(10,2)")

        assert table.id == "shop.orders"
        assert table.kind is NodeKind.TABLE
        assert column.id == "shop.orders.total"
        assert column.kind is NodeKind.COLUMN
        assert column.data_type == "decimal(10,2)"
        assert column.schema_name == "shop"

    def test_only_columns_keep_a_data_type(self):
        table = SchemaNode.schema("shop").child("orders", "BASE TABLE")
        assert table.data_type is None

    def test_columns_are_leaves(self):
        column = SchemaNode.schema("shop").child("orders").child("id", "int")
        assert column.expandable is False
        with pytest.raises(ValueError):
            column.child("nope")

    def test_keys_are_unique(self):
        first = SchemaNode.schema("shop")
        second = SchemaNode.schema("shop")
        assert first.key != second.key


class TestSchemaTree:
    """Tests for the keyed tree arena."""

    def test_roots_keep_endpoint_order(self):
        tree = _tree("zeta", "alpha", "mid")
        assert [root.name for root in tree.roots] == ["zeta", "alpha", "mid"]

    def test_roots_returns_a_copy(self):
        tree = _tree("db1")
        tree.roots.clear()
        assert len(tree.roots) == 1

    def test_set_children_touches_only_the_target(self):
        tree = _tree("db1", "db2")
        db1, db2 = tree.roots

        assert tree.set_children(db1.key, [db1.child("t1"), db1.child("t2")])

        assert [child.id for child in db1.children] == ["db1.t1", "db1.t2"]
        assert db1.loaded is True
        assert db2.children == []
        assert db2.loaded is False

    def test_set_children_finds_nested_nodes_by_key(self):
        tree = _tree("db1")
        db1 = tree.roots[0]
        table = db1.child("t1")
        tree.set_children(db1.key, [table])

        assert tree.set_children(table.key, [table.child("id", "int")])
        assert tree.find("db1.t1.id") is not None
        assert tree.get(table.key) is table

    def test_set_children_for_unknown_key_leaves_tree_alone(self):
        tree = _tree("db1")
        stale = SchemaNode.schema("db1")

        assert tree.set_children(stale.key, [stale.child("t1")]) is False
        assert tree.roots[0].children == []
        assert len(tree) == 1

    def test_replace_roots_invalidates_old_keys(self):
        tree = _tree("db1")
        old = tree.roots[0]
        tree.replace_roots([SchemaNode.schema("db1")])

        assert old not in tree
        assert tree.set_children(old.key, []) is False

    def test_replacing_children_forgets_their_subtree(self):
        tree = _tree("db1")
        db1 = tree.roots[0]
        table = db1.child("t1")
        tree.set_children(db1.key, [table])
        tree.set_children(table.key, [table.child("id", "int")])

        tree.set_children(db1.key, [db1.child("t1")])

        assert table not in tree
        assert len(tree) == 2

    def test_empty_fetch_is_loaded(self):
        tree = _tree("empty_db")
        node = tree.roots[0]
        tree.set_children(node.key, [])
        assert node.loaded is True
        assert node.children == []

    def test_contains_checks_identity(self):
        tree = _tree("db1")
        lookalike = SchemaNode(id="db1", name="db1", kind=NodeKind.SCHEMA, key=tree.roots[0].key)
        assert tree.roots[0] in tree
        assert lookalike not in tree

    def test_walk_is_depth_first_in_display_order(self):
        tree = _tree("db1", "db2")
        db1 = tree.roots[0]
        t1 = db1.child("t1")
        tree.set_children(db1.key, [t1, db1.child("t2")])
        tree.set_children(t1.key, [t1.child("id", "int")])

        assert [node.id for node in tree.walk()] == ["db1", "db1.t1", "db1.t1.id", "db1.t2", "db2"]

    def test_clear(self):
        tree = _tree("db1", "db2")
        tree.clear()
        assert tree.roots == []
        assert len(tree) == 0
        assert tree.find("db1") is None
