"""Schema tree nodes for the explorer.

The tree has three levels: schemas (databases), their tables, and the
tables' columns. Each node gets a synthetic ``key`` at creation; expansion
results are merged by key, never by position, so concurrent changes to
siblings cannot redirect a merge to the wrong node.
"""

from __future__ import annotations

import itertools
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum

_node_keys = itertools.count(1)


class NodeKind(Enum):
    SCHEMA = "schema"
    TABLE = "table"
    COLUMN = "column"

    @property
    def child_kind(self) -> NodeKind | None:
        if self is NodeKind.SCHEMA:
            return NodeKind.TABLE
        if self is NodeKind.TABLE:
            return NodeKind.COLUMN
        return None


@dataclass
class SchemaNode:
    """A schema, table or column in the explorer tree."""

    id: str
    name: str
    kind: NodeKind
    data_type: str | None = None
    children: list[SchemaNode] = field(default_factory=list)
    # False until the children were fetched; an empty fetched table stays True
    loaded: bool = False
    key: int = field(default_factory=lambda: next(_node_keys))

    @property
    def expandable(self) -> bool:
        return self.kind.child_kind is not None

    @property
    def schema_name(self) -> str:
        return self.id.split(".", 1)[0]

    def child(self, name: str, data_type: str | None = None) -> SchemaNode:
        """Create (without attaching) a child node of the next level."""
        kind = self.kind.child_kind
        if kind is None:
            raise ValueError(f"Column '{self.id}' cannot have children")
        return SchemaNode(
            id=f"{self.id}.{name}",
            name=name,
            kind=kind,
            data_type=data_type if kind is NodeKind.COLUMN else None,
        )

    @classmethod
    def schema(cls, name: str) -> SchemaNode:
        return cls(id=name, name=name, kind=NodeKind.SCHEMA)


class SchemaTree:
    """Keyed arena holding the schema forest.

    ``roots`` keeps the order the endpoint returned; the key index allows
    merging expansion results into any node without walking the tree.
    """

    def __init__(self) -> None:
        self._roots: list[SchemaNode] = []
        self._by_key: dict[int, SchemaNode] = {}

    @property
    def roots(self) -> list[SchemaNode]:
        return list(self._roots)

    def __len__(self) -> int:
        return len(self._by_key)

    def __contains__(self, node: object) -> bool:
        return isinstance(node, SchemaNode) and self._by_key.get(node.key) is node

    def get(self, key: int) -> SchemaNode | None:
        return self._by_key.get(key)

    def find(self, node_id: str) -> SchemaNode | None:
        """Find a node by its dotted id."""
        for node in self.walk():
            if node.id == node_id:
                return node
        return None

    def walk(self) -> Iterator[SchemaNode]:
        """Yield every node depth-first, in display order."""
        stack = list(reversed(self._roots))
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def replace_roots(self, nodes: Iterable[SchemaNode]) -> None:
        """Replace the whole forest; every previous node key becomes stale."""
        self._roots = list(nodes)
        self._by_key = {}
        for root in self._roots:
            self._index(root)

    def set_children(self, key: int, children: Iterable[SchemaNode]) -> bool:
        """Replace a node's children wholesale.

        Returns:
            False (tree untouched) if the key is no longer in the tree.
        """
        node = self._by_key.get(key)
        if node is None:
            return False
        for old in node.children:
            self._forget(old)
        node.children = list(children)
        node.loaded = True
        for child in node.children:
            self._index(child)
        return True

    def clear(self) -> None:
        self._roots = []
        self._by_key = {}

    def _index(self, node: SchemaNode) -> None:
        self._by_key[node.key] = node
        for child in node.children:
            self._index(child)

    def _forget(self, node: SchemaNode) -> None:
        self._by_key.pop(node.key, None)
        for child in node.children:
            self._forget(child)
