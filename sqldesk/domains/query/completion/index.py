"""Completion index fed by schema tree expansions.

The index is a flat list: a root load clears it and appends one entry per
schema, each expansion appends the newly discovered tables or columns.
Entries are never de-duplicated; expanding the same node twice without a
root reload lists its children twice.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from sqldesk.domains.explorer.domain.tree_nodes import NodeKind, SchemaNode


@dataclass(frozen=True)
class CompletionEntry:
    """An autocomplete candidate."""

    label: str
    insert_text: str
    detail: str  # SCHEMA / TABLE / COLUMN
    kind: str  # schema / table / column

    @classmethod
    def from_node(cls, node: SchemaNode) -> CompletionEntry:
        return cls(
            label=node.name,
            insert_text=node.name,
            detail=node.kind.name,
            kind=node.kind.value,
        )


class CompletionIndex:
    """Append-only list of completion entries, cleared on full rebuilds."""

    def __init__(self) -> None:
        self._entries: list[CompletionEntry] = []

    @property
    def entries(self) -> tuple[CompletionEntry, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[CompletionEntry]:
        return iter(tuple(self._entries))

    def append(self, entries: Iterable[CompletionEntry]) -> None:
        self._entries.extend(entries)

    def clear(self) -> None:
        self._entries = []

    def append_nodes(self, nodes: Iterable[SchemaNode]) -> None:
        self.append(CompletionEntry.from_node(node) for node in nodes)

    def of_kind(self, kind: NodeKind) -> list[CompletionEntry]:
        return [entry for entry in self._entries if entry.kind == kind.value]

    def match(self, text: str, max_results: int = 50) -> list[CompletionEntry]:
        """Fuzzy-filter entries by label; does not modify the index.

        Prefix matches come first (shorter labels first), then subsequence
        matches ordered by where the first character matched.
        """
        if not text:
            return list(self._entries[:max_results])

        text_lower = text.lower()
        scored: list[tuple[int, int, int, CompletionEntry]] = []

        for position, entry in enumerate(self._entries):
            label = entry.label.lower()

            if label.startswith(text_lower):
                scored.append((0, len(label), position, entry))
                continue

            idx = 0
            first_match_pos = -1
            for char in text_lower:
                idx = label.find(char, idx)
                if idx == -1:
                    break
                if first_match_pos == -1:
                    first_match_pos = idx
                idx += 1
            else:
                scored.append((1, first_match_pos * 100 + len(label), position, entry))

        scored.sort(key=lambda item: item[:3])
        return [item[3] for item in scored[:max_results]]
