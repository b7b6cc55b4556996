"""Request sequencing for result slots and tree nodes."""

from __future__ import annotations

from collections.abc import Hashable


class RequestSequencer:
    """Numbers requests per key and decides which responses may be applied.

    In strict mode a response is dropped when a newer request for the same
    key has already been applied. Otherwise every response is applied in
    arrival order, so a slow response can overwrite a newer one.
    """

    def __init__(self, strict: bool = False) -> None:
        self.strict = strict
        self._issued: dict[Hashable, int] = {}
        self._applied: dict[Hashable, int] = {}

    def issue(self, key: Hashable = None) -> int:
        ticket = self._issued.get(key, 0) + 1
        self._issued[key] = ticket
        return ticket

    def accept(self, ticket: int, key: Hashable = None) -> bool:
        """Record ``ticket`` as applied unless strict mode says it is stale."""
        applied = self._applied.get(key, 0)
        if self.strict and ticket < applied:
            return False
        self._applied[key] = ticket
        return True

    def is_latest(self, ticket: int, key: Hashable = None) -> bool:
        return self._issued.get(key, 0) == ticket

    def issued(self, key: Hashable = None) -> int:
        return self._issued.get(key, 0)

    def applied(self, key: Hashable = None) -> int:
        return self._applied.get(key, 0)

