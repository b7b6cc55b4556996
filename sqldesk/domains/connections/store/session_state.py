"""Durable session state: which connection ids belong to which targets.

Only the target -> connection id mapping, the active target and a session
marker survive a reload. The schema tree and completion index are always
rebuilt from the endpoint.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from sqldesk.shared.core.store import CONFIG_DIR, JSONFileStore


@dataclass
class SessionMarker:
    """Marks a live session; expires after the configured TTL."""

    target: str
    created_at: float

    def is_expired(self, ttl: float | None, now: float | None = None) -> bool:
        if not ttl:
            return False
        current = time.time() if now is None else now
        return current - self.created_at > ttl

    def to_dict(self) -> dict[str, Any]:
        return {"target": self.target, "created_at": self.created_at}

    @classmethod
    def from_dict(cls, data: Any) -> SessionMarker | None:
        if not isinstance(data, dict):
            return None
        target = data.get("target")
        created_at = data.get("created_at")
        if not isinstance(target, str) or not isinstance(created_at, (int, float)):
            return None
        return cls(target=target, created_at=float(created_at))


@dataclass
class SessionState:
    """Snapshot of the persisted session."""

    connections: dict[str, str] = field(default_factory=dict)
    active_target: str | None = None
    marker: SessionMarker | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "connections": dict(self.connections),
            "active_target": self.active_target,
            "marker": self.marker.to_dict() if self.marker else None,
        }

    @classmethod
    def from_dict(cls, data: Any) -> SessionState:
        """Parse persisted data, dropping anything that is not str -> str."""
        if not isinstance(data, dict):
            return cls()
        raw = data.get("connections")
        connections: dict[str, str] = {}
        if isinstance(raw, dict):
            connections = {k: v for k, v in raw.items() if isinstance(k, str) and isinstance(v, str)}
        active = data.get("active_target")
        return cls(
            connections=connections,
            active_target=active if isinstance(active, str) else None,
            marker=SessionMarker.from_dict(data.get("marker")),
        )


class SessionStateStore(JSONFileStore):
    """Store for the persisted session, kept in ~/.sqldesk/session.json."""

    def __init__(self, file_path: Path | None = None) -> None:
        super().__init__(file_path or CONFIG_DIR / "session.json")

    def load(self) -> SessionState:
        return SessionState.from_dict(self._read_json())

    def save(self, state: SessionState) -> None:
        self._write_json(state.to_dict())

    def clear(self) -> None:
        self._remove()


class InMemorySessionStateStore:
    """Session store that lives only as long as the process."""

    def __init__(self, state: SessionState | None = None) -> None:
        self._data: dict[str, Any] | None = state.to_dict() if state else None

    def load(self) -> SessionState:
        return SessionState.from_dict(self._data)

    def save(self, state: SessionState) -> None:
        self._data = state.to_dict()

    def clear(self) -> None:
        self._data = None
