"""Connection domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping


@dataclass
class Credentials:
    """Credentials sent to the SQL endpoint when opening a connection."""

    user: str = ""
    password: str | None = None
    # Extra body fields understood by the endpoint (e.g. "db", "timeout")
    options: dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = dict(self.options)
        if self.user:
            payload["user"] = self.user
        if self.password is not None:
            payload["password"] = self.password
        return payload


@dataclass
class ConnectionRequest:
    """A request to open a connection against one target."""

    target: str
    credentials: Credentials = field(default_factory=Credentials)
    timeout: int | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ConnectionRequest:
        """Build a request from a form-style dict.

        Unknown keys are kept as credential options so endpoint-specific
        fields pass through untouched.
        """
        payload = dict(data)
        target = str(payload.pop("target", "") or "")
        if not target:
            raise ValueError("Connection target is required")
        timeout = payload.pop("timeout", None)
        user = str(payload.pop("user", "") or "")
        password = payload.pop("password", None)
        return cls(
            target=target,
            credentials=Credentials(user=user, password=password, options=payload),
            timeout=int(timeout) if timeout is not None else None,
        )

    def to_payload(self) -> dict[str, Any]:
        body = self.credentials.to_payload()
        body["target"] = self.target
        if self.timeout is not None:
            body["timeout"] = self.timeout
        return body


@dataclass(frozen=True)
class Connection:
    """An open connection: target name plus the endpoint-assigned id."""

    target: str
    connection_id: str


@dataclass(frozen=True)
class TargetRef:
    """A target the endpoint offers connections to (server, service, monitor, ...)."""

    id: str
    type: str
