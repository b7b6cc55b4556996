"""Error types raised by endpoints and connection handling."""

from __future__ import annotations


class WorkbenchError(Exception):
    """Base class for sqldesk errors."""


class EndpointError(WorkbenchError):
    """A remote call failed (transport error or non-2xx status)."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class UnexpectedResponseError(EndpointError):
    """The remote endpoint answered with a body we cannot interpret."""


class NotConnectedError(WorkbenchError):
    """No connection id is mapped for the active target."""

    def __init__(self, target: str | None = None) -> None:
        if target:
            message = f"No open connection for target '{target}'"
        else:
            message = "No active connection"
        super().__init__(message)
        self.target = target
