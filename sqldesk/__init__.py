"""sqldesk - a SQL workbench client for remote SQL endpoints."""

from typing import TYPE_CHECKING, Any

__all__ = [
    "__version__",
    "main",
    "WorkbenchSession",
    "ConnectionRequest",
    "Credentials",
]

__version__ = "0.1.0"

if TYPE_CHECKING:
    from sqldesk.cli import main
    from sqldesk.domains.connections.domain.config import ConnectionRequest, Credentials
    from sqldesk.domains.shell.app.workbench import WorkbenchSession


def __getattr__(name: str) -> Any:
    """Lazy import so importing the package stays side-effect free."""
    if name == "main":
        from sqldesk.cli import main

        return main
    if name == "WorkbenchSession":
        from sqldesk.domains.shell.app.workbench import WorkbenchSession

        return WorkbenchSession
    if name == "ConnectionRequest":
        from sqldesk.domains.connections.domain.config import ConnectionRequest

        return ConnectionRequest
    if name == "Credentials":
        from sqldesk.domains.connections.domain.config import Credentials

        return Credentials
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
