"""Default notification sinks."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from rich.markup import escape as escape_markup

logger = logging.getLogger(__name__)

_SEVERITY_LEVELS = {
    "information": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class LoggingNotifier:
    """Notifier that writes notifications to the log.

    Used when the workbench is embedded without a UI that can show
    toasts.
    """

    def notify(self, message: str, *, title: str = "", severity: str = "information") -> None:
        level = _SEVERITY_LEVELS.get(severity, logging.INFO)
        if title:
            logger.log(level, "%s: %s", title, message)
        else:
            logger.log(level, "%s", message)


@dataclass
class Notification:
    message: str
    title: str = ""
    severity: str = "information"


@dataclass
class RecordingNotifier:
    """Notifier that keeps every notification, for tests and headless use."""

    notifications: list[Notification] = field(default_factory=list)

    def notify(self, message: str, *, title: str = "", severity: str = "information") -> None:
        self.notifications.append(Notification(message=message, title=title, severity=severity))

    def messages(self, severity: str | None = None) -> list[str]:
        return [n.message for n in self.notifications if severity is None or n.severity == severity]


def error_text(error: BaseException) -> str:
    """Render an exception for a markup-enabled notification."""
    return escape_markup(str(error) or type(error).__name__)
