"""User-facing notifications (toasts).

Every outcome the editor reports to the user goes through a ``Notifier``.
Notifications are logged, kept in ``history`` and forwarded to an optional
sink supplied by the host (a UI toast layer, a CLI printer, ...).
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Literal

from product_editor.infra.logging import get_logger

logger = get_logger(__name__)

Level = Literal["success", "info", "warning", "error"]


@dataclass(frozen=True)
class Notification:
    level: Level
    message: str


class Notifier:
    """Collects toasts and forwards them to the host."""

    def __init__(self, sink: Callable[[Notification], None] | None = None) -> None:
        self.sink = sink
        self.history: list[Notification] = []

    def notify(self, level: Level, message: str) -> Notification:
        notification = Notification(level=level, message=message)
        self.history.append(notification)
        log = logger.warning if level in ("warning", "error") else logger.info
        log("User notified", level=level, message=message)
        if self.sink is not None:
            self.sink(notification)
        return notification

    def success(self, message: str) -> Notification:
        return self.notify("success", message)

    def info(self, message: str) -> Notification:
        return self.notify("info", message)

    def warning(self, message: str) -> Notification:
        return self.notify("warning", message)

    def error(self, message: str) -> Notification:
        return self.notify("error", message)

    def messages(self, level: Level | None = None) -> list[str]:
        """Messages shown so far, optionally filtered by level."""
        return [n.message for n in self.history if level is None or n.level == level]

    def clear(self) -> None:
        self.history.clear()
