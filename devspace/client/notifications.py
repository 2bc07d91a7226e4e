"""User-facing notifications raised by the comment client."""

from dataclasses import dataclass
from enum import Enum

from devspace.core.logging import get_logger


logger = get_logger(__name__)


class NotificationLevel(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


@dataclass(frozen=True)
class Notification:
    message: str
    level: NotificationLevel = NotificationLevel.INFO


class Notifier:
    """Collects notifications for the view to display.

    Every notification is also logged so failures surfaced to a visitor
    leave a trace.
    """

    def __init__(self) -> None:
        self.notifications: list[Notification] = []

    def notify(
        self, message: str, level: NotificationLevel = NotificationLevel.INFO
    ) -> Notification:
        notification = Notification(message=message, level=level)
        self.notifications.append(notification)
        logger.info("notification_shown", message=message, level=level.value)
        return notification

    def success(self, message: str) -> Notification:
        return self.notify(message, NotificationLevel.SUCCESS)

    def error(self, message: str) -> Notification:
        return self.notify(message, NotificationLevel.ERROR)

    @property
    def last(self) -> Notification | None:
        return self.notifications[-1] if self.notifications else None

    def clear(self) -> None:
        self.notifications.clear()
