"""Side-channel notifications for user-facing messages.

Core operations report noteworthy outcomes (an overlap on drop, a rejected
connection) here. A UI may subscribe to show them as toasts; the core never
depends on anyone listening. Every notification is also written to the
module logger.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


class NotificationLevel(Enum):
    """Severity of a notification."""
    INFO = "info"
    WARNING = "warning"
    SUCCESS = "success"


@dataclass
class Notification:
    """One user-facing message.

    Attributes:
        level: Severity
        message: Human-readable text
        id: Unique identifier (for dismissal)
        timestamp: When the notification was emitted (UTC)
    """
    level: NotificationLevel
    message: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


Listener = Callable[[Notification], None]

_LOG_LEVELS = {
    NotificationLevel.INFO: logging.INFO,
    NotificationLevel.WARNING: logging.WARNING,
    NotificationLevel.SUCCESS: logging.INFO,
}


class Notifier:
    """Bounded in-memory message log with optional listeners.

    Example:
        notifier = Notifier()
        notifier.subscribe(lambda n: print(n.level.value, n.message))
        notifier.warning("Overlap detected")
    """

    def __init__(self, max_messages: int = 50):
        self._messages: List[Notification] = []
        self._listeners: List[Listener] = []
        self._max_messages = max_messages

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def emit(self, level: NotificationLevel, message: str) -> Notification:
        notification = Notification(level=level, message=message)
        logger.log(_LOG_LEVELS[level], message)

        self._messages.append(notification)
        if len(self._messages) > self._max_messages:
            del self._messages[: len(self._messages) - self._max_messages]

        for listener in list(self._listeners):
            listener(notification)
        return notification

    def info(self, message: str) -> Notification:
        return self.emit(NotificationLevel.INFO, message)

    def warning(self, message: str) -> Notification:
        return self.emit(NotificationLevel.WARNING, message)

    def success(self, message: str) -> Notification:
        return self.emit(NotificationLevel.SUCCESS, message)

    @property
    def messages(self) -> List[Notification]:
        return list(self._messages)

    def latest(self, level: Optional[NotificationLevel] = None) -> Optional[Notification]:
        """Most recent notification, optionally of one level."""
        for notification in reversed(self._messages):
            if level is None or notification.level == level:
                return notification
        return None

    def dismiss(self, notification_id: str) -> None:
        self._messages = [n for n in self._messages if n.id != notification_id]

    def clear(self) -> None:
        self._messages.clear()


__all__ = [
    "NotificationLevel",
    "Notification",
    "Notifier",
]
