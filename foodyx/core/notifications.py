"""
User-facing notification bus.

Every cart, checkout and tracking outcome is published here as a toast-like
notification. The UI layer subscribes async handlers; headless callers can
read the bounded ``history`` instead.
"""
from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class NotificationType(str, Enum):
    """Types of notifications."""

    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    # Blocking choice the user has to answer (no drivers / driver found)
    PROMPT = "prompt"


@dataclass
class Notification:
    """Notification payload."""

    type: NotificationType
    message: str
    title: str = ""
    data: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "message": self.message,
            "title": self.title,
            "data": self.data,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Notification":
        return cls(
            type=NotificationType(data["type"]),
            message=data["message"],
            title=data.get("title", ""),
            data=data.get("data", {}),
            created_at=datetime.fromisoformat(data["created_at"]),
        )


NotificationHandler = Callable[[Notification], Awaitable[None]]


class NotificationService:
    """In-process pub/sub for UI notifications."""

    HISTORY_SIZE = 100

    def __init__(self, history_size: int | None = None) -> None:
        self._handlers: set[NotificationHandler] = set()
        self._lock = asyncio.Lock()
        self._history: deque[Notification] = deque(maxlen=history_size or self.HISTORY_SIZE)

    @property
    def history(self) -> list[Notification]:
        return list(self._history)

    def messages(self, type_: NotificationType | None = None) -> list[str]:
        """Messages from history, optionally filtered by type."""
        return [n.message for n in self._history if type_ is None or n.type == type_]

    def clear_history(self) -> None:
        self._history.clear()

    async def subscribe(self, handler: NotificationHandler) -> None:
        async with self._lock:
            self._handlers.add(handler)
            logger.debug(f"Notification handler subscribed, total: {len(self._handlers)}")

    async def unsubscribe(self, handler: NotificationHandler) -> None:
        async with self._lock:
            self._handlers.discard(handler)

    async def notify(self, notification: Notification) -> None:
        """Record and deliver a notification; handler errors are logged only."""
        self._history.append(notification)
        for handler in self._handlers.copy():
            try:
                await handler(notification)
            except Exception as e:
                logger.error(f"Notification handler error: {e}")

    async def success(self, message: str, **data: Any) -> None:
        await self.notify(Notification(NotificationType.SUCCESS, message, data=data))

    async def error(self, message: str, **data: Any) -> None:
        await self.notify(Notification(NotificationType.ERROR, message, data=data))

    async def warning(self, message: str, **data: Any) -> None:
        await self.notify(Notification(NotificationType.WARNING, message, data=data))

    async def info(self, message: str, **data: Any) -> None:
        await self.notify(Notification(NotificationType.INFO, message, data=data))

    async def prompt(self, title: str, message: str, **data: Any) -> None:
        await self.notify(Notification(NotificationType.PROMPT, message, title=title, data=data))

    async def close(self) -> None:
        self._handlers.clear()


_notification_service: NotificationService | None = None


def get_notification_service() -> NotificationService:
    """Get the notification service singleton."""
    global _notification_service
    if _notification_service is None:
        _notification_service = NotificationService()
    return _notification_service
