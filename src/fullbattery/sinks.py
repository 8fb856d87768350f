from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol

from .models import DestroyReason, Urgency
from .registrations import Subscription

logger = logging.getLogger(__name__)

NOTIFICATIONS_BUS_NAME = ".Notifications"

# org.freedesktop.Notifications NotificationClosed reason codes
_CLOSED_REASONS = {
    1: DestroyReason.EXPIRED,
    2: DestroyReason.DISMISSED,
    3: DestroyReason.SOURCE_CLOSED,
}


@dataclass(eq=False)
class Notification:
    source: "NotificationSource"
    message: str
    body: str = ""
    urgency: Urgency = Urgency.NORMAL
    server_id: int = 0          # 0 until a notification server assigned one
    destroyed: bool = False


class NotificationSource:
    def __init__(self, name: str, icon: str) -> None:
        self.name = name
        self.icon = icon
        self.notifications: List[Notification] = []
        self.destroyed = False
        self._destroy_callbacks: Dict[int, Callable[["NotificationSource"], None]] = {}
        self._ids = itertools.count()

    @property
    def count(self) -> int:
        return len(self.notifications)

    def connect_destroy(self, callback: Callable[["NotificationSource"], None]) -> Subscription:
        key = next(self._ids)
        self._destroy_callbacks[key] = callback
        return Subscription(lambda: self._destroy_callbacks.pop(key, None), name=f"{self.name}:destroy")

    def push(self, notification: Notification) -> None:
        if notification not in self.notifications:
            self.notifications.append(notification)

    def remove(self, notification: Notification) -> None:
        if notification in self.notifications:
            self.notifications.remove(notification)
        # an emptied source is gone for good
        if not self.notifications:
            self.destroy()

    def destroy(self) -> None:
        if self.destroyed:
            return
        self.destroyed = True
        for callback in list(self._destroy_callbacks.values()):
            callback(self)
        self._destroy_callbacks.clear()


class NotificationSink(Protocol):
    def create_source(self, name: str, icon: str) -> NotificationSource: ...

    def create_notification(self, source: NotificationSource, message: str) -> Notification: ...

    def update_notification(self, notification: Notification, message: str, clear: bool = False) -> None: ...

    def set_urgency(self, notification: Notification, level: Urgency) -> None: ...

    def show_notification(self, source: NotificationSource, notification: Notification) -> None: ...

    def destroy_notification(self, notification: Notification, reason: DestroyReason) -> None: ...


class _QueueSink:
    def create_source(self, name: str, icon: str) -> NotificationSource:
        return NotificationSource(name, icon)

    def create_notification(self, source: NotificationSource, message: str) -> Notification:
        return Notification(source=source, message=message)

    def update_notification(self, notification: Notification, message: str, clear: bool = False) -> None:
        notification.message = message
        if clear:
            notification.body = ""

    def set_urgency(self, notification: Notification, level: Urgency) -> None:
        notification.urgency = Urgency(level)

    def show_notification(self, source: NotificationSource, notification: Notification) -> None:
        source.push(notification)
        self._deliver(source, notification)

    def destroy_notification(self, notification: Notification, reason: DestroyReason) -> None:
        if notification.destroyed:
            return
        notification.destroyed = True
        self._withdraw(notification, reason)
        notification.source.remove(notification)

    def _deliver(self, source: NotificationSource, notification: Notification) -> None:
        raise NotImplementedError

    def _withdraw(self, notification: Notification, reason: DestroyReason) -> None:
        raise NotImplementedError


class LogSink(_QueueSink):
    """Keeps notifications in memory and logs what would be shown."""

    def __init__(self) -> None:
        self.shown: List[Notification] = []
        self.withdrawn: List[Notification] = []

    def _deliver(self, source: NotificationSource, notification: Notification) -> None:
        self.shown.append(notification)
        logger.info("[%s] %s (urgency=%s)", source.name, notification.message, notification.urgency.name)

    def _withdraw(self, notification: Notification, reason: DestroyReason) -> None:
        self.withdrawn.append(notification)
        logger.info("[%s] withdrawn: %s (%s)", notification.source.name, notification.message, reason.value)


def _urgency_hint(level: Urgency) -> Dict[str, Any]:
    from gi.repository import GLib  # type: ignore

    return {"urgency": GLib.Variant("y", int(level))}


class DesktopSink(_QueueSink):
    """Shows notifications through org.freedesktop.Notifications on the session bus.

    Updating a queued notification re-sends it with its server id as
    ``replaces_id`` so the server replaces it in place. Notifications the user
    dismisses are dropped from their source when NotificationClosed arrives.
    """

    def __init__(self, bus: Any = None, expire_timeout: int = -1) -> None:
        if bus is None:
            from pydbus import SessionBus  # type: ignore

            bus = SessionBus()
        self.expire_timeout = expire_timeout
        self._server = bus.get(NOTIFICATIONS_BUS_NAME)
        self._by_server_id: Dict[int, Notification] = {}
        self._closed_subscription: Optional[Any] = self._server.NotificationClosed.connect(self._on_closed)

    def close(self) -> None:
        subscription, self._closed_subscription = self._closed_subscription, None
        if subscription is not None:
            subscription.disconnect()

    def _deliver(self, source: NotificationSource, notification: Notification) -> None:
        server_id = self._server.Notify(
            source.name,
            notification.server_id,
            source.icon,
            notification.message,
            notification.body,
            [],
            _urgency_hint(notification.urgency),
            self.expire_timeout,
        )
        if notification.server_id and notification.server_id != server_id:
            self._by_server_id.pop(notification.server_id, None)
        notification.server_id = int(server_id)
        self._by_server_id[notification.server_id] = notification
        logger.debug("Notification %d shown: %s", notification.server_id, notification.message)

    def _withdraw(self, notification: Notification, reason: DestroyReason) -> None:
        if not notification.server_id:
            return
        self._by_server_id.pop(notification.server_id, None)
        self._server.CloseNotification(notification.server_id)
        logger.debug("Notification %d closed (%s)", notification.server_id, reason.value)

    def _on_closed(self, server_id: int, reason: int) -> None:
        notification = self._by_server_id.pop(int(server_id), None)
        if notification is None or notification.destroyed:
            return
        logger.debug(
            "Notification %d closed by server (%s)",
            server_id,
            _CLOSED_REASONS.get(int(reason), DestroyReason.EXPIRED).value,
        )
        notification.destroyed = True
        notification.source.remove(notification)
