from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .models import BatteryReading, DestroyReason, DeviceState, Urgency
from .registrations import Subscription
from .sinks import Notification, NotificationSink, NotificationSource

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 80
SOURCE_NAME = "FullBatteryIndicator"
INDICATOR_ICON = "battery-full-charged-symbolic"

FULLY_CHARGED_MESSAGE = "Battery fully charged."
THRESHOLD_MESSAGE = "Battery has reached {percentage}%."


class NotificationPhase(Enum):
    NO_NOTIFICATION = "no-notification"
    SHOWING_NORMAL = "showing-normal"
    SHOWING_URGENT = "showing-urgent"


@dataclass
class NotificationState:
    notification: Optional[Notification] = None
    source: Optional[NotificationSource] = None
    source_subscription: Optional[Subscription] = None


class NotificationController:
    """Decides on every reading whether the single notification is shown, updated or hidden."""

    def __init__(
        self,
        sink: NotificationSink,
        state: Optional[NotificationState] = None,
        threshold: int = DEFAULT_THRESHOLD,
        source_name: str = SOURCE_NAME,
        icon: str = INDICATOR_ICON,
    ) -> None:
        self.sink = sink
        self.state = state or NotificationState()
        self.threshold = threshold
        self.source_name = source_name
        self.icon = icon

    @property
    def phase(self) -> NotificationPhase:
        notification = self.state.notification
        if notification is None or notification.destroyed:
            return NotificationPhase.NO_NOTIFICATION
        if notification.urgency == Urgency.CRITICAL:
            return NotificationPhase.SHOWING_URGENT
        return NotificationPhase.SHOWING_NORMAL

    def on_reading(self, reading: BatteryReading) -> None:
        if reading.state == DeviceState.FULLY_CHARGED or reading.percentage == 100:
            self.show(FULLY_CHARGED_MESSAGE, urgent=True)
        elif reading.state == DeviceState.CHARGING and reading.percentage >= self.threshold:
            self.show(THRESHOLD_MESSAGE.format(percentage=int(reading.percentage)))
        else:
            self.hide()

    def show(self, message: str, urgent: bool = False) -> Notification:
        source = self._ensure_source()

        if source.count == 0:
            notification = self.sink.create_notification(source, message)
        else:
            notification = source.notifications[0]
            self.sink.update_notification(notification, message, clear=True)
        self.state.notification = notification

        self.sink.set_urgency(notification, Urgency.CRITICAL if urgent else Urgency.NORMAL)
        self.sink.show_notification(source, notification)
        return notification

    def hide(self) -> None:
        notification = self.state.notification
        if notification is None:
            return
        logger.debug("Hiding notification: %s", notification.message)
        self.sink.destroy_notification(notification, DestroyReason.SOURCE_CLOSED)
        self.state.notification = None

    def close(self) -> None:
        self.hide()
        source = self.state.source
        if source is not None:
            source.destroy()
        self._forget_source()

    def _ensure_source(self) -> NotificationSource:
        if self.state.source is None:
            source = self.sink.create_source(self.source_name, self.icon)
            self.state.source = source
            self.state.source_subscription = source.connect_destroy(self._on_source_destroyed)
            logger.debug("Created notification source %s", self.source_name)
        return self.state.source

    def _on_source_destroyed(self, source: NotificationSource) -> None:
        if source is self.state.source:
            self._forget_source()

    def _forget_source(self) -> None:
        subscription = self.state.source_subscription
        self.state.source = None
        self.state.source_subscription = None
        if subscription is not None:
            subscription.dispose()
