from __future__ import annotations

import logging
from typing import Any, Optional

from .battery import BatteryReader, PowerProvider, ReaderMode, probe_reader_mode
from .config import AppConfig
from .models import BatteryReading
from .notifications import NotificationController, NotificationState
from .registrations import Registrations
from .sinks import NotificationSink

logger = logging.getLogger(__name__)

APP_NAME = "Full Battery Indicator"


def app_version() -> str:
    from importlib.metadata import PackageNotFoundError, version

    try:
        return version("full-battery-notifier")
    except PackageNotFoundError:
        return "0+unknown"


def decide_reader_mode(provider: PowerProvider, reader_mode: str = "auto") -> ReaderMode:
    if reader_mode == "auto":
        return probe_reader_mode(provider)
    return ReaderMode(reader_mode)


class ExtensionSession:
    """Wires a power provider to the notification controller between enable() and disable()."""

    def __init__(self, provider: PowerProvider, sink: NotificationSink, config: Optional[AppConfig] = None) -> None:
        self.provider = provider
        self.sink = sink
        self.config = config or AppConfig()
        self.reader: Optional[BatteryReader] = None
        self.controller: Optional[NotificationController] = None
        self.registrations = Registrations()

    @property
    def enabled(self) -> bool:
        return self.reader is not None

    def enable(self) -> None:
        if self.enabled:
            logger.warning("%s already enabled; resetting", APP_NAME)
            self.disable()

        logger.info("enabling %s version %s", APP_NAME, app_version())
        notifier = self.config.notifier
        self.controller = NotificationController(
            self.sink,
            NotificationState(),
            threshold=notifier.threshold,
            source_name=notifier.source_name,
            icon=notifier.icon,
        )
        try:
            mode = decide_reader_mode(self.provider, self.config.reader_mode)
            logger.info("Reading battery state in %s mode", mode.value)
            with self.registrations:
                self.registrations.add(self.provider.connect_properties_changed(self._on_properties_changed))
                self.reader = BatteryReader(self.provider, mode)
                if self.config.check_on_start:
                    self.update()
        except Exception:
            controller = self.controller
            self.reader = None
            self.controller = None
            controller.close()
            raise

    def disable(self) -> None:
        logger.info("disabling %s version %s", APP_NAME, app_version())
        try:
            self.registrations.dispose_all()
        finally:
            controller = self.controller
            self.reader = None
            self.controller = None
            if controller is not None:
                controller.close()

    def update(self) -> BatteryReading:
        if self.reader is None or self.controller is None:
            raise RuntimeError(f"{APP_NAME} is not enabled")
        reading = self.reader.read()
        logger.debug(
            "Battery %.1f%% %s (present=%s, empty in %ds, full in %ds)",
            reading.percentage,
            reading.state.name,
            reading.is_present,
            reading.time_to_empty,
            reading.time_to_full,
        )
        self.controller.on_reading(reading)
        return reading

    def _on_properties_changed(self, *_args: Any) -> None:
        self.update()
