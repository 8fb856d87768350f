from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional, Sequence

from .registrations import Subscription

logger = logging.getLogger(__name__)

UPOWER_BUS_NAME = "org.freedesktop.UPower"
DISPLAY_DEVICE_PATH = "/org/freedesktop/UPower/devices/DisplayDevice"
GSD_POWER_BUS_NAME = "org.gnome.SettingsDaemon.Power"
GSD_POWER_PATH = "/org/gnome/SettingsDaemon/Power"


class UPowerProvider:
    """Power status provider backed by UPower's composite DisplayDevice.

    The five aggregate properties come from the DisplayDevice. When
    gnome-settings-daemon's power plugin is on the session bus its
    ``GetDevices`` call is used for per-device enumeration.
    """

    def __init__(self, system_bus: Any = None, session_bus: Any = None) -> None:
        if system_bus is None or session_bus is None:
            from pydbus import SessionBus, SystemBus  # type: ignore

            system_bus = system_bus or SystemBus()
            session_bus = session_bus or SessionBus()
        self._display = system_bus.get(UPOWER_BUS_NAME, DISPLAY_DEVICE_PATH)
        self._power = _get_optional(session_bus, GSD_POWER_BUS_NAME, GSD_POWER_PATH)

    @property
    def TimeToEmpty(self) -> int:
        return self._display.TimeToEmpty

    @property
    def TimeToFull(self) -> int:
        return self._display.TimeToFull

    @property
    def Percentage(self) -> float:
        return self._display.Percentage

    @property
    def IsPresent(self) -> bool:
        return self._display.IsPresent

    @property
    def State(self) -> int:
        return self._display.State

    def supports_device_enumeration(self) -> bool:
        return self._power is not None and hasattr(self._power, "GetDevices")

    def get_devices(self) -> List[Sequence[Any]]:
        if self._power is None:
            raise RuntimeError(f"{GSD_POWER_BUS_NAME} is not available for device enumeration")
        # One group per D-Bus out argument; GetDevices has a single a(susdut) result.
        return [self._power.GetDevices()]

    def connect_properties_changed(self, callback: Callable[..., None]) -> Subscription:
        handle = self._display.PropertiesChanged.connect(callback)
        return Subscription(handle.disconnect, name="DisplayDevice:PropertiesChanged")


def _get_optional(bus: Any, name: str, path: str) -> Optional[Any]:
    try:
        return bus.get(name, path)
    except Exception as exc:
        # GLib.Error when the name has no owner on the bus
        logger.info("%s not available (%s); falling back to the display device", name, exc)
        return None
