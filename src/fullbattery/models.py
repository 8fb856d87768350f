from __future__ import annotations
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, Sequence


class DeviceState(IntEnum):
    # UPower device states, same numbering as on the bus.
    UNKNOWN = 0
    CHARGING = 1
    DISCHARGING = 2
    EMPTY = 3
    FULLY_CHARGED = 4
    PENDING_CHARGE = 5
    PENDING_DISCHARGE = 6

    @classmethod
    def coerce(cls, value: Any) -> "DeviceState":
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            return cls.UNKNOWN


class DeviceKind(IntEnum):
    UNKNOWN = 0
    LINE_POWER = 1
    BATTERY = 2
    UPS = 3
    MONITOR = 4
    MOUSE = 5
    KEYBOARD = 6
    PDA = 7
    PHONE = 8

    @classmethod
    def coerce(cls, value: Any) -> "DeviceKind":
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            return cls.UNKNOWN


class Urgency(IntEnum):
    # freedesktop.org notification "urgency" hint byte
    LOW = 0
    NORMAL = 1
    CRITICAL = 2


class DestroyReason(Enum):
    EXPIRED = "expired"
    DISMISSED = "dismissed"
    SOURCE_CLOSED = "source-closed"
    REPLACED = "replaced"


@dataclass(frozen=True)
class BatteryReading:
    time_to_empty: int          # seconds
    time_to_full: int           # seconds
    percentage: float           # 0..100
    is_present: bool
    state: DeviceState


@dataclass(frozen=True)
class DeviceRecord:
    id: str
    kind: DeviceKind
    icon: str
    percentage: float
    state: DeviceState
    time_remaining: int         # seconds

    @classmethod
    def from_tuple(cls, raw: Sequence[Any]) -> "DeviceRecord":
        device_id, kind, icon, percentage, state, time_remaining = raw
        return cls(
            id=str(device_id),
            kind=DeviceKind.coerce(kind),
            icon=str(icon),
            percentage=float(percentage),
            state=DeviceState.coerce(state),
            time_remaining=int(time_remaining),
        )
