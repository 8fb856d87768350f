from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Iterable, Protocol, Sequence

from .models import BatteryReading, DeviceKind, DeviceRecord, DeviceState
from .registrations import Subscription

logger = logging.getLogger(__name__)


class ReaderMode(Enum):
    NATIVE = "native"
    DEVICE = "device"


class PowerProvider(Protocol):
    TimeToEmpty: int
    TimeToFull: int
    Percentage: float
    IsPresent: bool
    State: int

    def supports_device_enumeration(self) -> bool: ...

    def get_devices(self) -> Sequence[Sequence[Any]]: ...

    def connect_properties_changed(self, callback: Callable[..., None]) -> Subscription: ...


def probe_reader_mode(provider: PowerProvider) -> ReaderMode:
    if provider.supports_device_enumeration():
        return ReaderMode.DEVICE
    return ReaderMode.NATIVE


def _fold_state(current: DeviceState, state: DeviceState) -> DeviceState:
    # charging > discharging > fully charged; other states never win
    if state in (DeviceState.CHARGING, DeviceState.PENDING_CHARGE):
        return DeviceState.CHARGING
    if state in (DeviceState.DISCHARGING, DeviceState.PENDING_DISCHARGE):
        if current != DeviceState.CHARGING:
            return DeviceState.DISCHARGING
        return current
    if state == DeviceState.FULLY_CHARGED:
        if current not in (DeviceState.CHARGING, DeviceState.DISCHARGING):
            return DeviceState.FULLY_CHARGED
        return current
    return current


def reduce_devices(groups: Iterable[Iterable[Any]]) -> BatteryReading:
    """Reduce nested groups of device records into one logical battery.

    Only records of kind BATTERY count. The percentage is the running mean over
    those batteries and the state is folded by priority. ``time_to_full`` is not
    tracked separately: it always equals the accumulated time to empty.
    """
    n_devices = 0
    is_present = False
    time_to_empty = 0
    time_to_full = 0
    percentage = 0.0
    state = DeviceState.EMPTY

    for group in groups:
        for raw in group:
            record = raw if isinstance(raw, DeviceRecord) else DeviceRecord.from_tuple(raw)
            if record.kind != DeviceKind.BATTERY:
                continue

            n_devices += 1
            is_present = True
            time_to_empty += record.time_remaining
            time_to_full = time_to_empty
            percentage = (percentage * (n_devices - 1) + record.percentage) / n_devices
            state = _fold_state(state, record.state)

    logger.debug("Reduced %d battery device(s) to %.1f%% %s", n_devices, percentage, state.name)
    return BatteryReading(
        time_to_empty=time_to_empty,
        time_to_full=time_to_full,
        percentage=percentage,
        is_present=is_present,
        state=state,
    )


def read_native(provider: PowerProvider) -> BatteryReading:
    return BatteryReading(
        time_to_empty=int(provider.TimeToEmpty),
        time_to_full=int(provider.TimeToFull),
        percentage=float(provider.Percentage),
        is_present=bool(provider.IsPresent),
        state=DeviceState.coerce(provider.State),
    )


class BatteryReader:
    def __init__(self, provider: PowerProvider, mode: ReaderMode) -> None:
        self.provider = provider
        self.mode = mode

    def read(self) -> BatteryReading:
        if self.mode == ReaderMode.DEVICE:
            return reduce_devices(self.provider.get_devices())
        return read_native(self.provider)
