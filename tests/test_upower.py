from types import SimpleNamespace

from fullbattery.battery import ReaderMode, probe_reader_mode
from fullbattery.upower import DISPLAY_DEVICE_PATH, GSD_POWER_BUS_NAME, UPowerProvider


class FakeSignal:
    def __init__(self):
        self.callbacks = []

    def connect(self, callback):
        self.callbacks.append(callback)
        return SimpleNamespace(disconnect=lambda: self.callbacks.remove(callback))


class FakeBus:
    def __init__(self, objects):
        self.objects = objects

    def get(self, name, path=None):
        if (name, path) not in self.objects:
            raise RuntimeError(f"The name {name} was not provided by any .service files")
        return self.objects[(name, path)]


def _display_device():
    return SimpleNamespace(
        TimeToEmpty=5400,
        TimeToFull=0,
        Percentage=64.0,
        IsPresent=True,
        State=2,
        PropertiesChanged=FakeSignal(),
    )


def test_native_properties_come_from_display_device():
    display = _display_device()
    provider = UPowerProvider(
        system_bus=FakeBus({("org.freedesktop.UPower", DISPLAY_DEVICE_PATH): display}),
        session_bus=FakeBus({}),
    )

    assert provider.Percentage == 64.0
    assert provider.TimeToEmpty == 5400
    assert provider.State == 2
    assert probe_reader_mode(provider) == ReaderMode.NATIVE


def test_gsd_power_enables_device_enumeration():
    devices = [("/org/freedesktop/UPower/devices/battery_BAT0", 2, "battery", 80.0, 1, 900)]
    gsd = SimpleNamespace(GetDevices=lambda: devices)
    provider = UPowerProvider(
        system_bus=FakeBus({("org.freedesktop.UPower", DISPLAY_DEVICE_PATH): _display_device()}),
        session_bus=FakeBus({(GSD_POWER_BUS_NAME, "/org/gnome/SettingsDaemon/Power"): gsd}),
    )

    assert probe_reader_mode(provider) == ReaderMode.DEVICE
    assert provider.get_devices() == [devices]


def test_properties_changed_subscription_disconnects():
    display = _display_device()
    provider = UPowerProvider(
        system_bus=FakeBus({("org.freedesktop.UPower", DISPLAY_DEVICE_PATH): display}),
        session_bus=FakeBus({}),
    )

    token = provider.connect_properties_changed(lambda *args: None)
    assert len(display.PropertiesChanged.callbacks) == 1

    token.dispose()
    token.dispose()
    assert display.PropertiesChanged.callbacks == []
