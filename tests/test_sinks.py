import logging

from fullbattery.models import DestroyReason, Urgency
from fullbattery.notifications import NotificationController, NotificationState
from fullbattery.sinks import DesktopSink, LogSink


class FakeSignal:
    def __init__(self):
        self.callbacks = []

    def connect(self, callback):
        self.callbacks.append(callback)
        signal = self

        class Handle:
            def disconnect(self):
                signal.callbacks.remove(callback)

        return Handle()

    def emit(self, *args):
        for callback in list(self.callbacks):
            callback(*args)


class FakeNotificationServer:
    def __init__(self):
        self.NotificationClosed = FakeSignal()
        self.notify_calls = []
        self.closed = []
        self._next_id = 41

    def Notify(self, app_name, replaces_id, app_icon, summary, body, actions, hints, expire_timeout):
        self.notify_calls.append((app_name, replaces_id, app_icon, summary, hints))
        if replaces_id:
            return replaces_id
        self._next_id += 1
        return self._next_id

    def CloseNotification(self, server_id):
        self.closed.append(server_id)


class FakeBus:
    def __init__(self, server):
        self.server = server
        self.requested = []

    def get(self, name, path=None):
        self.requested.append(name)
        return self.server


def _desktop_sink(monkeypatch):
    monkeypatch.setattr("fullbattery.sinks._urgency_hint", lambda level: {"urgency": int(level)})
    server = FakeNotificationServer()
    return DesktopSink(bus=FakeBus(server)), server


def test_desktop_sink_replaces_notification_in_place(monkeypatch):
    sink, server = _desktop_sink(monkeypatch)
    controller = NotificationController(sink, NotificationState())

    controller.show("Battery has reached 80%.")
    controller.show("Battery fully charged.", urgent=True)

    first, second = server.notify_calls
    assert first == ("FullBatteryIndicator", 0, "battery-full-charged-symbolic", "Battery has reached 80%.", {"urgency": 1})
    assert second[1] == 42
    assert second[3] == "Battery fully charged."
    assert second[4] == {"urgency": int(Urgency.CRITICAL)}


def test_desktop_sink_closes_on_hide(monkeypatch):
    sink, server = _desktop_sink(monkeypatch)
    controller = NotificationController(sink, NotificationState())
    controller.show("Battery fully charged.", urgent=True)

    controller.hide()

    assert server.closed == [42]
    assert controller.state.source is None


def test_user_dismissal_drops_notification_and_source(monkeypatch):
    sink, server = _desktop_sink(monkeypatch)
    controller = NotificationController(sink, NotificationState())
    notification = controller.show("Battery fully charged.", urgent=True)

    server.NotificationClosed.emit(42, 2)

    assert notification.destroyed is True
    assert controller.state.source is None

    controller.show("Battery fully charged.", urgent=True)
    assert server.notify_calls[-1][1] == 0


def test_closed_signal_for_foreign_notification_is_ignored(monkeypatch):
    sink, server = _desktop_sink(monkeypatch)
    controller = NotificationController(sink, NotificationState())
    controller.show("Battery has reached 85%.")

    server.NotificationClosed.emit(7, 1)

    assert controller.state.source.count == 1


def test_desktop_sink_close_disconnects_signal(monkeypatch):
    sink, server = _desktop_sink(monkeypatch)

    sink.close()
    sink.close()

    assert server.NotificationClosed.callbacks == []


def test_log_sink_logs_shown_and_withdrawn(caplog):
    sink = LogSink()
    source = sink.create_source("FullBatteryIndicator", "battery-full-charged-symbolic")
    notification = sink.create_notification(source, "Battery fully charged.")
    sink.set_urgency(notification, Urgency.CRITICAL)

    with caplog.at_level(logging.INFO, logger="fullbattery.sinks"):
        sink.show_notification(source, notification)
        sink.destroy_notification(notification, DestroyReason.SOURCE_CLOSED)
        sink.destroy_notification(notification, DestroyReason.SOURCE_CLOSED)

    assert "[FullBatteryIndicator] Battery fully charged. (urgency=CRITICAL)" in caplog.text
    assert "withdrawn: Battery fully charged. (source-closed)" in caplog.text
    assert sink.withdrawn == [notification]
    assert source.destroyed is True
