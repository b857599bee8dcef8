import io

from audiodevmon.config import Config, DeviceRule, MatchType, NotificationConfig
from audiodevmon.device import AudioDevice, DeviceType
from audiodevmon.monitor import AudioDeviceMonitor


class FakeAudioSystem:
    def __init__(self, devices=()):
        self.devices = list(devices)
        self.default_output = None
        self.default_input = None
        self.output_calls = []
        self.input_calls = []
        self.listeners = []

    def enumerate_devices(self):
        return list(self.devices)

    def get_default_output_device(self):
        return self.default_output

    def get_default_input_device(self):
        return self.default_input

    def set_default_output_device(self, device_name):
        self.output_calls.append(device_name)

    def set_default_input_device(self, device_name):
        self.input_calls.append(device_name)

    def is_device_available(self, device_id):
        return any(d.id == device_id for d in self.devices)

    def add_device_change_listener(self, callback):
        self.listeners.append(callback)

    def fire(self):
        for callback in list(self.listeners):
            callback()


class RecordingNotifier:
    def __init__(self):
        self.connected = []
        self.disconnected = []
        self.switched = []
        self.failed = []

    def device_connected(self, device):
        self.connected.append(device)

    def device_disconnected(self, device):
        self.disconnected.append(device)

    def device_switched(self, device, reason):
        self.switched.append((device, reason))

    def switch_failed(self, device_name, error):
        self.failed.append((device_name, error))


SPEAKERS = AudioDevice("1", "Desk Speakers", DeviceType.OUTPUT).with_uid("uid-1")
MIC = AudioDevice("2", "USB Microphone", DeviceType.INPUT).with_uid("uid-2")
HEADPHONES = AudioDevice("3", "Studio Headphones", DeviceType.OUTPUT).with_uid("uid-3")


def make_config():
    return Config(
        notifications=NotificationConfig(True, True),
        output_devices=[DeviceRule("Headphones", 100, MatchType.CONTAINS, True)],
        input_devices=[],
    )


def make_monitor(system):
    stream = io.StringIO()
    monitor = AudioDeviceMonitor(system, make_config(), RecordingNotifier(), stream)
    return monitor, stream


def test_list_initial_devices_prints_devices_and_defaults():
    system = FakeAudioSystem([SPEAKERS, MIC])
    system.default_output = SPEAKERS.set_default(True)
    system.default_input = MIC.set_default(True)
    monitor, stream = make_monitor(system)

    monitor.list_initial_devices()

    lines = stream.getvalue().splitlines()
    assert lines[0] == f"Found {len(system.devices)} audio devices:"
    assert lines[1] == f"  {SPEAKERS}"
    assert lines[2] == f"  {MIC}"
    assert lines[3] == "Default input: USB Microphone"
    assert lines[4] == "Default output: Desk Speakers"


def test_list_initial_devices_without_defaults():
    system = FakeAudioSystem([])
    monitor, stream = make_monitor(system)
    monitor.list_initial_devices()
    assert stream.getvalue().splitlines() == ["Found 0 audio devices:"]


def test_start_monitoring_registers_listener():
    system = FakeAudioSystem([SPEAKERS])
    monitor, stream = make_monitor(system)

    monitor.start_monitoring()

    assert len(system.listeners) == 1
    assert monitor.listener.is_active
    assert stream.getvalue().splitlines()[-1] == "Press Ctrl+C to stop"


def test_events_after_start_switch_devices():
    system = FakeAudioSystem([SPEAKERS])
    monitor, _ = make_monitor(system)
    monitor.start_monitoring()

    system.devices.append(HEADPHONES)
    system.fire()

    assert system.output_calls == ["Studio Headphones"]


def test_stop_ignores_later_events():
    system = FakeAudioSystem([SPEAKERS])
    monitor, _ = make_monitor(system)
    monitor.start_monitoring()
    monitor.stop()

    system.devices.append(HEADPHONES)
    system.fire()

    assert not monitor.listener.is_active
    assert system.output_calls == []


def test_config_is_kept():
    system = FakeAudioSystem([])
    monitor, _ = make_monitor(system)
    assert monitor.config.output_devices[0].name == "Headphones"