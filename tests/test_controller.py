import pytest

from audiodevmon.config import Config, DeviceRule, MatchType
from audiodevmon.controller import (
    DeviceController,
    Notifier,
    PriorityPolicy,
    SwitchReason,
)
from audiodevmon.device import AudioDevice, DeviceType

CONFIG_TEXT = """
[general]
check_interval_ms = 1000
log_level = "info"
daemon_mode = false

[notifications]
show_device_availability = true
show_switching_actions = true

[[output_devices]]
name = "Premium Headphones"
weight = 100
match_type = "exact"
enabled = true

[[output_devices]]
name = "Gaming Headset"
weight = 90
match_type = "contains"
enabled = true

[[output_devices]]
name = "Built-in Speakers"
weight = 50
match_type = "exact"
enabled = true

[[input_devices]]
name = "Studio Microphone"
weight = 100
match_type = "exact"
enabled = true

[[input_devices]]
name = "Gaming Headset"
weight = 80
match_type = "contains"
enabled = true

[[input_devices]]
name = "Built-in Microphone"
weight = 40
match_type = "exact"
enabled = true
"""


class FakeAudioSystem:
    def __init__(self):
        self.devices = []
        self.default_output = None
        self.default_input = None
        self.enumerate_calls = 0
        self.default_output_calls = 0
        self.default_input_calls = 0
        self.set_output_calls = []
        self.set_input_calls = []
        self.listeners = []

    def add_device(self, device):
        self.devices.append(device)

    def _find(self, key, types):
        for device in self.devices:
            if device.device_type in types and key in (device.id, device.name):
                return device
        raise LookupError(f"device {key!r} not found")

    def enumerate_devices(self):
        self.enumerate_calls += 1
        return list(self.devices)

    def get_default_output_device(self):
        self.default_output_calls += 1
        return self.default_output

    def get_default_input_device(self):
        self.default_input_calls += 1
        return self.default_input

    def set_default_output_device(self, name):
        self.set_output_calls.append(name)
        self.default_output = self._find(name, (DeviceType.OUTPUT,)).set_default(True)

    def set_default_input_device(self, name):
        self.set_input_calls.append(name)
        self.default_input = self._find(name, (DeviceType.INPUT,)).set_default(True)

    def is_device_available(self, device_id):
        return any(d.id == device_id for d in self.devices)

    def add_device_change_listener(self, callback):
        self.listeners.append(callback)


def make_config():
    return Config.from_toml(CONFIG_TEXT)


def populate(system):
    for device in [
        AudioDevice("premium-1", "Premium Headphones", DeviceType.OUTPUT),
        AudioDevice("gaming-out-1", "Gaming Headset Pro", DeviceType.OUTPUT),
        AudioDevice("builtin-out-1", "Built-in Speakers", DeviceType.OUTPUT),
        AudioDevice("studio-mic-1", "Studio Microphone", DeviceType.INPUT),
        AudioDevice("gaming-mic-1", "Gaming Headset Pro", DeviceType.INPUT),
        AudioDevice("builtin-mic-1", "Built-in Microphone", DeviceType.INPUT),
    ]:
        system.add_device(device)


def find(devices, name, kind):
    return next(d for d in devices if d.name == name and d.device_type is kind)


@pytest.fixture
def system():
    fake = FakeAudioSystem()
    populate(fake)
    return fake


@pytest.fixture
def sent():
    return []


@pytest.fixture
def controller(system, sent):
    config = make_config()
    notifier = Notifier(config, sender=lambda title, message: sent.append((title, message)))
    return DeviceController(system, config, notifier)


def test_initialize_registers_listener(controller, system):
    controller.initialize()
    assert len(system.listeners) == 1
    assert controller.current_output_device is None


def test_device_enumeration(controller, system):
    devices = controller.enumerate_devices()
    assert len(devices) == 6
    assert len([d for d in devices if d.device_type is DeviceType.OUTPUT]) == 3
    assert len([d for d in devices if d.device_type is DeviceType.INPUT]) == 3
    names = {d.name for d in devices}
    assert {"Premium Headphones", "Gaming Headset Pro", "Studio Microphone"} <= names
    assert system.enumerate_calls > 0


def test_device_switching(controller, system, sent):
    controller.initialize()
    devices = controller.enumerate_devices()
    controller.switch_to_output_device(find(devices, "Premium Headphones", DeviceType.OUTPUT))
    controller.switch_to_input_device(find(devices, "Studio Microphone", DeviceType.INPUT))
    assert system.set_output_calls == ["Premium Headphones"]
    assert system.set_input_calls == ["Studio Microphone"]
    assert controller.current_output_device.name == "Premium Headphones"
    assert controller.current_input_device.name == "Studio Microphone"
    assert len(sent) == 2
    assert str(SwitchReason.MANUAL) in sent[0][1]


def test_second_switch_reports_higher_priority(controller, sent):
    devices = controller.enumerate_devices()
    controller.switch_to_output_device(find(devices, "Built-in Speakers", DeviceType.OUTPUT))
    controller.switch_to_output_device(find(devices, "Premium Headphones", DeviceType.OUTPUT))
    assert controller.current_output_device.name == "Premium Headphones"
    assert len(sent) == 2
    assert str(SwitchReason.MANUAL) in sent[0][1]
    assert str(SwitchReason.HIGHER_PRIORITY) in sent[-1][1]


def test_default_devices_initially_none(controller):
    assert controller.get_default_output_device() is None
    assert controller.get_default_input_device() is None


def test_device_connection_handling(controller, system):
    controller.initialize()
    devices = controller.enumerate_devices()
    controller.handle_device_connected(find(devices, "Premium Headphones", DeviceType.OUTPUT))
    assert system.set_output_calls == ["Premium Headphones"]
    assert controller.current_output_device.id == "premium-1"


def test_connection_of_current_best_does_not_switch_again(controller, system):
    devices = controller.enumerate_devices()
    premium = find(devices, "Premium Headphones", DeviceType.OUTPUT)
    controller.handle_device_connected(premium)
    controller.handle_device_connected(premium)
    assert controller.current_output_device.id == "premium-1"
    assert system.set_output_calls == ["Premium Headphones"]


def test_device_disconnection_handling(controller, system):
    controller.initialize()
    devices = controller.enumerate_devices()
    premium = find(devices, "Premium Headphones", DeviceType.OUTPUT)
    controller.switch_to_output_device(premium)
    controller.handle_device_disconnected(premium)
    assert controller.current_output_device.name == "Gaming Headset Pro"
    assert system.set_output_calls[-1] == "Gaming Headset Pro"


def test_disconnect_of_non_current_device_keeps_state(controller, system):
    devices = controller.enumerate_devices()
    controller.switch_to_output_device(find(devices, "Premium Headphones", DeviceType.OUTPUT))
    controller.handle_device_disconnected(find(devices, "Built-in Speakers", DeviceType.OUTPUT))
    assert controller.current_output_device.name == "Premium Headphones"
    assert system.set_output_calls == ["Premium Headphones"]


def test_current_device_updates(controller, system):
    controller.initialize()
    assert controller.current_output_device is None
    assert controller.current_input_device is None
    system.set_default_output_device("premium-1")
    system.set_default_input_device("studio-mic-1")
    controller.update_current_devices()
    assert controller.current_output_device.name == "Premium Headphones"
    assert controller.current_input_device.name == "Studio Microphone"


def test_update_without_defaults_uses_priority(controller, system):
    controller.update_current_devices()
    assert controller.current_output_device.name == "Premium Headphones"
    assert controller.current_input_device.name == "Studio Microphone"
    assert system.default_output_calls > 0
    assert system.default_input_calls > 0


def test_handle_device_change_updates(controller):
    controller.handle_device_change()
    assert controller.current_output_device.id == "premium-1"


def test_disabled_devices_are_not_selected(system):
    config = make_config()
    config.output_devices[0].enabled = False
    config.input_devices[0].enabled = False
    controller = DeviceController(system, config)
    controller.initialize()
    devices = controller.enumerate_devices()
    controller.handle_device_connected(find(devices, "Premium Headphones", DeviceType.OUTPUT))
    controller.handle_device_connected(find(devices, "Studio Microphone", DeviceType.INPUT))
    assert controller.current_output_device.name == "Gaming Headset Pro"
    assert controller.current_input_device.name == "Gaming Headset Pro"


def test_no_devices_is_handled():
    system = FakeAudioSystem()
    controller = DeviceController(system, make_config())
    assert controller.enumerate_devices() == []
    controller.update_current_devices()
    assert controller.current_output_device is None
    assert controller.current_input_device is None


def test_set_default_unknown_device_raises(controller):
    with pytest.raises(LookupError):
        controller.set_default_output_device("Nonexistent")


def test_set_default_input_by_name(controller, system):
    controller.set_default_input_device("Built-in Microphone")
    assert system.set_input_calls == ["Built-in Microphone"]
    assert controller.get_default_input_device().id == "builtin-mic-1"


def test_is_device_available(controller):
    assert controller.is_device_available("premium-1") is True
    assert controller.is_device_available("missing") is False


def test_get_device_info_falls_back_to_id(controller):
    device = AudioDevice("x-1", "Thing", DeviceType.OUTPUT)
    assert controller.get_device_info(device).uid == "x-1"
    assert controller.get_device_info(device.with_uid("UID-1")).uid == "UID-1"


def test_failing_notifier_does_not_break_switch(system):
    def boom(title, message):
        raise RuntimeError("cannot notify")

    config = make_config()
    controller = DeviceController(system, config, Notifier(config, sender=boom))
    controller.switch_to_output_device(system.devices[0])
    assert controller.current_output_device.id == "premium-1"


def test_notifier_respects_availability_setting():
    config = make_config()
    config.notifications.show_device_availability = False
    sent = []
    notifier = Notifier(config, sender=lambda t, m: sent.append(t))
    device = AudioDevice("a", "A", DeviceType.OUTPUT)
    notifier.device_connected(device)
    notifier.device_disconnected(device)
    notifier.device_switched(device, SwitchReason.MANUAL)
    notifier.switch_failed("A", "error")
    assert sent == ["Audio Device Switched", "Audio Device Switch Failed"]


def _rule(name, weight, match_type, enabled=True):
    return DeviceRule(name, weight, match_type, enabled)


def _config(outputs, inputs=()):
    return Config(output_devices=list(outputs), input_devices=list(inputs))


def test_policy_home_office_scenario():
    policy = PriorityPolicy(
        _config(
            [
                _rule("AirPods", 300, MatchType.CONTAINS),
                _rule("Studio Display", 200, MatchType.CONTAINS),
                _rule("MacBook Pro Speakers", 10, MatchType.EXACT),
            ],
            [
                _rule("Blue Yeti", 500, MatchType.CONTAINS),
                _rule("AirPods", 200, MatchType.CONTAINS),
                _rule("MacBook Pro Microphone", 10, MatchType.EXACT),
            ],
        )
    )
    devices = [
        AudioDevice("1", "Studio Display Speakers", DeviceType.OUTPUT),
        AudioDevice("2", "Blue Yeti Microphone", DeviceType.INPUT),
        AudioDevice("3", "AirPods Pro", DeviceType.OUTPUT),
        AudioDevice("4", "AirPods Pro Microphone", DeviceType.INPUT),
    ]
    assert policy.find_best_output_device(devices).name == "AirPods Pro"
    assert policy.find_best_input_device(devices).name == "Blue Yeti Microphone"
    assert policy.find_best_input_device(devices[2:]).name == "AirPods Pro Microphone"


def test_policy_no_rules_returns_none():
    policy = PriorityPolicy(_config([]))
    devices = [AudioDevice("1", "Any Device", DeviceType.OUTPUT)]
    assert policy.find_best_output_device(devices) is None


def test_policy_ignores_disabled_rules():
    policy = PriorityPolicy(
        _config(
            [
                _rule("Enabled Device", 200, MatchType.EXACT),
                _rule("Disabled Device", 300, MatchType.EXACT, enabled=False),
            ]
        )
    )
    devices = [
        AudioDevice("1", "Enabled Device", DeviceType.OUTPUT),
        AudioDevice("2", "Disabled Device", DeviceType.OUTPUT),
    ]
    assert policy.find_best_output_device(devices).name == "Enabled Device"


def test_policy_many_rules_picks_highest_weight():
    rules = [_rule(f"Device Rule {i}", i, MatchType.CONTAINS) for i in range(50)]
    policy = PriorityPolicy(_config(rules))
    devices = [AudioDevice(str(i), f"Test Device Rule {i}", DeviceType.OUTPUT) for i in range(100)]
    assert policy.find_best_output_device(devices).name == "Test Device Rule 49"


def test_policy_match_type_mix():
    policy = PriorityPolicy(
        _config(
            [
                _rule("Air", 200, MatchType.STARTS_WITH),
                _rule("Pro", 150, MatchType.ENDS_WITH),
                _rule("Exact Match Device", 100, MatchType.EXACT),
            ]
        )
    )
    devices = [
        AudioDevice("1", "AirPods Pro", DeviceType.OUTPUT),
        AudioDevice("2", "Exact Match Device", DeviceType.OUTPUT),
        AudioDevice("3", "No Match Device", DeviceType.OUTPUT),
    ]
    assert policy.find_best_output_device(devices).name == "AirPods Pro"


def test_policy_should_switch_tracks_current():
    policy = PriorityPolicy(_config([]))
    device = AudioDevice("1", "Speakers", DeviceType.OUTPUT)
    assert policy.should_switch_output(device) is True
    policy.update_current_output("Speakers")
    assert policy.should_switch_output(device) is False
    policy.update_current_input("Mic")
    assert policy.should_switch_input(AudioDevice("2", "Mic", DeviceType.INPUT)) is False