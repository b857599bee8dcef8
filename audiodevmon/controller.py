"""Device controller: tracks current devices and switches by priority rules."""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable, Iterable
from typing import Protocol

from .config import Config, DeviceRule
from .device import AudioDevice, DeviceInfo, DeviceType

logger = logging.getLogger(__name__)

_OUTPUT_TYPES = (DeviceType.OUTPUT, DeviceType.INPUT_OUTPUT)
_INPUT_TYPES = (DeviceType.INPUT, DeviceType.INPUT_OUTPUT)


class SwitchReason(enum.Enum):
    """Why the active device changed."""

    HIGHER_PRIORITY = "higher priority device available"
    PREVIOUS_UNAVAILABLE = "previous device unavailable"
    MANUAL = "manual selection"

    def __str__(self) -> str:
        return self.value


class AudioSystem(Protocol):
    """Operations the controller needs from the platform audio system."""

    def enumerate_devices(self) -> list[AudioDevice]: ...

    def get_default_output_device(self) -> AudioDevice | None: ...

    def get_default_input_device(self) -> AudioDevice | None: ...

    def set_default_output_device(self, device_name: str) -> None: ...

    def set_default_input_device(self, device_name: str) -> None: ...

    def is_device_available(self, device_id: str) -> bool: ...

    def add_device_change_listener(self, callback: Callable[[], None]) -> None: ...


class PriorityPolicy:
    """Chooses the preferred device among those available using weighted rules."""

    def __init__(self, config: Config) -> None:
        self.output_rules: list[DeviceRule] = list(config.output_devices)
        self.input_rules: list[DeviceRule] = list(config.input_devices)
        self.current_output: str | None = None
        self.current_input: str | None = None

    @staticmethod
    def _weight(rules: Iterable[DeviceRule], name: str) -> int | None:
        weights = [rule.weight for rule in rules if rule.matches(name)]
        return max(weights) if weights else None

    def _best(
        self,
        devices: Iterable[AudioDevice],
        rules: list[DeviceRule],
        types: tuple[DeviceType, ...],
    ) -> AudioDevice | None:
        scored = [
            (weight, device)
            for device in devices
            if device.device_type in types
            and (weight := self._weight(rules, device.name)) is not None
        ]
        if not scored:
            return None
        return max(scored, key=lambda pair: pair[0])[1]

    def find_best_output_device(self, devices: Iterable[AudioDevice]) -> AudioDevice | None:
        """Highest-weighted output device matching an enabled rule, or None."""
        return self._best(devices, self.output_rules, _OUTPUT_TYPES)

    def find_best_input_device(self, devices: Iterable[AudioDevice]) -> AudioDevice | None:
        """Highest-weighted input device matching an enabled rule, or None."""
        return self._best(devices, self.input_rules, _INPUT_TYPES)

    def should_switch_output(self, device: AudioDevice) -> bool:
        """Whether the given output device differs from the recorded current one."""
        return self.current_output != device.name

    def should_switch_input(self, device: AudioDevice) -> bool:
        """Whether the given input device differs from the recorded current one."""
        return self.current_input != device.name

    def update_current_output(self, name: str) -> None:
        """Record the name of the current output device."""
        self.current_output = name

    def update_current_input(self, name: str) -> None:
        """Record the name of the current input device."""
        self.current_input = name


def _log_sender(title: str, message: str) -> None:
    logger.info("%s: %s", title, message)


class Notifier:
    """Sends user notifications, honouring the notification settings."""

    def __init__(
        self, config: Config, sender: Callable[[str, str], None] | None = None
    ) -> None:
        self.show_device_availability = config.notifications.show_device_availability
        self.show_switching_actions = config.notifications.show_switching_actions
        self._sender = sender if sender is not None else _log_sender

    def device_connected(self, device: AudioDevice) -> None:
        """Announce that a device became available."""
        if self.show_device_availability:
            self._sender(
                "Audio Device Connected",
                f"{device.name} ({device.device_type}) is now available",
            )

    def device_disconnected(self, device: AudioDevice) -> None:
        """Announce that a device went away."""
        if self.show_device_availability:
            self._sender(
                "Audio Device Disconnected",
                f"{device.name} ({device.device_type}) is no longer available",
            )

    def device_switched(self, device: AudioDevice, reason: SwitchReason) -> None:
        """Announce that the active device changed."""
        if self.show_switching_actions:
            self._sender(
                "Audio Device Switched",
                f"Switched {device.device_type} to {device.name} ({reason})",
            )

    def switch_failed(self, device_name: str, error: str) -> None:
        """Announce that switching to a device failed."""
        if self.show_switching_actions:
            self._sender("Audio Device Switch Failed", f"Could not switch to {device_name}: {error}")


def _same_id(current: AudioDevice | None, other: AudioDevice) -> bool:
    return current is not None and current.id == other.id


class DeviceController:
    """Keeps the current input and output devices in line with the priority rules."""

    def __init__(
        self,
        audio_system: AudioSystem,
        config: Config,
        notifier: Notifier | None = None,
    ) -> None:
        self._audio_system = audio_system
        self._priority = PriorityPolicy(config)
        self._notifier = notifier if notifier is not None else Notifier(config)
        self._current_output: AudioDevice | None = None
        self._current_input: AudioDevice | None = None

    @property
    def current_output_device(self) -> AudioDevice | None:
        """The output device the controller considers active."""
        return self._current_output

    @property
    def current_input_device(self) -> AudioDevice | None:
        """The input device the controller considers active."""
        return self._current_input

    def initialize(self) -> None:
        """Start watching for device changes without choosing devices yet."""
        logger.info("Initializing device controller")
        self.start_monitoring()
        logger.info("Device controller initialization complete")

    def start_monitoring(self) -> None:
        """Register a device change listener with the audio system."""
        logger.info("Starting device change monitoring")

        def on_change() -> None:
            logger.debug("Device change detected")

        self._audio_system.add_device_change_listener(on_change)
        logger.info("Device change monitoring started")

    def _system_default(self, getter: Callable[[], AudioDevice | None]) -> AudioDevice | None:
        try:
            return getter()
        except Exception as exc:  # the system default is best effort here
            logger.debug("Could not query system default device: %s", exc)
            return None

    def update_current_devices(self) -> None:
        """Sync with system defaults, then fill any gap by priority."""
        logger.debug("Updating current device state")

        system_output = self._system_default(self._audio_system.get_default_output_device)
        if system_output is not None and not _same_id(self._current_output, system_output):
            self._current_output = system_output

        system_input = self._system_default(self._audio_system.get_default_input_device)
        if system_input is not None and not _same_id(self._current_input, system_input):
            self._current_input = system_input

        if self._current_output is not None and self._current_input is not None:
            return

        available = self._audio_system.enumerate_devices()
        logger.debug("Found %d available devices", len(available))

        if self._current_output is None:
            best = self._priority.find_best_output_device(available)
            if best is not None:
                logger.info("Switching to output device: %s", best.name)
                self.switch_to_output_device(best)

        if self._current_input is None:
            best = self._priority.find_best_input_device(available)
            if best is not None:
                logger.info("Switching to input device: %s", best.name)
                self.switch_to_input_device(best)

    def _notify_switched(self, device: AudioDevice, had_previous: bool) -> None:
        reason = SwitchReason.HIGHER_PRIORITY if had_previous else SwitchReason.MANUAL
        try:
            self._notifier.device_switched(device, reason)
        except Exception as exc:
            logger.error("Failed to send device switched notification: %s", exc)

    def switch_to_output_device(self, device: AudioDevice) -> None:
        """Make the given device the system and current output."""
        logger.info("Switching to output device: %s (%s)", device.name, device.id)
        self._audio_system.set_default_output_device(device.name)
        had_previous = self._current_output is not None
        self._current_output = device
        self._notify_switched(device, had_previous)
        logger.info("Successfully switched to output device: %s", device.name)

    def switch_to_input_device(self, device: AudioDevice) -> None:
        """Make the given device the system and current input."""
        logger.info("Switching to input device: %s (%s)", device.name, device.id)
        self._audio_system.set_default_input_device(device.name)
        had_previous = self._current_input is not None
        self._current_input = device
        self._notify_switched(device, had_previous)
        logger.info("Successfully switched to input device: %s", device.name)

    def enumerate_devices(self) -> list[AudioDevice]:
        """All devices the audio system reports."""
        return self._audio_system.enumerate_devices()

    def get_default_output_device(self) -> AudioDevice | None:
        """The system's default output device."""
        return self._audio_system.get_default_output_device()

    def get_default_input_device(self) -> AudioDevice | None:
        """The system's default input device."""
        return self._audio_system.get_default_input_device()

    def get_device_info(self, device: AudioDevice) -> DeviceInfo:
        """Descriptive details for a device."""
        return DeviceInfo.from_device(device)

    def is_device_available(self, device_id: str) -> bool:
        """Whether the audio system currently has the device."""
        return self._audio_system.is_device_available(device_id)

    def _promote_output(self, available: list[AudioDevice]) -> None:
        best = self._priority.find_best_output_device(available)
        if best is not None and not _same_id(self._current_output, best):
            logger.info("Switching to newly connected high-priority output device: %s", best.name)
            self.switch_to_output_device(best)

    def _promote_input(self, available: list[AudioDevice]) -> None:
        best = self._priority.find_best_input_device(available)
        if best is not None and not _same_id(self._current_input, best):
            logger.info("Switching to newly connected high-priority input device: %s", best.name)
            self.switch_to_input_device(best)

    def handle_device_connected(self, device: AudioDevice) -> None:
        """Notify about a new device and switch if it changes the best choice."""
        try:
            self._notifier.device_connected(device)
        except Exception as exc:
            logger.error("Failed to send device connected notification: %s", exc)

        available = self._audio_system.enumerate_devices()
        if device.device_type in _OUTPUT_TYPES:
            self._promote_output(available)
        if device.device_type in _INPUT_TYPES:
            self._promote_input(available)

    def handle_device_disconnected(self, device: AudioDevice) -> None:
        """Forget a removed device and fall back to the best remaining one."""
        cleared = False
        if _same_id(self._current_output, device):
            logger.info("Clearing current output device: %s", device.name)
            self._current_output = None
            cleared = True
        if _same_id(self._current_input, device):
            logger.info("Clearing current input device: %s", device.name)
            self._current_input = None
            cleared = True

        try:
            self._notifier.device_disconnected(device)
        except Exception as exc:
            logger.error("Failed to send device disconnected notification: %s", exc)

        if not cleared:
            return

        available = [
            d
            for d in self._audio_system.enumerate_devices()
            if d.id != device.id and d.name != device.name
        ]

        if self._current_output is None and device.device_type is DeviceType.OUTPUT:
            best = self._priority.find_best_output_device(available)
            if best is not None:
                logger.info("Switching to alternative output device: %s", best.name)
                self.switch_to_output_device(best)

        if self._current_input is None and device.device_type is DeviceType.INPUT:
            best = self._priority.find_best_input_device(available)
            if best is not None:
                logger.info("Switching to alternative input device: %s", best.name)
                self.switch_to_input_device(best)

    def handle_device_change(self) -> None:
        """React to a device change event."""
        logger.debug("Processing device change event")
        self.update_current_devices()

    def set_default_output_device(self, device_name: str) -> None:
        """Set the system default output device by name."""
        logger.info("Setting default output device to: %s", device_name)
        self._audio_system.set_default_output_device(device_name)

    def set_default_input_device(self, device_name: str) -> None:
        """Set the system default input device by name."""
        logger.info("Setting default input device to: %s", device_name)
        self._audio_system.set_default_input_device(device_name)