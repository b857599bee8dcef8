"""Reacts to audio system change events: announces devices and switches by priority."""

from __future__ import annotations

import logging
import threading

from .config import Config
from .controller import AudioSystem, Notifier, PriorityPolicy, SwitchReason
from .device import AudioDevice, DeviceType

logger = logging.getLogger(__name__)


class DeviceChangeListener:
    """Watches the audio system for device list and default device changes."""

    def __init__(
        self,
        audio_system: AudioSystem,
        config: Config,
        notifier: Notifier | None = None,
    ) -> None:
        logger.info("Creating device change listener")
        self._audio_system = audio_system
        self._priority = PriorityPolicy(config)
        self._notifier = notifier if notifier is not None else Notifier(config)
        self._lock = threading.RLock()
        self._attached = False
        self._active = False
        # Snapshot the current devices so startup does not look like a flood of connections.
        try:
            initial = list(audio_system.enumerate_devices())
        except Exception as exc:
            logger.debug("Could not enumerate initial devices: %s", exc)
            initial = []
        self._previous_devices: list[AudioDevice] = initial

    @property
    def previous_devices(self) -> tuple[AudioDevice, ...]:
        """Devices seen at the last device list change."""
        with self._lock:
            return tuple(self._previous_devices)

    @property
    def priority(self) -> PriorityPolicy:
        """The priority policy used to choose devices."""
        return self._priority

    @property
    def is_active(self) -> bool:
        """Whether change events are currently being handled."""
        return self._active

    def register_listeners(self) -> None:
        """Start receiving change events from the audio system."""
        logger.info("Registering device change listeners")
        if not self._attached:
            self._audio_system.add_device_change_listener(self._on_change)
            self._attached = True
        self._active = True
        logger.info("Device change listeners registered successfully")

    def stop_monitoring(self) -> None:
        """Stop handling change events."""
        logger.info("Stopping device monitoring")
        self._active = False

    def _on_change(self) -> None:
        if not self._active:
            return
        self.handle_device_list_change()
        self.handle_default_output_change()
        self.handle_default_input_change()

    def _announce(self, action: str, func, *args) -> None:
        try:
            func(*args)
        except Exception as exc:
            logger.warning("Failed to send %s notification: %s", action, exc)

    def handle_device_list_change(self) -> None:
        """Announce connections and disconnections, then switch to better devices."""
        logger.debug("Device list changed")
        try:
            current = list(self._audio_system.enumerate_devices())
        except Exception as exc:
            logger.error("Failed to enumerate devices: %s", exc)
            return

        logger.info("Device list updated, found %d devices", len(current))

        with self._lock:
            previous = self._previous_devices
            for device in current:
                if not any(prev.uid == device.uid for prev in previous):
                    self._announce("device connected", self._notifier.device_connected, device)
            for prev in previous:
                if not any(curr.uid == prev.uid for curr in current):
                    self._announce(
                        "device disconnected", self._notifier.device_disconnected, prev
                    )
            self._previous_devices = list(current)

            outputs = [d for d in current if d.device_type is DeviceType.OUTPUT]
            inputs = [d for d in current if d.device_type is DeviceType.INPUT]

            best_output = self._priority.find_best_output_device(outputs)
            if best_output is not None and self._priority.should_switch_output(best_output):
                self._switch(best_output, self._audio_system.set_default_output_device, "output")

            best_input = self._priority.find_best_input_device(inputs)
            if best_input is not None and self._priority.should_switch_input(best_input):
                self._switch(best_input, self._audio_system.set_default_input_device, "input")

    def _switch(self, device: AudioDevice, setter, direction: str) -> None:
        logger.info("Switching to %s device: %s", direction, device.name)
        try:
            setter(device.name)
        except Exception as exc:
            logger.error("Failed to switch %s device: %s", direction, exc)
            self._announce(
                "switch failed", self._notifier.switch_failed, device.name, str(exc)
            )
            return
        logger.info("Successfully switched to %s device: %s", direction, device.name)
        self._announce(
            "device switched",
            self._notifier.device_switched,
            device,
            SwitchReason.HIGHER_PRIORITY,
        )

    def handle_default_output_change(self) -> None:
        """Record the system's new default output device."""
        logger.debug("Default output device changed")
        try:
            device = self._audio_system.get_default_output_device()
        except Exception as exc:
            logger.error("Failed to get default output device: %s", exc)
            return
        if device is None:
            logger.warning("No default output device available")
            return
        logger.info("Default output device is now: %s", device.name)
        with self._lock:
            self._priority.update_current_output(device.name)

    def handle_default_input_change(self) -> None:
        """Record the system's new default input device."""
        logger.debug("Default input device changed")
        try:
            device = self._audio_system.get_default_input_device()
        except Exception as exc:
            logger.error("Failed to get default input device: %s", exc)
            return
        if device is None:
            logger.warning("No default input device available")
            return
        logger.info("Default input device is now: %s", device.name)
        with self._lock:
            self._priority.update_current_input(device.name)