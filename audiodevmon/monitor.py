"""Top-level monitor: shows the devices present and watches for changes."""

from __future__ import annotations

import logging
import sys
from typing import TextIO

from .config import Config
from .controller import AudioSystem, DeviceController, Notifier
from .listener import DeviceChangeListener

logger = logging.getLogger(__name__)


class AudioDeviceMonitor:
    """Lists the current devices and keeps a change listener running."""

    def __init__(
        self,
        audio_system: AudioSystem,
        config: Config,
        notifier: Notifier | None = None,
        stream: TextIO | None = None,
    ) -> None:
        self.config = config
        self._controller = DeviceController(audio_system, config, notifier)
        self._listener = DeviceChangeListener(audio_system, config, notifier)
        self._stream = stream
        logger.info("Created audio device monitor with change listener")

    @property
    def listener(self) -> DeviceChangeListener:
        """The listener handling change events."""
        return self._listener

    def _print(self, text: str) -> None:
        print(text, file=self._stream if self._stream is not None else sys.stdout)

    def start_monitoring(self) -> None:
        """Show the current devices and begin handling change events."""
        logger.info("Starting device monitoring")
        self.list_initial_devices()
        self._listener.register_listeners()
        logger.info("Listeners registered, monitoring device changes...")
        self._print("Device monitoring active - try plugging/unplugging audio devices")
        self._print("Press Ctrl+C to stop")

    def stop(self) -> None:
        """Stop handling change events."""
        logger.info("Stopping audio device monitor")
        self._listener.stop_monitoring()

    def list_initial_devices(self) -> None:
        """Print every device and the current defaults."""
        logger.info("Enumerating initial devices")
        devices = self._controller.enumerate_devices()

        self._print(f"Found {len(devices)} audio devices:")
        for device in devices:
            self._print(f"  {device}")

        try:
            default_input = self._controller.get_default_input_device()
        except Exception:
            default_input = None
        if default_input is not None:
            self._print(f"Default input: {default_input.name}")

        try:
            default_output = self._controller.get_default_output_device()
        except Exception:
            default_output = None
        if default_output is not None:
            self._print(f"Default output: {default_output.name}")