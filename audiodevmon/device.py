"""Audio device descriptions shared by the controller, listener and monitor."""

from __future__ import annotations

import enum
from dataclasses import dataclass, replace


class DeviceType(enum.Enum):
    """Direction(s) an audio device supports."""

    INPUT = "Input"
    OUTPUT = "Output"
    INPUT_OUTPUT = "InputOutput"

    def __str__(self) -> str:
        if self is DeviceType.INPUT_OUTPUT:
            return "Input/Output"
        return self.value


@dataclass(frozen=True)
class AudioDevice:
    """A single audio device as seen by the audio system."""

    id: str
    name: str
    device_type: DeviceType
    is_default: bool = False
    is_available: bool = True
    uid: str | None = None

    def with_uid(self, uid: str) -> AudioDevice:
        """Return a copy of this device carrying the given UID."""
        return replace(self, uid=uid)

    def set_default(self, is_default: bool) -> AudioDevice:
        """Return a copy of this device with the default flag set."""
        return replace(self, is_default=is_default)

    def set_available(self, is_available: bool) -> AudioDevice:
        """Return a copy of this device with the availability flag set."""
        return replace(self, is_available=is_available)

    def __str__(self) -> str:
        state = "Default" if self.is_default else "Available"
        online = "Online" if self.is_available else "Offline"
        return f"{self.name} ({self.device_type}): {state} [{online}]"


@dataclass(frozen=True)
class DeviceInfo:
    """Descriptive details about a device."""

    name: str
    uid: str
    device_type: DeviceType
    sample_rate: int | None = None
    channels: int | None = None
    is_default: bool = False

    @classmethod
    def from_device(cls, device: AudioDevice) -> DeviceInfo:
        """Build info for a device, falling back to its id when it has no UID."""
        return cls(
            name=device.name,
            uid=device.uid if device.uid is not None else device.id,
            device_type=device.device_type,
            sample_rate=None,
            channels=None,
            is_default=device.is_default,
        )