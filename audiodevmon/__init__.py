"""Priority-based audio device selection: configuration, switching logic, change listening and logging."""

__version__ = "0.1.0"

__all__ = [
    "config",
    "controller",
    "device",
    "listener",
    "loader",
    "logsetup",
    "monitor",
]