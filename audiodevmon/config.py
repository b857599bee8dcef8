"""Configuration model: general settings, notifications and device priority rules."""

from __future__ import annotations

import enum
import logging
import os
import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import tomli_w

logger = logging.getLogger(__name__)

_U32_MAX = 2**32 - 1
_U64_MAX = 2**64 - 1


class ConfigError(Exception):
    """Raised when configuration cannot be read, parsed or written."""


def _require(data: dict[str, Any], key: str, section: str) -> Any:
    try:
        return data[key]
    except KeyError:
        raise ConfigError(f"missing field `{key}` in [{section}]") from None


def _as_bool(value: Any, key: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"invalid type for `{key}`: expected a boolean")
    return value


def _as_str(value: Any, key: str) -> str:
    if not isinstance(value, str):
        raise ConfigError(f"invalid type for `{key}`: expected a string")
    return value


def _as_uint(value: Any, key: str, maximum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"invalid type for `{key}`: expected an integer")
    if not 0 <= value <= maximum:
        raise ConfigError(f"invalid value for `{key}`: {value} is out of range")
    return value


def _as_table(value: Any, key: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ConfigError(f"invalid type for `{key}`: expected a table")
    return value


class MatchType(enum.Enum):
    """How a rule's name is compared with a device name."""

    EXACT = "exact"
    CONTAINS = "contains"
    STARTS_WITH = "startswith"
    ENDS_WITH = "endswith"
    REGEX = "regex"


@dataclass
class DeviceRule:
    """A weighted rule that selects devices by name."""

    name: str
    weight: int
    match_type: MatchType
    enabled: bool = True

    def matches(self, device_name: str) -> bool:
        """Whether this rule is enabled and matches the given device name."""
        if not self.enabled:
            return False
        match self.match_type:
            case MatchType.EXACT:
                return device_name == self.name
            case MatchType.CONTAINS:
                return self.name in device_name
            case MatchType.STARTS_WITH:
                return device_name.startswith(self.name)
            case MatchType.ENDS_WITH:
                return device_name.endswith(self.name)
            case MatchType.REGEX:
                logger.warning("Regex matching not yet implemented, using contains instead")
                return self.name in device_name
        return False

    @classmethod
    def _from_dict(cls, data: Any) -> DeviceRule:
        table = _as_table(data, "device rule")
        raw_match = _as_str(_require(table, "match_type", "device rule"), "match_type")
        try:
            match_type = MatchType(raw_match)
        except ValueError:
            raise ConfigError(f"unknown match_type `{raw_match}`") from None
        return cls(
            name=_as_str(_require(table, "name", "device rule"), "name"),
            weight=_as_uint(_require(table, "weight", "device rule"), "weight", _U32_MAX),
            match_type=match_type,
            enabled=_as_bool(_require(table, "enabled", "device rule"), "enabled"),
        )

    def _to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "weight": self.weight,
            "match_type": self.match_type.value,
            "enabled": self.enabled,
        }


@dataclass
class GeneralConfig:
    """General service settings."""

    check_interval_ms: int = 1000
    log_level: str = "info"
    daemon_mode: bool = False

    @classmethod
    def _from_dict(cls, data: Any) -> GeneralConfig:
        table = _as_table(data, "general")
        return cls(
            check_interval_ms=_as_uint(
                _require(table, "check_interval_ms", "general"), "check_interval_ms", _U64_MAX
            ),
            log_level=_as_str(_require(table, "log_level", "general"), "log_level"),
            daemon_mode=_as_bool(_require(table, "daemon_mode", "general"), "daemon_mode"),
        )

    def _to_dict(self) -> dict[str, Any]:
        return {
            "check_interval_ms": self.check_interval_ms,
            "log_level": self.log_level,
            "daemon_mode": self.daemon_mode,
        }


@dataclass
class NotificationConfig:
    """Which notifications are shown."""

    show_device_availability: bool = False
    show_switching_actions: bool = True
    # Legacy setting, only honoured while loading older files.
    show_device_changes: bool | None = None

    def migrate_from_old_config(self) -> NotificationConfig:
        """Fold the legacy setting into the new one and drop it."""
        availability = self.show_device_availability
        old_value = self.show_device_changes
        if old_value is not None and not availability and old_value:
            availability = old_value
        return replace(self, show_device_availability=availability, show_device_changes=None)

    @classmethod
    def from_dict(cls, data: Any) -> NotificationConfig:
        """Build from a parsed table, migrating the legacy setting when needed."""
        table = _as_table(data, "notifications")
        availability = table.get("show_device_availability")
        if availability is not None:
            availability = _as_bool(availability, "show_device_availability")
        switching = _as_bool(table.get("show_switching_actions", True), "show_switching_actions")
        old_value = table.get("show_device_changes")
        if old_value is not None:
            old_value = _as_bool(old_value, "show_device_changes")

        result = availability if availability is not None else False
        if old_value is not None and availability is None:
            result = old_value
        return cls(
            show_device_availability=result,
            show_switching_actions=switching,
            show_device_changes=None,
        )

    def _to_dict(self) -> dict[str, Any]:
        return {
            "show_device_availability": self.show_device_availability,
            "show_switching_actions": self.show_switching_actions,
        }


def _default_output_rules() -> list[DeviceRule]:
    return [
        DeviceRule("AirPods", 100, MatchType.CONTAINS, True),
        DeviceRule("MacBook Pro Speakers", 10, MatchType.EXACT, True),
    ]


def _default_input_rules() -> list[DeviceRule]:
    return [
        DeviceRule("AirPods", 100, MatchType.CONTAINS, True),
        DeviceRule("MacBook Pro Microphone", 10, MatchType.EXACT, True),
    ]


def default_config_path() -> Path:
    """Location of the configuration file in the user's home directory."""
    try:
        home = Path.home()
    except (RuntimeError, KeyError) as exc:
        raise ConfigError("Failed to get home directory") from exc
    return home / ".config" / "audio-device-monitor" / "config.toml"


def _rules_from(data: dict[str, Any], key: str) -> list[DeviceRule]:
    raw = data.get(key, [])
    if not isinstance(raw, list):
        raise ConfigError(f"invalid type for `{key}`: expected an array")
    return [DeviceRule._from_dict(item) for item in raw]


@dataclass
class Config:
    """Complete configuration."""

    general: GeneralConfig = field(default_factory=GeneralConfig)
    notifications: NotificationConfig = field(default_factory=NotificationConfig)
    output_devices: list[DeviceRule] = field(default_factory=_default_output_rules)
    input_devices: list[DeviceRule] = field(default_factory=_default_input_rules)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Config:
        """Build from a parsed document; missing sections take their defaults, absent rule lists are empty."""
        table = _as_table(data, "config")
        general = (
            GeneralConfig._from_dict(table["general"]) if "general" in table else GeneralConfig()
        )
        notifications = (
            NotificationConfig.from_dict(table["notifications"])
            if "notifications" in table
            else NotificationConfig()
        )
        return cls(
            general=general,
            notifications=notifications,
            output_devices=_rules_from(table, "output_devices"),
            input_devices=_rules_from(table, "input_devices"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Plain-data form suitable for TOML serialisation."""
        return {
            "general": self.general._to_dict(),
            "notifications": self.notifications._to_dict(),
            "output_devices": [rule._to_dict() for rule in self.output_devices],
            "input_devices": [rule._to_dict() for rule in self.input_devices],
        }

    @classmethod
    def from_toml(cls, text: str) -> Config:
        """Parse a TOML document."""
        try:
            data = tomllib.loads(text)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"invalid TOML: {exc}") from exc
        return cls.from_dict(data)

    def to_toml(self) -> str:
        """Serialise to a TOML document."""
        return tomli_w.dumps(self.to_dict())

    @classmethod
    def load(cls, config_path: str | os.PathLike[str] | None = None) -> Config:
        """Load from a file, creating a default one if it does not exist."""
        path = Path(config_path) if config_path is not None else default_config_path()
        logger.debug("Loading configuration from: %s", path)

        if not path.exists():
            logger.info("Configuration file not found, creating default configuration")
            return cls._create_default_config(path)

        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ConfigError(f"Failed to read configuration file: {path}") from exc

        try:
            config = cls.from_toml(content)
        except ConfigError as exc:
            raise ConfigError(f"Failed to parse configuration file: {path}: {exc}") from exc

        config.notifications = config.notifications.migrate_from_old_config()
        logger.info("Configuration loaded successfully")
        return config

    def save(self, config_path: str | os.PathLike[str] | None = None) -> None:
        """Write to a file, creating parent directories as needed."""
        path = Path(config_path) if config_path is not None else default_config_path()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ConfigError(f"Failed to create config directory: {path.parent}") from exc

        content = self.to_toml()
        try:
            path.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"Failed to write configuration file: {path}") from exc
        logger.info("Configuration saved to: %s", path)

    @classmethod
    def _create_default_config(cls, path: Path) -> Config:
        config = cls()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.warning(
                "Could not create config directory %s: %s. Using default config without saving.",
                path.parent,
                exc,
            )
            return config
        try:
            config.save(path)
        except ConfigError as exc:
            logger.warning(
                "Could not save default config to %s: %s. Using default config.", path, exc
            )
            return config
        logger.info("Created default configuration file: %s", path)
        return config