"""Configuration loading and saving through a pluggable file system."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Protocol

from .config import Config, ConfigError, default_config_path

logger = logging.getLogger(__name__)


class _FileSystem(Protocol):
    def config_file_exists(self, path: Path) -> bool: ...

    def read_config_file(self, path: Path) -> str: ...

    def write_config_file(self, path: Path, content: str) -> None: ...

    def create_config_dir(self, path: Path) -> None: ...

    def get_config_modified_time(self, path: Path) -> float: ...


class StandardFileSystem:
    """File system operations backed by the local disk."""

    def config_file_exists(self, path: Path) -> bool:
        """Whether the file exists."""
        return Path(path).exists()

    def read_config_file(self, path: Path) -> str:
        """Read the whole file as UTF-8 text."""
        return Path(path).read_text(encoding="utf-8")

    def write_config_file(self, path: Path, content: str) -> None:
        """Write text to the file, replacing what was there."""
        Path(path).write_text(content, encoding="utf-8")

    def create_config_dir(self, path: Path) -> None:
        """Create a directory and its parents if they do not exist."""
        Path(path).mkdir(parents=True, exist_ok=True)

    def get_config_modified_time(self, path: Path) -> float:
        """Modification time of the file as a POSIX timestamp."""
        return Path(path).stat().st_mtime


class ConfigLoader:
    """Loads and saves the configuration file at a fixed path."""

    def __init__(self, file_system: _FileSystem, config_path: str | os.PathLike[str]) -> None:
        self._file_system = file_system
        self._config_path = Path(config_path)

    @property
    def config_path(self) -> Path:
        """Path of the configuration file."""
        return self._config_path

    @classmethod
    def production(cls, config_path: str | os.PathLike[str]) -> ConfigLoader:
        """A loader working on the local disk."""
        return cls(StandardFileSystem(), config_path)

    @classmethod
    def with_default_path(cls) -> ConfigLoader:
        """A loader working on the local disk at the default location."""
        return cls.production(default_config_path())

    def load_config(self) -> Config:
        """Load the configuration, creating a default one if the file is missing."""
        path = self._config_path
        logger.debug("Loading configuration from: %s", path)

        if not self._file_system.config_file_exists(path):
            logger.info("Configuration file not found, creating default configuration")
            return self._create_default_config()

        try:
            content = self._file_system.read_config_file(path)
        except (OSError, UnicodeDecodeError) as exc:
            raise ConfigError(f"Failed to read configuration file: {path}") from exc

        try:
            config = Config.from_toml(content)
        except ConfigError as exc:
            raise ConfigError(f"Failed to parse configuration file: {path}: {exc}") from exc

        config.notifications = config.notifications.migrate_from_old_config()
        logger.info("Configuration loaded successfully")
        return config

    def save_config(self, config: Config) -> None:
        """Write the configuration, creating the parent directory first."""
        path = self._config_path
        logger.debug("Saving configuration to: %s", path)

        parent = path.parent
        if parent != path:
            try:
                self._file_system.create_config_dir(parent)
            except OSError as exc:
                raise ConfigError(f"Failed to create config directory: {parent}") from exc

        content = config.to_toml()
        try:
            self._file_system.write_config_file(path, content)
        except OSError as exc:
            raise ConfigError(f"Failed to write configuration file: {path}") from exc

        logger.info("Configuration saved to: %s", path)

    def reload_config(self) -> Config:
        """Load the configuration again from the file."""
        logger.debug("Reloading configuration")
        return self.load_config()

    def is_config_modified(self, last_modified: float) -> bool:
        """Whether the file changed after the given timestamp; False if it is missing."""
        if not self._file_system.config_file_exists(self._config_path):
            return False
        try:
            current = self._file_system.get_config_modified_time(self._config_path)
        except OSError as exc:
            raise ConfigError(
                f"Failed to get modification time: {self._config_path}"
            ) from exc
        return current > last_modified

    def config_exists(self) -> bool:
        """Whether the configuration file exists."""
        return self._file_system.config_file_exists(self._config_path)

    def _create_default_config(self) -> Config:
        config = Config()
        path = self._config_path
        parent = path.parent

        if parent != path:
            try:
                self._file_system.create_config_dir(parent)
            except OSError as exc:
                logger.warning(
                    "Could not create config directory %s: %s. "
                    "Using default config without saving.",
                    parent,
                    exc,
                )
                return config

        try:
            self.save_config(config)
        except ConfigError as exc:
            logger.warning(
                "Could not save default config to %s: %s. Using default config.", path, exc
            )
            return config

        logger.info("Created default configuration file: %s", path)
        return config