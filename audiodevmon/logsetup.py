"""Logging setup with console and daily-rotated file output, plus old-log cleanup."""

from __future__ import annotations

import json
import logging
import os
import sys
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

_PACKAGE_LOGGER = __name__.rpartition(".")[0] or __name__
_LOG_FILE_NAME = "audio-device-monitor.log"
_LOG_SUBDIR = Path(".local") / "share" / "audio-device-monitor" / "logs"

logger = logging.getLogger(__name__)

_installed_handlers: list[logging.Handler] = []


@dataclass
class LoggingConfig:
    """Where and how log records are written."""

    level: int = logging.INFO
    file_output: bool = True
    console_output: bool = True
    log_dir: Path | None = None
    json_format: bool = False


class _JsonFormatter(logging.Formatter):
    def __init__(self, with_location: bool) -> None:
        super().__init__()
        self._with_location = with_location

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "fields": {"message": record.getMessage()},
            "target": record.name,
        }
        if self._with_location:
            payload["threadId"] = record.thread
            payload["filename"] = record.pathname
            payload["line_number"] = record.lineno
        if record.exc_info:
            payload["fields"]["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def _make_formatter(json_format: bool, with_location: bool) -> logging.Formatter:
    if json_format:
        return _JsonFormatter(with_location=True)
    if with_location:
        return logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(filename)s:%(lineno)d: %(message)s"
        )
    return logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")


def _home_or_tmp() -> Path:
    try:
        return Path.home()
    except (RuntimeError, KeyError):
        return Path("/tmp")


def initialize_logging(config: LoggingConfig | None = None) -> logging.Handler | None:
    """Install handlers on the package logger; return the file handler, if any.

    Calling it again replaces the handlers a previous call installed.
    """
    config = config if config is not None else LoggingConfig()
    package_logger = logging.getLogger(_PACKAGE_LOGGER)

    for handler in _installed_handlers:
        package_logger.removeHandler(handler)
        handler.close()
    _installed_handlers.clear()

    package_logger.setLevel(config.level)

    if config.console_output:
        console = logging.StreamHandler(sys.stdout)
        console.setFormatter(_make_formatter(config.json_format, with_location=False))
        package_logger.addHandler(console)
        _installed_handlers.append(console)

    file_handler: logging.Handler | None = None
    log_dir: Path | None = None
    if config.file_output:
        log_dir = Path(config.log_dir) if config.log_dir is not None else _home_or_tmp() / _LOG_SUBDIR
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = TimedRotatingFileHandler(
            log_dir / _LOG_FILE_NAME, when="midnight", encoding="utf-8"
        )
        file_handler.setFormatter(_make_formatter(config.json_format, with_location=True))
        package_logger.addHandler(file_handler)
        _installed_handlers.append(file_handler)

    if log_dir is not None:
        logger.info("Logging initialized with file output: %s", log_dir)
    else:
        logger.info("Logging initialized with console output only")

    return file_handler


def get_default_log_dir() -> Path:
    """Default directory for log files under the user's home."""
    try:
        home = Path.home()
    except (RuntimeError, KeyError) as exc:
        raise RuntimeError("Failed to get home directory") from exc
    return home / _LOG_SUBDIR


def _created_time(stat: os.stat_result) -> float:
    birth = getattr(stat, "st_birthtime", None)
    return birth if birth is not None else stat.st_mtime


def cleanup_old_logs(log_dir: str | os.PathLike[str], keep_days: int) -> int:
    """Remove ``*.log`` files older than ``keep_days`` days; return how many were removed."""
    directory = Path(log_dir)
    cutoff = time.time() - 60 * 60 * 24 * keep_days

    if not directory.exists():
        return 0

    cleaned = 0
    for path in directory.iterdir():
        if not path.is_file() or path.suffix != ".log":
            continue
        try:
            created = _created_time(path.stat())
        except OSError:
            continue
        if created >= cutoff:
            continue
        try:
            path.unlink()
        except OSError as exc:
            logger.warning("Failed to remove old log file %s: %s", path, exc)
        else:
            cleaned += 1
            logger.debug("Removed old log file: %s", path)

    if cleaned:
        logger.info("Cleaned up %d old log files from %s", cleaned, directory)
    return cleaned