"""
Logging setup for SmartInhale.

Console output goes to stderr so command output on stdout stays clean
(`summary --json` is piped into other tools). A rotating log file under
~/.smartinhale/logs keeps the full DEBUG trail of ingested and dropped
payloads unless the [logging] config section turns it off.
"""

import logging
import logging.config
import sys

from pathlib import Path
from typing import Any

from smartinhale.constants import (
    DEFAULT_LOG_BACKUP_COUNT,
    DEFAULT_LOG_DIR,
    DEFAULT_LOG_FILE,
    DEFAULT_LOG_MAX_BYTES,
)

FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Chatty third-party loggers capped regardless of verbosity
QUIET_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool")

_logging_configured = False


def get_log_path() -> Path:
    """Path of the active log file; the directory is created owner-only."""
    log_dir = Path(DEFAULT_LOG_DIR)
    log_dir.mkdir(mode=0o700, parents=True, exist_ok=True)
    return log_dir / DEFAULT_LOG_FILE


def _get_user_logging_config() -> dict[str, Any]:
    """The [logging] config section, or {} if absent or unreadable."""
    try:
        from smartinhale.config import load_config

        section = load_config().get("logging", {})
    except Exception:
        return {}
    return section if isinstance(section, dict) else {}


def _level_name(value: Any, default: str) -> str:
    name = str(value).upper()
    if isinstance(logging.getLevelName(name), int):
        return name
    sys.stderr.write(f"WARNING: Unknown log level {value!r}, using {default}\n")
    return default


def _file_handler(user_config: dict[str, Any]) -> dict[str, Any] | None:
    """RotatingFileHandler settings, or None when file logging is disabled."""
    if not user_config.get("enabled", True):
        return None

    max_size_mb = user_config.get("max_size_mb")
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "level": _level_name(user_config.get("level", "DEBUG"), "DEBUG"),
        "formatter": "file",
        "filename": str(get_log_path()),
        "maxBytes": (
            max_size_mb * 1024 * 1024
            if max_size_mb is not None
            else DEFAULT_LOG_MAX_BYTES
        ),
        "backupCount": user_config.get("backup_count", DEFAULT_LOG_BACKUP_COUNT),
        "encoding": "utf-8",
    }


def _build_logging_config(
    verbose: bool = False,
    console_format: str | None = None,
) -> dict[str, Any]:
    """
    Build the dictConfig configuration dictionary.

    Args:
        verbose: If True, set console to DEBUG level
        console_format: Override console format string

    Returns:
        Dictionary suitable for logging.config.dictConfig()
    """
    handlers: dict[str, Any] = {
        "console": {
            "class": "logging.StreamHandler",
            "level": "DEBUG" if verbose else "INFO",
            "formatter": "console",
            "stream": "ext://sys.stderr",
        },
    }
    file_handler = _file_handler(_get_user_logging_config())
    if file_handler is not None:
        handlers["file"] = file_handler

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console": {"format": console_format or FILE_FORMAT},
            "file": {"format": FILE_FORMAT},
        },
        "handlers": handlers,
        "loggers": {name: {"level": "WARNING"} for name in QUIET_LOGGERS},
        "root": {"level": "DEBUG", "handlers": list(handlers)},
    }


def setup_logging(
    *,
    verbose: bool = False,
    console_format: str | None = None,
) -> None:
    """
    Configure logging once per process; later calls are ignored.

    Args:
        verbose: If True, set console to DEBUG level
        console_format: Override console format string. If None, uses full format.
    """
    global _logging_configured

    if _logging_configured:
        return

    try:
        logging.config.dictConfig(
            _build_logging_config(verbose=verbose, console_format=console_format)
        )
    except (ValueError, TypeError, AttributeError, ImportError, OSError) as e:
        sys.stderr.write(f"WARNING: Failed to configure logging: {e}\n")
        logging.basicConfig(
            level=logging.DEBUG if verbose else logging.INFO,
            format=console_format or "%(levelname)s: %(message)s",
        )

    _logging_configured = True
