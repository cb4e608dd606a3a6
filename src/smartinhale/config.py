"""Configuration management for SmartInhale."""

import logging
import os
import tomllib

from pathlib import Path
from typing import Any

import tomli_w

from pydantic import BaseModel, Field, ValidationError

from smartinhale.constants import (
    CORRECT_STRENGTH_THRESHOLD,
    DEFAULT_DATA_DIR,
    DEFAULT_STORE_CAPACITY,
    EXPECTED_DOSES_PER_DAY,
)

logger = logging.getLogger(__name__)

# Keys accepted by `smartinhale config set`, as "section.key"
SETTABLE_KEYS: dict[str, type] = {
    "metrics.expected_doses_per_day": int,
    "metrics.strength_threshold": float,
    "store.capacity": int,
    "logging.enabled": bool,
    "logging.level": str,
    "logging.max_size_mb": int,
    "logging.backup_count": int,
}


class MetricsSettings(BaseModel):
    """Tunable parameters for technique classification and adherence."""

    expected_doses_per_day: int = Field(
        default=EXPECTED_DOSES_PER_DAY, gt=0, description="Target doses per day"
    )
    strength_threshold: float = Field(
        default=CORRECT_STRENGTH_THRESHOLD,
        ge=0,
        description="Minimum strength (exclusive) for correct technique",
    )
    capacity: int = Field(
        default=DEFAULT_STORE_CAPACITY, gt=0, description="Max events retained"
    )


def get_config_path() -> Path:
    """Location of config.toml inside the SmartInhale data directory."""
    return DEFAULT_DATA_DIR / "config.toml"


def load_config() -> dict[str, Any]:
    """
    Read config.toml.

    A missing file is an empty config. An unreadable or malformed file is
    also treated as empty (with a warning) so a bad edit never blocks
    ingestion.
    """
    path = get_config_path()
    if not path.is_file():
        return {}

    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as e:
        logger.warning(f"Ignoring unreadable config {path}: {e}")
        return {}


def save_config(config: dict[str, Any]) -> None:
    """
    Write config.toml atomically (temp file, then os.replace).

    Raises:
        PermissionError: If the config directory cannot be created
    """
    path = get_config_path()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except PermissionError as e:
        raise PermissionError(
            f"Cannot create config directory {path.parent}: {e}"
        ) from e

    temp_path = path.with_name(path.name + ".tmp")
    try:
        temp_path.write_text(tomli_w.dumps(config), encoding="utf-8")
        os.replace(temp_path, path)
    except Exception:
        temp_path.unlink(missing_ok=True)
        raise


def get_metrics_settings() -> MetricsSettings:
    """
    Build metrics settings from the [metrics] and [store] config sections.

    Invalid values are ignored with a warning and defaults are used instead.
    """
    config = load_config()
    metrics = config.get("metrics", {})
    store = config.get("store", {})
    values: dict[str, Any] = {}
    if isinstance(metrics, dict):
        values.update(metrics)
    if isinstance(store, dict) and "capacity" in store:
        values["capacity"] = store["capacity"]

    try:
        return MetricsSettings.model_validate(values)
    except ValidationError as e:
        logger.warning(f"Invalid metrics settings in {get_config_path()}: {e}")
        return MetricsSettings()


def parse_setting_value(key: str, raw: str) -> Any:
    """
    Convert a CLI string into the type expected for a config key.

    Raises:
        KeyError: If the key is not settable
        ValueError: If the value cannot be converted
    """
    value_type = SETTABLE_KEYS[key]
    if value_type is bool:
        lowered = raw.strip().lower()
        if lowered in ("true", "yes", "1", "on"):
            return True
        if lowered in ("false", "no", "0", "off"):
            return False
        raise ValueError(f"Expected a boolean for {key}, got '{raw}'")
    return value_type(raw)


def set_setting(key: str, value: Any) -> None:
    """
    Store a single "section.key" setting in the config file.

    Args:
        key: Dotted key, one of SETTABLE_KEYS
        value: Already-typed value
    """
    section, name = key.split(".", 1)
    config = load_config()
    config.setdefault(section, {})[name] = value
    save_config(config)


def unset_setting(key: str) -> bool:
    """
    Remove a "section.key" setting from the config file.

    Empty sections are dropped, and the file is deleted once nothing is left.

    Returns:
        True if the key was present
    """
    section, name = key.split(".", 1)
    config = load_config()

    if section not in config or name not in config[section]:
        return False

    del config[section][name]
    if not config[section]:
        del config[section]

    if not config:
        config_path = get_config_path()
        if config_path.exists():
            config_path.unlink()
    else:
        save_config(config)
    return True
