from copy import deepcopy
from pathlib import Path
from typing import Any, Dict

import yaml

DEFAULT_CONFIG_PATH = Path("certledger.config.yaml")

ALLOWED_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

BASE_DEFAULTS: Dict[str, Any] = {
    "database": {
        "url": "sqlite:///certledger.db",
        "pool_size": 5,
        "max_overflow": 0,
        "pool_timeout": 30.0,
    },
    "logging": {
        "level": "INFO",
    },
}


def _merge_defaults(config: Dict[str, Any]) -> Dict[str, Any]:
    """Overlay user sections onto the built-in defaults, one level deep."""
    merged = deepcopy(BASE_DEFAULTS)
    for section, values in config.items():
        if section in merged and isinstance(values, dict):
            merged[section].update(values)
        else:
            merged[section] = values
    return merged


def _validate(config: Dict[str, Any]) -> None:
    database = config["database"]
    if not isinstance(database, dict):
        raise ValueError("Config 'database' must be a dictionary")
    if not isinstance(database.get("url"), str) or not database["url"]:
        raise ValueError("Config 'database.url' must be a non-empty string")
    for field in ("pool_size", "max_overflow"):
        value = database.get(field)
        if not isinstance(value, int) or isinstance(value, bool) or value < 0:
            raise ValueError(f"Config 'database.{field}' must be a non-negative integer")
    if database["pool_size"] < 1:
        raise ValueError("Config 'database.pool_size' must be at least 1")
    timeout = database.get("pool_timeout")
    if not isinstance(timeout, (int, float)) or isinstance(timeout, bool) or timeout <= 0:
        raise ValueError("Config 'database.pool_timeout' must be a positive number")

    logging_cfg = config["logging"]
    if not isinstance(logging_cfg, dict):
        raise ValueError("Config 'logging' must be a dictionary")
    level = str(logging_cfg.get("level", "")).upper()
    if level not in ALLOWED_LOG_LEVELS:
        raise ValueError(
            f"Config 'logging.level' must be one of {', '.join(ALLOWED_LOG_LEVELS)}"
        )
    logging_cfg["level"] = level


def load_config(path: Path | None = None) -> Dict[str, Any]:
    """
    Load runtime configuration from YAML file.

    Args:
        path: Optional path to the config file. Defaults to certledger.config.yaml

    Returns:
        Dictionary with database and logging sections, defaults filled in

    Raises:
        FileNotFoundError: If the config file doesn't exist
        ValueError: If config structure is invalid
    """
    cfg_path = path or DEFAULT_CONFIG_PATH
    if not cfg_path.exists():
        raise FileNotFoundError(f"Config file not found: {cfg_path}")
    with cfg_path.open("r", encoding="utf-8") as f:
        config = yaml.safe_load(f)

    # An empty file means "all defaults"
    if config is None:
        config = {}
    if not isinstance(config, dict):
        raise ValueError("Config must be a dictionary")

    merged = _merge_defaults(config)
    _validate(merged)
    return merged


def default_config() -> Dict[str, Any]:
    """Built-in configuration, used when no config file is present."""
    return deepcopy(BASE_DEFAULTS)
