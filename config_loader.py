#!/usr/bin/env python3
"""Configuration loader for sound detector."""
import json
from pathlib import Path
from typing import Dict, Any, Optional, Tuple

from logger import get_logger

log = get_logger(__name__)

SENSITIVITY_NAMES = ("Sensitive", "Normal", "Sleeping")


def get_default_config() -> Dict[str, Any]:
    """Return default configuration values."""
    return {
        "audio": {
            "device": "plughw:CARD=Device,DEV=0",
            "sample_rate": 16000,
            "channels": 1,
            "sample_format": "S16_LE",
            "chunk_duration": 0.5
        },
        "detection": {
            "interval_sec": 3.0,
            "sensitivity": "Normal",
            "thresholds": {
                "Sensitive": -60.0,
                "Normal": -40.0,
                "Sleeping": -20.0
            }
        },
        "discord": {
            "api_base": "https://discord.com/api/v10",
            "bot_token": "",
            "user_id": "",
            "timeout_sec": 15.0,
            "max_rate_limit_retries": None
        },
        "logging": {
            "level": "INFO",
            "log_file": None
        }
    }


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """Validate configuration structure and values."""
    defaults = get_default_config()

    # Check required top-level keys
    for key in defaults.keys():
        if key not in config:
            return False, f"Missing required config section: {key}"

    # Validate audio settings
    audio = config.get("audio", {})
    if not isinstance(audio.get("sample_rate"), int) or audio.get("sample_rate") <= 0:
        return False, "audio.sample_rate must be a positive integer"
    if not _is_number(audio.get("chunk_duration")) or audio.get("chunk_duration") <= 0:
        return False, "audio.chunk_duration must be positive"

    # Validate detection settings
    detection = config.get("detection", {})
    if not _is_number(detection.get("interval_sec")) or detection.get("interval_sec") <= 0:
        return False, "detection.interval_sec must be positive"
    sensitivity = str(detection.get("sensitivity", "")).lower()
    if sensitivity not in [name.lower() for name in SENSITIVITY_NAMES]:
        return False, f"detection.sensitivity must be one of {', '.join(SENSITIVITY_NAMES)}"
    thresholds = detection.get("thresholds", {})
    for name in SENSITIVITY_NAMES:
        if not _is_number(thresholds.get(name)):
            return False, f"detection.thresholds.{name} must be a number"

    # Validate discord settings
    discord = config.get("discord", {})
    if not _is_number(discord.get("timeout_sec")) or discord.get("timeout_sec") <= 0:
        return False, "discord.timeout_sec must be positive"
    cap = discord.get("max_rate_limit_retries")
    if cap is not None and (not isinstance(cap, int) or cap < 0):
        return False, "discord.max_rate_limit_retries must be null or a non-negative integer"

    return True, None


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load configuration from JSON file, merging with defaults.

    Args:
        config_path: Path to config file. If None, looks for config.json in current directory.

    Returns:
        Merged configuration dictionary.

    Raises:
        ValueError: If config is invalid.
    """
    defaults = get_default_config()

    if config_path is None:
        config_path = Path("config.json")

    if not config_path.exists():
        log.info(f"Config file {config_path} not found, using defaults")
        return defaults

    try:
        with config_path.open() as f:
            config = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in config file {config_path}: {e}")

    # Deep merge with defaults
    merged = _deep_merge(defaults, config)

    # Validate
    is_valid, error_msg = validate_config(merged)
    if not is_valid:
        raise ValueError(f"Invalid configuration: {error_msg}")

    log.info(f"Loaded configuration from {config_path}")
    return merged


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge two dictionaries, with override taking precedence."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def get_config_value(config: Dict[str, Any], path: str, default: Any = None) -> Any:
    """
    Get nested config value using dot notation.

    Example: get_config_value(config, "detection.interval_sec")
    """
    keys = path.split(".")
    value = config
    for key in keys:
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default
    return value
