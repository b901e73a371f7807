"""
Configuration loader for Chatbridge.

Loads and merges configuration from:
1. Default values
2. Global config (~/.chatbridge/config.yaml)
3. Environment variables (CHATBRIDGE_*)
"""

import os
import re
from pathlib import Path
from typing import Any

import yaml

from chatbridge.config.merger import deep_merge, set_nested_value
from chatbridge.config.schema import Config
from chatbridge.storage.paths import get_global_config_path

ENV_PREFIX = "CHATBRIDGE_"

_ENV_REFERENCE_RE = re.compile(r"^\$\{([A-Za-z_][A-Za-z0-9_]*)\}$")


class ConfigurationError(Exception):
    """Raised when configuration loading or validation fails."""

    pass


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a YAML configuration file.

    Args:
        path: Path to the YAML file.

    Returns:
        Parsed configuration dictionary, empty if the file is missing.

    Raises:
        ConfigurationError: If the file cannot be read or parsed.
    """
    try:
        with open(path, encoding="utf-8") as f:
            content = yaml.safe_load(f)
    except FileNotFoundError:
        return {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read {path}: {e}") from e

    if content is None:
        return {}
    if not isinstance(content, dict):
        raise ConfigurationError(f"Expected a mapping at the top of {path}")
    return content


def resolve_env_reference(value: str) -> str:
    """Resolve a ``${ENV_NAME}`` reference; other values pass through.

    An unset variable resolves to an empty string.
    """
    match = _ENV_REFERENCE_RE.match(value or "")
    if match:
        return os.environ.get(match.group(1), "")
    return value


def _env_key_path(config: dict[str, Any], parts: list[str]) -> str:
    """Map ``["general", "assistant", "name"]`` onto existing keys.

    Underscores are ambiguous (``assistant_name`` vs ``assistant.name``), so
    at each level the longest run of parts naming an existing key wins.
    """
    keys: list[str] = []
    current: Any = config
    i = 0
    while i < len(parts):
        for j in range(len(parts), i, -1):
            candidate = "_".join(parts[i:j])
            if isinstance(current, dict) and candidate in current:
                keys.append(candidate)
                current = current[candidate]
                i = j
                break
        else:
            keys.extend(parts[i:])
            break
    return ".".join(keys)


def _parse_env_value(value: str) -> Any:
    """Parse an environment variable value to bool, int, float, list or str."""
    if value.lower() in ("true", "yes", "on"):
        return True
    if value.lower() in ("false", "no", "off"):
        return False

    if re.match(r"^-?\d+$", value):
        return int(value)

    if re.match(r"^-?\d+\.\d+$", value):
        return float(value)

    if "," in value:
        return [item.strip() for item in value.split(",")]

    return value


def apply_env_overrides(config: dict[str, Any]) -> dict[str, Any]:
    """
    Apply environment variable overrides to configuration.

    ``CHATBRIDGE_CHANNELS_SLACK_ENABLE=true`` sets ``channels.slack.enable``.
    ``CHATBRIDGE_HOME`` is a location, not a setting, and is skipped.
    """
    for key, value in sorted(os.environ.items()):
        if not key.startswith(ENV_PREFIX) or key == "CHATBRIDGE_HOME":
            continue

        parts = key[len(ENV_PREFIX) :].lower().split("_")
        config = set_nested_value(config, _env_key_path(config, parts), _parse_env_value(value))

    return config


def load_config(config_path: Path | None = None, skip_env: bool = False) -> Config:
    """
    Load and merge configuration from all sources.

    Args:
        config_path: Config file to read. Defaults to ~/.chatbridge/config.yaml.
        skip_env: Skip environment variable overrides.

    Returns:
        Merged and validated Config object.

    Raises:
        ConfigurationError: If configuration is invalid.
    """
    config_dict = Config().model_dump()

    path = config_path or get_global_config_path()
    config_dict = deep_merge(config_dict, load_yaml_file(path))

    if not skip_env:
        config_dict = apply_env_overrides(config_dict)

    try:
        return Config.model_validate(config_dict)
    except Exception as e:
        raise ConfigurationError(f"Configuration validation failed: {e}") from e


# Singleton for cached config
_cached_config: Config | None = None


def get_config(reload: bool = False) -> Config:
    """
    Get the global configuration instance.

    Args:
        reload: Force reload configuration from disk.

    Returns:
        Config instance.
    """
    global _cached_config

    if _cached_config is None or reload:
        _cached_config = load_config()

    return _cached_config


def clear_config_cache() -> None:
    """Clear the cached configuration."""
    global _cached_config
    _cached_config = None
