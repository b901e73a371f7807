"""
Configuration merger for Chatbridge.

Layers are plain dictionaries; later layers win.
"""

from typing import Any


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge two dictionaries.

    Nested dicts merge recursively, ``None`` removes a key, anything else
    replaces the base value. Neither input is modified.

    Examples:
        >>> deep_merge({"general": {"assistant_name": "Andy"}}, {"general": {"assistant_name": "Bo"}})
        {"general": {"assistant_name": "Bo"}}
    """
    result = base.copy()

    for key, value in override.items():
        if value is None:
            result.pop(key, None)
        elif isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def set_nested_value(config: dict[str, Any], key_path: str, value: Any) -> dict[str, Any]:
    """
    Set a nested value in a configuration dictionary.

    Creates intermediate dictionaries as needed.

    Examples:
        >>> set_nested_value({}, "channels.slack.enable", True)
        {"channels": {"slack": {"enable": True}}}
    """
    keys = key_path.split(".")
    current = config

    for key in keys[:-1]:
        if key not in current or not isinstance(current[key], dict):
            current[key] = {}
        current = current[key]

    current[keys[-1]] = value
    return config
