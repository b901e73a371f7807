"""
Configuration for Chatbridge.

Pydantic schema, YAML loading and environment overrides.
"""

from chatbridge.config.loader import (
    ConfigurationError,
    apply_env_overrides,
    clear_config_cache,
    get_config,
    load_config,
    load_yaml_file,
    resolve_env_reference,
)
from chatbridge.config.merger import deep_merge, set_nested_value
from chatbridge.config.schema import (
    AuditLogConfig,
    ChannelsConfig,
    Config,
    GeneralConfig,
    SlackConfig,
)

__all__ = [
    "AuditLogConfig",
    "ChannelsConfig",
    "Config",
    "ConfigurationError",
    "GeneralConfig",
    "SlackConfig",
    "apply_env_overrides",
    "clear_config_cache",
    "deep_merge",
    "get_config",
    "load_config",
    "load_yaml_file",
    "resolve_env_reference",
    "set_nested_value",
]
