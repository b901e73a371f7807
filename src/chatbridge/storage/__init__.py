"""Storage utilities for Chatbridge."""

from chatbridge.storage.paths import (
    get_audit_log_path,
    get_chatbridge_home,
    get_global_config_path,
    get_groups_dir,
)

__all__ = [
    "get_audit_log_path",
    "get_chatbridge_home",
    "get_global_config_path",
    "get_groups_dir",
]
