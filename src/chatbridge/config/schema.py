"""
Pydantic configuration schema for Chatbridge.

This module defines all configuration models with validation.
"""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from chatbridge.channels.models import RegisteredGroup
from chatbridge.storage.paths import get_audit_log_path, get_groups_dir

# =============================================================================
# General Configuration
# =============================================================================


class GeneralConfig(BaseModel):
    """Settings shared by all channels."""

    assistant_name: str = "Andy"
    groups_dir: Path = Field(default_factory=get_groups_dir)


# =============================================================================
# Channel Configuration
# =============================================================================


class ChannelAdapterConfig(BaseModel):
    """Base configuration for channel adapters."""

    enable: bool = False


class SlackConfig(ChannelAdapterConfig):
    """Slack configuration.

    Uses Socket Mode (WebSocket connection), so no public URL is required.
    Needs both the bot token (xoxb-...) and the app-level token (xapp-...).
    Tokens may be given as ``${ENV_NAME}`` references.
    """

    bot_token: str = "${SLACK_BOT_TOKEN}"
    app_token: str = "${SLACK_APP_TOKEN}"
    sync_on_connect: bool = True
    sync_limit: int = Field(default=200, ge=1, le=1000)
    download_files: bool = True
    attachment_mount: str = "/workspace/group"


class ChannelsConfig(BaseModel):
    """All channel adapters."""

    slack: SlackConfig = Field(default_factory=SlackConfig)


# =============================================================================
# Audit Configuration
# =============================================================================


class AuditLogConfig(BaseModel):
    """Audit trail configuration."""

    enable: bool = True
    path: Path = Field(default_factory=get_audit_log_path)
    include_messages: bool = False
    hash_messages: bool = True
    buffer_size: int = Field(default=100, ge=1)
    flush_interval_seconds: int = Field(default=5, ge=0)


# =============================================================================
# Root Configuration Model
# =============================================================================


class Config(BaseModel):
    """
    Root configuration model for Chatbridge.

    Loaded from ~/.chatbridge/config.yaml with CHATBRIDGE_* environment
    overrides applied on top.
    """

    model_config = ConfigDict(extra="allow")

    general: GeneralConfig = Field(default_factory=GeneralConfig)
    channels: ChannelsConfig = Field(default_factory=ChannelsConfig)
    groups: dict[str, RegisteredGroup] = Field(default_factory=dict)
    audit: AuditLogConfig = Field(default_factory=AuditLogConfig)

    def registered_groups(self) -> dict[str, RegisteredGroup]:
        """Registered groups keyed by JID."""
        return self.groups
