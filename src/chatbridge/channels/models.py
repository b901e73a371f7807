"""Data models for the channel layer."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

JID_SEPARATOR = ":"


class ChannelType(str, Enum):
    """Platform tags. The value doubles as the JID prefix."""

    SLACK = "slack"


def make_jid(platform: ChannelType | str, native_id: str) -> str:
    """Build a destination identifier like ``slack:C12345``."""
    prefix = platform.value if isinstance(platform, ChannelType) else platform
    return f"{prefix}{JID_SEPARATOR}{native_id}"


def split_jid(jid: str) -> tuple[str, str]:
    """Split a JID into ``(prefix, native_id)``.

    A string without a separator has an empty prefix.
    """
    prefix, sep, native_id = jid.partition(JID_SEPARATOR)
    if not sep:
        return "", jid
    return prefix, native_id


class InboundMessage(BaseModel):
    """One normalized message event, built from exactly one platform event."""

    id: str  # Platform-native id (Slack ts)
    chat_jid: str
    sender: str
    sender_name: str
    content: str = Field(min_length=1)
    timestamp: str  # ISO-8601
    is_from_me: bool = False
    is_bot_message: bool = False

    def __str__(self) -> str:
        """String representation for logging."""
        return f"[{self.chat_jid}] {self.sender_name}: {self.content[:50]}"


class ChatMetadata(BaseModel):
    """Discovery information about a conversation."""

    chat_jid: str
    timestamp: str
    name: Optional[str] = None
    channel: str
    is_group: bool = False


class RegisteredGroup(BaseModel):
    """Caller-owned registration record for a conversation."""

    model_config = ConfigDict(extra="allow")

    folder: str
    name: Optional[str] = None
