"""Channel abstraction for Chatbridge.

Platform adapters normalize inbound events into the message model and
implement the Channel contract. Outbound text is sanitized and then routed
to the single connected channel that owns the destination JID.

Architecture:
    Adapters → InboundMessage callbacks → caller
    caller → format_outbound → route_outbound → Channel.send_message

Key Components:
    - Channel: Capability interface for platform adapters
    - ChannelRouter: Ordered channel collection and outbound dispatch
    - strip_internal_tags: Removes internal-only markup
    - format_messages: Renders message history as a transcript
"""

from chatbridge.channels.errors import (
    ChannelConnectionError,
    ChannelError,
    NoChannelError,
)
from chatbridge.channels.formatter import escape_xml, format_messages
from chatbridge.channels.models import (
    ChannelType,
    ChatMetadata,
    InboundMessage,
    RegisteredGroup,
    make_jid,
    split_jid,
)
from chatbridge.channels.protocol import (
    Channel,
    OnChatMetadata,
    OnChatName,
    OnInboundMessage,
    RegisteredGroupsLookup,
)
from chatbridge.channels.router import ChannelRouter, find_channel, route_outbound, select_channel
from chatbridge.channels.sanitizer import format_outbound, strip_internal_tags

__all__ = [
    "Channel",
    "ChannelConnectionError",
    "ChannelError",
    "ChannelRouter",
    "ChannelType",
    "ChatMetadata",
    "InboundMessage",
    "NoChannelError",
    "OnChatMetadata",
    "OnChatName",
    "OnInboundMessage",
    "RegisteredGroup",
    "RegisteredGroupsLookup",
    "escape_xml",
    "find_channel",
    "format_messages",
    "format_outbound",
    "make_jid",
    "route_outbound",
    "select_channel",
    "split_jid",
    "strip_internal_tags",
]
