"""Channel contract definition."""

from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from typing import Optional

from chatbridge.channels.models import InboundMessage, RegisteredGroup

# Invoked once per normalized inbound message: (chat_jid, message)
OnInboundMessage = Callable[[str, InboundMessage], None]

# Invoked for every observed conversation, registered or not:
# (chat_jid, timestamp, name, channel, is_group)
OnChatMetadata = Callable[[str, str, Optional[str], str, bool], None]

# Invoked when a channel learns a conversation's display name: (chat_jid, name)
OnChatName = Callable[[str, str], None]

# Caller-owned registration lookup, consulted without network access
RegisteredGroupsLookup = Callable[[], Mapping[str, RegisteredGroup]]


class Channel(ABC):
    """Capability interface every platform adapter implements.

    The contract carries no shared state. Each adapter keeps its own
    connection and connectivity flag so the router can treat all platforms
    uniformly through these five operations.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Short channel name, e.g. ``slack``."""
        ...

    @abstractmethod
    async def connect(self) -> None:
        """Establish the platform connection.

        On success ``is_connected()`` becomes True. On a failed handshake this
        raises ``ChannelConnectionError`` and the channel stays disconnected.
        One-time startup work (such as syncing remote metadata) may run here,
        but must not mask a handshake failure.
        """
        ...

    @abstractmethod
    async def send_message(self, jid: str, text: str) -> None:
        """Deliver text to the conversation named by ``jid``.

        Only platform-required formatting may be applied. Transport failures
        are logged and swallowed; they never propagate to the caller.
        """
        ...

    @abstractmethod
    def is_connected(self) -> bool:
        """Current connectivity state. No side effects."""
        ...

    @abstractmethod
    def owns_jid(self, jid: str) -> bool:
        """True iff the JID's platform prefix belongs to this channel.

        Pure string inspection: never touches the network and never raises.
        """
        ...

    @abstractmethod
    async def disconnect(self) -> None:
        """Release the platform connection. Safe to call more than once."""
        ...
