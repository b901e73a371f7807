"""Outbound routing across registered channels."""

import logging
from collections.abc import Awaitable, Iterable, Sequence
from typing import Optional

from chatbridge.audit.logger import AuditLogger
from chatbridge.channels.errors import ChannelConnectionError, NoChannelError
from chatbridge.channels.protocol import Channel
from chatbridge.channels.sanitizer import format_outbound

logger = logging.getLogger(__name__)


def route_outbound(channels: Iterable[Channel], jid: str, text: str) -> Awaitable[None]:
    """Pick the owning, connected channel for ``jid`` and start the send.

    Channels are scanned in registration order and the first one that both
    owns the JID and is connected wins. Selection happens before any I/O, so
    a missing owner raises here rather than when the result is awaited.

    Args:
        channels: Channels in registration order
        jid: Destination identifier
        text: Already-sanitized text

    Returns:
        The selected channel's ``send_message`` awaitable

    Raises:
        NoChannelError: If no connected channel owns ``jid``
    """
    return select_channel(channels, jid).send_message(jid, text)


def select_channel(channels: Iterable[Channel], jid: str) -> Channel:
    """First channel that owns ``jid`` and is connected.

    Raises:
        NoChannelError: If there is none
    """
    channel = next((c for c in channels if c.owns_jid(jid) and c.is_connected()), None)
    if channel is None:
        raise NoChannelError(jid)
    return channel


def find_channel(channels: Iterable[Channel], jid: str) -> Optional[Channel]:
    """Return the first channel that owns ``jid``, connected or not."""
    return next((c for c in channels if c.owns_jid(jid)), None)


class ChannelRouter:
    """Holds the flat channel collection and dispatches outbound text.

    Channels are registered once at startup and kept in registration order,
    which is also the tie-break when two channels claim the same prefix.
    """

    def __init__(self, audit_logger: Optional[AuditLogger] = None) -> None:
        """Initialize the router.

        Args:
            audit_logger: Optional audit trail for lifecycle and routing events
        """
        self._channels: list[Channel] = []
        self._audit = audit_logger

    def register(self, channel: Channel) -> None:
        """Register a channel after the ones already registered.

        Raises:
            ValueError: If this exact instance is already registered
        """
        if any(c is channel for c in self._channels):
            raise ValueError(f"Channel {channel.name} already registered")

        self._channels.append(channel)
        logger.info(f"Registered channel: {channel.name}")

    @property
    def channels(self) -> Sequence[Channel]:
        """Registered channels, in registration order."""
        return tuple(self._channels)

    def find(self, jid: str) -> Optional[Channel]:
        """Owning channel for ``jid`` irrespective of connectivity."""
        return find_channel(self._channels, jid)

    async def connect_all(self) -> None:
        """Connect every channel in registration order.

        Raises:
            ChannelConnectionError: The first connection failure, after logging it
        """
        for channel in self._channels:
            try:
                await channel.connect()
            except ChannelConnectionError as e:
                logger.error(f"Failed to connect channel {channel.name}: {e}")
                if self._audit:
                    self._audit.log_channel_error(channel.name, str(e))
                raise

            if self._audit:
                self._audit.log_channel_connected(channel.name)

        logger.info(f"Connected {len(self._channels)} channel(s)")

    async def disconnect_all(self) -> None:
        """Disconnect every channel; one failure does not stop the others."""
        for channel in self._channels:
            try:
                await channel.disconnect()
            except Exception as e:
                logger.error(f"Failed to disconnect channel {channel.name}: {e}", exc_info=True)
                if self._audit:
                    self._audit.log_channel_error(channel.name, str(e))
                continue

            if self._audit:
                self._audit.log_channel_disconnected(channel.name)

    async def send(self, jid: str, raw_text: str) -> bool:
        """Sanitize agent output and deliver it to the owner of ``jid``.

        Args:
            jid: Destination identifier
            raw_text: Agent output, possibly carrying internal blocks

        Returns:
            False if nothing was left to send after sanitization, else True

        Raises:
            NoChannelError: If no connected channel owns ``jid``
        """
        text = format_outbound(raw_text)
        if not text:
            logger.debug(f"Nothing to send to {jid} after sanitization")
            if self._audit:
                self._audit.log_message_dropped(jid, "empty after sanitization")
            return False

        try:
            channel = select_channel(self._channels, jid)
        except NoChannelError as e:
            logger.error(str(e))
            if self._audit:
                self._audit.log_routing_failed(jid, str(e))
            raise

        await channel.send_message(jid, text)

        if self._audit:
            self._audit.log_message_sent(channel.name, jid, text)
        return True

    def status(self) -> dict[str, bool]:
        """Map channel names to their connectivity state."""
        return {channel.name: channel.is_connected() for channel in self._channels}
