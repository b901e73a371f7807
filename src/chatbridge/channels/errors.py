"""
Channel exceptions for Chatbridge.

Connection errors are fatal to one ``connect()`` call, routing errors are
raised synchronously to the caller of the outbound path, and delivery
errors never escape an adapter's ``send_message``.
"""


class ChannelError(Exception):
    """Base exception for channel errors."""

    def __init__(self, message: str, channel: str | None = None):
        super().__init__(message)
        self.channel = channel


class ChannelConnectionError(ChannelError):
    """Platform authentication or handshake failed."""

    pass


class NoChannelError(ChannelError):
    """No connected channel owns the destination.

    The message reads ``No channel for JID: <jid>``, the wording the router has
    always logged, rather than "no channel for destination".
    """

    def __init__(self, jid: str):
        super().__init__(f"No channel for JID: {jid}")
        self.jid = jid

