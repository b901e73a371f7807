"""Render message history as a compact transcript for agent context."""

from collections.abc import Iterable

from chatbridge.channels.models import InboundMessage


def escape_xml(s: str) -> str:
    """Escape ``&``, ``<``, ``>`` and ``"`` with their entities."""
    if not s:
        return ""
    return (
        s.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def format_message(message: InboundMessage) -> str:
    """Render one message as a single ``<message>`` line."""
    return (
        f'<message sender="{escape_xml(message.sender_name)}" '
        f'time="{escape_xml(message.timestamp)}">'
        f"{escape_xml(message.content)}</message>"
    )


def format_messages(messages: Iterable[InboundMessage]) -> str:
    """Render messages, in the order given, inside a ``<messages>`` container.

    Example:
        >>> format_messages([])
        '<messages>\\n\\n</messages>'
    """
    lines = [format_message(m) for m in messages]
    return "<messages>\n" + "\n".join(lines) + "\n</messages>"
