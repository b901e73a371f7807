"""Channel adapter implementations."""

from chatbridge.channels.adapters.slack import SlackChannel

__all__ = [
    "SlackChannel",
]
