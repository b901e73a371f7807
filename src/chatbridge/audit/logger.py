"""
Audit logging for Chatbridge operations.

This module provides JSON Lines based audit logging for tracking
channel connections and the messages that cross them.
"""

import hashlib
import json
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any


class AuditEventType(str, Enum):
    """Types of audit events."""

    # Channel lifecycle
    CHANNEL_CONNECTED = "channel_connected"
    CHANNEL_DISCONNECTED = "channel_disconnected"
    CHANNEL_ERROR = "channel_error"

    # Message flow
    MESSAGE_RECEIVED = "message_received"
    MESSAGE_SENT = "message_sent"
    MESSAGE_DROPPED = "message_dropped"
    ROUTING_FAILED = "routing_failed"


class AuditLogger:
    """
    JSON Lines based audit logger.

    Events are buffered and appended to the log file when the buffer fills
    or the flush interval has elapsed.
    """

    def __init__(
        self,
        log_path: str | Path,
        enable: bool = True,
        include_messages: bool = False,
        hash_messages: bool = True,
        buffer_size: int = 100,
        flush_interval_seconds: int = 5,
    ) -> None:
        """
        Initialize audit logger.

        Args:
            log_path: Path to audit log file
            enable: Whether logging is enabled
            include_messages: Whether to log full message bodies
            hash_messages: Whether to log a SHA256 of bodies that are not included
            buffer_size: Number of events to buffer before flush
            flush_interval_seconds: Seconds between forced flushes
        """
        self.log_path = Path(log_path).expanduser()
        self.enable = enable
        self.include_messages = include_messages
        self.hash_messages = hash_messages
        self.buffer_size = buffer_size
        self.flush_interval_seconds = flush_interval_seconds

        self._buffer: list[dict[str, Any]] = []
        self._last_flush = datetime.now()

        if self.enable:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)

    @classmethod
    def from_config(cls, config: Any) -> "AuditLogger":
        """
        Create audit logger from configuration.

        Args:
            config: AuditLogConfig instance

        Returns:
            Configured AuditLogger
        """
        return cls(
            log_path=config.path,
            enable=config.enable,
            include_messages=config.include_messages,
            hash_messages=config.hash_messages,
            buffer_size=config.buffer_size,
            flush_interval_seconds=config.flush_interval_seconds,
        )

    def _body_fields(self, key: str, text: str) -> dict[str, Any]:
        """Full text, its SHA-256, or only its length, depending on settings."""
        if self.include_messages:
            return {key: text}
        if self.hash_messages:
            return {f"{key}_hash": hashlib.sha256(text.encode()).hexdigest()}
        return {f"{key}_length": len(text)}

    def _record(self, event_type: AuditEventType, **fields: Any) -> None:
        if not self.enable:
            return

        self._buffer.append(
            {"timestamp": datetime.now().isoformat(), "event_type": event_type.value, **fields}
        )

        elapsed = (datetime.now() - self._last_flush).total_seconds()
        if len(self._buffer) >= self.buffer_size or elapsed >= self.flush_interval_seconds:
            self.flush()

    def flush(self) -> None:
        """Append buffered events to the log file."""
        if not self.enable or not self._buffer:
            return

        lines = "".join(json.dumps(event) + "\n" for event in self._buffer)
        with self.log_path.open("a", encoding="utf-8") as f:
            f.write(lines)

        self._buffer.clear()
        self._last_flush = datetime.now()

    # Channel lifecycle

    def log_channel_connected(self, channel: str) -> None:
        self._record(AuditEventType.CHANNEL_CONNECTED, channel=channel)

    def log_channel_disconnected(self, channel: str) -> None:
        self._record(AuditEventType.CHANNEL_DISCONNECTED, channel=channel)

    def log_channel_error(self, channel: str, error: str) -> None:
        self._record(AuditEventType.CHANNEL_ERROR, channel=channel, error=error)

    # Message flow

    def log_message_received(self, channel: str, jid: str, sender: str, message: str) -> None:
        """Log a message a channel delivered to the caller."""
        self._record(
            AuditEventType.MESSAGE_RECEIVED,
            channel=channel,
            jid=jid,
            sender=sender,
            **self._body_fields("message", message),
        )

    def log_message_sent(self, channel: str, jid: str, text: str) -> None:
        """Log text handed to a channel for delivery."""
        self._record(AuditEventType.MESSAGE_SENT, channel=channel, jid=jid, **self._body_fields("text", text))

    def log_message_dropped(self, jid: str, reason: str) -> None:
        """Log outbound text that was never handed to a channel."""
        self._record(AuditEventType.MESSAGE_DROPPED, jid=jid, reason=reason)

    def log_routing_failed(self, jid: str, error: str) -> None:
        """Log a destination with no connected owner."""
        self._record(AuditEventType.ROUTING_FAILED, jid=jid, error=error)

    def close(self) -> None:
        """Close the audit logger and flush remaining events."""
        self.flush()


# Singleton instance
_audit_logger: AuditLogger | None = None


def get_audit_logger(config: Any | None = None) -> AuditLogger:
    """
    Get or create the global audit logger instance.

    Args:
        config: Optional AuditLogConfig for initialization

    Returns:
        AuditLogger instance
    """
    global _audit_logger

    if _audit_logger is None:
        if config is None:
            # Import here to avoid circular dependency
            from chatbridge.config.loader import get_config

            config = get_config().audit

        _audit_logger = AuditLogger.from_config(config)

    return _audit_logger


def reset_audit_logger() -> None:
    """Flush and drop the global audit logger."""
    global _audit_logger

    if _audit_logger is not None:
        _audit_logger.close()
    _audit_logger = None
