"""
Audit logging for Chatbridge.

This package records channel lifecycle and message flow events.
"""

from chatbridge.audit.logger import AuditEventType, AuditLogger, get_audit_logger, reset_audit_logger

__all__ = ["AuditEventType", "AuditLogger", "get_audit_logger", "reset_audit_logger"]
