"""Audit logging for issuance events."""

from .logger import AuditLogger, AuditEvent, EventType

__all__ = ["AuditLogger", "AuditEvent", "EventType"]
