"""Audit logging package."""

from finance_engine.audit.logger import AuditLogger, create_correlation_id
from finance_engine.audit.sink import AuditSink, InMemoryAuditSink

__all__ = ["AuditLogger", "AuditSink", "InMemoryAuditSink", "create_correlation_id"]
