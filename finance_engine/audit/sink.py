"""
Abstract Audit Sink

DESIGN DECISION: The engine does not own storage.
Persisting the audit trail belongs to the persistence collaborator, which
plugs in by implementing AuditSink. The in-memory sink is used by tests
and by callers that only want local logs.
"""

from abc import ABC, abstractmethod
from uuid import UUID

from finance_engine.models.audit import AuditEvent


class AuditSink(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """

    @abstractmethod
    def get_events_by_correlation_id(self, correlation_id: UUID) -> list[AuditEvent]:
        """Get all events for a correlation ID, in chronological order."""


class InMemoryAuditSink(AuditSink):
    """Keeps events in a list."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)

    def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    def get_events_by_correlation_id(self, correlation_id: UUID) -> list[AuditEvent]:
        return [e for e in self._events if e.correlation_id == correlation_id]
