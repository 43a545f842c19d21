"""
Audit Models for the Finance Engine

Every write-path decision is recorded as an audit event:
1. Which balance check outcome a submission received
2. Whether the user confirmed a negative balance
3. Which concrete transactions an intent expanded into
4. Which resubmissions were recognised as duplicates

DESIGN DECISION: Audit events are append-only. We never delete or modify them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Balance validation
    BALANCE_CHECK_PASSED = "balance_check_passed"
    CONFIRMATION_REQUESTED = "confirmation_requested"
    NEGATIVE_BALANCE_CONFIRMED = "negative_balance_confirmed"
    SUBMISSION_BLOCKED = "submission_blocked"

    # Expansion and creation
    TRANSACTIONS_EXPANDED = "transactions_expanded"
    TRANSACTIONS_CREATED = "transactions_created"
    DUPLICATE_SUBMISSION = "duplicate_submission"

    # Read path
    REPORT_BUILT = "report_built"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'account', 'report')"
    )
    entity_id: Optional[str] = None

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one submission and its retry)"
    )

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None
    is_user_action: bool = False

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.confirmation_requested(account_id, ...)
        event = AuditEventBuilder.transactions_created(ids, correlation_id)
    """

    @staticmethod
    def balance_check_passed(
        account_id: str,
        final_balance: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BALANCE_CHECK_PASSED,
            entity_type="account",
            entity_id=account_id,
            correlation_id=correlation_id,
            description="Balance check passed",
            details={"final_balance": final_balance},
        )

    @staticmethod
    def confirmation_requested(
        account_id: str,
        current_balance: str,
        required_amount: str,
        final_balance: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CONFIRMATION_REQUESTED,
            severity=AuditSeverity.WARNING,
            entity_type="account",
            entity_id=account_id,
            correlation_id=correlation_id,
            description="Operation would leave the account negative",
            details={
                "current_balance": current_balance,
                "required_amount": required_amount,
                "final_balance": final_balance,
            },
        )

    @staticmethod
    def negative_balance_confirmed(
        account_id: str,
        final_balance: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.NEGATIVE_BALANCE_CONFIRMED,
            severity=AuditSeverity.WARNING,
            entity_type="account",
            entity_id=account_id,
            correlation_id=correlation_id,
            description="User confirmed a negative balance",
            details={"final_balance": final_balance},
            is_user_action=True,
        )

    @staticmethod
    def submission_blocked(
        reason: str,
        correlation_id: UUID,
        account_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SUBMISSION_BLOCKED,
            severity=AuditSeverity.WARNING,
            entity_type="account",
            entity_id=account_id,
            correlation_id=correlation_id,
            description=f"Submission blocked: {reason}",
            details={"reason": reason},
        )

    @staticmethod
    def transactions_expanded(
        mode: str,
        count: int,
        correlation_id: UUID,
        recurring_transaction_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTIONS_EXPANDED,
            entity_type="transaction",
            entity_id=recurring_transaction_id,
            correlation_id=correlation_id,
            description=f"Intent expanded into {count} transaction(s) ({mode})",
            details={"mode": mode, "count": count},
        )

    @staticmethod
    def transactions_created(
        transaction_ids: list[str],
        total_amount: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTIONS_CREATED,
            entity_type="transaction",
            entity_id=transaction_ids[0] if transaction_ids else None,
            correlation_id=correlation_id,
            description=f"{len(transaction_ids)} transaction draft(s) ready to persist",
            details={
                "transaction_ids": transaction_ids,
                "total_amount": total_amount,
            },
            is_user_action=True,
        )

    @staticmethod
    def duplicate_submission(
        idempotency_key: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DUPLICATE_SUBMISSION,
            entity_type="submission",
            entity_id=idempotency_key,
            correlation_id=correlation_id,
            description="Resubmission matched an applied payload and was not re-applied",
        )

    @staticmethod
    def report_built(
        report: str,
        record_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REPORT_BUILT,
            severity=AuditSeverity.DEBUG,
            entity_type="report",
            entity_id=report,
            correlation_id=correlation_id,
            description=f"Built {report} report",
            details={"record_count": record_count},
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            correlation_id=correlation_id,
            description=f"System error: {error_type}",
            details=details or {},
            error_message=error_message,
        )
