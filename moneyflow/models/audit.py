"""
Audit Models for MoneyFlow

Every money movement and lifecycle change produces an audit event.
Events are emitted as structured log lines; they give:
1. Traceability of every balance change
2. Debugging information when a compensating write runs
3. A record of what the recurring engine did on each run

DESIGN DECISION: Events are immutable once built and never alter the
outcome of the operation that produced them.
"""

from datetime import date, datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from moneyflow.models.common import utc_now


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Accounts
    ACCOUNT_CREATED = "account_created"
    ACCOUNT_UPDATED = "account_updated"
    ACCOUNT_DELETED = "account_deleted"

    # Ledger
    TRANSACTION_RECORDED = "transaction_recorded"
    TRANSACTION_REJECTED = "transaction_rejected"
    TRANSACTION_DELETED = "transaction_deleted"
    ROLLBACK_PERFORMED = "rollback_performed"
    ROLLBACK_FAILED = "rollback_failed"

    # Recurring
    RECURRING_CREATED = "recurring_created"
    RECURRING_UPDATED = "recurring_updated"
    RECURRING_PAUSED = "recurring_paused"
    RECURRING_RESUMED = "recurring_resumed"
    RECURRING_PROCESSED = "recurring_processed"
    RECURRING_PROCESSING_FAILED = "recurring_processing_failed"
    RECURRING_DELETED = "recurring_deleted"

    # Net worth
    SNAPSHOT_CREATED = "snapshot_created"

    # Bulk
    DATA_EXPORTED = "data_exported"
    DATA_IMPORTED = "data_imported"

    # System
    STORAGE_ERROR = "storage_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """A single audit event."""
    model_config = ConfigDict(frozen=True)

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="When the event occurred (UTC)"
    )
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # What entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="e.g. 'account', 'transaction', 'recurring'"
    )
    entity_id: Optional[UUID] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)

    error_code: Optional[str] = None
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_recorded(txn_id, from_id, to_id, 500)
    """

    @staticmethod
    def account_created(
        account_id: UUID,
        name: str,
        account_type: str,
        balance: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_CREATED,
            entity_type="account",
            entity_id=account_id,
            description=f"Account created: {name} ({account_type})",
            details={
                "name": name,
                "type": account_type,
                "balance": balance,
            },
        )

    @staticmethod
    def account_updated(
        account_id: UUID,
        changed_fields: list[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_UPDATED,
            entity_type="account",
            entity_id=account_id,
            description=f"Account updated: {', '.join(changed_fields) or 'no changes'}",
            details={"changed_fields": changed_fields},
        )

    @staticmethod
    def account_deleted(account_id: UUID, name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_DELETED,
            entity_type="account",
            entity_id=account_id,
            description=f"Account deleted: {name}",
        )

    @staticmethod
    def transaction_recorded(
        transaction_id: UUID,
        from_account_id: UUID,
        to_account_id: UUID,
        amount: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_RECORDED,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"Transfer of {amount} recorded",
            details={
                "from_account_id": str(from_account_id),
                "to_account_id": str(to_account_id),
                "amount": amount,
            },
        )

    @staticmethod
    def transaction_rejected(
        code: str,
        message: str,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="transaction",
            description=f"Transfer rejected: {code}",
            details=details or {},
            error_code=code,
            error_message=message,
        )

    @staticmethod
    def transaction_deleted(
        transaction_id: UUID,
        amount: int,
        reversed_accounts: list[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"Transfer of {amount} deleted and reversed",
            details={
                "amount": amount,
                "reversed_accounts": reversed_accounts,
            },
        )

    @staticmethod
    def rollback_performed(
        stage: str,
        restored_accounts: list[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ROLLBACK_PERFORMED,
            severity=AuditSeverity.WARNING,
            entity_type="account",
            description=f"Compensating writes after failure at {stage}",
            details={
                "stage": stage,
                "restored_accounts": restored_accounts,
            },
        )

    @staticmethod
    def rollback_failed(
        stage: str,
        account_id: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ROLLBACK_FAILED,
            severity=AuditSeverity.CRITICAL,
            entity_type="account",
            entity_id=UUID(account_id),
            description=f"Compensating write failed after failure at {stage}",
            details={"stage": stage},
            error_code="STORAGE_ERROR",
            error_message=error_message,
        )

    @staticmethod
    def recurring_lifecycle(
        event_type: AuditEventType,
        recurring_id: UUID,
        description: str,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=event_type,
            entity_type="recurring",
            entity_id=recurring_id,
            description=description,
            details=details or {},
        )

    @staticmethod
    def recurring_processed(
        recurring_id: UUID,
        transaction_id: UUID,
        processed_date: date,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECURRING_PROCESSED,
            entity_type="recurring",
            entity_id=recurring_id,
            description=f"Recurring transfer processed for {processed_date.isoformat()}",
            details={
                "transaction_id": str(transaction_id),
                "processed_date": processed_date.isoformat(),
            },
        )

    @staticmethod
    def recurring_processing_failed(
        recurring_id: UUID,
        code: str,
        message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECURRING_PROCESSING_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="recurring",
            entity_id=recurring_id,
            description=f"Recurring transfer not processed: {code}",
            error_code=code,
            error_message=message,
        )

    @staticmethod
    def snapshot_created(
        snapshot_id: UUID,
        net_worth: int,
        snapshot_date: date,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_CREATED,
            entity_type="net_worth_snapshot",
            entity_id=snapshot_id,
            description=f"Net worth snapshot for {snapshot_date.isoformat()}",
            details={"net_worth": net_worth},
        )

    @staticmethod
    def data_transferred(
        event_type: AuditEventType,
        counts: dict[str, int],
    ) -> AuditEvent:
        verb = "imported" if event_type == AuditEventType.DATA_IMPORTED else "exported"
        return AuditEvent(
            event_type=event_type,
            description=f"Data {verb}: {sum(counts.values())} records",
            details=counts,
        )

    @staticmethod
    def storage_error(
        operation: str,
        code: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"Storage error during {operation}",
            details={"operation": operation},
            error_code=code,
            error_message=error_message,
        )
