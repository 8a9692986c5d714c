"""
Audit Logger

DESIGN DECISION: Every balance change and lifecycle transition is logged.
This provides:
1. Complete traceability of money movements
2. Visibility into compensating writes when storage misbehaves
3. Debugging capability for recurring runs

The audit logger:
- Is async so services can await it like any other step
- Never changes the outcome of the operation being logged
- Writes structured JSON lines through structlog
"""

import logging
from datetime import date
from typing import Optional
from uuid import UUID

import structlog

from moneyflow.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def set_log_level(level: str) -> None:
    """Route stdlib logging (which structlog writes through) at the given level."""
    logging.basicConfig(format="%(message)s", level=level.upper())
    logging.getLogger("moneyflow").setLevel(level.upper())


class AuditLogger:
    """
    Central audit logging service.

    Events are written to the structured local log only; they are not
    persisted alongside ledger data.
    """

    def __init__(self, logger_name: str = "moneyflow.audit"):
        self._logger = structlog.get_logger(logger_name)

    async def log(self, event: AuditEvent) -> None:
        """Log an audit event at the level matching its severity."""
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

    async def log_account_created(
        self,
        account_id: UUID,
        name: str,
        account_type: str,
        balance: int,
    ) -> None:
        """Log account creation."""
        await self.log(AuditEventBuilder.account_created(
            account_id=account_id,
            name=name,
            account_type=account_type,
            balance=balance,
        ))

    async def log_account_updated(
        self,
        account_id: UUID,
        changed_fields: list[str],
    ) -> None:
        await self.log(AuditEventBuilder.account_updated(
            account_id=account_id,
            changed_fields=changed_fields,
        ))

    async def log_account_deleted(self, account_id: UUID, name: str) -> None:
        await self.log(AuditEventBuilder.account_deleted(account_id, name))

    async def log_transaction_recorded(
        self,
        transaction_id: UUID,
        from_account_id: UUID,
        to_account_id: UUID,
        amount: int,
    ) -> None:
        """Log a successful transfer."""
        await self.log(AuditEventBuilder.transaction_recorded(
            transaction_id=transaction_id,
            from_account_id=from_account_id,
            to_account_id=to_account_id,
            amount=amount,
        ))

    async def log_transaction_rejected(
        self,
        code: str,
        message: str,
        details: Optional[dict] = None,
    ) -> None:
        """Log a transfer refused by a business rule."""
        await self.log(AuditEventBuilder.transaction_rejected(
            code=code,
            message=message,
            details=details,
        ))

    async def log_transaction_deleted(
        self,
        transaction_id: UUID,
        amount: int,
        reversed_accounts: list[str],
    ) -> None:
        await self.log(AuditEventBuilder.transaction_deleted(
            transaction_id=transaction_id,
            amount=amount,
            reversed_accounts=reversed_accounts,
        ))

    async def log_rollback(
        self,
        stage: str,
        restored_accounts: list[str],
    ) -> None:
        """Log compensating writes after a partial failure."""
        await self.log(AuditEventBuilder.rollback_performed(
            stage=stage,
            restored_accounts=restored_accounts,
        ))

    async def log_rollback_failed(
        self,
        stage: str,
        account_id: str,
        error_message: str,
    ) -> None:
        """Log a compensating write that itself failed. The ledger is now inconsistent."""
        await self.log(AuditEventBuilder.rollback_failed(
            stage=stage,
            account_id=account_id,
            error_message=error_message,
        ))

    async def log_recurring_event(
        self,
        event_type: AuditEventType,
        recurring_id: UUID,
        description: str,
        details: Optional[dict] = None,
    ) -> None:
        await self.log(AuditEventBuilder.recurring_lifecycle(
            event_type=event_type,
            recurring_id=recurring_id,
            description=description,
            details=details,
        ))

    async def log_recurring_processed(
        self,
        recurring_id: UUID,
        transaction_id: UUID,
        processed_date: date,
    ) -> None:
        await self.log(AuditEventBuilder.recurring_processed(
            recurring_id=recurring_id,
            transaction_id=transaction_id,
            processed_date=processed_date,
        ))

    async def log_recurring_processing_failed(
        self,
        recurring_id: UUID,
        code: str,
        message: str,
    ) -> None:
        await self.log(AuditEventBuilder.recurring_processing_failed(
            recurring_id=recurring_id,
            code=code,
            message=message,
        ))

    async def log_snapshot_created(
        self,
        snapshot_id: UUID,
        net_worth: int,
        snapshot_date: date,
    ) -> None:
        await self.log(AuditEventBuilder.snapshot_created(
            snapshot_id=snapshot_id,
            net_worth=net_worth,
            snapshot_date=snapshot_date,
        ))

    async def log_data_transfer(
        self,
        event_type: AuditEventType,
        counts: dict[str, int],
    ) -> None:
        """Log an export or import."""
        await self.log(AuditEventBuilder.data_transferred(event_type, counts))

    async def log_storage_error(
        self,
        operation: str,
        code: str,
        error_message: str,
    ) -> None:
        """Log a storage failure."""
        await self.log(AuditEventBuilder.storage_error(
            operation=operation,
            code=code,
            error_message=error_message,
        ))
