"""
Recurring Transfer Engine

Manages recurring templates and turns them into real transactions.

State machine:
    create -> ACTIVE
    ACTIVE --pause_recurring--> PAUSED
    PAUSED --resume_recurring--> ACTIVE
    delete_recurring from either state

Processing a template delegates to the TransactionLedger, so every rule
that applies to a manual transfer (direction, sufficient balance,
no future dates) applies to a recurring one as well.

Due-ness uses whole-day thresholds since the last processed date:
daily 1, weekly 7, monthly 28, yearly 365. The monthly and yearly
thresholds are approximations; next_process_date in the status report
uses real calendar arithmetic instead.
"""

import calendar
from datetime import date, timedelta
from typing import Any, Optional, Union
from uuid import UUID

from moneyflow.audit import AuditLogger
from moneyflow.models.audit import AuditEventType
from moneyflow.models.common import Err, Ok, Result, utc_now
from moneyflow.models.errors import BusinessRuleError, ErrorCode, ValidationError
from moneyflow.models.recurring import (
    CreateRecurringDto,
    ProcessRecurringResult,
    RecurrenceFrequency,
    RecurringProcessingStatus,
    RecurringStatus,
    RecurringTransaction,
    UpdateRecurringDto,
)
from moneyflow.models.transaction import CreateTransactionDto
from moneyflow.services.ledger import TransactionLedger
from moneyflow.services.storage import PersistenceStore
from moneyflow.validation import (
    parse_date,
    parse_uuid,
    validate_create_recurring,
    validate_update_recurring,
)


RECURRING_SUFFIX = " (Recurring)"

DUE_THRESHOLD_DAYS = {
    RecurrenceFrequency.DAILY: 1,
    RecurrenceFrequency.WEEKLY: 7,
    RecurrenceFrequency.MONTHLY: 28,
    RecurrenceFrequency.YEARLY: 365,
}


def add_months(start: date, months: int) -> date:
    """Calendar month arithmetic; the day is clamped to the target month's end."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def next_process_date(
    last_processed: Optional[date],
    frequency: RecurrenceFrequency,
) -> Optional[date]:
    """The calendar date one period after the last run, or None if never run."""
    if last_processed is None:
        return None
    if frequency == RecurrenceFrequency.DAILY:
        return last_processed + timedelta(days=1)
    if frequency == RecurrenceFrequency.WEEKLY:
        return last_processed + timedelta(days=7)
    if frequency == RecurrenceFrequency.MONTHLY:
        return add_months(last_processed, 1)
    return add_months(last_processed, 12)


def is_due(recurring: RecurringTransaction, current: date) -> bool:
    """Date-only check; ignores status."""
    if recurring.last_processed_date is None:
        return True
    days = (current - recurring.last_processed_date).days
    return days >= DUE_THRESHOLD_DAYS[recurring.frequency]


def _invalid_date(field: str, label: str) -> Err:
    return Err(error=ValidationError(
        field=field,
        message=f"{label} must be in YYYY-MM-DD format",
        code=ErrorCode.INVALID_DATE,
    ))


class RecurringEngine:
    """Recurring template lifecycle and processing."""

    def __init__(
        self,
        store: PersistenceStore,
        ledger: TransactionLedger,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._ledger = ledger
        self._audit_logger = audit_logger

    async def _log(
        self,
        event_type: AuditEventType,
        recurring: RecurringTransaction,
        description: str,
        details: Optional[dict] = None,
    ) -> None:
        if self._audit_logger:
            await self._audit_logger.log_recurring_event(
                event_type=event_type,
                recurring_id=recurring.id,
                description=description,
                details=details,
            )

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def create_recurring(self, dto: CreateRecurringDto) -> Result:
        """
        Create an active template.

        Accounts are not looked up here; a template pointing at a missing
        or wrongly typed account fails when it is processed.

        Returns:
            Ok(RecurringTransaction) or Err(ValidationError | StorageError)
        """
        error = validate_create_recurring(dto)
        if error:
            return Err(error=error)

        recurring = RecurringTransaction(
            from_account_id=parse_uuid(dto.from_account_id),
            to_account_id=parse_uuid(dto.to_account_id),
            amount=dto.amount,
            description=dto.description.strip(),
            frequency=RecurrenceFrequency(dto.frequency),
            status=RecurringStatus.ACTIVE,
        )

        saved = await self._store.save_recurring_transaction(recurring)
        if not saved.success:
            return saved

        await self._log(
            AuditEventType.RECURRING_CREATED,
            recurring,
            f"Recurring transfer created: {recurring.description}",
            {"frequency": recurring.frequency.value, "amount": recurring.amount},
        )
        return saved

    async def get_recurring(self, recurring_id: Union[UUID, str]) -> Result:
        """Ok(RecurringTransaction) or Err(NotFoundError | StorageError)."""
        return await self._store.get_recurring_transaction(recurring_id)

    async def list_recurring(self, status: Optional[RecurringStatus] = None) -> Result:
        """Ok(list[RecurringTransaction]), optionally only one status."""
        result = await self._store.get_recurring_transactions()
        if not result.success or status is None:
            return result
        return Ok(data=[r for r in result.data if r.status == status])

    async def update_recurring(
        self,
        recurring_id: Union[UUID, str],
        dto: UpdateRecurringDto,
    ) -> Result:
        """
        Apply the fields the caller explicitly set.

        Accounts cannot be changed. Status changes only when `status` is
        supplied; pause_recurring / resume_recurring are the checked way
        to move between states.

        Returns:
            Ok(RecurringTransaction) or
            Err(ValidationError | NotFoundError | StorageError)
        """
        error = validate_update_recurring(dto)
        if error:
            return Err(error=error)

        existing = await self._store.get_recurring_transaction(recurring_id)
        if not existing.success:
            return existing
        recurring: RecurringTransaction = existing.data

        provided = dto.model_fields_set
        updates: dict[str, Any] = {}
        if "amount" in provided:
            updates["amount"] = dto.amount
        if "description" in provided:
            updates["description"] = dto.description.strip()
        if "frequency" in provided:
            updates["frequency"] = RecurrenceFrequency(dto.frequency)
        if "status" in provided:
            updates["status"] = RecurringStatus(dto.status)
        if "last_processed_date" in provided:
            updates["last_processed_date"] = (
                parse_date(dto.last_processed_date)
                if dto.last_processed_date is not None
                else None
            )

        updated = recurring.model_copy(update={**updates, "updated_at": utc_now()})
        saved = await self._store.save_recurring_transaction(updated)
        if not saved.success:
            return saved

        await self._log(
            AuditEventType.RECURRING_UPDATED,
            updated,
            "Recurring transfer updated",
            {"changed_fields": sorted(updates)},
        )
        return saved

    async def _transition(
        self,
        recurring_id: Union[UUID, str],
        expected: RecurringStatus,
        target: RecurringStatus,
        event_type: AuditEventType,
    ) -> Result:
        existing = await self._store.get_recurring_transaction(recurring_id)
        if not existing.success:
            return existing
        recurring: RecurringTransaction = existing.data

        if recurring.status != expected:
            return Err(error=BusinessRuleError(
                message=(
                    f"Cannot move a {recurring.status.value} recurring transfer "
                    f"to {target.value}"
                ),
                code=ErrorCode.INVALID_STATUS,
                details={
                    "current_status": recurring.status.value,
                    "requested_status": target.value,
                },
            ))

        updated = recurring.model_copy(update={"status": target, "updated_at": utc_now()})
        saved = await self._store.save_recurring_transaction(updated)
        if not saved.success:
            return saved

        await self._log(
            event_type,
            updated,
            f"Recurring transfer {target.value}: {updated.description}",
        )
        return saved

    async def pause_recurring(self, recurring_id: Union[UUID, str]) -> Result:
        """ACTIVE -> PAUSED. Any other source state is INVALID_STATUS."""
        return await self._transition(
            recurring_id,
            RecurringStatus.ACTIVE,
            RecurringStatus.PAUSED,
            AuditEventType.RECURRING_PAUSED,
        )

    async def resume_recurring(self, recurring_id: Union[UUID, str]) -> Result:
        """PAUSED -> ACTIVE. Any other source state is INVALID_STATUS."""
        return await self._transition(
            recurring_id,
            RecurringStatus.PAUSED,
            RecurringStatus.ACTIVE,
            AuditEventType.RECURRING_RESUMED,
        )

    async def delete_recurring(self, recurring_id: Union[UUID, str]) -> Result:
        """Ok(None). Transactions already spawned are kept."""
        existing = await self._store.get_recurring_transaction(recurring_id)
        if not existing.success:
            return existing

        deleted = await self._store.delete_recurring_transaction(existing.data.id)
        if not deleted.success:
            return deleted

        await self._log(
            AuditEventType.RECURRING_DELETED,
            existing.data,
            f"Recurring transfer deleted: {existing.data.description}",
        )
        return Ok(data=None)

    # =========================================================================
    # Processing
    # =========================================================================

    async def process_recurring(
        self,
        recurring_id: Union[UUID, str],
        process_date: Union[date, str],
    ) -> Result:
        """
        Record one transaction from a template for the given date.

        The ledger's error is returned unchanged when the transfer is
        refused, and last_processed_date is left as it was.

        Returns:
            Ok(ProcessRecurringResult) or
            Err(ValidationError | NotFoundError | BusinessRuleError | StorageError)
        """
        run_date = parse_date(process_date)
        if run_date is None:
            return _invalid_date("process_date", "Process date")

        existing = await self._store.get_recurring_transaction(recurring_id)
        if not existing.success:
            return existing
        recurring: RecurringTransaction = existing.data

        if recurring.status != RecurringStatus.ACTIVE:
            return Err(error=BusinessRuleError(
                message="Cannot process paused recurring transaction",
                code=ErrorCode.RECURRING_PAUSED,
                details={"recurring_transaction_id": str(recurring.id)},
            ))

        recorded = await self._ledger.record_transaction(CreateTransactionDto(
            from_account_id=recurring.from_account_id,
            to_account_id=recurring.to_account_id,
            amount=recurring.amount,
            description=f"{recurring.description}{RECURRING_SUFFIX}",
            date=run_date,
        ))
        if not recorded.success:
            if self._audit_logger:
                await self._audit_logger.log_recurring_processing_failed(
                    recurring_id=recurring.id,
                    code=recorded.error.code.value,
                    message=recorded.error.message,
                )
            return recorded

        updated = recurring.model_copy(update={
            "last_processed_date": run_date,
            "updated_at": utc_now(),
        })
        saved = await self._store.save_recurring_transaction(updated)
        if not saved.success:
            return saved

        if self._audit_logger:
            await self._audit_logger.log_recurring_processed(
                recurring_id=recurring.id,
                transaction_id=recorded.data.id,
                processed_date=run_date,
            )

        return Ok(data=ProcessRecurringResult(
            transaction_id=recorded.data.id,
            processed_date=run_date,
            recurring_transaction_id=recurring.id,
        ))

    async def should_process(
        self,
        recurring_id: Union[UUID, str],
        current_date: Union[date, str],
    ) -> Result:
        """Ok(bool): whether enough days have passed. Status is not considered."""
        current = parse_date(current_date)
        if current is None:
            return _invalid_date("current_date", "Current date")

        existing = await self._store.get_recurring_transaction(recurring_id)
        if not existing.success:
            return existing
        return Ok(data=is_due(existing.data, current))

    async def get_processing_status(
        self,
        recurring_id: Union[UUID, str],
        current_date: Union[date, str],
    ) -> Result:
        """
        Due-ness plus scheduling hints.

        needs_processing requires the template to be active.

        Returns:
            Ok(RecurringProcessingStatus)
        """
        current = parse_date(current_date)
        if current is None:
            return _invalid_date("current_date", "Current date")

        existing = await self._store.get_recurring_transaction(recurring_id)
        if not existing.success:
            return existing
        recurring: RecurringTransaction = existing.data

        days_since = None
        if recurring.last_processed_date is not None:
            days_since = (current - recurring.last_processed_date).days

        return Ok(data=RecurringProcessingStatus(
            recurring_transaction=recurring,
            needs_processing=(
                recurring.status == RecurringStatus.ACTIVE and is_due(recurring, current)
            ),
            next_process_date=next_process_date(
                recurring.last_processed_date, recurring.frequency
            ),
            days_since_last_process=days_since,
        ))

    async def process_due(self, current_date: Union[date, str]) -> Result:
        """
        Process every active template that is due on current_date.

        One template failing does not stop the rest.

        Returns:
            Ok(dict[UUID, Result]) keyed by template id
        """
        current = parse_date(current_date)
        if current is None:
            return _invalid_date("current_date", "Current date")

        active = await self.list_recurring(RecurringStatus.ACTIVE)
        if not active.success:
            return active

        outcomes: dict[UUID, Result] = {}
        for recurring in active.data:
            if is_due(recurring, current):
                outcomes[recurring.id] = await self.process_recurring(recurring.id, current)
        return Ok(data=outcomes)
