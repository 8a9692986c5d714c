"""
Transaction Ledger

Records and deletes transfers between accounts, keeping every account
balance equal to the net effect of the transfers that touch it.

DESIGN DECISION: The backend has no transactions, so a transfer is a
sequence of independent writes:
1. Save the debited source account
2. Save the credited destination account
3. Save the transaction record

If a later write fails, the accounts already written are re-saved in
their original state, newest first (compensating writes). This keeps
the ledger consistent as long as the compensating writes succeed; a
process crash between writes is not covered.

Balance math is the same for every account type:
    source.balance      -= amount
    destination.balance += amount
"""

from typing import Optional, Union
from uuid import UUID

from moneyflow.audit import AuditLogger
from moneyflow.models.account import Account, AccountType
from moneyflow.models.common import Err, Ok, Result, utc_now
from moneyflow.models.errors import BusinessRuleError, ErrorCode, NotFoundError
from moneyflow.models.transaction import (
    CreateTransactionDto,
    Transaction,
    TransactionFilter,
    TransactionListResult,
)
from moneyflow.services.storage import PersistenceStore
from moneyflow.validation import parse_date, validate_create_transaction


# (stage name, account as loaded, account to write)
_Change = tuple[str, Account, Account]


class TransactionLedger:
    """
    Applies transfers to account balances.

    There is no amend operation: correct a transfer by deleting it
    (which reverses its balance effect) and recording a new one.
    """

    def __init__(
        self,
        store: PersistenceStore,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._audit_logger = audit_logger

    # =========================================================================
    # Compensating writes
    # =========================================================================

    async def _compensate(self, applied: list[_Change], failed_stage: str) -> None:
        """Re-save the original of every applied change, newest first."""
        restored = []
        for _stage, original, _updated in reversed(applied):
            result = await self._store.save_account(original)
            if result.success:
                restored.append(str(original.id))
            elif self._audit_logger:
                await self._audit_logger.log_rollback_failed(
                    stage=failed_stage,
                    account_id=str(original.id),
                    error_message=result.error.message,
                )

        if self._audit_logger and applied:
            await self._audit_logger.log_rollback(
                stage=failed_stage,
                restored_accounts=restored,
            )

    async def _apply_changes(self, changes: list[_Change]) -> Result:
        """
        Save each account change in order.

        On the first failure, undo the ones already written and return
        that failure. On success returns Ok(list of applied changes) so
        the caller can undo them if a later step fails.
        """
        applied: list[_Change] = []
        for change in changes:
            stage, _original, updated = change
            result = await self._store.save_account(updated)
            if not result.success:
                await self._compensate(applied, stage)
                return result
            applied.append(change)
        return Ok(data=applied)

    # =========================================================================
    # Loading helpers
    # =========================================================================

    async def _load_side(self, account_id: Union[UUID, str], field: str) -> Result:
        """Load an account, tagging a miss with the input field it came from."""
        result = await self._store.get_account(account_id)
        if not result.success and isinstance(result.error, NotFoundError):
            label = "From" if field == "from_account_id" else "To"
            return Err(error=NotFoundError(
                message=f"{label} account not found",
                entity_type="account",
                entity_id=str(account_id),
                field=field,
            ))
        return result

    async def _reject(self, error: BusinessRuleError) -> Err:
        if self._audit_logger:
            await self._audit_logger.log_transaction_rejected(
                code=error.code.value,
                message=error.message,
                details=error.details,
            )
        return Err(error=error)

    # =========================================================================
    # Operations
    # =========================================================================

    async def record_transaction(self, dto: CreateTransactionDto) -> Result:
        """
        Record a transfer and update both balances.

        Checked in order: input validation, account existence, direction
        rules, sufficient balance (income sources are exempt).

        Returns:
            Ok(Transaction) or
            Err(ValidationError | NotFoundError | BusinessRuleError | StorageError)
        """
        error = validate_create_transaction(dto)
        if error:
            return Err(error=error)

        source_result = await self._load_side(dto.from_account_id, "from_account_id")
        if not source_result.success:
            return source_result
        destination_result = await self._load_side(dto.to_account_id, "to_account_id")
        if not destination_result.success:
            return destination_result

        source: Account = source_result.data
        destination: Account = destination_result.data
        amount: int = dto.amount

        if source.type == AccountType.EXPENSE:
            return await self._reject(BusinessRuleError(
                message="Expense accounts cannot be the source of a transfer",
                code=ErrorCode.INVALID_DIRECTION,
                details={
                    "from_account_id": str(source.id),
                    "from_account_type": source.type.value,
                },
            ))
        if destination.type == AccountType.INCOME:
            return await self._reject(BusinessRuleError(
                message="Income accounts cannot be the destination of a transfer",
                code=ErrorCode.INVALID_DIRECTION,
                details={
                    "to_account_id": str(destination.id),
                    "to_account_type": destination.type.value,
                },
            ))

        if source.type != AccountType.INCOME and source.balance < amount:
            return await self._reject(BusinessRuleError(
                message="Insufficient balance in source account",
                code=ErrorCode.INSUFFICIENT_BALANCE,
                details={"available": source.balance, "requested": amount},
            ))

        transaction = Transaction(
            from_account_id=source.id,
            to_account_id=destination.id,
            amount=amount,
            description=dto.description.strip(),
            date=parse_date(dto.date),
            category=dto.category,
            tags=dto.tags,
        )

        now = utc_now()
        changes: list[_Change] = [
            (
                "debit_source",
                source,
                source.model_copy(update={"balance": source.balance - amount, "updated_at": now}),
            ),
            (
                "credit_destination",
                destination,
                destination.model_copy(
                    update={"balance": destination.balance + amount, "updated_at": now}
                ),
            ),
        ]

        applied = await self._apply_changes(changes)
        if not applied.success:
            return applied

        saved = await self._store.save_transaction(transaction)
        if not saved.success:
            await self._compensate(applied.data, "save_transaction")
            return saved

        if self._audit_logger:
            await self._audit_logger.log_transaction_recorded(
                transaction_id=transaction.id,
                from_account_id=transaction.from_account_id,
                to_account_id=transaction.to_account_id,
                amount=transaction.amount,
            )
        return saved

    async def delete_transaction(self, transaction_id: Union[UUID, str]) -> Result:
        """
        Delete a transfer and reverse its effect on each account that
        still exists.

        Returns:
            Ok(None) or Err(NotFoundError | StorageError)
        """
        found = await self._store.get_transaction(transaction_id)
        if not found.success:
            return found
        transaction: Transaction = found.data

        now = utc_now()
        changes: list[_Change] = []

        source = await self._store.get_account(transaction.from_account_id)
        if source.success:
            changes.append((
                "reverse_source",
                source.data,
                source.data.model_copy(update={
                    "balance": source.data.balance + transaction.amount,
                    "updated_at": now,
                }),
            ))
        elif not isinstance(source.error, NotFoundError):
            return source

        destination = await self._store.get_account(transaction.to_account_id)
        if destination.success:
            changes.append((
                "reverse_destination",
                destination.data,
                destination.data.model_copy(update={
                    "balance": destination.data.balance - transaction.amount,
                    "updated_at": now,
                }),
            ))
        elif not isinstance(destination.error, NotFoundError):
            return destination

        applied = await self._apply_changes(changes)
        if not applied.success:
            return applied

        deleted = await self._store.delete_transaction(transaction.id)
        if not deleted.success:
            await self._compensate(applied.data, "delete_transaction")
            return deleted

        if self._audit_logger:
            await self._audit_logger.log_transaction_deleted(
                transaction_id=transaction.id,
                amount=transaction.amount,
                reversed_accounts=[str(original.id) for _, original, _ in changes],
            )
        return Ok(data=None)

    async def get_transaction(self, transaction_id: Union[UUID, str]) -> Result:
        """Ok(Transaction) or Err(NotFoundError | StorageError)."""
        return await self._store.get_transaction(transaction_id)

    async def list_transactions(
        self,
        filter: Optional[TransactionFilter] = None,
    ) -> Result:
        """
        List transfers newest first (by date, then creation time).

        Returns:
            Ok(TransactionListResult)
        """
        result = await self._store.get_transactions()
        if not result.success:
            return result

        filter = filter or TransactionFilter()
        transactions: list[Transaction] = result.data

        if filter.account_id is not None:
            transactions = [
                t for t in transactions
                if filter.account_id in (t.from_account_id, t.to_account_id)
            ]
        if filter.from_account_id is not None:
            transactions = [t for t in transactions if t.from_account_id == filter.from_account_id]
        if filter.to_account_id is not None:
            transactions = [t for t in transactions if t.to_account_id == filter.to_account_id]
        if filter.start_date is not None:
            transactions = [t for t in transactions if t.date >= filter.start_date]
        if filter.end_date is not None:
            transactions = [t for t in transactions if t.date <= filter.end_date]
        if filter.category:
            wanted = filter.category.lower()
            transactions = [
                t for t in transactions
                if t.category is not None and t.category.lower() == wanted
            ]
        if filter.search_term:
            term = filter.search_term.strip().lower()
            transactions = [t for t in transactions if term in t.description.lower()]

        transactions = sorted(
            transactions,
            key=lambda t: (t.date, t.created_at),
            reverse=True,
        )

        total = len(transactions)
        end = filter.offset + filter.limit if filter.limit is not None else None
        page = transactions[filter.offset:end]

        return Ok(data=TransactionListResult(
            transactions=page,
            total=total,
            has_more=filter.offset + len(page) < total,
        ))
