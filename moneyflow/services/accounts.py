"""
Account Registry

Owns the account lifecycle: create, update, archive, delete.

Business rules enforced here:
- Names are unique within a type, compared case-insensitively
- An account's type never changes after creation
- Only archived accounts can be deleted, and only when no transaction
  references them on either side
"""

from typing import Optional, Union
from uuid import UUID

from moneyflow.audit import AuditLogger
from moneyflow.models.account import (
    Account,
    AccountFilter,
    AccountStatus,
    AccountType,
    AccountWithTransactionCount,
    CreateAccountDto,
    UpdateAccountDto,
)
from moneyflow.models.common import Err, Ok, Result, utc_now
from moneyflow.models.errors import BusinessRuleError, ErrorCode, ValidationError
from moneyflow.services.storage import PersistenceStore
from moneyflow.validation import (
    parse_uuid,
    validate_create_account,
    validate_update_account,
)


def _count_transactions(account_id: UUID, transactions: list) -> int:
    return sum(
        1 for t in transactions
        if t.from_account_id == account_id or t.to_account_id == account_id
    )


class AccountRegistry:
    """Account CRUD with the registry's business rules."""

    def __init__(
        self,
        store: PersistenceStore,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._audit_logger = audit_logger

    async def _find_duplicate(
        self,
        name: str,
        account_type: AccountType,
        exclude_id: Optional[UUID] = None,
    ) -> Result:
        """Ok(Account or None): an account of the same type with the same name."""
        result = await self._store.get_accounts()
        if not result.success:
            return result

        wanted = name.strip().lower()
        for account in result.data:
            if account.id == exclude_id:
                continue
            if account.type == account_type and account.name.lower() == wanted:
                return Ok(data=account)
        return Ok(data=None)

    async def create_account(self, dto: CreateAccountDto) -> Result:
        """
        Create a new account.

        Returns:
            Ok(Account) or Err(ValidationError | StorageError)
        """
        error = validate_create_account(dto)
        if error:
            return Err(error=error)

        account_type = AccountType(dto.type)
        duplicate = await self._find_duplicate(dto.name, account_type)
        if not duplicate.success:
            return duplicate
        if duplicate.data is not None:
            return Err(error=ValidationError(
                field="name",
                message=f"Account '{dto.name.strip()}' already exists for type {account_type.value}",
                code=ErrorCode.DUPLICATE_NAME,
            ))

        account = Account(
            name=dto.name.strip(),
            type=account_type,
            parent_account_id=parse_uuid(dto.parent_account_id),
            balance=dto.balance,
            status=AccountStatus.ACTIVE,
        )

        saved = await self._store.save_account(account)
        if not saved.success:
            return saved

        if self._audit_logger:
            await self._audit_logger.log_account_created(
                account_id=account.id,
                name=account.name,
                account_type=account.type.value,
                balance=account.balance,
            )
        return saved

    async def update_account(
        self,
        account_id: Union[UUID, str],
        dto: UpdateAccountDto,
    ) -> Result:
        """
        Apply the fields the caller explicitly set. Type is never changed.

        Returns:
            Ok(Account) or Err(ValidationError | NotFoundError | StorageError)
        """
        error = validate_update_account(dto)
        if error:
            return Err(error=error)

        existing = await self._store.get_account(account_id)
        if not existing.success:
            return existing
        account: Account = existing.data

        provided = dto.model_fields_set
        updates = {}

        if "name" in provided:
            new_name = dto.name.strip()
            if new_name != account.name:
                duplicate = await self._find_duplicate(
                    new_name, account.type, exclude_id=account.id
                )
                if not duplicate.success:
                    return duplicate
                if duplicate.data is not None:
                    return Err(error=ValidationError(
                        field="name",
                        message=f"Another {account.type.value} account is already named '{new_name}'",
                        code=ErrorCode.DUPLICATE_NAME,
                    ))
                updates["name"] = new_name

        if "status" in provided:
            updates["status"] = AccountStatus(dto.status)
        if "balance" in provided:
            updates["balance"] = dto.balance
        if "parent_account_id" in provided:
            updates["parent_account_id"] = parse_uuid(dto.parent_account_id)

        changed = [
            name for name, value in updates.items()
            if getattr(account, name) != value
        ]
        updated = account.model_copy(update={**updates, "updated_at": utc_now()})

        saved = await self._store.save_account(updated)
        if not saved.success:
            return saved

        if self._audit_logger:
            await self._audit_logger.log_account_updated(
                account_id=account.id,
                changed_fields=changed,
            )
        return saved

    async def archive_account(self, account_id: Union[UUID, str]) -> Result:
        """Shorthand for setting status to archived."""
        return await self.update_account(
            account_id,
            UpdateAccountDto(status=AccountStatus.ARCHIVED.value),
        )

    async def delete_account(self, account_id: Union[UUID, str]) -> Result:
        """
        Delete an archived account with no transactions.

        Checked in order: NOT_FOUND, ACCOUNT_ACTIVE, HAS_TRANSACTIONS.

        Returns:
            Ok(None) or Err(NotFoundError | BusinessRuleError | StorageError)
        """
        existing = await self._store.get_account(account_id)
        if not existing.success:
            return existing
        account: Account = existing.data

        if account.status != AccountStatus.ARCHIVED:
            return Err(error=BusinessRuleError(
                message="Account must be archived before it can be deleted",
                code=ErrorCode.ACCOUNT_ACTIVE,
                details={"account_id": str(account.id)},
            ))

        transactions = await self._store.get_transactions()
        if not transactions.success:
            return transactions

        count = _count_transactions(account.id, transactions.data)
        if count > 0:
            return Err(error=BusinessRuleError(
                message=f"Account has {count} transaction(s) and cannot be deleted",
                code=ErrorCode.HAS_TRANSACTIONS,
                details={"transaction_count": count},
            ))

        deleted = await self._store.delete_account(account.id)
        if not deleted.success:
            return deleted

        if self._audit_logger:
            await self._audit_logger.log_account_deleted(account.id, account.name)
        return Ok(data=None)

    async def get_account(self, account_id: Union[UUID, str]) -> Result:
        """Ok(Account) or Err(NotFoundError | StorageError)."""
        return await self._store.get_account(account_id)

    async def list_accounts(self, filter: Optional[AccountFilter] = None) -> Result:
        """
        List accounts, optionally filtered by type, status and a
        case-insensitive substring of the name.

        Returns:
            Ok(list[Account])
        """
        result = await self._store.get_accounts()
        if not result.success or filter is None:
            return result

        accounts = result.data
        if filter.type is not None:
            accounts = [a for a in accounts if a.type == filter.type]
        if filter.status is not None:
            accounts = [a for a in accounts if a.status == filter.status]
        if filter.search_term:
            term = filter.search_term.strip().lower()
            accounts = [a for a in accounts if term in a.name.lower()]
        return Ok(data=accounts)

    async def get_account_with_transaction_count(
        self,
        account_id: Union[UUID, str],
    ) -> Result:
        """Ok(AccountWithTransactionCount)."""
        existing = await self._store.get_account(account_id)
        if not existing.success:
            return existing

        transactions = await self._store.get_transactions()
        if not transactions.success:
            return transactions

        account: Account = existing.data
        return Ok(data=AccountWithTransactionCount(
            **account.model_dump(),
            transaction_count=_count_transactions(account.id, transactions.data),
        ))
