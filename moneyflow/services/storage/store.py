"""
Persistence Store

DESIGN DECISION: The store is the single boundary between typed entities
and the blob backend.
- Each collection lives under one key as {"version": ..., "data": [...]}
- A key that was never written reads as an empty collection
- Every save re-validates the entity before anything is written
- Backend exceptions are converted to StorageError results here and
  never propagate further up

The store has no business rules. It never returns BusinessRuleError and
never looks at more than one collection per call (except bulk operations).
"""

import json
from collections.abc import Mapping
from typing import Any, NamedTuple, Optional, Union
from uuid import UUID

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from moneyflow.audit import AuditLogger
from moneyflow.models.account import Account
from moneyflow.models.audit import AuditEventType
from moneyflow.models.bundle import BUNDLE_KEYS, ExportBundle
from moneyflow.models.common import Err, Ok, Result
from moneyflow.models.errors import (
    ErrorCode,
    NotFoundError,
    StorageError,
    ValidationError,
)
from moneyflow.models.net_worth import NetWorthSnapshot
from moneyflow.models.recurring import RecurringTransaction
from moneyflow.models.transaction import Transaction
from moneyflow.services.storage.interface import (
    BackendConnectionError,
    BackendError,
    BlobStoreInterface,
    QuotaExceededError,
)
from moneyflow.validation import parse_uuid, validate_entity


ACCOUNTS_KEY = "moneyflow_accounts"
TRANSACTIONS_KEY = "moneyflow_transactions"
RECURRING_KEY = "moneyflow_recurring"
NET_WORTH_KEY = "moneyflow_networth"

DATA_VERSION = "1.0.0"


class _Collection(NamedTuple):
    key: str
    model: type[BaseModel]
    entity_type: str
    label: str
    bundle_field: str


_ACCOUNTS = _Collection(ACCOUNTS_KEY, Account, "account", "Account", "accounts")
_TRANSACTIONS = _Collection(
    TRANSACTIONS_KEY, Transaction, "transaction", "Transaction", "transactions"
)
_RECURRING = _Collection(
    RECURRING_KEY,
    RecurringTransaction,
    "recurring",
    "Recurring transaction",
    "recurring",
)
_NET_WORTH = _Collection(
    NET_WORTH_KEY,
    NetWorthSnapshot,
    "net_worth_snapshot",
    "Net worth snapshot",
    "netWorthSnapshots",
)

# Write order for import
_ALL_COLLECTIONS = (_ACCOUNTS, _TRANSACTIONS, _RECURRING, _NET_WORTH)


def _storage_error_from(exc: BackendError, operation: str) -> StorageError:
    if isinstance(exc, QuotaExceededError):
        code = ErrorCode.QUOTA_EXCEEDED
    elif isinstance(exc, BackendConnectionError):
        code = ErrorCode.UNAVAILABLE
    else:
        code = ErrorCode.STORAGE_ERROR
    return StorageError(
        message=f"Failed to {operation}",
        code=code,
        details=str(exc),
    )


class PersistenceStore:
    """
    Typed collections over a blob backend.

    Every method returns Ok/Err; see each docstring for the payload.
    """

    def __init__(
        self,
        backend: BlobStoreInterface,
        version: str = DATA_VERSION,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._backend = backend
        self._version = version
        self._audit_logger = audit_logger

    # =========================================================================
    # Raw collection access
    # =========================================================================

    async def _fail(self, operation: str, error: StorageError) -> Err:
        if self._audit_logger:
            await self._audit_logger.log_storage_error(
                operation=operation,
                code=error.code.value,
                error_message=error.details or error.message,
            )
        return Err(error=error)

    async def _load(self, collection: _Collection) -> Result:
        """Ok(list of entities) or Err(StorageError)."""
        operation = f"read {collection.key}"
        try:
            raw = await self._backend.read(collection.key)
        except BackendError as e:
            return await self._fail(operation, _storage_error_from(e, operation))

        if raw is None:
            return Ok(data=[])

        try:
            container = json.loads(raw)
        except json.JSONDecodeError as e:
            return await self._fail(operation, StorageError(
                message=f"Stored {collection.entity_type} data is not valid JSON",
                code=ErrorCode.PARSE_ERROR,
                details=str(e),
            ))

        if not isinstance(container, dict) or not isinstance(container.get("data"), list):
            return await self._fail(operation, StorageError(
                message=f"Stored {collection.entity_type} data has an unexpected shape",
                code=ErrorCode.PARSE_ERROR,
            ))

        try:
            items = [collection.model.model_validate(item) for item in container["data"]]
        except PydanticValidationError as e:
            return await self._fail(operation, StorageError(
                message=f"Stored {collection.entity_type} data contains an invalid record",
                code=ErrorCode.PARSE_ERROR,
                details=str(e),
            ))

        return Ok(data=items)

    async def _dump(self, collection: _Collection, items: list) -> Result:
        """Ok(None) or Err(StorageError)."""
        operation = f"write {collection.key}"
        payload = json.dumps({
            "version": self._version,
            "data": [item.model_dump(mode="json") for item in items],
        })
        try:
            await self._backend.write(collection.key, payload)
        except BackendError as e:
            return await self._fail(operation, _storage_error_from(e, operation))
        return Ok(data=None)

    def _not_found(self, collection: _Collection, entity_id: Any) -> Err:
        return Err(error=NotFoundError(
            message=f"{collection.label} not found",
            entity_type=collection.entity_type,
            entity_id=str(entity_id),
        ))

    async def _get_one(self, collection: _Collection, entity_id: Union[UUID, str]) -> Result:
        uid = parse_uuid(entity_id)
        if uid is None:
            return self._not_found(collection, entity_id)

        result = await self._load(collection)
        if not result.success:
            return result

        for item in result.data:
            if item.id == uid:
                return Ok(data=item)
        return self._not_found(collection, entity_id)

    async def _save(self, collection: _Collection, entity: BaseModel) -> Result:
        """Validate, then upsert by id. Ok(saved entity)."""
        validated, error = validate_entity(collection.model, entity)
        if error:
            return Err(error=error)

        result = await self._load(collection)
        if not result.success:
            return result

        items = list(result.data)
        for idx, item in enumerate(items):
            if item.id == validated.id:
                items[idx] = validated
                break
        else:
            items.append(validated)

        written = await self._dump(collection, items)
        if not written.success:
            return written
        return Ok(data=validated)

    async def _delete(self, collection: _Collection, entity_id: Union[UUID, str]) -> Result:
        uid = parse_uuid(entity_id)
        if uid is None:
            return self._not_found(collection, entity_id)

        result = await self._load(collection)
        if not result.success:
            return result

        remaining = [item for item in result.data if item.id != uid]
        if len(remaining) == len(result.data):
            return self._not_found(collection, entity_id)

        return await self._dump(collection, remaining)

    # =========================================================================
    # Accounts
    # =========================================================================

    async def get_accounts(self) -> Result:
        """Ok(list[Account])."""
        return await self._load(_ACCOUNTS)

    async def get_account(self, account_id: Union[UUID, str]) -> Result:
        """Ok(Account) or Err(NotFoundError)."""
        return await self._get_one(_ACCOUNTS, account_id)

    async def save_account(self, account: Account) -> Result:
        """Ok(Account) or Err(ValidationError | StorageError)."""
        return await self._save(_ACCOUNTS, account)

    async def delete_account(self, account_id: Union[UUID, str]) -> Result:
        return await self._delete(_ACCOUNTS, account_id)

    # =========================================================================
    # Transactions
    # =========================================================================

    async def get_transactions(self) -> Result:
        """Ok(list[Transaction]) in insertion order."""
        return await self._load(_TRANSACTIONS)

    async def get_transaction(self, transaction_id: Union[UUID, str]) -> Result:
        return await self._get_one(_TRANSACTIONS, transaction_id)

    async def save_transaction(self, transaction: Transaction) -> Result:
        return await self._save(_TRANSACTIONS, transaction)

    async def delete_transaction(self, transaction_id: Union[UUID, str]) -> Result:
        return await self._delete(_TRANSACTIONS, transaction_id)

    # =========================================================================
    # Recurring templates
    # =========================================================================

    async def get_recurring_transactions(self) -> Result:
        """Ok(list[RecurringTransaction])."""
        return await self._load(_RECURRING)

    async def get_recurring_transaction(self, recurring_id: Union[UUID, str]) -> Result:
        return await self._get_one(_RECURRING, recurring_id)

    async def save_recurring_transaction(self, recurring: RecurringTransaction) -> Result:
        return await self._save(_RECURRING, recurring)

    async def delete_recurring_transaction(self, recurring_id: Union[UUID, str]) -> Result:
        return await self._delete(_RECURRING, recurring_id)

    # =========================================================================
    # Net worth snapshots
    # =========================================================================

    async def get_net_worth_snapshots(self) -> Result:
        """Ok(list[NetWorthSnapshot]), newest first."""
        result = await self._load(_NET_WORTH)
        if not result.success:
            return result
        return Ok(data=sorted(
            result.data,
            key=lambda s: (s.date, s.created_at),
            reverse=True,
        ))

    async def get_net_worth_snapshot(self, snapshot_id: Union[UUID, str]) -> Result:
        return await self._get_one(_NET_WORTH, snapshot_id)

    async def save_net_worth_snapshot(self, snapshot: NetWorthSnapshot) -> Result:
        return await self._save(_NET_WORTH, snapshot)

    async def delete_net_worth_snapshot(self, snapshot_id: Union[UUID, str]) -> Result:
        return await self._delete(_NET_WORTH, snapshot_id)

    # =========================================================================
    # Bulk operations
    # =========================================================================

    async def export_all(self) -> Result:
        """Ok(ExportBundle) with every collection."""
        loaded = {}
        for collection in _ALL_COLLECTIONS:
            result = await self._load(collection)
            if not result.success:
                return result
            loaded[collection.bundle_field] = result.data

        bundle = ExportBundle(version=self._version, **loaded)

        if self._audit_logger:
            await self._audit_logger.log_data_transfer(
                AuditEventType.DATA_EXPORTED,
                {name: len(items) for name, items in loaded.items()},
            )
        return Ok(data=bundle)

    async def import_all(self, bundle: Union[ExportBundle, Mapping]) -> Result:
        """
        Replace all data with the contents of a bundle.

        Accepts an ExportBundle or a plain mapping such as parsed JSON.
        Every record is validated before anything is cleared, so a bad
        bundle leaves existing data untouched.

        Returns: Ok(None) or Err(ValidationError | StorageError)
        """
        if isinstance(bundle, ExportBundle):
            bundle = bundle.to_dict()

        if not isinstance(bundle, Mapping):
            return Err(error=ValidationError(
                field="bundle",
                message="Invalid import data structure",
                code=ErrorCode.INVALID_TYPE,
            ))

        for key in BUNDLE_KEYS:
            if key not in bundle:
                return Err(error=ValidationError(
                    field=key,
                    message=f"Import data is missing '{key}'",
                    code=ErrorCode.REQUIRED_FIELD,
                ))

        validated: dict[str, list] = {}
        for collection in _ALL_COLLECTIONS:
            records = bundle[collection.bundle_field]
            if not isinstance(records, list):
                return Err(error=ValidationError(
                    field=collection.bundle_field,
                    message=f"'{collection.bundle_field}' must be a list",
                    code=ErrorCode.INVALID_TYPE,
                ))

            entities = []
            for idx, record in enumerate(records):
                entity, error = validate_entity(
                    collection.model,
                    record,
                    prefix=f"{collection.bundle_field}[{idx}]",
                )
                if error:
                    return Err(error=error)
                entities.append(entity)
            validated[collection.key] = entities

        cleared = await self.clear_all()
        if not cleared.success:
            return cleared

        for collection in _ALL_COLLECTIONS:
            written = await self._dump(collection, validated[collection.key])
            if not written.success:
                return written

        if self._audit_logger:
            await self._audit_logger.log_data_transfer(
                AuditEventType.DATA_IMPORTED,
                {c.bundle_field: len(validated[c.key]) for c in _ALL_COLLECTIONS},
            )
        return Ok(data=None)

    async def clear_all(self) -> Result:
        """Remove every stored collection. Other keys are left alone. Ok(None)."""
        try:
            present = set(await self._backend.keys())
        except BackendError as e:
            return await self._fail("list keys", _storage_error_from(e, "list keys"))

        for collection in _ALL_COLLECTIONS:
            if collection.key not in present:
                continue
            operation = f"remove {collection.key}"
            try:
                await self._backend.remove(collection.key)
            except BackendError as e:
                return await self._fail(operation, _storage_error_from(e, operation))
        return Ok(data=None)
