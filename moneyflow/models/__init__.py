"""
Data Models Package

This package contains all Pydantic models used in MoneyFlow.
All data flowing through the system must conform to these schemas.
"""

from moneyflow.models.account import (
    Account,
    AccountFilter,
    AccountStatus,
    AccountType,
    AccountWithTransactionCount,
    CreateAccountDto,
    UpdateAccountDto,
)
from moneyflow.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from moneyflow.models.bundle import ExportBundle
from moneyflow.models.common import Err, Ok, Result
from moneyflow.models.errors import (
    BusinessRuleError,
    ErrorCode,
    NotFoundError,
    StorageError,
    ValidationError,
)
from moneyflow.models.net_worth import (
    NetWorthCalculation,
    NetWorthDateRange,
    NetWorthSnapshot,
    NetWorthSummary,
)
from moneyflow.models.recurring import (
    CreateRecurringDto,
    ProcessRecurringResult,
    RecurrenceFrequency,
    RecurringProcessingStatus,
    RecurringStatus,
    RecurringTransaction,
    UpdateRecurringDto,
)
from moneyflow.models.transaction import (
    CreateTransactionDto,
    Transaction,
    TransactionFilter,
    TransactionListResult,
)

__all__ = [
    # Result type
    "Err",
    "Ok",
    "Result",
    # Errors
    "BusinessRuleError",
    "ErrorCode",
    "NotFoundError",
    "StorageError",
    "ValidationError",
    # Accounts
    "Account",
    "AccountFilter",
    "AccountStatus",
    "AccountType",
    "AccountWithTransactionCount",
    "CreateAccountDto",
    "UpdateAccountDto",
    # Transactions
    "CreateTransactionDto",
    "Transaction",
    "TransactionFilter",
    "TransactionListResult",
    # Recurring
    "CreateRecurringDto",
    "ProcessRecurringResult",
    "RecurrenceFrequency",
    "RecurringProcessingStatus",
    "RecurringStatus",
    "RecurringTransaction",
    "UpdateRecurringDto",
    # Net worth
    "NetWorthCalculation",
    "NetWorthDateRange",
    "NetWorthSnapshot",
    "NetWorthSummary",
    # Bulk
    "ExportBundle",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
