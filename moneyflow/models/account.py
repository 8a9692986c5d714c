"""
Account Models

An account is a named bucket of money. Its type decides which side of a
transfer it may stand on and whether it counts toward net worth.

DESIGN DECISION: balance is stored, not derived. The ledger maintains it
incrementally, so it must always match the set of applied transfers.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, StrictInt

from moneyflow.models.common import utc_now


MAX_NAME_LENGTH = 100


class AccountType(str, Enum):
    """
    Account type.

    - asset: what you own
    - liability: what you owe
    - income: money coming in (source only)
    - expense: money going out (destination only)
    """
    ASSET = "asset"
    LIABILITY = "liability"
    INCOME = "income"
    EXPENSE = "expense"


class AccountStatus(str, Enum):
    """Account lifecycle status. Only archived accounts may be deleted."""
    ACTIVE = "active"
    ARCHIVED = "archived"


class Account(BaseModel):
    """
    Core account entity.

    Type is fixed at creation. Balance is in minor units (cents) and may
    be negative (income accounts go negative as money flows out of them).
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique account ID"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=MAX_NAME_LENGTH,
        description="Display name, unique within its type (case-insensitive)"
    )
    type: AccountType
    parent_account_id: Optional[UUID] = Field(
        default=None,
        description="Optional parent for display grouping"
    )
    balance: StrictInt = Field(
        default=0,
        description="Current balance in cents"
    )
    status: AccountStatus = AccountStatus.ACTIVE
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class AccountWithTransactionCount(Account):
    """Account enriched with the number of transfers touching it."""

    transaction_count: int = Field(ge=0)


class CreateAccountDto(BaseModel):
    """
    Input for creating an account.

    Field types are permissive on purpose: the validator reports bad
    values with an error code instead of pydantic raising on construction.
    """

    name: Any = None
    type: Any = None
    parent_account_id: Any = None
    balance: Any = 0


class UpdateAccountDto(BaseModel):
    """Input for updating an account. Only fields that were set are applied."""

    name: Any = None
    status: Any = None
    balance: Any = None
    parent_account_id: Any = None


class AccountFilter(BaseModel):
    """Filter options for listing accounts."""

    type: Optional[AccountType] = None
    status: Optional[AccountStatus] = None
    search_term: Optional[str] = None
