"""
Transaction Models

A transaction moves a fixed positive amount from one account to another
on a given date. Once recorded, its amount and accounts never change;
the only correction is delete (with balance reversal) and re-record.
"""

from datetime import date, datetime
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, StrictInt, model_validator
from pydantic_core import PydanticCustomError

from moneyflow.models.common import utc_now


MAX_DESCRIPTION_LENGTH = 500
MAX_CATEGORY_LENGTH = 100


class Transaction(BaseModel):
    """Core transaction entity: a transfer between two accounts."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique transaction ID"
    )
    from_account_id: UUID = Field(
        ...,
        description="Source account"
    )
    to_account_id: UUID = Field(
        ...,
        description="Destination account"
    )
    amount: StrictInt = Field(
        ...,
        gt=0,
        description="Transfer amount in cents"
    )
    description: str = Field(
        ...,
        min_length=1,
        max_length=MAX_DESCRIPTION_LENGTH,
    )
    # Display-only grouping
    category: Optional[str] = Field(
        default=None,
        max_length=MAX_CATEGORY_LENGTH,
    )
    tags: Optional[list[str]] = None
    created_at: datetime = Field(default_factory=utc_now)
    # Date the transfer happened. Declared last and without a default so
    # the annotation still resolves to the datetime.date type.
    date: date

    @model_validator(mode="after")
    def validate_distinct_accounts(self) -> "Transaction":
        """A transfer needs two different accounts."""
        if self.from_account_id == self.to_account_id:
            raise PydanticCustomError(
                "same_account",
                "From and To accounts must be different",
            )
        return self


class CreateTransactionDto(BaseModel):
    """
    Input for recording a transaction.

    Permissive types: the validator turns bad values into error codes.
    """

    from_account_id: Any = None
    to_account_id: Any = None
    amount: Any = None
    description: Any = None
    date: Any = None
    category: Optional[str] = None
    tags: Optional[list[str]] = None


class TransactionFilter(BaseModel):
    """Filter options for listing transactions."""

    account_id: Optional[UUID] = Field(
        default=None,
        description="Transactions touching this account on either side"
    )
    from_account_id: Optional[UUID] = None
    to_account_id: Optional[UUID] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    search_term: Optional[str] = None
    category: Optional[str] = None
    limit: Optional[int] = Field(default=None, ge=1)
    offset: int = Field(default=0, ge=0)


class TransactionListResult(BaseModel):
    """One page of transactions."""

    transactions: list[Transaction] = Field(default_factory=list)
    total: int = Field(ge=0)
    has_more: bool
