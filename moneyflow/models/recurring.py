"""
Recurring Transaction Models

A recurring transaction is a template. Processing it against a date
produces one real Transaction through the ledger.

State machine:
    create -> ACTIVE
    ACTIVE --pause--> PAUSED
    PAUSED --resume--> ACTIVE
    delete is allowed from either state (it is an action, not a status)
"""

from datetime import date, datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, StrictInt, model_validator
from pydantic_core import PydanticCustomError

from moneyflow.models.common import utc_now
from moneyflow.models.transaction import MAX_DESCRIPTION_LENGTH


class RecurrenceFrequency(str, Enum):
    """How often a template is due."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class RecurringStatus(str, Enum):
    """Only ACTIVE templates can be processed."""
    ACTIVE = "active"
    PAUSED = "paused"


class RecurringTransaction(BaseModel):
    """Template for a transfer that repeats on a schedule."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    from_account_id: UUID
    to_account_id: UUID
    amount: StrictInt = Field(
        ...,
        gt=0,
        description="Transfer amount in cents"
    )
    description: str = Field(
        ...,
        min_length=1,
        max_length=MAX_DESCRIPTION_LENGTH,
        description="Description template; processed copies get a suffix"
    )
    frequency: RecurrenceFrequency
    status: RecurringStatus = RecurringStatus.ACTIVE
    last_processed_date: Optional[date] = Field(
        default=None,
        description="Date of the most recent successful processing run"
    )
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @model_validator(mode="after")
    def validate_distinct_accounts(self) -> "RecurringTransaction":
        if self.from_account_id == self.to_account_id:
            raise PydanticCustomError(
                "same_account",
                "From and To accounts must be different",
            )
        return self


class CreateRecurringDto(BaseModel):
    """Input for creating a recurring template."""

    from_account_id: Any = None
    to_account_id: Any = None
    amount: Any = None
    description: Any = None
    frequency: Any = None


class UpdateRecurringDto(BaseModel):
    """
    Input for updating a recurring template.

    Accounts are frozen at creation and cannot be updated.
    Only fields that were explicitly set are applied.
    """

    amount: Any = None
    description: Any = None
    frequency: Any = None
    status: Any = None
    last_processed_date: Any = None


class ProcessRecurringResult(BaseModel):
    """Outcome of one successful processing run."""

    transaction_id: UUID
    processed_date: date
    recurring_transaction_id: UUID


class RecurringProcessingStatus(BaseModel):
    """Whether a template is due, plus scheduling hints for display."""

    recurring_transaction: RecurringTransaction
    needs_processing: bool
    next_process_date: Optional[date] = None
    days_since_last_process: Optional[int] = None
