"""
Error Models for MoneyFlow

Every expected failure in the system is described by one of four
error shapes, each carrying a machine-readable code:

1. ValidationError   - malformed input, caught before touching storage
2. NotFoundError     - a referenced id does not exist
3. BusinessRuleError - a domain invariant would be violated
4. StorageError      - the backend failed to read, write or parse

DESIGN DECISION: These are data, not exceptions. Operations return them
inside an Err result so callers can branch on the code (field-level vs
banner-level messages) without try/except around every call.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class ErrorCode(str, Enum):
    """The complete set of codes an operation can report."""
    # Validation
    REQUIRED_FIELD = "REQUIRED_FIELD"
    MAX_LENGTH = "MAX_LENGTH"
    INVALID_TYPE = "INVALID_TYPE"
    INVALID_STATUS = "INVALID_STATUS"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    INVALID_DATE = "INVALID_DATE"
    FUTURE_DATE = "FUTURE_DATE"
    INVALID_UUID = "INVALID_UUID"
    INVALID_FREQUENCY = "INVALID_FREQUENCY"
    DUPLICATE_NAME = "DUPLICATE_NAME"
    SAME_ACCOUNT = "SAME_ACCOUNT"

    # Lookup
    NOT_FOUND = "NOT_FOUND"

    # Business rules
    INVALID_DIRECTION = "INVALID_DIRECTION"
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"
    ACCOUNT_ACTIVE = "ACCOUNT_ACTIVE"
    HAS_TRANSACTIONS = "HAS_TRANSACTIONS"
    RECURRING_PAUSED = "RECURRING_PAUSED"

    # Storage
    STORAGE_ERROR = "STORAGE_ERROR"
    QUOTA_EXCEEDED = "QUOTA_EXCEEDED"
    PARSE_ERROR = "PARSE_ERROR"
    UNAVAILABLE = "UNAVAILABLE"


class ValidationError(BaseModel):
    """
    Field-level validation failure.

    Not to be confused with pydantic.ValidationError, which is an
    exception; this one is returned, never raised.
    """
    model_config = ConfigDict(frozen=True)

    field: str = Field(
        ...,
        description="Input field the problem was found in"
    )
    message: str = Field(
        ...,
        description="Human-readable description"
    )
    code: ErrorCode


class NotFoundError(BaseModel):
    """A referenced entity does not exist."""
    model_config = ConfigDict(frozen=True)

    message: str
    code: ErrorCode = ErrorCode.NOT_FOUND
    entity_type: Optional[str] = None
    entity_id: Optional[str] = None
    # Set when the missing id came from a specific input field
    field: Optional[str] = None


class BusinessRuleError(BaseModel):
    """A domain invariant would be violated by the requested operation."""
    model_config = ConfigDict(frozen=True)

    message: str
    code: ErrorCode
    details: dict[str, Any] = Field(default_factory=dict)


class StorageError(BaseModel):
    """The persistence backend failed."""
    model_config = ConfigDict(frozen=True)

    message: str
    code: ErrorCode = ErrorCode.STORAGE_ERROR
    details: Optional[str] = None
