"""
Input Validation

DESIGN DECISION: Validation happens in two distinct places:

DTO VALIDATION (this module, called by the services):
- Runs on caller input before anything touches storage
- Checks fields in a fixed order and reports the FIRST problem
- Every problem carries the input field and an ErrorCode

ENTITY VALIDATION (called by the persistence store):
- Re-runs the pydantic model constraints on a fully built entity
- Translates pydantic's error types into the same ErrorCodes
- This catches corrupt records before they are written or imported

IMPORTANT: Validation NEVER silently fixes issues. Names and descriptions
are stripped when stored, but a blank value is still reported.
"""

import re
from datetime import date, datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from moneyflow.models.account import (
    MAX_NAME_LENGTH,
    AccountStatus,
    AccountType,
    CreateAccountDto,
    UpdateAccountDto,
)
from moneyflow.models.errors import ErrorCode, ValidationError
from moneyflow.models.recurring import (
    CreateRecurringDto,
    RecurrenceFrequency,
    RecurringStatus,
    UpdateRecurringDto,
)
from moneyflow.models.transaction import (
    MAX_CATEGORY_LENGTH,
    MAX_DESCRIPTION_LENGTH,
    CreateTransactionDto,
)


_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

_ACCOUNT_TYPES = [t.value for t in AccountType]
_ACCOUNT_STATUSES = [s.value for s in AccountStatus]
_FREQUENCIES = [f.value for f in RecurrenceFrequency]
_RECURRING_STATUSES = [s.value for s in RecurringStatus]


# =============================================================================
# Primitive checks
# =============================================================================

def parse_uuid(value: Any) -> Optional[UUID]:
    """Return the UUID for a UUID or its canonical string form, else None."""
    if isinstance(value, UUID):
        return value
    if not isinstance(value, str):
        return None
    try:
        return UUID(value)
    except ValueError:
        return None


def parse_date(value: Any) -> Optional[date]:
    """
    Parse a calendar date.

    Accepts a date object or a strict YYYY-MM-DD string. Impossible dates
    such as 2024-02-30 are rejected rather than rolled over.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not _DATE_PATTERN.match(value):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def is_valid_amount(
    value: Any,
    allow_negative: bool = False,
    allow_zero: bool = True,
) -> bool:
    """
    Check a cents amount.

    Only real ints count; floats (even 5.0) and bools are rejected.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        return False
    if not allow_negative and value < 0:
        return False
    if not allow_zero and value == 0:
        return False
    return True


def _text_error(
    value: Any,
    field: str,
    label: str,
    max_length: int,
) -> Optional[ValidationError]:
    if not isinstance(value, str) or not value.strip():
        return ValidationError(
            field=field,
            message=f"{label} is required",
            code=ErrorCode.REQUIRED_FIELD,
        )
    if len(value.strip()) > max_length:
        return ValidationError(
            field=field,
            message=f"{label} must be {max_length} characters or less",
            code=ErrorCode.MAX_LENGTH,
        )
    return None


def _account_pair_error(from_id: Any, to_id: Any) -> Optional[ValidationError]:
    source = parse_uuid(from_id)
    if source is None:
        return ValidationError(
            field="from_account_id",
            message="From account ID must be a valid UUID",
            code=ErrorCode.INVALID_UUID,
        )
    destination = parse_uuid(to_id)
    if destination is None:
        return ValidationError(
            field="to_account_id",
            message="To account ID must be a valid UUID",
            code=ErrorCode.INVALID_UUID,
        )
    if source == destination:
        return ValidationError(
            field="to_account_id",
            message="From and To accounts must be different",
            code=ErrorCode.SAME_ACCOUNT,
        )
    return None


def _positive_amount_error(value: Any) -> Optional[ValidationError]:
    if not is_valid_amount(value, allow_negative=False, allow_zero=False):
        return ValidationError(
            field="amount",
            message="Amount must be a positive integer in cents",
            code=ErrorCode.INVALID_AMOUNT,
        )
    return None


def _balance_error(value: Any) -> Optional[ValidationError]:
    if not is_valid_amount(value, allow_negative=True, allow_zero=True):
        return ValidationError(
            field="balance",
            message="Balance must be a valid integer amount in cents",
            code=ErrorCode.INVALID_AMOUNT,
        )
    return None


def _choice_error(
    value: Any,
    field: str,
    choices: list[str],
    code: ErrorCode,
) -> Optional[ValidationError]:
    raw = value.value if hasattr(value, "value") else value
    if raw not in choices:
        return ValidationError(
            field=field,
            message=f"{field.capitalize()} must be one of: {', '.join(choices)}",
            code=code,
        )
    return None


# =============================================================================
# DTO validation
# =============================================================================

def validate_create_account(dto: CreateAccountDto) -> Optional[ValidationError]:
    """Checks name, type, parent id, then balance."""
    error = _text_error(dto.name, "name", "Name", MAX_NAME_LENGTH)
    if error:
        return error

    error = _choice_error(dto.type, "type", _ACCOUNT_TYPES, ErrorCode.INVALID_TYPE)
    if error:
        return error

    if dto.parent_account_id is not None and parse_uuid(dto.parent_account_id) is None:
        return ValidationError(
            field="parent_account_id",
            message="Parent account ID must be a valid UUID",
            code=ErrorCode.INVALID_UUID,
        )

    return _balance_error(dto.balance)


def validate_update_account(dto: UpdateAccountDto) -> Optional[ValidationError]:
    """Only fields the caller explicitly set are checked."""
    provided = dto.model_fields_set

    if "name" in provided:
        error = _text_error(dto.name, "name", "Name", MAX_NAME_LENGTH)
        if error:
            return error

    if "status" in provided:
        error = _choice_error(
            dto.status, "status", _ACCOUNT_STATUSES, ErrorCode.INVALID_STATUS
        )
        if error:
            return error

    if "balance" in provided:
        error = _balance_error(dto.balance)
        if error:
            return error

    if (
        "parent_account_id" in provided
        and dto.parent_account_id is not None
        and parse_uuid(dto.parent_account_id) is None
    ):
        return ValidationError(
            field="parent_account_id",
            message="Parent account ID must be a valid UUID",
            code=ErrorCode.INVALID_UUID,
        )

    return None


def validate_create_transaction(
    dto: CreateTransactionDto,
    today: Optional[date] = None,
) -> Optional[ValidationError]:
    """
    Structural checks for a new transfer.

    Order: account ids, amount, description, date, category.
    A date after `today` (defaults to the local calendar date) is FUTURE_DATE.
    """
    error = _account_pair_error(dto.from_account_id, dto.to_account_id)
    if error:
        return error

    error = _positive_amount_error(dto.amount)
    if error:
        return error

    error = _text_error(
        dto.description, "description", "Description", MAX_DESCRIPTION_LENGTH
    )
    if error:
        return error

    transaction_date = parse_date(dto.date)
    if transaction_date is None:
        return ValidationError(
            field="date",
            message="Date must be in YYYY-MM-DD format",
            code=ErrorCode.INVALID_DATE,
        )
    if transaction_date > (today or date.today()):
        return ValidationError(
            field="date",
            message="Transaction date cannot be in the future",
            code=ErrorCode.FUTURE_DATE,
        )

    if dto.category is not None and len(dto.category) > MAX_CATEGORY_LENGTH:
        return ValidationError(
            field="category",
            message=f"Category must be {MAX_CATEGORY_LENGTH} characters or less",
            code=ErrorCode.MAX_LENGTH,
        )

    return None


def validate_create_recurring(dto: CreateRecurringDto) -> Optional[ValidationError]:
    """Same account and amount rules as a transfer, plus frequency."""
    error = _account_pair_error(dto.from_account_id, dto.to_account_id)
    if error:
        return error

    error = _positive_amount_error(dto.amount)
    if error:
        return error

    error = _text_error(
        dto.description, "description", "Description", MAX_DESCRIPTION_LENGTH
    )
    if error:
        return error

    return _choice_error(
        dto.frequency, "frequency", _FREQUENCIES, ErrorCode.INVALID_FREQUENCY
    )


def validate_update_recurring(dto: UpdateRecurringDto) -> Optional[ValidationError]:
    provided = dto.model_fields_set

    if "amount" in provided:
        error = _positive_amount_error(dto.amount)
        if error:
            return error

    if "description" in provided:
        error = _text_error(
            dto.description, "description", "Description", MAX_DESCRIPTION_LENGTH
        )
        if error:
            return error

    if "frequency" in provided:
        error = _choice_error(
            dto.frequency, "frequency", _FREQUENCIES, ErrorCode.INVALID_FREQUENCY
        )
        if error:
            return error

    if "status" in provided:
        error = _choice_error(
            dto.status, "status", _RECURRING_STATUSES, ErrorCode.INVALID_STATUS
        )
        if error:
            return error

    if (
        "last_processed_date" in provided
        and dto.last_processed_date is not None
        and parse_date(dto.last_processed_date) is None
    ):
        return ValidationError(
            field="last_processed_date",
            message="Last processed date must be in YYYY-MM-DD format",
            code=ErrorCode.INVALID_DATE,
        )

    return None


# =============================================================================
# Entity validation
# =============================================================================

# Enum fields whose failure has a dedicated code
_ENUM_FIELD_CODES = {
    "type": ErrorCode.INVALID_TYPE,
    "status": ErrorCode.INVALID_STATUS,
    "frequency": ErrorCode.INVALID_FREQUENCY,
}

# Fallback by field name when the pydantic error type says little
_FIELD_CODES = {
    "amount": ErrorCode.INVALID_AMOUNT,
    "balance": ErrorCode.INVALID_AMOUNT,
    "total_assets": ErrorCode.INVALID_AMOUNT,
    "total_liabilities": ErrorCode.INVALID_AMOUNT,
    "net_worth": ErrorCode.INVALID_AMOUNT,
    "date": ErrorCode.INVALID_DATE,
    "last_processed_date": ErrorCode.INVALID_DATE,
    "created_at": ErrorCode.INVALID_DATE,
    "updated_at": ErrorCode.INVALID_DATE,
    "id": ErrorCode.INVALID_UUID,
    "from_account_id": ErrorCode.INVALID_UUID,
    "to_account_id": ErrorCode.INVALID_UUID,
    "parent_account_id": ErrorCode.INVALID_UUID,
    **_ENUM_FIELD_CODES,
}


def _code_for(error_type: str, field_name: str) -> ErrorCode:
    if error_type == "same_account":
        return ErrorCode.SAME_ACCOUNT
    if error_type == "net_worth_mismatch":
        return ErrorCode.INVALID_AMOUNT
    if error_type == "missing" or error_type == "string_too_short":
        return ErrorCode.REQUIRED_FIELD
    if error_type in ("string_too_long", "too_long"):
        return ErrorCode.MAX_LENGTH
    if error_type == "enum":
        return _ENUM_FIELD_CODES.get(field_name, ErrorCode.INVALID_TYPE)
    if error_type.startswith("uuid"):
        return ErrorCode.INVALID_UUID
    if error_type.startswith(("date", "datetime")):
        return ErrorCode.INVALID_DATE
    if error_type.startswith("int") or error_type == "greater_than":
        return ErrorCode.INVALID_AMOUNT
    return _FIELD_CODES.get(field_name, ErrorCode.INVALID_TYPE)


def from_pydantic_error(
    exc: PydanticValidationError,
    prefix: str = "",
) -> ValidationError:
    """
    Translate the first pydantic error into a ValidationError.

    `prefix` tags the field with its position in a bundle, producing
    names like "accounts[2].name".
    """
    first = exc.errors()[0]
    loc = [str(part) for part in first.get("loc", ())]
    field_name = loc[-1] if loc else ""
    error_type = first.get("type", "")

    code = _code_for(error_type, field_name)
    if code == ErrorCode.SAME_ACCOUNT:
        field_name = "to_account_id"
        loc = [field_name]
    elif error_type == "net_worth_mismatch":
        field_name = "net_worth"
        loc = [field_name]

    field = ".".join(loc)
    if prefix:
        field = f"{prefix}.{field}" if field else prefix

    return ValidationError(
        field=field or "entity",
        message=first.get("msg", "Invalid value"),
        code=code,
    )


def validate_entity(
    model: type[BaseModel],
    data: Any,
    prefix: str = "",
) -> tuple[Optional[BaseModel], Optional[ValidationError]]:
    """
    Validate raw data (or a model instance) against an entity model.

    Returns: (entity, None) on success, (None, error) otherwise.
    """
    if isinstance(data, BaseModel):
        data = data.model_dump()
    if not isinstance(data, dict):
        return None, ValidationError(
            field=prefix or "entity",
            message="Record must be an object",
            code=ErrorCode.INVALID_TYPE,
        )
    try:
        return model.model_validate(data), None
    except PydanticValidationError as e:
        return None, from_pydantic_error(e, prefix)
