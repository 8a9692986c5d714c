"""Validation package."""

from moneyflow.validation.validator import (
    from_pydantic_error,
    is_valid_amount,
    parse_date,
    parse_uuid,
    validate_create_account,
    validate_create_recurring,
    validate_create_transaction,
    validate_entity,
    validate_update_account,
    validate_update_recurring,
)

__all__ = [
    "from_pydantic_error",
    "is_valid_amount",
    "parse_date",
    "parse_uuid",
    "validate_create_account",
    "validate_create_recurring",
    "validate_create_transaction",
    "validate_entity",
    "validate_update_account",
    "validate_update_recurring",
]
