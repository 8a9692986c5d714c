"""
Result type and shared helpers.

Every public operation returns either Ok (carrying the payload) or Err
(carrying one of the error models in moneyflow.models.errors).

Usage:
    result = await ledger.record_transaction(dto)
    if not result.success:
        show_error(result.error.code)
    else:
        txn = result.data
"""

from datetime import datetime, timezone
from typing import Generic, Literal, TypeVar, Union

from pydantic import BaseModel, ConfigDict

T = TypeVar("T")
E = TypeVar("E")


class Ok(BaseModel, Generic[T]):
    """Successful outcome."""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    success: Literal[True] = True
    data: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False


class Err(BaseModel, Generic[E]):
    """Failed outcome."""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    success: Literal[False] = False
    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True


# Payload and error types are documented per operation
Result = Union[Ok, Err]


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)
