"""
Net Worth Models

Net worth = sum of active asset balances - sum of active liability
balances. Income and expense accounts never contribute.
"""

from datetime import date, datetime
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, StrictInt, model_validator
from pydantic_core import PydanticCustomError

from moneyflow.models.common import utc_now


class NetWorthSnapshot(BaseModel):
    """
    Point-in-time net worth record.

    Snapshots are write-once. Several may share the same date.
    """

    id: UUID = Field(default_factory=uuid4)
    total_assets: StrictInt = Field(..., description="Cents")
    total_liabilities: StrictInt = Field(..., description="Cents")
    net_worth: StrictInt = Field(..., description="Cents")
    created_at: datetime = Field(default_factory=utc_now)
    date: date

    @model_validator(mode="after")
    def validate_net_worth(self) -> "NetWorthSnapshot":
        if self.net_worth != self.total_assets - self.total_liabilities:
            raise PydanticCustomError(
                "net_worth_mismatch",
                "Net worth must equal total assets minus total liabilities",
            )
        return self


class NetWorthCalculation(BaseModel):
    """Current net worth, computed on demand and not saved."""

    total_assets: int
    total_liabilities: int
    net_worth: int
    asset_count: int = Field(ge=0)
    liability_count: int = Field(ge=0)
    calculated_at: datetime = Field(default_factory=utc_now)


class NetWorthDateRange(BaseModel):
    """Inclusive date range for history queries."""

    start_date: date
    end_date: date


class NetWorthSummary(BaseModel):
    """Current net worth with change against past snapshots."""

    current: NetWorthCalculation
    change_30_days: Optional[int] = None
    change_90_days: Optional[int] = None
    change_1_year: Optional[int] = None
    # Percentages, e.g. 5.5 for 5.5%
    percent_change_30_days: Optional[float] = None
    percent_change_90_days: Optional[float] = None
    percent_change_1_year: Optional[float] = None
