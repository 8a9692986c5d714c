"""
Export bundle: a full snapshot of every collection, used for backup
and restore.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from moneyflow.models.account import Account
from moneyflow.models.common import utc_now
from moneyflow.models.net_worth import NetWorthSnapshot
from moneyflow.models.recurring import RecurringTransaction
from moneyflow.models.transaction import Transaction


# Top-level keys every importable bundle must carry
BUNDLE_KEYS = (
    "version",
    "accounts",
    "transactions",
    "recurring",
    "netWorthSnapshots",
)


class ExportBundle(BaseModel):
    """
    Serialized form:
        {version, exportedAt, accounts, transactions, recurring,
         netWorthSnapshots}
    """
    model_config = ConfigDict(populate_by_name=True)

    version: str
    exported_at: datetime = Field(default_factory=utc_now, alias="exportedAt")
    accounts: list[Account] = Field(default_factory=list)
    transactions: list[Transaction] = Field(default_factory=list)
    recurring: list[RecurringTransaction] = Field(default_factory=list)
    net_worth_snapshots: list[NetWorthSnapshot] = Field(
        default_factory=list,
        alias="netWorthSnapshots",
    )

    def to_dict(self) -> dict:
        """JSON-ready dict using the bundle's camelCase top-level keys."""
        return self.model_dump(mode="json", by_alias=True)
