"""
Net Worth Calculator

Net worth = sum of active asset balances - sum of active liability
balances. Archived accounts and income/expense accounts never count.

Snapshots record the calculation for a date; they are write-once and
several may exist for the same date.
"""

from datetime import date, timedelta
from typing import Optional, Union

from moneyflow.audit import AuditLogger
from moneyflow.models.account import AccountStatus, AccountType
from moneyflow.models.common import Err, Ok, Result
from moneyflow.models.errors import ErrorCode, ValidationError
from moneyflow.models.net_worth import (
    NetWorthCalculation,
    NetWorthDateRange,
    NetWorthSnapshot,
    NetWorthSummary,
)
from moneyflow.services.storage import PersistenceStore
from moneyflow.validation import parse_date


# Summary windows: field suffix -> days back
SUMMARY_WINDOWS = {
    "30_days": 30,
    "90_days": 90,
    "1_year": 365,
}


class NetWorthCalculator:
    """Reads accounts only; never writes anything but snapshots."""

    def __init__(
        self,
        store: PersistenceStore,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._audit_logger = audit_logger

    async def calculate_net_worth(self) -> Result:
        """Ok(NetWorthCalculation) from current balances."""
        result = await self._store.get_accounts()
        if not result.success:
            return result

        active = [a for a in result.data if a.status == AccountStatus.ACTIVE]
        assets = [a for a in active if a.type == AccountType.ASSET]
        liabilities = [a for a in active if a.type == AccountType.LIABILITY]

        total_assets = sum(a.balance for a in assets)
        total_liabilities = sum(a.balance for a in liabilities)

        return Ok(data=NetWorthCalculation(
            total_assets=total_assets,
            total_liabilities=total_liabilities,
            net_worth=total_assets - total_liabilities,
            asset_count=len(assets),
            liability_count=len(liabilities),
        ))

    async def create_snapshot(
        self,
        snapshot_date: Optional[Union[date, str]] = None,
    ) -> Result:
        """
        Persist the current calculation as a snapshot.

        snapshot_date defaults to today. No deduplication by date.

        Returns:
            Ok(NetWorthSnapshot) or Err(ValidationError | StorageError)
        """
        if snapshot_date is None:
            when = date.today()
        else:
            when = parse_date(snapshot_date)
            if when is None:
                return Err(error=ValidationError(
                    field="snapshot_date",
                    message="Snapshot date must be in YYYY-MM-DD format",
                    code=ErrorCode.INVALID_DATE,
                ))

        calculation = await self.calculate_net_worth()
        if not calculation.success:
            return calculation

        snapshot = NetWorthSnapshot(
            date=when,
            total_assets=calculation.data.total_assets,
            total_liabilities=calculation.data.total_liabilities,
            net_worth=calculation.data.net_worth,
        )
        saved = await self._store.save_net_worth_snapshot(snapshot)
        if not saved.success:
            return saved

        if self._audit_logger:
            await self._audit_logger.log_snapshot_created(
                snapshot_id=snapshot.id,
                net_worth=snapshot.net_worth,
                snapshot_date=snapshot.date,
            )
        return saved

    async def get_history(
        self,
        date_range: Optional[NetWorthDateRange] = None,
    ) -> Result:
        """Ok(list[NetWorthSnapshot]) oldest first, within the inclusive range."""
        result = await self._store.get_net_worth_snapshots()
        if not result.success:
            return result

        snapshots = result.data
        if date_range is not None:
            snapshots = [
                s for s in snapshots
                if date_range.start_date <= s.date <= date_range.end_date
            ]
        return Ok(data=sorted(snapshots, key=lambda s: (s.date, s.created_at)))

    async def get_summary(
        self,
        as_of: Optional[Union[date, str]] = None,
    ) -> Result:
        """
        Current net worth plus change against past snapshots.

        For each window the comparison point is the latest snapshot on or
        before as_of minus the window. A window with no such snapshot has
        no change. The percentage is omitted when the past value is 0.

        Returns:
            Ok(NetWorthSummary)
        """
        if as_of is None:
            reference = date.today()
        else:
            reference = parse_date(as_of)
            if reference is None:
                return Err(error=ValidationError(
                    field="as_of",
                    message="As-of date must be in YYYY-MM-DD format",
                    code=ErrorCode.INVALID_DATE,
                ))

        current = await self.calculate_net_worth()
        if not current.success:
            return current

        history = await self._store.get_net_worth_snapshots()
        if not history.success:
            return history

        # Newest first, so the first match is the latest one
        snapshots: list[NetWorthSnapshot] = history.data

        changes = {}
        for suffix, days in SUMMARY_WINDOWS.items():
            cutoff = reference - timedelta(days=days)
            past = next((s for s in snapshots if s.date <= cutoff), None)
            if past is None:
                continue
            change = current.data.net_worth - past.net_worth
            changes[f"change_{suffix}"] = change
            if past.net_worth != 0:
                changes[f"percent_change_{suffix}"] = change / abs(past.net_worth) * 100

        return Ok(data=NetWorthSummary(current=current.data, **changes))
