"""
Shared fixtures.

Every test gets a fresh store over an in-memory backend that can be told
to fail specific writes, so compensation paths can be exercised without
a real storage outage.
"""

from datetime import date, timedelta
from typing import Optional

import pytest

from moneyflow.audit import AuditLogger
from moneyflow.models import CreateAccountDto, CreateTransactionDto
from moneyflow.services import (
    AccountRegistry,
    NetWorthCalculator,
    RecurringEngine,
    TransactionLedger,
)
from moneyflow.services.storage import (
    BackendError,
    InMemoryBlobStore,
    PersistenceStore,
)


class FailingBlobStore(InMemoryBlobStore):
    """
    In-memory backend with injectable failures.

    fail_write(key, skip=n) lets n more writes to `key` through, then
    raises once on the next one.
    """

    def __init__(self):
        super().__init__()
        self._write_plans: list[list] = []
        self.fail_reads: set[str] = set()
        self.writes_disabled = False
        self.write_log: list[str] = []

    def fail_write(self, key: str, skip: int = 0) -> None:
        self._write_plans.append([key, skip])

    async def read(self, key: str) -> Optional[str]:
        if key in self.fail_reads:
            raise BackendError(f"Injected read failure for {key}")
        return await super().read(key)

    async def write(self, key: str, value: str) -> None:
        if self.writes_disabled:
            raise BackendError(f"Injected write failure for {key}")
        for plan in self._write_plans:
            if plan[0] != key:
                continue
            if plan[1] == 0:
                self._write_plans.remove(plan)
                raise BackendError(f"Injected write failure for {key}")
            plan[1] -= 1
            break
        self.write_log.append(key)
        await super().write(key, value)


@pytest.fixture
def today() -> date:
    return date.today()


@pytest.fixture
def yesterday(today) -> date:
    return today - timedelta(days=1)


@pytest.fixture
def backend() -> FailingBlobStore:
    return FailingBlobStore()


@pytest.fixture
def audit_logger() -> AuditLogger:
    return AuditLogger()


@pytest.fixture
def store(backend, audit_logger) -> PersistenceStore:
    return PersistenceStore(backend, audit_logger=audit_logger)


@pytest.fixture
def accounts(store, audit_logger) -> AccountRegistry:
    return AccountRegistry(store, audit_logger=audit_logger)


@pytest.fixture
def ledger(store, audit_logger) -> TransactionLedger:
    return TransactionLedger(store, audit_logger=audit_logger)


@pytest.fixture
def recurring(store, ledger, audit_logger) -> RecurringEngine:
    return RecurringEngine(store, ledger, audit_logger=audit_logger)


@pytest.fixture
def net_worth(store, audit_logger) -> NetWorthCalculator:
    return NetWorthCalculator(store, audit_logger=audit_logger)


@pytest.fixture
def make_account(accounts):
    """Create an account and return it, failing the test on error."""

    async def _make(name: str, type: str, balance: int = 0):
        result = await accounts.create_account(
            CreateAccountDto(name=name, type=type, balance=balance)
        )
        assert result.success, result
        return result.data

    return _make


@pytest.fixture
def transfer(ledger, yesterday):
    """Record a transfer dated yesterday and return the Result."""

    async def _transfer(source, destination, amount: int, description: str = "Transfer"):
        return await ledger.record_transaction(CreateTransactionDto(
            from_account_id=str(source.id),
            to_account_id=str(destination.id),
            amount=amount,
            description=description,
            date=yesterday.isoformat(),
        ))

    return _transfer
