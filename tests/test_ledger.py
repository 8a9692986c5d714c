"""
Tests for the transaction ledger.

Balance properties checked throughout:
- Conservation: the sum of all balances never changes with a transfer
- Round trip: record then delete restores every balance
- Failed transfers leave balances and the transaction list untouched
"""

import pytest
from datetime import date, timedelta
from uuid import uuid4

from moneyflow.models import (
    BusinessRuleError,
    CreateTransactionDto,
    ErrorCode,
    NotFoundError,
    StorageError,
    TransactionFilter,
    ValidationError,
)
from moneyflow.services.storage import ACCOUNTS_KEY, TRANSACTIONS_KEY


async def _balances(accounts) -> dict:
    result = await accounts.list_accounts()
    return {a.id: a.balance for a in result.data}


class TestRecordTransaction:
    """Tests for recording transfers."""

    @pytest.mark.asyncio
    async def test_moves_money(self, accounts, make_account, transfer):
        checking = await make_account("Checking", "asset", 1000)
        savings = await make_account("Savings", "asset", 0)

        result = await transfer(checking, savings, 300)
        assert result.success
        assert result.data.amount == 300

        balances = await _balances(accounts)
        assert balances[checking.id] == 700
        assert balances[savings.id] == 300

    @pytest.mark.asyncio
    async def test_conservation(self, accounts, make_account, transfer):
        salary = await make_account("Salary", "income")
        checking = await make_account("Checking", "asset", 0)
        rent = await make_account("Rent", "expense")

        before = sum((await _balances(accounts)).values())
        await transfer(salary, checking, 5000)
        await transfer(checking, rent, 1200)
        after = sum((await _balances(accounts)).values())
        assert before == after

    @pytest.mark.asyncio
    async def test_entire_balance_can_be_spent(self, accounts, make_account, transfer):
        checking = await make_account("Checking", "asset", 500)
        food = await make_account("Food", "expense")
        assert (await transfer(checking, food, 500)).success
        assert (await _balances(accounts))[checking.id] == 0

    @pytest.mark.asyncio
    async def test_insufficient_balance(self, accounts, ledger, make_account, transfer):
        checking = await make_account("Checking", "asset", 100)
        food = await make_account("Food", "expense")

        result = await transfer(checking, food, 101)
        assert isinstance(result.error, BusinessRuleError)
        assert result.error.code == ErrorCode.INSUFFICIENT_BALANCE
        assert result.error.details == {"available": 100, "requested": 101}

        assert (await _balances(accounts))[checking.id] == 100
        listed = await ledger.list_transactions()
        assert listed.data.total == 0

    @pytest.mark.asyncio
    async def test_income_source_is_exempt_from_balance_check(self, accounts, make_account, transfer):
        salary = await make_account("Salary", "income")
        checking = await make_account("Checking", "asset")

        result = await transfer(salary, checking, 250000)
        assert result.success
        assert (await _balances(accounts))[salary.id] == -250000

    @pytest.mark.asyncio
    async def test_expense_cannot_be_source(self, make_account, transfer):
        food = await make_account("Food", "expense", 1000)
        checking = await make_account("Checking", "asset")
        result = await transfer(food, checking, 10)
        assert result.error.code == ErrorCode.INVALID_DIRECTION

    @pytest.mark.asyncio
    async def test_income_cannot_be_destination(self, make_account, transfer):
        checking = await make_account("Checking", "asset", 1000)
        salary = await make_account("Salary", "income")
        result = await transfer(checking, salary, 10)
        assert result.error.code == ErrorCode.INVALID_DIRECTION

    @pytest.mark.asyncio
    async def test_direction_checked_before_balance(self, make_account, transfer):
        """An empty expense account reports direction, not balance."""
        food = await make_account("Food", "expense", 0)
        checking = await make_account("Checking", "asset")
        result = await transfer(food, checking, 10)
        assert result.error.code == ErrorCode.INVALID_DIRECTION

    @pytest.mark.asyncio
    async def test_missing_accounts_are_tagged(self, ledger, make_account, yesterday):
        checking = await make_account("Checking", "asset", 100)

        result = await ledger.record_transaction(CreateTransactionDto(
            from_account_id=str(uuid4()),
            to_account_id=str(checking.id),
            amount=10,
            description="x",
            date=yesterday,
        ))
        assert isinstance(result.error, NotFoundError)
        assert result.error.field == "from_account_id"

        result = await ledger.record_transaction(CreateTransactionDto(
            from_account_id=str(checking.id),
            to_account_id=str(uuid4()),
            amount=10,
            description="x",
            date=yesterday,
        ))
        assert result.error.field == "to_account_id"

    @pytest.mark.asyncio
    async def test_missing_description(self, ledger, make_account, yesterday):
        checking = await make_account("Checking", "asset", 100)
        savings = await make_account("Savings", "asset")
        result = await ledger.record_transaction(CreateTransactionDto(
            from_account_id=str(checking.id),
            to_account_id=str(savings.id),
            amount=10,
            date=yesterday,
        ))
        assert isinstance(result.error, ValidationError)
        assert result.error.code == ErrorCode.REQUIRED_FIELD
        assert result.error.field == "description"

    @pytest.mark.asyncio
    async def test_future_date_rejected(self, ledger, make_account):
        checking = await make_account("Checking", "asset", 100)
        savings = await make_account("Savings", "asset")
        result = await ledger.record_transaction(CreateTransactionDto(
            from_account_id=str(checking.id),
            to_account_id=str(savings.id),
            amount=10,
            description="Later",
            date=(date.today() + timedelta(days=1)).isoformat(),
        ))
        assert isinstance(result.error, ValidationError)
        assert result.error.code == ErrorCode.FUTURE_DATE

    @pytest.mark.asyncio
    async def test_archived_accounts_can_still_transact(self, accounts, make_account, transfer):
        checking = await make_account("Checking", "asset", 100)
        old = await make_account("Old", "asset")
        await accounts.archive_account(old.id)
        assert (await transfer(checking, old, 10)).success


class TestCompensation:
    """Partial failures are undone with compensating writes."""

    @pytest.mark.asyncio
    async def test_debit_failure_changes_nothing(self, accounts, ledger, backend, make_account, transfer):
        checking = await make_account("Checking", "asset", 1000)
        savings = await make_account("Savings", "asset")

        backend.fail_write(ACCOUNTS_KEY)
        result = await transfer(checking, savings, 100)
        assert isinstance(result.error, StorageError)

        balances = await _balances(accounts)
        assert balances[checking.id] == 1000
        assert balances[savings.id] == 0

    @pytest.mark.asyncio
    async def test_credit_failure_restores_source(self, accounts, ledger, backend, make_account, transfer):
        checking = await make_account("Checking", "asset", 1000)
        savings = await make_account("Savings", "asset")

        # Debit succeeds, credit fails
        backend.fail_write(ACCOUNTS_KEY, skip=1)
        result = await transfer(checking, savings, 100)
        assert isinstance(result.error, StorageError)

        balances = await _balances(accounts)
        assert balances[checking.id] == 1000
        assert balances[savings.id] == 0
        assert (await ledger.list_transactions()).data.total == 0

    @pytest.mark.asyncio
    async def test_transaction_save_failure_restores_both(self, accounts, ledger, backend, make_account, transfer):
        checking = await make_account("Checking", "asset", 1000)
        savings = await make_account("Savings", "asset", 50)

        backend.fail_write(TRANSACTIONS_KEY)
        result = await transfer(checking, savings, 100)
        assert isinstance(result.error, StorageError)

        balances = await _balances(accounts)
        assert balances[checking.id] == 1000
        assert balances[savings.id] == 50
        assert (await ledger.list_transactions()).data.total == 0

    @pytest.mark.asyncio
    async def test_compensation_runs_in_reverse_order(self, backend, make_account, transfer):
        checking = await make_account("Checking", "asset", 1000)
        savings = await make_account("Savings", "asset")
        backend.write_log.clear()

        backend.fail_write(TRANSACTIONS_KEY)
        await transfer(checking, savings, 100)

        # debit, credit, then two compensating account writes
        assert backend.write_log == [ACCOUNTS_KEY] * 4

    @pytest.mark.asyncio
    async def test_original_error_returned_when_rollback_fails(self, accounts, backend, make_account, transfer):
        checking = await make_account("Checking", "asset", 1000)
        savings = await make_account("Savings", "asset")

        # Credit fails, and so does the compensating write after it
        backend.fail_write(ACCOUNTS_KEY, skip=1)
        backend.fail_write(ACCOUNTS_KEY)
        result = await transfer(checking, savings, 100)

        assert isinstance(result.error, StorageError)
        # The debit stayed: this is the known inconsistency window
        assert (await _balances(accounts))[checking.id] == 900


class TestDeleteTransaction:
    """Deletion reverses balance effects."""

    @pytest.mark.asyncio
    async def test_round_trip(self, accounts, ledger, make_account, transfer):
        checking = await make_account("Checking", "asset", 1000)
        savings = await make_account("Savings", "asset", 10)
        before = await _balances(accounts)

        recorded = await transfer(checking, savings, 400)
        assert (await ledger.delete_transaction(recorded.data.id)).success

        assert await _balances(accounts) == before
        assert isinstance((await ledger.get_transaction(recorded.data.id)).error, NotFoundError)

    @pytest.mark.asyncio
    async def test_missing(self, ledger):
        result = await ledger.delete_transaction(uuid4())
        assert result.error.code == ErrorCode.NOT_FOUND

    @pytest.mark.asyncio
    async def test_reverses_remaining_side_only(self, accounts, ledger, store, make_account, transfer):
        checking = await make_account("Checking", "asset", 1000)
        food = await make_account("Food", "expense")
        recorded = await transfer(checking, food, 100)

        # Remove the expense account behind the registry's back
        await store.delete_account(food.id)

        assert (await ledger.delete_transaction(recorded.data.id)).success
        assert (await _balances(accounts))[checking.id] == 1000

    @pytest.mark.asyncio
    async def test_delete_failure_restores_reversals(self, accounts, ledger, backend, make_account, transfer):
        checking = await make_account("Checking", "asset", 1000)
        savings = await make_account("Savings", "asset")
        recorded = await transfer(checking, savings, 100)

        backend.fail_write(TRANSACTIONS_KEY)
        result = await ledger.delete_transaction(recorded.data.id)
        assert isinstance(result.error, StorageError)

        balances = await _balances(accounts)
        assert balances[checking.id] == 900
        assert balances[savings.id] == 100
        assert (await ledger.get_transaction(recorded.data.id)).success


class TestListTransactions:
    """Filtering, ordering and pagination."""

    @pytest.mark.asyncio
    async def test_newest_first_with_pagination(self, ledger, make_account):
        checking = await make_account("Checking", "asset", 10000)
        food = await make_account("Food", "expense")
        today = date.today()

        for days_ago in (5, 1, 3):
            result = await ledger.record_transaction(CreateTransactionDto(
                from_account_id=str(checking.id),
                to_account_id=str(food.id),
                amount=100,
                description=f"{days_ago} days ago",
                date=today - timedelta(days=days_ago),
            ))
            assert result.success

        page = await ledger.list_transactions(TransactionFilter(limit=2))
        assert page.data.total == 3
        assert page.data.has_more
        assert [t.description for t in page.data.transactions] == ["1 days ago", "3 days ago"]

        rest = await ledger.list_transactions(TransactionFilter(limit=2, offset=2))
        assert [t.description for t in rest.data.transactions] == ["5 days ago"]
        assert not rest.data.has_more

    @pytest.mark.asyncio
    async def test_filters(self, ledger, make_account, transfer):
        checking = await make_account("Checking", "asset", 10000)
        savings = await make_account("Savings", "asset")
        food = await make_account("Food", "expense")

        await transfer(checking, savings, 100, "Monthly saving")
        await transfer(checking, food, 50, "Groceries")
        await transfer(savings, food, 20, "Snacks")

        by_account = await ledger.list_transactions(TransactionFilter(account_id=savings.id))
        assert by_account.data.total == 2

        by_source = await ledger.list_transactions(TransactionFilter(from_account_id=checking.id))
        assert by_source.data.total == 2

        by_destination = await ledger.list_transactions(TransactionFilter(to_account_id=food.id))
        assert by_destination.data.total == 2

        by_text = await ledger.list_transactions(TransactionFilter(search_term="grocer"))
        assert [t.description for t in by_text.data.transactions] == ["Groceries"]

        far_past = date.today() - timedelta(days=30)
        by_range = await ledger.list_transactions(
            TransactionFilter(start_date=far_past, end_date=far_past)
        )
        assert by_range.data.total == 0
