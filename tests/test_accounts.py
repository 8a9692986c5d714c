"""Tests for the account registry."""

import pytest
from uuid import uuid4

from moneyflow.models import (
    AccountFilter,
    AccountStatus,
    AccountType,
    BusinessRuleError,
    CreateAccountDto,
    ErrorCode,
    NotFoundError,
    UpdateAccountDto,
)


class TestCreateAccount:
    """Tests for account creation."""

    @pytest.mark.asyncio
    async def test_create(self, accounts):
        result = await accounts.create_account(
            CreateAccountDto(name="  Checking ", type="asset", balance=1000)
        )
        assert result.success
        account = result.data
        assert account.name == "Checking"
        assert account.type == AccountType.ASSET
        assert account.status == AccountStatus.ACTIVE
        assert account.balance == 1000

    @pytest.mark.asyncio
    async def test_balance_defaults_to_zero(self, accounts):
        result = await accounts.create_account(CreateAccountDto(name="Wallet", type="asset"))
        assert result.data.balance == 0

    @pytest.mark.asyncio
    async def test_duplicate_name_same_type_case_insensitive(self, accounts, make_account):
        await make_account("Checking", "asset")
        result = await accounts.create_account(CreateAccountDto(name="CHECKING", type="asset"))
        assert not result.success
        assert result.error.code == ErrorCode.DUPLICATE_NAME
        assert result.error.field == "name"

    @pytest.mark.asyncio
    async def test_same_name_different_type_is_allowed(self, accounts, make_account):
        await make_account("Visa", "asset")
        result = await accounts.create_account(CreateAccountDto(name="Visa", type="liability"))
        assert result.success

    @pytest.mark.asyncio
    async def test_validation_errors_are_returned(self, accounts):
        result = await accounts.create_account(CreateAccountDto(name="", type="asset"))
        assert result.error.code == ErrorCode.REQUIRED_FIELD

        result = await accounts.create_account(CreateAccountDto(name="X", type="bogus"))
        assert result.error.code == ErrorCode.INVALID_TYPE

    @pytest.mark.asyncio
    async def test_missing_fields_are_returned_not_raised(self, accounts):
        result = await accounts.create_account(CreateAccountDto(type="asset"))
        assert result.error.code == ErrorCode.REQUIRED_FIELD
        assert result.error.field == "name"

        result = await accounts.create_account(CreateAccountDto(name="Wallet"))
        assert result.error.code == ErrorCode.INVALID_TYPE


class TestUpdateAccount:
    """Tests for account updates."""

    @pytest.mark.asyncio
    async def test_only_provided_fields_change(self, accounts, make_account):
        account = await make_account("Checking", "asset", 500)
        result = await accounts.update_account(account.id, UpdateAccountDto(name="Main"))
        assert result.success
        assert result.data.name == "Main"
        assert result.data.balance == 500
        assert result.data.type == AccountType.ASSET
        assert result.data.updated_at >= account.updated_at

    @pytest.mark.asyncio
    async def test_rename_to_own_name_in_other_case(self, accounts, make_account):
        """The account itself is excluded from the duplicate check."""
        account = await make_account("Checking", "asset")
        result = await accounts.update_account(account.id, UpdateAccountDto(name="CHECKING"))
        assert result.success
        assert result.data.name == "CHECKING"

    @pytest.mark.asyncio
    async def test_rename_to_existing_name(self, accounts, make_account):
        await make_account("Checking", "asset")
        savings = await make_account("Savings", "asset")
        result = await accounts.update_account(savings.id, UpdateAccountDto(name="checking"))
        assert result.error.code == ErrorCode.DUPLICATE_NAME

    @pytest.mark.asyncio
    async def test_update_missing(self, accounts):
        result = await accounts.update_account(uuid4(), UpdateAccountDto(name="X"))
        assert isinstance(result.error, NotFoundError)

    @pytest.mark.asyncio
    async def test_invalid_status(self, accounts, make_account):
        account = await make_account("Checking", "asset")
        result = await accounts.update_account(account.id, UpdateAccountDto(status="closed"))
        assert result.error.code == ErrorCode.INVALID_STATUS

    @pytest.mark.asyncio
    async def test_archive(self, accounts, make_account):
        account = await make_account("Checking", "asset")
        result = await accounts.archive_account(account.id)
        assert result.data.status == AccountStatus.ARCHIVED


class TestDeleteAccount:
    """Deletion rules, checked in order."""

    @pytest.mark.asyncio
    async def test_missing(self, accounts):
        result = await accounts.delete_account(uuid4())
        assert result.error.code == ErrorCode.NOT_FOUND

    @pytest.mark.asyncio
    async def test_active_account_cannot_be_deleted(self, accounts, make_account):
        account = await make_account("Checking", "asset")
        result = await accounts.delete_account(account.id)
        assert isinstance(result.error, BusinessRuleError)
        assert result.error.code == ErrorCode.ACCOUNT_ACTIVE

    @pytest.mark.asyncio
    async def test_account_with_transactions(self, accounts, make_account, transfer):
        checking = await make_account("Checking", "asset", 1000)
        groceries = await make_account("Groceries", "expense")
        assert (await transfer(checking, groceries, 100)).success
        assert (await transfer(checking, groceries, 200)).success

        await accounts.archive_account(groceries.id)
        result = await accounts.delete_account(groceries.id)
        assert result.error.code == ErrorCode.HAS_TRANSACTIONS
        assert result.error.details["transaction_count"] == 2

    @pytest.mark.asyncio
    async def test_delete_archived_unused(self, accounts, make_account):
        account = await make_account("Old", "asset")
        await accounts.archive_account(account.id)
        assert (await accounts.delete_account(account.id)).success
        assert isinstance((await accounts.get_account(account.id)).error, NotFoundError)


class TestQueries:
    """Listing and lookups."""

    @pytest.mark.asyncio
    async def test_list_with_filter(self, accounts, make_account):
        await make_account("Checking", "asset")
        await make_account("Savings", "asset")
        visa = await make_account("Visa", "liability")
        await accounts.archive_account(visa.id)

        everything = await accounts.list_accounts()
        assert len(everything.data) == 3

        assets = await accounts.list_accounts(AccountFilter(type=AccountType.ASSET))
        assert {a.name for a in assets.data} == {"Checking", "Savings"}

        archived = await accounts.list_accounts(AccountFilter(status=AccountStatus.ARCHIVED))
        assert [a.name for a in archived.data] == ["Visa"]

        search = await accounts.list_accounts(AccountFilter(search_term="SAV"))
        assert [a.name for a in search.data] == ["Savings"]

    @pytest.mark.asyncio
    async def test_transaction_count(self, accounts, make_account, transfer):
        checking = await make_account("Checking", "asset", 1000)
        savings = await make_account("Savings", "asset")
        await transfer(checking, savings, 100)

        result = await accounts.get_account_with_transaction_count(savings.id)
        assert result.data.transaction_count == 1
        assert result.data.balance == 100
