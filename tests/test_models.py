"""
Tests for MoneyFlow models

Test strategy:
1. Unit tests for models and validators (no storage)
2. Service tests over an in-memory backend
3. No real Google Sheets calls in tests
"""

import pytest
from datetime import date
from uuid import uuid4

from moneyflow.models import (
    Account,
    AccountStatus,
    AccountType,
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
    Err,
    ErrorCode,
    ExportBundle,
    NetWorthSnapshot,
    Ok,
    RecurrenceFrequency,
    RecurringStatus,
    RecurringTransaction,
    Transaction,
    ValidationError,
)


class TestAccountModels:
    """Tests for account models."""

    def test_account_defaults(self):
        """A new account is active with a zero balance."""
        account = Account(name="Checking", type=AccountType.ASSET)
        assert account.status == AccountStatus.ACTIVE
        assert account.balance == 0
        assert account.parent_account_id is None

    def test_account_strips_whitespace(self):
        account = Account(name="  Checking  ", type="asset")
        assert account.name == "Checking"

    def test_account_rejects_long_name(self):
        with pytest.raises(ValueError):
            Account(name="x" * 101, type="asset")

    def test_account_rejects_float_balance(self):
        """Balances are integer cents only."""
        with pytest.raises(ValueError):
            Account(name="Checking", type="asset", balance=10.5)

    def test_account_allows_negative_balance(self):
        account = Account(name="Salary", type="income", balance=-5000)
        assert account.balance == -5000


class TestTransactionModels:
    """Tests for transaction and recurring models."""

    def test_transaction_creation(self):
        txn = Transaction(
            from_account_id=uuid4(),
            to_account_id=uuid4(),
            amount=1500,
            description="Groceries",
            date=date(2024, 3, 1),
        )
        assert txn.amount == 1500
        assert txn.date == date(2024, 3, 1)

    def test_transaction_rejects_same_account(self):
        account_id = uuid4()
        with pytest.raises(ValueError, match="must be different"):
            Transaction(
                from_account_id=account_id,
                to_account_id=account_id,
                amount=100,
                description="Loop",
                date=date(2024, 3, 1),
            )

    def test_transaction_rejects_zero_amount(self):
        with pytest.raises(ValueError):
            Transaction(
                from_account_id=uuid4(),
                to_account_id=uuid4(),
                amount=0,
                description="Nothing",
                date=date(2024, 3, 1),
            )

    def test_recurring_defaults_to_active(self):
        recurring = RecurringTransaction(
            from_account_id=uuid4(),
            to_account_id=uuid4(),
            amount=2000,
            description="Rent",
            frequency=RecurrenceFrequency.MONTHLY,
        )
        assert recurring.status == RecurringStatus.ACTIVE
        assert recurring.last_processed_date is None


class TestNetWorthModels:
    """Tests for net worth snapshot consistency."""

    def test_snapshot_identity_holds(self):
        snapshot = NetWorthSnapshot(
            date=date(2024, 1, 1),
            total_assets=10000,
            total_liabilities=2500,
            net_worth=7500,
        )
        assert snapshot.net_worth == 7500

    def test_snapshot_rejects_mismatch(self):
        with pytest.raises(ValueError, match="Net worth must equal"):
            NetWorthSnapshot(
                date=date(2024, 1, 1),
                total_assets=10000,
                total_liabilities=2500,
                net_worth=9999,
            )


class TestResultAndErrors:
    """Tests for the Ok/Err result type."""

    def test_ok(self):
        result = Ok(data=42)
        assert result.success is True
        assert result.is_ok()
        assert not result.is_err()

    def test_err(self):
        error = ValidationError(field="name", message="Name is required", code=ErrorCode.REQUIRED_FIELD)
        result = Err(error=error)
        assert result.success is False
        assert result.is_err()
        assert result.error.code == ErrorCode.REQUIRED_FIELD

    def test_error_code_values_match_names(self):
        for code in ErrorCode:
            assert code.value == code.name


class TestExportBundle:
    """Tests for the bundle's serialized shape."""

    def test_to_dict_uses_camel_case_top_level_keys(self):
        bundle = ExportBundle(version="1.0.0")
        data = bundle.to_dict()
        assert set(data) == {
            "version",
            "exportedAt",
            "accounts",
            "transactions",
            "recurring",
            "netWorthSnapshots",
        }

    def test_entities_keep_snake_case(self):
        account = Account(name="Checking", type="asset", balance=100)
        data = ExportBundle(version="1.0.0", accounts=[account]).to_dict()
        assert "parent_account_id" in data["accounts"][0]
        assert data["accounts"][0]["type"] == "asset"


class TestAuditModels:
    """Tests for audit models."""

    def test_audit_event_creation(self):
        event = AuditEvent(
            event_type=AuditEventType.ACCOUNT_CREATED,
            description="Account created",
        )
        assert event.severity == AuditSeverity.INFO
        assert event.event_id is not None

    def test_audit_event_to_log_dict(self):
        account_id = uuid4()
        event = AuditEventBuilder.account_created(account_id, "Checking", "asset", 100)
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "account_created"
        assert log_dict["entity_id"] == str(account_id)
        assert log_dict["details"]["balance"] == 100

    def test_rejection_is_a_warning(self):
        event = AuditEventBuilder.transaction_rejected(
            code="INSUFFICIENT_BALANCE",
            message="Insufficient balance in source account",
            details={"available": 10, "requested": 20},
        )
        assert event.severity == AuditSeverity.WARNING
        assert event.error_code == "INSUFFICIENT_BALANCE"

    def test_rollback_failure_is_critical(self):
        event = AuditEventBuilder.rollback_failed(
            stage="save_transaction",
            account_id=str(uuid4()),
            error_message="disk full",
        )
        assert event.severity == AuditSeverity.CRITICAL


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
