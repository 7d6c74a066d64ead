"""
Tests for Bank Ledger

Test strategy:
1. Unit tests for individual components (models, codec, streams, policy)
2. Store tests against in-memory streams with a fixed clock
3. Flat-file tests in pytest's tmp_path, never in the working directory
"""

import pytest
from decimal import Decimal

from pydantic import ValidationError

from bank_ledger.config import LedgerSettings, validate_all_settings
from bank_ledger.errors import InsufficientFundsError
from bank_ledger.models import (
    Account,
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
    PasswordCheckResult,
    TransactionKind,
    TransactionLogEntry,
    User,
    UserProfile,
    ValidationIssue,
)


def entry(account_id=1, kind=TransactionKind.DEPOSIT, amount="100.00", balance="100.00"):
    return TransactionLogEntry(
        account_id=account_id,
        kind=kind,
        amount=Decimal(amount),
        resulting_balance=Decimal(balance),
        timestamp="Mon Jan 01 12:00:00 2024",
    )


class TestTransactionModels:
    """Tests for transaction log entries and kinds."""

    def test_kind_values(self):
        """Test the kind strings written to the history stream."""
        assert TransactionKind.DEPOSIT.value == "Deposit"
        assert TransactionKind.WITHDRAW.value == "Withdraw"
        assert TransactionKind.TRANSFER_OUT.value == "Transfer-Out"
        assert TransactionKind.TRANSFER_IN.value == "Transfer-In"

    def test_legacy_kind_names(self):
        """Test that old history files still map to the split kinds."""
        assert TransactionKind("Transfer") is TransactionKind.TRANSFER_OUT
        assert TransactionKind("Receive") is TransactionKind.TRANSFER_IN

    def test_unknown_kind_rejected(self):
        with pytest.raises(ValueError):
            TransactionKind("Refund")

    def test_signed_amount(self):
        """Test that debits carry a negative sign."""
        assert entry(kind=TransactionKind.DEPOSIT).signed_amount == Decimal("100.00")
        assert entry(kind=TransactionKind.TRANSFER_IN).signed_amount == Decimal("100.00")
        assert entry(kind=TransactionKind.WITHDRAW).signed_amount == Decimal("-100.00")
        assert entry(kind=TransactionKind.TRANSFER_OUT).signed_amount == Decimal("-100.00")

    def test_entry_rejects_non_positive_amount(self):
        with pytest.raises(ValidationError):
            entry(amount="0")
        with pytest.raises(ValidationError):
            entry(amount="-5.00")

    def test_entry_is_frozen(self):
        """Test that an entry cannot be edited after creation."""
        e = entry()
        with pytest.raises(ValidationError):
            e.amount = Decimal("1.00")


class TestAccountModel:
    """Tests for the Account model."""

    def test_new_account_is_empty(self):
        account = Account(account_id=1)
        assert account.balance == Decimal("0.00")
        assert account.history() == ()
        assert account.last_transaction is None

    def test_account_id_must_be_positive(self):
        with pytest.raises(ValidationError):
            Account(account_id=0)

    def test_adjust_balance(self):
        account = Account(account_id=1, balance=Decimal("50.00"))
        account.adjust_balance(Decimal("-20.00"))
        assert account.balance == Decimal("30.00")

    def test_append_transaction_keeps_order(self):
        account = Account(account_id=1)
        first = entry(balance="100.00")
        second = entry(kind=TransactionKind.WITHDRAW, amount="40.00", balance="60.00")
        account.append_transaction(first)
        account.append_transaction(second)
        assert account.history() == (first, second)
        assert account.last_transaction == second

    def test_append_transaction_for_other_account_rejected(self):
        """Test that an entry cannot land on the wrong account."""
        account = Account(account_id=1)
        with pytest.raises(ValueError):
            account.append_transaction(entry(account_id=2))


class TestUserModels:
    """Tests for users and sign-up profiles."""

    def test_user_creation(self):
        user = User(
            first_name="Ada",
            last_name="Lovelace",
            email="ada@example.com",
            user_name="ada",
            password="Secret#123",
            account_id=1,
        )
        assert user.full_name == "Ada Lovelace"
        assert user.matches_password("Secret#123")
        assert not user.matches_password("secret#123")

    def test_password_not_in_repr(self):
        """Test that the password never shows up in logs or tracebacks."""
        user = User(
            first_name="Ada",
            last_name="Lovelace",
            email="ada@example.com",
            user_name="ada",
            password="Secret#123",
            account_id=1,
        )
        assert "Secret#123" not in repr(user)

    def test_profile_requires_every_field(self):
        with pytest.raises(ValidationError):
            UserProfile(first_name="", last_name="Smith", email="a@b.c", password="x")

    def test_profile_rejects_overlong_name(self):
        """Test that a filled-in but too long field is reported by name."""
        with pytest.raises(ValidationError) as excinfo:
            UserProfile(first_name="A" * 101, last_name="Smith", email="a@b.c", password="x")
        assert [err["loc"][0] for err in excinfo.value.errors()] == ["first_name"]

    def test_user_name_length_limit(self):
        with pytest.raises(ValidationError):
            User(
                first_name="A",
                last_name="B",
                email="a@b.c",
                user_name="x" * 51,
                password="p",
                account_id=1,
            )


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.STORE_LOADED,
            description="Store loaded",
        )
        assert event.event_type == AuditEventType.STORE_LOADED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEventBuilder.deposit_completed(7, "150.00", "650.00")
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "deposit_completed"
        assert log_dict["account_id"] == 7
        assert log_dict["details"]["balance"] == "650.00"

    def test_audit_event_builder_operation_rejected(self):
        """Test AuditEventBuilder.operation_rejected."""
        error = InsufficientFundsError(3, Decimal("10.00"), Decimal("20.00"))
        event = AuditEventBuilder.operation_rejected("withdraw", error, account_id=3)

        assert event.event_type == AuditEventType.OPERATION_REJECTED
        assert event.severity == AuditSeverity.WARNING
        assert event.description == "withdraw rejected: InsufficientFundsError"
        assert "Insufficient funds" in event.error_message

    def test_audit_event_builder_password_events_carry_no_password(self):
        event = AuditEventBuilder.password_change_failed("ada", attempts=3)
        assert event.details == {"attempts": 3}
        assert event.severity == AuditSeverity.WARNING


class TestValidationModels:
    """Tests for password check results."""

    def test_check_result_has_errors(self):
        """Test has_errors property."""
        result = PasswordCheckResult(
            is_valid=False,
            issues=[
                ValidationIssue(
                    field="password",
                    issue_type="too_short",
                    message="Too short",
                    severity="error",
                ),
            ],
        )
        assert result.has_errors is True
        assert result.error_count == 1

    def test_check_result_warnings_only(self):
        """Test that warnings don't count as errors."""
        result = PasswordCheckResult(
            is_valid=True,
            issues=[
                ValidationIssue(
                    field="password",
                    issue_type="surrounding_whitespace",
                    message="Leading space",
                    severity="warning",
                ),
            ],
        )
        assert result.has_errors is False
        assert result.error_count == 0

    def test_issue_severity_is_checked(self):
        with pytest.raises(ValidationError):
            ValidationIssue(field="f", issue_type="t", message="m", severity="fatal")


class TestLedgerSettings:
    """Tests for ledger configuration."""

    def test_defaults(self):
        settings = LedgerSettings()
        assert settings.min_initial_deposit == Decimal("100.00")
        assert settings.max_deposit == Decimal("1000000.00")
        assert settings.max_password_attempts == 3
        assert settings.stream_files == {
            "users": "users.txt",
            "accounts": "accounts.txt",
            "history": "history.txt",
        }

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("LEDGER_MIN_INITIAL_DEPOSIT", "250")
        assert LedgerSettings().min_initial_deposit == Decimal("250")

    def test_timestamp_format_with_comma_rejected(self):
        """Test that timestamps can never break the history line format."""
        with pytest.raises(ValidationError):
            LedgerSettings(timestamp_format="%a, %d %b %Y")

    def test_validate_all_settings(self):
        """Test the startup check used before wiring components."""
        results = validate_all_settings()
        assert results["ledger"] is True
        assert results["app"] is True


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
