"""Tests for the banking session and component wiring."""

import pytest
from decimal import Decimal

from helpers import make_profile

from bank_ledger.config import Settings, get_settings
from bank_ledger.errors import InvalidCredentialsError, UnknownRecipientError
from bank_ledger.models import TransactionKind
from bank_ledger.orchestrator import (
    BankingSession,
    NotLoggedInError,
    PasswordAttemptsExceededError,
    create_app_components,
)


@pytest.fixture
def session(store, alice, bob):
    session = BankingSession(store)
    session.login("alice", "Secret#123")
    return session


class TestLogin:
    """Tests for logging in and out."""

    def test_login_sets_current_user(self, session):
        assert session.is_logged_in
        assert session.current_user_name == "alice"
        assert session.current_account().account_id == 1

    def test_failed_login_keeps_logged_out(self, store, alice):
        session = BankingSession(store)
        with pytest.raises(InvalidCredentialsError):
            session.login("alice", "wrong")
        assert not session.is_logged_in

    def test_logout(self, session):
        session.logout()
        assert not session.is_logged_in
        with pytest.raises(NotLoggedInError):
            session.current_user()

    def test_operations_need_a_user(self, store):
        session = BankingSession(store)
        with pytest.raises(NotLoggedInError):
            session.deposit("10")
        with pytest.raises(NotLoggedInError):
            session.history()

    def test_sign_up_logs_in(self, store):
        session = BankingSession(store)
        user = session.sign_up("carol", make_profile("Carol"), "300")
        assert session.current_user_name == "carol"
        assert session.current_account().balance == Decimal("300.00")
        assert user.account_id == 1

    def test_user_gone_after_reload(self, session, streams):
        streams.streams = {}
        session.store.load()
        with pytest.raises(NotLoggedInError):
            session.current_user()
        assert not session.is_logged_in


class TestMoney:
    """Tests for money operations through the session."""

    def test_deposit_withdraw_transfer(self, session, store):
        session.deposit("100")
        session.withdraw("50")
        out_entry, in_entry = session.transfer("bob", "150")

        assert session.current_account().balance == Decimal("400.00")
        assert store.account_for("bob").balance == Decimal("350.00")
        assert out_entry.message == "to (bob)"
        assert [e.kind for e in session.history()][-1] is TransactionKind.TRANSFER_OUT

    def test_errors_pass_through(self, session):
        with pytest.raises(UnknownRecipientError):
            session.transfer("ghost", "10")

    def test_statement_defaults_to_newest_first(self, session):
        session.deposit("1")
        statement = session.statement(limit=1)
        assert statement.entries[0].amount == Decimal("1.00")


class TestProfile:
    """Tests for editing personal information through the session."""

    def test_rename_follows_new_name(self, session):
        session.rename("alicia")
        assert session.current_user_name == "alicia"
        assert session.current_user().account_id == 1

    def test_update_profile(self, session):
        user = session.update_profile(first_name="Ally")
        assert user.first_name == "Ally"
        assert session.current_user().first_name == "Ally"

    def test_change_password(self, session, store):
        session.change_password("Secret#123", "Better#456")
        assert store.login("alice", "Better#456")


class TestPasswordAttempts:
    """Tests for the per-session password change limit."""

    def test_wrong_password_uses_an_attempt(self, session):
        with pytest.raises(InvalidCredentialsError, match="2 attempt"):
            session.change_password("wrong", "Better#456")
        assert session.password_attempts_left == 2

    def test_locked_after_three_failures(self, session, store):
        for _ in range(2):
            with pytest.raises(InvalidCredentialsError) as excinfo:
                session.change_password("wrong", "Better#456")
            assert excinfo.type is InvalidCredentialsError
        with pytest.raises(PasswordAttemptsExceededError):
            session.change_password("wrong", "Better#456")

        # Even the right password is refused now
        with pytest.raises(PasswordAttemptsExceededError):
            session.change_password("Secret#123", "Better#456")
        assert store.login("alice", "Secret#123")

    def test_logout_resets_attempts(self, session):
        for _ in range(3):
            with pytest.raises(InvalidCredentialsError):
                session.change_password("wrong", "Better#456")
        session.logout()
        session.login("alice", "Secret#123")
        assert session.password_attempts_left == 3
        session.change_password("Secret#123", "Better#456")

    def test_success_resets_attempts(self, session):
        with pytest.raises(InvalidCredentialsError):
            session.change_password("wrong", "Better#456")
        session.change_password("Secret#123", "Better#456")
        assert session.password_attempts_left == 3


class TestCreateAppComponents:
    """Tests for wiring the application from settings."""

    def test_uses_data_dir_from_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("LEDGER_DATA_DIR", str(tmp_path))

        session, store = create_app_components(Settings())
        session.sign_up("ann", make_profile("Ann"), "150")

        assert (tmp_path / "users.txt").exists()
        assert (tmp_path / "history.txt").read_text(encoding="utf-8").startswith("1,Deposit,150.00,")

        _, reloaded = create_app_components(Settings())
        assert reloaded.account_for("ann").balance == Decimal("150.00")

    def test_get_settings_is_cached(self):
        get_settings.cache_clear()
        assert get_settings() is get_settings()
