"""
Main Orchestrator for Bank Ledger

This module ties together all the components and defines the flows a
logged-in user goes through:
1. Sign up or log in
2. Deposit / Withdraw / Transfer
3. Account info, personal info and history
4. Edit personal info (names, email, username, password)
5. Log out

DESIGN DECISION: The session holds only the current user NAME.
Users are looked up in the store on every call, so a rename or profile
edit is seen immediately and no stale User object is ever used.

The session is where "one user at a time" lives. The store knows nothing
about who is logged in; it only checks credentials when asked.
"""

from typing import Optional

from bank_ledger.audit import AuditLogger, configure_logging
from bank_ledger.config import Settings, get_settings
from bank_ledger.errors import InvalidCredentialsError, LedgerError
from bank_ledger.ledger import LedgerStore
from bank_ledger.models.account import Account
from bank_ledger.models.statement import AccountStatement, StatementQuery
from bank_ledger.models.transaction import TransactionKind, TransactionLogEntry
from bank_ledger.models.user import User, UserProfile
from bank_ledger.queries import LedgerQueryExecutor
from bank_ledger.storage import FlatFileRecordStreams


class NotLoggedInError(LedgerError):
    """Operation needs a logged-in user."""

    def __init__(self, message: str = "No user is logged in"):
        super().__init__(message)


class PasswordAttemptsExceededError(InvalidCredentialsError):
    """The session has used up its password change attempts."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(
            f"Exceeded maximum password change attempts ({attempts}). "
            "Log out and back in to try again."
        )


class BankingSession:
    """
    One user's banking session on top of a ledger store.

    Flow:
    1. login() or sign_up() sets the current user
    2. Money and profile operations act on that user's account
    3. logout() clears the user and resets the password attempt counter

    Password changes are limited per session: each wrong old password uses
    one attempt, and once they are gone every further change is refused
    until logout.
    """

    def __init__(
        self,
        store: LedgerStore,
        max_password_attempts: Optional[int] = None,
    ):
        self._store = store
        self._queries = LedgerQueryExecutor(store)
        self._max_password_attempts = (
            max_password_attempts or store.settings.max_password_attempts
        )
        self._user_name: Optional[str] = None
        self._password_attempts_left = self._max_password_attempts

    @property
    def store(self) -> LedgerStore:
        return self._store

    @property
    def queries(self) -> LedgerQueryExecutor:
        return self._queries

    @property
    def is_logged_in(self) -> bool:
        return self._user_name is not None

    @property
    def current_user_name(self) -> Optional[str]:
        return self._user_name

    @property
    def password_attempts_left(self) -> int:
        return self._password_attempts_left

    # =========================================================================
    # LOGIN / LOGOUT
    # =========================================================================

    def login(self, user_name: str, password: str) -> User:
        """Check credentials and make this user current."""
        user = self._store.login(user_name, password)
        self._start(user.user_name)
        return user

    def sign_up(
        self,
        user_name: str,
        profile: UserProfile,
        initial_deposit,
    ) -> User:
        """Register a new user and log them in."""
        user = self._store.sign_up(user_name, profile, initial_deposit)
        self._start(user.user_name)
        return user

    def logout(self) -> None:
        self._user_name = None
        self._password_attempts_left = self._max_password_attempts

    def _start(self, user_name: str) -> None:
        self._user_name = user_name
        self._password_attempts_left = self._max_password_attempts

    # =========================================================================
    # CURRENT USER
    # =========================================================================

    def current_user(self) -> User:
        if self._user_name is None:
            raise NotLoggedInError()
        user = self._store.get_user(self._user_name)
        if user is None:
            # Store was reloaded without this user
            self.logout()
            raise NotLoggedInError("Logged-in user no longer exists")
        return user

    def current_account(self) -> Account:
        return self._store.account_for(self.current_user().user_name)

    # =========================================================================
    # MONEY
    # =========================================================================

    def deposit(self, amount) -> TransactionLogEntry:
        return self._store.deposit(self.current_user().account_id, amount)

    def withdraw(self, amount) -> TransactionLogEntry:
        return self._store.withdraw(self.current_user().account_id, amount)

    def transfer(
        self,
        receiver_user_name: str,
        amount,
    ) -> tuple[TransactionLogEntry, TransactionLogEntry]:
        return self._store.transfer(
            self.current_user().account_id, receiver_user_name, amount
        )

    def history(self) -> tuple[TransactionLogEntry, ...]:
        """Current account's entries, oldest first."""
        return self.current_account().history()

    def statement(
        self,
        kind: Optional[TransactionKind] = None,
        limit: Optional[int] = None,
        newest_first: bool = True,
    ) -> AccountStatement:
        """Filtered view of the current account's history."""
        return self._queries.statement(StatementQuery(
            account_id=self.current_user().account_id,
            kind=kind,
            limit=limit,
            newest_first=newest_first,
        ))

    # =========================================================================
    # PROFILE
    # =========================================================================

    def rename(self, new_user_name: str) -> User:
        """Change the current user's name. The session follows the new name."""
        user = self._store.rename_user(self.current_user().user_name, new_user_name)
        self._user_name = user.user_name
        return user

    def update_profile(
        self,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        email: Optional[str] = None,
    ) -> User:
        return self._store.update_profile(
            self.current_user().user_name,
            first_name=first_name,
            last_name=last_name,
            email=email,
        )

    def change_password(self, old_password: str, new_password: str) -> User:
        """
        Change the current user's password.

        Raises:
            InvalidCredentialsError: Wrong old password, attempts remain
            PasswordAttemptsExceededError: No attempts left this session
        """
        user_name = self.current_user().user_name
        if self._password_attempts_left <= 0:
            raise PasswordAttemptsExceededError(self._max_password_attempts)

        try:
            user = self._store.change_password(user_name, old_password, new_password)
        except InvalidCredentialsError:
            self._password_attempts_left -= 1
            if self._password_attempts_left <= 0:
                raise PasswordAttemptsExceededError(self._max_password_attempts)
            raise InvalidCredentialsError(
                f"Incorrect password. {self._password_attempts_left} attempt(s) left"
            )

        self._password_attempts_left = self._max_password_attempts
        return user


def create_app_components(
    settings: Optional[Settings] = None,
) -> tuple[BankingSession, LedgerStore]:
    """
    Factory function to create all application components.

    Wires settings → flat-file streams → audit logger → store, loads the
    store and opens a session on it.

    Args:
        settings: Root settings; defaults to get_settings()

    Returns:
        (session, store)

    Raises:
        LedgerError: The record files could not be loaded
    """
    settings = settings or get_settings()
    ledger_settings = settings.ledger

    configure_logging(settings.app.log_level)

    streams = FlatFileRecordStreams(
        ledger_settings.data_dir,
        file_names=ledger_settings.stream_files,
        write_attempts=ledger_settings.write_retry_attempts,
    )
    audit_logger = AuditLogger()
    store = LedgerStore(streams, settings=ledger_settings, audit_logger=audit_logger)
    store.load()

    return BankingSession(store), store
