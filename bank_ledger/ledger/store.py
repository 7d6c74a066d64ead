"""
Ledger Store

The central orchestrator of the ledger. It owns:
- users indexed by user name
- accounts indexed by account ID (each carrying its transaction history)
- the highest account ID handed out so far

and it is the only component that reads or writes the record streams.

MUTATION PROTOCOL:
1. Validate everything the operation needs (no state touched yet)
2. Build every new record (entries, replacement users)
3. Apply all in-memory changes together
4. persist(): rewrite all three streams in full

If any step fails, the in-memory state is restored from a snapshot taken
before step 1, so a rejected or failed operation changes nothing. If the
failure came from step 4, the restored state is written back once more so
streams that were already rewritten drop the failed change. If that write
fails as well it is logged and the original error is raised.

A store whose load() failed refuses to mutate or persist until a later
load() succeeds, so a half-read ledger never overwrites the files.

CONCURRENCY: one re-entrant lock serializes load, persist, login and every
mutation, so a single store can be shared by several sessions.
"""

import threading
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal, InvalidOperation
from itertools import islice
from typing import Callable, Iterable, Optional, Union

import structlog
from pydantic import BaseModel, ValidationError

from bank_ledger.audit import AuditLogger
from bank_ledger.codec import AccountCodec, TransactionCodec, UserCodec
from bank_ledger.config import LedgerSettings
from bank_ledger.errors import (
    DuplicateUsernameError,
    InsufficientFundsError,
    InsufficientInitialDepositError,
    InvalidAmountError,
    InvalidCredentialsError,
    LedgerError,
    MalformedRecordError,
    SelfTransferNotAllowedError,
    StoreCorruptError,
    UnknownAccountError,
    UnknownRecipientError,
    UnknownUserError,
)
from bank_ledger.models.account import Account
from bank_ledger.models.audit import AuditEventBuilder
from bank_ledger.models.transaction import TransactionKind, TransactionLogEntry
from bank_ledger.models.user import User, UserProfile
from bank_ledger.storage.interface import (
    ACCOUNTS_STREAM,
    HISTORY_STREAM,
    USERS_STREAM,
    RecordStreamInterface,
)


logger = structlog.get_logger(__name__)

CENT = Decimal("0.01")

MoneyLike = Union[Decimal, int, float, str]


def current_timestamp(fmt: str = "%a %b %d %H:%M:%S %Y") -> str:
    """Human-readable local time, ctime style by default."""
    return datetime.now().strftime(fmt)


def to_money(value: MoneyLike) -> Decimal:
    """
    Convert user input to a money amount with two decimal places.

    Raises:
        InvalidAmountError: Not a number, not finite, or finer than a cent
    """
    if isinstance(value, bool):
        raise InvalidAmountError(f"Not a valid amount: {value!r}")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except InvalidOperation:
        raise InvalidAmountError(f"Not a valid amount: {value!r}")

    if not amount.is_finite():
        raise InvalidAmountError(f"Amount must be finite: {value!r}")

    try:
        quantized = amount.quantize(CENT)
    except InvalidOperation:
        raise InvalidAmountError(f"Amount is too large: {value!r}")
    if quantized != amount:
        raise InvalidAmountError(f"Amount has more than two decimal places: {value!r}")
    return quantized


class LedgerStore:
    """
    In-memory index of users and accounts, backed by three record streams.

    Every public mutating method either completes and persists, or raises
    and leaves memory as it was. A rejected operation never writes. A
    failed write is followed by a best-effort rewrite of the prior state.
    """

    def __init__(
        self,
        streams: RecordStreamInterface,
        settings: Optional[LedgerSettings] = None,
        audit_logger: Optional[AuditLogger] = None,
        clock: Optional[Callable[[], str]] = None,
    ):
        """
        Initialize the store. Call load() before use.

        Args:
            streams: Where the users, accounts and history streams live
            settings: Business limits; defaults to LedgerSettings()
            audit_logger: Audit sink; defaults to a local AuditLogger
            clock: Returns the timestamp text for new entries
        """
        self._streams = streams
        self._settings = settings or LedgerSettings()
        self._audit = audit_logger or AuditLogger()
        self._clock = clock or (lambda: current_timestamp(self._settings.timestamp_format))

        self._user_codec = UserCodec()
        self._account_codec = AccountCodec()
        self._transaction_codec = TransactionCodec()

        self._users: dict[str, User] = {}
        self._accounts: dict[int, Account] = {}
        self._last_account_id = 0

        self._lock = threading.RLock()
        self._load_failed = False

    # =========================================================================
    # READ ACCESS
    # =========================================================================

    @property
    def settings(self) -> LedgerSettings:
        return self._settings

    @property
    def last_account_id(self) -> int:
        return self._last_account_id

    def get_user(self, user_name: str) -> Optional[User]:
        return self._users.get(user_name)

    def get_account(self, account_id: int) -> Optional[Account]:
        return self._accounts.get(account_id)

    def account_for(self, user_name: str) -> Account:
        """The account owned by a user."""
        user = self._require_user(user_name)
        return self._accounts[user.account_id]

    def user_names(self) -> list[str]:
        return sorted(self._users)

    def accounts(self) -> list[Account]:
        """All accounts in account ID order."""
        return [self._accounts[account_id] for account_id in sorted(self._accounts)]

    def owner_of(self, account_id: int) -> Optional[User]:
        """The user bound to an account, if any."""
        for user in self._users.values():
            if user.account_id == account_id:
                return user
        return None

    # =========================================================================
    # LOAD / PERSIST
    # =========================================================================

    def load(self) -> None:
        """
        Rebuild the in-memory state from the record streams.

        Reads users, then accounts, then transactions. Transactions are
        attached to their accounts in stream order.

        Raises:
            MalformedRecordError: A line cannot be decoded
            StoreCorruptError: Records reference missing or duplicate keys
            StreamUnavailableError: A stream exists but cannot be read

        On failure the store is left empty and refuses further changes
        until load() succeeds.
        """
        with self._lock:
            self._users = {}
            self._accounts = {}
            self._last_account_id = 0
            self._load_failed = True

            try:
                users, accounts, last_account_id, transaction_count = self._read_records()
            except LedgerError as e:
                self._audit.log(AuditEventBuilder.store_load_failed(type(e).__name__, str(e)))
                raise

            self._users = users
            self._accounts = accounts
            self._last_account_id = last_account_id
            self._load_failed = False

        for account in accounts.values():
            last = account.last_transaction
            if last is not None and last.resulting_balance != account.balance:
                logger.warning(
                    "history_balance_mismatch",
                    account_id=account.account_id,
                    balance=str(account.balance),
                    last_resulting_balance=str(last.resulting_balance),
                )

        self._audit.log(AuditEventBuilder.store_loaded(
            users=len(users),
            accounts=len(accounts),
            transactions=transaction_count,
        ))

    def _read_records(self) -> tuple[dict[str, User], dict[int, Account], int, int]:
        users: dict[str, User] = {}
        for line in self._streams.read_all_lines(USERS_STREAM):
            user = self._user_codec.decode(line)
            if user.user_name in users:
                raise StoreCorruptError(f"Duplicate user name in store: {user.user_name}")
            users[user.user_name] = user

        accounts: dict[int, Account] = {}
        last_account_id = 0
        for line in self._streams.read_all_lines(ACCOUNTS_STREAM):
            account = self._account_codec.decode(line)
            if account.account_id in accounts:
                raise StoreCorruptError(f"Duplicate account ID in store: {account.account_id}")
            accounts[account.account_id] = account
            last_account_id = max(last_account_id, account.account_id)

        owners: dict[int, str] = {}
        for user in users.values():
            if user.account_id not in accounts:
                raise StoreCorruptError(
                    f"User {user.user_name} references missing account {user.account_id}"
                )
            if user.account_id in owners:
                raise StoreCorruptError(
                    f"Account {user.account_id} is bound to both "
                    f"{owners[user.account_id]} and {user.user_name}"
                )
            owners[user.account_id] = user.user_name

        transaction_count = 0
        for line in self._streams.read_all_lines(HISTORY_STREAM):
            entry = self._transaction_codec.decode(line)
            account = accounts.get(entry.account_id)
            if account is None:
                raise StoreCorruptError(
                    f"Transaction references missing account {entry.account_id}"
                )
            account.append_transaction(entry)
            transaction_count += 1

        return users, accounts, last_account_id, transaction_count

    def persist(self) -> None:
        """
        Rewrite all three streams in full from the in-memory state.

        Users are written in user name order, accounts in ID order, and
        transactions in account order then append order. Every line is
        encoded before anything is written.

        Raises:
            StoreCorruptError: The last load() failed
            StreamUnavailableError: A stream cannot be written
        """
        with self._lock:
            self._require_loaded()
            accounts = self.accounts()
            user_lines = [
                self._user_codec.encode(self._users[name]) for name in sorted(self._users)
            ]
            account_lines = [self._account_codec.encode(account) for account in accounts]
            history_lines = [
                self._transaction_codec.encode(entry)
                for account in accounts
                for entry in account.transactions
            ]

            try:
                self._streams.write_all_lines(USERS_STREAM, user_lines, replace_existing=True)
                self._streams.write_all_lines(
                    ACCOUNTS_STREAM, account_lines, replace_existing=True
                )
                self._streams.write_all_lines(
                    HISTORY_STREAM, history_lines, replace_existing=True
                )
            except LedgerError as e:
                self._audit.log(AuditEventBuilder.store_persist_failed(str(e)))
                raise

        self._audit.log(AuditEventBuilder.store_persisted(
            users=len(user_lines),
            accounts=len(account_lines),
            transactions=len(history_lines),
        ))

    # =========================================================================
    # IDENTITY OPERATIONS
    # =========================================================================

    def sign_up(
        self,
        user_name: str,
        profile: UserProfile,
        initial_deposit: MoneyLike,
    ) -> User:
        """
        Register a user and open their account with an initial deposit.

        The opening balance is recorded as an "Initial deposit" entry so the
        history replays to the balance from zero.

        Raises:
            DuplicateUsernameError: user_name is taken
            InsufficientInitialDepositError: deposit below the minimum
            InvalidAmountError: deposit is not a valid money amount
            MalformedRecordError: a field cannot be stored
        """
        with self._mutation("sign_up", user_name=user_name):
            if user_name in self._users:
                raise DuplicateUsernameError(user_name)

            amount = to_money(initial_deposit)
            minimum = self._settings.min_initial_deposit
            if amount < minimum:
                raise InsufficientInitialDepositError(amount, minimum)

            account_id = self._last_account_id + 1
            user = self._build_user(
                first_name=profile.first_name,
                last_name=profile.last_name,
                email=profile.email,
                user_name=user_name,
                password=profile.password,
                account_id=account_id,
            )
            account = Account(account_id=account_id)
            entry = self._build_entry(
                account, TransactionKind.DEPOSIT, amount, "Initial deposit", self._clock()
            )
            self._apply(account, entry)

            self._users[user_name] = user
            self._accounts[account_id] = account
            self._last_account_id = account_id

        self._audit.log(AuditEventBuilder.user_signed_up(
            user_name=user_name,
            account_id=account_id,
            initial_deposit=str(amount),
        ))
        return user

    def login(self, user_name: str, password: str) -> User:
        """
        Check credentials.

        Raises:
            InvalidCredentialsError: Unknown user or wrong password. The
                message is the same in both cases.
        """
        with self._lock:
            user = self._users.get(user_name)
            if user is None or not user.matches_password(password):
                self._audit.log(AuditEventBuilder.login_failed(user_name))
                raise InvalidCredentialsError()

        self._audit.log(AuditEventBuilder.login_succeeded(user_name, user.account_id))
        return user

    def rename_user(self, old_user_name: str, new_user_name: str) -> User:
        """
        Change a user's login name, keeping the index consistent.

        Raises:
            UnknownUserError: old_user_name is not registered
            DuplicateUsernameError: new name is taken or equals the old one
        """
        with self._mutation("rename_user", user_name=old_user_name):
            user = self._require_user(old_user_name)
            if new_user_name == old_user_name:
                raise DuplicateUsernameError(
                    new_user_name, "This is already the current username"
                )
            if new_user_name in self._users:
                raise DuplicateUsernameError(new_user_name)

            renamed = self._build_user(**{**user.model_dump(), "user_name": new_user_name})
            del self._users[old_user_name]
            self._users[new_user_name] = renamed

        self._audit.log(AuditEventBuilder.username_changed(
            old_user_name, new_user_name, renamed.account_id
        ))
        return renamed

    def change_password(
        self,
        user_name: str,
        old_password_attempts: Union[str, Iterable[str]],
        new_password: str,
    ) -> User:
        """
        Replace a password after the old one is confirmed.

        Args:
            user_name: Whose password to change
            old_password_attempts: Candidate old passwords, tried in order.
                At most max_password_attempts are consumed, so a lazy
                iterable (e.g. one that prompts) is only asked as often as
                needed. A plain string is a single attempt.
            new_password: Replacement password

        Raises:
            InvalidCredentialsError: Unknown user, or no attempt matched
        """
        if isinstance(old_password_attempts, str):
            old_password_attempts = [old_password_attempts]
        limit = self._settings.max_password_attempts

        with self._mutation("change_password", user_name=user_name):
            user = self._users.get(user_name)
            if user is None:
                raise InvalidCredentialsError()

            tried = 0
            matched = False
            for candidate in islice(old_password_attempts, limit):
                tried += 1
                if user.matches_password(candidate):
                    matched = True
                    break

            if not matched:
                self._audit.log(AuditEventBuilder.password_change_failed(user_name, tried))
                raise InvalidCredentialsError(
                    "Exceeded maximum password change attempts"
                    if tried >= limit
                    else "Incorrect current password"
                )

            self._users[user_name] = self._build_user(
                **{**user.model_dump(), "password": new_password}
            )

        self._audit.log(AuditEventBuilder.password_changed(user_name))
        return self._users[user_name]

    def update_profile(
        self,
        user_name: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        email: Optional[str] = None,
    ) -> User:
        """
        Edit non-identity profile fields. Fields left as None are unchanged.

        Raises:
            UnknownUserError: user_name is not registered
            MalformedRecordError: a new value cannot be stored
        """
        changes = {
            name: value
            for name, value in (
                ("first_name", first_name),
                ("last_name", last_name),
                ("email", email),
            )
            if value is not None
        }

        if not changes:
            return self._require_user(user_name)

        with self._mutation("update_profile", user_name=user_name):
            user = self._require_user(user_name)
            self._users[user_name] = self._build_user(**{**user.model_dump(), **changes})

        self._audit.log(AuditEventBuilder.profile_updated(user_name, sorted(changes)))
        return self._users[user_name]

    # =========================================================================
    # MONEY OPERATIONS
    # =========================================================================

    def deposit(self, account_id: int, amount: MoneyLike) -> TransactionLogEntry:
        """
        Credit an account.

        Raises:
            UnknownAccountError: account_id is not in the store
            InvalidAmountError: amount <= 0 or above the deposit cap
        """
        with self._mutation("deposit", account_id=account_id):
            account = self._require_account(account_id)
            value = to_money(amount)
            if value <= 0:
                raise InvalidAmountError("Deposit amount must be greater than zero")
            if value > self._settings.max_deposit:
                raise InvalidAmountError(
                    f"You can't deposit more than {self._settings.max_deposit} at a time"
                )

            entry = self._build_entry(account, TransactionKind.DEPOSIT, value, "", self._clock())
            self._apply(account, entry)

        self._audit.log(AuditEventBuilder.deposit_completed(
            account_id, str(value), str(entry.resulting_balance)
        ))
        return entry

    def withdraw(self, account_id: int, amount: MoneyLike) -> TransactionLogEntry:
        """
        Debit an account.

        Raises:
            UnknownAccountError: account_id is not in the store
            InvalidAmountError: amount <= 0
            InsufficientFundsError: amount is greater than the balance
        """
        with self._mutation("withdraw", account_id=account_id):
            account = self._require_account(account_id)
            value = to_money(amount)
            if value <= 0:
                raise InvalidAmountError("Withdrawal amount must be greater than zero")
            if value > account.balance:
                raise InsufficientFundsError(account_id, account.balance, value)

            entry = self._build_entry(account, TransactionKind.WITHDRAW, value, "", self._clock())
            self._apply(account, entry)

        self._audit.log(AuditEventBuilder.withdrawal_completed(
            account_id, str(value), str(entry.resulting_balance)
        ))
        return entry

    def transfer(
        self,
        sender_id: int,
        receiver_user_name: str,
        amount: MoneyLike,
    ) -> tuple[TransactionLogEntry, TransactionLogEntry]:
        """
        Move money from one account to another user's account.

        Both entries share one timestamp. Both sides are built before either
        account is touched, then applied together and persisted once.

        Returns:
            (transfer_out_entry, transfer_in_entry)

        Raises:
            UnknownAccountError: sender_id is not in the store
            InvalidAmountError: amount <= 0
            InsufficientFundsError: amount is greater than the sender balance
            UnknownRecipientError: receiver_user_name is not registered
            SelfTransferNotAllowedError: receiver owns the sender account
        """
        with self._mutation("transfer", account_id=sender_id):
            sender = self._require_account(sender_id)
            value = to_money(amount)
            if value <= 0:
                raise InvalidAmountError("Transfer amount must be greater than zero")
            if value > sender.balance:
                raise InsufficientFundsError(sender_id, sender.balance, value)

            receiver_user = self._users.get(receiver_user_name)
            if receiver_user is None:
                raise UnknownRecipientError(receiver_user_name)
            if receiver_user.account_id == sender_id:
                raise SelfTransferNotAllowedError(sender_id)
            receiver = self._accounts[receiver_user.account_id]

            sender_user = self.owner_of(sender_id)
            sender_label = sender_user.user_name if sender_user else f"account {sender_id}"

            timestamp = self._clock()
            out_entry = self._build_entry(
                sender, TransactionKind.TRANSFER_OUT, value,
                f"to ({receiver_user_name})", timestamp,
            )
            in_entry = self._build_entry(
                receiver, TransactionKind.TRANSFER_IN, value,
                f"from ({sender_label})", timestamp,
            )

            self._apply(sender, out_entry)
            self._apply(receiver, in_entry)

        self._audit.log(AuditEventBuilder.transfer_completed(
            sender_id=sender_id,
            receiver_id=receiver.account_id,
            receiver_user_name=receiver_user_name,
            amount=str(value),
        ))
        return out_entry, in_entry

    # =========================================================================
    # INTERNALS
    # =========================================================================

    @contextmanager
    def _mutation(
        self,
        operation: str,
        user_name: Optional[str] = None,
        account_id: Optional[int] = None,
    ):
        """
        Run a mutation and persist it, or restore memory on any failure.

        The lock is held from the snapshot until the write or the restore
        is done, so checks and writes of one operation never interleave
        with another's.

        Users are replaced, never edited in place, so a shallow copy of the
        user index is enough. Accounts are edited in place, so their balance
        and history length are recorded.
        """
        with self._lock:
            self._require_loaded()
            users = dict(self._users)
            accounts = {
                account_id_: (account, account.balance, len(account.transactions))
                for account_id_, account in self._accounts.items()
            }
            last_account_id = self._last_account_id

            writing = False
            try:
                yield
                writing = True
                self.persist()
            except Exception as e:
                self._users = users
                self._accounts = {}
                for account_id_, (account, balance, length) in accounts.items():
                    account.balance = balance
                    del account.transactions[length:]
                    self._accounts[account_id_] = account
                self._last_account_id = last_account_id

                if writing:
                    self._rewrite_restored_state(operation)
                if isinstance(e, LedgerError):
                    self._audit.log(AuditEventBuilder.operation_rejected(
                        operation, e, user_name=user_name, account_id=account_id
                    ))
                raise

    def _rewrite_restored_state(self, operation: str) -> None:
        # Streams written before the failure still hold the rejected change
        try:
            self.persist()
        except LedgerError as e:
            logger.error("store_restore_failed", operation=operation, error=str(e))

    def _require_loaded(self) -> None:
        if self._load_failed:
            raise StoreCorruptError("Store failed to load; load it again before making changes")

    def _require_user(self, user_name: str) -> User:
        user = self._users.get(user_name)
        if user is None:
            raise UnknownUserError(user_name)
        return user

    def _require_account(self, account_id: int) -> Account:
        account = self._accounts.get(account_id)
        if account is None:
            raise UnknownAccountError(account_id)
        return account

    def _build_user(self, **fields) -> User:
        user = self._build(User, **fields)
        # Refuse values the line format cannot hold before they reach the index
        self._user_codec.encode(user)
        return user

    def _build_entry(
        self,
        account: Account,
        kind: TransactionKind,
        amount: Decimal,
        message: str,
        timestamp: str,
    ) -> TransactionLogEntry:
        delta = amount if kind.is_credit else -amount
        entry = self._build(
            TransactionLogEntry,
            account_id=account.account_id,
            kind=kind,
            amount=amount,
            message=message,
            resulting_balance=account.balance + delta,
            timestamp=timestamp,
        )
        self._transaction_codec.encode(entry)
        return entry

    @staticmethod
    def _apply(account: Account, entry: TransactionLogEntry) -> None:
        account.adjust_balance(entry.signed_amount)
        account.append_transaction(entry)

    @staticmethod
    def _build(model: type[BaseModel], **fields):
        try:
            return model(**fields)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                for err in e.errors()
            )
            raise MalformedRecordError(f"Invalid {model.__name__}: {problems}") from e
