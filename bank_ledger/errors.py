"""
Ledger Error Taxonomy

Every error the core raises derives from LedgerError, so the front-end can
catch one type at its boundary. None of these terminate the process.

MalformedRecordError during load() is the one condition that aborts store
initialization; everything else is per-operation and leaves prior state
untouched.
"""


class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


class DuplicateUsernameError(LedgerError):
    """User name is already taken (or unchanged on rename)."""

    def __init__(self, user_name: str, message: str = ""):
        self.user_name = user_name
        super().__init__(message or f"Username already in use: {user_name}")


class InvalidCredentialsError(LedgerError):
    """Unknown user name or wrong password. The two cases look the same."""

    def __init__(self, message: str = "Invalid username or password"):
        super().__init__(message)


class InsufficientInitialDepositError(LedgerError):
    """Opening deposit is below the required minimum."""

    def __init__(self, amount, minimum):
        self.amount = amount
        self.minimum = minimum
        super().__init__(
            f"Initial deposit {amount} is less than the required {minimum}"
        )


class InvalidAmountError(LedgerError):
    """Amount is not positive, too large, or not a valid money value."""
    pass


class InsufficientFundsError(LedgerError):
    """Amount is greater than the account balance."""

    def __init__(self, account_id: int, balance, amount):
        self.account_id = account_id
        self.balance = balance
        self.amount = amount
        super().__init__(
            f"Insufficient funds. Balance: {balance}, Required: {amount}"
        )


class UnknownRecipientError(LedgerError):
    """Transfer receiver is not a known user."""

    def __init__(self, user_name: str):
        self.user_name = user_name
        super().__init__(f"User does not exist: {user_name}")


class SelfTransferNotAllowedError(LedgerError):
    """Sender and receiver resolve to the same account."""

    def __init__(self, account_id: int):
        self.account_id = account_id
        super().__init__(f"Cannot transfer to the same account ({account_id})")


class UnknownAccountError(LedgerError):
    """Account ID is not in the store."""

    def __init__(self, account_id: int):
        self.account_id = account_id
        super().__init__(f"Account not found: {account_id}")


class UnknownUserError(LedgerError):
    """User name is not in the store."""

    def __init__(self, user_name: str):
        self.user_name = user_name
        super().__init__(f"User not found: {user_name}")


class MalformedRecordError(LedgerError):
    """A record line cannot be decoded, or a value cannot be encoded."""
    pass


class StoreCorruptError(LedgerError):
    """Persisted records contradict each other (dangling or duplicate keys)."""
    pass


class StreamUnavailableError(LedgerError):
    """A record stream could not be read or written."""

    def __init__(self, stream: str, message: str):
        self.stream = stream
        super().__init__(f"Record stream '{stream}' unavailable: {message}")
