"""Account model: a balance plus its ordered transaction history."""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from bank_ledger.models.transaction import TransactionLogEntry


class Account(BaseModel):
    """
    One bank account.

    The balance is only changed through adjust_balance(), and callers
    (the ledger store) are responsible for checking sufficiency first.
    """
    model_config = ConfigDict(validate_assignment=True)

    account_id: int = Field(
        ...,
        ge=1,
        description="Unique, monotonically assigned account number"
    )
    balance: Decimal = Field(
        default=Decimal("0.00"),
        description="Current balance"
    )
    transactions: list[TransactionLogEntry] = Field(
        default_factory=list,
        description="Entries in append order, oldest first"
    )

    def adjust_balance(self, delta: Decimal) -> None:
        """Add delta (may be negative) to the balance. No bound checks."""
        self.balance = self.balance + delta

    def append_transaction(self, entry: TransactionLogEntry) -> None:
        """Append an entry to the history. Prior entries are never touched."""
        if entry.account_id != self.account_id:
            raise ValueError(
                f"Entry for account {entry.account_id} cannot be added "
                f"to account {self.account_id}"
            )
        self.transactions.append(entry)

    def history(self) -> tuple[TransactionLogEntry, ...]:
        """Entries oldest first. Empty for an account with no activity."""
        return tuple(self.transactions)

    @property
    def last_transaction(self):
        return self.transactions[-1] if self.transactions else None
