"""
Transaction Log Entry

One immutable record of a balance-affecting event on one account.

DESIGN DECISION: Entries are frozen models. The transaction log is
append-only; an entry is never edited or removed once created. The
resulting_balance snapshot makes the log a replayable audit trail.
"""

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class TransactionKind(str, Enum):
    """
    Kinds of balance-affecting events.

    Values are the exact strings written to the history stream.
    """
    DEPOSIT = "Deposit"
    WITHDRAW = "Withdraw"
    TRANSFER_OUT = "Transfer-Out"
    TRANSFER_IN = "Transfer-In"

    @classmethod
    def _missing_(cls, value):
        # Names used by history files written before the kinds were split
        legacy = {
            "Transfer": cls.TRANSFER_OUT,
            "Receive": cls.TRANSFER_IN,
        }
        return legacy.get(value)

    @property
    def is_credit(self) -> bool:
        """Does this kind add money to the account?"""
        return self in (TransactionKind.DEPOSIT, TransactionKind.TRANSFER_IN)


class TransactionLogEntry(BaseModel):
    """
    A single entry in an account's transaction history.

    CRITICAL: resulting_balance must equal the owning account's balance
    immediately after this entry was appended.
    """
    model_config = ConfigDict(frozen=True)

    account_id: int = Field(
        ...,
        ge=1,
        description="Account this entry belongs to"
    )
    kind: TransactionKind = Field(
        ...,
        description="What kind of event this was"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Amount moved (always positive)"
    )
    message: str = Field(
        default="",
        description="Free-form note, e.g. transfer counterparty"
    )
    resulting_balance: Decimal = Field(
        ...,
        description="Account balance right after this entry"
    )
    timestamp: str = Field(
        ...,
        description="Human-readable time of the event"
    )

    @property
    def signed_amount(self) -> Decimal:
        """Amount with the sign it had on the balance."""
        return self.amount if self.kind.is_credit else -self.amount
