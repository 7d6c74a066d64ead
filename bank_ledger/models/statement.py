"""Statement query and result models."""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from bank_ledger.models.transaction import TransactionKind, TransactionLogEntry


class StatementQuery(BaseModel):
    """
    What part of an account's history to show.

    The ledger front-end builds these from the history page filters.
    """

    account_id: int = Field(
        ...,
        ge=1,
        description="Account to report on"
    )
    kind: Optional[TransactionKind] = Field(
        default=None,
        description="Only entries of this kind (None = all kinds)"
    )
    limit: Optional[int] = Field(
        default=None,
        ge=1,
        le=10000,
        description="Maximum entries to return"
    )
    newest_first: bool = Field(
        default=False,
        description="Return entries newest first instead of oldest first"
    )


class AccountStatement(BaseModel):
    """
    Result of a statement query.

    Totals are computed over the whole history, not only the entries
    returned, so a limited statement still shows the full picture.
    """

    account_id: int
    owner_user_name: Optional[str] = None
    balance: Decimal
    entries: list[TransactionLogEntry] = Field(default_factory=list)
    total_entries: int = Field(
        default=0,
        description="Entries in the account before filtering"
    )
    totals_by_kind: dict[str, Decimal] = Field(
        default_factory=dict,
        description="Sum of amounts per kind value"
    )
    query_description: str = ""

    @property
    def data_found(self) -> bool:
        return len(self.entries) > 0

    @property
    def total_in(self) -> Decimal:
        return sum(
            (amount for kind, amount in self.totals_by_kind.items()
             if TransactionKind(kind).is_credit),
            Decimal("0.00"),
        )

    @property
    def total_out(self) -> Decimal:
        return sum(
            (amount for kind, amount in self.totals_by_kind.items()
             if not TransactionKind(kind).is_credit),
            Decimal("0.00"),
        )
