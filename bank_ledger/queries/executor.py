"""
Ledger Query Engine

DESIGN DECISION: Queries are READ-ONLY and DETERMINISTIC.
They look at what the ledger store holds and never change it.

Two kinds of question are answered here:
1. Statements: what happened on an account (filtered, ordered, totalled)
2. Audit-trail replay: does the history actually add up to the balance?

Replay is the check that makes the append-only log worth keeping. Starting
from zero, the signed sum of every entry must equal the current balance,
and every entry's resulting_balance must equal the running total at that
point.
"""

from decimal import Decimal

from bank_ledger.errors import UnknownAccountError
from bank_ledger.ledger.store import LedgerStore
from bank_ledger.models.account import Account
from bank_ledger.models.statement import AccountStatement, StatementQuery


class LedgerQueryExecutor:
    """
    Executes read-only queries against a ledger store.

    GUARANTEES:
    - Only reports what the store holds
    - Never mutates accounts or the transaction log
    - An account with no entries yields an empty statement, not an error
    """

    def __init__(self, store: LedgerStore):
        self._store = store

    def statement(self, query: StatementQuery) -> AccountStatement:
        """
        Build a statement for one account.

        Raises:
            UnknownAccountError: The account is not in the store
        """
        account = self._require_account(query.account_id)
        history = list(account.history())

        totals: dict[str, Decimal] = {}
        for entry in history:
            key = entry.kind.value
            totals[key] = totals.get(key, Decimal("0.00")) + entry.amount

        entries = history
        if query.kind is not None:
            entries = [entry for entry in entries if entry.kind == query.kind]
        if query.newest_first:
            entries = list(reversed(entries))
        if query.limit is not None:
            entries = entries[:query.limit]

        owner = self._store.owner_of(account.account_id)

        # Build description
        desc_parts = [f"Account {account.account_id}"]
        if query.kind is not None:
            desc_parts.append(f"kind: {query.kind.value}")
        desc_parts.append("newest first" if query.newest_first else "oldest first")
        if query.limit is not None:
            desc_parts.append(f"last {query.limit}" if query.newest_first else f"first {query.limit}")

        return AccountStatement(
            account_id=account.account_id,
            owner_user_name=owner.user_name if owner else None,
            balance=account.balance,
            entries=entries,
            total_entries=len(history),
            totals_by_kind=totals,
            query_description=" | ".join(desc_parts),
        )

    def replay_balance(self, account_id: int) -> Decimal:
        """Signed sum of every entry on the account, starting from zero."""
        account = self._require_account(account_id)
        return sum(
            (entry.signed_amount for entry in account.transactions),
            Decimal("0.00"),
        )

    def is_consistent(self, account_id: int) -> bool:
        """
        Check the audit trail of one account.

        True when the replayed total equals the balance and every entry's
        resulting_balance matches the running total after it.
        """
        account = self._require_account(account_id)
        return self._check(account)

    def find_inconsistent_accounts(self) -> list[int]:
        """IDs of accounts whose history does not replay to their balance."""
        return [
            account.account_id
            for account in self._store.accounts()
            if not self._check(account)
        ]

    @staticmethod
    def _check(account: Account) -> bool:
        running = Decimal("0.00")
        for entry in account.transactions:
            running += entry.signed_amount
            if entry.resulting_balance != running:
                return False
        return running == account.balance

    def _require_account(self, account_id: int) -> Account:
        account = self._store.get_account(account_id)
        if account is None:
            raise UnknownAccountError(account_id)
        return account
