"""Query engine package."""

from bank_ledger.queries.executor import LedgerQueryExecutor

__all__ = ["LedgerQueryExecutor"]
