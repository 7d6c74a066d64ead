"""Ledger store package."""

from bank_ledger.ledger.store import LedgerStore, current_timestamp, to_money

__all__ = ["LedgerStore", "current_timestamp", "to_money"]
