"""
Bank Ledger - Source Package

A single-user banking ledger: user identities, account balances and an
append-only transaction log, persisted to flat text files.

DESIGN PRINCIPLES:
1. One store object owns all state (no globals)
2. Every mutation is followed by a full rewrite of the store
3. A rejected operation changes nothing, in memory or on disk
4. Every balance change leaves an entry in the audit trail
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Bank Ledger Team"
