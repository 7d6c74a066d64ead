"""
Storage Package

Provides the record stream interface and its implementations.
Flat text files are the production backend; in-memory streams serve tests.
"""

from bank_ledger.storage.interface import (
    ACCOUNTS_STREAM,
    ALL_STREAMS,
    HISTORY_STREAM,
    USERS_STREAM,
    RecordStreamInterface,
    StreamUnavailableError,
)
from bank_ledger.storage.flat_file import FlatFileRecordStreams
from bank_ledger.storage.memory import InMemoryRecordStreams

__all__ = [
    # Interface
    "ACCOUNTS_STREAM",
    "ALL_STREAMS",
    "HISTORY_STREAM",
    "USERS_STREAM",
    "RecordStreamInterface",
    # Exceptions
    "StreamUnavailableError",
    # Implementations
    "FlatFileRecordStreams",
    "InMemoryRecordStreams",
]
