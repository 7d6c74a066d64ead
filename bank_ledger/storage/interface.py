"""
Abstract Record Stream Interface

DESIGN DECISION: The ledger store never touches files directly. It reads
and writes named streams of text lines through this interface.
This allows us to:
1. Keep the flat-file format behind one small seam
2. Use in-memory streams for testing
3. Swap to another backend later without changing ledger logic

The interface is intentionally tiny: read every line, or replace every line.
"""

from abc import ABC, abstractmethod
from typing import Sequence

from bank_ledger.errors import StreamUnavailableError


USERS_STREAM = "users"
ACCOUNTS_STREAM = "accounts"
HISTORY_STREAM = "history"

ALL_STREAMS = (USERS_STREAM, ACCOUNTS_STREAM, HISTORY_STREAM)


class RecordStreamInterface(ABC):
    """
    Abstract interface for named, line-oriented record streams.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    def read_all_lines(self, stream: str) -> list[str]:
        """
        Read every non-empty line of a stream.

        Args:
            stream: Stream name (users, accounts or history)

        Returns:
            Lines in stored order, without line terminators.
            A stream that does not exist yet reads as empty.

        Raises:
            StreamUnavailableError: If the stream exists but cannot be read
        """
        pass

    @abstractmethod
    def write_all_lines(
        self,
        stream: str,
        lines: Sequence[str],
        replace_existing: bool = True,
    ) -> None:
        """
        Write lines to a stream.

        Args:
            stream: Stream name
            lines: Lines to write, without line terminators
            replace_existing: Replace the stream's contents (True) or
                append to it (False)

        Raises:
            StreamUnavailableError: If the stream cannot be written
        """
        pass


__all__ = [
    "ACCOUNTS_STREAM",
    "ALL_STREAMS",
    "HISTORY_STREAM",
    "RecordStreamInterface",
    "StreamUnavailableError",
    "USERS_STREAM",
]
