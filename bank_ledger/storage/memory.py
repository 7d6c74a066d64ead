"""In-memory record streams, for tests and throwaway sessions."""

from typing import Optional, Sequence

from bank_ledger.errors import StreamUnavailableError
from bank_ledger.storage.interface import RecordStreamInterface


class InMemoryRecordStreams(RecordStreamInterface):
    """
    Dict-backed streams.

    Streams can be marked unavailable to simulate I/O failures.
    write_count records how many writes each stream has seen.
    """

    def __init__(self, initial: Optional[dict[str, list[str]]] = None):
        self.streams: dict[str, list[str]] = {
            name: list(lines) for name, lines in (initial or {}).items()
        }
        self.unavailable: set[str] = set()
        self.write_count: dict[str, int] = {}

    def read_all_lines(self, stream: str) -> list[str]:
        if stream in self.unavailable:
            raise StreamUnavailableError(stream, "marked unavailable")
        return [line for line in self.streams.get(stream, []) if line]

    def write_all_lines(
        self,
        stream: str,
        lines: Sequence[str],
        replace_existing: bool = True,
    ) -> None:
        if stream in self.unavailable:
            raise StreamUnavailableError(stream, "marked unavailable")
        if replace_existing:
            self.streams[stream] = list(lines)
        else:
            self.streams.setdefault(stream, []).extend(lines)
        self.write_count[stream] = self.write_count.get(stream, 0) + 1
