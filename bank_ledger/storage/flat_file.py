"""
Flat-File Record Streams

Each stream is one UTF-8 text file with one record per line, in a single
data directory (users.txt, accounts.txt, history.txt by default).

TRADEOFFS:
- Every write replaces a whole file. Fine for one user, O(n) per mutation.
- Each file is replaced atomically (temp file + os.replace), but the three
  files are written one after another. A crash between them can leave the
  streams out of step; load() will then report StoreCorruptError.
- Transient OS errors on write are retried with tenacity before giving up.
"""

import os
import tempfile
from pathlib import Path
from typing import Optional, Sequence

import structlog
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from bank_ledger.errors import StreamUnavailableError
from bank_ledger.storage.interface import ALL_STREAMS, RecordStreamInterface


logger = structlog.get_logger(__name__)

DEFAULT_FILES = {
    "users": "users.txt",
    "accounts": "accounts.txt",
    "history": "history.txt",
}


class FlatFileRecordStreams(RecordStreamInterface):
    """
    Record streams backed by text files in one directory.

    Missing files read as empty, so a first run starts with an empty store.
    """

    def __init__(
        self,
        directory: Path,
        file_names: Optional[dict[str, str]] = None,
        write_attempts: int = 3,
    ):
        """
        Initialize flat-file streams.

        Args:
            directory: Where the record files live (created on first write)
            file_names: Stream name to file name; defaults to users.txt,
                accounts.txt and history.txt
            write_attempts: Attempts per write before StreamUnavailableError
        """
        self._directory = Path(directory)
        self._file_names = dict(file_names or DEFAULT_FILES)
        self._retrying = Retrying(
            stop=stop_after_attempt(write_attempts),
            wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
            retry=retry_if_exception_type(OSError),
            reraise=True,
        )

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, stream: str) -> Path:
        """Path of the file backing a stream."""
        try:
            return self._directory / self._file_names[stream]
        except KeyError:
            raise StreamUnavailableError(
                stream,
                f"unknown stream (expected one of {', '.join(ALL_STREAMS)})",
            )

    def read_all_lines(self, stream: str) -> list[str]:
        path = self.path_for(stream)
        if not path.exists():
            logger.debug("stream_absent", stream=stream, path=str(path))
            return []

        try:
            with path.open("r", encoding="utf-8") as f:
                lines = [line.rstrip("\r\n") for line in f]
        except (OSError, UnicodeDecodeError) as e:
            raise StreamUnavailableError(stream, str(e))

        # Blank lines carry no record
        return [line for line in lines if line]

    def write_all_lines(
        self,
        stream: str,
        lines: Sequence[str],
        replace_existing: bool = True,
    ) -> None:
        path = self.path_for(stream)
        try:
            self._retrying(self._write, path, list(lines), replace_existing)
        except OSError as e:
            raise StreamUnavailableError(stream, str(e))

        logger.debug(
            "stream_written",
            stream=stream,
            lines=len(lines),
            replaced=replace_existing,
        )

    def _write(self, path: Path, lines: list[str], replace_existing: bool) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = "".join(f"{line}\n" for line in lines)

        if not replace_existing:
            with path.open("a", encoding="utf-8") as f:
                f.write(payload)
            return

        fd, tmp_name = tempfile.mkstemp(
            prefix=path.name + ".",
            suffix=".tmp",
            dir=str(path.parent),
        )
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, path)
        finally:
            if tmp_path.exists():
                tmp_path.unlink()
