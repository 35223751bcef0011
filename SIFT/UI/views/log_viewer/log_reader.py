"""
Log File Reader Module - Incremental loading of JSON-per-line files

Handles:
- The append-only LineStore holding every line read so far
- Initial chunk loading with a retained file handle
- On-demand loading of further chunks
- Batched read-to-end for the End key and tail mode
- Total line estimation for the status bar

Reads that may run off the event loop (read_more, iter_to_end) only build
immutable LoadResult values; apply() is the single place that mutates the
store and must be called from the event loop.
"""
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterator, List, Optional, Sequence, Tuple

from SIFT.errors import SourceAccessError

from .log_parser import LogLine, LogParser

logger = logging.getLogger(__name__)


class LineStore:
    """Ordered, append-only collection of parsed log lines"""

    def __init__(self, lines: Optional[Sequence[LogLine]] = None):
        self._lines: List[LogLine] = []
        if lines:
            self.extend(lines)

    def __len__(self) -> int:
        return len(self._lines)

    def __getitem__(self, index):
        return self._lines[index]

    def __iter__(self) -> Iterator[LogLine]:
        return iter(self._lines)

    @property
    def lines(self) -> List[LogLine]:
        """Snapshot of the current lines"""
        return list(self._lines)

    @property
    def last_line_number(self) -> int:
        return self._lines[-1].line_number if self._lines else 0

    def extend(self, lines: Sequence[LogLine]) -> int:
        """
        Append lines that continue the numbering

        Returns:
            Number of lines appended

        Raises:
            ValueError: If the batch would leave a gap or repeat a number
        """
        expected = len(self._lines) + 1
        for line in lines:
            if line.line_number != expected:
                raise ValueError(
                    f"line {line.line_number} does not follow line {expected - 1}"
                )
            expected += 1
        self._lines.extend(lines)
        return len(lines)

    def replace_last(self, line: LogLine) -> None:
        """Swap the last line for a line carrying the same number"""
        if not self._lines or self._lines[-1].line_number != line.line_number:
            raise ValueError(f"line {line.line_number} is not the last stored line")
        self._lines[-1] = line


@dataclass(frozen=True)
class LoadResult:
    """Outcome of one background read, consumed once by the event loop"""
    lines: Tuple[LogLine, ...]
    end_offset: int
    reached_eof: bool
    error: Optional[str] = None
    # Bytes of an unterminated final line among lines, 0 if there is none
    fragment_size: int = 0

    @property
    def complete(self) -> bool:
        """True when no more reads should follow this one"""
        return self.reached_eof or self.error is not None


class LogFileReader:
    """
    Chunked reader populating a LineStore

    Features:
    - Bounded initial load with a retained handle
    - load_more for lazy loading as the cursor approaches the end
    - iter_to_end yielding fixed-size batches for progress feedback
    - Byte offset tracking so tailing can resume exactly where loading stopped
    """

    def __init__(self, file_path: Path, parser: Optional[LogParser] = None):
        """
        Initialize log file reader

        Args:
            file_path: Path to the log file
            parser: Line parser (default: LogParser())
        """
        self.file_path = Path(file_path)
        self.parser = parser or LogParser()
        self.store = LineStore()

        # Loading state
        self.file_pos = 0
        self.is_fully_loaded = False
        self._file: Optional[BinaryIO] = None
        # Size of an unterminated last stored line; the tail re-reads it
        self.fragment_size = 0

    @property
    def has_handle(self) -> bool:
        return self._file is not None

    @property
    def tail_start(self) -> Tuple[int, int]:
        """
        Byte offset and last line number the tail should follow from

        An unterminated final line may still be mid-write, so the tail
        resumes at its start and replaces it once it is complete.
        """
        if self.fragment_size:
            return self.file_pos - self.fragment_size, self.store.last_line_number - 1
        return self.file_pos, self.store.last_line_number

    def _open(self) -> BinaryIO:
        try:
            return open(self.file_path, 'rb')
        except OSError as e:
            raise SourceAccessError(self.file_path, e.strerror or str(e)) from e

    def _close(self) -> None:
        if self._file is not None:
            try:
                self._file.close()
            except OSError:
                logger.debug("Error closing %s", self.file_path, exc_info=True)
            self._file = None

    def _read_raw(self, handle: BinaryIO, limit: Optional[int]) -> Tuple[List[bytes], int, bool]:
        """Read up to limit raw lines; returns (lines, bytes read, hit EOF)"""
        raw_lines = []
        consumed = 0
        while limit is None or len(raw_lines) < limit:
            raw = handle.readline()
            if not raw:
                return raw_lines, consumed, True
            raw_lines.append(raw)
            consumed += len(raw)
        return raw_lines, consumed, False

    @staticmethod
    def _fragment_size(raw_lines: Sequence[bytes]) -> int:
        if raw_lines and not raw_lines[-1].endswith(b'\n'):
            return len(raw_lines[-1])
        return 0

    def load_initial(self, chunk_size: int) -> LineStore:
        """
        Open the file and read its first chunk

        Args:
            chunk_size: Maximum number of lines to read

        Returns:
            The populated LineStore

        Raises:
            SourceAccessError: If the file cannot be opened or read
        """
        self._close()
        handle = self._open()
        try:
            raw_lines, consumed, _ = self._read_raw(handle, chunk_size)
        except OSError as e:
            handle.close()
            raise SourceAccessError(self.file_path, e.strerror or str(e)) from e

        self.store = LineStore(self.parser.parse_lines(raw_lines, 1))
        self.file_pos = consumed
        self._file = handle
        self.fragment_size = self._fragment_size(raw_lines)

        if len(raw_lines) < chunk_size:
            self.is_fully_loaded = True
            self._close()

        logger.info(
            "Loaded %d lines from %s (fully loaded: %s)",
            len(self.store), self.file_path, self.is_fully_loaded
        )
        return self.store

    def read_more(self, n: int, start_line: Optional[int] = None) -> LoadResult:
        """
        Read up to n further lines from the retained handle

        Does not touch the store, so it is safe to run in a worker thread
        while the event loop keeps reading the store.
        """
        if start_line is None:
            start_line = len(self.store) + 1
        if self._file is None or self.is_fully_loaded:
            return LoadResult((), self.file_pos, True)

        try:
            raw_lines, consumed, _ = self._read_raw(self._file, n)
        except (OSError, ValueError) as e:
            return LoadResult((), self.file_pos, True, error=str(e))

        lines = tuple(self.parser.parse_lines(raw_lines, start_line))
        return LoadResult(lines, self.file_pos + consumed, len(raw_lines) < n,
                          fragment_size=self._fragment_size(raw_lines))

    def apply(self, result: LoadResult) -> int:
        """
        Merge a LoadResult into the store (event loop only)

        Returns:
            Number of lines appended
        """
        added = self.store.extend(result.lines)
        self.file_pos = result.end_offset
        if result.lines:
            self.fragment_size = result.fragment_size

        if result.error is not None:
            logger.warning("Stopped loading %s: %s", self.file_path, result.error)
        if result.complete:
            self.is_fully_loaded = True
            self._close()
        return added

    def load_more(self, n: int) -> int:
        """
        Append up to n more lines to the store

        Returns:
            Number of lines appended (0 if already fully loaded)
        """
        if self.is_fully_loaded or self._file is None:
            return 0
        return self.apply(self.read_more(n))

    def append_tail(self, lines: Sequence[LogLine]) -> int:
        """
        Append lines found by the tail monitor (event loop only)

        A first line numbered like the last stored line is the finished
        form of an unterminated final line and replaces it.

        Returns:
            Number of lines appended
        """
        if lines and self.fragment_size and lines[0].line_number == self.store.last_line_number:
            self.store.replace_last(lines[0])
            lines = lines[1:]
            self.fragment_size = 0
        return self.store.extend(lines)

    def _reopen_at_store_end(self) -> BinaryIO:
        """Open the file and skip the lines already in the store"""
        handle = self._open()
        try:
            _, consumed, _ = self._read_raw(handle, len(self.store))
        except OSError as e:
            handle.close()
            raise SourceAccessError(self.file_path, e.strerror or str(e)) from e
        self.file_pos = consumed
        return handle

    def iter_to_end(self, batch_size: int = 1000, start_line: Optional[int] = None) -> Iterator[LoadResult]:
        """
        Read the rest of the file one batch at a time

        The last result yielded has complete=True. Each result must be
        passed to apply() before the next one is requested.
        """
        if start_line is None:
            start_line = len(self.store) + 1
        if self.is_fully_loaded:
            yield LoadResult((), self.file_pos, True)
            return

        offset = self.file_pos
        try:
            handle = self._file or self._reopen_at_store_end()
            offset = self.file_pos
            self._file = handle
        except SourceAccessError as e:
            yield LoadResult((), offset, True, error=str(e))
            return

        next_line = start_line
        while True:
            try:
                raw_lines, consumed, eof = self._read_raw(handle, batch_size)
            except (OSError, ValueError) as e:
                self._close()
                yield LoadResult((), offset, True, error=str(e))
                return

            lines = tuple(self.parser.parse_lines(raw_lines, next_line))
            next_line += len(lines)
            offset += consumed
            if eof:
                self._close()
            yield LoadResult(lines, offset, eof, fragment_size=self._fragment_size(raw_lines))
            if eof:
                return

    def load_all(self) -> LineStore:
        """
        Load the whole file (used when starting in tail mode)

        Raises:
            SourceAccessError: If the file cannot be opened
        """
        if self._file is None and not self.is_fully_loaded:
            self._file = self._reopen_at_store_end()
        for result in self.iter_to_end():
            self.apply(result)
        return self.store

    def estimate_total(self, sample_size: int) -> int:
        """
        Estimate the total number of lines from a sample at the file start

        Args:
            sample_size: Number of lines to average over

        Returns:
            file size divided by the average line length in bytes
        """
        try:
            file_size = os.path.getsize(self.file_path)
            if file_size == 0:
                return 0
            with open(self.file_path, 'rb') as f:
                sample, total_bytes, _ = self._read_raw(f, sample_size)
        except OSError as e:
            logger.warning("Could not estimate size of %s: %s", self.file_path, e)
            return len(self.store)

        if not sample:
            return 0

        # Count a terminator even for a final line that lacks one
        total_bytes += sum(1 for raw in sample if not raw.endswith(b'\n'))
        avg_line_size = max(1, total_bytes // len(sample))
        return file_size // avg_line_size

    def close(self) -> None:
        """Release the file handle"""
        self._close()
