"""
Tail Monitor Module - Follow growth of the source file

Handles:
- Size polling against the last observed byte offset
- Reading only complete, newly written lines
- Sequential numbering continuing from the last stored line
- Stopping quietly when the file disappears or becomes unreadable
"""
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from .log_parser import LogLine, LogParser

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TailResult:
    """New lines found by one poll"""
    lines: Tuple[LogLine, ...]
    end_offset: int
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


class TailMonitor:
    """
    Polls a file for appended lines

    check() only reads; commit() advances the baseline once the caller has
    appended the lines, so a poll that is never committed is simply
    repeated on the next tick.
    """

    def __init__(self, file_path: Path, parser: Optional[LogParser] = None):
        self.file_path = Path(file_path)
        self.parser = parser or LogParser()
        self.baseline = 0
        self.last_line_number = 0
        self.active = False
        self.stopped = False

    def start(self, baseline: int, last_line_number: int) -> None:
        """
        Begin following from a byte offset

        Args:
            baseline: Offset just past the last line already stored
            last_line_number: Number of the last stored line
        """
        self.baseline = baseline
        self.last_line_number = last_line_number
        self.active = True
        logger.info("Tailing %s from byte %d (line %d)", self.file_path, baseline, last_line_number)

    def _stop(self, reason: str) -> TailResult:
        self.stopped = True
        logger.warning("Stopped tailing %s: %s", self.file_path, reason)
        return TailResult((), self.baseline, error=reason)

    def check(self) -> Optional[TailResult]:
        """
        Look for complete lines written past the baseline

        Returns:
            TailResult with the new lines, a failed TailResult if the file
            could not be read, or None when there is nothing new
        """
        if not self.active or self.stopped:
            return None

        try:
            size = os.path.getsize(self.file_path)
        except OSError as e:
            return self._stop(e.strerror or str(e))

        # Shrinking files are ignored; the baseline never moves backwards
        if size <= self.baseline:
            return None

        raw_lines = []
        consumed = 0
        try:
            with open(self.file_path, 'rb') as f:
                f.seek(self.baseline)
                for raw in f:
                    # Unterminated fragment: the writer is mid-line
                    if not raw.endswith(b'\n'):
                        break
                    raw_lines.append(raw)
                    consumed += len(raw)
        except OSError as e:
            return self._stop(e.strerror or str(e))

        if not raw_lines:
            return None

        lines = self.parser.parse_lines(raw_lines, self.last_line_number + 1)
        return TailResult(tuple(lines), self.baseline + consumed)

    def commit(self, result: TailResult) -> None:
        """Advance the baseline after result.lines were appended"""
        if result.failed or not result.lines:
            return
        if result.end_offset > self.baseline:
            self.baseline = result.end_offset
        self.last_line_number = result.lines[-1].line_number
