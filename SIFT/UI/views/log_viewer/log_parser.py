"""
Log Parser Module - Best-effort JSON line parsing

Handles:
- Line terminator stripping (LF and CRLF)
- UTF-8 decoding with replacement of invalid bytes
- JSON object decoding; anything else is kept as an invalid line
"""
import json
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Union


@dataclass(frozen=True)
class LogLine:
    """One physical line of the source file"""
    line_number: int
    raw_line: str
    json_data: Optional[Dict[str, Any]] = None
    is_valid: bool = False

    def __str__(self) -> str:
        return self.raw_line


class LogParser:
    """
    Parser turning raw file lines into LogLine objects

    Malformed JSON is not an error: the line is recorded with
    is_valid=False and json_data=None.
    """

    ENCODING = 'utf-8'

    @staticmethod
    def strip_terminator(line: str) -> str:
        """Remove a trailing LF or CRLF"""
        if line.endswith('\n'):
            line = line[:-1]
            if line.endswith('\r'):
                line = line[:-1]
        return line

    def decode(self, raw: Union[bytes, str]) -> str:
        """Decode raw bytes from the file, replacing invalid sequences"""
        if isinstance(raw, bytes):
            raw = raw.decode(self.ENCODING, errors='replace')
        return self.strip_terminator(raw)

    def parse_line(self, line: Union[bytes, str], line_number: int) -> LogLine:
        """
        Parse a single log line

        Args:
            line: The raw line, with or without its terminator
            line_number: 1-based line number in the file

        Returns:
            LogLine with json_data set when the line is a JSON object
        """
        text = self.decode(line)
        try:
            data = json.loads(text)
        except ValueError:
            return LogLine(line_number=line_number, raw_line=text)

        # Scalars and arrays decode, but filters need field access
        if not isinstance(data, dict):
            return LogLine(line_number=line_number, raw_line=text)

        return LogLine(
            line_number=line_number,
            raw_line=text,
            json_data=data,
            is_valid=True
        )

    def parse_lines(self, lines: Iterable[Union[bytes, str]], start_line: int = 1) -> List[LogLine]:
        """
        Parse multiple log lines

        Args:
            lines: Raw lines
            start_line: Line number of the first line

        Returns:
            List of LogLine objects numbered consecutively
        """
        return [self.parse_line(line, i) for i, line in enumerate(lines, start=start_line)]
