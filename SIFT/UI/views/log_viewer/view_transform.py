"""
View Transform Module - Reshape line display text with one jq expression

The transform never affects which lines are visible; it only changes the
text drawn for valid lines.
"""
import json
import logging
import math
from typing import Any, Optional

from SIFT.errors import ExpressionError
from SIFT.query import NO_RESULT, Expression, compile_expression

from .log_parser import LogLine

logger = logging.getLogger(__name__)


def format_number(value) -> str:
    """Shortest text that reads back as the same number"""
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer() and abs(value) < 1e16:
            return str(int(value))
        return repr(value)
    return str(value)


def coerce_for_display(value: Any) -> str:
    """Turn a jq result into display text"""
    if isinstance(value, str):
        return value
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return format_number(value)
    try:
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError):
        return str(value)


class ViewTransformer:
    """Single-slot holder for the active view transform"""

    def __init__(self):
        self.query: Optional[Expression] = None

    @property
    def expression(self) -> str:
        return self.query.text if self.query else ""

    @property
    def active(self) -> bool:
        return self.query is not None

    def set(self, text: str) -> None:
        """
        Replace the transform; empty text clears it

        Raises:
            ExpressionError: If text does not compile; the previous
                transform stays active
        """
        if not text or not text.strip():
            self.clear()
            return
        self.query = compile_expression(text)
        logger.info("View transform set to %r", text)

    def clear(self) -> None:
        if self.query is not None:
            logger.info("View transform cleared")
        self.query = None

    def display_text(self, line: LogLine) -> str:
        """
        Text to draw for a line

        Falls back to the raw line for invalid lines, evaluation errors and
        empty result streams.
        """
        if self.query is None or not line.is_valid:
            return line.raw_line
        try:
            result = self.query.first(line.json_data)
        except ExpressionError:
            return line.raw_line
        if result is NO_RESULT:
            return line.raw_line
        return coerce_for_display(result)
