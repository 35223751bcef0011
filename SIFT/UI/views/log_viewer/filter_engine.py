"""
Filter Engine Module - jq predicate filters over parsed lines

Handles:
- Ordered list of enable/disable-able filters
- Explicit jq truthiness table
- Recomputing the visible subsequence of the line store
- Bounds-checked cursor for the filter management screen
"""
import logging
from dataclasses import dataclass
from typing import Any, Iterable, List

from SIFT.errors import ExpressionError
from SIFT.query import NO_RESULT, Expression, compile_expression

from .log_parser import LogLine

logger = logging.getLogger(__name__)


def is_truthy(value: Any) -> bool:
    """
    Truthiness of a jq result

    null, false, numeric zero, "", [] and {} are false; every other value,
    including kinds not listed here, is true.
    """
    if value is None or value is NO_RESULT:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, (str, list, dict)):
        return len(value) > 0
    return True


@dataclass
class Filter:
    """A jq filter as entered by the user"""
    expression: str
    query: Expression
    enabled: bool = True

    def matches(self, line: LogLine) -> bool:
        """True if the first result is truthy; no result or an error fails"""
        try:
            result = self.query.first(line.json_data)
        except ExpressionError:
            return False
        return is_truthy(result)


class FilterEngine:
    """
    Ordered set of filters deriving the visible lines

    With no filters at all every line is visible, invalid ones included.
    As soon as one filter exists only valid lines passing every enabled
    filter are visible.
    """

    def __init__(self):
        self.filters: List[Filter] = []
        self.cursor = 0

    def __len__(self) -> int:
        return len(self.filters)

    @property
    def enabled_count(self) -> int:
        return sum(1 for f in self.filters if f.enabled)

    def _clamp_cursor(self) -> None:
        if not self.filters:
            self.cursor = 0
        elif self.cursor >= len(self.filters):
            self.cursor = len(self.filters) - 1
        elif self.cursor < 0:
            self.cursor = 0

    def move_cursor(self, delta: int) -> None:
        self.cursor += delta
        self._clamp_cursor()

    def add(self, expression: str) -> Filter:
        """
        Compile and append an enabled filter

        Raises:
            ExpressionError: If the expression does not compile; the filter
                list is left unchanged
        """
        query = compile_expression(expression)
        new_filter = Filter(expression=expression, query=query)
        self.filters.append(new_filter)
        logger.info("Added filter %r", expression)
        return new_filter

    def edit(self, index: int, expression: str) -> Filter:
        """
        Replace the expression of an existing filter

        Raises:
            ExpressionError: If the new expression does not compile
            IndexError: If there is no filter at index
        """
        target = self.filters[index]
        query = compile_expression(expression)
        target.expression = expression
        target.query = query
        logger.info("Edited filter %d to %r", index, expression)
        return target

    def toggle(self, index: int) -> bool:
        """Flip the enabled flag and return the new value"""
        target = self.filters[index]
        target.enabled = not target.enabled
        return target.enabled

    def delete(self, index: int) -> Filter:
        """Remove a filter; the cursor is re-clamped"""
        removed = self.filters.pop(index)
        self._clamp_cursor()
        logger.info("Deleted filter %r", removed.expression)
        return removed

    def line_passes(self, line: LogLine) -> bool:
        """Check a line against all enabled filters"""
        if not line.is_valid:
            return False
        return all(f.matches(line) for f in self.filters if f.enabled)

    def apply(self, lines: Iterable[LogLine]) -> List[LogLine]:
        """
        Compute the visible subsequence from scratch

        Args:
            lines: Every line in the store, in order

        Returns:
            Lines to display, order preserved
        """
        if not self.filters:
            return list(lines)
        return [line for line in lines if self.line_passes(line)]
