"""
Query Module - Thin wrapper over the jq bindings

The rest of SIFT only relies on two things:
- compile_expression(text) -> Expression, or ExpressionError
- Expression.first(value) -> first result, NO_RESULT, or ExpressionError
"""
from typing import Any

import jq

from SIFT.errors import ExpressionError


class _NoResult:
    """Marker for a program that produced an empty result stream"""

    def __repr__(self) -> str:
        return "NO_RESULT"

    def __bool__(self) -> bool:
        return False


NO_RESULT = _NoResult()


class Expression:
    """A compiled jq program together with its source text"""

    def __init__(self, text: str, program):
        self.text = text
        self._program = program

    def __repr__(self) -> str:
        return f"Expression({self.text!r})"

    def first(self, value: Any) -> Any:
        """
        Run the program and return its first result

        Args:
            value: Decoded JSON value to run against

        Returns:
            The first result, or NO_RESULT if the stream was empty

        Raises:
            ExpressionError: If jq reports a runtime error
        """
        try:
            for result in self._program.input_value(value):
                return result
        except ValueError as e:
            raise ExpressionError(self.text, str(e)) from e
        return NO_RESULT


def compile_expression(text: str) -> Expression:
    """
    Compile jq source text

    Raises:
        ExpressionError: If the text is empty or does not compile
    """
    if not text or not text.strip():
        raise ExpressionError(text, "empty expression")
    try:
        program = jq.compile(text)
    except ValueError as e:
        raise ExpressionError(text, str(e)) from e
    return Expression(text, program)
