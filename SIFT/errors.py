"""
Error types shared across SIFT

Only startup failures abort the process. Everything raised here during a
session is caught at the component boundary and turned into state.
"""


class SiftError(Exception):
    """Base class for SIFT errors"""


class SourceAccessError(SiftError):
    """The log file is missing or cannot be read"""

    def __init__(self, path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot read '{path}': {reason}")


class ExpressionError(SiftError):
    """A jq expression failed to compile or to evaluate"""

    def __init__(self, expression: str, message: str):
        self.expression = expression
        self.message = message
        super().__init__(f"{message} (expression: {expression!r})")
