from __future__ import annotations

from typing import Optional


class IdrefStripError(Exception):
    """Base class for every error a transformation run can abort with."""


class MalformedInput(IdrefStripError):
    """The input is not well-formed XML (bad markup, bad encoding, truncated)."""

    def __init__(self, message: str, *, line: Optional[int] = None, column: Optional[int] = None):
        super().__init__(message)
        self.line = line
        self.column = column


class WriteFailure(IdrefStripError):
    """The output stream refused further data."""


class InvariantViolation(IdrefStripError):
    """End tag reached the filter with no open element left to close."""
