"""
Error types shared by all parsers.

Fatal conditions are raised as ParserError. Recoverable conditions are
collected as Diagnostic records on the parse result and logged as warnings.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class FailureKind(Enum):
    """Category of a parse failure or diagnostic."""
    STRUCTURAL_MISMATCH = "structural_mismatch"  # fatal
    TRUNCATED = "truncated"                      # fatal
    UNKNOWN_VERSION = "unknown_version"          # recoverable
    PARTIAL_SECTION = "partial_section"          # recoverable


class ParserError(Exception):
    """
    Raised when a resource cannot be decoded.

    Attributes:
        resource: Name of the resource being parsed (e.g. "world")
        message: Human readable cause
        kind: FailureKind of the failure
        cause: Lower level exception, if any
    """

    def __init__(self, resource: str, message: str = "", cause: Optional[BaseException] = None,
                 kind: FailureKind = FailureKind.STRUCTURAL_MISMATCH):
        self.resource = resource
        self.message = message
        self.cause = cause
        self.kind = kind

        text = f"failed parsing resource of type {resource}"
        if message:
            text += f" [context: {message}]"
        if cause is not None:
            text += f" due to: {cause}"
        super().__init__(text)


@dataclass
class Diagnostic:
    """A recoverable problem noticed while parsing."""
    kind: FailureKind
    message: str
