"""
Error types shared across the interpreter.

Structural problems with a story model are collected by the validator and
raised together as one ModelValidationError. Runtime problems (a choice that
does not exist or is not currently available) are raised immediately.

DSL parsing never raises: text it does not understand is kept as an opaque
passthrough value.
"""

from __future__ import annotations
from enum import Enum


class ErrorKind(str, Enum):
    """Kinds of failure the interpreter reports."""
    DUPLICATE_ID = "DUPLICATE_ID"
    MISSING_REFERENCE = "MISSING_REFERENCE"
    CIRCULAR_REFERENCE = "CIRCULAR_REFERENCE"
    INVALID_CHOICE = "INVALID_CHOICE"
    INVALID_DOCUMENT = "INVALID_DOCUMENT"


class NarrativeError(Exception):
    """Base class for interpreter errors."""

    kind: ErrorKind

    def __init__(self, message: str, kind: ErrorKind):
        self.kind = kind
        super().__init__(message)


class DocumentError(NarrativeError):
    """Raised when a model document is malformed before any graph checks run."""

    def __init__(self, message: str, details: list[str] | None = None):
        self.details = details or []
        if self.details:
            message = message + "\n" + "\n".join(f"  - {d}" for d in self.details)
        super().__init__(message, ErrorKind.INVALID_DOCUMENT)
