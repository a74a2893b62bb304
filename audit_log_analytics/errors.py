"""Exception types raised by the analysis pipeline.

Structural input problems (an empty export, a missing header column) abort the
whole analysis and derive from :class:`AuditLogError`. Retrieval failures are
kept in a separate hierarchy (:class:`SheetFetchError`) so callers can tell a
bad export apart from an unreachable one.
"""

from __future__ import annotations


class AuditLogError(ValueError):
    """The log export cannot be analyzed at all."""


class EmptyLogError(AuditLogError):
    def __init__(self) -> None:
        super().__init__("The sheet appears to be empty or contains only a header.")


class MissingColumnError(AuditLogError):
    """A required header column is absent.

    ``column`` holds the display name of the first missing column (e.g.
    ``"CoCd"``) so callers can highlight it without parsing the message.
    """

    def __init__(self, column: str, reason: str) -> None:
        self.column = column
        super().__init__(f"Could not find required column: '{column}'. {reason}")


class RuleSetError(ValueError):
    """A classification rule-set file could not be loaded or validated."""


class SheetFetchError(RuntimeError):
    """Raw log text could not be retrieved from the remote source."""


__all__ = [
    "AuditLogError",
    "EmptyLogError",
    "MissingColumnError",
    "RuleSetError",
    "SheetFetchError",
]
