"""Header resolution and grouping of log rows into transactions.

Log entries for one business transaction are scattered across the export
with no explicit begin/end marker. Rows are tied together by their
:class:`~audit_log_analytics.models.TransactionKey` (document id, document
version, company code); everything else about the transaction is derived
later by the classifier.

Tolerances
----------
- Rows too short to cover every required column are skipped.
- Rows with an empty document id or company code are skipped.
- An unparseable timestamp degrades to ``None`` for that entry only.
- Entries with an empty message are not recorded (they cannot match any
  rule), but their timestamp still counts toward the transaction date.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime

from .errors import MissingColumnError
from .logging_setup import get_logger
from .models import LogEntry, TransactionKey
from .timestamps import parse_timestamp
from .tokenizer import split_fields

_logger = get_logger("audit_log_analytics.grouping")

# (lower-cased header, display name, reason) in the order they are checked.
REQUIRED_COLUMNS: tuple[tuple[str, str, str], ...] = (
    ("document id", "Document ID", "Please check the column header."),
    ("cocd", "CoCd", "Please check the column header."),
    ("message", "Message", "This column is needed for analysis."),
    ("timestamp", "TimeStamp", "This column is needed for the monthly chart."),
    ("type", "Type", "This column is needed for error analysis."),
)
OPTIONAL_VERSION_COLUMN = "document version"


@dataclass(frozen=True, slots=True)
class ColumnLayout:
    """Column indices resolved once from the header row."""

    document_id: int
    company_code: int
    message: int
    timestamp: int
    type_code: int
    document_version: int | None = None

    @property
    def min_fields(self) -> int:
        """Smallest field count that covers every required column."""

        return (
            max(self.document_id, self.company_code, self.message, self.timestamp, self.type_code)
            + 1
        )


@dataclass(slots=True)
class TransactionGroup:
    """Accumulator for the rows of one transaction during a single pass."""

    company_code: str
    entries: list[LogEntry] = field(default_factory=list)
    timestamps: list[datetime] = field(default_factory=list)


def resolve_columns(header: Sequence[str]) -> ColumnLayout:
    """Map header names (case-insensitive, trimmed) to column indices.

    The first occurrence of a name wins. Raises :class:`MissingColumnError`
    for the first required column that is absent.
    """

    positions: dict[str, int] = {}
    for idx, name in enumerate(header):
        positions.setdefault(name.strip().lower(), idx)

    for key, display, reason in REQUIRED_COLUMNS:
        if key not in positions:
            raise MissingColumnError(display, reason)

    return ColumnLayout(
        document_id=positions["document id"],
        company_code=positions["cocd"],
        message=positions["message"],
        timestamp=positions["timestamp"],
        type_code=positions["type"],
        document_version=positions.get(OPTIONAL_VERSION_COLUMN),
    )


def group_transactions(
    lines: Iterable[str], layout: ColumnLayout
) -> dict[TransactionKey, TransactionGroup]:
    """Tokenize data lines and group them by transaction key.

    ``lines`` must exclude the header. The returned mapping preserves the order
    in which each key was first seen.
    """

    groups: dict[TransactionKey, TransactionGroup] = {}
    skipped_short = 0
    skipped_unkeyed = 0

    for line in lines:
        fields = split_fields(line)
        if len(fields) < layout.min_fields:
            skipped_short += 1
            continue

        document_id = fields[layout.document_id].strip()
        company_code = fields[layout.company_code].strip()
        if not document_id or not company_code:
            skipped_unkeyed += 1
            continue

        version = ""
        if layout.document_version is not None and layout.document_version < len(fields):
            version = fields[layout.document_version].strip()

        key = TransactionKey(document_id, version, company_code)
        message = fields[layout.message].strip()
        timestamp = parse_timestamp(fields[layout.timestamp].strip())
        type_code = fields[layout.type_code].strip()

        group = groups.get(key)
        if group is None:
            group = groups[key] = TransactionGroup(company_code=company_code)
        if message:
            group.entries.append(LogEntry(message=message, type_code=type_code, timestamp=timestamp))
        if timestamp is not None:
            group.timestamps.append(timestamp)

    if skipped_short or skipped_unkeyed:
        _logger.debug(
            "skipped rows: %d too short, %d without document id/company code",
            skipped_short,
            skipped_unkeyed,
        )
    return groups


__all__ = [
    "OPTIONAL_VERSION_COLUMN",
    "REQUIRED_COLUMNS",
    "ColumnLayout",
    "TransactionGroup",
    "group_transactions",
    "resolve_columns",
]
