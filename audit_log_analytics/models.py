"""Data models for ``audit_log_analytics``.

A :class:`Run` is the canonical record reconstructed for one business
transaction (one document version within one company code). Runs are built
once per analysis pass and never mutated; every aggregate is derived from a
collection of them.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, NamedTuple, TypeAlias

from .timestamps import to_iso

# ---------------------------------------------------------------------------
# Identity and raw entries
# ---------------------------------------------------------------------------


class TransactionKey(NamedTuple):
    """Composite identity of one business transaction.

    ``document_version`` is the empty string when the export has no version
    column. Equality is structural, so a document id that happens to contain
    ``-`` cannot collide with another key.
    """

    document_id: str
    document_version: str
    company_code: str

    def as_string(self) -> str:
        """Render the key in the exported ``<id>-<version>-<cocd>`` form."""

        return f"{self.document_id}-{self.document_version}-{self.company_code}"


@dataclass(frozen=True, slots=True)
class LogEntry:
    """One non-empty log message attached to a transaction."""

    message: str
    type_code: str
    timestamp: datetime | None = None


# Flag attribute names on :class:`Run`, in display order.
FLAG_FIELDS: tuple[str, ...] = (
    "is_intercompany",
    "is_auto_approved",
    "is_second_level_approval",
    "is_error_transaction",
    "is_wbs_owner_missing",
    "is_cost_center_owner_missing",
    "is_fallback_transaction",
)


@dataclass(frozen=True, slots=True)
class Run:
    """The canonical, immutable record for one reconstructed transaction.

    Attributes
    ----------
    key:
        The :class:`TransactionKey` the log entries were grouped under.
    company_code:
        Company code of the transaction (``None`` only for runs built outside
        the grouper).
    request_types:
        De-duplicated request-type codes extracted from threshold messages,
        in first-seen order. Order carries no meaning.
    transaction_date:
        Latest parsed timestamp of the group, or the epoch sentinel.
    start_time / end_time:
        Latest timestamp of the processing-started / processing-completed
        marker message, when present.
    """

    key: TransactionKey
    company_code: str | None
    transaction_date: datetime
    request_types: tuple[str, ...] = ()
    is_intercompany: bool = False
    is_auto_approved: bool = False
    is_second_level_approval: bool = False
    is_error_transaction: bool = False
    is_wbs_owner_missing: bool = False
    is_cost_center_owner_missing: bool = False
    is_fallback_transaction: bool = False
    start_time: datetime | None = None
    end_time: datetime | None = None

    @property
    def unique_key(self) -> str:
        return self.key.as_string()

    @property
    def processing_duration(self) -> timedelta | None:
        if self.start_time is None or self.end_time is None:
            return None
        return self.end_time - self.start_time

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-friendly mapping of the run."""

        payload: dict[str, Any] = {
            "uniqueKey": self.unique_key,
            "companyCode": self.company_code,
            "requestTypes": list(self.request_types),
        }
        for name in FLAG_FIELDS:
            payload[_camel(name)] = getattr(self, name)
        payload["transactionDate"] = to_iso(self.transaction_date)
        payload["startTime"] = to_iso(self.start_time)
        payload["endTime"] = to_iso(self.end_time)
        return payload


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


# ---------------------------------------------------------------------------
# Aggregates
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CompanyCodeBreakdownItem:
    company_code: str
    transactions: int


@dataclass(frozen=True, slots=True)
class RequestTypeBreakdownItem:
    type: str
    documents: int


@dataclass(frozen=True, slots=True)
class MonthlyTransactionData:
    month: str
    transactions: int


@dataclass(frozen=True, slots=True)
class SummaryCounters:
    """Headline counts over the effective filtered set of runs."""

    total: int = 0
    intercompany: int = 0
    auto_approved: int = 0
    second_level_approval: int = 0
    error_transaction: int = 0
    wbs_owner_missing: int = 0
    cost_center_owner_missing: int = 0
    fallback_transaction: int = 0

    def as_dict(self) -> Mapping[str, int]:
        return {
            "total": self.total,
            "intercompany": self.intercompany,
            "autoApproved": self.auto_approved,
            "secondLevelApproval": self.second_level_approval,
            "errorTransaction": self.error_transaction,
            "wbsOwnerMissing": self.wbs_owner_missing,
            "costCenterOwnerMissing": self.cost_center_owner_missing,
            "fallbackTransaction": self.fallback_transaction,
        }


# ---------------------------------------------------------------------------
# Analysis outcome
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class AnalysisResult:
    """Outcome of one analysis pass: runs on success, a message on failure."""

    runs: tuple[Run, ...] = field(default_factory=tuple)
    error: str | None = None

    def __post_init__(self) -> None:
        if self.error is not None and self.runs:
            raise ValueError("AnalysisResult carries either runs or an error, not both")

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, runs: Iterable[Run]) -> AnalysisResult:
        return cls(runs=tuple(runs))

    @classmethod
    def failure(cls, message: str) -> AnalysisResult:
        return cls(error=message)


# Generic collection alias used across the aggregation API.
Runs: TypeAlias = Sequence[Run]


__all__ = [
    "FLAG_FIELDS",
    "AnalysisResult",
    "CompanyCodeBreakdownItem",
    "LogEntry",
    "MonthlyTransactionData",
    "RequestTypeBreakdownItem",
    "Run",
    "Runs",
    "SummaryCounters",
    "TransactionKey",
]
