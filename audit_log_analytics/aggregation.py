"""Cross-filtered aggregates over a collection of runs.

Two filter dimensions exist: a set of selected company codes and at most one
selected request type. The effective filtered set applies both. Each
breakdown, however, ignores the filter of its *own* dimension and applies only
the other one, so selecting a company code narrows the request-type breakdown
while the company-code breakdown keeps showing every code (and vice versa).

All functions are pure: they take the full run collection and a selection and
return fresh sequences.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import timedelta
from decimal import ROUND_HALF_UP, Decimal

from .models import (
    CompanyCodeBreakdownItem,
    MonthlyTransactionData,
    RequestTypeBreakdownItem,
    Run,
    Runs,
    SummaryCounters,
)
from .timestamps import month_bucket

NOT_APPLICABLE = "N/A"


# ---------------------------------------------------------------------------
# Filter selection
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FilterSelection:
    """Current filter state. An empty ``company_codes`` set means no filter."""

    company_codes: frozenset[str] = frozenset()
    request_type: str | None = None

    @property
    def is_active(self) -> bool:
        return bool(self.company_codes) or self.request_type is not None

    def toggle_company_code(self, company_code: str) -> FilterSelection:
        return replace(self, company_codes=self.company_codes ^ {company_code})

    def with_request_type(self, request_type: str | None) -> FilterSelection:
        return replace(self, request_type=request_type)

    def clear_request_type(self) -> FilterSelection:
        return replace(self, request_type=None)

    def toggle_request_type(self, request_type: str) -> FilterSelection:
        if self.request_type == request_type:
            return self.clear_request_type()
        return self.with_request_type(request_type)

    def reset(self) -> FilterSelection:
        return FilterSelection()


def _matches_company_codes(run: Run, company_codes: frozenset[str]) -> bool:
    return bool(run.company_code) and run.company_code in company_codes


def filter_runs(
    runs: Iterable[Run],
    selection: FilterSelection | None = None,
    *,
    ignore_company_codes: bool = False,
    ignore_request_type: bool = False,
) -> list[Run]:
    """Return runs passing the selection, optionally ignoring one dimension."""

    selection = selection or FilterSelection()
    codes = selection.company_codes
    request_type = selection.request_type
    out: list[Run] = []
    for run in runs:
        if not ignore_company_codes and codes and not _matches_company_codes(run, codes):
            continue
        if not ignore_request_type and request_type is not None:
            if request_type not in run.request_types:
                continue
        out.append(run)
    return out


# ---------------------------------------------------------------------------
# Breakdowns
# ---------------------------------------------------------------------------


def company_code_breakdown(
    runs: Runs, selection: FilterSelection | None = None
) -> list[CompanyCodeBreakdownItem]:
    """Count runs per company code under the request-type filter only.

    Sorted by count descending; ties keep the order of first appearance.
    """

    counts: dict[str, int] = {}
    for run in filter_runs(runs, selection, ignore_company_codes=True):
        if run.company_code:
            counts[run.company_code] = counts.get(run.company_code, 0) + 1
    items = [CompanyCodeBreakdownItem(code, n) for code, n in counts.items()]
    return sorted(items, key=lambda item: item.transactions, reverse=True)


def request_type_breakdown(
    runs: Runs, selection: FilterSelection | None = None
) -> list[RequestTypeBreakdownItem]:
    """Count (run, request type) memberships under the company-code filter only.

    Sorted by count descending; ties keep the order of first appearance.
    """

    counts: dict[str, int] = {}
    for run in filter_runs(runs, selection, ignore_request_type=True):
        for request_type in run.request_types:
            counts[request_type] = counts.get(request_type, 0) + 1
    items = [RequestTypeBreakdownItem(t, n) for t, n in counts.items()]
    return sorted(items, key=lambda item: item.documents, reverse=True)


# ---------------------------------------------------------------------------
# Counters and series over the effective filtered set
# ---------------------------------------------------------------------------


def summary_counters(runs: Runs) -> SummaryCounters:
    return SummaryCounters(
        total=len(runs),
        intercompany=sum(1 for r in runs if r.is_intercompany),
        auto_approved=sum(1 for r in runs if r.is_auto_approved),
        second_level_approval=sum(1 for r in runs if r.is_second_level_approval),
        error_transaction=sum(1 for r in runs if r.is_error_transaction),
        wbs_owner_missing=sum(1 for r in runs if r.is_wbs_owner_missing),
        cost_center_owner_missing=sum(1 for r in runs if r.is_cost_center_owner_missing),
        fallback_transaction=sum(1 for r in runs if r.is_fallback_transaction),
    )


def monthly_series(runs: Runs) -> list[MonthlyTransactionData]:
    """Bucket runs by UTC ``YYYY-MM`` of their transaction date, ascending.

    Runs carrying the epoch sentinel land in the ``1970-01`` bucket.
    """

    counts: dict[str, int] = {}
    for run in runs:
        month = month_bucket(run.transaction_date)
        counts[month] = counts.get(month, 0) + 1
    return [MonthlyTransactionData(month, counts[month]) for month in sorted(counts)]


def average_processing_time(runs: Runs) -> timedelta | None:
    """Mean ``end_time - start_time`` over runs having both, else ``None``."""

    durations = [d for d in (r.processing_duration for r in runs) if d is not None]
    if not durations:
        return None
    return sum(durations, timedelta()) / len(durations)


def format_processing_time(value: timedelta | None) -> str:
    """Render an average duration as ``"<s> sec, <ms> ms"`` or ``"<ms> ms"``.

    ``None`` or a non-finite value renders as ``"N/A"``; an exact zero as
    ``"0 sec"``. Milliseconds are rounded half-up.
    """

    if value is None:
        return NOT_APPLICABLE
    total_seconds = value.total_seconds()
    if not math.isfinite(total_seconds):
        return NOT_APPLICABLE
    if total_seconds == 0:
        return "0 sec"

    sign = "-" if total_seconds < 0 else ""
    total_ms = Decimal(str(abs(total_seconds))) * 1000
    ms_whole = int(total_ms.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    seconds, milliseconds = divmod(ms_whole, 1000)
    if seconds > 0:
        return f"{sign}{seconds} sec, {milliseconds} ms"
    return f"{sign}{milliseconds} ms"


__all__ = [
    "NOT_APPLICABLE",
    "FilterSelection",
    "average_processing_time",
    "company_code_breakdown",
    "filter_runs",
    "format_processing_time",
    "monthly_series",
    "request_type_breakdown",
    "summary_counters",
]
