"""Stateful query surface used by presentation layers.

An :class:`AnalysisSession` owns one run collection and one filter selection.
Both are replaced as a unit when a new analysis is loaded, and every accessor
recomputes its aggregate from the current pair, so a reader never observes a
mixture of two analyses.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import timedelta

from . import aggregation
from .aggregation import FilterSelection
from .models import (
    CompanyCodeBreakdownItem,
    MonthlyTransactionData,
    RequestTypeBreakdownItem,
    Run,
    SummaryCounters,
)


class AnalysisSession:
    """Run collection plus cross-filter selection for one analysis."""

    def __init__(self, runs: Iterable[Run] = ()) -> None:
        self._state: tuple[tuple[Run, ...], FilterSelection] = (tuple(runs), FilterSelection())

    # ---- lifecycle ---------------------------------------------------------

    def load(self, runs: Iterable[Run]) -> None:
        """Replace the runs and reset the selection in a single assignment."""

        self._state = (tuple(runs), FilterSelection())

    def clear(self) -> None:
        self.load(())

    # ---- filter mutations --------------------------------------------------

    def _set_selection(self, selection: FilterSelection) -> None:
        self._state = (self._state[0], selection)

    def toggle_company_code(self, company_code: str) -> None:
        self._set_selection(self.selection.toggle_company_code(company_code))

    def select_request_type(self, request_type: str | None) -> None:
        self._set_selection(self.selection.with_request_type(request_type))

    def clear_request_type(self) -> None:
        self._set_selection(self.selection.clear_request_type())

    def toggle_request_type(self, request_type: str) -> None:
        self._set_selection(self.selection.toggle_request_type(request_type))

    def reset_filters(self) -> None:
        self._set_selection(FilterSelection())

    # ---- read-only accessors -----------------------------------------------

    @property
    def runs(self) -> tuple[Run, ...]:
        return self._state[0]

    @property
    def selection(self) -> FilterSelection:
        return self._state[1]

    @property
    def filtered_runs(self) -> list[Run]:
        runs, selection = self._state
        return aggregation.filter_runs(runs, selection)

    @property
    def company_code_breakdown(self) -> list[CompanyCodeBreakdownItem]:
        runs, selection = self._state
        return aggregation.company_code_breakdown(runs, selection)

    @property
    def request_type_breakdown(self) -> list[RequestTypeBreakdownItem]:
        runs, selection = self._state
        return aggregation.request_type_breakdown(runs, selection)

    @property
    def summary(self) -> SummaryCounters:
        return aggregation.summary_counters(self.filtered_runs)

    @property
    def monthly_series(self) -> list[MonthlyTransactionData]:
        return aggregation.monthly_series(self.filtered_runs)

    @property
    def average_processing_time(self) -> timedelta | None:
        return aggregation.average_processing_time(self.filtered_runs)

    @property
    def average_processing_time_label(self) -> str:
        return aggregation.format_processing_time(self.average_processing_time)


__all__ = ["AnalysisSession"]
