"""Public interface for the ``audit_log_analytics`` package.

This module exposes the package's API functions and public models/types as the
stable import surface. There is no runtime logic here, only symbol re-exports.
"""

from .aggregation import (
    FilterSelection,
    average_processing_time,
    company_code_breakdown,
    filter_runs,
    format_processing_time,
    monthly_series,
    request_type_breakdown,
    summary_counters,
)
from .api import analyze_log, get_analysis_from_sheet, process_log_file
from .errors import (
    AuditLogError,
    EmptyLogError,
    MissingColumnError,
    RuleSetError,
    SheetFetchError,
)
from .export import export_keys, write_exports
from .models import (
    AnalysisResult,
    CompanyCodeBreakdownItem,
    MonthlyTransactionData,
    RequestTypeBreakdownItem,
    Run,
    SummaryCounters,
    TransactionKey,
)
from .rules import DEFAULT_RULE_SET, RuleSet, load_rule_set
from .session import AnalysisSession

__all__ = [
    # API
    "analyze_log",
    "get_analysis_from_sheet",
    "process_log_file",
    # Aggregation
    "FilterSelection",
    "average_processing_time",
    "company_code_breakdown",
    "filter_runs",
    "format_processing_time",
    "monthly_series",
    "request_type_breakdown",
    "summary_counters",
    "AnalysisSession",
    # Export
    "export_keys",
    "write_exports",
    # Rules
    "DEFAULT_RULE_SET",
    "RuleSet",
    "load_rule_set",
    # Models / types
    "AnalysisResult",
    "CompanyCodeBreakdownItem",
    "MonthlyTransactionData",
    "RequestTypeBreakdownItem",
    "Run",
    "SummaryCounters",
    "TransactionKey",
    # Errors
    "AuditLogError",
    "EmptyLogError",
    "MissingColumnError",
    "RuleSetError",
    "SheetFetchError",
]
