"""Public API and orchestration for the ``audit_log_analytics`` package.

One analysis pass is a single synchronous batch:

    raw text -> lines -> header resolution -> grouping -> classification

:func:`analyze_log` raises on structural input errors; :func:`process_log_file`
turns those into an :class:`~audit_log_analytics.models.AnalysisResult`
carrying the message, which is what presentation layers show verbatim.
"""

from __future__ import annotations

from .classifier import classify_groups
from .errors import AuditLogError, EmptyLogError
from .grouping import group_transactions, resolve_columns
from .logging_setup import get_logger
from .models import AnalysisResult, Run
from .rules import DEFAULT_RULE_SET, RuleSet
from .sheets import DEFAULT_TIMEOUT_SECONDS, fetch_sheet_text
from .tokenizer import split_fields, split_lines

_logger = get_logger("audit_log_analytics.api")


def analyze_log(text: str, *, rule_set: RuleSet = DEFAULT_RULE_SET) -> list[Run]:
    """Reconstruct and classify every transaction in a log export.

    Raises
    ------
    EmptyLogError
        Fewer than two non-empty lines (no data below the header).
    MissingColumnError
        A required header column is absent; no rows are processed.
    """

    lines = split_lines(text)
    if len(lines) < 2:
        raise EmptyLogError()

    layout = resolve_columns(split_fields(lines[0]))
    groups = group_transactions(lines[1:], layout)
    runs = classify_groups(groups, rule_set)
    _logger.info(
        "analyzed %d data lines into %d transactions (rule set v%s)",
        len(lines) - 1,
        len(runs),
        rule_set.version,
    )
    return runs


def process_log_file(text: str, *, rule_set: RuleSet = DEFAULT_RULE_SET) -> AnalysisResult:
    """Like :func:`analyze_log`, but report structural errors as a result value."""

    try:
        return AnalysisResult.success(analyze_log(text, rule_set=rule_set))
    except AuditLogError as e:
        _logger.warning("analysis rejected: %s", e)
        return AnalysisResult.failure(str(e))


def get_analysis_from_sheet(
    url: str,
    *,
    rule_set: RuleSet = DEFAULT_RULE_SET,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> AnalysisResult:
    """Fetch a shared sheet and analyze it.

    Retrieval failures propagate as
    :class:`~audit_log_analytics.errors.SheetFetchError`, separate from the
    analysis errors carried in the returned result.
    """

    text = fetch_sheet_text(url, timeout=timeout)
    return process_log_file(text, rule_set=rule_set)


__all__ = ["analyze_log", "get_analysis_from_sheet", "process_log_file"]
