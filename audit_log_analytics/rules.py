"""Classification rule set for approval-engine log messages.

The marker texts below are business constants of the approval engine's log
format. They live in a versioned :class:`RuleSet` so an evolved log format can
be supplied as a JSON file instead of patching code. The per-entry flag rules
are expressed as a table of ``(flag, predicate)`` pairs built from a rule set
and evaluated uniformly by the classifier.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from functools import cached_property
from os import PathLike
from pathlib import Path

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from .errors import RuleSetError
from .models import LogEntry


class RuleSet(BaseModel):
    """Marker texts and patterns used to classify log entries.

    Exact-match fields are compared against the trimmed message; ``*_prefix``
    fields match with ``startswith``; ``threshold_pattern`` is searched
    case-insensitively and must define a ``doc_type`` named group.
    """

    model_config = ConfigDict(strict=True, extra="forbid", frozen=True)

    version: str = "1"

    threshold_pattern: str = r"Threshold identified:[\s\S]*?/(?P<doc_type>[A-Z]{3,4})\s+values:"
    intercompany_marker: str = "Intercompany supplier identified with supplier ID"
    non_intercompany_marker: str = "Non Intercompany supplier identified with supplier ID"
    auto_approval_message: str = "Document assessment executed with the result Approval NOT required"
    second_level_approval_prefix: str = "2nd Approval is mandated as document amount is"
    error_message: str = "An Error occured while determining the approvers"
    error_type_code: str = "E"
    start_processing_message: str = (
        "Running the document assessment, based on outcome: proceed or end"
    )
    end_processing_message: str = (
        "Completed execution of the Financial Approvals engine - technical success"
    )
    wbs_owner_missing_prefix: str = "Failed to identify WBS Element object owner for object"
    cost_center_owner_missing_prefix: str = (
        "Failed to identify Cost Center object owner for object"
    )
    fallback_prefix: str = "Using HR Hierarchy data with key"

    @field_validator("threshold_pattern")
    @classmethod
    def _pattern_has_doc_type_group(cls, v: str) -> str:
        try:
            compiled = re.compile(v, re.IGNORECASE)
        except re.error as e:
            raise ValueError(f"threshold_pattern does not compile: {e}") from e
        if "doc_type" not in compiled.groupindex:
            raise ValueError("threshold_pattern must define a (?P<doc_type>...) group")
        return v

    @field_validator(
        "intercompany_marker",
        "non_intercompany_marker",
        "auto_approval_message",
        "second_level_approval_prefix",
        "error_message",
        "error_type_code",
        "start_processing_message",
        "end_processing_message",
        "wbs_owner_missing_prefix",
        "cost_center_owner_missing_prefix",
        "fallback_prefix",
    )
    @classmethod
    def _non_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("marker text must be non-empty")
        return v

    @cached_property
    def threshold_regex(self) -> re.Pattern[str]:
        return re.compile(self.threshold_pattern, re.IGNORECASE)


DEFAULT_RULE_SET = RuleSet()


def load_rule_set(path: str | PathLike[str]) -> RuleSet:
    """Read and validate a JSON rule-set file.

    Fields omitted from the file keep their default values. Raises
    :class:`RuleSetError` when the file is unreadable or invalid.
    """

    p = Path(path)
    try:
        raw = p.read_text(encoding="utf-8")
    except OSError as e:
        raise RuleSetError(f"cannot read rule set {p}: {e}") from e
    try:
        return RuleSet.model_validate_json(raw)
    except ValidationError as e:
        raise RuleSetError(f"invalid rule set {p}: {e}") from e


# ---------------------------------------------------------------------------
# Rule table
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FlagRule:
    """Sets ``flag`` (a :class:`~audit_log_analytics.models.Run` field) when
    ``predicate`` holds for any entry of the transaction."""

    flag: str
    predicate: Callable[[LogEntry], bool]


def build_flag_rules(rule_set: RuleSet = DEFAULT_RULE_SET) -> tuple[FlagRule, ...]:
    rs = rule_set

    def intercompany(e: LogEntry) -> bool:
        # The negative marker contains the positive one as a substring.
        return rs.intercompany_marker in e.message and rs.non_intercompany_marker not in e.message

    return (
        FlagRule("is_intercompany", intercompany),
        FlagRule("is_auto_approved", lambda e: e.message == rs.auto_approval_message),
        FlagRule(
            "is_second_level_approval",
            lambda e: e.message.startswith(rs.second_level_approval_prefix),
        ),
        FlagRule(
            "is_error_transaction",
            lambda e: e.message == rs.error_message and e.type_code == rs.error_type_code,
        ),
        FlagRule(
            "is_wbs_owner_missing", lambda e: e.message.startswith(rs.wbs_owner_missing_prefix)
        ),
        FlagRule(
            "is_cost_center_owner_missing",
            lambda e: e.message.startswith(rs.cost_center_owner_missing_prefix),
        ),
        FlagRule("is_fallback_transaction", lambda e: e.message.startswith(rs.fallback_prefix)),
    )


def extract_request_type(message: str, rule_set: RuleSet = DEFAULT_RULE_SET) -> str | None:
    """Return the upper-cased request-type code of a threshold message, if any."""

    match = rule_set.threshold_regex.search(message)
    if match is None or not match.group("doc_type"):
        return None
    return match.group("doc_type").upper()


__all__ = [
    "DEFAULT_RULE_SET",
    "FlagRule",
    "RuleSet",
    "build_flag_rules",
    "extract_request_type",
    "load_rule_set",
]
