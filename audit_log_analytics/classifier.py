"""Classification of grouped log entries into canonical :class:`Run` records.

The classifier never fails: a transaction whose messages match no rule yields
a run with every flag false, no request types, and no start/end time. Results
do not depend on entry order.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime

from .grouping import TransactionGroup
from .models import LogEntry, Run, TransactionKey
from .rules import DEFAULT_RULE_SET, RuleSet, build_flag_rules, extract_request_type
from .timestamps import EPOCH


def _latest_marker_time(entries: Iterable[LogEntry], marker: str) -> datetime | None:
    stamps = [e.timestamp for e in entries if e.message == marker and e.timestamp is not None]
    return max(stamps) if stamps else None


def classify_group(
    key: TransactionKey,
    group: TransactionGroup,
    rule_set: RuleSet = DEFAULT_RULE_SET,
) -> Run:
    """Build the canonical run for one transaction group."""

    flag_rules = build_flag_rules(rule_set)
    flags: dict[str, bool] = {rule.flag: False for rule in flag_rules}
    # dict keeps first-seen order while de-duplicating.
    request_types: dict[str, None] = {}

    for entry in group.entries:
        code = extract_request_type(entry.message, rule_set)
        if code is not None:
            request_types.setdefault(code, None)
        for rule in flag_rules:
            if not flags[rule.flag] and rule.predicate(entry):
                flags[rule.flag] = True

    return Run(
        key=key,
        company_code=group.company_code or None,
        transaction_date=max(group.timestamps) if group.timestamps else EPOCH,
        request_types=tuple(request_types),
        start_time=_latest_marker_time(group.entries, rule_set.start_processing_message),
        end_time=_latest_marker_time(group.entries, rule_set.end_processing_message),
        **flags,
    )


def classify_groups(
    groups: Mapping[TransactionKey, TransactionGroup],
    rule_set: RuleSet = DEFAULT_RULE_SET,
) -> list[Run]:
    """Classify every group, preserving the mapping's (first-seen) order."""

    return [classify_group(key, group, rule_set) for key, group in groups.items()]


__all__ = ["classify_group", "classify_groups"]
