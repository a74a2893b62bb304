"""Key-list exports for filtered runs.

Each export is a plain-text file holding one ``unique_key`` per line. The
category names and file names match the downloads offered by the dashboard.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from os import PathLike
from pathlib import Path

from .logging_setup import get_logger
from .models import Run

_logger = get_logger("audit_log_analytics.export")

# category -> (file name, membership predicate)
EXPORT_CATEGORIES: dict[str, tuple[str, Callable[[Run], bool]]] = {
    "all": ("unique_transactions.txt", lambda r: True),
    "intercompany": ("intercompany_transactions.txt", lambda r: r.is_intercompany),
    "auto-approved": ("auto_approved_transactions.txt", lambda r: r.is_auto_approved),
    "second-level-approval": (
        "second_level_approval_transactions.txt",
        lambda r: r.is_second_level_approval,
    ),
    "error": ("error_transactions.txt", lambda r: r.is_error_transaction),
    "wbs-owner-missing": ("wbs_owner_missing_transactions.txt", lambda r: r.is_wbs_owner_missing),
    "cost-center-owner-missing": (
        "cost_center_owner_missing_transactions.txt",
        lambda r: r.is_cost_center_owner_missing,
    ),
    "fallback": ("fallback_transactions.txt", lambda r: r.is_fallback_transaction),
}


def export_keys(runs: Iterable[Run]) -> str:
    """Join the runs' unique keys with newlines."""

    return "\n".join(run.unique_key for run in runs)


def select_category(runs: Iterable[Run], category: str) -> list[Run]:
    try:
        _filename, predicate = EXPORT_CATEGORIES[category]
    except KeyError:
        raise ValueError(
            f"unknown export category {category!r}; expected one of: "
            + ", ".join(EXPORT_CATEGORIES)
        ) from None
    return [run for run in runs if predicate(run)]


def write_exports(
    runs: Sequence[Run],
    directory: str | PathLike[str],
    categories: Iterable[str] | None = None,
) -> list[Path]:
    """Write one key file per category and return the paths written.

    Categories whose subset is empty produce no file. ``categories`` defaults
    to every entry of :data:`EXPORT_CATEGORIES`.
    """

    out_dir = Path(directory)
    out_dir.mkdir(parents=True, exist_ok=True)
    written: list[Path] = []
    for category in categories if categories is not None else EXPORT_CATEGORIES:
        subset = select_category(runs, category)
        if not subset:
            _logger.info("export %s: no matching transactions, skipped", category)
            continue
        path = out_dir / EXPORT_CATEGORIES[category][0]
        path.write_text(export_keys(subset), encoding="utf-8")
        _logger.info("export %s: wrote %d keys to %s", category, len(subset), path)
        written.append(path)
    return written


__all__ = ["EXPORT_CATEGORIES", "export_keys", "select_category", "write_exports"]
