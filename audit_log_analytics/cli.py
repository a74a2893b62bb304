# ruff: noqa: I001
"""CLI for the ``audit_log_analytics`` package.

This module exposes callable command handlers (``cmd_analyze``,
``cmd_export``) and a Typer-based console interface. Environment variables
are loaded from a local ``.env`` using ``python-dotenv`` before delegating to
command logic. Business logic lives in ``audit_log_analytics.api`` and the
aggregation modules.

Environment
-----------
- ``AUDIT_LOG_ANALYTICS_LOG_LEVEL``: logging level (default ``INFO``).
- ``ALA_RULES_PATH``: JSON rule-set file used when ``--rules`` is omitted.
- ``ALA_FETCH_TIMEOUT``: sheet download timeout in seconds (default 30).
- ``ALA_EXPORT_DIR``: export directory when ``--output-dir`` is omitted.
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table
from typer.models import OptionInfo

from .api import get_analysis_from_sheet, process_log_file
from .errors import RuleSetError, SheetFetchError
from .export import EXPORT_CATEGORIES, write_exports
from .logging_setup import configure_logging, get_logger
from .models import Run
from .rules import DEFAULT_RULE_SET, RuleSet, load_rule_set
from .session import AnalysisSession
from .sheets import DEFAULT_TIMEOUT_SECONDS

_logger = get_logger("audit_log_analytics.cli")
console = Console()
_SOURCE_REQUIRED = "Error: provide exactly one of --csv-path or --sheet-url."


# ---- Small module-level helpers used by CLI commands -------------------------


def _resolve_rule_set(rules_path: Path | None) -> RuleSet:
    """Load the rule set from ``--rules`` or ``ALA_RULES_PATH``, else defaults."""

    if rules_path is None:
        env_path = os.getenv("ALA_RULES_PATH")
        if not env_path or not env_path.strip():
            return DEFAULT_RULE_SET
        rules_path = Path(env_path.strip())
    rule_set = load_rule_set(rules_path)
    _logger.info("using rule set v%s from %s", rule_set.version, rules_path)
    return rule_set


def _resolve_timeout(timeout: float | None) -> float:
    """Resolve the fetch timeout from the option, ``ALA_FETCH_TIMEOUT``, or default."""

    if timeout is not None and timeout > 0:
        return timeout
    env_val = os.getenv("ALA_FETCH_TIMEOUT")
    try:
        parsed = float(env_val) if env_val else None
    except ValueError:
        parsed = None
    if parsed is not None and parsed > 0:
        return parsed
    return DEFAULT_TIMEOUT_SECONDS


def _resolve_export_dir(output_dir: Path | None) -> Path:
    if output_dir is not None:
        return output_dir
    env_val = os.getenv("ALA_EXPORT_DIR")
    if env_val and env_val.strip():
        return Path(env_val.strip())
    return Path.cwd() / "exports"


def _load_runs(
    *,
    csv_path: Path | None,
    sheet_url: str | None,
    rules_path: Path | None,
    timeout: float | None,
) -> list[Run] | None:
    """Load and analyze the requested source.

    Returns ``None`` after writing an ``Error: ...`` line to stderr when the
    source cannot be read or analyzed.
    """

    if csv_path is not None and sheet_url is not None:
        print(_SOURCE_REQUIRED, file=sys.stderr)
        return None

    try:
        rule_set = _resolve_rule_set(rules_path)
    except RuleSetError as e:
        print(f"Error: {e}", file=sys.stderr)
        return None

    if csv_path is not None:
        try:
            text = csv_path.read_text(encoding="utf-8-sig")
        except FileNotFoundError:
            print(f"Error: File not found: {csv_path}", file=sys.stderr)
            return None
        except PermissionError:
            print(f"Error: Permission denied: {csv_path}", file=sys.stderr)
            return None
        except (OSError, UnicodeDecodeError) as e:
            print(f"Error: Unexpected failure reading '{csv_path}': {e}", file=sys.stderr)
            return None
        result = process_log_file(text, rule_set=rule_set)
    elif sheet_url is not None:
        try:
            result = get_analysis_from_sheet(
                sheet_url, rule_set=rule_set, timeout=_resolve_timeout(timeout)
            )
        except SheetFetchError as e:
            print(f"Error: {e}", file=sys.stderr)
            return None
    else:
        print(_SOURCE_REQUIRED, file=sys.stderr)
        return None

    if not result.ok:
        print(f"Error: Analysis failed: {result.error}", file=sys.stderr)
        return None
    return list(result.runs)


def _build_session(
    runs: list[Run], company_codes: list[str] | None, request_type: str | None
) -> AnalysisSession:
    session = AnalysisSession(runs)
    for code in company_codes or []:
        if code.strip() and code.strip() not in session.selection.company_codes:
            session.toggle_company_code(code.strip())
    if request_type and request_type.strip():
        session.select_request_type(request_type.strip().upper())
    return session


def _report_payload(session: AnalysisSession) -> dict:
    selection = session.selection
    return {
        "filters": {
            "companyCodes": sorted(selection.company_codes),
            "requestType": selection.request_type,
        },
        "summary": dict(session.summary.as_dict()),
        "averageProcessingTime": session.average_processing_time_label,
        "companyCodeBreakdown": [
            {"companyCode": i.company_code, "transactions": i.transactions}
            for i in session.company_code_breakdown
        ],
        "requestTypeBreakdown": [
            {"type": i.type, "documents": i.documents} for i in session.request_type_breakdown
        ],
        "monthly": [
            {"month": m.month, "transactions": m.transactions} for m in session.monthly_series
        ],
        "runs": [run.to_dict() for run in session.filtered_runs],
    }


def _render_report(session: AnalysisSession, out: Console) -> None:
    selection = session.selection
    codes = set(selection.company_codes)

    cc_table = Table(title="Transactions by Company Code")
    cc_table.add_column("Company Code")
    cc_table.add_column("Transactions", justify="right")
    for item in session.company_code_breakdown:
        marker = "*" if item.company_code in codes else ""
        cc_table.add_row(f"{item.company_code}{marker}", f"{item.transactions:,}")

    rt_table = Table(title="Document Counts by Request Type")
    rt_table.add_column("Request Type")
    rt_table.add_column("Documents", justify="right")
    for item in session.request_type_breakdown:
        marker = "*" if item.type == selection.request_type else ""
        rt_table.add_row(f"{item.type}{marker}", f"{item.documents:,}")

    summary = session.summary
    stats = Table(title="Summary")
    stats.add_column("Metric")
    stats.add_column("Value", justify="right")
    for label, value in (
        ("Total Unique Transactions", f"{summary.total:,}"),
        ("Intercompany Transactions", f"{summary.intercompany:,}"),
        ("Auto-Approved Transactions", f"{summary.auto_approved:,}"),
        ("2nd Level Approvals", f"{summary.second_level_approval:,}"),
        ("Error Transactions", f"{summary.error_transaction:,}"),
        ("Avg Processing Time", session.average_processing_time_label),
        ("WBS Owner Missing", f"{summary.wbs_owner_missing:,}"),
        ("Cost Center Owner Missing", f"{summary.cost_center_owner_missing:,}"),
        ("Fallback Transactions", f"{summary.fallback_transaction:,}"),
    ):
        stats.add_row(label, value)

    monthly = Table(title="Transactions per Month")
    monthly.add_column("Month")
    monthly.add_column("Transactions", justify="right")
    for m in session.monthly_series:
        monthly.add_row(m.month, f"{m.transactions:,}")

    if selection.is_active:
        out.print(
            "Filters: company codes="
            + (", ".join(sorted(codes)) or "(all)")
            + f"; request type={selection.request_type or '(all)'}"
        )
    for table in (cc_table, rt_table, stats, monthly):
        out.print(table)


# ---- Command handlers --------------------------------------------------------


def cmd_analyze(
    *,
    csv_path: Path | None = None,
    sheet_url: str | None = None,
    company_codes: list[str] | None = None,
    request_type: str | None = None,
    rules_path: Path | None = None,
    timeout: float | None = None,
    as_json: bool = False,
) -> int:
    """Analyze a log export and print the cross-filtered report.

    Returns ``0`` on success and ``1`` after writing an error to stderr.
    """

    runs = _load_runs(
        csv_path=csv_path, sheet_url=sheet_url, rules_path=rules_path, timeout=timeout
    )
    if runs is None:
        return 1

    session = _build_session(runs, company_codes, request_type)
    if as_json:
        typer.echo(json.dumps(_report_payload(session), indent=2))
    else:
        _render_report(session, console)
    return 0


def cmd_export(
    *,
    csv_path: Path | None = None,
    sheet_url: str | None = None,
    company_codes: list[str] | None = None,
    request_type: str | None = None,
    rules_path: Path | None = None,
    timeout: float | None = None,
    output_dir: Path | None = None,
    categories: list[str] | None = None,
) -> int:
    """Write key-list files for the filtered runs, one per category."""

    unknown = sorted(set(categories or []) - set(EXPORT_CATEGORIES))
    if unknown:
        print(
            f"Error: unknown export category: {', '.join(unknown)} "
            f"(expected one of: {', '.join(EXPORT_CATEGORIES)})",
            file=sys.stderr,
        )
        return 1

    runs = _load_runs(
        csv_path=csv_path, sheet_url=sheet_url, rules_path=rules_path, timeout=timeout
    )
    if runs is None:
        return 1

    session = _build_session(runs, company_codes, request_type)
    try:
        written = write_exports(
            session.filtered_runs, _resolve_export_dir(output_dir), categories or None
        )
    except OSError as e:
        print(f"Error: failed to write exports: {e}", file=sys.stderr)
        return 1

    if not written:
        typer.echo("No matching transactions; nothing exported.")
    for path in written:
        typer.echo(str(path))
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Reconstruct approval-engine transactions from an audit log export and "
        "report cross-filtered breakdowns. Loads settings from a local .env."
    ),
)

# Module-level option objects to satisfy ruff B008 (no calls in parameter
# defaults).
CSV_PATH_OPTION: OptionInfo = typer.Option(
    "--csv-path",
    help="Path to a CSV log export (first line is the header).",
    dir_okay=False,
    file_okay=True,
    exists=False,  # the handler reports missing files itself
)
SHEET_URL_OPTION: OptionInfo = typer.Option(
    "--sheet-url", help="Google Sheet (or plain CSV) URL shared by link."
)
COMPANY_CODE_OPTION: OptionInfo = typer.Option(
    "--company-code", "-c", help="Select a company code (repeatable)."
)
REQUEST_TYPE_OPTION: OptionInfo = typer.Option(
    "--request-type", "-t", help="Select a single request type (e.g. PO)."
)
RULES_OPTION: OptionInfo = typer.Option(
    "--rules", help="JSON rule-set file (falls back to ALA_RULES_PATH)."
)
TIMEOUT_OPTION: OptionInfo = typer.Option(
    "--timeout", help="Sheet download timeout in seconds (falls back to ALA_FETCH_TIMEOUT)."
)
CATEGORY_OPTION: OptionInfo = typer.Option(
    "--category",
    help="Export category (repeatable): " + ", ".join(EXPORT_CATEGORIES),
)


@app.command("analyze")
def analyze_cmd(
    csv_path: Annotated[Path | None, CSV_PATH_OPTION] = None,
    sheet_url: Annotated[str | None, SHEET_URL_OPTION] = None,
    company_code: Annotated[list[str] | None, COMPANY_CODE_OPTION] = None,
    request_type: Annotated[str | None, REQUEST_TYPE_OPTION] = None,
    rules: Annotated[Path | None, RULES_OPTION] = None,
    timeout: Annotated[float | None, TIMEOUT_OPTION] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Emit JSON instead of tables.")] = False,
) -> None:
    """Analyze a log export and print breakdowns, counters, and the monthly series."""

    code = cmd_analyze(
        csv_path=csv_path,
        sheet_url=sheet_url,
        company_codes=company_code,
        request_type=request_type,
        rules_path=rules,
        timeout=timeout,
        as_json=as_json,
    )
    raise typer.Exit(code)


@app.command("export")
def export_cmd(
    csv_path: Annotated[Path | None, CSV_PATH_OPTION] = None,
    sheet_url: Annotated[str | None, SHEET_URL_OPTION] = None,
    company_code: Annotated[list[str] | None, COMPANY_CODE_OPTION] = None,
    request_type: Annotated[str | None, REQUEST_TYPE_OPTION] = None,
    rules: Annotated[Path | None, RULES_OPTION] = None,
    timeout: Annotated[float | None, TIMEOUT_OPTION] = None,
    output_dir: Annotated[
        Path | None,
        typer.Option("--output-dir", help="Directory for key files (falls back to ALA_EXPORT_DIR)."),
    ] = None,
    category: Annotated[list[str] | None, CATEGORY_OPTION] = None,
) -> None:
    """Write the filtered transactions' keys to text files."""

    code = cmd_export(
        csv_path=csv_path,
        sheet_url=sheet_url,
        company_codes=company_code,
        request_type=request_type,
        rules_path=rules,
        timeout=timeout,
        output_dir=output_dir,
        categories=category,
    )
    raise typer.Exit(code)


@app.callback()
def _root(
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", help="Override AUDIT_LOG_ANALYTICS_LOG_LEVEL."),
    ] = None,
) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures package logging.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging(log_level)


if __name__ == "__main__":  # pragma: no cover
    app()
