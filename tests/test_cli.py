import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

import audit_log_analytics.api as api_mod
from audit_log_analytics.cli import app
from audit_log_analytics.errors import SheetFetchError
from tests.helpers.logs import (
    AUTO_APPROVED,
    END,
    INTERCOMPANY,
    START,
    make_log,
    threshold,
)

runner = CliRunner()

ROWS = [
    ("D1", "1", "US1", START, "20240115103045.123", "I"),
    ("D1", "1", "US1", threshold("POS"), "20240115103046.000", "I"),
    ("D1", "1", "US1", INTERCOMPANY, "20240115103046.500", "I"),
    ("D1", "1", "US1", END, "20240115103047.456", "I"),
    ("D2", "1", "DE1", threshold("SRV"), "20240220080000.000", "I"),
    ("D2", "1", "DE1", AUTO_APPROVED, "20240220080001.000", "I"),
]


@pytest.fixture()
def log_file(tmp_path: Path) -> Path:
    path = tmp_path / "log.csv"
    path.write_text(make_log(ROWS), encoding="utf-8")
    return path


def _json(args: list[str]) -> dict:
    result = runner.invoke(app, ["--log-level", "WARNING", *args])
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)


def test_analyze_json_report(log_file: Path):
    report = _json(["analyze", "--csv-path", str(log_file), "--json"])

    assert report["summary"]["total"] == 2
    assert report["summary"]["intercompany"] == 1
    assert report["summary"]["autoApproved"] == 1
    assert report["averageProcessingTime"] == "2 sec, 333 ms"
    assert report["monthly"] == [
        {"month": "2024-01", "transactions": 1},
        {"month": "2024-02", "transactions": 1},
    ]
    assert [r["uniqueKey"] for r in report["runs"]] == ["D1-1-US1", "D2-1-DE1"]


def test_company_code_filter_leaves_its_own_breakdown_untouched(log_file: Path):
    report = _json(["analyze", "--csv-path", str(log_file), "--json", "-c", "US1"])

    assert report["filters"]["companyCodes"] == ["US1"]
    assert report["summary"]["total"] == 1
    assert {i["companyCode"] for i in report["companyCodeBreakdown"]} == {"US1", "DE1"}
    assert report["requestTypeBreakdown"] == [{"type": "POS", "documents": 1}]


def test_request_type_is_upper_cased(log_file: Path):
    report = _json(["analyze", "--csv-path", str(log_file), "--json", "-t", "srv"])

    assert report["filters"]["requestType"] == "SRV"
    assert [r["uniqueKey"] for r in report["runs"]] == ["D2-1-DE1"]
    assert {i["type"] for i in report["requestTypeBreakdown"]} == {"POS", "SRV"}


def test_analyze_renders_tables(log_file: Path):
    result = runner.invoke(app, ["--log-level", "WARNING", "analyze", "--csv-path", str(log_file)])
    assert result.exit_code == 0
    assert "Transactions by Company Code" in result.stdout
    assert "Avg Processing Time" in result.stdout


def test_missing_file_is_reported(tmp_path: Path):
    result = runner.invoke(app, ["analyze", "--csv-path", str(tmp_path / "nope.csv")])
    assert result.exit_code == 1
    assert "File not found" in result.output


def test_source_is_required():
    result = runner.invoke(app, ["analyze"])
    assert result.exit_code == 1
    assert "exactly one of" in result.output


def test_missing_column_fails_analysis(tmp_path: Path):
    path = tmp_path / "bad.csv"
    path.write_text("Document ID,Message,TimeStamp,Type\nD1,x,20240101000000,I\n")
    result = runner.invoke(app, ["analyze", "--csv-path", str(path)])
    assert result.exit_code == 1
    assert "Could not find required column: 'CoCd'" in result.output


def test_sheet_fetch_error_is_reported(monkeypatch: pytest.MonkeyPatch):
    def boom(url, *, timeout):
        raise SheetFetchError("Failed to fetch the sheet: HTTP 404 Not Found.")

    monkeypatch.setattr(api_mod, "fetch_sheet_text", boom)
    result = runner.invoke(app, ["analyze", "--sheet-url", "https://example.test/x.csv"])
    assert result.exit_code == 1
    assert "HTTP 404" in result.output


def test_timeout_falls_back_to_environment(monkeypatch: pytest.MonkeyPatch):
    seen: list[float] = []

    def fake_fetch(url, *, timeout):
        seen.append(timeout)
        return make_log(ROWS)

    monkeypatch.setattr(api_mod, "fetch_sheet_text", fake_fetch)
    monkeypatch.setenv("ALA_FETCH_TIMEOUT", "7.5")
    _json(["analyze", "--sheet-url", "https://example.test/x.csv", "--json"])
    assert seen == [7.5]


def test_rules_path_from_environment(log_file: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    rules = tmp_path / "rules.json"
    rules.write_text(json.dumps({"version": "2", "intercompany_marker": "never matches"}))
    monkeypatch.setenv("ALA_RULES_PATH", str(rules))

    report = _json(["analyze", "--csv-path", str(log_file), "--json"])
    assert report["summary"]["intercompany"] == 0


def test_invalid_rules_file_is_reported(log_file: Path, tmp_path: Path):
    rules = tmp_path / "rules.json"
    rules.write_text(json.dumps({"threshold_pattern": "no group here"}))
    result = runner.invoke(app, ["analyze", "--csv-path", str(log_file), "--rules", str(rules)])
    assert result.exit_code == 1
    assert "Error:" in result.output


def test_export_writes_selected_category(log_file: Path, tmp_path: Path):
    out = tmp_path / "out"
    result = runner.invoke(
        app,
        [
            "--log-level",
            "WARNING",
            "export",
            "--csv-path",
            str(log_file),
            "--output-dir",
            str(out),
            "--category",
            "intercompany",
        ],
    )
    assert result.exit_code == 0, result.output
    assert (out / "intercompany_transactions.txt").read_text() == "D1-1-US1"
    assert not (out / "unique_transactions.txt").exists()


def test_export_defaults_to_env_directory(log_file: Path, tmp_path: Path, monkeypatch):
    monkeypatch.setenv("ALA_EXPORT_DIR", str(tmp_path / "env-out"))
    result = runner.invoke(app, ["--log-level", "WARNING", "export", "--csv-path", str(log_file)])
    assert result.exit_code == 0, result.output
    assert (tmp_path / "env-out" / "unique_transactions.txt").read_text() == "D1-1-US1\nD2-1-DE1"
    assert not (tmp_path / "env-out" / "error_transactions.txt").exists()


def test_export_nothing_matches(log_file: Path, tmp_path: Path):
    result = runner.invoke(
        app,
        ["export", "--csv-path", str(log_file), "--output-dir", str(tmp_path), "--category", "error"],
    )
    assert result.exit_code == 0
    assert "nothing exported" in result.output


def test_export_rejects_unknown_category(log_file: Path):
    result = runner.invoke(app, ["export", "--csv-path", str(log_file), "--category", "bogus"])
    assert result.exit_code == 1
    assert "unknown export category" in result.output


def test_both_sources_are_rejected(log_file: Path):
    result = runner.invoke(
        app, ["analyze", "--csv-path", str(log_file), "--sheet-url", "https://example.test/x.csv"]
    )
    assert result.exit_code == 1
    assert "exactly one of" in result.output
