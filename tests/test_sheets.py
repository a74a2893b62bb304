import http.client
import io
import urllib.error
import urllib.request

import pytest

from audit_log_analytics.errors import SheetFetchError
from audit_log_analytics.sheets import fetch_sheet_text, to_csv_export_url

SHEET = "https://docs.google.com/spreadsheets/d/1AbC-d_E/edit"


class _FakeResponse:
    def __init__(self, body: bytes, content_type: str = "text/csv; charset=utf-8") -> None:
        self._body = body
        self.headers = {"Content-Type": content_type}

    def read(self) -> bytes:
        return self._body

    def __enter__(self):
        return self

    def __exit__(self, *exc) -> None:
        return None


def _stub_urlopen(monkeypatch: pytest.MonkeyPatch, outcome, calls: list | None = None):
    def fake_urlopen(req, timeout=None):
        if calls is not None:
            calls.append((req.full_url, timeout))
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    monkeypatch.setattr(urllib.request, "urlopen", fake_urlopen)


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        (SHEET, "https://docs.google.com/spreadsheets/d/1AbC-d_E/export?format=csv"),
        (SHEET + "#gid=42", "https://docs.google.com/spreadsheets/d/1AbC-d_E/export?format=csv&gid=42"),
        (SHEET + "?usp=sharing&gid=7", "https://docs.google.com/spreadsheets/d/1AbC-d_E/export?format=csv&gid=7"),
        ("https://example.test/export.csv", "https://example.test/export.csv"),
    ],
)
def test_to_csv_export_url(url, expected):
    assert to_csv_export_url(url) == expected


def test_non_http_urls_are_rejected():
    with pytest.raises(SheetFetchError):
        to_csv_export_url("file:///etc/passwd")


def test_fetch_returns_decoded_text(monkeypatch: pytest.MonkeyPatch):
    calls: list = []
    _stub_urlopen(monkeypatch, _FakeResponse("﻿Document ID,CoCd\nD1,US1".encode()), calls)
    text = fetch_sheet_text(SHEET, timeout=3)
    assert text == "Document ID,CoCd\nD1,US1"
    assert calls == [("https://docs.google.com/spreadsheets/d/1AbC-d_E/export?format=csv", 3)]


def test_html_login_page_is_an_error(monkeypatch: pytest.MonkeyPatch):
    _stub_urlopen(monkeypatch, _FakeResponse(b"<html></html>", "text/html; charset=utf-8"))
    with pytest.raises(SheetFetchError, match="shared"):
        fetch_sheet_text(SHEET)


def test_http_error_is_wrapped(monkeypatch: pytest.MonkeyPatch):
    err = urllib.error.HTTPError(SHEET, 403, "Forbidden", {}, io.BytesIO(b""))
    _stub_urlopen(monkeypatch, err)
    with pytest.raises(SheetFetchError, match="HTTP 403"):
        fetch_sheet_text(SHEET)


def test_network_error_is_wrapped(monkeypatch: pytest.MonkeyPatch):
    _stub_urlopen(monkeypatch, urllib.error.URLError("no route"))
    with pytest.raises(SheetFetchError, match="no route"):
        fetch_sheet_text(SHEET)


def test_undecodable_body_is_an_error(monkeypatch: pytest.MonkeyPatch):
    _stub_urlopen(monkeypatch, _FakeResponse(b"\xff\xfe\xfa"))
    with pytest.raises(SheetFetchError, match="UTF-8"):
        fetch_sheet_text(SHEET)


class _TruncatedResponse(_FakeResponse):
    def read(self) -> bytes:
        raise http.client.IncompleteRead(b"Document ID,", 120)


def test_truncated_body_is_wrapped(monkeypatch: pytest.MonkeyPatch):
    _stub_urlopen(monkeypatch, _TruncatedResponse(b""))
    with pytest.raises(SheetFetchError, match="Failed to fetch the sheet"):
        fetch_sheet_text(SHEET)
