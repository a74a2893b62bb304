"""Thin client for retrieving a log export from a shared spreadsheet URL.

Google Sheets edit/view links are rewritten to their CSV export endpoint;
any other http(s) URL is fetched as-is. Every failure (network, HTTP status,
a login page instead of data, undecodable bytes) is raised as a single
:class:`~audit_log_analytics.errors.SheetFetchError`.

No retries and no authentication: the sheet must be readable by link.
"""

from __future__ import annotations

import http.client
import re
import urllib.error
import urllib.request
from urllib.parse import parse_qs, urlsplit

from .errors import SheetFetchError
from .logging_setup import get_logger

DEFAULT_TIMEOUT_SECONDS = 30.0

_SHEET_ID_RE = re.compile(r"/spreadsheets/d/([a-zA-Z0-9_-]+)")
_GID_RE = re.compile(r"gid=([0-9]+)")

_logger = get_logger("audit_log_analytics.sheets")


def to_csv_export_url(url: str) -> str:
    """Return the CSV export URL for a Google Sheets link.

    The ``gid`` (worksheet id) is taken from the query string or fragment when
    present. Non-Google http(s) URLs are returned unchanged.
    """

    parts = urlsplit(url.strip())
    if parts.scheme not in {"http", "https"}:
        raise SheetFetchError(f"Unsupported URL (expected http or https): {url!r}")

    match = _SHEET_ID_RE.search(parts.path)
    if parts.netloc != "docs.google.com" or match is None:
        return url.strip()

    export = f"https://docs.google.com/spreadsheets/d/{match.group(1)}/export?format=csv"
    gid = parse_qs(parts.query).get("gid", [None])[0]
    if gid is None:
        frag = _GID_RE.search(parts.fragment)
        gid = frag.group(1) if frag else None
    if gid:
        export += f"&gid={gid}"
    return export


def fetch_sheet_text(url: str, *, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> str:
    """Download the sheet behind ``url`` and return it as text."""

    export_url = to_csv_export_url(url)
    req = urllib.request.Request(export_url, method="GET")
    req.add_header("Accept", "text/csv, text/plain;q=0.9")

    _logger.info("fetching log export from %s", export_url)
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            content_type = resp.headers.get("Content-Type", "") or ""
            body = resp.read()
    except urllib.error.HTTPError as e:
        raise SheetFetchError(
            f"Failed to fetch the sheet: HTTP {e.code} {e.reason}. "
            "Check the URL and the sheet's sharing permissions."
        ) from e
    except (urllib.error.URLError, http.client.HTTPException, OSError) as e:
        raise SheetFetchError(f"Failed to fetch the sheet: {e}") from e

    if "text/html" in content_type.lower():
        raise SheetFetchError(
            "The URL returned a web page instead of sheet data. "
            "Make sure the sheet is shared with 'Anyone with the link'."
        )
    try:
        text = body.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise SheetFetchError("The sheet content is not valid UTF-8 text.") from e

    _logger.info("fetched %d bytes", len(body))
    return text


__all__ = ["DEFAULT_TIMEOUT_SECONDS", "fetch_sheet_text", "to_csv_export_url"]
