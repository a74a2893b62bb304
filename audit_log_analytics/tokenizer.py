"""Line and field splitting for the delimited log export.

The export is CSV-like but processed line by line: a quoted field may contain
commas and doubled quotes, but never a line break. Splitting is best-effort;
malformed quoting never raises.
"""

from __future__ import annotations

import re

# A comma separates fields only when an even number of quote characters
# follows it up to the end of the line. Quotes are counted after the comma, as
# the approval engine's export reader counts them; counting the preceding
# quotes would split a line with unbalanced quoting differently.
_FIELD_SPLIT_RE = re.compile(r',(?=(?:(?:[^"]*"){2})*[^"]*$)')
_LINE_SPLIT_RE = re.compile(r"\r?\n")


def split_lines(text: str) -> list[str]:
    """Split ``text`` into lines, dropping empty and whitespace-only ones."""

    return [line for line in _LINE_SPLIT_RE.split(text) if line.strip()]


def split_fields(line: str) -> list[str]:
    """Split one line into trimmed, unquoted field values.

    >>> split_fields('D1, "a,b""c" ,US1')
    ['D1', 'a,b"c', 'US1']
    """

    fields: list[str] = []
    for raw in _FIELD_SPLIT_RE.split(line):
        value = raw.strip()
        if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
            value = value[1:-1].replace('""', '"')
        fields.append(value)
    return fields


__all__ = ["split_fields", "split_lines"]
