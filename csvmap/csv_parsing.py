"""
Utility functions for turning uploaded CSV text into a table of rows.

Parsing is line based: every non-blank line is one record, the first one
holds the headers. Fields are comma separated and may be double-quoted, in
which case they can contain commas and doubled quotes (``""``) standing for
a literal quote character.
"""
import csv
import re
from dataclasses import dataclass, field
from typing import Dict, List

from .exceptions import MalformedInputError

_LINE_BREAK = re.compile(r"\r\n|\n")
# csv.reader refuses a bare carriage return inside an unquoted field
_CR_PLACEHOLDER = "\ue000"

Row = Dict[str, str]


@dataclass
class Table:
    """Headers in file order plus one dict per data row."""
    headers: List[str]
    rows: List[Row] = field(default_factory=list)

    def __len__(self):
        return len(self.rows)

    def column(self, name: str) -> List[str]:
        return [row.get(name, "") for row in self.rows]


def split_line(line: str) -> List[str]:
    """
    Split a single CSV line into its raw field values.

    A trailing comma produces a final empty field.
    """
    try:
        fields = next(csv.reader([line.replace("\r", _CR_PLACEHOLDER)],
                                 delimiter=",", quotechar='"', doublequote=True))
    except csv.Error as e:
        raise MalformedInputError(f"Could not parse line {line[:40]!r}: {e}") from e
    return [value.replace(_CR_PLACEHOLDER, "\r") for value in fields]


def _unique_headers(raw_headers: List[str]) -> List[str]:
    headers = []
    seen = {}
    for index, name in enumerate(raw_headers):
        name = name or f"Column {index + 1}"
        if name in seen:
            seen[name] += 1
            candidate = f"{name}.{seen[name]}"
            while candidate in seen:
                seen[name] += 1
                candidate = f"{name}.{seen[name]}"
            name = candidate
        seen[name] = 0
        headers.append(name)
    return headers


def parse_csv(text: str) -> Table:
    """
    Parse CSV text into a Table.

    Args:
        text: Raw file contents

    Returns:
        Table with trimmed headers and values. Rows shorter than the header
        row are padded with empty strings, extra trailing values are dropped.

    Raises:
        MalformedInputError: if there is no header row plus at least one data row
    """
    lines = [line for line in _LINE_BREAK.split(text) if line.strip()]
    if len(lines) < 2:
        raise MalformedInputError("CSV file must contain a header row and at least one data row.")

    headers = _unique_headers([h.strip() for h in split_line(lines[0])])

    rows = []
    for line in lines[1:]:
        values = split_line(line)
        rows.append({
            header: values[index].strip() if index < len(values) else ""
            for index, header in enumerate(headers)
        })

    if not rows:
        raise MalformedInputError("Could not parse any data rows from the CSV file.")
    return Table(headers=headers, rows=rows)
