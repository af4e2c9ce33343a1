"""Reading CSV text into records and writing records back out as CSV."""

from __future__ import annotations

import csv
import io
from typing import Any, Iterable, Optional, Sequence

from loomrt.errors import LoomError
from loomrt.values import as_string

_ASCII_FOLD = str.maketrans("ABCDEFGHIJKLMNOPQRSTUVWXYZ", "abcdefghijklmnopqrstuvwxyz")


def _fold(text: str) -> str:
    return text.translate(_ASCII_FOLD)


def normalize_csv_for_parsing(text: str) -> str:
    """Drop spaces and tabs at the start of unquoted fields.

    Quoted content, including doubled quotes, is kept as it is.
    """
    out: list[str] = []
    in_quotes = False
    at_field_start = True
    closing_pending = False

    for ch in text:
        if closing_pending:
            closing_pending = False
            if ch == '"':
                out.append('""')
                at_field_start = False
                continue
            in_quotes = False
            out.append('"')
            at_field_start = False

        if ch == '"':
            if in_quotes:
                closing_pending = True
                continue
            in_quotes = True
            out.append(ch)
            at_field_start = False
            continue

        if not in_quotes and at_field_start and ch in " \t":
            continue

        out.append(ch)
        at_field_start = not in_quotes and ch in "\n\r,"

    if closing_pending:
        out.append('"')
    return "".join(out)


def _records(text: str) -> Iterable[list[str]]:
    reader = csv.reader(io.StringIO(text, newline=""))
    for record in reader:
        if record:
            yield [field.strip() for field in record]


def parse_csv(text: str, source: str, max_rows: Optional[int]) -> dict[str, Any]:
    """Parse CSV text with a header line into a record of rows.

    The result holds ``source``, ``valid``, ``headers`` and ``rows``; each
    row maps header names to string values.  Raises LoomError on malformed
    input, on rows whose width differs from the header, and when more than
    *max_rows* data rows are present (``None`` means no limit).
    """
    records = iter(_records(normalize_csv_for_parsing(text)))
    try:
        headers = next(records, [])
    except csv.Error as exc:
        raise LoomError(f"Failed to parse CSV headers from '{source}': {exc}") from exc

    rows: list[dict[str, Any]] = []
    row_number = 0
    while True:
        row_number += 1
        if max_rows is not None and row_number > max_rows:
            # Only fail when a row beyond the limit actually exists.
            try:
                extra = next(records, None)
            except csv.Error as exc:
                raise LoomError(f"Failed to parse CSV row from '{source}': {exc}") from exc
            if extra is None:
                break
            raise LoomError(f"CSV row limit exceeded: {row_number} > {max_rows}")
        try:
            record = next(records, None)
        except csv.Error as exc:
            raise LoomError(f"Failed to parse CSV row from '{source}': {exc}") from exc
        if record is None:
            break
        if len(record) != len(headers):
            raise LoomError(
                f"CSV row {row_number + 1} has {len(record)} fields, "
                f"but header has {len(headers)} fields"
            )
        rows.append(dict(zip(headers, record)))

    return {
        "source": source,
        "valid": True,
        "headers": list(headers),
        "rows": rows,
    }


def csv_escape(value: str) -> str:
    """Quote a field when it holds a comma, quote or line break."""
    if any(ch in value for ch in ',"\n\r'):
        return '"' + value.replace('"', '""') + '"'
    return value


def _lookup(record: dict[str, Any], header: str) -> Optional[Any]:
    if header in record:
        return record[header]
    folded = _fold(header)
    for key, item in record.items():
        if _fold(key) == folded:
            return item
    return None


def serialize_records_as_csv(
    rows: Sequence[Any], preferred_headers: Optional[Sequence[str]] = None
) -> Optional[str]:
    """Write a list of records as CSV text, or return None if any row is not a record.

    Preferred headers come first; the remaining keys follow in
    case-insensitive order, compared without regard to case.
    """
    if not rows:
        return ""
    if not all(isinstance(row, dict) for row in rows):
        return None

    headers: list[str] = list(preferred_headers or ())
    seen = {_fold(header) for header in headers}
    for row in rows:
        for key in sorted(row, key=_fold):
            folded = _fold(key)
            if folded not in seen:
                seen.add(folded)
                headers.append(key)

    if not headers:
        return ""

    lines = [",".join(csv_escape(header) for header in headers)]
    for row in rows:
        cells = []
        for header in headers:
            item = _lookup(row, header)
            cells.append("" if item is None and not _has_key(row, header) else csv_escape(as_string(item)))
        lines.append(",".join(cells))
    return "\n".join(lines) + "\n"


def _has_key(record: dict[str, Any], header: str) -> bool:
    folded = _fold(header)
    return any(_fold(key) == folded for key in record)


def serialize_csv_if_possible(value: Any) -> Optional[str]:
    """Return CSV text for a table-like value, or None when it is not one."""
    if isinstance(value, dict):
        rows = value.get("rows")
        if isinstance(rows, list):
            headers = value.get("headers")
            preferred = (
                [as_string(item) for item in headers] if isinstance(headers, list) else None
            )
            return serialize_records_as_csv(rows, preferred)
        return None
    if isinstance(value, list):
        return serialize_records_as_csv(value, None)
    return None


def serialize_for_path_output(value: Any) -> str:
    """Render a value for writing to a file: CSV when possible, text otherwise."""
    text = serialize_csv_if_possible(value)
    return as_string(value) if text is None else text