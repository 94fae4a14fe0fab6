"""Header-keyed CSV parsing for bulk user import files."""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass


@dataclass(frozen=True)
class ParsedCsv:
    """CSV content split into header names and header-keyed data rows."""

    fieldnames: tuple[str, ...]
    rows: tuple[dict[str, str], ...]


class CsvParseError(ValueError):
    """Deterministic parse failure with the 1-based data row it refers to."""

    def __init__(self, reason: str, *, row_number: int | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.row_number = row_number

    def __str__(self) -> str:
        if self.row_number is None:
            return self.reason
        return f"{self.reason} (row {self.row_number})"


def decode_csv_bytes(content: bytes) -> str:
    """Decode UTF-8 file content, tolerating a leading byte-order mark."""

    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise CsvParseError("File is not valid UTF-8 text") from exc


def parse_csv_text(text: str) -> ParsedCsv:
    """Parse CSV text whose first row holds the column names.

    Blank lines are skipped. A data row with more or fewer fields than the
    header is a parse error, so a malformed file never yields partial rows.
    """

    reader = csv.reader(io.StringIO(text), strict=True)
    try:
        records = [record for record in reader if not _is_blank_line(record)]
    except csv.Error as exc:
        raise CsvParseError(f"Malformed CSV: {exc}") from exc

    if not records:
        return ParsedCsv(fieldnames=(), rows=())

    fieldnames = tuple(name.strip() for name in records[0])
    rows: list[dict[str, str]] = []
    for row_number, record in enumerate(records[1:], start=1):
        if len(record) > len(fieldnames):
            raise CsvParseError(
                f"Too many fields: expected {len(fieldnames)} fields "
                f"but parsed {len(record)}",
                row_number=row_number,
            )
        if len(record) < len(fieldnames):
            raise CsvParseError(
                f"Too few fields: expected {len(fieldnames)} fields "
                f"but parsed {len(record)}",
                row_number=row_number,
            )
        rows.append(dict(zip(fieldnames, record, strict=True)))

    return ParsedCsv(fieldnames=fieldnames, rows=tuple(rows))


def _is_blank_line(record: list[str]) -> bool:
    return not record or (len(record) == 1 and not record[0].strip())
