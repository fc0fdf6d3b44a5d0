"""CSV import/export of ledger transactions.

Import format
-------------
The first row is a header. When it matches the export header
(``Date,Amount,Category,Note,Tags``, case-insensitive) the rows are read in
that column order, so an exported file imports back unchanged. Any other
header means the import layout: at least ``date, amount, note`` and optionally
``category`` and ``tags`` (``;``-joined). Dates are ``YYYY-MM-DD``; amounts use
``.`` as the decimal point with no grouping separators. Quoting follows
RFC 4180 via the stdlib :mod:`csv` module, so quoted fields may contain commas
and quotes; only surrounding whitespace is trimmed afterwards.

A malformed row aborts the whole import: :func:`read_transactions` parses every
row before returning anything.

Export format
-------------
``Date,Amount,Category,Note,Tags`` followed by one row per transaction; the
category, note and tags are always quoted.
"""

from __future__ import annotations

import csv
from collections.abc import Iterable, Sequence
from datetime import date, datetime
from os import PathLike
from pathlib import Path

from .errors import ParseError, StorageError
from .logging_setup import get_logger
from .models import OTHER_CATEGORY, Transaction, to_decimal

_logger = get_logger("personal_ledger.csv_io")

EXPORT_HEADER = "Date,Amount,Category,Note,Tags"
DATE_FORMAT = "%Y-%m-%d"
TAG_SEPARATOR = ";"


IMPORT_COLUMNS: tuple[str, ...] = ("date", "amount", "note", "category", "tags")
EXPORT_COLUMNS: tuple[str, ...] = ("date", "amount", "category", "note", "tags")


def parse_date(raw: str) -> date:
    s = (raw or "").strip()
    try:
        return datetime.strptime(s, DATE_FORMAT).date()
    except ValueError as exc:
        raise ParseError(f"invalid date (expected YYYY-MM-DD): {raw!r}") from exc


def columns_for(header: Sequence[str]) -> tuple[str, ...]:
    """Column order of the data rows under ``header``."""

    names = tuple(h.strip().lower() for h in header)
    return EXPORT_COLUMNS if names == EXPORT_COLUMNS else IMPORT_COLUMNS


def parse_row(
    fields: Sequence[str],
    *,
    line: int | None = None,
    columns: Sequence[str] = IMPORT_COLUMNS,
) -> Transaction:
    """Build a transaction from one CSV row (header excluded).

    ``fields`` are values as returned by :mod:`csv` (already unquoted); only
    surrounding whitespace is trimmed.
    """

    where = f"line {line}: " if line is not None else ""
    values = [f.strip() for f in fields]
    if len(values) < 3:
        raise ParseError(f"{where}expected at least 3 fields, got {len(values)}")
    record = dict(zip(columns, values))
    try:
        tx_date = parse_date(record["date"])
        amount = to_decimal(record["amount"])
    except ParseError as exc:
        raise ParseError(f"{where}{exc}") from exc
    tags = record["tags"].split(TAG_SEPARATOR) if "tags" in record else ()
    return Transaction(
        date=tx_date,
        amount=amount,
        category=record.get("category") or OTHER_CATEGORY,
        note=record.get("note", ""),
        tags=tags,
    )


def read_transactions(path: str | PathLike[str]) -> list[Transaction]:
    """Parse every data row of ``path``; raise on the first malformed one."""

    p = Path(path)
    if not p.is_file():
        raise StorageError(f"File not found: {p}")
    try:
        with p.open(encoding="utf-8-sig", newline="") as f:
            rows = list(csv.reader(f, skipinitialspace=True))
    except (OSError, UnicodeDecodeError) as exc:
        raise StorageError(f"Import error: {exc}") from exc
    except csv.Error as exc:
        raise ParseError(f"Import error: {exc}") from exc
    if not rows:
        return []

    columns = columns_for(rows[0])
    out: list[Transaction] = []
    for line_no, row in enumerate(rows[1:], start=2):
        if not any(cell.strip() for cell in row):
            continue
        out.append(parse_row(row, line=line_no, columns=columns))
    _logger.debug("parsed %d rows from %s", len(out), p)
    return out


def _quote(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def format_row(tx: Transaction) -> str:
    tags = TAG_SEPARATOR.join(sorted(tx.tags))
    return ",".join(
        (
            tx.date.strftime(DATE_FORMAT),
            str(tx.amount),
            _quote(tx.category),
            _quote(tx.note),
            _quote(tags),
        )
    )


def write_transactions(path: str | PathLike[str], transactions: Iterable[Transaction]) -> int:
    """Write ``transactions`` to ``path`` and return how many rows were written."""

    p = Path(path)
    lines = [EXPORT_HEADER]
    lines.extend(format_row(t) for t in transactions)
    try:
        with p.open("w", encoding="utf-8", newline="") as f:
            f.write("\n".join(lines) + "\n")
    except FileNotFoundError as exc:
        raise StorageError(f"File not found: {p.parent}") from exc
    except OSError as exc:
        raise StorageError(f"Export error: {exc}") from exc
    return len(lines) - 1


__all__ = [
    "EXPORT_COLUMNS",
    "EXPORT_HEADER",
    "IMPORT_COLUMNS",
    "columns_for",
    "format_row",
    "parse_date",
    "parse_row",
    "read_transactions",
    "write_transactions",
]
