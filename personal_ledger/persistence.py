"""Durable storage of the ledger as a JSON document with a rolling backup.

Write protocol (``PersistenceGateway.save``):

1. Serialize the document to ``<primary>.tmp``.
2. If the primary file exists, copy it over the backup file.
3. Atomically replace the primary with the temp file (``os.replace``).

A failure at any step leaves the previous primary untouched and removes the
temp file, so the backup always holds the last fully written prior state.

Load protocol (``PersistenceGateway.load``): a missing primary yields an empty
state; an unreadable or invalid primary falls back to the backup's
transactions only (rules and budget are not taken from the backup); if the
backup is missing or invalid too, the state is empty.
"""

from __future__ import annotations

import contextlib
import os
import shutil
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from os import PathLike
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from .errors import ParseError, StorageError
from .logging_setup import get_logger
from .models import ZERO, LedgerDocument, Transaction, TransactionRecord

_logger = get_logger("personal_ledger.persistence")


@dataclass(frozen=True, slots=True)
class LoadedState:
    """What ``load`` recovered and where it came from.

    ``rules`` is ``None`` when no rule set was restored (fresh start or backup
    fallback); callers then seed the defaults.
    """

    transactions: tuple[Transaction, ...] = ()
    rules: dict[str, str] | None = None
    budget: Decimal = ZERO
    source: str = "empty"
    last_saved: datetime | None = None
    errors: tuple[str, ...] = field(default_factory=tuple)


class PersistenceGateway:
    """Reads and writes the ledger document at ``primary`` with a ``backup`` copy."""

    def __init__(self, primary: str | PathLike[str], backup: str | PathLike[str]) -> None:
        self.primary = Path(primary)
        self.backup = Path(backup)
        if self.primary.resolve() == self.backup.resolve():
            raise StorageError("backup path must differ from the data file path")

    @property
    def temp_path(self) -> Path:
        return self.primary.with_suffix(self.primary.suffix + ".tmp")

    # ---- save ----------------------------------------------------------------

    def save(
        self,
        transactions: Iterable[Transaction],
        rules: Mapping[str, str],
        budget: Decimal,
        *,
        now: datetime | None = None,
    ) -> None:
        doc = LedgerDocument(
            transactions=[TransactionRecord.from_transaction(t) for t in transactions],
            category_rules=dict(rules),
            monthly_budget=budget,
            last_saved=now or datetime.now(),
        )
        payload = doc.model_dump_json(by_alias=True, indent=2)

        tmp = self.temp_path
        try:
            self.primary.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(payload, encoding="utf-8")
            if self.primary.exists():
                shutil.copyfile(self.primary, self.backup)
            os.replace(tmp, self.primary)
        except OSError as exc:
            with contextlib.suppress(FileNotFoundError):
                tmp.unlink()
            raise StorageError(f"Save error: {exc}") from exc
        _logger.debug("saved %d transactions to %s", len(doc.transactions), self.primary)

    # ---- load ----------------------------------------------------------------

    def load(self) -> LoadedState:
        if not self.primary.exists():
            _logger.info("No data file found at %s, starting fresh", self.primary)
            return LoadedState(source="empty")

        try:
            doc = self.read_document(self.primary)
            transactions = _to_transactions(doc)
        except (ParseError, StorageError) as exc:
            _logger.error("Load error: %s", exc)
            return self._load_backup(first_error=str(exc))

        _logger.info("Loaded %d transactions", len(transactions))
        return LoadedState(
            transactions=transactions,
            rules=dict(doc.category_rules),
            budget=doc.monthly_budget,
            source="primary",
            last_saved=doc.last_saved,
        )

    def _load_backup(self, *, first_error: str) -> LoadedState:
        if not self.backup.exists():
            _logger.warning("No backup file at %s, starting with an empty ledger", self.backup)
            return LoadedState(source="empty", errors=(first_error,))
        try:
            doc = self.read_document(self.backup)
            transactions = _to_transactions(doc)
        except (ParseError, StorageError) as exc:
            _logger.error("Backup load error: %s", exc)
            return LoadedState(source="empty", errors=(first_error, str(exc)))

        _logger.warning("Restored from backup: %d transactions", len(transactions))
        return LoadedState(
            transactions=transactions,
            source="backup",
            last_saved=doc.last_saved,
            errors=(first_error,),
        )

    @staticmethod
    def read_document(path: Path) -> LedgerDocument:
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise StorageError(f"cannot read {path}: {exc}") from exc
        try:
            return LedgerDocument.model_validate_json(text)
        except PydanticValidationError as exc:
            raise ParseError(f"invalid ledger document {path}: {exc}") from exc


def _to_transactions(doc: LedgerDocument) -> tuple[Transaction, ...]:
    return tuple(rec.to_transaction() for rec in doc.transactions)


__all__ = ["LoadedState", "PersistenceGateway"]
