"""Exception taxonomy shared by the engine, CSV I/O and the CLI."""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for every error the ledger reports to its caller."""


class ValidationError(LedgerError, ValueError):
    """Bad caller input: empty required field, unknown period, bad rule."""


class OutOfRangeError(ValidationError, IndexError):
    """A transaction index outside ``[0, count)``."""

    def __init__(self, index: int, count: int) -> None:
        super().__init__(f"Invalid transaction index: {index} (ledger has {count})")
        self.index = index
        self.count = count


class ParseError(LedgerError, ValueError):
    """Malformed date, amount, CSV row or persisted document."""


class StorageError(LedgerError, OSError):
    """A data, backup or CSV file could not be read or written."""


__all__ = [
    "LedgerError",
    "ValidationError",
    "OutOfRangeError",
    "ParseError",
    "StorageError",
]
