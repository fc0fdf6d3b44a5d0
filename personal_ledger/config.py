"""Runtime settings resolved from the environment.

Entrypoints load a local ``.env`` (``python-dotenv``, without overriding
variables that are already set) before calling :func:`load_settings`.

Variables
---------
``PERSONAL_LEDGER_DATA_DIR``
    Directory that relative file names resolve against (default: cwd).
``PERSONAL_LEDGER_DATA_FILE``
    Primary data file (default ``finance_data.json``).
``PERSONAL_LEDGER_BACKUP_FILE``
    Backup data file (default ``finance_data_backup.json``).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from os import PathLike
from pathlib import Path

DEFAULT_DATA_FILE = "finance_data.json"
DEFAULT_BACKUP_FILE = "finance_data_backup.json"


@dataclass(frozen=True, slots=True)
class LedgerSettings:
    data_file: Path
    backup_file: Path


def _env_str(name: str) -> str | None:
    val = os.getenv(name)
    if val and val.strip():
        return val.strip()
    return None


def _data_dir() -> Path:
    root = _env_str("PERSONAL_LEDGER_DATA_DIR")
    if root:
        return Path(root).expanduser().resolve()
    return Path.cwd().resolve()


def _resolve(name: str | PathLike[str], base: Path) -> Path:
    p = Path(name).expanduser()
    return p if p.is_absolute() else base / p


def backup_path_for(data_file: Path) -> Path:
    """Default backup location beside ``data_file``: ``<stem>_backup<suffix>``."""

    return data_file.with_name(f"{data_file.stem}_backup{data_file.suffix or '.json'}")


def load_settings(data_file: str | PathLike[str] | None = None) -> LedgerSettings:
    """Resolve file locations; an explicit ``data_file`` overrides the environment.

    When ``data_file`` is given, the backup sits beside it unless
    ``PERSONAL_LEDGER_BACKUP_FILE`` names one explicitly.
    """

    base = _data_dir()
    backup_env = _env_str("PERSONAL_LEDGER_BACKUP_FILE")
    if data_file is not None:
        primary = _resolve(data_file, base)
        backup = _resolve(backup_env, base) if backup_env else backup_path_for(primary)
        return LedgerSettings(data_file=primary, backup_file=backup)

    primary = _resolve(_env_str("PERSONAL_LEDGER_DATA_FILE") or DEFAULT_DATA_FILE, base)
    backup = _resolve(backup_env or DEFAULT_BACKUP_FILE, base)
    return LedgerSettings(data_file=primary, backup_file=backup)


__all__ = ["LedgerSettings", "backup_path_for", "load_settings"]
