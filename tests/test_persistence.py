import json
from datetime import date, datetime
from decimal import Decimal

import pytest

from personal_ledger import persistence
from personal_ledger.errors import ParseError, StorageError
from personal_ledger.models import Transaction
from personal_ledger.persistence import PersistenceGateway

RULES = {"coffee": "Cafe", "rent": "Rent"}


def _txs():
    return [
        Transaction(date=date(2025, 1, 5), amount="-1500.50", category="Food", note='Lunch, "big"'),
        Transaction(date=date(2025, 1, 10), amount=50000, category="Income", note="Salary", tags={"job"}),
    ]


@pytest.fixture
def gateway(data_dir):
    return PersistenceGateway(data_dir / "finance_data.json", data_dir / "finance_data_backup.json")


def test_missing_primary_loads_empty(gateway):
    state = gateway.load()
    assert state.source == "empty"
    assert state.transactions == ()
    assert state.rules is None


def test_round_trip_preserves_everything(gateway):
    saved_at = datetime(2025, 1, 11, 9, 30)
    gateway.save(_txs(), RULES, Decimal("12000"), now=saved_at)

    state = gateway.load()

    assert state.source == "primary"
    assert list(state.transactions) == _txs()
    assert state.rules == RULES
    assert list(state.rules) == ["coffee", "rent"]
    assert state.budget == Decimal("12000")
    assert state.last_saved == saved_at


def test_document_uses_camel_case_keys_and_string_amounts(gateway):
    gateway.save(_txs(), RULES, Decimal("0"))
    raw = json.loads(gateway.primary.read_text(encoding="utf-8"))
    assert set(raw) == {"transactions", "categoryRules", "monthlyBudget", "lastSaved"}
    assert raw["transactions"][0]["amount"] == "-1500.50"
    assert raw["transactions"][0]["date"] == "2025-01-05"


def test_second_save_moves_previous_state_to_backup(gateway):
    first = _txs()[:1]
    gateway.save(first, RULES, Decimal("0"))
    assert not gateway.backup.exists()

    gateway.save(_txs(), RULES, Decimal("0"))

    backup = gateway.read_document(gateway.backup)
    assert [r.to_transaction() for r in backup.transactions] == first
    assert not gateway.temp_path.exists()


def test_corrupted_primary_falls_back_to_backup_transactions_only(gateway):
    gateway.save(_txs()[:1], RULES, Decimal("500"))
    gateway.save(_txs(), RULES, Decimal("500"))
    gateway.primary.write_text("{ not json", encoding="utf-8")

    state = gateway.load()

    assert state.source == "backup"
    assert list(state.transactions) == _txs()[:1]
    assert state.rules is None
    assert state.budget == Decimal("0")
    assert len(state.errors) == 1


def test_corrupted_primary_without_backup_is_empty(gateway):
    gateway.primary.write_text('{"categoryRules": {}}', encoding="utf-8")
    state = gateway.load()
    assert state.source == "empty"
    assert state.transactions == ()
    assert state.errors


def test_read_document_reports_parse_errors(gateway):
    gateway.primary.write_text('{"transactions": [{"date": "nope", "amount": "1"}]}', encoding="utf-8")
    with pytest.raises(ParseError):
        gateway.read_document(gateway.primary)


def test_failed_replace_keeps_previous_primary(gateway, monkeypatch):
    gateway.save(_txs()[:1], RULES, Decimal("0"))
    before = gateway.primary.read_bytes()

    def boom(src, dst):
        raise OSError("disk full")

    with monkeypatch.context() as m:
        m.setattr(persistence.os, "replace", boom)
        with pytest.raises(StorageError, match="Save error"):
            gateway.save(_txs(), RULES, Decimal("0"))

    assert gateway.primary.read_bytes() == before
    assert not gateway.temp_path.exists()
    assert list(gateway.load().transactions) == _txs()[:1]


def test_backup_must_differ_from_primary(data_dir):
    with pytest.raises(StorageError):
        PersistenceGateway(data_dir / "x.json", data_dir / "x.json")
