from datetime import date
from decimal import Decimal

import pytest

from personal_ledger import persistence
from personal_ledger.config import load_settings
from personal_ledger.context import open_context
from personal_ledger.errors import ParseError, ValidationError
from personal_ledger.models import Transaction

TODAY = date(2025, 1, 20)


@pytest.fixture
def ctx():
    return open_context(today=lambda: TODAY)


def _reopen():
    return open_context(today=lambda: TODAY)


def test_fresh_context_seeds_default_rules_without_saving(ctx, data_dir):
    assert ctx.load_source == "empty"
    assert len(ctx.rules) == 9
    assert not (data_dir / "finance_data.json").exists()


def test_every_mutation_is_persisted(ctx):
    ctx.add_transaction(Transaction(date=date(2025, 1, 5), amount=-1500, note="Lunch"))
    assert [t.category for t in _reopen().transactions] == ["Food"]

    ctx.edit_transaction(0, Transaction(date=date(2025, 1, 6), amount=-20, note="Taxi", category="Transport"))
    assert _reopen().transactions[0].note == "Taxi"

    ctx.add_rule("coffee", "Cafe")
    assert _reopen().classifier.as_mapping()["coffee"] == "Cafe"

    ctx.set_budget("10000")
    assert _reopen().budget == Decimal("10000")

    ctx.delete_transaction(0)
    assert _reopen().transactions == ()


def test_mutation_invalidates_report_cache(ctx):
    ctx.add_transaction(Transaction(date=date(2025, 1, 5), amount=-100))
    assert ctx.report("month").expenses == Decimal("100")
    ctx.add_transaction(Transaction(date=date(2025, 1, 6), amount=-50))
    assert ctx.report("month").expenses == Decimal("150")
    ctx.set_budget(1000)
    assert ctx.report("month").budget == Decimal("1000")

    cached = ctx.report("month")
    ctx.add_rule("coffee", "Cafe")
    assert ctx.reports.dirty
    assert ctx.report("month") is not cached


def test_add_reports_budget_warning(ctx):
    ctx.set_budget(10000)
    first = ctx.add_transaction(Transaction(date=date(2025, 1, 3), amount=-9000, note="rent"))
    assert first.warning is None

    second = ctx.add_transaction(Transaction(date=date(2025, 1, 4), amount=-500, note="Lunch"))

    assert second.transaction.category == "Food"
    assert second.warning is not None
    assert second.warning.message() == "Warning: 95% of budget used in January"


def test_set_budget_rejects_negative(ctx):
    with pytest.raises(ValidationError, match="negative"):
        ctx.set_budget("-1")
    assert ctx.budget == Decimal("0")


def test_set_budget_rejects_malformed_amount(ctx):
    with pytest.raises(ParseError):
        ctx.set_budget("abc")
    assert ctx.budget == Decimal("0")


def test_import_is_all_or_nothing(ctx, tmp_path):
    bad = tmp_path / "bad.csv"
    bad.write_text("Date,Amount,Note\n2025-01-05,-1,ok\n2025-01-06,oops,x\n", encoding="utf-8")
    with pytest.raises(ValueError):
        ctx.import_csv(bad)
    assert len(ctx.transactions) == 0

    good = tmp_path / "good.csv"
    good.write_text("Date,Amount,Note\n2025-01-05,-1,Lunch\n2025-01-06,100,Salary\n", encoding="utf-8")
    outcomes = ctx.import_csv(good)
    assert [o.transaction.category for o in outcomes] == ["Food", "Income"]
    assert len(_reopen().transactions) == 2


def test_export_csv_counts_rows(ctx, tmp_path):
    ctx.add_transaction(Transaction(date=date(2025, 1, 5), amount=-1))
    assert ctx.export_csv(tmp_path / "out.csv") == 1


def test_save_failure_is_recorded_and_retried_on_close(ctx, monkeypatch):
    def boom(src, dst):
        raise OSError("read-only")

    with monkeypatch.context() as m:
        m.setattr(persistence.os, "replace", boom)
        ctx.add_transaction(Transaction(date=date(2025, 1, 5), amount=-1))

    assert len(ctx.transactions) == 1
    assert "Save error" in ctx.last_save_error
    assert _reopen().transactions == ()

    ctx.close()

    assert ctx.last_save_error is None
    assert len(_reopen().transactions) == 1


def test_backup_restore_keeps_transactions_and_reseeds_rules(ctx):
    ctx.add_rule("coffee", "Cafe")
    ctx.add_transaction(Transaction(date=date(2025, 1, 5), amount=-1))
    load_settings().data_file.write_text("garbage", encoding="utf-8")

    restored = _reopen()

    assert restored.load_source == "backup"
    # The backup holds the state before the last save: the rule, no transaction yet.
    assert restored.transactions == ()
    assert "coffee" not in restored.classifier.as_mapping()
    assert len(restored.rules) == 9


def test_edited_order_survives_reopen(ctx):
    ctx.add_transaction(Transaction(date=date(2025, 1, 1), amount=-1, note="a"))
    ctx.add_transaction(Transaction(date=date(2025, 1, 2), amount=-1, note="b"))
    ctx.edit_transaction(0, Transaction(date=date(2025, 1, 9), amount=-1, note="a"))

    reopened = _reopen()

    assert [t.note for t in reopened.transactions] == ["a", "b"]
    assert reopened.transactions[0].date == date(2025, 1, 9)


def test_zero_amount_round_trips_as_expense(ctx):
    ctx.add_transaction(Transaction(date=date(2025, 1, 5), amount=0, note="free sample"))

    [tx] = _reopen().transactions

    assert tx.amount == Decimal("0")
    assert not tx.is_income
    report = _reopen().report("month")
    assert report.income == Decimal("0")
    assert [(c.category, c.amount) for c in report.categories] == [("Other", Decimal("0"))]
