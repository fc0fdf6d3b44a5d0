"""Report aggregation with a coarse, lazily invalidated cache.

Cache discipline
----------------
A single ``dirty`` flag covers every cached report. Mutations only set the
flag (:meth:`AggregationEngine.mark_dirty`); the next report request clears the
whole cache, resets the flag and recomputes. Reports for an empty window are
returned as ``None`` and never cached.
"""

from __future__ import annotations

import calendar
from collections.abc import Callable, Iterable
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from .errors import ValidationError
from .ledger import Ledger
from .logging_setup import get_logger
from .models import (
    ZERO,
    AllTimeReport,
    CategoryAmount,
    MonthReport,
    MonthRow,
    PeriodAmount,
    SpendingPatterns,
    Transaction,
    WeekdayAmount,
    YearReport,
)

_logger = get_logger("personal_ledger.aggregation")

PERIODS: tuple[str, ...] = ("month", "year", "all")
PATTERNS_KEY = "patterns"
TOP_CATEGORIES = 5
BAR_WIDTH = 20

WEEKDAY_NAMES: tuple[str, ...] = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)


def month_name(month: int) -> str:
    return calendar.month_name[month]


def bar_length(amount: Decimal, max_amount: Decimal, width: int = BAR_WIDTH) -> int:
    """Proportional bar length: ``round(amount / max_amount * width)``, half up.

    Returns 0 when ``max_amount`` is not positive.
    """

    if max_amount <= 0:
        return 0
    ratio = Decimal(amount) / Decimal(max_amount) * width
    return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def budget_bar_length(usage: Decimal, width: int = BAR_WIDTH) -> int:
    """Budget usage bar: truncated ``usage * width`` capped at ``width``."""

    if usage <= 0:
        return 0
    return min(int(usage * width), width)


def _sum(values: Iterable[Decimal]) -> Decimal:
    return sum(values, ZERO)


def _income(txs: Iterable[Transaction]) -> Decimal:
    return _sum(t.amount for t in txs if t.is_income)


def _expenses(txs: Iterable[Transaction]) -> Decimal:
    return _sum(t.magnitude for t in txs if not t.is_income)


def _expense_by_category(txs: Iterable[Transaction]) -> list[CategoryAmount]:
    """Expense magnitude per category, largest first; ties keep first-seen order."""

    totals: dict[str, Decimal] = {}
    for t in txs:
        if t.is_income:
            continue
        totals[t.category] = totals.get(t.category, ZERO) + t.magnitude
    ranked = sorted(totals.items(), key=lambda kv: kv[1], reverse=True)
    return [CategoryAmount(category, amount) for category, amount in ranked]


def _monthly_totals(txs: Iterable[Transaction]) -> dict[tuple[int, int], Decimal]:
    totals: dict[tuple[int, int], Decimal] = {}
    for t in txs:
        key = (t.date.year, t.date.month)
        totals[key] = totals.get(key, ZERO) + t.magnitude
    return totals


def _average(values: list[Decimal]) -> Decimal:
    if not values:
        return ZERO
    return _sum(values) / len(values)


class AggregationEngine:
    """Computes month/year/all-time reports and spending patterns.

    Parameters
    ----------
    ledger:
        The ledger to read from. The engine never mutates it.
    budget:
        Callable returning the current monthly budget (``0`` = none).
    today:
        Clock used to resolve "current month" and "current year".
    """

    def __init__(
        self,
        ledger: Ledger,
        *,
        budget: Callable[[], Decimal] = lambda: ZERO,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._ledger = ledger
        self._budget = budget
        self._today = today
        self._cache: dict[str, Any] = {}
        self._dirty = True

    @property
    def dirty(self) -> bool:
        return self._dirty

    @property
    def cached_keys(self) -> tuple[str, ...]:
        return tuple(self._cache)

    def mark_dirty(self) -> None:
        self._dirty = True

    def report(self, period: str) -> MonthReport | YearReport | AllTimeReport | None:
        """Return the report for ``period`` (``month``, ``year`` or ``all``).

        ``None`` means the window holds no transactions.
        """

        key = (period or "").strip().lower()
        if key not in PERIODS:
            raise ValidationError("Unknown period. Use: month, year or all")
        builders = {
            "month": self._month_report,
            "year": self._year_report,
            "all": self._all_time_report,
        }
        return self._cached(key, builders[key])

    def spending_patterns(self) -> SpendingPatterns | None:
        return self._cached(PATTERNS_KEY, self._spending_patterns)

    # ---- cache ---------------------------------------------------------------

    def _cached(self, key: str, build: Callable[[], Any]) -> Any:
        if self._dirty:
            if self._cache:
                _logger.debug("report cache cleared (%d entries)", len(self._cache))
            self._cache.clear()
            self._dirty = False
        if key in self._cache:
            _logger.debug("report cache hit: %s", key)
            return self._cache[key]
        result = build()
        if result is not None:
            self._cache[key] = result
        return result

    # ---- builders ------------------------------------------------------------

    def _month_report(self) -> MonthReport | None:
        now = self._today()
        txs = [t for t in self._ledger if t.date.year == now.year and t.date.month == now.month]
        if not txs:
            return None
        income = _income(txs)
        expenses = _expenses(txs)
        budget = self._budget()
        usage = expenses / budget if budget > 0 else None
        return MonthReport(
            year=now.year,
            month=now.month,
            income=income,
            expenses=expenses,
            balance=income - expenses,
            categories=tuple(_expense_by_category(txs)),
            budget=budget if budget > 0 else None,
            usage=usage,
        )

    def _year_report(self) -> YearReport | None:
        now = self._today()
        txs = [t for t in self._ledger if t.date.year == now.year]
        if not txs:
            return None
        by_month: dict[int, list[Transaction]] = {}
        for t in txs:
            by_month.setdefault(t.date.month, []).append(t)
        rows = tuple(
            MonthRow(
                month=m,
                name=month_name(m),
                income=_income(by_month[m]),
                expenses=_expenses(by_month[m]),
            )
            for m in sorted(by_month)
        )
        return YearReport(
            year=now.year,
            months=rows,
            total_income=_sum(r.income for r in rows),
            total_expenses=_sum(r.expenses for r in rows),
        )

    def _all_time_report(self) -> AllTimeReport | None:
        txs = list(self._ledger)
        if not txs:
            return None
        income_months = _monthly_totals(t for t in txs if t.is_income)
        expense_months = _monthly_totals(t for t in txs if not t.is_income)
        return AllTimeReport(
            first_date=min(t.date for t in txs),
            last_date=max(t.date for t in txs),
            count=len(txs),
            total_income=_income(txs),
            total_expenses=_expenses(txs),
            avg_monthly_income=_average(list(income_months.values())),
            avg_monthly_expenses=_average(list(expense_months.values())),
            top_categories=tuple(_expense_by_category(txs)[:TOP_CATEGORIES]),
        )

    def _spending_patterns(self) -> SpendingPatterns | None:
        expenses = [t for t in self._ledger if not t.is_income]
        if not expenses:
            return None
        by_day: dict[int, Decimal] = {}
        for t in expenses:
            wd = t.date.weekday()
            by_day[wd] = by_day.get(wd, ZERO) + t.magnitude
        ranked = sorted(by_day.items(), key=lambda kv: kv[1], reverse=True)
        trend = _monthly_totals(expenses)
        return SpendingPatterns(
            by_weekday=tuple(WeekdayAmount(wd, WEEKDAY_NAMES[wd], amt) for wd, amt in ranked),
            monthly_trend=tuple(
                PeriodAmount(date(y, m, 1), trend[(y, m)]) for (y, m) in sorted(trend)
            ),
        )


__all__ = [
    "AggregationEngine",
    "PERIODS",
    "bar_length",
    "budget_bar_length",
    "month_name",
]
