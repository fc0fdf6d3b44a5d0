"""Moving-average expense forecast and the budget near-limit check."""

from __future__ import annotations

import calendar
from collections.abc import Callable
from datetime import date
from decimal import Decimal

from .aggregation import month_name
from .errors import ValidationError
from .ledger import Ledger
from .logging_setup import get_logger
from .models import ZERO, BudgetWarning, Forecast, ForecastPoint, PeriodAmount

_logger = get_logger("personal_ledger.forecast")

HISTORY_MONTHS = 6
MIN_HISTORY = 2
WINDOW = 3
NEAR_LIMIT = Decimal("0.9")


def add_months(d: date, months: int) -> date:
    """Shift ``d`` by whole calendar months, clamping the day to the month's end."""

    index = d.year * 12 + (d.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def moving_average(values: list[Decimal], window: int = WINDOW) -> Decimal:
    """Mean of the last ``min(window, len(values))`` values; 0 for no data."""

    if not values:
        return ZERO
    recent = values[-min(window, len(values)) :]
    return sum(recent, ZERO) / len(recent)


class ForecastEngine:
    """Projects monthly expenses forward and checks the monthly budget."""

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

    def monthly_history(self) -> list[PeriodAmount]:
        """Expense totals per calendar month over the trailing six months.

        Only expenses dated strictly after the same day six months ago count.
        """

        cutoff = add_months(self._today(), -HISTORY_MONTHS)
        totals: dict[tuple[int, int], Decimal] = {}
        for t in self._ledger:
            if t.is_income or t.date <= cutoff:
                continue
            key = (t.date.year, t.date.month)
            totals[key] = totals.get(key, ZERO) + t.magnitude
        return [PeriodAmount(date(y, m, 1), totals[(y, m)]) for (y, m) in sorted(totals)]

    def forecast(self, months_ahead: int = 1) -> Forecast | None:
        """Return a flat forecast, or ``None`` when history is insufficient.

        At least two distinct months of expenses within the trailing six
        months are required. The same average is projected for each of the
        next ``months_ahead`` months.
        """

        if isinstance(months_ahead, bool) or not isinstance(months_ahead, int) or months_ahead < 1:
            raise ValidationError("months ahead must be a positive integer")
        history = self.monthly_history()
        if len(history) < MIN_HISTORY:
            _logger.debug("forecast skipped: %d month(s) of expense history", len(history))
            return None
        window = min(WINDOW, len(history))
        average = moving_average([p.amount for p in history], WINDOW)
        now = self._today()
        points = []
        for i in range(months_ahead):
            target = add_months(now, i + 1)
            points.append(
                ForecastPoint(
                    year=target.year,
                    month=target.month,
                    label=f"{month_name(target.month)} {target.year}",
                    amount=average,
                )
            )
        return Forecast(average=average, window=window, history=tuple(history), points=tuple(points))

    def check_budget(self, on_date: date) -> BudgetWarning | None:
        """Warn when expenses in ``on_date``'s month exceed 90% of the budget."""

        budget = self._budget()
        if budget <= 0:
            return None
        expenses = self._ledger.monthly_expenses(on_date.year, on_date.month)
        usage = expenses / budget
        if usage <= NEAR_LIMIT:
            return None
        warning = BudgetWarning(
            year=on_date.year,
            month=on_date.month,
            month_name=month_name(on_date.month),
            expenses=expenses,
            budget=budget,
            usage=usage,
        )
        _logger.debug(warning.message())
        return warning


__all__ = ["ForecastEngine", "add_months", "moving_average"]
