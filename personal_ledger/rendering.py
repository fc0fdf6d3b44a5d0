"""Plain-text rendering of engine results for the terminal.

Every function here is pure: it takes the structured payloads returned by the
engines and returns a string. No aggregation happens in this module.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from decimal import Decimal

from .aggregation import bar_length, budget_bar_length, month_name
from .models import (
    AllTimeReport,
    BudgetWarning,
    CategoryRule,
    Forecast,
    MonthReport,
    SpendingPatterns,
    TagTotal,
    Transaction,
    YearReport,
)


def _n0(value: Decimal) -> str:
    return f"{value:,.0f}"


def format_amount(tx: Transaction) -> str:
    sign = "+" if tx.is_income else "-"
    return f"{sign} {tx.magnitude:,.2f}"


def render_transaction(tx: Transaction, index: int | None = None) -> str:
    prefix = f"[{index}] " if index is not None else ""
    line = f"{prefix}{tx.date:%Y-%m-%d} {format_amount(tx)} {tx.category} - {tx.note}"
    if tx.tags:
        line += f" #{' #'.join(sorted(tx.tags))}"
    return line


def render_added(tx: Transaction) -> str:
    return f"Added: {format_amount(tx)} [{tx.category}]"


def render_warning(warning: BudgetWarning) -> str:
    return warning.message()


def render_month_report(report: MonthReport) -> str:
    lines = [f"Report for {month_name(report.month)} {report.year}:", "-" * 40]
    max_amount = max((c.amount for c in report.categories), default=Decimal(0))
    for c in report.categories:
        bar = "#" * bar_length(c.amount, max_amount)
        lines.append(f"{c.category:<12} {bar:<20} {_n0(c.amount):>10}")
    lines.append("-" * 40)
    lines.append(f"Income:      {_n0(report.income):>10}")
    lines.append(f"Expenses:    {_n0(report.expenses):>10}")
    lines.append(f"Balance:     {_n0(report.balance):>10}")

    if report.budget is not None and report.usage is not None:
        bar = "#" * budget_bar_length(report.usage)
        lines.append("")
        lines.append(f"Budget: {_n0(report.expenses)} / {_n0(report.budget)}")
        lines.append(f"[{bar:<20}] {report.usage:.0%}")
        if report.exceeded:
            lines.append("BUDGET EXCEEDED!")
    return "\n".join(lines)


def render_year_report(report: YearReport) -> str:
    rule = "-" * 50
    lines = [
        f"Yearly report for {report.year}:",
        rule,
        f"{'Month':<12} {'Income':>10} {'Expenses':>10} {'Balance':>10}",
        rule,
    ]
    for row in report.months:
        lines.append(
            f"{row.name:<12} {_n0(row.income):>10} {_n0(row.expenses):>10} {_n0(row.balance):>10}"
        )
    lines.append(rule)
    lines.append(
        f"{'Total':<12} {_n0(report.total_income):>10} {_n0(report.total_expenses):>10} "
        f"{_n0(report.total_balance):>10}"
    )
    return "\n".join(lines)


def render_all_time_report(report: AllTimeReport) -> str:
    lines = [
        "All-time statistics:",
        f"Period: {report.first_date:%d.%m.%Y} - {report.last_date:%d.%m.%Y}",
        f"Total transactions: {report.count}",
        f"Total income: {_n0(report.total_income)}",
        f"Total expenses: {_n0(report.total_expenses)}",
        f"Net balance: {_n0(report.net_balance)}",
        f"Avg monthly income: {_n0(report.avg_monthly_income)}",
        f"Avg monthly expenses: {_n0(report.avg_monthly_expenses)}",
        "",
        "Top 5 expense categories:",
    ]
    for c in report.top_categories:
        lines.append(f"  {c.category:<12} {_n0(c.amount):>10}")
    return "\n".join(lines)


def render_report(report: MonthReport | YearReport | AllTimeReport) -> str:
    if isinstance(report, MonthReport):
        return render_month_report(report)
    if isinstance(report, YearReport):
        return render_year_report(report)
    return render_all_time_report(report)


NO_DATA = {
    "month": "No data for current month",
    "year": "No data for current year",
    "all": "No data available",
}


def render_forecast(forecast: Forecast) -> str:
    return "\n".join(f"Forecast for {p.label}: ~{_n0(p.amount)}" for p in forecast.points)


def render_patterns(patterns: SpendingPatterns) -> str:
    lines = ["Spending by day of week:"]
    lines.extend(f"  {d.name}: {_n0(d.amount)}" for d in patterns.by_weekday)
    lines.append("")
    lines.append("Monthly spending trend:")
    lines.extend(f"  {p.period:%b %Y}: {_n0(p.amount)}" for p in patterns.monthly_trend)
    return "\n".join(lines)


def render_tags(tags: Sequence[TagTotal]) -> str:
    if not tags:
        return "No tags used"
    lines = ["Used tags:"]
    lines.extend(f"  {t.tag} (expenses: {_n0(t.expenses)})" for t in tags)
    return "\n".join(lines)


def render_rules(rules: Iterable[CategoryRule]) -> str:
    lines = ["Category rules:"]
    lines.extend(f"  {r.pattern} -> {r.category}" for r in rules)
    return "\n".join(lines)


__all__ = [
    "NO_DATA",
    "format_amount",
    "render_added",
    "render_all_time_report",
    "render_forecast",
    "render_month_report",
    "render_patterns",
    "render_report",
    "render_rules",
    "render_tags",
    "render_transaction",
    "render_warning",
    "render_year_report",
]
