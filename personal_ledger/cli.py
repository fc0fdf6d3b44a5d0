"""CLI for the ``personal_ledger`` package.

This module exposes a Typer-based console interface. Environment variables
are loaded from a local ``.env`` using ``python-dotenv`` before the ledger
context is opened. Business logic lives in :mod:`personal_ledger.context` and
the engine modules; commands here only parse arguments, call the context and
render results via :mod:`personal_ledger.rendering`.
"""

from __future__ import annotations

import contextlib
import sys
from collections.abc import Iterator
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv

from . import rendering
from .context import LedgerContext, open_context
from .csv_io import parse_date
from .errors import LedgerError
from .logging_setup import configure_logging
from .models import OTHER_CATEGORY, Transaction, to_decimal

SEARCH_LIMIT = 10


# ---- Small module-level helpers used by CLI commands -------------------------


@contextlib.contextmanager
def _reporting_errors() -> Iterator[None]:
    """Print ledger errors as ``Error: ...`` on stderr and exit with status 1."""

    try:
        yield
    except LedgerError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e


def _ledger(ctx: typer.Context) -> LedgerContext:
    obj = ctx.find_root().obj
    if not isinstance(obj, LedgerContext):  # pragma: no cover - set by the root callback
        raise RuntimeError("ledger context is not initialized")
    return obj


def _build_transaction(
    ledger: LedgerContext,
    *,
    amount: str,
    date: str | None,
    category: str | None,
    note: str | None,
    tags: list[str] | None,
) -> Transaction:
    return Transaction(
        date=parse_date(date) if date else ledger.today(),
        amount=to_decimal(amount),
        category=category or OTHER_CATEGORY,
        note=note or "",
        tags=frozenset(tags or ()),
    )


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Personal ledger: record transactions, categorize them by rules, and "
        "report monthly/yearly/all-time totals. Loads a local .env before running."
    ),
)
budget_app = typer.Typer(no_args_is_help=True, help="Show or set the monthly budget.")
categories_app = typer.Typer(no_args_is_help=True, help="List or add category rules.")
app.add_typer(budget_app, name="budget")
app.add_typer(categories_app, name="categories")


@app.command("add")
def add_cmd(
    ctx: typer.Context,
    amount: Annotated[str, typer.Option("--amount", "-a", help="Signed amount: +income, -expense.")],
    date: Annotated[str | None, typer.Option("--date", "-d", help="YYYY-MM-DD (default: today).")] = None,
    category: Annotated[str | None, typer.Option("--category", "-c", help="Category (default: auto).")] = None,
    note: Annotated[str | None, typer.Option("--note", "-n", help="Free-text description.")] = None,
    tags: Annotated[list[str] | None, typer.Option("--tag", "-t", help="Tag; may be repeated.")] = None,
) -> None:
    """Add a transaction; an empty category is filled in by the rules."""

    ledger = _ledger(ctx)
    with _reporting_errors():
        tx = _build_transaction(
            ledger, amount=amount, date=date, category=category, note=note, tags=tags
        )
        outcome = ledger.add_transaction(tx)
    typer.echo(rendering.render_added(outcome.transaction))
    if outcome.warning is not None:
        typer.echo(rendering.render_warning(outcome.warning))


@app.command("edit")
def edit_cmd(
    ctx: typer.Context,
    index: Annotated[int, typer.Argument(help="Index as shown by `list`.")],
    amount: Annotated[str | None, typer.Option("--amount", "-a")] = None,
    date: Annotated[str | None, typer.Option("--date", "-d")] = None,
    category: Annotated[str | None, typer.Option("--category", "-c")] = None,
    note: Annotated[str | None, typer.Option("--note", "-n")] = None,
    tags: Annotated[list[str] | None, typer.Option("--tag", "-t")] = None,
) -> None:
    """Replace a transaction; omitted fields keep their current values."""

    ledger = _ledger(ctx)
    with _reporting_errors():
        current = ledger.ledger[index]
        tx = Transaction(
            date=parse_date(date) if date else current.date,
            amount=to_decimal(amount) if amount is not None else current.amount,
            category=category if category is not None else current.category,
            note=note if note is not None else current.note,
            tags=frozenset(tags) if tags else current.tags,
        )
        ledger.edit_transaction(index, tx)
    typer.echo("Transaction updated")


@app.command("delete")
def delete_cmd(
    ctx: typer.Context,
    index: Annotated[int, typer.Argument(help="Index as shown by `list`.")],
) -> None:
    """Delete a transaction by index."""

    ledger = _ledger(ctx)
    with _reporting_errors():
        removed = ledger.delete_transaction(index)
    typer.echo(f"Deleted: {rendering.format_amount(removed)} [{removed.category}]")


@app.command("list")
def list_cmd(
    ctx: typer.Context,
    limit: Annotated[int | None, typer.Option(help="Show only the last N transactions.")] = None,
) -> None:
    """List transactions with their indices (oldest first)."""

    txs = _ledger(ctx).transactions
    if not txs:
        typer.echo("No transactions")
        return
    start = max(0, len(txs) - limit) if limit else 0
    for i in range(start, len(txs)):
        typer.echo(rendering.render_transaction(txs[i], index=i))


@app.command("search")
def search_cmd(
    ctx: typer.Context,
    term: Annotated[str, typer.Argument(help="Text to find in notes or categories.")],
) -> None:
    """Search transactions by note or category (case-insensitive)."""

    if not term.strip():
        typer.echo("Error: Search term cannot be empty", err=True)
        raise typer.Exit(1)
    results = _ledger(ctx).search(term)
    if not results:
        typer.echo("No transactions found")
        return
    typer.echo(f"Found {len(results)} transactions:")
    for tx in results[:SEARCH_LIMIT]:
        typer.echo(f"  {rendering.render_transaction(tx)}")


@app.command("report")
def report_cmd(
    ctx: typer.Context,
    period: Annotated[str, typer.Argument(help="month, year or all")] = "month",
) -> None:
    """Show the report for the current month, current year, or all time."""

    with _reporting_errors():
        report = _ledger(ctx).report(period)
    if report is None:
        typer.echo(rendering.NO_DATA[period.strip().lower()])
        return
    typer.echo(rendering.render_report(report))


@app.command("forecast")
def forecast_cmd(
    ctx: typer.Context,
    months: Annotated[int, typer.Argument(help="How many months ahead.")] = 1,
) -> None:
    """Forecast monthly expenses from a moving average of recent months."""

    with _reporting_errors():
        result = _ledger(ctx).forecast(months)
    if result is None:
        typer.echo("Need at least 2 months of data for forecast")
        return
    typer.echo(rendering.render_forecast(result))


@app.command("analyze")
def analyze_cmd(ctx: typer.Context) -> None:
    """Show spending by day of week and the monthly spending trend."""

    patterns = _ledger(ctx).spending_patterns()
    if patterns is None:
        typer.echo("No data for analysis")
        return
    typer.echo(rendering.render_patterns(patterns))


@app.command("tags")
def tags_cmd(ctx: typer.Context) -> None:
    """List used tags with their expense totals."""

    typer.echo(rendering.render_tags(_ledger(ctx).tag_totals()))


@app.command("import")
def import_cmd(
    ctx: typer.Context,
    csv_path: Annotated[Path, typer.Argument(help="CSV file: date,amount,note[,category[,tags]].")],
) -> None:
    """Import transactions from CSV (all rows or none)."""

    with _reporting_errors():
        outcomes = _ledger(ctx).import_csv(csv_path)
    warnings = [o.warning for o in outcomes if o.warning is not None]
    if warnings:
        typer.echo(rendering.render_warning(warnings[-1]))
    typer.echo(f"Imported {len(outcomes)} transactions from {csv_path}")


@app.command("export")
def export_cmd(
    ctx: typer.Context,
    csv_path: Annotated[Path, typer.Argument(help="Destination CSV file.")],
) -> None:
    """Export all transactions to CSV."""

    with _reporting_errors():
        count = _ledger(ctx).export_csv(csv_path)
    typer.echo(f"Exported {count} transactions to {csv_path}")


@budget_app.command("set")
def budget_set_cmd(
    ctx: typer.Context,
    amount: Annotated[str, typer.Argument(help="Monthly ceiling; 0 disables budget warnings.")],
) -> None:
    with _reporting_errors():
        value = _ledger(ctx).set_budget(amount)
    typer.echo(f"Monthly budget set: {value:,.0f}")


@budget_app.command("show")
def budget_show_cmd(ctx: typer.Context) -> None:
    budget = _ledger(ctx).budget
    if budget > 0:
        typer.echo(f"Monthly budget: {budget:,.0f}")
    else:
        typer.echo("No budget configured")


@categories_app.command("list")
def categories_list_cmd(ctx: typer.Context) -> None:
    typer.echo(rendering.render_rules(_ledger(ctx).rules))


@categories_app.command("add")
def categories_add_cmd(
    ctx: typer.Context,
    pattern: Annotated[str, typer.Argument(help="Case-insensitive regular expression.")],
    category: Annotated[str, typer.Argument(help="Category assigned on match.")],
) -> None:
    with _reporting_errors():
        rule = _ledger(ctx).add_rule(pattern, category)
    typer.echo(f"Added category rule: {rule.pattern} -> {rule.category}")


@app.command("shell")
def shell_cmd(ctx: typer.Context) -> None:
    """Start an interactive prompt that accepts the same commands."""

    from .term_ui import run_shell

    run_shell(_ledger(ctx))


@app.callback(invoke_without_command=True)
def _root(
    ctx: typer.Context,
    *,
    data_file: Annotated[
        Path | None,
        typer.Option(
            "--data-file",
            help="Ledger JSON file (default: $PERSONAL_LEDGER_DATA_FILE or finance_data.json).",
            dir_okay=False,
        ),
    ] = None,
    verbose: Annotated[
        int,
        typer.Option("--verbose", "-v", count=True, help="Log more: -v for INFO, -vv for DEBUG."),
    ] = 0,
) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables), configures logging, and opens the
    ledger context unless one was supplied by the interactive shell.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)

    configure_logging(verbose=verbose)

    if not isinstance(ctx.obj, LedgerContext):
        ledger = open_context(data_file=data_file)
        ctx.obj = ledger
        ctx.call_on_close(ledger.close)

    if ctx.invoked_subcommand is None:
        typer.echo("No subcommand provided. Use --help to see available commands.")
        raise typer.Exit(1)


def main(argv: list[str] | None = None, *, obj: LedgerContext | None = None) -> int:
    """Run the app in standalone mode and return its exit code instead of exiting.

    Usage errors are reported by the command framework itself. ``obj`` is an
    already-open ledger context, as passed in by the interactive shell.
    """

    try:
        app(args=argv, prog_name="personal-ledger", obj=obj)
    except SystemExit as e:
        return int(e.code or 0) if not isinstance(e.code, str) else 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
