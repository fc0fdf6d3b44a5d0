"""Tiny terminal UI helpers (prompt_toolkit-based).

``run_shell`` is a line-oriented REPL over the Typer command set: each line is
tokenized with :func:`shlex.split` and dispatched into the same CLI app with
the already-open ledger context, so the data file is loaded once per session.
"""

from __future__ import annotations

import shlex

import typer
from prompt_toolkit import PromptSession
from prompt_toolkit.completion import WordCompleter

from .context import LedgerContext
from .logging_setup import get_logger

_logger = get_logger("personal_ledger.term_ui")

PROMPT = "> "
EXIT_WORDS = frozenset({"exit", "quit"})
COMMAND_WORDS = (
    "add",
    "edit",
    "delete",
    "list",
    "search",
    "report",
    "forecast",
    "budget",
    "import",
    "export",
    "analyze",
    "tags",
    "categories",
    "help",
    "exit",
)

_SHELL_ACTIVE = False


def dispatch(ledger: LedgerContext, line: str) -> int:
    """Run one shell line against the CLI app and return its exit code."""

    from .cli import main  # deferred: cli imports this module lazily as well

    try:
        args = shlex.split(line)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        return 2
    if not args:
        return 0
    if args[0].lower() == "help":
        args = ["--help"]

    return main(args, obj=ledger)


def run_shell(ledger: LedgerContext, *, session: PromptSession | None = None) -> None:
    """Read commands until ``exit``/``quit`` or end of input."""

    global _SHELL_ACTIVE
    if _SHELL_ACTIVE:
        typer.echo("Already in the shell")
        return

    completer = WordCompleter(list(COMMAND_WORDS), ignore_case=True, sentence=True)
    sess = session or PromptSession()
    typer.echo("Type 'help' for commands, 'exit' to leave.")

    _SHELL_ACTIVE = True
    try:
        while True:
            try:
                line = sess.prompt(PROMPT, completer=completer)
            except KeyboardInterrupt:
                continue
            except EOFError:
                break
            line = line.strip()
            if not line:
                continue
            if line.lower() in EXIT_WORDS:
                break
            code = dispatch(ledger, line)
            _logger.debug("shell command %r exited with %d", line, code)
    finally:
        _SHELL_ACTIVE = False
    typer.echo("Goodbye!")


__all__ = ["dispatch", "run_shell"]
