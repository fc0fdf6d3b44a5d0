import contextlib
from datetime import date

from prompt_toolkit import PromptSession
from prompt_toolkit.input import create_pipe_input
from prompt_toolkit.output import DummyOutput

from personal_ledger.context import open_context
from personal_ledger.term_ui import dispatch, run_shell


class ScriptedSession:
    """Stands in for ``PromptSession``: returns queued lines, then signals EOF."""

    def __init__(self, lines):
        self._lines = list(lines)

    def prompt(self, message, **kwargs):
        if not self._lines:
            raise EOFError
        line = self._lines.pop(0)
        if isinstance(line, BaseException):
            raise line
        return line


@contextlib.contextmanager
def pipe_session():
    with create_pipe_input() as pipe:
        sess = PromptSession(input=pipe, output=DummyOutput())
        yield pipe, sess


def test_shell_runs_commands_against_open_context(capsys):
    ctx = open_context(today=lambda: date(2025, 1, 20))
    session = ScriptedSession(
        [
            "add --amount=-1500 --date 2025-01-05 --note Lunch",
            "",
            KeyboardInterrupt(),
            "report month",
            "exit",
            "list",
        ]
    )

    run_shell(ctx, session=session)

    out = capsys.readouterr().out
    assert "Added: - 1,500.00 [Food]" in out
    assert "Report for January 2025:" in out
    assert out.rstrip().endswith("Goodbye!")
    assert len(ctx.transactions) == 1
    # "list" came after "exit" and was never read
    assert "[0]" not in out


def test_shell_reports_errors_and_keeps_going(capsys):
    ctx = open_context()
    run_shell(ctx, session=ScriptedSession(["delete 5", "report week", "frobnicate", 'search "unclosed', "tags"]))

    captured = capsys.readouterr()
    assert "Invalid transaction index: 5" in captured.err
    assert "Unknown period" in captured.err
    assert "No such command" in captured.err
    assert "No tags used" in captured.out
    assert "Goodbye!" in captured.out


def test_nested_shell_is_refused(capsys):
    ctx = open_context()
    run_shell(ctx, session=ScriptedSession(["shell", "quit"]))
    assert "Already in the shell" in capsys.readouterr().out


def test_dispatch_returns_exit_codes():
    ctx = open_context()
    assert dispatch(ctx, "") == 0
    assert dispatch(ctx, "budget show") == 0
    assert dispatch(ctx, "delete 0") == 1
    assert dispatch(ctx, "report week") == 1
    assert dispatch(ctx, "frobnicate") == 2
    assert dispatch(ctx, "add --bogus") == 2
    assert dispatch(ctx, "help") == 0


def test_shell_reads_from_prompt_toolkit_session(capsys):
    ctx = open_context()
    with pipe_session() as (pipe, sess):
        pipe.send_text("exit\r")
        run_shell(ctx, session=sess)
    assert "Goodbye!" in capsys.readouterr().out
