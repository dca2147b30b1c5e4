"""CLI for the ``ledger_sync`` package.

Each subcommand is a thin wrapper: a ``cmd_*`` handler loads ledger files,
calls into the library and writes ledger text to ``--dest`` (stdout by
default). Handlers return a process exit status; library errors are reported
as ``Error: <message>`` on stderr with status 1. Environment variables are
loaded from a local ``.env`` using ``python-dotenv`` before any command runs.
"""

from __future__ import annotations

import os
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table
from rich.text import Text
from typer.models import OptionInfo

from .errors import LedgerError
from .ledger_file import LedgerFile
from .logging_setup import configure_logging, get_logger
from .matching import load_match_rules
from .models import format_sums, sum_transactions
from .parser import parse_ledger
from .zipper import merge, tail

logger = get_logger(__name__)

_PAD_ENV = "LEDGER_SYNC_PAD"


# ---- Small module-level helpers used by CLI commands -------------------------


def _load(path: str | Path) -> LedgerFile:
    with open(path, encoding="utf-8") as f:
        return parse_ledger(f)


def _write(lf: LedgerFile, dest: str | Path | None) -> None:
    # The destination is only opened once the whole text has been rendered.
    text = lf.to_text()
    if dest is None or str(dest) == "-":
        sys.stdout.write(text)
        return
    Path(dest).write_text(text, encoding="utf-8")


def _fail(message: str) -> int:
    print(f"Error: {message}", file=sys.stderr)
    return 1


def _run(action: Callable[[], None], *paths: str | Path) -> int:
    """Invoke ``action`` and map expected failures to exit status 1."""

    try:
        action()
    except FileNotFoundError as e:
        return _fail(f"File not found: {e.filename or paths[0]}")
    except PermissionError as e:
        return _fail(f"Permission denied: {e.filename or paths[0]}")
    except OSError as e:
        return _fail(str(e))
    except LedgerError as e:
        return _fail(str(e))
    except ValueError as e:
        # Match files and patterns report validation problems as ValueError.
        return _fail(str(e))
    return 0


# ---- Command handlers ---------------------------------------------------------


def cmd_check(path: str | Path) -> int:
    """Parse ``path`` and verify every transaction balances."""

    def action() -> None:
        lf = _load(path)
        sum_transactions(lf.transactions)
        lf.accounts()
        print(f"OK: {len(lf.transactions)} transactions, {len(lf.directives)} directives")

    return _run(action, path)


def cmd_fmt(path: str | Path, *, dest: str | Path | None = None) -> int:
    return _run(lambda: _write(_load(path), dest), path)


def cmd_balance(path: str | Path, *, pad: str | None = None, console: Console | None = None) -> int:
    """Print the account tree with summed values as a table."""

    if pad is None:
        pad = os.getenv(_PAD_ENV, "  ")

    def action() -> None:
        lf = _load(path)
        totals = sum_transactions(lf.transactions)

        table = Table(show_header=True, header_style="bold")
        table.add_column("Account")
        table.add_column("Value", justify="right")
        for name, value in format_sums(totals, pad):
            table.add_row(Text(name), Text(value))
        (console or Console()).print(table)

    return _run(action, path)


def cmd_zipper(master: str | Path, source: str | Path, *, dest: str | Path | None = None) -> int:
    """Merge ``source`` into ``master`` and write the result."""

    def action() -> None:
        a = _load(master)
        b = _load(source)
        logger.info(
            "merging %d incoming transactions into %d", len(b.transactions), len(a.transactions)
        )
        _write(merge(a, b), dest)

    return _run(action, master, source)


def cmd_tail(
    master: str | Path, tx_id: str, *, rid: str | None = None, dest: str | Path | None = None
) -> int:
    return _run(lambda: _write(tail(_load(master), tx_id, rid), dest), master)


def cmd_match(
    source: str | Path,
    match_file: str | Path,
    account: str,
    *,
    dest: str | Path | None = None,
) -> int:
    """Write revised copies of the transactions a match rule applies to."""

    def action() -> None:
        lf = _load(source)
        matchers = load_match_rules(match_file)
        _write(LedgerFile(lf.matched(account, matchers)), dest)

    return _run(action, source, match_file)


def cmd_strip_history(path: str | Path, *, dest: str | Path | None = None) -> int:
    def action() -> None:
        lf = _load(path)
        lf.strip_history()
        _write(lf, dest)

    return _run(action, path)


# ---- Typer application -------------------------------------------------------

app = typer.Typer(
    name="ledger-sync",
    help="Check, format, merge and tail plain-text ledger files.",
    no_args_is_help=True,
)

# Module-level option objects keep calls out of parameter defaults (ruff B008).
# ``DEST_OPTION`` carries its own default, so it is used as a plain default
# rather than inside ``Annotated``.
DEST_OPTION: OptionInfo = typer.Option(
    None, "--dest", help="Output file path (default: stdout).", dir_okay=False
)
MASTER_OPTION: OptionInfo = typer.Option(
    ..., "--master", help="The master ledger file.", dir_okay=False
)


@app.command("check")
def check_cmd(path: Annotated[Path, typer.Argument(help="Ledger file to check.")]) -> None:
    """Parse a ledger file and verify that every transaction balances."""

    raise typer.Exit(cmd_check(path))


@app.command("fmt")
def fmt_cmd(
    path: Annotated[Path, typer.Argument(help="Ledger file to re-format.")],
    dest: Path | None = DEST_OPTION,
) -> None:
    """Re-write a ledger file in canonical form."""

    raise typer.Exit(cmd_fmt(path, dest=dest))


@app.command("balance")
def balance_cmd(
    path: Annotated[Path, typer.Argument(help="Ledger file to summarize.")],
    pad: str | None = typer.Option(
        None, help=f"Indentation per account level (env {_PAD_ENV}, default two spaces)."
    ),
) -> None:
    """Show per-account totals as an indented tree."""

    raise typer.Exit(cmd_balance(path, pad=pad))


@app.command("zipper")
def zipper_cmd(
    master: Annotated[Path, MASTER_OPTION],
    source: Path = typer.Option(..., "--source", help="The incoming ledger file."),
    dest: Path | None = DEST_OPTION,
) -> None:
    """Deterministically merge an incoming ledger into the master."""

    raise typer.Exit(cmd_zipper(master, source, dest=dest))


@app.command("tail")
def tail_cmd(
    master: Annotated[Path, MASTER_OPTION],
    tx_id: str = typer.Option(..., "--id", help="Transaction ID to cut at."),
    rid: str | None = typer.Option(None, "--rid", help="Optional revision ID to match."),
    dest: Path | None = DEST_OPTION,
) -> None:
    """Strip everything before the (latest) transaction with the given ID."""

    raise typer.Exit(cmd_tail(master, tx_id, rid=rid, dest=dest))


@app.command("match")
def match_cmd(
    source: Path = typer.Option(..., "--source", help="Ledger file to scan."),
    match_file: Path = typer.Option(..., "--match-file", help="CSV of pattern,account,payee."),
    account: str = typer.Option(..., "--account", help="Only rewrite transactions on this account."),
    dest: Path | None = DEST_OPTION,
) -> None:
    """Rewrite accounts and payees of matching transactions."""

    raise typer.Exit(cmd_match(source, match_file, account, dest=dest))


@app.command("strip-history")
def strip_history_cmd(
    path: Annotated[Path, typer.Argument(help="Ledger file with revision history.")],
    dest: Path | None = DEST_OPTION,
) -> None:
    """Keep only the latest revision of each transaction."""

    raise typer.Exit(cmd_strip_history(path, dest=dest))


@app.callback()
def _root() -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding
    already-set environment variables) and configures logging.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging()


def main() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
