# ruff: noqa: I001
"""CLI for the ``statement_ingest`` package.

A Typer console interface over :mod:`statement_ingest.api`. Environment
variables (``DATABASE_URL``, ``STATEMENT_INGEST_LOG_LEVEL``) are loaded from a
local ``.env`` using ``python-dotenv`` before any command runs.

The CLI is the only place that decides the input kind from a file name:
``.pdf`` files are documents, everything else is tabular unless ``--kind`` is
given.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table
from typer.models import ArgumentInfo, OptionInfo

from .api import detect_format, import_statement, parse_statement
from .errors import ExtractionError, UnsupportedFormatError
from .logging_setup import configure_logging
from .models import FormatMatch, InputKind, ParseResult, RawInput

console = Console()
err_console = Console(stderr=True)

_DOCUMENT_SUFFIXES = frozenset({".pdf"})


# Module-level parameter objects to satisfy ruff B008 (no calls in parameter
# defaults).
PATH_ARGUMENT: ArgumentInfo = typer.Argument(
    ...,
    help="Statement export to read (CSV or PDF).",
    dir_okay=False,
    file_okay=True,
    exists=False,  # the command reports a readable error instead
)
KIND_OPTION: OptionInfo = typer.Option(
    None,
    "--kind",
    help="Force the input kind (tabular or document); defaults from the file extension.",
)
ACCOUNT_OPTION: OptionInfo = typer.Option(
    None, "--account", help="Only keep transactions of this account number."
)
VERBOSE_OPTION: OptionInfo = typer.Option(
    0,
    "--verbose",
    "-v",
    count=True,
    help="Log progress to stderr (-v info, -vv debug). STATEMENT_INGEST_LOG_LEVEL wins.",
)


def _resolve_kind(path: Path, kind: InputKind | None) -> InputKind:
    if kind is not None:
        return kind
    if path.suffix.lower() in _DOCUMENT_SUFFIXES:
        return InputKind.DOCUMENT
    return InputKind.TABULAR


def _read_input(path: Path, kind: InputKind | None) -> RawInput:
    try:
        data = path.read_bytes()
    except OSError as e:
        err_console.print(f"[red]Error:[/red] cannot read {path}: {e}")
        raise typer.Exit(1) from e
    return RawInput(data=data, kind=_resolve_kind(path, kind))


def _render_parse(result: ParseResult) -> None:
    console.print(
        f"[green]{result.bank_display_name}[/green] "
        f"(encoding {result.encoding}, {len(result.transactions)} transactions, "
        f"{result.skipped_records} skipped)"
    )
    accounts = Table(title="Accounts")
    accounts.add_column("Number")
    accounts.add_column("Label")
    accounts.add_column("Kind")
    accounts.add_column("Balance", justify="right")
    for acc in result.accounts:
        balance = "" if acc.known_balance is None else f"{acc.known_balance:.2f}"
        accounts.add_row(acc.number, acc.display_label, str(acc.kind), balance)
    console.print(accounts)

    txs = Table(title="Transactions")
    txs.add_column("Date")
    txs.add_column("Label")
    txs.add_column("Amount", justify="right")
    txs.add_column("Category")
    txs.add_column("Account")
    for tx in result.transactions:
        style = "red" if tx.amount < 0 else "green"
        txs.add_row(
            tx.date.isoformat(),
            tx.label,
            f"[{style}]{tx.amount:.2f}[/{style}]",
            tx.category_guess or "",
            tx.account_number,
        )
    console.print(txs)


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help="Detect, parse and import French bank statement exports (CSV and PDF).",
)


@app.command("detect")
def detect_cmd(
    path: Annotated[Path, PATH_ARGUMENT],
    kind: Annotated[InputKind | None, KIND_OPTION] = None,
) -> None:
    """Report which bank format claims a file."""

    raw = _read_input(path, kind)
    try:
        detection = detect_format(raw, strict=True)
    except UnsupportedFormatError as e:
        err_console.print(f"[yellow]Unsupported:[/yellow] {e}")
        if e.preview:
            err_console.print(e.preview, markup=False)
        raise typer.Exit(1) from e
    except ExtractionError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
    assert isinstance(detection, FormatMatch)
    console.print(
        f"[green]{detection.display_name}[/green] "
        f"bank_id={detection.bank_id} encoding={detection.encoding}"
    )


@app.command("parse")
def parse_cmd(
    path: Annotated[Path, PATH_ARGUMENT],
    kind: Annotated[InputKind | None, KIND_OPTION] = None,
    account: Annotated[str | None, ACCOUNT_OPTION] = None,
    *,
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON."),
) -> None:
    """Parse a statement and print its accounts and transactions."""

    raw = _read_input(path, kind)
    result = parse_statement(raw, account_filter=account)
    if as_json:
        typer.echo(result.model_dump_json(by_alias=True, indent=2))
    elif result.success:
        _render_parse(result)
    else:
        err_console.print(f"[red]Error:[/red] {result.error}")
        if result.preview:
            err_console.print(result.preview, markup=False)
    if not result.success:
        raise typer.Exit(1)


@app.command("import")
def import_cmd(
    path: Annotated[Path, PATH_ARGUMENT],
    kind: Annotated[InputKind | None, KIND_OPTION] = None,
    account: Annotated[str | None, ACCOUNT_OPTION] = None,
    *,
    owner: str = typer.Option(..., "--owner", help="Owner identifier for the accounts."),
    database_url: str | None = typer.Option(
        None, help="Override DATABASE_URL (falls back to env var)."
    ),
) -> None:
    """Parse a statement and store new transactions, skipping known ones."""

    raw = _read_input(path, kind)
    try:
        result = import_statement(
            raw, owner_id=owner, database_url=database_url, account_filter=account
        )
    except RuntimeError as e:
        # Raised by the DB client when no database URL is configured.
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
    if not result.success:
        err_console.print(f"[red]Error:[/red] {result.error}")
        raise typer.Exit(1)
    console.print(
        f"[green]Imported[/green] bank={result.bank_id} inserted={result.inserted} "
        f"duplicates={result.duplicates} skipped={result.skipped_records}"
    )


@app.callback()
def _root(verbose: int = VERBOSE_OPTION) -> None:
    """Load ``.env`` from the current working directory and configure logging."""

    # override=False keeps variables already set in the environment
    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging(verbosity=verbose)


if __name__ == "__main__":  # pragma: no cover
    app()
