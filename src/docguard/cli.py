"""
CLI entry point for docguard.

This module provides the Typer-based command-line interface for docguard,
a local host for the engine: it loads documents, asks the engine, prints
the decision.

Commands:
    check   Evaluate one request against a fixture file or SQLite store
    seed    Load a fixture file into a SQLite store
    rules   Show the rule tree for every collection and operation

Exit codes for check:
    0 allow, 1 deny, 2 malformed, 3 input could not be loaded

Architecture Note:
    The CLI is intentionally thin - it parses arguments and delegates to
    PolicyEngine, which can be used programmatically without the CLI.
"""

import json
import traceback
from pathlib import Path
from typing import Annotated, NoReturn, Optional

import typer
from rich.console import Console
from rich.table import Table

from docguard import __version__
from docguard.errors import DocGuardError
from docguard.logging_config import configure_logging
from docguard.policy import PolicyEngine
from docguard.schema import Decision, EngineConfig, Operation, Principal, load_config
from docguard.store import (
    DocumentStore,
    InMemoryDocumentStore,
    SqliteDocumentStore,
    load_fixtures,
)

EXIT_ALLOW = 0
EXIT_DENY = 1
EXIT_MALFORMED = 2
EXIT_LOAD_ERROR = 3

app = typer.Typer(
    name="docguard",
    help="Evaluate document access rules against a store of related documents.",
    add_completion=False,
    no_args_is_help=True,
)

# Rich console for formatted output
console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold]docguard[/bold] version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """
    docguard - Authorization rules for hierarchical document stores.
    """
    pass


@app.command()
def check(
    path: Annotated[
        str,
        typer.Argument(help="Document path, e.g. posts/123."),
    ],
    data: Annotated[
        Optional[Path],
        typer.Option(
            "--data",
            "-d",
            help="Fixture file (YAML/JSON) mapping document paths to documents.",
            exists=True,
            readable=True,
            resolve_path=True,
        ),
    ] = None,
    db: Annotated[
        Optional[Path],
        typer.Option(
            "--db",
            help="SQLite document store to read from instead of a fixture file.",
            exists=True,
            readable=True,
            resolve_path=True,
        ),
    ] = None,
    uid: Annotated[
        Optional[str],
        typer.Option(
            "--uid",
            "-u",
            help="Authenticated user id. Omit for an anonymous request.",
        ),
    ] = None,
    operation: Annotated[
        Operation,
        typer.Option(
            "--op",
            help="Operation to check.",
            case_sensitive=False,
        ),
    ] = Operation.READ,
    incoming: Annotated[
        Optional[str],
        typer.Option(
            "--doc",
            help="Proposed document data as JSON, for write checks.",
        ),
    ] = None,
    config_path: Annotated[
        Optional[Path],
        typer.Option(
            "--config",
            "-c",
            help="Engine configuration YAML file.",
            exists=True,
            readable=True,
            resolve_path=True,
        ),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output the decision in JSON format.",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            help="Log resolver lookups and rule outcomes.",
        ),
    ] = False,
    debug: Annotated[
        bool,
        typer.Option(
            "--debug",
            help="Enable debug mode with full error tracebacks.",
        ),
    ] = False,
) -> None:
    """
    Evaluate one request.

    Example:
        $ docguard check posts/123 --data fixtures.yaml --uid myUserId
    """
    configure_logging("DEBUG" if verbose else "WARNING", json_output=json_output)

    if (data is None) == (db is None):
        _fail("usage_error", "Give exactly one of --data or --db", json_output, debug)

    try:
        config = load_config(config_path) if config_path else EngineConfig()
        document_snapshot = json.loads(incoming) if incoming else None
        if document_snapshot is not None and not isinstance(document_snapshot, dict):
            raise ValueError("--doc must be a JSON object")
        store: DocumentStore
        if data is not None:
            store = InMemoryDocumentStore(load_fixtures(data))
        else:
            store = SqliteDocumentStore(db)
    except (DocGuardError, ValueError) as e:
        _fail("load_error", str(e), json_output, debug)

    principal = Principal.authenticated(uid) if uid else Principal.anonymous()
    engine = PolicyEngine(store, config)
    try:
        decision = engine.evaluate_path(principal, operation, path, document_snapshot)
    except DocGuardError as e:
        _fail("request_error", str(e), json_output, debug)
    finally:
        if isinstance(store, SqliteDocumentStore):
            store.close()

    if json_output:
        _output_json_decision(decision, principal, operation, path)
    else:
        _display_decision(decision, principal, operation, path)

    if decision.allowed:
        raise typer.Exit(code=EXIT_ALLOW)
    if decision.denied:
        raise typer.Exit(code=EXIT_DENY)
    raise typer.Exit(code=EXIT_MALFORMED)


@app.command()
def seed(
    fixtures: Annotated[
        Path,
        typer.Argument(
            help="Fixture file (YAML/JSON) mapping document paths to documents.",
            exists=True,
            readable=True,
            resolve_path=True,
        ),
    ],
    db: Annotated[
        Path,
        typer.Option(
            "--db",
            help="SQLite document store to write to (created if missing).",
            resolve_path=True,
        ),
    ],
    clear: Annotated[
        bool,
        typer.Option(
            "--clear",
            help="Remove existing documents first.",
        ),
    ] = False,
) -> None:
    """
    Load a fixture file into a SQLite document store.

    Example:
        $ docguard seed fixtures.yaml --db documents.db
    """
    try:
        documents = load_fixtures(fixtures)
        with SqliteDocumentStore(db) as store:
            if clear:
                store.clear()
            store.load_documents(documents)
            total = store.count()
    except DocGuardError as e:
        console.print(f"[red]Error seeding store: {e}[/red]")
        raise typer.Exit(code=EXIT_LOAD_ERROR)

    console.print(f"[green]✓[/green] Loaded {len(documents)} documents into [bold]{db}[/bold]")
    console.print(f"[dim]Total documents: {total}[/dim]")


@app.command()
def rules(
    config_path: Annotated[
        Optional[Path],
        typer.Option(
            "--config",
            "-c",
            help="Engine configuration YAML file.",
            exists=True,
            readable=True,
            resolve_path=True,
        ),
    ] = None,
) -> None:
    """
    Show the rule tree for every collection and operation.

    Example:
        $ docguard rules
    """
    try:
        config = load_config(config_path) if config_path else EngineConfig()
    except DocGuardError as e:
        console.print(f"[red]Error loading config: {e}[/red]")
        raise typer.Exit(code=EXIT_LOAD_ERROR)

    engine = PolicyEngine(InMemoryDocumentStore(), config)

    table = Table(show_header=True, header_style="bold")
    table.add_column("Collection", style="cyan")
    table.add_column("Operation", width=9)
    table.add_column("Rule")

    for collection, by_operation in engine.rule_sets.items():
        for operation, rule in by_operation.items():
            table.add_row(collection, operation.value, "\n".join(rule.describe()))

    console.print(table)


def _display_decision(
    decision: Decision,
    principal: Principal,
    operation: Operation,
    path: str,
) -> None:
    """Display a decision in a formatted way."""
    if decision.allowed:
        status = "[green]✓ allow[/green]"
    elif decision.denied:
        status = "[yellow]✗ deny[/yellow]"
    else:
        status = "[red]! malformed[/red]"

    console.print(f"{status} [bold]{operation.value}[/bold] {path} as {principal}")
    console.print(f"[dim]Reason: {decision.reason}[/dim]")
    if decision.rule_matched:
        console.print(f"[dim]Rule: {decision.rule_matched}[/dim]")


def _output_json_decision(
    decision: Decision,
    principal: Principal,
    operation: Operation,
    path: str,
) -> None:
    """Output a decision in JSON format."""
    output = {
        "path": path,
        "operation": operation.value,
        "uid": principal.uid,
        "outcome": decision.outcome.value,
        "allowed": decision.allowed,
        "reason": decision.reason,
        "rule_matched": decision.rule_matched,
        "status_code": decision.status_code,
    }
    print(json.dumps(output, indent=2))


def _fail(error_type: str, message: str, json_output: bool, debug: bool) -> NoReturn:
    """Report an input error and exit."""
    if json_output:
        output = {
            "error": True,
            "error_type": error_type,
            "message": message,
        }
        if debug:
            output["traceback"] = traceback.format_exc()
        print(json.dumps(output, indent=2))
    else:
        console.print(f"[red]Error: {message}[/red]")
        if debug:
            console.print(f"[dim]{traceback.format_exc()}[/dim]")
    raise typer.Exit(code=EXIT_LOAD_ERROR)


if __name__ == "__main__":
    app()
