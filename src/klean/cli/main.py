from __future__ import annotations

"""
Klean CLI: rule-based data cleaning

Thin layer: parse args → call loader/executor → print via reporters.
"""

from enum import Enum
from typing import List, Optional

import typer

from klean import run_plan
from klean.config.loader import CleanPlanLoader
from klean.config.settings import ExecutorConfig
from klean.engine.executor import ExecutionResult
from klean.errors import ConfigError, format_error_for_cli
from klean.loader.csv import CSVLoader
from klean.logging import configure_logging
from klean.reporters.rich_reporter import render_json, report_results, report_success
from klean.store import open_store
from klean.version import VERSION

app = typer.Typer(help="Klean CLI: rule-based data cleaning")

# Exit codes (stable for CI/CD)
EXIT_SUCCESS = 0
EXIT_VIOLATIONS_FOUND = 1
EXIT_CONFIG_ERROR = 2
EXIT_RUNTIME_ERROR = 3


class OutputFormat(str, Enum):
    rich = "rich"
    json = "json"


@app.callback(invoke_without_command=True)
def _version(
    ctx: typer.Context,
    version: Optional[bool] = typer.Option(
        None, "--version", help="Show the Klean version and exit.", is_eager=True
    )
) -> None:
    if version:
        typer.echo(f"klean {VERSION}")
        raise typer.Exit(code=0)
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(code=0)


def _fail(e: Exception, verbose: bool) -> None:
    code = EXIT_CONFIG_ERROR if isinstance(e, (FileNotFoundError, ConfigError)) else EXIT_RUNTIME_ERROR
    typer.secho(format_error_for_cli(e, verbose=verbose), fg=typer.colors.RED, err=True)
    raise typer.Exit(code=code)


def _run(
    plan_path: str,
    store_uri: Optional[str],
    output_format: OutputFormat,
    workers: Optional[int],
    verbose: bool,
    repair: bool,
) -> None:
    configure_logging(verbose)
    try:
        plan = CleanPlanLoader.from_path(plan_path)
        config = ExecutorConfig.from_env(workers=workers, verbose=verbose or None)

        if store_uri:
            with open_store(store_uri) as store:
                results: List[ExecutionResult] = run_plan(plan, store, config, repair=repair)
        else:
            results = run_plan(plan, config=config, repair=repair)

        if output_format == OutputFormat.json:
            typer.echo(render_json(results))
        else:
            report_results(results, repaired=repair)

        found = any(r.detect.violation_count for r in results)
        raise typer.Exit(code=EXIT_VIOLATIONS_FOUND if found else EXIT_SUCCESS)

    except typer.Exit:
        raise

    except Exception as e:
        _fail(e, verbose)


@app.command("detect")
def detect(
    plan: str = typer.Argument(..., help="Path to the clean plan (YAML or JSON)."),
    store: Optional[str] = typer.Option(
        None, "--store", "-s", help="Store URI override (defaults to the plan's source.uri)."
    ),
    output_format: OutputFormat = typer.Option(
        OutputFormat.rich, "--output-format", "-o", help="Output format."
    ),
    workers: Optional[int] = typer.Option(
        None, "--workers", "-w", help="Worker threads for group-parallel detection."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging and errors."),
) -> None:
    """
    Detect violations of every rule in a plan and persist them.

    Exits 1 when any violation was found.
    """
    _run(plan, store, output_format, workers, verbose, repair=False)


@app.command("clean")
def clean(
    plan: str = typer.Argument(..., help="Path to the clean plan (YAML or JSON)."),
    store: Optional[str] = typer.Option(
        None, "--store", "-s", help="Store URI override (defaults to the plan's source.uri)."
    ),
    output_format: OutputFormat = typer.Option(
        OutputFormat.rich, "--output-format", "-o", help="Output format."
    ),
    workers: Optional[int] = typer.Option(
        None, "--workers", "-w", help="Worker threads for group-parallel detection."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging and errors."),
) -> None:
    """
    Detect violations, then compute and persist candidate fixes.
    """
    _run(plan, store, output_format, workers, verbose, repair=True)


@app.command("load")
def load(
    csv: str = typer.Argument(..., help="CSV file with a header line."),
    store: str = typer.Option(..., "--store", "-s", help="Store URI to load into."),
    table: Optional[str] = typer.Option(
        None, "--table", "-t", help="Target table (default: csv_<file stem>)."
    ),
    no_overwrite: bool = typer.Option(
        False, "--no-overwrite", help="Skip loading when the table already exists."
    ),
    separator: str = typer.Option(",", "--separator", help="Field separator."),
    batch_size: Optional[int] = typer.Option(
        None, "--batch-size", help="Rows per insert batch (default 1024)."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging and errors."),
) -> None:
    """
    Bulk-load a CSV file into a store table with a generated tid column.
    """
    configure_logging(verbose)
    try:
        config = ExecutorConfig.from_env(batch_size=batch_size)
        loader = CSVLoader(batch_size=config.batch_size, separator=separator)
        with open_store(store) as st:
            result = loader.load(st, csv, table_name=table, overwrite=not no_overwrite)
        if result.skipped:
            typer.secho(f"Table {result.table_name} exists; skipped.", fg=typer.colors.YELLOW)
        else:
            report_success(
                f"Loaded {result.row_count:,} rows into {result.table_name} in {result.elapsed_ms} ms"
            )
        raise typer.Exit(code=EXIT_SUCCESS)

    except typer.Exit:
        raise

    except Exception as e:
        _fail(e, verbose)


@app.command("install")
def install(
    store: str = typer.Option(..., "--store", "-s", help="Store URI."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging and errors."),
) -> None:
    """Create the violation and repair tables."""
    configure_logging(verbose)
    try:
        with open_store(store) as st:
            st.install()
        report_success(f"Installed result tables in {store}")
    except Exception as e:
        _fail(e, verbose)


@app.command("uninstall")
def uninstall(
    store: str = typer.Option(..., "--store", "-s", help="Store URI."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging and errors."),
) -> None:
    """Drop the violation and repair tables."""
    configure_logging(verbose)
    try:
        with open_store(store) as st:
            st.uninstall()
        report_success(f"Removed result tables from {store}")
    except Exception as e:
        _fail(e, verbose)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
