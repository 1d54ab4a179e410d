"""Command-line interface for serde-option expansion."""

from __future__ import annotations

import json
import sys
from typing import TYPE_CHECKING

import click
from rich.console import Console
from rich.table import Table

from serde_option.generator.errors import ExpansionError
from serde_option.generator.logs import configure_logging
from serde_option.generator.types import ExpandOptions
from serde_option.generator.walker import check as check_source
from serde_option.generator.walker import expand as expand_source

if TYPE_CHECKING:
    from serde_option.generator.errors import Diagnostic
    from serde_option.generator.walker import ExpansionReport


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Log every field decision to stderr.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
def cli(verbose: bool, log_json: bool) -> None:
    """Expand #[nullable] and #[not_required] markers into serde attributes."""
    configure_logging(verbose=verbose, log_json=log_json)


@cli.command()
@click.option("--input", "-i", "input_file", required=True, help="Input Rust declaration")
@click.option("--output", "-o", "output_file", required=True, help="Output file")
@click.option("--schema", is_flag=True, default=False, help="Also emit utoipa #[schema] hints")
@click.option(
    "--emit-errors",
    is_flag=True,
    default=False,
    help="On failure, write compile_error! invocations instead of exiting with an error",
)
def expand(input_file: str, output_file: str, schema: bool, emit_errors: bool) -> None:
    """Rewrite the markers of a struct or enum definition."""
    with open(input_file, encoding="utf-8") as f:
        source = f.read()

    try:
        generated_file = expand_source(source, ExpandOptions(schema=schema))
    except ExpansionError as err:
        if not emit_errors:
            _print_diagnostics(err.diagnostics, input_file, Console(stderr=True))
            sys.exit(1)
        generated_file = err.to_compile_error() + "\n"

    with open(output_file, "w", encoding="utf-8") as f:
        f.write(generated_file)


@cli.command()
@click.option("--input", "-i", "input_file", required=True, help="Input Rust declaration")
@click.option("--schema", is_flag=True, default=False, help="Also emit utoipa #[schema] hints")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def check(input_file: str, schema: bool, output_json: bool) -> None:
    """Show the decision taken for every field, without writing anything."""
    with open(input_file, encoding="utf-8") as f:
        source = f.read()

    report = check_source(source, ExpandOptions(schema=schema))

    if output_json:
        _output_json(report)
    else:
        _output_plain(report, input_file)

    if not report.ok:
        sys.exit(1)


def _output_json(report: ExpansionReport) -> None:
    """Output the report as JSON."""
    data: dict = {
        "ok": report.ok,
        "fields": [decision.to_dict(encode_json=True) for decision in report.decisions],
        "diagnostics": [d.to_dict(encode_json=True) for d in report.diagnostics],
    }
    print(json.dumps(data, indent=2))


def _print_diagnostics(diagnostics: list[Diagnostic], input_file: str, console: Console) -> None:
    for diagnostic in diagnostics:
        location = input_file
        if diagnostic.span is not None:
            location = f"{input_file}:{diagnostic.span.line}:{diagnostic.span.column}"
        console.print(
            f"[bold red]error[/bold red][dim]\\[{diagnostic.kind}][/dim] {location}",
            highlight=False,
            soft_wrap=True,
        )
        console.print(f"  {diagnostic.message}", markup=False, highlight=False, soft_wrap=True)


def _output_plain(report: ExpansionReport, input_file: str) -> None:
    """Output the report using rich text formatting."""
    console = Console()

    if report.decisions:
        console.print("[bold cyan]Fields[/bold cyan]")
        table = Table(show_header=True, box=None, padding=(0, 2, 0, 0))
        table.add_column("Owner", style="white")
        table.add_column("Field", style="white")
        table.add_column("Markers", style="yellow")
        table.add_column("Inner", style="dim")
        table.add_column("Outcome", style="green")

        for decision in report.decisions:
            outcome_style = "red" if decision.diagnostics else "green"
            table.add_row(
                decision.owner,
                decision.label,
                ", ".join(decision.markers),
                decision.inner_type or "",
                f"[{outcome_style}]{decision.outcome}[/{outcome_style}]",
            )

        console.print(table)
        console.print()

    if report.diagnostics:
        _print_diagnostics(report.diagnostics, input_file, console)
    else:
        console.print("[bold green]ok[/bold green]")


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
