"""
Command-line interface for the ReconFlow CSV reconciliation tool.
"""

from pathlib import Path
from typing import Optional
import logging
import math
import sys

import click
from rich.console import Console
from rich.table import Table

from . import __version__
from .config import load_config, generate_default_config, ReconConfig
from .models.record import ExportKind, ReconciliationResult, RecordSource
from .parsers.csv_reader import CSVReader
from .parsers.normalizer import RecordNormalizer
from .reports.csv_exporter import export_all
from .reports.excel_generator import ExcelReportGenerator
from .session import ReconciliationSession
from .utils.exceptions import ReconciliationError
from .utils.logging_config import setup_logging

console = Console()


def _format_amount(amount: Optional[float]) -> str:
    if amount is None:
        return "N/A"
    if math.isnan(amount):
        return "invalid"
    return f"${amount:,.2f}"


@click.group()
@click.version_option(version=__version__)
def main():
    """ReconFlow: match internal and provider CSV exports by transaction reference."""
    pass


@main.command()
@click.argument(
    "internal_file", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@click.argument(
    "provider_file", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@click.option(
    "-c",
    "--config",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file (YAML)",
)
@click.option(
    "--amount-tolerance",
    type=float,
    default=None,
    help="Override the amount tolerance",
)
@click.option(
    "--duplicates",
    type=click.Choice(["last_wins", "reject"]),
    default=None,
    help="How to treat a reference repeated within one file",
)
@click.option("--no-status", is_flag=True, help="Do not compare status values")
@click.option(
    "-e",
    "--export-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Write CSV exports for every result subset to this directory",
)
@click.option("--excel", type=click.Path(path_type=Path), help="Write an Excel report")
@click.option(
    "--show",
    type=click.IntRange(min=0),
    default=20,
    show_default=True,
    help="Rows to list per section",
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Also write a debug log to this file",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
def reconcile(
    internal_file: Path,
    provider_file: Path,
    config: Optional[Path],
    amount_tolerance: Optional[float],
    duplicates: Optional[str],
    no_status: bool,
    export_dir: Optional[Path],
    excel: Optional[Path],
    show: int,
    log_file: Optional[Path],
    verbose: bool,
):
    """
    Reconcile an internal export against a provider statement.

    INTERNAL_FILE: CSV exported from the internal system
    PROVIDER_FILE: CSV statement from the payment provider
    """
    try:
        recon_config = load_config(config)
        setup_logging(
            logging.DEBUG if verbose else recon_config.logging.level,
            log_file=log_file,
            log_format=recon_config.logging.format,
        )
        _apply_overrides(recon_config, amount_tolerance, duplicates, no_status)

        session = ReconciliationSession(recon_config)
        session.load(RecordSource.INTERNAL, internal_file)
        session.load(RecordSource.PROVIDER, provider_file)

        failed = False
        for side, message in session.errors.items():
            if message:
                console.print(f"[red]{side.value.title()} file: {message}[/red]")
                failed = True
        if failed:
            sys.exit(1)

        result = session.run()
        _display_summary(result)
        _display_details(result, show)

        if export_dir:
            paths = export_all(result, export_dir, recon_config)
            for path in paths.values():
                console.print(f"[green]Exported: {path}[/green]")

        if excel:
            report_generator = ExcelReportGenerator(recon_config)
            if excel.is_dir():
                excel = excel / report_generator.default_filename()
            report_path = report_generator.generate_report(
                result,
                excel,
                internal_name=internal_file.name,
                provider_name=provider_file.name,
            )
            console.print(f"[green]Report generated: {report_path}[/green]")

    except ReconciliationError as e:
        console.print(f"[red]Error: {e}[/red]")
        if verbose:
            console.print_exception()
        sys.exit(1)


@main.command("inspect")
@click.argument(
    "csv_file", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@click.option(
    "-c", "--config", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
def inspect_file(csv_file: Path, config: Optional[Path]):
    """
    Parse and normalize one CSV file and display its records.

    CSV_FILE: Path to an internal or provider CSV file
    """
    try:
        recon_config = load_config(config)
        table = CSVReader(recon_config).read_file(csv_file)
        records = RecordNormalizer(recon_config).normalize_table(table)
    except ReconciliationError as e:
        console.print(f"[red]Error parsing file: {e}[/red]")
        sys.exit(1)

    view = Table(title=f"Records: {csv_file.name}")
    view.add_column("Row", justify="right")
    view.add_column("Reference")
    view.add_column("Amount", justify="right")
    view.add_column("Status")

    for record in records[:20]:
        view.add_row(
            str(record.row_number or ""),
            record.reference,
            _format_amount(record.amount),
            record.status or "-",
        )

    console.print(view)

    if len(records) > 20:
        console.print(f"\n... and {len(records) - 20} more records")

    console.print(f"\nColumns: {', '.join(table.columns)}")
    console.print(f"Rows read: {len(table.rows)}, usable records: {len(records)}")
    invalid = sum(1 for r in records if r.has_invalid_amount)
    if invalid:
        console.print(f"[yellow]Non-numeric amounts: {invalid}[/yellow]")


@main.command("init-config")
@click.option(
    "-o", "--output", type=click.Path(path_type=Path), default=Path("reconflow.yaml")
)
def init_config(output: Path):
    """Generate a sample configuration file."""
    generate_default_config(output)
    console.print(f"[green]Configuration file generated: {output}[/green]")


def _display_summary(result: ReconciliationResult) -> None:
    """Display reconciliation summary in console."""
    summary = result.summary
    table = Table(title="Reconciliation Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("Total Internal Records", str(summary.total_internal))
    table.add_row("Total Provider Records", str(summary.total_provider))
    table.add_row("Matched", str(summary.matched_count))
    table.add_row("Internal Only", str(summary.internal_only_count))
    table.add_row("Provider Only", str(summary.provider_only_count))
    table.add_row("Amount Mismatches", str(summary.amount_mismatch_count))
    table.add_row("Status Mismatches", str(summary.status_mismatch_count))
    table.add_row("Total Discrepancies", str(summary.total_discrepancies))
    table.add_row("Match Rate", f"{summary.match_rate}%")
    if summary.invalid_amount_count:
        table.add_row("Non-numeric Amounts", str(summary.invalid_amount_count))

    console.print(table)


def _display_details(result: ReconciliationResult, limit: int) -> None:
    """List mismatched and one-sided records, up to ``limit`` per section."""
    flagged = [m for m in result.matched if not m.is_clean]
    if flagged:
        table = Table(title="Mismatched Transactions")
        table.add_column("Reference")
        table.add_column("Amount")
        table.add_column("Status")
        for match in flagged[:limit]:
            table.add_row(
                match.reference,
                ""
                if match.amount_match
                else f"{_format_amount(match.internal.amount)} vs "
                f"{_format_amount(match.provider.amount)}",
                ""
                if match.status_match
                else f"{match.internal.status} vs {match.provider.status}",
            )
        console.print(table)

    for kind, title in (
        (ExportKind.INTERNAL_ONLY, "Internal Only"),
        (ExportKind.PROVIDER_ONLY, "Provider Only"),
    ):
        records = result.subset(kind)
        if not records:
            continue
        table = Table(title=f"{title} ({len(records)})")
        table.add_column("Reference")
        table.add_column("Amount", justify="right")
        table.add_column("Status")
        for record in records[:limit]:
            table.add_row(
                record.reference, _format_amount(record.amount), record.status or "-"
            )
        console.print(table)
        if len(records) > limit:
            console.print(f"... and {len(records) - limit} more")


def _apply_overrides(
    config: ReconConfig,
    amount_tolerance: Optional[float],
    duplicates: Optional[str],
    no_status: bool,
) -> None:
    """Apply command-line overrides to the matching settings."""
    settings = config.matching.settings
    if amount_tolerance is not None:
        if amount_tolerance < 0:
            raise click.BadParameter(
                "must not be negative", param_hint="--amount-tolerance"
            )
        settings.amount_tolerance = amount_tolerance
    if duplicates is not None:
        settings.duplicate_references = duplicates
    if no_status:
        settings.compare_status = False


if __name__ == "__main__":
    main()
