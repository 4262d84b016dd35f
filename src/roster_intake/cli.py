"""CLI entry point for roster-intake."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import datetime, timezone
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table as RichTable

from roster_intake import __version__
from roster_intake.io import DecodeError, file_digest
from roster_intake.models import EntityKind, IngestionReport, RunManifest, SheetOutcome
from roster_intake.pipeline import IngestionState, build_report, format_row_errors
from roster_intake.qc import write_ingestion_report, write_manifest
from roster_intake.report import write_report
from roster_intake.schemas import field_labels

app = typer.Typer(
    name="rintake",
    help="roster-intake — Classify and validate client, worker and task rosters.",
    add_completion=False,
    no_args_is_help=True,
)
console = Console()


def _noop(*_args: object, **_kwargs: object) -> None:
    return None


def _printer(quiet: bool) -> Callable[..., None]:
    return _noop if quiet else console.print


def _err(msg: str) -> None:
    console.print(f"[red]x[/red] {msg}")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False, show_time=False)],
    )


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ── Helpers ──────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"roster-intake v{__version__}")
        raise typer.Exit()


def _digests(input_files: Sequence[Path]) -> dict[str, str]:
    digests: dict[str, str] = {}
    for path in input_files:
        try:
            digests[path.name] = file_digest(path)
        except OSError:
            continue
    return digests


def _write_manifest(
    out_dir: Path,
    input_files: Sequence[Path],
    created_at: str,
    report: IngestionReport,
    *,
    status: str = "success",
    error_code: int | None = None,
    error_message: str = "",
) -> Path:
    manifest = RunManifest(
        version=__version__,
        inputs=[str(path.resolve()) for path in input_files],
        output_dir=str(out_dir.resolve()),
        created_at_utc=created_at,
        sha256=_digests(input_files),
        records_valid=sum(report.record_counts.values()),
        rows_rejected=report.error_count,
        status=status,
        error_code=error_code,
        error_message=error_message,
    )
    return write_manifest(out_dir, manifest)


def _fail(
    out_dir: Path,
    input_files: Sequence[Path],
    created_at: str,
    *,
    message: str,
    error_code: int,
) -> typer.Exit:
    report = IngestionReport(
        inputs=[path.name for path in input_files], warnings=[message]
    )
    report_path = write_ingestion_report(out_dir, report)
    manifest_path = _write_manifest(
        out_dir,
        input_files,
        created_at,
        report,
        status="failed",
        error_code=error_code,
        error_message=message,
    )
    _err(message)
    console.print(f"  Report   -> {report_path}")
    console.print(f"  Manifest -> {manifest_path}")
    return typer.Exit(code=error_code)


def _ingest_all(
    input_files: Sequence[Path],
    *,
    delimiter: str | None,
    echo: Callable[..., None],
) -> tuple[IngestionState, list[SheetOutcome]]:
    """Process each file in order into one state; the first decode error aborts."""
    state = IngestionState()
    outcomes: list[SheetOutcome] = []
    for path in input_files:
        echo(f"[blue]>[/blue] Loading {path.name} …")
        file_outcomes = state.ingest_file(path, delimiter=delimiter)
        for outcome in file_outcomes:
            if outcome.kind is None:
                echo(f"  [yellow]![/yellow] {outcome.sheet_name}: skipped (no matching kind)")
            else:
                echo(
                    f"  {outcome.sheet_name} -> {outcome.kind.value}: "
                    f"{outcome.rows_valid} valid, {outcome.rows_rejected} rejected"
                )
        outcomes.extend(file_outcomes)
    return state, outcomes


def _print_records(state: IngestionState) -> None:
    for kind in EntityKind:
        records = state.records(kind)
        if not records:
            continue
        labels = field_labels(kind)
        tbl = RichTable(title=kind.sheet_title, show_lines=False)
        for label in labels.values():
            tbl.add_column(label)
        for record in records:
            values = record.model_dump()
            tbl.add_row(*(_display(values[name]) for name in labels))
        console.print(tbl)


def _display(value: object) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _print_errors(state: IngestionState) -> None:
    if not state.has_errors:
        return
    console.print("[bold red]Validation Errors:[/bold red]")
    for kind in EntityKind:
        lines = format_row_errors(state.errors(kind))
        if not lines:
            continue
        console.print(f"  [bold]{kind.sheet_title}[/bold]")
        for line in lines:
            console.print(f"    {line}", markup=False, highlight=False)


# ── Callbacks ────────────────────────────────────────────────────


@app.callback()
def main(
    version: bool | None = typer.Option(
        None, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """roster-intake CLI."""


# ── ingest command ───────────────────────────────────────────────


@app.command()
def ingest(
    input_files: list[Path] = typer.Option(
        ..., "--input", "-i",
        help="CSV or XLSX file to ingest. Repeat to process several files in order.",
        exists=True, readable=True,
    ),
    out_dir: Path = typer.Option(
        Path("output"), "--out-dir", "-o",
        help="Output directory for workbook + report + manifest.",
    ),
    delimiter: str | None = typer.Option(
        None, "--delimiter", "-d",
        help="Field delimiter for delimited text (sniffed when omitted).",
    ),
    clear: list[EntityKind] | None = typer.Option(
        None, "--clear",
        help="Discard the valid records of this kind after ingesting (Client/Worker/Task).",
        case_sensitive=False,
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q",
        help="Suppress informational output; still writes all artifacts.",
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Log each worksheet decision.",
    ),
) -> None:
    """Ingest roster files, print validated records and errors, write artifacts."""
    _configure_logging(verbose)
    echo = _printer(quiet)
    created_at = _utcnow_iso()
    out_dir.mkdir(parents=True, exist_ok=True)

    if not quiet:
        console.print(Panel(
            f"[bold]roster-intake[/bold] v{__version__}\n"
            f"Input:  {', '.join(str(p) for p in input_files)}\nOutput: {out_dir}",
            title="Ingest", border_style="blue",
        ))

    try:
        state, outcomes = _ingest_all(input_files, delimiter=delimiter, echo=echo)
    except (FileNotFoundError, DecodeError, OSError) as exc:
        raise _fail(out_dir, input_files, created_at, message=str(exc), error_code=2)

    try:
        for kind in clear or []:
            state.clear(kind)
            echo(f"  Cleared {kind.sheet_title}")

        report = build_report(state, outcomes, [p.name for p in input_files])

        if not quiet:
            for warning in report.warnings:
                console.print(f"  [yellow]![/yellow] {warning}", highlight=False)
            _print_records(state)
            _print_errors(state)

        report_path = write_ingestion_report(out_dir, report)
        echo(f"  Report   -> {report_path}")
        workbook_path = write_report(out_dir, state, report)
        echo(f"  Workbook -> {workbook_path}")
        manifest_path = _write_manifest(out_dir, input_files, created_at, report)
        echo(f"  Manifest -> {manifest_path}")

        if not quiet:
            total = sum(report.record_counts.values())
            console.print(Panel(
                f"[green]Done[/green] — {total} valid records, "
                f"{report.error_count} rejected rows",
                title="Ingest Complete", border_style="green",
            ))
    except typer.Exit:
        raise
    except Exception as exc:
        raise _fail(
            out_dir,
            input_files,
            created_at,
            message=f"Unexpected internal error: {exc}",
            error_code=1,
        ) from exc


# ── validate command ─────────────────────────────────────────────


@app.command()
def validate(
    input_files: list[Path] = typer.Option(
        ..., "--input", "-i",
        help="CSV or XLSX file to validate. Repeat to process several files in order.",
        exists=True, readable=True,
    ),
    out_dir: Path = typer.Option(
        Path("output"), "--out-dir", "-o",
        help="Output directory for report + manifest.",
    ),
    delimiter: str | None = typer.Option(
        None, "--delimiter", "-d",
        help="Field delimiter for delimited text (sniffed when omitted).",
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q",
        help="Suppress informational output; still writes report + manifest.",
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Log each worksheet decision.",
    ),
) -> None:
    """Validate roster files without writing the records workbook.

    Exit 0 = every row valid, exit 2 = row errors or unreadable input.
    """
    _configure_logging(verbose)
    echo = _printer(quiet)
    created_at = _utcnow_iso()
    out_dir.mkdir(parents=True, exist_ok=True)

    try:
        state, outcomes = _ingest_all(input_files, delimiter=delimiter, echo=echo)
    except (FileNotFoundError, DecodeError, OSError) as exc:
        raise _fail(out_dir, input_files, created_at, message=str(exc), error_code=2)

    try:
        report = build_report(state, outcomes, [p.name for p in input_files])
        report_path = write_ingestion_report(out_dir, report)
        failed = report.error_count > 0
        manifest_path = _write_manifest(
            out_dir,
            input_files,
            created_at,
            report,
            status="failed" if failed else "success",
            error_code=2 if failed else None,
            error_message=f"{report.error_count} rows failed validation" if failed else "",
        )

        if not quiet:
            tbl = RichTable(title="Validation Summary", show_lines=True)
            tbl.add_column("Kind", style="bold")
            tbl.add_column("Valid")
            tbl.add_column("Rejected")
            for kind in EntityKind:
                tbl.add_row(
                    kind.sheet_title,
                    str(report.record_counts.get(kind.value, 0)),
                    str(len(report.errors.get(kind.value, {}))),
                )
            for warning in report.warnings:
                tbl.add_row("Warning", f"[yellow]{warning}[/yellow]", "")
            tbl.add_row("Status", "[red]FAIL[/red]" if failed else "[green]PASS[/green]", "")
            console.print(tbl)
            _print_errors(state)
        console.print(f"  Report   -> {report_path}")
        console.print(f"  Manifest -> {manifest_path}")

        if failed:
            raise typer.Exit(code=2)
    except typer.Exit:
        raise
    except Exception as exc:
        raise _fail(
            out_dir,
            input_files,
            created_at,
            message=f"Unexpected internal error: {exc}",
            error_code=1,
        ) from exc
