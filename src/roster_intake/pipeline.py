"""Validation + aggregation pipeline — no I/O beyond reading the input file."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from typing import Any

from roster_intake.classify import classify
from roster_intake.io import RawSheet, load_file
from roster_intake.models import EntityKind, IngestionReport, RowErrors, SheetOutcome, SheetResult
from roster_intake.schemas import Record, validate_row

logger = logging.getLogger(__name__)

ERROR_DELIMITER = "; "
# Zero-based data index + 1 for 1-based numbering + 1 for the header row.
_SPREADSHEET_ROW_OFFSET = 2


# ── Row validation ───────────────────────────────────────────────


def validate_sheet(kind: EntityKind, rows: Sequence[Mapping[str, Any]]) -> SheetResult:
    """Validate every row of one worksheet against the schema for *kind*.

    Returns valid records in original order plus a map of zero-based row
    index to the joined violation messages for that row.
    """
    records: list[Record] = []
    errors: RowErrors = {}
    for index, row in enumerate(rows):
        outcome = validate_row(kind, row)
        if outcome.record is not None:
            records.append(outcome.record)
        else:
            errors[index] = ERROR_DELIMITER.join(outcome.violations)
    return SheetResult(records=records, errors=errors)


def format_row_errors(errors: Mapping[int, str]) -> list[str]:
    """Render *errors* as ``Row N: message`` lines using spreadsheet row numbers."""
    return [
        f"Row {index + _SPREADSHEET_ROW_OFFSET}: {message}"
        for index, message in sorted(errors.items())
    ]


# ── Aggregation ──────────────────────────────────────────────────


class IngestionState:
    """Current validated records and row errors, one slot per entity kind.

    Each classified worksheet replaces its kind's slot wholesale; kinds not
    present in a pass keep whatever they held before.
    """

    def __init__(self) -> None:
        self._results: dict[EntityKind, SheetResult] = {
            kind: SheetResult() for kind in EntityKind
        }
        self._latest_errors: RowErrors = {}

    def records(self, kind: EntityKind) -> list[Record]:
        return list(self._results[EntityKind(kind)].records)

    def errors(self, kind: EntityKind) -> RowErrors:
        return dict(self._results[EntityKind(kind)].errors)

    @property
    def latest_errors(self) -> RowErrors:
        """Row errors from the last worksheet processed, whatever its kind."""
        return dict(self._latest_errors)

    @property
    def has_errors(self) -> bool:
        return any(result.errors for result in self._results.values())

    def clear(self, kind: EntityKind) -> None:
        """Drop the valid records of *kind*; errors and other kinds are kept."""
        kind = EntityKind(kind)
        current = self._results[kind]
        self._results[kind] = SheetResult(records=[], errors=current.errors)
        logger.info("Cleared %s records", kind.value)

    def ingest(self, sheets: Iterable[RawSheet], *, file_name: str = "") -> list[SheetOutcome]:
        """Classify and validate each sheet, replacing per-kind results."""
        outcomes: list[SheetOutcome] = []
        for sheet in sheets:
            kind = classify(sheet.name)
            if kind is None:
                logger.warning(
                    "Skipping %s %r: name matches no entity kind",
                    "worksheet" if sheet.from_workbook else "file",
                    sheet.name,
                )
                outcomes.append(
                    SheetOutcome(
                        file_name=file_name,
                        sheet_name=sheet.name,
                        rows_in=len(sheet.rows),
                    )
                )
                continue

            result = validate_sheet(kind, sheet.rows)
            self._results[kind] = result
            self._latest_errors = dict(result.errors)
            logger.info(
                "Worksheet %r -> %s: %d valid, %d rejected",
                sheet.name, kind.value, len(result.records), len(result.errors),
            )
            outcomes.append(
                SheetOutcome(
                    file_name=file_name,
                    sheet_name=sheet.name,
                    kind=kind,
                    rows_in=result.rows_in,
                    rows_valid=len(result.records),
                    rows_rejected=len(result.errors),
                )
            )
        return outcomes

    def ingest_file(self, path: Path, *, delimiter: str | None = None) -> list[SheetOutcome]:
        """Decode *path* and ingest its worksheets.

        Decoding happens before any state changes, so a file that fails to
        decode leaves every kind untouched.
        """
        path = Path(path)
        sheets = load_file(path, delimiter=delimiter)
        return self.ingest(sheets, file_name=path.name)


def build_report(
    state: IngestionState,
    outcomes: Sequence[SheetOutcome],
    inputs: Sequence[str] = (),
) -> IngestionReport:
    """Summarise *state* and the per-sheet *outcomes* of a run."""
    warnings = [
        f"Skipped worksheet {o.sheet_name!r} in {o.file_name or 'input'}: "
        "name matches no entity kind (expected 'client', 'worker' or 'tasks')"
        for o in outcomes
        if o.skipped
    ]
    return IngestionReport(
        inputs=list(inputs),
        sheets=list(outcomes),
        record_counts={kind.value: len(state.records(kind)) for kind in EntityKind},
        errors={kind.value: state.errors(kind) for kind in EntityKind if state.errors(kind)},
        warnings=warnings,
    )
