"""Excel report writer — produces Ingested_Records.xlsx."""

from __future__ import annotations

import re
from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, cast

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.table import Table, TableStyleInfo
from openpyxl.worksheet.worksheet import Worksheet

from roster_intake.models import EntityKind, IngestionReport
from roster_intake.pipeline import IngestionState, format_row_errors
from roster_intake.schemas import field_labels, field_names

REPORT_FILENAME = "Ingested_Records.xlsx"

# ── Style constants ──────────────────────────────────────────────

HEADER_FONT = Font(name="Calibri", bold=True, size=11, color="FFFFFF")
HEADER_FILL = PatternFill(start_color="2F5496", end_color="2F5496", fill_type="solid")
HEADER_ALIGN = Alignment(horizontal="center", vertical="center", wrap_text=True)

TITLE_FONT = Font(name="Calibri", bold=True, size=14, color="2F5496")
SUBTITLE_FONT = Font(name="Calibri", bold=False, size=10, color="808080")
LABEL_FONT = Font(name="Calibri", bold=True, size=11)
VALUE_FONT = Font(name="Calibri", size=11)
WARN_FONT = Font(name="Calibri", italic=True, size=10, color="CC6600")
ERROR_FONT = Font(name="Calibri", size=10, color="C00000")

NOTE_FILL = PatternFill(start_color="FFF2CC", end_color="FFF2CC", fill_type="solid")
COUNT_FILL = PatternFill(start_color="D6E4F0", end_color="D6E4F0", fill_type="solid")

_AUTO_WIDTH_SAMPLE_ROWS = 300
_MAX_COLUMN_WIDTH = 40
_EXCEL_FORMULA_PREFIXES = ("=", "+", "-", "@")


# ── Helpers ──────────────────────────────────────────────────────


def _style_header(ws: Worksheet, ncols: int) -> None:
    for c in range(1, ncols + 1):
        cell = ws.cell(row=1, column=c)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = HEADER_ALIGN


def _auto_width(ws: Worksheet) -> None:
    max_row = min(ws.max_row, _AUTO_WIDTH_SAMPLE_ROWS + 1)
    for c_idx in range(1, ws.max_column + 1):
        letter = get_column_letter(c_idx)
        width = max(
            len(str(row[0].value or ""))
            for row in ws.iter_rows(min_row=1, max_row=max_row, min_col=c_idx, max_col=c_idx)
        )
        ws.column_dimensions[letter].width = min(width + 4, _MAX_COLUMN_WIDTH)


def _unique_table_name(ws: Worksheet, base_name: str) -> str:
    parent = ws.parent
    base_name = re.sub(r"[^A-Za-z0-9_]", "_", base_name) or "Table"
    if parent is None:
        return base_name

    existing: set[str] = set()
    for sheet in parent.worksheets:
        existing.update(cast(Iterable[str], sheet.tables.keys()))
    candidate = base_name
    suffix = 1
    while candidate in existing:
        candidate = f"{base_name}_{suffix}"
        suffix += 1
    return candidate


def _add_excel_table(ws: Worksheet, name: str, ncols: int, nrows: int) -> None:
    """Turn the data range into a proper Excel Table object."""
    if nrows < 1 or ncols < 1:
        return
    ref = f"A1:{get_column_letter(ncols)}{nrows + 1}"
    table = Table(displayName=_unique_table_name(ws, name), ref=ref)
    table.tableStyleInfo = TableStyleInfo(
        name="TableStyleMedium9", showFirstColumn=False,
        showLastColumn=False, showRowStripes=True, showColumnStripes=False,
    )
    ws.add_table(table)


def _excel_value(val: Any) -> Any:
    """Neutralise cell text that Excel would otherwise evaluate as a formula."""
    if isinstance(val, str) and not val.startswith("'"):
        stripped = val.lstrip()
        if stripped and stripped[0] in _EXCEL_FORMULA_PREFIXES:
            return f"'{val}"
    return val


def _records_frame(state: IngestionState, kind: EntityKind) -> pd.DataFrame:
    names = field_names(kind)
    rows = [record.model_dump() for record in state.records(kind)]
    return pd.DataFrame(rows, columns=names).rename(columns=field_labels(kind))


def _df_to_sheet(wb: Workbook, name: str, df: pd.DataFrame) -> None:
    ws = wb.create_sheet(title=name)
    col_names = list(df.columns)

    for c_idx, col_name in enumerate(col_names, 1):
        ws.cell(row=1, column=c_idx, value=col_name)
    for r_idx, row_vals in enumerate(df.itertuples(index=False, name=None), 2):
        for c_idx, val in enumerate(row_vals, 1):
            ws.cell(row=r_idx, column=c_idx, value=_excel_value(val))
    _style_header(ws, len(col_names))
    ws.freeze_panes = "A2"
    _auto_width(ws)
    _add_excel_table(ws, name, len(col_names), len(df))


def _write_errors(wb: Workbook, state: IngestionState) -> None:
    ws = wb.create_sheet(title="Errors")
    headers = ["Kind", "Error"]
    for c_idx, header in enumerate(headers, 1):
        ws.cell(row=1, column=c_idx, value=header)
    _style_header(ws, len(headers))

    row = 2
    for kind in EntityKind:
        for line in format_row_errors(state.errors(kind)):
            ws.cell(row=row, column=1, value=kind.value)
            ws.cell(row=row, column=2, value=_excel_value(line)).font = ERROR_FONT
            row += 1
    if row == 2:
        ws.cell(row=2, column=1, value="No validation errors").font = VALUE_FONT
    ws.freeze_panes = "A2"
    _auto_width(ws)
    ws.column_dimensions["B"].width = 80


def _write_summary(wb: Workbook, report: IngestionReport) -> None:
    ws = wb.create_sheet(title="Summary")

    ws.cell(row=1, column=1, value="roster-intake — Summary").font = TITLE_FONT
    ws.merge_cells("A1:C1")
    generated = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")
    ws.cell(row=2, column=1, value=f"Generated {generated}").font = SUBTITLE_FONT
    ws.merge_cells("A2:C2")

    # ── Counts per kind ──────────────────────────────────────────
    row = 4
    for c_idx, header in enumerate(("Kind", "Valid records", "Rejected rows"), 1):
        cell = ws.cell(row=row, column=c_idx, value=header)
        cell.font = LABEL_FONT
        cell.fill = COUNT_FILL
    row += 1
    for kind in EntityKind:
        ws.cell(row=row, column=1, value=kind.sheet_title).font = VALUE_FONT
        ws.cell(row=row, column=2, value=report.record_counts.get(kind.value, 0))
        ws.cell(row=row, column=3, value=len(report.errors.get(kind.value, {})))
        row += 1

    # ── Notes ────────────────────────────────────────────────────
    row += 1
    ws.cell(row=row, column=1, value="Notes").font = LABEL_FONT
    for c in range(1, 4):
        ws.cell(row=row, column=c).fill = NOTE_FILL
    row += 1
    notes = report.warnings or ["No warnings"]
    for note in notes:
        cell = ws.cell(row=row, column=1, value=_excel_value(note))
        cell.font = WARN_FONT if report.warnings else VALUE_FONT
        for c in range(1, 4):
            ws.cell(row=row, column=c).fill = NOTE_FILL
        row += 1

    ws.column_dimensions["A"].width = 22
    ws.column_dimensions["B"].width = 16
    ws.column_dimensions["C"].width = 16


# ── Public API ───────────────────────────────────────────────────


def write_report(out_dir: Path, state: IngestionState, report: IngestionReport) -> Path:
    """Write ``Ingested_Records.xlsx`` and return the path.

    One sheet per entity kind (labelled columns), an Errors sheet and a
    Summary sheet.
    """
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    report_path = out_dir / REPORT_FILENAME

    wb = Workbook()
    active_sheet = wb.active
    if active_sheet is not None:
        wb.remove(active_sheet)

    _write_summary(wb, report)
    for kind in EntityKind:
        _df_to_sheet(wb, kind.sheet_title, _records_frame(state, kind))
    _write_errors(wb, state)

    tmp_path = out_dir / "Ingested_Records.tmp.xlsx"
    wb.save(tmp_path)
    tmp_path.replace(report_path)
    return report_path
