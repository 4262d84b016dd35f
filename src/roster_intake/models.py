"""Data models / typed containers used across the package."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from numbers import Integral
from typing import Any

RowErrors = dict[int, str]


class EntityKind(str, Enum):
    """The three roster shapes a worksheet can hold."""

    CLIENT = "Client"
    WORKER = "Worker"
    TASK = "Task"

    @property
    def sheet_title(self) -> str:
        return f"{self.value}s"


def _to_non_negative_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise TypeError(f"{field_name} must be an integer")
    result = int(value)
    if result < 0:
        raise ValueError(f"{field_name} must be >= 0")
    return result


def _to_string_list(values: Sequence[Any] | None, field_name: str) -> list[str]:
    if values is None:
        return []
    if isinstance(values, str):
        raise TypeError(f"{field_name} must be a sequence of strings")
    normalized: list[str] = []
    for item in values:
        if not isinstance(item, str):
            raise TypeError(f"{field_name} items must be strings")
        normalized.append(item)
    return normalized


def _to_row_errors(values: Mapping[Any, Any] | None, field_name: str) -> RowErrors:
    if values is None:
        return {}
    normalized: RowErrors = {}
    for index, message in values.items():
        row = _to_non_negative_int(index, f"{field_name} row index")
        if not isinstance(message, str):
            raise TypeError(f"{field_name} messages must be strings")
        normalized[row] = message
    return normalized


@dataclass
class SheetResult:
    """Valid records and row errors from one worksheet pass.

    Contract invariant: a row index never appears in ``errors`` when its
    record made it into ``records``; the two together cover every data row.
    """

    records: list[Any] = field(default_factory=list)
    errors: RowErrors = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.records = list(self.records)
        self.errors = _to_row_errors(self.errors, "errors")

    @property
    def rows_in(self) -> int:
        return len(self.records) + len(self.errors)


@dataclass
class SheetOutcome:
    """What happened to one worksheet during an ingestion pass."""

    file_name: str
    sheet_name: str
    kind: EntityKind | None = None
    rows_in: int = 0
    rows_valid: int = 0
    rows_rejected: int = 0

    def __post_init__(self) -> None:
        self.rows_in = _to_non_negative_int(self.rows_in, "rows_in")
        self.rows_valid = _to_non_negative_int(self.rows_valid, "rows_valid")
        self.rows_rejected = _to_non_negative_int(self.rows_rejected, "rows_rejected")
        if self.kind is None:
            if self.rows_valid or self.rows_rejected:
                raise ValueError("skipped sheets cannot have rows_valid or rows_rejected")
            return
        self.kind = EntityKind(self.kind)
        if self.rows_valid + self.rows_rejected != self.rows_in:
            raise ValueError("rows_valid + rows_rejected must equal rows_in")

    @property
    def skipped(self) -> bool:
        return self.kind is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "file_name": self.file_name,
            "sheet_name": self.sheet_name,
            "kind": self.kind.value if self.kind else None,
            "rows_in": self.rows_in,
            "rows_valid": self.rows_valid,
            "rows_rejected": self.rows_rejected,
        }


@dataclass
class IngestionReport:
    """Summary of an ingestion run, written as ``ingestion_report.json``."""

    inputs: list[str] = field(default_factory=list)
    sheets: list[SheetOutcome] = field(default_factory=list)
    record_counts: dict[str, int] = field(default_factory=dict)
    errors: dict[str, RowErrors] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.inputs = _to_string_list(self.inputs, "inputs")
        self.warnings = _to_string_list(self.warnings, "warnings")
        self.record_counts = {
            str(kind): _to_non_negative_int(count, "record_counts")
            for kind, count in self.record_counts.items()
        }
        self.errors = {
            str(kind): _to_row_errors(rows, "errors") for kind, rows in self.errors.items()
        }

    @property
    def error_count(self) -> int:
        return sum(len(rows) for rows in self.errors.values())

    def to_dict(self) -> dict[str, Any]:
        return {
            "inputs": list(self.inputs),
            "sheets": [sheet.to_dict() for sheet in self.sheets],
            "record_counts": dict(self.record_counts),
            "errors": {
                kind: {str(index): message for index, message in sorted(rows.items())}
                for kind, rows in self.errors.items()
            },
            "warnings": list(self.warnings),
        }


@dataclass
class RunManifest:
    """Audit-trail manifest for a single CLI run."""

    tool: str = "roster-intake"
    version: str = ""
    inputs: list[str] = field(default_factory=list)
    output_dir: str = ""
    created_at_utc: str = ""
    sha256: dict[str, str] = field(default_factory=dict)
    records_valid: int = 0
    rows_rejected: int = 0
    status: str = "success"
    error_code: int | None = None
    error_message: str = ""

    def __post_init__(self) -> None:
        self.inputs = _to_string_list(self.inputs, "inputs")
        self.records_valid = _to_non_negative_int(self.records_valid, "records_valid")
        self.rows_rejected = _to_non_negative_int(self.rows_rejected, "rows_rejected")
        if self.status not in {"success", "failed"}:
            raise ValueError(f"status must be 'success' or 'failed', got {self.status!r}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "tool": self.tool,
            "version": self.version,
            "inputs": list(self.inputs),
            "output_dir": self.output_dir,
            "created_at_utc": self.created_at_utc,
            "sha256": dict(self.sha256),
            "records_valid": self.records_valid,
            "rows_rejected": self.rows_rejected,
            "status": self.status,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }
