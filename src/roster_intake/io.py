"""I/O helpers — decode uploaded spreadsheets, write JSON artifacts."""

from __future__ import annotations

import csv
import hashlib
import io
import json
import logging
import zipfile
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any, Literal, cast

import pandas as pd
from openpyxl.utils.exceptions import InvalidFileException

logger = logging.getLogger(__name__)

DELIMITED_SUFFIXES = (".csv", ".tsv", ".txt")
WORKBOOK_SUFFIXES = (".xlsx", ".xlsm", ".xltx", ".xltm")
LEGACY_WORKBOOK_SUFFIX = ".xls"


class DecodeError(ValueError):
    """The file could not be read as a supported spreadsheet."""


@dataclass(frozen=True)
class RawSheet:
    """One decoded worksheet: its name and untyped header→cell rows.

    For delimited text the single pseudo-sheet is named after the file.
    """

    name: str
    rows: list[dict[str, Any]] = field(default_factory=list)
    from_workbook: bool = True


# ── Decoding ─────────────────────────────────────────────────────


def _is_blank(value: Any) -> bool:
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _cell_value(value: Any) -> Any:
    if isinstance(value, (str, bytes)):
        return value
    item = getattr(value, "item", None)
    if callable(item):
        converted = item()
        if isinstance(converted, (str, int, float, bool)):
            return converted
    return value


def _frame_to_rows(df: pd.DataFrame) -> list[dict[str, Any]]:
    """Convert *df* into row mappings, dropping empty cells and blank rows."""
    rows: list[dict[str, Any]] = []
    for record in df.to_dict(orient="records"):
        row = {
            str(header): _cell_value(value)
            for header, value in record.items()
            if not _is_blank(value)
        }
        if row:
            rows.append(row)
    return rows


def _read_delimited(data: bytes, file_name: str, delimiter: str | None) -> pd.DataFrame:
    if delimiter is None and file_name.lower().endswith(".tsv"):
        delimiter = "\t"
    sep = delimiter if delimiter else None
    engine: Literal["c", "python"] = "c" if delimiter else "python"
    last_exc: Exception | None = None
    for encoding in ("utf-8-sig", "utf-8", "latin-1"):
        try:
            return pd.read_csv(
                io.BytesIO(data),
                dtype="string",
                sep=sep,
                engine=engine,
                encoding=encoding,
                encoding_errors="strict",
                keep_default_na=False,
                na_values=[""],
            )
        except pd.errors.EmptyDataError:
            return pd.DataFrame()
        except (UnicodeDecodeError, pd.errors.ParserError, csv.Error) as exc:
            last_exc = exc
    raise DecodeError(f"Could not read {file_name} (decode or parse failed)") from last_exc


def _read_workbook(data: bytes, file_name: str, engine: str) -> dict[str, pd.DataFrame]:
    read_excel = cast(Callable[..., dict[str, pd.DataFrame]], getattr(pd, "read_excel"))
    try:
        return read_excel(
            io.BytesIO(data),
            sheet_name=None,
            engine=engine,
            keep_default_na=False,
            na_values=[""],
        )
    except ImportError as exc:
        raise DecodeError(
            f"Unsupported {Path(file_name).suffix} input unless '{engine}' is installed. "
            f"Either convert to .xlsx or add dependency: pip install {engine}"
        ) from exc
    except (ValueError, KeyError, OSError, zipfile.BadZipFile, InvalidFileException) as exc:
        raise DecodeError(f"Could not read workbook {file_name}: {exc}") from exc


def decode(data: bytes, file_name: str, delimiter: str | None = None) -> list[RawSheet]:
    """Decode *data* into one :class:`RawSheet` per worksheet, in sheet order.

    The format is chosen from the suffix of *file_name*. Empty sheets yield
    an empty row list.

    Raises
    ------
    DecodeError
        If the suffix is not supported or the bytes cannot be parsed.
    """
    name = Path(file_name).name
    suffix = Path(name).suffix.lower()

    if suffix in DELIMITED_SUFFIXES:
        df = _read_delimited(data, name, delimiter)
        return [RawSheet(name=name, rows=_frame_to_rows(df), from_workbook=False)]

    if suffix in WORKBOOK_SUFFIXES:
        frames = _read_workbook(data, name, "openpyxl")
    elif suffix == LEGACY_WORKBOOK_SUFFIX:
        frames = _read_workbook(data, name, "xlrd")
    else:
        raise DecodeError(
            f"Unsupported file type: {suffix!r}. Use .csv, .tsv, .xlsx, or .xls"
        )

    sheets = [
        RawSheet(name=str(sheet_name), rows=_frame_to_rows(df))
        for sheet_name, df in frames.items()
    ]
    logger.debug("Decoded %s: %d worksheet(s)", name, len(sheets))
    return sheets


def load_file(path: Path, delimiter: str | None = None) -> list[RawSheet]:
    """Read *path* from disk and decode it.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    DecodeError
        If *path* is a directory, unreadable, or not a supported spreadsheet.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")
    if path.is_dir():
        raise DecodeError(f"Input path is a directory, not a file: {path}")
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise DecodeError(f"Cannot read {path}: {exc}") from exc
    return decode(data, path.name, delimiter=delimiter)


def file_digest(path: Path) -> str:
    """Return the hex SHA-256 digest of *path*."""
    h = hashlib.sha256()
    with open(path, "rb") as fh:
        for chunk in iter(lambda: fh.read(8192), b""):
            h.update(chunk)
    return h.hexdigest()


# ── Writing ──────────────────────────────────────────────────────


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Path):
        return str(obj)
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    model_dump = getattr(obj, "model_dump", None)
    if callable(model_dump):
        return model_dump()
    item = getattr(obj, "item", None)
    if callable(item):
        converted = item()
        if isinstance(converted, (str, int, float, bool)) or converted is None:
            return converted
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def write_json(path: Path, data: Any) -> Path:
    """Write *data* as pretty-printed JSON to *path* (atomic + deterministic)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    payload = json.dumps(
        data,
        indent=2,
        sort_keys=True,
        ensure_ascii=False,
        default=_json_default,
    ) + "\n"
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(payload, encoding="utf-8")
    tmp_path.replace(path)
    return path
