"""Ingestion report persistence."""

from __future__ import annotations

from pathlib import Path

from roster_intake.io import write_json
from roster_intake.models import IngestionReport, RunManifest


def write_ingestion_report(out_dir: Path, report: IngestionReport) -> Path:
    """Write ``ingestion_report.json`` into *out_dir* and return the path."""
    return write_json(out_dir / "ingestion_report.json", report.to_dict())


def write_manifest(out_dir: Path, manifest: RunManifest) -> Path:
    """Write ``run_manifest.json`` into *out_dir* and return the path."""
    return write_json(out_dir / "run_manifest.json", manifest.to_dict())
