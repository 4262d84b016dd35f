"""Record schemas — one pydantic model per entity kind, plus row validation."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_core import ErrorDetails

from roster_intake.models import EntityKind

# ── Record models ────────────────────────────────────────────────


def _reject_constant(token: str) -> Any:
    raise ValueError(f"{token} is not valid JSON")


class _RosterRecord(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", allow_inf_nan=False)


class ClientRecord(_RosterRecord):
    ClientID: str = Field(min_length=1, title="Client ID")
    ClientName: str = Field(min_length=1, title="Name")
    PriorityLevel: float = Field(ge=1, le=5, title="Priority")
    RequestedTaskIDs: str = Field(title="Tasks")
    GroupTag: str = Field(title="Group")
    AttributesJSON: str = Field(title="Attributes JSON")

    @field_validator("AttributesJSON")
    @classmethod
    def _must_parse_as_json(cls, value: str) -> str:
        try:
            json.loads(value, parse_constant=_reject_constant)
        except ValueError:
            raise ValueError("AttributesJSON must be valid JSON") from None
        return value


class WorkerRecord(_RosterRecord):
    WorkerID: str = Field(min_length=1, title="Worker ID")
    WorkerName: str = Field(min_length=1, title="Name")
    Skills: str = Field(title="Skills")
    AvailableSlots: str = Field(title="Slots")
    MaxLoadPerPhase: float = Field(title="Max Load")
    WorkerGroup: str = Field(title="Group")
    QualificationLevel: float = Field(title="Qualification")


class TaskRecord(_RosterRecord):
    TaskID: str = Field(title="Task ID")
    TaskName: str = Field(title="Name")
    Category: str = Field(title="Category")
    Duration: float = Field(ge=1, title="Duration")
    RequiredSkills: str = Field(title="Skills")
    PreferredPhases: str = Field(title="Phases")
    MaxConcurrent: float = Field(title="Max Concurrent")


Record = Union[ClientRecord, WorkerRecord, TaskRecord]

SCHEMAS: dict[EntityKind, type[_RosterRecord]] = {
    EntityKind.CLIENT: ClientRecord,
    EntityKind.WORKER: WorkerRecord,
    EntityKind.TASK: TaskRecord,
}


def field_names(kind: EntityKind) -> list[str]:
    """Declared fields of *kind*, in column order."""
    return list(SCHEMAS[kind].model_fields)


def field_labels(kind: EntityKind) -> dict[str, str]:
    """Map each field of *kind* to its human-readable column header."""
    return {
        name: info.title or name for name, info in SCHEMAS[kind].model_fields.items()
    }


# ── Validation ───────────────────────────────────────────────────


@dataclass(frozen=True)
class RowOutcome:
    """Tagged result of validating one raw row.

    Exactly one side is populated: ``record`` on success, ``violations``
    on failure.
    """

    record: Record | None = None
    violations: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return self.record is not None


def _describe(error: ErrorDetails) -> str:
    loc = error["loc"]
    name = str(loc[0]) if loc else "row"
    kind = error["type"]
    ctx = error.get("ctx") or {}

    if kind in {"missing", "string_too_short"}:
        return f"{name} is required"
    if kind in {"float_parsing", "float_type", "finite_number"}:
        return f"{name} must be a number"
    if kind == "greater_than_equal":
        return f"{name} must be at least {ctx['ge']}"
    if kind == "less_than_equal":
        return f"{name} must be at most {ctx['le']}"
    if kind in {"string_type", "string_unicode"}:
        return f"{name} must be text"
    if kind == "value_error" and "error" in ctx:
        return str(ctx["error"])
    return f"{name}: {error['msg']}"


def validate_row(kind: EntityKind, raw_row: Mapping[str, Any]) -> RowOutcome:
    """Validate *raw_row* against the schema for *kind*.

    All field violations are collected; a row is either accepted whole or
    rejected whole.
    """
    schema = SCHEMAS[EntityKind(kind)]
    try:
        record = schema.model_validate(dict(raw_row))
    except ValidationError as exc:
        return RowOutcome(violations=tuple(_describe(err) for err in exc.errors()))
    return RowOutcome(record=record)  # type: ignore[arg-type]
