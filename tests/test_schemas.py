"""Tests for per-kind record schemas and row validation messages."""

from __future__ import annotations

from typing import Any

import pytest

from roster_intake.models import EntityKind
from roster_intake.schemas import (
    ClientRecord,
    TaskRecord,
    WorkerRecord,
    field_labels,
    field_names,
    validate_row,
)


def _client_row(**overrides: Any) -> dict[str, Any]:
    row: dict[str, Any] = {
        "ClientID": "C1",
        "ClientName": "Acme",
        "PriorityLevel": 3,
        "RequestedTaskIDs": "T1;T2",
        "GroupTag": "VIP",
        "AttributesJSON": "{}",
    }
    row.update(overrides)
    return row


def _worker_row(**overrides: Any) -> dict[str, Any]:
    row: dict[str, Any] = {
        "WorkerID": "W1",
        "WorkerName": "Ada",
        "Skills": "python,sql",
        "AvailableSlots": "[1,2]",
        "MaxLoadPerPhase": "2",
        "WorkerGroup": "GroupA",
        "QualificationLevel": 4,
    }
    row.update(overrides)
    return row


def _task_row(**overrides: Any) -> dict[str, Any]:
    row: dict[str, Any] = {
        "TaskID": "T1",
        "TaskName": "Audit",
        "Category": "Ops",
        "Duration": "2",
        "RequiredSkills": "sql",
        "PreferredPhases": "1-3",
        "MaxConcurrent": 1,
    }
    row.update(overrides)
    return row


def test_valid_client_row_is_coerced_into_record() -> None:
    outcome = validate_row(EntityKind.CLIENT, _client_row(PriorityLevel="3"))

    assert outcome.ok
    assert outcome.violations == ()
    assert isinstance(outcome.record, ClientRecord)
    assert outcome.record.PriorityLevel == 3
    assert isinstance(outcome.record.PriorityLevel, float)


def test_numeric_string_and_number_yield_identical_records() -> None:
    from_string = validate_row(EntityKind.WORKER, _worker_row(MaxLoadPerPhase="2"))
    from_number = validate_row(EntityKind.WORKER, _worker_row(MaxLoadPerPhase=2))

    assert isinstance(from_string.record, WorkerRecord)
    assert from_string.record == from_number.record


def test_unknown_columns_are_ignored() -> None:
    outcome = validate_row(EntityKind.TASK, _task_row(Notes="ignored"))

    assert isinstance(outcome.record, TaskRecord)
    assert "Notes" not in outcome.record.model_dump()


@pytest.mark.parametrize("value", [None, ""])
def test_missing_or_empty_required_string_reports_required(value: str | None) -> None:
    row = _client_row(ClientID=value)
    if value is None:
        del row["ClientID"]

    outcome = validate_row(EntityKind.CLIENT, row)

    assert not outcome.ok
    assert outcome.record is None
    assert outcome.violations == ("ClientID is required",)


def test_priority_above_range_is_rejected() -> None:
    outcome = validate_row(EntityKind.CLIENT, _client_row(PriorityLevel=9))

    assert outcome.violations == ("PriorityLevel must be at most 5",)


def test_priority_below_range_is_rejected() -> None:
    outcome = validate_row(EntityKind.CLIENT, _client_row(PriorityLevel="0"))

    assert outcome.violations == ("PriorityLevel must be at least 1",)


def test_task_duration_must_be_at_least_one() -> None:
    outcome = validate_row(EntityKind.TASK, _task_row(Duration=0.5))

    assert outcome.violations == ("Duration must be at least 1",)


@pytest.mark.parametrize("value", ["lots", "nan", "inf"])
def test_non_numeric_values_fail_coercion(value: str) -> None:
    outcome = validate_row(EntityKind.WORKER, _worker_row(QualificationLevel=value))

    assert outcome.violations == ("QualificationLevel must be a number",)


def test_invalid_json_attributes_are_rejected() -> None:
    outcome = validate_row(EntityKind.CLIENT, _client_row(AttributesJSON="not-json"))

    assert outcome.violations == ("AttributesJSON must be valid JSON",)


@pytest.mark.parametrize("value", ["NaN", "Infinity", "-Infinity", '{"score": NaN}', "[Infinity]"])
def test_non_standard_json_constants_are_rejected(value: str) -> None:
    outcome = validate_row(EntityKind.CLIENT, _client_row(AttributesJSON=value))

    assert outcome.violations == ("AttributesJSON must be valid JSON",)


@pytest.mark.parametrize("value", ['{"tier": "gold"}', "[1, 2]", "42", '"text"', "null"])
def test_any_parseable_json_is_accepted(value: str) -> None:
    assert validate_row(EntityKind.CLIENT, _client_row(AttributesJSON=value)).ok


def test_numeric_cell_in_text_field_is_rejected() -> None:
    outcome = validate_row(EntityKind.WORKER, _worker_row(WorkerGroup=7))

    assert outcome.violations == ("WorkerGroup must be text",)


def test_every_violation_on_a_row_is_reported_together() -> None:
    row = _client_row(ClientName="", PriorityLevel=9, AttributesJSON="{")
    del row["GroupTag"]

    outcome = validate_row(EntityKind.CLIENT, row)

    assert set(outcome.violations) == {
        "ClientName is required",
        "PriorityLevel must be at most 5",
        "GroupTag is required",
        "AttributesJSON must be valid JSON",
    }


def test_task_identifiers_may_be_empty() -> None:
    assert validate_row(EntityKind.TASK, _task_row(TaskID="", TaskName="")).ok


def test_field_names_follow_declaration_order() -> None:
    assert field_names(EntityKind.TASK) == [
        "TaskID",
        "TaskName",
        "Category",
        "Duration",
        "RequiredSkills",
        "PreferredPhases",
        "MaxConcurrent",
    ]


def test_field_labels_are_human_readable() -> None:
    labels = field_labels(EntityKind.CLIENT)

    assert labels["ClientID"] == "Client ID"
    assert labels["PriorityLevel"] == "Priority"
    assert labels["AttributesJSON"] == "Attributes JSON"
    assert field_labels(EntityKind.WORKER)["MaxLoadPerPhase"] == "Max Load"
