from __future__ import annotations

import pytest

from roster_intake.classify import CLASSIFICATION_RULES, classify
from roster_intake.models import EntityKind


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("Clients", EntityKind.CLIENT),
        ("clients.csv", EntityKind.CLIENT),
        ("WORKERS", EntityKind.WORKER),
        ("worker_roster.xlsx", EntityKind.WORKER),
        ("Tasks", EntityKind.TASK),
        ("q3_tasks.csv", EntityKind.TASK),
    ],
)
def test_classify_matches_marker_substrings(name: str, expected: EntityKind) -> None:
    assert classify(name) is expected


def test_client_wins_over_worker_when_both_markers_present() -> None:
    assert classify("ClientWorkerList") is EntityKind.CLIENT
    assert classify("WorkerClientList") is EntityKind.CLIENT


def test_worker_wins_over_tasks() -> None:
    assert classify("worker_tasks") is EntityKind.WORKER


@pytest.mark.parametrize("name", ["Sheet1", "task", "Task List", "", "customers.csv"])
def test_unmatched_names_are_unclassified(name: str) -> None:
    assert classify(name) is None


def test_rule_order_is_client_worker_tasks() -> None:
    assert [kind for _marker, kind in CLASSIFICATION_RULES] == [
        EntityKind.CLIENT,
        EntityKind.WORKER,
        EntityKind.TASK,
    ]
