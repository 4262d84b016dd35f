"""Worksheet classification — map a sheet or file name to an entity kind."""

from __future__ import annotations

from roster_intake.models import EntityKind

# Checked in order; the first substring found wins.
CLASSIFICATION_RULES: tuple[tuple[str, EntityKind], ...] = (
    ("client", EntityKind.CLIENT),
    ("worker", EntityKind.WORKER),
    ("tasks", EntityKind.TASK),
)


def classify(name: str) -> EntityKind | None:
    """Return the entity kind whose marker occurs in *name*, or ``None``.

    Matching is case-insensitive substring containment, so ``"ClientWorkerList"``
    is a client sheet and ``"task"`` (singular) matches nothing.
    """
    lowered = name.lower()
    for marker, kind in CLASSIFICATION_RULES:
        if marker in lowered:
            return kind
    return None
