"""roster-intake — Classify and validate client, worker and task rosters."""

__version__ = "0.1.0"
