"""
TLE ingest decision engine (pure, flat layout)

No I/O here: cadence rules and the value types shared by the fetchers,
scheduler and sinks.

Public API:
- types.SourceId, types.RefreshState, types.ParsedSatellite, ...
- cadence.is_due
- cadence.due_sources
"""

from .types import (
    SNAPSHOT_COLUMNS,
    CycleReport,
    ErrorLogEntry,
    OrbitalElements,
    ParsedSatellite,
    RefreshState,
    SourceId,
    SourceOutcome,
    SourceStatus,
)
from .cadence import DEFAULT_CADENCE, PRIORITY_ORDER, is_due, next_due_at, due_sources, ordered_sources

__all__ = [
    "SNAPSHOT_COLUMNS",
    "CycleReport",
    "ErrorLogEntry",
    "OrbitalElements",
    "ParsedSatellite",
    "RefreshState",
    "SourceId",
    "SourceOutcome",
    "SourceStatus",
    "DEFAULT_CADENCE",
    "PRIORITY_ORDER",
    "is_due",
    "next_due_at",
    "due_sources",
    "ordered_sources",
]
