from datetime import datetime, timedelta
from typing import Iterable, List, Mapping, Optional

from .types import RefreshState, SourceId

# Minimum interval between successful refreshes.
DEFAULT_CADENCE: Mapping[SourceId, timedelta] = {
    SourceId.SPACETRACK: timedelta(hours=24),
    SourceId.CELESTRAK: timedelta(hours=1),
    SourceId.SATNOGS: timedelta(hours=1),
}

# Daily sources first, then hourly.
PRIORITY_ORDER: List[SourceId] = [
    SourceId.SPACETRACK,
    SourceId.CELESTRAK,
    SourceId.SATNOGS,
]


def is_due(
    source: SourceId,
    state: RefreshState,
    now: datetime,
    cadence: Optional[Mapping[SourceId, timedelta]] = None,
) -> bool:
    """
    True when the source never succeeded, or when at least one full cadence
    interval has elapsed since its last success. No I/O.
    """
    cadence = DEFAULT_CADENCE if cadence is None else cadence
    last = state.last_success_for(source)
    if last is None:
        return True
    return (now - last) >= cadence[source]


def next_due_at(
    source: SourceId,
    state: RefreshState,
    cadence: Optional[Mapping[SourceId, timedelta]] = None,
) -> Optional[datetime]:
    """Earliest time the source becomes due again; None if due already (never refreshed)."""
    cadence = DEFAULT_CADENCE if cadence is None else cadence
    last = state.last_success_for(source)
    if last is None:
        return None
    return last + cadence[source]


def ordered_sources(enabled: Iterable[SourceId]) -> List[SourceId]:
    """Restrict PRIORITY_ORDER to the enabled sources, keeping its order."""
    wanted = set(enabled)
    return [s for s in PRIORITY_ORDER if s in wanted]


def due_sources(
    state: RefreshState,
    now: datetime,
    enabled: Iterable[SourceId],
    cadence: Optional[Mapping[SourceId, timedelta]] = None,
) -> List[SourceId]:
    return [s for s in ordered_sources(enabled) if is_due(s, state, now, cadence)]
