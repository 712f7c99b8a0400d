from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Dict, List, Mapping, Optional

# Columns of an orbit snapshot; altitude is km above the WGS84 ellipsoid.
SNAPSHOT_COLUMNS = ["name", "latitude", "longitude", "altitude", "snapshot_utc"]


class SourceId(str, Enum):
    """
    Upstream element-set providers. The value doubles as the file/table key.
    """
    SPACETRACK = "spacetrack"   # credential-gated space data center (Space-Track.org)
    CELESTRAK = "celestrak"
    SATNOGS = "satnogs"


class SourceStatus(str, Enum):
    SUCCESS = "success"
    SKIPPED = "skipped"     # not due yet
    FAILED = "failed"


@dataclass(frozen=True)
class OrbitalElements:
    """
    Mean elements decoded from one TLE line pair. Angles in degrees.
    """
    norad_id: int
    classification: str
    intl_designator: str
    epoch_utc: datetime
    inclination_deg: float
    raan_deg: float
    eccentricity: float
    arg_perigee_deg: float
    mean_anomaly_deg: float
    mean_motion_rev_day: float
    bstar: float
    rev_number: int
    element_set_no: int


@dataclass(frozen=True)
class ParsedSatellite:
    source: str
    name: str
    line1: str
    line2: str
    elements: OrbitalElements

    def as_row(self) -> Dict[str, object]:
        e = self.elements
        return {
            "source": self.source,
            "name": self.name,
            "norad_id": e.norad_id,
            "classification": e.classification,
            "intl_designator": e.intl_designator,
            "epoch_utc": e.epoch_utc.isoformat(),
            "inclination_deg": e.inclination_deg,
            "raan_deg": e.raan_deg,
            "eccentricity": e.eccentricity,
            "arg_perigee_deg": e.arg_perigee_deg,
            "mean_anomaly_deg": e.mean_anomaly_deg,
            "mean_motion_rev_day": e.mean_motion_rev_day,
            "bstar": e.bstar,
            "rev_number": e.rev_number,
            "element_set_no": e.element_set_no,
            "tle_line1": self.line1,
            "tle_line2": self.line2,
        }


@dataclass(frozen=True)
class ErrorLogEntry:
    """
    Append-only diagnostic. Never read back by the scheduler.
    """
    source: str
    identifier: str
    message: str
    timestamp: datetime

    def as_line(self) -> str:
        return f"{self.timestamp.isoformat()} [{self.source}] {self.identifier}: {self.message}"


@dataclass(frozen=True)
class RefreshState:
    """
    Last successful refresh per source. Absent key = never refreshed.
    Updates return a new state; the scheduler swaps it in after each cycle.
    """
    last_success: Mapping[SourceId, datetime] = field(default_factory=dict)

    def last_success_for(self, source: SourceId) -> Optional[datetime]:
        return self.last_success.get(source)

    def mark_success(self, source: SourceId, when: datetime) -> "RefreshState":
        updated = dict(self.last_success)
        updated[source] = when
        return replace(self, last_success=updated)


@dataclass
class SourceOutcome:
    source: SourceId
    status: SourceStatus
    records: int = 0
    errors: int = 0
    message: Optional[str] = None


@dataclass
class CycleReport:
    cycle_no: int
    started_utc: datetime
    outcomes: List[SourceOutcome] = field(default_factory=list)

    def outcome_for(self, source: SourceId) -> Optional[SourceOutcome]:
        for o in self.outcomes:
            if o.source == source:
                return o
        return None

    @property
    def failed(self) -> List[SourceId]:
        return [o.source for o in self.outcomes if o.status == SourceStatus.FAILED]
