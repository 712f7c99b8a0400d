# ============================== TLE INGEST STANDARD HEADER ==============================
# Script Name: sat_propagate.py
# Last Updated (UTC): 2026-10-19
# Update Summary:
# - Batch propagator: parsed TLEs + reference time -> geodetic snapshot.
# Description:
# - Purpose: Given parsed records and a timestamp (default: now), compute each object's
#   sub-satellite point and altitude, and persist the full set as one snapshot.
# - Primary Inputs:
#   * List[ParsedSatellite] (from a sink, or a 3-line TLE file via load_tle_file)
#   * when_utc (snapshot time)
# - Primary Outputs:
#   * snapshot_df columns: SNAPSHOT_COLUMNS = ['name','latitude','longitude','altitude','snapshot_utc'] (altitude in km)
#   * diagnostics: List[ErrorLogEntry] for objects that could not be propagated
# - External Data Sources:
#   * None. Uses provided TLEs; SGP4 via Skyfield.
# - Data Handling Notes:
#   * An object without a finite position AND velocity (decayed, bad elements) is
#     skipped with a diagnostic; the batch carries on.
#   * lon wrapped to [-180,180]; altitude in km above the WGS84 ellipsoid.
# =========================================================================================

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Tuple

import numpy as np
import pandas as pd

from skyfield.api import EarthSatellite, load, wgs84

from tle_engine.types import SNAPSHOT_COLUMNS, ErrorLogEntry, ParsedSatellite
from tle_ingest.app.errors import PropagationError, TLEParseError
from tle_ingest.app.tle_parser import build_record, split_lines
from tle_ingest.app.utils import describe_exception
from tle_ingest.app.utils_time import ensure_utc, now_utc

LOG = logging.getLogger(__name__)

PROPAGATOR_SOURCE = "propagator"

_TS = None


def _timescale():
    global _TS
    if _TS is None:
        _TS = load.timescale()
    return _TS


def propagate(record: ParsedSatellite, at_time_utc: datetime):
    """
    SGP4 state of one object at at_time_utc (Skyfield Geocentric, GCRS).
    Raises PropagationError if SGP4 reports an error or the state is not finite.
    """
    ts = _timescale()
    try:
        sat = EarthSatellite(record.line1, record.line2, record.name, ts)
    except Exception as e:
        raise PropagationError(f"Malformed TLE: {e}")
    geoc = sat.at(ts.from_datetime(at_time_utc))

    message = getattr(geoc, "message", None)
    position = np.asarray(geoc.position.km)
    velocity = np.asarray(geoc.velocity.km_per_s)
    if message or not (np.all(np.isfinite(position)) and np.all(np.isfinite(velocity))):
        raise PropagationError(message or "SGP4 returned no finite position/velocity")
    return geoc


def to_geodetic(geoc) -> Tuple[float, float, float]:
    """Return (lat_dd, lon_dd, alt_km). lon ∈ [-180,180]."""
    pos = wgs84.geographic_position_of(geoc)
    lat = float(pos.latitude.degrees)
    lon = float(((pos.longitude.degrees + 180) % 360) - 180)
    alt = float(pos.elevation.km)
    return (lat, lon, alt)


def propagate_records(
    records: List[ParsedSatellite],
    when_utc=None,
    propagate_fn: Callable = propagate,
    geodetic_fn: Callable = to_geodetic,
) -> Tuple[pd.DataFrame, List[ErrorLogEntry]]:
    """
    Propagate every record to when_utc (default: now). Unpropagatable objects are
    skipped with a diagnostic; never raises for a single object.
    """
    when = ensure_utc(when_utc) if when_utc is not None else now_utc()
    if when is None:
        raise ValueError(f"Invalid snapshot time: {when_utc!r}")

    rows = []
    diagnostics: List[ErrorLogEntry] = []
    for rec in records:
        try:
            state = propagate_fn(rec, when)
            if state is None:
                raise PropagationError("no position/velocity")
            lat, lon, alt = geodetic_fn(state)
        except PropagationError as e:
            LOG.warning(f"Propagation failed for satellite: {rec.name} ({e})")
            diagnostics.append(ErrorLogEntry(
                source=PROPAGATOR_SOURCE,
                identifier=rec.name,
                message=f"Propagation failed: {describe_exception(e)}",
                timestamp=now_utc(),
            ))
            continue
        rows.append({
            "name": rec.name,
            "latitude": lat,
            "longitude": lon,
            "altitude": alt,
            "snapshot_utc": when,
        })

    snapshot_df = pd.DataFrame(rows, columns=SNAPSHOT_COLUMNS)
    LOG.info(f"Propagated {len(snapshot_df)}/{len(records)} objects to {when.isoformat()}")
    return snapshot_df, diagnostics


def run_batch_propagation(records: List[ParsedSatellite], sink, when_utc=None,
                          propagate_fn: Callable = propagate) -> pd.DataFrame:
    """Propagate, overwrite the persisted snapshot, log the skipped objects."""
    snapshot_df, diagnostics = propagate_records(records, when_utc, propagate_fn=propagate_fn)
    sink.save_snapshot(snapshot_df)
    for entry in diagnostics:
        try:
            sink.append_error(entry)
        except Exception as e:
            LOG.error(f"❌ Could not append propagation diagnostic for {entry.identifier}: {e}")
    return snapshot_df


def load_tle_file(path, source: str = "file") -> Tuple[List[ParsedSatellite], List[ErrorLogEntry]]:
    """
    Read a 3-line TLE file (name, line1, line2 repeating). Bad blocks become
    ErrorLogEntry rows; an incomplete trailing block is reported the same way.
    """
    lines = split_lines(Path(path).read_text(encoding="utf-8"))
    records: List[ParsedSatellite] = []
    errors: List[ErrorLogEntry] = []
    for i in range(0, len(lines), 3):
        chunk = lines[i:i + 3]
        name = chunk[0]
        if len(chunk) < 3:
            errors.append(ErrorLogEntry(source, f"line: {i + 1}, name: {name}",
                                        "Incomplete trailing block", now_utc()))
            break
        try:
            records.append(build_record(source, name, chunk[1], chunk[2]))
        except TLEParseError as e:
            errors.append(ErrorLogEntry(source, f"line: {i + 1}, name: {name}",
                                        f"Error parsing TLE: {e}", now_utc()))
    return records, errors
