# ============================== TLE INGEST STANDARD HEADER ==============================
# Script Name: tle_parser.py
# Last Updated (UTC): 2026-10-19
# Update Summary:
# - Element parser: TLE line pair -> OrbitalElements, or TLEParseError.
# Description:
# - Purpose: Validate the fixed-column layout and checksums, then let sgp4 decode the
#   mean elements. Shared by every fetcher and by the file loader of the propagator.
# - Primary Inputs:
#   * line1, line2 (69-column TLE lines; name line handled by the caller)
# - Primary Outputs:
#   * OrbitalElements / ParsedSatellite (tle_engine.types)
# - External Data Sources:
#   * None.
# - Data Handling Notes:
#   * A record is only built from a pair that passes every check. No partial records.
#   * Angles converted to degrees; mean motion to rev/day.
# =========================================================================================

import logging
import math
from typing import List

from sgp4.api import Satrec

from tle_engine.types import OrbitalElements, ParsedSatellite
from tle_ingest.app.errors import TLEParseError
from tle_ingest.app.utils_time import tle_epoch_to_utc

LOG = logging.getLogger(__name__)

TLE_LINE_LENGTH = 69
MINUTES_PER_DAY = 1440.0


def split_lines(text: str) -> List[str]:
    """Non-empty, whitespace-trimmed lines of a TLE payload."""
    return [l.strip() for l in text.splitlines() if l.strip()]


def tle_checksum_ok(line: str) -> bool:
    """Sum of digits + count('-'), mod 10, equals the last column."""
    line = line.rstrip()
    if not line:
        return False
    try:
        expected = int(line[-1])
    except ValueError:
        return False
    total = 0
    for ch in line[:-1]:
        if ch.isdigit():
            total += int(ch)
        elif ch == '-':
            total += 1
    return (total % 10) == expected


def _check_layout(line1: str, line2: str) -> None:
    for no, line in ((1, line1), (2, line2)):
        if len(line) != TLE_LINE_LENGTH:
            raise TLEParseError(f"line {no} has {len(line)} columns, expected {TLE_LINE_LENGTH}")
        if not line.startswith(f"{no} "):
            raise TLEParseError(f"line {no} does not start with '{no} '")
        if not tle_checksum_ok(line):
            raise TLEParseError(f"line {no} checksum mismatch")
    if line1[2:7] != line2[2:7]:
        raise TLEParseError(
            f"catalog numbers differ between lines ({line1[2:7].strip()} vs {line2[2:7].strip()})"
        )


def parse_tle(line1: str, line2: str) -> OrbitalElements:
    """
    Decode one TLE line pair. Raises TLEParseError on any layout, checksum or
    sgp4 initialization failure.
    """
    line1 = (line1 or "").rstrip()
    line2 = (line2 or "").rstrip()
    _check_layout(line1, line2)

    try:
        satrec = Satrec.twoline2rv(line1, line2)
    except (ValueError, IndexError) as e:
        raise TLEParseError(f"sgp4 rejected element set: {e}")
    if satrec.error != 0:
        raise TLEParseError(f"sgp4 initialization error code {satrec.error}")

    try:
        rev_number = int(line2[63:68].strip() or 0)
        element_set_no = int(line1[64:68].strip() or 0)
    except ValueError as e:
        raise TLEParseError(f"bad counter field: {e}")

    return OrbitalElements(
        norad_id=int(satrec.satnum),
        classification=line1[7].strip() or "U",
        intl_designator=line1[9:17].strip(),
        epoch_utc=tle_epoch_to_utc(satrec.epochyr, satrec.epochdays),
        inclination_deg=math.degrees(satrec.inclo),
        raan_deg=math.degrees(satrec.nodeo),
        eccentricity=float(satrec.ecco),
        arg_perigee_deg=math.degrees(satrec.argpo),
        mean_anomaly_deg=math.degrees(satrec.mo),
        mean_motion_rev_day=satrec.no_kozai * MINUTES_PER_DAY / (2.0 * math.pi),
        bstar=float(satrec.bstar),
        rev_number=rev_number,
        element_set_no=element_set_no,
    )


def build_record(source: str, name: str, line1: str, line2: str) -> ParsedSatellite:
    """Parse and attach the name. Raises TLEParseError."""
    elements = parse_tle(line1, line2)
    return ParsedSatellite(
        source=source,
        name=name,
        line1=line1.rstrip(),
        line2=line2.rstrip(),
        elements=elements,
    )
