# fetcher_satnogs.py - SatNOGS DB TLE endpoint (JSON)
# Last Updated (UTC): 2026-10-19
#
# External Data Sources:
# - SatNOGS DB /api/tle/?format=json (no auth), hourly cadence.
#
# Data Handling Notes:
# - Payload is a JSON array of {tle0, tle1, tle2, norad_cat_id, ...}.
# - tle0 carries a leading "0 " marker (3LE style); stripped here, SatNOGS only.

import logging
from typing import Optional

from tle_engine.types import ErrorLogEntry, SourceId
from tle_ingest.app.errors import EmptyResultError, TransportError
from tle_ingest.app.fetcher_common import ElementBlock, SourceAdapter, SourceBatch, parse_blocks

LOG = logging.getLogger(__name__)


def normalize_satnogs_name(tle0: Optional[str], ordinal: int) -> str:
    """'0 ISS (ZARYA)' -> 'ISS (ZARYA)'; empty -> SATNOGS_SAT_<ordinal>."""
    name = (tle0 or "").strip()
    if name.startswith("0 "):
        name = name[2:].strip()
    return name or f"SATNOGS_SAT_{ordinal}"


class SatNOGSAdapter(SourceAdapter):
    source = SourceId.SATNOGS

    def fetch(self) -> SourceBatch:
        with self.http_session() as session:
            resp = self.request(session, "GET", self.settings.satnogs_url,
                                headers={"Accept": "application/json"})

        try:
            satellites = resp.json()
        except ValueError as e:
            raise TransportError(f"SatNOGS returned undecodable JSON: {e}")
        if not isinstance(satellites, list):
            raise TransportError(f"SatNOGS returned {type(satellites).__name__}, expected a list")
        if not satellites or not satellites[0]:
            raise EmptyResultError("No SatNOGS satellites found")

        blocks = []
        errors = []
        for ordinal, sat in enumerate(satellites, start=1):
            if not isinstance(sat, dict):
                errors.append(ErrorLogEntry(self.source.value, f"entry {ordinal}",
                                            "Entry is not an object", self.clock()))
                continue
            norad = sat.get("norad_cat_id")
            blocks.append(ElementBlock(
                identifier=f"norad: {norad}" if norad is not None else f"entry {ordinal}",
                name=normalize_satnogs_name(sat.get("tle0"), ordinal),
                line1=(sat.get("tle1") or "").strip(),
                line2=(sat.get("tle2") or "").strip(),
            ))

        records, parse_errors = parse_blocks(self.source, blocks, self.clock)
        errors.extend(parse_errors)

        LOG.info(f"[satnogs] {len(satellites)} entries, {len(records)} parsed, {len(errors)} errors")
        return SourceBatch(
            source=self.source,
            raw=resp.content,
            block_count=len(satellites),
            records=records,
            errors=errors,
        )
