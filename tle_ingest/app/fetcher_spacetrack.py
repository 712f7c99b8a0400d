# ============================== TLE INGEST STANDARD HEADER ==============================
# Script Name: fetcher_spacetrack.py
# Last Updated (UTC): 2026-10-19
# Update Summary:
# - Space-Track.org fetcher: cookie login + tle_latest query, 2-line blocks.
# Description:
# - Purpose: Daily pull of the full latest-element catalog from the credential-gated
#   space data center.
# - Primary Inputs:
#   * SPACETRACK_USERNAME / SPACETRACK_PASSWORD via IngestSettings
# - Primary Outputs:
#   * SourceBatch with records named SPACETRACK_SAT_<n> (1-based, input order)
# - External Data Sources:
#   * POST /ajaxauth/login (form: identity, password) -> session cookie
#   * GET  /basicspacedata/query/class/tle_latest/ORDINAL/1/NORAD_CAT_ID/>0/format/tle
# - Data Handling Notes:
#   * No name lines upstream, so names are synthesized from the pair index.
#   * Line 1 can carry stray double spaces before a letter; removed before parsing.
#   * Alignment policy: any odd line count or a pair not starting '1'/'2' rejects the
#     whole batch (BatchAlignmentError) instead of guessing names.
# =========================================================================================

import logging
import re
from typing import List

from tle_engine.types import SourceId
from tle_ingest.app.errors import AuthError, BatchAlignmentError, EmptyResultError, TransportError
from tle_ingest.app.fetcher_common import ElementBlock, SourceAdapter, SourceBatch, parse_blocks
from tle_ingest.app.tle_parser import split_lines

LOG = logging.getLogger(__name__)

SYNTHETIC_NAME_PREFIX = "SPACETRACK_SAT"

_DOUBLE_SPACE_BEFORE_LETTER = re.compile(r" {2}(?=[A-Z])")


def normalize_spacetrack_line1(line1: str) -> str:
    """Drop the two-space artifact Space-Track leaves before uppercase fields."""
    return _DOUBLE_SPACE_BEFORE_LETTER.sub("", line1.strip())


def synthetic_name(ordinal: int) -> str:
    return f"{SYNTHETIC_NAME_PREFIX}_{ordinal}"


def two_line_blocks(lines: List[str]) -> List[ElementBlock]:
    """
    Strict (line1, line2) pairing. Raises BatchAlignmentError rather than
    shifting names onto the wrong objects.
    """
    if len(lines) % 2:
        raise BatchAlignmentError(
            f"Space-Track batch has {len(lines)} lines; expected an even count of line pairs"
        )
    blocks = []
    for i in range(0, len(lines), 2):
        first, second = lines[i], lines[i + 1]
        if not first.startswith("1") or not second.startswith("2"):
            raise BatchAlignmentError(
                f"Space-Track pair at line {i + 1} is not a line 1/line 2 pair "
                f"({first[:10]!r}, {second[:10]!r})"
            )
        ordinal = i // 2 + 1
        name = synthetic_name(ordinal)
        blocks.append(ElementBlock(
            identifier=f"line: {i + 1}, name: {name}",
            name=name,
            line1=normalize_spacetrack_line1(first),
            line2=second.strip(),
        ))
    return blocks


class SpaceTrackAdapter(SourceAdapter):
    source = SourceId.SPACETRACK

    def login(self, session) -> None:
        username = self.settings.spacetrack_username
        password = self.settings.spacetrack_password
        if not username or not password:
            raise AuthError("Please provide Space-Track.org credentials")

        try:
            resp = self.request(
                session, "POST", self.settings.spacetrack_login_url,
                data={"identity": username, "password": password},
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
        except TransportError as e:
            raise AuthError(f"Failed to authenticate with Space-Track.org: {e}",
                            status_code=e.status_code)
        if '"Login":"Failed"' in resp.text:
            raise AuthError("Failed to authenticate with Space-Track.org: login rejected")
        LOG.info("Authenticated with Space-Track.org...")

    def fetch(self) -> SourceBatch:
        with self.http_session() as session:
            self.login(session)
            # session cookie from login rides along on this request
            resp = self.request(session, "GET", self.settings.spacetrack_query_url)

        lines = split_lines(resp.text)
        if not lines:
            raise EmptyResultError("No Space-Track TLEs returned")

        blocks = two_line_blocks(lines)
        records, errors = parse_blocks(self.source, blocks, self.clock)

        LOG.info(f"[spacetrack] {len(blocks)} pairs, {len(records)} parsed, {len(errors)} errors")
        return SourceBatch(
            source=self.source,
            raw=resp.content,
            block_count=len(blocks),
            records=records,
            errors=errors,
        )
