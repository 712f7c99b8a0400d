# fetcher_celestrak.py - CelesTrak GP element sets (3-line TLE)
# Last Updated (UTC): 2026-10-19
#
# External Data Sources:
# - CelesTrak gp.php GROUP=active FORMAT=tle (no auth), hourly cadence.
#
# Data Handling Notes:
# - Repeating 3-line blocks (name, line1, line2); the name line is the record name.
# - A trailing incomplete block is logged as a parse error, not dropped silently.

import logging
from typing import List, Tuple

from tle_engine.types import ErrorLogEntry, SourceId
from tle_ingest.app.errors import EmptyResultError
from tle_ingest.app.fetcher_common import ElementBlock, SourceAdapter, SourceBatch, parse_blocks
from tle_ingest.app.tle_parser import split_lines

LOG = logging.getLogger(__name__)


def three_line_blocks(lines: List[str]) -> Tuple[List[ElementBlock], List[str]]:
    """Cut (name, line1, line2) blocks. Returns blocks and leftover lines."""
    blocks = []
    full = len(lines) - len(lines) % 3
    for i in range(0, full, 3):
        name = lines[i].strip()
        blocks.append(ElementBlock(
            identifier=f"id: {i}, name: {name}",
            name=name,
            line1=lines[i + 1],
            line2=lines[i + 2],
        ))
    return blocks, lines[full:]


class CelesTrakAdapter(SourceAdapter):
    source = SourceId.CELESTRAK

    def fetch(self) -> SourceBatch:
        with self.http_session() as session:
            resp = self.request(session, "GET", self.settings.celestrak_url)

        lines = split_lines(resp.text)
        if not lines:
            raise EmptyResultError("No CelesTrak TLEs returned")

        blocks, leftover = three_line_blocks(lines)
        records, errors = parse_blocks(self.source, blocks, self.clock)
        if leftover:
            errors.append(ErrorLogEntry(
                source=self.source.value,
                identifier=f"id: {len(lines) - len(leftover)}",
                message=f"Incomplete trailing block ({len(leftover)} line(s))",
                timestamp=self.clock(),
            ))

        LOG.info(f"[celestrak] {len(blocks)} blocks, {len(records)} parsed, {len(errors)} errors")
        return SourceBatch(
            source=self.source,
            raw=resp.content,
            block_count=len(blocks) + (1 if leftover else 0),
            records=records,
            errors=errors,
        )
