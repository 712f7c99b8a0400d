# ============================== TLE INGEST STANDARD HEADER ==============================
# Script Name: fetcher_common.py
# Last Updated (UTC): 2026-10-19
# Update Summary:
# - Shared adapter plumbing: HTTP with bounded timeouts, block parsing, fetch→persist step.
# Description:
# - Purpose: Everything the per-source fetchers have in common. Source-specific text
#   munging (names, spacing quirks) stays in each fetcher module.
# - Primary Inputs:
#   * IngestSettings (timeouts, user agent), an optional injected requests.Session
# - Primary Outputs:
#   * SourceBatch (raw bytes + ParsedSatellite records + ErrorLogEntry list)
# - Data Handling Notes:
#   * Per-block parse errors never raise; they ride along in SourceBatch.errors.
#   * Transport/auth/empty failures raise and become a cycle failure upstream.
# =========================================================================================

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Iterable, Iterator, List, Optional, Tuple

import requests

from tle_engine.types import ErrorLogEntry, ParsedSatellite, SourceId
from tle_ingest.app.errors import EmptyResultError, TLEParseError, TransportError
from tle_ingest.app.tle_parser import build_record
from tle_ingest.app.utils import log_error_and_continue
from tle_ingest.app.utils_time import now_utc
from tle_ingest.settings import IngestSettings

LOG = logging.getLogger(__name__)


@dataclass
class ElementBlock:
    """One object's lines as cut from a payload, before parsing."""
    identifier: str
    name: str
    line1: str
    line2: str


@dataclass
class SourceBatch:
    source: SourceId
    raw: bytes
    block_count: int
    records: List[ParsedSatellite] = field(default_factory=list)
    errors: List[ErrorLogEntry] = field(default_factory=list)


def parse_blocks(
    source: SourceId,
    blocks: Iterable[ElementBlock],
    clock: Callable[[], datetime] = now_utc,
) -> Tuple[List[ParsedSatellite], List[ErrorLogEntry]]:
    """Parse every block; a bad block becomes an ErrorLogEntry and the loop moves on."""
    records: List[ParsedSatellite] = []
    errors: List[ErrorLogEntry] = []
    for block in blocks:
        try:
            records.append(build_record(source.value, block.name, block.line1, block.line2))
        except TLEParseError as e:
            LOG.debug(f"[{source.value}] Error parsing TLE ({block.identifier}): {e}")
            errors.append(ErrorLogEntry(
                source=source.value,
                identifier=block.identifier,
                message=f"Error parsing TLE: {e}",
                timestamp=clock(),
            ))
    return records, errors


def persist_batch(batch: SourceBatch, sink) -> None:
    """
    Raw snapshot first, then per-object errors, then the parsed snapshot.
    Zero usable records keeps the previous parsed snapshot and fails the cycle.
    """
    src = batch.source.value
    sink.save_raw(src, batch.raw)
    LOG.info(f"✅ [{src}] raw snapshot saved ({len(batch.raw)} bytes)")

    for entry in batch.errors:
        try:
            sink.append_error(entry)
        except Exception as e:
            log_error_and_continue(f"[{src}] could not append to error log", e)

    if not batch.records:
        raise EmptyResultError(
            f"{src}: 0 usable objects out of {batch.block_count} returned"
        )
    sink.save_parsed(src, batch.records)
    LOG.info(f"✅ [{src}] {len(batch.records)} parsed TLEs saved "
             f"({len(batch.errors)} parse errors)")


class SourceAdapter:
    """
    One upstream source. Subclasses implement fetch(); run() adds persistence.
    Pass `session` to reuse (or stub) the HTTP session.
    """
    source: SourceId

    def __init__(self, settings: IngestSettings,
                 session: Optional[requests.Session] = None,
                 clock: Callable[[], datetime] = now_utc):
        self.settings = settings
        self._session = session
        self.clock = clock

    @contextmanager
    def http_session(self) -> Iterator[requests.Session]:
        if self._session is not None:
            yield self._session
            return
        with requests.Session() as s:
            s.headers.update({"User-Agent": self.settings.user_agent})
            yield s

    def request(self, session, method: str, url: str, **kwargs) -> requests.Response:
        """Single HTTP call with a finite timeout; non-2xx → TransportError."""
        kwargs.setdefault("timeout", self.settings.http_timeout_s)
        try:
            resp = session.request(method, url, **kwargs)
        except requests.RequestException as e:
            raise TransportError(f"{method} {url} failed: {e}")
        if not 200 <= resp.status_code < 300:
            raise TransportError(
                f"{method} {url} → HTTP {resp.status_code} {getattr(resp, 'reason', '')}".rstrip(),
                status_code=resp.status_code,
            )
        return resp

    def fetch(self) -> SourceBatch:
        raise NotImplementedError

    def run(self, sink) -> SourceBatch:
        batch = self.fetch()
        persist_batch(batch, sink)
        return batch
