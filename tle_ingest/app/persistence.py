# persistence.py - Persistence sink contract + factory
#
# The scheduler, fetchers and propagator depend only on these four writes.
# Each call either succeeds or raises; no partial state is reported as success.

import logging
from typing import List, Protocol

import pandas as pd

from tle_engine.types import ErrorLogEntry, ParsedSatellite
from tle_ingest.settings import IngestSettings

LOG = logging.getLogger(__name__)


class PersistenceSink(Protocol):
    def save_raw(self, source: str, raw: bytes) -> None: ...

    def save_parsed(self, source: str, records: List[ParsedSatellite]) -> None: ...

    def append_error(self, entry: ErrorLogEntry) -> None: ...

    def save_snapshot(self, snapshot_df: pd.DataFrame) -> None: ...


def build_sink(settings: IngestSettings) -> PersistenceSink:
    """SQL sink when DATABASE_URL is set, file sink in TLE_DATA_DIR otherwise."""
    if settings.database_url:
        from tle_ingest.app.database import SqlSink
        LOG.info("Persistence: SQL database")
        return SqlSink(settings.database_url)

    from tle_ingest.app.file_store import FileSink
    LOG.info(f"Persistence: files under {settings.data_dir}")
    return FileSink(settings.data_dir)
