#database.py - SQL persistence sink (SQLAlchemy)
#
# Each public method is one transaction: commit on success, rollback + re-raise on failure,
# so a failed write shows up as a failed cycle for that source.

import logging
from typing import Dict, List, Optional

import pandas as pd
from sqlalchemy import func

from tle_engine.types import SNAPSHOT_COLUMNS, ErrorLogEntry, ParsedSatellite
from tle_ingest.app.sql_models import (
    OrbitSnapshotPoint,
    TleErrorLog,
    TleRawSnapshot,
    TleRecord,
    make_session_factory,
)
from tle_ingest.app.tle_parser import build_record
from tle_ingest.app.utils_time import now_utc

LOG = logging.getLogger(__name__)



class SqlSink:
    def __init__(self, database_url: Optional[str] = None, session_factory=None):
        if session_factory is None:
            if not database_url:
                raise ValueError("SqlSink needs a database_url or a session_factory")
            session_factory = make_session_factory(database_url)
        self.SessionLocal = session_factory

    def _write(self, what: str, fn):
        session = self.SessionLocal()
        try:
            result = fn(session)
            session.commit()
            return result
        except Exception as e:
            session.rollback()
            logging.error(f"❌ Failed to save {what} to DB: {e}")
            raise
        finally:
            session.close()

    def save_raw(self, source: str, raw: bytes) -> None:
        """
        Replaces the stored raw payload for this source.
        """
        def _do(session):
            session.query(TleRawSnapshot).filter(TleRawSnapshot.source == source).delete()
            session.add(TleRawSnapshot(source=source, payload=raw, byte_count=len(raw),
                                       fetched_at=now_utc()))
        self._write(f"raw snapshot for {source}", _do)

    def save_parsed(self, source: str, records: List[ParsedSatellite]) -> None:
        """
        Replaces the parsed snapshot for this source in a single transaction.
        """
        fetched_at = now_utc()

        def _do(session):
            session.query(TleRecord).filter(TleRecord.source == source).delete()
            for rec in records:
                e = rec.elements
                session.add(TleRecord(
                    source=source,
                    name=rec.name,
                    norad_id=e.norad_id,
                    classification=e.classification,
                    intl_designator=e.intl_designator,
                    epoch_utc=e.epoch_utc,
                    inclination_deg=e.inclination_deg,
                    raan_deg=e.raan_deg,
                    eccentricity=e.eccentricity,
                    arg_perigee_deg=e.arg_perigee_deg,
                    mean_anomaly_deg=e.mean_anomaly_deg,
                    mean_motion_rev_day=e.mean_motion_rev_day,
                    bstar=e.bstar,
                    rev_number=e.rev_number,
                    element_set_no=e.element_set_no,
                    tle_line1=rec.line1,
                    tle_line2=rec.line2,
                    fetched_at=fetched_at,
                ))
        self._write(f"{len(records)} parsed TLEs for {source}", _do)
        logging.info(f"✅ {len(records)} TLE records saved for source: {source}")

    def append_error(self, entry: ErrorLogEntry) -> None:
        def _do(session):
            session.add(TleErrorLog(
                source=entry.source,
                identifier=entry.identifier,
                message=entry.message,
                logged_at=entry.timestamp,
            ))
        self._write("error log entry", _do)

    def save_snapshot(self, snapshot_df: pd.DataFrame) -> None:
        """
        Overwrites the orbit snapshot (full state, not a delta).
        """
        def _do(session):
            session.query(OrbitSnapshotPoint).delete()
            for row in snapshot_df.to_dict(orient="records"):
                ts = row.get("snapshot_utc")
                session.add(OrbitSnapshotPoint(
                    name=str(row["name"]),
                    latitude=float(row["latitude"]),
                    longitude=float(row["longitude"]),
                    altitude=float(row["altitude"]),
                    snapshot_utc=None if ts is None or pd.isna(ts) else pd.Timestamp(ts).to_pydatetime(),
                ))
        self._write("orbit snapshot", _do)

    # ---- read side (downstream consumers, HTTP API) ----

    def load_parsed(self, source: str) -> List[ParsedSatellite]:
        session = self.SessionLocal()
        try:
            rows = (session.query(TleRecord)
                    .filter(TleRecord.source == source)
                    .order_by(TleRecord.id)
                    .all())
            return [build_record(r.source, r.name, r.tle_line1, r.tle_line2) for r in rows]
        finally:
            session.close()

    def load_snapshot(self) -> pd.DataFrame:
        session = self.SessionLocal()
        try:
            rows = session.query(OrbitSnapshotPoint).order_by(OrbitSnapshotPoint.id).all()
            return pd.DataFrame(
                [{c: getattr(r, c) for c in SNAPSHOT_COLUMNS} for r in rows],
                columns=SNAPSHOT_COLUMNS,
            )
        finally:
            session.close()

    def record_counts(self) -> Dict[str, int]:
        session = self.SessionLocal()
        try:
            q = session.query(TleRecord.source, func.count(TleRecord.id)).group_by(TleRecord.source)
            return {source: int(n) for source, n in q.all()}
        finally:
            session.close()
