# sql_models.py - Database models for TLE ingest
# 2026-10-19 (raw snapshots, parsed records, error log, orbit snapshot)

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Float, Integer, LargeBinary, String, Text, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()


def _utcnow():
    return datetime.now(timezone.utc)


def make_session_factory(database_url: str, create_tables: bool = True):
    """
    Engine + sessionmaker for DATABASE_URL. Tables are created on first use.
    """
    engine = create_engine(database_url)
    if create_tables:
        Base.metadata.create_all(engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


class TleRawSnapshot(Base):
    """
    Latest raw payload per source, exactly as the source returned it.
    """
    __tablename__ = "tle_raw_snapshots"

    id = Column(Integer, primary_key=True, autoincrement=True)
    source = Column(String, nullable=False, unique=True, index=True)
    payload = Column(LargeBinary, nullable=False)
    byte_count = Column(Integer, nullable=False)
    fetched_at = Column(DateTime, default=_utcnow)


class TleRecord(Base):
    """
    Parsed element sets; one row per object per source (current snapshot only).
    """
    __tablename__ = "tle_records"

    id = Column(Integer, primary_key=True, autoincrement=True)
    source = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    norad_id = Column(Integer, nullable=False, index=True)
    classification = Column(String, nullable=True)
    intl_designator = Column(String, nullable=True)
    epoch_utc = Column(DateTime, nullable=True)
    inclination_deg = Column(Float, nullable=True)
    raan_deg = Column(Float, nullable=True)
    eccentricity = Column(Float, nullable=True)
    arg_perigee_deg = Column(Float, nullable=True)
    mean_anomaly_deg = Column(Float, nullable=True)
    mean_motion_rev_day = Column(Float, nullable=True)
    bstar = Column(Float, nullable=True)
    rev_number = Column(Integer, nullable=True)
    element_set_no = Column(Integer, nullable=True)
    tle_line1 = Column(String(69), nullable=False)
    tle_line2 = Column(String(69), nullable=False)
    fetched_at = Column(DateTime, default=_utcnow)


class TleErrorLog(Base):
    """
    Append-only diagnostics (parse failures, fetch failures, propagation skips).
    """
    __tablename__ = "tle_error_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    source = Column(String, nullable=False, index=True)
    identifier = Column(String, nullable=True)
    message = Column(Text, nullable=False)
    logged_at = Column(DateTime, nullable=False)


class OrbitSnapshotPoint(Base):
    """
    Current geodetic position per object. Replaced wholesale on every run.
    """
    __tablename__ = "orbit_snapshot"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    altitude = Column(Float, nullable=False)
    snapshot_utc = Column(DateTime, nullable=True)
