# ============================== TLE INGEST STANDARD HEADER ==============================
# Script Name: file_store.py
# Last Updated (UTC): 2026-10-19
# Update Summary:
# - Filesystem persistence sink (placeholder for the database target).
# Description:
# - Purpose: Same four write operations as the SQL sink, backed by files in TLE_DATA_DIR.
# - Primary Outputs (per source):
#   * <source>_tles_raw.txt   raw payload as fetched
#   * <source>_tles.json      parsed records
#   * <source>_tles.txt       3-line text (name, line1, line2) of the parsed records
#   * error.log               append-only diagnostics (all sources)
#   * estim_orbits.json       latest orbit snapshot (overwritten)
# - Data Handling Notes:
#   * Snapshot files are written to a temp file and moved into place (os.replace),
#     so readers never see a half-written file.
# =========================================================================================

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, List

import pandas as pd

from tle_engine.types import SNAPSHOT_COLUMNS, ErrorLogEntry, ParsedSatellite
from tle_ingest.app.tle_parser import build_record

LOG = logging.getLogger(__name__)

ERR_LOG_FILE = "error.log"
SNAPSHOT_FILE = "estim_orbits.json"


def _atomic_write(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise


class FileSink:
    def __init__(self, data_dir):
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def raw_path(self, source: str) -> Path:
        return self.data_dir / f"{source}_tles_raw.txt"

    def parsed_path(self, source: str) -> Path:
        return self.data_dir / f"{source}_tles.json"

    def text_path(self, source: str) -> Path:
        return self.data_dir / f"{source}_tles.txt"

    @property
    def error_log_path(self) -> Path:
        return self.data_dir / ERR_LOG_FILE

    @property
    def snapshot_path(self) -> Path:
        return self.data_dir / SNAPSHOT_FILE

    def save_raw(self, source: str, raw: bytes) -> None:
        _atomic_write(self.raw_path(source), raw)
        LOG.info(f"{source} TLEs saved to {self.raw_path(source)}")

    def save_parsed(self, source: str, records: List[ParsedSatellite]) -> None:
        rows = [r.as_row() for r in records]
        _atomic_write(self.parsed_path(source), json.dumps(rows, indent=2).encode("utf-8"))
        text = "\n".join(f"{r.name}\n{r.line1}\n{r.line2}" for r in records) + "\n"
        _atomic_write(self.text_path(source), text.encode("utf-8"))
        LOG.info(f"Parsed {source} TLEs saved to {self.parsed_path(source)}")

    def append_error(self, entry: ErrorLogEntry) -> None:
        self.error_log_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.error_log_path, "a", encoding="utf-8") as fh:
            fh.write(entry.as_line() + "\n")

    def save_snapshot(self, snapshot_df: pd.DataFrame) -> None:
        """Overwrite, never append: each run is the full current state."""
        df = snapshot_df.reindex(columns=SNAPSHOT_COLUMNS)
        payload = df.to_json(orient="records", date_format="iso", indent=2)
        _atomic_write(self.snapshot_path, payload.encode("utf-8"))
        LOG.info(f"Orbit snapshot ({len(df)} objects) saved to {self.snapshot_path}")

    # ---- read side ----

    def load_parsed(self, source: str) -> List[ParsedSatellite]:
        path = self.parsed_path(source)
        if not path.exists():
            return []
        rows = json.loads(path.read_text(encoding="utf-8"))
        return [build_record(row["source"], row["name"], row["tle_line1"], row["tle_line2"])
                for row in rows]

    def load_snapshot(self) -> pd.DataFrame:
        if not self.snapshot_path.exists():
            return pd.DataFrame(columns=SNAPSHOT_COLUMNS)
        rows = json.loads(self.snapshot_path.read_text(encoding="utf-8"))
        return pd.DataFrame(rows, columns=SNAPSHOT_COLUMNS)

    def record_counts(self) -> Dict[str, int]:
        counts = {}
        for path in sorted(self.data_dir.glob("*_tles.json")):
            source = path.name[: -len("_tles.json")]
            try:
                counts[source] = len(json.loads(path.read_text(encoding="utf-8")))
            except (OSError, ValueError) as e:
                LOG.warning(f"Could not read {path}: {e}")
        return counts
