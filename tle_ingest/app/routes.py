# routes.py - read-only API for downstream consumers
#
# GET /api/health                 record counts per source
# GET /api/satellites/<source>    parsed records of one source
# GET /api/snapshot               latest orbit snapshot

import json
import logging

from flask import Blueprint, abort, current_app, jsonify

from tle_engine.types import SourceId

LOG = logging.getLogger(__name__)

main_bp = Blueprint("main", __name__)


def _sink():
    return current_app.config["TLE_SINK"]


@main_bp.route("/api/health")
def health():
    counts = _sink().record_counts()
    sources = {s.value: {"records": counts.get(s.value, 0)} for s in SourceId}
    return jsonify({"status": "ok", "sources": sources})


@main_bp.route("/api/satellites/<source>")
def satellites(source):
    try:
        source_id = SourceId(source.lower())
    except ValueError:
        abort(404, description=f"Unknown source: {source}")
    records = _sink().load_parsed(source_id.value)
    return jsonify({
        "source": source_id.value,
        "count": len(records),
        "satellites": [r.as_row() for r in records],
    })


@main_bp.route("/api/snapshot")
def snapshot():
    df = _sink().load_snapshot()
    # to_json handles NaN/Timestamp
    rows = json.loads(df.to_json(orient="records", date_format="iso")) if not df.empty else []
    return jsonify({"count": len(rows), "positions": rows})
