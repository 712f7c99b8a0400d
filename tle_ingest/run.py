# run.py - TLE Ingest command line
#
#   run_tle_ingest poll [--once | --max-cycles N]
#   run_tle_ingest propagate (--tle-file PATH | --source SRC) [--at ISO]
#   run_tle_ingest serve [--host H] [--port P]
#
# Exit codes: 0 ok, 2 configuration error (e.g. missing Space-Track credentials).

import argparse
import logging
import signal
import sys

import tle_ingest.setup_imports  # noqa: F401  (dotenv + logging)
from tle_engine.types import SourceId
from tle_ingest.app.errors import ConfigError
from tle_ingest.app.persistence import build_sink
from tle_ingest.app.utils_time import ensure_utc
from tle_ingest.settings import IngestSettings

LOG = logging.getLogger(__name__)


def _utc_timestamp(value: str):
    ts = ensure_utc(value)
    if ts is None:
        raise argparse.ArgumentTypeError(f"not a valid ISO 8601 time: {value!r}")
    return ts


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="run_tle_ingest", description="Multi-source TLE ingest")
    sub = p.add_subparsers(dest="command", required=True)

    poll = sub.add_parser("poll", help="Run the refresh scheduler loop")
    g = poll.add_mutually_exclusive_group()
    g.add_argument("--once", action="store_true", help="Run a single cycle and exit")
    g.add_argument("--max-cycles", type=int, default=None, help="Stop after N cycles")

    prop = sub.add_parser("propagate", help="Compute a geodetic snapshot from stored or file TLEs")
    src = prop.add_mutually_exclusive_group(required=True)
    src.add_argument("--tle-file", help="3-line TLE file (name, line1, line2)")
    src.add_argument("--source", choices=[s.value for s in SourceId],
                     help="Use the parsed records stored for this source")
    prop.add_argument("--at", type=_utc_timestamp, default=None,
                      help="Snapshot time (ISO 8601, default: now)")

    serve = sub.add_parser("serve", help="Serve the read-only HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=5000)
    return p


def _cmd_poll(args, settings: IngestSettings) -> int:
    from tle_ingest.app.refresh_scheduler import RefreshScheduler

    scheduler = RefreshScheduler.from_settings(settings)

    def _stop(signum, _frame):
        LOG.info(f"Signal {signum} received; shutting down the scheduler")
        scheduler.shutdown()

    signal.signal(signal.SIGINT, _stop)
    signal.signal(signal.SIGTERM, _stop)

    max_cycles = 1 if args.once else args.max_cycles
    scheduler.run_forever(max_cycles=max_cycles)
    return 0


def _cmd_propagate(args, settings: IngestSettings) -> int:
    from tle_ingest.app.sat_propagate import load_tle_file, run_batch_propagation

    sink = build_sink(settings)
    if args.tle_file:
        records, errors = load_tle_file(args.tle_file)
        for entry in errors:
            sink.append_error(entry)
    else:
        records = sink.load_parsed(args.source)
    if not records:
        LOG.warning("⚠️ No TLE records to propagate")
    snapshot_df = run_batch_propagation(records, sink, when_utc=args.at)
    LOG.info(f"✅ Snapshot written with {len(snapshot_df)} objects")
    return 0


def _cmd_serve(args, settings: IngestSettings) -> int:
    from tle_ingest.app import create_app

    app = create_app(build_sink(settings))
    app.run(host=args.host, port=args.port)
    return 0


def main(argv=None) -> int:
    args = _build_parser().parse_args(argv)
    try:
        settings = IngestSettings.from_env()
        if args.command == "poll":
            return _cmd_poll(args, settings)
        if args.command == "propagate":
            return _cmd_propagate(args, settings)
        return _cmd_serve(args, settings)
    except ConfigError as e:
        LOG.error(f"❌ Configuration error: {e}")
        return 2


if __name__ == '__main__':
    sys.exit(main())
