# ============================== TLE INGEST STANDARD HEADER ==============================
# Script Name: refresh_scheduler.py
# Last Updated (UTC): 2026-10-19
# Update Summary:
# - Multi-source refresh scheduler: per-source cadence, isolated failures, APScheduler-driven loop.
# Description:
# - Purpose: Each cycle, walk the sources in priority order (daily first, then hourly),
#   run the ones that are due (tle_engine.cadence.is_due), and record the outcome.
# - Primary Inputs:
#   * RefreshState (explicit, immutable; returned updated from run_cycle)
#   * adapters per SourceId, a persistence sink, `now`
# - Primary Outputs:
#   * (RefreshState, CycleReport) per cycle
# - Data Handling Notes:
#   * A failure in one source is logged to the error log and reported as FAILED; the
#     remaining sources still run and the state entry for the failed source is untouched.
#   * Cycles are an APScheduler interval job (max_instances=1); shutdown() ends the loop
#     and is what the CLI signal handler calls.
#   * Startup refuses to run (ConfigError) when an enabled gated source lacks credentials.
# =========================================================================================

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Mapping, Optional, Tuple

from apscheduler.schedulers.blocking import BlockingScheduler

from tle_engine.cadence import DEFAULT_CADENCE, is_due, next_due_at, ordered_sources
from tle_engine.types import (
    CycleReport,
    ErrorLogEntry,
    RefreshState,
    SourceId,
    SourceOutcome,
    SourceStatus,
)
from tle_ingest.app.fetcher_celestrak import CelesTrakAdapter
from tle_ingest.app.fetcher_common import SourceAdapter
from tle_ingest.app.fetcher_satnogs import SatNOGSAdapter
from tle_ingest.app.fetcher_spacetrack import SpaceTrackAdapter
from tle_ingest.app.persistence import PersistenceSink, build_sink
from tle_ingest.app.utils import describe_exception, get_current_utc_timestamp, log_error_and_continue
from tle_ingest.app.utils_time import now_utc
from tle_ingest.settings import IngestSettings

LOG = logging.getLogger(__name__)

DEFAULT_CYCLE_DELAY_S = 3600.0

ADAPTER_TYPES = {
    SourceId.SPACETRACK: SpaceTrackAdapter,
    SourceId.CELESTRAK: CelesTrakAdapter,
    SourceId.SATNOGS: SatNOGSAdapter,
}

SOURCE_LABELS = {
    SourceId.SPACETRACK: "NORAD (Space-Track)",
    SourceId.CELESTRAK: "Celestrak",
    SourceId.SATNOGS: "SatNOGS",
}


class RefreshScheduler:
    def __init__(
        self,
        adapters: Mapping[SourceId, SourceAdapter],
        sink: PersistenceSink,
        cadence: Optional[Mapping[SourceId, timedelta]] = None,
        cycle_delay_s: float = DEFAULT_CYCLE_DELAY_S,
        clock: Callable[[], datetime] = now_utc,
        state: Optional[RefreshState] = None,
    ):
        self.adapters = dict(adapters)
        self.sink = sink
        self.cadence = dict(DEFAULT_CADENCE if cadence is None else cadence)
        self.cycle_delay_s = cycle_delay_s
        self.clock = clock
        self.state = state or RefreshState()
        self.cycle_no = 0
        self._scheduler = None
        self._cycles_run = 0
        self._max_cycles = None

    @classmethod
    def from_settings(cls, settings: IngestSettings, sink: Optional[PersistenceSink] = None,
                      session=None) -> "RefreshScheduler":
        """
        Build adapters for the enabled sources. Raises ConfigError before anything
        runs if a credential-gated source is enabled without its credentials.
        """
        settings.require_credentials()
        adapters = {
            source: ADAPTER_TYPES[source](settings, session=session)
            for source in settings.enabled_sources
        }
        return cls(
            adapters,
            sink if sink is not None else build_sink(settings),
            cycle_delay_s=settings.cycle_delay_s,
        )

    # ---------- one cycle ----------

    def is_due(self, source: SourceId, now: datetime, state: Optional[RefreshState] = None) -> bool:
        return is_due(source, self.state if state is None else state, now, self.cadence)

    def _record_failure(self, source: SourceId, now: datetime, exc: Exception) -> None:
        label = SOURCE_LABELS.get(source, source.value)
        entry = ErrorLogEntry(
            source=source.value,
            identifier="fetch",
            message=f"Error fetching or parsing {label} TLEs: {describe_exception(exc)}",
            timestamp=now,
        )
        log_error_and_continue(entry.message)
        try:
            self.sink.append_error(entry)
        except Exception as e:
            log_error_and_continue(f"[{source.value}] could not append to error log", e)

    def _run_source(self, source: SourceId, now: datetime) -> SourceOutcome:
        adapter = self.adapters[source]
        try:
            batch = adapter.run(self.sink)
        except Exception as e:
            self._record_failure(source, now, e)
            return SourceOutcome(source, SourceStatus.FAILED, message=describe_exception(e))
        return SourceOutcome(source, SourceStatus.SUCCESS,
                             records=len(batch.records), errors=len(batch.errors))

    def run_cycle(self, state: RefreshState, now: datetime) -> Tuple[RefreshState, CycleReport]:
        """
        Attempt every configured source once. Returns the new state (successes stamped
        with `now`) and a report; the input state is not modified.
        """
        self.cycle_no += 1
        report = CycleReport(cycle_no=self.cycle_no, started_utc=now)

        for source in ordered_sources(self.adapters.keys()):
            if not is_due(source, state, now, self.cadence):
                due_at = next_due_at(source, state, self.cadence)
                LOG.info(f"{SOURCE_LABELS.get(source, source.value)} TLEs already updated; "
                         f"next refresh due {due_at.isoformat() if due_at else 'now'}")
                report.outcomes.append(SourceOutcome(source, SourceStatus.SKIPPED))
                continue

            outcome = self._run_source(source, now)
            report.outcomes.append(outcome)
            if outcome.status == SourceStatus.SUCCESS:
                state = state.mark_success(source, now)

        ok = sum(1 for o in report.outcomes if o.status == SourceStatus.SUCCESS)
        skipped = sum(1 for o in report.outcomes if o.status == SourceStatus.SKIPPED)
        LOG.info(f"Cycle {report.cycle_no} done: {ok} refreshed, {skipped} not due, "
                 f"{len(report.failed)} failed {[s.value for s in report.failed]}")
        return state, report

    def step(self, now: Optional[datetime] = None) -> CycleReport:
        """run_cycle against the scheduler's own state and keep the result."""
        now = self.clock() if now is None else now
        self.state, report = self.run_cycle(self.state, now)
        return report

    # ---------- loop ----------

    def _scheduled_step(self) -> None:
        self._cycles_run += 1
        self.step()
        if self._max_cycles is not None and self._cycles_run >= self._max_cycles:
            self.shutdown()
            return
        LOG.info(f"[{get_current_utc_timestamp()}]: Waiting {self.cycle_delay_s:.0f}s before next cycle...")

    def run_forever(self, max_cycles: Optional[int] = None, scheduler=None) -> int:
        """
        Drive step() from an APScheduler interval job: first cycle immediately, then one
        every cycle_delay_s. Blocks until shutdown() (signal handler) or max_cycles.
        Returns cycles run.
        """
        self._scheduler = scheduler or BlockingScheduler(timezone=timezone.utc)
        self._cycles_run = 0
        self._max_cycles = max_cycles
        if max_cycles is not None and max_cycles <= 0:
            return 0

        self._scheduler.add_job(
            self._scheduled_step,
            "interval",
            seconds=self.cycle_delay_s,
            next_run_time=now_utc(),
            max_instances=1,
            coalesce=True,
            id="tle_refresh_cycle",
        )
        LOG.info(f"Starting refresh scheduler (every {self.cycle_delay_s:.0f}s). Press Ctrl-C to exit.")
        self._scheduler.start()
        LOG.info(f"Scheduler stopped after {self._cycles_run} cycle(s)")
        return self._cycles_run

    def shutdown(self) -> None:
        """Stop the interval job; safe to call from a signal handler or from inside a cycle."""
        if self._scheduler is not None and self._scheduler.running:
            self._scheduler.shutdown(wait=False)
