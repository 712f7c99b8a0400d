# tests/test_refresh_scheduler.py
from datetime import datetime, timedelta, timezone

import pytest

from tle_engine.types import RefreshState, SourceId, SourceStatus
from tle_ingest.app.errors import ConfigError, TransportError
from tle_ingest.app.fetcher_common import SourceBatch
from tle_ingest.app.refresh_scheduler import RefreshScheduler
from tle_ingest.app.tle_parser import build_record

from conftest import ISS_L1, ISS_L2, ISS_NAME, FakeResponse, FakeSession, RecordingSink

T0 = datetime(2026, 10, 19, 0, 0, tzinfo=timezone.utc)


class StubAdapter:
    def __init__(self, source, fail=False, on_run=None):
        self.source = source
        self.fail = fail
        self.on_run = on_run
        self.calls = 0

    def run(self, sink):
        self.calls += 1
        if self.on_run:
            self.on_run()
        if self.fail:
            raise TransportError(f"{self.source.value} unreachable")
        rec = build_record(self.source.value, ISS_NAME, ISS_L1, ISS_L2)
        sink.save_parsed(self.source.value, [rec])
        return SourceBatch(source=self.source, raw=b"raw", block_count=1, records=[rec])


def _scheduler(failing=(), sink=None, clock=None, **kwargs):
    adapters = {s: StubAdapter(s, fail=s in failing) for s in SourceId}
    sched = RefreshScheduler(adapters, sink or RecordingSink(), cycle_delay_s=0, **kwargs)
    if clock is not None:
        sched.clock = clock
    return sched, adapters


class StepClock:
    """Advances one hour per call."""

    def __init__(self, start=T0, step=timedelta(hours=1)):
        self.now = start - step
        self.step = step

    def __call__(self):
        self.now += self.step
        return self.now


def test_cold_start_runs_every_source_in_priority_order():
    order = []
    sched, adapters = _scheduler()
    for s, a in adapters.items():
        a.on_run = (lambda src=s: order.append(src))

    state, report = sched.run_cycle(RefreshState(), T0)

    assert order == [SourceId.SPACETRACK, SourceId.CELESTRAK, SourceId.SATNOGS]
    assert all(o.status == SourceStatus.SUCCESS for o in report.outcomes)
    for s in SourceId:
        assert state.last_success_for(s) == T0


def test_not_due_after_success_until_cadence_elapses():
    sched, adapters = _scheduler()
    state, _ = sched.run_cycle(RefreshState(), T0)

    for s in SourceId:
        assert not sched.is_due(s, T0, state)
    assert not sched.is_due(SourceId.CELESTRAK, T0 + timedelta(minutes=59), state)
    assert sched.is_due(SourceId.CELESTRAK, T0 + timedelta(hours=1), state)
    assert not sched.is_due(SourceId.SPACETRACK, T0 + timedelta(hours=23), state)
    assert sched.is_due(SourceId.SPACETRACK, T0 + timedelta(hours=24), state)

    state, report = sched.run_cycle(state, T0 + timedelta(hours=1))
    assert report.outcome_for(SourceId.SPACETRACK).status == SourceStatus.SKIPPED
    assert report.outcome_for(SourceId.CELESTRAK).status == SourceStatus.SUCCESS
    assert adapters[SourceId.SPACETRACK].calls == 1
    assert adapters[SourceId.CELESTRAK].calls == 2


def test_failure_is_isolated_and_state_untouched():
    sink = RecordingSink()
    sched, adapters = _scheduler(failing={SourceId.SPACETRACK}, sink=sink)

    state, report = sched.run_cycle(RefreshState(), T0)

    assert adapters[SourceId.CELESTRAK].calls == 1
    assert adapters[SourceId.SATNOGS].calls == 1
    assert report.failed == [SourceId.SPACETRACK]
    assert "TransportError" in report.outcome_for(SourceId.SPACETRACK).message
    assert state.last_success_for(SourceId.SPACETRACK) is None
    assert state.last_success_for(SourceId.CELESTRAK) == T0

    assert len(sink.errors) == 1
    entry = sink.errors[0]
    assert entry.source == "spacetrack" and entry.identifier == "fetch"
    assert "unreachable" in entry.message

    # still due next cycle
    assert sched.is_due(SourceId.SPACETRACK, T0 + timedelta(hours=1), state)


def test_persistence_failure_counts_as_source_failure():
    sink = RecordingSink(fail_parsed=True)
    sched, _ = _scheduler(sink=sink)
    state, report = sched.run_cycle(RefreshState(), T0)
    assert set(report.failed) == set(SourceId)
    assert state.last_success == {}
    assert len(sink.errors) == 3


def test_error_log_failure_does_not_break_cycle():
    class BrokenLogSink(RecordingSink):
        def append_error(self, entry):
            raise OSError("no space left")

    sched, adapters = _scheduler(failing={SourceId.CELESTRAK}, sink=BrokenLogSink())
    _, report = sched.run_cycle(RefreshState(), T0)
    assert adapters[SourceId.SATNOGS].calls == 1
    assert report.outcome_for(SourceId.SATNOGS).status == SourceStatus.SUCCESS


def test_run_cycle_does_not_mutate_input_state():
    sched, _ = _scheduler()
    start = RefreshState()
    sched.run_cycle(start, T0)
    assert start.last_success == {}


class RecordingJobScheduler:
    """Captures the interval job instead of running it."""

    def __init__(self):
        self.jobs = []
        self.started = False
        self.running = False

    def add_job(self, func, trigger, **kwargs):
        self.jobs.append((func, trigger, kwargs))

    def start(self):
        self.started = True


def test_run_forever_registers_interval_job():
    sched, _ = _scheduler()
    sched.cycle_delay_s = 3600
    fake = RecordingJobScheduler()

    sched.run_forever(scheduler=fake)

    assert fake.started
    func, trigger, kwargs = fake.jobs[0]
    assert trigger == "interval"
    assert kwargs["seconds"] == 3600
    assert kwargs["max_instances"] == 1
    # cold start: first cycle fires immediately
    assert kwargs["next_run_time"].tzinfo is not None


def test_run_forever_bounded_cycles_respects_cadence():
    sched, adapters = _scheduler(clock=StepClock())
    sched.cycle_delay_s = 0.01
    cycles = sched.run_forever(max_cycles=3)

    assert cycles == 3
    assert adapters[SourceId.SPACETRACK].calls == 1
    assert adapters[SourceId.CELESTRAK].calls == 3
    assert adapters[SourceId.SATNOGS].calls == 3
    assert sched.state.last_success_for(SourceId.CELESTRAK) == T0 + timedelta(hours=2)


def test_shutdown_during_cycle_ends_loop():
    sched, adapters = _scheduler(clock=StepClock())
    sched.cycle_delay_s = 3600  # would block for an hour if shutdown were ignored
    adapters[SourceId.SATNOGS].on_run = sched.shutdown

    cycles = sched.run_forever()
    assert cycles == 1
    assert adapters[SourceId.SATNOGS].calls == 1


def test_run_forever_zero_cycles_runs_nothing():
    sched, adapters = _scheduler()
    assert sched.run_forever(max_cycles=0) == 0
    assert all(a.calls == 0 for a in adapters.values())


def test_shutdown_before_start_is_harmless():
    sched, _ = _scheduler()
    sched.shutdown()



def test_from_settings_refuses_to_start_without_credentials(settings):
    settings.spacetrack_username = None
    settings.spacetrack_password = None
    with pytest.raises(ConfigError) as exc:
        RefreshScheduler.from_settings(settings, sink=RecordingSink())
    assert exc.value.missing == ["SPACETRACK_USERNAME", "SPACETRACK_PASSWORD"]


def test_from_settings_without_gated_source_needs_no_credentials(settings):
    settings.spacetrack_username = None
    settings.enabled_sources = [SourceId.CELESTRAK]
    sched = RefreshScheduler.from_settings(settings, sink=RecordingSink())
    assert list(sched.adapters) == [SourceId.CELESTRAK]


def test_full_cycle_through_real_adapters(settings):
    ok_text = f"{ISS_NAME}\n{ISS_L1}\n{ISS_L2}\n"
    session = FakeSession({
        ("POST", settings.spacetrack_login_url): FakeResponse(status_code=500, reason="Server Error"),
        ("GET", settings.celestrak_url): FakeResponse(text=ok_text),
        ("GET", settings.satnogs_url): FakeResponse(json_data=[
            {"tle0": "0 ISS (ZARYA)", "tle1": ISS_L1, "tle2": ISS_L2, "norad_cat_id": 25544},
        ]),
    })
    sink = RecordingSink()
    sched = RefreshScheduler.from_settings(settings, sink=sink, session=session)

    report = sched.step(T0)

    assert report.failed == [SourceId.SPACETRACK]
    assert [r.name for r in sink.parsed["celestrak"]] == [ISS_NAME]
    assert [r.name for r in sink.parsed["satnogs"]] == [ISS_NAME]
    assert sched.state.last_success_for(SourceId.CELESTRAK) == T0
    assert sched.state.last_success_for(SourceId.SPACETRACK) is None
