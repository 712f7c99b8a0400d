# tests/test_run_cli.py
import json

import pytest

from tle_ingest import run

from conftest import CSK_L1, CSK_L2, CSK_NAME, NOAA19_L1, NOAA19_L2, NOAA19_NAME


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for name in ("SPACETRACK_USERNAME", "SPACETRACK_PASSWORD", "DATABASE_URL", "TLE_SOURCES"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("TLE_DATA_DIR", str(tmp_path / "tle"))
    return tmp_path / "tle"


def test_poll_without_credentials_exits_2(clean_env, monkeypatch):
    monkeypatch.setattr(run.signal, "signal", lambda *args: None)

    def _no_cycles(*args, **kwargs):
        raise AssertionError("scheduler must not start")

    monkeypatch.setattr("tle_ingest.app.refresh_scheduler.RefreshScheduler.run_forever", _no_cycles)
    assert run.main(["poll", "--once"]) == 2


def test_bad_config_exits_2(clean_env, monkeypatch):
    monkeypatch.setenv("TLE_HTTP_TIMEOUT_S", "never")
    assert run.main(["poll", "--once"]) == 2


def test_propagate_from_file_writes_snapshot(clean_env, tmp_path):
    tle_file = tmp_path / "input.txt"
    tle_file.write_text(
        f"{CSK_NAME}\n{CSK_L1}\n{CSK_L2}\n{NOAA19_NAME}\n{NOAA19_L1}\n{NOAA19_L2}\n",
        encoding="utf-8",
    )
    rc = run.main(["propagate", "--tle-file", str(tle_file), "--at", "2024-01-01T12:00:00Z"])

    assert rc == 0
    rows = json.loads((clean_env / "estim_orbits.json").read_text(encoding="utf-8"))
    assert [r["name"] for r in rows] == [CSK_NAME, NOAA19_NAME]


def test_propagate_requires_an_input(clean_env):
    with pytest.raises(SystemExit):
        run.main(["propagate"])


def test_propagate_rejects_bad_timestamp(clean_env, tmp_path, capsys):
    tle_file = tmp_path / "input.txt"
    tle_file.write_text(f"{NOAA19_NAME}\n{NOAA19_L1}\n{NOAA19_L2}\n", encoding="utf-8")

    with pytest.raises(SystemExit) as exc:
        run.main(["propagate", "--tle-file", str(tle_file), "--at", "garbage"])

    assert exc.value.code == 2
    assert "not a valid ISO 8601 time" in capsys.readouterr().err
    assert not (clean_env / "estim_orbits.json").exists()


def test_poll_once_runs_a_single_cycle(clean_env, monkeypatch):
    monkeypatch.setenv("TLE_SOURCES", "celestrak")
    monkeypatch.setattr(run.signal, "signal", lambda *args: None)
    seen = {}

    def _fake_run_forever(self, max_cycles=None, scheduler=None):
        seen["max_cycles"] = max_cycles
        return 1

    monkeypatch.setattr("tle_ingest.app.refresh_scheduler.RefreshScheduler.run_forever", _fake_run_forever)
    assert run.main(["poll", "--once"]) == 0
    assert seen["max_cycles"] == 1
