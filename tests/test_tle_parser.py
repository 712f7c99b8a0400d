# tests/test_tle_parser.py
from datetime import datetime, timezone

import pytest

from tle_ingest.app.errors import TLEParseError
from tle_ingest.app.tle_parser import build_record, parse_tle, split_lines, tle_checksum_ok
from tle_ingest.app.utils_time import tle_epoch_to_utc

from conftest import BAD_CHECKSUM_L1, ISS_L1, ISS_L1_DOUBLE_SPACE, ISS_L2, NOAA19_L1, NOAA19_L2


def test_parse_iss_elements():
    e = parse_tle(ISS_L1, ISS_L2)
    assert e.norad_id == 25544
    assert e.classification == "U"
    assert e.intl_designator == "98067A"
    assert e.inclination_deg == pytest.approx(51.6416, abs=1e-6)
    assert e.raan_deg == pytest.approx(247.4627, abs=1e-6)
    assert e.eccentricity == pytest.approx(0.0006703, abs=1e-9)
    assert e.arg_perigee_deg == pytest.approx(130.5360, abs=1e-6)
    assert e.mean_anomaly_deg == pytest.approx(325.0288, abs=1e-6)
    assert e.mean_motion_rev_day == pytest.approx(15.72125391, abs=1e-6)
    assert e.bstar == pytest.approx(-0.11606e-4, rel=1e-6)
    assert e.rev_number == 56353
    assert e.element_set_no == 292
    assert e.epoch_utc.year == 2008 and e.epoch_utc.month == 9 and e.epoch_utc.day == 20
    assert e.epoch_utc.tzinfo is not None


def test_checksum():
    assert tle_checksum_ok(ISS_L1)
    assert tle_checksum_ok(ISS_L2)
    assert not tle_checksum_ok(BAD_CHECKSUM_L1)
    assert not tle_checksum_ok("")


@pytest.mark.parametrize("line1,line2,fragment", [
    (BAD_CHECKSUM_L1, ISS_L2, "checksum"),
    (ISS_L1[:60], ISS_L2, "columns"),
    (ISS_L2, ISS_L1, "does not start"),
    (ISS_L1, NOAA19_L2, "catalog numbers differ"),
    (ISS_L1_DOUBLE_SPACE, ISS_L2, "columns"),
])
def test_parse_rejects_malformed(line1, line2, fragment):
    with pytest.raises(TLEParseError) as exc:
        parse_tle(line1, line2)
    assert fragment in str(exc.value)


def test_build_record_keeps_name_and_lines():
    rec = build_record("celestrak", "NOAA 19", NOAA19_L1 + "  ", NOAA19_L2)
    assert rec.name == "NOAA 19"
    assert rec.source == "celestrak"
    assert rec.line1 == NOAA19_L1
    assert rec.elements.norad_id == 33591
    row = rec.as_row()
    assert row["tle_line2"] == NOAA19_L2
    assert row["norad_id"] == 33591


def test_split_lines_drops_blank_and_trims():
    assert split_lines("  A \r\n\r\nB\n   \n") == ["A", "B"]


def test_tle_epoch_century_pivot():
    assert tle_epoch_to_utc(57, 1.0) == datetime(1957, 1, 1, tzinfo=timezone.utc)
    assert tle_epoch_to_utc(24, 1.5) == datetime(2024, 1, 1, 12, tzinfo=timezone.utc)
