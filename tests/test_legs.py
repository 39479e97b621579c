import pytest

from ticket_intel.diagnostics import DiagnosticLog
from ticket_intel.errors import StitchingError
from ticket_intel.legs import legs_to_segments, stitch
from ticket_intel.models import Waypoint


def _wp(time, code, pos, next_day=False):
    return Waypoint(time=time, location=code, ordinal_position=pos, is_next_day=next_day)


WAYPOINTS = [
    _wp("06:00", "CPT", 1),
    _wp("08:05", "JNB", 3),
    _wp("10:00", "JNB", 5),
    _wp("20:30", "ACC", 7),
]


def test_even_waypoints_pair_positionally():
    legs = stitch(WAYPOINTS, ["SA302", "SA52"], {"SA52": "6h 30min"})
    assert len(legs) == 2
    assert (legs[0].departure.location, legs[0].arrival.location) == ("CPT", "JNB")
    assert (legs[1].departure.location, legs[1].arrival.location) == ("JNB", "ACC")
    assert [leg.flight_number for leg in legs] == ["SA302", "SA52"]
    assert legs[0].duration_text is None
    assert legs[1].duration_text == "6h 30min"


def test_odd_count_drops_trailing_waypoint_with_warning():
    diagnostics = DiagnosticLog()
    legs = stitch(WAYPOINTS[:3], ["SA302"], diagnostics=diagnostics)
    assert len(legs) == 1
    assert any("Odd waypoint count" in d.message for d in diagnostics.for_stage("legs"))


def test_missing_flight_numbers_leave_legs_unnumbered():
    diagnostics = DiagnosticLog()
    legs = stitch(WAYPOINTS, ["SA302"], diagnostics=diagnostics)
    assert legs[1].flight_number is None
    assert diagnostics.warnings()


def test_nothing_to_stitch_is_a_precondition_error():
    with pytest.raises(StitchingError):
        stitch([], [])


def test_flight_numbers_without_waypoints_warn():
    diagnostics = DiagnosticLog()
    assert stitch([], ["SA53"], diagnostics=diagnostics) == []
    assert len(diagnostics.warnings()) == 1


def test_segments_carry_day_offset_and_city():
    legs = stitch([_wp("20:30", "ACC", 1), _wp("04:25", "JNB", 3, next_day=True)], ["SA53"])
    segment = legs_to_segments(legs)[0]
    assert segment.marketing_flight_no == "SA53"
    assert segment.dep.city == "Accra"
    assert segment.arr.day_offset == 1
    assert segment.dep.date is None
