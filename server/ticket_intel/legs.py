# legs.py
"""
Pair waypoints into flight legs.

Airline renderers print every flight as departure then arrival, so
waypoint ``2i`` is the departure of leg ``i`` and ``2i+1`` its arrival.
Flight numbers are attached by the same ordinal position: the order they
were printed in is the order the legs were detected in.
"""

from typing import Dict, List, Optional

from .airports import city_for
from .diagnostics import DiagnosticLog
from .errors import StitchingError
from .models import Endpoint, FlightLeg, Segment, Waypoint

STAGE = "legs"


def stitch(
    waypoints: List[Waypoint],
    flight_numbers: List[str],
    durations: Optional[Dict[str, str]] = None,
    diagnostics: Optional[DiagnosticLog] = None,
) -> List[FlightLeg]:
    if not waypoints and not flight_numbers:
        raise StitchingError("cannot stitch legs: no waypoints and no flight numbers")

    diagnostics = diagnostics if diagnostics is not None else DiagnosticLog()
    durations = durations or {}

    if not waypoints:
        diagnostics.warning(
            STAGE, f"{len(flight_numbers)} flight number(s) found but no waypoints to pair them with"
        )
        return []

    if len(waypoints) % 2:
        trailing = waypoints[-1]
        diagnostics.warning(
            STAGE,
            f"Odd waypoint count ({len(waypoints)}); dropping trailing {trailing.time} {trailing.location}",
            waypoint_count=len(waypoints),
        )

    legs: List[FlightLeg] = []
    for i in range(len(waypoints) // 2):
        flight_no = flight_numbers[i] if i < len(flight_numbers) else None
        legs.append(
            FlightLeg(
                flight_number=flight_no,
                departure=waypoints[2 * i],
                arrival=waypoints[2 * i + 1],
                duration_text=durations.get(flight_no) if flight_no else None,
            )
        )

    if len(flight_numbers) != len(legs):
        diagnostics.warning(
            STAGE,
            f"{len(flight_numbers)} flight number(s) for {len(legs)} leg(s); positional match may be off",
        )
    return legs


def _endpoint(waypoint: Waypoint) -> Endpoint:
    return Endpoint(
        iata=waypoint.location,
        city=city_for(waypoint.location) or waypoint.city,
        terminal=waypoint.terminal,
        time_local=waypoint.time,
        day_offset=1 if waypoint.is_next_day else 0,
    )


def legs_to_segments(legs: List[FlightLeg]) -> List[Segment]:
    """Bare-time segments, ready for date inference. Waypoints are not retained."""
    return [
        Segment(
            marketing_flight_no=leg.flight_number or "",
            duration_text=leg.duration_text,
            dep=_endpoint(leg.departure),
            arr=_endpoint(leg.arrival),
        )
        for leg in legs
    ]
