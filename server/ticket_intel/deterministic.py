# deterministic.py
"""
The deterministic parse: normalize, map cities, detect waypoints, stitch
legs, assign dates, then sweep the text for booking metadata.

No network, no model calls. Given the same text and the same ``today`` it
always produces the same ticket.
"""

import re
from datetime import date
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from .airports import GENERIC_CABIN_MAP, map_cabin
from .date_inference import DateReport, assign_header_dates, infer_dates, validate_dates
from .diagnostics import DiagnosticLog
from .legs import legs_to_segments, stitch
from .lexical import (
    build_city_iata_map,
    extract_base_date,
    extract_baggage,
    extract_booking_reference,
    extract_date_headers,
    extract_durations,
    extract_fare_details,
    extract_fare_notes,
    extract_flight_numbers,
    extract_hand_baggage,
    extract_iata_number,
    extract_passengers,
    extract_payments,
    extract_terminals,
    extract_tickets,
)
from .logging_utils import get_logger
from .models import FlightLeg, ParsedTicket, RawInput, Segment, Waypoint
from .text_extraction import html_to_text
from .text_normalizer import normalize
from .waypoints import detect_waypoints

logger = get_logger("deterministic")

STAGE = "deterministic"
CABIN_WINDOW = 300

_CABIN_LABEL = re.compile(r"cabin(?:\s+class)?\s*:?\s*([A-Za-z][A-Za-z ]{2,24}?)\s*(?:\n|\||$)", re.IGNORECASE)
# bare "First" collides with "First name" labels
_CABIN_NAMES = sorted((k for k in GENERIC_CABIN_MAP if k != "First"), key=len, reverse=True)
_CABIN_NAME = re.compile(r"\b(" + "|".join(map(re.escape, _CABIN_NAMES)) + r")\b", re.IGNORECASE)
_BOOKING_CLASS = re.compile(r"booking\s+class\s*:?\s*([A-Z])\b", re.IGNORECASE)


class DeterministicResult(BaseModel):
    ticket: ParsedTicket
    text: str = ""
    waypoints: List[Waypoint] = Field(default_factory=list)
    legs: List[FlightLeg] = Field(default_factory=list)
    flight_numbers: List[str] = Field(default_factory=list)
    date_report: DateReport = Field(default_factory=DateReport)


def document_text(text: Optional[str], html: Optional[str] = None) -> str:
    """Normalized text of the document, falling back to the HTML body."""
    source = text or ""
    if not source.strip() and html:
        source = html_to_text(html)
    return normalize(source)


def carrier_from_flight_numbers(flight_numbers: List[str]) -> str:
    return flight_numbers[0][:2] if flight_numbers else ""


def _fill_terminals(segments: List[Segment], terminals: Dict[str, str]) -> None:
    for seg in segments:
        for end in (seg.dep, seg.arr):
            if not end.terminal and end.iata in terminals:
                end.terminal = terminals[end.iata]


def _fill_cabins(segments: List[Segment], text: str, carrier: str) -> None:
    for seg in segments:
        if not seg.marketing_flight_no:
            continue
        pos = text.find(seg.marketing_flight_no)
        if pos < 0:
            pos = text.find(f"{seg.marketing_flight_no[:2]} {seg.marketing_flight_no[2:]}")
        if pos < 0:
            continue
        window = text[pos:pos + CABIN_WINDOW]
        if not seg.cabin:
            m = _CABIN_LABEL.search(window) or _CABIN_NAME.search(window)
            if m:
                seg.cabin = map_cabin(m.group(1), carrier)
        if not seg.booking_class:
            m = _BOOKING_CLASS.search(window)
            if m:
                seg.booking_class = m.group(1).upper()


def parse_deterministic(
    text: Optional[str],
    html: Optional[str] = None,
    carrier: Optional[str] = None,
    base_date: Optional[date] = None,
    today: Optional[date] = None,
    diagnostics: Optional[DiagnosticLog] = None,
) -> DeterministicResult:
    diagnostics = diagnostics if diagnostics is not None else DiagnosticLog()

    normalized = document_text(text, html)

    city_map = build_city_iata_map(normalized)
    terminals = extract_terminals(normalized)
    waypoints = detect_waypoints(normalized, city_map, diagnostics)
    flight_numbers = extract_flight_numbers(normalized)
    durations = extract_durations(normalized, flight_numbers)

    legs: List[FlightLeg] = []
    if waypoints or flight_numbers:
        legs = stitch(waypoints, flight_numbers, durations, diagnostics)
    else:
        diagnostics.warning(STAGE, "No waypoints or flight numbers found")

    carrier = (carrier or carrier_from_flight_numbers(flight_numbers)).upper()
    segments = legs_to_segments(legs)
    _fill_terminals(segments, terminals)
    _fill_cabins(segments, normalized, carrier)

    headers = extract_date_headers(normalized)
    if headers and segments:
        positions = [leg.departure.ordinal_position for leg in legs]
        segments = assign_header_dates(segments, positions, headers)

    base = base_date or extract_base_date(normalized)
    segments = infer_dates(segments, base_date=base, today=today, diagnostics=diagnostics)
    report = validate_dates(segments, diagnostics)

    ticket = ParsedTicket(
        carrier=carrier,
        airline_locator=extract_booking_reference(normalized),
        passengers=extract_passengers(normalized),
        tickets=extract_tickets(normalized),
        baggage=extract_baggage(normalized),
        hand_baggage=extract_hand_baggage(normalized),
        segments=segments,
        payments=extract_payments(normalized),
        fare_details=extract_fare_details(normalized),
        fare_notes=extract_fare_notes(normalized),
        iata_number=extract_iata_number(normalized),
        raw=RawInput(text=text, html=html),
    )

    logger.event(
        "deterministic_parsed",
        carrier=ticket.carrier,
        waypoints=len(waypoints),
        legs=len(legs),
        flight_numbers=len(flight_numbers),
        passengers=len(ticket.passengers),
        has_locator=bool(ticket.airline_locator),
        date_warnings=len(report.warnings),
    )
    return DeterministicResult(
        ticket=ticket,
        text=normalized,
        waypoints=waypoints,
        legs=legs,
        flight_numbers=flight_numbers,
        date_report=report,
    )
