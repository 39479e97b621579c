# carriers/ba.py
"""
British Airways e-ticket receipts.

BA receipts print each flight as a block that starts at the flight
number::

    BA081
    British Airways | World Traveller |
    30 Aug 2025
    22:10
    Heathrow (London)
    Terminal 5
    31 Aug 2025
    05:15
    Accra
    Terminal 3

The block is read as a fixed sequence: departure date, time, place and
optional terminal, then the same for arrival.
"""

import re
from datetime import date
from typing import List, Optional

from ..airports import map_cabin
from ..date_inference import infer_dates, parse_date, validate_dates
from ..deterministic import document_text
from ..diagnostics import DiagnosticLog
from ..lexical import (
    build_city_iata_map,
    extract_baggage,
    extract_booking_reference,
    extract_fare_details,
    extract_fare_notes,
    extract_hand_baggage,
    extract_iata_number,
    extract_passengers,
    extract_payments,
    extract_tickets,
)
from ..models import Endpoint, ParsedTicket, Passenger, RawInput, Segment
from ..names import clean_name
from ..waypoints import resolve_location
from .base import CarrierParser

STAGE = "carriers.ba"
SEGMENT_WINDOW = 500
ENRICH_WINDOW = 800

_DETECT_PHRASES = ("british airways", "ba.com", "world traveller", "euro traveller", "club world")
_DETECT_FLIGHT = re.compile(r"\bba\s?\d{3,4}\b")

_FLIGHT = re.compile(r"\b(BA)\s?(\d{3,4})\b")
_PASSENGER_CELL = re.compile(r"\|\s*(?i:passenger)\s*\|\s*((?:MR|MRS|MS|MISS|DR)\s+)?([A-Z][A-Z\s]+?)\s*\|")
_DATE_LINE = re.compile(r"^\d{1,2}\s+(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*\s+\d{4}$", re.IGNORECASE)
_TIME_LINE = re.compile(r"^(\d{1,2}:\d{2})(?:\s+NEXT_DAY)?$")
_TERMINAL_LINE = re.compile(r"^terminal\s*(.*)$", re.IGNORECASE)
_CABIN_CELL = re.compile(r"British Airways[^\n]*?\|\s*([^|\n]+?)\s*\|")
_CABIN_NAME = re.compile(r"(World Traveller Plus|World Traveller|Euro Traveller|Club World|Club Europe|Club Suite|First Class|Business|Economy)", re.IGNORECASE)
_CABIN_LABEL = re.compile(r"Cabin\s+Class\s*:?\s*([^\n|]+)", re.IGNORECASE)
_BOOKING_CLASS = (
    re.compile(r"(?i:booking\s+class)\s*:?\s*([A-Z])\b"),
    re.compile(r"(?i:\bclass)\s*:\s*([A-Z])\b"),
)
_MEAL = r"(meal|food\s+and\s+beverages?\s+for\s+purchase)"
_DEP_TERMINAL = re.compile(r"departure[^:\n]*terminal[^:\n]*:?\s*([^,\n]+)", re.IGNORECASE)
_ARR_TERMINAL = re.compile(r"arrival[^:\n]*terminal[^:\n]*:?\s*([^,\n]+)", re.IGNORECASE)

# sequence states for one flight block
_DEP_DATE, _DEP_TIME, _DEP_PLACE, _ARR_DATE, _ARR_TIME, _ARR_PLACE, _DONE = range(7)


def _display_city(place: str) -> str:
    """``Heathrow (London)`` reads as London."""
    m = re.search(r"\(([^)]+)\)", place)
    return (m.group(1) if m else place).strip()


def _iso(raw: Optional[str]) -> Optional[str]:
    parsed = parse_date(raw)
    return parsed.isoformat() if parsed else None


class BritishAirwaysParser(CarrierParser):
    code = "BA"
    name = "British Airways"

    def detect(self, text: Optional[str], html: Optional[str] = None) -> bool:
        content = f"{text or ''} {html or ''}".lower()
        return any(p in content for p in _DETECT_PHRASES) or bool(_DETECT_FLIGHT.search(content))

    def parse(
        self,
        text: Optional[str],
        html: Optional[str] = None,
        today: Optional[date] = None,
        diagnostics: Optional[DiagnosticLog] = None,
    ) -> ParsedTicket:
        diagnostics = diagnostics if diagnostics is not None else DiagnosticLog()
        content = document_text(text, html)

        segments = self.extract_segments(content, diagnostics)
        segments = infer_dates(segments, today=today, diagnostics=diagnostics)
        validate_dates(segments, diagnostics)

        ticket = ParsedTicket(
            carrier=self.code,
            airline_locator=extract_booking_reference(content),
            passengers=self.extract_passengers(content),
            tickets=extract_tickets(content),
            baggage=extract_baggage(content),
            hand_baggage=extract_hand_baggage(content),
            segments=segments,
            payments=extract_payments(content),
            fare_details=extract_fare_details(content),
            fare_notes=extract_fare_notes(content),
            iata_number=extract_iata_number(content),
            raw=RawInput(text=text, html=html),
        )
        diagnostics.info(
            STAGE,
            f"BA layout: {len(ticket.segments)} segment(s), {len(ticket.passengers)} passenger(s)",
        )
        return ticket

    def extract_passengers(self, content: str) -> List[Passenger]:
        found = {}
        for m in _PASSENGER_CELL.finditer(content):
            name = clean_name(m.group(2))
            if name and name.upper() not in found:
                found[name.upper()] = Passenger(full_name=name)
        for pax in extract_passengers(content):
            found.setdefault(pax.full_name.upper(), pax)
        return list(found.values())

    def extract_segments(self, content: str, diagnostics: DiagnosticLog) -> List[Segment]:
        city_map = build_city_iata_map(content)
        segments: List[Segment] = []
        seen = set()

        for m in _FLIGHT.finditer(content):
            flight_no = m.group(1) + m.group(2)
            block = content[m.start():m.start() + SEGMENT_WINDOW]
            segment = self._read_block(flight_no, block, content, city_map)
            if segment is None:
                continue
            key = (flight_no, segment.dep.date, segment.dep.time_local)
            if key in seen:
                continue
            seen.add(key)
            if not (segment.dep.iata and segment.arr.iata):
                diagnostics.warning(STAGE, f"{flight_no}: could not resolve both airports")
            segments.append(segment)
        return segments

    def _read_block(self, flight_no: str, block: str, content: str, city_map) -> Optional[Segment]:
        lines = [line.strip() for line in block.split("\n") if line.strip()]
        state = _DEP_DATE
        dep = {"date": None, "time": None, "place": None, "terminal": None}
        arr = {"date": None, "time": None, "place": None, "terminal": None}

        arr_index = None
        for i, line in enumerate(lines):
            if state == _DONE:
                break
            if flight_no in line.replace(" ", "") or "British Airways" in line:
                continue
            terminal = _TERMINAL_LINE.match(line)
            if state == _DEP_DATE and _DATE_LINE.match(line):
                dep["date"], state = line, _DEP_TIME
            elif state == _DEP_TIME and _TIME_LINE.match(line):
                dep["time"], state = _TIME_LINE.match(line).group(1), _DEP_PLACE
            elif state == _DEP_PLACE and len(line) > 2 and not terminal:
                dep["place"], state = line, _ARR_DATE
            elif state == _ARR_DATE and terminal and not dep["terminal"]:
                dep["terminal"] = terminal.group(1).strip()
            elif state == _ARR_DATE and _DATE_LINE.match(line):
                arr["date"], state = line, _ARR_TIME
            elif state == _ARR_TIME and _TIME_LINE.match(line):
                arr["time"], state = _TIME_LINE.match(line).group(1), _ARR_PLACE
            elif state == _ARR_PLACE and len(line) > 2 and not terminal:
                arr["place"], state, arr_index = line, _DONE, i
        if arr_index is not None and arr_index + 1 < len(lines):
            terminal = _TERMINAL_LINE.match(lines[arr_index + 1])
            if terminal:
                arr["terminal"] = terminal.group(1).strip()

        if not any((dep["date"], dep["time"], dep["place"], arr["date"], arr["time"], arr["place"])):
            return None

        return Segment(
            marketing_flight_no=flight_no,
            cabin=map_cabin(self._cabin(block), self.code),
            booking_class=self._booking_class(block),
            meal_service=self._meal_service(content, dep["place"], arr["place"]),
            dep=self._endpoint(dep, city_map),
            arr=self._endpoint(arr, city_map),
        )

    def _endpoint(self, fields, city_map) -> Endpoint:
        place = fields["place"] or ""
        return Endpoint(
            iata=resolve_location(place, None, city_map) if place else None,
            city=_display_city(place) or None,
            terminal=fields["terminal"] or None,
            time_local=fields["time"],
            date=_iso(fields["date"]),
        )

    @staticmethod
    def _cabin(block: str) -> Optional[str]:
        for pattern in (_CABIN_CELL, _CABIN_NAME, _CABIN_LABEL):
            m = pattern.search(block)
            if m and m.group(1).strip():
                return m.group(1).strip()
        return None

    @staticmethod
    def _booking_class(block: str) -> Optional[str]:
        for pattern in _BOOKING_CLASS:
            m = pattern.search(block)
            if m:
                return m.group(1)
        return None

    @staticmethod
    def _meal_service(content: str, dep_place: Optional[str], arr_place: Optional[str]) -> Optional[str]:
        if not dep_place or not arr_place:
            return None
        routes = {(dep_place, arr_place), (_display_city(dep_place), _display_city(arr_place))}
        for origin, dest in routes:
            pattern = re.compile(rf"{re.escape(origin)}\s+to\s+{re.escape(dest)}[^\n]*?{_MEAL}", re.IGNORECASE)
            m = pattern.search(content)
            if m:
                return m.group(1).strip()
        return None

    def enrich(
        self,
        ticket: ParsedTicket,
        text: Optional[str],
        html: Optional[str] = None,
        diagnostics: Optional[DiagnosticLog] = None,
    ) -> ParsedTicket:
        out = super().enrich(ticket, text, html, diagnostics)
        content = document_text(text, html)

        for seg in out.segments:
            if seg.cabin:
                seg.cabin = map_cabin(seg.cabin, self.code)
            pos = content.find(seg.marketing_flight_no) if seg.marketing_flight_no else -1
            if pos < 0:
                continue
            window = content[pos:pos + ENRICH_WINDOW]
            if not seg.dep.terminal:
                m = _DEP_TERMINAL.search(window)
                if m:
                    seg.dep.terminal = m.group(1).strip()
            if not seg.arr.terminal:
                m = _ARR_TERMINAL.search(window)
                if m:
                    seg.arr.terminal = m.group(1).strip()
        return out
