# itinerary.py
"""
ParsedTicket -> ExternalItinerary.

The mapping only reshapes: dates and times were settled by date inference
and are copied, never recomputed. Cabin names go through the carrier's
table, passenger types become long-form, baggage is canonicalised.
"""

import re
from datetime import date, datetime, timezone
from typing import List, Optional

from .airports import PAX_TYPE_MAP, city_for, map_cabin
from .date_inference import parse_date, parse_time
from .models import (
    BookingExtras,
    Endpoint,
    ExternalItinerary,
    ItineraryEndpoint,
    ItineraryPassenger,
    ItineraryPayment,
    ItinerarySegment,
    ItineraryTicketNumber,
    MealService,
    ParsedTicket,
    Passenger,
    Segment,
)

_FLIGHT_PREFIX = re.compile(r"^([A-Z]{2,3}|[A-Z]\d|\d[A-Z])(\d+[A-Z]?)$")
_BAGS_AT = re.compile(r"(\d+)\s+(?:bags?|pieces?|pcs?)\s+(?:at|of|x)\s+(\d+)\s*kg", re.IGNORECASE)
_COUNT_TIMES = re.compile(r"(\d+)\s*[x×]\s*(\d+)\s*kg", re.IGNORECASE)
_SCHEDULED = re.compile(r"^(\d{4}-\d{2}-\d{2})T(\d{2}:\d{2})")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def normalize_pax_type(code: Optional[str]) -> str:
    return PAX_TYPE_MAP.get((code or "").upper(), "adult")


def normalize_baggage(baggage: Optional[str]) -> Optional[str]:
    """``2 bags at 23kg`` and ``2x23kg`` both read ``2 × 23kg``; anything else passes through."""
    if not baggage:
        return baggage
    for pattern in (_BAGS_AT, _COUNT_TIMES):
        m = pattern.search(baggage)
        if m:
            return f"{int(m.group(1))} × {int(m.group(2))}kg"
    return baggage


def airline_code(flight_no: str, carrier: Optional[str] = None) -> str:
    m = _FLIGHT_PREFIX.match(flight_no or "")
    if m:
        return m.group(1)
    return (carrier or "").upper() or "XX"


def format_scheduled_time(date_value: Optional[str], time_value: Optional[str], today: Optional[date] = None) -> str:
    """ISO local time ``YYYY-MM-DDTHH:MM:00``; missing halves fall back to midnight or today."""
    d = parse_date(date_value)
    t = parse_time(time_value)
    if d and t:
        return f"{d.isoformat()}T{t}:00"
    if d:
        return f"{d.isoformat()}T00:00:00"
    if t:
        return f"{(today or date.today()).isoformat()}T{t}:00"
    return _now()


def _endpoint(endpoint: Endpoint, today: Optional[date]) -> ItineraryEndpoint:
    return ItineraryEndpoint(
        airport=endpoint.city or city_for(endpoint.iata) or endpoint.iata or "Unknown",
        code=endpoint.iata or "XXX",
        scheduled_time=format_scheduled_time(endpoint.date, endpoint.time_local, today),
        terminal=endpoint.terminal,
    )


def _segment(segment: Segment, carrier: Optional[str], today: Optional[date]) -> ItinerarySegment:
    airline = airline_code(segment.marketing_flight_no, carrier)
    return ItinerarySegment(
        airline=airline,
        flight_number=segment.marketing_flight_no,
        departure=_endpoint(segment.dep, today),
        arrival=_endpoint(segment.arr, today),
        duration=segment.duration_text,
        cabin=map_cabin(segment.cabin, airline),
        booking_class=segment.booking_class,
    )


def to_itinerary(
    ticket: ParsedTicket,
    extracted_from: Optional[str] = None,
    parsed_with: Optional[str] = None,
    today: Optional[date] = None,
) -> ExternalItinerary:
    extras = BookingExtras(
        airline_locator=ticket.airline_locator,
        iata_number=ticket.iata_number,
        ticket_numbers=[
            ItineraryTicketNumber(number=t.number, passenger_name=t.pax_name or "", valid_until=t.valid_until)
            for t in ticket.tickets
        ],
        baggage=normalize_baggage(ticket.baggage),
        hand_baggage=ticket.hand_baggage,
        meal_service=[
            MealService(segment_index=i, service=s.meal_service)
            for i, s in enumerate(ticket.segments)
            if s.meal_service
        ],
        payments=[ItineraryPayment(currency=p.currency, amount=p.total, method=p.method) for p in ticket.payments],
        fare_details=ticket.fare_details,
        fare_notes=ticket.fare_notes,
        extracted_from=extracted_from,
        parsed_with=parsed_with,
        extracted_at=_now(),
    )
    return ExternalItinerary(
        passengers=[
            ItineraryPassenger(name=p.full_name.strip(), type=normalize_pax_type(p.type))
            for p in ticket.passengers
        ],
        segments=[_segment(s, ticket.carrier, today) for s in ticket.segments],
        created_at=_now(),
        booking_extras=extras,
    )


def merge_itineraries(
    existing: ExternalItinerary,
    parsed: ExternalItinerary,
    preserve_existing: bool = False,
) -> ExternalItinerary:
    """
    Overlay a fresh parse on an itinerary under review.

    With ``preserve_existing`` the reviewer's passengers and segments stay
    first and only new passenger names are appended. Booking extras are
    always merged, fields set in ``parsed`` winning.
    """
    merged = parsed.model_copy(deep=True)

    if preserve_existing and existing.passengers:
        known = {p.name.lower() for p in existing.passengers}
        merged.passengers = list(existing.passengers) + [
            p for p in parsed.passengers if p.name.lower() not in known
        ]
    if preserve_existing and existing.segments:
        merged.segments = list(existing.segments) + list(parsed.segments)

    if existing.booking_extras and parsed.booking_extras:
        overlay = parsed.booking_extras.model_dump(exclude_unset=True, exclude_none=True)
        base = existing.booking_extras.model_dump()
        base.update({k: v for k, v in overlay.items() if v not in ([], "")})
        merged.booking_extras = BookingExtras.model_validate(base)
    elif existing.booking_extras:
        merged.booking_extras = existing.booking_extras
    return merged


def _military(time_value: Optional[str]) -> str:
    t = parse_time(time_value)
    return t.replace(":", "") if t else "----"


def format_route(segment: Segment) -> str:
    """``2030 ACC to 0425+1 JNB``: departure-relative day offset on the arrival."""
    dep_date, arr_date = parse_date(segment.dep.date), parse_date(segment.arr.date)
    offset = (arr_date - dep_date).days if dep_date and arr_date else segment.arr.day_offset
    suffix = f"+{offset}" if offset > 0 else ""
    return (
        f"{_military(segment.dep.time_local)} {segment.dep.iata or 'XXX'} to "
        f"{_military(segment.arr.time_local)}{suffix} {segment.arr.iata or 'XXX'}"
    )


def _read_back(endpoint: ItineraryEndpoint) -> Endpoint:
    m = _SCHEDULED.match(endpoint.scheduled_time)
    return Endpoint(
        iata=endpoint.code if endpoint.code != "XXX" else None,
        city=endpoint.airport if endpoint.airport != "Unknown" else None,
        terminal=endpoint.terminal,
        date=m.group(1) if m else None,
        time_local=m.group(2) if m else None,
    )


def segments_from_itinerary(itinerary: ExternalItinerary) -> List[Segment]:
    """Inverse of the segment mapping, for callers that edit an itinerary and re-score it."""
    return [
        Segment(
            marketing_flight_no=s.flight_number,
            cabin=s.cabin,
            booking_class=s.booking_class,
            duration_text=s.duration,
            dep=_read_back(s.departure),
            arr=_read_back(s.arrival),
        )
        for s in itinerary.segments
    ]


def ticket_from_itinerary(itinerary: ExternalItinerary) -> ParsedTicket:
    extras = itinerary.booking_extras or BookingExtras()
    long_to_code = {v: k for k, v in PAX_TYPE_MAP.items()}
    segments = segments_from_itinerary(itinerary)
    return ParsedTicket(
        carrier=itinerary.segments[0].airline if itinerary.segments else "",
        airline_locator=extras.airline_locator,
        passengers=[Passenger(full_name=p.name, type=long_to_code.get(p.type)) for p in itinerary.passengers],
        baggage=extras.baggage,
        hand_baggage=extras.hand_baggage,
        segments=segments,
        fare_details=extras.fare_details,
        fare_notes=extras.fare_notes,
        iata_number=extras.iata_number,
    )
