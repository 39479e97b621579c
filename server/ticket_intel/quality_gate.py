# quality_gate.py
"""
Confidence scoring for parsed tickets, on a 0-100 scale.

The gate is the only place that decides whether generative extraction
runs. Every weight is a named constant so it can be tuned and tested on
its own; the full weight set sums to 100.
"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from .models import ParsedTicket, Segment
from .names import is_plausible_name
from .patterns import patterns

# critical fields
LOCATOR_WEIGHT = 15.0
PASSENGER_PRESENCE_WEIGHT = 15.0
SEGMENT_PRESENCE_WEIGHT = 10.0

# quality
NAME_QUALITY_WEIGHT = 20.0
PASSENGER_COUNT_WEIGHT = 5.0
PASSENGER_COUNT_CAP = 10.0
SEGMENT_SHAPE_WEIGHT = 15.0
SEGMENT_COUNT_WEIGHT = 2.5
SEGMENT_COUNT_CAP = 5.0

# optional field bonuses
BAGGAGE_WEIGHT = 3.0
PAYMENTS_WEIGHT = 3.0
TICKETS_WEIGHT = 2.0
FARE_NOTES_WEIGHT = 2.0

MIN_LOCATOR_LENGTH = 5
ACCEPTANCE_THRESHOLD = 70.0
# below this a narrow field enhancement is not worth trying
ENHANCEMENT_FLOOR = 40.0


class GateDecision(str, Enum):
    ACCEPT = "accept"
    ENHANCE = "enhance"
    FALLBACK = "fallback"


class GateVerdict(BaseModel):
    decision: GateDecision
    score: float
    missing_fields: List[str] = Field(default_factory=list)


def is_valid_segment(segment: Segment) -> bool:
    return bool(
        patterns.FLIGHT_NO_SHAPE.match(segment.marketing_flight_no or "")
        and segment.dep.iata
        and segment.arr.iata
    )


def has_valid_locator(ticket: ParsedTicket) -> bool:
    return bool(ticket.airline_locator and len(ticket.airline_locator) >= MIN_LOCATOR_LENGTH)


def score_breakdown(ticket: ParsedTicket) -> Dict[str, float]:
    parts: Dict[str, float] = {}

    parts["locator"] = LOCATOR_WEIGHT if has_valid_locator(ticket) else 0.0
    parts["passenger_presence"] = PASSENGER_PRESENCE_WEIGHT if ticket.passengers else 0.0
    parts["segment_presence"] = SEGMENT_PRESENCE_WEIGHT if ticket.segments else 0.0

    valid_names = [p for p in ticket.passengers if is_plausible_name(p.full_name)]
    if ticket.passengers:
        parts["name_quality"] = NAME_QUALITY_WEIGHT * len(valid_names) / len(ticket.passengers)
        parts["passenger_count"] = min(len(valid_names) * PASSENGER_COUNT_WEIGHT, PASSENGER_COUNT_CAP)
    else:
        parts["name_quality"] = 0.0
        parts["passenger_count"] = 0.0

    if ticket.segments:
        valid = sum(1 for s in ticket.segments if is_valid_segment(s))
        parts["segment_shape"] = SEGMENT_SHAPE_WEIGHT * valid / len(ticket.segments)
        parts["segment_count"] = min(valid * SEGMENT_COUNT_WEIGHT, SEGMENT_COUNT_CAP)
    else:
        parts["segment_shape"] = 0.0
        parts["segment_count"] = 0.0

    parts["baggage"] = BAGGAGE_WEIGHT if ticket.baggage else 0.0
    parts["payments"] = PAYMENTS_WEIGHT if ticket.payments else 0.0
    parts["tickets"] = TICKETS_WEIGHT if ticket.tickets else 0.0
    parts["fare_notes"] = FARE_NOTES_WEIGHT if ticket.fare_notes else 0.0
    return parts


def score(ticket: Optional[ParsedTicket]) -> float:
    if ticket is None:
        return 0.0
    return round(min(100.0, sum(score_breakdown(ticket).values())), 2)


def missing_fields(ticket: ParsedTicket) -> List[str]:
    """Critical fields a narrow enhancement call could fill."""
    missing = []
    if not has_valid_locator(ticket):
        missing.append("airline_locator")
    if not any(is_plausible_name(p.full_name) for p in ticket.passengers):
        missing.append("passengers")
    if not ticket.segments:
        missing.append("segments")
    elif not all(is_valid_segment(s) for s in ticket.segments):
        missing.append("segment_details")
    return missing


def evaluate(ticket: ParsedTicket, threshold: float = ACCEPTANCE_THRESHOLD) -> GateVerdict:
    """
    ACCEPT when the score clears the threshold with every critical field
    present; ENHANCE when segments are sound but identity fields are weak;
    FALLBACK to full generative extraction otherwise.
    """
    value = score(ticket)
    missing = missing_fields(ticket)
    if value >= threshold and not missing:
        decision = GateDecision.ACCEPT
    elif ticket.segments and "segment_details" not in missing and value >= ENHANCEMENT_FLOOR:
        decision = GateDecision.ENHANCE
    else:
        decision = GateDecision.FALLBACK
    return GateVerdict(decision=decision, score=value, missing_fields=missing)


def pick_better(deterministic: ParsedTicket, generative: Optional[ParsedTicket]) -> ParsedTicket:
    """Higher score wins; a tie keeps the deterministic result."""
    if generative is None:
        return deterministic
    return generative if score(generative) > score(deterministic) else deterministic
