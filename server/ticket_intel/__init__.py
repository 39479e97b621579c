"""
Ticket-Intel: airline e-ticket parsing.

Deterministic waypoint parsing first, carrier-specific parsers where one
is registered, and a quality-gated Gemini fallback for what the rules
cannot recover.
"""

from .carriers import CarrierParser, CarrierRegistry, detect_carrier_hint, registry
from .diagnostics import Diagnostic, DiagnosticLog, Severity
from .errors import GenerativeExtractionError, NoUsableInputError, StitchingError, TicketIntelError
from .itinerary import format_route, merge_itineraries, to_itinerary
from .models import ExternalItinerary, ParsedTicket, ParseOutcome, Segment
from .pipeline import TicketPipeline
from .quality_gate import GateDecision, evaluate, score

__version__ = "0.1.0"

__all__ = [
    "CarrierParser",
    "CarrierRegistry",
    "Diagnostic",
    "DiagnosticLog",
    "ExternalItinerary",
    "GateDecision",
    "GenerativeExtractionError",
    "NoUsableInputError",
    "ParseOutcome",
    "ParsedTicket",
    "Segment",
    "Severity",
    "StitchingError",
    "TicketIntelError",
    "TicketPipeline",
    "detect_carrier_hint",
    "evaluate",
    "format_route",
    "merge_itineraries",
    "registry",
    "score",
    "to_itinerary",
]
