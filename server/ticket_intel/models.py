# models.py
import re
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .diagnostics import Diagnostic

PAX_TYPES = ("ADT", "CHD", "INF")


class CamelModel(BaseModel):
    """Accepts both snake_case and the camelCase keys used on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------- stage values ----------------


class Waypoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    time: str = Field(..., description="HH:MM")
    location: str = Field(..., description="IATA code")
    is_next_day: bool = False
    terminal: Optional[str] = None
    ordinal_position: int
    city: Optional[str] = None


class FlightLeg(BaseModel):
    flight_number: Optional[str] = None
    departure: Waypoint
    arrival: Waypoint
    duration_text: Optional[str] = None


# ---------------- parsed ticket ----------------


class Endpoint(CamelModel):
    iata: Optional[str] = None
    city: Optional[str] = None
    terminal: Optional[str] = None
    time_local: Optional[str] = None
    date: Optional[str] = None
    day_offset: int = 0
    date_inferred: bool = False
    date_confidence: Optional[str] = None

    @field_validator("iata")
    @classmethod
    def _upper_iata(cls, v: Optional[str]) -> Optional[str]:
        if not v:
            return None
        v = v.strip().upper()
        return v if re.fullmatch(r"[A-Z]{3}", v) else None


class Segment(CamelModel):
    marketing_flight_no: str = ""
    cabin: Optional[str] = None
    booking_class: Optional[str] = None
    meal_service: Optional[str] = None
    duration_text: Optional[str] = None
    dep: Endpoint = Field(default_factory=Endpoint)
    arr: Endpoint = Field(default_factory=Endpoint)

    @field_validator("marketing_flight_no", mode="before")
    @classmethod
    def _clean_flight_no(cls, v: Optional[str]) -> str:
        if not v:
            return ""
        return re.sub(r"[^\w\d]", "", str(v).upper())


class Passenger(CamelModel):
    full_name: str
    type: Optional[str] = None

    @field_validator("full_name")
    @classmethod
    def _squash_spaces(cls, v: str) -> str:
        return " ".join(v.split())

    @field_validator("type", mode="before")
    @classmethod
    def _pax_type(cls, v: Optional[str]) -> Optional[str]:
        if not v:
            return None
        v = str(v).strip().upper()
        return v if v in PAX_TYPES else None


class TicketNumber(CamelModel):
    number: str
    pax_name: str = ""
    valid_until: Optional[str] = None


class Payment(CamelModel):
    currency: str
    total: float
    method: Optional[str] = None


class Tax(CamelModel):
    type: str
    amount: float
    description: Optional[str] = None


class FareDetails(CamelModel):
    base_fare: Optional[float] = None
    currency: Optional[str] = None
    carrier_charges: Optional[float] = None
    taxes: List[Tax] = Field(default_factory=list)
    total: Optional[float] = None


class RawInput(CamelModel):
    text: Optional[str] = None
    html: Optional[str] = None


class ParsedTicket(CamelModel):
    carrier: str = ""
    airline_locator: Optional[str] = None
    passengers: List[Passenger] = Field(default_factory=list)
    tickets: List[TicketNumber] = Field(default_factory=list)
    baggage: Optional[str] = None
    hand_baggage: Optional[str] = None
    segments: List[Segment] = Field(default_factory=list)
    payments: List[Payment] = Field(default_factory=list)
    fare_details: Optional[FareDetails] = None
    fare_notes: Optional[str] = None
    iata_number: Optional[str] = None
    raw: RawInput = Field(default_factory=RawInput)

    @field_validator("airline_locator")
    @classmethod
    def _upper_locator(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().upper() if v else None


# ---------------- collaborators ----------------


class ExtractedText(BaseModel):
    text: Optional[str] = None
    html: Optional[str] = None
    error: Optional[str] = None
    source: str = "text"

    @property
    def usable(self) -> bool:
        return bool((self.text and self.text.strip()) or (self.html and self.html.strip()))


class LLMUsage(CamelModel):
    model: str
    tokens_in: int = 0
    tokens_out: int = 0
    cost: float = 0.0
    purpose: str = "extraction"
    retry_used: bool = False


class GenerativeResult(BaseModel):
    result: ParsedTicket
    usage: LLMUsage


# ---------------- external itinerary ----------------


class ItineraryPassenger(CamelModel):
    name: str
    type: str = "adult"


class ItineraryEndpoint(CamelModel):
    airport: str
    code: str
    scheduled_time: str
    terminal: Optional[str] = None


class ItinerarySegment(CamelModel):
    airline: str
    flight_number: str
    departure: ItineraryEndpoint
    arrival: ItineraryEndpoint
    status: str = "Confirmed"
    duration: Optional[str] = None
    cabin: Optional[str] = None
    booking_class: Optional[str] = None


class ItineraryTicketNumber(CamelModel):
    number: str
    passenger_name: str = ""
    valid_until: Optional[str] = None


class MealService(CamelModel):
    segment_index: int
    service: str


class ItineraryPayment(CamelModel):
    currency: str
    amount: float
    method: Optional[str] = None


class BookingExtras(CamelModel):
    airline_locator: Optional[str] = None
    iata_number: Optional[str] = None
    ticket_numbers: List[ItineraryTicketNumber] = Field(default_factory=list)
    baggage: Optional[str] = None
    hand_baggage: Optional[str] = None
    meal_service: List[MealService] = Field(default_factory=list)
    payments: List[ItineraryPayment] = Field(default_factory=list)
    fare_details: Optional[FareDetails] = None
    fare_notes: Optional[str] = None
    extracted_from: Optional[str] = None
    parsed_with: Optional[str] = None
    extracted_at: Optional[str] = None


class ExternalItinerary(CamelModel):
    passengers: List[ItineraryPassenger] = Field(default_factory=list)
    segments: List[ItinerarySegment] = Field(default_factory=list)
    created_at: str
    booking_extras: Optional[BookingExtras] = None


# ---------------- results ----------------


class ExtractionError(CamelModel):
    error: bool = True
    user_message: str
    technical_reason: str
    suggestions: List[str] = Field(default_factory=list)


class ParseOutcome(CamelModel):
    success: bool
    ticket: Optional[ParsedTicket] = None
    itinerary: Optional[ExternalItinerary] = None
    score: float = 0.0
    decision: str = ""
    method: str = ""
    carrier_hint: Optional[str] = None
    diagnostics: List[Diagnostic] = Field(default_factory=list)
    date_warnings: List[str] = Field(default_factory=list)
    usage: List[LLMUsage] = Field(default_factory=list)
    processing_time: Dict[str, float] = Field(default_factory=dict)
    error: Optional[ExtractionError] = None
