# carriers/base.py
from abc import ABC, abstractmethod
from datetime import date
from typing import Optional

from ..deterministic import document_text
from ..diagnostics import DiagnosticLog
from ..lexical import (
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
from ..models import ParsedTicket


class CarrierParser(ABC):
    """
    One airline's document layout.

    ``detect`` must be cheap and conservative: a false positive routes a
    foreign ticket through the wrong layout rules.
    """

    code: str = ""
    name: str = ""

    @abstractmethod
    def detect(self, text: Optional[str], html: Optional[str] = None) -> bool:
        ...

    @abstractmethod
    def parse(
        self,
        text: Optional[str],
        html: Optional[str] = None,
        today: Optional[date] = None,
        diagnostics: Optional[DiagnosticLog] = None,
    ) -> ParsedTicket:
        ...

    def enrich(
        self,
        ticket: ParsedTicket,
        text: Optional[str],
        html: Optional[str] = None,
        diagnostics: Optional[DiagnosticLog] = None,
    ) -> ParsedTicket:
        """Fill fields a generative result left empty; never overwrite what it found."""
        diagnostics = diagnostics if diagnostics is not None else DiagnosticLog()
        content = document_text(text, html)
        out = ticket.model_copy(deep=True)
        filled = []

        if not out.airline_locator or len(out.airline_locator) < 5:
            locator = extract_booking_reference(content)
            if locator:
                out.airline_locator = locator
                filled.append("airline_locator")
        if not out.passengers:
            out.passengers = extract_passengers(content)
            if out.passengers:
                filled.append("passengers")

        simple = (
            ("tickets", extract_tickets),
            ("baggage", extract_baggage),
            ("hand_baggage", extract_hand_baggage),
            ("payments", extract_payments),
            ("fare_details", extract_fare_details),
            ("fare_notes", extract_fare_notes),
            ("iata_number", extract_iata_number),
        )
        for field, extractor in simple:
            if getattr(out, field):
                continue
            value = extractor(content)
            if value:
                setattr(out, field, value)
                filled.append(field)

        out.carrier = out.carrier or self.code
        if filled:
            diagnostics.info("carriers", f"{self.code} enrichment filled {', '.join(filled)}", carrier=self.code)
        return out
