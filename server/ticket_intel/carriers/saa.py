# carriers/saa.py
"""
South African Airways itineraries.

SAA documents are handled by the general waypoint pipeline; this parser
only pins the carrier and adds the one layout quirk the general
extractors miss: a bare locator printed just above "Services summary".
"""

import re
from datetime import date
from typing import Optional

from ..deterministic import parse_deterministic
from ..diagnostics import DiagnosticLog
from ..models import ParsedTicket
from .base import CarrierParser

STAGE = "carriers.saa"

_DETECT_PHRASES = ("south african airways", "flysaa.com")
_SUMMARY_LOCATOR = re.compile(r"^([A-Z0-9]{6})\s*\n(?:[^\n]*\n){0,2}?\s*services\s+summary", re.IGNORECASE | re.MULTILINE)


class SouthAfricanAirwaysParser(CarrierParser):
    code = "SA"
    name = "South African Airways"

    def detect(self, text: Optional[str], html: Optional[str] = None) -> bool:
        content = f"{text or ''} {html or ''}".lower()
        return any(p in content for p in _DETECT_PHRASES)

    def parse(
        self,
        text: Optional[str],
        html: Optional[str] = None,
        today: Optional[date] = None,
        diagnostics: Optional[DiagnosticLog] = None,
    ) -> ParsedTicket:
        diagnostics = diagnostics if diagnostics is not None else DiagnosticLog()
        result = parse_deterministic(text, html, carrier=self.code, today=today, diagnostics=diagnostics)
        ticket = result.ticket

        if not ticket.airline_locator:
            m = _SUMMARY_LOCATOR.search(result.text)
            if m and re.search(r"\d", m.group(1)) and re.search(r"[A-Z]", m.group(1)):
                ticket.airline_locator = m.group(1)
                diagnostics.info(STAGE, "Locator taken from the services summary header")
        return ticket
