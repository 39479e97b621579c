# carriers/__init__.py
"""
Carrier-specific parsers, looked up by airline code.

Adding an airline means writing a ``CarrierParser`` and registering it
here; the pipeline asks the registry and never branches on carrier names.
"""

import re
from typing import Dict, Iterator, List, Optional

from .ba import BritishAirwaysParser
from .base import CarrierParser
from .saa import SouthAfricanAirwaysParser

# Broader than the parsers' own detect(): a hint only steers prompts.
_HINTS = (
    ("BA", ("british airways", "ba.com"), re.compile(r"\bba\s?\d{3,4}\b")),
    ("AF", ("air france", "airfrance."), re.compile(r"\baf\s?\d{3,4}\b")),
    ("KL", ("klm ", "klm."), re.compile(r"\bkl\s?\d{3,4}\b")),
    ("LH", ("lufthansa",), re.compile(r"\blh\s?\d{3,4}\b")),
    ("VS", ("virgin atlantic", "virgin-atlantic."), re.compile(r"\bvs\s?\d{3,4}\b")),
    ("SA", ("south african airways", "flysaa.com"), re.compile(r"\bsa\s?\d{3,4}\b")),
)


class CarrierRegistry:
    def __init__(self) -> None:
        self._parsers: Dict[str, CarrierParser] = {}

    def register(self, parser: CarrierParser) -> CarrierParser:
        self._parsers[parser.code.upper()] = parser
        return parser

    def get(self, code: Optional[str]) -> Optional[CarrierParser]:
        return self._parsers.get((code or "").upper())

    def detect(self, text: Optional[str], html: Optional[str] = None) -> Optional[CarrierParser]:
        """First registered parser that claims the document."""
        for parser in self._parsers.values():
            if parser.detect(text, html):
                return parser
        return None

    @property
    def codes(self) -> List[str]:
        return list(self._parsers)

    def __contains__(self, code: object) -> bool:
        return isinstance(code, str) and code.upper() in self._parsers

    def __iter__(self) -> Iterator[CarrierParser]:
        return iter(self._parsers.values())


def detect_carrier_hint(text: Optional[str], html: Optional[str] = None) -> Optional[str]:
    content = f"{text or ''} {html or ''}".lower()
    for code, phrases, flight in _HINTS:
        if any(p in content for p in phrases) or flight.search(content):
            return code
    return None


registry = CarrierRegistry()
registry.register(BritishAirwaysParser())
registry.register(SouthAfricanAirwaysParser())

__all__ = [
    "BritishAirwaysParser",
    "CarrierParser",
    "CarrierRegistry",
    "SouthAfricanAirwaysParser",
    "detect_carrier_hint",
    "registry",
]
