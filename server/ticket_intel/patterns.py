# patterns.py
import re

from .airports import AIRLINE_CODES

_MONTH = r"(Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*\.?"
_WEEKDAY = r"(?:Mon|Tue|Wed|Thu|Fri|Sat|Sun)[a-z]*\.?,?"
_ORDINAL = r"(?:st|nd|rd|th)?"
_KNOWN_PREFIXES = "|".join(sorted(AIRLINE_CODES))


class Patterns:
    # waypoints
    TIME_LINE = re.compile(r"^(\d{2}:\d{2})(?:\s+(.*))?$")
    TIME_HHMM = re.compile(r"\b([01]\d|2[0-3]):([0-5]\d)\b")
    IATA_PARENS = re.compile(r"\(([A-Z]{3})\)")
    TERMINAL = re.compile(r"\b[Tt]erminal\s*([A-Z0-9]{1,3})\b")
    NEXT_DAY = re.compile(r"NEXT_DAY|\(?\+1\s*days?\)?", re.IGNORECASE)
    DAY_MARKER_LINE = re.compile(r"^(?:NEXT_DAY|\(?\+1\s*days?\)?|\(\+1\))$", re.IGNORECASE)

    # city map: "<City name> (<IATA>)" on one line
    CITY_IATA = re.compile(r"([A-Za-z][A-Za-z .'-]*?)[ \t]*(?:\.{2,}[ \t]*)?\(([A-Z]{3})\)")

    # flight numbers and durations
    FLIGHT_NUMBER_LABELED = re.compile(
        r"(?i:flight\s+(?:number|no\.?))\s*:?\s*([A-Z]{2}|[A-Z]\d|\d[A-Z])\s?(\d{1,4})\b"
    )
    FLIGHT_NUMBER_KNOWN = re.compile(rf"\b({_KNOWN_PREFIXES})\s?(\d{{2,4}})\b")
    FLIGHT_NO_SHAPE = re.compile(r"^(?:[A-Z]{2}|[A-Z]\d|\d[A-Z])\d{1,4}[A-Z]?$")
    DURATION = re.compile(
        r"\b(\d{1,2})\s*h(?:rs?|ours?)?\s*(\d{1,2})\s*m(?:in(?:s|utes)?)?\b", re.IGNORECASE
    )

    # dates
    MONTH_DATE = re.compile(rf"\b(\d{{1,2}}){_ORDINAL}[\s-]+{_MONTH},?[\s-]+(\d{{4}})\b", re.IGNORECASE)
    ISO_DATE = re.compile(r"\b(\d{4})-(\d{2})-(\d{2})\b")
    SLASH_DATE = re.compile(r"\b(\d{1,2})/(\d{1,2})/(\d{4})\b")
    DATE_HEADER = re.compile(
        rf"^(?:{_WEEKDAY}\s+)?(\d{{1,2}}){_ORDINAL}\s+{_MONTH},?\s+(\d{{4}})$", re.IGNORECASE
    )

    # booking metadata
    BOOKING_REFERENCE = (
        re.compile(r"(?i:booking\s+reference\s+is)\s*:?\s*([A-Z0-9]{6})\b"),
        re.compile(r"(?i:booking\s+(?:reference|ref|code))\.?[:\s]+([A-Z0-9]{6})\b"),
        re.compile(r"(?i:confirmation\s+(?:number|code))[:\s]+([A-Z0-9]{6})\b"),
        re.compile(r"\bPNR[:\s]+([A-Z0-9]{6})\b"),
    )
    TICKET_NUMBER = re.compile(r"\b(\d{3}-\d{10})\b")
    TICKET_VALIDITY = re.compile(
        r"ticket\(?s?\)?\s+valid\s+until\s+(\d{1,2}\s+\w+\s+\d{4})", re.IGNORECASE
    )
    PAYMENT_TOTAL = re.compile(r"payment\s+total\s+([A-Z]{3})\s+(\d[\d,]*(?:\.\d+)?)", re.IGNORECASE)
    PAYMENT_METHOD = re.compile(
        r"(visa|mastercard|american express|amex|paypal|bank transfer)", re.IGNORECASE
    )
    IATA_NUMBER = re.compile(r"iata\s+number\s*:?\s*(\d+)", re.IGNORECASE)


patterns = Patterns()
