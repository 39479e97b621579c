# lexical.py
"""
Independent scanners over normalized ticket text.

Each extractor takes the whole document and returns what it found, or an
empty value. None of them raise on odd input.
"""

import re
from datetime import date
from typing import Dict, List, Optional, Tuple

from .airports import AIRPORT_CITIES, CITY_ALIASES
from .date_inference import parse_date
from .models import FareDetails, Passenger, Payment, Tax, TicketNumber
from .names import clean_name
from .patterns import patterns


DURATION_WINDOW = 100


# ---------------- city / airport ----------------


def build_city_iata_map(text: str) -> Dict[str, str]:
    """
    Map lowercased city names and the codes themselves to IATA codes.

    Built from ``<City name> (<IATA>)`` occurrences, then topped up with
    the built-in aliases for keys the document did not define.
    """
    mapping: Dict[str, str] = {}
    for match in patterns.CITY_IATA.finditer(text or ""):
        city = " ".join(match.group(1).split()).strip(" .'-").lower()
        code = match.group(2)
        if city and city not in mapping:
            mapping[city] = code
        mapping.setdefault(code.lower(), code)
        mapping.setdefault(code, code)
    for alias, code in CITY_ALIASES.items():
        mapping.setdefault(alias, code)
    return mapping


def extract_terminals(text: str) -> Dict[str, str]:
    """IATA code → terminal, only for airports printed with a single terminal."""
    seen: Dict[str, set] = {}
    lines = (text or "").split("\n")
    for i, line in enumerate(lines):
        code_match = patterns.IATA_PARENS.search(line)
        if not code_match:
            continue
        window = " ".join(lines[i:i + 2])
        term = patterns.TERMINAL.search(window)
        if term:
            seen.setdefault(code_match.group(1), set()).add(term.group(1))
    return {code: next(iter(terms)) for code, terms in seen.items() if len(terms) == 1}


# ---------------- flights ----------------


def extract_flight_numbers(text: str) -> List[str]:
    """
    Flight numbers in print order.

    Labelled ``Flight number XX 123`` occurrences are authoritative and
    kept one per leg; without any, fall back to known airline prefixes.
    """
    labelled = [f"{m.group(1)}{m.group(2)}" for m in patterns.FLIGHT_NUMBER_LABELED.finditer(text or "")]
    if labelled:
        return labelled

    found: List[str] = []
    for m in patterns.FLIGHT_NUMBER_KNOWN.finditer(text or ""):
        flight_no = f"{m.group(1)}{m.group(2)}"
        if flight_no not in found:
            found.append(flight_no)
    return found


def extract_durations(text: str, flight_numbers: List[str]) -> Dict[str, str]:
    """Flight number → ``"7h 55min"``, using the duration printed closest to it."""
    durations: Dict[str, str] = {}
    text = text or ""
    for flight_no in flight_numbers:
        if flight_no in durations:
            continue
        m = re.match(r"^([A-Z0-9]{2})(\d+)$", flight_no)
        if not m:
            continue
        needle = re.compile(rf"\b{m.group(1)}\s?{m.group(2)}\b")
        best: Optional[Tuple[int, str]] = None
        for occ in needle.finditer(text):
            lo = max(0, occ.start() - DURATION_WINDOW)
            hi = min(len(text), occ.end() + DURATION_WINDOW)
            for d in patterns.DURATION.finditer(text, lo, hi):
                distance = min(abs(d.start() - occ.end()), abs(occ.start() - d.end()))
                label = f"{int(d.group(1))}h {int(d.group(2))}min"
                if best is None or distance < best[0]:
                    best = (distance, label)
        if best:
            durations[flight_no] = best[1]
    return durations


# ---------------- dates ----------------


def extract_base_date(text: str) -> Optional[date]:
    """First ``28 Sep 2025`` or ISO date in the document."""
    candidates = []
    for pattern in (patterns.MONTH_DATE, patterns.ISO_DATE):
        m = pattern.search(text or "")
        if m:
            candidates.append((m.start(), parse_date(m.group(0))))
    candidates = [c for c in candidates if c[1] is not None]
    if not candidates:
        return None
    return min(candidates, key=lambda c: c[0])[1]


def extract_date_headers(text: str) -> List[Tuple[int, date]]:
    """(line index, date) for every line that is only a date, e.g. ``Sunday, 28 September 2025``."""
    headers: List[Tuple[int, date]] = []
    for i, line in enumerate((text or "").split("\n")):
        m = patterns.DATE_HEADER.match(line.strip())
        if m:
            parsed = parse_date(m.group(0))
            if parsed:
                headers.append((i, parsed))
    return headers


# ---------------- booking metadata ----------------


def extract_booking_reference(text: str) -> Optional[str]:
    for pattern in patterns.BOOKING_REFERENCE:
        m = pattern.search(text or "")
        if m:
            return m.group(1).upper()
    return None


_PAYMENT_KEYWORDS = (
    "payment information",
    "payment method",
    "card holder",
    "cardholder",
    "billing address",
    "payment total",
    "card number",
)
_PASSENGER_LABEL = re.compile(r"^(?:passengers?|traveller|traveler)(?:\s+names?)?\s*:?\s*(.*)$", re.IGNORECASE)
_TITLED_NAME = re.compile(r"\b(?i:mr|mrs|ms|miss|dr|mstr)\.?[ \t]+([A-Z][A-Za-z'-]+(?:[ \t]+[A-Z][A-Za-z'-]+){1,3})")
_SLASH_NAME = re.compile(r"\b([A-Z][A-Z'-]+)/([A-Z][A-Z'-]+(?: (?!(?:MR|MRS|MS|MISS|DR|MSTR)\b)[A-Z][A-Z'-]+)?)(?: +(?:MR|MRS|MS|MISS|DR|MSTR))?\b")
_NAME_AFTER_TICKET = re.compile(r"\d{3}-\d{10}\s*\(([A-Za-z][A-Za-z\s'-]+?)\)")
_PAX_TYPE = re.compile(r"\b(ADT|CHD|INF)\b|\((adult|child|infant)\)", re.IGNORECASE)
_LONG_PAX_TYPES = {"adult": "ADT", "child": "CHD", "infant": "INF"}
_PLACE_WORDS = {c.upper() for c in list(CITY_ALIASES) + list(AIRPORT_CITIES.values())}


def in_payment_section(lines: List[str], index: int) -> bool:
    lo, hi = max(0, index - 5), min(len(lines), index + 6)
    return any(k in lines[i].lower() for i in range(lo, hi) for k in _PAYMENT_KEYWORDS)


def _pax_type(line: str) -> Optional[str]:
    m = _PAX_TYPE.search(line)
    if not m:
        return None
    if m.group(1):
        return m.group(1).upper()
    return _LONG_PAX_TYPES[m.group(2).lower()]


def extract_passengers(text: str) -> List[Passenger]:
    """
    Passenger names from labels, titles, GDS ``SURNAME/GIVEN`` and ticket lines.

    Every candidate goes through ``clean_name``; anything inside a payment
    block is ignored so the card holder never becomes a traveller.
    """
    lines = (text or "").split("\n")
    found: Dict[str, Passenger] = {}

    def _add(raw: str, line: str) -> None:
        name = clean_name(raw)
        if name and name.upper() not in found:
            found[name.upper()] = Passenger(full_name=name, type=_pax_type(line))

    for i, line in enumerate(lines):
        label = _PASSENGER_LABEL.match(line)
        if label:
            rest = label.group(1).strip(" |")
            if not rest and i + 1 < len(lines):
                rest = lines[i + 1].strip(" |")
            if rest:
                _add(rest.split("|")[0], line)
            continue
        if in_payment_section(lines, i):
            continue
        for m in _TITLED_NAME.finditer(line):
            _add(m.group(1), line)
        for m in _SLASH_NAME.finditer(line):
            if {m.group(1), m.group(2)} & _PLACE_WORDS:
                continue
            _add(f"{m.group(2)} {m.group(1)}", line)
        for m in _NAME_AFTER_TICKET.finditer(line):
            _add(m.group(1), line)

    return list(found.values())


def extract_tickets(text: str) -> List[TicketNumber]:
    text = text or ""
    validity = patterns.TICKET_VALIDITY.search(text)
    valid_until = validity.group(1) if validity else None
    tickets: List[TicketNumber] = []
    seen = set()
    for m in patterns.TICKET_NUMBER.finditer(text):
        number = m.group(1)
        if number in seen:
            continue
        seen.add(number)
        after = text[m.end():m.end() + 60]
        name_match = re.match(r"\s*\(([A-Za-z][A-Za-z\s'-]+?)\)", after)
        pax_name = " ".join(name_match.group(1).split()) if name_match else ""
        tickets.append(TicketNumber(number=number, pax_name=pax_name, valid_until=valid_until))
    return tickets


_BAGGAGE_COUNTED = (
    re.compile(r"(\d+)\s+bags?\s+at\s+(\d+)\s?kg", re.IGNORECASE),
    re.compile(r"(\d+)\s*[x×]\s*(\d+)\s?kg", re.IGNORECASE),
    re.compile(r"(\d+)\s*(?:pc|pcs|pieces?)\b[^\n\d]{0,20}?(\d+)\s?kg", re.IGNORECASE),
)
_BAGGAGE_LABEL = re.compile(r"(?:checked\s+)?baggage\s+allowance[^:\n]*:\s*([^\n]+)", re.IGNORECASE)
_HAND_BAGGAGE = (
    re.compile(r"(\d+\s+handbag/laptop\s+bag,?\s+plus\s+\d+\s+additional\s+cabin\s+bag)", re.IGNORECASE),
    re.compile(r"hand\s+baggage[^\n:]*:\s*([^\n]+)", re.IGNORECASE),
    re.compile(r"cabin\s+baggage[^\n:]*:\s*([^\n]+)", re.IGNORECASE),
)


def extract_baggage(text: str) -> Optional[str]:
    """Checked allowance, as ``"2 x 23kg"`` when count and weight are printed."""
    for pattern in _BAGGAGE_COUNTED:
        m = pattern.search(text or "")
        if m:
            return f"{m.group(1)} x {m.group(2)}kg"
    m = _BAGGAGE_LABEL.search(text or "")
    return m.group(1).strip() if m else None


def extract_hand_baggage(text: str) -> Optional[str]:
    for pattern in _HAND_BAGGAGE:
        m = pattern.search(text or "")
        if m:
            return m.group(1).strip()
    return None


def _amount(raw: str) -> Optional[float]:
    try:
        return float(raw.replace(",", ""))
    except ValueError:
        return None


def extract_payments(text: str) -> List[Payment]:
    payments: List[Payment] = []
    text = text or ""
    for m in patterns.PAYMENT_TOTAL.finditer(text):
        total = _amount(m.group(2))
        if total is None:
            continue
        method = patterns.PAYMENT_METHOD.search(text[m.start():m.start() + 200])
        payments.append(
            Payment(
                currency=m.group(1).upper(),
                total=total,
                method=method.group(1) if method else None,
            )
        )
    return payments


_FARE_BASE = re.compile(r"\bfare(?:\s+details?)?\s+([A-Z]{3})\s+(\d[\d,]*(?:\.\d+)?)", re.IGNORECASE)
_CARRIER_CHARGE = re.compile(r"carrier\s+imposed\s+charges?\s+([A-Z]{3})\s+(\d[\d,]*(?:\.\d+)?)", re.IGNORECASE)
_TAXES = (
    ("APD", "Air Passenger Duty", re.compile(r"air\s+passenger\s+duty[^\d\n]*([A-Z]{3})\s+(\d[\d,]*(?:\.\d+)?)", re.IGNORECASE)),
    ("ASC", "Aviation Safety Charge", re.compile(r"aviation\s+safety\s+charge[^\d\n]*([A-Z]{3})\s+(\d[\d,]*(?:\.\d+)?)", re.IGNORECASE)),
    ("PSC", "Passenger Service Charge", re.compile(r"passenger\s+service\s+charge[^\d\n]*([A-Z]{3})\s+(\d[\d,]*(?:\.\d+)?)", re.IGNORECASE)),
)


def _money(pattern: re.Pattern, text: str) -> Optional[Tuple[str, float]]:
    m = pattern.search(text)
    if not m:
        return None
    amount = _amount(m.group(2))
    return (m.group(1).upper(), amount) if amount is not None else None


def extract_fare_details(text: str) -> Optional[FareDetails]:
    text = text or ""
    details = FareDetails()
    found = False

    money = _money(_FARE_BASE, text)
    if money:
        details.currency, details.base_fare = money
        found = True
    money = _money(_CARRIER_CHARGE, text)
    if money:
        details.currency = details.currency or money[0]
        details.carrier_charges = money[1]
        found = True
    for code, description, pattern in _TAXES:
        money = _money(pattern, text)
        if money:
            details.taxes.append(Tax(type=code, amount=money[1], description=description))
            found = True
    money = _money(patterns.PAYMENT_TOTAL, text)
    if money:
        details.currency = details.currency or money[0]
        details.total = money[1]
        found = True
    return details if found else None


_FARE_NOTES = (
    re.compile(r"endorsements?\s*:?\s*([^\n]+)", re.IGNORECASE),
    re.compile(r"fare\s+rules?[^:\n]*:\s*([^\n]+)", re.IGNORECASE),
    re.compile(r"((?:penalties|penalty|restrictions?)\s+apply[^\n]*)", re.IGNORECASE),
)


def extract_fare_notes(text: str) -> Optional[str]:
    for pattern in _FARE_NOTES:
        m = pattern.search(text or "")
        if m and m.group(1).strip():
            return m.group(1).strip()
    return None


def extract_iata_number(text: str) -> Optional[str]:
    m = patterns.IATA_NUMBER.search(text or "")
    return m.group(1) if m else None
