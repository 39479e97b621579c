# prompts.py
import json
from typing import List, Optional

from .models import ParsedTicket

SYSTEM_PROMPT = """You are an expert at extracting flight ticket information from airline e-tickets and emails.

Extract ALL available flight information and return it as a JSON object. Focus on accuracy and completeness.
{carrier_guidance}

CRITICAL FIELDS (required for a valid extraction):
- airlineLocator: booking reference / confirmation code
- passengers: at least one passenger with full name
- segments: at least one flight segment with a valid flight number

EXTRACTION GUIDELINES:
- Extract PASSENGER names, never cardholder or payment contact names
  * Passenger names appear after "Passenger" labels, in passenger tables ("| Passenger | MR JOHN SMITH |")
    or in parentheses after ticket numbers ("125-1234567890 (MR JOHN SMITH)")
  * Ignore names in payment, billing, credit card or "Dear ..." greeting sections
- Remove titles like Mr/Mrs/Ms/Dr from passenger names
- Flight numbers look like BA123, AF456, LH789
- Dates as YYYY-MM-DD, times as 24-hour HH:MM local time
- Copy dates exactly as printed; only fill a missing arrival date when the times make it unambiguous

DATE AND TIME HANDLING:
- Overnight flights: departure 22:10 on 2025-08-30 arriving 06:15 arrives 2025-08-31
- A flight never adds more than one calendar day
- "+1", "(+1 day)" or "next day" next to a time means the following day

ALSO EXTRACT WHEN PRESENT:
- cabin class and booking class per segment, meal service per segment
- checked baggage and hand baggage separately
- ticket numbers with passenger name and validity date
- payments with currency and method, fare breakdown, fare restrictions or endorsements
- IATA travel agency number

JSON SCHEMA:
{{
  "carrier": "string (airline code like BA, AF, LH)",
  "airlineLocator": "string",
  "passengers": [{{"fullName": "string", "type": "ADT|CHD|INF"}}],
  "tickets": [{{"number": "string", "paxName": "string", "validUntil": "string"}}],
  "baggage": "string (e.g. 2 x 23kg)",
  "handBaggage": "string",
  "segments": [
    {{
      "marketingFlightNo": "string",
      "cabin": "string",
      "bookingClass": "string",
      "mealService": "string",
      "dep": {{"iata": "XXX", "city": "string", "terminal": "string", "timeLocal": "HH:MM", "date": "YYYY-MM-DD"}},
      "arr": {{"iata": "XXX", "city": "string", "terminal": "string", "timeLocal": "HH:MM", "date": "YYYY-MM-DD"}}
    }}
  ],
  "payments": [{{"currency": "string", "total": 0.0, "method": "string"}}],
  "fareDetails": {{
    "baseFare": 0.0, "currency": "string", "carrierCharges": 0.0,
    "taxes": [{{"type": "APD|ASC|PSC|...", "amount": 0.0, "description": "string"}}],
    "total": 0.0
  }},
  "fareNotes": "string",
  "iataNumber": "string"
}}

Return ONLY valid JSON matching this schema. No explanatory text."""


CARRIER_GUIDANCE = {
    "BA": """
CARRIER: British Airways (BA)
- "Booking Reference:" is followed by a 6-character code
- Passenger tables use | separators; names also follow ticket numbers "125-..." in parentheses
- Flight numbers are "BA" + 3-4 digits (BA0078, BA1306)
- Cabins: "World Traveller" / "Euro Traveller" = Economy, "World Traveller Plus" = Premium Economy,
  "Club World" / "Club Europe" = Business
- Overnight routes are common (BA0078 ACC-LHR departs 22:10, arrives 06:15 next day)
- Checked baggage reads like "2 bags at 23kg"; hand baggage like "1 handbag/laptop bag, plus 1 additional cabin bag"
- Meal service per route: "Meal" on long-haul, "Food and Beverages for Purchase" on short-haul
- Ticket validity: "Ticket(s) Valid until DD MMM YYYY\"""",
    "AF": """
CARRIER: Air France (AF)
- Flight numbers are "AF" + 3-4 digits
- Cabins may be Economy, Premium Economy, Business, First
- Overnight flights are common on Africa-Europe and transatlantic routes""",
    "KL": """
CARRIER: KLM (KL)
- Flight numbers are "KL" + 3-4 digits
- Extract passenger names from booking sections, not payment details""",
    "LH": """
CARRIER: Lufthansa (LH)
- Flight numbers are "LH" + 3-4 digits
- Overnight flights are common on intercontinental routes""",
    "VS": """
CARRIER: Virgin Atlantic (VS)
- Flight numbers are "VS" + 3-4 digits
- Extract passenger names from booking sections, not payment details""",
    "SA": """
CARRIER: South African Airways (SA)
- Flight numbers print as "Flight number SA 053"
- "Your booking reference is XXXXXX"
- Each time is followed by the city, and the airport "(IATA)" on the next line; "(+1 day)" may sit between them""",
}

DEFAULT_CARRIER_GUIDANCE = """
CARRIER: {carrier}
- Flight numbers start with "{carrier}" followed by digits
- Late-evening departures with early-morning arrivals land the next day"""


ENHANCEMENT_SYSTEM_PROMPT = (
    "Extract only the requested missing fields. Do not create new segments or modify existing "
    "flight data. Return valid JSON only."
)

ENHANCEMENT_PROMPT = """You are a data enhancement assistant. DO NOT discover or create flight segments.

TASKS:
{tasks}

CURRENT EXTRACTED DATA (DO NOT MODIFY EXISTING SEGMENTS):
{current}

TEXT TO SEARCH FOR MISSING FIELDS:
{text}

Return a JSON object with ONLY the requested fields, for example:
{{"airlineLocator": "ABC123", "passengers": [{{"fullName": "JOHN SMITH", "type": "ADT"}}], "baggage": "2 x 23kg"}}"""

ENHANCEMENT_TASKS = {
    "airline_locator": "Find the booking reference (6 character alphanumeric code)",
    "passengers": 'Find passenger names (after "Passenger" labels or in parentheses after ticket numbers)',
    "baggage": 'Find the checked baggage allowance (e.g. "2 x 23kg")',
}

# characters of ticket text sent with an enhancement request
ENHANCEMENT_TEXT_LIMIT = 2000


def carrier_guidance(carrier_hint: Optional[str]) -> str:
    if not carrier_hint:
        return ""
    code = carrier_hint.upper()
    return CARRIER_GUIDANCE.get(code, DEFAULT_CARRIER_GUIDANCE.format(carrier=code))


def build_system_prompt(carrier_hint: Optional[str] = None) -> str:
    return SYSTEM_PROMPT.format(carrier_guidance=carrier_guidance(carrier_hint))


def build_extraction_prompt(
    text: Optional[str],
    html_text: Optional[str] = None,
    prior: Optional[ParsedTicket] = None,
) -> str:
    parts = []
    if text:
        parts.append(f"TEXT CONTENT:\n{text}")
    if html_text:
        parts.append(f"HTML CONTENT:\n{html_text}")
    if prior is not None:
        previous = prior.model_dump(by_alias=True, exclude={"raw"}, exclude_none=True)
        parts.append(f"PREVIOUS PARSE ATTEMPT:\n{json.dumps(previous, indent=2)}")
    content = "\n\n".join(parts)
    return f"Extract flight information from this e-ticket content:\n\n{content}"


def build_enhancement_prompt(ticket: ParsedTicket, text: str, fields: List[str]) -> str:
    tasks = [ENHANCEMENT_TASKS[f] for f in fields if f in ENHANCEMENT_TASKS]
    current = ticket.model_dump(by_alias=True, exclude={"raw"}, exclude_none=True)
    return ENHANCEMENT_PROMPT.format(
        tasks="\n".join(tasks),
        current=json.dumps(current, indent=2),
        text=(text or "")[:ENHANCEMENT_TEXT_LIMIT],
    )
