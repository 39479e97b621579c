from datetime import date

import pytest

from ticket_intel.models import (
    Endpoint,
    GenerativeResult,
    LLMUsage,
    ParsedTicket,
    Passenger,
    Segment,
)

SAA_TEXT = """South African Airways e-ticket
Your booking reference is X7K2PQ

Sunday, 28 September 2025
Flight number SA 053
20:30 Accra
Kotoka International (ACC)
Terminal 3
Duration 7h 55min
04:25 Johannesburg
(+1 day)
O.R. Tambo International (JNB)
Terminal A

Passenger: Mr John Smith
Baggage allowance: 2 x 23kg
"""

BA_TEXT = """British Airways
Booking Reference: ABC123
| Passenger | MR JOHN SMITH |
Ticket Number 125-1234567890 (MR JOHN SMITH)

BA081
British Airways | World Traveller |
30 Aug 2025
22:10
Heathrow (London)
Terminal 5
31 Aug 2025
05:15
Accra
Terminal 3

Baggage allowance: 2 bags at 23kg
"""

TODAY = date(2025, 9, 1)


def make_ticket(
    locator="QWE123",
    passengers=("JANE DOE",),
    flights=(("KQ101", "NBO", "JNB", "2025-10-01", "08:00", "11:30"),),
    **extra,
) -> ParsedTicket:
    segments = [
        Segment(
            marketing_flight_no=no,
            dep=Endpoint(iata=dep, time_local=dep_time, date=day),
            arr=Endpoint(iata=arr, time_local=arr_time, date=day),
        )
        for no, dep, arr, day, dep_time, arr_time in flights
    ]
    return ParsedTicket(
        carrier=extra.pop("carrier", ""),
        airline_locator=locator,
        passengers=[Passenger(full_name=n) for n in passengers],
        segments=segments,
        **extra,
    )


class FakeExtractor:
    """Stands in for GeminiExtractor; never touches the network."""

    def __init__(self, result=None, enhanced=None, error=None, model="fake-cheap"):
        self.result = result
        self.enhanced = enhanced or {}
        self.error = error
        self.model = model
        self.extract_calls = []
        self.enhance_calls = []

    async def extract(self, text, html=None, prior_result=None, carrier_hint=None):
        self.extract_calls.append({"prior": prior_result, "hint": carrier_hint})
        if self.error:
            raise self.error
        usage = LLMUsage(model=self.model, tokens_in=1200, tokens_out=300, cost=0.0002)
        return GenerativeResult(result=self.result, usage=usage)

    async def enhance(self, ticket, text, fields):
        self.enhance_calls.append(list(fields))
        if self.error:
            raise self.error
        out = ticket.model_copy(deep=True)
        for field, value in self.enhanced.items():
            if field in fields:
                setattr(out, field, value)
        return out, LLMUsage(model=self.model, tokens_in=400, tokens_out=20, cost=0.00005, purpose="enhancement")


class MemoryRecorder:
    def __init__(self):
        self.records = []

    def record(self, usage, purpose=None, extraction_id=None):
        self.records.append((usage, extraction_id))


@pytest.fixture
def recorder():
    return MemoryRecorder()
