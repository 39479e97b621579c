from conftest import BA_TEXT, SAA_TEXT, TODAY, make_ticket

from ticket_intel.carriers import (
    BritishAirwaysParser,
    SouthAfricanAirwaysParser,
    detect_carrier_hint,
    registry,
)
from ticket_intel.diagnostics import DiagnosticLog
from ticket_intel.quality_gate import score


def test_registry_lookup_and_detection():
    assert "ba" in registry
    assert "SA" in registry
    assert "KQ" not in registry
    assert registry.get("sa").code == "SA"
    assert registry.get(None) is None
    assert registry.codes == ["BA", "SA"]
    assert registry.detect(BA_TEXT).code == "BA"
    assert registry.detect(SAA_TEXT).code == "SA"
    assert registry.detect("Kenya Airways KQ 101 NBO to JNB") is None


def test_carrier_hint_is_broader_than_detection():
    assert detect_carrier_hint(SAA_TEXT) == "SA"
    assert detect_carrier_hint("Your Lufthansa flight LH 572") == "LH"
    assert detect_carrier_hint(None, "<p>Air France AF 1234</p>") == "AF"
    assert detect_carrier_hint("nothing airline-shaped here") is None


def test_ba_receipt_parse():
    diagnostics = DiagnosticLog()
    ticket = BritishAirwaysParser().parse(BA_TEXT, today=TODAY, diagnostics=diagnostics)

    assert ticket.carrier == "BA"
    assert ticket.airline_locator == "ABC123"
    assert [p.full_name for p in ticket.passengers] == ["JOHN SMITH"]
    assert ticket.tickets[0].number == "125-1234567890"
    assert ticket.baggage == "2 x 23kg"

    [seg] = ticket.segments
    assert seg.marketing_flight_no == "BA081"
    assert seg.cabin == "ECONOMY"
    assert (seg.dep.iata, seg.dep.city, seg.dep.terminal) == ("LHR", "London", "5")
    assert (seg.dep.date, seg.dep.time_local) == ("2025-08-30", "22:10")
    assert (seg.arr.iata, seg.arr.terminal) == ("ACC", "3")
    assert (seg.arr.date, seg.arr.time_local) == ("2025-08-31", "05:15")
    assert score(ticket) == 87.5
    assert diagnostics.for_stage("carriers.ba")


def test_saa_parse_uses_the_general_pipeline():
    ticket = SouthAfricanAirwaysParser().parse(SAA_TEXT, today=TODAY)
    assert ticket.carrier == "SA"
    assert ticket.airline_locator == "X7K2PQ"
    [seg] = ticket.segments
    assert seg.marketing_flight_no == "SA053"
    assert (seg.dep.iata, seg.arr.iata) == ("ACC", "JNB")
    assert (seg.dep.date, seg.arr.date) == ("2025-09-28", "2025-09-29")


def test_saa_locator_from_services_summary():
    text = "South African Airways\nX9Y8Z7\nServices summary\nPassenger: Mr John Smith\n"
    diagnostics = DiagnosticLog()
    ticket = SouthAfricanAirwaysParser().parse(text, today=TODAY, diagnostics=diagnostics)
    assert ticket.airline_locator == "X9Y8Z7"
    assert diagnostics.for_stage("carriers.saa")


def test_enrich_fills_only_empty_fields():
    ticket = make_ticket(locator="QWE123", passengers=())
    enriched = BritishAirwaysParser().enrich(ticket, BA_TEXT)

    assert enriched.airline_locator == "QWE123"
    assert [p.full_name for p in enriched.passengers] == ["JOHN SMITH"]
    assert enriched.baggage == "2 x 23kg"
    assert enriched.carrier == "BA"
    assert enriched.segments[0].marketing_flight_no == "KQ101"
    # the original is left alone
    assert ticket.passengers == []
    assert ticket.baggage is None


def test_enrich_replaces_a_too_short_locator():
    enriched = SouthAfricanAirwaysParser().enrich(make_ticket(locator="X7K"), SAA_TEXT)
    assert enriched.airline_locator == "X7K2PQ"
