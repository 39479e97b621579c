from ticket_intel.models import Payment, TicketNumber
from ticket_intel.quality_gate import (
    GateDecision,
    evaluate,
    missing_fields,
    pick_better,
    score,
    score_breakdown,
)

from conftest import make_ticket


def test_complete_single_leg_ticket_is_accepted():
    verdict = evaluate(make_ticket())
    assert verdict.score == 82.5
    assert verdict.decision == GateDecision.ACCEPT
    assert verdict.missing_fields == []


def test_optional_fields_add_bonuses():
    base = score(make_ticket())
    assert score(make_ticket(baggage="1 x 23kg")) == base + 3
    assert score(make_ticket(tickets=[TicketNumber(number="083-1234567890")])) == base + 2


def test_adding_a_locator_never_lowers_the_score():
    without = make_ticket(locator=None)
    with_locator = make_ticket()
    assert score(with_locator) > score(without)


def test_short_locator_earns_nothing():
    assert score_breakdown(make_ticket(locator="AB1"))["locator"] == 0.0
    assert "airline_locator" in missing_fields(make_ticket(locator="AB1"))


def test_missing_locator_triggers_enhancement():
    verdict = evaluate(make_ticket(locator=None))
    assert verdict.score == 67.5
    assert verdict.decision == GateDecision.ENHANCE
    assert verdict.missing_fields == ["airline_locator"]


def test_blacklisted_phrase_earns_no_name_quality():
    ticket = make_ticket(passengers=("BAGGAGE ALLOWANCE",))
    parts = score_breakdown(ticket)
    assert parts["passenger_presence"] == 15.0
    assert parts["name_quality"] == 0.0
    assert parts["passenger_count"] == 0.0
    assert evaluate(ticket).decision == GateDecision.ENHANCE
    assert "passengers" in missing_fields(ticket)


def test_malformed_segments_fall_back():
    ticket = make_ticket(flights=(("X", "NBO", "JNB", "2025-10-01", "08:00", "11:30"),))
    verdict = evaluate(ticket)
    assert "segment_details" in verdict.missing_fields
    assert verdict.decision == GateDecision.FALLBACK


def test_empty_ticket_scores_zero():
    ticket = make_ticket(locator=None, passengers=(), flights=())
    verdict = evaluate(ticket)
    assert verdict.score == 0.0
    assert verdict.decision == GateDecision.FALLBACK
    assert verdict.missing_fields == ["airline_locator", "passengers", "segments"]


def test_score_is_capped_at_one_hundred():
    ticket = make_ticket(
        passengers=("JANE DOE", "JOHN DOE", "MARY DOE"),
        flights=(
            ("KQ101", "NBO", "JNB", "2025-10-01", "08:00", "11:30"),
            ("KQ102", "JNB", "NBO", "2025-10-08", "13:00", "18:30"),
            ("KQ103", "NBO", "ACC", "2025-10-09", "09:00", "12:30"),
        ),
        baggage="2 x 23kg",
        hand_baggage="1 x 7kg",
        payments=[Payment(currency="USD", total=812.4)],
        tickets=[TicketNumber(number="706-1234567890")],
        fare_notes="Non refundable",
    )
    assert score(ticket) == 100.0


def test_pick_better_prefers_higher_score_and_keeps_deterministic_on_tie():
    weak = make_ticket(locator=None)
    strong = make_ticket()
    assert pick_better(weak, strong) is strong
    assert pick_better(strong, weak) is strong
    tied = make_ticket()
    assert pick_better(strong, tied) is strong
    assert pick_better(strong, None) is strong
