import asyncio
import re

from conftest import BA_TEXT, SAA_TEXT, TODAY, FakeExtractor, make_ticket

from ticket_intel.diagnostics import Severity
from ticket_intel.errors import GenerativeExtractionError
from ticket_intel.pipeline import TicketPipeline

SAA_WITHOUT_LOCATOR = SAA_TEXT.replace("Your booking reference is X7K2PQ\n", "")


def _run(pipeline, text, html=None):
    return asyncio.run(pipeline.parse(text, html, today=TODAY, source="text"))


def test_saa_document_is_accepted_from_the_carrier_parser(recorder):
    pipeline = TicketPipeline(recorder=recorder, mode="regex_first", llm_enabled=False)
    outcome = _run(pipeline, SAA_TEXT)

    assert outcome.success
    assert outcome.method == "carrier:SA"
    assert outcome.carrier_hint == "SA"
    assert outcome.score == 85.5
    assert outcome.decision == "accept"
    assert outcome.itinerary.segments[0].departure.scheduled_time == "2025-09-28T20:30:00"
    assert outcome.itinerary.booking_extras.parsed_with == "carrier:SA"
    assert "total" in outcome.processing_time
    assert recorder.records == []


def test_blank_input_fails_without_parsing(recorder):
    pipeline = TicketPipeline(recorder=recorder, llm_enabled=False)
    outcome = _run(pipeline, "   ", "")

    assert outcome.success is False
    assert outcome.error.technical_reason == "Either text or html content is required"
    assert outcome.error.suggestions


def test_document_with_no_flight_data_fails(recorder):
    pipeline = TicketPipeline(recorder=recorder, llm_enabled=False)
    outcome = _run(pipeline, "Thank you for your enquiry. We will be in touch.")

    assert outcome.success is False
    assert outcome.error.user_message == "We couldn't find any flight details in this document."
    gate = [d for d in outcome.diagnostics if d.stage == "gate"]
    assert any("disabled" in d.message for d in gate)


def test_weak_deterministic_result_falls_back_to_generative(recorder):
    extractor = FakeExtractor(result=make_ticket(carrier="KQ"))
    pipeline = TicketPipeline(extractor=extractor, recorder=recorder, mode="regex_first")
    outcome = _run(pipeline, "Kenya Airways itinerary\nsee attachment")

    assert outcome.success
    assert outcome.method == "generative:fake-cheap"
    assert outcome.ticket.airline_locator == "QWE123"
    assert extractor.enhance_calls == []
    assert extractor.extract_calls[0]["prior"] is not None

    [(usage, extraction_id)] = recorder.records
    assert usage.model == "fake-cheap"
    assert re.fullmatch(r"extract_\d+_[a-z0-9]{9}", extraction_id)


def test_missing_locator_is_filled_by_enhancement(recorder):
    extractor = FakeExtractor(enhanced={"airline_locator": "X7K2PQ"})
    pipeline = TicketPipeline(extractor=extractor, recorder=recorder, mode="regex_first")
    outcome = _run(pipeline, SAA_WITHOUT_LOCATOR)

    assert outcome.method == "carrier:SA+enhanced"
    assert outcome.decision == "accept"
    assert outcome.ticket.airline_locator == "X7K2PQ"
    assert extractor.enhance_calls == [["airline_locator"]]
    assert extractor.extract_calls == []
    assert [u.purpose for u, _ in recorder.records] == ["enhancement"]


def test_generative_failures_keep_the_deterministic_result(recorder):
    extractor = FakeExtractor(error=GenerativeExtractionError("quota exceeded"))
    pipeline = TicketPipeline(extractor=extractor, recorder=recorder, mode="regex_first")
    outcome = _run(pipeline, SAA_WITHOUT_LOCATOR)

    assert outcome.success
    assert outcome.method == "carrier:SA"
    assert outcome.decision == "enhance"
    assert outcome.score == 70.5
    errors = [d for d in outcome.diagnostics if d.stage == "generative"]
    assert len(errors) == 2
    assert all(d.severity == Severity.ERROR for d in errors)
    assert recorder.records == []


def test_worse_generative_result_is_discarded(recorder):
    extractor = FakeExtractor(result=make_ticket(locator=None))
    pipeline = TicketPipeline(extractor=extractor, recorder=recorder, threshold=90)
    outcome = _run(pipeline, SAA_TEXT)

    assert outcome.method == "carrier:SA"
    assert outcome.ticket.airline_locator == "X7K2PQ"
    assert extractor.enhance_calls == []
    assert len(extractor.extract_calls) == 1
    assert len(recorder.records) == 1


def test_ai_first_enriches_the_generative_result(recorder):
    generated = make_ticket(
        locator="ABC123",
        passengers=("JOHN SMITH",),
        flights=(("BA081", "LHR", "ACC", "2025-08-30", "22:10", "05:15"),),
    )
    extractor = FakeExtractor(result=generated)
    pipeline = TicketPipeline(extractor=extractor, recorder=recorder, mode="ai_first")
    outcome = _run(pipeline, BA_TEXT)

    assert outcome.method == "generative:fake-cheap+BA"
    assert extractor.extract_calls[0]["hint"] == "BA"
    assert outcome.ticket.carrier == "BA"
    assert outcome.ticket.baggage == "2 x 23kg"
    assert outcome.ticket.tickets[0].number == "125-1234567890"
    assert outcome.itinerary.booking_extras.baggage == "2 × 23kg"


def test_ai_first_falls_back_to_deterministic_on_error(recorder):
    extractor = FakeExtractor(error=GenerativeExtractionError("timeout"))
    pipeline = TicketPipeline(extractor=extractor, recorder=recorder, mode="ai_first")
    outcome = _run(pipeline, BA_TEXT)

    assert outcome.success
    assert outcome.method == "carrier:BA"
    assert outcome.ticket.segments[0].dep.iata == "LHR"


def test_unknown_mode_defaults_to_regex_first(recorder):
    pipeline = TicketPipeline(recorder=recorder, mode="mystery", llm_enabled=False)
    assert pipeline.mode == "regex_first"


def test_parse_many_keeps_input_order(recorder):
    pipeline = TicketPipeline(recorder=recorder, llm_enabled=False)
    documents = [
        (SAA_TEXT.encode(), "saa.txt", "text/plain"),
        (b"", "empty.txt", None),
        (BA_TEXT.encode(), "ba.txt", "text/plain"),
    ]
    outcomes = asyncio.run(pipeline.parse_many(documents, today=TODAY))

    assert [o.success for o in outcomes] == [True, False, True]
    assert outcomes[0].method == "carrier:SA"
    assert outcomes[1].error.technical_reason == "Empty file"
    assert outcomes[2].method == "carrier:BA"


def test_unpriced_payment_line_does_not_break_the_parse(recorder):
    text = SAA_TEXT.replace("South African Airways e-ticket\n", "") + "Payment total GBP , see receipt\n"
    pipeline = TicketPipeline(recorder=recorder, llm_enabled=False)
    outcome = _run(pipeline, text)

    assert outcome.success
    assert outcome.ticket.payments == []
    assert len(outcome.ticket.segments) == 1
