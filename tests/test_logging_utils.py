import json
import logging

from ticket_intel.diagnostics import DiagnosticLog
from ticket_intel.logging_utils import JSONLineFormatter, get_logger, log_event, set_request_id


def test_reserved_field_names_are_prefixed(caplog):
    logger = logging.getLogger("ticketintel.test")
    with caplog.at_level(logging.INFO, logger="ticketintel.test"):
        log_event(logger, "upload_received", filename="ticket.pdf", size=3)

    record = caplog.records[-1]
    assert record.event == "upload_received"
    assert record.field_filename == "ticket.pdf"
    assert record.size == 3


def test_formatter_emits_one_json_object_with_request_id():
    set_request_id("req-42")
    try:
        record = logging.LogRecord("ticketintel.test", logging.WARNING, "", 0, "odd %s", ("count",), None)
        record.event = "legs.warning"
        line = JSONLineFormatter().format(record)
    finally:
        set_request_id(None)

    payload = json.loads(line)
    assert "\n" not in line
    assert payload["message"] == "odd count"
    assert payload["level"] == "WARNING"
    assert payload["request_id"] == "req-42"
    assert payload["event"] == "legs.warning"
    assert "msg" not in payload


def test_timers_are_per_name():
    logger = get_logger("test")
    logger.start_timer("stage")
    assert logger.end_timer("stage") >= 0.0
    assert logger.end_timer("stage") == 0.0
    assert logger.end_timer("never-started") == 0.0


def test_diagnostics_are_also_logged(caplog):
    with caplog.at_level(logging.WARNING, logger="ticketintel.diagnostics"):
        DiagnosticLog().warning("legs", "Odd waypoint count (3)")

    record = caplog.records[-1]
    assert record.event == "legs.warning"
    assert record.detail == "Odd waypoint count (3)"
