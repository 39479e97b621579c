from datetime import date

from conftest import BA_TEXT, SAA_TEXT

from ticket_intel.lexical import (
    build_city_iata_map,
    extract_baggage,
    extract_base_date,
    extract_booking_reference,
    extract_date_headers,
    extract_durations,
    extract_fare_details,
    extract_flight_numbers,
    extract_iata_number,
    extract_passengers,
    extract_payments,
    extract_terminals,
    extract_tickets,
)
from ticket_intel.text_normalizer import normalize


def test_city_map_records_city_and_code():
    mapping = build_city_iata_map("Kotoka International (ACC)\nO.R. Tambo International (JNB)")
    assert mapping["kotoka international"] == "ACC"
    assert mapping["ACC"] == "ACC"
    assert mapping["o.r. tambo international"] == "JNB"


def test_city_map_document_wins_over_builtin_aliases():
    mapping = build_city_iata_map("London (LGW)")
    assert mapping["london"] == "LGW"
    # untouched aliases still come from the built-in table
    assert mapping["accra"] == "ACC"


def test_city_map_without_matches_is_builtin_only():
    mapping = build_city_iata_map("no airports here")
    assert "kotoka international" not in mapping
    assert mapping["johannesburg"] == "JNB"


def test_terminals_only_for_single_terminal_airports():
    text = "Accra (ACC)\nTerminal 3\nJohannesburg (JNB) Terminal A\nJohannesburg (JNB) Terminal B"
    assert extract_terminals(text) == {"ACC": "3"}


def test_labelled_flight_numbers_win():
    text = "Flight number SA 053\nSA 054 connection\nFlight number SA 0234"
    assert extract_flight_numbers(text) == ["SA053", "SA0234"]


def test_known_prefix_flight_numbers_in_order_without_duplicates():
    assert extract_flight_numbers("BA081 then KQ 101 then BA081") == ["BA081", "KQ101"]


def test_duration_attached_to_nearest_flight():
    text = "Flight number SA 053 Duration 7h 55min"
    assert extract_durations(text, ["SA053"]) == {"SA053": "7h 55min"}


def test_base_date_is_first_date_in_document():
    assert extract_base_date("Issued 2025-09-01\nDeparts 28 Sep 2025") == date(2025, 9, 1)
    assert extract_base_date("nothing") is None


def test_date_headers_with_weekday():
    headers = extract_date_headers(normalize(SAA_TEXT))
    assert [d for _, d in headers] == [date(2025, 9, 28)]


def test_ordinal_and_dashed_dates():
    assert extract_base_date("Departs 28th September 2025 from Accra") == date(2025, 9, 28)
    assert extract_base_date("Travel date 28-Sep-2025") == date(2025, 9, 28)
    headers = extract_date_headers("Sunday 28th September 2025\n20:30 Accra\nTuesday, 7th Oct 2025")
    assert headers == [(0, date(2025, 9, 28)), (2, date(2025, 10, 7))]


def test_booking_reference():
    assert extract_booking_reference(normalize(SAA_TEXT)) == "X7K2PQ"
    assert extract_booking_reference(normalize(BA_TEXT)) == "ABC123"
    assert extract_booking_reference("PNR: ZX12CV") == "ZX12CV"
    assert extract_booking_reference("no reference") is None


def test_passengers_from_label_table_and_ticket_line():
    names = [p.full_name for p in extract_passengers(normalize(BA_TEXT))]
    assert names == ["JOHN SMITH"]


def test_gds_slash_names_are_reordered():
    passengers = extract_passengers("SMITH/JANE MRS ADT")
    assert passengers[0].full_name == "JANE SMITH"
    assert passengers[0].type == "ADT"


def test_cardholder_is_not_a_passenger():
    text = "Payment information\nCard holder: MR PAUL PAYER\nVisa ending 1234"
    assert extract_passengers(text) == []


def test_ticket_numbers_with_names_and_validity():
    text = "125-1234567890 (MR JOHN SMITH)\nTicket(s) Valid until 30 Aug 2026"
    tickets = extract_tickets(text)
    assert len(tickets) == 1
    assert tickets[0].number == "125-1234567890"
    assert tickets[0].pax_name == "MR JOHN SMITH"
    assert tickets[0].valid_until == "30 Aug 2026"


def test_baggage_shapes():
    assert extract_baggage("Allowance 2 bags at 23kg") == "2 x 23kg"
    assert extract_baggage("1 x 30kg") == "1 x 30kg"
    assert extract_baggage("Baggage allowance: see conditions") == "see conditions"
    assert extract_baggage("") is None


def test_payments_and_fare_details():
    text = (
        "Fare GBP 420.00\n"
        "Carrier imposed charges GBP 300.00\n"
        "Air Passenger Duty GBP 88.00\n"
        "Payment total GBP 1,045.50 paid by Visa"
    )
    payments = extract_payments(text)
    assert payments[0].currency == "GBP"
    assert payments[0].total == 1045.50
    assert payments[0].method == "Visa"

    fare = extract_fare_details(text)
    assert fare.base_fare == 420.0
    assert fare.carrier_charges == 300.0
    assert [t.type for t in fare.taxes] == ["APD"]
    assert fare.total == 1045.50


def test_amount_without_digits_is_ignored():
    text = "Payment total GBP , see receipt\nFare GBP ,"
    assert extract_payments(text) == []
    assert extract_fare_details(text) is None


def test_iata_number():
    assert extract_iata_number("IATA number: 91234567") == "91234567"
