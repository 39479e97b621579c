import pytest

from ticket_intel.text_normalizer import (
    collapse_whitespace,
    dehyphenate,
    normalize,
    normalize_times,
    split_glued_codes,
    tag_next_day,
)


def test_empty_input_is_empty_string():
    assert normalize("") == ""
    assert normalize(None) == ""


def test_strips_icons_and_collapses_whitespace():
    raw = "✈  Flight   details\n\n\n\n\nFrom\t Accra"
    assert normalize(raw) == "Flight details\n\nFrom Accra"


def test_dehyphenates_wrapped_words():
    assert dehyphenate("Interna-\ntional") == "International"


def test_collapse_caps_blank_lines():
    assert collapse_whitespace("a\n\n\n\nb") == "a\n\nb"


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("20:30 CPTJNB", "20:30 CPT JNB"),
        ("CPTJNB 0425", "CPT JNB 0425"),
        ("Route ACCLHR", "Route ACC LHR"),
    ],
)
def test_glued_codes_are_split(raw, expected):
    assert split_glued_codes(raw) == expected


def test_six_letter_words_are_not_split():
    assert split_glued_codes("20:30 ARRIVE") == "20:30 ARRIVE"
    assert split_glued_codes("FLIGHT details") == "FLIGHT details"


def test_four_digit_times_get_a_colon():
    assert normalize_times("2030 Accra") == "20:30 Accra"
    assert normalize_times("8:05 Lagos") == "08:05 Lagos"


def test_years_and_numbers_are_not_times():
    assert normalize_times("28 Sep 2025") == "28 Sep 2025"
    assert normalize_times("Flight SA 0053") == "Flight SA 0053"
    assert normalize_times("Total ZAR 1500") == "Total ZAR 1500"


def test_next_day_markers_are_tagged():
    assert tag_next_day("04:25 (+1 day)") == "04:25 NEXT_DAY"
    assert tag_next_day("04:25 +1") == "04:25 NEXT_DAY"
    assert tag_next_day("04:25 Johannesburg\n(+1 day)") == "04:25 Johannesburg\nNEXT_DAY"


def test_letter_spaced_codes_are_repaired():
    assert normalize("Arrive l h r") == "Arrive LHR"


@pytest.mark.parametrize(
    "raw",
    [
        "20:30 Accra\nKotoka International (ACC)\n0425 Johannesburg\n(+1 day)",
        "Sunday, 28 September 2025\nCPTJNB 1405\n\n\n✈ Terminal 3",
        "",
    ],
)
def test_normalize_is_idempotent(raw):
    once = normalize(raw)
    assert normalize(once) == once
