# text_normalizer.py
"""
Clean raw text pulled out of ticket PDFs and e-mails.

Ticket renderers flatten their tables into a token stream, so this module
repairs the damage the downstream detectors care about: icon glyphs,
wrapped words, ragged whitespace, airport codes glued together, clock
tokens without a colon and "+1 day" markers.

``normalize`` is total and idempotent: ``normalize(normalize(x)) == normalize(x)``.
"""

import re
from typing import Optional

from .airports import AIRPORT_CITIES, CITY_ALIASES, DIRECT_CITY_CODES, MONTHS, OCR_SPACED_CODES

_ICONS = re.compile(
    "["
    "\u2190-\u21ff"  # arrows
    "\u2300-\u23ff"  # clocks, hourglasses
    "\u25a0-\u25ff"  # geometric shapes
    "\u2600-\u27bf"  # misc symbols and dingbats (plane, phone, envelope)
    "\ue000-\uf8ff"  # private use area (icon fonts)
    "\ufe0f\u200b\u200c\u200d\u2060\ufeff"
    "\U0001f300-\U0001faff"
    "]"
)

_WRAPPED_WORD = re.compile(r"(?<=[A-Za-z])-[^\S\n]*\n[^\S\n]*(?=[a-z])")
_INLINE_SPACE = re.compile(r"[^\S\n]+")
_EXTRA_NEWLINES = re.compile(r"\n{3,}")

_CLOCK = r"(?:(?:[01]?\d|2[0-3]):[0-5]\d|(?:[01]\d|2[0-3])[0-5]\d)"
_GLUED_CODES = re.compile(r"(?<![A-Za-z])([A-Z]{3})([A-Z]{3})(?![A-Za-z])")
_TIME_BEFORE = re.compile(rf"(?<![\d/.-]){_CLOCK}[^\S\n]*$")
_TIME_AFTER = re.compile(rf"^[^\S\n]*{_CLOCK}(?![\d/.-])")
_KNOWN_CODES = set(AIRPORT_CITIES) | set(CITY_ALIASES.values()) | set(DIRECT_CITY_CODES.values())
# Six-letter words that print in capitals next to times on real tickets.
_SIX_LETTER_WORDS = {
    name.upper()
    for name in list(AIRPORT_CITIES.values()) + list(CITY_ALIASES) + list(DIRECT_CITY_CODES)
    if len(name) == 6 and name.isalpha()
} | {"ARRIVE", "DEPART", "RETURN", "TICKET", "NUMBER", "FLIGHT", "AMOUNT", "STATUS", "CHANGE"}

_FOUR_DIGIT_TIME = re.compile(r"(?<![\w:./-])([01]\d|2[0-3])([0-5]\d)(?![\w:.,/-])")
_SINGLE_DIGIT_HOUR = re.compile(r"(?<![\d:.])(\d):([0-5]\d)(?!\d)")
_PREVIOUS_TOKEN = re.compile(r"(\S+)[^\S\n]*$")
_MONTH_WORDS = set(MONTHS) | {
    "january", "february", "march", "april", "june", "july", "august",
    "sept", "september", "october", "november", "december",
}
_CURRENCIES = {"USD", "EUR", "GBP", "ZAR", "GHS", "NGN", "KES", "AED", "CHF"}
_NUMBER_WORDS = {"number", "no", "flight", "ticket", "#", "©", "copyright"}

_TIME_WITH_MARKER = re.compile(
    r"(\d{2}:\d{2})[^\S\n]*(\(\+1[^\S\n]*days?\)|\+1[^\S\n]*days?\b|\(\+1\)|\+1(?!\d))",
    re.IGNORECASE,
)
_MARKER_LINE = re.compile(r"^\(?\+1[^\S\n]*days?\)?$|^\(\+1\)$", re.IGNORECASE | re.MULTILINE)

_SPACED_CODES = [
    (re.compile(rf"\b{c[0]} {c[1]} {c[2]}\b", re.IGNORECASE), c) for c in OCR_SPACED_CODES
]


def normalize(raw_text: Optional[str]) -> str:
    if not raw_text:
        return ""
    text = raw_text.replace("\r\n", "\n").replace("\r", "\n")
    text = strip_icons(text)
    text = dehyphenate(text)
    text = collapse_whitespace(text)
    text = split_glued_codes(text)
    text = normalize_times(text)
    text = tag_next_day(text)
    text = repair_spaced_codes(text)
    return text


def strip_icons(text: str) -> str:
    return _ICONS.sub("", text)


def dehyphenate(text: str) -> str:
    """Join ``word-\\nwrap`` into ``wordwrap``."""
    return _WRAPPED_WORD.sub("", text)


def collapse_whitespace(text: str) -> str:
    text = _INLINE_SPACE.sub(" ", text)
    text = "\n".join(line.strip() for line in text.split("\n"))
    text = _EXTRA_NEWLINES.sub("\n\n", text)
    return text.strip()


def split_glued_codes(text: str) -> str:
    """``CPTJNB`` -> ``CPT JNB`` when the run sits next to a time or both halves are airports."""

    def _split(match: re.Match) -> str:
        first, second = match.group(1), match.group(2)
        whole = first + second
        before = text[max(0, match.start() - 8):match.start()]
        after = text[match.end():match.end() + 8]
        both_known = first in _KNOWN_CODES and second in _KNOWN_CODES
        time_context = (
            bool(_TIME_BEFORE.search(before))
            or bool(_TIME_AFTER.search(after))
            or before[-1:].isdigit()
            or after[:1].isdigit()
        )
        if both_known or (time_context and whole not in _SIX_LETTER_WORDS):
            return f"{first} {second}"
        return whole

    return _GLUED_CODES.sub(_split, text)


def _looks_like_year_or_number(text: str, start: int) -> bool:
    line_start = text.rfind("\n", 0, start) + 1
    prev = _PREVIOUS_TOKEN.search(text[line_start:start])
    if not prev:
        return False
    token = prev.group(1)
    bare = token.rstrip(",.:").lower()
    if bare in _MONTH_WORDS or re.fullmatch(r"\d{1,2},", token):
        return True
    if token.upper() in _CURRENCIES or bare in _NUMBER_WORDS:
        return True
    # "SA 0053" style flight numbers
    return bool(re.fullmatch(r"[A-Z]{2}|[A-Z]\d|\d[A-Z]", token))


def normalize_times(text: str) -> str:
    """Rewrite clock-like ``2030`` tokens as ``20:30`` and pad ``8:05`` to ``08:05``."""

    def _four_digit(match: re.Match) -> str:
        if _looks_like_year_or_number(text, match.start()):
            return match.group(0)
        return f"{match.group(1)}:{match.group(2)}"

    text = _FOUR_DIGIT_TIME.sub(_four_digit, text)
    return _SINGLE_DIGIT_HOUR.sub(r"0\1:\2", text)


def tag_next_day(text: str) -> str:
    text = _TIME_WITH_MARKER.sub(r"\1 NEXT_DAY", text)
    return _MARKER_LINE.sub("NEXT_DAY", text)


def repair_spaced_codes(text: str) -> str:
    for pattern, code in _SPACED_CODES:
        text = pattern.sub(code, text)
    return text
