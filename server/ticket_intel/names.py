# names.py
"""Passenger-name plausibility checks shared by the extractors and the quality scorer."""

import re
from typing import Optional

# Phrases that sit where a name would on ticket layouts.
NON_NAME_PHRASES = (
    "IN YOUR BOOKING",
    "EACH PASSENGER",
    "BAGGAGE ALLOWANCE",
    "HAND BAGGAGE",
    "CHECKED BAGGAGE",
    "FLIGHT DETAILS",
    "BOOKING REFERENCE",
    "TERMINAL INFORMATION",
    "CLASS DETAILS",
    "YOUR BOOKING",
    "PASSENGER DETAILS",
    "BOOKING CONFIRMATION",
)

NON_NAME_WORDS = {
    "BAGGAGE", "ALLOWANCES", "ALLOWANCE", "HAND", "CHECKED", "APPLY", "EACH", "PASSENGER",
    "PASSENGERS", "BOOKING", "FLIGHT", "DETAILS", "TERMINAL", "CLASS", "INFORMATION",
    "TOTAL", "METHOD", "TICKET", "NUMBER", "CONFIRMATION", "REFERENCE",
    "DEPARTURE", "ARRIVAL", "TIME", "DATE", "FROM", "TO", "VIA", "CABIN",
    "SEAT", "GATE", "AIRCRAFT", "CODESHARE", "OPERATED", "BY", "INTERNATIONAL",
    "IN", "YOUR", "THE", "AND", "OR", "FOR", "WITH", "ALL", "ANY",
    "MILES", "POINTS", "REWARD", "STATUS", "TIER", "MEMBER", "CLUB", "NEXT_DAY",
}

TITLES = {"MR", "MRS", "MS", "MISS", "DR", "MSTR", "PROF"}

_COMMON_WORDS = {"IN", "YOUR", "THE", "AND", "OR", "TO", "FROM", "FOR", "WITH", "EACH", "ALL"}
_VOWELS = re.compile(r"[AEIOUY]")
_CONSONANTS = re.compile(r"[BCDFGHJKLMNPQRSTVWXZ]")
_CONSONANT_RUN = re.compile(r"^[BCDFGHJKLMNPQRSTVWXZ]{4,}$")


def is_obvious_non_name(name: str) -> bool:
    if not name or len(name) < 4:
        return True
    upper = name.upper()
    if any(phrase in upper for phrase in NON_NAME_PHRASES):
        return True
    words = upper.split()
    common = sum(1 for w in words if w in _COMMON_WORDS)
    return common > len(words) / 2


def is_plausible_name(name: Optional[str]) -> bool:
    """2-4 tokens, sane vowel/consonant mix, nothing from the blacklist."""
    if not name or len(name) < 4 or len(name) > 50:
        return False
    if is_obvious_non_name(name):
        return False
    parts = [p.strip(".,'-") for p in name.upper().split()]
    if len(parts) < 2 or len(parts) > 4:
        return False
    for part in parts:
        if len(part) < 2 or part in NON_NAME_WORDS or not part.replace("'", "").replace("-", "").isalpha():
            return False
        vowels = len(_VOWELS.findall(part))
        consonants = len(_CONSONANTS.findall(part))
        if vowels == 0 and consonants > 2:
            return False
        if consonants == 0 and vowels > 1:
            return False
        if _CONSONANT_RUN.match(part):
            return False
    avg = sum(len(p) for p in parts) / len(parts)
    return 2 <= avg <= 12


def clean_name(raw: str) -> Optional[str]:
    """
    Trim a captured name at the first non-name word and drop titles.

    Returns None when what is left does not look like a person.
    """
    if not raw:
        return None
    valid = []
    for part in raw.split():
        word = part.strip(".,:;|()")
        if not word:
            continue
        if word.upper() in TITLES:
            continue
        if word.upper() in NON_NAME_WORDS:
            break
        if len(word) >= 2:
            valid.append(word)
    if len(valid) < 2 or len(valid) > 4:
        return None
    cleaned = " ".join(valid)
    return cleaned if is_plausible_name(cleaned) else None
