# waypoints.py
"""
Waypoint detection over normalized ticket text.

A waypoint is one ``HH:MM <place>`` observation. Output order is the
order of appearance in the document, never clock order: outbound and
return journeys interleave times that are not monotonic.
"""

import re
from typing import Dict, List, Optional

from .airports import DIRECT_CITY_CODES
from .diagnostics import DiagnosticLog
from .models import Waypoint
from .patterns import patterns

STAGE = "waypoints"
FLAG_WINDOW = 4  # the time line plus up to three lines after it


def _clean_city(guess: str) -> str:
    return " ".join(re.sub(r"[^A-Za-z\s]", " ", guess).split()).lower()


def resolve_location(
    city_guess: str,
    next_line: Optional[str],
    city_map: Dict[str, str],
) -> Optional[str]:
    """
    Resolve a place to an IATA code.

    Priority: ``(IATA)`` on the same line, ``(IATA)`` on the next content
    line, the built-in city table, then a substring match against the
    document's city map (longest key wins).
    """
    same = patterns.IATA_PARENS.search(city_guess or "")
    if same:
        return same.group(1)
    if next_line:
        nxt = patterns.IATA_PARENS.search(next_line)
        if nxt:
            return nxt.group(1)

    city = _clean_city(patterns.NEXT_DAY.sub(" ", city_guess or ""))
    if not city:
        return None
    if city in DIRECT_CITY_CODES:
        return DIRECT_CITY_CODES[city]
    if city in city_map:
        return city_map[city]

    best: Optional[str] = None
    for key in city_map:
        # bare codes are only trusted through the exact lookup above
        if len(key) <= 3 and " " not in key:
            continue
        if key in city or (len(city) >= 4 and city in key):
            if best is None or len(key) > len(best):
                best = key
    return city_map[best] if best else None


def detect_waypoints(
    text: str,
    city_map: Dict[str, str],
    diagnostics: Optional[DiagnosticLog] = None,
) -> List[Waypoint]:
    diagnostics = diagnostics if diagnostics is not None else DiagnosticLog()
    lines = [line.strip() for line in (text or "").split("\n")]
    time_lines = [i for i, line in enumerate(lines) if patterns.TIME_LINE.match(line)]

    waypoints: List[Waypoint] = []
    seen = set()

    for pos, i in enumerate(time_lines):
        m = patterns.TIME_LINE.match(lines[i])
        time, rest = m.group(1), (m.group(2) or "")
        next_time = time_lines[pos + 1] if pos + 1 < len(time_lines) else len(lines)
        prev_time = time_lines[pos - 1] if pos > 0 else None

        next_line = _next_content_line(lines, i, next_time)
        guess = patterns.NEXT_DAY.sub(" ", rest).strip(" |-,")
        if not guess and next_line and not patterns.IATA_PARENS.fullmatch(next_line):
            guess = patterns.IATA_PARENS.sub("", next_line).strip(" |-,")

        code = resolve_location(rest or guess, next_line, city_map)
        if code is None:
            diagnostics.warning(STAGE, f"Dropped {time} '{guess}': no airport code resolved", line=i)
            continue

        key = (time, code)
        if key in seen:
            diagnostics.info(STAGE, f"Skipped repeated waypoint {time} {code}", line=i)
            continue
        seen.add(key)

        window = lines[i:min(i + FLAG_WINDOW, next_time)]
        is_next_day = any(patterns.NEXT_DAY.search(line) for line in window)
        # a lone "+1 day" line just above belongs here unless the previous waypoint already owns it
        if (
            not is_next_day
            and i > 0
            and patterns.DAY_MARKER_LINE.match(lines[i - 1])
            and (prev_time is None or i - 1 >= prev_time + FLAG_WINDOW)
        ):
            is_next_day = True

        terminal = None
        for line in window:
            t = patterns.TERMINAL.search(line)
            if t:
                terminal = t.group(1)
                break

        waypoints.append(
            Waypoint(
                time=time,
                location=code,
                is_next_day=is_next_day,
                terminal=terminal,
                ordinal_position=i,
                city=_display_city(guess),
            )
        )

    return waypoints


def _next_content_line(lines: List[str], i: int, stop: int) -> Optional[str]:
    """First non-empty line after ``i`` that is not a bare day marker, within two lines."""
    for j in range(i + 1, min(i + 3, stop)):
        line = lines[j]
        if not line or patterns.DAY_MARKER_LINE.match(line):
            continue
        return line
    return None


def _display_city(guess: str) -> Optional[str]:
    city = patterns.IATA_PARENS.sub("", guess or "").strip(" |-,")
    return city or None
