# date_inference.py
"""
Conservative calendar-date inference for flight segments.

Only genuinely absent dates are filled. Rules, applied in document order
with the previous segment's arrival as context:

- explicit dates are kept as printed (confidence ``high``);
- a missing arrival date is the departure date, plus one day when the
  arrival carries a ``+1`` marker or its hour is more than 12 hours
  earlier than the departure hour;
- a missing connecting departure date starts from the previous arrival
  date and crosses midnight when its hour is more than 2 hours earlier
  than that arrival's hour;
- a first departure with no date anywhere uses the document's base date
  (``medium``) or, failing that, today (``low``).

Chronology problems found afterwards are warnings, never errors.
"""

import re
from datetime import date, datetime, timedelta
from typing import List, Optional, Tuple

from dateutil import parser as dateparser
from pydantic import BaseModel, Field

from .diagnostics import DiagnosticLog
from .models import Endpoint, Segment

STAGE = "dates"

CONFIDENCE_HIGH = "high"
CONFIDENCE_MEDIUM = "medium"
CONFIDENCE_LOW = "low"

OVERNIGHT_HOURS = 12
MIDNIGHT_BUFFER_HOURS = 2
MIN_LAYOVER = timedelta(minutes=30)
MAX_LAYOVER = timedelta(hours=48)

_YEAR_FIRST = re.compile(r"^\d{4}[-/.]")
_COMPACT_TIME = re.compile(r"^(\d{1,2})(\d{2})$")
_DOTTED_TIME = re.compile(r"^(\d{1,2})[.h](\d{2})\b", re.IGNORECASE)
_MERIDIEM = re.compile(r"[ap]\.?m\.?$", re.IGNORECASE)

# two defaults that differ in every field: a fully printed date parses the same under both
_DEFAULTS = (datetime(2000, 1, 1), datetime(2001, 2, 2))


class DateReport(BaseModel):
    is_valid: bool = True
    warnings: List[str] = Field(default_factory=list)


def parse_date(value: Optional[str]) -> Optional[date]:
    """
    A printed calendar date, or None when any of day, month and year is missing.

    Handles ISO, ``28 Sep 2025``, ``Sunday, 28th September 2025``,
    ``Sep 28th, 2025``, ``28-Sep-2025`` and ``28/09/2025``. Numeric dates
    are day first unless the year leads or the day-first reading is impossible.
    """
    if not value:
        return None
    raw = value.strip()
    year_first = bool(_YEAR_FIRST.match(raw))
    try:
        parsed = [
            dateparser.parse(raw, default=default, dayfirst=not year_first, yearfirst=year_first, fuzzy=True)
            for default in _DEFAULTS
        ]
    except (ValueError, OverflowError):
        return None
    first, second = (p.date() for p in parsed)
    return first if first == second else None


def parse_time(value: Optional[str]) -> Optional[str]:
    """``20:30``, ``2030``, ``8:30 PM`` or ``20h30`` → ``HH:MM``; None when the value carries a date."""
    if not value:
        return None
    raw = value.strip().replace("NEXT_DAY", "").strip()
    if not raw:
        return None
    raw = _COMPACT_TIME.sub(r"\1:\2", raw)
    raw = _DOTTED_TIME.sub(r"\1:\2", raw)
    if ":" not in raw and not _MERIDIEM.search(raw):
        return None
    default = _DEFAULTS[0]
    try:
        parsed = dateparser.parse(raw, default=default)
    except (ValueError, OverflowError):
        return None
    if parsed.date() != default.date():
        return None
    return parsed.strftime("%H:%M")


def _hour(value: Optional[str]) -> Optional[int]:
    t = parse_time(value)
    return int(t[:2]) if t else None


def moment(endpoint: Endpoint) -> Optional[datetime]:
    d, t = parse_date(endpoint.date), parse_time(endpoint.time_local)
    if d is None or t is None:
        return None
    return datetime(d.year, d.month, d.day, int(t[:2]), int(t[3:]))


def _infer_departure(
    dep: Endpoint,
    prev_arrival: Optional[Tuple[date, Optional[str]]],
    anchor: Optional[date],
    base_date: Optional[date],
) -> Tuple[Optional[date], Optional[str]]:
    if prev_arrival is not None:
        inferred, prev_time = prev_arrival
        dep_hour, prev_hour = _hour(dep.time_local), _hour(prev_time)
        if dep_hour is not None and prev_hour is not None and dep_hour < prev_hour - MIDNIGHT_BUFFER_HOURS:
            inferred += timedelta(days=1)
    elif base_date is not None:
        inferred = base_date
    else:
        return None, None

    anchor = anchor or base_date
    if dep.day_offset and anchor is not None:
        inferred = max(inferred, anchor + timedelta(days=dep.day_offset))
    return inferred, CONFIDENCE_MEDIUM


def _infer_arrival(dep: Endpoint, arr: Endpoint, dep_date: date) -> Tuple[date, str]:
    dep_conf = dep.date_confidence or CONFIDENCE_HIGH
    if arr.day_offset:
        return dep_date + timedelta(days=arr.day_offset), dep_conf

    conf = CONFIDENCE_LOW if dep_conf == CONFIDENCE_LOW else CONFIDENCE_MEDIUM
    dep_hour, arr_hour = _hour(dep.time_local), _hour(arr.time_local)
    if dep_hour is not None and arr_hour is not None and arr_hour < dep_hour - OVERNIGHT_HOURS:
        return dep_date + timedelta(days=1), conf
    return dep_date, conf


def infer_dates(
    segments: List[Segment],
    base_date: Optional[date] = None,
    today: Optional[date] = None,
    diagnostics: Optional[DiagnosticLog] = None,
) -> List[Segment]:
    """Return dated copies of ``segments``; the input list is left untouched."""
    diagnostics = diagnostics if diagnostics is not None else DiagnosticLog()
    today = today or date.today()

    dated: List[Segment] = []
    prev_arrival: Optional[Tuple[date, Optional[str]]] = None
    journey_start: Optional[date] = None

    for index, original in enumerate(segments, 1):
        seg = original.model_copy(deep=True)
        dep, arr = seg.dep, seg.arr

        if dep.date:
            dep.date_confidence = dep.date_confidence or CONFIDENCE_HIGH
            dep_date = parse_date(dep.date)
            if dep_date is None:
                diagnostics.warning(STAGE, f"Segment {index}: unreadable departure date '{dep.date}'")
        else:
            dep_date, conf = _infer_departure(dep, prev_arrival, journey_start, base_date)
            if dep_date is None:
                dep_date, conf = today, CONFIDENCE_LOW
                diagnostics.warning(STAGE, f"Segment {index}: no date context, assuming today ({today.isoformat()})")
            dep.date, dep.date_inferred, dep.date_confidence = dep_date.isoformat(), True, conf

        if journey_start is None and dep_date is not None:
            journey_start = dep_date

        arr_date: Optional[date] = None
        if arr.date:
            arr.date_confidence = arr.date_confidence or CONFIDENCE_HIGH
            arr_date = parse_date(arr.date)
        elif dep_date is not None:
            arr_date, conf = _infer_arrival(dep, arr, dep_date)
            arr.date, arr.date_inferred, arr.date_confidence = arr_date.isoformat(), True, conf

        if arr_date is not None:
            prev_arrival = (arr_date, arr.time_local)
        elif dep_date is not None:
            prev_arrival = (dep_date, None)

        dated.append(seg)

    return dated


def validate_dates(segments: List[Segment], diagnostics: Optional[DiagnosticLog] = None) -> DateReport:
    """Each arrival must precede the next departure by 30 minutes to 48 hours."""
    diagnostics = diagnostics if diagnostics is not None else DiagnosticLog()
    warnings: List[str] = []

    for i in range(len(segments) - 1):
        arrival = moment(segments[i].arr)
        departure = moment(segments[i + 1].dep)
        if arrival is None or departure is None:
            continue
        if arrival >= departure:
            warnings.append(
                f"Segment {i + 1} arrives {arrival:%Y-%m-%d %H:%M}, not before segment {i + 2} departs {departure:%Y-%m-%d %H:%M}"
            )
            continue
        layover = departure - arrival
        if layover < MIN_LAYOVER or layover > MAX_LAYOVER:
            hours, rem = divmod(int(layover.total_seconds()) // 60, 60)
            warnings.append(
                f"Layover of {hours}h{rem:02d}m between segments {i + 1} and {i + 2} is outside 30m-48h"
            )

    for warning in warnings:
        diagnostics.warning(STAGE, warning)
    return DateReport(is_valid=not warnings, warnings=warnings)


def assign_header_dates(
    segments: List[Segment],
    positions: List[int],
    headers: List[Tuple[int, date]],
) -> List[Segment]:
    """
    Attach each dated section header to the first segment printed after it.

    ``positions`` holds the source line of each segment's departure. A
    segment that already has a departure date keeps it.
    """
    out = [s.model_copy(deep=True) for s in segments]
    for n, (line, header_date) in enumerate(headers):
        next_header = headers[n + 1][0] if n + 1 < len(headers) else None
        for seg, pos in zip(out, positions):
            if pos <= line or (next_header is not None and pos > next_header):
                continue
            if not seg.dep.date:
                seg.dep.date = header_date.isoformat()
                seg.dep.date_confidence = CONFIDENCE_HIGH
            break
    return out
