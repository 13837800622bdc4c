"""
Parsing (timetable text fields -> structured values).

- duration text like '50 mins', '1 hr', '1.5 hrs' -> minutes
- dates text like '5/3-2/4, 16/4-28/5'            -> list of DateComponent
- time text like '08:32'                           -> WallTime

Important rules:
- Every parser returns None on bad input, never a partial result
- The three parsers of a record are always run independently
- The year of every date comes from the 'today' argument
"""

from __future__ import annotations

import enum
import logging
import math
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

from timetable_ics.model import DateComponent, ParseFailure, RawRecord, WallTime

logger = logging.getLogger(__name__)

DIGITS = "0123456789"

HOUR_UNITS = ("hr", "hrs")


# ---------------------------------------------------------------------------
# Duration
# ---------------------------------------------------------------------------


def parse_duration(text: str) -> Optional[int]:
    """
    Parse a free-form duration into whole minutes.

    Unknown units are read as minutes.
    """
    numerics: List[str] = []
    i = 0

    # Numeric prefix: digits and '.'
    while i < len(text) and (text[i] in DIGITS or text[i] == "."):
        numerics.append(text[i])
        i += 1

    # A single separating whitespace is part of the break
    if i < len(text) and text[i].isspace():
        i += 1

    unit = text[i:].strip().lower()

    try:
        value = float("".join(numerics))
    except ValueError:
        logger.debug("Unparseable duration %r", text)
        return None

    if unit in HOUR_UNITS:
        value *= 60

    if not math.isfinite(value):
        logger.debug("Duration out of range %r", text)
        return None

    return int(value)


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------


class ScanState(enum.Enum):
    SCANNING_START = "start"
    SCANNING_END = "end"


class DateRangeTokenizer:
    """
    Splits a dates field into (start, end) sub-token pairs.

    '5/3-2/4, 16/4' -> [('5/3', '2/4'), ('16/4', None)]

    tokenize() returns None as soon as a character is not allowed.
    """

    def __init__(self, text: str) -> None:
        self.text = "".join(text.split())
        self._pairs: list[tuple[str, Optional[str]]] = []
        self._reset()

    def _reset(self) -> None:
        self.state = ScanState.SCANNING_START
        self._start: List[str] = []
        self._end: List[str] = []

    def _is_empty(self) -> bool:
        return self.state is ScanState.SCANNING_START and not self._start

    def _close_component(self) -> None:
        start = "".join(self._start)
        end = "".join(self._end) if self.state is ScanState.SCANNING_END else None
        self._pairs.append((start, end))
        self._reset()

    def tokenize(self) -> Optional[list[tuple[str, Optional[str]]]]:
        self._pairs = []
        self._reset()

        for ch in self.text:
            if ch == ",":
                if self._is_empty():
                    return None
                self._close_component()
            elif ch == "-":
                if self.state is ScanState.SCANNING_END:
                    return None
                self.state = ScanState.SCANNING_END
            elif ch in DIGITS or ch == "/":
                if self.state is ScanState.SCANNING_START:
                    self._start.append(ch)
                else:
                    self._end.append(ch)
            else:
                return None

        # A trailing ',' leaves nothing behind and is not a component
        if not self._is_empty():
            self._close_component()

        return self._pairs


def date_from_token(token: str, year: int) -> Optional[date]:
    """
    Convert 'D/M' or 'DD/MM' into a date in the given year.
    """
    slash = token.find("/")
    if slash < 0 or slash > 2:
        return None

    day_s = token[:slash]
    month_s = token[slash + 1 :]
    if len(month_s) > 2:
        return None

    if not (day_s.isdigit() and month_s.isdigit()):
        return None

    try:
        return date(year, int(month_s), int(day_s))
    except ValueError:
        return None


def parse_dates(text: str, today: date) -> Optional[List[DateComponent]]:
    """
    Parse a dates field like '5/3-2/4, 16/4' into DateComponents.

    Any bad component voids the whole field.
    """
    pairs = DateRangeTokenizer(text).tokenize()
    if not pairs:
        logger.debug("Malformed dates %r", text)
        return None

    year = today.year
    components: List[DateComponent] = []
    for start_token, end_token in pairs:
        start = date_from_token(start_token, year)
        if start is None:
            logger.debug("Bad start date %r in %r", start_token, text)
            return None

        if end_token is None:
            components.append(DateComponent(start))
            continue

        end = date_from_token(end_token, year)
        if end is None:
            logger.debug("Bad end date %r in %r", end_token, text)
            return None
        components.append(DateComponent(start, end))

    return components


# ---------------------------------------------------------------------------
# Time
# ---------------------------------------------------------------------------


def parse_time(text: str) -> Optional[WallTime]:
    """
    Parse a strict 'HH:MM' string.
    """
    if len(text) != 5 or text[2] != ":":
        return None

    hour_s, minute_s = text[:2], text[3:]
    if not all(c in DIGITS for c in hour_s + minute_s):
        return None

    hour, minute = int(hour_s), int(minute_s)
    if hour > 23 or minute > 59:
        logger.debug("Time out of range %r", text)
        return None

    return WallTime(hour, minute)


# ---------------------------------------------------------------------------
# Whole record
# ---------------------------------------------------------------------------


@dataclass
class ParsedRecord:
    """
    Result of running all three parsers on one record.

    Fields that failed to parse are None and listed in failures.
    """

    record: RawRecord
    duration: Optional[int]
    dates: Optional[List[DateComponent]]
    time: Optional[WallTime]
    failures: List[ParseFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


def parse_record(record: RawRecord, today: date) -> ParsedRecord:
    """
    Run the duration, dates and time parsers on a record.

    A failure in one parser never stops the others.
    """
    duration = parse_duration(record.duration)
    dates = parse_dates(record.dates, today)
    time = parse_time(record.time)

    failures: List[ParseFailure] = []
    if duration is None:
        failures.append(ParseFailure.DURATION_UNPARSEABLE)
    if dates is None:
        failures.append(ParseFailure.DATE_SEQUENCE_MALFORMED)
    if time is None:
        failures.append(ParseFailure.TIME_MALFORMED)

    return ParsedRecord(record=record, duration=duration, dates=dates, time=time, failures=failures)
