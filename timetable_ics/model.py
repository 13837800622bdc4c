"""
Central data model definitions used across the project.

A RawRecord is one row of the timetable export, exactly as read.
The parsers turn its text fields into DateComponent / WallTime / minutes,
and the materializer turns those into Occurrence objects for the writer.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

from timetable_ics.config import EVENT_NAME_CODE_LENGTH, RECURRENCE_MARGIN_MINUTES


@dataclass(frozen=True)
class RawRecord:
    """
    One timetable row: 8 opaque text fields.
    """

    subject_code: str
    group: str
    day: str
    time: str
    campus: str
    location: str
    duration: str
    dates: str

    def event_name(self) -> str:
        """
        Display name, e.g. 'FIT2004 Laboratory 01'.
        """
        code = self.subject_code[:EVENT_NAME_CODE_LENGTH]
        return f"{code} {self.group}"


@dataclass(frozen=True)
class DateComponent:
    """
    Either a single date (end is None) or a weekly range, inclusive.
    """

    start: date
    end: Optional[date] = None

    @property
    def is_range(self) -> bool:
        return self.end is not None


@dataclass(frozen=True)
class WallTime:
    hour: int
    minute: int


@dataclass(frozen=True)
class Occurrence:
    """
    A concrete calendar entry ready for the writer.

    end_bound is set only when the source component was a range; the
    event then repeats weekly from start until horizon.
    """

    name: str
    start: datetime
    end_bound: Optional[datetime]
    duration: int
    location: str
    campus: str

    @property
    def end(self) -> datetime:
        return self.start + timedelta(minutes=self.duration)

    @property
    def recurring(self) -> bool:
        return self.end_bound is not None

    @property
    def horizon(self) -> Optional[datetime]:
        if self.end_bound is None:
            return None
        return self.end_bound + timedelta(minutes=self.duration + RECURRENCE_MARGIN_MINUTES)


class ParseFailure(enum.Enum):
    """
    Which field of a record could not be parsed.
    """

    DURATION_UNPARSEABLE = "duration"
    DATE_SEQUENCE_MALFORMED = "dates"
    TIME_MALFORMED = "time"

    @property
    def field(self) -> str:
        return self.value
