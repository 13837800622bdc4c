"""
Occurrence materialization.

Combines parsed dates, time and duration into timezone-aware Occurrence
objects. One Occurrence per DateComponent:
- single date -> one plain event
- date range  -> one weekly series from start until end (see Occurrence.horizon)
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, tzinfo
from typing import Iterable, List, Optional

from timetable_ics.model import DateComponent, Occurrence, ParseFailure, WallTime
from timetable_ics.parse import ParsedRecord

logger = logging.getLogger(__name__)


class IncompleteRecordError(ValueError):
    """
    Raised when a record is missing a value the materializer needs.
    """

    def __init__(self, failures: Iterable[ParseFailure]) -> None:
        self.failures = list(failures)
        fields = ", ".join(f.field for f in self.failures)
        super().__init__(f"Cannot materialize record, unparseable field(s): {fields}")


def combine(day: date, wall_time: WallTime, tz: Optional[tzinfo] = None) -> datetime:
    """
    Attach a wall-clock time to a date.

    With tz=None the result is in the process's local zone.
    """
    naive = datetime.combine(day, time(wall_time.hour, wall_time.minute))
    if tz is None:
        return naive.astimezone()
    return naive.replace(tzinfo=tz)


def materialize(
    name: str,
    location: str,
    campus: str,
    wall_time: WallTime,
    duration: int,
    components: Iterable[DateComponent],
    tz: Optional[tzinfo] = None,
) -> List[Occurrence]:
    occurrences: List[Occurrence] = []
    for component in components:
        start = combine(component.start, wall_time, tz)
        end_bound = combine(component.end, wall_time, tz) if component.end is not None else None
        occurrences.append(
            Occurrence(
                name=name,
                start=start,
                end_bound=end_bound,
                duration=duration,
                location=location,
                campus=campus,
            )
        )
    return occurrences


def materialize_record(
    parsed: ParsedRecord,
    tz: Optional[tzinfo] = None,
    name: Optional[str] = None,
    duration: Optional[int] = None,
    dates: Optional[List[DateComponent]] = None,
    wall_time: Optional[WallTime] = None,
) -> List[Occurrence]:
    """
    Materialize a parsed record.

    Keyword arguments replace the parsed values (e.g. a duration typed in
    by the user). Raises IncompleteRecordError if duration, dates or
    wall_time is still missing afterwards.
    """
    duration = duration if duration is not None else parsed.duration
    dates = dates if dates is not None else parsed.dates
    wall_time = wall_time if wall_time is not None else parsed.time

    missing: List[ParseFailure] = []
    if duration is None:
        missing.append(ParseFailure.DURATION_UNPARSEABLE)
    if dates is None:
        missing.append(ParseFailure.DATE_SEQUENCE_MALFORMED)
    if wall_time is None:
        missing.append(ParseFailure.TIME_MALFORMED)
    if missing:
        raise IncompleteRecordError(missing)

    if duration < 0:
        raise ValueError(f"Duration must not be negative: {duration}")

    record = parsed.record
    occurrences = materialize(
        name=name if name is not None else record.event_name(),
        location=record.location,
        campus=record.campus,
        wall_time=wall_time,
        duration=duration,
        components=dates,
        tz=tz,
    )
    logger.debug("Materialized %d occurrence(s) for %s", len(occurrences), record.event_name())
    return occurrences
