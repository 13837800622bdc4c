"""
iCalendar (.ics) export.

Occurrences are written into a calendar file that can be imported into:
- Google Calendar
- Outlook
- Apple Calendar

Recurring occurrences get a weekly RRULE ending at their horizon.
All timestamps are written in UTC.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional

from timetable_ics.model import Occurrence

logger = logging.getLogger(__name__)


def _ics_escape(text: str) -> str:
    """
    Escape text for ICS fields (very small subset, sufficient for our use).
    """
    return (
        text.replace("\\", "\\\\").replace("\r\n", "\\n").replace("\n", "\\n").replace(";", "\\;").replace(",", "\\,")
    )


MAX_LINE_OCTETS = 75


def _fold(line: str) -> str:
    """
    Fold a content line so no physical line exceeds 75 octets (RFC 5545 3.1).

    Continuation lines start with a single space. Multi-byte characters are
    never split.
    """
    if len(line.encode("utf-8")) <= MAX_LINE_OCTETS:
        return line

    parts: list[str] = []
    current = ""
    size = 0
    # continuation lines lose one octet to the leading space
    limit = MAX_LINE_OCTETS
    for ch in line:
        n = len(ch.encode("utf-8"))
        if size + n > limit:
            parts.append(current)
            current = ""
            size = 0
            limit = MAX_LINE_OCTETS - 1
        current += ch
        size += n
    parts.append(current)
    return "\r\n ".join(parts)


def format_utc(dt: datetime) -> str:
    """
    Format an aware datetime as ICS UTC time 'YYYYMMDDTHHMMSSZ'.
    """
    return dt.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def event_lines(occ: Occurrence, uid: Optional[str] = None, dtstamp: Optional[datetime] = None) -> List[str]:
    """
    Build the VEVENT block for one occurrence.
    """
    uid = uid or str(uuid.uuid4())
    stamp = dtstamp or datetime.now(timezone.utc)

    lines: list[str] = []
    lines.append("BEGIN:VEVENT")
    lines.append(f"UID:{_ics_escape(uid)}")
    lines.append(f"DTSTAMP:{format_utc(stamp)}")
    lines.append(f"DTSTART:{format_utc(occ.start)}")
    lines.append(f"DTEND:{format_utc(occ.end)}")
    lines.append(f"SUMMARY:{_ics_escape(occ.name)}")
    if occ.location:
        lines.append(f"LOCATION:{_ics_escape(occ.location)}")
    lines.append(f"DESCRIPTION:{_ics_escape(f'Campus: {occ.campus}')}")
    if occ.horizon is not None:
        lines.append(f"RRULE:FREQ=WEEKLY;UNTIL={format_utc(occ.horizon)}")
    lines.append("END:VEVENT")
    return lines


def render_calendar(occurrences: Iterable[Occurrence]) -> str:
    lines: list[str] = []
    lines.append("BEGIN:VCALENDAR")
    lines.append("VERSION:2.0")
    lines.append("PRODID:-//timetable-ics//EN")
    lines.append("CALSCALE:GREGORIAN")

    for occ in occurrences:
        lines.extend(event_lines(occ))

    lines.append("END:VCALENDAR")

    # ICS standard uses CRLF
    return "\r\n".join(_fold(line) for line in lines) + "\r\n"


def export_occurrences_to_ics(occurrences: Iterable[Occurrence], out_path: str | Path) -> int:
    """
    Export occurrences to an .ics file. Returns number of exported events.
    """
    items = list(occurrences)
    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(render_calendar(items), encoding="utf-8", newline="")
    logger.info("Wrote %d event(s) to %s", len(items), out)
    return len(items)
