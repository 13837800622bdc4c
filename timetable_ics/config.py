"""
Configuration for the timetable converter.

The timetable export is a table with a fixed column layout. Only the columns
listed below are read; everything else in a row is ignored.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import tzinfo
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Column layout of the timetable export
# ---------------------------------------------------------------------------

SUBJECT_CODE_COLUMN = 0
GROUP_COLUMN = 2
DAY_COLUMN = 4
TIME_COLUMN = 5
CAMPUS_COLUMN = 6
LOCATION_COLUMN = 7
DURATION_COLUMN = 9
DATES_COLUMN = 10
LARGEST_COLUMN = 10


# ---------------------------------------------------------------------------
# Event constants
# ---------------------------------------------------------------------------

# Added to the last occurrence of a weekly series so the RRULE UNTIL bound
# never clips the final class.
RECURRENCE_MARGIN_MINUTES = 10

# Subject codes longer than this are cut when building the event name
EVENT_NAME_CODE_LENGTH = 7

DEFAULT_OUTPUT = "out.ics"


@dataclass
class Settings:
    output: Path
    timezone: Optional[tzinfo]
    check_names: bool = True
    assume_yes: bool = False
    skip_header: bool = True


def get_timezone(name: Optional[str]) -> Optional[tzinfo]:
    """
    Resolve a zone name like 'Australia/Melbourne'.

    None (or an unknown name) means "the process's local zone".
    """
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r, falling back to local time", name)
        return None


def get_settings(
    output: Optional[str] = None,
    timezone: Optional[str] = None,
    check_names: bool = True,
    assume_yes: bool = False,
    skip_header: bool = True,
) -> Settings:
    """
    Build Settings from the environment, with explicit arguments winning.
    """
    out = output or os.getenv("TIMETABLE_ICS_OUTPUT", DEFAULT_OUTPUT)
    tz_name = timezone or os.getenv("TIMETABLE_ICS_TZ", "")

    return Settings(
        output=Path(out),
        timezone=get_timezone(tz_name),
        check_names=check_names,
        assume_yes=assume_yes,
        skip_header=skip_header,
    )
