"""
Row source (CSV export -> RawRecord).

The timetable export is saved as CSV; columns are picked by index
(see timetable_ics.config). The first row is a header and is dropped.
"""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import List, Sequence

from timetable_ics.config import (
    CAMPUS_COLUMN,
    DATES_COLUMN,
    DAY_COLUMN,
    DURATION_COLUMN,
    GROUP_COLUMN,
    LARGEST_COLUMN,
    LOCATION_COLUMN,
    SUBJECT_CODE_COLUMN,
    TIME_COLUMN,
)
from timetable_ics.model import RawRecord

logger = logging.getLogger(__name__)


class RowFormatError(ValueError):
    pass


def record_from_row(row: Sequence[str], row_number: int = 0) -> RawRecord:
    """
    Build a RawRecord from one row of cells.
    """
    if len(row) <= LARGEST_COLUMN:
        raise RowFormatError(
            f"Row {row_number}: at least {LARGEST_COLUMN + 1} columns are required, "
            f"instead only {len(row)} were supplied."
        )

    cells = [str(c).strip() for c in row]
    return RawRecord(
        subject_code=cells[SUBJECT_CODE_COLUMN],
        group=cells[GROUP_COLUMN],
        day=cells[DAY_COLUMN],
        time=cells[TIME_COLUMN],
        campus=cells[CAMPUS_COLUMN],
        location=cells[LOCATION_COLUMN],
        duration=cells[DURATION_COLUMN],
        dates=cells[DATES_COLUMN],
    )


def count_non_empty_cells(rows: Sequence[Sequence[str]]) -> int:
    return sum(1 for row in rows for cell in row if str(cell).strip())


def read_rows(path: str | Path) -> List[List[str]]:
    """
    Read all rows of a CSV file, dropping rows without any content.
    """
    p = Path(path)
    with p.open(newline="", encoding="utf-8-sig") as f:
        rows = [row for row in csv.reader(f) if any(cell.strip() for cell in row)]
    logger.info("Read %d row(s) from %s", len(rows), p)
    return rows


def records_from_rows(rows: Sequence[Sequence[str]], skip_header: bool = True) -> List[RawRecord]:
    """
    Convert rows into RawRecords. Raises RowFormatError on short rows.
    """
    body = rows[1:] if skip_header else rows
    offset = 2 if skip_header else 1
    return [record_from_row(row, i + offset) for i, row in enumerate(body)]
