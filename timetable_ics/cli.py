"""
CLI (Command Line Interface).

    timetable-ics convert <timetable.csv> [-o out.ics]
    timetable-ics inspect <timetable.csv>

convert walks through every row, lets the user confirm the event name and
duration (or type a replacement when the duration could not be read), and
writes all accepted events into one .ics file. With --yes nothing is asked
and rows that fail to parse are skipped.
"""

from __future__ import annotations

import argparse
import logging
from datetime import date
from typing import List, Optional

from rich.console import Console
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.table import Table

from timetable_ics.config import Settings, get_settings
from timetable_ics.export_ics import export_occurrences_to_ics
from timetable_ics.materialize import IncompleteRecordError, materialize_record
from timetable_ics.model import DateComponent, Occurrence, ParseFailure
from timetable_ics.parse import ParsedRecord, parse_record
from timetable_ics.rows import RowFormatError, count_non_empty_cells, read_rows, records_from_rows

logger = logging.getLogger(__name__)

console = Console(markup=False)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def _describe_dates(dates: Optional[List[DateComponent]]) -> str:
    if dates is None:
        return "-"
    parts = []
    for c in dates:
        if c.end is not None:
            parts.append(f"{c.start.isoformat()} .. {c.end.isoformat()}")
        else:
            parts.append(c.start.isoformat())
    return ", ".join(parts)


def _load_parsed(path: str, settings: Settings, today: date) -> List[ParsedRecord]:
    rows = read_rows(path)
    console.print(f"Found {count_non_empty_cells(rows)} non-empty cells.")
    records = records_from_rows(rows, skip_header=settings.skip_header)
    return [parse_record(r, today) for r in records]


def _load_or_report(path: str, settings: Settings, today: date) -> Optional[List[ParsedRecord]]:
    """
    Like _load_parsed, but print the problem and return None on failure.
    """
    try:
        return _load_parsed(path, settings, today)
    except FileNotFoundError:
        console.print(f"File not found: {path}")
    except UnicodeDecodeError as exc:
        console.print(f"Cannot read {path}: not UTF-8 text ({exc.reason}). Save the export as UTF-8 CSV.")
    except OSError as exc:
        console.print(f"Cannot read {path}: {exc}")
    except RowFormatError as exc:
        console.print(str(exc))
    return None


def _print_ranges(name: str, occurrences: List[Occurrence]) -> None:
    console.print(f"{name} takes place in the following ranges, inclusive.")
    for occ in occurrences:
        if occ.end_bound is not None:
            console.print(f"{occ.start.strftime(TIMESTAMP_FORMAT)} - {occ.end_bound.strftime(TIMESTAMP_FORMAT)}")
        else:
            console.print(occ.start.strftime(TIMESTAMP_FORMAT))


def _ask_duration(parsed: ParsedRecord) -> int:
    """
    Confirm the parsed duration or ask for a replacement (minutes).
    """
    raw = parsed.record.duration
    if parsed.duration is not None:
        console.print(f"The requested duration was {raw}, we determined this to be {parsed.duration} minutes")
        if Confirm.ask("Is this ok?", console=console):
            return parsed.duration
    else:
        console.print("Failed to determine the correct duration in minutes.")
        console.print(f"The reported duration was {raw}")

    while True:
        value = IntPrompt.ask("Your duration (minutes)", console=console)
        if value >= 0:
            return value
        console.print("Please enter a non-negative integer.")


def _convert_record(parsed: ParsedRecord, settings: Settings) -> List[Occurrence]:
    """
    Turn one parsed record into occurrences, asking the user where needed.

    Returns [] if the record is skipped.
    """
    record = parsed.record
    name = record.event_name()
    console.print(f"\n\nFound event {name}")

    if settings.assume_yes:
        try:
            occurrences = materialize_record(parsed, tz=settings.timezone)
        except IncompleteRecordError as exc:
            console.print(f"Skipping {name}: {exc}")
            return []
        _print_ranges(name, occurrences)
        return occurrences

    if settings.check_names and not Confirm.ask("Is this name ok?", console=console):
        name = Prompt.ask("Event name", console=console)

    duration = _ask_duration(parsed)

    # Dates and time have no manual substitute
    if ParseFailure.DATE_SEQUENCE_MALFORMED in parsed.failures:
        console.print(f"Something went wrong whilst processing the dates: {record.dates!r}")
        return []
    if ParseFailure.TIME_MALFORMED in parsed.failures:
        console.print(f"Something went wrong whilst processing the times: {record.time!r}")
        return []

    occurrences = materialize_record(parsed, tz=settings.timezone, name=name, duration=duration)
    _print_ranges(name, occurrences)

    if not Confirm.ask("Add event?", console=console):
        return []
    return occurrences


def _cmd_convert(args: argparse.Namespace) -> int:
    """
    Convert a timetable CSV into an .ics file.
    """
    settings = get_settings(
        output=args.output,
        timezone=args.tz,
        check_names=not args.no_check,
        assume_yes=args.yes,
        skip_header=not args.no_header,
    )
    today = date.today()

    parsed_records = _load_or_report(args.file, settings, today)
    if parsed_records is None:
        return 1

    occurrences: List[Occurrence] = []
    for parsed in parsed_records:
        added = _convert_record(parsed, settings)
        for occ in added:
            if occ.end_bound is not None:
                console.print(
                    f"Added event {occ.name}     {occ.start.strftime(TIMESTAMP_FORMAT)} - "
                    f"{occ.end_bound.strftime(TIMESTAMP_FORMAT)}"
                )
            else:
                console.print(f"Added event {occ.name}     {occ.start.strftime(TIMESTAMP_FORMAT)}")
        occurrences.extend(added)

    try:
        n = export_occurrences_to_ics(occurrences, settings.output)
    except OSError as exc:
        console.print(f"Failed to write {settings.output}: {exc}")
        return 1
    console.print(f"Successfully wrote {n} events to {settings.output}")
    return 0


def _cmd_inspect(args: argparse.Namespace) -> int:
    """
    Print how every row was parsed. Exit code 1 if any row failed.
    """
    settings = get_settings(skip_header=not args.no_header)

    parsed_records = _load_or_report(args.file, settings, date.today())
    if parsed_records is None:
        return 1

    table = Table(title="Timetable rows")
    table.add_column("Event")
    table.add_column("Duration (min)", justify="right")
    table.add_column("Time")
    table.add_column("Dates")
    table.add_column("Failed fields")

    for p in parsed_records:
        time_text = f"{p.time.hour:02d}:{p.time.minute:02d}" if p.time is not None else "-"
        table.add_row(
            p.record.event_name(),
            str(p.duration) if p.duration is not None else "-",
            time_text,
            _describe_dates(p.dates),
            ", ".join(f.field for f in p.failures),
        )

    console.print(table)

    failed = sum(1 for p in parsed_records if not p.ok)
    if failed:
        console.print(f"{failed} of {len(parsed_records)} rows could not be parsed.")
        return 1
    return 0


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(
        prog="timetable-ics",
        description="Convert a university timetable export into an .ics calendar file.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p_convert = sub.add_parser("convert", help="Convert a timetable CSV into .ics")
    p_convert.add_argument("file", type=str, help="The timetable CSV file to process")
    p_convert.add_argument("-o", "--output", type=str, default=None, help="The output file (default: out.ics)")
    p_convert.add_argument("--tz", type=str, default=None, help="Timezone name (default: local time)")
    p_convert.add_argument("--no-check", action="store_true", help="Don't check the name of the events")
    p_convert.add_argument("-y", "--yes", action="store_true", help="Accept everything, skip rows that fail")
    p_convert.add_argument("--no-header", action="store_true", help="The first row is data, not a header")

    p_inspect = sub.add_parser("inspect", help="Show how each row is parsed")
    p_inspect.add_argument("file", type=str, help="The timetable CSV file to process")
    p_inspect.add_argument("--no-header", action="store_true", help="The first row is data, not a header")

    return parser


def main(argv: list[str] | None = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "convert":
        raise SystemExit(_cmd_convert(args))
    if args.command == "inspect":
        raise SystemExit(_cmd_inspect(args))

    raise SystemExit(2)
