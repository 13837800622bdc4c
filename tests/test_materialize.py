"""
Unit tests for occurrence materialization.

- single date  -> no end bound, no horizon
- date range   -> end bound on the last date, horizon = end bound + duration + 10 min
- a record missing duration, dates or time is never materialized
"""

import unittest
from datetime import date, datetime, timedelta, timezone

from timetable_ics.materialize import IncompleteRecordError, combine, materialize, materialize_record
from timetable_ics.model import DateComponent, ParseFailure, RawRecord, WallTime
from timetable_ics.parse import parse_record

TODAY = date(2021, 6, 1)
UTC = timezone.utc


def make_record(duration: str = "50 mins", dates: str = "5/3", time: str = "09:00") -> RawRecord:
    return RawRecord(
        subject_code="FIT2004_CL_S1_ON-CAMPUS",
        group="Laboratory 01",
        day="Tue",
        time=time,
        campus="Clayton",
        location="CL_14Rnf/G12",
        duration=duration,
        dates=dates,
    )


class TestCombine(unittest.TestCase):
    def test_explicit_zone(self) -> None:
        dt = combine(date(2021, 3, 5), WallTime(9, 0), UTC)
        self.assertEqual(dt, datetime(2021, 3, 5, 9, 0, tzinfo=UTC))

    def test_local_zone_keeps_wall_clock(self) -> None:
        dt = combine(date(2021, 3, 5), WallTime(9, 30))
        self.assertIsNotNone(dt.tzinfo)
        self.assertEqual((dt.year, dt.month, dt.day, dt.hour, dt.minute), (2021, 3, 5, 9, 30))


class TestMaterialize(unittest.TestCase):
    def test_single_date_has_no_horizon(self) -> None:
        occs = materialize(
            name="FIT2004 Lab",
            location="G12",
            campus="Clayton",
            wall_time=WallTime(9, 0),
            duration=50,
            components=[DateComponent(date(2021, 3, 5))],
            tz=UTC,
        )
        self.assertEqual(len(occs), 1)
        occ = occs[0]
        self.assertIsNone(occ.end_bound)
        self.assertIsNone(occ.horizon)
        self.assertFalse(occ.recurring)
        self.assertEqual(occ.end, datetime(2021, 3, 5, 9, 50, tzinfo=UTC))

    def test_range_has_horizon(self) -> None:
        occs = materialize(
            name="FIT2004 Lab",
            location="G12",
            campus="Clayton",
            wall_time=WallTime(14, 0),
            duration=120,
            components=[DateComponent(date(2021, 3, 5), date(2021, 4, 2))],
            tz=UTC,
        )
        occ = occs[0]
        self.assertTrue(occ.recurring)
        self.assertEqual(occ.start, datetime(2021, 3, 5, 14, 0, tzinfo=UTC))
        self.assertEqual(occ.end_bound, datetime(2021, 4, 2, 14, 0, tzinfo=UTC))
        self.assertEqual(occ.horizon, datetime(2021, 4, 2, 16, 10, tzinfo=UTC))

    def test_horizon_after_end_bound_with_zero_duration(self) -> None:
        occs = materialize("X", "", "", WallTime(8, 0), 0, [DateComponent(date(2021, 3, 5), date(2021, 3, 5))], UTC)
        occ = occs[0]
        assert occ.horizon is not None and occ.end_bound is not None
        self.assertEqual(occ.horizon - occ.end_bound, timedelta(minutes=10))

    def test_one_occurrence_per_component(self) -> None:
        comps = [DateComponent(date(2021, 3, 5), date(2021, 4, 2)), DateComponent(date(2021, 4, 16))]
        occs = materialize("X", "", "", WallTime(8, 0), 60, comps, UTC)
        self.assertEqual([o.recurring for o in occs], [True, False])


class TestMaterializeRecord(unittest.TestCase):
    def test_end_to_end_single_date(self) -> None:
        parsed = parse_record(make_record(), TODAY)
        self.assertTrue(parsed.ok)
        self.assertEqual(parsed.duration, 50)
        self.assertEqual(parsed.time, WallTime(9, 0))

        occs = materialize_record(parsed, tz=UTC)
        self.assertEqual(len(occs), 1)
        occ = occs[0]
        self.assertEqual(occ.start, datetime(2021, 3, 5, 9, 0, tzinfo=UTC))
        self.assertIsNone(occ.horizon)
        self.assertEqual(occ.duration, 50)
        self.assertEqual(occ.name, "FIT2004 Laboratory 01")
        self.assertEqual(occ.location, "CL_14Rnf/G12")
        self.assertEqual(occ.campus, "Clayton")

    def test_parsers_fail_independently(self) -> None:
        parsed = parse_record(make_record(duration="long", dates="5/3", time="9:00"), TODAY)
        self.assertEqual(parsed.failures, [ParseFailure.DURATION_UNPARSEABLE, ParseFailure.TIME_MALFORMED])
        # dates still parsed
        self.assertEqual(parsed.dates, [DateComponent(date(2021, 3, 5))])

    def test_incomplete_record_raises_with_all_fields(self) -> None:
        parsed = parse_record(make_record(duration="?", dates="x", time="?"), TODAY)
        with self.assertRaises(IncompleteRecordError) as ctx:
            materialize_record(parsed, tz=UTC)
        self.assertEqual(
            ctx.exception.failures,
            [ParseFailure.DURATION_UNPARSEABLE, ParseFailure.DATE_SEQUENCE_MALFORMED, ParseFailure.TIME_MALFORMED],
        )
        self.assertIn("duration", str(ctx.exception))

    def test_substitute_duration(self) -> None:
        parsed = parse_record(make_record(duration="a while"), TODAY)
        occs = materialize_record(parsed, tz=UTC, duration=30)
        self.assertEqual(occs[0].duration, 30)

    def test_override_name(self) -> None:
        parsed = parse_record(make_record(), TODAY)
        occs = materialize_record(parsed, tz=UTC, name="Algorithms lab")
        self.assertEqual(occs[0].name, "Algorithms lab")

    def test_negative_substitute_rejected(self) -> None:
        parsed = parse_record(make_record(), TODAY)
        with self.assertRaises(ValueError):
            materialize_record(parsed, tz=UTC, duration=-5)


if __name__ == "__main__":
    unittest.main()
