"""
Tests for TimeRange boundary resolution.

Tests cover:
- Date and timestamp boundaries
- Month-only upper bound synthesis
- ignore_time and exclusive options
- Input shapes accepted by TimeRange.parse
- Immutability
"""

import pytest
from datetime import datetime
from types import SimpleNamespace
from freezegun import freeze_time
import pytz

from time_server.ranges import (
    BoundaryOptions,
    DateTimeComponent,
    EnglishExpressionParser,
    ExpressionParser,
    Granularity,
    ParsedExpression,
    TimeRange,
)


def _utc(*args):
    return pytz.utc.localize(datetime(*args))


def _component(value, *certain):
    return DateTimeComponent(value, frozenset(certain))


class FixedParser(ExpressionParser):
    """Parser that always returns the same candidates"""

    def __init__(self, *expressions):
        self.expressions = list(expressions)
        self.calls = []

    def parse(self, text, reference=None):
        self.calls.append(text)
        return self.expressions


@pytest.fixture
def parse(reference):
    """Parse relative to the shared reference instant in UTC"""
    parser = EnglishExpressionParser(tz="UTC")

    def _parse(value):
        return TimeRange.parse(value, parser=parser, reference=reference)

    return _parse


class TestDateBoundaries:
    """Test boundaries without a certain hour"""

    def test_yesterday(self, parse):
        """Test 'yesterday' is a one-day range"""
        time_range = parse("yesterday")

        assert time_range.get_after() == "2026-01-20"
        assert time_range.get_before() == "2026-01-20"
        assert time_range.has_after
        assert time_range.has_before

    def test_yesterday_exclusive(self, parse):
        """Test exclusive widens both date bounds by one day"""
        time_range = parse("yesterday")
        options = BoundaryOptions(exclusive=True)

        assert time_range.get_after(options) == "2026-01-19"
        assert time_range.get_before(options) == "2026-01-21"

    def test_explicit_range(self, parse):
        time_range = parse("17-19 Aug 2024")

        assert time_range.to_dict() == {"after": "2024-08-17", "before": "2024-08-19"}

    def test_single_date_has_no_upper_bound(self, parse):
        time_range = parse("2024-08-17")

        assert time_range.get_after() == "2024-08-17"
        assert time_range.get_before() is None
        assert not time_range.has_before


class TestMonthOnly:
    """Test ranges that name a month without a day"""

    def test_month_runs_to_last_day(self, parse):
        """Test 'March 2024' ends on March 31"""
        time_range = parse("March 2024")

        assert time_range.get_after() == "2024-03-01"
        assert time_range.get_before() == "2024-03-31"
        assert time_range.has_before

    def test_leap_february(self, parse):
        assert parse("February 2024").get_before() == "2024-02-29"

    def test_month_exclusive(self, parse):
        """Test exclusive month bounds sit just outside the month"""
        time_range = parse("March 2024")
        options = BoundaryOptions(exclusive=True)

        assert time_range.get_after(options) == "2024-02-29"
        assert time_range.get_before(options) == "2024-04-01"

    @pytest.mark.parametrize("text,last_day", [
        ("December 2024", "2024-12-31"),
        ("April 2025", "2025-04-30"),
        ("February 2025", "2025-02-28"),
    ])
    def test_month_lengths(self, parse, text, last_day):
        assert parse(text).get_before() == last_day

    def test_range_ending_in_month_runs_to_month_end(self, parse):
        """Test 'March 31 to April' ends on the last day of April"""
        time_range = parse("March 31 to April")

        assert time_range.to_dict() == {"after": "2026-03-31", "before": "2026-04-30"}

    def test_last_month(self, parse):
        time_range = parse("last month")

        assert time_range.to_dict() == {"after": "2025-12-01", "before": "2025-12-31"}

    def test_year_only_has_no_upper_bound(self):
        """A start certain only to the year does not synthesize an end"""
        expression = ParsedExpression(
            text="2024",
            start=_component(_utc(2024, 1, 1, 12, 0), Granularity.YEAR),
        )
        time_range = TimeRange(expression)

        assert time_range.get_after() == "2024-01-01"
        assert time_range.get_before() is None

    def test_month_with_explicit_end_keeps_end(self):
        expression = ParsedExpression(
            text="March to 10 April",
            start=_component(_utc(2024, 3, 1, 12, 0), Granularity.MONTH),
            end=_component(_utc(2024, 4, 10, 12, 0), Granularity.DAY),
        )

        assert TimeRange(expression).get_before() == "2024-04-10"


class TestTimestampBoundaries:
    """Test boundaries with a certain hour"""

    def test_time_yesterday(self, parse):
        """Test '3pm yesterday' gives a timestamp lower bound only"""
        time_range = parse("3pm yesterday")

        assert time_range.get_after() == "2026-01-20T15:00:00.000Z"
        assert time_range.get_before() is None
        assert not time_range.has_before

    def test_ignore_time(self, parse):
        """Test ignore_time falls back to the calendar date"""
        time_range = parse("3pm yesterday")

        assert time_range.get_after(BoundaryOptions(ignore_time=True)) == "2026-01-20"

    def test_ignore_time_exclusive(self, parse):
        time_range = parse("3pm yesterday")
        options = BoundaryOptions(ignore_time=True, exclusive=True)

        assert time_range.get_after(options) == "2026-01-19"

    def test_exclusive_does_not_move_timestamps(self, parse):
        time_range = parse("yesterday 3pm to 5pm")
        options = BoundaryOptions(exclusive=True)

        assert time_range.get_after(options) == "2026-01-20T15:00:00.000Z"
        assert time_range.get_before(options) == "2026-01-20T17:00:00.000Z"

    def test_end_only_expression(self):
        """An expression with only an end has no lower bound"""
        expression = ParsedExpression(
            text="until 5pm",
            end=_component(_utc(2024, 8, 17, 17, 0), Granularity.DAY, Granularity.HOUR),
        )
        time_range = TimeRange(expression)

        assert time_range.get_after() is None
        assert not time_range.has_after
        assert time_range.get_before() == "2024-08-17T17:00:00.000Z"

    def test_milliseconds_kept(self):
        expression = ParsedExpression(
            text="x",
            start=_component(_utc(2024, 8, 17, 15, 30, 5, 123456), Granularity.SECOND),
        )

        assert TimeRange(expression).get_after() == "2024-08-17T15:30:05.123Z"

    def test_timezone_converted_to_utc(self):
        """Local wall time is reported as a UTC instant"""
        parser = EnglishExpressionParser(tz="Asia/Tokyo")
        reference = _utc(2026, 1, 21, 20, 0)

        time_range = TimeRange.parse("3pm yesterday", parser=parser, reference=reference)

        assert time_range.get_after() == "2026-01-21T06:00:00.000Z"

    def test_timezone_date_is_stable(self):
        parser = EnglishExpressionParser(tz="Asia/Tokyo")
        reference = _utc(2026, 1, 21, 20, 0)

        time_range = TimeRange.parse("yesterday", parser=parser, reference=reference)

        assert time_range.get_after() == "2026-01-21"


class TestParseInputs:
    """Test the input shapes TimeRange.parse accepts"""

    @pytest.mark.parametrize("value", [None, "", {}, {"time_range": None}, SimpleNamespace(time_range="")])
    def test_missing_text(self, parse, value):
        assert parse(value) is None

    def test_unparseable_text(self, parse):
        assert parse("asdlkfj") is None

    def test_mapping(self, parse):
        time_range = parse({"time_range": "yesterday"})

        assert time_range.get_after() == "2026-01-20"

    def test_object_with_attribute(self, parse):
        time_range = parse(SimpleNamespace(time_range="yesterday"))

        assert time_range.get_before() == "2026-01-20"

    def test_first_candidate_wins(self, parse):
        time_range = parse("yesterday or last week")

        assert time_range.expression.text == "yesterday"

    def test_custom_parser(self):
        """Any ExpressionParser can be plugged in"""
        expression = ParsedExpression(
            text="someday",
            start=_component(_utc(2024, 5, 1, 12, 0), Granularity.DAY),
        )
        parser = FixedParser(expression)

        time_range = TimeRange.parse("someday", parser=parser)

        assert parser.calls == ["someday"]
        assert time_range.expression is expression

    def test_custom_parser_without_candidates(self):
        assert TimeRange.parse("someday", parser=FixedParser()) is None

    @freeze_time("2026-01-21 10:30:00")
    def test_defaults_to_now(self):
        """Without a reference the current time is used"""
        time_range = TimeRange.parse("yesterday")

        assert time_range.get_after() == "2026-01-20"


class TestOptions:
    """Test BoundaryOptions handling"""

    def test_defaults(self):
        options = BoundaryOptions.from_params(None)

        assert options == BoundaryOptions(ignore_time=False, exclusive=False)

    def test_camel_case_mapping(self):
        options = BoundaryOptions.from_params({"ignoreTime": True, "exclusive": True})

        assert options.ignore_time
        assert options.exclusive

    def test_object_params(self):
        options = BoundaryOptions.from_params(SimpleNamespace(ignore_time=True))

        assert options.ignore_time
        assert not options.exclusive

    def test_mapping_options_on_query(self, parse):
        time_range = parse("3pm yesterday")

        assert time_range.get_after({"ignore_time": True}) == "2026-01-20"


class TestImmutability:
    """Test that a TimeRange never changes after parsing"""

    def test_cannot_set_attributes(self, parse):
        time_range = parse("yesterday")

        with pytest.raises(AttributeError):
            time_range._expression = None
        with pytest.raises(AttributeError):
            time_range.after = "2020-01-01"

    def test_queries_are_repeatable(self, parse):
        """Options on one query do not leak into the next"""
        time_range = parse("March 2024")

        first = time_range.to_dict()
        time_range.to_dict(BoundaryOptions(exclusive=True))
        second = time_range.to_dict()

        assert first == second == {"after": "2024-03-01", "before": "2024-03-31"}
