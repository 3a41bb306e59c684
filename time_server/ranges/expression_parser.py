"""
Expression Parser - Turn free text into candidate date/time expressions

This module provides:
- ExpressionParser: the capability the range normalizer consumes
- EnglishExpressionParser: regex-driven parser for English date/time phrases
- get_expression_parser(): process-wide parser configured from settings

Parsing runs in two stages:
1. Every pattern in EXPRESSION_PATTERNS is searched over the text and its
   handler turns each match into start (and optionally end) fields. Fields
   separate values the text stated (known) from values filled in from the
   reference time (implied).
2. Refiners clean up the raw matches: overlapping matches keep the longer
   one, adjacent date and time matches merge into one point, and two points
   joined by "to" / "-" / "until" merge into a range.
"""

from abc import ABC, abstractmethod
import calendar
from dataclasses import dataclass
from datetime import MAXYEAR, MINYEAR, date, datetime, time, timedelta
from typing import Dict, Iterable, List, Optional
import re

import pytz
import structlog
from dateutil.relativedelta import relativedelta

from time_server.config.settings import get_settings
from time_server.ranges.components import (
    DateTimeComponent,
    Granularity,
    GRANULARITY_ORDER,
    ParsedExpression,
)
from time_server.utils.timestamps import shift

logger = structlog.get_logger(__name__)

YEAR = Granularity.YEAR
MONTH = Granularity.MONTH
DAY = Granularity.DAY
HOUR = Granularity.HOUR
MINUTE = Granularity.MINUTE
SECOND = Granularity.SECOND

DATE_UNITS = (YEAR, MONTH, DAY)
TIME_UNITS = (HOUR, MINUTE, SECOND)

# Time of day used when the text only pins a calendar date
IMPLIED_TIME = time(12, 0, 0)

MONTH_MAP = {
    "january": 1, "february": 2, "march": 3, "april": 4,
    "may": 5, "june": 6, "july": 7, "august": 8,
    "september": 9, "october": 10, "november": 11, "december": 12,
    "jan": 1, "feb": 2, "mar": 3, "apr": 4,
    "jun": 6, "jul": 7, "aug": 8, "sep": 9, "sept": 9,
    "oct": 10, "nov": 11, "dec": 12,
}

WEEKDAY_MAP = {
    "monday": 0, "mon": 0,
    "tuesday": 1, "tue": 1, "tues": 1,
    "wednesday": 2, "wed": 2,
    "thursday": 3, "thu": 3, "thur": 3, "thurs": 3,
    "friday": 4, "fri": 4,
    "saturday": 5, "sat": 5,
    "sunday": 6, "sun": 6,
}

NUMBER_WORDS = {
    "a": 1, "an": 1, "one": 1, "two": 2, "three": 3, "four": 4,
    "five": 5, "six": 6, "seven": 7, "eight": 8, "nine": 9,
    "ten": 10, "eleven": 11, "twelve": 12,
}

CASUAL_DAY_OFFSETS = {
    "today": 0,
    "yesterday": -1,
    "tomorrow": 1,
    "day before yesterday": -2,
    "day after tomorrow": 2,
}

MONTH_RE = (
    r"(?P<month>january|february|march|april|may|june|july|august|september|"
    r"october|november|december|jan|feb|mar|apr|jun|jul|aug|sept|sep|oct|nov|dec)\b\.?"
)
WEEKDAY_RE = (
    r"(?P<weekday>monday|tuesday|wednesday|thursday|friday|saturday|sunday|"
    r"mon|tues|tue|wed|thurs|thur|thu|fri|sat|sun)\b"
)
COUNT_RE = r"(?P<count>\d+|an|a|one|two|three|four|five|six|seven|eight|nine|ten|eleven|twelve)"
UNIT_RE = r"(?P<unit>second|minute|hour|day|week|month|year)s?"
ORDINAL_RE = r"(?:st|nd|rd|th)?\b"
RANGE_WORD_RE = r"(?:-|–|—|to|until|till|through|thru)"
NEXT_MONTH_AHEAD_RE = r"(?!\s+(?:of\s+)?(?:jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec))"

# (pattern, handler) pairs, searched case-insensitively over the whole text
EXPRESSION_PATTERNS = [
    # Absolute dates
    (r"\b(?P<year>\d{4})-(?P<month>\d{1,2})-(?P<day>\d{1,2})"
     r"(?:[T\s](?P<hour>\d{1,2}):(?P<minute>\d{2})(?::(?P<second>\d{2})(?:\.(?P<fraction>\d{1,6}))?)?"
     r"(?P<tz>Z|[+-]\d{2}:?\d{2})?)?(?![\d/])", "_parse_iso"),
    (r"\b(?P<month>\d{1,2})/(?P<day>\d{1,2})(?:/(?P<year>\d{4}|\d{2}))?(?![/\d])", "_parse_slash_date"),
    (r"\b(?P<day>\d{1,2})" + ORDINAL_RE + r"\s*" + RANGE_WORD_RE + r"\s*(?P<day2>\d{1,2})" + ORDINAL_RE
     + r"\s+(?:of\s+)?" + MONTH_RE + r"(?:,?\s+(?P<year>\d{4}))?(?!\d)", "_parse_day_range"),
    (r"\b" + MONTH_RE + r"\s+(?P<day>\d{1,2})" + ORDINAL_RE + r"\s*" + RANGE_WORD_RE
     + r"\s*(?P<day2>\d{1,2})" + ORDINAL_RE + NEXT_MONTH_AHEAD_RE
     + r"(?:,?\s+(?P<year>\d{4}))?(?![\d:])", "_parse_day_range"),
    (r"\b(?:" + WEEKDAY_RE + r",?\s+)?(?:the\s+)?" + MONTH_RE + r"\s+(?P<day>\d{1,2})" + ORDINAL_RE
     + r"(?:,?\s+(?P<year>\d{4}))?(?![\d:])", "_parse_month_day"),
    (r"\b(?:" + WEEKDAY_RE + r",?\s+)?(?:the\s+)?(?P<day>\d{1,2})" + ORDINAL_RE + r"\s+(?:of\s+)?"
     + MONTH_RE + r"(?:,?\s+(?P<year>\d{4}))?(?!\d)", "_parse_month_day"),
    (r"\b(?:(?:in|during|of)\s+)?" + MONTH_RE + r",?\s+(?P<year>\d{4})(?![-/:\d])", "_parse_month_year"),
    (r"\b(?P<prefix>(?:in|during|of)\s+)?" + MONTH_RE + r"(?!\s*\d)", "_parse_month_only"),

    # Casual and relative days
    (r"\b(?P<word>now|today|yesterday|tomorrow|(?:the\s+)?day\s+before\s+yesterday|"
     r"(?:the\s+)?day\s+after\s+tomorrow)\b", "_parse_casual_day"),
    (r"\b(?:(?P<modifier>this|last|past|previous|next)\s+)?" + WEEKDAY_RE, "_parse_weekday"),
    (r"\b" + COUNT_RE + r"\s+" + UNIT_RE + r"\s+ago\b", "_parse_relative_ago"),
    (r"\bin\s+" + COUNT_RE + r"\s+" + UNIT_RE + r"\b", "_parse_relative_later"),
    (r"\b" + COUNT_RE + r"\s+" + UNIT_RE + r"\s+(?:from\s+now|later|hence)\b", "_parse_relative_later"),

    # Rolling windows and calendar periods
    (r"\b(?:the\s+)?(?P<direction>last|past|previous|next|coming)\s+" + COUNT_RE + r"\s+" + UNIT_RE + r"\b",
     "_parse_rolling"),
    (r"\b(?P<modifier>this|current|last|previous|next)\s+(?P<period>week|month|quarter|year)\b",
     "_parse_calendar_period"),
    (r"\bq(?P<quarter>[1-4])(?:\s+(?P<year>\d{4}))?\b", "_parse_quarter"),
    (r"\b(?P<period>ytd|mtd|wtd|year[\s-]to[\s-]date|month[\s-]to[\s-]date|week[\s-]to[\s-]date)\b",
     "_parse_to_date"),
    (r"\b(?:in|during|throughout|for)\s+(?:the\s+year\s+)?(?P<year>\d{4})(?![-/:\d])", "_parse_full_year"),
    (r"\b(?:the\s+)?(?:whole|entire|full)\s+year(?:\s+(?:of\s+)?(?P<year>\d{4}))?\b", "_parse_full_year"),

    # Times of day
    (r"(?:\bat\s+)?\b(?P<hour>\d{1,2})(?::(?P<minute>\d{2})(?::(?P<second>\d{2}))?)?\s*"
     r"(?P<meridiem>a\.?m\.?|p\.?m\.?)(?!\w)", "_parse_time"),
    (r"(?:\bat\s+)?\b(?P<hour>[01]?\d|2[0-3]):(?P<minute>[0-5]\d)(?::(?P<second>[0-5]\d))?(?![\d:])",
     "_parse_time"),
    (r"(?:\bat\s+)?\b(?P<word>noon|midday|midnight)\b", "_parse_time"),
]

DATE_TIME_GAP = re.compile(r"^\s*(?:,|at|on|of|t|@)?\s*$", re.IGNORECASE)
RANGE_GAP = re.compile(r"^\s*" + RANGE_WORD_RE + r"\s*$", re.IGNORECASE)
BETWEEN_GAP = re.compile(r"^\s*and\s*$", re.IGNORECASE)
BETWEEN_PREFIX = re.compile(r"\bbetween\s+$", re.IGNORECASE)
MONTH_BEFORE = re.compile(r"\b" + MONTH_RE + r"\s+$", re.IGNORECASE)


class _Fields:
    """Known and implied values for one side of an expression"""

    def __init__(
        self,
        known: Optional[Dict[Granularity, int]] = None,
        implied: Optional[Dict[Granularity, int]] = None,
        tzinfo=None,
        microsecond: int = 0,
    ):
        self.known = dict(known or {})
        self.implied = dict(implied or {})
        self.tzinfo = tzinfo
        self.microsecond = microsecond

    @classmethod
    def from_datetime(cls, value: datetime, known: Iterable[Granularity], tzinfo=None) -> "_Fields":
        known = set(known)
        values = {
            YEAR: value.year, MONTH: value.month, DAY: value.day,
            HOUR: value.hour, MINUTE: value.minute, SECOND: value.second,
        }
        return cls(
            known={unit: v for unit, v in values.items() if unit in known},
            implied={unit: v for unit, v in values.items() if unit not in known},
            tzinfo=tzinfo,
            microsecond=value.microsecond if SECOND in known else 0,
        )

    @classmethod
    def from_date(cls, day: date, known: Iterable[Granularity] = DATE_UNITS) -> "_Fields":
        return cls.from_datetime(datetime.combine(day, IMPLIED_TIME), known)

    def get(self, unit: Granularity) -> int:
        return self.known.get(unit, self.implied.get(unit))

    def knows(self, unit: Granularity) -> bool:
        return unit in self.known

    def knows_date(self) -> bool:
        return any(unit in self.known for unit in DATE_UNITS)

    def knows_time(self) -> bool:
        return any(unit in self.known for unit in TIME_UNITS)

    def imply(self, unit: Granularity, value: int) -> None:
        if unit not in self.known:
            self.implied[unit] = value

    def clamp_day(self) -> None:
        """Pull an implied day back inside its month (Jan 31 implied onto Feb gives Feb 28/29)"""
        if DAY in self.known:
            return
        last_day = calendar.monthrange(self.get(YEAR), self.get(MONTH))[1]
        if self.get(DAY) > last_day:
            self.implied[DAY] = last_day

    def copy(self) -> "_Fields":
        return _Fields(self.known, self.implied, self.tzinfo, self.microsecond)

    def to_datetime(self, tz) -> datetime:
        naive = datetime(
            self.get(YEAR), self.get(MONTH), self.get(DAY),
            self.get(HOUR), self.get(MINUTE), self.get(SECOND),
            self.microsecond,
        )
        if self.tzinfo is not None:
            return naive.replace(tzinfo=self.tzinfo)
        return tz.localize(naive)

    def shifted(self, tz, **delta) -> "_Fields":
        moved = shift(self.to_datetime(tz), **delta)
        fields = _Fields.from_datetime(moved, self.known, tzinfo=self.tzinfo)
        fields.microsecond = self.microsecond
        return fields

    def to_component(self, tz) -> DateTimeComponent:
        # Boundaries are shifted by a day or a month later on
        if not MINYEAR < self.get(YEAR) < MAXYEAR:
            raise ValueError(f"year {self.get(YEAR)} is outside the supported range")
        return DateTimeComponent(value=self.to_datetime(tz), certain=frozenset(self.known))


@dataclass
class _Span:
    """What a pattern handler found: start fields and optional end fields"""
    start: _Fields
    end: Optional[_Fields] = None
    whole_day: bool = False


@dataclass
class _Match:
    index: int
    text: str
    span: _Span

    @property
    def stop(self) -> int:
        return self.index + len(self.text)

    @property
    def is_point(self) -> bool:
        return self.span.end is None

    @property
    def is_date_only(self) -> bool:
        start = self.span.start
        return self.is_point and start.knows_date() and not start.knows_time()

    @property
    def is_time_only(self) -> bool:
        start = self.span.start
        return self.is_point and start.knows_time() and not start.knows_date()


class ExpressionParser(ABC):
    """
    Capability contract for turning free text into date/time expressions.

    Implementations return candidates ordered by their position in the text;
    an empty list means the text holds no recognizable expression.
    """

    @abstractmethod
    def parse(self, text: str, reference: Optional[datetime] = None) -> List[ParsedExpression]:
        """
        Parse every date/time expression found in the text.

        Args:
            text: Free-form text
            reference: Instant that relative phrases are resolved against

        Returns:
            Candidate expressions, earliest match first
        """
        pass


class EnglishExpressionParser(ExpressionParser):
    """Parse English date/time phrases into start/end components with certainty"""

    def __init__(self, tz: str = "UTC"):
        """Initialize parser with timezone"""
        self.tz = pytz.timezone(tz) if isinstance(tz, str) else tz
        self.patterns = [
            (re.compile(pattern, re.IGNORECASE), getattr(self, handler_name))
            for pattern, handler_name in EXPRESSION_PATTERNS
        ]

    @property
    def timezone_name(self) -> str:
        return getattr(self.tz, "zone", str(self.tz))

    def _reference(self, reference: Optional[datetime]) -> datetime:
        if reference is None:
            return datetime.now(self.tz)
        if reference.tzinfo is None:
            return self.tz.localize(reference)
        return reference.astimezone(self.tz)

    def parse(self, text: str, reference: Optional[datetime] = None) -> List[ParsedExpression]:
        if not text:
            return []

        ref = self._reference(reference)
        matches = self._scan(text, ref)
        matches = self._remove_overlaps(matches)
        matches = self._merge_date_time(text, matches)
        matches = self._merge_ranges(text, matches)

        expressions = []
        for match in matches:
            span = match.span
            if span.whole_day and span.end is None and not span.start.knows_time():
                span.end = span.start.copy()
            try:
                expressions.append(ParsedExpression(
                    text=match.text,
                    index=match.index,
                    start=span.start.to_component(self.tz),
                    end=span.end.to_component(self.tz) if span.end else None,
                ))
            except ValueError as e:
                logger.debug("Dropping impossible date", text=match.text, error=str(e))

        logger.debug(
            "Expression candidates parsed",
            text=text,
            candidates=[expression.text for expression in expressions],
        )
        return expressions

    # Stage 1: pattern scan

    def _scan(self, text: str, ref: datetime) -> List[_Match]:
        matches = []
        for pattern, handler in self.patterns:
            for found in pattern.finditer(text):
                try:
                    span = handler(found, ref)
                except (ValueError, OverflowError) as e:
                    logger.debug("Dropping impossible date", text=found.group(0), error=str(e))
                    continue
                if span is not None:
                    matches.append(_Match(found.start(), found.group(0), span))
        return matches

    # Stage 2: refiners

    @staticmethod
    def _remove_overlaps(matches: List[_Match]) -> List[_Match]:
        kept: List[_Match] = []
        for match in sorted(matches, key=lambda m: (m.index, -len(m.text))):
            if kept and match.index < kept[-1].stop:
                if len(match.text) > len(kept[-1].text):
                    kept[-1] = match
                continue
            kept.append(match)
        return kept

    def _merge_date_time(self, text: str, matches: List[_Match]) -> List[_Match]:
        merged: List[_Match] = []
        i = 0
        while i < len(matches):
            current = matches[i]
            if i + 1 < len(matches):
                following = matches[i + 1]
                gap = text[current.stop:following.index]
                if DATE_TIME_GAP.match(gap):
                    date_match, time_match = None, None
                    if current.is_date_only and following.is_time_only:
                        date_match, time_match = current, following
                    elif current.is_time_only and following.is_date_only:
                        date_match, time_match = following, current
                    if date_match is not None:
                        merged.append(_Match(
                            current.index,
                            text[current.index:following.stop],
                            _Span(self._combine_date_time(date_match.span.start, time_match.span.start)),
                        ))
                        i += 2
                        continue
            merged.append(current)
            i += 1
        return merged

    @staticmethod
    def _combine_date_time(date_fields: _Fields, time_fields: _Fields) -> _Fields:
        combined = date_fields.copy()
        for unit in TIME_UNITS:
            combined.known.pop(unit, None)
            if time_fields.knows(unit):
                combined.known[unit] = time_fields.known[unit]
                combined.implied.pop(unit, None)
            else:
                combined.implied[unit] = time_fields.get(unit)
        combined.microsecond = time_fields.microsecond
        combined.tzinfo = time_fields.tzinfo or date_fields.tzinfo
        return combined

    def _merge_ranges(self, text: str, matches: List[_Match]) -> List[_Match]:
        merged: List[_Match] = []
        i = 0
        while i < len(matches):
            current = matches[i]
            if i + 1 < len(matches) and current.is_point and matches[i + 1].is_point:
                following = matches[i + 1]
                gap = text[current.stop:following.index]
                joined = RANGE_GAP.match(gap) or (
                    BETWEEN_GAP.match(gap) and BETWEEN_PREFIX.search(text[:current.index])
                )
                if joined:
                    try:
                        span = self._combine_range(current.span.start, following.span.start)
                    except (ValueError, OverflowError) as e:
                        logger.debug(
                            "Dropping impossible range",
                            text=text[current.index:following.stop],
                            error=str(e),
                        )
                        i += 2
                        continue
                    merged.append(_Match(current.index, text[current.index:following.stop], span))
                    i += 2
                    continue
            merged.append(current)
            i += 1
        return merged

    def _combine_range(self, start: _Fields, end: _Fields) -> _Span:
        start, end = start.copy(), end.copy()
        end_time_only = end.knows_time() and not end.knows_date()

        # Each side borrows what the other side stated
        for unit, value in end.known.items():
            start.imply(unit, value)
        for unit, value in start.known.items():
            end.imply(unit, value)
        start.clamp_day()
        end.clamp_day()

        if end.to_datetime(self.tz) < start.to_datetime(self.tz):
            if end_time_only:
                end = end.shifted(self.tz, days=1)
            elif end.knows_date() and not end.knows(YEAR):
                end = end.shifted(self.tz, years=1)
            elif start.knows_date() and not start.knows(YEAR):
                start = start.shifted(self.tz, years=-1)
            if end.to_datetime(self.tz) < start.to_datetime(self.tz):
                start, end = end, start

        return _Span(start, end)

    # Pattern handlers

    @staticmethod
    def _closest_year(ref: datetime, month: int, day: int) -> int:
        """Year that puts month/day closest to the reference date"""
        best = None
        for year in (ref.year - 1, ref.year, ref.year + 1):
            try:
                distance = abs((date(year, month, day) - ref.date()).days)
            except ValueError:
                continue
            if best is None or distance < best[0]:
                best = (distance, year)
        return best[1] if best else ref.year

    def _calendar_date(self, ref: datetime, month: int, day: int, year: Optional[str]) -> Optional[_Fields]:
        if year:
            year_value = int(year)
            if len(year) == 2:
                year_value += 2000 if year_value < 50 else 1900
            known = DATE_UNITS
        else:
            year_value = self._closest_year(ref, month, day)
            known = (MONTH, DAY)
        try:
            return _Fields.from_date(date(year_value, month, day), known)
        except ValueError:
            return None

    def _parse_iso(self, match: re.Match, ref: datetime) -> Optional[_Span]:
        try:
            day = date(int(match.group("year")), int(match.group("month")), int(match.group("day")))
        except ValueError:
            return None

        if not match.group("hour"):
            return _Span(_Fields.from_date(day))

        hour, minute = int(match.group("hour")), int(match.group("minute"))
        second = int(match.group("second") or 0)
        if hour > 23 or minute > 59 or second > 59:
            return None
        fraction = match.group("fraction") or ""
        microsecond = int(fraction.ljust(6, "0")) if fraction else 0

        known = [YEAR, MONTH, DAY, HOUR, MINUTE]
        if match.group("second"):
            known.append(SECOND)
        fields = _Fields.from_datetime(
            datetime.combine(day, time(hour, minute, second)),
            known,
            tzinfo=self._parse_offset(match.group("tz")),
        )
        fields.microsecond = microsecond
        return _Span(fields)

    @staticmethod
    def _parse_offset(value: Optional[str]):
        if not value:
            return None
        if value.upper() == "Z":
            return pytz.utc
        sign = -1 if value[0] == "-" else 1
        digits = value[1:].replace(":", "")
        return pytz.FixedOffset(sign * (int(digits[:2]) * 60 + int(digits[2:])))

    def _parse_slash_date(self, match: re.Match, ref: datetime) -> Optional[_Span]:
        month, day = int(match.group("month")), int(match.group("day"))
        if not 1 <= month <= 12:
            return None
        fields = self._calendar_date(ref, month, day, match.group("year"))
        return _Span(fields) if fields else None

    def _parse_month_day(self, match: re.Match, ref: datetime) -> Optional[_Span]:
        month = MONTH_MAP[match.group("month").lower()]
        fields = self._calendar_date(ref, month, int(match.group("day")), match.group("year"))
        return _Span(fields) if fields else None

    def _parse_day_range(self, match: re.Match, ref: datetime) -> Optional[_Span]:
        # "Aug 10 - 12 Sep" is two month-name dates, not a range inside September
        if MONTH_BEFORE.search(match.string[:match.start()]):
            return None
        month = MONTH_MAP[match.group("month").lower()]
        start = self._calendar_date(ref, month, int(match.group("day")), match.group("year"))
        if start is None:
            return None
        try:
            end_day = date(start.get(YEAR), month, int(match.group("day2")))
        except ValueError:
            return None
        end = _Fields.from_date(end_day, start.known)
        if end.to_datetime(self.tz) < start.to_datetime(self.tz):
            start, end = end, start
        return _Span(start, end)

    def _parse_month_year(self, match: re.Match, ref: datetime) -> Optional[_Span]:
        month = MONTH_MAP[match.group("month").lower()]
        return _Span(_Fields.from_date(date(int(match.group("year")), month, 1), (YEAR, MONTH)))

    def _parse_month_only(self, match: re.Match, ref: datetime) -> Optional[_Span]:
        token = match.group("month").lower()
        # Bare "may" is far more often the verb
        if token == "may" and not match.group("prefix"):
            return None
        month = MONTH_MAP[token]
        year = self._closest_year(ref, month, 1)
        return _Span(_Fields.from_date(date(year, month, 1), (MONTH,)))

    def _parse_casual_day(self, match: re.Match, ref: datetime) -> _Span:
        word = " ".join(match.group("word").lower().split())
        if word == "now":
            return _Span(_Fields.from_datetime(ref, GRANULARITY_ORDER))
        if word.startswith("the "):
            word = word[4:]
        day = ref.date() + timedelta(days=CASUAL_DAY_OFFSETS[word])
        return _Span(_Fields.from_date(day), whole_day=True)

    def _parse_weekday(self, match: re.Match, ref: datetime) -> _Span:
        weekday = WEEKDAY_MAP[match.group("weekday").lower()]
        modifier = (match.group("modifier") or "").lower()
        today = ref.weekday()

        forward = (weekday - today) % 7
        backward = forward - 7
        if modifier in ("last", "past", "previous"):
            offset = backward
        elif modifier == "next":
            offset = 7 - today + weekday
        elif modifier == "this":
            offset = forward
        else:
            offset = forward if forward < -backward else backward

        return _Span(_Fields.from_date(ref.date() + timedelta(days=offset)), whole_day=True)

    @staticmethod
    def _count(match: re.Match) -> int:
        token = match.group("count").lower()
        return int(token) if token.isdigit() else NUMBER_WORDS[token]

    @staticmethod
    def _unit(match: re.Match) -> str:
        return match.group("unit").lower().rstrip("s")

    def _relative_point(self, ref: datetime, unit: str, amount: int) -> _Fields:
        if unit in ("second", "minute", "hour"):
            moved = ref + timedelta(**{f"{unit}s": amount})
            known = GRANULARITY_ORDER[:GRANULARITY_ORDER.index(Granularity(unit)) + 1]
            if unit != "second":
                moved = moved.replace(second=0, microsecond=0)
            return _Fields.from_datetime(moved, known)

        moved = ref.date() + relativedelta(**{f"{unit}s": amount})
        known = {"day": DATE_UNITS, "week": DATE_UNITS, "month": (YEAR, MONTH), "year": (YEAR,)}[unit]
        return _Fields.from_date(moved, known)

    def _parse_relative_ago(self, match: re.Match, ref: datetime) -> _Span:
        return _Span(self._relative_point(ref, self._unit(match), -self._count(match)))

    def _parse_relative_later(self, match: re.Match, ref: datetime) -> _Span:
        return _Span(self._relative_point(ref, self._unit(match), self._count(match)))

    def _parse_rolling(self, match: re.Match, ref: datetime) -> _Span:
        n = self._count(match)
        unit = self._unit(match)
        backwards = match.group("direction").lower() in ("last", "past", "previous")

        if unit in ("second", "minute", "hour"):
            known = GRANULARITY_ORDER[:GRANULARITY_ORDER.index(Granularity(unit)) + 1]
            now = _Fields.from_datetime(ref, known)
            other = self._relative_point(ref, unit, -n if backwards else n)
            return _Span(other, now) if backwards else _Span(now, other)

        today = ref.date()
        if backwards and unit == "month":
            # N complete calendar months, excluding the current partial month
            end_date = today.replace(day=1) - timedelta(days=1)
            start_date = end_date.replace(day=1) - relativedelta(months=n - 1)
        elif backwards:
            start_date, end_date = today - relativedelta(**{f"{unit}s": n}), today
        else:
            start_date, end_date = today, today + relativedelta(**{f"{unit}s": n})
        return _Span(_Fields.from_date(start_date), _Fields.from_date(end_date))

    def _parse_calendar_period(self, match: re.Match, ref: datetime) -> _Span:
        modifier = match.group("modifier").lower()
        period = match.group("period").lower()
        offset = {"last": -1, "previous": -1, "next": 1}.get(modifier, 0)
        today = ref.date()

        if period == "week":
            monday = today - timedelta(days=today.weekday()) + timedelta(weeks=offset)
            return _Span(_Fields.from_date(monday), _Fields.from_date(monday + timedelta(days=6)))
        if period == "month":
            first = today.replace(day=1) + relativedelta(months=offset)
            return _Span(_Fields.from_date(first, (YEAR, MONTH)))
        if period == "quarter":
            quarter = (today.month - 1) // 3 + 1 + offset
            year = today.year + (quarter - 1) // 4
            quarter = (quarter - 1) % 4 + 1
            return self._quarter_span(year, quarter)
        return self._year_span(today.year + offset)

    @staticmethod
    def _quarter_span(year: int, quarter: int) -> _Span:
        start_date = date(year, (quarter - 1) * 3 + 1, 1)
        end_date = start_date + relativedelta(months=3) - timedelta(days=1)
        return _Span(_Fields.from_date(start_date), _Fields.from_date(end_date))

    @staticmethod
    def _year_span(year: int) -> _Span:
        return _Span(_Fields.from_date(date(year, 1, 1)), _Fields.from_date(date(year, 12, 31)))

    def _parse_quarter(self, match: re.Match, ref: datetime) -> _Span:
        year = int(match.group("year")) if match.group("year") else ref.year
        return self._quarter_span(year, int(match.group("quarter")))

    def _parse_to_date(self, match: re.Match, ref: datetime) -> _Span:
        period = match.group("period").lower()[0]
        today = ref.date()
        if period == "y":
            start_date = date(today.year, 1, 1)
        elif period == "m":
            start_date = today.replace(day=1)
        else:
            start_date = today - timedelta(days=today.weekday())
        return _Span(_Fields.from_date(start_date), _Fields.from_date(today))

    def _parse_full_year(self, match: re.Match, ref: datetime) -> _Span:
        year_str = match.group("year")
        # "the whole year" without a number means the last complete year
        year = int(year_str) if year_str else ref.year - 1
        return self._year_span(year)

    def _parse_time(self, match: re.Match, ref: datetime) -> Optional[_Span]:
        groups = match.groupdict()
        word = (groups.get("word") or "").lower()
        if word:
            hour, minute, second = (0 if word == "midnight" else 12), 0, 0
            known = (HOUR, MINUTE)
        else:
            hour = int(groups["hour"])
            minute = int(groups.get("minute") or 0)
            second = int(groups.get("second") or 0)
            meridiem = (groups.get("meridiem") or "").lower().replace(".", "")
            if meridiem:
                if not 1 <= hour <= 12:
                    return None
                hour = hour % 12 + (12 if meridiem == "pm" else 0)
            known = [HOUR]
            if groups.get("minute"):
                known.append(MINUTE)
            if groups.get("second"):
                known.append(SECOND)

        value = datetime.combine(ref.date(), time(hour, minute, second))
        return _Span(_Fields.from_datetime(value, known))


# Singleton instance
_expression_parser = None


def get_expression_parser() -> EnglishExpressionParser:
    """Get or create the parser for the configured default timezone"""
    global _expression_parser

    timezone = get_settings().default_timezone
    if _expression_parser is None or _expression_parser.timezone_name != timezone:
        _expression_parser = EnglishExpressionParser(tz=timezone)

    return _expression_parser
