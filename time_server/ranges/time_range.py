"""
Time Range Module - Resolve parsed time expressions into filter boundaries

This module provides:
- TimeRange.parse(value) -> TimeRange | None
- TimeRange.get_after(options) -> inclusive lower bound, or None
- TimeRange.get_before(options) -> inclusive upper bound, or None

Boundary rules:
1. A component whose hour is certain resolves to a full UTC instant
   (YYYY-MM-DDTHH:MM:SS.sssZ) unless ignore_time is requested
2. Everything else resolves to a calendar date (YYYY-MM-DD)
3. exclusive moves a date boundary one day outward
4. A month named without a day and without an end runs to the last day of that month
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Union

import structlog

from time_server.ranges.components import Granularity, ParsedExpression
from time_server.ranges.expression_parser import ExpressionParser, get_expression_parser
from time_server.utils.timestamps import shift, to_iso_date, to_iso_instant

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class BoundaryOptions:
    """Per-query options for boundary resolution"""
    ignore_time: bool = False
    exclusive: bool = False

    @classmethod
    def from_params(cls, params: Any = None) -> "BoundaryOptions":
        """
        Build options from whatever the caller passed along with the request.

        Accepts None, a BoundaryOptions, a mapping (snake_case or camelCase
        keys) or any object exposing ignore_time / exclusive attributes.
        """
        if params is None:
            return cls()
        if isinstance(params, BoundaryOptions):
            return params
        if isinstance(params, Mapping):
            return cls(
                ignore_time=bool(params.get("ignore_time", params.get("ignoreTime", False))),
                exclusive=bool(params.get("exclusive", False)),
            )
        return cls(
            ignore_time=bool(getattr(params, "ignore_time", False)),
            exclusive=bool(getattr(params, "exclusive", False)),
        )


OptionsLike = Union[BoundaryOptions, Mapping[str, Any], None]


class TimeRange:
    """
    Boundaries of one parsed time expression.

    Immutable: every boundary is derived from the wrapped expression and the
    options passed to that query, so one instance can be queried any number
    of times with different options.
    """

    __slots__ = ("_expression",)

    def __init__(self, expression: ParsedExpression):
        object.__setattr__(self, "_expression", expression)

    def __setattr__(self, name, value):
        raise AttributeError("TimeRange is immutable")

    def __repr__(self) -> str:
        return f"TimeRange(text={self._expression.text!r})"

    @property
    def expression(self) -> ParsedExpression:
        return self._expression

    @classmethod
    def parse(
        cls,
        value: Any,
        parser: Optional[ExpressionParser] = None,
        reference: Optional[datetime] = None,
    ) -> Optional["TimeRange"]:
        """
        Parse a time description into a TimeRange.

        Args:
            value: Description text, or a mapping / object with a time_range field
            parser: Expression parser to use (defaults to the configured one)
            reference: Instant relative phrases are resolved against (defaults to now)

        Returns:
            TimeRange for the first expression in the text, or None when no
            text was given or nothing in it could be parsed
        """
        if isinstance(value, Mapping):
            value = value.get("time_range")
        elif value is not None and not isinstance(value, str):
            value = getattr(value, "time_range", None)

        if not value:
            return None

        parser = parser or get_expression_parser()
        candidates = parser.parse(value, reference=reference)
        if not candidates:
            logger.info("No time expression found", text=value)
            return None

        expression = candidates[0]
        logger.info(
            "Time range parsed",
            text=value,
            matched=expression.text,
            candidates=len(candidates),
            is_range=expression.is_range,
        )
        return cls(expression)

    @property
    def has_after(self) -> bool:
        return self.get_after() is not None

    @property
    def has_before(self) -> bool:
        return self.get_before() is not None

    def get_after(self, options: OptionsLike = None) -> Optional[str]:
        """
        Gets the after (lower) boundary in ISO format.

        Args:
            options: Boundary options for this query

        Returns:
            Full UTC instant, calendar date, or None without a start
        """
        options = BoundaryOptions.from_params(options)
        start = self._expression.start
        if start is None:
            return None

        after = start.value
        if start.has_time and not options.ignore_time:
            return to_iso_instant(after)
        if options.exclusive:
            after = shift(after, days=-1)
        return to_iso_date(after)

    def get_before(self, options: OptionsLike = None) -> Optional[str]:
        """
        Gets the before (upper) boundary in ISO format.

        Args:
            options: Boundary options for this query

        Returns:
            Full UTC instant, calendar date, or None when no upper bound exists
        """
        options = BoundaryOptions.from_params(options)
        start, end = self._expression.start, self._expression.end

        before = end.value if end is not None else None
        if (
            before is None
            and start is not None
            and start.is_certain(Granularity.MONTH)
            and not start.is_certain(Granularity.DAY)
        ):
            # Whole month: relativedelta clamps day=31 to its last day
            before = shift(start.value, day=31)

        if before is None:
            return None

        if end is not None and end.has_time and not options.ignore_time:
            return to_iso_instant(before)
        if options.exclusive:
            before = shift(before, days=1)
        return to_iso_date(before)

    def to_dict(self, options: OptionsLike = None) -> Dict[str, str]:
        """Boundaries as a dict, leaving out the ones that are absent"""
        boundaries = {
            "after": self.get_after(options),
            "before": self.get_before(options),
        }
        return {key: value for key, value in boundaries.items() if value is not None}
