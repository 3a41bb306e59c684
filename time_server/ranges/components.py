"""
Parsed expression model - what the expression parser hands to the range normalizer

A parsed expression is an optional start and an optional end component. Each
component is a single point in time plus the set of granularities the source
text actually pinned down, as opposed to values the parser defaulted.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import FrozenSet, Iterable, Optional


class Granularity(str, Enum):
    """Units of date/time precision, coarsest first"""
    YEAR = "year"
    MONTH = "month"
    DAY = "day"
    HOUR = "hour"
    MINUTE = "minute"
    SECOND = "second"

    @property
    def rank(self) -> int:
        return GRANULARITY_ORDER.index(self)

    def coarser(self) -> FrozenSet["Granularity"]:
        """All granularities coarser than this one"""
        return frozenset(GRANULARITY_ORDER[:self.rank])


GRANULARITY_ORDER = (
    Granularity.YEAR,
    Granularity.MONTH,
    Granularity.DAY,
    Granularity.HOUR,
    Granularity.MINUTE,
    Granularity.SECOND,
)


def close_certainty(units: Iterable[Granularity]) -> FrozenSet[Granularity]:
    """Expand a certainty set so every coarser unit of a certain unit is certain too"""
    closed = set()
    for unit in units:
        unit = Granularity(unit)
        closed.add(unit)
        closed.update(unit.coarser())
    return frozenset(closed)


@dataclass(frozen=True)
class DateTimeComponent:
    """A resolved point in time and the granularities the text made certain"""
    value: datetime
    certain: FrozenSet[Granularity] = field(default_factory=frozenset)

    def __post_init__(self):
        if self.value.tzinfo is None:
            raise ValueError("DateTimeComponent requires a timezone-aware datetime")
        object.__setattr__(self, "certain", close_certainty(self.certain))

    def date(self) -> datetime:
        return self.value

    def is_certain(self, unit: Granularity) -> bool:
        return Granularity(unit) in self.certain

    @property
    def has_time(self) -> bool:
        return self.is_certain(Granularity.HOUR)


@dataclass(frozen=True)
class ParsedExpression:
    """
    One candidate expression found in a piece of text.

    Attributes:
        text: The matched fragment of the source text
        index: Position of the fragment in the source text
        start: Lower component, if the text named one
        end: Upper component, if the text named one
    """
    text: str
    index: int = 0
    start: Optional[DateTimeComponent] = None
    end: Optional[DateTimeComponent] = None

    def __post_init__(self):
        if self.start is None and self.end is None:
            raise ValueError("A parsed expression needs a start or an end component")

    @property
    def is_range(self) -> bool:
        return self.start is not None and self.end is not None
