"""
Ranges Module - Natural-language time expressions and their filter boundaries
"""

from time_server.ranges.components import (
    Granularity,
    DateTimeComponent,
    ParsedExpression,
)
from time_server.ranges.expression_parser import (
    ExpressionParser,
    EnglishExpressionParser,
    get_expression_parser,
)
from time_server.ranges.time_range import (
    TimeRange,
    BoundaryOptions,
)

__all__ = [
    'Granularity',
    'DateTimeComponent',
    'ParsedExpression',
    'ExpressionParser',
    'EnglishExpressionParser',
    'get_expression_parser',
    'TimeRange',
    'BoundaryOptions',
]
