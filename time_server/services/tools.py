"""
Tool Service - The remote-callable time tools and their dispatch

Tools:
- get_current_time: current instant as epoch milliseconds and ISO string
- resolve_time_description: natural-language description -> {after, before}

Every tool takes a validated arguments model and returns a ToolResult with a
single text block. Informational outcomes ("No time range provided",
"Invalid time range") are ordinary results, not errors.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Type

import pytz
import structlog
from pydantic import BaseModel, ValidationError

from time_server.models.schemas import (
    CurrentTime,
    GetCurrentTimeArguments,
    ResolveTimeDescriptionArguments,
    TimeBoundaries,
    ToolDescriptor,
    ToolResult,
)
from time_server.ranges.time_range import BoundaryOptions, TimeRange
from time_server.utils.errors import ToolArgumentError, ToolError, ToolNotFoundError
from time_server.utils.timestamps import to_epoch_millis, to_iso_instant

logger = structlog.get_logger(__name__)

NO_TIME_RANGE_MESSAGE = "No time range provided"
INVALID_TIME_RANGE_MESSAGE = "Invalid time range"


@dataclass(frozen=True)
class ToolDefinition:
    """A registered tool"""
    name: str
    description: str
    arguments_model: Type[BaseModel]
    handler: Callable[[BaseModel], ToolResult]

    def describe(self) -> ToolDescriptor:
        return ToolDescriptor(
            name=self.name,
            description=self.description,
            input_schema=self.arguments_model.model_json_schema(),
        )


def get_current_time(arguments: Optional[GetCurrentTimeArguments] = None) -> ToolResult:
    """Report the current instant"""
    now = datetime.now(pytz.utc)
    payload = CurrentTime(time_millis=to_epoch_millis(now), time_iso=to_iso_instant(now))
    return ToolResult.from_text(payload.model_dump_json())


def resolve_time_description(arguments: ResolveTimeDescriptionArguments) -> ToolResult:
    """
    Resolve a natural-language time description into after/before boundaries.

    Args:
        arguments: The description plus boundary options

    Returns:
        JSON boundaries, or an informational message when there is nothing to resolve
    """
    time_range = TimeRange.parse(arguments.time_range)
    if time_range is None:
        if arguments.time_range:
            logger.info("Time description could not be parsed", time_range=arguments.time_range)
            return ToolResult.from_text(INVALID_TIME_RANGE_MESSAGE)
        return ToolResult.from_text(NO_TIME_RANGE_MESSAGE)

    options = BoundaryOptions(ignore_time=arguments.ignore_time, exclusive=arguments.exclusive)
    boundaries = TimeBoundaries(**time_range.to_dict(options))
    logger.info(
        "Time description resolved",
        time_range=arguments.time_range,
        after=boundaries.after,
        before=boundaries.before,
    )
    return ToolResult.from_text(boundaries.model_dump_json(exclude_none=True))


TOOLS: Dict[str, ToolDefinition] = {
    tool.name: tool
    for tool in (
        ToolDefinition(
            name="get_current_time",
            description="Get the current time",
            arguments_model=GetCurrentTimeArguments,
            handler=get_current_time,
        ),
        ToolDefinition(
            name="resolve_time_description",
            description="Resolve a timestamp or time range from natural language time description",
            arguments_model=ResolveTimeDescriptionArguments,
            handler=resolve_time_description,
        ),
    )
}


def list_tools() -> List[ToolDescriptor]:
    """Describe every registered tool"""
    return [tool.describe() for tool in TOOLS.values()]


def call_tool(name: str, arguments: Optional[Mapping[str, Any]] = None) -> ToolResult:
    """
    Validate arguments and run a registered tool.

    Args:
        name: Registered tool name
        arguments: Raw arguments from the caller

    Returns:
        The tool's result

    Raises:
        ToolNotFoundError: If no tool has this name
        ToolArgumentError: If the arguments fail validation
        ToolError: If the tool itself fails
    """
    tool = TOOLS.get(name)
    if tool is None:
        raise ToolNotFoundError(name)

    try:
        validated = tool.arguments_model.model_validate(dict(arguments or {}))
    except ValidationError as e:
        first = e.errors()[0] if e.errors() else {}
        field = ".".join(str(part) for part in first.get("loc", ())) or None
        raise ToolArgumentError(
            first.get("msg", "Invalid arguments"),
            tool=name,
            field=field,
            original_error=e,
        )

    logger.info("Tool called", tool=name)
    try:
        return tool.handler(validated)
    except Exception as e:
        logger.error("Tool failed", tool=name, error=str(e))
        raise ToolError(f"Tool {name} failed", tool=name, original_error=e) from e
