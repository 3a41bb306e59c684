"""
Tool endpoints - list and call the time tools over HTTP
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body
from prometheus_client import Counter
import structlog

from time_server.models.schemas import ToolCallRequest, ToolListResponse, ToolResult
from time_server.services import tools as tool_service
from time_server.utils.errors import ToolError, handle_tool_error

router = APIRouter()
logger = structlog.get_logger(__name__)

tool_calls = Counter('tool_calls_total', 'Total tool calls', ['tool', 'outcome'])


def _dispatch(name: str, arguments: Optional[Dict[str, Any]]) -> ToolResult:
    try:
        result = tool_service.call_tool(name, arguments)
    except ToolError as e:
        tool_calls.labels(tool=name, outcome="error").inc()
        handle_tool_error(e)
    tool_calls.labels(tool=name, outcome="ok").inc()
    return result


@router.get("", response_model=ToolListResponse)
async def list_tools() -> ToolListResponse:
    """List the available tools and their argument schemas"""
    return ToolListResponse(tools=tool_service.list_tools())


@router.post("/call", response_model=ToolResult)
async def call_tool(request: ToolCallRequest) -> ToolResult:
    """Call a tool by name"""
    return _dispatch(request.name, request.arguments)


@router.post("/{name}", response_model=ToolResult)
async def call_named_tool(
    name: str,
    arguments: Optional[Dict[str, Any]] = Body(default=None),
) -> ToolResult:
    """Call a tool with the request body as its arguments"""
    return _dispatch(name, arguments)
