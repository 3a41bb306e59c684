"""
Centralized Error Handling Utilities

Provides tool-layer exceptions, user-friendly error messages and a consistent
error response format.
"""

from typing import Optional, Dict, Any
from enum import Enum
import structlog
from fastapi import HTTPException, status

logger = structlog.get_logger(__name__)


class ErrorCode(str, Enum):
    """Standard error codes for consistent API responses"""
    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"

    # Tool errors
    TOOL_NOT_FOUND = "TOOL_NOT_FOUND"
    INVALID_TOOL_ARGUMENTS = "INVALID_TOOL_ARGUMENTS"


# User-friendly error messages (do not expose internal details)
USER_FRIENDLY_MESSAGES = {
    ErrorCode.INTERNAL_ERROR: "An unexpected error occurred. Please try again later.",
    ErrorCode.VALIDATION_ERROR: "The request contains invalid data. Please check your input.",
    ErrorCode.NOT_FOUND: "The requested resource was not found.",

    ErrorCode.TOOL_NOT_FOUND: "The requested tool does not exist.",
    ErrorCode.INVALID_TOOL_ARGUMENTS: "The tool arguments are invalid. Please check your input.",
}


class ToolError(Exception):
    """Raised when a tool call cannot be carried out."""

    code = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str, tool: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.tool = tool
        self.original_error = original_error


class ToolNotFoundError(ToolError):
    """Raised when no tool is registered under the requested name."""

    code = ErrorCode.TOOL_NOT_FOUND

    def __init__(self, tool: str):
        super().__init__(f"Unknown tool: {tool}", tool)


class ToolArgumentError(ToolError):
    """Raised when tool arguments fail validation."""

    code = ErrorCode.INVALID_TOOL_ARGUMENTS

    def __init__(
        self,
        message: str,
        tool: str,
        field: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message, tool, original_error)
        self.field = field


def create_error_response(
    code: ErrorCode,
    message: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Create a standardized error response.

    Args:
        code: Error code enum
        message: Optional custom message (defaults to user-friendly message)
        details: Optional additional details (be careful not to expose sensitive info)

    Returns:
        Standardized error response dict
    """
    return {
        "error": {
            "code": code.value,
            "message": message or USER_FRIENDLY_MESSAGES.get(code, USER_FRIENDLY_MESSAGES[ErrorCode.INTERNAL_ERROR]),
            **({"details": details} if details else {}),
        }
    }


def raise_not_found(
    resource_type: str = "resource",
    resource_id: Optional[str] = None,
    code: ErrorCode = ErrorCode.NOT_FOUND,
) -> None:
    """
    Raise a 404 Not Found error with user-friendly message.

    Args:
        resource_type: Type of resource (e.g., "tool")
        resource_id: Optional resource identifier
        code: Error code to report
    """
    message = f"The {resource_type} was not found."
    if resource_id:
        message = f"The {resource_type} '{resource_id}' was not found."

    raise HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=create_error_response(code, message),
    )


def raise_validation_error(
    message: str,
    field: Optional[str] = None,
    code: ErrorCode = ErrorCode.VALIDATION_ERROR,
) -> None:
    """
    Raise a 400 Validation error with user-friendly message.

    Args:
        message: Description of what's invalid
        field: Optional field name that has the error
        code: Error code to report
    """
    details = {"field": field} if field else None

    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=create_error_response(code, message, details),
    )


def raise_internal_error(
    log_message: str,
    exception: Optional[Exception] = None,
    user_message: Optional[str] = None,
) -> None:
    """
    Raise a 500 Internal Server Error with user-friendly message.

    Logs the actual error for debugging but returns sanitized message to user.

    Args:
        log_message: Detailed message for logs (not shown to user)
        exception: Optional exception to log
        user_message: Optional custom user-facing message
    """
    # Log the actual error for debugging
    if exception:
        logger.error(log_message, error=str(exception), exc_info=True)
    else:
        logger.error(log_message)

    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=create_error_response(
            ErrorCode.INTERNAL_ERROR,
            user_message or USER_FRIENDLY_MESSAGES[ErrorCode.INTERNAL_ERROR],
        ),
    )


def handle_tool_error(exception: ToolError) -> None:
    """
    Translate a tool-layer exception into the matching HTTP error.

    Args:
        exception: The tool error raised while dispatching a call
    """
    if isinstance(exception, ToolNotFoundError):
        logger.warning("Tool not found", tool=exception.tool)
        raise_not_found("tool", exception.tool, code=ErrorCode.TOOL_NOT_FOUND)
    elif isinstance(exception, ToolArgumentError):
        logger.warning("Invalid tool arguments", tool=exception.tool, field=exception.field)
        raise_validation_error(str(exception), exception.field, code=ErrorCode.INVALID_TOOL_ARGUMENTS)

    raise_internal_error(
        f"Error calling tool {exception.tool}",
        exception.original_error or exception,
    )
