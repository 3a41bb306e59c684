"""
Pydantic models for tool request/response schemas and data validation
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


# Tool argument models
class GetCurrentTimeArguments(BaseModel):
    """get_current_time takes no arguments"""
    model_config = ConfigDict(extra="ignore")


class ResolveTimeDescriptionArguments(BaseModel):
    """Arguments for resolve_time_description"""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    time_range: Optional[str] = Field(
        None,
        description=(
            "Text describing the date range to search within, "
            "e.g. \"last week\", \"yesterday\", \"17 Aug - 19 Aug\", etc. "
            "If not provided, will search from the beginning of time."
        ),
    )
    ignore_time: bool = Field(
        default=False,
        alias="ignoreTime",
        description="Resolve boundaries to calendar dates even when a time of day was given",
    )
    exclusive: bool = Field(
        default=False,
        description="Move date boundaries one day outward so they can be used as exclusive bounds",
    )


# Tool call envelope
class ToolCallRequest(BaseModel):
    """Generic tool call payload"""
    name: str = Field(..., min_length=1, description="Registered tool name")
    arguments: Dict[str, Any] = Field(default_factory=dict, description="Tool arguments")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError('Tool name cannot be empty or whitespace only')
        return v.strip()


class ToolContent(BaseModel):
    """One content block of a tool result"""
    type: Literal["text"] = "text"
    text: str


class ToolResult(BaseModel):
    """Result of a tool call"""
    content: List[ToolContent]
    is_error: bool = False

    @classmethod
    def from_text(cls, text: str) -> "ToolResult":
        return cls(content=[ToolContent(text=text)])

    @property
    def text(self) -> str:
        return "".join(block.text for block in self.content)


class ToolDescriptor(BaseModel):
    """Public description of a registered tool"""
    name: str
    description: str
    input_schema: Dict[str, Any]


class ToolListResponse(BaseModel):
    """Response for the tool listing endpoint"""
    tools: List[ToolDescriptor]


class CurrentTime(BaseModel):
    """Payload of get_current_time"""
    time_millis: int
    time_iso: str


class TimeBoundaries(BaseModel):
    """Payload of resolve_time_description"""
    after: Optional[str] = None
    before: Optional[str] = None


class HealthCheck(BaseModel):
    """Health check response"""
    status: str
    timestamp: Optional[datetime] = None
