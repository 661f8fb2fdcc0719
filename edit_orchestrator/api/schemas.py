"""
Pydantic schemas for the editor HTTP bridge.

The browser editor posts its plain text, selection and the user's request;
the response carries the edited text together with the operations and
format spans to replay on the widget.
"""

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator


class SelectionModel(BaseModel):
    """The user's current selection in the editor."""

    start: int = Field(..., ge=0, description="Index where the selection starts")
    length: int = Field(..., ge=0, description="Number of selected characters")


class EditRequest(BaseModel):
    """Request body for /v1/edit."""

    prompt: str = Field(..., description="Natural-language edit request")
    document: str = Field(default="", description="Current plain text of the editor")
    selection: Optional[SelectionModel] = Field(
        default=None, description="User selection, if any"
    )
    session_id: Optional[str] = Field(
        default=None,
        description="Continue an earlier conversation; a new session is created if omitted",
    )
    include_transcript: bool = Field(
        default=False, description="Include the conversation transcript in the response"
    )

    @field_validator("prompt")
    @classmethod
    def prompt_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("prompt must not be empty")
        return v

    model_config = {
        "json_schema_extra": {
            "example": {
                "prompt": "Insert a bold title 'Groceries' at the beginning",
                "document": "milk, eggs, bread",
            }
        }
    }


class ToolCallTrace(BaseModel):
    """A single tool call made while handling the request."""

    round_number: int = Field(..., description="Round in which the model requested the call")
    call_id: str
    function_name: str
    arguments: Optional[dict[str, Any]] = Field(
        default=None, description="Decoded arguments, when they could be decoded"
    )
    result: str = Field(..., description="Tool result returned to the model")
    success: bool = True


class TranscriptMessage(BaseModel):
    """A transcript turn in chat message form."""

    role: Literal["system", "user", "assistant", "tool"]
    content: Optional[str] = None
    tool_call_id: Optional[str] = None
    tool_calls: Optional[list[dict[str, Any]]] = None


class EditResponse(BaseModel):
    """Response body for /v1/edit."""

    session_id: str
    answer: str = Field(..., description="The model's final answer")
    document: str = Field(..., description="Plain text after all edits")
    operations: list[dict[str, Any]] = Field(
        default_factory=list, description="Applied mutations, in order"
    )
    formats: list[dict[str, Any]] = Field(
        default_factory=list, description="Format spans over the edited text"
    )
    rounds: int = Field(..., description="Endpoint rounds used for this request")
    tool_calls: list[ToolCallTrace] = Field(default_factory=list)
    transcript: Optional[list[TranscriptMessage]] = Field(
        default=None, description="Conversation transcript (when include_transcript=True)"
    )


class HealthResponse(BaseModel):
    """Response body for /health endpoint."""

    status: Literal["healthy", "unhealthy"]
    version: str
    model: str


class ErrorResponse(BaseModel):
    """Error response body."""

    detail: str
