"""
Tool-call orchestration: transcript, tool definitions and the round loop.
"""

from .transcript import Role, ToolCallRequest, Transcript, Turn
from .tool_defs import (
    EDITOR_TOOL_SPECS,
    WEATHER_TOOL_SPECS,
    ToolSpec,
    build_tool_definitions,
)
from .prompts import EDITOR_SYSTEM_PROMPT, WEATHER_SYSTEM_PROMPT, build_user_prompt
from .loop import OrchestrationLoop, OrchestrationResult, ToolCallRecord

__all__ = [
    "Role",
    "ToolCallRequest",
    "Transcript",
    "Turn",
    "EDITOR_TOOL_SPECS",
    "WEATHER_TOOL_SPECS",
    "ToolSpec",
    "build_tool_definitions",
    "EDITOR_SYSTEM_PROMPT",
    "WEATHER_SYSTEM_PROMPT",
    "build_user_prompt",
    "OrchestrationLoop",
    "OrchestrationResult",
    "ToolCallRecord",
]
