"""Builders for the assistant turns a scripted completion client returns."""

import json

from edit_orchestrator.orchestration.transcript import ToolCallRequest, Turn


def call(call_id: str, name: str, **arguments) -> ToolCallRequest:
    """Build a tool call request with JSON-encoded arguments."""
    return ToolCallRequest(
        id=call_id, function_name=name, raw_arguments=json.dumps(arguments)
    )


def calls_turn(*requests: ToolCallRequest, content: str | None = None) -> Turn:
    """Assistant turn requesting the given tool calls."""
    return Turn.assistant(content=content, tool_calls=requests)


def answer_turn(content: str) -> Turn:
    """Assistant turn without tool calls."""
    return Turn.assistant(content=content)
