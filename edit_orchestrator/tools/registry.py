"""
Tool Registry - maps function names to typed handlers.

Each registry instance is built for one capability surface and handed to
the orchestration loop; there is no process-wide registry. Dispatch
decodes the model's raw JSON arguments into the tool's argument model
before the handler runs, and turns every failure into a message for the
model instead of an exception.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, ClassVar, Optional

from pydantic import BaseModel, ConfigDict, ValidationError

from ..orchestration.transcript import ToolCallRequest

logger = logging.getLogger(__name__)

MAX_ERROR_CHARS = 500


class ToolArguments(BaseModel):
    """Base class for decoded tool arguments."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    # Shown to the model when required fields are missing or invalid.
    failure_message: ClassVar[str] = "Tool call failed. Please provide valid arguments."


ToolHandler = Callable[[Any], Awaitable[str]]


@dataclass
class ToolDefinition:
    """A registered tool: argument model plus async handler."""

    name: str
    description: str
    args_model: type[ToolArguments]
    handler: ToolHandler


@dataclass
class ToolOutcome:
    """Result of dispatching one tool call request."""

    result: str
    arguments: Optional[dict] = None
    success: bool = True


def describe_validation_error(error: ValidationError) -> str:
    """Summarize a pydantic error as ``field: problem`` pairs."""
    parts = []
    for item in error.errors():
        field_name = ".".join(str(loc) for loc in item.get("loc", ())) or "arguments"
        parts.append(f"{field_name}: {item.get('msg', 'invalid')}")
    return "; ".join(parts)


def _truncate(message: str) -> str:
    if len(message) > MAX_ERROR_CHARS:
        return message[:MAX_ERROR_CHARS] + "..."
    return message


class ToolRegistry:
    """Registry of the tools one orchestration loop may call."""

    def __init__(self) -> None:
        self._tools: dict[str, ToolDefinition] = {}

    def register(
        self,
        name: str,
        description: str,
        args_model: type[ToolArguments],
        handler: ToolHandler,
    ) -> None:
        """Register a tool with its argument model and handler."""
        if name in self._tools:
            raise ValueError(f"Tool '{name}' is already registered")
        self._tools[name] = ToolDefinition(
            name=name,
            description=description,
            args_model=args_model,
            handler=handler,
        )

    def get(self, name: str) -> Optional[ToolDefinition]:
        """Get a tool by name."""
        return self._tools.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def names(self) -> list[str]:
        return list(self._tools)

    def get_tools_summary(self) -> str:
        """Get formatted summary of all tools for prompts and logs."""
        return "\n".join(
            f"- {name}: {tool.description}" for name, tool in self._tools.items()
        )

    async def dispatch(self, request: ToolCallRequest) -> ToolOutcome:
        """
        Decode, validate and execute one tool call request.

        Never raises for tool-level problems: unknown functions, malformed
        JSON, missing or invalid fields and handler errors all come back as
        an unsuccessful outcome whose result explains the failure.
        """
        name = request.function_name
        tool = self.get(name)
        if tool is None:
            logger.warning(f"Unknown function requested: {name}")
            return ToolOutcome(
                result=f"Error: Unknown function '{name}'. Available functions: "
                + ", ".join(self.names()),
                success=False,
            )

        raw = request.raw_arguments or "{}"
        try:
            decoded = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Malformed arguments for {name}: {raw[:200]}")
            return ToolOutcome(
                result=f"Error: Arguments for '{name}' are not valid JSON ({e.msg}). "
                "Please send a JSON object.",
                success=False,
            )
        if not isinstance(decoded, dict):
            return ToolOutcome(
                result=f"Error: Arguments for '{name}' must be a JSON object.",
                success=False,
            )

        try:
            args = tool.args_model.model_validate(decoded)
        except ValidationError as e:
            details = describe_validation_error(e)
            logger.debug(f"Invalid arguments for {name}: {details}")
            return ToolOutcome(
                result=f"{tool.args_model.failure_message} ({details})",
                arguments=decoded,
                success=False,
            )

        try:
            result = await tool.handler(args)
        except Exception as e:
            logger.error(f"Tool '{name}' execution failed: {e}")
            return ToolOutcome(
                result=_truncate(f"Tool '{name}' execution error: {e}"),
                arguments=decoded,
                success=False,
            )
        return ToolOutcome(result=result, arguments=decoded)
