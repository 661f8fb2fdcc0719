"""
Conversation transcript for the tool-call loop.

A transcript is an append-only list of turns. Assistant turns may carry
tool-call requests; every request must be answered by exactly one tool
turn before the transcript is sent to the endpoint again, otherwise the
endpoint rejects it.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional

from ..errors import TranscriptError


class Role(str, Enum):
    """Author of a turn."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


@dataclass(frozen=True)
class ToolCallRequest:
    """A function invocation requested by the model.

    ``raw_arguments`` is the undecoded JSON text exactly as the endpoint
    returned it.
    """

    id: str
    function_name: str
    raw_arguments: str = "{}"

    def to_message(self) -> dict:
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.function_name, "arguments": self.raw_arguments},
        }


@dataclass(frozen=True)
class TokenUsage:
    """Token counts the endpoint reported for one assistant turn."""

    prompt_tokens: int = 0
    completion_tokens: int = 0


@dataclass(frozen=True)
class Turn:
    """One entry in the transcript."""

    role: Role
    content: Optional[str] = None
    tool_call_id: Optional[str] = None
    tool_calls: tuple[ToolCallRequest, ...] = ()
    # Not part of the conversation; kept for tracing only
    usage: Optional[TokenUsage] = field(default=None, compare=False, repr=False)

    @classmethod
    def system(cls, content: str) -> "Turn":
        return cls(role=Role.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> "Turn":
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(
        cls,
        content: Optional[str] = None,
        tool_calls: tuple[ToolCallRequest, ...] = (),
        usage: Optional[TokenUsage] = None,
    ) -> "Turn":
        return cls(
            role=Role.ASSISTANT, content=content, tool_calls=tuple(tool_calls), usage=usage
        )

    @classmethod
    def tool(cls, tool_call_id: str, content: str) -> "Turn":
        return cls(role=Role.TOOL, content=content, tool_call_id=tool_call_id)

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)

    def to_message(self) -> dict:
        """Render the turn as an OpenAI chat message."""
        message: dict = {"role": self.role.value, "content": self.content}
        if self.role is Role.TOOL:
            message["tool_call_id"] = self.tool_call_id
            message["content"] = self.content or ""
        elif self.tool_calls:
            message["tool_calls"] = [call.to_message() for call in self.tool_calls]
        elif self.role is Role.ASSISTANT:
            # Assistant content may only be null alongside tool calls
            message["content"] = self.content or ""
        return message


class Transcript:
    """Append-only sequence of turns owned by one orchestration session."""

    def __init__(self, system_prompt: Optional[str] = None) -> None:
        self._turns: list[Turn] = []
        self._pending: dict[str, ToolCallRequest] = {}
        if system_prompt:
            self.append(Turn.system(system_prompt))

    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self) -> Iterator[Turn]:
        return iter(tuple(self._turns))

    @property
    def turns(self) -> tuple[Turn, ...]:
        return tuple(self._turns)

    def append(self, turn: Turn) -> None:
        """
        Append a turn, enforcing request/result pairing.

        Raises:
            TranscriptError: If a tool turn answers an unknown or already
                answered request, or if a non-tool turn is appended while
                requests are still unanswered.
        """
        if turn.role is Role.TOOL:
            if turn.tool_call_id not in self._pending:
                raise TranscriptError(
                    f"Tool turn for '{turn.tool_call_id}' does not answer a pending request"
                )
            del self._pending[turn.tool_call_id]
        else:
            if self._pending:
                raise TranscriptError(
                    "Unanswered tool calls: " + ", ".join(sorted(self._pending))
                )
            for call in turn.tool_calls:
                if call.id in self._pending:
                    raise TranscriptError(f"Duplicate tool call id '{call.id}'")
                self._pending[call.id] = call
        self._turns.append(turn)

    def pending_tool_call_ids(self) -> list[str]:
        """Ids requested by the last assistant turn that have no tool turn yet."""
        return list(self._pending)

    def to_messages(self) -> list[dict]:
        return [turn.to_message() for turn in self._turns]
