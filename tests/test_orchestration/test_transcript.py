"""Tests for the conversation transcript."""

import pytest

from edit_orchestrator.errors import TranscriptError
from edit_orchestrator.orchestration.transcript import (
    Role,
    ToolCallRequest,
    TokenUsage,
    Transcript,
    Turn,
)


def _request(call_id: str) -> ToolCallRequest:
    return ToolCallRequest(id=call_id, function_name="get_selection", raw_arguments="{}")


class TestTurn:
    """Tests for Turn construction and rendering."""

    def test_user_message(self):
        assert Turn.user("hi").to_message() == {"role": "user", "content": "hi"}

    def test_assistant_with_tool_calls(self):
        """Tool calls are re-emitted in the wire shape."""
        turn = Turn.assistant("thinking", tool_calls=(_request("c1"),))
        assert turn.has_tool_calls
        assert turn.to_message() == {
            "role": "assistant",
            "content": "thinking",
            "tool_calls": [
                {
                    "id": "c1",
                    "type": "function",
                    "function": {"name": "get_selection", "arguments": "{}"},
                }
            ],
        }

    def test_tool_message(self):
        message = Turn.tool("c1", "done").to_message()
        assert message == {"role": "tool", "content": "done", "tool_call_id": "c1"}

    def test_empty_answer_renders_empty_content(self):
        """An answer without content still renders as a string the endpoint accepts."""
        assert Turn.assistant().to_message() == {"role": "assistant", "content": ""}

    def test_tool_call_turn_keeps_null_content(self):
        message = Turn.assistant(tool_calls=(_request("c1"),)).to_message()
        assert message["content"] is None

    def test_usage_does_not_affect_equality(self):
        assert Turn.assistant("hi", usage=TokenUsage(3, 4)) == Turn.assistant("hi")


class TestTranscript:
    """Tests for append-only pairing rules."""

    def test_system_prompt_is_first_turn(self):
        transcript = Transcript("Be helpful")
        assert len(transcript) == 1
        assert transcript.turns[0].role is Role.SYSTEM

    def test_no_system_prompt(self):
        assert len(Transcript()) == 0

    def test_pending_ids_follow_requests(self):
        transcript = Transcript()
        transcript.append(Turn.user("go"))
        transcript.append(Turn.assistant(tool_calls=(_request("c1"), _request("c2"))))
        assert transcript.pending_tool_call_ids() == ["c1", "c2"]

        transcript.append(Turn.tool("c1", "ok"))
        assert transcript.pending_tool_call_ids() == ["c2"]

    def test_tool_turn_for_unknown_request(self):
        transcript = Transcript()
        with pytest.raises(TranscriptError):
            transcript.append(Turn.tool("ghost", "ok"))

    def test_duplicate_tool_reply(self):
        transcript = Transcript()
        transcript.append(Turn.assistant(tool_calls=(_request("c1"),)))
        transcript.append(Turn.tool("c1", "ok"))
        with pytest.raises(TranscriptError):
            transcript.append(Turn.tool("c1", "again"))

    def test_non_tool_turn_while_pending(self):
        """The next endpoint turn cannot be appended before every call is answered."""
        transcript = Transcript()
        transcript.append(Turn.assistant(tool_calls=(_request("c1"),)))
        with pytest.raises(TranscriptError, match="c1"):
            transcript.append(Turn.user("next"))

    def test_duplicate_call_ids_in_one_turn(self):
        transcript = Transcript()
        with pytest.raises(TranscriptError):
            transcript.append(Turn.assistant(tool_calls=(_request("c1"), _request("c1"))))

    def test_turns_is_snapshot(self):
        transcript = Transcript("sys")
        snapshot = transcript.turns
        transcript.append(Turn.user("hi"))
        assert len(snapshot) == 1
        assert [m["role"] for m in transcript.to_messages()] == ["system", "user"]
