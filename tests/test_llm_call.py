"""
Tests for the completion endpoint client.

The OpenAI SDK client is replaced with an AsyncMock; retries use zero
backoff so the tests do not sleep.
"""

from unittest.mock import AsyncMock, Mock, patch

import httpx
import openai
import pytest

from edit_orchestrator.errors import CompletionError
from edit_orchestrator.llm_call import CompletionClient, parse_assistant_message
from edit_orchestrator.models import OrchestratorConfig, RetryConfig
from edit_orchestrator.orchestration.transcript import Role, TokenUsage

_REQUEST = httpx.Request("POST", "https://api.test/v1/chat/completions")


def _tool_call(call_id: str, name: str, arguments: str) -> Mock:
    tool_call = Mock()
    tool_call.id = call_id
    tool_call.function = Mock()
    tool_call.function.name = name
    tool_call.function.arguments = arguments
    return tool_call


def _response(content=None, tool_calls=None, usage=None) -> Mock:
    message = Mock()
    message.content = content
    message.tool_calls = tool_calls
    response = Mock()
    response.choices = [Mock(message=message)]
    response.usage = usage
    return response


def _client(sdk: AsyncMock, max_attempts: int = 3) -> CompletionClient:
    return CompletionClient(
        model="test-model",
        temperature=0.1,
        max_attempts=max_attempts,
        backoff_min=0,
        backoff_max=0,
        client=sdk,
    )


def _sdk(side_effect) -> AsyncMock:
    sdk = AsyncMock()
    sdk.chat.completions.create.side_effect = side_effect
    return sdk


class TestParseAssistantMessage:
    """Tests for converting SDK messages into turns."""

    def test_plain_answer(self):
        turn = parse_assistant_message(_response(content="Hello").choices[0].message)
        assert turn.role is Role.ASSISTANT
        assert turn.content == "Hello"
        assert turn.tool_calls == ()

    def test_tool_calls_keep_order_and_raw_arguments(self):
        message = _response(
            tool_calls=[
                _tool_call("a", "insert_text", '{"inserting_text": "x", "start_index": 0}'),
                _tool_call("b", "get_selection", ""),
            ]
        ).choices[0].message
        turn = parse_assistant_message(message)
        assert [c.id for c in turn.tool_calls] == ["a", "b"]
        assert turn.tool_calls[0].raw_arguments == '{"inserting_text": "x", "start_index": 0}'
        assert turn.tool_calls[1].raw_arguments == ""

    def test_usage_is_kept(self):
        usage = Mock(prompt_tokens=12, completion_tokens=4)
        response = _response(content="ok", usage=usage)
        turn = parse_assistant_message(response.choices[0].message, response.usage)
        assert turn.usage == TokenUsage(prompt_tokens=12, completion_tokens=4)

    def test_missing_usage(self):
        assert parse_assistant_message(_response(content="ok").choices[0].message).usage is None


class TestComplete:
    """Tests for CompletionClient.complete."""

    @pytest.mark.asyncio
    async def test_sends_model_messages_and_tools(self):
        sdk = _sdk([_response(content="ok")])
        client = _client(sdk)
        tools = [{"type": "function", "function": {"name": "ping"}}]

        turn = await client.complete([{"role": "user", "content": "hi"}], tools)

        assert turn.content == "ok"
        kwargs = sdk.chat.completions.create.await_args.kwargs
        assert kwargs["model"] == "test-model"
        assert kwargs["temperature"] == 0.1
        assert kwargs["tools"] == tools

    @pytest.mark.asyncio
    async def test_tools_omitted_when_empty(self):
        sdk = _sdk([_response(content="ok")])
        await _client(sdk).complete([{"role": "user", "content": "hi"}], [])
        assert "tools" not in sdk.chat.completions.create.await_args.kwargs

    @pytest.mark.asyncio
    async def test_transient_error_is_retried(self):
        """A connection error followed by success returns the turn."""
        sdk = _sdk([openai.APIConnectionError(request=_REQUEST), _response(content="ok")])

        turn = await _client(sdk).complete([], [])

        assert turn.content == "ok"
        assert sdk.chat.completions.create.await_count == 2

    @pytest.mark.asyncio
    async def test_retries_exhausted(self):
        sdk = _sdk(openai.APITimeoutError(request=_REQUEST))

        with pytest.raises(CompletionError) as exc_info:
            await _client(sdk, max_attempts=2).complete([], [])

        assert sdk.chat.completions.create.await_count == 2
        assert isinstance(exc_info.value.__cause__, openai.APITimeoutError)

    @pytest.mark.asyncio
    async def test_non_transient_error_not_retried(self):
        response = httpx.Response(400, request=_REQUEST)
        sdk = _sdk(openai.BadRequestError("bad request", response=response, body=None))

        with pytest.raises(CompletionError, match="bad request"):
            await _client(sdk).complete([], [])

        assert sdk.chat.completions.create.await_count == 1

    @pytest.mark.asyncio
    async def test_empty_choices(self):
        empty = Mock()
        empty.choices = []
        sdk = _sdk([empty])

        with pytest.raises(CompletionError, match="no choices"):
            await _client(sdk).complete([], [])


class TestClientConstruction:
    """Tests for SDK client selection."""

    @patch("edit_orchestrator.llm_call.AsyncOpenAI")
    def test_openai_client_without_retries(self, mock_openai):
        CompletionClient(base_url="https://api.test/v1", api_key="sk-test")
        mock_openai.assert_called_once_with(
            base_url="https://api.test/v1", api_key="sk-test", max_retries=0
        )

    @patch("edit_orchestrator.llm_call.AsyncAzureOpenAI")
    def test_azure_client_when_api_version_set(self, mock_azure):
        client = CompletionClient.from_config(
            OrchestratorConfig(
                base_url="https://res.openai.azure.com",
                api_key="key",
                api_version="2024-06-01",
                model="gpt-4o",
            ),
            RetryConfig(max_attempts=5),
        )
        kwargs = mock_azure.call_args.kwargs
        assert kwargs["azure_endpoint"] == "https://res.openai.azure.com"
        assert kwargs["api_version"] == "2024-06-01"
        assert kwargs["azure_deployment"] == "gpt-4o"
        assert client.max_attempts == 5
