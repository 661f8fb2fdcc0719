"""
Tests for Langfuse tracing integration with SDK v3.

Tests cover:
- Client disabled states (credentials, failed auth check)
- Context manager no-ops when disabled
- Trace lifecycle with a mocked Langfuse client
- Loop integration with tracing enabled
"""

from unittest.mock import MagicMock, patch

import pytest

from scripted_turns import answer_turn, call, calls_turn
from edit_orchestrator.models import LangfuseConfig
from edit_orchestrator.orchestration import EDITOR_TOOL_SPECS, OrchestrationLoop
from edit_orchestrator.orchestration.transcript import TokenUsage, Turn
from edit_orchestrator.tools import TextDocument, build_editor_registry
from edit_orchestrator.tracing import (
    TracingClient,
    TracingContext,
    get_tracing_client,
    init_tracing_client,
    shutdown_tracing,
)


def _enabled_tracing():
    """Install an enabled tracing client backed by a MagicMock Langfuse."""
    langfuse = MagicMock()
    langfuse.auth_check.return_value = True
    with patch("edit_orchestrator.tracing.client.Langfuse", return_value=langfuse):
        tracing = init_tracing_client(
            LangfuseConfig(public_key="pk", secret_key="sk", host="http://lf:3000"),
            release="1.2.3",
        )
    return tracing, langfuse


class TestTracingClient:
    """Tests for TracingClient."""

    def test_client_disabled_without_credentials(self):
        """Test client is disabled when credentials not provided."""
        tracing = TracingClient.connect(LangfuseConfig())
        assert tracing.enabled is False
        assert "credentials not configured" in tracing.error.lower()
        assert tracing.langfuse is None

    def test_client_disabled_with_partial_credentials(self):
        assert TracingClient.connect(LangfuseConfig(public_key="pk-test")).enabled is False

    @patch("edit_orchestrator.tracing.client.Langfuse")
    def test_client_disabled_when_auth_check_fails(self, mock_langfuse):
        mock_langfuse.return_value.auth_check.return_value = False
        tracing = TracingClient.connect(LangfuseConfig(public_key="pk", secret_key="sk"))
        assert tracing.enabled is False
        assert "auth_check" in tracing.error

    @patch("edit_orchestrator.tracing.client.Langfuse")
    def test_client_disabled_when_constructor_raises(self, mock_langfuse):
        mock_langfuse.side_effect = RuntimeError("no route to host")
        tracing = TracingClient.connect(LangfuseConfig(public_key="pk", secret_key="sk"))
        assert tracing.enabled is False
        assert "no route to host" in tracing.error

    def test_client_enabled(self):
        tracing, langfuse = _enabled_tracing()
        assert tracing.enabled is True
        assert tracing.langfuse is langfuse

    @patch("edit_orchestrator.tracing.client.Langfuse")
    def test_client_passes_settings(self, mock_langfuse):
        mock_langfuse.return_value.auth_check.return_value = True
        config = LangfuseConfig(public_key="pk", secret_key="sk", host="http://lf:3000", debug=True)

        TracingClient.connect(config, release="1.2.3")

        kwargs = mock_langfuse.call_args.kwargs
        assert kwargs["host"] == "http://lf:3000"
        assert kwargs["debug"] is True
        assert kwargs["release"] == "1.2.3"

    def test_flush_noop_when_disabled(self):
        TracingClient().flush()  # does not raise

    def test_singleton_lifecycle(self):
        tracing, langfuse = _enabled_tracing()
        assert get_tracing_client() is tracing

        shutdown_tracing()

        langfuse.shutdown.assert_called_once()
        assert get_tracing_client() is None


class TestTracingContextDisabled:
    """Context operations are no-ops without a tracing client."""

    def test_disabled_without_client(self):
        context = TracingContext(execution_id="exec-1")
        assert context.enabled is False

    def test_span_and_generation_noop(self):
        context = TracingContext(execution_id="exec-1")
        context.start_trace(prompt="hi")
        with context.span("work") as span:
            span.set_output({"ok": True})
            span.set_status("error")
        with context.generation("round_1", model="m") as gen:
            gen.set_usage(prompt_tokens=1, completion_tokens=2)
        context.end_trace(output="done")


class TestTracingContextEnabled:
    """Trace lifecycle against a mocked Langfuse client."""

    def test_trace_lifecycle(self):
        _, langfuse = _enabled_tracing()
        root = MagicMock()
        root.trace_id = "trace-1"
        root.id = "span-1"
        child = MagicMock()
        langfuse.start_as_current_observation.return_value.__enter__.side_effect = [root, child]

        context = TracingContext(execution_id="exec-1", session_id="sess-1")
        context.start_trace(name="edit_request", prompt="hi")
        root.update_trace.assert_called_once_with(session_id="sess-1")

        with context.span("tool:insert_text", input={"a": 1}) as span:
            span.set_output({"result": "ok"})

        child_kwargs = langfuse.start_as_current_observation.call_args_list[1].kwargs
        assert child_kwargs["name"] == "tool:insert_text"
        assert child_kwargs["as_type"] == "span"
        assert child_kwargs["trace_context"]["trace_id"] == "trace-1"
        assert child_kwargs["trace_context"]["parent_span_id"] == "span-1"
        assert child.update.call_args.kwargs["output"] == {"result": "ok"}

        context.end_trace(output="done", status="success")
        assert root.update.call_args.kwargs["output"] == "done"
        assert root.update.call_args.kwargs["metadata"]["status"] == "success"

    def test_generation_usage(self):
        _, langfuse = _enabled_tracing()
        observation = MagicMock()
        langfuse.start_as_current_observation.return_value.__enter__.return_value = observation

        context = TracingContext(execution_id="exec-1")
        with context.generation("round_1", model="gpt-4o-mini") as gen:
            gen.set_usage(prompt_tokens=10, completion_tokens=5)

        kwargs = langfuse.start_as_current_observation.call_args.kwargs
        assert kwargs["as_type"] == "generation"
        assert kwargs["model"] == "gpt-4o-mini"
        assert observation.update.call_args.kwargs["usage_details"] == {
            "input": 10,
            "output": 5,
            "total": 15,
        }

    def test_langfuse_errors_do_not_escape(self):
        """A failing Langfuse call is logged, never raised."""
        _, langfuse = _enabled_tracing()
        langfuse.start_as_current_observation.side_effect = RuntimeError("down")

        context = TracingContext(execution_id="exec-1")
        context.start_trace(prompt="hi")
        with context.span("work") as span:
            span.set_output("x")
        context.end_trace(output="done")


class TestLoopTracing:
    """The loop reports rounds and tool calls when tracing is enabled."""

    @pytest.mark.asyncio
    async def test_spans_per_round_and_tool_call(self, scripted_client):
        _, langfuse = _enabled_tracing()
        scripted_client.complete.side_effect = [
            calls_turn(call("c1", "get_selection")),
            answer_turn("done"),
        ]
        context = TracingContext(execution_id="exec-1")
        context.start_trace(prompt="hi")
        loop = OrchestrationLoop(
            client=scripted_client,
            registry=build_editor_registry(TextDocument()),
            specs=EDITOR_TOOL_SPECS,
            execution_id="exec-1",
            tracing_context=context,
        )

        result = await loop.run("What is selected?")

        assert result.answer == "done"
        names = [
            c.kwargs["name"] for c in langfuse.start_as_current_observation.call_args_list
        ]
        assert names == [
            "edit_request",
            "orchestration",
            "round_1",
            "tool:get_selection",
            "round_2",
        ]

    @pytest.mark.asyncio
    async def test_round_generation_reports_token_usage(self, scripted_client):
        _, langfuse = _enabled_tracing()
        observation = MagicMock()
        langfuse.start_as_current_observation.return_value.__enter__.return_value = observation
        scripted_client.complete.side_effect = [
            Turn.assistant("done", usage=TokenUsage(prompt_tokens=20, completion_tokens=3)),
        ]
        loop = OrchestrationLoop(
            client=scripted_client,
            registry=build_editor_registry(TextDocument()),
            specs=EDITOR_TOOL_SPECS,
            tracing_context=TracingContext(execution_id="exec-1"),
        )

        await loop.run("Hi")

        usages = [
            c.kwargs["usage_details"]
            for c in observation.update.call_args_list
            if "usage_details" in c.kwargs
        ]
        assert usages == [{"input": 20, "output": 3, "total": 23}]
