"""
Request-scoped tracing context using the Langfuse SDK v3.

One TracingContext covers one orchestration run: a root span for the
run, a generation per endpoint round and a span per tool call. Children
link to the root through an explicit TraceContext so nesting does not
depend on OpenTelemetry context state across awaits.
"""

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Iterator, Optional

from langfuse.types import TraceContext

from .client import get_tracing_client

logger = logging.getLogger(__name__)


def _start_observation(**kwargs: Any) -> tuple[Any, Any]:
    """Open a Langfuse observation, returning (context_manager, observation)."""
    client = get_tracing_client()
    if not client or not client.enabled:
        return None, None
    manager = client.langfuse.start_as_current_observation(**kwargs)
    return manager, manager.__enter__()


@dataclass
class SpanContext:
    """A tracing span; all methods are no-ops when tracing is disabled."""

    name: str
    enabled: bool = False
    metadata: Optional[dict] = None
    input: Optional[Any] = None
    _trace_context: Optional[TraceContext] = field(default=None, repr=False)
    _manager: Any = field(default=None, repr=False)
    _observation: Any = field(default=None, repr=False)
    _start_time: float = field(default=0.0, repr=False)
    _output: Optional[Any] = field(default=None, repr=False)
    _status: str = field(default="success", repr=False)

    as_type = "span"

    def _observation_kwargs(self) -> dict:
        return {
            "trace_context": self._trace_context,
            "as_type": self.as_type,
            "name": self.name,
            "metadata": self.metadata,
            "input": self.input,
        }

    def start(self) -> None:
        if not self.enabled:
            return
        self._start_time = time.time()
        try:
            self._manager, self._observation = _start_observation(
                **self._observation_kwargs()
            )
        except Exception as e:
            logger.warning(f"Failed to start {self.as_type} '{self.name}': {e}")
            self._manager, self._observation = None, None

    def _update_kwargs(self) -> dict:
        update: dict[str, Any] = {
            "metadata": {
                "status": self._status,
                "duration_ms": round((time.time() - self._start_time) * 1000, 2),
            }
        }
        if self._output is not None:
            update["output"] = self._output
        return update

    def end(self) -> None:
        if not self.enabled or self._observation is None:
            return
        try:
            self._observation.update(**self._update_kwargs())
        except Exception as e:
            logger.warning(f"Failed to update {self.as_type} '{self.name}': {e}")
        try:
            if self._manager is not None:
                self._manager.__exit__(None, None, None)
        except Exception as e:
            logger.warning(f"Failed to end {self.as_type} '{self.name}': {e}")

    def set_output(self, output: Any) -> None:
        self._output = output

    def set_status(self, status: str) -> None:
        self._status = status


@dataclass
class GenerationContext(SpanContext):
    """A tracing generation for one completion endpoint call."""

    model: str = ""
    model_parameters: Optional[dict] = None
    _usage: Optional[dict] = field(default=None, repr=False)

    as_type = "generation"

    def _observation_kwargs(self) -> dict:
        kwargs = super()._observation_kwargs()
        kwargs["model"] = self.model
        kwargs["model_parameters"] = self.model_parameters
        return kwargs

    def _update_kwargs(self) -> dict:
        update = super()._update_kwargs()
        if self._usage:
            update["usage_details"] = self._usage
        return update

    def set_usage(self, prompt_tokens: int, completion_tokens: int) -> None:
        self._usage = {
            "input": prompt_tokens,
            "output": completion_tokens,
            "total": prompt_tokens + completion_tokens,
        }


@dataclass
class TracingContext:
    """
    Tracing for one orchestration run.

    Created per request; ``enabled`` is fixed at construction from the
    global tracing client so a run is either fully traced or not at all.
    """

    execution_id: str
    session_id: Optional[str] = None
    _enabled: bool = field(default=False, repr=False)
    _manager: Any = field(default=None, repr=False)
    _root: Any = field(default=None, repr=False)
    _start_time: float = field(default_factory=time.time, repr=False)

    def __post_init__(self) -> None:
        client = get_tracing_client()
        self._enabled = client is not None and client.enabled

    @property
    def enabled(self) -> bool:
        return self._enabled

    def start_trace(
        self,
        name: str = "edit_request",
        prompt: Optional[str] = None,
        metadata: Optional[dict] = None,
    ) -> None:
        """Open the root span for this run."""
        if not self._enabled:
            return
        trace_metadata = {"execution_id": self.execution_id, **(metadata or {})}
        try:
            self._manager, self._root = _start_observation(
                as_type="span",
                name=name,
                input={"prompt": prompt} if prompt else None,
                metadata=trace_metadata,
            )
            if self._root is not None:
                self._root.update_trace(session_id=self.session_id)
            self._start_time = time.time()
        except Exception as e:
            logger.warning(f"[{self.execution_id}] Failed to start trace: {e}")
            self._root = None

    def end_trace(
        self,
        output: Optional[str] = None,
        status: str = "success",
        metadata: Optional[dict] = None,
    ) -> None:
        """Close the root span."""
        if not self._enabled or self._root is None:
            return
        try:
            self._root.update(
                output=output,
                metadata={
                    "status": status,
                    "duration_ms": round((time.time() - self._start_time) * 1000, 2),
                    **(metadata or {}),
                },
            )
            if self._manager is not None:
                self._manager.__exit__(None, None, None)
        except Exception as e:
            logger.warning(f"[{self.execution_id}] Failed to end trace: {e}")
        finally:
            self._root = None

    def _child_trace_context(self) -> Optional[TraceContext]:
        trace_id = getattr(self._root, "trace_id", None)
        span_id = getattr(self._root, "id", None)
        if not trace_id or not span_id:
            return None
        return TraceContext(trace_id=trace_id, parent_span_id=span_id)

    @contextmanager
    def span(
        self,
        name: str,
        metadata: Optional[dict] = None,
        input: Optional[Any] = None,
    ) -> Iterator[SpanContext]:
        span_ctx = SpanContext(
            name=name,
            enabled=self._enabled,
            metadata=metadata,
            input=input,
            _trace_context=self._child_trace_context(),
        )
        span_ctx.start()
        try:
            yield span_ctx
        finally:
            span_ctx.end()

    @contextmanager
    def generation(
        self,
        name: str,
        model: str,
        input: Optional[Any] = None,
        model_parameters: Optional[dict] = None,
    ) -> Iterator[GenerationContext]:
        gen_ctx = GenerationContext(
            name=name,
            enabled=self._enabled,
            input=input,
            model=model,
            model_parameters=model_parameters,
            _trace_context=self._child_trace_context(),
        )
        gen_ctx.start()
        try:
            yield gen_ctx
        finally:
            gen_ctx.end()
