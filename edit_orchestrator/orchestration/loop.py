"""
Core tool-call orchestration loop.

Each round sends the whole transcript plus the tool definitions to the
completion endpoint and appends the assistant turn verbatim. A turn
without tool calls ends the run; otherwise every requested call is
dispatched in the order the endpoint returned it, one at a time, and
each result is appended as a tool turn before the next round starts.
Later calls in a round may depend on the side effects of earlier ones
(document offsets shift after an insert), so dispatch is never
concurrent.
"""

import asyncio
import logging
from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any, Iterable, Optional

from ..errors import (
    OrchestrationCancelled,
    RoundLimitExceeded,
    RoundTimeoutError,
    TranscriptError,
)
from ..tracing import TracingContext
from .tool_defs import ToolSpec, build_tool_definitions
from .transcript import ToolCallRequest, Transcript, Turn

if TYPE_CHECKING:
    from ..llm_call import CompletionClient
    from ..tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

DEFAULT_MAX_ROUNDS = 10

CANCELLED_RESULT = "Tool call cancelled before execution."


@dataclass
class ToolCallRecord:
    """One dispatched tool call, for traces and API responses."""

    round_number: int
    call_id: str
    function_name: str
    arguments: Optional[dict]
    result: str
    success: bool = True


@dataclass
class OrchestrationResult:
    """Result from a complete orchestration run."""

    answer: str
    rounds: int = 0
    tool_calls: list[ToolCallRecord] = field(default_factory=list)


class OrchestrationLoop:
    """
    Tool-call loop over a transcript, an endpoint client and a registry.

    One instance is one conversation: the transcript is kept across
    ``run()`` calls, so follow-up requests see earlier turns.

    Per-round flow:
        1. Check the cancel token and that every earlier call was answered
        2. Send the transcript and tool definitions to the endpoint
        3. Append the assistant turn
        4. No tool calls: return its content as the answer
        5. Otherwise dispatch each call in order, appending one tool turn each
    """

    def __init__(
        self,
        client: "CompletionClient",
        registry: "ToolRegistry",
        specs: Iterable[ToolSpec],
        system_prompt: Optional[str] = None,
        max_rounds: int = DEFAULT_MAX_ROUNDS,
        round_timeout: Optional[float] = None,
        execution_id: Optional[str] = None,
        tracing_context: Optional[TracingContext] = None,
    ):
        if max_rounds < 1:
            raise ValueError("max_rounds must be at least 1")
        self.client = client
        self.registry = registry
        self.specs = tuple(specs)
        self.max_rounds = max_rounds
        self.round_timeout = round_timeout
        self.execution_id = execution_id
        self.tracing_context = tracing_context

        self.transcript = Transcript(system_prompt)
        self._tool_definitions = build_tool_definitions(self.specs)
        self.records: list[ToolCallRecord] = []

        missing = [spec.name for spec in self.specs if spec.name not in registry]
        if missing:
            logger.warning(
                "%sTool specs without handlers: %s", self._id_prefix, ", ".join(missing)
            )

    @property
    def _id_prefix(self) -> str:
        return f"[{self.execution_id}] " if self.execution_id else ""

    async def run(
        self,
        user_prompt: str,
        auxiliary_context: str = "",
        cancel_event: Optional[asyncio.Event] = None,
    ) -> OrchestrationResult:
        """
        Run the loop until the model answers without tool calls.

        Args:
            user_prompt: The user's request.
            auxiliary_context: Extra context for the same user turn, such as
                the current document content.
            cancel_event: Optional token; once set, the run stops at once if
                an endpoint call is in flight, otherwise before the next
                dispatch.

        Returns:
            OrchestrationResult with the final answer and the calls made.

        Raises:
            RoundLimitExceeded: The model still requested calls after
                ``max_rounds`` rounds.
            RoundTimeoutError: One endpoint call took longer than
                ``round_timeout``.
            CompletionError: The endpoint failed.
            OrchestrationCancelled: The cancel token was set.
        """
        content = user_prompt
        if auxiliary_context:
            content = f"{user_prompt}\n\n{auxiliary_context}"
        self.transcript.append(Turn.user(content))

        logger.debug("%sStarting orchestration for: %s", self._id_prefix, user_prompt)

        if self.tracing_context is None:
            return await self._run_loop(cancel_event)

        with self.tracing_context.span(
            name="orchestration",
            metadata={"max_rounds": self.max_rounds, "execution_id": self.execution_id},
            input={"prompt": user_prompt},
        ) as orch_span:
            try:
                result = await self._run_loop(cancel_event)
            except BaseException:
                orch_span.set_status("error")
                raise
            orch_span.set_output(
                {
                    "rounds": result.rounds,
                    "tool_calls": len(result.tool_calls),
                    "final_answer": result.answer[:500],
                }
            )
            return result

    async def _run_loop(
        self, cancel_event: Optional[asyncio.Event]
    ) -> OrchestrationResult:
        run_records: list[ToolCallRecord] = []

        for round_number in range(1, self.max_rounds + 1):
            if cancel_event is not None and cancel_event.is_set():
                logger.info("%sCancelled before round %d", self._id_prefix, round_number)
                raise OrchestrationCancelled(round_number)

            pending = self.transcript.pending_tool_call_ids()
            if pending:
                raise TranscriptError(
                    "Unanswered tool calls before endpoint request: " + ", ".join(pending)
                )

            turn = await self._request_turn(round_number, cancel_event)
            if cancel_event is not None and cancel_event.is_set():
                # The turn arrived after cancellation; it is dropped unanswered
                logger.info("%sCancelled during round %d", self._id_prefix, round_number)
                raise OrchestrationCancelled(round_number)
            self.transcript.append(turn)

            if not turn.has_tool_calls:
                answer = turn.content or ""
                logger.info(
                    "%sFinished after %d round(s), %d tool call(s)",
                    self._id_prefix,
                    round_number,
                    len(run_records),
                )
                return OrchestrationResult(
                    answer=answer, rounds=round_number, tool_calls=run_records
                )

            logger.debug(
                "%sRound %d: %d tool call(s): %s",
                self._id_prefix,
                round_number,
                len(turn.tool_calls),
                ", ".join(call.function_name for call in turn.tool_calls),
            )
            await self._dispatch_round(
                round_number, turn.tool_calls, run_records, cancel_event
            )

        logger.warning("%sMax rounds (%d) reached", self._id_prefix, self.max_rounds)
        raise RoundLimitExceeded(self.max_rounds)

    async def _request_turn(
        self, round_number: int, cancel_event: Optional[asyncio.Event]
    ) -> Turn:
        """Ask the endpoint for the next assistant turn, bounded by the round timeout."""
        messages = self.transcript.to_messages()

        if self.tracing_context is None:
            return await self._complete(messages, round_number, cancel_event)

        with self.tracing_context.generation(
            name=f"round_{round_number}",
            model=getattr(self.client, "model", ""),
            input=messages,
            model_parameters={"temperature": getattr(self.client, "temperature", None)},
        ) as gen:
            try:
                turn = await self._complete(messages, round_number, cancel_event)
            except BaseException:
                gen.set_status("error")
                raise
            gen.set_output(
                {
                    "content": (turn.content or "")[:2000],
                    "tool_calls": [call.function_name for call in turn.tool_calls],
                }
            )
            if turn.usage is not None:
                gen.set_usage(
                    prompt_tokens=turn.usage.prompt_tokens,
                    completion_tokens=turn.usage.completion_tokens,
                )
            return turn

    async def _complete(
        self,
        messages: list[dict],
        round_number: int,
        cancel_event: Optional[asyncio.Event],
    ) -> Turn:
        """
        Await one endpoint call, racing it against the cancel token.

        Whichever of the request, the token or the round timeout finishes
        first decides the outcome; the request is cancelled unless it won.
        """
        logger.debug("%sRound %d: calling endpoint", self._id_prefix, round_number)
        request = asyncio.ensure_future(
            self.client.complete(messages, self._tool_definitions)
        )
        waiters = {request}
        cancelled = None
        if cancel_event is not None:
            cancelled = asyncio.ensure_future(cancel_event.wait())
            waiters.add(cancelled)

        timeout = self.round_timeout if self.round_timeout and self.round_timeout > 0 else None
        try:
            done, _ = await asyncio.wait(
                waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            unfinished = [waiter for waiter in waiters if not waiter.done()]
            for waiter in unfinished:
                waiter.cancel()
            if unfinished:
                await asyncio.gather(*unfinished, return_exceptions=True)

        if request in done:
            return request.result()
        if cancelled is not None and cancelled in done:
            logger.info(
                "%sCancelled while waiting for round %d", self._id_prefix, round_number
            )
            raise OrchestrationCancelled(round_number)
        logger.error(
            "%sRound %d timed out after %ss",
            self._id_prefix,
            round_number,
            self.round_timeout,
        )
        raise RoundTimeoutError(round_number, self.round_timeout)

    async def _dispatch_round(
        self,
        round_number: int,
        calls: tuple[ToolCallRequest, ...],
        run_records: list[ToolCallRecord],
        cancel_event: Optional[asyncio.Event],
    ) -> None:
        for position, call in enumerate(calls):
            if cancel_event is not None and cancel_event.is_set():
                self._answer_cancelled(calls[position:])
                logger.info(
                    "%sCancelled during round %d", self._id_prefix, round_number
                )
                raise OrchestrationCancelled(round_number)
            try:
                record = await self._dispatch(round_number, call)
            except asyncio.CancelledError:
                self._answer_cancelled(calls[position:])
                raise
            self.transcript.append(Turn.tool(call.id, record.result))
            run_records.append(record)
            self.records.append(record)

    def _answer_cancelled(self, calls: tuple[ToolCallRequest, ...]) -> None:
        """Close out unanswered calls so the transcript stays paired."""
        for call in calls:
            self.transcript.append(Turn.tool(call.id, CANCELLED_RESULT))

    async def _dispatch(self, round_number: int, call: ToolCallRequest) -> ToolCallRecord:
        logger.debug(
            "%sRound %d: executing tool '%s'",
            self._id_prefix,
            round_number,
            call.function_name,
        )
        if self.tracing_context is None:
            outcome = await self.registry.dispatch(call)
        else:
            with self.tracing_context.span(
                name=f"tool:{call.function_name}",
                input={"arguments": call.raw_arguments[:500]},
            ) as span:
                outcome = await self.registry.dispatch(call)
                span.set_output({"result": outcome.result[:500]})
                if not outcome.success:
                    span.set_status("error")

        if not outcome.success:
            logger.info(
                "%sTool '%s' reported failure: %s",
                self._id_prefix,
                call.function_name,
                outcome.result,
            )
        return ToolCallRecord(
            round_number=round_number,
            call_id=call.id,
            function_name=call.function_name,
            arguments=outcome.arguments,
            result=outcome.result,
            success=outcome.success,
        )

    def get_trace(self) -> list[dict[str, Any]]:
        """Every tool call dispatched by this loop, across runs, as dicts."""
        return [asdict(record) for record in self.records]
