"""
Completion endpoint client for EditOrchestra.

Wraps the OpenAI SDK's async client (or its Azure variant) and converts
each chat completion into one assistant Turn. Transient failures are
retried with exponential backoff; everything else surfaces as a
CompletionError.
"""

import logging
from typing import Any, Optional

import openai
import tenacity
from openai import AsyncAzureOpenAI, AsyncOpenAI

from .errors import CompletionError
from .models import OrchestratorConfig, RetryConfig
from .orchestration.transcript import TokenUsage, ToolCallRequest, Turn

logger = logging.getLogger(__name__)

_TRANSIENT_ERRORS = (
    openai.APIConnectionError,  # includes APITimeoutError
    openai.RateLimitError,
    openai.InternalServerError,
)


def _is_transient(exc: BaseException) -> bool:
    """Connection problems, timeouts, 429 and 5xx are worth retrying."""
    return isinstance(exc, _TRANSIENT_ERRORS)


def parse_assistant_message(message: Any, usage: Any = None) -> Turn:
    """Convert an SDK ChatCompletionMessage (and its usage) into an assistant Turn."""
    calls = []
    for call in getattr(message, "tool_calls", None) or []:
        function = getattr(call, "function", None)
        if function is None:
            logger.debug(f"Skipping non-function tool call {getattr(call, 'id', '?')}")
            continue
        calls.append(
            ToolCallRequest(
                id=call.id,
                function_name=function.name,
                raw_arguments=function.arguments or "",
            )
        )
    token_usage = None
    if usage is not None:
        token_usage = TokenUsage(
            prompt_tokens=usage.prompt_tokens or 0,
            completion_tokens=usage.completion_tokens or 0,
        )
    return Turn.assistant(
        content=message.content, tool_calls=tuple(calls), usage=token_usage
    )


class CompletionClient:
    """Chat completion client returning assistant turns."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        model: str = "gpt-4o-mini",
        temperature: float = 0.2,
        api_version: Optional[str] = None,
        max_attempts: int = 3,
        backoff_min: float = 1.0,
        backoff_max: float = 30.0,
        client: Optional[AsyncOpenAI] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: Endpoint URL (the Azure resource endpoint when
                api_version is set).
            api_key: API key for the endpoint.
            model: Model or Azure deployment name.
            temperature: Sampling temperature for every request.
            api_version: Azure OpenAI API version; selects AsyncAzureOpenAI.
            max_attempts: Total attempts for transient failures.
            backoff_min: Minimum wait between attempts, in seconds.
            backoff_max: Maximum wait between attempts, in seconds.
            client: Pre-built SDK client (tests, custom transports).
        """
        self.model = model
        self.temperature = temperature
        self.max_attempts = max_attempts
        self.backoff_min = backoff_min
        self.backoff_max = backoff_max

        if client is not None:
            self._client = client
        elif api_version:
            self._client = AsyncAzureOpenAI(
                azure_endpoint=base_url,
                api_key=api_key,
                api_version=api_version,
                azure_deployment=model,
                max_retries=0,  # retries are handled by tenacity
            )
        else:
            self._client = AsyncOpenAI(
                base_url=base_url,
                api_key=api_key,
                max_retries=0,
            )

    @classmethod
    def from_config(
        cls, orchestrator: OrchestratorConfig, retry: Optional[RetryConfig] = None
    ) -> "CompletionClient":
        retry = retry or RetryConfig()
        return cls(
            base_url=orchestrator.base_url,
            api_key=orchestrator.api_key,
            model=orchestrator.model,
            temperature=orchestrator.temperature,
            api_version=orchestrator.api_version,
            max_attempts=retry.max_attempts,
            backoff_min=retry.backoff_min,
            backoff_max=retry.backoff_max,
        )

    async def complete(self, messages: list[dict], tools: list[dict]) -> Turn:
        """
        Request one assistant turn for the transcript.

        Args:
            messages: The full transcript as chat messages.
            tools: OpenAI tool definitions the model may call.

        Returns:
            The assistant Turn, possibly carrying tool call requests.

        Raises:
            CompletionError: On non-transient API errors, an empty response,
                or once transient retries are exhausted.
        """
        retryer = tenacity.AsyncRetrying(
            retry=tenacity.retry_if_exception(_is_transient),
            wait=(
                tenacity.wait_exponential(
                    multiplier=1, min=self.backoff_min, max=self.backoff_max
                )
                + tenacity.wait_random(0, 1)
            ),
            stop=tenacity.stop_after_attempt(self.max_attempts),
            before_sleep=tenacity.before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        try:
            response = await retryer(self._create, messages, tools)
        except openai.OpenAIError as e:
            logger.error(f"Completion request failed: {e}")
            raise CompletionError(f"Completion request failed: {e}") from e

        if not response.choices:
            raise CompletionError("Completion response contained no choices")
        return parse_assistant_message(
            response.choices[0].message, getattr(response, "usage", None)
        )

    async def _create(self, messages: list[dict], tools: list[dict]) -> Any:
        create_kwargs: dict = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
        }
        if tools:
            create_kwargs["tools"] = tools
        return await self._client.chat.completions.create(**create_kwargs)

    async def close(self) -> None:
        """Close the underlying OpenAI client."""
        try:
            await self._client.close()
        except Exception as e:
            logger.debug(f"Error closing OpenAI client: {e}")
