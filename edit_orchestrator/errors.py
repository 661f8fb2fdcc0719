"""
Exception hierarchy for EditOrchestra.

Tool-level problems (bad arguments, unknown functions, handler failures)
never raise: they become tool turns the model can react to. The errors
below are the ones that end an orchestration run.
"""


class EditOrchestraError(Exception):
    """Base for all EditOrchestra errors."""


class ConfigError(EditOrchestraError):
    """Missing or invalid configuration."""


class TranscriptError(EditOrchestraError):
    """A turn would break the pairing between tool calls and tool results."""


class CompletionError(EditOrchestraError):
    """The completion endpoint failed after all retries, or refused the request."""


class RoundTimeoutError(CompletionError):
    """A single round exceeded its time limit.

    Attributes:
        round_number: The round that timed out.
        timeout: The configured per-round timeout in seconds.
    """

    def __init__(self, round_number: int, timeout: float) -> None:
        self.round_number = round_number
        self.timeout = timeout
        super().__init__(
            f"Round {round_number} did not complete within {timeout:g}s"
        )


class RoundLimitExceeded(EditOrchestraError):
    """The model kept requesting tool calls past the configured round cap."""

    def __init__(self, max_rounds: int) -> None:
        self.max_rounds = max_rounds
        super().__init__(
            f"Model still requested tool calls after {max_rounds} rounds"
        )


class OrchestrationCancelled(EditOrchestraError):
    """The caller set the cancel token while a run was in flight."""

    def __init__(self, round_number: int) -> None:
        self.round_number = round_number
        super().__init__(f"Orchestration cancelled during round {round_number}")
