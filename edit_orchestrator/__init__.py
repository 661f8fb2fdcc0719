"""
EditOrchestra - tool-call orchestration for a language-model editing assistant

This package provides:
- A round-based tool-call loop over the OpenAI chat completions API
- An editor capability surface (insert, delete, rewrite, format, locate)
- A scripted weather/clothing demo surface
- A FastAPI bridge and an interactive CLI
"""

from .orchestration import OrchestrationLoop, OrchestrationResult, ToolCallRecord
from .llm_call import CompletionClient
from .errors import (
    CompletionError,
    EditOrchestraError,
    OrchestrationCancelled,
    RoundLimitExceeded,
    RoundTimeoutError,
)

__all__ = [
    "OrchestrationLoop",
    "OrchestrationResult",
    "ToolCallRecord",
    "CompletionClient",
    "CompletionError",
    "EditOrchestraError",
    "OrchestrationCancelled",
    "RoundLimitExceeded",
    "RoundTimeoutError",
]

__version__ = "0.1.0"
