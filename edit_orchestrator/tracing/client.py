"""
Process-wide Langfuse client for edit request traces.

The server connects once at startup from the ``langfuse`` config section.
When the keys are missing or Langfuse rejects them, the client stays
disconnected and every tracing call in the package becomes a no-op, so
edit requests never depend on the tracing backend.
"""

import logging
from typing import Optional

from langfuse import Langfuse

from ..models import LangfuseConfig

logger = logging.getLogger(__name__)


class TracingClient:
    """A connected Langfuse client, or the reason there is none."""

    def __init__(self, langfuse: Optional[Langfuse] = None, error: Optional[str] = None):
        self.langfuse = langfuse
        self.error = error

    @property
    def enabled(self) -> bool:
        return self.langfuse is not None

    @classmethod
    def connect(
        cls, config: LangfuseConfig, release: Optional[str] = None
    ) -> "TracingClient":
        """
        Connect to Langfuse and verify the keys.

        Args:
            config: The ``langfuse`` config section.
            release: Version tag attached to every trace.

        Returns:
            A client that is enabled only when the auth check passed.
        """
        if not config.public_key or not config.secret_key:
            return cls(error="Langfuse credentials not configured")

        try:
            langfuse = Langfuse(
                public_key=config.public_key,
                secret_key=config.secret_key,
                host=config.host or None,
                debug=config.debug,
                release=release,
            )
            authenticated = langfuse.auth_check()
        except Exception as e:
            error = f"Failed to initialize Langfuse client: {e}"
            logger.warning(f"Tracing disabled: {error}")
            return cls(error=error)

        if not authenticated:
            error = f"Langfuse auth_check() failed for {config.host}"
            logger.warning(f"Tracing disabled: {error}")
            return cls(error=error)

        logger.info(f"Langfuse tracing enabled (host: {config.host}, release: {release})")
        return cls(langfuse)

    def flush(self) -> None:
        """Send buffered observations; called after every edit request."""
        if self.langfuse is None:
            return
        try:
            self.langfuse.flush()
        except Exception as e:
            logger.warning(f"Failed to flush tracing events: {e}")

    def shutdown(self) -> None:
        if self.langfuse is None:
            return
        try:
            self.langfuse.shutdown()
        except Exception as e:
            logger.warning(f"Error during tracing client shutdown: {e}")


_tracing_client: Optional[TracingClient] = None


def init_tracing_client(
    config: LangfuseConfig, release: Optional[str] = None
) -> TracingClient:
    """Connect the process-wide tracing client."""
    global _tracing_client
    _tracing_client = TracingClient.connect(config, release=release)
    return _tracing_client


def get_tracing_client() -> Optional[TracingClient]:
    return _tracing_client


def shutdown_tracing() -> None:
    """Flush and drop the process-wide tracing client."""
    global _tracing_client
    if _tracing_client:
        _tracing_client.shutdown()
        _tracing_client = None
