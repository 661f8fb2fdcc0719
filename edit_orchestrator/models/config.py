"""
Configuration models for EditOrchestra.

Defines dataclasses for the unified YAML configuration file.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class OrchestratorConfig:
    """Configuration for the completion endpoint and the tool-call loop."""
    base_url: str = "https://api.openai.com/v1"
    api_key: str = ""
    api_version: Optional[str] = None  # set for Azure OpenAI deployments
    model: str = "gpt-4o-mini"
    temperature: float = 0.2
    max_rounds: int = 10
    round_timeout: float = 60.0

    @property
    def is_azure(self) -> bool:
        """Azure deployments are addressed with an API version."""
        return bool(self.api_version)


@dataclass
class RetryConfig:
    """Retry policy for transient completion endpoint failures."""
    max_attempts: int = 3
    backoff_min: float = 1.0
    backoff_max: float = 30.0


@dataclass
class ServerConfig:
    """Configuration for the FastAPI server."""
    host: str = "0.0.0.0"
    port: int = 8000
    workers: int = 1
    reload: bool = False
    max_sessions: int = 256


@dataclass
class WeatherConfig:
    """Configuration for the weather lookup used by the scripted demo."""
    forecast_url: str = "https://api.open-meteo.com/v1/forecast"
    timeout: float = 10.0


@dataclass
class LoggingConfig:
    """Configuration for logging."""
    level: str = "INFO"


@dataclass
class LangfuseConfig:
    """Configuration for Langfuse observability.

    Tracing auto-enables when both public_key and secret_key are provided.
    """
    public_key: str = ""
    secret_key: str = ""
    host: str = "https://cloud.langfuse.com"
    debug: bool = False


@dataclass
class AppConfig:
    """
    Unified application configuration container.

    Holds all configuration sections loaded from config/config.yaml.
    """
    version: str = "1.0"
    orchestrator: OrchestratorConfig = field(default_factory=OrchestratorConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    weather: WeatherConfig = field(default_factory=WeatherConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    langfuse: LangfuseConfig = field(default_factory=LangfuseConfig)

    @property
    def log_level(self) -> str:
        """Shortcut for logging.level."""
        return self.logging.level
