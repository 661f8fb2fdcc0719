"""
Environment configuration for EditOrchestra.

Builds an AppConfig from environment variables with sensible defaults
for local development. A YAML file (see config_loader) is layered on top
of these values when present.
"""

import os

from dotenv import load_dotenv

from .models import (
    AppConfig,
    LangfuseConfig,
    LoggingConfig,
    OrchestratorConfig,
    RetryConfig,
    ServerConfig,
    WeatherConfig,
)

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    return os.getenv(name, str(default)).lower() == "true"


def config_from_env() -> AppConfig:
    """Build the application configuration from environment variables."""
    return AppConfig(
        orchestrator=OrchestratorConfig(
            base_url=os.getenv("EDIT_ORCHESTRA_BASE_URL", "https://api.openai.com/v1"),
            api_key=os.getenv("EDIT_ORCHESTRA_API_KEY", os.getenv("OPENAI_API_KEY", "")),
            api_version=os.getenv("EDIT_ORCHESTRA_API_VERSION") or None,
            model=os.getenv("EDIT_ORCHESTRA_MODEL", "gpt-4o-mini"),
            temperature=float(os.getenv("EDIT_ORCHESTRA_TEMPERATURE", "0.2")),
            max_rounds=int(os.getenv("EDIT_ORCHESTRA_MAX_ROUNDS", "10")),
            round_timeout=float(os.getenv("EDIT_ORCHESTRA_ROUND_TIMEOUT", "60")),
        ),
        retry=RetryConfig(
            max_attempts=int(os.getenv("EDIT_ORCHESTRA_RETRY_ATTEMPTS", "3")),
            backoff_min=float(os.getenv("EDIT_ORCHESTRA_BACKOFF_MIN", "1.0")),
            backoff_max=float(os.getenv("EDIT_ORCHESTRA_BACKOFF_MAX", "30.0")),
        ),
        server=ServerConfig(
            host=os.getenv("SERVER_HOST", "0.0.0.0"),
            port=int(os.getenv("SERVER_PORT", "8000")),
            workers=int(os.getenv("SERVER_WORKERS", "1")),
            reload=_env_bool("SERVER_RELOAD", False),
            max_sessions=int(os.getenv("SERVER_MAX_SESSIONS", "256")),
        ),
        weather=WeatherConfig(
            forecast_url=os.getenv(
                "WEATHER_FORECAST_URL", "https://api.open-meteo.com/v1/forecast"
            ),
            timeout=float(os.getenv("WEATHER_TIMEOUT", "10")),
        ),
        logging=LoggingConfig(level=os.getenv("LOG_LEVEL", "INFO")),
        langfuse=LangfuseConfig(
            public_key=os.getenv("LANGFUSE_PUBLIC_KEY", ""),
            secret_key=os.getenv("LANGFUSE_SECRET_KEY", ""),
            host=os.getenv("LANGFUSE_HOST", "https://cloud.langfuse.com"),
            debug=_env_bool("LANGFUSE_DEBUG", False),
        ),
    )
