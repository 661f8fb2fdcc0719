"""
Data models for EditOrchestra.
"""

from .config import (
    OrchestratorConfig,
    RetryConfig,
    ServerConfig,
    WeatherConfig,
    LoggingConfig,
    LangfuseConfig,
    AppConfig,
)

__all__ = [
    "OrchestratorConfig",
    "RetryConfig",
    "ServerConfig",
    "WeatherConfig",
    "LoggingConfig",
    "LangfuseConfig",
    "AppConfig",
]
