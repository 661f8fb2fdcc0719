"""
Configuration loader for EditOrchestra.

Loads configuration from a YAML file with support for
environment variable interpolation. Values missing from the file fall
back to the environment defaults from config.py.
"""

import logging
import os
import re
from dataclasses import replace
from pathlib import Path
from typing import Any, Optional

import yaml

from .config import config_from_env
from .models import (
    AppConfig,
    LangfuseConfig,
    LoggingConfig,
    OrchestratorConfig,
    RetryConfig,
    ServerConfig,
    WeatherConfig,
)

logger = logging.getLogger(__name__)

# Default config path relative to project root
DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config" / "config.yaml"

# Regex for environment variable interpolation: ${VAR} or ${VAR:-default}
ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+)(?::-([^}]*))?\}")

# Singleton cache for app config
_app_config: Optional[AppConfig] = None


def resolve_env_vars(value: str) -> str:
    """
    Resolve environment variable references in a string.

    Supports ${VAR} and ${VAR:-default} syntax.

    Args:
        value: String potentially containing env var references

    Returns:
        String with env vars resolved
    """

    def replace_match(match: re.Match) -> str:
        var_name = match.group(1)
        default_value = match.group(2) if match.group(2) is not None else ""
        return os.environ.get(var_name, default_value)

    return ENV_VAR_PATTERN.sub(replace_match, value)


def _substitute_env_vars_recursive(data: Any) -> Any:
    """Recursively substitute environment variables in a data structure."""
    if isinstance(data, dict):
        return {k: _substitute_env_vars_recursive(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [_substitute_env_vars_recursive(item) for item in data]
    elif isinstance(data, str):
        return resolve_env_vars(data)
    return data


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.lower() == "true"
    return bool(value)


def _parse_orchestrator_config(data: dict, base: OrchestratorConfig) -> OrchestratorConfig:
    """Parse orchestrator configuration from dict."""
    return OrchestratorConfig(
        base_url=data.get("base_url") or base.base_url,
        api_key=data.get("api_key") or base.api_key,
        api_version=data.get("api_version") or base.api_version,
        model=data.get("model") or base.model,
        temperature=float(data.get("temperature", base.temperature)),
        max_rounds=int(data.get("max_rounds", base.max_rounds)),
        round_timeout=float(data.get("round_timeout", base.round_timeout)),
    )


def _parse_retry_config(data: dict, base: RetryConfig) -> RetryConfig:
    """Parse retry configuration from dict."""
    return RetryConfig(
        max_attempts=int(data.get("max_attempts", base.max_attempts)),
        backoff_min=float(data.get("backoff_min", base.backoff_min)),
        backoff_max=float(data.get("backoff_max", base.backoff_max)),
    )


def _parse_server_config(data: dict, base: ServerConfig) -> ServerConfig:
    """Parse server configuration from dict."""
    return ServerConfig(
        host=data.get("host", base.host),
        port=int(data.get("port", base.port)),
        workers=int(data.get("workers", base.workers)),
        reload=_as_bool(data.get("reload", base.reload)),
        max_sessions=int(data.get("max_sessions", base.max_sessions)),
    )


def _parse_weather_config(data: dict, base: WeatherConfig) -> WeatherConfig:
    """Parse weather demo configuration from dict."""
    return WeatherConfig(
        forecast_url=data.get("forecast_url", base.forecast_url),
        timeout=float(data.get("timeout", base.timeout)),
    )


def _parse_langfuse_config(data: dict, base: LangfuseConfig) -> LangfuseConfig:
    """Parse Langfuse configuration from dict."""
    return LangfuseConfig(
        public_key=data.get("public_key") or base.public_key,
        secret_key=data.get("secret_key") or base.secret_key,
        host=data.get("host") or base.host,
        debug=_as_bool(data.get("debug", base.debug)),
    )


def validate_app_config(app_config: AppConfig) -> list[str]:
    """
    Validate an application configuration.

    Returns:
        List of validation warnings (empty if valid)
    """
    errors = []
    orchestrator = app_config.orchestrator

    if not orchestrator.base_url:
        errors.append("orchestrator.base_url is empty")
    if not orchestrator.model:
        errors.append("orchestrator.model is empty")
    if not orchestrator.api_key:
        errors.append("orchestrator.api_key is empty; endpoint calls will be rejected")
    if orchestrator.max_rounds <= 0:
        errors.append("orchestrator.max_rounds must be positive")
    if orchestrator.round_timeout <= 0:
        errors.append("orchestrator.round_timeout must be positive")
    if app_config.retry.max_attempts <= 0:
        errors.append("retry.max_attempts must be positive")
    if app_config.retry.backoff_min > app_config.retry.backoff_max:
        errors.append("retry.backoff_min is larger than retry.backoff_max")

    return errors


def load_app_config(path: Optional[str] = None, reload: bool = False) -> AppConfig:
    """
    Load unified application configuration.

    Uses a singleton pattern - subsequent calls return the cached config
    unless reload=True is specified.

    Args:
        path: Path to the YAML configuration file. If None, uses
              CONFIG_PATH env var or the default path (config/config.yaml).
        reload: If True, force reload from disk instead of using cache.

    Returns:
        AppConfig with all configuration loaded

    Raises:
        FileNotFoundError: If an explicitly requested config file doesn't exist
        ValueError: If the config file is empty or not a mapping
    """
    global _app_config

    if _app_config is not None and not reload:
        return _app_config

    explicit = path is not None or "CONFIG_PATH" in os.environ
    if path is None:
        path = os.environ.get("CONFIG_PATH", str(DEFAULT_CONFIG_PATH))

    config_path = Path(path)
    env_config = config_from_env()

    if not config_path.exists():
        if explicit:
            raise FileNotFoundError(
                f"Configuration file not found at {config_path}. "
                f"Create one from config/config.yaml or unset CONFIG_PATH."
            )
        logger.debug(f"No configuration file at {config_path}, using environment settings")
        app_config = env_config
    else:
        logger.info(f"Loading configuration from {config_path}")

        with open(config_path, "r") as f:
            raw_config = yaml.safe_load(f)

        if raw_config is None:
            raise ValueError(f"Configuration file {config_path} is empty")
        if not isinstance(raw_config, dict):
            raise ValueError(f"Configuration file {config_path} must be a mapping")

        raw_config = _substitute_env_vars_recursive(raw_config)

        app_config = replace(
            env_config,
            version=str(raw_config.get("version", "1.0")),
            orchestrator=_parse_orchestrator_config(
                raw_config.get("orchestrator") or {}, env_config.orchestrator
            ),
            retry=_parse_retry_config(raw_config.get("retry") or {}, env_config.retry),
            server=_parse_server_config(
                raw_config.get("server") or {}, env_config.server
            ),
            weather=_parse_weather_config(
                raw_config.get("weather") or {}, env_config.weather
            ),
            logging=LoggingConfig(
                level=(raw_config.get("logging") or {}).get(
                    "level", env_config.logging.level
                )
            ),
            langfuse=_parse_langfuse_config(
                raw_config.get("langfuse") or {}, env_config.langfuse
            ),
        )

    for warning in validate_app_config(app_config):
        logger.warning(f"Config validation warning: {warning}")

    _app_config = app_config
    logger.debug(
        f"Configuration loaded: model={app_config.orchestrator.model}, "
        f"max_rounds={app_config.orchestrator.max_rounds}"
    )
    return app_config


def reset_config_cache() -> None:
    """Reset the configuration cache, forcing a reload on next access."""
    global _app_config
    _app_config = None
    logger.debug("Configuration cache reset")
