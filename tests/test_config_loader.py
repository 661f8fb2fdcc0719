"""
Tests for configuration loading.

Tests cover env var interpolation, YAML parsing, environment fallback,
caching and validation warnings.
"""

import pytest

from edit_orchestrator.config import config_from_env
from edit_orchestrator.config_loader import (
    load_app_config,
    resolve_env_vars,
    validate_app_config,
)
from edit_orchestrator.models import AppConfig, OrchestratorConfig, RetryConfig


@pytest.fixture
def clean_env(monkeypatch):
    """Remove variables that would leak into the loaded configuration."""
    for name in (
        "CONFIG_PATH",
        "OPENAI_API_KEY",
        "EDIT_ORCHESTRA_API_KEY",
        "EDIT_ORCHESTRA_MODEL",
        "EDIT_ORCHESTRA_MAX_ROUNDS",
        "EDIT_ORCHESTRA_API_VERSION",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestResolveEnvVars:
    """Tests for ${VAR} and ${VAR:-default} interpolation."""

    def test_set_variable(self, monkeypatch):
        monkeypatch.setenv("EO_TEST_HOST", "example.com")
        assert resolve_env_vars("https://${EO_TEST_HOST}/v1") == "https://example.com/v1"

    def test_default_used_when_unset(self, monkeypatch):
        monkeypatch.delenv("EO_TEST_MISSING", raising=False)
        assert resolve_env_vars("${EO_TEST_MISSING:-fallback}") == "fallback"

    def test_unset_without_default_is_empty(self, monkeypatch):
        monkeypatch.delenv("EO_TEST_MISSING", raising=False)
        assert resolve_env_vars("x${EO_TEST_MISSING}y") == "xy"


class TestConfigFromEnv:
    """Tests for environment defaults."""

    def test_defaults(self, clean_env):
        app_config = config_from_env()
        assert app_config.orchestrator.model == "gpt-4o-mini"
        assert app_config.orchestrator.max_rounds == 10
        assert app_config.orchestrator.is_azure is False

    def test_api_key_falls_back_to_openai_key(self, clean_env):
        clean_env.setenv("OPENAI_API_KEY", "sk-openai")
        assert config_from_env().orchestrator.api_key == "sk-openai"

        clean_env.setenv("EDIT_ORCHESTRA_API_KEY", "sk-edit")
        assert config_from_env().orchestrator.api_key == "sk-edit"


class TestLoadAppConfig:
    """Tests for load_app_config."""

    def test_loads_yaml_with_interpolation(self, clean_env, tmp_path):
        clean_env.setenv("EDIT_ORCHESTRA_MODEL", "gpt-4.1")
        path = tmp_path / "config.yaml"
        path.write_text(
            "version: '2.0'\n"
            "orchestrator:\n"
            "  model: ${EDIT_ORCHESTRA_MODEL:-gpt-4o-mini}\n"
            "  max_rounds: 4\n"
            "  round_timeout: 12.5\n"
            "retry:\n"
            "  max_attempts: 6\n"
            "server:\n"
            "  reload: 'true'\n"
        )

        app_config = load_app_config(str(path))

        assert app_config.version == "2.0"
        assert app_config.orchestrator.model == "gpt-4.1"
        assert app_config.orchestrator.max_rounds == 4
        assert app_config.orchestrator.round_timeout == 12.5
        assert app_config.retry.max_attempts == 6
        assert app_config.server.reload is True
        # Sections missing from the file keep the environment defaults
        assert app_config.weather.timeout == 10.0

    def test_result_is_cached(self, clean_env, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("orchestrator:\n  max_rounds: 3\n")

        first = load_app_config(str(path))
        path.write_text("orchestrator:\n  max_rounds: 7\n")

        assert load_app_config(str(path)) is first
        assert load_app_config(str(path), reload=True).orchestrator.max_rounds == 7

    def test_explicit_missing_file_raises(self, clean_env, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_app_config(str(tmp_path / "missing.yaml"))

    def test_config_path_env_missing_file_raises(self, clean_env, tmp_path):
        clean_env.setenv("CONFIG_PATH", str(tmp_path / "missing.yaml"))
        with pytest.raises(FileNotFoundError):
            load_app_config()

    def test_empty_file_raises(self, clean_env, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")
        with pytest.raises(ValueError, match="empty"):
            load_app_config(str(path))

    def test_non_mapping_raises(self, clean_env, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ValueError, match="mapping"):
            load_app_config(str(path))

    def test_bundled_config_loads(self, clean_env):
        """The repository's config/config.yaml parses with default values."""
        app_config = load_app_config()
        assert app_config.orchestrator.base_url == "https://api.openai.com/v1"
        assert app_config.orchestrator.api_version is None
        assert app_config.server.max_sessions == 256


class TestValidateAppConfig:
    """Tests for validation warnings."""

    def test_missing_api_key_warns(self):
        warnings = validate_app_config(AppConfig())
        assert any("api_key" in w for w in warnings)

    def test_valid_config(self):
        app_config = AppConfig(orchestrator=OrchestratorConfig(api_key="sk-test"))
        assert validate_app_config(app_config) == []

    def test_bad_values(self):
        app_config = AppConfig(
            orchestrator=OrchestratorConfig(api_key="k", max_rounds=0, round_timeout=0),
            retry=RetryConfig(backoff_min=10, backoff_max=1),
        )
        warnings = validate_app_config(app_config)
        assert "orchestrator.max_rounds must be positive" in warnings
        assert "orchestrator.round_timeout must be positive" in warnings
        assert "retry.backoff_min is larger than retry.backoff_max" in warnings
