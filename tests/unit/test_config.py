"""
Unit tests for configuration management.

Tests defaults, environment variable overrides and the startup check of
required settings.
"""

import pytest

from foundry_relay.config import Config, ConfigurationError, load_config


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Run in an empty directory without FOUNDRY_RELAY_* variables."""
    monkeypatch.chdir(tmp_path)
    for name in [
        "FOUNDRY_RELAY_PROJECT_ENDPOINT",
        "FOUNDRY_RELAY_AGENT_ID",
        "FOUNDRY_RELAY_PLAYGROUND",
        "FOUNDRY_RELAY_PORT",
    ]:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestConfigDefaults:
    """Test default configuration values."""

    def test_default_messages(self, clean_env):
        config = Config()

        assert config.welcome_message == "Hello and Welcome to the Stocks agent!"
        assert config.processing_message == "Just a moment please.."
        assert config.fetching_message == "Arranging deck chairs."
        assert config.dispatching_message == "Flagging stock traders down.."
        assert config.error_message == "An error occurred while processing your request."

    def test_default_hosting(self, clean_env):
        config = Config()

        assert config.playground is False
        assert config.auth_handler == "AIFoundry"
        assert config.port == 3978
        assert config.uses_on_behalf_of() is False


class TestEnvironmentOverrides:
    """Test environment variable overrides."""

    def test_env_vars_are_read(self, clean_env):
        clean_env.setenv("FOUNDRY_RELAY_PROJECT_ENDPOINT", "https://stocks.services.ai.azure.com/api/projects/p")
        clean_env.setenv("FOUNDRY_RELAY_AGENT_ID", "asst_abc")
        clean_env.setenv("FOUNDRY_RELAY_PLAYGROUND", "true")

        config = load_config()

        assert config.project_endpoint == "https://stocks.services.ai.azure.com/api/projects/p"
        assert config.agent_id == "asst_abc"
        assert config.playground is True

    def test_dotenv_file_is_read(self, clean_env, tmp_path):
        (tmp_path / ".env").write_text(
            "FOUNDRY_RELAY_PROJECT_ENDPOINT=https://from-dotenv\nFOUNDRY_RELAY_AGENT_ID=asst_env\n"
        )

        config = load_config()

        assert config.project_endpoint == "https://from-dotenv"
        assert config.agent_id == "asst_env"

    def test_invalid_port_rejected(self, clean_env):
        clean_env.setenv("FOUNDRY_RELAY_PORT", "0")

        with pytest.raises(ValueError):
            Config()


class TestRequiredSettings:
    """Missing required settings are fatal."""

    def test_missing_endpoint(self, clean_env):
        clean_env.setenv("FOUNDRY_RELAY_AGENT_ID", "asst_abc")

        with pytest.raises(ConfigurationError, match="AzureAIFoundryProjectEndpoint is not configured."):
            load_config()

    def test_missing_agent_id(self, clean_env):
        clean_env.setenv("FOUNDRY_RELAY_PROJECT_ENDPOINT", "https://example")

        with pytest.raises(ConfigurationError, match="AgentID is not configured."):
            load_config()

    def test_validate_required_returns_config(self):
        config = Config(project_endpoint="https://example", agent_id="asst_abc")
        assert config.validate_required() is config

    def test_on_behalf_of_needs_all_settings(self):
        partial = Config(obo_tenant_id="t", obo_client_id="c")
        complete = Config(obo_tenant_id="t", obo_client_id="c", obo_client_secret="s")

        assert partial.uses_on_behalf_of() is False
        assert complete.uses_on_behalf_of() is True
