"""
Configuration management for foundry-relay.

Implements multi-level configuration loading with precedence:
1. Environment variables (highest priority)
2. .env files (./.env.defaults, ./.env, ~/.foundry_relay/.env)
3. Project config (./.foundry_relay/config.yaml)
4. User config (~/.foundry_relay/config.yaml)
5. System config (/etc/foundry_relay/config.yaml)
"""

from pathlib import Path
from typing import Literal, Optional, Tuple

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict, YamlConfigSettingsSource, PydanticBaseSettingsSource


class ConfigurationError(Exception):
    """Raised when a required setting is missing at startup."""


class Config(BaseSettings):
    """Complete configuration schema for foundry-relay with flat structure."""

    model_config = SettingsConfigDict(
        # Load from .env files in order of precedence (lowest to highest)
        env_file=[
            ".env.defaults",
            ".env",
            str(Path.home() / ".foundry_relay" / ".env"),
        ],
        # Load from YAML files in order of precedence (lowest to highest)
        yaml_file=[
            "/etc/foundry_relay/config.yaml",
            str(Path.home() / ".foundry_relay" / "config.yaml"),
            str(Path.cwd() / ".foundry_relay" / "config.yaml"),
        ],
        env_prefix="FOUNDRY_RELAY_",
        case_sensitive=False,
        extra="ignore",
        env_file_encoding="utf-8",
    )

    # =================================================================
    # Remote agent (required)
    # =================================================================

    project_endpoint: str = Field(
        default="", description="Azure AI Foundry project endpoint URL"
    )
    agent_id: str = Field(
        default="", description="Identifier of the Foundry agent to relay to"
    )

    # =================================================================
    # Authentication
    # =================================================================

    playground: bool = Field(
        default=False,
        description="Run without user authentication using the ambient Azure credential",
    )
    auth_handler: str = Field(
        default="AIFoundry", description="Name of the auth handler supplying user tokens"
    )
    obo_tenant_id: Optional[str] = Field(default=None, description="Tenant for on-behalf-of token exchange")
    obo_client_id: Optional[str] = Field(default=None, description="App registration used for on-behalf-of exchange")
    obo_client_secret: Optional[str] = Field(default=None, description="Secret of the on-behalf-of app registration")

    # =================================================================
    # Hosting
    # =================================================================

    host: str = Field(default="127.0.0.1", description="Host to bind the API server to")
    port: int = Field(default=3978, ge=1, le=65535, description="Port to bind the API server to")
    log_level: Literal["debug", "info", "warning", "error"] = Field(
        default="info", description="Minimum log level"
    )

    # =================================================================
    # User-visible messages
    # =================================================================

    welcome_message: str = Field(default="Hello and Welcome to the Stocks agent!")
    processing_message: str = Field(default="Just a moment please..")
    fetching_message: str = Field(default="Arranging deck chairs.")
    dispatching_message: str = Field(default="Flagging stock traders down..")
    error_message: str = Field(default="An error occurred while processing your request.")
    signout_message: str = Field(default="You have signed out")
    cache_cleared_message: str = Field(default="The agent model cache has been cleared.")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings sources to include YAML support."""
        yaml_settings = YamlConfigSettingsSource(settings_cls)
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            yaml_settings,
            file_secret_settings,
        )

    def validate_required(self) -> "Config":
        """Check the settings the relay cannot start without.

        Raises:
            ConfigurationError: If the project endpoint or agent id is empty.
        """
        if not self.project_endpoint:
            raise ConfigurationError("AzureAIFoundryProjectEndpoint is not configured.")
        if not self.agent_id:
            raise ConfigurationError("AgentID is not configured.")
        return self

    def uses_on_behalf_of(self) -> bool:
        """Whether user tokens are exchanged through an app registration."""
        return bool(self.obo_tenant_id and self.obo_client_id and self.obo_client_secret)


def load_config() -> Config:
    """
    Load and validate configuration from all sources.

    Returns:
        Config: The loaded configuration

    Raises:
        ConfigurationError: If a required setting is missing.

    Examples:
        Using environment variables:
        # export FOUNDRY_RELAY_PROJECT_ENDPOINT=https://my-project.services.ai.azure.com/api/projects/stocks
        # export FOUNDRY_RELAY_AGENT_ID=asst_abc123
        >>> config = load_config()
        >>> print(config.agent_id)
        'asst_abc123'

        Using .env file:
        # .env
        FOUNDRY_RELAY_PLAYGROUND=true
    """
    return Config().validate_required()
