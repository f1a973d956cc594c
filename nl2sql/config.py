"""
Application Configuration

Pydantic-based settings management using environment variables.
Settings are grouped by concern (llm, database, agent, tools, logging) and
cached behind get_settings().

Usage:
    from nl2sql.config import get_settings

    settings = get_settings()
    policy = settings.guard_policy()
    print(settings.agent.max_iterations)
"""

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Literal
from urllib.parse import urlparse

from dotenv import load_dotenv
from pydantic import AliasChoices, AnyUrl, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from nl2sql.models.query import GuardPolicy


class LLMSettings(BaseSettings):
    """LLM provider configuration."""

    default_provider: Literal["openai", "local"] = Field(
        default="openai", description="LLM provider used for SQL generation"
    )

    # OpenAI configuration
    openai_api_key: str | None = Field(
        None,
        description="OpenAI API key",
        min_length=20,
    )
    openai_model: str = Field(default="gpt-4o-mini", description="OpenAI chat model")

    # Local model configuration (any OpenAI-compatible server)
    local_base_url: str = Field(
        default="http://localhost:11434",
        description="Base URL for local model server (Ollama, vLLM, etc.)",
    )
    local_model: str = Field(default="llama3.1:8b", description="Local model name")

    temperature: float = Field(
        default=0.0,
        ge=0.0,
        le=2.0,
        description="Temperature for LLM responses (0.0 = deterministic)",
    )
    max_tokens: int = Field(
        default=1000,
        gt=0,
        le=16000,
        description="Maximum tokens per LLM response",
    )
    timeout: int = Field(
        default=30,
        gt=0,
        description="Request timeout in seconds",
    )

    model_config = SettingsConfigDict(
        env_prefix="LLM_",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("openai_api_key")
    @classmethod
    def validate_openai_key(cls, v: str | None) -> str | None:
        """Validate OpenAI API key format."""
        if v and not v.startswith("sk-"):
            raise ValueError("OpenAI API key must start with 'sk-'")
        return v

    @model_validator(mode="after")
    def validate_provider_keys(self) -> "LLMSettings":
        """Ensure an API key is set when a hosted provider is selected."""
        if self.default_provider == "openai" and not self.openai_api_key:
            raise ValueError("API key required for openai provider. Set LLM_OPENAI_API_KEY")
        return self


class DatabaseSettings(BaseSettings):
    """Target database configuration."""

    url: AnyUrl | None = Field(
        None,
        description="Target database connection URL",
    )
    pool_size: int = Field(
        default=10,
        gt=0,
        le=50,
        description="Database connection pool size",
    )
    timeout: int = Field(
        default=30,
        gt=0,
        description="Statement timeout in seconds",
    )
    schema_name: str = Field(
        default="public",
        description="Schema inspected by the schema-inspector action",
    )
    allow_write_sql: bool = Field(
        default=False,
        description="Permit non-SELECT statements (global write toggle)",
        validation_alias=AliasChoices("DATABASE_ALLOW_WRITE_SQL", "ALLOW_WRITE_SQL"),
    )

    model_config = SettingsConfigDict(
        env_prefix="DATABASE_",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("url", mode="before")
    @classmethod
    def normalize_url(cls, v: str | AnyUrl | None) -> str | AnyUrl | None:
        """Treat empty strings as missing."""
        if v == "":
            return None
        return v

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: AnyUrl | None) -> AnyUrl | None:
        """Validate supported database URL schemes."""
        if v is None:
            return v
        parsed = urlparse(str(v))
        scheme = parsed.scheme.split("+")[0].lower() if parsed.scheme else ""
        if scheme not in {"postgres", "postgresql"}:
            raise ValueError("DATABASE_URL must use the postgresql scheme.")
        if not parsed.hostname:
            raise ValueError("DATABASE_URL must include a host.")
        return v


class AgentSettings(BaseSettings):
    """Reason/act agent configuration."""

    enabled: bool = Field(
        default=True,
        description="Enable agent mode (disabled = agent requests fall back to direct mode)",
    )
    max_iterations: int = Field(
        default=5,
        ge=1,
        le=25,
        description="Maximum model turns per agent run",
        validation_alias=AliasChoices("AGENT_MAX_ITERATIONS", "REACT_MAX_ITERATIONS"),
    )
    sample_rows: int = Field(
        default=3,
        ge=1,
        le=20,
        description="Rows returned by 'sample <table>'",
    )

    model_config = SettingsConfigDict(
        env_prefix="AGENT_",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )


class ToolsSettings(BaseSettings):
    """Action handler configuration."""

    policy_path: str | None = Field(
        default=None,
        description="Optional YAML file that can disable individual actions",
    )

    model_config = SettingsConfigDict(
        env_prefix="TOOLS_",
        env_file=".env",
        extra="ignore",
    )


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Application log level",
    )
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log message format",
    )
    date_format: str = Field(
        default="%Y-%m-%d %H:%M:%S",
        description="Log timestamp format",
    )
    file: Path | None = Field(
        default=None,
        description="Optional log file path (None = stdout only)",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        extra="ignore",
    )

    def configure(self) -> None:
        """Configure Python logging with these settings."""
        handlers: list[logging.Handler] = [logging.StreamHandler()]

        if self.file:
            self.file.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(self.file))

        logging.basicConfig(
            level=getattr(logging, self.level),
            format=self.format,
            datefmt=self.date_format,
            handlers=handlers,
            force=True,
        )


class Settings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.

    Environment Variables:
        ENVIRONMENT: Deployment environment (development, staging, production)
        APP_NAME: Application name for logging
        DEBUG: Enable debug mode
        API_HOST / API_PORT: HTTP server binding
        LLM_*: LLM provider configuration (see LLMSettings)
        DATABASE_*: Target database configuration (see DatabaseSettings)
        ALLOW_WRITE_SQL: Global write toggle (see DatabaseSettings)
        AGENT_*: Agent loop configuration (see AgentSettings)
        TOOLS_*: Action handler configuration (see ToolsSettings)
        LOG_*: Logging configuration (see LoggingSettings)

    Example:
        >>> settings = get_settings()
        >>> settings.guard_policy().allow_writes
        False
    """

    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )
    app_name: str = Field(
        default="nl2sql",
        description="Application name",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API server host",
    )
    api_port: int = Field(
        default=3000,
        gt=0,
        le=65535,
        description="API server port",
    )

    llm: LLMSettings = Field(default_factory=LLMSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    agent: AgentSettings = Field(default_factory=AgentSettings)
    tools: ToolsSettings = Field(default_factory=ToolsSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    def guard_policy(self) -> GuardPolicy:
        """Build the read/write policy threaded into every guard call."""
        return GuardPolicy(allow_writes=self.database.allow_write_sql)

    @model_validator(mode="after")
    def configure_logging(self) -> "Settings":
        """Configure logging when settings are loaded."""
        self.logging.configure()
        return self

    def model_post_init(self, __context) -> None:
        """Log configuration on initialization."""
        logger = logging.getLogger(__name__)
        logger.info(
            f"Settings loaded for {self.app_name} ({self.environment})",
            extra={
                "environment": self.environment,
                "llm_provider": self.llm.default_provider,
                "allow_write_sql": self.database.allow_write_sql,
                "agent_enabled": self.agent.enabled,
                "max_iterations": self.agent.max_iterations,
            },
        )


_DOTENV_PATH = Path(__file__).resolve().parents[1] / ".env"


def _apply_dotenv_precedence() -> None:
    env_source = os.getenv("NL2SQL_ENV_SOURCE", "dotenv").lower()
    if env_source not in {"dotenv", "envfile", "file"}:
        return
    if _DOTENV_PATH.exists():
        load_dotenv(_DOTENV_PATH, override=True)


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Settings are loaded once per process; a configuration reload is a
    clear_settings_cache() followed by get_settings().

    Returns:
        Settings: Singleton settings instance
    """
    _apply_dotenv_precedence()
    return Settings()


def clear_settings_cache() -> None:
    """
    Clear the settings cache.

    Useful for testing when you need to reload settings with different
    environment variables.
    """
    get_settings.cache_clear()
