"""
Configuration management for the Apitherapy Care backend.

This module provides centralized configuration using Pydantic Settings
for environment-based configuration management.
"""

from typing import List, Optional

import os
from pathlib import Path

from dotenv import load_dotenv  # type: ignore
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Database configuration settings."""

    model_config = SettingsConfigDict(env_prefix="MONGO_")

    uri: str = Field(default="", description="MongoDB connection URI")
    db_name: str = Field(default="apitherapy", description="MongoDB database name")

    @field_validator("uri")
    @classmethod
    def validate_mongo_uri(cls, v: str) -> str:
        """Validate MongoDB URI format (empty means not configured)."""
        if v and not v.startswith(("mongodb://", "mongodb+srv://")):
            raise ValueError(
                "MongoDB URI must start with 'mongodb://' or 'mongodb+srv://'"
            )
        return v

    @property
    def is_configured(self) -> bool:
        return bool(self.uri)


class SessionSettings(BaseSettings):
    """Treatment session persistence and autosave settings."""

    model_config = SettingsConfigDict(env_prefix="SESSION_")

    storage_dir: str = Field(
        default="./storage/session", description="Directory holding the durable session slot"
    )
    storage_key: str = Field(
        default="apitherapy_current_session", description="Fixed key of the durable session slot"
    )
    autosave_settle_ms: int = Field(
        default=400, description="Delay before the saving indicator settles"
    )

    @field_validator("storage_key")
    @classmethod
    def validate_storage_key(cls, v: str) -> str:
        """Keys become file names, so path separators are rejected."""
        if not v or "/" in v or "\\" in v:
            raise ValueError("Session storage key must be a non-empty name without path separators")
        return v

    @field_validator("autosave_settle_ms")
    @classmethod
    def validate_settle_ms(cls, v: int) -> int:
        if v < 0 or v > 10000:
            raise ValueError("Autosave settle delay must be between 0 and 10000 ms")
        return v

    @property
    def autosave_settle_seconds(self) -> float:
        return self.autosave_settle_ms / 1000.0


class MigrationSettings(BaseSettings):
    """Batched medical record migration settings."""

    model_config = SettingsConfigDict(env_prefix="MIGRATION_")

    batch_threshold: int = Field(
        default=450, description="Operations per batch before a flush is forced"
    )
    max_batch_operations: int = Field(
        default=500, description="Hard per-batch write limit of the backing store"
    )
    record_id: str = Field(default="v1", description="Document id of the nested medical record")
    renamed_record_id: str = Field(
        default="patient_level_data", description="Target document id for the record rename"
    )
    use_transactions: bool = Field(
        default=True, description="Commit each batch inside a MongoDB transaction (needs a replica set)"
    )

    @model_validator(mode="after")
    def validate_threshold(self) -> "MigrationSettings":
        """The safety threshold must leave headroom below the hard limit."""
        if self.batch_threshold < 1:
            raise ValueError("Batch threshold must be at least 1")
        if self.batch_threshold >= self.max_batch_operations:
            raise ValueError(
                f"Batch threshold ({self.batch_threshold}) must be strictly below "
                f"the hard batch limit ({self.max_batch_operations})"
            )
        return self


class AzureOpenAISettings(BaseSettings):
    """Azure OpenAI configuration settings."""

    model_config = SettingsConfigDict(env_prefix="AZURE_OPENAI_")

    endpoint: str = Field(default="", description="Azure OpenAI endpoint URL")
    api_key: str = Field(default="", description="Azure OpenAI API key")
    api_version: str = Field(default="2024-12-01-preview", description="Azure OpenAI API version")
    deployment_name: str = Field(default="gpt-4o-mini", description="Azure OpenAI chat deployment name")
    temperature: float = Field(default=0.2, description="Temperature for protocol recommendations")

    @field_validator("endpoint")
    @classmethod
    def validate_endpoint(cls, v: str) -> str:
        """Validate Azure OpenAI endpoint format."""
        if v and not (v.startswith("https://") and ".openai.azure.com" in v):
            raise ValueError("Invalid Azure OpenAI endpoint format. Must be: https://xxx.openai.azure.com/")
        return v

    @property
    def is_configured(self) -> bool:
        return bool(self.endpoint and self.api_key and self.deployment_name)


class CORSSettings(BaseSettings):
    """CORS configuration settings."""

    model_config = SettingsConfigDict(env_prefix="CORS_")

    allowed_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
        description="Allowed CORS origins",
    )
    allow_credentials: bool = Field(default=True, description="Allow credentials in CORS")


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = Field(default="INFO", description="Logging level")
    format: str = Field(default="json", description="Log format (json or text)")

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate logging level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        if v.lower() not in ("json", "text"):
            raise ValueError("Log format must be 'json' or 'text'")
        return v.lower()


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # Application settings
    app_name: str = Field(default="Apitherapy-Care", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    app_env: str = Field(default="development", description="Application environment")
    debug: bool = Field(default=False, description="Debug mode")
    port: int = Field(default=8000, description="Application port")
    host: str = Field(default="0.0.0.0", description="Application host")

    # Sub-settings
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    session: SessionSettings = Field(default_factory=SessionSettings)
    migration: MigrationSettings = Field(default_factory=MigrationSettings)
    azure_openai: AzureOpenAISettings = Field(default_factory=AzureOpenAISettings)
    cors: CORSSettings = Field(default_factory=CORSSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    def __init__(self, **kwargs):
        super().__init__(**kwargs)

        # Override sub-settings with environment variables
        self.database = DatabaseSettings()
        self.session = SessionSettings()
        self.migration = MigrationSettings()
        self.azure_openai = AzureOpenAISettings()
        self.cors = CORSSettings()
        self.logging = LoggingSettings()

    @field_validator("app_env")
    @classmethod
    def validate_app_env(cls, v: str) -> str:
        """Validate application environment."""
        valid_envs = ["development", "staging", "production", "testing"]
        if v.lower() not in valid_envs:
            raise ValueError(f"App environment must be one of: {valid_envs}")
        return v.lower()

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Validate port number."""
        if not 1 <= v <= 65535:
            raise ValueError("Port must be between 1 and 65535")
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env == "development"

    @property
    def is_testing(self) -> bool:
        """Check if running in testing mode."""
        return self.app_env == "testing"


# Global settings instance (loaded after attempting to read .env)
_settings: Optional[Settings] = None


def _load_env_file_if_available() -> None:
    """Best-effort load of .env by searching current and parent directories.

    This helps when the working directory is not the project root and
    pydantic's env_file does not get resolved as expected.
    """
    cwd = Path(os.getcwd()).resolve()
    for parent in [cwd, *cwd.parents]:
        candidate = parent / ".env"
        if candidate.exists():
            # Do not override already-set environment variables
            load_dotenv(dotenv_path=str(candidate), override=False)
            break


def get_settings() -> Settings:
    """Get application settings instance (lazy-init with .env discovery)."""
    global _settings
    if _settings is None:
        _load_env_file_if_available()
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
