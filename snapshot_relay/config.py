"""
Configuration management for Snapshot Relay.
"""

from typing import List, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigError


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="Snapshot Relay")
    debug: bool = Field(default=False)
    environment: str = Field(default="development")

    # API
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(
        default=3000, validation_alias=AliasChoices("api_port", "PORT", "API_PORT")
    )
    api_workers: int = Field(default=1)

    # Remote tenant (M2M OAuth2 client)
    tenant_url: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("tenant_url", "QLIK_TENANT_URL")
    )
    m2m_client_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("m2m_client_id", "QLIK_M2M_CLIENT_ID"),
    )
    m2m_client_secret: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("m2m_client_secret", "QLIK_M2M_CLIENT_SECRET"),
    )
    oauth_scope: str = Field(default="user_default")
    remote_timeout_seconds: float = Field(default=30.0)

    # Artifact storage
    snapshot_store_uri: str = Field(default="file://./public/snapshots")
    public_dir: str = Field(default="public")
    public_mount_path: str = Field(default="/public")

    # Sync
    task_resource_type: str = Field(default="sharingservicetask")
    task_resource_subtype: str = Field(default="chart-monitoring")
    execution_id: str = Field(default="latest")
    max_concurrent_fetches: int = Field(
        default=1,
        ge=1,
        description="Tasks fetched in parallel during a refresh. 1 keeps remote calls in listing order.",
    )

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")

    def missing_remote_credentials(self) -> List[str]:
        """Names of the required remote variables that are unset or blank."""
        required = {
            "QLIK_TENANT_URL": self.tenant_url,
            "QLIK_M2M_CLIENT_ID": self.m2m_client_id,
            "QLIK_M2M_CLIENT_SECRET": self.m2m_client_secret,
        }
        return [name for name, value in required.items() if not (value or "").strip()]

    def require_remote_credentials(self) -> None:
        """Raise ConfigError unless every remote credential is configured."""
        missing = self.missing_remote_credentials()
        if missing:
            raise ConfigError(
                f"Missing required environment variable(s): {', '.join(missing)}. "
                "Set them in your .env file or environment."
            )


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get application settings."""
    return settings
