# src/vault_api/config/settings.py
from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing_extensions import Self

VALID_DEPLOYMENT_MODES = ["local-dev", "aws-mock", "aws-prod"]
MIN_KEY_SUFFIX_LENGTH = 9


class Settings(BaseSettings):
    """
    Single source of truth for all application settings.

    Configuration precedence:
    1. Environment variables (highest priority)
    2. .env file (if exists)
    3. Default values in this class (lowest priority)

    Usage:
        from vault_api.config.settings import get_settings
        settings = get_settings()
        bucket_name = settings.s3_bucket_name
    """

    # Application Settings
    app_name: str = Field(
        default="file-vault",
        description="Application name"
    )

    # Deployment Mode
    deployment_mode: str = Field(
        default="local-dev",
        description="Deployment mode: local-dev, aws-mock, or aws-prod"
    )

    # AWS Core Settings
    aws_region: str = Field(
        default="us-east-1",
        alias="AWS_DEFAULT_REGION"
    )

    aws_access_key_id: Optional[str] = Field(
        default=None,
        alias="AWS_ACCESS_KEY_ID"
    )

    aws_secret_access_key: Optional[str] = Field(
        default=None,
        alias="AWS_SECRET_ACCESS_KEY"
    )

    aws_endpoint_url: Optional[str] = Field(
        default=None,
        alias="AWS_ENDPOINT_URL"
    )

    # Blob Store Configuration
    s3_bucket_name: str = Field(
        default="vault",
        description="Bucket holding uploaded file bytes"
    )

    storage_dir: str = Field(
        default="storage",
        description="Local blob storage directory (local-dev mode)"
    )

    public_url_base: Optional[str] = Field(
        default=None,
        description="URL prefix for public blob URLs; derived from the endpoint when unset"
    )

    storage_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Connect/read timeout for blob store calls"
    )

    # Metadata Store Configuration
    db_path: str = Field(
        default="vault.db",
        description="SQLite database holding file records"
    )

    db_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="How long a metadata call waits on a locked database"
    )

    # Auth Provider Configuration
    auth_url: str = Field(
        default="http://localhost:54321",
        description="Base URL of the GoTrue-compatible auth provider"
    )

    auth_api_key: Optional[str] = Field(
        default=None,
        description="Project API key sent to the auth provider as the `apikey` header"
    )

    auth_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout for auth provider calls"
    )

    # Upload Orchestration
    key_suffix_length: int = Field(
        default=10,
        description="Length of the random alphanumeric suffix in storage keys"
    )

    compensate_orphaned_blobs: bool = Field(
        default=False,
        description="Remove the just-written blob when its record insert fails"
    )

    reconcile_min_age_seconds: int = Field(
        default=3600,
        ge=0,
        description="Blobs younger than this are never reported as orphaned"
    )

    # HTTP
    cors_allow_origins: List[str] = Field(
        default=["*"],
        description="Origins allowed by the CORS middleware"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )

    @field_validator('deployment_mode', mode='before')
    @classmethod
    def normalize_deployment_mode(cls, v):
        """Normalize deployment mode values for backwards compatibility."""
        if v:
            mode_mapping = {
                "local-mock": "local-dev",
                "cloud": "aws-prod",
            }
            return mode_mapping.get(v, v)
        return v

    @field_validator('deployment_mode')
    @classmethod
    def validate_deployment_mode(cls, v):
        """Validate deployment mode is one of the allowed values."""
        if v not in VALID_DEPLOYMENT_MODES:
            raise ValueError(f"Invalid deployment_mode: {v}. Must be one of {VALID_DEPLOYMENT_MODES}")
        return v

    @field_validator('key_suffix_length')
    @classmethod
    def validate_key_suffix_length(cls, v):
        """Keep at least ~46 bits of entropy in every storage key."""
        if v < MIN_KEY_SUFFIX_LENGTH:
            raise ValueError(f"key_suffix_length must be >= {MIN_KEY_SUFFIX_LENGTH}, got {v}")
        return v

    @field_validator('log_level')
    @classmethod
    def normalize_log_level(cls, v):
        return v.upper()

    @model_validator(mode='after')
    def fill_mode_defaults(self) -> Self:
        """Auto-set endpoint and mock credentials for the mock deployment mode."""
        if self.deployment_mode == "aws-mock" and self.aws_endpoint_url is None:
            self.aws_endpoint_url = "http://localhost:5000"
        if self.deployment_mode in ["local-dev", "aws-mock"]:
            self.aws_access_key_id = self.aws_access_key_id or "mock"
            self.aws_secret_access_key = self.aws_secret_access_key or "mock"
        return self

    @property
    def uses_s3(self) -> bool:
        return self.deployment_mode in ["aws-mock", "aws-prod"]

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=(".env", ".env.aws"),  # .env.aws takes precedence
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    This ensures we only create one Settings instance per process.
    """
    return Settings()
