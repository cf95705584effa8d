"""Application settings using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="certregistry", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    environment: Literal["development", "staging", "production", "testing"] = Field(
        default="development", description="Environment name"
    )
    debug: bool = Field(default=True, description="Debug mode")

    # API Server
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")
    public_base_url: str = Field(
        default="http://localhost:3000",
        description="Public site URL used to build certificate links",
    )

    # Admin session
    admin_username: str = Field(default="admin", description="Admin login name")
    admin_password: str = Field(
        default="change-me-admin-password", description="Admin login password"
    )
    admin_session_secret_key: str = Field(
        default="dev-admin-session-key-change-in-production-32chars!",
        description="Signing key for admin session tokens (min 32 chars)",
    )
    admin_session_algorithm: str = Field(
        default="HS256", description="Admin session signing algorithm"
    )
    admin_session_expire_hours: int = Field(
        default=24, description="Admin session lifetime (hours)"
    )
    admin_cookie_name: str = Field(
        default="admin-session", description="Admin session cookie name"
    )
    admin_cookie_secure: bool = Field(
        default=False, description="Secure cookie (HTTPS only)"
    )
    admin_cookie_samesite: Literal["lax", "strict", "none"] = Field(
        default="strict", description="SameSite cookie policy"
    )

    # Access links
    access_admin_link_ttl_days: int = Field(
        default=7, description="Lifetime of admin-issued access links (days)"
    )
    access_self_link_ttl_hours: int = Field(
        default=24, description="Lifetime of self-login access links (hours)"
    )
    access_legacy_tokens_enabled: bool = Field(
        default=True,
        description="Accept legacy JSON view tokens that have no ledger row",
    )
    access_legacy_token_max_age_days: int = Field(
        default=30, description="Maximum age of a legacy JSON token (days)"
    )
    access_issue_max_attempts: int = Field(
        default=5, description="Insert attempts before giving up on token collisions"
    )

    # Registrants
    registration_number_prefix: str = Field(
        default="MOH", description="Prefix of generated registration numbers"
    )

    # Cassandra
    cassandra_hosts: list[str] = Field(
        default=["localhost"], description="Cassandra hosts"
    )
    cassandra_port: int = Field(default=9042, description="Cassandra port")
    cassandra_keyspace: str = Field(
        default="certregistry", description="Cassandra keyspace"
    )
    cassandra_username: str | None = Field(default=None, description="Cassandra user")
    cassandra_password: str | None = Field(
        default=None, description="Cassandra password"
    )
    cassandra_protocol_version: int = Field(default=4, description="Protocol version")
    cassandra_connect_timeout: float = Field(
        default=10.0, description="Connect timeout"
    )
    cassandra_request_timeout: float = Field(
        default=10.0, description="Request timeout"
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="DEBUG", description="Log level"
    )
    log_format: Literal["json", "console"] = Field(
        default="console", description="Log format"
    )
    log_include_caller_info: bool = Field(
        default=True, description="Include caller info"
    )
    log_dir: str = Field(default="logs", description="Directory for log files")
    log_file_max_bytes: int = Field(
        default=10 * 1024 * 1024, description="Max size per log file (10MB default)"
    )
    log_file_backup_count: int = Field(
        default=5, description="Number of backup log files to keep"
    )
    log_requests: bool = Field(
        default=True, description="Log HTTP request start/finish"
    )
    log_exclude_paths: list[str] = Field(
        default=["/health", "/health/live", "/health/ready"],
        description="Paths to exclude from request logging",
    )

    # CORS
    cors_origins: list[str] = Field(
        default=["http://localhost:3000"], description="CORS origins"
    )
    cors_allow_credentials: bool = Field(default=True, description="Allow credentials")
    cors_allow_methods: list[str] = Field(default=["*"], description="Allowed methods")
    cors_allow_headers: list[str] = Field(default=["*"], description="Allowed headers")
    cors_max_age: int = Field(default=600, description="CORS max age")

    # Firebase Storage
    firebase_enabled: bool = Field(
        default=False, description="Enable Firebase Storage for uploads"
    )
    firebase_credentials_path: str | None = Field(
        default=None, description="Path to Firebase service account JSON file"
    )
    firebase_storage_bucket: str | None = Field(
        default=None,
        description="Firebase Storage bucket (e.g., project-id.appspot.com)",
    )
    firebase_project_id: str | None = Field(
        default=None, description="Firebase project ID"
    )

    # Upload Settings
    upload_max_file_size_mb: int = Field(
        default=5, description="Maximum file size for uploads in MB"
    )
    upload_allowed_image_types: list[str] = Field(
        default=["image/jpeg", "image/png", "image/webp", "image/gif"],
        description="Allowed image MIME types",
    )

    # Email (Gmail API)
    email_enabled: bool = Field(
        default=False, description="Enable email sending via Gmail API"
    )
    email_credentials_path: str = Field(
        default="credentials/google-service-account.json",
        description="Path to Google service account JSON file",
    )
    email_sender_address: str = Field(
        default="certificates@example.org",
        description="Sender email address (must be in Google Workspace domain)",
    )
    email_sender_name: str = Field(
        default="Certificate System", description="Sender display name"
    )

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"

    @property
    def is_testing(self) -> bool:
        """Check if running in testing mode."""
        return self.environment == "testing"

    @property
    def firebase_configured(self) -> bool:
        """Check if Firebase Storage is configured."""
        return bool(
            self.firebase_enabled
            and self.firebase_credentials_path
            and self.firebase_storage_bucket
        )

    @property
    def email_configured(self) -> bool:
        """Check if Gmail API email is configured."""
        return bool(self.email_enabled and self.email_sender_address)

    def profile_url(self, token: str) -> str:
        """Public certificate URL for an access token."""
        return f"{self.public_base_url.rstrip('/')}/user/{token}"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
