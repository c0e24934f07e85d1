"""
Configuration management for vizboard.

This module handles all configuration settings: server, authentication,
database, file handling, CSV processing and logging. Every group reads its
own environment prefix and falls back to the defaults below.
"""

from typing import Optional, Dict, Any, List, Literal
from pathlib import Path
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class APIConfig(BaseSettings):
    """API server configuration."""

    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = "0.0.0.0"
    port: int = 5000
    debug: bool = False

    # CORS settings
    cors_origins: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]
    client_url: Optional[str] = None


class AuthConfig(BaseSettings):
    """JWT and password configuration."""

    model_config = SettingsConfigDict(env_prefix="JWT_")

    secret_key: str = "vizboard-development-secret-change-me"
    algorithm: str = "HS256"
    expiration_hours: int = 24 * 7
    issuer: str = "vizboard"

    bcrypt_rounds: int = 12
    min_password_length: int = 6


class DatabaseConfig(BaseSettings):
    """Database configuration."""

    model_config = SettingsConfigDict(env_prefix="DATABASE_")

    url: str = "sqlite:///./data/vizboard.db"
    echo: bool = False


class FileConfig(BaseSettings):
    """File handling configuration."""

    model_config = SettingsConfigDict(env_prefix="FILE_")

    max_upload_size_mb: int = 50
    allowed_extensions: List[str] = [".csv"]
    allowed_mime_types: List[str] = ["text/csv", "application/csv", "text/plain"]

    # Directory paths
    upload_dir: str = "./uploads"
    data_dir: str = "./data"

    # Legacy JSON storage, read only by the migration command
    dashboards_file: str = "dashboards.json"
    datasets_file: str = "datasets.json"

    @field_validator("upload_dir", "data_dir")
    @classmethod
    def create_directories(cls, v):
        """Ensure directories exist."""
        path = Path(v)
        path.mkdir(parents=True, exist_ok=True)
        return str(path.absolute())


class CsvConfig(BaseSettings):
    """CSV parsing and pagination configuration."""

    model_config = SettingsConfigDict(env_prefix="CSV_")

    default_page_size: int = 100
    max_page_size: int = 1000
    encoding: str = "utf-8"
    chunk_size: int = 5000  # rows per parsed chunk
    sample_size: int = 5


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = "INFO"
    json_format: bool = False


class Settings(BaseSettings):
    """Main settings class that combines all configurations."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # Environment
    environment: Literal["development", "test", "production"] = "development"

    # Sub-configurations
    api: APIConfig = Field(default_factory=APIConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    files: FileConfig = Field(default_factory=FileConfig)
    csv: CsvConfig = Field(default_factory=CsvConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    # Project metadata
    project_name: str = "vizboard"
    version: str = "2.1.0"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def max_upload_size_bytes(self) -> int:
        return self.files.max_upload_size_mb * 1024 * 1024

    @property
    def max_dataset_json_bytes(self) -> int:
        # Inline row data shares the upload ceiling
        return self.files.max_upload_size_mb * 1024 * 1024

    @property
    def cors_allow_origins(self) -> List[str]:
        origins = list(self.api.cors_origins)
        if self.api.client_url and self.api.client_url not in origins:
            origins.append(self.api.client_url)
        return origins

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to dictionary (excluding sensitive data)."""
        data = self.model_dump()
        sensitive_keys = {"secret_key", "password"}

        def remove_sensitive(d: Dict[str, Any]) -> Dict[str, Any]:
            cleaned = {}
            for k, v in d.items():
                if k.lower() in sensitive_keys:
                    cleaned[k] = "***REDACTED***"
                elif isinstance(v, dict):
                    cleaned[k] = remove_sensitive(v)
                else:
                    cleaned[k] = v
            return cleaned

        return remove_sensitive(data)


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Application settings
    """
    return Settings()


# Convenience function for accessing settings
settings = get_settings()


__all__ = [
    "Settings",
    "get_settings",
    "settings",
    "APIConfig",
    "AuthConfig",
    "DatabaseConfig",
    "FileConfig",
    "CsvConfig",
    "LoggingConfig",
]
