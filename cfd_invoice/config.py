"""Configuration management for the CFD Invoice scanner."""
from pathlib import Path

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Centralized configuration for the CFD Invoice scanner."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore"
    )

    # API Configuration
    gemini_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("gemini_api_key", "api_key"),
        description="Gemini API key for document extraction"
    )
    use_vertex_ai: bool = Field(default=False, description="Use Vertex AI instead of standard Gemini API")
    google_cloud_project: str = Field(default="not-set", description="Google Cloud project for Vertex AI")
    google_cloud_location: str = Field(default="not-set", description="Google Cloud location for Vertex AI")

    # Extraction Configuration
    extraction_model: str = Field(default="gemini-2.5-flash", description="Model for bill extraction")
    extraction_temperature: float = Field(default=0.1, ge=0.0, le=2.0, description="Decoding temperature")
    max_upload_size_mb: float = Field(default=20.0, gt=0, description="Largest accepted upload in MB")

    # Storage Configuration
    data_directory: Path = Field(
        default=Path.home() / ".cfd_invoice",
        description="Directory holding local storage, logs and debug responses"
    )
    history_storage_key: str = Field(default="cfd_invoice_history", description="Storage key of the history blob")
    strong_ids_only: bool = Field(default=False, description="Refuse weak history ids when no strong RNG exists")

    # Debug Configuration
    debug_responses: bool = Field(default=False, description="Save API responses for debugging")
    log_level: str = Field(default="WARNING", description="Console log level")
    file_log_level: str = Field(default="INFO", description="Log file level")

    @field_validator("use_vertex_ai", "strong_ids_only", mode="before")
    @classmethod
    def parse_bool_flag(cls, v):
        """Parse boolean flags from string."""
        if isinstance(v, str):
            return v.strip().lower() in ("1", "true", "yes")
        return v

    @field_validator("debug_responses", mode="before")
    @classmethod
    def parse_debug_flag(cls, v):
        """Parse debug flag from string."""
        if isinstance(v, str):
            return v == "1" or v.lower() == "true"
        return v

    @field_validator("log_level", "file_log_level")
    @classmethod
    def normalize_log_level(cls, v):
        return v.upper()

    @property
    def has_credentials(self) -> bool:
        """Whether a credential is available to reach the provider."""
        if self.use_vertex_ai:
            return True
        return bool(self.gemini_api_key and self.gemini_api_key.strip())

    @property
    def api_client_kwargs(self) -> dict:
        """Get API client configuration."""
        if self.use_vertex_ai:
            return {
                "vertexai": True,
                "project": self.google_cloud_project,
                "location": self.google_cloud_location,
            }
        return {"api_key": self.gemini_api_key.strip()}

    @property
    def logs_folder(self) -> Path:
        return self.data_directory / "logs"

    @property
    def responses_folder(self) -> Path:
        return self.data_directory / "responses"

    @property
    def storage_path(self) -> Path:
        return self.data_directory / "local_storage.db"


def get_settings(**overrides) -> Settings:
    """Read settings fresh from the environment and ``.env``."""
    return Settings(**overrides)
