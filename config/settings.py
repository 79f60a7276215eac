"""
Settings configuration for deckforge.
"""
from typing import Optional
from pydantic_settings import BaseSettings
from pydantic import AliasChoices, Field


class Settings(BaseSettings):
    """Application settings."""

    # App settings
    APP_ENV: str = Field("development", env="APP_ENV")
    DEBUG: bool = Field(True, env="DEBUG")
    LOG_LEVEL: str = Field("INFO", env="LOG_LEVEL")

    # API settings
    API_ENABLED: bool = Field(True, env="API_ENABLED")
    API_HOST: str = Field("0.0.0.0", env="API_HOST")
    API_PORT: int = Field(8000, validation_alias=AliasChoices("PORT", "API_PORT"))
    CORS_ORIGINS: str = Field("*", description="Comma separated list of allowed origins")

    # Deterministic mock clients for tests and local runs without credentials
    FAKE_LLM: bool = Field(False, env="FAKE_LLM")

    # Language model provider: "vertex" (Gemini through pydantic-ai) or "mock"
    LLM_PROVIDER: str = Field("vertex", env="LLM_PROVIDER")

    # Google Cloud Platform (Vertex AI)
    GCP_ENABLED: bool = Field(True, env="GCP_ENABLED")
    GCP_PROJECT_ID: str = Field("deckforge-dev", env="GCP_PROJECT_ID")
    GCP_LOCATION: str = Field("us-central1", env="GCP_LOCATION")
    # Only needed in production; locally use `gcloud auth application-default login`
    GCP_SERVICE_ACCOUNT_JSON: Optional[str] = Field(None, env="GCP_SERVICE_ACCOUNT_JSON")

    # Model per pipeline stage. No 'google-vertex:' prefix, the client adds it.
    GCP_MODEL_OUTLINE: str = Field("gemini-2.5-flash", env="GCP_MODEL_OUTLINE")
    GCP_MODEL_CONTENT: str = Field("gemini-2.5-flash", env="GCP_MODEL_CONTENT")
    GCP_MODEL_REPAIR: str = Field("gemini-2.5-flash", env="GCP_MODEL_REPAIR")

    # Image generation: "vertex" (Imagen) or "mock"
    IMAGE_PROVIDER: str = Field("vertex", env="IMAGE_PROVIDER")
    GCP_IMAGE_MODEL: str = Field("imagen-3.0-generate-002", env="GCP_IMAGE_MODEL")
    IMAGE_ASPECT_RATIO: str = Field("16:9", env="IMAGE_ASPECT_RATIO")

    # Retry and backoff tuning
    MAX_LLM_RETRIES: int = Field(3, env="MAX_LLM_RETRIES")
    LLM_RETRY_BASE_DELAY: float = Field(1.0, env="LLM_RETRY_BASE_DELAY")
    MAX_REPAIR_ATTEMPTS: int = Field(3, env="MAX_REPAIR_ATTEMPTS")
    MAX_IMAGE_RETRIES: int = Field(1, env="MAX_IMAGE_RETRIES")
    IMAGE_BASE_DELAY_SECONDS: float = Field(3.0, env="IMAGE_BASE_DELAY_SECONDS")
    IMAGE_RATE_LIMIT_BACKOFF_SECONDS: float = Field(8.0, env="IMAGE_RATE_LIMIT_BACKOFF_SECONDS")
    SIGNED_URL_TTL_SECONDS: int = Field(7 * 24 * 60 * 60, env="SIGNED_URL_TTL_SECONDS")

    # Supabase (object storage for generated images)
    SUPABASE_URL: Optional[str] = Field(None, env="SUPABASE_URL")
    SUPABASE_ANON_KEY: Optional[str] = Field(None, env="SUPABASE_ANON_KEY")
    SUPABASE_SERVICE_KEY: Optional[str] = Field(None, env="SUPABASE_SERVICE_KEY")
    SUPABASE_STORAGE_BUCKET: str = Field("deck-images", env="SUPABASE_STORAGE_BUCKET")

    # Logging
    LOGFIRE_TOKEN: Optional[str] = Field(None, env="LOGFIRE_TOKEN")

    # Deck defaults
    DEFAULT_THEME_ID: str = Field("nordic_light", env="DEFAULT_THEME_ID")
    DEFAULT_LANGUAGE: str = Field("no", env="DEFAULT_LANGUAGE")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env

    @property
    def is_production(self) -> bool:
        return self.APP_ENV == "production"

    @property
    def use_mock_llm(self) -> bool:
        return self.FAKE_LLM or self.LLM_PROVIDER == "mock"

    @property
    def use_mock_images(self) -> bool:
        return self.FAKE_LLM or self.IMAGE_PROVIDER == "mock"

    @property
    def has_storage(self) -> bool:
        return bool(self.SUPABASE_URL and (self.SUPABASE_SERVICE_KEY or self.SUPABASE_ANON_KEY))

    @property
    def cors_origins(self) -> list:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


def get_settings() -> Settings:
    """Get a settings instance read from the environment."""
    return Settings()


settings = get_settings()
