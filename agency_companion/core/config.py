"""Configuration management for Agency Companion."""

import logging
import secrets
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file (only if accessible)
try:
    load_dotenv()
except (PermissionError, OSError):
    # In sandboxed environments, .env might not be accessible
    pass


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Environment
    APP_ENV: str = Field(default="dev", description="Environment: dev, test, prod")

    # Language model configuration
    LLM_PROVIDER: str = Field(default="openai", description="LLM provider: openai or anthropic")
    OPENAI_API_KEY: str = Field(..., description="OpenAI API key")
    OPENAI_MODEL: str = Field(default="gpt-4o", description="Model for deliverable generation")
    ANTHROPIC_API_KEY: str | None = Field(default=None, description="Anthropic API key")
    ANTHROPIC_MODEL: str = Field(
        default="claude-sonnet-4-5", description="Model used when LLM_PROVIDER=anthropic"
    )
    LLM_MAX_TOKENS: int = Field(default=1500, description="Default completion token budget")

    # SEO data providers
    DATAFORSEO_LOGIN: str | None = Field(default=None, description="DataForSEO API login")
    DATAFORSEO_PASSWORD: str | None = Field(default=None, description="DataForSEO API password")
    DATAFORSEO_LOCATION_CODE: int = Field(default=2840, description="DataForSEO location (2840=US)")
    DATAFORSEO_LANGUAGE_CODE: str = Field(default="en", description="DataForSEO language code")
    PAGESPEED_API_KEY: str | None = Field(default=None, description="Google PageSpeed API key")
    HTTP_TIMEOUT_SECONDS: float = Field(default=30.0, description="Outbound HTTP timeout")

    # Email
    SENDGRID_API_KEY: str | None = Field(default=None, description="SendGrid API key")
    DEFAULT_FROM_EMAIL: str = Field(
        default="hello@agency.example", description="Sender used when a request omits 'from'"
    )

    # Storage
    STORAGE_BACKEND: str = Field(default="memory", description="Storage backend: memory or supabase")
    SUPABASE_URL: str | None = Field(default=None, description="Supabase project URL")
    SUPABASE_SERVICE_ROLE_KEY: str | None = Field(default=None, description="Supabase service role key")

    # Sessions
    SESSION_SECRET: str | None = Field(default=None, description="Secret used to sign session cookies")
    SESSION_MAX_AGE_SECONDS: int = Field(default=7 * 24 * 60 * 60, description="Session lifetime (1 week)")

    # Generation
    GENERATION_STALE_SECONDS: int = Field(
        default=600, description="Age after which an in_progress task no longer blocks a new run"
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    A random SESSION_SECRET is generated when none is configured, so sessions
    only survive for the lifetime of the process in that case.

    Returns:
        Settings instance

    Raises:
        ValidationError: If required environment variables are missing
    """
    settings = Settings()
    if not settings.SESSION_SECRET:
        settings.SESSION_SECRET = secrets.token_hex(32)
        logging.getLogger(__name__).info("Generated random SESSION_SECRET")
    return settings
