"""Application configuration management."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application Settings
    app_name: str = "Call Sheet AI - Contact Extraction"
    app_version: str = "0.1.0"
    environment: str = "development"
    log_level: str = "INFO"

    # Extraction defaults (overridable per request)
    max_contacts: int = Field(
        default=1000,
        description="Maximum number of contacts returned per extraction"
    )
    max_processing_time_ms: int = Field(
        default=15000,
        description="Time budget for a single extraction request in milliseconds"
    )
    confidence_threshold: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Aggregate pattern confidence below which AI escalation is considered"
    )
    max_matches_per_pattern: int = Field(
        default=500,
        description="Ceiling on matches consumed from a single pattern"
    )
    role_match_threshold: int = Field(
        default=90,
        ge=0,
        le=100,
        description="Fuzzy score (0-100) needed to infer a role from caller role preferences"
    )
    analysis_max_chars: int = Field(
        default=100_000,
        description="Leading characters of a document inspected by the document analyzer"
    )

    # AI Enhancement Configuration
    ai_sample_chars: int = Field(
        default=1200,
        description="Characters of document text sent to the AI collaborator"
    )
    ai_candidate_sample_size: int = Field(
        default=25,
        description="Number of current contacts included in the AI prompt"
    )
    ai_source_reliability: float = Field(
        default=0.85,
        ge=0.0,
        le=1.0,
        description="Reliability weight applied to AI-origin contacts when scoring"
    )
    ai_max_output_tokens: int = Field(
        default=1500,
        description="Maximum output tokens requested from the AI collaborator"
    )
    ai_timeout_seconds: float = Field(
        default=20.0,
        description="Upper bound for a single AI call; also capped by the remaining request time"
    )
    ai_min_remaining_ms: int = Field(
        default=500,
        description="Escalation is skipped when less request time than this remains"
    )
    ai_token_budget: int = Field(
        default=500_000,
        description="Cumulative AI tokens allowed for the process lifetime"
    )
    ai_call_budget: int = Field(
        default=1000,
        description="Cumulative AI calls allowed for the process lifetime"
    )

    # LLM Provider Configuration
    llm_provider: str = Field(
        default="openrouter",
        description="LLM provider to use: 'openrouter' or 'gemini'"
    )
    openrouter_api_key: str = Field(
        default="",
        description="OpenRouter API key (required if llm_provider='openrouter')"
    )
    openrouter_api_url: str = Field(
        default="https://openrouter.ai/api/v1/chat/completions",
        description="OpenRouter API base URL"
    )
    openrouter_model: str = Field(
        default="openai/gpt-4o-mini",
        description="OpenRouter model name"
    )
    gemini_api_key: str = Field(
        default="",
        description="Gemini API key (required if llm_provider='gemini')"
    )
    gemini_model: str = Field(
        default="gemini-2.0-flash",
        description="Gemini model name"
    )
    enable_llm_fallback: bool = Field(
        default=False,
        description="Enable automatic fallback to Gemini if OpenRouter fails"
    )

    # Timeout Settings (in seconds)
    http_timeout: int = 60

    # Rate Limiting
    max_retries: int = 2
    retry_delay: int = 1

    model_config = SettingsConfigDict(
        env_file=str(Path(__file__).resolve().parent.parent / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Get application settings instance.

    Returns:
        Settings: Application settings loaded from environment
    """
    return Settings()


# Global settings instance
settings = get_settings()
