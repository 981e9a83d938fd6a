"""
Question Analyzer Configuration

All environment variables and settings for the question analysis service.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ==========================================================================
    # APP
    # ==========================================================================
    app_name: str = "Question Analyzer"
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # ==========================================================================
    # SUPABASE (report persistence)
    # ==========================================================================
    supabase_url: str
    supabase_service_key: str
    reports_table: str = "reports"
    report_retention_hours: int = 24

    # ==========================================================================
    # VOICEFLOW (transcript source)
    # ==========================================================================
    # Both may be overridden per request; a submission without either fails.
    vf_api_key: str | None = None
    project_id: str | None = None
    vf_cloud: str | None = None  # e.g. "eu" → https://api.eu.voiceflow.com

    # ==========================================================================
    # LLM
    # ==========================================================================
    openai_api_key: str
    google_ai_api_key: str | None = None
    groq_api_key: str | None = None

    # Model identifiers (LiteLLM format)
    cluster_model: str = "openai/gpt-4"
    cluster_fallback_model: str | None = None

    # USD per 1000 tokens
    prompt_cost_per_1k: float = 0.03
    completion_cost_per_1k: float = 0.06

    # ==========================================================================
    # ANALYSIS BEHAVIOR
    # ==========================================================================
    default_time_range: str = "last7"
    default_top_questions: int = 10
    max_top_questions: int = 100
    dialog_fetch_delay_seconds: float = 0.1
    batch_delay_seconds: float = 0.5
    transcript_timeout_seconds: float = 30.0
    llm_timeout_seconds: int = 60

    # ==========================================================================
    # CORS
    # ==========================================================================
    cors_origins: str = "*"

    # ==========================================================================
    # SERVER
    # ==========================================================================
    host: str = "0.0.0.0"
    port: int = 8000

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"

    @property
    def voiceflow_api_url(self) -> str:
        """Base URL of the transcript API, honoring a regional cloud."""
        if self.vf_cloud:
            return f"https://api.{self.vf_cloud}.voiceflow.com"
        return "https://api.voiceflow.com"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
