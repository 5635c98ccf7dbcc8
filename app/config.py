"""
Configuration management for the Campaign Dashboard

Values come from the environment or a .env file; names are case-insensitive
(DATABASE_URL, TWILIO_ACCOUNT_SID, ...).
"""
from pydantic import field_validator
from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import List, Optional

LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseSettings):
    """Application settings"""

    # Application
    app_name: str = "Campaign Dashboard"
    environment: str = "development"  # development, staging, production
    debug: bool = True
    log_level: str = "INFO"
    log_dir: str = "logs"

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    cors_origins: str = "http://localhost:3000,http://localhost:5173"  # comma-separated

    # Database
    database_url: str

    # Twilio (WhatsApp)
    twilio_account_sid: Optional[str] = None
    twilio_auth_token: Optional[str] = None
    twilio_whatsapp_from: str = "whatsapp:+14155238886"  # Twilio sandbox number

    # Resend (email)
    resend_api_key: Optional[str] = None
    email_from: str = "Marketing <onboarding@resend.dev>"

    # Value substituted for {{company_name}} in message templates
    company_name: str = "Your Company"

    # Marketing assistant (Anthropic)
    anthropic_api_key: Optional[str] = None
    llm_model: str = "claude-sonnet-4-20250514"
    enable_llm_insights: bool = True
    llm_max_tokens: int = 500

    # Dashboard accounts
    initial_admin_email: str = ""
    initial_admin_password: str = ""
    session_duration_hours: int = 72

    # Optional HTTP Basic gate in front of everything except /health and /track
    dash_user: str = ""
    dash_pass: str = ""

    # Analytics summary cache
    analytics_cache_ttl_seconds: int = 300

    # A/B testing: eligible customers assigned when a test sets no customer_count
    ab_test_default_customer_limit: int = 100

    # Scheduled campaign dispatch
    enable_scheduler: bool = True
    scheduled_dispatch_interval_seconds: int = 60

    class Config:
        env_file = ".env"
        case_sensitive = False

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        value = value.upper()
        if value not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return value

    @field_validator("analytics_cache_ttl_seconds", "ab_test_default_customer_limit",
                     "scheduled_dispatch_interval_seconds", "session_duration_hours")
    @classmethod
    def _positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be greater than 0")
        return value

    @property
    def cors_origin_list(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
