"""
Configuration settings for the Landing Engine
"""
import os
import logging
from typing import Optional
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()

# Configure basic logger for config module
logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings"""

    # Environment
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"

    # Completion provider: anthropic, openrouter, gemini or scripted
    COMPLETION_PROVIDER: str = os.getenv("COMPLETION_PROVIDER", "anthropic")

    # API Keys
    ANTHROPIC_API_KEY: str = os.getenv("ANTHROPIC_API_KEY", "")
    GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
    OPENROUTER_API_KEY: str = os.getenv("OPENROUTER_API_KEY", "")

    # Models
    CLAUDE_MODEL: str = os.getenv("CLAUDE_MODEL", "claude-3-5-sonnet-20241022")
    OPENROUTER_MODEL: str = os.getenv("OPENROUTER_MODEL", "anthropic/claude-3.5-sonnet")
    GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-1.5-flash")

    # Generation Settings
    MAX_TOKENS: int = 2048
    TEMPERATURE: float = 0.7
    COMPLETION_TIMEOUT: float = float(os.getenv("COMPLETION_TIMEOUT", "60"))

    # Chat Settings
    CHAT_MAX_HISTORY: int = 20  # Maximum conversation turns sent to the model
    SCRIPTED_DELAY_SECONDS: float = float(os.getenv("SCRIPTED_DELAY_SECONDS", "0"))

    # Persistence: supabase or memory
    PERSISTENCE_BACKEND: str = os.getenv("PERSISTENCE_BACKEND", "supabase")
    SUPABASE_URL: str = os.getenv("SUPABASE_URL", "")
    SUPABASE_ANON_KEY: str = os.getenv("SUPABASE_ANON_KEY", "")
    SUPABASE_TABLE: str = os.getenv("SUPABASE_TABLE", "landing_pages")
    PERSISTENCE_TIMEOUT: float = float(os.getenv("PERSISTENCE_TIMEOUT", "15"))

    # Monitoring
    SENTRY_DSN: Optional[str] = os.getenv("SENTRY_DSN")
    SENTRY_ENVIRONMENT: str = os.getenv("SENTRY_ENVIRONMENT", "development")
    SENTRY_TRACES_SAMPLE_RATE: float = float(
        os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.1")
    )

    # Rate limiting for chat submissions
    RATE_LIMIT_ENABLED: bool = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
    CHAT_RATE_LIMIT: str = os.getenv("CHAT_RATE_LIMIT", "20/minute")

    # CORS - comma-separated list of allowed origins
    CORS_ORIGINS: str = os.getenv(
        "CORS_ORIGINS",
        "http://localhost:5173,http://localhost:3000,http://127.0.0.1:5173"
    )

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


# Global settings instance
settings = Settings()


PROVIDER_KEYS = {
    "anthropic": "ANTHROPIC_API_KEY",
    "openrouter": "OPENROUTER_API_KEY",
    "gemini": "GEMINI_API_KEY",
}


def missing_config(config: Optional[Settings] = None) -> list:
    """List configuration problems without raising"""
    config = config or settings
    errors = []

    provider = config.COMPLETION_PROVIDER.lower()
    key_name = PROVIDER_KEYS.get(provider)
    if provider != "scripted" and key_name is None:
        errors.append(f"Unknown COMPLETION_PROVIDER '{config.COMPLETION_PROVIDER}'")
    elif key_name and not getattr(config, key_name):
        errors.append(f"{key_name} must be configured for provider '{provider}'")

    backend = config.PERSISTENCE_BACKEND.lower()
    if backend == "supabase":
        if not config.SUPABASE_URL or not config.SUPABASE_ANON_KEY:
            errors.append("SUPABASE_URL and SUPABASE_ANON_KEY must be configured")
    elif backend != "memory":
        errors.append(f"Unknown PERSISTENCE_BACKEND '{config.PERSISTENCE_BACKEND}'")

    return errors


def validate_required_config(config: Optional[Settings] = None) -> bool:
    """Validate required configuration on startup"""
    config = config or settings
    errors = missing_config(config)

    if errors:
        for error in errors:
            logger.error(f"Configuration error: {error}")
        if config.ENVIRONMENT == "production":
            raise ValueError(f"Missing required configuration: {', '.join(errors)}")

    return len(errors) == 0
