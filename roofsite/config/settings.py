"""
Configuration management for the application.
Loads settings from environment variables and the project .env file.
"""

from pathlib import Path
from typing import List
from pydantic import Field
from pydantic_settings import BaseSettings
from dotenv import load_dotenv
from loguru import logger

# Find project root (where .env and data/ live)
# This file is at roofsite/config/settings.py, so project root is 3 levels up
_project_root = Path(__file__).resolve().parent.parent.parent

# Export for use by the site database and log sinks - ensures consistent data/ paths
PROJECT_ROOT = _project_root

# Load environment variables from project root
_env_file = _project_root / ".env"
if _env_file.exists():
    load_dotenv(dotenv_path=_env_file, override=True)
    logger.debug(f"Loaded .env from: {_env_file}")
else:
    logger.debug(f".env file not found at: {_env_file}")
    load_dotenv(override=False)


class Settings(BaseSettings):
    """Application settings from environment variables."""

    # LLM Provider Selection
    llm_provider: str = Field(default="openai")  # Options: "openai" | "ollama"

    # API Keys
    openai_api_key: str = Field(default="")

    # OpenAI Configuration (any OpenAI-compatible chat completions gateway)
    openai_base_url: str = Field(default="")  # Empty = api.openai.com
    openai_model: str = Field(default="gpt-4o-mini")
    openai_temperature: float = Field(default=0.7)

    # Ollama Configuration
    ollama_base_url: str = Field(default="http://localhost:11434")
    ollama_model: str = Field(default="llama3")

    # Token Limits
    max_output_tokens: int = Field(default=4000)

    # Rate Limits (fixed window, per process)
    chat_rate_limit_requests: int = Field(default=20)
    chat_rate_limit_window_ms: int = Field(default=60_000)
    blog_rate_limit_requests: int = Field(default=3)
    blog_rate_limit_window_ms: int = Field(default=3_600_000)
    lead_rate_limit_requests: int = Field(default=5)
    lead_rate_limit_window_ms: int = Field(default=60_000)
    portal_rate_limit_requests: int = Field(default=10)
    portal_rate_limit_window_ms: int = Field(default=60_000)
    rate_limit_sweep_threshold: int = Field(default=10_000)  # Sweep expired entries above this size

    # Chat Streaming
    stream_idle_timeout_seconds: float = Field(default=30.0)  # Abort when no chunk arrives in time
    stream_max_line_requeues: int = Field(default=8)  # Max retries for a data line that fails to parse
    chat_service_url: str = Field(default="http://localhost:8000/functions/v1/chat")

    # CORS
    site_url: str = Field(default="http://localhost:5173")
    cors_allowed_origins: List[str] = Field(default_factory=list)  # Extra origins besides site_url

    # Site Database (sites, leads, subscriptions)
    site_db_path: str = Field(default="data/sites.db")

    # Logging
    log_level: str = Field(default="INFO")
    log_to_file: bool = Field(default=True)

    class Config:
        env_file = str(_project_root / ".env")
        env_file_encoding = "utf-8"
        extra = "allow"  # Allow extra fields from .env

    @property
    def allowed_origins(self) -> List[str]:
        """Origins accepted by CORS, site_url first."""
        origins = [self.site_url]
        origins.extend(o for o in self.cors_allowed_origins if o not in origins)
        return origins

    @property
    def site_db_path_resolved(self) -> str:
        """Absolute path of the site database."""
        path = Path(self.site_db_path)
        if not path.is_absolute():
            path = _project_root / path
        return str(path)


# Create global settings instance
settings = Settings()


# Log configuration status
if settings.llm_provider == "openai":
    if settings.openai_api_key:
        masked_key = settings.openai_api_key[:8] + "..." + settings.openai_api_key[-4:] if len(settings.openai_api_key) > 12 else "***"
        logger.info(f"✅ LLM Provider: OpenAI | Model: {settings.openai_model} | API key loaded: {masked_key}")
    else:
        logger.warning("⚠️  LLM Provider: OpenAI but OPENAI_API_KEY not set - chat and blog calls will fail!")
elif settings.llm_provider == "ollama":
    logger.info(f"✅ LLM Provider: Ollama | Base URL: {settings.ollama_base_url} | Model: {settings.ollama_model}")
else:
    logger.warning(f"⚠️  Unknown LLM provider: {settings.llm_provider}. Supported: 'openai', 'ollama'")
