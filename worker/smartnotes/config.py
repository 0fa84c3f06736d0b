from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Worker settings.

    Values may be provided via ``SMARTNOTES_*`` environment variables or a
    ``.env`` file. API keys for hosted backends are read from their usual
    variables (``OPENAI_API_KEY``, ``GROQ_API_KEY``) by the backend clients.
    """

    model_config = SettingsConfigDict(
        env_prefix="SMARTNOTES_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # HTTP
    cors_allow_origins: str = Field("*", description="Comma-separated origins")

    # Text-generation backend
    backend_provider: str = Field("ollama", description="ollama|openai|groq")
    ollama_base_url: str = "http://localhost:11434"
    openai_api_base: str = "https://api.openai.com/v1"
    groq_api_base: str = "https://api.groq.com/openai/v1"
    model_name: str = Field("llama3", description="Model id passed to the backend")
    backend_timeout_s: int = Field(300, ge=1)

    # Pipeline
    topic_max_attempts: int = Field(3, ge=1)
    topic_retry_delay_s: float = Field(2.0, ge=0.0, description="Fixed delay between topic extraction attempts")
    content_max_attempts: int = Field(2, ge=1)
    fanout_workers: int = Field(5, ge=1)
    fanout_task_timeout_s: float = Field(300.0, gt=0.0)
    shutdown_grace_s: float = Field(60.0, ge=0.0)
    plain_text_max_chars: int = Field(500, ge=1)
    emergency_max_chars: int = Field(5000, ge=1)
    spell_correction: bool = True

    # Transcript acquisition
    caption_language: str = Field("en", description="Preferred caption language code")
    min_transcript_chars: int = 100
    whisper_model_size: str = Field("base", description="e.g. tiny|base|small|medium|large-v2")
    whisper_device: str = Field("auto", description="cpu|cuda|auto")
    whisper_compute_type: str = "int8"

    # Paths
    tmp_dir: str = Field("tmp", description="Working directory for downloaded media")


def load_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]
