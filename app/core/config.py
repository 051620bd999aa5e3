"""Application configuration via environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Service-wide configuration options."""

    api_v1_prefix: str = "/v1"
    service_base_url: str = "http://localhost:8000"
    redis_url: str = "redis://localhost:6379/0"
    analysis_ttl_seconds: int = 1800
    log_level: str = "INFO"

    openrouter_api_key: str = ""
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    openrouter_model: str = "qwen/qwen3-coder"
    openrouter_fallback_model: str | None = None
    openrouter_referer: str = "http://localhost:8000"
    openrouter_title: str = "AI Code Reviewer"
    ai_timeout_seconds: float = 60.0
    ai_request_timeout_seconds: float = 90.0
    ai_temperature: float = 0.3
    ai_max_tokens: int = 1500

    repository_path: str = "."
    documents_folder: str = "Documents"
    default_language: str = "NET"
    allowed_file_extensions: list[str] = [".cs", ".js", ".py"]
    max_diff_bytes: int = 102400
    max_uncommitted_diff_bytes: int = 204800

    available_models: list[str] = ["qwen/qwen3-coder", "moonshotai/kimi-k2"]
    model_catalog: dict[str, dict[str, str]] = {
        "qwen/qwen3-coder": {
            "name": "Qwen3 Coder",
            "provider": "Qwen",
            "description": "Code-specialised mixture-of-experts model",
            "icon": "🧠",
        },
        "moonshotai/kimi-k2": {
            "name": "Kimi K2",
            "provider": "Moonshot AI",
            "description": "Long-context general model with strong coding skills",
            "icon": "🌙",
        },
    }

    event_sink_backend: str = "file"
    event_sink_path: str = "data/analysis_events.jsonl"
    event_webhook_url: str | None = None
    event_batch_size: int = 25
    otel_enabled: bool = False
    otel_exporter: str = "console"
    otel_otlp_endpoint: str | None = None

    model_config = SettingsConfigDict(env_prefix="reviewer_", env_file=".env", extra="ignore")


settings = Settings()
