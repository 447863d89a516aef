"""Extraction model (LLM) configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env_var, require_env_vars
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

DEFAULT_EXTRACTION_BASE_URL = "https://api.openai.com/v1"
DEFAULT_EXTRACTION_MODEL = "gpt-4-turbo"
EXTRACTION_TIMEOUT_SECONDS = 120.0


@dataclass(frozen=True, slots=True)
class ExtractionConfig:
    """Holds the chat-completions endpoint used to extract candidate entities."""

    api_key: str
    model: str
    resilience: ResilienceConfig
    temperature: float = 0.0


def get_extraction_config(*, resilience: ResilienceConfig | None = None) -> ExtractionConfig:
    values = require_env_vars(("PASSAGR_EXTRACTION_API_KEY",))
    base_url = optional_env_var("PASSAGR_EXTRACTION_BASE_URL", DEFAULT_EXTRACTION_BASE_URL)
    model = optional_env_var("PASSAGR_EXTRACTION_MODEL", DEFAULT_EXTRACTION_MODEL)
    api_key = values["PASSAGR_EXTRACTION_API_KEY"]
    return ExtractionConfig(
        api_key=api_key,
        model=model or DEFAULT_EXTRACTION_MODEL,
        resilience=resilience
        or ResilienceConfig(
            name="extraction",
            base_url=base_url,
            timeout_seconds=EXTRACTION_TIMEOUT_SECONDS,
            retry=RetryPolicy(total=2),
            ratelimit=RateLimit(max_calls=2, per_seconds=1.0),
            default_headers={"Authorization": f"Bearer {api_key}"},
        ),
    )
