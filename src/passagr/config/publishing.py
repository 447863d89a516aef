"""Search index and cache purge collaborator configuration."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env_var, require_env_vars
from .http_resilience import RateLimit, ResilienceConfig

SEARCH_TIMEOUT_SECONDS = 10.0
CACHE_PURGE_TIMEOUT_SECONDS = 10.0


@dataclass(frozen=True, slots=True)
class SearchConfig:
    """Typesense-style search endpoint."""

    resilience: ResilienceConfig


@dataclass(frozen=True, slots=True)
class CachePurgeConfig:
    purge_url: str
    resilience: ResilienceConfig


def get_search_config() -> SearchConfig:
    values = require_env_vars(("PASSAGR_SEARCH_URL", "PASSAGR_SEARCH_API_KEY"))
    return SearchConfig(
        resilience=ResilienceConfig(
            name="search",
            base_url=values["PASSAGR_SEARCH_URL"],
            timeout_seconds=SEARCH_TIMEOUT_SECONDS,
            ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
            default_headers={"X-TYPESENSE-API-KEY": values["PASSAGR_SEARCH_API_KEY"]},
        )
    )


def get_cache_purge_config() -> CachePurgeConfig:
    purge_url = require_env_vars(("PASSAGR_CACHE_PURGE_URL",))["PASSAGR_CACHE_PURGE_URL"]
    token = optional_env_var("PASSAGR_CACHE_PURGE_TOKEN")
    headers = {"Authorization": f"Bearer {token}"} if token else None
    return CachePurgeConfig(
        purge_url=purge_url,
        resilience=ResilienceConfig(
            name="cache-purge",
            timeout_seconds=CACHE_PURGE_TIMEOUT_SECONDS,
            default_headers=headers,
        ),
    )
