"""Retry, rate limit and header settings for the outbound HTTP adapters."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    """Backoff settings for ``httpx_retries``."""

    total: int = 4
    backoff_factor: float = 0.5
    max_backoff_wait: float = 60.0
    retry_statuses: frozenset[int] = frozenset({429, 500, 502, 503, 504})


@dataclass(slots=True, frozen=True)
class RateLimit:
    max_calls: int
    per_seconds: float


@dataclass(slots=True, frozen=True)
class ResilienceConfig:
    """One outbound service: where it lives and how hard to push it."""

    name: str
    base_url: str | None = None
    timeout_seconds: float = 30.0
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    ratelimit: RateLimit | None = None
    default_headers: Mapping[str, str] | None = None
