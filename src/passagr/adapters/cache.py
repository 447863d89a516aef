"""HTTP cache purge adapter for the public API's cached responses."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from passagr.adapters.http_resilience import ResilientClient
from passagr.config import CachePurgeConfig, get_cache_purge_config

if TYPE_CHECKING:
    from collections.abc import Callable

    from passagr.config import ResilienceConfig

log = getLogger(__name__)


class CachePurgeError(RuntimeError):
    """Raised when the purge endpoint does not accept a purge request."""


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


@dataclass(slots=True)
class HttpCacheInvalidator:
    config: CachePurgeConfig = field(default_factory=get_cache_purge_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )

    def invalidate(self, path: str) -> None:
        asyncio.run(self._purge(path))
        log.info("Purged cached path %s", path)

    async def _purge(self, path: str) -> None:
        async with self.client_factory(self.config.resilience) as client:
            response = await client.post(self.config.purge_url, json={"paths": [path]})
        if response.is_error:
            raise CachePurgeError(
                f"Cache purge for {path} failed with HTTP {response.status_code}"
            )


@dataclass(slots=True)
class NullCacheInvalidator:
    """Used when no purge endpoint is configured; records nothing and never fails."""

    def invalidate(self, path: str) -> None:
        log.debug("No cache purge endpoint configured; skipping %s", path)
