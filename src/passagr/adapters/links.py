"""HTTP probe used by the link checker."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

import httpx

from passagr.adapters.http_resilience import ResilientClient
from passagr.config import RateLimit, ResilienceConfig, RetryPolicy
from passagr.domain.ports import LinkProbeResult

if TYPE_CHECKING:
    from collections.abc import Callable

LINK_PROBE_TIMEOUT_SECONDS: Final[float] = 10.0


def default_link_probe_config() -> ResilienceConfig:
    return ResilienceConfig(
        name="link-probe",
        timeout_seconds=LINK_PROBE_TIMEOUT_SECONDS,
        retry=RetryPolicy(total=1),
        ratelimit=RateLimit(max_calls=5, per_seconds=1.0),
    )


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


@dataclass(slots=True)
class HttpLinkProbe:
    """Issues a ``HEAD`` request, following redirects, and reports the outcome.

    Transport errors are reported on the result instead of raised.
    """

    resilience: ResilienceConfig = field(default_factory=default_link_probe_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )

    def __call__(self, url: str) -> LinkProbeResult:
        return asyncio.run(self._probe(url))

    async def _probe(self, url: str) -> LinkProbeResult:
        async with self.client_factory(self.resilience) as client:
            try:
                response = await client.head(url, follow_redirects=True)
            except httpx.HTTPError as exc:
                return LinkProbeResult(error_message=str(exc) or type(exc).__name__)
        return LinkProbeResult(http_status=response.status_code)
