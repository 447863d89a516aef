from __future__ import annotations

import asyncio

import httpx

from passagr.adapters.http_resilience import (
    ResilienceConfig,
    ResilientClient,
    RetryPolicy,
    build_retry,
)


def test_retry_covers_post_and_configured_statuses() -> None:
    retry = build_retry(RetryPolicy(total=2, retry_statuses=frozenset({503})))

    assert "POST" in retry.allowed_methods
    assert set(retry.status_forcelist) == {503}


def test_post_is_retried_after_a_server_error() -> None:
    statuses = iter([503, 200])
    methods: list[str] = []

    async def handler(request: httpx.Request) -> httpx.Response:
        methods.append(request.method)
        return httpx.Response(next(statuses))

    config = ResilienceConfig(name="search", retry=RetryPolicy(total=1, backoff_factor=0.0))

    async def send() -> httpx.Response:
        async with ResilientClient(config, transport=httpx.MockTransport(handler)) as client:
            return await client.post("https://search.example.test/documents", json={})

    response = asyncio.run(send())

    assert response.status_code == 200
    assert methods == ["POST", "POST"]
