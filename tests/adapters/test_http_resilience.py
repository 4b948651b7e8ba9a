from __future__ import annotations

import asyncio

import httpx

from tyrequote.adapters.http_resilience import ResilientClient, build_retry
from tyrequote.config import RateLimit, ResilienceConfig, RetryPolicy


def test_build_retry_maps_policy() -> None:
    retry = build_retry(RetryPolicy(total=5, backoff_factor=0.1))

    assert retry.total == 5
    assert retry.backoff_factor == 0.1


def test_client_sends_through_limiter_and_hooks() -> None:
    seen_statuses: list[int] = []

    async def hook(response: httpx.Response) -> None:
        seen_statuses.append(response.status_code)

    config = ResilienceConfig(
        name="test",
        base_url="https://example.com",
        retry=RetryPolicy(total=0),
        ratelimit=RateLimit(max_calls=2, per_seconds=1.0),
        response_hooks=(hook,),
        default_headers={"X-Client": "tyrequote"},
    )

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"client": request.headers["X-Client"]})

    async def scenario() -> list[httpx.Response]:
        async with ResilientClient(config, transport=httpx.MockTransport(handler)) as client:
            return [await client.get("/a"), await client.post("/b", content="{}")]

    responses = asyncio.run(scenario())

    assert [response.json()["client"] for response in responses] == ["tyrequote", "tyrequote"]
    assert seen_statuses == [200, 200]
