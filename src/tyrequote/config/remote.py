"""Remote quotation store (spreadsheet web app) configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import require_env_vars
from .http_resilience import RateLimit, ResilienceConfig

WEB_APP_URL_ENV = "TYREQUOTE_WEB_APP_URL"
REMOTE_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True)
class RemoteStoreConfig:
    """Endpoint of the deployed web app plus its HTTP behaviour."""

    web_app_url: str
    resilience: ResilienceConfig


def default_resilience_config() -> ResilienceConfig:
    return ResilienceConfig(
        name="sheets",
        timeout_seconds=REMOTE_TIMEOUT_SECONDS,
        # Apps Script web apps throttle bursts of executions per user
        ratelimit=RateLimit(max_calls=5, per_seconds=1.0),
    )


def get_remote_store_config(
    *,
    web_app_url: str | None = None,
    resilience: ResilienceConfig | None = None,
) -> RemoteStoreConfig:
    url = web_app_url or require_env_vars((WEB_APP_URL_ENV,))[WEB_APP_URL_ENV]
    return RemoteStoreConfig(
        web_app_url=url.strip(),
        resilience=resilience or default_resilience_config(),
    )
