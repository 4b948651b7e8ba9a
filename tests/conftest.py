from __future__ import annotations

import os

import pytest

from tyrequote.adapters.memory import InMemoryKeyValueStore
from tyrequote.config import RemoteStoreConfig, ResilienceConfig, RetryPolicy

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

WEB_APP_URL = "https://script.example.com/macros/s/abc/exec"


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "TYREQUOTE_WEB_APP_URL",
        "TYREQUOTE_SYNC_INTERVAL_SECONDS",
        "TYREQUOTE_DELETE_COOLDOWN_SECONDS",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def memory_storage() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def remote_config() -> RemoteStoreConfig:
    return RemoteStoreConfig(
        web_app_url=WEB_APP_URL,
        resilience=ResilienceConfig(name="sheets-test", retry=RetryPolicy(total=0)),
    )


@pytest.fixture
def spreadsheet_payload() -> dict[str, object]:
    return {
        "status": "success",
        "data": [
            {
                "customerName": "Ravi",
                "date": "2024-01-05T10:00:00Z",
                "quoteNumber": "Q-1",
                "lineItems": (
                    '[{"id":"1","description":"Tyre","quantity":2,"unitAmount":1000}]'
                ),
            }
        ],
    }
