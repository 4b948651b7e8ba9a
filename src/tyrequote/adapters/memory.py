"""In-process key-value store for sessions and tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

    from tyrequote.domain.ports.storage import KeyValueStore


class InMemoryKeyValueStore:
    def __init__(self, initial: Mapping[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def delete(self, key: str) -> None:
        self._values.pop(key, None)

    def snapshot(self) -> dict[str, str]:
        return dict(self._values)


if TYPE_CHECKING:
    _store_check: KeyValueStore = InMemoryKeyValueStore()
