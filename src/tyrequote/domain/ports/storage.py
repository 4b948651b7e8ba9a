"""Port for local key-value persistence."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class KeyValueStore(Protocol):
    """String-to-string storage used for the quote cache, settings and the ledger."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


__all__ = ["KeyValueStore"]
