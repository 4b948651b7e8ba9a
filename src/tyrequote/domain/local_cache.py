"""Locally persisted copy of the visible quotation list."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Final

from tyrequote.domain.model import Quotation

if TYPE_CHECKING:
    from collections.abc import Sequence

    from tyrequote.domain.ports.storage import KeyValueStore

QUOTES_KEY: Final[str] = "tyreQuotes"

log = logging.getLogger(__name__)


class QuoteCache:
    """JSON list of quotations stored under a single key."""

    def __init__(self, storage: KeyValueStore | None = None, *, key: str = QUOTES_KEY) -> None:
        self._storage = storage
        self._key = key

    def load(self) -> list[Quotation]:
        if self._storage is None:
            return []
        try:
            raw = self._storage.get(self._key)
        except Exception:  # noqa: BLE001
            log.warning("Could not read the local quotation cache", exc_info=True)
            return []
        if not raw:
            return []
        try:
            records = json.loads(raw)
        except json.JSONDecodeError:
            log.warning("Local quotation cache is corrupt; starting empty")
            return []
        if not isinstance(records, list):
            return []
        return [Quotation.from_record(record) for record in records if isinstance(record, dict)]

    def save(self, quotations: Sequence[Quotation]) -> None:
        if self._storage is None:
            return
        payload = json.dumps([quotation.to_record() for quotation in quotations])
        try:
            self._storage.set(self._key, payload)
        except Exception:  # noqa: BLE001
            log.warning("Could not write the local quotation cache", exc_info=True)
