"""Tombstone ledger suppressing deleted quotations that the remote store still returns.

A quotation counts as deleted when its identifier, its quote number or its content
fingerprint was recorded. Matching on any one of the three over-matches on purpose:
hiding an unrelated quote that shares a number is preferred over resurrecting a
deleted one.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from tyrequote.domain.identity import fingerprint, normalize_text

if TYPE_CHECKING:
    from collections.abc import Iterable

    from tyrequote.domain.model import Quotation
    from tyrequote.domain.ports.storage import KeyValueStore

IDS_KEY: Final[str] = "bl_ids"
NUMBERS_KEY: Final[str] = "bl_numbers"
FINGERPRINTS_KEY: Final[str] = "bl_fingerprints"
LEGACY_IDS_KEY: Final[str] = "blacklistedIds"

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TombstoneKeys:
    """Normalized ledger keys of one quotation."""

    id: str
    quote_number: str
    fingerprint: str

    @classmethod
    def of(cls, quotation: Quotation) -> TombstoneKeys:
        return cls(
            id=normalize_text(quotation.id),
            quote_number=normalize_text(quotation.quote_number),
            fingerprint=fingerprint(quotation),
        )


@dataclass(frozen=True, slots=True)
class LedgerSnapshot:
    ids: frozenset[str]
    numbers: frozenset[str]
    fingerprints: frozenset[str]


class TombstoneLedger:
    """Persisted id / quote-number / fingerprint sets with an explicit resurrection path.

    Every mutation is written through to ``storage`` before the method returns. When the
    storage is missing or fails, the ledger keeps working in memory for the rest of the
    session.
    """

    def __init__(self, storage: KeyValueStore | None = None) -> None:
        self._storage = storage
        self._degraded = storage is None
        self._ids: set[str] = set()
        self._numbers: set[str] = set()
        self._fingerprints: set[str] = set()
        self.reload()

    @property
    def is_persistent(self) -> bool:
        return not self._degraded

    def reload(self) -> None:
        """Re-read the persisted sets, folding in the legacy id ledger."""

        if self._degraded or self._storage is None:
            return
        try:
            ids = self._read_set(IDS_KEY)
            numbers = self._read_set(NUMBERS_KEY)
            fingerprints = self._read_set(FINGERPRINTS_KEY)
            legacy = self._read_set(LEGACY_IDS_KEY)
        except Exception as exc:  # noqa: BLE001
            self._degrade("read", exc)
            return
        ids.update(normalize_text(value) for value in legacy)
        # an empty marker would match every quotation without an id or number
        ids.discard("")
        numbers.discard("")
        self._ids, self._numbers, self._fingerprints = ids, numbers, fingerprints

    def record(self, quotation: Quotation) -> TombstoneKeys:
        keys = TombstoneKeys.of(quotation)
        if keys.id:
            self._ids.add(keys.id)
        if keys.quote_number:
            self._numbers.add(keys.quote_number)
        self._fingerprints.add(keys.fingerprint)
        self._persist()
        log.debug("Tombstoned quotation id=%s number=%s", keys.id, keys.quote_number)
        return keys

    def is_tombstoned(self, quotation: Quotation) -> bool:
        keys = TombstoneKeys.of(quotation)
        return (
            keys.id in self._ids
            or keys.quote_number in self._numbers
            or keys.fingerprint in self._fingerprints
        )

    def resurrect(self, quotation: Quotation) -> bool:
        """Drop every marker of ``quotation``; return whether anything was removed."""

        keys = TombstoneKeys.of(quotation)
        removed = False
        for bucket, key in (
            (self._ids, keys.id),
            (self._numbers, keys.quote_number),
            (self._fingerprints, keys.fingerprint),
        ):
            if key in bucket:
                bucket.discard(key)
                removed = True
        if removed:
            self._persist()
            log.info("Resurrected quotation id=%s number=%s", keys.id, keys.quote_number)
        return removed

    def filter_visible(self, quotations: Iterable[Quotation]) -> list[Quotation]:
        return [quotation for quotation in quotations if not self.is_tombstoned(quotation)]

    def snapshot(self) -> LedgerSnapshot:
        return LedgerSnapshot(
            ids=frozenset(self._ids),
            numbers=frozenset(self._numbers),
            fingerprints=frozenset(self._fingerprints),
        )

    def merge(self, *, ids: Iterable[str] = (), numbers: Iterable[str] = ()) -> None:
        """Union externally supplied markers (e.g. from a backup) into the ledger."""

        self._ids.update(normalize_text(value) for value in ids if normalize_text(value))
        self._numbers.update(
            normalize_text(value) for value in numbers if normalize_text(value)
        )
        self._persist()

    def _read_set(self, key: str) -> set[str]:
        assert self._storage is not None
        raw = self._storage.get(key)
        if not raw:
            return set()
        try:
            values = json.loads(raw)
        except json.JSONDecodeError:
            log.warning("Ignoring corrupt ledger entry %s", key)
            return set()
        if not isinstance(values, list):
            log.warning("Ignoring ledger entry %s of type %s", key, type(values).__name__)
            return set()
        return {str(value) for value in values}

    def _persist(self) -> None:
        if self._degraded or self._storage is None:
            return
        try:
            self._storage.set(IDS_KEY, json.dumps(sorted(self._ids)))
            self._storage.set(NUMBERS_KEY, json.dumps(sorted(self._numbers)))
            self._storage.set(FINGERPRINTS_KEY, json.dumps(sorted(self._fingerprints)))
        except Exception as exc:  # noqa: BLE001
            self._degrade("write", exc)

    def _degrade(self, operation: str, exc: Exception) -> None:
        self._degraded = True
        log.warning(
            "Tombstone ledger %s failed (%s); keeping tombstones in memory for this session",
            operation,
            exc,
        )


__all__ = [
    "FINGERPRINTS_KEY",
    "IDS_KEY",
    "LEGACY_IDS_KEY",
    "NUMBERS_KEY",
    "LedgerSnapshot",
    "TombstoneKeys",
    "TombstoneLedger",
]
