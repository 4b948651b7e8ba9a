"""Backup snapshots of quotations, settings and tombstones."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from tyrequote.domain.local_cache import QuoteCache
    from tyrequote.domain.model import CompanyDetails, Quotation
    from tyrequote.domain.settings import SettingsStore
    from tyrequote.domain.tombstones import TombstoneLedger

BACKUP_VERSION: Final[str] = "1.4"

log = logging.getLogger(__name__)


@dataclass(slots=True, kw_only=True)
class BackupSnapshot:
    quotes: list[Quotation]
    version: str = BACKUP_VERSION
    timestamp: datetime | None = None
    company_details: CompanyDetails | None = None
    blacklisted_ids: list[str] = field(default_factory=list)
    blacklisted_numbers: list[str] = field(default_factory=list)


def create_backup(
    *,
    quotes: Sequence[Quotation],
    company_details: CompanyDetails,
    ledger: TombstoneLedger,
    clock: Callable[[], datetime] = lambda: datetime.now(UTC),
) -> BackupSnapshot:
    snapshot = ledger.snapshot()
    return BackupSnapshot(
        quotes=list(quotes),
        timestamp=clock(),
        company_details=company_details,
        blacklisted_ids=sorted(snapshot.ids),
        blacklisted_numbers=sorted(snapshot.numbers),
    )


def backup_filename(when: datetime) -> str:
    return f"tyre_quotation_backup_{when.date().isoformat()}.json"


def restore_backup(
    snapshot: BackupSnapshot,
    *,
    cache: QuoteCache,
    settings: SettingsStore,
    ledger: TombstoneLedger | None = None,
) -> list[Quotation]:
    """Overwrite the settings (when present) and then the local cache with the snapshot."""

    if snapshot.company_details is not None:
        settings.save(snapshot.company_details)
    cache.save(snapshot.quotes)
    if ledger is not None and (snapshot.blacklisted_ids or snapshot.blacklisted_numbers):
        ledger.merge(ids=snapshot.blacklisted_ids, numbers=snapshot.blacklisted_numbers)
    log.info(
        "Restored %s quotation(s) from backup version %s", len(snapshot.quotes), snapshot.version
    )
    return list(snapshot.quotes)
