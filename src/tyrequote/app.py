"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from tyrequote.adapters.backup import read_backup, write_backup
from tyrequote.adapters.memory import InMemoryKeyValueStore
from tyrequote.adapters.sheets import SheetsQuoteStore
from tyrequote.adapters.sqlalchemy import SqlAlchemyKeyValueStore
from tyrequote.config import (
    WEB_APP_URL_ENV,
    SyncConfig,
    get_remote_store_config,
    get_storage_config,
    get_sync_config,
)
from tyrequote.domain.backup import create_backup, restore_backup
from tyrequote.domain.listing import search_quotes
from tyrequote.domain.local_cache import QuoteCache
from tyrequote.domain.settings import PasscodeGate, SettingsStore
from tyrequote.domain.sync import SyncOrchestrator, SyncTimings
from tyrequote.domain.tombstones import TombstoneLedger

if TYPE_CHECKING:
    from pathlib import Path

    from tyrequote.domain.model import CompanyDetails, Quotation
    from tyrequote.domain.ports.remote import DeleteReceipt, QuoteStore
    from tyrequote.domain.ports.storage import KeyValueStore
    from tyrequote.domain.sync import RefreshOutcome, SaveResult


log = getLogger(__name__)


@dataclass(slots=True)
class QuoteApp:
    """Everything one session of the tool works with."""

    storage: KeyValueStore
    settings: SettingsStore
    company: CompanyDetails
    ledger: TombstoneLedger
    cache: QuoteCache
    orchestrator: SyncOrchestrator

    def gate(self, session: KeyValueStore | None = None) -> PasscodeGate:
        return PasscodeGate(session or self.storage, passcode=self.company.passcode)


def open_local_storage(uri: str | None = None) -> KeyValueStore:
    """Open the SQLite-backed store, degrading to memory if it cannot be opened."""

    try:
        return SqlAlchemyKeyValueStore.from_uri(uri)
    except Exception as exc:  # noqa: BLE001
        log.warning("Local storage unavailable (%s); nothing will persist this session", exc)
        return InMemoryKeyValueStore()


def resolve_web_app_url(company: CompanyDetails) -> str | None:
    url = (os.getenv(WEB_APP_URL_ENV) or company.web_app_url).strip()
    return url or None


def sync_timings(config: SyncConfig | None = None) -> SyncTimings:
    effective = config or get_sync_config()
    return SyncTimings(
        background_interval=effective.background_interval_seconds,
        save_settle=effective.save_settle_seconds,
        delete_cooldown=effective.delete_cooldown_seconds,
    )


def build_app(
    *,
    storage: KeyValueStore | None = None,
    store: QuoteStore | None = None,
    remote: bool = True,
    sync_config: SyncConfig | None = None,
) -> QuoteApp:
    """Wire the local stores, the ledger and (when configured) the remote adapter."""

    effective_storage = storage if storage is not None else open_local_storage()
    settings = SettingsStore(effective_storage)
    company = settings.load()

    effective_store = store
    if effective_store is None and remote:
        url = resolve_web_app_url(company)
        if url:
            effective_store = SheetsQuoteStore(config=get_remote_store_config(web_app_url=url))
        else:
            log.info("No web app URL configured; working from the local cache only")

    ledger = TombstoneLedger(effective_storage)
    cache = QuoteCache(effective_storage)
    orchestrator = SyncOrchestrator(
        ledger=ledger,
        cache=cache,
        store=effective_store,
        timings=sync_timings(sync_config),
    )
    return QuoteApp(
        storage=effective_storage,
        settings=settings,
        company=company,
        ledger=ledger,
        cache=cache,
        orchestrator=orchestrator,
    )


async def list_quotes(
    app: QuoteApp,
    *,
    term: str = "",
    date: str | None = None,
) -> tuple[RefreshOutcome, list[Quotation]]:
    outcome = await app.orchestrator.refresh()
    error = app.orchestrator.status().error
    if error:
        log.error("Showing cached quotations: %s", error)
    return outcome, search_quotes(app.orchestrator.quotes, term=term, date=date)


async def save_quote(app: QuoteApp, quotation: Quotation) -> SaveResult:
    result = await app.orchestrator.create_or_update(quotation)
    log.info("Saved quotation %s (%s)", quotation.id, result)
    await app.orchestrator.wait_idle()
    return result


async def delete_quote(app: QuoteApp, quote_id: str) -> DeleteReceipt | None:
    """Delete locally, then wait for every remote leg so the process can exit cleanly."""

    task = app.orchestrator.delete(quote_id)
    if task is None:
        return None
    receipt = await task
    if receipt is not None:
        await receipt.settled()
    return receipt


async def watch(app: QuoteApp, *, interval: float | None = None) -> None:
    """Refresh once, then keep syncing in the background until cancelled."""

    orchestrator = app.orchestrator
    await orchestrator.refresh()
    log.info(
        "Watching remote store every %ss (%s visible)",
        interval or orchestrator.timings.background_interval,
        len(orchestrator.quotes),
    )
    orchestrator.start(interval)
    try:
        await asyncio.Event().wait()
    finally:
        await orchestrator.aclose()


def export_backup(app: QuoteApp, *, directory: Path | None = None) -> Path:
    snapshot = create_backup(
        quotes=app.orchestrator.quotes,
        company_details=app.company,
        ledger=app.ledger,
    )
    return write_backup(snapshot, directory or get_storage_config().backup_dir())


def import_backup(app: QuoteApp, path: Path) -> list[Quotation]:
    snapshot = read_backup(path)
    restored = restore_backup(
        snapshot, cache=app.cache, settings=app.settings, ledger=app.ledger
    )
    app.company = app.settings.load()
    app.orchestrator.reload_local()
    return restored
