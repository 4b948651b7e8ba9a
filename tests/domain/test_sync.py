from __future__ import annotations

import asyncio

from tests.helpers.quotes import FakeQuoteStore, make_quote
from tyrequote.adapters.memory import InMemoryKeyValueStore
from tyrequote.adapters.sheets import HTML_RESPONSE_MESSAGE
from tyrequote.domain.errors import NetworkError, ProtocolError
from tyrequote.domain.local_cache import QuoteCache
from tyrequote.domain.model import Quotation
from tyrequote.domain.ports.remote import DeleteReceipt
from tyrequote.domain.sync import (
    UPLOAD_FAILED_MESSAGE,
    RefreshOutcome,
    SaveResult,
    SyncOrchestrator,
    SyncState,
    SyncTimings,
)
from tyrequote.domain.tombstones import TombstoneLedger

IMMEDIATE = SyncTimings(background_interval=0.01, save_settle=0, delete_cooldown=0)


class BlockingDeleteStore(FakeQuoteStore):
    def __init__(self, quotes: list[Quotation] | None = None) -> None:
        super().__init__(quotes)
        self.delete_gate = asyncio.Event()

    async def delete_quote(self, quotation: Quotation) -> DeleteReceipt:
        await self.delete_gate.wait()
        return await super().delete_quote(quotation)


def _orchestrator(
    store: FakeQuoteStore | None,
    *,
    storage: InMemoryKeyValueStore | None = None,
    cached: list[Quotation] | None = None,
    timings: SyncTimings = IMMEDIATE,
) -> SyncOrchestrator:
    backing = storage if storage is not None else InMemoryKeyValueStore()
    cache = QuoteCache(backing)
    if cached:
        cache.save(cached)
    return SyncOrchestrator(
        ledger=TombstoneLedger(backing),
        cache=cache,
        store=store,
        timings=timings,
    )


def test_refresh_applies_remote_list_and_caches_it() -> None:
    storage = InMemoryKeyValueStore()
    remote = [make_quote("q-1"), make_quote("q-2", quote_number="102")]
    orchestrator = _orchestrator(FakeQuoteStore(remote), storage=storage)

    outcome = asyncio.run(orchestrator.refresh())

    assert outcome is RefreshOutcome.APPLIED
    assert [quote.id for quote in orchestrator.quotes] == ["q-1", "q-2"]
    assert [quote.id for quote in QuoteCache(storage).load()] == ["q-1", "q-2"]
    assert orchestrator.status().last_sync is not None


def test_deleted_quote_never_reappears_from_background_sync() -> None:
    quote = make_quote("q-1")
    store = FakeQuoteStore([quote])
    orchestrator = _orchestrator(store, cached=[quote])

    async def scenario() -> None:
        task = orchestrator.delete("q-1")
        assert task is not None
        assert orchestrator.state is SyncState.PAUSED
        assert await orchestrator.background_refresh() is RefreshOutcome.SKIPPED

        await task
        assert not orchestrator.is_paused

        # the remote store is eventually consistent and still returns the row
        assert await orchestrator.background_refresh() is RefreshOutcome.APPLIED
        assert orchestrator.quotes == []
        await orchestrator.aclose()

    asyncio.run(scenario())

    assert store.deleted == [quote]


def test_fetch_resolving_after_pause_is_discarded() -> None:
    stale = make_quote("q-1")
    store = FakeQuoteStore([stale, make_quote("q-2", quote_number="102")])
    orchestrator = _orchestrator(store, cached=[make_quote("local")])

    async def scenario() -> RefreshOutcome:
        store.fetch_gate = asyncio.Event()
        pending = asyncio.create_task(orchestrator.background_refresh())
        while store.fetch_started == 0:
            await asyncio.sleep(0)
        orchestrator.pause()
        store.fetch_gate.set()
        return await pending

    outcome = asyncio.run(scenario())

    assert outcome is RefreshOutcome.DISCARDED
    assert [quote.id for quote in orchestrator.quotes] == ["local"]


def test_delete_during_inflight_fetch_discards_result() -> None:
    doomed = make_quote("q-1")
    store = BlockingDeleteStore([doomed])
    orchestrator = _orchestrator(store, cached=[doomed])

    async def scenario() -> RefreshOutcome:
        store.fetch_gate = asyncio.Event()
        pending = asyncio.create_task(orchestrator.background_refresh())
        while store.fetch_started == 0:
            await asyncio.sleep(0)
        orchestrator.delete("q-1")
        store.fetch_gate.set()
        outcome = await pending
        store.delete_gate.set()
        await orchestrator.wait_idle()
        return outcome

    outcome = asyncio.run(scenario())

    assert outcome is RefreshOutcome.DISCARDED
    assert orchestrator.quotes == []


def test_foreground_html_error_is_surfaced() -> None:
    cached = [make_quote("q-1")]
    store = FakeQuoteStore()
    store.fetch_error = ProtocolError(HTML_RESPONSE_MESSAGE)
    orchestrator = _orchestrator(store, cached=cached)

    outcome = asyncio.run(orchestrator.refresh())

    assert outcome is RefreshOutcome.FAILED
    assert orchestrator.status().error == HTML_RESPONSE_MESSAGE
    assert [quote.id for quote in orchestrator.quotes] == ["q-1"]
    assert not orchestrator.is_syncing


def test_background_error_is_only_logged() -> None:
    store = FakeQuoteStore()
    store.fetch_error = ProtocolError(HTML_RESPONSE_MESSAGE)
    orchestrator = _orchestrator(store, cached=[make_quote("q-1")])

    outcome = asyncio.run(orchestrator.background_refresh())

    assert outcome is RefreshOutcome.FAILED
    assert orchestrator.status().error is None
    assert [quote.id for quote in orchestrator.quotes] == ["q-1"]


def test_refresh_clears_a_previous_error() -> None:
    store = FakeQuoteStore([make_quote("q-1")])
    store.fetch_error = NetworkError("offline")
    orchestrator = _orchestrator(store)

    asyncio.run(orchestrator.refresh())
    assert orchestrator.status().error == "offline"

    store.fetch_error = None
    asyncio.run(orchestrator.refresh())
    assert orchestrator.status().error is None


def test_background_refresh_skips_while_paused_or_offline() -> None:
    offline = _orchestrator(None)
    assert asyncio.run(offline.background_refresh()) is RefreshOutcome.SKIPPED

    store = FakeQuoteStore([make_quote("q-1")])
    paused = _orchestrator(store)
    paused.pause()
    assert asyncio.run(paused.background_refresh()) is RefreshOutcome.SKIPPED
    assert store.fetch_started == 0


def test_explicit_refresh_lifts_the_pause() -> None:
    store = FakeQuoteStore([make_quote("q-1")])
    orchestrator = _orchestrator(store)
    orchestrator.pause()

    outcome = asyncio.run(orchestrator.refresh())

    assert outcome is RefreshOutcome.APPLIED
    assert orchestrator.state is SyncState.IDLE


def test_saving_again_resurrects_a_deleted_quote() -> None:
    quote = make_quote("q-1", quote_number="101")
    store = FakeQuoteStore([quote])
    orchestrator = _orchestrator(store, cached=[quote])

    async def scenario() -> SaveResult:
        task = orchestrator.delete("q-1")
        assert task is not None
        await task
        assert orchestrator.ledger.is_tombstoned(quote)

        result = await orchestrator.create_or_update(quote)
        await orchestrator.wait_idle()
        return result

    result = asyncio.run(scenario())

    assert result is SaveResult.UPLOADED
    assert not orchestrator.ledger.is_tombstoned(quote)
    assert [item.id for item in orchestrator.quotes] == ["q-1"]
    assert store.saved == [quote]


def test_upload_failure_keeps_local_copy() -> None:
    storage = InMemoryKeyValueStore()
    store = FakeQuoteStore()
    store.save_error = NetworkError("offline")
    orchestrator = _orchestrator(store, storage=storage)
    quote = make_quote("q-new")

    result = asyncio.run(orchestrator.create_or_update(quote))

    assert result is SaveResult.UPLOAD_FAILED
    assert orchestrator.status().error == UPLOAD_FAILED_MESSAGE
    assert not orchestrator.is_paused
    assert [item.id for item in QuoteCache(storage).load()] == ["q-new"]


def test_update_replaces_in_place() -> None:
    orchestrator = _orchestrator(None, cached=[make_quote("q-1"), make_quote("q-2")])
    updated = make_quote("q-1", customer_name="Renamed")

    result = asyncio.run(orchestrator.create_or_update(updated))

    assert result is SaveResult.LOCAL_ONLY
    assert [item.id for item in orchestrator.quotes] == ["q-1", "q-2"]
    assert orchestrator.find("q-1") == updated


def test_successful_save_schedules_a_settling_refresh() -> None:
    store = FakeQuoteStore()
    orchestrator = _orchestrator(store)
    quote = make_quote("q-1")
    store.remote = [quote]

    async def scenario() -> None:
        result = await orchestrator.create_or_update(quote)
        assert result is SaveResult.UPLOADED
        await orchestrator.wait_idle()

    asyncio.run(scenario())

    assert store.fetch_started == 1
    assert not orchestrator.is_paused


def test_pause_is_held_until_pending_deletes_settle() -> None:
    doomed = make_quote("q-1")
    store = BlockingDeleteStore([doomed])
    orchestrator = _orchestrator(store, cached=[doomed])

    async def scenario() -> None:
        orchestrator.delete("q-1")
        await orchestrator.create_or_update(make_quote("q-2", quote_number="102"))
        assert orchestrator.is_paused

        store.delete_gate.set()
        await orchestrator.wait_idle()
        assert not orchestrator.is_paused

    asyncio.run(scenario())


def test_delete_cooldown_uses_a_cancellable_timer() -> None:
    doomed = make_quote("q-1")
    store = FakeQuoteStore([doomed])
    timings = SyncTimings(background_interval=60, save_settle=0, delete_cooldown=60)
    orchestrator = _orchestrator(store, cached=[doomed], timings=timings)

    async def scenario() -> None:
        task = orchestrator.delete("q-1")
        assert task is not None
        await task
        assert orchestrator.is_paused
        assert orchestrator.resume_pending

        await orchestrator.refresh()
        assert not orchestrator.resume_pending
        assert not orchestrator.is_paused

    asyncio.run(scenario())

    assert orchestrator.quotes == []


def test_delete_without_remote_is_local_only() -> None:
    orchestrator = _orchestrator(None, cached=[make_quote("q-1")])

    assert orchestrator.delete("q-1") is None
    assert orchestrator.quotes == []
    assert not orchestrator.is_paused
    assert orchestrator.delete("missing") is None


def test_background_loop_polls_until_stopped() -> None:
    store = FakeQuoteStore([make_quote("q-1")])
    orchestrator = _orchestrator(store)

    async def scenario() -> None:
        orchestrator.start(0.01)
        while store.fetch_started < 2:
            await asyncio.sleep(0.01)
        await orchestrator.aclose()

    asyncio.run(scenario())

    assert [quote.id for quote in orchestrator.quotes] == ["q-1"]


def test_delete_from_another_process_is_honoured_by_the_watcher() -> None:
    storage = InMemoryKeyValueStore()
    quote = make_quote("q-1")
    watcher = _orchestrator(FakeQuoteStore([quote]), storage=storage, cached=[quote])
    deleter = _orchestrator(FakeQuoteStore([quote]), storage=storage)

    async def scenario() -> RefreshOutcome:
        task = deleter.delete("q-1")
        assert task is not None
        await task
        return await watcher.background_refresh()

    outcome = asyncio.run(scenario())

    assert outcome is RefreshOutcome.APPLIED
    assert watcher.quotes == []
    assert QuoteCache(storage).load() == []


def test_wait_idle_leaves_a_pending_settle_timer() -> None:
    store = FakeQuoteStore()
    timings = SyncTimings(background_interval=60, save_settle=60, delete_cooldown=0)
    orchestrator = _orchestrator(store, timings=timings)

    async def scenario() -> None:
        assert await orchestrator.create_or_update(make_quote("q-1")) is SaveResult.UPLOADED
        await orchestrator.wait_idle()
        assert orchestrator.resume_pending
        await orchestrator.aclose()

    asyncio.run(scenario())

    assert store.fetch_started == 0
    assert not orchestrator.resume_pending
