"""Coordinate local edits with the remote quotation store.

The orchestrator owns the visible quotation list, the tombstone ledger, the local cache
and the pause gate. Everything runs on one asyncio loop; the pause flag is the only
synchronisation primitive:

- a delete sets the flag before touching the ledger, the list or the network;
- fetch results are dropped if the flag is set when the request resolves;
- the flag is cleared by an explicit :meth:`SyncOrchestrator.refresh` or by a resume
  timer scheduled once outstanding remote work has settled.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING

from tyrequote.domain.errors import NetworkError

if TYPE_CHECKING:
    from collections.abc import Callable, Coroutine

    from tyrequote.domain.local_cache import QuoteCache
    from tyrequote.domain.model import Quotation
    from tyrequote.domain.ports.remote import DeleteReceipt, QuoteStore
    from tyrequote.domain.tombstones import TombstoneLedger

log = logging.getLogger(__name__)

UPLOAD_FAILED_MESSAGE = (
    "Saved locally but failed to upload to the remote store. Check connection."
)


class SyncState(StrEnum):
    IDLE = "idle"
    SYNCING = "syncing"
    PAUSED = "paused"


class RefreshOutcome(StrEnum):
    APPLIED = "applied"
    SKIPPED = "skipped"
    DISCARDED = "discarded"
    FAILED = "failed"


class SaveResult(StrEnum):
    UPLOADED = "uploaded"
    LOCAL_ONLY = "local-only"
    UPLOAD_FAILED = "upload-failed"


@dataclass(frozen=True, slots=True)
class SyncTimings:
    """Delays, in seconds, that shape the sync cadence."""

    background_interval: float = 30.0
    save_settle: float = 2.0
    delete_cooldown: float = 8.0


@dataclass(frozen=True, slots=True)
class SyncStatus:
    state: SyncState
    is_syncing: bool
    error: str | None
    last_sync: datetime | None


def _utcnow() -> datetime:
    return datetime.now(UTC)


class SyncOrchestrator:
    def __init__(
        self,
        *,
        ledger: TombstoneLedger,
        cache: QuoteCache,
        store: QuoteStore | None = None,
        timings: SyncTimings | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.ledger = ledger
        self.cache = cache
        self.store = store
        self.timings = timings or SyncTimings()
        self._clock = clock

        self._quotes: list[Quotation] = cache.load()
        self._error: str | None = None
        self._last_sync: datetime | None = None

        self._paused = False
        self._fetching = False
        self._saving = False
        self._pending_deletes = 0
        self._resume_handle: asyncio.TimerHandle | None = None
        self._background_task: asyncio.Task[None] | None = None
        self._tasks: set[asyncio.Task[object]] = set()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------
    @property
    def quotes(self) -> list[Quotation]:
        return list(self._quotes)

    @property
    def is_paused(self) -> bool:
        return self._paused

    @property
    def is_syncing(self) -> bool:
        return self._fetching or self._saving

    @property
    def state(self) -> SyncState:
        if self._paused:
            return SyncState.PAUSED
        if self.is_syncing:
            return SyncState.SYNCING
        return SyncState.IDLE

    @property
    def resume_pending(self) -> bool:
        return self._resume_handle is not None

    def status(self) -> SyncStatus:
        return SyncStatus(
            state=self.state,
            is_syncing=self.is_syncing,
            error=self._error,
            last_sync=self._last_sync,
        )

    def find(self, quote_id: str) -> Quotation | None:
        return next((quote for quote in self._quotes if quote.id == quote_id), None)

    def reload_local(self) -> list[Quotation]:
        """Replace the visible list with the locally cached one (e.g. after a restore)."""

        self._quotes = self.cache.load()
        return self.quotes

    # ------------------------------------------------------------------
    # Pause gate
    # ------------------------------------------------------------------
    def pause(self) -> None:
        """Block background fetches and invalidate any fetch already in flight."""

        self._cancel_resume()
        self._paused = True

    def resume(self, delay: float | None = None, *, refresh: bool = False) -> None:
        """Lift the pause now, or after ``delay`` seconds replacing any pending timer."""

        self._cancel_resume()
        if not delay:
            self._paused = False
            if refresh:
                self._spawn(self.background_refresh())
            return
        loop = asyncio.get_running_loop()
        self._resume_handle = loop.call_later(delay, self._on_resume_timer, refresh)

    def _on_resume_timer(self, refresh: bool) -> None:
        self._resume_handle = None
        self._paused = False
        log.debug("Sync pause lifted by timer")
        if refresh:
            self._spawn(self.background_refresh())

    def _cancel_resume(self) -> None:
        if self._resume_handle is not None:
            self._resume_handle.cancel()
            self._resume_handle = None

    def _release_pause(self, delay: float | None = None, *, refresh: bool = False) -> None:
        # a delete still in flight owns the pause; its settlement schedules the resume
        if self._pending_deletes:
            log.debug("Keeping sync paused: %s remote delete(s) pending", self._pending_deletes)
            return
        self.resume(delay, refresh=refresh)

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------
    async def refresh(self) -> RefreshOutcome:
        """Foreground refresh requested by the user; clears any pause first."""

        self._cancel_resume()
        self._paused = False
        if self.store is None:
            self._quotes = self.cache.load()
            self._last_sync = self._clock()
            return RefreshOutcome.APPLIED
        if self._fetching:
            log.debug("Foreground refresh already running")
            return RefreshOutcome.SKIPPED
        return await self._fetch(background=False)

    async def background_refresh(self) -> RefreshOutcome:
        if self.store is None or self.is_syncing or self._paused:
            return RefreshOutcome.SKIPPED
        return await self._fetch(background=True)

    async def _fetch(self, *, background: bool) -> RefreshOutcome:
        assert self.store is not None
        if self._paused:
            return RefreshOutcome.SKIPPED

        if not background:
            self._fetching = True
        self._error = None
        try:
            remote_quotes = await self.store.fetch_quotes()
        except Exception as exc:  # noqa: BLE001
            if background:
                log.warning("Background sync failed: %s", exc)
            else:
                log.error("Sync with the remote store failed: %s", exc)
                self._error = str(exc) or "Failed to connect to the remote store"
            return RefreshOutcome.FAILED
        finally:
            if not background:
                self._fetching = False

        if self._paused:
            log.info("Sync result ignored due to pending user action")
            return RefreshOutcome.DISCARDED

        # another process sharing the storage may have deleted quotations since start-up
        self.ledger.reload()
        visible = self.ledger.filter_visible(remote_quotes)
        self._quotes = visible
        self.cache.save(visible)
        self._last_sync = self._clock()
        log.debug(
            "Applied sync: %s visible of %s fetched quotation(s)", len(visible), len(remote_quotes)
        )
        return RefreshOutcome.APPLIED

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    async def create_or_update(self, quotation: Quotation) -> SaveResult:
        """Persist locally at once, then upload; local data survives an upload failure."""

        updated = list(self._quotes)
        for index, existing in enumerate(updated):
            if existing.id == quotation.id:
                updated[index] = quotation
                break
        else:
            updated.append(quotation)
        self._quotes = updated

        if self.ledger.is_tombstoned(quotation):
            self.ledger.resurrect(quotation)
        self.cache.save(updated)

        if self.store is None:
            return SaveResult.LOCAL_ONLY

        self._saving = True
        self.pause()
        try:
            await self.store.save_quote(quotation)
        except NetworkError as exc:
            log.warning("Upload of quotation %s failed: %s", quotation.id, exc)
            self._error = UPLOAD_FAILED_MESSAGE
            self._release_pause()
            return SaveResult.UPLOAD_FAILED
        except BaseException:
            self._release_pause()
            raise
        finally:
            self._saving = False

        self._release_pause(self.timings.save_settle, refresh=True)
        return SaveResult.UPLOADED

    def delete(self, quote_id: str) -> asyncio.Task[DeleteReceipt | None] | None:
        """Delete locally right away and hand the remote delete to a detached task.

        The returned task (``None`` when nothing remote was started) resolves to the
        remote receipt, or ``None`` if the remote delete itself blew up. Local state is
        never rolled back.
        """

        quotation = self.find(quote_id)
        if quotation is None:
            self._quotes = [quote for quote in self._quotes if quote.id != quote_id]
            return None

        self.pause()
        self.ledger.record(quotation)
        self._quotes = [quote for quote in self._quotes if quote.id != quote_id]
        self.cache.save(self._quotes)

        if self.store is None:
            self._release_pause()
            return None

        self._pending_deletes += 1
        return self._spawn(self._delete_remote(quotation))

    async def _delete_remote(self, quotation: Quotation) -> DeleteReceipt | None:
        assert self.store is not None
        try:
            receipt = await self.store.delete_quote(quotation)
        except Exception:  # noqa: BLE001
            log.warning(
                "Remote delete of %s failed; tombstone keeps it hidden", quotation.id, exc_info=True
            )
            return None
        else:
            log.info("Remote delete request sent for %s", quotation.id)
            return receipt
        finally:
            self._pending_deletes -= 1
            self._release_pause(self.timings.delete_cooldown)

    # ------------------------------------------------------------------
    # Background loop & lifecycle
    # ------------------------------------------------------------------
    async def run_background(self, interval: float | None = None) -> None:
        period = interval if interval is not None else self.timings.background_interval
        while True:
            await asyncio.sleep(period)
            await self.background_refresh()

    def start(self, interval: float | None = None) -> None:
        if self._background_task is not None and not self._background_task.done():
            return
        self._background_task = asyncio.get_running_loop().create_task(
            self.run_background(interval), name="tyrequote-background-sync"
        )

    def stop(self) -> None:
        if self._background_task is not None:
            self._background_task.cancel()
            self._background_task = None

    async def wait_idle(self) -> None:
        """Wait for detached tasks (remote deletes, refreshes already started) to finish.

        A resume timer that has not fired yet is left pending; its refresh only runs if
        the loop outlives the timer.
        """

        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def aclose(self) -> None:
        self.stop()
        self._cancel_resume()
        for task in list(self._tasks):
            task.cancel()
        await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _spawn[T](self, coro: Coroutine[object, object, T]) -> asyncio.Task[T]:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)  # type: ignore[arg-type]
        task.add_done_callback(self._tasks.discard)  # type: ignore[arg-type]
        return task


__all__ = [
    "UPLOAD_FAILED_MESSAGE",
    "RefreshOutcome",
    "SaveResult",
    "SyncOrchestrator",
    "SyncState",
    "SyncStatus",
    "SyncTimings",
]
