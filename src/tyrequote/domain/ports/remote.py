"""Port for the remote quotation store."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    import asyncio

    from tyrequote.domain.model import Quotation


class BestEffortOutcome(StrEnum):
    """Result of a request whose failure the caller deliberately tolerates."""

    SENT = "sent"
    FAILED_IGNORED = "failed-ignored"


@dataclass(slots=True)
class DeleteReceipt:
    """What happened to each leg of a remote delete.

    ``hard_delete`` is resolved when the hard delete was awaited as a fallback, and is
    ``None`` while ``hard_delete_task`` (the detached request) is still in flight.
    """

    soft_delete: BestEffortOutcome
    hard_delete: BestEffortOutcome | None = None
    hard_delete_task: asyncio.Task[BestEffortOutcome] | None = None

    async def settled(self) -> BestEffortOutcome | None:
        """Wait for the detached hard delete (if any) and return its outcome."""

        if self.hard_delete is None and self.hard_delete_task is not None:
            self.hard_delete = await self.hard_delete_task
        return self.hard_delete


@runtime_checkable
class QuoteStore(Protocol):
    """Remote source of truth the orchestrator reconciles against."""

    async def fetch_quotes(self) -> list[Quotation]: ...

    async def save_quote(self, quotation: Quotation) -> None: ...

    async def delete_quote(self, quotation: Quotation) -> DeleteReceipt: ...


__all__ = ["BestEffortOutcome", "DeleteReceipt", "QuoteStore"]
