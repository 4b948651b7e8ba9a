"""HTTP client for the spreadsheet web app backing the quotation store."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from logging import getLogger
from typing import TYPE_CHECKING, Any

import httpx

from tyrequote.adapters.http_resilience import ResilienceConfig, ResilientClient
from tyrequote.config.remote import RemoteStoreConfig, get_remote_store_config
from tyrequote.domain.errors import HttpError, NetworkError, ProtocolError
from tyrequote.domain.ports.remote import BestEffortOutcome, DeleteReceipt, QuoteStore

from .translator import (
    extract_records,
    hard_delete_request,
    parse_quotations,
    save_request,
    soft_delete_request,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from tyrequote.domain.model import Quotation

log = getLogger(__name__)

# a plain-text body keeps the browser-era web app from needing a CORS preflight
_POST_HEADERS = {"Content-Type": "text/plain;charset=utf-8"}
_READ_HEADERS = {"Cache-Control": "no-store"}
HTML_RESPONSE_MESSAGE = (
    "Server returned HTML. Ensure the web app is deployed with 'Anyone' access."
)
INVALID_RESPONSE_MESSAGE = "Invalid response format from server."


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _looks_like_html(text: str) -> bool:
    return text.lstrip().startswith("<")


@dataclass(slots=True)
class SheetsQuoteStore:
    config: RemoteStoreConfig = field(default_factory=get_remote_store_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )
    clock: Callable[[], datetime] = field(default=_utcnow)
    today: Callable[[], date] = field(default=date.today)
    _detached: set[asyncio.Task[BestEffortOutcome]] = field(
        default_factory=set, init=False, repr=False
    )

    @property
    def url(self) -> str:
        return self.config.web_app_url

    async def fetch_quotes(self) -> list[Quotation]:
        cache_buster = str(int(self.clock().timestamp() * 1000))
        params = httpx.QueryParams({"action": "read", "t": cache_buster})
        try:
            async with self.client_factory(self.config.resilience) as client:
                response = await client.get(self.url, params=params, headers=_READ_HEADERS)
        except httpx.HTTPError as exc:
            log.error("Error fetching quotes from the remote store: %s", exc)
            raise NetworkError(f"Could not reach the remote store: {exc}") from exc

        if not response.is_success:
            raise HttpError(
                f"HTTP error! status: {response.status_code}",
                status_code=response.status_code,
            )

        text = response.text
        if _looks_like_html(text):
            log.error("Received HTML instead of JSON. Check web app permissions.")
            raise ProtocolError(HTML_RESPONSE_MESSAGE)
        try:
            payload = json.loads(text)
        except json.JSONDecodeError:
            log.error("JSON parse error: %.100s", text)
            raise ProtocolError(INVALID_RESPONSE_MESSAGE) from None

        quotations = parse_quotations(extract_records(payload), today=self.today)
        log.debug("Fetched %s quotation(s) from the remote store", len(quotations))
        return quotations

    async def save_quote(self, quotation: Quotation) -> None:
        """Upload ``quotation``; only a transport failure is raised."""

        response = await self._post("save", save_request(quotation))
        self._inspect_write_response("save", response)

    async def delete_quote(self, quotation: Quotation) -> DeleteReceipt:
        """Soft delete first; the hard delete is a detached follow-up or the fallback."""

        hard_body = hard_delete_request(quotation)
        try:
            response = await self._post("save", soft_delete_request(quotation))
        except NetworkError as exc:
            log.error("Backend soft delete failed for %s: %s", quotation.id, exc)
            outcome = await self._hard_delete(hard_body)
            if outcome is BestEffortOutcome.FAILED_IGNORED:
                log.error("Hard delete also failed for %s", quotation.id)
            return DeleteReceipt(
                soft_delete=BestEffortOutcome.FAILED_IGNORED,
                hard_delete=outcome,
            )

        self._inspect_write_response("soft delete", response)
        task = asyncio.get_running_loop().create_task(self._hard_delete(hard_body))
        self._detached.add(task)
        task.add_done_callback(self._detached.discard)
        return DeleteReceipt(soft_delete=BestEffortOutcome.SENT, hard_delete_task=task)

    async def wait_detached(self) -> None:
        """Wait for fire-and-forget hard deletes still in flight."""

        if self._detached:
            await asyncio.gather(*list(self._detached), return_exceptions=True)

    async def _hard_delete(self, body: dict[str, Any]) -> BestEffortOutcome:
        try:
            response = await self._post("delete", body)
        except NetworkError as exc:
            log.warning("Hard delete request failed (ignored): %s", exc)
            return BestEffortOutcome.FAILED_IGNORED
        if not response.is_success:
            log.warning("Hard delete answered HTTP %s (ignored)", response.status_code)
            return BestEffortOutcome.FAILED_IGNORED
        return BestEffortOutcome.SENT

    async def _post(self, action: str, body: dict[str, Any]) -> httpx.Response:
        params = httpx.QueryParams({"action": action})
        try:
            async with self.client_factory(self.config.resilience) as client:
                return await client.post(
                    self.url,
                    params=params,
                    content=json.dumps(body),
                    headers=_POST_HEADERS,
                )
        except httpx.HTTPError as exc:
            raise NetworkError(f"Could not reach the remote store: {exc}") from exc

    def _inspect_write_response(self, operation: str, response: httpx.Response) -> None:
        # writes are judged optimistically: anomalies are logged, never raised
        if not response.is_success:
            log.warning("Remote %s answered HTTP %s", operation, response.status_code)
            return
        text = response.text
        try:
            result = json.loads(text)
        except json.JSONDecodeError:
            if _looks_like_html(text):
                log.error("Remote %s returned HTML (permission or script error)", operation)
            else:
                log.warning("Remote %s returned a non-JSON body: %.100s", operation, text)
            return
        if not isinstance(result, dict) or result.get("status") != "success":
            log.warning("Remote %s response status: %s", operation, result)


if TYPE_CHECKING:
    _store_check: QuoteStore = SheetsQuoteStore()
