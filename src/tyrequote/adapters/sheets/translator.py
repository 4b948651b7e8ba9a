"""Translate spreadsheet rows into quotations and quotations into write requests."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date as date_type
from logging import getLogger
from typing import TYPE_CHECKING, Any, cast

import pydantic

from tyrequote.domain.identity import resolve_identifier
from tyrequote.domain.model import DEFAULT_TAX_RATE, LineItem, Quotation, QuoteStatus

from .schema import QuotePayload

if TYPE_CHECKING:
    from collections.abc import Callable

log = getLogger(__name__)


def extract_records(payload: object) -> list[Mapping[str, Any]]:
    """Unwrap ``{status, data}``, a bare list or ``{data}`` into raw row mappings."""

    rows: object = []
    if isinstance(payload, list):
        rows = payload
    elif isinstance(payload, Mapping):
        envelope = cast(Mapping[str, object], payload)
        data = envelope.get("data")
        if isinstance(data, list):
            rows = data
        elif envelope.get("status") not in (None, "success"):
            log.warning("Remote store answered with status %r", envelope.get("status"))
    records: list[Mapping[str, Any]] = []
    for row in cast(list[object], rows):
        if isinstance(row, Mapping):
            records.append(cast(Mapping[str, Any], row))
        else:
            log.warning("Skipping non-object row of type %s", type(row).__name__)
    return records


def _normalize_date(raw: str, today: Callable[[], date_type]) -> str:
    value = raw.strip()
    if "T" in value:
        value = value.split("T", 1)[0]
    return value or today().isoformat()


def parse_quotation(
    record: Mapping[str, Any] | QuotePayload,
    *,
    today: Callable[[], date_type] = date_type.today,
) -> Quotation:
    """Normalize one remote row; a missing or placeholder id becomes a generated one."""

    payload = record if isinstance(record, QuotePayload) else QuotePayload.model_validate(record)
    row_date = _normalize_date(payload.date, today)
    identifier = resolve_identifier(
        payload.id,
        customer_name=payload.customer_name,
        date=row_date,
        quote_number=payload.quote_number,
    )
    return Quotation(
        id=identifier,
        quote_number=payload.quote_number,
        date=row_date,
        customer_name=payload.customer_name,
        customer_phone=payload.customer_phone,
        customer_email=payload.customer_email,
        customer_address=payload.customer_address,
        vehicle_make=payload.vehicle_make,
        vehicle_model=payload.vehicle_model,
        vehicle_no=payload.vehicle_no,
        line_items=[
            LineItem(
                id=item.id or str(position + 1),
                description=item.description,
                quantity=item.quantity,
                unit_amount=item.unit_amount,
            )
            for position, item in enumerate(payload.line_items)
        ],
        discount=payload.discount,
        tax_rate=payload.tax_rate if payload.tax_rate is not None else DEFAULT_TAX_RATE,
        notes=payload.notes,
        status=QuoteStatus.parse(payload.status),
        is_option_quote=payload.is_option_quote,
    )


def parse_quotations(
    records: list[Mapping[str, Any]],
    *,
    today: Callable[[], date_type] = date_type.today,
) -> list[Quotation]:
    """Normalize every row, dropping rows the remote store marks as deleted."""

    quotations: list[Quotation] = []
    for record in records:
        try:
            quotation = parse_quotation(record, today=today)
        except pydantic.ValidationError:
            log.exception("Skipping unreadable quotation row")
            continue
        if quotation.status is QuoteStatus.DELETED:
            continue
        quotations.append(quotation)
    return quotations


def save_request(quotation: Quotation) -> dict[str, Any]:
    """Body of ``?action=save``; id keys are repeated for backend column matching."""

    quote = quotation.to_record()
    quote["Id"] = quote["id"]
    quote["ID"] = quote["id"]
    quote["quote_number"] = quotation.quote_number
    return {"action": "save", "quote": quote}


def soft_delete_request(quotation: Quotation) -> dict[str, Any]:
    return save_request(quotation.with_status(QuoteStatus.DELETED))


def hard_delete_request(quotation: Quotation) -> dict[str, Any]:
    identifier = str(quotation.id)
    return {
        "action": "delete",
        "id": identifier,
        "Id": identifier,
        "ID": identifier,
        "quote_number": quotation.quote_number,
        "quoteNumber": quotation.quote_number,
    }
