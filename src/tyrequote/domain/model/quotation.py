"""Quotation aggregate and line items."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

from .enums import QuoteStatus

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

DEFAULT_TAX_RATE = 18.0


def round_half_up(value: float) -> int:
    """Round to the nearest unit with halves going up, like ``Math.round``."""

    return math.floor(value + 0.5)


def _as_number(value: object, default: float = 0.0) -> float:
    if value is None or value == "":
        return default
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default


def _as_flag(value: object) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"true", "yes", "y", "1"}
    return bool(value)


@dataclass(slots=True, kw_only=True)
class LineItem:
    """A single priced row; ``unit_amount`` is tax-inclusive."""

    id: str
    description: str = ""
    quantity: float = 0.0
    unit_amount: float = 0.0

    @property
    def amount(self) -> float:
        return self.quantity * self.unit_amount

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "quantity": self.quantity,
            "unitAmount": self.unit_amount,
        }

    @classmethod
    def from_record(cls, record: Mapping[str, Any], *, position: int = 0) -> LineItem:
        raw_id = record.get("id")
        return cls(
            id=str(raw_id) if raw_id not in (None, "") else str(position + 1),
            description=str(record.get("description") or ""),
            quantity=_as_number(record.get("quantity")),
            unit_amount=_as_number(record.get("unitAmount", record.get("unit_amount"))),
        )


@dataclass(slots=True, kw_only=True)
class Quotation:
    """Canonical quotation shape shared by the cache, the ledger and the remote adapter."""

    id: str
    quote_number: str = ""
    date: str = ""
    customer_name: str = ""
    customer_phone: str = ""
    customer_email: str = ""
    customer_address: str = ""
    vehicle_make: str = ""
    vehicle_model: str = ""
    vehicle_no: str = ""
    line_items: list[LineItem] = field(default_factory=list)
    discount: float = 0.0
    tax_rate: float = DEFAULT_TAX_RATE
    notes: str = ""
    status: QuoteStatus = QuoteStatus.DRAFT
    is_option_quote: bool = False

    @property
    def gross_total(self) -> float:
        return sum(item.amount for item in self.line_items)

    @property
    def grand_total(self) -> int | None:
        """Rounded total after discount; option quotes have no single total."""

        if self.is_option_quote:
            return None
        return round_half_up(self.gross_total - self.discount)

    def with_status(self, status: QuoteStatus) -> Quotation:
        return replace(self, status=status, line_items=list(self.line_items))

    def to_record(self) -> dict[str, Any]:
        """Serialise using the camelCase field names the web app and backups use."""

        return {
            "id": str(self.id),
            "quoteNumber": self.quote_number,
            "date": self.date,
            "customerName": self.customer_name,
            "customerPhone": self.customer_phone,
            "customerEmail": self.customer_email,
            "customerAddress": self.customer_address,
            "vehicleMake": self.vehicle_make,
            "vehicleModel": self.vehicle_model,
            "vehicleNo": self.vehicle_no,
            "lineItems": [item.to_record() for item in self.line_items],
            "discount": self.discount,
            "taxRate": self.tax_rate,
            "notes": self.notes,
            "status": self.status.value,
            "isOptionQuote": self.is_option_quote,
        }

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> Quotation:
        """Rebuild a quotation previously written by :meth:`to_record`."""

        items = record.get("lineItems") or []
        return cls(
            id=str(record.get("id") or ""),
            quote_number=str(record.get("quoteNumber") or ""),
            date=str(record.get("date") or ""),
            customer_name=str(record.get("customerName") or ""),
            customer_phone=str(record.get("customerPhone") or ""),
            customer_email=str(record.get("customerEmail") or ""),
            customer_address=str(record.get("customerAddress") or ""),
            vehicle_make=str(record.get("vehicleMake") or ""),
            vehicle_model=str(record.get("vehicleModel") or ""),
            vehicle_no=str(record.get("vehicleNo") or ""),
            line_items=_line_items_from_records(items),
            discount=_as_number(record.get("discount")),
            tax_rate=_as_number(record.get("taxRate"), DEFAULT_TAX_RATE),
            notes=str(record.get("notes") or ""),
            status=QuoteStatus.parse(record.get("status")),
            is_option_quote=_as_flag(record.get("isOptionQuote")),
        )


def _line_items_from_records(items: Iterable[Any]) -> list[LineItem]:
    return [
        LineItem.from_record(item, position=index)
        for index, item in enumerate(items)
        if isinstance(item, dict)
    ]
