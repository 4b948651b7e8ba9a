"""Pydantic models describing the rows the spreadsheet web app returns."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Final, cast

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

log = logging.getLogger(__name__)

# canonical field -> source keys, in lookup order; the first truthy value wins
_FIELD_SOURCES: Final[dict[str, tuple[str, ...]]] = {
    "id": ("id", "Id", "ID"),
    "quote_number": ("quoteNumber", "quote_number"),
    "date": ("date", "Date"),
    "customer_name": ("customerName", "customer_name"),
    "customer_phone": ("customerPhone", "customer_phone"),
    "customer_email": ("customerEmail", "customer_email"),
    "customer_address": ("customerAddress", "customer_address"),
    "vehicle_make": ("vehicleMake", "vehicle_make"),
    "vehicle_model": ("vehicleModel", "vehicle_model"),
    "vehicle_no": ("vehicleNo", "vehicle_no"),
    "line_items": ("lineItems", "line_items"),
    "discount": ("discount",),
    "notes": ("notes",),
    "status": ("status",),
    "is_option_quote": ("isOptionQuote", "is_option_quote"),
}
# present-but-zero must win here, so lookup stops at the first key that is set at all
_TAX_RATE_SOURCES: Final[tuple[str, ...]] = ("taxRate", "tax_rate")
_TRUE_STRINGS: Final[frozenset[str]] = frozenset({"true", "yes", "y", "1"})


def _text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        # sheet cells hand back numeric quote numbers / phones as floats
        return str(int(value))
    return str(value)


def _number(value: object) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return float(value)
    text = str(value).strip()
    if not text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


def _truthy(value: object) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return bool(value)


class SheetsBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class LineItemPayload(SheetsBaseModel):
    id: str = ""
    description: str = ""
    quantity: float = 0.0
    unit_amount: float = 0.0

    @model_validator(mode="before")
    @classmethod
    def _normalize_keys(cls, value: object) -> object:
        if not isinstance(value, Mapping):
            return value
        source = cast(Mapping[str, object], value)
        return {
            "id": _text(source.get("id")),
            "description": _text(source.get("description")),
            "quantity": _number(source.get("quantity")) or 0.0,
            "unit_amount": _number(source.get("unitAmount", source.get("unit_amount"))) or 0.0,
        }


def parse_line_items(value: object) -> list[LineItemPayload]:
    """Accept a list of items or the JSON string a sheet cell stores them as."""

    raw: object = value
    if isinstance(value, str):
        if not value.strip():
            return []
        try:
            raw = json.loads(value)
        except json.JSONDecodeError:
            log.warning("Failed to parse lineItems string: %.100s", value)
            return []
    if not isinstance(raw, list):
        return []
    items: list[LineItemPayload] = []
    for entry in cast(list[object], raw):
        if isinstance(entry, Mapping):
            items.append(LineItemPayload.model_validate(entry))
    return items


class QuotePayload(SheetsBaseModel):
    """One sheet row, with camelCase / snake_case keys folded onto one field each."""

    id: str = ""
    quote_number: str = ""
    date: str = ""
    customer_name: str = ""
    customer_phone: str = ""
    customer_email: str = ""
    customer_address: str = ""
    vehicle_make: str = ""
    vehicle_model: str = ""
    vehicle_no: str = ""
    line_items: list[LineItemPayload] = []
    discount: float = 0.0
    tax_rate: float | None = None
    notes: str = ""
    status: str = ""
    is_option_quote: bool = False

    @model_validator(mode="before")
    @classmethod
    def _fold_aliases(cls, value: object) -> object:
        if not isinstance(value, Mapping):
            return value
        source = cast(Mapping[str, object], value)
        folded: dict[str, object] = {}
        for name, keys in _FIELD_SOURCES.items():
            folded[name] = next((source[key] for key in keys if source.get(key)), None)
        folded["tax_rate"] = next(
            (source[key] for key in _TAX_RATE_SOURCES if source.get(key) is not None), None
        )
        return folded

    @field_validator(
        "customer_phone",
        "customer_email",
        "customer_address",
        "vehicle_make",
        "vehicle_model",
        "vehicle_no",
        "notes",
        mode="before",
    )
    @classmethod
    def _coerce_text(cls, value: object) -> str:
        return _text(value)

    @field_validator("id", "quote_number", "date", "customer_name", "status", mode="before")
    @classmethod
    def _coerce_trimmed(cls, value: object) -> str:
        return _text(value).strip()

    @field_validator("line_items", mode="before")
    @classmethod
    def _parse_line_items(cls, value: object) -> list[LineItemPayload]:
        return parse_line_items(value)

    @field_validator("discount", mode="before")
    @classmethod
    def _parse_discount(cls, value: object) -> float:
        return _number(value) or 0.0

    @field_validator("tax_rate", mode="before")
    @classmethod
    def _parse_tax_rate(cls, value: object) -> float | None:
        return _number(value)

    @field_validator("is_option_quote", mode="before")
    @classmethod
    def _parse_flag(cls, value: object) -> bool:
        return _truthy(value)
