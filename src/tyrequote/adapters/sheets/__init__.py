"""Public interface for the spreadsheet web-app adapter."""

from __future__ import annotations

from .client import HTML_RESPONSE_MESSAGE, INVALID_RESPONSE_MESSAGE, SheetsQuoteStore
from .schema import LineItemPayload, QuotePayload, parse_line_items
from .translator import (
    extract_records,
    hard_delete_request,
    parse_quotation,
    parse_quotations,
    save_request,
    soft_delete_request,
)

__all__ = [
    "HTML_RESPONSE_MESSAGE",
    "INVALID_RESPONSE_MESSAGE",
    "LineItemPayload",
    "QuotePayload",
    "SheetsQuoteStore",
    "extract_records",
    "hard_delete_request",
    "parse_line_items",
    "parse_quotation",
    "parse_quotations",
    "save_request",
    "soft_delete_request",
]
