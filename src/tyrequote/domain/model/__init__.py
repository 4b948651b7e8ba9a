"""Canonical domain model for quotations."""

from __future__ import annotations

from .company import DEFAULT_PASSCODE, CompanyDetails
from .enums import QuoteStatus
from .quotation import DEFAULT_TAX_RATE, LineItem, Quotation, round_half_up

__all__ = [
    "DEFAULT_PASSCODE",
    "DEFAULT_TAX_RATE",
    "CompanyDetails",
    "LineItem",
    "QuoteStatus",
    "Quotation",
    "round_half_up",
]
