"""Ordering and search over the visible quotation list."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from tyrequote.domain.model import Quotation


def newest_first(quotations: Iterable[Quotation]) -> list[Quotation]:
    # ISO dates sort lexicographically; ties keep their insertion order
    return sorted(quotations, key=lambda quote: quote.date, reverse=True)


def search_quotes(
    quotations: Iterable[Quotation],
    *,
    term: str = "",
    date: str | None = None,
) -> list[Quotation]:
    """Filter by case-insensitive customer-name substring and exact ``YYYY-MM-DD`` date."""

    needle = term.lower()
    return [
        quote
        for quote in newest_first(quotations)
        if needle in quote.customer_name.lower() and (not date or quote.date == date)
    ]
