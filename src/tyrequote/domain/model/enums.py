"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class QuoteStatus(StrEnum):
    DRAFT = "Draft"
    SENT = "Sent"
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"
    DELETED = "Deleted"

    @classmethod
    def parse(cls, value: object, *, default: QuoteStatus | None = None) -> QuoteStatus:
        """Map a loosely-typed status onto the enum, case-insensitively."""

        fallback = default or cls.DRAFT
        if value is None:
            return fallback
        text = str(value).strip()
        if not text:
            return fallback
        for member in cls:
            if member.value.lower() == text.lower():
                return member
        return fallback
