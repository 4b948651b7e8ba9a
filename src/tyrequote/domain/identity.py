"""Stable identities for quotations.

Two independent derivations live here:

- generated identifiers, used when the remote sheet row carries no usable id. They are
  a 32-bit rolling hash of ``customerName|date|quoteNumber`` rendered in base 36 and
  prefixed with :data:`GENERATED_ID_PREFIX`. The hash runs over UTF-16 code units so a
  row keeps the id earlier web clients assigned to it.
- ledger fingerprints, a normalized ``date_customerName_quoteNumber`` string used by the
  tombstone ledger to recognise a deleted quotation whose id has drifted.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from tyrequote.domain.model import Quotation

GENERATED_ID_PREFIX: Final[str] = "gen_"
EMPTY_SIGNATURE_ID: Final[str] = "unknown"
PLACEHOLDER_IDS: Final[frozenset[str]] = frozenset({"", "undefined", "null"})

_WHITESPACE = re.compile(r"\s+")
_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def normalize_text(value: object) -> str:
    """Lower-case, trim and collapse whitespace; ``None`` becomes ``""``."""

    if value is None:
        return ""
    return _WHITESPACE.sub(" ", str(value).lower().strip())


def is_placeholder_id(value: object) -> bool:
    if value is None:
        return True
    return str(value).strip() in PLACEHOLDER_IDS


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def _utf16_code_units(text: str) -> list[int]:
    encoded = text.encode("utf-16-le", "surrogatepass")
    return [int.from_bytes(encoded[i : i + 2], "little") for i in range(0, len(encoded), 2)]


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits: list[str] = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def stable_hash(text: str) -> str:
    """Return the base-36 rolling hash of ``text``."""

    if not text:
        return EMPTY_SIGNATURE_ID
    hash_value = 0
    for code_unit in _utf16_code_units(text):
        hash_value = _to_int32((hash_value << 5) - hash_value + code_unit)
    return _to_base36(abs(hash_value))


def content_signature(customer_name: str, date: str, quote_number: str) -> str:
    return f"{customer_name.lower()}|{date}|{quote_number.lower()}"


def generate_id(customer_name: str, date: str, quote_number: str) -> str:
    signature = content_signature(customer_name, date, quote_number)
    return f"{GENERATED_ID_PREFIX}{stable_hash(signature)}"


def resolve_identifier(
    raw_id: object,
    *,
    customer_name: str,
    date: str,
    quote_number: str,
) -> str:
    """Trust a real identifier as-is, otherwise derive one from the content triple."""

    if not is_placeholder_id(raw_id):
        return str(raw_id).strip()
    return generate_id(customer_name, date, quote_number)


def is_generated_id(value: str) -> bool:
    return value.startswith(GENERATED_ID_PREFIX)


def fingerprint(quotation: Quotation) -> str:
    return normalize_text(f"{quotation.date}_{quotation.customer_name}_{quotation.quote_number}")


__all__ = [
    "GENERATED_ID_PREFIX",
    "content_signature",
    "fingerprint",
    "generate_id",
    "is_generated_id",
    "is_placeholder_id",
    "normalize_text",
    "resolve_identifier",
    "stable_hash",
]
