from __future__ import annotations

import pytest

from tyrequote.domain.identity import (
    GENERATED_ID_PREFIX,
    fingerprint,
    generate_id,
    is_generated_id,
    is_placeholder_id,
    normalize_text,
    resolve_identifier,
    stable_hash,
)
from tyrequote.domain.model import Quotation


def test_normalize_text_collapses_case_and_whitespace() -> None:
    assert normalize_text("  Ravi \t  KUMAR\n") == "ravi kumar"
    assert normalize_text(None) == ""
    assert normalize_text(1042) == "1042"


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("a", "2p"),
        ("ab", "2e9"),
        ("\U0001f600", "11zz7"),
    ],
)
def test_stable_hash_matches_known_values(text: str, expected: str) -> None:
    assert stable_hash(text) == expected


def test_stable_hash_of_empty_string() -> None:
    assert stable_hash("") == "unknown"


def test_stable_hash_wraps_to_32_bits() -> None:
    digest = stable_hash("a very long customer name|2024-01-05|quotation-0001" * 20)

    assert digest
    assert set(digest) <= set("0123456789abcdefghijklmnopqrstuvwxyz")
    assert int(digest, 36) <= 2**31


def test_generate_id_is_deterministic_and_case_insensitive() -> None:
    first = generate_id("Ravi", "2024-01-05", "Q-1")
    second = generate_id("RAVI", "2024-01-05", "q-1")

    assert first == second
    assert first.startswith(GENERATED_ID_PREFIX)
    assert is_generated_id(first)
    assert generate_id("Ravi", "2024-01-06", "Q-1") != first


@pytest.mark.parametrize("raw", [None, "", "  ", "undefined", "null"])
def test_placeholder_ids_are_replaced(raw: object) -> None:
    assert is_placeholder_id(raw)

    resolved = resolve_identifier(raw, customer_name="Ravi", date="2024-01-05", quote_number="Q-1")

    assert resolved == generate_id("Ravi", "2024-01-05", "Q-1")


def test_real_ids_are_trusted() -> None:
    resolved = resolve_identifier(
        " 1712345678901 ", customer_name="Ravi", date="2024-01-05", quote_number="Q-1"
    )

    assert resolved == "1712345678901"
    assert not is_generated_id(resolved)


def test_fingerprint_uses_date_customer_and_number() -> None:
    quote = Quotation(id="x", date="2024-01-05", customer_name=" Ravi  Kumar ", quote_number="Q-7")

    assert fingerprint(quote) == "2024-01-05_ ravi kumar _q-7"
