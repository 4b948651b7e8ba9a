"""SQLAlchemy-backed local persistence."""

from __future__ import annotations

from .key_value import SqlAlchemyKeyValueStore
from .mappings import create_all_tables, kv_store_table, metadata

__all__ = [
    "SqlAlchemyKeyValueStore",
    "create_all_tables",
    "kv_store_table",
    "metadata",
]
