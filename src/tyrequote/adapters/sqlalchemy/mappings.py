"""SQLAlchemy metadata for local key-value persistence."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import Column, DateTime, MetaData, String, Table, Text, func

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

metadata = MetaData()

kv_store_table = Table(
    "kv_store",
    metadata,
    Column("key", String(255), primary_key=True),
    Column("value", Text, nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
)


def create_all_tables(engine: Engine) -> None:
    metadata.create_all(engine)
