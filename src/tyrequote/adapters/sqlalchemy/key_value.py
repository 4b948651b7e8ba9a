"""Key-value store backed by a single SQLAlchemy table."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import create_engine, delete, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from tyrequote.config.storage import get_database_config

from .mappings import create_all_tables, kv_store_table

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from tyrequote.domain.ports.storage import KeyValueStore


class SqlAlchemyKeyValueStore:
    """Each ``set`` commits on its own, so writes are durable when the call returns."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    @classmethod
    def from_uri(cls, uri: str | None = None) -> SqlAlchemyKeyValueStore:
        engine = create_engine(uri or get_database_config().uri, future=True)
        create_all_tables(engine)
        return cls(engine)

    def get(self, key: str) -> str | None:
        stmt = select(kv_store_table.c.value).where(kv_store_table.c.key == key)
        with self.engine.connect() as connection:
            return connection.execute(stmt).scalar_one_or_none()

    def set(self, key: str, value: str) -> None:
        now = datetime.now(UTC)
        with self.engine.begin() as connection:
            if connection.dialect.name == "sqlite":
                stmt = sqlite_insert(kv_store_table).values(key=key, value=value, updated_at=now)
                connection.execute(
                    stmt.on_conflict_do_update(
                        index_elements=[kv_store_table.c.key],
                        set_={"value": value, "updated_at": now},
                    )
                )
                return
            updated = connection.execute(
                kv_store_table.update()
                .where(kv_store_table.c.key == key)
                .values(value=value, updated_at=now)
            )
            if updated.rowcount == 0:
                connection.execute(
                    kv_store_table.insert().values(key=key, value=value, updated_at=now)
                )

    def delete(self, key: str) -> None:
        with self.engine.begin() as connection:
            connection.execute(delete(kv_store_table).where(kv_store_table.c.key == key))

    def dispose(self) -> None:
        self.engine.dispose()


if TYPE_CHECKING:
    _store_check: KeyValueStore = SqlAlchemyKeyValueStore(engine=None)  # type: ignore[arg-type]
