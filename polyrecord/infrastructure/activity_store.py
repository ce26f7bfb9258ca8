"""
Postgres adapter for the activity feed table.

This is the thin write/read glue around the codec: rows go in as
``dump_record`` output with the payload in a JSONB column, and come back out
through ``load_record``. It deliberately offers no querying, pagination or
migrations beyond creating the table.
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Any, Callable, Iterable, Optional
from uuid import UUID

from psycopg import Connection, sql
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from polyrecord.codec.registry import VariantRegistry, get_registry
from polyrecord.config import get_settings
from polyrecord.domain.envelope import PAYLOAD_KEY, ActivityRecord, dump_record, load_record
from polyrecord.infrastructure.db_factory import pooled_connection
from polyrecord.utils.logging import get_logger

log = get_logger(__name__)

ConnectionFactory = Callable[[], AbstractContextManager[Connection]]

_CREATE_TABLE = sql.SQL(
    """
    CREATE TABLE IF NOT EXISTS {table} (
        id UUID PRIMARY KEY,
        amount NUMERIC(14, 2) NOT NULL,
        payload JSONB NOT NULL,
        inserted_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );
    """
)
_INSERT = sql.SQL("INSERT INTO {table} (id, amount, payload) VALUES (%s, %s, %s);")
_SELECT_ONE = sql.SQL("SELECT id, amount, payload FROM {table} WHERE id = %s;")


class ActivityStore:
    """
    Persist and fetch ``ActivityRecord`` rows.

    Parameters
    ----------
    registry : VariantRegistry | None
        Registry used to dump and load payloads. Defaults to the process registry.
    table : str | None
        Table name. Defaults to ``settings.activity_table``.
    connection_factory : callable | None
        Returns a context manager yielding a psycopg connection. Defaults to a
        connection borrowed from the shared pool.
    """

    def __init__(
        self,
        registry: Optional[VariantRegistry] = None,
        table: Optional[str] = None,
        connection_factory: Optional[ConnectionFactory] = None,
    ) -> None:
        self.registry = registry if registry is not None else get_registry()
        self.table = table or get_settings().activity_table
        self._connection_factory = connection_factory or pooled_connection

    def _sql(self, template: sql.SQL) -> sql.Composed:
        return template.format(table=sql.Identifier(self.table))

    def _params(self, record: ActivityRecord) -> tuple[Any, ...]:
        if not isinstance(record, ActivityRecord):
            raise TypeError(f"Only validated ActivityRecord instances can be stored, got {type(record).__name__}")
        row = dump_record(record, self.registry)
        return (record.id, record.amount, Jsonb(row[PAYLOAD_KEY]))

    def ensure_table(self) -> None:
        with self._connection_factory() as conn:
            with conn.cursor() as cur:
                cur.execute(self._sql(_CREATE_TABLE))
            conn.commit()

    def insert(self, record: ActivityRecord) -> None:
        params = self._params(record)
        with self._connection_factory() as conn:
            with conn.cursor() as cur:
                cur.execute(self._sql(_INSERT), params)
            conn.commit()
        log.debug("Record stored", extra={"record_id": str(record.id), "variant": record.type.value})

    def insert_many(self, records: Iterable[ActivityRecord]) -> int:
        """Insert records in one transaction. Returns the number of rows written."""
        params = [self._params(record) for record in records]
        if not params:
            return 0
        with self._connection_factory() as conn:
            with conn.cursor() as cur:
                cur.executemany(self._sql(_INSERT), params)
            conn.commit()
        log.info("Records stored", extra={"rows": len(params), "table": self.table})
        return len(params)

    def get(self, record_id: UUID) -> Optional[ActivityRecord]:
        with self._connection_factory() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(self._sql(_SELECT_ONE), (record_id,))
                row = cur.fetchone()
        if row is None:
            return None
        return load_record(row, self.registry)


__all__ = ["ActivityStore", "ConnectionFactory"]
