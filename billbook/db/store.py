"""Generic record store over the SQLite bills database."""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from decimal import Decimal
from pathlib import Path

from ..errors import NotFoundError, StoreError
from .schema import TABLES, ensure_schema

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = "~/.config/billbook/bills.db"

sqlite3.register_adapter(Decimal, str)


class RecordStore:
    """Insert/update/delete/query rows by table name and field.

    Table and column names are checked against the known schema before
    being placed into SQL. Any sqlite3 failure surfaces as StoreError.
    """

    def __init__(self, db_path: str | Path = DEFAULT_DB_PATH) -> None:
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None

    @property
    def db_path(self) -> str | Path:
        return self._db_path

    def _get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            try:
                self._conn = ensure_schema(self._db_path)
            except (sqlite3.Error, OSError) as e:
                raise StoreError(f"Cannot open database {self._db_path}: {e}") from e
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    @contextmanager
    def _write(self) -> Iterator[sqlite3.Connection]:
        conn = self._get_conn()
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StoreError(str(e)) from e

    @contextmanager
    def _read(self) -> Iterator[sqlite3.Connection]:
        conn = self._get_conn()
        try:
            yield conn
        except sqlite3.Error as e:
            raise StoreError(str(e)) from e

    # -- name checks -------------------------------------------------------

    @staticmethod
    def _columns(table: str) -> tuple[str, ...]:
        try:
            return TABLES[table]
        except KeyError:
            raise StoreError(f"Unknown table: {table}") from None

    def _check_fields(self, table: str, fields: Sequence[str]) -> None:
        columns = self._columns(table)
        for name in fields:
            if name not in columns:
                raise StoreError(f"Unknown column {name!r} in table {table}")

    def _order_clause(self, table: str, order_by: str | Sequence[str] | None) -> str:
        if not order_by:
            return ""
        fields = [order_by] if isinstance(order_by, str) else list(order_by)
        self._check_fields(table, fields)
        return " ORDER BY " + ", ".join(fields)

    # -- writes ------------------------------------------------------------

    def insert(self, table: str, record: dict) -> int:
        """Insert a row and return its new ID."""
        self._check_fields(table, list(record))
        names = ", ".join(record)
        placeholders = ", ".join("?" for _ in record)
        with self._write() as conn:
            cur = conn.execute(
                f"INSERT INTO {table} ({names}) VALUES ({placeholders})",
                tuple(record.values()),
            )
        logger.debug("Inserted %s row %d", table, cur.lastrowid)
        return cur.lastrowid

    def update(self, table: str, row_id: int, partial: dict) -> None:
        """Update the given fields of one row.

        ``updated_at`` is refreshed unless the caller supplies it.

        Raises:
            NotFoundError: If no row has ``row_id``.
            StoreError: On unknown fields or database failure.
        """
        self._check_fields(table, list(partial))
        assignments = [f"{name} = ?" for name in partial]
        if "updated_at" in self._columns(table) and "updated_at" not in partial:
            assignments.append("updated_at = datetime('now', 'localtime')")
        with self._write() as conn:
            cur = conn.execute(
                f"UPDATE {table} SET {', '.join(assignments)} WHERE id = ?",
                (*partial.values(), row_id),
            )
        if cur.rowcount == 0:
            raise NotFoundError(row_id)

    def delete(self, table: str, row_id: int) -> int:
        """Delete one row by ID. Returns the number of rows removed."""
        self._columns(table)
        with self._write() as conn:
            cur = conn.execute(f"DELETE FROM {table} WHERE id = ?", (row_id,))
        return cur.rowcount

    def delete_where(
        self,
        table: str,
        field: str,
        value,
        *,
        exclude_id: int | None = None,
    ) -> int:
        """Delete all rows whose ``field`` equals ``value``.

        Args:
            exclude_id: Keep the row with this ID even if it matches.

        Returns:
            Number of rows deleted.
        """
        self._check_fields(table, [field])
        sql = f"DELETE FROM {table} WHERE {field} = ?"
        params: tuple = (value,)
        if exclude_id is not None:
            sql += " AND id != ?"
            params = (value, exclude_id)
        with self._write() as conn:
            cur = conn.execute(sql, params)
        return cur.rowcount

    # -- reads -------------------------------------------------------------

    def select_all(
        self, table: str, order_by: str | Sequence[str] | None = None
    ) -> list[dict]:
        order = self._order_clause(table, order_by)
        with self._read() as conn:
            rows = conn.execute(f"SELECT * FROM {table}{order}").fetchall()
        return [dict(r) for r in rows]

    def select_by_id(self, table: str, row_id: int) -> dict | None:
        self._columns(table)
        with self._read() as conn:
            row = conn.execute(
                f"SELECT * FROM {table} WHERE id = ?", (row_id,)
            ).fetchone()
        return dict(row) if row is not None else None

    def select_where(
        self,
        table: str,
        field: str,
        value,
        order_by: str | Sequence[str] | None = None,
    ) -> list[dict]:
        self._check_fields(table, [field])
        order = self._order_clause(table, order_by)
        with self._read() as conn:
            rows = conn.execute(
                f"SELECT * FROM {table} WHERE {field} = ?{order}", (value,)
            ).fetchall()
        return [dict(r) for r in rows]


_store: RecordStore | None = None


def get_store(db_path: str | Path | None = None) -> RecordStore:
    """Return the process-wide store, creating it on first use.

    ``db_path`` only matters on the first call; later calls reuse the
    existing handle. Without a path the configured database is used.
    """
    global _store
    if _store is None:
        if db_path is None:
            from ..config import load_config

            db_path = load_config().database.path
        _store = RecordStore(db_path)
    return _store


def reset_store() -> None:
    """Close and forget the process-wide store."""
    global _store
    if _store is not None:
        _store.close()
        _store = None
