"""
SQLite storage for admin views.

Maps a registered Model onto an existing table through the model's column
names. Tables are never created or altered here; each record is expected
to have an integer primary key column named ``id``.
"""

from __future__ import annotations

import json
import sqlite3
import threading
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any
from uuid import UUID

from adminforge.core.errors import StorageError
from adminforge.core.model import Model

ID_COLUMN = "id"

# Alias to prevent mypy resolving `list` as Repository.list inside the class
_list = list


def quote_identifier(name: str) -> str:
    """Quote a table or column name for SQLite."""
    return '"' + name.replace('"', '""') + '"'


def _python_to_sqlite(value: Any) -> Any:
    """Convert Python value to SQLite-compatible value."""
    if value is None:
        return None
    elif isinstance(value, UUID):
        return str(value)
    elif isinstance(value, (datetime, date, time)):
        return value.isoformat()
    elif isinstance(value, Decimal):
        return float(value)
    elif isinstance(value, bool):
        return 1 if value else 0
    elif isinstance(value, (dict, list)):
        return json.dumps(value)
    else:
        return value


class Storage:
    """
    One SQLite connection shared by all request threads.

    Statements are serialized through a lock; each ``transaction`` block
    commits on success and rolls back on error.
    """

    def __init__(self, connection: sqlite3.Connection):
        self._conn = connection
        self._lock = threading.Lock()

    @classmethod
    def open(cls, database: str) -> Storage:
        """
        Open a SQLite database.

        Raises:
            StorageError: the database cannot be opened
        """
        try:
            conn = sqlite3.connect(database, check_same_thread=False)
        except sqlite3.Error as exc:
            raise StorageError(f"Cannot open database {database!r}: {exc}") from exc
        return cls(conn)

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Cursor]:
        with self._lock:
            cursor = self._conn.cursor()
            try:
                yield cursor
                self._conn.commit()
            except sqlite3.Error as exc:
                self._conn.rollback()
                raise StorageError(str(exc)) from exc
            except Exception:
                self._conn.rollback()
                raise
            finally:
                cursor.close()

    def close(self) -> None:
        with self._lock:
            self._conn.close()


@dataclass(frozen=True)
class ListRow:
    """One row of a list view: the record id and its list-column values."""

    id: int
    values: tuple[Any, ...]


class Repository:
    """CRUD for one model's table."""

    def __init__(self, storage: Storage, model: Model):
        self.storage = storage
        self.model = model
        self._table = quote_identifier(model.table_name)

    def _columns(self, columns: Sequence[str]) -> str:
        return ", ".join(quote_identifier(c) for c in columns)

    def _check_arity(self, values: Sequence[Any]) -> None:
        if len(values) != len(self.model.fields):
            raise ValueError(
                f"{self.model.name} has {len(self.model.fields)} fields, got {len(values)} values"
            )

    def count(self) -> int:
        with self.storage.transaction() as cur:
            cur.execute(f"SELECT COUNT(*) FROM {self._table}")
            return int(cur.fetchone()[0])

    def list(self, limit: int = 50, offset: int = 0) -> _list[ListRow]:
        """Rows for the list view, ordered by id."""
        columns = self._columns([ID_COLUMN, *self.model.list_columns()])
        sql = (
            f"SELECT {columns} FROM {self._table} "
            f"ORDER BY {quote_identifier(ID_COLUMN)} LIMIT ? OFFSET ?"
        )
        with self.storage.transaction() as cur:
            cur.execute(sql, (limit, offset))
            return [ListRow(id=row[0], values=tuple(row[1:])) for row in cur.fetchall()]

    def get(self, record_id: int) -> _list[Any] | None:
        """Field values of one record, aligned with the model's fields."""
        sql = (
            f"SELECT {self._columns(self.model.table_columns())} FROM {self._table} "
            f"WHERE {quote_identifier(ID_COLUMN)} = ?"
        )
        with self.storage.transaction() as cur:
            cur.execute(sql, (record_id,))
            row = cur.fetchone()
        return _list(row) if row is not None else None

    def create(self, values: Sequence[Any]) -> int:
        """Insert a record and return its id."""
        self._check_arity(values)
        placeholders = ", ".join("?" for _ in values)
        sql = (
            f"INSERT INTO {self._table} ({self._columns(self.model.table_columns())}) "
            f"VALUES ({placeholders})"
        )
        with self.storage.transaction() as cur:
            cur.execute(sql, [_python_to_sqlite(v) for v in values])
            return int(cur.lastrowid or 0)

    def update(self, record_id: int, values: Sequence[Any]) -> bool:
        """Overwrite a record's fields. Returns False if it does not exist."""
        self._check_arity(values)
        assignments = ", ".join(f"{quote_identifier(c)} = ?" for c in self.model.table_columns())
        sql = f"UPDATE {self._table} SET {assignments} WHERE {quote_identifier(ID_COLUMN)} = ?"
        with self.storage.transaction() as cur:
            cur.execute(sql, [*(_python_to_sqlite(v) for v in values), record_id])
            return cur.rowcount > 0

    def delete(self, record_id: int) -> bool:
        sql = f"DELETE FROM {self._table} WHERE {quote_identifier(ID_COLUMN)} = ?"
        with self.storage.transaction() as cur:
            cur.execute(sql, (record_id,))
            return cur.rowcount > 0
