"""
Storage Backend Module

Provides the relational storage interface and implementations for in-memory
(testing) and SQLite (persistence). All monetary values stored as Decimal
strings. Both backends enforce the constraints declared in schema.py:
NOT NULL, CHECK, UNIQUE, foreign keys and cascading delete.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Any, Union
import copy
import json
import sqlite3
import threading
from pathlib import Path
from contextlib import contextmanager

from .errors import IntegrityError
from .logging_config import get_logger
from .schema import TableSchema, get_table, child_references


logger = get_logger("financial_analysis.storage")


class StorageInterface(ABC):
    """Abstract interface for storage backends"""

    def __init__(self):
        self._lock = threading.RLock()
        self._in_transaction = False

    @abstractmethod
    def insert(self, table: str, data: Dict[str, Any]) -> int:
        """Insert a row and return its surrogate id"""
        pass

    @abstractmethod
    def update(self, table: str, record_id: int, changes: Dict[str, Any]) -> bool:
        """Update columns of a row; False if the row does not exist"""
        pass

    @abstractmethod
    def load(self, table: str, record_id: int) -> Optional[Dict[str, Any]]:
        """Load a row by id"""
        pass

    @abstractmethod
    def load_all(self, table: str) -> List[Dict[str, Any]]:
        """Load all rows of a table ordered by id"""
        pass

    @abstractmethod
    def find(self, table: str, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Find rows whose columns equal the given values, ordered by id"""
        pass

    @abstractmethod
    def delete(self, table: str, record_id: int) -> bool:
        """Delete a row, cascading to dependent rows"""
        pass

    @abstractmethod
    def count(self, table: str) -> int:
        """Count rows in table"""
        pass

    @abstractmethod
    def clear_table(self, table: str) -> None:
        """Delete all rows from a table, cascading to dependent rows"""
        pass

    @abstractmethod
    def close(self) -> None:
        """Close storage connection"""
        pass

    def exists(self, table: str, record_id: int) -> bool:
        """Check if a row exists"""
        return self.load(table, record_id) is not None

    def execute_ddl(self, sql: str) -> None:
        """Execute schema DDL (default no-op)"""
        pass

    def begin_transaction(self) -> None:
        """Start a database transaction (default no-op)"""
        pass

    def commit(self) -> None:
        """Commit current transaction (default no-op)"""
        pass

    def rollback(self) -> None:
        """Rollback current transaction (default no-op)"""
        pass

    @property
    def in_transaction(self) -> bool:
        return self._in_transaction

    @contextmanager
    def atomic(self):
        """
        Context manager for atomic units of work.

        Holds the storage lock for the whole block so no other thread can
        interleave reads or writes. A nested block joins the outer unit.
        """
        with self._lock:
            if self._in_transaction:
                yield
                return

            self.begin_transaction()
            try:
                yield
            except BaseException:
                self.rollback()
                raise
            self.commit()

    @staticmethod
    def _check_columns(schema: TableSchema, data: Dict[str, Any]) -> None:
        for key in data:
            schema.column(key)


class InMemoryStorage(StorageInterface):
    """
    In-memory storage implementation for tests and embedding.

    Each atomic unit deep-copies every table for rollback, so a write costs
    time proportional to the whole dataset.
    """

    def __init__(self):
        super().__init__()
        self._data: Dict[str, Dict[int, Dict[str, Any]]] = {}
        self._sequences: Dict[str, int] = {}
        self._snapshot = None

    def _rows(self, table: str) -> Dict[int, Dict[str, Any]]:
        get_table(table)
        return self._data.setdefault(table, {})

    @staticmethod
    def _copy(row: Dict[str, Any]) -> Dict[str, Any]:
        # Deep copy to prevent external mutation
        return json.loads(json.dumps(row, default=str))

    def _validate_row(self, schema: TableSchema, row: Dict[str, Any], record_id: Optional[int]) -> None:
        """Apply NOT NULL, CHECK, UNIQUE and foreign key rules"""
        for column in schema.columns:
            if column.primary_key:
                continue
            value = row.get(column.name)
            if value is None:
                if not column.nullable:
                    raise IntegrityError(f"NOT NULL constraint failed: {schema.name}.{column.name}")
                continue
            if column.choices and value not in column.choices:
                raise IntegrityError(f"CHECK constraint failed: {column.name}")
            if column.unique:
                for other_id, other in self._rows(schema.name).items():
                    if other_id != record_id and other.get(column.name) == value:
                        raise IntegrityError(f"UNIQUE constraint failed: {schema.name}.{column.name}")

        for fk in schema.foreign_keys:
            value = row.get(fk.column)
            if value is not None and value not in self._rows(fk.parent_table):
                raise IntegrityError("FOREIGN KEY constraint failed")

    def insert(self, table: str, data: Dict[str, Any]) -> int:
        """Insert a row into memory"""
        with self._lock:
            schema = get_table(table)
            self._check_columns(schema, data)

            row = {
                column.name: data.get(column.name, column.default)
                for column in schema.columns
                if not column.primary_key
            }
            self._validate_row(schema, row, None)

            record_id = self._sequences.get(table, 0) + 1
            self._sequences[table] = record_id
            row[schema.primary_key] = record_id
            self._rows(table)[record_id] = self._copy(row)
            return record_id

    def update(self, table: str, record_id: int, changes: Dict[str, Any]) -> bool:
        """Update a row in memory"""
        with self._lock:
            schema = get_table(table)
            self._check_columns(schema, changes)
            rows = self._rows(table)
            if record_id not in rows:
                return False

            row = dict(rows[record_id])
            row.update(changes)
            row[schema.primary_key] = record_id
            self._validate_row(schema, row, record_id)
            rows[record_id] = self._copy(row)
            return True

    def load(self, table: str, record_id: int) -> Optional[Dict[str, Any]]:
        """Load a row from memory"""
        with self._lock:
            row = self._rows(table).get(record_id)
            if row:
                return self._copy(row)
            return None

    def load_all(self, table: str) -> List[Dict[str, Any]]:
        """Load all rows of a table"""
        with self._lock:
            rows = self._rows(table)
            return [self._copy(rows[record_id]) for record_id in sorted(rows)]

    def find(self, table: str, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Find rows matching filters"""
        with self._lock:
            self._check_columns(get_table(table), filters)
            rows = self._rows(table)
            results = []
            for record_id in sorted(rows):
                row = rows[record_id]
                if all(row.get(key) == value for key, value in filters.items()):
                    results.append(self._copy(row))
            return results

    def delete(self, table: str, record_id: int) -> bool:
        """Delete a row and its dependents from memory"""
        with self._lock:
            rows = self._rows(table)
            if record_id not in rows:
                return False

            for child, fk in child_references(table):
                child_rows = self._rows(child.name)
                dependent_ids = [
                    child_id for child_id, row in child_rows.items()
                    if row.get(fk.column) == record_id
                ]
                for child_id in dependent_ids:
                    self.delete(child.name, child_id)

            del rows[record_id]
            return True

    def count(self, table: str) -> int:
        """Count rows in table"""
        with self._lock:
            return len(self._rows(table))

    def clear_table(self, table: str) -> None:
        """Delete all rows from a table"""
        with self._lock:
            for record_id in list(self._rows(table)):
                self.delete(table, record_id)

    def begin_transaction(self) -> None:
        """Snapshot state so a rollback can restore it"""
        with self._lock:
            if not self._in_transaction:
                self._snapshot = (copy.deepcopy(self._data), dict(self._sequences))
                self._in_transaction = True

    def commit(self) -> None:
        """Discard the snapshot"""
        with self._lock:
            if self._in_transaction:
                self._snapshot = None
                self._in_transaction = False

    def rollback(self) -> None:
        """Restore the snapshot taken at begin_transaction"""
        with self._lock:
            if self._in_transaction:
                self._data, self._sequences = self._snapshot
                self._snapshot = None
                self._in_transaction = False
                logger.debug("In-memory transaction rolled back")

    def close(self) -> None:
        """Close storage (no-op for in-memory)"""
        pass


class SQLiteStorage(StorageInterface):
    """SQLite storage implementation for persistence"""

    def __init__(self, db_path: Union[str, Path] = ":memory:", echo: bool = False):
        super().__init__()
        self.db_path = str(db_path)
        # Autocommit mode; atomic units issue BEGIN IMMEDIATE explicitly
        self._connection = sqlite3.connect(self.db_path, check_same_thread=False, isolation_level=None)
        self._connection.row_factory = sqlite3.Row

        if echo:
            self._connection.set_trace_callback(logger.debug)

        with self._lock:
            self._connection.execute("PRAGMA foreign_keys = ON")
            # Enable WAL mode for better concurrent access
            if self.db_path != ":memory:":
                self._connection.execute("PRAGMA journal_mode = WAL")
                self._connection.execute("PRAGMA synchronous = NORMAL")

    def _execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        """Execute a statement, translating constraint violations"""
        try:
            return self._connection.execute(sql, params)
        except sqlite3.IntegrityError as e:
            raise IntegrityError(str(e)) from e

    def execute_ddl(self, sql: str) -> None:
        """Execute one or more DDL statements separated by semicolons"""
        with self._lock:
            for statement in sql.split(";"):
                if statement.strip():
                    self._execute(statement)

    def insert(self, table: str, data: Dict[str, Any]) -> int:
        """Insert a row into SQLite"""
        schema = get_table(table)
        self._check_columns(schema, data)
        columns = ", ".join(data.keys())
        placeholders = ", ".join("?" for _ in data)

        with self._lock:
            cursor = self._execute(
                f"INSERT INTO {table} ({columns}) VALUES ({placeholders})",
                tuple(data.values())
            )
            return cursor.lastrowid

    def update(self, table: str, record_id: int, changes: Dict[str, Any]) -> bool:
        """Update a row in SQLite"""
        schema = get_table(table)
        self._check_columns(schema, changes)
        if not changes:
            return self.exists(table, record_id)
        assignments = ", ".join(f"{key} = ?" for key in changes)

        with self._lock:
            cursor = self._execute(
                f"UPDATE {table} SET {assignments} WHERE {schema.primary_key} = ?",
                tuple(changes.values()) + (record_id,)
            )
            return cursor.rowcount > 0

    def load(self, table: str, record_id: int) -> Optional[Dict[str, Any]]:
        """Load a row from SQLite"""
        schema = get_table(table)
        with self._lock:
            cursor = self._execute(
                f"SELECT * FROM {table} WHERE {schema.primary_key} = ?", (record_id,)
            )
            row = cursor.fetchone()
            if row:
                return dict(row)
            return None

    def load_all(self, table: str) -> List[Dict[str, Any]]:
        """Load all rows of a table"""
        schema = get_table(table)
        with self._lock:
            cursor = self._execute(f"SELECT * FROM {table} ORDER BY {schema.primary_key}")
            return [dict(row) for row in cursor.fetchall()]

    def find(self, table: str, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Find rows matching filters"""
        schema = get_table(table)
        self._check_columns(schema, filters)

        where_clause = ""
        if filters:
            where_clause = "WHERE " + " AND ".join(f"{key} = ?" for key in filters)

        with self._lock:
            cursor = self._execute(
                f"SELECT * FROM {table} {where_clause} ORDER BY {schema.primary_key}",
                tuple(filters.values())
            )
            return [dict(row) for row in cursor.fetchall()]

    def delete(self, table: str, record_id: int) -> bool:
        """Delete a row; ON DELETE CASCADE removes dependents"""
        schema = get_table(table)
        with self._lock:
            cursor = self._execute(
                f"DELETE FROM {table} WHERE {schema.primary_key} = ?", (record_id,)
            )
            return cursor.rowcount > 0

    def count(self, table: str) -> int:
        """Count rows in table"""
        get_table(table)
        with self._lock:
            cursor = self._execute(f"SELECT COUNT(*) AS count FROM {table}")
            return cursor.fetchone()['count']

    def clear_table(self, table: str) -> None:
        """Delete all rows from a table"""
        get_table(table)
        with self._lock:
            self._execute(f"DELETE FROM {table}")

    def begin_transaction(self) -> None:
        """Start a database transaction holding the write lock"""
        with self._lock:
            if not self._in_transaction:
                # IMMEDIATE takes the write lock before any read in the unit
                self._connection.execute("BEGIN IMMEDIATE")
                self._in_transaction = True

    def commit(self) -> None:
        """Commit current transaction"""
        with self._lock:
            if self._in_transaction:
                self._connection.execute("COMMIT")
                self._in_transaction = False

    def rollback(self) -> None:
        """Rollback current transaction"""
        with self._lock:
            if self._in_transaction:
                # SQLite may already have aborted the transaction on error
                if self._connection.in_transaction:
                    self._connection.execute("ROLLBACK")
                self._in_transaction = False
                logger.debug("SQLite transaction rolled back")

    def close(self) -> None:
        """Close SQLite connection"""
        with self._lock:
            if self._connection:
                self._connection.close()
                self._connection = None


def create_storage(database_url: str, echo: bool = False) -> StorageInterface:
    """
    Create a storage backend from a database URL.

    Supported forms:
        memory://                 in-memory storage
        sqlite:///:memory:        transient SQLite database
        sqlite:///path/to/file.db SQLite file
    """
    if database_url.startswith("memory://"):
        return InMemoryStorage()
    if database_url.startswith("sqlite:///"):
        return SQLiteStorage(database_url[len("sqlite:///"):], echo=echo)
    raise ValueError(f"Unsupported database URL: {database_url}")
