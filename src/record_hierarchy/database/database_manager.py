"""
SQLite record store for the record hierarchy system.

This module provides a record store backed by SQLite, with one table per
entity type. Type and field names arrive at runtime from the relationship
registry, so every identifier is validated and checked against the table's
columns before it is placed into SQL; values are always bound as parameters.

The DatabaseManager uses SQLite with Write-Ahead Logging (WAL) mode. Thread
safety is ensured via thread-local connections.

Classes:
    DatabaseManager: SQLite-backed RecordStore.

Typical usage example:
    with DatabaseManager(db_path="./data/records.db") as db_manager:
        db_manager.load_fixture({"Account": [{"Id": "A1", "Name": "Acme"}]})
        record = db_manager.fetch_by_id("Account", "A1")
"""

import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set

from ..models.data_structures import ID_FIELD_NAMES, Record
from ..utils.error_handlers import RecordStoreError
from .record_store import RecordStore, validate_identifier


logger = logging.getLogger(__name__)


# Constants
DEFAULT_CONNECTION_TIMEOUT: float = 30.0
ID_COLUMN: str = "Id"
CREATED_DATE_COLUMN: str = "CreatedDate"


def _quote(identifier: str) -> str:
    """Quotes a validated identifier ('Case' is an SQL keyword)."""
    return f'"{identifier}"'


class DatabaseManager(RecordStore):
    """
    Record store over a SQLite database with one table per entity type.

    Thread Safety:
        Each thread maintains its own SQLite connection through thread-local
        storage. Column metadata is cached per manager behind a lock.

    Context Manager:
        DatabaseManager implements the context manager protocol:

            with DatabaseManager(db_path) as db:
                db.fetch_by_id("Account", "A1")

    Attributes:
        db_path: Path to the SQLite database file.
        schema_path: Path to the SQL schema definition file.

    Raises:
        RecordStoreError: For all database operation failures.
    """

    def __init__(self, db_path: str, schema_path: Optional[str] = None) -> None:
        """
        Initialize database manager and create the schema.

        Args:
            db_path: Path to SQLite database file. Parent directories will be
                created if they don't exist.
            schema_path: Optional path to schema SQL file. If not provided,
                defaults to schema.sql in the same directory as this module.

        Raises:
            RecordStoreError: If connection or schema creation fails.
        """
        self.db_path: str = db_path
        self.schema_path: str = schema_path or str(Path(__file__).parent / "schema.sql")

        self._local: threading.local = threading.local()
        self._lock: threading.Lock = threading.Lock()
        self._columns: Dict[str, Set[str]] = {}

        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

        self.initialize_database()

    def __enter__(self) -> "DatabaseManager":
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit - closes connection for current thread."""
        self.close()

    def _get_connection(self) -> sqlite3.Connection:
        """
        Get or create thread-local database connection.

        Returns:
            Thread-specific SQLite connection.

        Raises:
            RecordStoreError: If connection cannot be established.
        """
        if getattr(self._local, "connection", None) is None:
            try:
                connection = sqlite3.connect(
                    self.db_path,
                    timeout=DEFAULT_CONNECTION_TIMEOUT,
                    check_same_thread=True,
                )

                cursor = connection.execute("PRAGMA journal_mode = WAL")
                mode = cursor.fetchone()[0]
                if mode.upper() != "WAL":
                    logger.warning(f"Failed to enable WAL mode, using {mode} instead")

                connection.execute("PRAGMA synchronous = NORMAL")
                connection.row_factory = sqlite3.Row
                self._local.connection = connection

            except sqlite3.Error as e:
                raise RecordStoreError(
                    message=f"Failed to connect to database: {e}",
                    operation="connect",
                    original_error=e,
                ) from e
        return self._local.connection

    @contextmanager
    def _transaction(self):
        """
        Context manager for database transactions.

        Yields:
            sqlite3.Connection: Database connection with active transaction.
        """
        conn = self._get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise

    def initialize_database(self) -> None:
        """
        Create entity tables and indexes from the schema file.

        Idempotent: the schema uses CREATE TABLE IF NOT EXISTS.

        Raises:
            RecordStoreError: If the schema file is missing or fails to execute.
        """
        try:
            with open(self.schema_path, "r", encoding="utf-8") as f:
                schema_sql = f.read()

            with self._lock:
                conn = self._get_connection()
                conn.executescript(schema_sql)
                conn.commit()
                self._columns.clear()
                logger.info(f"Database initialized: {self.db_path}")

        except FileNotFoundError as e:
            raise RecordStoreError(
                message=f"Schema file not found: {self.schema_path}",
                operation="initialize",
                recoverable=False,
                original_error=e,
            ) from e
        except sqlite3.Error as e:
            raise RecordStoreError(
                message=f"Failed to initialize database: {e}",
                operation="initialize",
                original_error=e,
            ) from e

    def get_columns(self, entity_type: str, operation: str = "get_columns") -> Set[str]:
        """
        Return the column names of an entity table.

        Args:
            entity_type: Entity type (table) name.
            operation: Calling operation, recorded on errors.

        Returns:
            Set of column names.

        Raises:
            RecordStoreError: If the name is invalid or the table does not exist.
        """
        validate_identifier(entity_type, "entity type", operation)

        with self._lock:
            cached = self._columns.get(entity_type)
        if cached is not None:
            return cached

        try:
            rows = (
                self._get_connection()
                .execute(f"PRAGMA table_info({_quote(entity_type)})")
                .fetchall()
            )
        except sqlite3.Error as e:
            raise RecordStoreError(
                message=f"Failed to read columns of {entity_type}: {e}",
                operation=operation,
                original_error=e,
            ) from e

        if not rows:
            raise RecordStoreError(
                message=f"No such entity type: {entity_type}",
                operation=operation,
                recoverable=False,
            )

        columns = {row["name"] for row in rows}
        with self._lock:
            self._columns[entity_type] = columns
        return columns

    def _require_columns(
        self, entity_type: str, names: Sequence[str], operation: str
    ) -> None:
        columns = self.get_columns(entity_type, operation)
        for name in names:
            validate_identifier(name, "field", operation)
            if name not in columns:
                raise RecordStoreError(
                    message=f"No such field {entity_type}.{name}",
                    operation=operation,
                    recoverable=False,
                )

    def _row_to_record(self, entity_type: str, row: sqlite3.Row) -> Record:
        data = dict(row)
        record_id = data.pop(ID_COLUMN)
        return Record(id=str(record_id), entity_type=entity_type, fields=data)

    def fetch_by_id(self, entity_type: str, record_id: str) -> Optional[Record]:
        """
        Retrieve a record by type and identifier.

        Args:
            entity_type: Entity type (table) to query.
            record_id: Identifier to look up.

        Returns:
            Record with all table columns, or None if not found.

        Raises:
            RecordStoreError: If the type is unknown or the query fails.
        """
        self.get_columns(entity_type, "fetch_by_id")
        try:
            row = (
                self._get_connection()
                .execute(
                    f"SELECT * FROM {_quote(entity_type)} "
                    f"WHERE {ID_COLUMN} = ? LIMIT 1",
                    (record_id,),
                )
                .fetchone()
            )
        except sqlite3.Error as e:
            raise RecordStoreError(
                message=f"Failed to fetch {entity_type} {record_id}: {e}",
                record_id=record_id,
                operation="fetch_by_id",
                original_error=e,
            ) from e

        if row is None:
            return None
        return self._row_to_record(entity_type, row)

    def fetch_children(
        self,
        child_type: str,
        linking_field: str,
        parent_id: str,
        fields: Optional[Sequence[str]] = None,
    ) -> List[Record]:
        """
        Retrieve the records of child_type that reference parent_id.

        Args:
            child_type: Entity type (table) to query.
            linking_field: Column holding the parent id.
            parent_id: Parent record identifier.
            fields: Extra columns to select besides Id.

        Returns:
            Matching records ordered by CreatedDate descending, newest
            insertion first on ties.

        Raises:
            RecordStoreError: If the type or a field does not exist, or the
                query fails.
        """
        extra = [name for name in (fields or []) if name not in ID_FIELD_NAMES]
        self._require_columns(child_type, [linking_field, *extra], "fetch_children")

        select_columns = ", ".join(_quote(name) for name in [ID_COLUMN, *extra])
        query = (
            f"SELECT {select_columns} FROM {_quote(child_type)} "
            f"WHERE {_quote(linking_field)} = ? "
            f"ORDER BY {CREATED_DATE_COLUMN} DESC, rowid DESC"
        )

        try:
            rows = self._get_connection().execute(query, (parent_id,)).fetchall()
        except sqlite3.Error as e:
            raise RecordStoreError(
                message=f"Failed to fetch {child_type} children of {parent_id}: {e}",
                record_id=parent_id,
                operation="fetch_children",
                original_error=e,
            ) from e

        logger.debug(
            f"Fetched {len(rows)} {child_type} records where "
            f"{linking_field} = {parent_id}"
        )
        return [self._row_to_record(child_type, row) for row in rows]

    def insert_record(self, entity_type: str, fields: Mapping[str, Any]) -> str:
        """
        Insert a record into its entity table.

        Args:
            entity_type: Entity type (table) name.
            fields: Column values; must include 'Id' (or 'id').

        Returns:
            The inserted record id.

        Raises:
            ValueError: If no identifier is given.
            RecordStoreError: If a column does not exist or insertion fails.
        """
        with self._transaction() as conn:
            return self._insert_row(conn, entity_type, fields)

    def _insert_row(
        self, conn: sqlite3.Connection, entity_type: str, fields: Mapping[str, Any]
    ) -> str:
        values = dict(fields)
        if "id" in values and ID_COLUMN not in values:
            values[ID_COLUMN] = values.pop("id")
        if not values.get(ID_COLUMN):
            raise ValueError(f"{entity_type} record requires an Id")
        values[ID_COLUMN] = str(values[ID_COLUMN])

        self._require_columns(entity_type, list(values), "insert_record")

        columns = ", ".join(_quote(name) for name in values)
        placeholders = ", ".join("?" for _ in values)
        try:
            conn.execute(
                f"INSERT INTO {_quote(entity_type)} ({columns}) "
                f"VALUES ({placeholders})",
                tuple(values.values()),
            )
        except sqlite3.IntegrityError as e:
            raise RecordStoreError(
                message=f"{entity_type} record already exists: {values[ID_COLUMN]}",
                record_id=values[ID_COLUMN],
                operation="insert_record",
                recoverable=False,
                original_error=e,
            ) from e
        except sqlite3.Error as e:
            raise RecordStoreError(
                message=f"Failed to insert {entity_type} record: {e}",
                record_id=values[ID_COLUMN],
                operation="insert_record",
                original_error=e,
            ) from e

        return values[ID_COLUMN]

    def load_fixture(self, fixture: Mapping[str, List[Mapping[str, Any]]]) -> int:
        """
        Insert every record of a fixture mapping (entity type -> rows).

        All rows go in one transaction; if any row fails, none are kept.

        Returns:
            Number of records inserted.

        Raises:
            ValueError: If a row has no identifier.
            RecordStoreError: If a row cannot be inserted.
        """
        count = 0
        with self._transaction() as conn:
            for entity_type, rows in fixture.items():
                for row in rows or []:
                    self._insert_row(conn, entity_type, row)
                    count += 1
        logger.info(f"Loaded {count} records into {self.db_path}")
        return count

    def close(self) -> None:
        """
        Close the database connection for the current thread.

        A later operation reconnects automatically.
        """
        if getattr(self._local, "connection", None) is not None:
            self._local.connection.close()
            self._local.connection = None
            logger.debug("Database connection closed for current thread")
