"""Live schema introspection.

Defines the interface the Builder reads table metadata through and its
MySQL implementation based on ``SHOW INDEX`` and ``information_schema``.
"""

from abc import ABC, abstractmethod

from ormsync.core.exceptions import IntrospectionError, SqlExecutionError
from ormsync.core.logging import get_logger
from ormsync.domain.entities.schema_change import LiveColumn, LiveForeignKey, LiveIndex
from ormsync.infrastructure.persistence.database import DatabaseConnection

logger = get_logger(__name__)


class SchemaIntrospector(ABC):
    """Read-only view of live table structures.

    Every method except ``table_exists`` raises ``IntrospectionError``
    when the metadata cannot be read.
    """

    @abstractmethod
    def list_tables(self) -> list[str]:
        """Names of all tables in the current schema."""
        pass

    def table_exists(self, name: str) -> bool:
        """Check if a table exists.

        Introspection faults count as "table absent": the create path then
        either succeeds or reports its own statement failure.
        """
        try:
            return name in self.list_tables()
        except IntrospectionError as e:
            logger.warning("Cannot list tables, assuming table is absent", table=name, error=str(e))
            return False

    @abstractmethod
    def columns(self, table: str) -> list[LiveColumn]:
        """Columns of a table in ordinal order."""
        pass

    @abstractmethod
    def indexes(self, table: str) -> dict[str, LiveIndex]:
        """Indexes of a table keyed by index name."""
        pass

    @abstractmethod
    def foreign_keys(self, table: str) -> dict[str, LiveForeignKey]:
        """Foreign keys of a table keyed by constraint name."""
        pass

    @abstractmethod
    def engine(self, table: str) -> str | None:
        """Storage engine of a table, None if unknown."""
        pass


class MySQLSchemaIntrospector(SchemaIntrospector):
    """Schema introspection for MySQL and MariaDB."""

    COLUMNS_SQL = """
        SELECT COLUMN_NAME, DATA_TYPE, IS_NULLABLE, NUMERIC_PRECISION, NUMERIC_SCALE,
               CHARACTER_MAXIMUM_LENGTH, COLUMN_DEFAULT, COLUMN_TYPE
        FROM information_schema.COLUMNS
        WHERE TABLE_SCHEMA = DATABASE() AND TABLE_NAME = :table_name
        ORDER BY ORDINAL_POSITION
    """

    FOREIGN_KEYS_SQL = """
        SELECT kcu.CONSTRAINT_NAME, kcu.COLUMN_NAME, kcu.REFERENCED_TABLE_NAME,
               kcu.REFERENCED_COLUMN_NAME, rc.UPDATE_RULE, rc.DELETE_RULE
        FROM information_schema.KEY_COLUMN_USAGE AS kcu
        JOIN information_schema.REFERENTIAL_CONSTRAINTS AS rc
          ON rc.CONSTRAINT_SCHEMA = kcu.CONSTRAINT_SCHEMA
         AND rc.CONSTRAINT_NAME = kcu.CONSTRAINT_NAME
        WHERE kcu.TABLE_SCHEMA = DATABASE()
          AND kcu.TABLE_NAME = :table_name
          AND kcu.REFERENCED_TABLE_NAME IS NOT NULL
        ORDER BY kcu.CONSTRAINT_NAME, kcu.ORDINAL_POSITION
    """

    ENGINE_SQL = """
        SELECT ENGINE
        FROM information_schema.TABLES
        WHERE TABLE_SCHEMA = DATABASE() AND TABLE_NAME = :table_name
    """

    def __init__(self, connection: DatabaseConnection) -> None:
        self.connection = connection

    def _fetch_all(self, sql: str, table: str | None = None) -> list[dict]:
        return self._query(self.connection.fetch_all, sql, table)

    def _fetch_one(self, sql: str, table: str | None = None) -> dict | None:
        return self._query(self.connection.fetch_one, sql, table)

    def _query(self, fetch, sql: str, table: str | None):
        try:
            params = {"table_name": table} if table is not None else None
            return fetch(sql, params)
        except SqlExecutionError as e:
            raise IntrospectionError(f"Cannot introspect {table}: {e.message}", code=e.code, sql=sql) from e

    def list_tables(self) -> list[str]:
        try:
            return self.connection.list_tables()
        except SqlExecutionError as e:
            raise IntrospectionError(f"Cannot list tables: {e.message}", code=e.code) from e

    def columns(self, table: str) -> list[LiveColumn]:
        rows = self._fetch_all(self.COLUMNS_SQL, table)
        return [
            LiveColumn(
                name=row["COLUMN_NAME"],
                data_type=str(row["DATA_TYPE"]).lower(),
                nullable=row["IS_NULLABLE"] == "YES",
                numeric_precision=row["NUMERIC_PRECISION"],
                numeric_scale=row["NUMERIC_SCALE"],
                character_max_length=row["CHARACTER_MAXIMUM_LENGTH"],
                column_default=_strip_default(row["COLUMN_DEFAULT"]),
                unsigned="unsigned" in str(row["COLUMN_TYPE"]).lower(),
            )
            for row in rows
        ]

    def indexes(self, table: str) -> dict[str, LiveIndex]:
        """Aggregate ``SHOW INDEX`` rows; one row per indexed column."""
        sql = f"SHOW INDEX FROM {self.connection.quote_identifier(table)}"
        rows = self._fetch_all(sql)

        columns: dict[str, list[str]] = {}
        flags: dict[str, tuple[bool, bool]] = {}
        for row in rows:
            name = row["Key_name"]
            if name not in columns:
                columns[name] = []
                flags[name] = (not int(row["Non_unique"]), row["Index_type"] == "FULLTEXT")
            columns[name].append(row["Column_name"])

        return {
            name: LiveIndex(
                name=name,
                columns=tuple(cols),
                unique=flags[name][0],
                fulltext=flags[name][1],
            )
            for name, cols in columns.items()
        }

    def foreign_keys(self, table: str) -> dict[str, LiveForeignKey]:
        keys: dict[str, LiveForeignKey] = {}
        for row in self._fetch_all(self.FOREIGN_KEYS_SQL, table):
            name = row["CONSTRAINT_NAME"]
            if name in keys:
                # composite keys are never generated; keep the first column
                continue
            keys[name] = LiveForeignKey(
                name=name,
                source_field=row["COLUMN_NAME"],
                target_table=row["REFERENCED_TABLE_NAME"],
                target_field=row["REFERENCED_COLUMN_NAME"],
                on_update=row["UPDATE_RULE"],
                on_delete=row["DELETE_RULE"],
            )
        return keys

    def engine(self, table: str) -> str | None:
        row = self._fetch_one(self.ENGINE_SQL, table)
        if row is None:
            return None
        return row["ENGINE"] or None


def _strip_default(value: object) -> str | None:
    """MariaDB reports string defaults quoted and missing defaults as 'NULL'."""
    if value is None:
        return None
    text = str(value)
    if text == "NULL":
        return None
    if len(text) >= 2 and text[0] == text[-1] == "'":
        return text[1:-1].replace("''", "'")
    return text
