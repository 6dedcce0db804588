"""Database access layer using SQLAlchemy 2.0.

Provides the connection wrapper the Builder issues its statements through
and the manager that owns the engine. Every statement runs in its own
transaction; MySQL commits DDL implicitly anyway, so there is no
multi-statement atomicity to offer.
"""

from typing import Any

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.types import String

from ormsync.core.config import Settings, get_settings
from ormsync.core.exceptions import SqlExecutionError
from ormsync.core.logging import get_logger

logger = get_logger(__name__)


def _error_code(exc: SQLAlchemyError) -> int | None:
    """Driver error code, e.g. 1091 for MySQL "can't drop; check that it exists"."""
    if isinstance(exc, DBAPIError) and exc.orig is not None and exc.orig.args:
        code = exc.orig.args[0]
        if isinstance(code, int):
            return code
    return None


def _error_message(exc: SQLAlchemyError) -> str:
    if isinstance(exc, DBAPIError) and exc.orig is not None:
        args = exc.orig.args
        if len(args) > 1:
            return str(args[1])
        return str(exc.orig)
    return str(exc)


class DatabaseConnection:
    """Connection provider borrowed by Builders.

    Wraps a SQLAlchemy engine and converts driver faults into
    ``SqlExecutionError`` carrying the message and driver error code.
    The wrapper never disposes the engine.
    """

    def __init__(self, engine: Engine, name: str = "default") -> None:
        self.engine = engine
        self.name = name

    @property
    def database_name(self) -> str:
        return self.engine.url.database or ""

    @property
    def dialect_name(self) -> str:
        return self.engine.dialect.name

    def execute(self, sql: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        """Execute one statement and return its rows as dictionaries.

        Raises:
            SqlExecutionError: If the database rejects the statement.
        """
        try:
            with self.engine.begin() as conn:
                result = conn.execute(text(sql), params or {})
                if not result.returns_rows:
                    return []
                return [dict(row) for row in result.mappings().all()]
        except SQLAlchemyError as e:
            raise SqlExecutionError(_error_message(e), code=_error_code(e), sql=sql) from e

    def fetch_all(self, sql: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        return self.execute(sql, params)

    def fetch_one(self, sql: str, params: dict[str, Any] | None = None) -> dict[str, Any] | None:
        rows = self.execute(sql, params)
        return rows[0] if rows else None

    def list_tables(self) -> list[str]:
        """Names of all tables in the connection's schema.

        Raises:
            SqlExecutionError: If the table list cannot be read.
        """
        try:
            return list(inspect(self.engine).get_table_names())
        except SQLAlchemyError as e:
            raise SqlExecutionError(_error_message(e), code=_error_code(e)) from e

    def quote_identifier(self, name: str) -> str:
        """Always quote; object field names may collide with reserved words."""
        preparer = self.engine.dialect.identifier_preparer
        return preparer.quote_identifier(name)

    def quote(self, value: Any) -> str:
        """Render a value as a SQL string literal."""
        processor = String().literal_processor(dialect=self.engine.dialect)
        if processor is None:
            return "'" + str(value).replace("'", "''") + "'"
        return processor(str(value))


class DatabaseManager:
    """Database engine manager.

    This class manages the engine and hands out the connection wrapper
    shared by all Builders of one process.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        """Initialize the database manager.

        Args:
            settings: Optional settings instance. If not provided, will load from environment.
        """
        self.settings = settings or get_settings()
        self._engine: Engine | None = None
        self._connection: DatabaseConnection | None = None

    @property
    def engine(self) -> Engine:
        """Get or create the database engine.

        Returns:
            Engine: SQLAlchemy engine instance.
        """
        if self._engine is None:
            self._engine = create_engine(
                self.settings.database_url,
                echo=self.settings.db_echo,
                pool_size=self.settings.db_pool_size,
                pool_recycle=self.settings.db_pool_recycle,
                pool_pre_ping=True,
            )
            logger.info(
                "Database engine created",
                database_url=self._engine.url.render_as_string(hide_password=True),
                pool_size=self.settings.db_pool_size,
            )
        return self._engine

    @property
    def prefix(self) -> str:
        return self.settings.db_prefix

    def connection(self) -> DatabaseConnection:
        if self._connection is None:
            self._connection = DatabaseConnection(self.engine)
        return self._connection

    def check_connection(self) -> bool:
        """Check if database connection is working.

        Returns:
            bool: True if connection is successful, False otherwise.
        """
        try:
            self.connection().execute("SELECT 1")
            logger.debug("Database connection check successful")
            return True
        except SqlExecutionError as e:
            logger.error("Database connection check failed", error=e.message, code=e.code)
            return False

    def dispose(self) -> None:
        """Close the database engine and all connections."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._connection = None
            logger.info("Database engine disposed")
