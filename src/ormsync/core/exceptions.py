"""Exceptions raised by ormsync.

Only setup failures travel through exceptions. Schema drift and failed
DDL statements are reported through the Builder's error list instead.
"""


class OrmSyncError(Exception):
    """Base class for all ormsync errors."""
    pass


class ObjectConfigError(OrmSyncError):
    """Raised when an object configuration cannot be parsed or is inconsistent."""

    def __init__(self, message: str, object_name: str | None = None):
        self.object_name = object_name
        super().__init__(f"{object_name}: {message}" if object_name else message)


class ObjectConfigNotFoundError(ObjectConfigError):
    """Raised when no configuration exists for the requested object."""

    def __init__(self, object_name: str):
        super().__init__("object configuration not found", object_name)


class SqlExecutionError(OrmSyncError):
    """Raised when the database rejects a statement or cannot be reached."""

    def __init__(self, message: str, code: int | None = None, sql: str | None = None):
        self.message = message
        self.code = code
        self.sql = sql
        super().__init__(message)


class IntrospectionError(SqlExecutionError):
    """Raised when live table metadata cannot be read."""
    pass


class UnsupportedPlatformError(OrmSyncError):
    """Raised when no schema platform exists for a database dialect."""

    def __init__(self, dialect: str):
        self.dialect = dialect
        super().__init__(f"Schema building is not supported for '{dialect}' databases")
