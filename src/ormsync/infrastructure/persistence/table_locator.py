"""Table name resolution for object configurations."""

from ormsync.domain.entities.object_config import ObjectConfig
from ormsync.infrastructure.persistence.database import DatabaseConnection


class TableLocator:
    """Narrow view of where an object's table lives.

    Caches the full table name; call ``refresh_table_info`` after the
    configuration's table attribute changes.
    """

    def __init__(self, config: ObjectConfig, connection: DatabaseConnection, prefix: str = "") -> None:
        self.config = config
        self._connection = connection
        self._prefix = prefix
        self._table = self._resolve()

    def _resolve(self) -> str:
        return self.prefix() + self.config.table

    def table_name(self) -> str:
        return self._table

    def connection(self) -> DatabaseConnection:
        return self._connection

    def prefix(self) -> str:
        return self._prefix if self.config.use_db_prefix else ""

    def table_name_for(self, config: ObjectConfig) -> str:
        """Full table name of another object on the same connection."""
        prefix = self._prefix if config.use_db_prefix else ""
        return prefix + config.table

    def refresh_table_info(self) -> None:
        self._table = self._resolve()
