"""DDL statement generation.

Builds the CREATE/ALTER/RENAME/DROP statements the Builder executes.
Statements are returned as strings so they can be logged and reported
exactly as they were sent.
"""

from abc import ABC, abstractmethod

from ormsync.domain.entities.object_config import IndexSpec, ObjectConfig
from ormsync.domain.entities.schema_change import (
    ChangeAction,
    ColumnChange,
    ForeignKeyChange,
    IndexChange,
)
from ormsync.domain.services.field_property import FieldProperty
from ormsync.infrastructure.persistence.database import DatabaseConnection

DEFAULT_CHARSET = "utf8mb4"


class DDLEmitter(ABC):
    """Renders schema changes as SQL for one database platform."""

    @abstractmethod
    def create_table(self, table: str, config: ObjectConfig) -> str:
        """CREATE TABLE with all columns and indexes inline."""
        pass

    @abstractmethod
    def alter_table(self, table: str, clauses: list[str]) -> str:
        """Combine clauses into a single ALTER TABLE statement."""
        pass

    @abstractmethod
    def column_clause(self, change: ColumnChange, config: ObjectConfig) -> str:
        pass

    @abstractmethod
    def index_clause(self, change: IndexChange, config: ObjectConfig) -> str:
        pass

    @abstractmethod
    def foreign_key_clause(self, change: ForeignKeyChange) -> str:
        pass

    @abstractmethod
    def change_engine(self, table: str, engine: str) -> str:
        pass

    @abstractmethod
    def rename_table(self, table: str, new_table: str) -> str:
        pass

    @abstractmethod
    def rename_column(self, table: str, old_name: str, config: ObjectConfig, new_name: str) -> str:
        pass

    @abstractmethod
    def drop_table(self, table: str) -> str:
        pass


class MySQLDDLEmitter(DDLEmitter):
    """DDL for MySQL and MariaDB."""

    def __init__(self, connection: DatabaseConnection) -> None:
        self.connection = connection

    def _q(self, name: str) -> str:
        return self.connection.quote_identifier(name)

    def _qualified(self, table: str) -> str:
        database = self.connection.database_name
        if database:
            return f"{self._q(database)}.{self._q(table)}"
        return self._q(table)

    def column_sql(self, config: ObjectConfig, name: str) -> str:
        return FieldProperty(config.get_field(name)).to_sql(self._q, self.connection.quote)

    def index_sql(self, config: ObjectConfig, index: IndexSpec, create: bool = False) -> str:
        """Index definition for CREATE TABLE (``create``) or ALTER TABLE ADD."""
        if index.primary:
            column = self._q(index.columns[0])
            return f"PRIMARY KEY ({column})" if create else f"ADD PRIMARY KEY ({column})"

        columns = []
        for column in index.columns:
            if config.has_field(column):
                columns.append(FieldProperty(config.get_field(column)).index_column_sql(self._q))
            else:
                columns.append(self._q(column))
        body = f"{self._q(index.name)} ({', '.join(columns)})"

        if index.unique:
            kind = "UNIQUE"
        elif index.fulltext:
            kind = "FULLTEXT"
        else:
            kind = ""

        if create:
            return f"{kind} KEY {body}".strip()
        return f"ADD {kind or 'INDEX'} {body}"

    def create_table(self, table: str, config: ObjectConfig) -> str:
        parts = [self.column_sql(config, spec.name) for spec in config.column_fields()]
        parts.extend(self.index_sql(config, index, create=True) for index in config.indexes.values())
        body = ",\n  ".join(parts)
        return (
            f"CREATE TABLE {self._q(table)} (\n  {body}\n) "
            f"ENGINE={config.engine} DEFAULT CHARSET={DEFAULT_CHARSET}"
        )

    def alter_table(self, table: str, clauses: list[str]) -> str:
        return f"ALTER TABLE {self._qualified(table)} " + ",\n  ".join(clauses)

    def column_clause(self, change: ColumnChange, config: ObjectConfig) -> str:
        if change.action == ChangeAction.DROP:
            return f"DROP {self._q(change.name)}"
        if change.action == ChangeAction.ADD:
            return f"ADD {self.column_sql(config, change.name)}"
        return f"CHANGE {self._q(change.name)} {self.column_sql(config, change.name)}"

    def index_clause(self, change: IndexChange, config: ObjectConfig) -> str:
        if change.action == ChangeAction.DROP:
            index = config.indexes.get(change.name)
            if (index is not None and index.primary) or change.name == "PRIMARY":
                return "DROP PRIMARY KEY"
            return f"DROP INDEX {self._q(change.name)}"
        return self.index_sql(config, config.indexes[change.name])

    def foreign_key_clause(self, change: ForeignKeyChange) -> str:
        if change.action == ChangeAction.DROP:
            return f"DROP FOREIGN KEY {self._q(change.name)}"
        spec = change.spec
        if spec is None:
            raise ValueError(f"Foreign key {change.name} has no definition to add")
        return (
            f"ADD CONSTRAINT {self._q(spec.name)} "
            f"FOREIGN KEY ({self._q(spec.source_field)}) "
            f"REFERENCES {self._q(spec.target_db)}.{self._q(spec.target_table)} ({self._q(spec.target_field)}) "
            f"ON UPDATE {spec.on_update} ON DELETE {spec.on_delete}"
        )

    def change_engine(self, table: str, engine: str) -> str:
        return f"ALTER TABLE {self._q(table)} ENGINE = {engine}"

    def rename_table(self, table: str, new_table: str) -> str:
        return f"RENAME TABLE {self._q(table)} TO {self._q(new_table)}"

    def rename_column(self, table: str, old_name: str, config: ObjectConfig, new_name: str) -> str:
        return f"ALTER TABLE {self._q(table)} CHANGE {self._q(old_name)} {self.column_sql(config, new_name)}"

    def drop_table(self, table: str) -> str:
        return f"DROP TABLE {self._q(table)}"
