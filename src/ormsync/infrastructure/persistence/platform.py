"""Schema platform selection.

A platform bundles the introspector and the DDL emitter for one database
dialect. It is chosen once, when the BuilderFactory is created.
"""

from dataclasses import dataclass
from typing import Callable

from ormsync.core.exceptions import UnsupportedPlatformError
from ormsync.infrastructure.persistence.database import DatabaseConnection
from ormsync.infrastructure.persistence.ddl import DDLEmitter, MySQLDDLEmitter
from ormsync.infrastructure.persistence.introspection import (
    MySQLSchemaIntrospector,
    SchemaIntrospector,
)


@dataclass(frozen=True)
class SchemaPlatform:
    """Introspector and DDL emitter sharing one connection."""

    name: str
    introspector: SchemaIntrospector
    emitter: DDLEmitter


def _mysql(connection: DatabaseConnection) -> SchemaPlatform:
    return SchemaPlatform(
        name="mysql",
        introspector=MySQLSchemaIntrospector(connection),
        emitter=MySQLDDLEmitter(connection),
    )


PLATFORMS: dict[str, Callable[[DatabaseConnection], SchemaPlatform]] = {
    "mysql": _mysql,
    "mariadb": _mysql,
}


def get_platform(connection: DatabaseConnection) -> SchemaPlatform:
    """Create the schema platform for a connection's dialect.

    Raises:
        UnsupportedPlatformError: If the dialect has no platform.
    """
    factory = PLATFORMS.get(connection.dialect_name)
    if factory is None:
        raise UnsupportedPlatformError(connection.dialect_name)
    return factory(connection)
