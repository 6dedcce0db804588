"""Domain entities for ormsync."""

from ormsync.domain.entities.object_config import (
    NO_DEFAULT,
    PRIMARY_INDEX,
    FieldSpec,
    ForeignKeySpec,
    IndexSpec,
    LinkSpec,
    LinkType,
    ObjectConfig,
    RelationsType,
)
from ormsync.domain.entities.schema_change import (
    ChangeAction,
    ColumnChange,
    EngineChange,
    ForeignKeyChange,
    IndexChange,
    LiveColumn,
    LiveForeignKey,
    LiveIndex,
    SchemaDiff,
)

__all__ = [
    "NO_DEFAULT",
    "PRIMARY_INDEX",
    "ChangeAction",
    "ColumnChange",
    "EngineChange",
    "FieldSpec",
    "ForeignKeyChange",
    "ForeignKeySpec",
    "IndexChange",
    "IndexSpec",
    "LinkSpec",
    "LinkType",
    "LiveColumn",
    "LiveForeignKey",
    "LiveIndex",
    "ObjectConfig",
    "RelationsType",
    "SchemaDiff",
]
