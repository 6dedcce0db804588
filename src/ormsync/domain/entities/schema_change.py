"""Live schema snapshots and the change records computed against them."""

from dataclasses import dataclass, field
from enum import Enum

from ormsync.domain.entities.object_config import ForeignKeySpec


@dataclass(frozen=True)
class LiveColumn:
    """Column metadata as reported by the database."""

    name: str
    data_type: str
    nullable: bool
    numeric_precision: int | None = None
    numeric_scale: int | None = None
    character_max_length: int | None = None
    column_default: str | None = None
    unsigned: bool = False


@dataclass(frozen=True)
class LiveIndex:
    """Index metadata aggregated from per-column index rows."""

    name: str
    columns: tuple[str, ...]
    unique: bool = False
    fulltext: bool = False


@dataclass(frozen=True)
class LiveForeignKey:
    """Foreign key constraint present on a live table."""

    name: str
    source_field: str
    target_table: str
    target_field: str
    on_update: str
    on_delete: str


class ChangeAction(str, Enum):
    """What a change does to its target."""

    ADD = "add"
    CHANGE = "change"
    DROP = "drop"


@dataclass(frozen=True)
class ColumnChange:
    """Column to add, change or drop.

    ``detail`` holds the failed comparisons of a change action, keyed by
    comparison name (type, length, null, default, unsigned).
    """

    name: str
    action: ChangeAction
    detail: dict[str, bool] = field(default_factory=dict)


@dataclass(frozen=True)
class IndexChange:
    """Index to add or drop."""

    name: str
    action: ChangeAction


@dataclass(frozen=True)
class ForeignKeyChange:
    """Foreign key to add or drop. ``spec`` is set for additions."""

    name: str
    action: ChangeAction
    spec: ForeignKeySpec | None = None


@dataclass(frozen=True)
class EngineChange:
    """Storage engine switch."""

    current: str
    target: str


@dataclass
class SchemaDiff:
    """All pending changes for one object."""

    table_exists: bool = True
    columns: list[ColumnChange] = field(default_factory=list)
    indexes: list[IndexChange] = field(default_factory=list)
    foreign_keys: list[ForeignKeyChange] = field(default_factory=list)
    engine: EngineChange | None = None
    missing_relations: list[str] = field(default_factory=list)
    unbuilt_relations: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return (
            self.table_exists
            and not self.columns
            and not self.indexes
            and not self.foreign_keys
            and self.engine is None
            and not self.missing_relations
            and not self.unbuilt_relations
        )
