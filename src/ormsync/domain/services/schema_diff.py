"""Schema diff between a declared object configuration and a live table.

Every method is a pure function of its arguments: the same configuration
and live snapshot always produce the same ordered change list, so the
diff can back both a read-only validation and an actual build.
"""

from typing import Iterable, Mapping

from ormsync.domain.entities.object_config import (
    PRIMARY_INDEX,
    ForeignKeySpec,
    IndexSpec,
    ObjectConfig,
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
)
from ormsync.domain.services.field_property import FieldProperty


class SchemaDiffEngine:
    """Computes the changes that converge a live table to its configuration."""

    @classmethod
    def diff_columns(
        cls, config: ObjectConfig, live_columns: Iterable[LiveColumn]
    ) -> list[ColumnChange]:
        """Compare declared fields with live columns.

        Virtual fields are ignored. Changes are grouped as drops, adds and
        changes, each group in encounter order.

        Args:
            config: Declared object configuration.
            live_columns: Columns of the live table in ordinal order.

        Returns:
            Ordered list of column changes.
        """
        columns = {column.name: column for column in live_columns}
        fields = {spec.name: spec for spec in config.column_fields()}

        drops = [
            ColumnChange(name=name, action=ChangeAction.DROP)
            for name in columns
            if name not in fields
        ]

        adds: list[ColumnChange] = []
        changes: list[ColumnChange] = []
        for name, spec in fields.items():
            column = columns.get(name)
            if column is None:
                adds.append(ColumnChange(name=name, action=ChangeAction.ADD))
                continue

            flags = FieldProperty(spec).compare(column)
            if any(flags.values()):
                changes.append(ColumnChange(name=name, action=ChangeAction.CHANGE, detail=flags))

        return drops + adds + changes

    @classmethod
    def diff_indexes(
        cls,
        config: ObjectConfig,
        live_indexes: Mapping[str, LiveIndex],
        foreign_keys: Mapping[str, ForeignKeySpec] | None = None,
    ) -> list[IndexChange]:
        """Compare declared indexes with live indexes.

        Indexes are never altered in place: a structural difference yields
        a drop followed by an add. Live indexes named after a declared
        foreign key back that key and are left alone.

        Args:
            config: Declared object configuration.
            live_indexes: Live indexes keyed by name.
            foreign_keys: Declared foreign keys keyed by constraint name.

        Returns:
            Ordered list of index changes.
        """
        foreign_keys = foreign_keys or {}
        declared = config.indexes
        updates: list[IndexChange] = []

        for name in live_indexes:
            if name not in declared and name not in foreign_keys:
                updates.append(IndexChange(name=name, action=ChangeAction.DROP))

        for name, index in declared.items():
            live = live_indexes.get(name)
            if live is None:
                updates.append(IndexChange(name=name, action=ChangeAction.ADD))
            elif not cls.is_same_index(index, live):
                updates.append(IndexChange(name=name, action=ChangeAction.DROP))
                updates.append(IndexChange(name=name, action=ChangeAction.ADD))

        return updates

    @staticmethod
    def is_same_index(index: IndexSpec, live: LiveIndex) -> bool:
        unique = index.unique or index.primary or index.name == PRIMARY_INDEX
        if unique != live.unique or index.fulltext != live.fulltext:
            return False
        return set(index.columns) == set(live.columns)

    @classmethod
    def diff_foreign_keys(
        cls,
        declared: Mapping[str, ForeignKeySpec],
        live_keys: Mapping[str, LiveForeignKey],
        drop_only: bool = False,
    ) -> list[ForeignKeyChange]:
        """Compare declared foreign keys with live constraints by name.

        Args:
            declared: Declared foreign keys keyed by constraint name.
            live_keys: Live foreign keys keyed by constraint name.
            drop_only: Only remove keys; used when foreign keys are disabled.

        Returns:
            Additions first, then drops.
        """
        updates: list[ForeignKeyChange] = []
        if not drop_only:
            for name, spec in declared.items():
                if name not in live_keys:
                    updates.append(ForeignKeyChange(name=name, action=ChangeAction.ADD, spec=spec))

        keep = set() if drop_only else set(declared)
        for name in live_keys:
            if name not in keep:
                updates.append(ForeignKeyChange(name=name, action=ChangeAction.DROP))

        return updates

    @classmethod
    def diff_engine(cls, config: ObjectConfig, live_engine: str | None) -> EngineChange | None:
        """Engine switch, compared case-insensitively. Unknown live engines never change."""
        if not live_engine:
            return None
        if live_engine.lower() == config.engine.lower():
            return None
        return EngineChange(current=live_engine, target=config.engine)
