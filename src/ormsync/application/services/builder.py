"""Schema builder for object configurations.

The Builder converges one object's live table towards its declarative
configuration: it creates missing tables, alters existing ones with the
minimal set of column and index changes, reconciles foreign keys and
materializes many-to-many junction tables.

Expected problems (locked objects, rejected statements, unreadable
metadata) never raise. They are collected in ``Builder.errors`` and the
operation returns False; a later ``build()`` picks up where a partially
applied one stopped.
"""

from dataclasses import dataclass, field

from ormsync.application.services.relation_materializer import RelationMaterializer
from ormsync.core.config import Settings
from ormsync.core.exceptions import IntrospectionError, SqlExecutionError
from ormsync.core.logging import LoggingContext, get_logger
from ormsync.domain.entities.object_config import ForeignKeySpec, ObjectConfig
from ormsync.domain.entities.schema_change import (
    ChangeAction,
    ColumnChange,
    EngineChange,
    ForeignKeyChange,
    IndexChange,
    SchemaDiff,
)
from ormsync.domain.services.foreign_keys import derive_foreign_keys
from ormsync.domain.services.schema_diff import SchemaDiffEngine
from ormsync.infrastructure.configuration.object_config_store import (
    JsonObjectConfigStore,
    ObjectConfigStore,
)
from ormsync.infrastructure.persistence.database import DatabaseConnection, DatabaseManager
from ormsync.infrastructure.persistence.platform import SchemaPlatform, get_platform
from ormsync.infrastructure.persistence.sql_log import SqlAuditLog
from ormsync.infrastructure.persistence.table_locator import TableLocator

logger = get_logger(__name__)


@dataclass(frozen=True)
class BuilderOptions:
    """Build switches shared by all Builders of one factory."""

    foreign_keys: bool = True
    write_log: bool = False
    log_prefix: str = "0.1"
    logs_path: str = "./logs/"

    @classmethod
    def from_settings(cls, settings: Settings) -> "BuilderOptions":
        return cls(
            foreign_keys=settings.foreign_keys,
            write_log=settings.sql_log_enabled,
            log_prefix=settings.sql_log_prefix,
            logs_path=settings.sql_log_path,
        )


@dataclass
class BuildResult:
    """Outcome of one build; truthy when the build succeeded."""

    success: bool
    errors: list[str] = field(default_factory=list)
    statements: list[str] = field(default_factory=list)

    def __bool__(self) -> bool:
        return self.success


class Builder:
    """Creates and alters the table of one object."""

    def __init__(
        self,
        config: ObjectConfig,
        *,
        store: ObjectConfigStore,
        platform: SchemaPlatform,
        locator: TableLocator,
        options: BuilderOptions | None = None,
        sql_log: SqlAuditLog | None = None,
        factory: "BuilderFactory | None" = None,
        relation_depth: int = 0,
    ) -> None:
        self.config = config
        self.store = store
        self.introspector = platform.introspector
        self.emitter = platform.emitter
        self.locator = locator
        self.options = options or BuilderOptions()
        self.sql_log = sql_log or SqlAuditLog(
            self.options.logs_path, self.options.log_prefix, self.options.write_log
        )
        self.factory = factory
        self.relation_depth = relation_depth
        self.errors: list[str] = []
        self.statements: list[str] = []

    @property
    def object_name(self) -> str:
        return self.config.name

    @property
    def table(self) -> str:
        return self.locator.table_name()

    @property
    def connection(self) -> DatabaseConnection:
        return self.locator.connection()

    # --- Execution helpers ---

    def _check_lock(self, message: str = "Can not build locked object") -> bool:
        if self.config.is_locked():
            self.errors.append(f"{message} {self.config.name}")
            logger.warning("Object is locked", object_name=self.config.name)
            return False
        return True

    def _execute(self, sql: str) -> bool:
        """Run one statement, recording a failure instead of raising."""
        try:
            self.connection.execute(sql)
        except SqlExecutionError as e:
            self.errors.append(f"{e.message} SQL: {sql}")
            logger.error("Statement failed", table=self.table, error=e.message, code=e.code)
            return False

        self.statements.append(sql)
        logger.debug("Statement executed", table=self.table, sql=sql)
        if not self.sql_log.append(self.config.connection, sql):
            self.errors.append(f"Cant write to log file {self.sql_log.file_path(self.config.connection)}")
        return True

    # --- Read-only checks ---

    def table_exists(self, name: str | None = None, add_prefix: bool = False) -> bool:
        """Check if a table exists.

        Args:
            name: Table name; defaults to this object's table.
            add_prefix: Prepend the object's table prefix to ``name``.
        """
        if not name:
            name = self.table
        elif add_prefix:
            name = self.locator.prefix() + name
        return self.introspector.table_exists(name)

    def get_orm_foreign_keys(self) -> dict[str, ForeignKeySpec]:
        """Foreign keys declared by this object's links; empty when keys are disabled."""
        if not self.options.foreign_keys:
            return {}
        return derive_foreign_keys(
            self.config,
            resolve=self._resolve_object,
            table_name=self.locator.table_name_for,
            database=self.connection.database_name,
        )

    def _resolve_object(self, name: str) -> ObjectConfig | None:
        if name == self.config.name:
            return self.config
        return self.store.find(name)

    def prepare_column_updates(self) -> list[ColumnChange]:
        live = self.introspector.columns(self.table) if self.table_exists() else []
        return SchemaDiffEngine.diff_columns(self.config, live)

    def prepare_index_updates(self) -> list[IndexChange]:
        live = self.introspector.indexes(self.table) if self.table_exists() else {}
        return SchemaDiffEngine.diff_indexes(self.config, live, self.get_orm_foreign_keys())

    def prepare_keys_update(self, drop_only: bool = False) -> list[ForeignKeyChange]:
        live = self.introspector.foreign_keys(self.table) if self.table_exists() else {}
        return SchemaDiffEngine.diff_foreign_keys(self.get_orm_foreign_keys(), live, drop_only=drop_only)

    def prepare_engine_update(self) -> EngineChange | None:
        return SchemaDiffEngine.diff_engine(self.config, self.introspector.engine(self.table))

    def get_objects_updates_info(self) -> dict[str, str]:
        """Many-to-many fields whose junction object does not exist yet.

        Returns:
            Mapping of field name to the junction object name.
        """
        updates = {}
        for field_name in self.config.many_to_many_fields():
            relation_object = self.config.relations_object_name(field_name)
            if not self.store.exists(relation_object):
                updates[field_name] = relation_object
        return updates

    def get_unbuilt_relations(self) -> dict[str, str]:
        """Many-to-many fields whose junction object exists without a table.

        Returns:
            Mapping of field name to the junction object name.
        """
        unbuilt = {}
        for field_name in self.config.many_to_many_fields():
            relation = self.store.find(self.config.relations_object_name(field_name))
            if relation is not None and not self.table_exists(self.locator.table_name_for(relation)):
                unbuilt[field_name] = relation.name
        return unbuilt

    def check_relations(self) -> bool:
        return not self.get_objects_updates_info() and not self.get_unbuilt_relations()

    def has_broken_links(self) -> dict[str, str]:
        """Link fields whose target object has no configuration.

        Returns:
            Mapping of field name to the missing object name; empty when
            every link resolves.
        """
        broken = {}
        for target, fields in self.config.get_links().items():
            if target == self.config.name or self.store.exists(target):
                continue
            for field_name in fields:
                broken[field_name] = target
        return broken

    def pending_changes(self) -> SchemaDiff:
        """Everything ``build()`` would change, without changing anything."""
        missing = list(self.get_objects_updates_info().values())
        unbuilt = list(self.get_unbuilt_relations().values())
        if not self.table_exists():
            return SchemaDiff(table_exists=False, missing_relations=missing, unbuilt_relations=unbuilt)
        return SchemaDiff(
            table_exists=True,
            columns=self.prepare_column_updates(),
            indexes=self.prepare_index_updates(),
            foreign_keys=self.prepare_keys_update() if self.options.foreign_keys else [],
            engine=self.prepare_engine_update(),
            missing_relations=missing,
            unbuilt_relations=unbuilt,
        )

    def validate(self) -> bool:
        """Check if the live table matches the configuration.

        Read-only: the table must exist, every junction object must exist
        and the column, index, engine and (when enabled) foreign key diffs
        must be empty.
        """
        try:
            if not self.table_exists():
                return False
            if not self.check_relations():
                return False
            return self.pending_changes().is_empty
        except IntrospectionError as e:
            self.errors.append(e.message)
            return False

    # --- Mutations ---

    def build(self, build_keys: bool = True) -> BuildResult:
        """Create or alter the table.

        Args:
            build_keys: Reconcile foreign keys as well.

        Returns:
            BuildResult, truthy when no error was recorded.
        """
        self.errors = []
        self.statements = []

        if not self._check_lock():
            return self._result(False)

        with LoggingContext(object_name=self.config.name):
            try:
                if not self.table_exists():
                    success = self._create(build_keys)
                else:
                    success = self._alter(build_keys)
            except IntrospectionError as e:
                self.errors.append(e.message)
                success = False

        return self._result(success)

    def _result(self, success: bool) -> BuildResult:
        success = success and not self.errors
        if success:
            logger.info("Object built", object_name=self.config.name, statements=len(self.statements))
        else:
            logger.warning("Object build failed", object_name=self.config.name, errors=self.errors)
        return BuildResult(success=success, errors=list(self.errors), statements=list(self.statements))

    def _create(self, build_keys: bool) -> bool:
        if not self.config.column_fields():
            self.errors.append(f"Cannot create table for {self.config.name}: empty properties")
            return False

        logger.info("Creating table", table=self.table)
        if not self._execute(self.emitter.create_table(self.table, self.config)):
            return False

        if build_keys and not self.build_foreign_keys():
            return False

        return self.materialize_relations()

    def _alter(self, build_keys: bool) -> bool:
        engine_update = self.prepare_engine_update()
        column_updates = self.prepare_column_updates()
        index_updates = self.prepare_index_updates()

        # Drop invalid keys first so column and index changes do not trip over them
        if build_keys and not self.build_foreign_keys(remove=True, create=False):
            return False

        if engine_update is not None:
            logger.info("Changing table engine", table=self.table, current=engine_update.current, target=engine_update.target)
            if not self._execute(self.emitter.change_engine(self.table, engine_update.target)):
                return False

        clauses = [self.emitter.column_clause(change, self.config) for change in column_updates]
        clauses += [self.emitter.index_clause(change, self.config) for change in index_updates]

        if clauses:
            logger.info(
                "Altering table",
                table=self.table,
                columns=[f"{c.action.value}:{c.name}" for c in column_updates],
                indexes=[f"{c.action.value}:{c.name}" for c in index_updates],
            )
            if not self._execute(self.emitter.alter_table(self.table, clauses)):
                return False

        if build_keys and not self.build_foreign_keys(remove=False, create=True):
            return False

        return self.materialize_relations()

    def build_foreign_keys(self, remove: bool = True, create: bool = True) -> bool:
        """Drop stale and add missing foreign keys in one statement.

        Args:
            remove: Apply drops.
            create: Apply additions.
        """
        if not self._check_lock():
            return False

        clauses = []
        for change in self.prepare_keys_update(drop_only=not self.options.foreign_keys):
            if change.action == ChangeAction.DROP and remove:
                clauses.append(self.emitter.foreign_key_clause(change))
            elif change.action == ChangeAction.ADD and create:
                clauses.append(self.emitter.foreign_key_clause(change))

        if not clauses:
            return True
        return self._execute(self.emitter.alter_table(self.table, clauses))

    def materialize_relations(self) -> bool:
        pending = self.get_objects_updates_info()
        unbuilt = self.get_unbuilt_relations()
        if not pending and not unbuilt:
            return True

        materializer = RelationMaterializer(
            owner=self.config,
            store=self.store,
            introspector=self.introspector,
            locator=self.locator,
            factory=self.factory,
            depth=self.relation_depth,
        )
        success = materializer.build_existing(unbuilt) and materializer.materialize(pending)
        self.errors.extend(materializer.errors)
        self.statements.extend(materializer.statements)
        return success

    def rename_table(self, new_name: str) -> bool:
        """Rename the table and point the configuration at the new name.

        Args:
            new_name: New table name without prefix.
        """
        if not self._check_lock():
            return False

        sql = self.emitter.rename_table(self.table, self.locator.prefix() + new_name)
        if not self._execute(sql):
            return False

        self.config.table = new_name
        self.locator.refresh_table_info()
        logger.info("Table renamed", object_name=self.config.name, table=self.table)
        return True

    def rename_field(self, old_name: str, new_name: str) -> bool:
        """Rename a column using the new field's full definition."""
        if not self._check_lock():
            return False
        if not self.config.has_field(new_name):
            self.errors.append(f"Undefined field {new_name} in object {self.config.name}")
            return False

        return self._execute(self.emitter.rename_column(self.table, old_name, self.config, new_name))

    def remove(self) -> bool:
        """Drop the table. Succeeds without SQL when it does not exist."""
        if not self._check_lock("Can not remove locked object table"):
            return False
        try:
            if not self.table_exists():
                return True
        except IntrospectionError as e:
            self.errors.append(e.message)
            return False

        logger.info("Dropping table", table=self.table)
        return self._execute(self.emitter.drop_table(self.table))


class BuilderFactory:
    """Creates Builders that share a connection, a store and options."""

    def __init__(
        self,
        connection: DatabaseConnection,
        store: ObjectConfigStore,
        options: BuilderOptions | None = None,
        prefix: str = "",
        platform: SchemaPlatform | None = None,
        sql_log: SqlAuditLog | None = None,
    ) -> None:
        self.connection = connection
        self.store = store
        self.options = options or BuilderOptions()
        self.prefix = prefix
        self.platform = platform or get_platform(connection)
        self.sql_log = sql_log or SqlAuditLog(
            self.options.logs_path, self.options.log_prefix, self.options.write_log
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        manager: DatabaseManager,
        store: ObjectConfigStore | None = None,
    ) -> "BuilderFactory":
        """Factory wired from application settings.

        Args:
            settings: Application settings.
            manager: Database manager owning the engine.
            store: Configuration store; defaults to JSON files under
                ``settings.object_config_path``.
        """
        return cls(
            connection=manager.connection(),
            store=store or JsonObjectConfigStore(settings.object_config_path),
            options=BuilderOptions.from_settings(settings),
            prefix=manager.prefix,
        )

    def create(self, object_name: str, relation_depth: int = 0) -> Builder:
        """Load an object's configuration and wrap it in a Builder.

        Raises:
            ObjectConfigNotFoundError: If the object has no configuration.
            ObjectConfigError: If the configuration cannot be parsed.
        """
        config = self.store.load(object_name)
        return self.for_config(config, relation_depth=relation_depth)

    def for_config(self, config: ObjectConfig, relation_depth: int = 0) -> Builder:
        return Builder(
            config,
            store=self.store,
            platform=self.platform,
            locator=TableLocator(config, self.connection, self.prefix),
            options=self.options,
            sql_log=self.sql_log,
            factory=self,
            relation_depth=relation_depth,
        )
