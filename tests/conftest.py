"""Pytest configuration for all tests.

Builders are exercised against a recording connection and an in-memory
schema that reports tables the way MySQL's information_schema does.
"""

import copy
from typing import Any, Callable

import pytest

from ormsync.application.services.builder import BuilderFactory, BuilderOptions
from ormsync.core.config import get_settings
from ormsync.core.exceptions import (
    IntrospectionError,
    ObjectConfigNotFoundError,
    SqlExecutionError,
)
from ormsync.domain.entities.object_config import (
    PRIMARY_INDEX,
    FieldSpec,
    ForeignKeySpec,
    IndexSpec,
    LinkSpec,
    LinkType,
    ObjectConfig,
    RelationsType,
)
from ormsync.domain.entities.schema_change import LiveColumn, LiveForeignKey, LiveIndex
from ormsync.domain.services.field_property import (
    NUMBER_LENGTH,
    FieldProperty,
    normalize_default,
)
from ormsync.infrastructure.configuration.object_config_store import ObjectConfigStore
from ormsync.infrastructure.persistence.ddl import MySQLDDLEmitter
from ormsync.infrastructure.persistence.introspection import SchemaIntrospector
from ormsync.infrastructure.persistence.platform import SchemaPlatform

DATABASE = "shop"


class RecordingConnection:
    """Connection double that records statements instead of running them."""

    def __init__(self, database: str = DATABASE) -> None:
        self.name = "default"
        self.database_name = database
        self.dialect_name = "mysql"
        self.executed: list[str] = []
        self.reject: list[str] = []

    def execute(self, sql: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        for marker in self.reject:
            if marker in sql:
                raise SqlExecutionError(f"statement rejected near '{marker}'", code=1064, sql=sql)
        self.executed.append(sql)
        return []

    def quote_identifier(self, name: str) -> str:
        return f"`{name}`"

    def quote(self, value: Any) -> str:
        return "'" + str(value).replace("'", "''") + "'"


class TableState:
    def __init__(self) -> None:
        self.columns: list[LiveColumn] = []
        self.indexes: dict[str, LiveIndex] = {}
        self.foreign_keys: dict[str, LiveForeignKey] = {}
        self.engine: str | None = "InnoDB"


class InMemorySchema(SchemaIntrospector):
    """Introspector over tables held in memory."""

    def __init__(self) -> None:
        self.tables: dict[str, TableState] = {}
        self.failing: set[str] = set()

    def _check(self, method: str) -> None:
        if method in self.failing:
            raise IntrospectionError("Lost connection to MySQL server", code=2013)

    def list_tables(self) -> list[str]:
        self._check("list_tables")
        return sorted(self.tables)

    def columns(self, table: str) -> list[LiveColumn]:
        self._check("columns")
        return list(self.tables[table].columns) if table in self.tables else []

    def indexes(self, table: str) -> dict[str, LiveIndex]:
        self._check("indexes")
        return dict(self.tables[table].indexes) if table in self.tables else {}

    def foreign_keys(self, table: str) -> dict[str, LiveForeignKey]:
        self._check("foreign_keys")
        return dict(self.tables[table].foreign_keys) if table in self.tables else {}

    def engine(self, table: str) -> str | None:
        self._check("engine")
        return self.tables[table].engine if table in self.tables else None

    def add_table(self, name: str) -> TableState:
        state = TableState()
        self.tables[name] = state
        return state

    def load(self, table: str, config: ObjectConfig, foreign_keys: dict[str, ForeignKeySpec] | None = None) -> TableState:
        """Replace a table with what MySQL reports after creating ``config``."""
        state = self.add_table(table)
        state.columns = [live_column(spec) for spec in config.column_fields()]
        state.indexes = {
            index.name: LiveIndex(
                name=index.name,
                columns=tuple(index.columns),
                unique=index.unique or index.primary,
                fulltext=index.fulltext,
            )
            for index in config.indexes.values()
        }
        for key in (foreign_keys or {}).values():
            state.foreign_keys[key.name] = LiveForeignKey(
                name=key.name,
                source_field=key.source_field,
                target_table=key.target_table,
                target_field=key.target_field,
                on_update=key.on_update,
                on_delete=key.on_delete,
            )
            # InnoDB adds a backing index named after the constraint
            state.indexes.setdefault(key.name, LiveIndex(name=key.name, columns=(key.source_field,)))
        state.engine = config.engine
        return state


def live_column(spec: FieldSpec) -> LiveColumn:
    """Column metadata MySQL reports for a column created from ``spec``."""
    prop = FieldProperty(spec)
    precision = scale = char_length = None
    data_type = spec.db_type

    if prop.is_boolean:
        data_type = "tinyint"
        precision = 3
    elif spec.db_type in NUMBER_LENGTH:
        precision = prop.canonical_length()
    elif spec.db_type == "bit":
        precision = prop.length
    elif prop.is_float:
        precision = spec.scale if spec.scale is not None else 12
        scale = spec.precision if spec.scale is not None else None
    elif prop.is_char:
        char_length = prop.length
    elif prop.is_text or prop.is_blob:
        char_length = 65535

    default = None
    if prop.accepts_default and spec.has_default:
        default = normalize_default(spec.default)

    return LiveColumn(
        name=spec.name,
        data_type=data_type,
        nullable=prop.nullable,
        numeric_precision=precision,
        numeric_scale=scale,
        character_max_length=char_length,
        column_default=default,
        unsigned=spec.unsigned and not prop.is_boolean,
    )


class InMemoryConfigStore(ObjectConfigStore):
    def __init__(self, *configs: ObjectConfig) -> None:
        self.configs = {config.name: config for config in configs}
        self.saved: list[str] = []
        self.writable = True

    def load(self, name: str) -> ObjectConfig:
        try:
            return copy.deepcopy(self.configs[name.lower()])
        except KeyError:
            raise ObjectConfigNotFoundError(name.lower()) from None

    def save(self, config: ObjectConfig) -> bool:
        if not self.writable:
            return False
        self.configs[config.name] = copy.deepcopy(config)
        self.saved.append(config.name)
        return True

    def exists(self, name: str) -> bool:
        return name.lower() in self.configs

    def names(self) -> list[str]:
        return sorted(self.configs)


def make_object(name: str, *fields: FieldSpec, **kwargs: Any) -> ObjectConfig:
    """Object with an auto-increment ``id`` primary key plus ``fields``."""
    id_field = FieldSpec(name="id", db_type="bigint", unsigned=True, auto_increment=True)
    kwargs.setdefault(
        "indexes",
        {PRIMARY_INDEX: IndexSpec(name=PRIMARY_INDEX, columns=["id"], unique=True, primary=True)},
    )
    return ObjectConfig(
        name=name,
        table=kwargs.pop("table", name),
        fields={spec.name: spec for spec in (id_field, *fields)},
        **kwargs,
    )


def object_link(name: str, target: str, nullable: bool = True) -> FieldSpec:
    return FieldSpec(
        name=name,
        db_type="bigint",
        unsigned=True,
        nullable=nullable,
        link=LinkSpec(object=target),
    )


def multi_link(name: str, target: str) -> FieldSpec:
    return FieldSpec(
        name=name,
        db_type="",
        link=LinkSpec(
            object=target,
            link_type=LinkType.MULTI,
            relations_type=RelationsType.MANY_TO_MANY,
        ),
    )


@pytest.fixture(autouse=True)
def _reset_settings():
    """Settings are cached per process; tests must not leak overrides."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def connection() -> RecordingConnection:
    return RecordingConnection()


@pytest.fixture
def schema() -> InMemorySchema:
    return InMemorySchema()


@pytest.fixture
def platform(connection: RecordingConnection, schema: InMemorySchema) -> SchemaPlatform:
    return SchemaPlatform(name="mysql", introspector=schema, emitter=MySQLDDLEmitter(connection))


@pytest.fixture
def store() -> InMemoryConfigStore:
    return InMemoryConfigStore()


@pytest.fixture
def factory(
    connection: RecordingConnection,
    store: InMemoryConfigStore,
    platform: SchemaPlatform,
) -> Callable[..., BuilderFactory]:
    """Create a BuilderFactory over the in-memory fixtures."""

    def create(options: BuilderOptions | None = None, prefix: str = "") -> BuilderFactory:
        return BuilderFactory(
            connection,
            store,
            options=options or BuilderOptions(),
            prefix=prefix,
            platform=platform,
        )

    return create


@pytest.fixture
def objects() -> Any:
    """Helpers for declaring object configurations in tests."""

    class Objects:
        make = staticmethod(make_object)
        link = staticmethod(object_link)
        multi = staticmethod(multi_link)

    return Objects


@pytest.fixture
def simulate() -> Callable[[FieldSpec], LiveColumn]:
    return live_column
