"""Object configuration entities.

An object configuration is the declared, desired state of one database
table: its fields, indexes, links to other objects and storage engine.
The Builder converges the live table towards it.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

PRIMARY_INDEX = "PRIMARY"


class _NoDefault:
    """Marker for fields without a SQL default."""

    _instance: "_NoDefault | None" = None

    def __new__(cls) -> "_NoDefault":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NO_DEFAULT"

    def __bool__(self) -> bool:
        return False


NO_DEFAULT: Any = _NoDefault()


class LinkType(str, Enum):
    """Cardinality of a link field."""

    OBJECT = "object"
    MULTI = "multi"


class RelationsType(str, Enum):
    """Storage strategy for multi-link fields."""

    MANY_TO_MANY = "many_to_many"


@dataclass(frozen=True)
class LinkSpec:
    """Reference from a field to another object.

    Attributes:
        object: Target object name.
        link_type: Single object reference or a list of references.
        relations_type: Set to many_to_many when values live in a junction table.
        relations_object: Explicit junction object name, if any.
    """

    object: str
    link_type: LinkType = LinkType.OBJECT
    relations_type: RelationsType | None = None
    relations_object: str | None = None

    @property
    def is_many_to_many(self) -> bool:
        return self.link_type == LinkType.MULTI and self.relations_type == RelationsType.MANY_TO_MANY


@dataclass
class FieldSpec:
    """Declared shape of one column.

    Attributes:
        name: Column name.
        db_type: Lowercase SQL type name, or ``boolean``.
        length: Character length for char types, bit length for ``bit``.
        precision: Digits after the decimal point for float types.
        scale: Total digits for float types.
        nullable: Whether NULL is allowed (ignored for text and blob types).
        default: SQL default, or NO_DEFAULT.
        unsigned: UNSIGNED numeric column.
        virtual: Computed field without a backing column.
        required: Value required; drives nullability of text and blob types.
        auto_increment: AUTO_INCREMENT column.
        link: Optional link to another object.
    """

    name: str
    db_type: str
    length: int | None = None
    precision: int | None = None
    scale: int | None = None
    nullable: bool = False
    default: Any = NO_DEFAULT
    unsigned: bool = False
    virtual: bool = False
    required: bool = False
    auto_increment: bool = False
    link: LinkSpec | None = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Field name is required")
        self.db_type = (self.db_type or "").lower()
        if not self.db_type and not self.is_virtual:
            raise ValueError(f"Field '{self.name}' has no db_type")
        if self.default is None:
            self.default = NO_DEFAULT

    @property
    def is_virtual(self) -> bool:
        """Virtual fields and many-to-many links have no column."""
        return self.virtual or (self.link is not None and self.link.is_many_to_many)

    @property
    def is_link(self) -> bool:
        return self.link is not None

    @property
    def is_object_link(self) -> bool:
        return self.link is not None and self.link.link_type == LinkType.OBJECT

    @property
    def has_default(self) -> bool:
        return self.default is not NO_DEFAULT

    @property
    def linked_object(self) -> str | None:
        return self.link.object if self.link else None


@dataclass
class IndexSpec:
    """Declared table index.

    A primary index always has exactly one column.
    """

    name: str
    columns: list[str]
    unique: bool = False
    fulltext: bool = False
    primary: bool = False

    def __post_init__(self) -> None:
        if not self.columns:
            raise ValueError(f"Index '{self.name}' has no columns")
        if self.primary:
            if len(self.columns) != 1:
                raise ValueError(f"Primary index must have exactly one column, got {self.columns}")
            self.name = PRIMARY_INDEX


@dataclass(frozen=True)
class ForeignKeySpec:
    """Foreign key constraint derived from an object link."""

    name: str
    source_field: str
    target_db: str
    target_table: str
    target_field: str
    on_update: str
    on_delete: str


@dataclass
class ObjectConfig:
    """Declarative configuration of one ORM object.

    Attributes:
        name: Object name (lowercase).
        table: Table name without prefix.
        engine: Storage engine.
        fields: Field specifications keyed by name, in declaration order.
        indexes: Index specifications keyed by name.
        locked: Locked objects are never built.
        read_only: Read-only objects are never built.
        connection: Connection name, used for SQL log file names.
        use_db_prefix: Prepend the connection table prefix.
        disable_keys: Never create foreign keys from or to this object.
        primary_key: Primary key field name.
        parent_object: Owning object for generated relation objects.
        system: Object created by ormsync itself.
        title: Human readable title.
    """

    name: str
    table: str
    engine: str = "InnoDB"
    fields: dict[str, FieldSpec] = field(default_factory=dict)
    indexes: dict[str, IndexSpec] = field(default_factory=dict)
    locked: bool = False
    read_only: bool = False
    connection: str = "default"
    use_db_prefix: bool = True
    disable_keys: bool = False
    primary_key: str = "id"
    parent_object: str | None = None
    system: bool = False
    title: str = ""

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Object name is required")
        self.name = self.name.lower()
        if not self.table:
            self.table = self.name
        # Primary indexes are always keyed PRIMARY
        self.indexes = {index.name: index for index in self.indexes.values()}

    def is_locked(self) -> bool:
        return self.locked or self.read_only

    def get_field(self, name: str) -> FieldSpec:
        try:
            return self.fields[name]
        except KeyError:
            raise KeyError(f"Object '{self.name}' has no field '{name}'") from None

    def has_field(self, name: str) -> bool:
        return name in self.fields

    def column_fields(self) -> list[FieldSpec]:
        """Fields that are materialized as columns."""
        return [spec for spec in self.fields.values() if not spec.is_virtual]

    def link_specs(self) -> list[tuple[str, LinkSpec]]:
        return [(name, spec.link) for name, spec in self.fields.items() if spec.link is not None]

    def many_to_many_fields(self) -> dict[str, FieldSpec]:
        return {
            name: spec
            for name, spec in self.fields.items()
            if spec.link is not None and spec.link.is_many_to_many
        }

    def get_links(self) -> dict[str, dict[str, LinkSpec]]:
        """Links grouped by target object name."""
        links: dict[str, dict[str, LinkSpec]] = {}
        for name, link in self.link_specs():
            links.setdefault(link.object, {})[name] = link
        return links

    def relations_object_name(self, field_name: str) -> str:
        """Name of the junction object backing a many-to-many field."""
        spec = self.get_field(field_name)
        if spec.link is None or not spec.link.is_many_to_many:
            raise ValueError(f"Field '{field_name}' is not a many-to-many link")
        if spec.link.relations_object:
            return spec.link.relations_object.lower()
        return f"{self.name}_{field_name}_to_{spec.link.object}".lower()

    def to_dict(self) -> dict[str, Any]:
        """Plain representation used by the configuration store."""
        return {
            "name": self.name,
            "table": self.table,
            "engine": self.engine,
            "connection": self.connection,
            "use_db_prefix": self.use_db_prefix,
            "disable_keys": self.disable_keys,
            "locked": self.locked,
            "readonly": self.read_only,
            "primary_key": self.primary_key,
            "parent_object": self.parent_object,
            "system": self.system,
            "title": self.title,
            "fields": {name: _field_to_dict(spec) for name, spec in self.fields.items()},
            "indexes": {
                name: {
                    "columns": list(index.columns),
                    "unique": index.unique,
                    "fulltext": index.fulltext,
                    "primary": index.primary,
                }
                for name, index in self.indexes.items()
            },
        }


def _field_to_dict(spec: FieldSpec) -> dict[str, Any]:
    default = spec.default if spec.has_default else None
    if isinstance(default, bool):
        # stored documents read ``false`` as "no default"
        default = int(default)
    data: dict[str, Any] = {
        "db_type": spec.db_type,
        "db_len": spec.length,
        "db_precision": spec.precision,
        "db_scale": spec.scale,
        "db_is_null": spec.nullable,
        "db_default": default,
        "db_unsigned": spec.unsigned,
        "db_auto_increment": spec.auto_increment,
        "virtual": spec.virtual,
        "required": spec.required,
    }
    if spec.link is not None:
        data["link"] = {
            "object": spec.link.object,
            "link_type": spec.link.link_type.value,
            "relations_type": spec.link.relations_type.value if spec.link.relations_type else None,
            "relations_object": spec.link.relations_object,
        }
    return {key: value for key, value in data.items() if value is not None}
