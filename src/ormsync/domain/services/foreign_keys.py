"""Foreign key derivation from object links.

Foreign keys are never stored in configurations. They are recomputed from
single-object link fields every time a diff runs, and their constraint
names are a hash of their definition so a changed definition always shows
up as a drop plus an add.
"""

import hashlib
from typing import Callable

from ormsync.domain.entities.object_config import ForeignKeySpec, ObjectConfig

TRANSACTIONAL_ENGINES = frozenset({"innodb"})

ON_UPDATE = "CASCADE"
ON_DELETE_NULLABLE = "SET NULL"
ON_DELETE_REQUIRED = "RESTRICT"


def foreign_key_name(
    source_field: str,
    target_db: str,
    target_table: str,
    target_field: str,
    on_update: str,
    on_delete: str,
) -> str:
    """Deterministic constraint name for a foreign key definition."""
    raw = ":".join([source_field, target_db, target_table, target_field, on_update, on_delete])
    return hashlib.md5(raw.encode("utf-8")).hexdigest()


def supports_foreign_keys(config: ObjectConfig) -> bool:
    return not config.disable_keys and config.engine.lower() in TRANSACTIONAL_ENGINES


def derive_foreign_keys(
    config: ObjectConfig,
    *,
    resolve: Callable[[str], ObjectConfig | None],
    table_name: Callable[[ObjectConfig], str],
    database: str,
) -> dict[str, ForeignKeySpec]:
    """Compute the foreign keys declared by an object's links.

    Args:
        config: Object whose links are inspected.
        resolve: Returns the configuration of a linked object, or None when
            it does not exist (broken links produce no key).
        table_name: Returns the full (prefixed) table name of an object.
        database: Schema name of the connection.

    Returns:
        Foreign keys keyed by constraint name, in field order.
    """
    if not supports_foreign_keys(config):
        return {}

    keys: dict[str, ForeignKeySpec] = {}
    for spec in config.column_fields():
        if not spec.is_object_link or spec.linked_object is None:
            continue

        target = resolve(spec.linked_object)
        if target is None or not supports_foreign_keys(target):
            continue
        if target.connection != config.connection:
            continue

        on_delete = ON_DELETE_NULLABLE if spec.nullable else ON_DELETE_REQUIRED
        target_table = table_name(target)
        name = foreign_key_name(
            spec.name, database, target_table, target.primary_key, ON_UPDATE, on_delete
        )
        keys[name] = ForeignKeySpec(
            name=name,
            source_field=spec.name,
            target_db=database,
            target_table=target_table,
            target_field=target.primary_key,
            on_update=ON_UPDATE,
            on_delete=on_delete,
        )
    return keys
