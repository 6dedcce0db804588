"""Domain services for ormsync.

Services contain the schema comparison rules. They have no dependencies
on infrastructure or external frameworks.
"""

from ormsync.domain.services.field_property import (
    BLOB_TYPES,
    CHAR_TYPES,
    DATE_TYPES,
    FLOAT_TYPES,
    INT_TYPES,
    NUM_TYPES,
    NUMBER_LENGTH,
    SUPPORTED_TYPES,
    TEXT_TYPES,
    FieldProperty,
)
from ormsync.domain.services.foreign_keys import derive_foreign_keys, foreign_key_name
from ormsync.domain.services.schema_diff import SchemaDiffEngine

__all__ = [
    "BLOB_TYPES",
    "CHAR_TYPES",
    "DATE_TYPES",
    "FLOAT_TYPES",
    "INT_TYPES",
    "NUM_TYPES",
    "NUMBER_LENGTH",
    "SUPPORTED_TYPES",
    "TEXT_TYPES",
    "FieldProperty",
    "SchemaDiffEngine",
    "derive_foreign_keys",
    "foreign_key_name",
]
