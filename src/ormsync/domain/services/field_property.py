"""Field property rules: SQL column definitions and live column comparison.

Each declared field belongs to one type class. The type class decides how
the field renders as a MySQL column definition and which live metadata
is compared against it.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Callable

from ormsync.domain.entities.object_config import FieldSpec
from ormsync.domain.entities.schema_change import LiveColumn

NUM_TYPES = frozenset({
    "tinyint",
    "smallint",
    "mediumint",
    "int",
    "bigint",
    "float",
    "double",
    "decimal",
    "bit",
})
INT_TYPES = frozenset({"tinyint", "smallint", "mediumint", "int", "bigint", "bit"})
FLOAT_TYPES = frozenset({"decimal", "float", "double"})
CHAR_TYPES = frozenset({"char", "varchar"})
TEXT_TYPES = frozenset({"tinytext", "text", "mediumtext", "longtext"})
DATE_TYPES = frozenset({"date", "datetime", "time", "timestamp"})
BLOB_TYPES = frozenset({"tinyblob", "blob", "mediumblob", "longblob"})
BOOLEAN_TYPE = "boolean"

SUPPORTED_TYPES = NUM_TYPES | CHAR_TYPES | TEXT_TYPES | DATE_TYPES | BLOB_TYPES | {BOOLEAN_TYPE}

# NUMERIC_PRECISION reported by information_schema, (signed, unsigned)
NUMBER_LENGTH: dict[str, tuple[int, int]] = {
    "tinyint": (3, 3),
    "smallint": (5, 5),
    "mediumint": (7, 8),
    "int": (10, 10),
    "bigint": (19, 20),
}

DEFAULT_CHAR_LENGTH = 255
TEXT_INDEX_PREFIX = 32

# Defaults rendered without quotes
SQL_DEFAULT_KEYWORDS = frozenset({"CURRENT_TIMESTAMP", "CURRENT_TIMESTAMP()", "NOW()"})

COMPARISONS = ("type", "length", "null", "default", "unsigned")


def normalize_default(value: Any) -> str:
    """Render a declared default the way information_schema reports it."""
    if isinstance(value, bool):
        return "1" if value else "0"
    return str(value)


class FieldProperty:
    """SQL rules for a single declared field."""

    def __init__(self, spec: FieldSpec) -> None:
        self.spec = spec
        self.db_type = spec.db_type

    @property
    def is_boolean(self) -> bool:
        return self.db_type == BOOLEAN_TYPE

    @property
    def is_text(self) -> bool:
        return self.db_type in TEXT_TYPES

    @property
    def is_blob(self) -> bool:
        return self.db_type in BLOB_TYPES

    @property
    def is_date(self) -> bool:
        return self.db_type in DATE_TYPES

    @property
    def is_float(self) -> bool:
        return self.db_type in FLOAT_TYPES

    @property
    def is_char(self) -> bool:
        return self.db_type in CHAR_TYPES

    @property
    def supports_unsigned(self) -> bool:
        return self.db_type in NUM_TYPES and self.db_type != "bit"

    @property
    def length(self) -> int | None:
        if self.is_char:
            return self.spec.length or DEFAULT_CHAR_LENGTH
        if self.db_type == "bit":
            return self.spec.length or 1
        return self.spec.length

    @property
    def nullable(self) -> bool:
        """Effective nullability; text and blob follow ``required``."""
        if self.is_text or self.is_blob:
            return not self.spec.required
        return self.spec.nullable

    @property
    def accepts_default(self) -> bool:
        return not (self.is_text or self.is_blob)

    @property
    def compares_default(self) -> bool:
        return not self.nullable and not self.is_date and self.accepts_default

    def canonical_length(self, unsigned: bool | None = None) -> int | None:
        """Length the database reports for integer types."""
        if unsigned is None:
            unsigned = self.spec.unsigned
        lengths = NUMBER_LENGTH.get(self.db_type)
        if lengths is None:
            return None
        return lengths[1] if unsigned else lengths[0]

    def sql_type(self) -> str:
        """Column type clause, e.g. ``DECIMAL(12,2) UNSIGNED``."""
        if self.is_boolean:
            return "TINYINT(1)"

        sql = self.db_type.upper()
        if self.is_float:
            # scale holds the total digits, precision the fractional digits;
            # precision alone is not rendered
            if self.spec.scale is not None:
                sql += f"({int(self.spec.scale)},{int(self.spec.precision or 0)})"
        elif self.is_char or self.db_type == "bit":
            sql += f"({self.length})"

        if self.spec.unsigned and self.supports_unsigned:
            sql += " UNSIGNED"
        return sql

    def default_sql(self, quote: Callable[[Any], str]) -> str | None:
        if not self.accepts_default or not self.spec.has_default:
            return None
        value = self.spec.default
        if isinstance(value, bool):
            return normalize_default(value)
        if isinstance(value, (int, float, Decimal)):
            return str(value)
        if isinstance(value, str) and value.upper() in SQL_DEFAULT_KEYWORDS:
            return value.upper()
        return quote(str(value))

    def to_sql(
        self,
        quote_identifier: Callable[[str], str],
        quote: Callable[[Any], str],
    ) -> str:
        """Full column definition for CREATE TABLE and ALTER TABLE clauses."""
        parts = [quote_identifier(self.spec.name), self.sql_type()]
        parts.append("NULL" if self.nullable else "NOT NULL")

        default = self.default_sql(quote)
        if default is not None:
            parts.append(f"DEFAULT {default}")

        if self.spec.auto_increment:
            parts.append("AUTO_INCREMENT")
        return " ".join(parts)

    def index_column_sql(self, quote_identifier: Callable[[str], str]) -> str:
        """Column reference inside an index; text columns need a key prefix."""
        column = quote_identifier(self.spec.name)
        if self.is_text or self.is_blob:
            return f"{column}({TEXT_INDEX_PREFIX})"
        return column

    def compare(self, column: LiveColumn) -> dict[str, bool]:
        """Compare the declared field with a live column.

        Returns:
            Mapping of comparison name to True where the comparison failed.
        """
        flags = dict.fromkeys(COMPARISONS, False)
        data_type = column.data_type.lower()

        # Booleans are stored as tinyint, nothing structural to compare
        if not (self.is_boolean and data_type == "tinyint"):
            flags["type"] = self.db_type != data_type
            flags["length"] = self._length_differs(column)
            flags["null"] = self.nullable != column.nullable
            if self.supports_unsigned:
                flags["unsigned"] = bool(self.spec.unsigned) != bool(column.unsigned)

        if self.compares_default:
            flags["default"] = self._default_differs(column.column_default)

        return flags

    def _length_differs(self, column: LiveColumn) -> bool:
        if self.is_float:
            if self.spec.scale is None:
                return False
            return (
                _as_int(self.spec.scale) != _as_int(column.numeric_precision)
                or _as_int(self.spec.precision) != _as_int(column.numeric_scale)
            )
        if self.db_type in NUMBER_LENGTH:
            return self.canonical_length() != _as_int(column.numeric_precision)
        if self.db_type == "bit":
            return self.length != _as_int(column.numeric_precision)
        if self.length is not None:
            return self.length != _as_int(column.character_max_length)
        return False

    def _default_differs(self, live_default: str | None) -> bool:
        if not self.spec.has_default:
            return live_default is not None
        if live_default is None:
            return True

        declared = normalize_default(self.spec.default)
        if self.is_float or self.db_type in INT_TYPES or self.is_boolean:
            try:
                return Decimal(declared) != Decimal(live_default)
            except InvalidOperation:
                pass
        return declared != live_default


def _as_int(value: Any) -> int:
    return int(value) if value is not None else 0
