"""Pydantic schemas for object configuration documents."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ormsync.domain.entities.object_config import (
    PRIMARY_INDEX,
    FieldSpec,
    IndexSpec,
    LinkSpec,
    LinkType,
    ObjectConfig,
    RelationsType,
)
from ormsync.domain.services.field_property import FLOAT_TYPES, SUPPORTED_TYPES


class LinkDefinition(BaseModel):
    """Reference from a field to another object."""

    object: str = Field(..., min_length=1, description="Target object name")
    link_type: LinkType = LinkType.OBJECT
    relations_type: RelationsType | None = None
    relations_object: str | None = None

    @field_validator("object")
    @classmethod
    def normalize_object(cls, v: str) -> str:
        return v.lower()


class FieldDefinition(BaseModel):
    """Definition of a single object field."""

    model_config = ConfigDict(populate_by_name=True)

    db_type: str | None = Field(default=None, description="SQL type, or boolean")
    db_len: int | None = Field(default=None, ge=0)
    db_precision: int | None = Field(default=None, ge=0)
    db_scale: int | None = Field(default=None, ge=0)
    db_is_null: bool = Field(default=False, alias="db_isNull")
    db_default: Any = None
    db_unsigned: bool = False
    db_auto_increment: bool = False
    virtual: bool = False
    required: bool = False
    link: LinkDefinition | None = None

    @field_validator("db_type")
    @classmethod
    def normalize_type(cls, v: str | None) -> str | None:
        """Normalize field type to lowercase."""
        return v.lower() if v else v

    @field_validator("db_default")
    @classmethod
    def false_means_no_default(cls, v: Any) -> Any:
        """``false`` is accepted as "no default" for hand-written documents."""
        return None if v is False else v

    @model_validator(mode="after")
    def check_type(self) -> "FieldDefinition":
        many_to_many = (
            self.link is not None
            and self.link.link_type == LinkType.MULTI
            and self.link.relations_type == RelationsType.MANY_TO_MANY
        )
        if self.virtual or many_to_many:
            return self
        if not self.db_type:
            raise ValueError("db_type is required for stored fields")
        if self.db_type not in SUPPORTED_TYPES:
            raise ValueError(f"unsupported db_type '{self.db_type}'")
        if self.db_type in FLOAT_TYPES and self.db_precision is not None and self.db_scale is None:
            raise ValueError("db_precision needs db_scale, the total number of digits")
        return self

    def to_entity(self, name: str) -> FieldSpec:
        link = None
        if self.link is not None:
            link = LinkSpec(
                object=self.link.object,
                link_type=self.link.link_type,
                relations_type=self.link.relations_type,
                relations_object=self.link.relations_object,
            )
        return FieldSpec(
            name=name,
            db_type=self.db_type or "",
            length=self.db_len,
            precision=self.db_precision,
            scale=self.db_scale,
            nullable=self.db_is_null,
            default=self.db_default,
            unsigned=self.db_unsigned,
            virtual=self.virtual,
            required=self.required,
            auto_increment=self.db_auto_increment,
            link=link,
        )


class IndexDefinition(BaseModel):
    """Definition of a table index."""

    columns: list[str] = Field(..., min_length=1)
    unique: bool = False
    fulltext: bool = False
    primary: bool = False

    @model_validator(mode="after")
    def check_primary(self) -> "IndexDefinition":
        if self.primary and len(self.columns) != 1:
            raise ValueError("a primary index must have exactly one column")
        return self


class ObjectConfigDocument(BaseModel):
    """Stored object configuration."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str | None = None
    table: str | None = None
    engine: str = Field(default="InnoDB", pattern=r"^[A-Za-z][A-Za-z0-9_]*$")
    connection: str = "default"
    use_db_prefix: bool = True
    disable_keys: bool = False
    locked: bool = False
    readonly: bool = Field(default=False, alias="read_only")
    primary_key: str = "id"
    parent_object: str | None = None
    system: bool = False
    title: str = ""
    fields: dict[str, FieldDefinition] = Field(default_factory=dict)
    indexes: dict[str, IndexDefinition] = Field(default_factory=dict)

    @model_validator(mode="after")
    def check_index_columns(self) -> "ObjectConfigDocument":
        for index_name, index in self.indexes.items():
            missing = [column for column in index.columns if column not in self.fields]
            if missing:
                raise ValueError(f"index '{index_name}' refers to unknown fields {missing}")
        primaries = [name for name, index in self.indexes.items() if index.primary]
        if len(primaries) > 1:
            raise ValueError(f"more than one primary index: {primaries}")
        return self

    def to_entity(self, name: str) -> ObjectConfig:
        fields = {field_name: spec.to_entity(field_name) for field_name, spec in self.fields.items()}
        indexes = {
            index_name: IndexSpec(
                name=PRIMARY_INDEX if index.primary else index_name,
                columns=list(index.columns),
                unique=index.unique,
                fulltext=index.fulltext,
                primary=index.primary,
            )
            for index_name, index in self.indexes.items()
        }
        return ObjectConfig(
            name=name,
            table=self.table or name,
            engine=self.engine,
            fields=fields,
            indexes=indexes,
            locked=self.locked,
            read_only=self.readonly,
            connection=self.connection,
            use_db_prefix=self.use_db_prefix,
            disable_keys=self.disable_keys,
            primary_key=self.primary_key,
            parent_object=self.parent_object,
            system=self.system,
            title=self.title,
        )

    @classmethod
    def from_entity(cls, config: ObjectConfig) -> "ObjectConfigDocument":
        return cls.model_validate(config.to_dict())
