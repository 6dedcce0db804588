"""Unit tests for object configuration document schemas."""

import pytest
from pydantic import ValidationError

from ormsync.domain.entities.object_config import LinkType
from ormsync.infrastructure.configuration.object_config_schemas import (
    FieldDefinition,
    IndexDefinition,
    ObjectConfigDocument,
)


class TestFieldDefinition:

    def test_type_is_normalized(self):
        assert FieldDefinition(db_type="VARCHAR").db_type == "varchar"

    def test_unsupported_type(self):
        with pytest.raises(ValidationError):
            FieldDefinition(db_type="json")

    def test_stored_field_needs_type(self):
        with pytest.raises(ValidationError):
            FieldDefinition()

    def test_virtual_field_without_type(self):
        assert FieldDefinition(virtual=True).to_entity("computed").is_virtual

    def test_many_to_many_field_without_type(self):
        definition = FieldDefinition(
            link={"object": "Tag", "link_type": "multi", "relations_type": "many_to_many"}
        )
        spec = definition.to_entity("tags")
        assert spec.link.link_type == LinkType.MULTI
        assert spec.link.object == "tag"
        assert spec.is_virtual

    def test_false_default_means_no_default(self):
        assert FieldDefinition(db_type="int", db_default=False).to_entity("n").has_default is False

    def test_float_precision_needs_scale(self):
        with pytest.raises(ValidationError, match="db_precision needs db_scale"):
            FieldDefinition(db_type="decimal", db_precision=2)

    def test_float_scale_without_precision(self):
        spec = FieldDefinition(db_type="decimal", db_scale=10).to_entity("amount")
        assert spec.scale == 10
        assert spec.precision is None

    def test_null_flag_alias(self):
        assert FieldDefinition.model_validate({"db_type": "int", "db_isNull": True}).db_is_null is True


class TestIndexDefinition:

    def test_primary_index_single_column(self):
        with pytest.raises(ValidationError):
            IndexDefinition(columns=["a", "b"], primary=True)

    def test_index_needs_columns(self):
        with pytest.raises(ValidationError):
            IndexDefinition(columns=[])


class TestObjectConfigDocument:

    def test_index_columns_must_be_fields(self):
        with pytest.raises(ValidationError):
            ObjectConfigDocument.model_validate({
                "fields": {"id": {"db_type": "int"}},
                "indexes": {"name": {"columns": ["name"]}},
            })

    def test_single_primary_index(self):
        with pytest.raises(ValidationError):
            ObjectConfigDocument.model_validate({
                "fields": {"id": {"db_type": "int"}, "code": {"db_type": "int"}},
                "indexes": {
                    "a": {"columns": ["id"], "primary": True},
                    "b": {"columns": ["code"], "primary": True},
                },
            })

    def test_engine_name_is_checked(self):
        with pytest.raises(ValidationError):
            ObjectConfigDocument.model_validate({"engine": "InnoDB; DROP TABLE x"})

    def test_read_only_alias(self):
        assert ObjectConfigDocument.model_validate({"read_only": True}).to_entity("a").read_only is True
        assert ObjectConfigDocument.model_validate({"readonly": True}).to_entity("a").read_only is True

    def test_unknown_keys_are_ignored(self):
        document = ObjectConfigDocument.model_validate({"acl": "x", "fields": {}})
        assert document.to_entity("log").table == "log"
