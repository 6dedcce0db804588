"""Unit tests for foreign key derivation."""

import hashlib

from ormsync.domain.entities.object_config import FieldSpec, LinkSpec, ObjectConfig
from ormsync.domain.services.foreign_keys import derive_foreign_keys, foreign_key_name


def _object(name: str, engine: str = "InnoDB", **fields: FieldSpec) -> ObjectConfig:
    fields = {"id": FieldSpec(name="id", db_type="bigint", unsigned=True), **fields}
    return ObjectConfig(name=name, table=name, engine=engine, fields=fields)


def _derive(config: ObjectConfig, *others: ObjectConfig) -> dict:
    known = {other.name: other for other in others}
    return derive_foreign_keys(
        config,
        resolve=known.get,
        table_name=lambda target: "app_" + target.table,
        database="shop",
    )


def test_foreign_key_name_is_md5_of_definition():
    expected = hashlib.md5(b"author:shop:app_user:id:CASCADE:SET NULL").hexdigest()
    assert foreign_key_name("author", "shop", "app_user", "id", "CASCADE", "SET NULL") == expected


def test_nullable_link_sets_null_on_delete():
    post = _object("post", author=FieldSpec(name="author", db_type="bigint", nullable=True, link=LinkSpec(object="user")))
    keys = list(_derive(post, _object("user")).values())

    assert len(keys) == 1
    assert keys[0].source_field == "author"
    assert keys[0].target_table == "app_user"
    assert keys[0].target_field == "id"
    assert keys[0].on_update == "CASCADE"
    assert keys[0].on_delete == "SET NULL"


def test_required_link_restricts_delete():
    post = _object("post", author=FieldSpec(name="author", db_type="bigint", link=LinkSpec(object="user")))
    (key,) = _derive(post, _object("user")).values()
    assert key.on_delete == "RESTRICT"
    assert key.name == foreign_key_name("author", "shop", "app_user", "id", "CASCADE", "RESTRICT")


def test_missing_target_has_no_key():
    post = _object("post", author=FieldSpec(name="author", db_type="bigint", link=LinkSpec(object="user")))
    assert _derive(post) == {}


def test_non_transactional_engine_has_no_keys():
    post = _object("post", author=FieldSpec(name="author", db_type="bigint", link=LinkSpec(object="user")))
    assert _derive(post, _object("user", engine="MyISAM")) == {}

    post.engine = "MyISAM"
    assert _derive(post, _object("user")) == {}


def test_disabled_keys():
    post = _object("post", author=FieldSpec(name="author", db_type="bigint", link=LinkSpec(object="user")))
    post.disable_keys = True
    assert _derive(post, _object("user")) == {}


def test_other_connection_has_no_key():
    post = _object("post", author=FieldSpec(name="author", db_type="bigint", link=LinkSpec(object="user")))
    user = _object("user")
    user.connection = "archive"
    assert _derive(post, user) == {}
