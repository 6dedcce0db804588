"""Unit tests for SchemaDiffEngine."""

from ormsync.domain.entities.object_config import (
    PRIMARY_INDEX,
    FieldSpec,
    ForeignKeySpec,
    IndexSpec,
    ObjectConfig,
)
from ormsync.domain.entities.schema_change import (
    ChangeAction,
    LiveColumn,
    LiveForeignKey,
    LiveIndex,
)
from ormsync.domain.services.schema_diff import SchemaDiffEngine


def _config(**indexes: IndexSpec) -> ObjectConfig:
    return ObjectConfig(
        name="product",
        table="product",
        fields={
            "id": FieldSpec(name="id", db_type="bigint", unsigned=True, auto_increment=True),
            "title": FieldSpec(name="title", db_type="varchar", length=100),
            "price": FieldSpec(name="price", db_type="decimal", scale=10, precision=2),
            "summary": FieldSpec(name="summary", db_type="text", virtual=True),
        },
        indexes=indexes,
    )


def _live_key(name: str) -> LiveForeignKey:
    return LiveForeignKey(
        name=name,
        source_field="category",
        target_table="category",
        target_field="id",
        on_update="CASCADE",
        on_delete="SET NULL",
    )


def _declared_key(name: str) -> ForeignKeySpec:
    return ForeignKeySpec(
        name=name,
        source_field="category",
        target_db="shop",
        target_table="category",
        target_field="id",
        on_update="CASCADE",
        on_delete="SET NULL",
    )


class TestDiffColumns:

    def test_drops_then_adds_then_changes(self):
        live = [
            LiveColumn(name="legacy", data_type="int", nullable=True, numeric_precision=10),
            LiveColumn(name="id", data_type="bigint", nullable=False, numeric_precision=20, unsigned=True),
            LiveColumn(name="title", data_type="varchar", nullable=False, character_max_length=50),
            LiveColumn(name="old_flag", data_type="tinyint", nullable=False, numeric_precision=3),
        ]

        changes = SchemaDiffEngine.diff_columns(_config(), live)

        assert [(c.action, c.name) for c in changes] == [
            (ChangeAction.DROP, "legacy"),
            (ChangeAction.DROP, "old_flag"),
            (ChangeAction.ADD, "price"),
            (ChangeAction.CHANGE, "title"),
        ]
        assert changes[-1].detail["length"] is True

    def test_virtual_fields_are_ignored(self):
        changes = SchemaDiffEngine.diff_columns(_config(), [])
        assert "summary" not in [c.name for c in changes]

    def test_in_sync_table_has_no_changes(self):
        live = [
            LiveColumn(name="id", data_type="bigint", nullable=False, numeric_precision=20, unsigned=True),
            LiveColumn(name="title", data_type="varchar", nullable=False, character_max_length=100),
            LiveColumn(name="price", data_type="decimal", nullable=False, numeric_precision=10, numeric_scale=2),
        ]
        assert SchemaDiffEngine.diff_columns(_config(), live) == []


class TestDiffIndexes:

    def test_missing_index_is_added(self):
        config = _config(title=IndexSpec(name="title", columns=["title"]))
        changes = SchemaDiffEngine.diff_indexes(config, {})
        assert [(c.action, c.name) for c in changes] == [(ChangeAction.ADD, "title")]

    def test_undeclared_index_is_dropped(self):
        live = {"legacy": LiveIndex(name="legacy", columns=("title",))}
        changes = SchemaDiffEngine.diff_indexes(_config(), live)
        assert [(c.action, c.name) for c in changes] == [(ChangeAction.DROP, "legacy")]

    def test_changed_index_is_dropped_and_added(self):
        config = _config(title=IndexSpec(name="title", columns=["title"], unique=True))
        live = {"title": LiveIndex(name="title", columns=("title",), unique=False)}
        changes = SchemaDiffEngine.diff_indexes(config, live)
        assert [(c.action, c.name) for c in changes] == [
            (ChangeAction.DROP, "title"),
            (ChangeAction.ADD, "title"),
        ]

    def test_column_order_does_not_matter(self):
        config = _config(pair=IndexSpec(name="pair", columns=["title", "price"]))
        live = {"pair": LiveIndex(name="pair", columns=("price", "title"))}
        assert SchemaDiffEngine.diff_indexes(config, live) == []

    def test_primary_index_matches_unique_live_primary(self):
        config = _config(pk=IndexSpec(name="pk", columns=["id"], primary=True))
        live = {PRIMARY_INDEX: LiveIndex(name=PRIMARY_INDEX, columns=("id",), unique=True)}
        assert SchemaDiffEngine.diff_indexes(config, live) == []

    def test_foreign_key_backing_index_is_kept(self):
        name = "0b1f" * 8
        live = {name: LiveIndex(name=name, columns=("category",))}
        changes = SchemaDiffEngine.diff_indexes(_config(), live, {name: _declared_key(name)})
        assert changes == []


class TestDiffForeignKeys:

    def test_adds_before_drops(self):
        changes = SchemaDiffEngine.diff_foreign_keys({"new": _declared_key("new")}, {"old": _live_key("old")})
        assert [(c.action, c.name) for c in changes] == [
            (ChangeAction.ADD, "new"),
            (ChangeAction.DROP, "old"),
        ]
        assert changes[0].spec.target_table == "category"

    def test_existing_key_is_kept(self):
        changes = SchemaDiffEngine.diff_foreign_keys({"same": _declared_key("same")}, {"same": _live_key("same")})
        assert changes == []

    def test_drop_only_removes_every_live_key(self):
        changes = SchemaDiffEngine.diff_foreign_keys(
            {"same": _declared_key("same")},
            {"same": _live_key("same"), "other": _live_key("other")},
            drop_only=True,
        )
        assert [(c.action, c.name) for c in changes] == [
            (ChangeAction.DROP, "same"),
            (ChangeAction.DROP, "other"),
        ]


class TestDiffEngine:

    def test_engine_compared_case_insensitively(self):
        assert SchemaDiffEngine.diff_engine(_config(), "innodb") is None

    def test_engine_switch(self):
        change = SchemaDiffEngine.diff_engine(_config(), "MyISAM")
        assert change.current == "MyISAM"
        assert change.target == "InnoDB"

    def test_unknown_live_engine(self):
        assert SchemaDiffEngine.diff_engine(_config(), None) is None


def test_unique_email_index_rebuilt_not_modified():
    config = ObjectConfig(
        name="member",
        table="member",
        fields={"email": FieldSpec(name="email", db_type="varchar", length=190)},
        indexes={"email": IndexSpec(name="email", columns=["email"], unique=True)},
    )
    live = {"email": LiveIndex(name="email", columns=("email",), unique=False)}

    changes = SchemaDiffEngine.diff_indexes(config, live)

    assert [(c.action.value, c.name) for c in changes] == [("drop", "email"), ("add", "email")]
