"""Junction objects for many-to-many link fields.

A many-to-many field has no column of its own. Its values live in a
generated system object holding one row per (source, target) pair.
"""

from typing import TYPE_CHECKING

from ormsync.core.logging import get_logger
from ormsync.domain.entities.object_config import (
    PRIMARY_INDEX,
    FieldSpec,
    IndexSpec,
    LinkSpec,
    ObjectConfig,
)
from ormsync.infrastructure.configuration.object_config_store import ObjectConfigStore
from ormsync.infrastructure.persistence.introspection import SchemaIntrospector
from ormsync.infrastructure.persistence.table_locator import TableLocator

if TYPE_CHECKING:
    from ormsync.application.services.builder import BuilderFactory

logger = get_logger(__name__)

RELATION_ENGINE = "InnoDB"


class RelationMaterializer:
    """Creates and builds the junction objects an owner object is missing.

    Junction objects never declare many-to-many fields themselves, so
    recursion stops after ``MAX_DEPTH`` levels.
    """

    MAX_DEPTH = 1

    def __init__(
        self,
        owner: ObjectConfig,
        store: ObjectConfigStore,
        introspector: SchemaIntrospector,
        locator: TableLocator,
        factory: "BuilderFactory | None" = None,
        depth: int = 0,
    ) -> None:
        self.owner = owner
        self.store = store
        self.introspector = introspector
        self.locator = locator
        self.factory = factory
        self.depth = depth
        self.errors: list[str] = []
        self.statements: list[str] = []
        self.created: list[ObjectConfig] = []

    def synthesize(self, field_name: str) -> ObjectConfig:
        """Build the junction object configuration for a many-to-many field.

        Args:
            field_name: Many-to-many field of the owner object.

        Returns:
            Configuration with ``id``, ``source_id``, ``target_id`` and
            ``order_no`` fields.
        """
        target = self.owner.get_field(field_name).linked_object
        name = self.owner.relations_object_name(field_name)

        fields = {
            "id": FieldSpec(name="id", db_type="bigint", unsigned=True, auto_increment=True),
            "source_id": FieldSpec(
                name="source_id",
                db_type="bigint",
                unsigned=True,
                required=True,
                link=LinkSpec(object=self.owner.name),
            ),
            "target_id": FieldSpec(
                name="target_id",
                db_type="bigint",
                unsigned=True,
                required=True,
                link=LinkSpec(object=target),
            ),
            "order_no": FieldSpec(name="order_no", db_type="int", unsigned=True, default=0),
        }
        indexes = {
            PRIMARY_INDEX: IndexSpec(name=PRIMARY_INDEX, columns=["id"], unique=True, primary=True),
            "source_id": IndexSpec(name="source_id", columns=["source_id"]),
            "target_id": IndexSpec(name="target_id", columns=["target_id"]),
        }

        return ObjectConfig(
            name=name,
            table=name,
            engine=RELATION_ENGINE,
            fields=fields,
            indexes=indexes,
            connection=self.owner.connection,
            use_db_prefix=True,
            parent_object=self.owner.name,
            system=True,
            title=f"{self.owner.name} {field_name} to {target}",
        )

    def materialize(self, pending: dict[str, str]) -> bool:
        """Save and build the junction objects for the given fields.

        Args:
            pending: Mapping of many-to-many field name to junction object name.

        Returns:
            True if every junction object was created and built.
        """
        if not pending:
            return True
        if not self._check_depth():
            return False

        tables = self.introspector.list_tables()

        for field_name, object_name in pending.items():
            config = self.synthesize(field_name)
            table = self.locator.table_name_for(config)

            if table in tables:
                self.errors.append(f"Invalid value. Table name: {table} is not unique")
                return False
            if self.store.exists(object_name):
                self.errors.append(f"Object {object_name} already exists")
                return False
            if not self.store.save(config):
                self.errors.append(f"Cannot create object configuration {object_name}")
                return False

            self.created.append(config)
            logger.info(
                "Relation object created",
                object_name=object_name,
                owner=self.owner.name,
                field=field_name,
            )

            if not self._build(object_name):
                return False

        return True

    def build_existing(self, unbuilt: dict[str, str]) -> bool:
        """Build junction objects whose configuration exists but whose table does not.

        Picks up junction tables left behind by an earlier build that saved
        the configuration and then failed.

        Args:
            unbuilt: Mapping of many-to-many field name to junction object name.
        """
        if not unbuilt:
            return True
        if not self._check_depth():
            return False

        for object_name in unbuilt.values():
            logger.info("Building relation object", object_name=object_name, owner=self.owner.name)
            if not self._build(object_name):
                return False
        return True

    def _check_depth(self) -> bool:
        if self.depth >= self.MAX_DEPTH:
            self.errors.append(
                f"Relation object {self.owner.name} cannot declare many-to-many fields"
            )
            return False
        return True

    def _build(self, object_name: str) -> bool:
        if self.factory is None:
            return True
        result = self.factory.create(object_name, relation_depth=self.depth + 1).build()
        self.statements.extend(result.statements)
        if not result:
            self.errors.extend(f"{object_name}: {error}" for error in result.errors)
            return False
        return True
