"""Declarative object configuration storage."""

from ormsync.infrastructure.configuration.object_config_store import (
    JsonObjectConfigStore,
    ObjectConfigStore,
)

__all__ = ["JsonObjectConfigStore", "ObjectConfigStore"]
