"""Application services."""

from ormsync.application.services.builder import (
    Builder,
    BuilderFactory,
    BuilderOptions,
    BuildResult,
)
from ormsync.application.services.relation_materializer import RelationMaterializer

__all__ = [
    "Builder",
    "BuilderFactory",
    "BuilderOptions",
    "BuildResult",
    "RelationMaterializer",
]
