"""Infrastructure layer - External dependencies and implementations.

This layer contains all external dependencies including:
- Database access (SQLAlchemy, PyMySQL)
- Live schema introspection and DDL generation
- Object configuration storage (JSON documents)
- SQL audit logging

The infrastructure layer implements interfaces used by the
application and domain layers.
"""

from ormsync.infrastructure.persistence.database import DatabaseConnection, DatabaseManager

__all__ = [
    "DatabaseConnection",
    "DatabaseManager",
]
