"""ormsync - declarative schema synchronization for MySQL.

Converges live database tables towards declarative object
configurations: columns, indexes, foreign keys, engines and
many-to-many junction tables.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
