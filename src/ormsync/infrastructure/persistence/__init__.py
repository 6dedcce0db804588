"""Database persistence: connections, introspection and DDL."""
