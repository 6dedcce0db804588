"""Domain layer - object configurations and the schema diff.

Nothing in this package talks to a database; it works on declared
configurations and live schema snapshots only.
"""
