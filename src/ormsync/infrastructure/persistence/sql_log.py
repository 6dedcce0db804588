"""Append-only log of executed DDL statements.

Each connection gets one file, ``<path><connection>_<prefix>``, so the
statements applied by a deployment can be replayed on another server.
"""

from datetime import datetime
from pathlib import Path

from ormsync.core.logging import get_logger

logger = get_logger(__name__)


class SqlAuditLog:
    """Writes executed statements to per-connection log files."""

    def __init__(self, path: str, prefix: str = "0.1", enabled: bool = False) -> None:
        self.path = path
        self.prefix = prefix
        self.enabled = enabled

    def file_path(self, connection_name: str) -> Path:
        return Path(f"{self.path}{connection_name}_{self.prefix}")

    def append(self, connection_name: str, sql: str) -> bool:
        """Append a statement with a timestamp header.

        Returns:
            True if the statement was written or logging is disabled,
            False if the log file could not be written.
        """
        if not self.enabled:
            return True

        entry = "\n--\n--" + datetime.now().strftime("%Y-%m-%d %H:%M:%S") + "\n--\n" + sql
        target = self.file_path(connection_name)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with target.open("a", encoding="utf-8") as handle:
                handle.write(entry)
        except OSError as e:
            logger.error("Cannot write SQL log", path=str(target), error=str(e))
            return False
        return True
