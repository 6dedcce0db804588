"""Object configuration storage.

Configurations are plain JSON documents, one file per object, named
after the lowercase object name.
"""

import json
from abc import ABC, abstractmethod
from pathlib import Path

from pydantic import ValidationError

from ormsync.core.exceptions import ObjectConfigError, ObjectConfigNotFoundError
from ormsync.core.logging import get_logger
from ormsync.domain.entities.object_config import ObjectConfig
from ormsync.infrastructure.configuration.object_config_schemas import ObjectConfigDocument

logger = get_logger(__name__)


class ObjectConfigStore(ABC):
    """Source of declarative object configurations."""

    @abstractmethod
    def load(self, name: str) -> ObjectConfig:
        """Load an object configuration.

        Raises:
            ObjectConfigNotFoundError: If no configuration exists.
            ObjectConfigError: If the configuration cannot be parsed.
        """
        pass

    @abstractmethod
    def save(self, config: ObjectConfig) -> bool:
        """Persist a configuration. Returns False if it cannot be written."""
        pass

    @abstractmethod
    def exists(self, name: str) -> bool:
        pass

    @abstractmethod
    def names(self) -> list[str]:
        """Names of all stored objects, sorted."""
        pass

    def find(self, name: str) -> ObjectConfig | None:
        """Load a configuration, or None if it does not exist."""
        if not self.exists(name):
            return None
        return self.load(name)


class JsonObjectConfigStore(ObjectConfigStore):
    """Stores configurations as ``<directory>/<name>.json``."""

    SUFFIX = ".json"

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def path_for(self, name: str) -> Path:
        return self.directory / f"{name.lower()}{self.SUFFIX}"

    def exists(self, name: str) -> bool:
        return self.path_for(name).is_file()

    def names(self) -> list[str]:
        if not self.directory.is_dir():
            return []
        return sorted(path.stem for path in self.directory.glob(f"*{self.SUFFIX}"))

    def load(self, name: str) -> ObjectConfig:
        path = self.path_for(name)
        if not path.is_file():
            raise ObjectConfigNotFoundError(name.lower())

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ObjectConfigError(f"cannot read {path}: {e}", name.lower()) from e

        try:
            document = ObjectConfigDocument.model_validate(data)
            return document.to_entity(name.lower())
        except (ValidationError, ValueError) as e:
            raise ObjectConfigError(str(e), name.lower()) from e

    def save(self, config: ObjectConfig) -> bool:
        path = self.path_for(config.name)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(config.to_dict(), indent=4, default=str), encoding="utf-8")
        except OSError as e:
            logger.error("Cannot write object configuration", path=str(path), error=str(e))
            return False

        logger.debug("Object configuration saved", object_name=config.name, path=str(path))
        return True
