"""Key/value store and task repository with atomic writes and validation."""

import copy
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Optional, Protocol

import yaml  # type: ignore[import-untyped]
from jsonschema import ValidationError, validate  # type: ignore[import-untyped]

from time_tracking.core.config import DEFAULT_STORE, STORE_SCHEMA, TrackerConfig
from time_tracking.core.models import Task
from time_tracking.exceptions import StoreError

logger = logging.getLogger(__name__)

YAML_SUFFIXES = (".yml", ".yaml")


def default_store_path() -> Path:
    """Default location of the store file."""
    return Path.home() / ".time-tracking" / "store.json"


def _lock_file(file_obj: Any, exclusive: bool = True) -> None:
    """Lock a file in a cross-platform way.

    Args:
        file_obj: File object to lock
        exclusive: If True, acquire exclusive lock; if False, acquire shared lock
    """
    if sys.platform == "win32":
        import msvcrt  # type: ignore[import-not-found]

        mode = msvcrt.LK_NBLCK if exclusive else msvcrt.LK_NBRLCK
        msvcrt.locking(file_obj.fileno(), mode, 1)
    else:
        import fcntl  # type: ignore[import-not-found]

        mode = fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH
        fcntl.flock(file_obj.fileno(), mode)


def _unlock_file(file_obj: Any) -> None:
    """Unlock a file in a cross-platform way."""
    if sys.platform == "win32":
        import msvcrt  # type: ignore[import-not-found]

        msvcrt.locking(file_obj.fileno(), msvcrt.LK_UNLCK, 1)
    else:
        import fcntl  # type: ignore[import-not-found]

        fcntl.flock(file_obj.fileno(), fcntl.LOCK_UN)


class JSONStore:
    """Persistent key/value document with dot-notation access.

    The whole document lives in one file. It is merged with defaults on
    load, validated against a JSON schema, and rewritten atomically on
    every :meth:`set`. A ``.yml``/``.yaml`` path stores YAML instead of JSON.
    """

    def __init__(
        self,
        path: Optional[Path] = None,
        defaults: Optional[dict[str, Any]] = None,
        schema: Optional[dict[str, Any]] = None,
    ):
        """Initialize store.

        Args:
            path: Store file. Defaults to ~/.time-tracking/store.json
            defaults: Document used for missing keys
            schema: JSON schema the document must satisfy

        Raises:
            StoreError: If the existing file is unreadable or invalid
        """
        self.path = Path(path) if path is not None else default_store_path()
        self.defaults = copy.deepcopy(DEFAULT_STORE if defaults is None else defaults)
        self.schema = STORE_SCHEMA if schema is None else schema
        self._data: dict[str, Any] = {}
        self._load_or_create()

    @property
    def is_yaml(self) -> bool:
        return self.path.suffix.lower() in YAML_SUFFIXES

    def _load_or_create(self) -> None:
        """Load existing document or create the default one."""
        if not self.path.exists():
            self._data = copy.deepcopy(self.defaults)
            self.save()
            return

        try:
            loaded = self._read()
            if not isinstance(loaded, dict):
                raise StoreError(f"Store {self.path} does not contain a mapping")
            self._data = self._merge_with_defaults(loaded)
            self.validate()
        except (StoreError, ValueError, yaml.YAMLError) as e:
            backup_path = self.path.with_name(self.path.name + ".backup")
            self.path.replace(backup_path)
            logger.error("Store %s is unusable, moved to %s: %s", self.path, backup_path, e)
            raise StoreError(f"Store could not be loaded, backed up to {backup_path}. Error: {e}")

        logger.debug("Loaded store %s", self.path)

    def _read(self) -> Any:
        with open(self.path, encoding="utf-8") as f:
            _lock_file(f, exclusive=False)
            try:
                text = f.read()
            finally:
                _unlock_file(f)

        if not text.strip():
            return {}
        if self.is_yaml:
            return yaml.safe_load(text) or {}
        return json.loads(text)

    def _merge_with_defaults(self, data: dict[str, Any]) -> dict[str, Any]:
        result = copy.deepcopy(self.defaults)
        self._deep_merge(result, data)
        return result

    def _deep_merge(self, base: dict[str, Any], override: dict[str, Any]) -> None:
        """Deep merge override into base dictionary (in-place)."""
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._deep_merge(base[key], value)
            else:
                base[key] = value

    @property
    def all(self) -> dict[str, Any]:
        """Snapshot of the whole document."""
        return copy.deepcopy(self._data)

    def get(self, key: str, default: Any = None) -> Any:
        """Get a value using dot notation (e.g. ``config.date_format``)."""
        value: Any = self._data
        for k in key.split("."):
            if not isinstance(value, dict) or k not in value:
                return default
            value = value[k]
        return copy.deepcopy(value)

    def set(self, key: str, value: Any) -> None:
        """Set a value using dot notation and persist the document.

        Raises:
            StoreError: If the document would become invalid or cannot be written
        """
        keys = key.split(".")
        candidate = copy.deepcopy(self._data)
        node = candidate
        for k in keys[:-1]:
            if not isinstance(node.get(k), dict):
                node[k] = {}
            node = node[k]
        node[keys[-1]] = value

        self._validate(candidate)
        previous, self._data = self._data, candidate
        try:
            self.save()
        except OSError as e:
            self._data = previous
            raise StoreError(f"Could not write {self.path}: {e}")

    def reset(self, key: Optional[str] = None) -> None:
        """Restore defaults for ``key`` (or the whole document)."""
        if key is None:
            self._data = copy.deepcopy(self.defaults)
            self.save()
            return
        default: Any = self.defaults
        for k in key.split("."):
            default = default[k]
        self.set(key, copy.deepcopy(default))

    def validate(self) -> bool:
        """Validate the current document against the schema.

        Raises:
            StoreError: If the document is invalid
        """
        self._validate(self._data)
        return True

    def _validate(self, data: dict[str, Any]) -> None:
        try:
            validate(instance=data, schema=self.schema)
        except ValidationError as e:
            raise StoreError(f"Invalid store contents: {e.message}")

        for record in data.get("tasks", []):
            try:
                Task.from_dict(record)
            except (KeyError, TypeError, ValueError) as e:
                raise StoreError(f"Invalid task {record.get('name')!r}: {e}")

    def save(self) -> None:
        """Write the document atomically using a temporary file and rename."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_file = self.path.with_name(self.path.name + ".tmp")

        try:
            with open(temp_file, "w", encoding="utf-8") as f:
                _lock_file(f, exclusive=True)
                if self.is_yaml:
                    yaml.safe_dump(
                        self._data, f, default_flow_style=False, sort_keys=False, allow_unicode=True
                    )
                else:
                    json.dump(self._data, f, indent=2, ensure_ascii=False)
                    f.write("\n")
                f.flush()
                os.fsync(f.fileno())
                _unlock_file(f)

            temp_file.replace(self.path)
        except Exception:
            if temp_file.exists():
                temp_file.unlink()
            raise


class TaskRepository(Protocol):
    """Where the tracker loads and saves its tasks."""

    def load(self) -> list[Task]: ...

    def save(self, tasks: list[Task]) -> bool: ...

    def load_config(self) -> TrackerConfig: ...


class StoreTaskRepository:
    """Task repository backed by a :class:`JSONStore`."""

    def __init__(self, store: Optional[JSONStore] = None):
        """Initialize repository.

        Args:
            store: Backing store. Creates default if None.
        """
        self.store = store or JSONStore()

    def load(self) -> list[Task]:
        """Materialize every persisted task."""
        return [Task.from_dict(record) for record in self.store.get("tasks", [])]

    def save(self, tasks: list[Task]) -> bool:
        """Persist the full task list.

        Returns:
            True if written, False if the store rejected the write
        """
        try:
            self.store.set("tasks", [task.to_dict() for task in tasks])
        except (StoreError, OSError):
            logger.exception("Failed to save %d tasks to %s", len(tasks), self.store.path)
            return False
        logger.debug("Saved %d tasks to %s", len(tasks), self.store.path)
        return True

    def load_config(self) -> TrackerConfig:
        return TrackerConfig.from_dict(self.store.get("config", {}))
