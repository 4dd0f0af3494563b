"""Tests for the key/value store and task repository."""

import json
import tempfile
from datetime import datetime
from pathlib import Path

import pytest  # type: ignore[import-not-found]
import yaml  # type: ignore[import-untyped]

from time_tracking.core.models import Interval, Task, TaskStatus
from time_tracking.core.storage import JSONStore, StoreTaskRepository
from time_tracking.exceptions import StoreError


@pytest.fixture  # type: ignore[misc]
def temp_dir() -> Path:
    """Create temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture  # type: ignore[misc]
def store(temp_dir: Path) -> JSONStore:
    """Create a store in a temporary directory."""
    return JSONStore(temp_dir / "store.json")


class TestJSONStore:
    """Test JSONStore."""

    def test_initialization_creates_default_document(self, temp_dir: Path) -> None:
        """Test that a missing file is created with defaults."""
        path = temp_dir / "nested" / "store.json"
        assert not path.exists()

        store = JSONStore(path)

        assert path.exists()
        assert store.get("config.date_format") == "MM/DD/YYYY"
        assert store.get("config.pause_others_on_start") is True
        assert store.get("tasks") == []
        assert json.loads(path.read_text()) == store.all

    def test_merge_with_defaults(self, temp_dir: Path) -> None:
        """Test that a partial document gains the default keys."""
        path = temp_dir / "store.json"
        path.write_text(json.dumps({"config": {"date_format": "DD/MM/YYYY"}}))

        store = JSONStore(path)

        assert store.get("config.date_format") == "DD/MM/YYYY"
        assert store.get("config.pause_others_on_start") is True
        assert store.get("tasks") == []

    def test_get_missing_key_returns_default(self, store: JSONStore) -> None:
        assert store.get("config.nonexistent") is None
        assert store.get("nonexistent.key", "default") == "default"

    def test_get_returns_copy(self, store: JSONStore) -> None:
        """Test that callers cannot mutate the document through get."""
        tasks = store.get("tasks")
        tasks.append({"name": "x"})

        assert store.get("tasks") == []

    def test_set_persists(self, store: JSONStore) -> None:
        store.set("config.date_format", "YYYY-MM-DD")

        reloaded = JSONStore(store.path)
        assert reloaded.get("config.date_format") == "YYYY-MM-DD"

    def test_set_invalid_value_raises_and_keeps_document(self, store: JSONStore) -> None:
        """Test that schema violations are rejected before writing."""
        with pytest.raises(StoreError, match="Invalid store contents"):
            store.set("config.pause_others_on_start", "sometimes")

        assert store.get("config.pause_others_on_start") is True
        assert JSONStore(store.path).get("config.pause_others_on_start") is True

    def test_set_invalid_task_raises(self, store: JSONStore) -> None:
        with pytest.raises(StoreError):
            store.set("tasks", [{"name": "t1", "status": 7, "log": []}])

    def test_corrupted_file_is_backed_up(self, temp_dir: Path) -> None:
        """Test that an unreadable file is moved aside."""
        path = temp_dir / "store.json"
        path.write_text("{not json")

        with pytest.raises(StoreError, match="backed up"):
            JSONStore(path)

        assert (temp_dir / "store.json.backup").read_text() == "{not json"
        assert not path.exists()

    def test_unparseable_timestamp_is_backed_up(self, temp_dir: Path) -> None:
        """Test that a task with a malformed timestamp makes the file unusable."""
        path = temp_dir / "store.json"
        path.write_text(
            json.dumps(
                {"tasks": [{"name": "t1", "status": 2, "log": [{"start": "not-a-date", "stop": "also-bad"}]}]}
            )
        )

        with pytest.raises(StoreError, match="backed up"):
            JSONStore(path)

        assert (temp_dir / "store.json.backup").exists()
        assert not path.exists()

    def test_set_task_with_bad_timestamp_raises(self, store: JSONStore) -> None:
        with pytest.raises(StoreError, match="t1"):
            store.set("tasks", [{"name": "t1", "status": 0, "log": [{"start": "yesterday"}]}])

        assert store.get("tasks") == []

    def test_empty_file_uses_defaults(self, temp_dir: Path) -> None:
        path = temp_dir / "store.json"
        path.write_text("")

        store = JSONStore(path)

        assert store.get("tasks") == []

    def test_reset_key(self, store: JSONStore) -> None:
        store.set("config.date_format", "DD/MM/YYYY")
        store.set("tasks", [{"name": "t1", "status": 0, "log": []}])

        store.reset("config")

        assert store.get("config.date_format") == "MM/DD/YYYY"
        assert len(store.get("tasks")) == 1

    def test_no_temp_file_left_behind(self, store: JSONStore) -> None:
        store.set("config.date_format", "DD/MM/YYYY")

        assert [p.name for p in store.path.parent.iterdir()] == ["store.json"]

    def test_yaml_store(self, temp_dir: Path) -> None:
        """Test that a .yml path is written as YAML."""
        path = temp_dir / "store.yml"
        store = JSONStore(path)
        store.set("config.date_format", "DD/MM/YYYY")

        data = yaml.safe_load(path.read_text())
        assert data["config"]["date_format"] == "DD/MM/YYYY"
        assert JSONStore(path).get("config.date_format") == "DD/MM/YYYY"


class TestStoreTaskRepository:
    """Test StoreTaskRepository."""

    def test_load_empty(self, store: JSONStore) -> None:
        assert StoreTaskRepository(store).load() == []

    def test_save_and_load_round_trip(self, store: JSONStore) -> None:
        """Test that names, statuses and intervals survive a reload."""
        tasks = [
            Task(
                name="t1",
                description="first",
                status=TaskStatus.PAUSED,
                log=[Interval(datetime(2024, 6, 1, 9, 0, 0, 1234), datetime(2024, 6, 1, 10, 30))],
            ),
            Task(
                name="t2",
                status=TaskStatus.IN_PROGRESS,
                log=[Interval(datetime(2024, 6, 1, 11))],
            ),
        ]

        assert StoreTaskRepository(store).save(tasks) is True

        loaded = StoreTaskRepository(JSONStore(store.path)).load()
        assert loaded == tasks

    def test_persisted_format(self, store: JSONStore) -> None:
        """Test the on-disk representation of a task."""
        task = Task(name="t1", status=TaskStatus.FINISHED, log=[Interval(datetime(2024, 6, 1, 9))])
        StoreTaskRepository(store).save([task])

        data = json.loads(store.path.read_text())
        assert data["tasks"] == [
            {"name": "t1", "description": "", "status": 2, "log": [{"start": "2024-06-01T09:00:00"}]}
        ]

    def test_save_failure_returns_false(self, store: JSONStore, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that write errors are reported instead of raised."""

        def failing_save() -> None:
            raise OSError("disk full")

        monkeypatch.setattr(store, "save", failing_save)

        assert StoreTaskRepository(store).save([Task.new("t1")]) is False
        assert store.get("tasks") == []

    def test_load_config(self, store: JSONStore) -> None:
        store.set("config.pause_others_on_start", False)

        config = StoreTaskRepository(store).load_config()

        assert config.pause_others_on_start is False
        assert config.date_format == "MM/DD/YYYY"
