"""Unit tests for the JSON file storage backend."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from tests.conftest import FIXED_NOW
from todo_tracker.core.store import default_data
from todo_tracker.storage import JsonFileStorage, StorageError


class TestJsonFileStorage:
    """Tests for JsonFileStorage."""

    @pytest.fixture
    def storage(self, data_file: Path) -> JsonFileStorage:
        return JsonFileStorage(data_file)

    def test_load_missing_file(self, storage: JsonFileStorage) -> None:
        """Test a missing file loads as None."""
        assert storage.load() is None

    def test_save_then_load(self, storage: JsonFileStorage) -> None:
        """Test a saved aggregate loads back equal."""
        data = default_data(FIXED_NOW)
        data.current_user_id = "dev1"

        storage.save(data)

        assert storage.load() == data

    def test_saved_file_is_pretty_camel_case_json(self, storage: JsonFileStorage, data_file: Path) -> None:
        """Test the on-disk document format."""
        storage.save(default_data(FIXED_NOW))

        content = data_file.read_text(encoding="utf-8")
        document = json.loads(content)
        assert content.startswith('{\n  "users"')
        assert document["currentUserId"] is None
        assert "createdAt" in document["projects"][0]
        # emoji avatars are written as-is
        assert "\U0001f451" in content

    def test_save_creates_parent_directory(self, tmp_path: Path) -> None:
        """Test missing parent directories are created."""
        storage = JsonFileStorage(tmp_path / "nested" / "dir" / "data.json")

        storage.save(default_data(FIXED_NOW))

        assert (tmp_path / "nested" / "dir" / "data.json").exists()

    def test_save_leaves_no_temp_files(self, storage: JsonFileStorage, data_file: Path) -> None:
        """Test the temporary file is renamed into place."""
        storage.save(default_data(FIXED_NOW))
        storage.save(default_data(FIXED_NOW))

        assert [p.name for p in data_file.parent.iterdir()] == [data_file.name]

    def test_failed_replace_cleans_up(self, storage: JsonFileStorage, data_file: Path) -> None:
        """Test a failed rename raises StorageError and removes the temp file."""
        with patch("todo_tracker.storage.json_file.os.replace", side_effect=OSError("busy")):
            with pytest.raises(StorageError):
                storage.save(default_data(FIXED_NOW))

        assert list(data_file.parent.iterdir()) == []

    def test_load_invalid_json(self, storage: JsonFileStorage, data_file: Path) -> None:
        """Test unparseable content raises StorageError."""
        data_file.write_text("{", encoding="utf-8")

        with pytest.raises(StorageError):
            storage.load()

    def test_load_non_object(self, storage: JsonFileStorage, data_file: Path) -> None:
        """Test a top-level array raises StorageError."""
        data_file.write_text("[]", encoding="utf-8")

        with pytest.raises(StorageError):
            storage.load()

    def test_load_invalid_entity(self, storage: JsonFileStorage, data_file: Path) -> None:
        """Test a schema violation raises StorageError."""
        data_file.write_text(json.dumps({"todos": [{"id": "t1"}]}), encoding="utf-8")

        with pytest.raises(StorageError, match="Invalid data"):
            storage.load()

    @pytest.mark.parametrize(
        "content",
        ["{", "[]", json.dumps({"todos": [{"id": "t1"}]})],
        ids=["bad-json", "non-object", "invalid-entity"],
    )
    def test_save_sets_rejected_file_aside(self, storage: JsonFileStorage, data_file: Path, content: str) -> None:
        """Test the first save after a rejected load keeps the old bytes."""
        data_file.write_text(content, encoding="utf-8")
        with pytest.raises(StorageError):
            storage.load()

        storage.save(default_data(FIXED_NOW))

        moved = list(data_file.parent.glob(f"{data_file.name}.corrupt-*"))
        assert len(moved) == 1
        assert moved[0].read_text(encoding="utf-8") == content
        assert storage.load() is not None

    def test_set_aside_happens_once(self, storage: JsonFileStorage, data_file: Path) -> None:
        """Test later saves overwrite normally."""
        data_file.write_text("{", encoding="utf-8")
        with pytest.raises(StorageError):
            storage.load()

        storage.save(default_data(FIXED_NOW))
        storage.save(default_data(FIXED_NOW))

        assert len(list(data_file.parent.glob(f"{data_file.name}.corrupt-*"))) == 1

    def test_valid_file_is_overwritten_in_place(self, storage: JsonFileStorage, data_file: Path) -> None:
        storage.save(default_data(FIXED_NOW))
        storage.load()

        storage.save(default_data(FIXED_NOW))

        assert list(data_file.parent.iterdir()) == [data_file]

    def test_location_expands_home(self) -> None:
        """Test ~ is expanded in the path."""
        storage = JsonFileStorage("~/.todo-mcp-data.json")

        assert not storage.location.startswith("~")
        assert storage.location.endswith(".todo-mcp-data.json")
