"""Pytest fixtures for the todo tracker tests."""

from collections.abc import Callable
from datetime import date, datetime, timezone
from pathlib import Path

import pytest

from todo_tracker.config import Settings
from todo_tracker.core.store import TodoStore
from todo_tracker.storage import JsonFileStorage

FIXED_NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)
TODAY = date(2024, 6, 15)


@pytest.fixture
def data_file(tmp_path: Path) -> Path:
    """Path of a backing file that does not exist yet."""
    return tmp_path / "todo-data.json"


@pytest.fixture
def store_factory(data_file: Path) -> Callable[[], TodoStore]:
    """Build stores over the shared data file with a fixed clock."""

    def factory() -> TodoStore:
        return TodoStore(JsonFileStorage(data_file), clock=lambda: FIXED_NOW)

    return factory


@pytest.fixture
def store(store_factory: Callable[[], TodoStore]) -> TodoStore:
    """Store seeded with the default users and projects."""
    return store_factory()


@pytest.fixture
def admin_store(store: TodoStore) -> TodoStore:
    """Store with admin1 logged in."""
    store.login("admin1")
    return store


@pytest.fixture
def test_settings(data_file: Path) -> Settings:
    """Settings pointing at the temporary data file."""
    return Settings(
        data_path=str(data_file),
        web_port=3456,
        log_level="DEBUG",
        log_format="console",
    )
