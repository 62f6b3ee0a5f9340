"""Storage backends for the aggregate."""

from todo_tracker.storage.base import AggregateStorage, StorageError
from todo_tracker.storage.json_file import JsonFileStorage

__all__ = [
    "AggregateStorage",
    "JsonFileStorage",
    "StorageError",
]
