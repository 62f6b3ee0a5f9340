"""Storage interface for the aggregate."""

from abc import ABC, abstractmethod

from todo_tracker.models import DataStore


class StorageError(Exception):
    """Raised when the backing store cannot be read or written."""


class AggregateStorage(ABC):
    """Get-aggregate / replace-aggregate storage.

    The store owns every business rule; implementations only move whole
    aggregates in and out, so a file can later be swapped for an embedded
    database without touching permission logic.
    """

    @abstractmethod
    def load(self) -> DataStore | None:
        """Read the full aggregate.

        Returns:
            The stored aggregate, or None if nothing has been stored yet

        Raises:
            StorageError: If stored data exists but cannot be read or parsed
        """

    @abstractmethod
    def save(self, data: DataStore) -> None:
        """Replace the stored aggregate with `data`.

        Raises:
            StorageError: If the write fails
        """

    @property
    @abstractmethod
    def location(self) -> str:
        """Human-readable location, for logs."""
