"""Data models for the todo tracker."""

from todo_tracker.models.base import Capability, CamelModel, Priority, Role
from todo_tracker.models.entities import (
    DATE_PATTERN,
    TIME_PATTERN,
    DataStore,
    GlobalStats,
    Permissions,
    Project,
    Summary,
    Todo,
    TodoUpdate,
    User,
)

__all__ = [
    # Base
    "CamelModel",
    "Capability",
    "Priority",
    "Role",
    # Entities
    "User",
    "Project",
    "Todo",
    "DataStore",
    # Derived
    "Permissions",
    "TodoUpdate",
    "GlobalStats",
    "Summary",
    # Patterns
    "DATE_PATTERN",
    "TIME_PATTERN",
]
